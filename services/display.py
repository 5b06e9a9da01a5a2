from models import BotCountPolicy, DisplayFields, PlayerRecord, ServerStatus

USERNAME_MAX_LENGTH = 32
ELLIPSIS = "..."


def ensure_max_length(s: str, max_length: int = USERNAME_MAX_LENGTH) -> str:
    if len(s) <= max_length:
        return s
    return s[: max_length - len(ELLIPSIS)] + ELLIPSIS


def is_human(p: PlayerRecord) -> bool:
    # "has participated" heuristic; some servers report bots as regular players
    return not p.is_bot and (p.ping > 0 or p.score != 0 or p.kills != 0 or p.deaths != 0)


def count_players(status: ServerStatus, policy: BotCountPolicy) -> tuple[int, int]:
    """Return ``(humans, bots)`` for the given policy.

    ``include`` never filters. Sources without a player list fall back to
    their reported bot count, or are treated as already filtered.
    """
    total = status.player_count
    if policy is BotCountPolicy.INCLUDE:
        return total, 0
    if status.players is not None:
        humans = sum(1 for p in status.players if is_human(p))
    elif status.bot_count is not None:
        humans = max(total - status.bot_count, 0)
    else:
        humans = total
    return humans, max(total - humans, 0)


def players_online(n: int) -> str:
    return f"{n} {'player' if n == 1 else 'players'} online"


def player_ratio(status: ServerStatus, policy: BotCountPolicy) -> str:
    humans, bots = count_players(status, policy)
    if status.max_players <= 0:
        # slot count not reported
        return players_online(humans)
    if policy is BotCountPolicy.SEPARATE:
        return f"{humans}({bots})/{status.max_players}"
    if policy is BotCountPolicy.SUBTRACT_SLOTS:
        return f"{humans}/{status.max_players - bots}"
    if policy is BotCountPolicy.INCLUDE:
        return f"{status.player_count}/{status.max_players}"
    return f"{humans}/{status.max_players}"


def map_image_key(map_name: str | None) -> str | None:
    if not map_name:
        return None
    return "map_" + map_name.lower().replace(" ", "_")


def format_display(status: ServerStatus, policy: BotCountPolicy) -> DisplayFields:
    text = player_ratio(status, policy)
    if status.map_name:
        text = f"{text} - {status.map_name}"
    return DisplayFields(
        activity_text=text,
        desired_username=ensure_max_length(status.display_name),
        map_image_key=map_image_key(status.map_name),
    )
