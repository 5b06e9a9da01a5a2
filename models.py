import enum
from dataclasses import dataclass
from typing import Optional


class BotCountPolicy(str, enum.Enum):
    IGNORE = "ignore"
    SEPARATE = "separate"
    SUBTRACT_SLOTS = "subtract-slots"
    INCLUDE = "include"


@dataclass(frozen=True)
class PlayerRecord:
    is_bot: bool = False
    ping: int = 0
    score: int = 0
    kills: int = 0
    deaths: int = 0
    name: str = ""


@dataclass(frozen=True)
class ServerStatus:
    display_name: str
    player_count: int
    max_players: int
    map_name: Optional[str] = None
    players: Optional[tuple[PlayerRecord, ...]] = None
    # reported by sources that count bots without listing players (A2S)
    bot_count: Optional[int] = None


@dataclass(frozen=True)
class DisplayFields:
    activity_text: str
    desired_username: str
    map_image_key: Optional[str] = None


@dataclass
class PresenceState:
    last_activity_text: str = ""
    last_avatar_key: str = ""
