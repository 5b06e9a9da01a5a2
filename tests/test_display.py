import pytest

from models import BotCountPolicy, PlayerRecord, ServerStatus
from services.display import count_players, ensure_max_length, format_display, is_human, map_image_key
from mocks import make_status


@pytest.mark.parametrize("policy,expected", [
    (BotCountPolicy.IGNORE, "7/16"),
    (BotCountPolicy.SEPARATE, "7(3)/16"),
    (BotCountPolicy.SUBTRACT_SLOTS, "7/13"),
    (BotCountPolicy.INCLUDE, "10/16"),
])
def test_bot_count_policies(policy, expected):
    fields = format_display(make_status(map_name=None), policy)
    assert fields.activity_text == expected


def test_map_name_is_appended():
    fields = format_display(make_status(), BotCountPolicy.SEPARATE)
    assert fields.activity_text == "7(3)/16 - Strike At Karkand"
    assert fields.map_image_key == "map_strike_at_karkand"


def test_no_map_means_no_image_key():
    fields = format_display(make_status(map_name=""), BotCountPolicy.IGNORE)
    assert fields.activity_text == "7/16"
    assert fields.map_image_key is None


def test_map_image_key():
    assert map_image_key("Strike At Karkand") == "map_strike_at_karkand"
    assert map_image_key(None) is None


def test_formatter_is_deterministic(status):
    assert format_display(status, BotCountPolicy.SEPARATE) == format_display(status, BotCountPolicy.SEPARATE)


def test_username_truncation():
    name = "x" * 40
    out = ensure_max_length(name)
    assert out == "x" * 29 + "..."
    assert len(out) == 32


@pytest.mark.parametrize("length", [1, 28, 29])
def test_short_username_unchanged(length):
    assert ensure_max_length("a" * length) == "a" * length


def test_desired_username_is_normalized():
    fields = format_display(make_status(display_name="A" * 50), BotCountPolicy.IGNORE)
    assert fields.desired_username == "A" * 29 + "..."


@pytest.mark.parametrize("player,expected", [
    (PlayerRecord(ping=20), True),
    (PlayerRecord(score=-1), True),
    (PlayerRecord(kills=1), True),
    (PlayerRecord(deaths=2), True),
    (PlayerRecord(), False),
    (PlayerRecord(is_bot=True, ping=20, score=5), False),
])
def test_human_heuristic(player, expected):
    assert is_human(player) is expected


def test_prefiltered_source_counts_everyone():
    status = ServerStatus(display_name="bm", player_count=5, max_players=64)
    assert count_players(status, BotCountPolicy.SEPARATE) == (5, 0)
    assert format_display(status, BotCountPolicy.SEPARATE).activity_text == "5(0)/64"


def test_reported_bot_count_without_player_list():
    status = ServerStatus(display_name="cs", player_count=12, max_players=20, bot_count=4)
    assert count_players(status, BotCountPolicy.IGNORE) == (8, 4)
    assert format_display(status, BotCountPolicy.SUBTRACT_SLOTS).activity_text == "8/16"
    assert format_display(status, BotCountPolicy.INCLUDE).activity_text == "12/20"


@pytest.mark.parametrize("players,expected", [(5, "5 players online"), (1, "1 player online"), (0, "0 players online")])
def test_unknown_slot_count(players, expected):
    status = ServerStatus(display_name="bm", player_count=players, max_players=0)
    for policy in BotCountPolicy:
        assert format_display(status, policy).activity_text == expected
