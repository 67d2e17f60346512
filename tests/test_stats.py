"""Tests for per-sport player stat validation."""

import pytest

from live_auction.auction.stats import validate_player_stats
from live_auction.core.exceptions import ValidationError


def test_cricket_stats_keep_extras_and_drop_nones():
    stats = validate_player_stats(
        "cricket",
        {"playingRole": "All Rounder", "bowlingStyle": None, "jersey": 18},
    )

    assert stats == {"playingRole": "All Rounder", "jersey": 18}


def test_futsal_and_volleyball_required_fields():
    assert validate_player_stats("futsal", {"playingRole": "Goalkeeper"}) == {
        "playingRole": "Goalkeeper"
    }
    assert validate_player_stats("volleyball", {"preference": "Striker (Left)"}) == {
        "preference": "Striker (Left)"
    }


@pytest.mark.parametrize(
    ("sport", "stats"),
    [
        ("cricket", None),
        ("cricket", {"playingRole": "Captain"}),
        ("cricket", {"playingRole": "Bowler", "bowlingStyle": "Underarm"}),
        ("volleyball", {"playingRole": "Setter"}),
        ("futsal", {"playingRole": "Defender", "injuries": {"knee": True}}),
        ("hockey", {"playingRole": "Defender"}),
    ],
)
def test_invalid_stats(sport, stats):
    with pytest.raises(ValidationError):
        validate_player_stats(sport, stats)


def test_error_message_names_the_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_player_stats("futsal", {})

    assert "playingRole" in exc_info.value.message
    assert exc_info.value.context == {"sport": "futsal"}
