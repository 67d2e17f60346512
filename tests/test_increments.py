"""Tests for the increment schedule and per-sport minimum bids.

The schedule decides the minimum legal next bid:
    next_min_bid(p) = p + increment of the highest rule with threshold <= p

Usage:
    pytest tests/test_increments.py -v
"""

import pytest

from live_auction.auction.increments import (
    FALLBACK_MIN_BID,
    IncrementSchedule,
    min_bid_for,
    validate_sport_min_bids,
)
from live_auction.core.exceptions import ValidationError
from live_auction.database.models import Sport

DEFAULT_RULES = [
    {"threshold": 0, "increment": 10},
    {"threshold": 200, "increment": 50},
    {"threshold": 500, "increment": 100},
]


@pytest.fixture
def schedule():
    return IncrementSchedule.from_rules(DEFAULT_RULES)


@pytest.mark.parametrize(
    ("price", "expected"),
    [(0, 10), (60, 70), (199, 209), (200, 250), (499, 549), (500, 600), (1500, 1600)],
)
def test_next_min_bid(schedule, price, expected):
    """The increment of the highest matching threshold applies."""
    assert schedule.next_min_bid(price) == expected


def test_rules_are_sorted_regardless_of_input_order():
    schedule = IncrementSchedule.from_rules(list(reversed(DEFAULT_RULES)))

    assert schedule.to_rules() == DEFAULT_RULES
    assert schedule.next_min_bid(250) == 300


def test_integral_floats_are_accepted():
    schedule = IncrementSchedule.from_rules([{"threshold": 0.0, "increment": 25.0}])

    assert schedule.to_rules() == [{"threshold": 0, "increment": 25}]


@pytest.mark.parametrize(
    "rules",
    [
        None,
        [],
        "0:10",
        {"threshold": 0, "increment": 10},
        [{"threshold": 0}],
        [{"threshold": "0", "increment": 10}],
        [{"threshold": 0, "increment": True}],
        [{"threshold": 0, "increment": 0}],
        [{"threshold": 0, "increment": -5}],
        [{"threshold": -1, "increment": 10}, {"threshold": 0, "increment": 10}],
        [{"threshold": 100, "increment": 10}],
        [{"threshold": 0, "increment": 10}, {"threshold": 0, "increment": 20}],
        [{"threshold": 0, "increment": 10.5}],
    ],
)
def test_invalid_schedules_are_rejected(rules):
    """Malformed schedules never reach the state machine."""
    with pytest.raises(ValidationError):
        IncrementSchedule.from_rules(rules)


def test_validate_sport_min_bids_normalizes_keys():
    result = validate_sport_min_bids({"Cricket": 75, "futsal": 40.0})

    assert result == {"cricket": 75, "futsal": 40}


@pytest.mark.parametrize(
    "raw",
    [None, [], {"chess": 50}, {"cricket": 0}, {"cricket": -10}, {"cricket": "50"}],
)
def test_validate_sport_min_bids_rejects_bad_input(raw):
    with pytest.raises(ValidationError):
        validate_sport_min_bids(raw)


def test_min_bid_for_falls_back_when_sport_missing():
    assert min_bid_for({"cricket": 80}, Sport.CRICKET) == 80
    assert min_bid_for({"cricket": 80}, "volleyball") == FALLBACK_MIN_BID
    assert min_bid_for(None, Sport.FUTSAL) == FALLBACK_MIN_BID
