"""Increment/policy engine: minimum legal bids.

Two policies live here:

1. The increment schedule - an ordered list of {threshold, increment} rules.
   For a current price p the minimum next bid is p + increment(p), where
   increment(p) is the increment of the highest rule whose threshold is <= p.

       rules = [{0, 10}, {200, 50}, {500, 100}]
       next_min_bid(0)   == 10
       next_min_bid(199) == 209   (still on the 0-threshold rule)
       next_min_bid(200) == 250
       next_min_bid(500) == 600

2. Per-sport minimum opening bids - a plain sport -> floor mapping used to
   price a lot when no override is given and to re-price a skipped player.

Both are validated here, at the ingestion boundary, so the state machine only
ever sees well-formed schedules.
"""

from bisect import bisect_right
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from live_auction.core.exceptions import ValidationError
from live_auction.database.models import Sport

FALLBACK_MIN_BID = 50


def _as_whole_number(value: Any, field: str) -> int:
    """Accept ints and integral floats; reject booleans, strings and fractions."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"Each rule must have numeric threshold and increment ({field}={value!r})"
        )
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a whole number, got {value}")
        value = int(value)
    return value


@dataclass(frozen=True)
class IncrementRule:
    """Bids at or above threshold must rise by at least increment."""

    threshold: int
    increment: int

    def to_dict(self) -> dict[str, int]:
        return {"threshold": self.threshold, "increment": self.increment}


@dataclass(frozen=True)
class IncrementSchedule:
    """Validated increment schedule, always sorted ascending by threshold."""

    rules: tuple[IncrementRule, ...]

    @classmethod
    def from_rules(cls, raw_rules: Iterable[Mapping[str, Any]] | None) -> "IncrementSchedule":
        """Validate and normalize a raw rule list.

        Raises:
            ValidationError: empty list, non-numeric or negative values, a
                missing 0-threshold anchor, or duplicate thresholds
        """
        if raw_rules is None or isinstance(raw_rules, (str, bytes, Mapping)):
            raise ValidationError("Valid rules array is required")

        rules = []
        for raw in raw_rules:
            if not isinstance(raw, Mapping) or "threshold" not in raw or "increment" not in raw:
                raise ValidationError("Each rule must have numeric threshold and increment")
            threshold = _as_whole_number(raw["threshold"], "threshold")
            increment = _as_whole_number(raw["increment"], "increment")
            if threshold < 0:
                raise ValidationError(f"threshold must be >= 0, got {threshold}")
            if increment <= 0:
                raise ValidationError(f"increment must be > 0, got {increment}")
            rules.append(IncrementRule(threshold, increment))

        if not rules:
            raise ValidationError("Valid rules array is required")

        rules.sort(key=lambda rule: rule.threshold)
        thresholds = [rule.threshold for rule in rules]
        if thresholds[0] != 0:
            raise ValidationError("Increment schedule must contain a rule with threshold 0")
        if len(set(thresholds)) != len(thresholds):
            raise ValidationError("Increment schedule has duplicate thresholds")

        return cls(tuple(rules))

    def to_rules(self) -> list[dict[str, int]]:
        """JSON-ready list, the shape stored on the AuctionState row."""
        return [rule.to_dict() for rule in self.rules]

    def increment_for(self, price: int) -> int:
        """Increment of the highest rule whose threshold is <= price."""
        thresholds = [rule.threshold for rule in self.rules]
        index = bisect_right(thresholds, price) - 1
        # Prices below 0 cannot occur for stored lots; treat them as the base rule
        return self.rules[max(index, 0)].increment

    def next_min_bid(self, price: int) -> int:
        """Minimum legal bid that beats the current price."""
        return price + self.increment_for(price)


def validate_sport_min_bids(raw: Mapping[str, Any] | None) -> dict[str, int]:
    """Normalize a sport -> minimum bid mapping.

    Keys are lower-cased and must name a known sport; values must be positive
    whole numbers.
    """
    if not isinstance(raw, Mapping):
        raise ValidationError("Valid sportMinBids object is required")

    known = {sport.value for sport in Sport}
    result: dict[str, int] = {}
    for key, value in raw.items():
        sport = str(key).lower()
        if sport not in known:
            raise ValidationError(f"Unknown sport '{key}'", sport=key)
        amount = _as_whole_number(value, sport)
        if amount <= 0:
            raise ValidationError(f"Minimum bid for {sport} must be positive", sport=sport)
        result[sport] = amount
    return result


def min_bid_for(sport_min_bids: Mapping[str, int] | None, sport: str | Sport) -> int:
    """Minimum opening bid for a sport, falling back to FALLBACK_MIN_BID."""
    key = sport.value if isinstance(sport, Sport) else str(sport).lower()
    value = (sport_min_bids or {}).get(key)
    return int(value) if value else FALLBACK_MIN_BID
