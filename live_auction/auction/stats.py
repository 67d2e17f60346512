"""Per-sport player stat schemas.

Player stats are an open key-value payload, but each sport has a few fields the
auction screens rely on (a cricketer's playing role, a volleyball player's
court preference). Those are validated here when a player is registered;
anything else the registration form sends is kept as long as it is a scalar.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic import ValidationError as PydanticValidationError

from live_auction.core.exceptions import ValidationError
from live_auction.database.models import Sport

Scalar = str | int | float | bool | None


class _SportStats(BaseModel):
    """Known fields plus arbitrary scalar extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="after")
    def _extras_are_scalar(self):
        for key, value in (self.model_extra or {}).items():
            if not isinstance(value, (str, int, float, bool)) and value is not None:
                raise ValueError(f"stat '{key}' must be a scalar value")
        return self


class CricketStats(_SportStats):
    playingRole: Literal["Batsman", "Wicketkeeper Batsman", "Bowler", "All Rounder"]
    battingStyle: Literal["Right Handed", "Left Handed"] | None = None
    bowlingStyle: (
        Literal[
            "None",
            "Right Arm Pace",
            "Right Arm Spin",
            "Left Arm Pace",
            "Left Arm Spin",
            "Slow Left Arm Orthodox",
        ]
        | None
    ) = None


class FutsalStats(_SportStats):
    playingRole: Literal["Goalkeeper", "Defender", "Mid-fielder", "Attacker"]


class VolleyballStats(_SportStats):
    preference: Literal[
        "Setter",
        "Center",
        "Striker (Right)",
        "Striker (Left)",
        "Defence (Right)",
        "Defence (Left)",
    ]


STATS_SCHEMAS: dict[Sport, type[_SportStats]] = {
    Sport.CRICKET: CricketStats,
    Sport.FUTSAL: FutsalStats,
    Sport.VOLLEYBALL: VolleyballStats,
}


def validate_player_stats(sport: Sport | str, stats: dict[str, Any] | None) -> dict[str, Scalar]:
    """Validate a stats payload against its sport schema.

    Returns the normalized dict (known fields plus extras, None values dropped).

    Raises:
        ValidationError: unknown sport or a payload that does not match
    """
    try:
        sport = Sport(sport)
    except ValueError as e:
        raise ValidationError(f"Unknown sport '{sport}'") from e

    try:
        parsed = STATS_SCHEMAS[sport].model_validate(stats or {})
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'stats'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {sport.value} stats: {problems}", sport=sport.value) from e

    return parsed.model_dump(exclude_none=True)
