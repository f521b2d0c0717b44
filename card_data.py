"""
Card field values and the option sets offered by the form.
"""

import re
from dataclasses import asdict, dataclass, fields
from typing import Optional

ENERGY_TYPES = ["colorless", "fire", "water", "grass", "lightning", "psychic", "fighting"]

# Weakness / resistance choices (colorless is never offered)
MATCHUP_TYPES = [t for t in ENERGY_TYPES if t != "colorless"]
NONE = "none"

HP_VALUES = [str(hp) for hp in range(30, 121, 10)]
DAMAGE_VALUES = [str(dmg) for dmg in range(10, 81, 10)]
RETREAT_COSTS = ["0", "1", "2", "3"]

NAME_MAX_LENGTH = 12
DESC_TYPE_MAX_LENGTH = 10
MOVE_NAME_MAX_LENGTH = 12
FLAVOR_TEXT_MAX_LENGTH = 120

LENGTH_SLIDER_RANGE = (1, 360)  # inches
WEIGHT_SLIDER_RANGE = (1, 592)

DEFAULT_FILENAME = "pokemon-card"


@dataclass
class CardData:
    """All non-photo card fields, as plain strings from the form."""

    name: str = "MissingNo."
    type: str = "colorless"
    desc_type: str = ""
    flavor_text: str = ""
    hp: str = "30"
    move1_name: str = ""
    move1_dmg: str = ""
    move2_name: str = ""
    move2_dmg: str = ""
    weakness: str = NONE
    resistance: str = NONE
    retreat_cost: str = ""
    length: str = "0'1\""
    weight: str = "0.1"

    @property
    def description_line(self) -> str:
        return f"{self.desc_type} Pokemon. Length: {self.length}, Weight: {self.weight} lbs."

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: dict) -> "CardData":
        """Build from a mapping, ignoring unknown keys and stringifying values."""
        known = {f.name for f in fields(cls)}
        values = {k: "" if v is None else str(v) for k, v in (data or {}).items() if k in known}
        return cls(**values)


def is_none_value(value: Optional[str]) -> bool:
    """True for the sentinel values that mean "leave this element off the card"."""
    return value is None or value.strip() == "" or value.strip().lower() == NONE


def retreat_icon_count(retreat_cost: Optional[str]) -> int:
    """Number of retreat icons to draw: 0-3, anything else draws none."""
    if is_none_value(retreat_cost):
        return 0
    try:
        cost = int(retreat_cost)
    except ValueError:
        return 0
    return cost if 0 <= cost <= 3 else 0


def format_length(inches: int) -> str:
    """Length slider value in inches -> ``4'`` or ``4'7"``."""
    feet, rest = divmod(int(inches), 12)
    if rest == 0:
        return f"{feet}'"
    return f"{feet}'{rest}\""


def format_weight(value: int) -> str:
    """Weight slider value -> lbs string.

    The first 100 steps cover 0.1-10.0 lbs in tenths, the rest count whole
    pounds from 9 upward.
    """
    value = int(value)
    if value <= 100:
        return f"{value / 10:.1f}"
    return str(value - 92)


def card_filename(name: str) -> str:
    """Download filename derived from the card name."""
    name = (name or "").strip()
    safe = re.sub(r'[\\/:*?"<>|]+', "_", name).strip()
    return f"{safe or DEFAULT_FILENAME}.png"
