"""Element estimator - birth date (and time) to element distribution.

A simplified cyclical calendar heuristic, not an astronomical one:

1. Year pillar: stem (year - 4) % 10, branch (year - 4) % 12, so 1984
   maps to index 0 of both cycles.
2. Month pillar: stem (month_index + 2) % 10, branch (month_index + 1) % 12,
   with month_index 0 for January. The month stem does not depend on the
   year stem.
3. Hour branch (only for a well-formed HH:MM birth time): twelve two-hour
   buckets starting at 23:00, blended through the hidden-stem ratios so a
   single hour does not snap to a single element.

Contributions are weighted (year stem 1, year branch 1, month stem 2,
month branch 2, hour branch 1.5) and normalized to sum to 1.
"""

import logging
import re
from datetime import date
from typing import NamedTuple, Optional

from .schema import ELEMENT_KEYS, UNKNOWN_PILLAR, ElementVector, PillarLabels

logger = logging.getLogger(__name__)

STEMS = ("jia", "yi", "bing", "ding", "wu", "ji", "geng", "xin", "ren", "gui")
BRANCHES = ("zi", "chou", "yin", "mao", "chen", "si", "wu", "wei", "shen", "you", "xu", "hai")

# Year offset so that 1984 is stem 0 / branch 0
YEAR_CYCLE_OFFSET = 4

STEM_TO_ELEMENT = (
    "wood", "wood", "fire", "fire", "earth",
    "earth", "metal", "metal", "water", "water",
)

BRANCH_TO_ELEMENT = (
    "water", "earth", "wood", "wood", "earth", "fire",
    "fire", "earth", "metal", "metal", "earth", "water",
)

# Hidden-stem ratios per hour branch; each row sums to 1.0
BRANCH_HIDDEN_BLEND: dict[int, tuple[tuple[str, float], ...]] = {
    0: (("water", 1.0),),
    1: (("earth", 0.6), ("water", 0.2), ("metal", 0.2)),
    2: (("wood", 0.6), ("fire", 0.3), ("earth", 0.1)),
    3: (("wood", 1.0),),
    4: (("earth", 0.6), ("wood", 0.2), ("water", 0.2)),
    5: (("fire", 0.6), ("metal", 0.25), ("earth", 0.15)),
    6: (("fire", 0.7), ("earth", 0.3)),
    7: (("earth", 0.6), ("wood", 0.25), ("fire", 0.15)),
    8: (("metal", 0.6), ("water", 0.25), ("earth", 0.15)),
    9: (("metal", 1.0),),
    10: (("earth", 0.6), ("fire", 0.25), ("metal", 0.15)),
    11: (("water", 0.6), ("wood", 0.4)),
}

PILLAR_WEIGHTS = {
    "year_stem": 1.0,
    "year_branch": 1.0,
    "month_stem": 2.0,
    "month_branch": 2.0,
    "hour_branch": 1.5,
}

BIRTH_TIME_PATTERN = re.compile(r"(\d{2}):(\d{2})", re.ASCII)


class ElementEstimate(NamedTuple):
    """Element distribution plus the pillar labels it came from."""
    elements: ElementVector
    pillars: PillarLabels
    has_hour: bool


def neutral_elements() -> ElementVector:
    """Uniform distribution used when no birth date is known."""
    return {key: 0.2 for key in ELEMENT_KEYS}


def parse_birth_time(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse a strict HH:MM birth time.

    Returns (hour, minute), or None when the value is absent or malformed.
    """
    if not isinstance(value, str):
        return None
    match = BIRTH_TIME_PATTERN.fullmatch(value)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def is_valid_birth_time(value: Optional[str]) -> bool:
    return parse_birth_time(value) is not None


def year_pillar(year: int) -> tuple[int, int]:
    """Stem and branch indices for a year."""
    offset = year - YEAR_CYCLE_OFFSET
    return offset % 10, offset % 12


def month_pillar(month: int) -> tuple[int, int]:
    """Stem and branch indices for a calendar month (1-12)."""
    month_index = month - 1
    return (month_index + 2) % 10, (month_index + 1) % 12


def hour_branch_index(hour: int) -> int:
    """Two-hour bucket for an hour of day.

    Bucket 0 covers 23:00-00:59 and wraps around midnight; bucket i
    starts at hour 2i - 1.
    """
    return ((hour + 1) // 2) % 12


def estimate(birth_date: Optional[date], birth_time: Optional[str] = None) -> ElementEstimate:
    """Estimate the element distribution for a birth date and optional time.

    Args:
        birth_date: Birth date, or None for the neutral distribution.
        birth_time: Birth time as HH:MM. Absent or malformed values skip
            the hour pillar.

    Returns:
        ElementEstimate with a distribution summing to 1 and the pillar
        labels; has_hour tells whether the hour pillar was computed.
    """
    if birth_date is None:
        return ElementEstimate(neutral_elements(), PillarLabels(), False)

    year_stem, year_branch = year_pillar(birth_date.year)
    month_stem, month_branch = month_pillar(birth_date.month)

    totals = {key: 0.0 for key in ELEMENT_KEYS}
    totals[STEM_TO_ELEMENT[year_stem]] += PILLAR_WEIGHTS["year_stem"]
    totals[BRANCH_TO_ELEMENT[year_branch]] += PILLAR_WEIGHTS["year_branch"]
    totals[STEM_TO_ELEMENT[month_stem]] += PILLAR_WEIGHTS["month_stem"]
    totals[BRANCH_TO_ELEMENT[month_branch]] += PILLAR_WEIGHTS["month_branch"]

    parsed_time = parse_birth_time(birth_time)
    hour_branch = None
    if parsed_time is not None:
        hour_branch = hour_branch_index(parsed_time[0])
        for element, ratio in BRANCH_HIDDEN_BLEND[hour_branch]:
            totals[element] += PILLAR_WEIGHTS["hour_branch"] * ratio
    elif birth_time:
        logger.debug("Ignoring malformed birth time %r", birth_time)

    total = sum(totals.values()) or 1.0
    elements = {key: value / total for key, value in totals.items()}

    pillars = PillarLabels(
        year_stem=STEMS[year_stem],
        year_branch=BRANCHES[year_branch],
        month_stem=STEMS[month_stem],
        month_branch=BRANCHES[month_branch],
        hour_branch=BRANCHES[hour_branch] if hour_branch is not None else UNKNOWN_PILLAR,
    )
    return ElementEstimate(elements, pillars, hour_branch is not None)
