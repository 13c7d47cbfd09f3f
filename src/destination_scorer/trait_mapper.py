"""Trait mapper - personality code to trait vector.

Every trait starts at a neutral 0.5 and each letter of the code nudges a
few traits by a fixed delta. The mapping is an explainable heuristic, not
a validated psychometric model.
"""

from .exceptions import InvalidCodeKind
from .schema import PERSONALITY_CODES, TRAIT_KEYS, TraitVector

NEUTRAL_TRAIT = 0.5

# (letter position, letter) -> trait deltas
LETTER_DELTAS: dict[tuple[int, str], dict[str, float]] = {
    # Extraversion / introversion
    (0, "E"): {"social": 0.25},
    (0, "I"): {"social": -0.15},
    # Intuition / sensing
    (1, "N"): {"novelty": 0.25, "culture": 0.10},
    (1, "S"): {"sensory": 0.20, "structure": 0.05},
    # Feeling / thinking
    (2, "F"): {"culture": 0.20, "social": 0.05},
    (2, "T"): {"structure": 0.10},
    # Judging / perceiving
    (3, "J"): {"structure": 0.25, "flexibility": -0.10},
    (3, "P"): {"flexibility": 0.25},
}


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def map_to_traits(code: str) -> TraitVector:
    """Map a four-letter personality code to the six trait scores.

    Args:
        code: One of the 16 codes, upper case (e.g. "INTP").

    Returns:
        Dict with every trait key, each value in [0, 1].

    Raises:
        InvalidCodeKind: If the code is not a known personality code.
    """
    if not isinstance(code, str) or code not in PERSONALITY_CODES:
        raise InvalidCodeKind(code)

    traits = {key: NEUTRAL_TRAIT for key in TRAIT_KEYS}
    for position, letter in enumerate(code):
        for trait, delta in LETTER_DELTAS[(position, letter)].items():
            traits[trait] += delta

    return {key: clamp01(value) for key, value in traits.items()}
