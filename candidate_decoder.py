"""
Candidate Decoder

Interprets the piece descriptions of a precomputed gear combination:

    "Head - Bone"               -> fixed head slot
    "Chest - Leather"           -> fixed chest slot
    "Legs - Studded"            -> fixed legs slot
    "(interchangeable) - Plate" -> interchangeable group (count units)

Unrecognised descriptions are ignored.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from models import (
    Candidate, DecodedCandidate, FixedSlots, InterchangeableGroup,
)


class PieceTag(Enum):
    """What kind of gear position a piece description refers to."""
    HEAD = 'Head - '
    CHEST = 'Chest - '
    LEGS = 'Legs - '
    INTERCHANGEABLE = '(interchangeable) - '

    @property
    def prefix(self) -> str:
        return self.value


def head_description(armor_type: str) -> str:
    """Description a candidate uses for a head piece of this armor type."""
    return f"{PieceTag.HEAD.prefix}{armor_type}"


def classify_piece(description: str) -> Optional[Tuple[PieceTag, str]]:
    """
    Classify a piece description.

    Args:
        description: Piece description from a dataset file

    Returns:
        (tag, armor_type), or None if no known prefix matches
    """
    if not description:
        return None
    for tag in PieceTag:
        if description.startswith(tag.prefix):
            return tag, description[len(tag.prefix):]
    return None


def decode_candidate(candidate: Optional[Candidate]) -> Optional[DecodedCandidate]:
    """
    Decode a candidate into fixed slots and interchangeable groups.

    If several pieces claim the same fixed slot the last one wins.
    Interchangeable pieces are kept in encounter order and never merged,
    even when two entries share an armor type.

    Args:
        candidate: Raw candidate, may be None

    Returns:
        DecodedCandidate, or None for a missing or empty candidate
    """
    if candidate is None or not candidate.pieces:
        return None

    fixed: Dict[str, Optional[str]] = {'head': None, 'chest': None, 'legs': None}
    interchangeable: List[InterchangeableGroup] = []

    for piece in candidate.pieces:
        classified = classify_piece(piece.description)
        if classified is None:
            continue

        tag, armor_type = classified
        if tag is PieceTag.INTERCHANGEABLE:
            interchangeable.append(InterchangeableGroup(armor_type=armor_type, count=piece.count))
        else:
            fixed[tag.name.lower()] = armor_type

    return DecodedCandidate(
        fixed=FixedSlots(**fixed),
        interchangeable=tuple(interchangeable),
        total_protection=candidate.total_protection,
        encumbrance=candidate.encumbrance,
    )
