"""
Gear Selector

Picks the best precomputed gear combination for an encumbrance target.

No search happens here: dataset files already hold the optimal combination
for every encumbrance step, so selection is a single linear scan.

Feather:
  - Feather lowers the real encumbrance of a set by a fixed amount, so
    instead of touching every candidate the target is raised by that amount.
  - It only applies to sets wearing the chosen head armor, so when a head
    armor type is given the pool is restricted to those sets first.
"""

from typing import List, Optional, Sequence

from models import Candidate, EncumbranceRange, ENCUMBRANCE_CEILING
from candidate_decoder import head_description


def adjusted_target(target: float, modifier_value: float = 0.0) -> float:
    """Raise the target by the Feather value (unchanged when Feather is off)."""
    return target + modifier_value if modifier_value > 0 else target


def filter_by_head_armor(candidates: Sequence[Candidate],
                         head_armor: Optional[str]) -> List[Candidate]:
    """
    Keep only candidates wearing the given head armor type.

    Args:
        candidates: Candidate list from a dataset
        head_armor: Required head armor type, None for no filtering

    Returns:
        Filtered list (a copy of the input when head_armor is None)
    """
    if not head_armor:
        return list(candidates)
    pattern = head_description(head_armor)
    return [c for c in candidates if c.has_piece(pattern)]


def select_optimal(candidates: Optional[Sequence[Candidate]],
                   target: float,
                   modifier_value: float = 0.0,
                   required_head_armor: Optional[str] = None) -> Optional[Candidate]:
    """
    Find the highest-protection candidate within an encumbrance target.

    Args:
        candidates: Candidate list from a dataset
        target: Target encumbrance (upper bound)
        modifier_value: Feather value, 0 when Feather is not used
        required_head_armor: Head armor worn with Feather (ignored without Feather)

    Returns:
        Best candidate, or None when nothing fits. Ties keep the first
        candidate encountered.
    """
    if not candidates:
        return None

    max_encumbrance = adjusted_target(target, modifier_value)

    pool: Sequence[Candidate] = candidates
    if modifier_value > 0 and required_head_armor:
        pool = filter_by_head_armor(candidates, required_head_armor)
        if not pool:
            return None

    best_match = None
    best_protection = None

    for candidate in pool:
        if candidate.encumbrance > max_encumbrance:
            continue
        if best_protection is None or candidate.total_protection > best_protection:
            best_protection = candidate.total_protection
            best_match = candidate

    return best_match


def available_encumbrances(candidates: Optional[Sequence[Candidate]],
                           required_head_armor: Optional[str] = None) -> List[float]:
    """Get the sorted, distinct encumbrance values present in a dataset."""
    if not candidates:
        return []
    pool = filter_by_head_armor(candidates, required_head_armor)
    return sorted({c.encumbrance for c in pool})


def encumbrance_range(candidates: Optional[Sequence[Candidate]],
                      required_head_armor: Optional[str] = None) -> EncumbranceRange:
    """
    Get the valid encumbrance target range for a dataset.

    The maximum never exceeds ENCUMBRANCE_CEILING. Feather does not change
    which raw encumbrances exist; callers shift the range for display.
    """
    values = available_encumbrances(candidates, required_head_armor)
    if not values:
        return EncumbranceRange(min=0.0, max=ENCUMBRANCE_CEILING)
    return EncumbranceRange(min=values[0], max=min(ENCUMBRANCE_CEILING, values[-1]))
