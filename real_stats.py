"""
Real Stats Aggregator

Dataset files only store a coarse protection score per candidate. This
module recomputes exact per-damage-type numbers for a decoded candidate
from the armor reference table.

Missing reference data is not an error: a fixed slot or interchangeable
group with no matching row simply contributes nothing.
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

from models import (
    DAMAGE_TYPES, FIXED_SLOT_ORDER, INTERCHANGEABLE_SLOT_PRIORITY,
    ArmorTable, Candidate, DecodedCandidate, RealStats, ReferenceRow, SlotStats, StatTotals,
    empty_damage_stats,
)
from armor_table import get_row
from candidate_decoder import decode_candidate


# Encumbrance thresholds of the magic and archery scales
UNIT_THRESHOLDS = {
    'magic': 20.0,
    'archery': 30.0,
}


def resolve_interchangeable_row(table: ArmorTable, armor_type: str) -> Optional[ReferenceRow]:
    """Find the representative reference row for an interchangeable group."""
    for slot in INTERCHANGEABLE_SLOT_PRIORITY:
        row = get_row(table, armor_type, slot)
        if row is not None:
            return row
    return None


def _scaled_entry(label: str, row: ReferenceRow, count: int) -> SlotStats:
    return SlotStats(
        label=label,
        armor_type=row.armor_type,
        count=count,
        encumbrance=row.encumbrance * count,
        stats={dt: row.stats.get(dt, 0.0) * count for dt in DAMAGE_TYPES},
    )


def aggregate_real_stats(decoded: Optional[DecodedCandidate],
                         table: Optional[ArmorTable]) -> Optional[RealStats]:
    """
    Calculate real armor stats for a decoded candidate.

    Args:
        decoded: Output of decode_candidate()
        table: Output of parse_armor_table()

    Returns:
        RealStats with one entry per fixed slot (head/chest/legs order)
        followed by one per interchangeable group (encounter order), or
        None if either argument is missing.
    """
    if decoded is None or table is None:
        return None

    slots: List[SlotStats] = []

    for slot in FIXED_SLOT_ORDER:
        armor_type = decoded.fixed.get(slot)
        if not armor_type:
            continue
        row = get_row(table, armor_type, slot.value)
        if row is None:
            continue
        slots.append(_scaled_entry(slot.value, row, 1))

    for group in decoded.interchangeable:
        row = resolve_interchangeable_row(table, group.armor_type)
        if row is None:
            continue
        slots.append(_scaled_entry(f"{group.armor_type} x{group.count}", row, group.count))

    total_stats = empty_damage_stats()
    total_encumbrance = 0.0
    for entry in slots:
        total_encumbrance += entry.encumbrance
        for dt in DAMAGE_TYPES:
            total_stats[dt] += entry.stats[dt]

    return RealStats(
        slots=tuple(slots),
        totals=StatTotals(encumbrance=total_encumbrance, stats=total_stats),
    )


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def effective_encumbrance(real_stats: RealStats, modifier_value: float = 0.0) -> float:
    """Total encumbrance after Feather, never below zero."""
    active = modifier_value if modifier_value > 0 else 0.0
    return max(0.0, real_stats.totals.encumbrance - active)


def unit_encumbrances(effective: float) -> Dict[str, float]:
    """Encumbrance as counted on the magic and archery scales."""
    return {unit: max(0.0, effective - threshold) for unit, threshold in UNIT_THRESHOLDS.items()}


def elemental_value(stats: Dict[str, float]) -> float:
    """Combined Fire/Acid/Cold column value (armor protects these equally)."""
    return stats.get('Fire') or stats.get('Acid') or stats.get('Cold') or 0.0


def real_stats_to_dict(real_stats: RealStats) -> Dict[str, Any]:
    """Serialize real stats with the computed Fire/Acid/Cold value on every row."""
    data = real_stats.to_dict()
    for entry, slot in zip(data['slots'], real_stats.slots):
        entry['elemental'] = elemental_value(slot.stats)
    data['totals']['elemental'] = elemental_value(real_stats.totals.stats)
    return data


# =============================================================================
# MEMOIZATION
# =============================================================================

class RealStatsCache:
    """
    Small memo of aggregate_real_stats() results keyed by input identity.

    Inputs are never mutated, so the same (decoded, table) objects always
    produce the same result. for_candidate() also keeps the decoded form of
    each candidate, so repeated lookups of a cached dataset's candidates
    hit the memo.
    """

    def __init__(self, max_entries: int = 64):
        self.max_entries = max_entries
        self._entries: "OrderedDict[Tuple[int, int], Tuple[DecodedCandidate, ArmorTable, Optional[RealStats]]]" = OrderedDict()
        self._decoded: "OrderedDict[int, Tuple[Candidate, Optional[DecodedCandidate]]]" = OrderedDict()

    def get(self, decoded: Optional[DecodedCandidate],
            table: Optional[ArmorTable]) -> Optional[RealStats]:
        if decoded is None or table is None:
            return None

        key = (id(decoded), id(table))
        cached = self._entries.get(key)
        # Entries hold references to their inputs, so ids stay unique while cached
        if cached is not None and cached[0] is decoded and cached[1] is table:
            self._entries.move_to_end(key)
            return cached[2]

        result = aggregate_real_stats(decoded, table)
        self._entries[key] = (decoded, table, result)
        if len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return result

    def decode(self, candidate: Candidate) -> Optional[DecodedCandidate]:
        """Decode a candidate, reusing the earlier result for the same object."""
        key = id(candidate)
        cached = self._decoded.get(key)
        if cached is not None and cached[0] is candidate:
            self._decoded.move_to_end(key)
            return cached[1]

        decoded = decode_candidate(candidate)
        self._decoded[key] = (candidate, decoded)
        if len(self._decoded) > self.max_entries:
            self._decoded.popitem(last=False)
        return decoded

    def for_candidate(self, candidate: Candidate,
                      table: Optional[ArmorTable]) -> Tuple[Optional[DecodedCandidate], Optional[RealStats]]:
        """
        Get the decoded form and real stats of a selected candidate.

        Returns:
            (decoded, real_stats) - either may be None
        """
        decoded = self.decode(candidate)
        return decoded, self.get(decoded, table)

    def clear(self):
        self._entries.clear()
        self._decoded.clear()

    def __len__(self) -> int:
        return len(self._entries)
