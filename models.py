"""
Data models for the Darkfall Gear Optimizer

Defines the core data structures for armor reference rows, precomputed
gear candidates, aggregated stats and shareable URL state.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Dict, Tuple, Any


# =============================================================================
# DAMAGE TYPES & SLOTS
# =============================================================================

# All 13 damage types, in armor CSV column order
DAMAGE_TYPES: Tuple[str, ...] = (
    'Bludgeoning', 'Piercing', 'Slashing',
    'Acid', 'Cold', 'Fire', 'Holy', 'Lightning', 'Unholy',
    'Impact', 'FiendClaw', 'Ratka', 'DragonScales',
)


class FixedSlot(Enum):
    """Gear positions with exactly one occupant per candidate."""
    HEAD = 'Head'
    CHEST = 'Chest'
    LEGS = 'Legs'


# Order fixed slots are reported in
FIXED_SLOT_ORDER: Tuple[FixedSlot, ...] = (FixedSlot.HEAD, FixedSlot.CHEST, FixedSlot.LEGS)

# Reference-table slots searched (in order) for an interchangeable group.
# Every one of these slots shares the same per-unit stats for a given armor type.
INTERCHANGEABLE_SLOT_PRIORITY: Tuple[str, ...] = (
    'Arms', 'Boots', 'Elbows', 'Gauntlets', 'Girdle', 'Greaves', 'Shoulders',
)

# Upper bound for any selectable encumbrance target
ENCUMBRANCE_CEILING = 200.0

# Feather modifier bounds
MODIFIER_MIN = 0.1
MODIFIER_MAX = 30.0


def empty_damage_stats() -> Dict[str, float]:
    """Get a stat dict with every damage type set to zero."""
    return {dt: 0.0 for dt in DAMAGE_TYPES}


# =============================================================================
# REFERENCE TABLE
# =============================================================================

@dataclass(frozen=True)
class ReferenceRow:
    """
    Per-slot armor stats from the reference CSV.

    One row per (armor_type, slot). All numeric fields are >= 0.
    """
    armor_type: str
    slot: str
    encumbrance: float = 0.0
    stats: Dict[str, float] = field(default_factory=empty_damage_stats)


# armor_type -> slot -> ReferenceRow
ArmorTable = Dict[str, Dict[str, ReferenceRow]]


# =============================================================================
# CANDIDATES
# =============================================================================

@dataclass(frozen=True)
class GearPiece:
    """One entry of a precomputed gear combination."""
    description: str
    count: int = 1


@dataclass(frozen=True)
class Candidate:
    """
    A precomputed gear combination from a dataset file.

    Only the coarse aggregate score is stored; exact per-damage-type
    numbers come from the reference table (see real_stats.py).
    """
    total_protection: float
    encumbrance: float
    pieces: Tuple[GearPiece, ...] = ()
    rank: int = 0

    def has_piece(self, description: str) -> bool:
        """Check whether any piece has exactly this description."""
        return any(piece.description == description for piece in self.pieces)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rank': self.rank,
            'totalProtection': self.total_protection,
            'encumbrance': self.encumbrance,
            'pieces': [{'description': p.description, 'count': p.count} for p in self.pieces],
        }


@dataclass(frozen=True)
class FixedSlots:
    """Armor type worn in each fixed slot (None when the slot is not listed)."""
    head: Optional[str] = None
    chest: Optional[str] = None
    legs: Optional[str] = None

    def get(self, slot: FixedSlot) -> Optional[str]:
        return getattr(self, slot.name.lower())


@dataclass(frozen=True)
class InterchangeableGroup:
    """Repeated units of one armor type filling equivalent slots."""
    armor_type: str
    count: int


@dataclass(frozen=True)
class DecodedCandidate:
    """Structured view of a Candidate's pieces."""
    fixed: FixedSlots
    interchangeable: Tuple[InterchangeableGroup, ...]
    total_protection: float
    encumbrance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fixed': {
                'head': self.fixed.head,
                'chest': self.fixed.chest,
                'legs': self.fixed.legs,
            },
            'interchangeable': [
                {'armorType': g.armor_type, 'count': g.count} for g in self.interchangeable
            ],
            'totalProtection': self.total_protection,
            'encumbrance': self.encumbrance,
        }


@dataclass(frozen=True)
class CandidateDataset:
    """Contents of one dataset file for a (protection profile, access tier) pair."""
    metadata: Dict[str, Any] = field(default_factory=dict)
    candidates: Tuple[Candidate, ...] = ()


# =============================================================================
# REAL STATS
# =============================================================================

@dataclass(frozen=True)
class SlotStats:
    """Stats contributed by one fixed slot or interchangeable group."""
    label: str
    armor_type: str
    count: int
    encumbrance: float
    stats: Dict[str, float]


@dataclass(frozen=True)
class StatTotals:
    encumbrance: float
    stats: Dict[str, float]


@dataclass(frozen=True)
class RealStats:
    """Exact per-damage-type totals for a decoded candidate."""
    slots: Tuple[SlotStats, ...]
    totals: StatTotals

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slots': [
                {
                    'label': s.label,
                    'armorType': s.armor_type,
                    'count': s.count,
                    'encumbrance': s.encumbrance,
                    'stats': dict(s.stats),
                }
                for s in self.slots
            ],
            'totals': {
                'encumbrance': self.totals.encumbrance,
                'stats': dict(self.totals.stats),
            },
        }


@dataclass(frozen=True)
class EncumbranceRange:
    min: float
    max: float


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class ConfigOption:
    """A selectable entry from config.json (protection type or access tier)."""
    id: str
    display_name: str = ''


@dataclass(frozen=True)
class AppConfig:
    """Externally loaded configuration listing the known selection IDs."""
    protection_types: Tuple[ConfigOption, ...] = ()
    armor_access_tiers: Tuple[ConfigOption, ...] = ()
    armor_types: Tuple[str, ...] = ()

    def has_protection_type(self, profile_id: str) -> bool:
        return any(opt.id == profile_id for opt in self.protection_types)

    def has_access_tier(self, tier_id: str) -> bool:
        return any(opt.id == tier_id for opt in self.armor_access_tiers)

    def has_armor_type(self, armor_type: str) -> bool:
        return armor_type in self.armor_types

    def to_dict(self) -> Dict[str, Any]:
        return {
            'protectionTypes': [
                {'id': o.id, 'displayName': o.display_name} for o in self.protection_types
            ],
            'armorAccessTiers': [
                {'id': o.id, 'displayName': o.display_name} for o in self.armor_access_tiers
            ],
            'armorTypes': list(self.armor_types),
        }


# =============================================================================
# URL STATE
# =============================================================================

# Encumbrance display units
ENC_UNITS: Tuple[str, ...] = ('raw', 'magic', 'archery')


@dataclass(frozen=True)
class UrlState:
    """
    Shareable application state, mirrored in the address bar.

    Use the with_* methods to change it; they keep the state canonical so
    it survives a round trip through the query string.
    """
    profile: Optional[str] = None
    tier: Optional[str] = None
    enc: float = 20.0
    enc_unit: str = 'raw'
    modifier_enabled: bool = False
    modifier_value: float = MODIFIER_MIN
    required_head_armor: Optional[str] = None

    @property
    def active_modifier_value(self) -> float:
        """Feather value to feed the selection engine (0 when disabled)."""
        return self.modifier_value if self.modifier_enabled else 0.0

    @property
    def active_head_armor(self) -> Optional[str]:
        """Required head armor to feed the selection engine (None when disabled)."""
        return self.required_head_armor if self.modifier_enabled else None

    def with_selection(self, profile: Optional[str], tier: Optional[str]) -> 'UrlState':
        return replace(self, profile=profile or None, tier=tier or None)

    def with_enc(self, value: float) -> 'UrlState':
        value = float(value)
        if not math.isfinite(value):
            return self
        return replace(self, enc=max(0.0, value))

    def with_enc_unit(self, unit: str) -> 'UrlState':
        return replace(self, enc_unit=unit if unit in ENC_UNITS else 'raw')

    def with_modifier_enabled(self, enabled: bool) -> 'UrlState':
        if enabled:
            return replace(self, modifier_enabled=True)
        # Turning Feather off forgets its settings
        return replace(
            self,
            modifier_enabled=False,
            modifier_value=MODIFIER_MIN,
            required_head_armor=None,
        )

    def with_modifier_value(self, value: float) -> 'UrlState':
        if not self.modifier_enabled:
            return self
        return replace(self, modifier_value=max(MODIFIER_MIN, min(MODIFIER_MAX, float(value))))

    def with_required_head_armor(self, armor_type: Optional[str]) -> 'UrlState':
        if not self.modifier_enabled:
            return self
        return replace(self, required_head_armor=armor_type or None)


URL_DEFAULTS = UrlState()
