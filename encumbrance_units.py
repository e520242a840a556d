"""
Encumbrance display units.

Targets are always stored in raw encumbrance. The magic and archery
scales show the same value shifted down by a fixed offset, and neither
scale is meaningful below its offset (nor is raw below 20).
"""

from typing import List, Tuple

from models import EncumbranceRange, ENC_UNITS

ENC_UNIT_OFFSETS = {
    'raw': 0.0,
    'magic': 20.0,
    'archery': 30.0,
}

# Quick-pick targets, in raw encumbrance
ENC_UNIT_PRESETS = {
    'raw': (20, 40, 60),
    'magic': (20, 30, 40),
    'archery': (30, 50, 70),
}

MIN_RAW_TARGET = 20.0


def unit_offset(unit: str) -> float:
    return ENC_UNIT_OFFSETS.get(unit, 0.0)


def to_display(raw_value: float, unit: str) -> float:
    """Convert raw encumbrance to a display unit."""
    return raw_value - unit_offset(unit)


def to_raw(display_value: float, unit: str) -> float:
    """Convert a display-unit value back to raw encumbrance."""
    return display_value + unit_offset(unit)


def effective_range(enc_range: EncumbranceRange, unit: str) -> EncumbranceRange:
    """Raw range the user may pick from when working in a given unit."""
    floor = max(enc_range.min, max(MIN_RAW_TARGET, unit_offset(unit)))
    return EncumbranceRange(min=floor, max=enc_range.max)


def display_range(enc_range: EncumbranceRange, unit: str) -> EncumbranceRange:
    """Effective range expressed in the display unit."""
    raw = effective_range(enc_range, unit)
    return EncumbranceRange(min=to_display(raw.min, unit), max=to_display(raw.max, unit))


def clamp_target(raw_value: float, enc_range: EncumbranceRange, unit: str) -> float:
    """Clamp a raw target into the effective range for a unit."""
    raw = effective_range(enc_range, unit)
    return max(raw.min, min(raw.max, raw_value))


def preset_options(enc_range: EncumbranceRange, unit: str) -> List[Tuple[float, str, bool]]:
    """
    Get the quick-pick targets for a unit.

    Returns:
        List of (raw_value, display_label, available) tuples
    """
    if unit not in ENC_UNITS:
        unit = 'raw'
    raw = effective_range(enc_range, unit)
    options = []
    for preset in ENC_UNIT_PRESETS[unit]:
        label = f"{to_display(preset, unit):g}"
        options.append((float(preset), label, raw.min <= preset <= raw.max))
    return options
