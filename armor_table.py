"""
Armor Reference Table

Parses the per-slot armor stat CSV into a two-level lookup:

    armor_type -> slot -> ReferenceRow

The CSV header names at least Type, Slot, Encumbrance and the 13 damage
type columns. Parsing never fails on bad data: malformed numeric cells
become 0, and a later row for the same (type, slot) replaces an earlier one.
"""

import csv
import io
import math
from pathlib import Path
from typing import List, Optional

from models import DAMAGE_TYPES, ArmorTable, ReferenceRow


def _parse_cell(cols: List[str], idx: Optional[int]) -> float:
    """Parse a numeric cell, falling back to 0 for missing or malformed values."""
    if idx is None or idx >= len(cols):
        return 0.0
    value_str = cols[idx].strip()
    try:
        value = float(value_str) if value_str else 0.0
    except ValueError:
        value = 0.0
    # Reference values are never negative
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def _column_index(headers: List[str], name: str) -> Optional[int]:
    try:
        return headers.index(name)
    except ValueError:
        return None


def parse_armor_table(csv_text: str) -> ArmorTable:
    """
    Parse armor CSV text into a lookup table.

    Args:
        csv_text: Raw CSV text, first line is the header

    Returns:
        Dict of armor_type -> slot -> ReferenceRow. Empty when the text
        has no data rows.
    """
    if not csv_text:
        return {}

    rows = [row for row in csv.reader(io.StringIO(csv_text.strip())) if row]
    if len(rows) < 2:
        return {}

    headers = [h.strip() for h in rows[0]]
    type_idx = _column_index(headers, 'Type')
    slot_idx = _column_index(headers, 'Slot')
    enc_idx = _column_index(headers, 'Encumbrance')
    damage_indices = {dt: _column_index(headers, dt) for dt in DAMAGE_TYPES}

    lookup: ArmorTable = {}

    for cols in rows[1:]:
        armor_type = cols[type_idx].strip() if type_idx is not None and type_idx < len(cols) else ''
        slot = cols[slot_idx].strip() if slot_idx is not None and slot_idx < len(cols) else ''

        stats = {dt: _parse_cell(cols, idx) for dt, idx in damage_indices.items()}

        # Duplicate (type, slot) rows: last one wins
        lookup.setdefault(armor_type, {})[slot] = ReferenceRow(
            armor_type=armor_type,
            slot=slot,
            encumbrance=_parse_cell(cols, enc_idx),
            stats=stats,
        )

    return lookup


def load_armor_table(csv_path) -> ArmorTable:
    """
    Load the armor reference table from a CSV file.

    Args:
        csv_path: Path to the armor CSV

    Returns:
        Parsed lookup table
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Armor table not found: {csv_path}")

    with open(path, 'r', newline='', encoding='utf-8-sig') as f:
        table = parse_armor_table(f.read())

    row_count = sum(len(slots) for slots in table.values())
    print(f"Loaded {row_count} armor rows ({len(table)} armor types) from {path.name}")
    return table


def get_row(table: ArmorTable, armor_type: str, slot: str) -> Optional[ReferenceRow]:
    """Look up a single reference row, None on a miss."""
    return table.get(armor_type, {}).get(slot)
