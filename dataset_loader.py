"""
Dataset Loader

Loads the external data the optimizer works on:

    config.json                     known protection profiles, tiers, armor types
    armor.csv                       armor reference table
    results-<profile>-<tier>.json   precomputed candidates for one selection

Everything is read once into immutable objects and bundled in an
OptimizerContext that the API passes to the core functions.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from models import (
    AppConfig, ArmorTable, Candidate, CandidateDataset, ConfigOption, GearPiece,
)
from armor_table import load_armor_table


CONFIG_FILENAME = 'config.json'
ARMOR_TABLE_FILENAME = 'armor.csv'
DATA_DIR_ENV = 'GEAR_OPTIMIZER_DATA_DIR'
DEFAULT_DATA_DIR = Path('data')


# =============================================================================
# CONFIG
# =============================================================================

def _parse_options(raw_options: Optional[Iterable[Any]]) -> tuple:
    options = []
    for raw in raw_options or []:
        if isinstance(raw, dict):
            option_id = raw.get('id')
            if not option_id:
                continue
            options.append(ConfigOption(id=str(option_id),
                                        display_name=str(raw.get('displayName', option_id))))
        elif raw:
            options.append(ConfigOption(id=str(raw), display_name=str(raw)))
    return tuple(options)


def parse_config(data: Dict[str, Any]) -> AppConfig:
    """Build an AppConfig from the parsed config.json document."""
    return AppConfig(
        protection_types=_parse_options(data.get('protectionTypes')),
        armor_access_tiers=_parse_options(data.get('armorAccessTiers')),
        armor_types=tuple(str(t) for t in data.get('armorTypes', []) or [] if t),
    )


def load_config(config_path) -> AppConfig:
    """
    Load the application configuration.

    Args:
        config_path: Path to config.json

    Returns:
        AppConfig
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {config_path}")

    config = parse_config(data)
    print(f"Loaded config: {len(config.protection_types)} protection types, "
          f"{len(config.armor_access_tiers)} access tiers, {len(config.armor_types)} armor types")
    return config


# =============================================================================
# CANDIDATE DATASETS
# =============================================================================

def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_pieces(record: Dict[str, Any]) -> tuple:
    # Older generators write pieces as an ordered {"piece1": {...}, ...} object
    raw_pieces = record.get('pieces')
    if raw_pieces is None:
        raw_pieces = record.get('gear', [])
    if isinstance(raw_pieces, dict):
        raw_pieces = list(raw_pieces.values())

    pieces: List[GearPiece] = []
    for raw in raw_pieces or []:
        if not isinstance(raw, dict):
            continue
        pieces.append(GearPiece(
            description=str(raw.get('description', '')),
            count=_to_int(raw.get('count'), default=1),
        ))
    return tuple(pieces)


def parse_candidate(record: Dict[str, Any]) -> Candidate:
    """Build a Candidate from one dataset record."""
    return Candidate(
        total_protection=_to_float(record.get('totalProtection')),
        encumbrance=_to_float(record.get('encumbrance')),
        pieces=_parse_pieces(record),
        rank=_to_int(record.get('rank')),
    )


def parse_dataset(data: Dict[str, Any]) -> CandidateDataset:
    """Build a CandidateDataset from a parsed dataset document."""
    records = data.get('candidates')
    if records is None:
        records = data.get('results', [])

    candidates = tuple(parse_candidate(r) for r in records or [] if isinstance(r, dict))
    metadata = data.get('metadata') or {}
    return CandidateDataset(metadata=dict(metadata), candidates=candidates)


def dataset_path(data_dir, profile: str, tier: str) -> Path:
    """Path of the dataset file for a (profile, tier) selection."""
    return Path(data_dir) / f"results-{profile}-{tier}.json"


def load_dataset(path) -> CandidateDataset:
    """
    Load one candidate dataset file.

    Args:
        path: Path to a results JSON file

    Returns:
        CandidateDataset
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Dataset file must contain a JSON object: {path}")

    return parse_dataset(data)


# =============================================================================
# CONTEXT
# =============================================================================

@dataclass(frozen=True)
class OptimizerContext:
    """
    Everything loaded at startup, shared read-only by every request.
    """
    data_dir: Path
    config: AppConfig = field(default_factory=AppConfig)
    armor_table: ArmorTable = field(default_factory=dict)

    def dataset_path(self, profile: str, tier: str) -> Path:
        return dataset_path(self.data_dir, profile, tier)

    def load_dataset(self, profile: str, tier: str) -> CandidateDataset:
        return load_dataset(self.dataset_path(profile, tier))


def resolve_data_dir(data_dir=None) -> Path:
    """Pick the data directory: explicit argument, then environment, then ./data."""
    if data_dir:
        return Path(data_dir)
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return DEFAULT_DATA_DIR


def load_context(data_dir=None) -> OptimizerContext:
    """
    Load config.json and armor.csv from the data directory.

    Args:
        data_dir: Data directory (see resolve_data_dir)

    Returns:
        OptimizerContext
    """
    base = resolve_data_dir(data_dir)
    print(f"Loading optimizer data from: {base}")

    config = load_config(base / CONFIG_FILENAME)
    armor_table = load_armor_table(base / ARMOR_TABLE_FILENAME)

    return OptimizerContext(data_dir=base, config=config, armor_table=armor_table)
