#!/usr/bin/env python3
"""
Darkfall Gear Optimizer - FastAPI Backend

Provides REST API endpoints over the gear selection core. Every endpoint
reads the same query parameters the shareable URL carries (see
url_state.py), so a front end can forward its address bar as-is.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import uvicorn

# =============================================================================
# PATH SETUP
# =============================================================================

SCRIPT_DIR = Path(__file__).parent

sys.path.insert(0, str(SCRIPT_DIR))

# =============================================================================
# IMPORTS FROM OPTIMIZER
# =============================================================================

from models import CandidateDataset, EncumbranceRange, UrlState
from dataset_loader import OptimizerContext, load_context
from gear_selector import (
    select_optimal, adjusted_target, available_encumbrances, encumbrance_range,
)
from real_stats import (
    RealStatsCache, effective_encumbrance, unit_encumbrances, real_stats_to_dict,
)
from encumbrance_units import clamp_target, display_range, effective_range, preset_options
from url_state import decode_url_state, encode_url_state, validate_url_state, build_url


# =============================================================================
# FastAPI App Setup
# =============================================================================

# Path the shareable URL points at (the front end's page)
SHARE_BASE_PATH = "/"

app = FastAPI(
    title="Darkfall Gear Optimizer",
    description="Find the highest-protection gear set within an encumbrance target",
    version="1.0.0"
)

# CORS middleware for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Global State
# =============================================================================

class AppState:
    """Global application state."""
    def __init__(self):
        self.context: Optional[OptimizerContext] = None
        self.data_dir: Optional[str] = None
        self.load_error: str = ""
        self.datasets: Dict[Tuple[str, str], CandidateDataset] = {}
        self.real_stats = RealStatsCache()

    def reset(self, context: Optional[OptimizerContext] = None):
        """Replace the loaded context and drop everything derived from it."""
        self.context = context
        self.load_error = ""
        self.datasets.clear()
        self.real_stats.clear()

state = AppState()

# =============================================================================
# Pydantic Models for API
# =============================================================================

class StatusResponse(BaseModel):
    status: str
    data_dir: str
    config_loaded: bool
    protection_type_count: int
    access_tier_count: int
    armor_type_count: int
    armor_table_types: int
    error: Optional[str] = None

class ConfigOptionInfo(BaseModel):
    id: str
    displayName: str

class ConfigResponse(BaseModel):
    protectionTypes: List[ConfigOptionInfo]
    armorAccessTiers: List[ConfigOptionInfo]
    armorTypes: List[str]

class RangeInfo(BaseModel):
    min: float
    max: float

class PresetInfo(BaseModel):
    rawValue: float
    label: str
    available: bool

class RangeResponse(BaseModel):
    query: str
    range: RangeInfo
    displayRange: RangeInfo
    availableEncumbrances: List[float]
    presets: List[PresetInfo]

class OptimizeResponse(BaseModel):
    found: bool
    query: str
    url: str
    state: Dict[str, Any]
    target: float
    effectiveTarget: float
    range: RangeInfo
    displayRange: RangeInfo
    candidate: Optional[Dict[str, Any]] = None
    gear: Optional[Dict[str, Any]] = None
    realStats: Optional[Dict[str, Any]] = None
    effectiveEncumbrance: Optional[float] = None
    unitEncumbrance: Optional[Dict[str, float]] = None

class UrlStateResponse(BaseModel):
    query: str
    url: str
    state: Dict[str, Any]


# =============================================================================
# Helpers
# =============================================================================

def get_context() -> OptimizerContext:
    """Get the loaded context, loading it on first use."""
    if state.context is None:
        try:
            state.reset(load_context(state.data_dir))
        except (OSError, ValueError) as e:
            state.load_error = str(e)
            raise HTTPException(status_code=503, detail=f"Optimizer data not loaded: {e}")
    return state.context


def state_to_dict(url_state: UrlState) -> Dict[str, Any]:
    return {
        "profile": url_state.profile,
        "tier": url_state.tier,
        "enc": url_state.enc,
        "encUnit": url_state.enc_unit,
        "modifierEnabled": url_state.modifier_enabled,
        "modifierValue": url_state.modifier_value,
        "requiredHeadArmor": url_state.required_head_armor,
    }


def read_url_state(request: Request, context: OptimizerContext) -> UrlState:
    """Decode the request's query string and drop IDs unknown to the config."""
    return validate_url_state(decode_url_state(request.url.query), context.config)


def get_dataset(context: OptimizerContext, url_state: UrlState) -> CandidateDataset:
    """Load (or reuse) the dataset for the state's profile/tier selection."""
    if not url_state.profile or not url_state.tier:
        raise HTTPException(status_code=400, detail="Select a protection type and armor access tier")

    key = (url_state.profile, url_state.tier)
    if key not in state.datasets:
        try:
            state.datasets[key] = context.load_dataset(url_state.profile, url_state.tier)
        except FileNotFoundError:
            raise HTTPException(
                status_code=404,
                detail=f"No dataset for {url_state.profile} / {url_state.tier}",
            )
        except ValueError as e:
            raise HTTPException(status_code=500, detail=f"Invalid dataset: {e}")
    return state.datasets[key]


def clamp_url_state(url_state: UrlState, enc_range: EncumbranceRange) -> UrlState:
    """Pull the target into the range the selected dataset can satisfy."""
    return url_state.with_enc(clamp_target(url_state.enc, enc_range, url_state.enc_unit))


def range_info(enc_range) -> RangeInfo:
    return RangeInfo(min=enc_range.min, max=enc_range.max)


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/api/status", response_model=StatusResponse)
def get_status():
    """Get the current application status."""
    try:
        context = get_context()
    except HTTPException:
        return StatusResponse(
            status="no_data",
            data_dir=str(state.data_dir or ""),
            config_loaded=False,
            protection_type_count=0,
            access_tier_count=0,
            armor_type_count=0,
            armor_table_types=0,
            error=state.load_error,
        )

    return StatusResponse(
        status="ready",
        data_dir=str(context.data_dir),
        config_loaded=True,
        protection_type_count=len(context.config.protection_types),
        access_tier_count=len(context.config.armor_access_tiers),
        armor_type_count=len(context.config.armor_types),
        armor_table_types=len(context.armor_table),
    )


@app.get("/api/config", response_model=ConfigResponse)
def get_config():
    """Get the selectable protection types, access tiers and armor types."""
    context = get_context()
    return ConfigResponse(**context.config.to_dict())


@app.get("/api/url-state", response_model=UrlStateResponse)
def get_url_state(request: Request):
    """Normalize the incoming query string."""
    context = get_context()
    url_state = read_url_state(request, context)
    query = encode_url_state(url_state)
    return UrlStateResponse(query=query, url=build_url(SHARE_BASE_PATH, query), state=state_to_dict(url_state))


@app.get("/api/range", response_model=RangeResponse)
def get_range(request: Request):
    """Get the valid encumbrance range for the selected dataset."""
    context = get_context()
    url_state = read_url_state(request, context)
    dataset = get_dataset(context, url_state)

    head_armor = url_state.active_head_armor
    enc_range = encumbrance_range(dataset.candidates, head_armor)
    url_state = clamp_url_state(url_state, enc_range)

    return RangeResponse(
        query=encode_url_state(url_state),
        range=range_info(effective_range(enc_range, url_state.enc_unit)),
        displayRange=range_info(display_range(enc_range, url_state.enc_unit)),
        availableEncumbrances=available_encumbrances(dataset.candidates, head_armor),
        presets=[
            PresetInfo(rawValue=raw, label=label, available=available)
            for raw, label, available in preset_options(enc_range, url_state.enc_unit)
        ],
    )


@app.get("/api/optimize", response_model=OptimizeResponse)
def optimize(request: Request):
    """Select the best gear set for the state in the query string."""
    context = get_context()
    url_state = read_url_state(request, context)
    dataset = get_dataset(context, url_state)

    modifier_value = url_state.active_modifier_value
    head_armor = url_state.active_head_armor
    enc_range = encumbrance_range(dataset.candidates, head_armor)
    url_state = clamp_url_state(url_state, enc_range)

    best = select_optimal(dataset.candidates, url_state.enc, modifier_value, head_armor)

    query = encode_url_state(url_state)
    response = OptimizeResponse(
        found=best is not None,
        query=query,
        url=build_url(SHARE_BASE_PATH, query),
        state=state_to_dict(url_state),
        target=url_state.enc,
        effectiveTarget=adjusted_target(url_state.enc, modifier_value),
        range=range_info(effective_range(enc_range, url_state.enc_unit)),
        displayRange=range_info(display_range(enc_range, url_state.enc_unit)),
    )
    if best is None:
        return response

    decoded, real = state.real_stats.for_candidate(best, context.armor_table)
    response.candidate = best.to_dict()
    response.gear = decoded.to_dict() if decoded else None

    if real is not None:
        effective = effective_encumbrance(real, modifier_value)
        response.realStats = real_stats_to_dict(real)
        response.effectiveEncumbrance = effective
        response.unitEncumbrance = unit_encumbrances(effective)
    else:
        # No reference data; fall back to the dataset's own encumbrance
        response.effectiveEncumbrance = max(0.0, best.encumbrance - modifier_value)

    return response


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    print("=" * 60)
    print("Darkfall Gear Optimizer - Web Server")
    print("=" * 60)
    print()
    print("Starting server at http://localhost:8000")
    print("API docs available at http://localhost:8000/docs")
    print("=" * 60)

    uvicorn.run(app, host="0.0.0.0", port=8000)
