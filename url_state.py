"""
URL State Codec

Maps UrlState to and from a compact query string, the only persisted
(shareable) state of the optimizer.

    profile            protection profile ID
    tier               armor access tier ID
    enc                target encumbrance (raw), default 20
    encUnit            raw | magic | archery, default raw
    modifierEnabled    "true" when Feather is used
    modifierValue      Feather value in [0.1, 30], default 0.1
    requiredHeadArmor  head armor type worn with Feather

Decoding never fails: anything malformed or out of range falls back to
its default. Encoding omits defaults, so the output is canonical.
"""

import math
from dataclasses import replace
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlencode

from models import (
    AppConfig, UrlState, URL_DEFAULTS, ENC_UNITS, MODIFIER_MIN, MODIFIER_MAX,
)


# Query parameter names
PARAM_PROFILE = 'profile'
PARAM_TIER = 'tier'
PARAM_ENC = 'enc'
PARAM_ENC_UNIT = 'encUnit'
PARAM_MODIFIER_ENABLED = 'modifierEnabled'
PARAM_MODIFIER_VALUE = 'modifierValue'
PARAM_HEAD_ARMOR = 'requiredHeadArmor'


def _parse_float(value: Optional[str]) -> Optional[float]:
    """Parse a finite float, None if the string is not one."""
    if value is None:
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _format_number(value: float) -> str:
    """Shortest string for a number: 25 rather than 25.0."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _first_values(query: str) -> Dict[str, str]:
    if query.startswith('?'):
        query = query[1:]
    parsed: Dict[str, List[str]] = parse_qs(query, keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def decode_url_state(query: Optional[str]) -> UrlState:
    """
    Parse a query string into a UrlState.

    Args:
        query: Query string, with or without the leading '?'

    Returns:
        UrlState; invalid fields keep their defaults
    """
    params = _first_values(query or '')
    defaults = URL_DEFAULTS

    profile = params.get(PARAM_PROFILE) or defaults.profile
    tier = params.get(PARAM_TIER) or defaults.tier

    enc = defaults.enc
    parsed_enc = _parse_float(params.get(PARAM_ENC))
    if parsed_enc is not None and parsed_enc >= 0:
        enc = parsed_enc

    enc_unit = defaults.enc_unit
    if params.get(PARAM_ENC_UNIT) in ENC_UNITS:
        enc_unit = params[PARAM_ENC_UNIT]

    modifier_enabled = params.get(PARAM_MODIFIER_ENABLED) == 'true'

    modifier_value = defaults.modifier_value
    head_armor = defaults.required_head_armor
    if modifier_enabled:
        parsed_value = _parse_float(params.get(PARAM_MODIFIER_VALUE))
        if parsed_value is not None and MODIFIER_MIN <= parsed_value <= MODIFIER_MAX:
            modifier_value = parsed_value
        head_armor = params.get(PARAM_HEAD_ARMOR) or defaults.required_head_armor

    return UrlState(
        profile=profile,
        tier=tier,
        enc=enc,
        enc_unit=enc_unit,
        modifier_enabled=modifier_enabled,
        modifier_value=modifier_value,
        required_head_armor=head_armor,
    )


def encode_url_state(state: UrlState) -> str:
    """
    Serialize a UrlState into its canonical query string (no leading '?').

    Fields equal to their default are omitted; Feather fields are only
    written while Feather is enabled. The default state encodes to "".
    """
    defaults = URL_DEFAULTS
    params = []

    if state.profile is not None:
        params.append((PARAM_PROFILE, state.profile))

    if state.tier is not None:
        params.append((PARAM_TIER, state.tier))

    if state.enc != defaults.enc:
        params.append((PARAM_ENC, _format_number(state.enc)))

    if state.enc_unit and state.enc_unit != defaults.enc_unit:
        params.append((PARAM_ENC_UNIT, state.enc_unit))

    if state.modifier_enabled:
        params.append((PARAM_MODIFIER_ENABLED, 'true'))

        if state.modifier_value != defaults.modifier_value:
            params.append((PARAM_MODIFIER_VALUE, _format_number(state.modifier_value)))

        if state.required_head_armor is not None:
            params.append((PARAM_HEAD_ARMOR, state.required_head_armor))

    return urlencode(params)


def build_url(base_path: str, query: str) -> str:
    """Combine a base path with a query string."""
    if not query:
        return base_path
    return f"{base_path}?{query}"


def validate_url_state(state: UrlState, config: AppConfig) -> UrlState:
    """
    Drop IDs the loaded configuration does not know about.

    Args:
        state: Decoded state (untrusted)
        config: Loaded application configuration

    Returns:
        State with unknown profile/tier/head armor reset to None
    """
    changes = {}

    if state.profile is not None and not config.has_protection_type(state.profile):
        changes['profile'] = None

    if state.tier is not None and not config.has_access_tier(state.tier):
        changes['tier'] = None

    if state.required_head_armor is not None and not config.has_armor_type(state.required_head_armor):
        changes['required_head_armor'] = None

    if not changes:
        return state
    return replace(state, **changes)
