"""Reconcile the accepted blueprint input shapes into one canonical geometry.

Decoding is an ordered series of exception-safe attempts:

1. absent / empty                → ``None``
2. canonical object              → passed through unchanged
3. string: JSON document         → canonical object, or a markup envelope
   string: anything else         → vector markup
4. object with a markup field    → vector markup

Markup always goes extract → size guard → sanitize → parse.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from blueprint_viewer.core.config import get_settings
from blueprint_viewer.utils.json_tools import decode_json_payload

from .contracts import (
    Absent,
    CanonicalGeometry,
    CanonicalShape,
    EncodedString,
    MarkupEnvelope,
    RAW_INPUT_TYPES,
    RawBlueprintInput,
    geometry_from_mapping,
    is_canonical_shape,
)
from .path_parser import parse_path_markup
from .sanitizer import extract_markup, sanitize_markup, within_size_limits

logger = logging.getLogger(__name__)


def _carries_markup(value: Mapping[str, Any]) -> bool:
    return any(isinstance(value.get(name), str) for name in get_settings().svg_markup_fields)


def classify_input(value: Any) -> RawBlueprintInput:
    """Tag a caller-supplied value with the input variant it represents."""
    if value is None:
        return Absent()
    if isinstance(value, RAW_INPUT_TYPES):
        return value
    if isinstance(value, str):
        return EncodedString(value) if value.strip() else Absent()
    if isinstance(value, Mapping):
        if is_canonical_shape(value):
            return CanonicalShape(value)
        if _carries_markup(value):
            return MarkupEnvelope(value)
    return Absent()


def geometry_from_markup(value: Any) -> CanonicalGeometry | None:
    """Run extract → size guard → sanitize → parse on a markup-bearing value."""
    markup = extract_markup(value)
    if not markup:
        return None
    if not within_size_limits(markup):
        return None

    result = sanitize_markup(markup)
    if not result.clean_markup:
        logger.warning("Blueprint markup failed sanitization (%d chars)", len(markup))
        return None
    return parse_path_markup(result.clean_markup)


def _from_encoded_string(text: str) -> CanonicalGeometry | None:
    decoded = decode_json_payload(text)
    if isinstance(decoded, Mapping):
        if is_canonical_shape(decoded):
            return geometry_from_mapping(decoded)
        if _carries_markup(decoded):
            return geometry_from_markup(decoded)
    return geometry_from_markup(text)


def normalize(value: Any) -> CanonicalGeometry | None:
    """Return canonical geometry for *value*, or ``None``. Never raises."""
    try:
        raw = classify_input(value)
        if isinstance(raw, CanonicalShape):
            return geometry_from_mapping(raw.payload)
        if isinstance(raw, EncodedString):
            return _from_encoded_string(raw.text)
        if isinstance(raw, MarkupEnvelope):
            return geometry_from_markup(raw.payload)
        return None
    except Exception:
        logger.warning("Blueprint normalization failed", exc_info=True)
        return None
