"""Sanitization of untrusted blueprint markup (SVG) from the vision service.

Two independent layers, applied in order:

1. ``apply_allowlist``: parse with defusedxml (no DTDs, no entity
   expansion) and rebuild the tree from an explicit element/attribute
   allow-list. Event handlers and unsafe URI schemes never survive.
2. ``apply_denylist``: regex pass over the serialized result that strips
   any remaining script/iframe/object/embed/form tags, ``javascript:`` and
   ``on*=`` fragments.

``sanitize`` is fail-secure: any internal error yields ``None`` and a
``SVG_SANITIZATION_FAILED`` security event.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from xml.sax.saxutils import escape as xml_escape

import defusedxml.ElementTree as DET

from blueprint_viewer.core.config import get_settings
from blueprint_viewer.services.security_audit import SecurityEvent, log_security_event

from .contracts import SanitizationResult

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

BASE64_SVG_PREFIX = "data:image/svg+xml;base64,"

_WRAPPER_TAG = "sanitized-root"

# ---------------------------------------------------------------------------
# Allow-lists
# ---------------------------------------------------------------------------

ALLOWED_ELEMENTS = frozenset(
    {
        # structure
        "svg", "g", "defs", "use", "symbol", "marker",
        # shapes
        "path", "rect", "circle", "line", "polyline", "polygon",
        # text
        "text", "tspan",
        # paint servers
        "linearGradient", "radialGradient", "stop", "pattern",
        # clip / mask / filter
        "clipPath", "mask", "filter",
        "feGaussianBlur", "feOffset", "feBlend", "feColorMatrix",
        # metadata
        "title", "desc", "metadata",
    }
)

# Disallowed elements whose content is removed too (not just unwrapped).
DROP_CONTENT_ELEMENTS = frozenset(
    {
        "script", "style", "iframe", "frame", "frameset", "object", "embed",
        "applet", "form", "input", "button", "textarea", "select",
        "foreignobject", "noscript", "template", "link", "meta", "base",
        "audio", "video", "image", "img", "animate", "set",
        "animatetransform", "animatemotion", "handler", "listener",
    }
)

ALLOWED_ATTRIBUTES = frozenset(
    {
        # geometry
        "d", "x", "y", "x1", "y1", "x2", "y2", "cx", "cy", "r", "rx", "ry",
        "width", "height", "points", "transform",
        # styling
        "fill", "stroke", "stroke-width", "stroke-linecap", "stroke-linejoin",
        "stroke-dasharray", "stroke-dashoffset", "opacity", "fill-opacity",
        "stroke-opacity", "fill-rule", "clip-rule",
        # typography
        "font-family", "font-size", "font-weight", "font-style", "text-anchor",
        "dominant-baseline",
        # structure
        "viewBox", "preserveAspectRatio", "version", "id", "class", "style",
        # references
        "href", "xlink:href", "url", "src",
        # gradient / pattern
        "offset", "gradientUnits", "gradientTransform", "spreadMethod",
        "patternUnits", "patternTransform",
        # filter
        "stdDeviation", "in", "in2", "mode", "type", "values", "result",
        # mask / clip
        "mask", "clip-path", "maskUnits", "maskContentUnits", "clipPathUnits",
        "marker-start", "marker-end", "marker-mid",
        # animation timing
        "dur", "begin", "end", "repeatCount", "repeatDur",
    }
)

URI_ATTRIBUTES = frozenset({"href", "xlink:href", "src", "url"})

# Known safe schemes, a scheme-less reference (leading non-letter such as
# "#id" or "/path"), or a letter run that is not followed by ":".
_SAFE_URI_RE = re.compile(
    r"^(?:(?:(?:f|ht)tps?|mailto|tel|callto|cid|xmpp):|[^a-z]|[a-z+.\-]+(?:[^a-z+.\-:]|$))",
    re.IGNORECASE,
)
_URI_IGNORED_CHARS_RE = re.compile(r"[\x00-\x20\xa0\u1680\u180e\u2000-\u2029\u205f\u3000]")
_UNSAFE_STYLE_RE = re.compile(r"javascript:|expression\s*\(|@import|behavior\s*:|-moz-binding", re.IGNORECASE)
_XML_PROLOG_RE = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Deny-list (defense in depth, applied after the allow-list)
# ---------------------------------------------------------------------------

DENYLIST_PATTERNS = (
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"(?<![\w-])on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"<object", re.IGNORECASE),
    re.compile(r"<embed", re.IGNORECASE),
    re.compile(r"<form", re.IGNORECASE),
)

DANGEROUS_PATTERNS = (
    re.compile(r"<script\b", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"(?<![\w-])on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"<object", re.IGNORECASE),
    re.compile(r"<embed", re.IGNORECASE),
    re.compile(r"<form", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
    re.compile(r"data:text/javascript", re.IGNORECASE),
)

_SVG_OPEN_TAG_RE = re.compile(r"<svg\b[^>]*>", re.IGNORECASE)
# Leading numeric literal of a declared extent; units such as px, pt or % may follow.
_WIDTH_RE = re.compile(
    r"""(?<![\w-])width\s*=\s*["']\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)[a-z%]*\s*["']""",
    re.IGNORECASE,
)
_HEIGHT_RE = re.compile(
    r"""(?<![\w-])height\s*=\s*["']\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)[a-z%]*\s*["']""",
    re.IGNORECASE,
)
_VIEWBOX_RE = re.compile(r"""\bviewBox\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


@dataclass
class _FilterStats:
    removed_elements: int = 0
    unwrapped_elements: int = 0
    removed_attributes: int = 0


# ---------------------------------------------------------------------------
# Layer 1: allow-list structural filter
# ---------------------------------------------------------------------------


def _split_tag(tag: str) -> tuple[str | None, str]:
    if tag.startswith("{"):
        ns, _, local = tag[1:].partition("}")
        return ns, local
    return None, tag


def _attribute_name(key: str) -> str | None:
    """Map an ElementTree attribute key to its markup name, or None if foreign."""
    ns, local = _split_tag(key)
    if ns is None:
        return local
    if ns == XLINK_NS:
        return f"xlink:{local}"
    return None


def is_safe_uri(value: str) -> bool:
    compact = _URI_IGNORED_CHARS_RE.sub("", value or "")
    if not compact:
        return True
    return bool(_SAFE_URI_RE.match(compact))


def _clean_attributes(elem: ET.Element, stats: _FilterStats) -> dict[str, str]:
    clean: dict[str, str] = {}
    for key, value in elem.attrib.items():
        name = _attribute_name(key)
        if name is None or name.lower().startswith("on") or name not in ALLOWED_ATTRIBUTES:
            stats.removed_attributes += 1
            continue
        if name in URI_ATTRIBUTES and not is_safe_uri(value):
            stats.removed_attributes += 1
            continue
        if name == "style" and _UNSAFE_STYLE_RE.search(value):
            stats.removed_attributes += 1
            continue
        if "javascript:" in _URI_IGNORED_CHARS_RE.sub("", value).lower():
            stats.removed_attributes += 1
            continue
        clean[name] = value
    return clean


def _append_text(dst: ET.Element, text: str | None) -> None:
    if not text:
        return
    if len(dst):
        last = dst[-1]
        last.tail = (last.tail or "") + text
    else:
        dst.text = (dst.text or "") + text


def _copy_allowed(src: ET.Element, dst: ET.Element, stats: _FilterStats) -> None:
    """Copy the allowed content of *src* into *dst*, recursively."""
    _append_text(dst, src.text)
    for child in src:
        if not isinstance(child.tag, str):
            # comments / processing instructions
            _append_text(dst, child.tail)
            continue
        ns, local = _split_tag(child.tag)
        if ns in (None, SVG_NS) and local in ALLOWED_ELEMENTS:
            clean = ET.SubElement(dst, local, _clean_attributes(child, stats))
            _copy_allowed(child, clean, stats)
        elif local.lower() in DROP_CONTENT_ELEMENTS or ns not in (None, SVG_NS):
            stats.removed_elements += 1
        else:
            stats.unwrapped_elements += 1
            _copy_allowed(child, dst, stats)
        _append_text(dst, child.tail)


def _declare_namespaces(wrapper: ET.Element) -> None:
    for top in wrapper:
        if top.tag != "svg":
            continue
        top.set("xmlns", SVG_NS)
        if any("xlink:href" in node.attrib for node in top.iter()):
            top.set("xmlns:xlink", XLINK_NS)


def apply_allowlist(markup: str) -> str:
    """Rebuild *markup* from allowed elements and attributes only.

    Raises on malformed or forbidden XML (DTDs, entities); ``sanitize``
    turns that into a fail-secure ``None``.
    """
    body = _XML_PROLOG_RE.sub("", markup, count=1)
    source = DET.fromstring(f"<{_WRAPPER_TAG}>{body}</{_WRAPPER_TAG}>")

    stats = _FilterStats()
    wrapper = ET.Element(_WRAPPER_TAG)
    _copy_allowed(source, wrapper, stats)
    _declare_namespaces(wrapper)

    if stats.removed_elements or stats.unwrapped_elements or stats.removed_attributes:
        logger.info(
            "Allow-list filter: removed_elements=%d unwrapped_elements=%d removed_attributes=%d",
            stats.removed_elements,
            stats.unwrapped_elements,
            stats.removed_attributes,
        )

    parts = [xml_escape(wrapper.text or "")]
    parts.extend(ET.tostring(child, encoding="unicode") for child in wrapper)
    return "".join(parts)


# ---------------------------------------------------------------------------
# Layer 2: deny-list regex pass
# ---------------------------------------------------------------------------


def apply_denylist(markup: str) -> str:
    clean = markup
    for pattern in DENYLIST_PATTERNS:
        clean = pattern.sub("", clean)
    return clean


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_markup_safe(markup: str) -> bool:
    """False when *markup* contains any known-dangerous pattern."""
    if not markup or not isinstance(markup, str):
        return False
    return not any(pattern.search(markup) for pattern in DANGEROUS_PATTERNS)


def sanitize(markup: str) -> str | None:
    """Return markup that is safe to parse and render, or ``None``."""
    if not markup or not isinstance(markup, str):
        return None

    try:
        clean = apply_denylist(apply_allowlist(markup))
    except Exception:
        logger.warning("SVG sanitization failed (%d chars)", len(markup), exc_info=True)
        log_security_event(
            SecurityEvent.SVG_SANITIZATION_FAILED,
            "sanitizer",
            markup=markup,
            details={"reason": "sanitization_error"},
        )
        return None

    if not clean.strip():
        logger.warning("SVG sanitization removed all content (%d chars)", len(markup))
        return None
    return clean


def sanitize_markup(markup: str) -> SanitizationResult:
    """Sanitize and report whether the input carried dangerous content."""
    flagged = bool(markup) and not is_markup_safe(markup)
    if flagged:
        log_security_event(
            SecurityEvent.SVG_DANGEROUS_CONTENT_DETECTED,
            "sanitizer",
            markup=markup,
            details={"action": "sanitized"},
        )
    return SanitizationResult(clean_markup=sanitize(markup), flagged_dangerous=flagged)


def extract_markup(value: Any, fields: list[str] | None = None) -> str | None:
    """Pull markup out of a raw string, a known-field object or a base64 data URI."""
    if not value:
        return None

    if isinstance(value, str):
        content = value
    elif isinstance(value, Mapping):
        names = fields if fields is not None else get_settings().svg_markup_fields
        content = next((value[name] for name in names if isinstance(value.get(name), str)), None)
        if content is None:
            return None
    else:
        return None

    content = content.strip()

    if content[: len(BASE64_SVG_PREFIX)].lower() == BASE64_SVG_PREFIX:
        try:
            content = base64.b64decode(content[len(BASE64_SVG_PREFIX):], validate=True).decode("utf-8").strip()
        except (binascii.Error, ValueError):
            logger.warning("Failed to decode base64 SVG data URI")
            log_security_event(
                SecurityEvent.SVG_SANITIZATION_FAILED,
                "extract",
                markup=content,
                details={"reason": "base64_decode_failed"},
            )
            return None

    if "<svg" not in content.lower() and "<path" not in content and "<rect" not in content:
        logger.info("Input may not be SVG markup (%d chars)", len(content))

    return content or None


def validate_markup_dimensions(
    markup: str,
    max_width: float | None = None,
    max_height: float | None = None,
) -> bool:
    """False when declared width/height or viewBox extents exceed the ceiling."""
    if not markup:
        return False

    if max_width is None or max_height is None:
        settings = get_settings()
        max_width = settings.svg_max_width if max_width is None else max_width
        max_height = settings.svg_max_height if max_height is None else max_height

    open_tag = _SVG_OPEN_TAG_RE.search(markup)
    scope = open_tag.group(0) if open_tag else markup

    try:
        width_match = _WIDTH_RE.search(scope)
        height_match = _HEIGHT_RE.search(scope)
        width = float(width_match.group(1)) if width_match else 0.0
        height = float(height_match.group(1)) if height_match else 0.0
        if width > max_width or height > max_height:
            logger.warning("SVG dimensions too large: %sx%s", width, height)
            return False

        viewbox_match = _VIEWBOX_RE.search(scope)
        if viewbox_match:
            parts = _NUMBER_RE.findall(viewbox_match.group(1))
            if len(parts) >= 4:
                vb_width = float(parts[2])
                vb_height = float(parts[3])
                if vb_width > max_width or vb_height > max_height:
                    logger.warning("SVG viewBox too large: %sx%s", vb_width, vb_height)
                    return False
    except (ValueError, OverflowError):
        logger.warning("Error validating SVG dimensions", exc_info=True)
        return False

    return True


def within_size_limits(markup: str) -> bool:
    """Length and declared-extent guard, run before the markup is parsed."""
    settings = get_settings()
    if len(markup) > settings.max_markup_chars:
        log_security_event(
            SecurityEvent.SVG_DIMENSIONS_EXCEEDED,
            "size_guard",
            markup=markup,
            details={"reason": "markup_too_long", "max_chars": settings.max_markup_chars},
        )
        return False
    if not validate_markup_dimensions(markup, settings.svg_max_width, settings.svg_max_height):
        log_security_event(
            SecurityEvent.SVG_DIMENSIONS_EXCEEDED,
            "size_guard",
            markup=markup,
            details={"reason": "extent_too_large"},
        )
        return False
    return True
