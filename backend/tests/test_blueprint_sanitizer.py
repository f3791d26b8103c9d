"""Tests for the two-layer markup sanitizer.

Covers:
- allow-list keeps drawing elements and strips scripts / handlers
- unsafe URI schemes and style payloads are removed
- DTD / entity payloads fail secure
- deny-list pass works on its own
- dangerous-content detection and security events
- extraction from envelopes and base64 data URIs
- declared-extent and length guard
"""

import base64

from blueprint_viewer.services.blueprint.sanitizer import (
    apply_allowlist,
    apply_denylist,
    extract_markup,
    is_markup_safe,
    is_safe_uri,
    sanitize,
    sanitize_markup,
    validate_markup_dimensions,
    within_size_limits,
)
from blueprint_viewer.services.security_audit import SecurityEvent

from conftest import security_events

OUTLINE = '<path d="M 0 0 L 10 0 L 10 10"/>'


# ---------------------------------------------------------------------------
# Allow-list layer
# ---------------------------------------------------------------------------


def test_allowlist_keeps_outline_and_declares_namespace(square_markup):
    clean = apply_allowlist(square_markup)
    assert clean.startswith('<svg xmlns="http://www.w3.org/2000/svg">')
    assert 'd="M 0 0 L 100 0 L 100 50 L 0 50 Z"' in clean


def test_allowlist_drops_script_subtree():
    clean = apply_allowlist(f"<svg><script>alert(1)</script>{OUTLINE}</svg>")
    assert "script" not in clean
    assert "alert" not in clean
    assert "<path" in clean


def test_allowlist_drops_foreign_object_content():
    markup = (
        '<svg xmlns="http://www.w3.org/2000/svg"><foreignObject>'
        '<div xmlns="http://www.w3.org/1999/xhtml">hi</div></foreignObject>'
        f"{OUTLINE}</svg>"
    )
    clean = apply_allowlist(markup)
    assert "foreignObject" not in clean
    assert "div" not in clean
    assert "<path" in clean


def test_allowlist_unwraps_unknown_container():
    clean = apply_allowlist(f"<svg><a>{OUTLINE}</a></svg>")
    assert "<a" not in clean
    assert "<path" in clean


def test_allowlist_removes_event_handlers():
    clean = apply_allowlist('<svg onload="alert(1)"><rect width="5" height="5" onclick="x()"/></svg>')
    assert "onload" not in clean
    assert "onclick" not in clean
    assert 'width="5"' in clean


def test_allowlist_keeps_mask_content_units():
    clean = apply_allowlist('<svg><mask id="m" maskContentUnits="userSpaceOnUse"/></svg>')
    assert 'maskContentUnits="userSpaceOnUse"' in clean


def test_allowlist_rejects_javascript_href():
    markup = (
        '<svg xmlns:xlink="http://www.w3.org/1999/xlink">'
        '<use xlink:href="javascript:alert(1)"/><use href="#shape"/></svg>'
    )
    clean = apply_allowlist(markup)
    assert "javascript" not in clean
    assert 'href="#shape"' in clean


def test_allowlist_keeps_safe_xlink_href_with_namespace():
    markup = '<svg xmlns:xlink="http://www.w3.org/1999/xlink"><use xlink:href="#shape"/></svg>'
    clean = apply_allowlist(markup)
    assert 'xlink:href="#shape"' in clean
    assert 'xmlns:xlink="http://www.w3.org/1999/xlink"' in clean


def test_allowlist_rejects_unsafe_style():
    clean = apply_allowlist('<svg><rect style="background:url(javascript:alert(1))"/><rect style="fill:red"/></svg>')
    assert "javascript" not in clean
    assert 'style="fill:red"' in clean


def test_is_safe_uri():
    assert is_safe_uri("#grid")
    assert is_safe_uri("https://example.com/a.svg")
    assert is_safe_uri("images/a.svg")
    assert not is_safe_uri("javascript:alert(1)")
    assert not is_safe_uri("java\tscript:alert(1)")
    assert not is_safe_uri("data:text/html;base64,AAAA")


# ---------------------------------------------------------------------------
# Deny-list layer
# ---------------------------------------------------------------------------


def test_denylist_strips_script_and_handlers_independently():
    dirty = '<svg onload="x()"><script>alert(1)</script><a href="javascript:void(0)"/></svg>'
    clean = apply_denylist(dirty)
    assert "<script" not in clean
    assert "onload=" not in clean
    assert "javascript:" not in clean


def test_denylist_leaves_hyphenated_attributes_alone():
    text = '<mask maskContentUnits="userSpaceOnUse" data-one="1"/>'
    assert apply_denylist(text) == text


# ---------------------------------------------------------------------------
# sanitize / sanitize_markup
# ---------------------------------------------------------------------------


def test_sanitize_embedded_script_logs_dangerous_content(security_log):
    result = sanitize_markup(f"<svg><script>alert(1)</script>{OUTLINE}</svg>")

    assert result.flagged_dangerous is True
    assert result.clean_markup is not None
    assert "<script" not in result.clean_markup
    assert "<path" in result.clean_markup
    assert SecurityEvent.SVG_DANGEROUS_CONTENT_DETECTED in security_events(security_log)


def test_sanitize_clean_markup_is_not_flagged(square_markup, security_log):
    result = sanitize_markup(square_markup)
    assert result.flagged_dangerous is False
    assert security_events(security_log) == []


def test_sanitize_rejects_xxe(security_log):
    markup = (
        '<?xml version="1.0"?><!DOCTYPE svg [<!ENTITY xxe SYSTEM "file:///etc/passwd">]>'
        "<svg><text>&xxe;</text></svg>"
    )
    assert sanitize(markup) is None
    assert SecurityEvent.SVG_SANITIZATION_FAILED in security_events(security_log)


def test_sanitize_rejects_billion_laughs():
    markup = (
        '<!DOCTYPE lolz [<!ENTITY lol "lol"><!ENTITY lol2 "&lol;&lol;&lol;">]>'
        "<svg><text>&lol2;</text></svg>"
    )
    assert sanitize(markup) is None


def test_sanitize_malformed_markup_fails_secure():
    assert sanitize("<svg><path d='M 0 0'></svg") is None


def test_sanitize_empty_input():
    assert sanitize("") is None
    assert sanitize(None) is None


def test_sanitize_keeps_plain_text_input():
    assert sanitize("M 50 50") == "M 50 50"


def test_is_markup_safe():
    assert is_markup_safe(OUTLINE)
    assert not is_markup_safe('<svg onload="x()"/>')
    assert not is_markup_safe('<a href="data:text/html,hi"/>')
    assert not is_markup_safe("")


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def test_extract_markup_from_envelope_fields(square_markup):
    assert extract_markup({"svg": square_markup}) == square_markup
    assert extract_markup({"content": square_markup}) == square_markup
    assert extract_markup({"data": square_markup}) == square_markup
    assert extract_markup({"other": square_markup}) is None


def test_extract_markup_decodes_base64_data_uri(square_markup):
    encoded = base64.b64encode(square_markup.encode("utf-8")).decode("ascii")
    assert extract_markup(f"data:image/svg+xml;base64,{encoded}") == square_markup


def test_extract_markup_bad_base64_logs_failure(security_log):
    assert extract_markup("data:image/svg+xml;base64,@@not-base64@@") is None
    assert SecurityEvent.SVG_SANITIZATION_FAILED in security_events(security_log)


def test_extract_markup_custom_fields(monkeypatch, square_markup):
    monkeypatch.setenv("SVG_MARKUP_FIELDS", "markup")
    assert extract_markup({"markup": square_markup}) == square_markup
    assert extract_markup({"svg": square_markup}) is None


# ---------------------------------------------------------------------------
# Size guard
# ---------------------------------------------------------------------------


def test_dimension_guard_on_declared_size():
    assert validate_markup_dimensions('<svg width="500" height="400"></svg>')
    assert not validate_markup_dimensions('<svg width="20000" height="400"></svg>')
    assert not validate_markup_dimensions('<svg viewBox="0 0 100 50000"></svg>')


def test_dimension_guard_ignores_stroke_width():
    assert validate_markup_dimensions('<svg width="100"><path stroke-width="99999"/></svg>')


def test_dimension_guard_uses_settings(monkeypatch):
    monkeypatch.setenv("SVG_MAX_WIDTH", "100")
    assert not validate_markup_dimensions('<svg width="200" height="50"></svg>')


def test_size_limits_reject_long_markup(monkeypatch, security_log):
    monkeypatch.setenv("SVG_MAX_MARKUP_CHARS", "20")
    assert within_size_limits("<svg>" + "x" * 50 + "</svg>") is False
    assert SecurityEvent.SVG_DIMENSIONS_EXCEEDED in security_events(security_log)


def test_dimension_guard_reads_units_and_exponents():
    assert not validate_markup_dimensions('<svg width="20000px" height="20000px"></svg>')
    assert not validate_markup_dimensions('<svg width="2e4" height="10"></svg>')
    assert not validate_markup_dimensions("<svg width='100' height=' 1.5E4pt '></svg>")
    assert validate_markup_dimensions('<svg width="800px" height="100%"></svg>')
