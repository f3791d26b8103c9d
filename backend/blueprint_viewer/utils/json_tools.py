"""Tolerant JSON decoding for payloads produced by the vision service."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

_FENCE = "```"


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence, if any."""
    s = text.strip()
    if not s.startswith(_FENCE):
        return s
    s = s.split("\n", 1)[-1] if "\n" in s else s[len(_FENCE):]
    if s.rstrip().endswith(_FENCE):
        s = s.rstrip()[: -len(_FENCE)]
    return s.strip()


def decode_json_payload(text: str) -> Any | None:
    """Decode *text* as JSON, or return ``None`` when it is not JSON.

    Strategy:
    1. ``json.loads`` on the stripped text (fast path).
    2. Remove a Markdown code fence and retry.
    3. When the text opens with ``{`` or ``[``, decode the brace-balanced
       prefix, which tolerates trailing chatter after the document.

    Only the leading position is tried, so the cost stays linear in the
    input length; markup strings fall through to ``None`` quickly.
    """
    if not isinstance(text, str) or not text.strip():
        return None

    stripped = text.strip()
    try:
        return json.loads(stripped)
    except ValueError:
        pass

    unfenced = strip_code_fence(stripped)
    if unfenced != stripped:
        try:
            return json.loads(unfenced)
        except ValueError:
            pass

    if unfenced[:1] == "{":
        return _extract_balanced(unfenced, "{", "}")
    if unfenced[:1] == "[":
        return _extract_balanced(unfenced, "[", "]")
    return None


def _extract_balanced(text: str, open_ch: str, close_ch: str) -> Any | None:
    """Parse the brace-balanced document that starts at index 0 of *text*."""
    depth = 0
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if escape:
            escape = False
            continue

        if ch == "\\":
            if in_string:
                escape = True
            continue

        if ch == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(text[: i + 1])
                except ValueError:
                    logger.debug("Balanced JSON candidate did not decode (%d chars)", i + 1)
                    return None

    return None
