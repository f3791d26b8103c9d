"""Security audit — named events for untrusted blueprint markup.

Events go to the ``blueprint_viewer.security`` logger, which is the sink the
hosting application wires to its log shipping. Raw markup is never logged
unless ``SECURITY_DEBUG_STORE_RAW=true``; only its length and SHA-256 hash.
"""

from __future__ import annotations

import hashlib
import logging
from enum import StrEnum
from typing import Any

from blueprint_viewer.core.config import get_settings
from blueprint_viewer.utils.alerting import alert_tracker

security_logger = logging.getLogger("blueprint_viewer.security")

MAX_RAW_PREVIEW_CHARS = 2000


class SecurityEvent(StrEnum):
    SVG_SANITIZATION_FAILED = "SVG_SANITIZATION_FAILED"
    SVG_DANGEROUS_CONTENT_DETECTED = "SVG_DANGEROUS_CONTENT_DETECTED"
    SVG_DIMENSIONS_EXCEEDED = "SVG_DIMENSIONS_EXCEEDED"
    VALIDATION_FAILED = "VALIDATION_FAILED"


SEVERITY_LEVELS: dict[SecurityEvent, int] = {
    SecurityEvent.SVG_SANITIZATION_FAILED: logging.ERROR,
    SecurityEvent.SVG_DANGEROUS_CONTENT_DETECTED: logging.ERROR,
    SecurityEvent.SVG_DIMENSIONS_EXCEEDED: logging.WARNING,
    SecurityEvent.VALIDATION_FAILED: logging.WARNING,
}


def log_security_event(
    event: SecurityEvent,
    source: str,
    *,
    markup: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Emit one security event and return the metadata that was logged.

    * ``source``: the component that detected the event, e.g. ``"sanitizer"``.
    * ``markup``: the offending input; hashed, stored raw only in debug mode.
    """
    settings = get_settings()

    metadata: dict[str, Any] = {"event": str(event), "source": source}
    if markup is not None:
        metadata["input_length"] = len(markup)
        metadata["input_sha256"] = hashlib.sha256(markup.encode("utf-8", "replace")).hexdigest()
        if settings.security_debug_store_raw:
            metadata["input_raw"] = markup[:MAX_RAW_PREVIEW_CHARS]

    if details:
        metadata.update(details)

    level = SEVERITY_LEVELS.get(event, logging.INFO)
    security_logger.log(level, "SECURITY event=%s source=%s metadata=%s", event, source, metadata)

    alert_tracker.configure(
        window_seconds=settings.security_alert_window_seconds,
        thresholds=settings.security_alert_thresholds,
    )
    alert_tracker.record(str(event), metadata)
    return metadata
