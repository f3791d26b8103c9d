import logging
import time
from collections import deque
from threading import Lock
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 3600
DEFAULT_THRESHOLDS = {
    "SVG_SANITIZATION_FAILED": 5,
    "SVG_DANGEROUS_CONTENT_DETECTED": 3,
    "SVG_DIMENSIONS_EXCEEDED": 10,
    "VALIDATION_FAILED": 25,
}


class SecurityAlertTracker:
    def __init__(self, window_seconds: int, thresholds: dict[str, int]) -> None:
        self._window_seconds = window_seconds
        self._thresholds = dict(thresholds)
        self._buckets: dict[str, deque[float]] = {}
        self._lock = Lock()

    def configure(self, *, window_seconds: Optional[int] = None, thresholds: Optional[dict[str, int]] = None) -> None:
        with self._lock:
            if window_seconds is not None:
                self._window_seconds = window_seconds
            if thresholds:
                self._thresholds.update(thresholds)

    def record(self, event: str, metadata: Optional[dict] = None) -> bool:
        """Count *event*; return True when this occurrence raised an alert."""
        now = time.monotonic()
        with self._lock:
            limit = self._thresholds.get(event, 0)
            if limit <= 0:
                return False
            bucket = self._buckets.get(event)
            if bucket is None:
                bucket = deque()
                self._buckets[event] = bucket
            cutoff = now - self._window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            bucket.append(now)
            # Alert at threshold and at every multiple of threshold
            alerted = len(bucket) >= limit and len(bucket) % limit == 0
            if alerted:
                logger.warning(
                    "ALERT security_event=%s count=%s window_seconds=%s metadata=%s",
                    event,
                    len(bucket),
                    self._window_seconds,
                    metadata or {},
                )
            return alerted

    def count(self, event: str) -> int:
        with self._lock:
            bucket = self._buckets.get(event)
            return len(bucket) if bucket else 0

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


alert_tracker = SecurityAlertTracker(DEFAULT_WINDOW_SECONDS, DEFAULT_THRESHOLDS)
