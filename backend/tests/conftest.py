import logging

import pytest

from blueprint_viewer.core.config import get_settings
from blueprint_viewer.utils.alerting import DEFAULT_THRESHOLDS, DEFAULT_WINDOW_SECONDS, alert_tracker

SQUARE_MARKUP = '<svg><path d="M 0 0 L 100 0 L 100 50 L 0 50 Z"/></svg>'


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Tests mutate env vars; never leak a cached Settings instance across tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_alert_tracker():
    alert_tracker.reset()
    alert_tracker.configure(window_seconds=DEFAULT_WINDOW_SECONDS, thresholds=DEFAULT_THRESHOLDS)
    yield
    alert_tracker.reset()


@pytest.fixture
def security_log(caplog):
    caplog.set_level(logging.INFO, logger="blueprint_viewer.security")
    return caplog


def security_events(caplog) -> list[str]:
    return [
        record.args[0]
        for record in caplog.records
        if record.name == "blueprint_viewer.security" and record.args
    ]


@pytest.fixture
def square_markup():
    return SQUARE_MARKUP


@pytest.fixture
def canonical_payload():
    return {
        "vertices": [{"x": 0, "y": 0}, {"x": 120, "y": 0}, {"x": 120, "y": 80}, {"x": 0, "y": 80}],
        "dimensions": {"width": 120, "height": 80},
        "scale": 1.5,
    }
