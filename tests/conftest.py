"""Shared test fixtures for Claude Session Analytics."""

import os
import sys

import pytest

from claude_session_analytics.services.event_bus import EventBus
from claude_session_analytics.services.session_store import SessionStore


@pytest.fixture(scope="session")
def qapp():
    """Create a QGuiApplication for tests that need Qt."""
    os.environ["QT_QPA_PLATFORM"] = "offscreen"
    from PySide6.QtGui import QGuiApplication

    app = QGuiApplication.instance()
    if app is None:
        app = QGuiApplication(sys.argv or ["test"])
    yield app


@pytest.fixture
def isolated_settings(qapp, tmp_path):
    """Point QSettings at a temp directory."""
    from PySide6.QtCore import QSettings
    QSettings.setDefaultFormat(QSettings.IniFormat)
    QSettings.setPath(QSettings.IniFormat, QSettings.UserScope, str(tmp_path / "config"))
    return tmp_path / "config"


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def store(bus) -> SessionStore:
    return SessionStore(bus)


@pytest.fixture
def recorded_events(bus):
    """List of (event_name, payload) for every event the bus delivers."""
    events = []
    from claude_session_analytics.services.event_bus import StoreEvent
    for event in StoreEvent:
        bus.on(event, lambda payload, name=event.value: events.append((name, payload)))
    return events
