"""Composition root: build the event bus, store and Qt bridge once per process."""

import logging
import sys
from dataclasses import dataclass

from claude_session_analytics.services.config_manager import ConfigManager
from claude_session_analytics.services.event_bus import EventBus
from claude_session_analytics.services.session_store import SessionStore
from claude_session_analytics.services.signal_bridge import StoreSignalBridge
from claude_session_analytics.services.turn_metrics import calculate_turn_metrics
from claude_session_analytics.types import Turn, TurnMetrics

PACKAGE_LOGGER = "claude_session_analytics"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug: bool = False) -> logging.Logger:
    """Attach a stderr handler to the package logger (once)."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


@dataclass
class AnalyticsEngine:
    """Process-wide analytics state, injected by reference into consumers."""
    config: ConfigManager
    bus: EventBus
    store: SessionStore
    bridge: StoreSignalBridge

    def turn_metrics(self, turn: Turn) -> TurnMetrics:
        """Derive TurnMetrics using the configured fallback pricing model."""
        return calculate_turn_metrics(turn, self.config.default_model)

    def shutdown(self):
        """Tear down: stop forwarding signals, drop listeners and all state."""
        self.bridge.detach()
        self.store.clear()
        self.bus.clear()


def create_engine(config: ConfigManager | None = None, parent=None) -> AnalyticsEngine:
    """Build the analytics engine from settings."""
    if config is None:
        config = ConfigManager(parent)

    configure_logging(config.debug_logging)

    bus = EventBus()
    store = SessionStore(bus, active_timeout_s=config.session_active_timeout_s)
    bridge = StoreSignalBridge(bus, parent)

    logging.getLogger(__name__).info(
        "Analytics engine ready (session timeout %.0fs)", store.active_timeout_s
    )
    return AnalyticsEngine(config=config, bus=bus, store=store, bridge=bridge)
