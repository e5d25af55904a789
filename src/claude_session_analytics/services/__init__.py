"""Services for Claude Session Analytics."""

from claude_session_analytics.services.event_bus import EventBus, StoreEvent
from claude_session_analytics.services.session_store import SessionStore
from claude_session_analytics.services.code_changes import (
    aggregate_code_changes,
    extract_code_changes,
)
from claude_session_analytics.services.efficiency import calculate_efficiency
from claude_session_analytics.services.turn_metrics import calculate_turn_metrics
from claude_session_analytics.services.config_manager import ConfigManager
from claude_session_analytics.services.signal_bridge import StoreSignalBridge

__all__ = [
    "EventBus",
    "StoreEvent",
    "SessionStore",
    "aggregate_code_changes",
    "extract_code_changes",
    "calculate_efficiency",
    "calculate_turn_metrics",
    "ConfigManager",
    "StoreSignalBridge",
]
