"""JSON snapshots of store records for export tooling."""

from typing import Any

import orjson

from claude_session_analytics.services.efficiency import (
    efficiency_description,
    efficiency_grade,
    efficiency_recommendations,
)
from claude_session_analytics.services.session_store import SessionStore


def dumps(obj: Any, indent: bool = False) -> bytes:
    """Serialize dataclasses, datetimes and enums to JSON bytes."""
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(obj, option=option)


def to_jsonable(obj: Any) -> Any:
    """Convert records to plain dicts/lists/str/numbers."""
    return orjson.loads(dumps(obj))


def session_snapshot(store: SessionStore, session_id: str) -> dict | None:
    """Point-in-time export of a session, its metrics and per-turn metrics."""
    session = store.get_session(session_id)
    metrics = store.get_session_metrics(session_id)
    components = store.get_efficiency_components(session_id)
    if session is None or metrics is None or components is None:
        return None

    return to_jsonable({
        "session": session,
        "metrics": metrics,
        "efficiency": {
            "components": components,
            "grade": efficiency_grade(metrics.efficiency_score),
            "description": efficiency_description(metrics.efficiency_score),
            "recommendations": efficiency_recommendations(components),
        },
        "turns": store.get_session_turn_metrics(session_id),
    })
