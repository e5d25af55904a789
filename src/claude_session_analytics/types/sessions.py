"""Session, turn, and tool-level record types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ChangeType(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @property
    def total(self) -> int:
        return (self.input_tokens + self.output_tokens +
                self.cache_creation_input_tokens + self.cache_read_input_tokens)


@dataclass
class ToolUse:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)
    result: Optional[str] = None
    is_error: bool = False
    duration_ms: int = 0


@dataclass
class CodeChange:
    """Normalized effect of one tool invocation on one file."""
    file_path: str
    type: ChangeType
    lines_added: int = 0
    lines_removed: int = 0
    extension: str = "unknown"


@dataclass
class Turn:
    """One user prompt + assistant response cycle."""
    id: str
    session_id: str
    started_at: datetime
    ended_at: datetime
    turn_number: int = 0
    duration_ms: int = 0
    usage: TokenUsage = field(default_factory=TokenUsage)
    tool_uses: list[ToolUse] = field(default_factory=list)
    code_changes: list[CodeChange] = field(default_factory=list)
    model: str = ""
    user_message: str = ""
    assistant_message: str = ""


@dataclass
class Session:
    id: str
    started_at: datetime
    last_activity_at: datetime
    project_path: str = ""
    project_name: str = "Unknown Project"
    branch: Optional[str] = None
    model: str = "unknown"
    turn_count: int = 0
    is_active: bool = True
