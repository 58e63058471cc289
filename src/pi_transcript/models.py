"""Data models for pi session logs and grouped conversations."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

EMPTY_PROMPT = "(empty prompt)"
NO_SUMMARY = "(no summary)"


@dataclass
class SessionHeader:
    """The `session` record at the top of a log file."""

    id: str
    timestamp: str
    cwd: str
    version: int = 0


# Content blocks


@dataclass
class TextBlock:
    text: str


@dataclass
class ThinkingBlock:
    thinking: str
    signature: Optional[str] = None


@dataclass
class ToolCallBlock:
    id: str
    name: Optional[str]  # None when the block carries no name key
    arguments: dict = field(default_factory=dict)


@dataclass
class ImageBlock:
    media_type: Optional[str] = None
    data: Optional[str] = None


@dataclass
class UnknownBlock:
    """A block kind this package does not know about, kept as-is."""

    type: str
    raw: dict = field(default_factory=dict)


ContentBlock = Union[TextBlock, ThinkingBlock, ToolCallBlock, ImageBlock, UnknownBlock]


# Usage


@dataclass
class CostBreakdown:
    input: float = 0.0
    output: float = 0.0
    cache_read: float = 0.0
    cache_write: float = 0.0
    total: float = 0.0


@dataclass
class Usage:
    input: int = 0
    output: int = 0
    cache_read: int = 0
    cache_write: int = 0
    total_tokens: int = 0
    cost: CostBreakdown = field(default_factory=CostBreakdown)


# Messages


@dataclass
class UserMessage:
    content: Union[str, list[ContentBlock]] = field(default_factory=list)
    timestamp: Optional[int] = None


@dataclass
class AssistantMessage:
    content: Union[str, list[ContentBlock]] = field(default_factory=list)
    model: Optional[str] = None
    provider: Optional[str] = None
    api: Optional[str] = None
    usage: Optional[Usage] = None
    stop_reason: Optional[str] = None
    timestamp: Optional[int] = None


@dataclass
class ToolResultMessage:
    tool_call_id: str
    tool_name: str
    content: Union[str, list[ContentBlock]] = ""
    is_error: bool = False
    timestamp: Optional[int] = None


@dataclass
class UnknownMessage:
    """A message whose role is missing or not user, assistant or toolResult."""

    role: str
    raw: dict = field(default_factory=dict)


Message = Union[UserMessage, AssistantMessage, ToolResultMessage, UnknownMessage]


# Entries


@dataclass
class ModelChangeEntry:
    id: str
    parent_id: Optional[str]
    timestamp: str
    provider: str = ""
    model_id: str = ""


@dataclass
class ThinkingLevelChangeEntry:
    id: str
    parent_id: Optional[str]
    timestamp: str
    thinking_level: str = ""


@dataclass
class MessageEntry:
    id: str
    parent_id: Optional[str]
    timestamp: str
    message: Message


@dataclass
class UnknownEntry:
    """Any record type other than session/model_change/thinking_level_change/message."""

    type: str
    raw: dict = field(default_factory=dict)


Entry = Union[ModelChangeEntry, ThinkingLevelChangeEntry, MessageEntry, UnknownEntry]


@dataclass
class ParsedSession:
    """Header (if any) plus every other record in file order."""

    header: Optional[SessionHeader]
    entries: list[Entry] = field(default_factory=list)


@dataclass
class Conversation:
    """One user prompt and everything that followed until the next prompt."""

    user_text: str
    timestamp: str
    messages: list[Entry] = field(default_factory=list)
    model: Optional[str] = None
    total_cost: float = 0.0
    tool_counts: dict[str, int] = field(default_factory=dict)

    @property
    def tool_call_count(self) -> int:
        return sum(self.tool_counts.values())


# Discovery and generation


@dataclass
class SessionInfo:
    """A session file found on disk."""

    path: Path
    filename: str
    project: str
    mtime: datetime
    size: int
    summary: str


@dataclass
class ProjectInfo:
    project: str
    project_folder: str
    sessions: list[SessionInfo] = field(default_factory=list)


@dataclass
class GenerationResult:
    pages: int
    prompts: int
    output_dir: Path
    project_name: Optional[str] = None


