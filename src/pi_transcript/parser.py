"""Parse pi session JSONL files and group entries into conversations."""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from .models import (
    EMPTY_PROMPT,
    NO_SUMMARY,
    AssistantMessage,
    ContentBlock,
    Conversation,
    CostBreakdown,
    Entry,
    ImageBlock,
    Message,
    MessageEntry,
    ModelChangeEntry,
    ParsedSession,
    SessionHeader,
    TextBlock,
    ThinkingBlock,
    ThinkingLevelChangeEntry,
    ToolCallBlock,
    ToolResultMessage,
    UnknownBlock,
    UnknownEntry,
    UnknownMessage,
    Usage,
    UserMessage,
)

logger = logging.getLogger(__name__)


def iter_records(text: str) -> Iterator[dict]:
    """Yield each JSON object from JSONL text, skipping blank and malformed lines."""
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            yield obj


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def parse_content_block(block: dict) -> ContentBlock:
    """Convert a raw content block dict into a typed block."""
    block_type = block.get("type")
    if block_type == "text":
        return TextBlock(text=_text(block.get("text")))
    if block_type == "thinking":
        return ThinkingBlock(
            thinking=_text(block.get("thinking")),
            signature=block.get("thinkingSignature"),
        )
    if block_type == "toolCall":
        arguments = block.get("arguments")
        return ToolCallBlock(
            id=_text(block.get("id")),
            name=_text(block.get("name")) if "name" in block else None,
            arguments=arguments if isinstance(arguments, dict) else {},
        )
    if block_type == "image":
        source = block.get("source")
        if not isinstance(source, dict):
            source = {}
        return ImageBlock(
            media_type=_text(source.get("media_type")) or None,
            data=_text(source.get("data")) or None,
        )
    return UnknownBlock(type=str(block_type), raw=block)


def parse_content_blocks(content: Any) -> list[ContentBlock]:
    """Parse a content array; anything that is not a list yields no blocks."""
    if not isinstance(content, list):
        return []
    return [parse_content_block(block) for block in content if isinstance(block, dict)]


def parse_content(content: Any) -> Union[str, list[ContentBlock]]:
    """Keep string content as-is, otherwise parse it as a block list."""
    if isinstance(content, str):
        return content
    return parse_content_blocks(content)


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def parse_usage(usage: Any) -> Optional[Usage]:
    if not isinstance(usage, dict):
        return None
    cost = usage.get("cost")
    if not isinstance(cost, dict):
        cost = {}
    return Usage(
        input=_number(usage.get("input")),
        output=_number(usage.get("output")),
        cache_read=_number(usage.get("cacheRead")),
        cache_write=_number(usage.get("cacheWrite")),
        total_tokens=_number(usage.get("totalTokens")),
        cost=CostBreakdown(
            input=_number(cost.get("input")),
            output=_number(cost.get("output")),
            cache_read=_number(cost.get("cacheRead")),
            cache_write=_number(cost.get("cacheWrite")),
            total=_number(cost.get("total")),
        ),
    )


def parse_message(data: Any) -> Message:
    """Convert the `message` payload of a message record.

    Raises:
        ValueError: if the payload is not an object.
    """
    if not isinstance(data, dict):
        raise ValueError("message record has no payload")

    role = _text(data.get("role"))
    if role == "user":
        return UserMessage(
            content=parse_content(data.get("content")),
            timestamp=data.get("timestamp"),
        )
    if role == "assistant":
        return AssistantMessage(
            content=parse_content(data.get("content")),
            model=_text(data.get("model")) or None,
            provider=_text(data.get("provider")) or None,
            api=data.get("api"),
            usage=parse_usage(data.get("usage")),
            stop_reason=_text(data.get("stopReason")) or None,
            timestamp=data.get("timestamp"),
        )
    if role == "toolResult":
        return ToolResultMessage(
            tool_call_id=_text(data.get("toolCallId")),
            tool_name=_text(data.get("toolName")),
            content=parse_content(data.get("content", "")),
            is_error=bool(data.get("isError", False)),
            timestamp=data.get("timestamp"),
        )
    return UnknownMessage(role=role, raw=data)


def parse_header(record: dict) -> SessionHeader:
    return SessionHeader(
        id=_text(record.get("id")),
        timestamp=_text(record.get("timestamp")),
        cwd=_text(record.get("cwd")),
        version=record.get("version") or 0,
    )


def parse_entry(record: dict) -> Entry:
    """Convert a non-session record into a typed entry.

    Raises:
        ValueError: if the record is structurally invalid.
    """
    entry_type = record.get("type")
    if not isinstance(entry_type, str):
        raise ValueError("record has no type")

    if entry_type == "model_change":
        return ModelChangeEntry(
            id=_text(record.get("id")),
            parent_id=record.get("parentId"),
            timestamp=_text(record.get("timestamp")),
            provider=_text(record.get("provider")),
            model_id=_text(record.get("modelId")),
        )
    if entry_type == "thinking_level_change":
        return ThinkingLevelChangeEntry(
            id=_text(record.get("id")),
            parent_id=record.get("parentId"),
            timestamp=_text(record.get("timestamp")),
            thinking_level=_text(record.get("thinkingLevel")),
        )
    if entry_type == "message":
        return MessageEntry(
            id=_text(record.get("id")),
            parent_id=record.get("parentId"),
            timestamp=_text(record.get("timestamp")),
            message=parse_message(record.get("message")),
        )
    return UnknownEntry(type=entry_type, raw=record)


def parse_session_text(text: str) -> ParsedSession:
    """Parse the full text of a session log.

    Lines that are not valid records are dropped; the last `session`
    record provides the header.
    """
    header: Optional[SessionHeader] = None
    headers_seen = 0
    entries: list[Entry] = []
    dropped = 0

    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
            if not isinstance(record, dict):
                raise ValueError("record is not an object")
            if record.get("type") == "session":
                header = parse_header(record)
                headers_seen += 1
            else:
                entries.append(parse_entry(record))
        except (ValueError, TypeError, KeyError):
            # json.JSONDecodeError is a ValueError
            dropped += 1

    if headers_seen > 1:
        logger.warning("Found %d session headers, using the last one", headers_seen)
    if dropped:
        logger.debug("Dropped %d malformed lines", dropped)

    return ParsedSession(header=header, entries=entries)


def parse_session_file(file_path: Path) -> ParsedSession:
    """Read and parse a session log. OSError and UnicodeDecodeError propagate."""
    text = Path(file_path).read_text(encoding="utf-8")
    return parse_session_text(text)


def extract_text_from_content(content: Any) -> str:
    """Extract the plain text from a string or a list of content blocks.

    Text blocks are joined with a single space; everything else is ignored.
    Accepts typed blocks as well as raw block dicts.
    """
    if isinstance(content, str):
        return content.strip()
    if not isinstance(content, list):
        return ""
    texts = []
    for block in content:
        if isinstance(block, TextBlock):
            texts.append(block.text)
        elif isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str):
                texts.append(text)
    return " ".join(texts).strip()


def get_session_summary(entries: list[Entry], max_length: int = 120) -> str:
    """Return the text of the first non-empty user prompt, truncated."""
    for entry in entries:
        if not isinstance(entry, MessageEntry):
            continue
        if not isinstance(entry.message, UserMessage):
            continue
        text = extract_text_from_content(entry.message.content)
        if text:
            return truncate(text, max_length)
    return NO_SUMMARY


def truncate(text: str, max_length: int) -> str:
    if len(text) > max_length:
        return text[: max_length - 3] + "..."
    return text


def _start_conversation(entry: MessageEntry, message: UserMessage) -> Conversation:
    text = extract_text_from_content(message.content)
    return Conversation(
        user_text=text or EMPTY_PROMPT,
        timestamp=entry.timestamp,
        messages=[entry],
    )


def _add_assistant_message(current: Conversation, message: AssistantMessage) -> None:
    if message.model:
        current.model = message.model
    else:
        # keep the last known model
        pass

    if message.usage is not None and message.usage.cost.total:
        current.total_cost += message.usage.cost.total

    if isinstance(message.content, str):
        return
    for block in message.content:
        if isinstance(block, ToolCallBlock) and block.name is not None:
            name = block.name or "unknown"
            current.tool_counts[name] = current.tool_counts.get(name, 0) + 1


def _apply_entry(
    conversations: list[Conversation],
    current: Optional[Conversation],
    entry: Entry,
) -> Optional[Conversation]:
    """Fold one entry into the grouping state and return the new active conversation."""
    if isinstance(entry, (ModelChangeEntry, ThinkingLevelChangeEntry)):
        if current is not None:
            current.messages.append(entry)
        return current

    if isinstance(entry, UnknownEntry):
        return current

    message = entry.message
    if isinstance(message, UserMessage):
        if current is not None:
            conversations.append(current)
        return _start_conversation(entry, message)

    if current is None:
        # Nothing to attach to before the first user prompt
        return None

    current.messages.append(entry)
    if isinstance(message, AssistantMessage):
        _add_assistant_message(current, message)
    return current


def group_conversations(entries: list[Entry]) -> list[Conversation]:
    """Group entries into conversations, each starting at a user message."""
    conversations: list[Conversation] = []
    current: Optional[Conversation] = None

    for entry in entries:
        current = _apply_entry(conversations, current, entry)

    if current is not None:
        conversations.append(current)
    return conversations
