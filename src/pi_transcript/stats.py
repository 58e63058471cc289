"""Aggregate statistics over grouped conversations."""

from dataclasses import dataclass

from .models import Conversation


@dataclass
class TranscriptStats:
    """Totals shown on a transcript's index page."""

    conversations: int = 0
    messages: int = 0
    tool_calls: int = 0
    total_cost: float = 0.0


def compute_stats(conversations: list[Conversation]) -> TranscriptStats:
    """Sum message, tool call and cost totals across conversations.

    The message total counts every entry attached to a conversation,
    including model and thinking-level switches.
    """
    return TranscriptStats(
        conversations=len(conversations),
        messages=sum(len(c.messages) for c in conversations),
        tool_calls=sum(c.tool_call_count for c in conversations),
        total_cost=sum(c.total_cost for c in conversations),
    )


def format_cost(cost: float) -> str:
    """Format a dollar cost, with extra precision below one cent."""
    if not cost:
        return ""
    if cost < 0.01:
        return f"${cost:.4f}"
    return f"${cost:.2f}"


def format_tool_stats(tool_counts: dict[str, int]) -> str:
    """Format tool counts as '3 bash · 1 read', most used first."""
    ordered = sorted(tool_counts.items(), key=lambda item: item[1], reverse=True)
    return " · ".join(f"{count} {name}" for name, count in ordered)
