"""Split conversations into fixed-size transcript pages."""

import math
from dataclasses import dataclass, field

from .models import Conversation

PROMPTS_PER_PAGE = 5


@dataclass
class Page:
    """One transcript page; `number` is 1-indexed."""

    number: int
    start: int
    end: int
    conversations: list[Conversation] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return page_filename(self.number)


def total_pages(count: int, page_size: int = PROMPTS_PER_PAGE) -> int:
    """Number of pages for `count` conversations; never less than one."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(1, math.ceil(count / page_size))


def page_range(page: int, count: int, page_size: int = PROMPTS_PER_PAGE) -> tuple[int, int]:
    """Half-open index range [start, end) owned by a 1-indexed page."""
    if page < 1 or page > total_pages(count, page_size):
        raise ValueError(f"page {page} out of range")
    start = (page - 1) * page_size
    return start, min(start + page_size, count)


def page_for_index(index: int, page_size: int = PROMPTS_PER_PAGE) -> int:
    """The 1-indexed page that holds the conversation at `index`."""
    return index // page_size + 1


def paginate(conversations: list[Conversation], page_size: int = PROMPTS_PER_PAGE) -> list[Page]:
    """Partition conversations into contiguous pages, preserving order."""
    count = len(conversations)
    pages = []
    for number in range(1, total_pages(count, page_size) + 1):
        start, end = page_range(number, count, page_size)
        pages.append(Page(number=number, start=start, end=end, conversations=conversations[start:end]))
    return pages


def page_filename(page: int) -> str:
    return f"page-{page:03d}.html"
