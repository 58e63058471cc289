"""Generate an HTML transcript directory from a pi session file."""

import logging
from pathlib import Path
from typing import Optional

from .models import GenerationResult, SessionHeader
from .pagination import paginate
from .parser import group_conversations, parse_session_file
from .renderer import generate_index_html, generate_page_html
from .sessions import get_project_name

logger = logging.getLogger(__name__)


def derive_project_name(session_path: Path, header: Optional[SessionHeader]) -> Optional[str]:
    """Project name from the encoded parent folder, else from the header cwd."""
    parent_folder = session_path.parent.name
    if parent_folder.startswith("--"):
        return get_project_name(parent_folder)
    if header is not None and header.cwd:
        parts = [p for p in header.cwd.split("/") if p]
        return "/".join(parts[-2:]) or None
    return None


def generate_transcript(
    session_path: Path,
    output_dir: Path,
    project_name: Optional[str] = None,
) -> GenerationResult:
    """Write paginated transcript pages and an index for one session.

    Raises:
        OSError: if the session file cannot be read or the output written.
    """
    session_path = Path(session_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    parsed = parse_session_file(session_path)
    if not project_name:
        project_name = derive_project_name(session_path, parsed.header)

    conversations = group_conversations(parsed.entries)
    pages = paginate(conversations)

    for page in pages:
        html = generate_page_html(page.number, len(pages), page.conversations, project_name)
        (output_dir / page.filename).write_text(html, encoding="utf-8")

    index_html = generate_index_html(conversations, len(pages), parsed.header, project_name)
    (output_dir / "index.html").write_text(index_html, encoding="utf-8")

    logger.debug(
        "Wrote %d pages for %d conversations from %s", len(pages), len(conversations), session_path
    )
    return GenerationResult(
        pages=len(pages),
        prompts=len(conversations),
        output_dir=output_dir,
        project_name=project_name,
    )
