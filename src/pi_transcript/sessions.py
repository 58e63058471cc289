"""Discover pi session files on disk."""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import NO_SUMMARY, ProjectInfo, SessionInfo
from .parser import extract_text_from_content, iter_records, truncate

SESSIONS_DIR_ENV = "PI_TRANSCRIPT_SESSIONS_DIR"
DEFAULT_SESSIONS_DIR = Path.home() / ".pi" / "agent" / "sessions"


def get_sessions_dir() -> Path:
    """Get the pi sessions directory from env or default."""
    raw = os.environ.get(SESSIONS_DIR_ENV)
    if raw:
        return Path(raw).expanduser()
    return DEFAULT_SESSIONS_DIR


def decode_folder_name(name: str) -> str:
    """Decode a project folder name back into a path.

    e.g., "--home-user-proj--" -> "/home/user/proj"
    """
    name = re.sub(r"^--", "/", name)
    name = re.sub(r"--$", "", name)
    return name.replace("-", "/")


def get_project_name(folder_name: str) -> str:
    """Short project name: the last two components of the decoded path."""
    parts = [p for p in decode_folder_name(folder_name).split("/") if p]
    if len(parts) >= 2:
        return "/".join(parts[-2:])
    if parts:
        return parts[-1]
    return folder_name


def quick_summary(file_path: Path, max_length: int = 100) -> str:
    """Peek at the first text block of the first user message."""
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return NO_SUMMARY

    for obj in iter_records(text):
        if obj.get("type") != "message":
            continue
        message = obj.get("message")
        if not isinstance(message, dict) or message.get("role") != "user":
            continue
        content = message.get("content")
        if isinstance(content, str):
            content = [{"type": "text", "text": content}]
        if not isinstance(content, list):
            continue
        for block in content:
            summary = extract_text_from_content([block])
            if summary:
                return truncate(summary, max_length)
    return NO_SUMMARY


def _session_info(file_path: Path, project: str) -> SessionInfo:
    stat = file_path.stat()
    return SessionInfo(
        path=file_path,
        filename=file_path.name,
        project=project,
        mtime=datetime.fromtimestamp(stat.st_mtime),
        size=stat.st_size,
        summary=quick_summary(file_path),
    )


def find_all_sessions(sessions_dir: Optional[Path] = None) -> list[ProjectInfo]:
    """Find all sessions grouped by project, newest first."""
    base = sessions_dir or get_sessions_dir()
    if not base.is_dir():
        return []

    projects = []
    for project_dir in base.iterdir():
        if not project_dir.is_dir():
            continue

        project = get_project_name(project_dir.name)
        sessions = []
        try:
            files = sorted(project_dir.glob("*.jsonl"))
        except OSError:
            continue
        for jsonl_file in files:
            try:
                sessions.append(_session_info(jsonl_file, project))
            except OSError:
                continue

        if not sessions:
            continue
        sessions.sort(key=lambda s: s.mtime, reverse=True)
        projects.append(ProjectInfo(project=project, project_folder=project_dir.name, sessions=sessions))

    projects.sort(key=lambda p: p.sessions[0].mtime, reverse=True)
    return projects


def find_recent_sessions(limit: int = 15, sessions_dir: Optional[Path] = None) -> list[SessionInfo]:
    """Find the most recent sessions across all projects."""
    sessions = [s for p in find_all_sessions(sessions_dir) for s in p.sessions]
    sessions.sort(key=lambda s: s.mtime, reverse=True)
    return sessions[:limit]


def format_size(size: int) -> str:
    kb = size / 1024
    if kb >= 1024:
        return f"{kb / 1024:.0f} MB"
    return f"{kb:.0f} KB"


def format_session_line(info: SessionInfo, summary_width: int) -> str:
    """Format a session as a compact single line for listings."""
    date = info.mtime.strftime("%Y-%m-%d %H:%M")
    size = format_size(info.size).rjust(7)
    project = info.project if len(info.project) <= 20 else info.project[:17] + "..."
    summary = " ".join(info.summary.split())
    summary = truncate(summary, summary_width)
    return f"{date}  {size}  {project.ljust(20)}  {summary}"
