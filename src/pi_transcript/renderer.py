"""Render grouped conversations as HTML transcript pages."""

import json
from html import escape
from typing import Callable, Optional, Union

import markdown
from markdown.extensions import Extension

from .models import (
    AssistantMessage,
    ContentBlock,
    Conversation,
    Entry,
    ImageBlock,
    ModelChangeEntry,
    SessionHeader,
    TextBlock,
    ThinkingBlock,
    ThinkingLevelChangeEntry,
    ToolCallBlock,
    ToolResultMessage,
    UnknownBlock,
    UnknownEntry,
    UserMessage,
)
from .pagination import page_filename, page_for_index
from .stats import compute_stats, format_cost, format_tool_stats

CSS = """
:root { --bg: #0d1117; --card: #161b22; --border: #30363d; --text: #e6edf3; --muted: #8b949e;
  --user: #58a6ff; --assistant: #8b949e; --thinking: #d29922; --tool: #bc8cff;
  --result: #3fb950; --error: #f85149; }
body { background: var(--bg); color: var(--text); font-family: -apple-system, sans-serif; margin: 0; }
.container { max-width: 860px; margin: 0 auto; padding: 16px; }
a { color: var(--user); }
pre { white-space: pre-wrap; word-break: break-word; background: var(--bg); padding: 8px; border-radius: 4px; }
table { border-collapse: collapse; } td, th { border: 1px solid var(--border); padding: 4px 8px; }
.message { background: var(--card); border-left: 4px solid var(--border); margin: 12px 0; padding: 8px 12px; border-radius: 6px; }
.message.user { border-color: var(--user); }
.message.assistant { border-color: var(--assistant); }
.message.tool-reply { border-color: var(--result); }
.message.tool-reply.tool-error { border-color: var(--error); }
.message-header { display: flex; gap: 8px; color: var(--muted); font-size: 0.85em; }
.role-label { font-weight: bold; color: var(--text); }
.timestamp-link { margin-left: auto; color: var(--muted); }
.thinking { border-left: 3px solid var(--thinking); padding-left: 8px; color: var(--thinking); }
.tool-use, .file-tool { border-left: 3px solid var(--tool); padding-left: 8px; margin: 6px 0; }
.tool-header { font-weight: bold; }
.file-tool-fullpath, .tool-extra { color: var(--muted); font-size: 0.8em; margin-left: 6px; }
.edit-old pre { border-left: 3px solid var(--error); }
.edit-new pre { border-left: 3px solid var(--result); }
.truncatable { position: relative; }
.truncatable.truncated .truncatable-content { max-height: 200px; overflow: hidden; }
.expand-btn { display: none; width: 100%; margin-top: 4px; background: var(--card); color: var(--muted); border: 1px solid var(--border); border-radius: 6px; cursor: pointer; }
.truncatable.truncated .expand-btn, .truncatable.expanded .expand-btn { display: block; }
.notice { color: var(--muted); font-size: 0.8em; margin: 4px 0; }
.pagination { display: flex; gap: 8px; margin: 16px 0; flex-wrap: wrap; }
.pagination .disabled { color: var(--muted); }
.index-item { background: var(--card); margin: 12px 0; padding: 8px 12px; border-radius: 6px; }
.index-item a { color: inherit; text-decoration: none; }
.index-item-stats, .session-info, .meta { color: var(--muted); font-size: 0.85em; }
"""

# Collapses tall tool output behind a "Show more" button
JS = """
document.querySelectorAll('.truncatable').forEach(function(w) {
  var c = w.querySelector('.truncatable-content');
  var b = w.querySelector('.expand-btn');
  if (!c || !b || c.scrollHeight <= 250) return;
  w.classList.add('truncated');
  b.addEventListener('click', function() {
    var open = w.classList.toggle('expanded');
    w.classList.toggle('truncated', !open);
    b.textContent = open ? 'Show less' : 'Show more';
  });
});
"""


class EscapeHtmlExtension(Extension):
    """Show raw HTML in transcript text as literal text instead of markup."""

    def extendMarkdown(self, md):
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")


def render_markdown(text: str) -> str:
    """Render markdown text to HTML; embedded HTML is escaped."""
    if not text:
        return ""
    return markdown.markdown(
        text,
        extensions=["fenced_code", "tables", "nl2br", EscapeHtmlExtension()],
    )


def make_msg_id(timestamp: Optional[str]) -> str:
    """Anchor id for a message, derived from its timestamp."""
    return "msg-" + (timestamp or "").replace(":", "-").replace(".", "-")


def truncatable(inner_html: str) -> str:
    return (
        f'<div class="truncatable"><div class="truncatable-content">{inner_html}</div>'
        '<button class="expand-btn">Show more</button></div>'
    )


def _arg_text(arguments: dict, *keys: str) -> str:
    """First string value among `keys`."""
    for key in keys:
        value = arguments.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _file_path(arguments: dict) -> tuple[str, str]:
    path = _arg_text(arguments, "path", "file_path") or "Unknown file"
    return path, path.rsplit("/", 1)[-1] or path


def _tool_header(css_class: str, block: ToolCallBlock, icon: str, label: str, extra: str = "") -> str:
    return (
        f'<div class="{css_class}" data-tool-id="{escape(block.id)}">\n'
        f'<div class="tool-header"><span class="tool-icon">{icon}</span> {escape(label)}{extra}</div>\n'
    )


def render_bash_call(block: ToolCallBlock) -> str:
    command = _arg_text(block.arguments, "command")
    return (
        _tool_header("tool-use bash-tool", block, "$", "Bash")
        + truncatable(f'<pre class="bash-command">{escape(command)}</pre>')
        + "</div>"
    )


def render_write_call(block: ToolCallBlock) -> str:
    path, filename = _file_path(block.arguments)
    content = _arg_text(block.arguments, "content")
    path_html = f' <span class="file-tool-path">{escape(filename)}</span>'
    return (
        _tool_header("file-tool write-tool", block, "&#128221;", "Write", path_html)
        + f'<div class="file-tool-fullpath">{escape(path)}</div>\n'
        + truncatable(f'<pre class="file-content">{escape(content)}</pre>')
        + "</div>"
    )


def render_edit_call(block: ToolCallBlock) -> str:
    path, filename = _file_path(block.arguments)
    old_text = _arg_text(block.arguments, "oldText", "old_string")
    new_text = _arg_text(block.arguments, "newText", "new_string")
    path_html = f' <span class="file-tool-path">{escape(filename)}</span>'
    sections = (
        f'<div class="edit-section edit-old"><div class="edit-label">&minus;</div>'
        f'<pre class="edit-content">{escape(old_text)}</pre></div>\n'
        f'<div class="edit-section edit-new"><div class="edit-label">+</div>'
        f'<pre class="edit-content">{escape(new_text)}</pre></div>'
    )
    return (
        _tool_header("file-tool edit-tool", block, "&#9999;", "Edit", path_html)
        + f'<div class="file-tool-fullpath">{escape(path)}</div>\n'
        + truncatable(sections)
        + "</div>"
    )


def render_read_call(block: ToolCallBlock) -> str:
    path, filename = _file_path(block.arguments)
    extra = ""
    for key in ("offset", "limit"):
        if block.arguments.get(key):
            extra += f" {key}={block.arguments[key]}"
    header_extra = f' <span class="file-tool-path">{escape(filename)}</span>'
    if extra:
        header_extra += f'<span class="tool-extra">{escape(extra)}</span>'
    return (
        _tool_header("tool-use read-tool", block, "&#128214;", "Read", header_extra)
        + f'<div class="file-tool-fullpath">{escape(path)}</div></div>'
    )


def render_ask_call(block: ToolCallBlock) -> str:
    parts = [_tool_header("tool-use ask-tool", block, "?", "Ask")]
    questions = block.arguments.get("questions")
    for question in questions if isinstance(questions, list) else []:
        if not isinstance(question, dict):
            continue
        parts.append(f'<div class="ask-question"><strong>{escape(_arg_text(question, "prompt"))}</strong>')
        options = question.get("options")
        if isinstance(options, list):
            parts.append('<ul class="ask-options">')
            for option in options:
                if isinstance(option, dict):
                    parts.append(f"<li>{escape(_arg_text(option, 'label', 'value'))}</li>")
            parts.append("</ul>")
        parts.append("</div>")
    parts.append("</div>")
    return "".join(parts)


def render_generic_call(block: ToolCallBlock) -> str:
    arguments = json.dumps(block.arguments, indent=2, ensure_ascii=False)
    return (
        _tool_header("tool-use", block, "&#9881;", block.name or "Unknown")
        + truncatable(f'<pre class="json">{escape(arguments)}</pre>')
        + "</div>"
    )


TOOL_RENDERERS: dict[str, Callable[[ToolCallBlock], str]] = {
    "bash": render_bash_call,
    "Bash": render_bash_call,
    "write": render_write_call,
    "Write": render_write_call,
    "edit": render_edit_call,
    "Edit": render_edit_call,
    "read": render_read_call,
    "Read": render_read_call,
    "ask": render_ask_call,
}


def render_tool_call(block: ToolCallBlock) -> str:
    renderer = TOOL_RENDERERS.get(block.name or "", render_generic_call)
    return renderer(block)


def render_content_block(block: ContentBlock, role: str) -> str:
    if isinstance(block, TextBlock):
        css_class = "user-content" if role == "user" else "assistant-text"
        return f'<div class="{css_class}">{render_markdown(block.text)}</div>'
    if isinstance(block, ThinkingBlock):
        return f'<div class="thinking"><div class="thinking-label">Thinking</div>{render_markdown(block.thinking)}</div>'
    if isinstance(block, ToolCallBlock):
        return render_tool_call(block)
    if isinstance(block, ImageBlock):
        if not block.data:
            return '<div class="image">[image]</div>'
        media_type = block.media_type or "image/png"
        return f'<img class="image" src="data:{escape(media_type)};base64,{escape(block.data)}" alt="image">'
    if isinstance(block, UnknownBlock):
        return f'<pre class="json">{escape(json.dumps(block.raw, indent=2, ensure_ascii=False))}</pre>'
    return ""


def render_content_blocks(content: Union[str, list[ContentBlock]], role: str) -> str:
    if isinstance(content, str):
        return render_content_block(TextBlock(text=content), role) if content.strip() else ""
    return "".join(render_content_block(block, role) for block in content)


def render_tool_result(message: ToolResultMessage) -> str:
    if isinstance(message.content, str):
        content_html = f"<pre>{escape(message.content)}</pre>" if message.content else ""
    else:
        parts = []
        for block in message.content:
            if isinstance(block, TextBlock):
                parts.append(f"<pre>{escape(block.text)}</pre>")
            elif isinstance(block, ImageBlock):
                parts.append(render_content_block(block, "toolResult"))
        content_html = "".join(parts)
    if not content_html:
        return ""
    return f'<div class="tool-result">{truncatable(content_html)}</div>'


def _message_html(css_class: str, label: str, timestamp: str, content_html: str, meta: str = "") -> str:
    msg_id = make_msg_id(timestamp)
    meta_html = f'<span class="meta">{escape(meta)}</span>' if meta else ""
    return (
        f'<div class="message {css_class}" id="{escape(msg_id)}">\n'
        f'<div class="message-header"><span class="role-label">{escape(label)}</span>{meta_html}'
        f'<a href="#{escape(msg_id)}" class="timestamp-link"><time datetime="{escape(timestamp)}">'
        f"{escape(timestamp)}</time></a></div>\n"
        f'<div class="message-content">{content_html}</div></div>\n'
    )


def render_message(entry: Entry) -> str:
    """Render a single entry to an HTML fragment ("" when there is nothing to show)."""
    if isinstance(entry, ModelChangeEntry):
        return f'<div class="notice">Model: {escape(entry.provider)}/{escape(entry.model_id)}</div>\n'
    if isinstance(entry, ThinkingLevelChangeEntry):
        return f'<div class="notice">Thinking level: {escape(entry.thinking_level)}</div>\n'
    if isinstance(entry, UnknownEntry):
        return ""

    message = entry.message
    if isinstance(message, UserMessage):
        content_html = render_content_blocks(message.content, "user")
        if not content_html.strip():
            return ""
        return _message_html("user", "User", entry.timestamp, content_html)

    if isinstance(message, AssistantMessage):
        content_html = render_content_blocks(message.content, "assistant")
        if not content_html.strip():
            return ""
        meta_parts = []
        if message.model:
            meta_parts.append(message.model)
        if message.usage is not None and message.usage.cost.total:
            meta_parts.append(format_cost(message.usage.cost.total))
        if message.stop_reason and message.stop_reason != "stop":
            meta_parts.append(message.stop_reason)
        return _message_html("assistant", "Assistant", entry.timestamp, content_html, " · ".join(meta_parts))

    if isinstance(message, ToolResultMessage):
        content_html = render_tool_result(message)
        if not content_html.strip():
            return ""
        css_class = "tool-reply tool-error" if message.is_error else "tool-reply"
        return _message_html(css_class, f"Tool: {message.tool_name}", entry.timestamp, content_html)

    # UnknownMessage
    return ""


def render_pagination(current_page: int, total_pages: int, is_index: bool = False) -> str:
    """Navigation bar; `current_page` is ignored on the index page."""
    if total_pages <= 1 and not is_index:
        return '<div class="pagination"><a href="index.html">Index</a></div>'

    parts = ['<div class="pagination">']
    if is_index:
        parts.append('<span class="current">Index</span>')
        parts.append('<span class="disabled">&larr; Prev</span>')
    else:
        parts.append('<a href="index.html">Index</a>')
        if current_page > 1:
            parts.append(f'<a href="{page_filename(current_page - 1)}">&larr; Prev</a>')
        else:
            parts.append('<span class="disabled">&larr; Prev</span>')

    for page in range(1, total_pages + 1):
        if not is_index and page == current_page:
            parts.append(f'<span class="current">{page}</span>')
        else:
            parts.append(f'<a href="{page_filename(page)}">{page}</a>')

    if is_index:
        parts.append(f'<a href="{page_filename(1)}">Next &rarr;</a>')
    elif current_page < total_pages:
        parts.append(f'<a href="{page_filename(current_page + 1)}">Next &rarr;</a>')
    else:
        parts.append('<span class="disabled">Next &rarr;</span>')
    parts.append("</div>")
    return "".join(parts)


def _document(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>{title}</title>\n<style>{CSS}</style>\n</head>\n"
        f'<body>\n<div class="container">\n{body}</div>\n<script>{JS}</script>\n</body>\n</html>\n'
    )


def generate_page_html(
    page_num: int,
    total_pages: int,
    conversations: list[Conversation],
    project_name: Optional[str],
) -> str:
    """Render one transcript page holding the given conversations."""
    messages_html = "".join(
        render_message(entry) for conv in conversations for entry in conv.messages
    )
    pagination = render_pagination(page_num, total_pages)
    title_project = f" – {escape(project_name)}" if project_name else ""

    lines = [
        f'<h1><a href="index.html">pi transcript{title_project}</a> – page {page_num}/{total_pages}</h1>',
        pagination,
        messages_html,
        pagination,
        "",
    ]
    return _document(f"pi transcript{title_project} – page {page_num}", "\n".join(lines))


def _render_index_item(number: int, conv: Conversation) -> str:
    link = f"{page_filename(page_for_index(number - 1))}#{make_msg_id(conv.timestamp)}"
    stat_parts = []
    tool_stats = format_tool_stats(conv.tool_counts)
    if tool_stats:
        stat_parts.append(tool_stats)
    if conv.model:
        stat_parts.append(conv.model)
    if conv.total_cost:
        stat_parts.append(format_cost(conv.total_cost))
    stats_html = f'<div class="index-item-stats">{escape(" · ".join(stat_parts))}</div>' if stat_parts else ""

    return (
        f'<div class="index-item"><a href="{escape(link)}">\n'
        f'<div class="index-item-header"><span class="index-item-number">#{number}</span> '
        f'<time datetime="{escape(conv.timestamp)}">{escape(conv.timestamp)}</time></div>\n'
        f'<div class="index-item-content">{render_markdown(conv.user_text)}</div></a>{stats_html}</div>'
    )


def render_session_info(header: Optional[SessionHeader]) -> str:
    if header is None:
        return ""
    parts = []
    if header.cwd:
        parts.append(f"<strong>cwd:</strong> {escape(header.cwd)}")
    if header.timestamp:
        parts.append(f'<strong>started:</strong> <time datetime="{escape(header.timestamp)}">{escape(header.timestamp)}</time>')
    if header.id:
        parts.append(f"<strong>session:</strong> {escape(header.id)}")
    if not parts:
        return ""
    return f'<div class="session-info">{" · ".join(parts)}</div>'


def generate_index_html(
    conversations: list[Conversation],
    total_pages: int,
    header: Optional[SessionHeader],
    project_name: Optional[str],
) -> str:
    """Render the index page listing every prompt with its stats."""
    stats = compute_stats(conversations)
    meta_parts = [
        f"{stats.conversations} prompts",
        f"{stats.messages} messages",
        f"{stats.tool_calls} tool calls",
    ]
    if stats.total_cost:
        meta_parts.append(f"total cost: {format_cost(stats.total_cost)}")
    meta_parts.append(f"{total_pages} pages")

    pagination = render_pagination(0, total_pages, is_index=True)
    title_project = f" – {escape(project_name)}" if project_name else ""

    lines = [f"<h1>pi transcript{title_project}</h1>"]
    session_info = render_session_info(header)
    if session_info:
        lines.append(session_info)
    lines.append(pagination)
    lines.append(f'<p class="meta">{" · ".join(meta_parts)}</p>')
    for i, conv in enumerate(conversations, start=1):
        lines.append(_render_index_item(i, conv))
    lines.append(pagination)
    lines.append("")
    return _document(f"pi transcript{title_project} – Index", "\n".join(lines))
