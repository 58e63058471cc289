"""Tests for HTML rendering."""

from pi_transcript.models import Conversation, SessionHeader, ToolCallBlock
from pi_transcript.parser import group_conversations, parse_entry
from pi_transcript.renderer import (
    generate_index_html,
    generate_page_html,
    make_msg_id,
    render_markdown,
    render_message,
    render_pagination,
    render_tool_call,
)


def _entry(message: dict, timestamp: str = "2026-01-01T00:00:00.000Z"):
    return parse_entry({"type": "message", "id": "x", "parentId": None, "timestamp": timestamp, "message": message})


class TestMakeMsgId:
    def test_replaces_separators(self):
        assert make_msg_id("2026-01-01T00:00:00.000Z") == "msg-2026-01-01T00-00-00-000Z"

    def test_empty(self):
        assert make_msg_id("") == "msg-"


class TestRenderMessage:
    def test_user_message_escaped(self):
        html = render_message(_entry({"role": "user", "content": [{"type": "text", "text": "<b>hi</b>"}]}))
        assert 'class="message user"' in html
        assert "&lt;b&gt;hi&lt;/b&gt;" in html
        assert "<b>hi</b>" not in html

    def test_assistant_meta(self):
        html = render_message(
            _entry(
                {
                    "role": "assistant",
                    "content": [{"type": "text", "text": "done"}],
                    "model": "m1",
                    "stopReason": "length",
                    "usage": {"cost": {"total": 0.5}},
                }
            )
        )
        assert "m1 · $0.50 · length" in html

    def test_assistant_stop_reason_hidden_when_stop(self):
        html = render_message(
            _entry({"role": "assistant", "content": [{"type": "text", "text": "ok"}], "stopReason": "stop"})
        )
        assert 'class="meta"' not in html

    def test_tool_call_block(self):
        html = render_message(
            _entry(
                {
                    "role": "assistant",
                    "content": [{"type": "toolCall", "id": "c1", "name": "bash", "arguments": {"command": "ls -la"}}],
                }
            )
        )
        assert "bash" in html
        assert "ls -la" in html

    def test_unknown_block_fallback(self):
        html = render_message(_entry({"role": "assistant", "content": [{"type": "widget", "size": 3}]}))
        assert "widget" in html

    def test_tool_result_error(self):
        html = render_message(
            _entry({"role": "toolResult", "toolCallId": "c1", "toolName": "bash", "content": "boom", "isError": True})
        )
        assert "tool-error" in html
        assert "Tool: bash" in html
        assert "boom" in html

    def test_empty_message_renders_nothing(self):
        assert render_message(_entry({"role": "assistant", "content": []})) == ""
        assert render_message(_entry({"role": "user", "content": []})) == ""

    def test_side_entries(self):
        model = parse_entry({"type": "model_change", "id": "m", "timestamp": "t", "provider": "p", "modelId": "x"})
        level = parse_entry({"type": "thinking_level_change", "id": "l", "timestamp": "t", "thinkingLevel": "low"})
        unknown = parse_entry({"type": "other"})

        assert "p/x" in render_message(model)
        assert "low" in render_message(level)
        assert render_message(unknown) == ""


    def test_string_user_content(self):
        html = render_message(_entry({"role": "user", "content": "plain **prompt**"}))
        assert 'class="user-content"' in html
        assert "<strong>prompt</strong>" in html

    def test_string_assistant_content(self):
        html = render_message(_entry({"role": "assistant", "content": "answer"}))
        assert 'class="assistant-text"' in html
        assert "answer" in html

    def test_blank_string_content_renders_nothing(self):
        assert render_message(_entry({"role": "user", "content": "   "})) == ""

    def test_thinking_rendered_as_markdown(self):
        html = render_message(_entry({"role": "assistant", "content": [{"type": "thinking", "thinking": "use `grep`"}]}))
        assert 'class="thinking"' in html
        assert "<code>grep</code>" in html

    def test_tool_result_is_collapsible(self):
        html = render_message(_entry({"role": "toolResult", "toolCallId": "c1", "toolName": "read", "content": "x"}))
        assert 'class="truncatable"' in html
        assert "Show more" in html


class TestRenderMarkdown:
    def test_fenced_code(self):
        html = render_markdown("Run this:\n\n```python\nprint('<hi>')\n```")
        assert "<pre><code" in html
        assert "print(&#x27;&lt;hi&gt;&#x27;)" in html or "print('&lt;hi&gt;')" in html

    def test_emphasis_and_lists(self):
        html = render_markdown("*one*\n\n- a\n- b")
        assert "<em>one</em>" in html
        assert "<li>a</li>" in html

    def test_raw_html_block_escaped(self):
        html = render_markdown("<script>alert(1)</script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_inline_html_escaped(self):
        html = render_markdown("a <img src=x onerror=alert(1)> b")
        assert "<img" not in html
        assert "&lt;img" in html

    def test_code_not_double_escaped(self):
        html = render_markdown("`a < b`")
        assert "<code>a &lt; b</code>" in html

    def test_empty(self):
        assert render_markdown("") == ""


def _call(name, **arguments) -> ToolCallBlock:
    return ToolCallBlock(id="c1", name=name, arguments=arguments)


class TestRenderToolCall:
    def test_bash(self):
        html = render_tool_call(_call("bash", command="rm -rf <tmp>"))
        assert 'class="bash-command"' in html
        assert "rm -rf &lt;tmp&gt;" in html
        assert 'class="truncatable"' in html

    def test_bash_capitalized(self):
        assert 'class="bash-command"' in render_tool_call(_call("Bash", command="ls"))

    def test_write(self):
        html = render_tool_call(_call("write", path="/src/app/main.py", content="print(1)"))
        assert "write-tool" in html
        assert '<span class="file-tool-path">main.py</span>' in html
        assert "/src/app/main.py" in html
        assert "print(1)" in html

    def test_write_file_path_key(self):
        html = render_tool_call(_call("Write", file_path="/a/b.txt", content="x"))
        assert '<span class="file-tool-path">b.txt</span>' in html

    def test_edit(self):
        html = render_tool_call(_call("edit", path="/a/b.py", oldText="old line", newText="new line"))
        assert "edit-old" in html
        assert "old line" in html
        assert "edit-new" in html
        assert "new line" in html

    def test_edit_alternate_keys(self):
        html = render_tool_call(_call("Edit", file_path="/a/b.py", old_string="before", new_string="after"))
        assert "before" in html
        assert "after" in html

    def test_read_with_range(self):
        html = render_tool_call(_call("read", path="/a/b.py", offset=10, limit=20))
        assert "read-tool" in html
        assert "offset=10 limit=20" in html
        assert "truncatable" not in html

    def test_read_without_path(self):
        assert "Unknown file" in render_tool_call(_call("Read"))

    def test_ask(self):
        questions = [{"prompt": "Pick one", "options": [{"label": "Yes"}, {"value": "no"}]}]
        html = render_tool_call(_call("ask", questions=questions))
        assert "<strong>Pick one</strong>" in html
        assert "<li>Yes</li>" in html
        assert "<li>no</li>" in html

    def test_ask_with_malformed_questions(self):
        html = render_tool_call(_call("ask", questions="nope"))
        assert "ask-tool" in html

    def test_generic_falls_back_to_json(self):
        html = render_tool_call(_call("grep", pattern="<x>"))
        assert "grep" in html
        assert "&quot;pattern&quot;: &quot;&lt;x&gt;&quot;" in html

    def test_nameless_call(self):
        html = render_tool_call(ToolCallBlock(id="c1", name=None, arguments={}))
        assert "Unknown" in html


class TestRenderPagination:
    def test_single_page(self):
        assert "page-" not in render_pagination(1, 1)

    def test_middle_page(self):
        html = render_pagination(2, 3)
        assert 'href="page-001.html">&larr; Prev' in html
        assert 'href="page-003.html">Next &rarr;' in html
        assert '<span class="current">2</span>' in html

    def test_index(self):
        html = render_pagination(0, 2, is_index=True)
        assert '<span class="current">Index</span>' in html
        assert 'href="page-001.html">Next &rarr;' in html


class TestGeneratePages:
    def _conversations(self, count: int) -> list[Conversation]:
        entries = []
        for i in range(count):
            entries.append(
                _entry({"role": "user", "content": [{"type": "text", "text": f"prompt {i}"}]}, f"2026-01-01T00:00:{i:02d}Z")
            )
            entries.append(
                _entry(
                    {
                        "role": "assistant",
                        "content": [{"type": "toolCall", "id": "c", "name": "bash", "arguments": {}}],
                        "model": "m1",
                        "usage": {"cost": {"total": 0.25}},
                    }
                )
            )
        return group_conversations(entries)

    def test_page_html(self):
        html = generate_page_html(1, 2, self._conversations(2), "user/proj")
        assert html.startswith("<!DOCTYPE html>")
        assert "<script>" in html
        assert "expand-btn" in html
        assert "user/proj" in html
        assert "page 1/2" in html
        assert "prompt 1" in html

    def test_index_links_to_owning_page(self):
        convs = self._conversations(6)
        html = generate_index_html(convs, 2, None, None)

        assert 'href="page-001.html#msg-2026-01-01T00-00-00Z"' in html
        assert 'href="page-002.html#msg-2026-01-01T00-00-05Z"' in html
        assert "#6" in html

    def test_index_totals_and_header(self):
        header = SessionHeader(id="sess-9", timestamp="2026-01-01T00:00:00Z", cwd="/home/user/proj")
        html = generate_index_html(self._conversations(2), 1, header, "user/proj")

        assert "2 prompts · 4 messages · 2 tool calls · total cost: $0.50 · 1 pages" in html
        assert "1 bash · m1 · $0.25" in html
        assert "sess-9" in html
        assert "/home/user/proj" in html

    def test_index_empty(self):
        html = generate_index_html([], 1, None, None)
        assert "0 prompts" in html
        assert "total cost" not in html
