"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from pi_transcript.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.json"


def _write_jsonl(lines: list[dict], path: Path):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for obj in lines:
            f.write(json.dumps(obj) + "\n")


def _session(path: Path, prompt: str):
    _write_jsonl(
        [
            {"type": "session", "id": path.stem, "timestamp": "2026-01-01T00:00:00Z", "cwd": "/home/user/proj"},
            {
                "type": "message",
                "id": "u1",
                "parentId": None,
                "timestamp": "2026-01-01T00:00:01Z",
                "message": {"role": "user", "content": [{"type": "text", "text": prompt}]},
            },
            {
                "type": "message",
                "id": "a1",
                "parentId": "u1",
                "timestamp": "2026-01-01T00:00:02Z",
                "message": {
                    "role": "assistant",
                    "content": [{"type": "toolCall", "id": "c1", "name": "bash", "arguments": {}}],
                    "usage": {"cost": {"total": 0.25}},
                },
            },
        ],
        path,
    )


@pytest.fixture
def sessions_dir(tmp_path):
    base = tmp_path / "sessions"
    _session(base / "--home-user-proj--" / "first.jsonl", "hello there")
    return base


class TestCli:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Convert pi sessions to clean HTML transcripts" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_config_show(self, runner, config_path):
        result = runner.invoke(main, ["--config", str(config_path), "config", "--show"])
        assert result.exit_code == 0
        assert "Sessions dir:" in result.output
        assert "Output dir:" in result.output

    def test_config_save(self, runner, config_path, tmp_path):
        result = runner.invoke(
            main, ["--config", str(config_path), "config", "--sessions-dir", str(tmp_path / "s")]
        )
        assert result.exit_code == 0
        assert "Configuration saved." in result.output
        assert json.loads(config_path.read_text())["sessions_dir"] == str(tmp_path / "s")

    def test_list(self, runner, config_path, sessions_dir):
        result = runner.invoke(
            main, ["--config", str(config_path), "list", "--sessions-dir", str(sessions_dir)]
        )
        assert result.exit_code == 0
        assert " 1. " in result.output
        assert "user/proj" in result.output
        assert "hello there" in result.output

    def test_list_no_sessions(self, runner, config_path, tmp_path):
        result = runner.invoke(
            main, ["--config", str(config_path), "list", "--sessions-dir", str(tmp_path / "none")]
        )
        assert result.exit_code == 0
        assert "No pi sessions found" in result.output

    def test_generate_file(self, runner, config_path, sessions_dir, tmp_path):
        session = sessions_dir / "--home-user-proj--" / "first.jsonl"
        out = tmp_path / "out"
        result = runner.invoke(main, ["--config", str(config_path), "generate", str(session), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "Generated 1 pages (1 prompts)" in result.output
        assert "user/proj" in result.output
        assert (out / "index.html").exists()

    def test_generate_by_number(self, runner, config_path, sessions_dir, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(
            main,
            ["--config", str(config_path), "generate", "1", "-o", str(out), "--sessions-dir", str(sessions_dir)],
        )
        assert result.exit_code == 0, result.output
        assert (out / "page-001.html").exists()

    def test_generate_number_out_of_range(self, runner, config_path, sessions_dir):
        result = runner.invoke(
            main, ["--config", str(config_path), "generate", "9", "--sessions-dir", str(sessions_dir)]
        )
        assert result.exit_code != 0
        assert "Session #9 not found" in result.output

    def test_generate_missing_file(self, runner, config_path, tmp_path):
        result = runner.invoke(main, ["--config", str(config_path), "generate", str(tmp_path / "nope.jsonl")])
        assert result.exit_code != 0
        assert "File not found" in result.output

    def test_all(self, runner, config_path, sessions_dir, tmp_path):
        _session(sessions_dir / "--home-user-other--" / "second.jsonl", "again")
        out = tmp_path / "archive"
        result = runner.invoke(
            main,
            ["--config", str(config_path), "all", "-o", str(out), "--sessions-dir", str(sessions_dir)],
        )
        assert result.exit_code == 0, result.output
        assert "Generated 2 session transcripts" in result.output
        assert (out / "user" / "proj" / "first" / "index.html").exists()
        assert (out / "user" / "other" / "second" / "index.html").exists()

    def test_stats(self, runner, config_path, sessions_dir):
        session = sessions_dir / "--home-user-proj--" / "first.jsonl"
        result = runner.invoke(main, ["--config", str(config_path), "stats", str(session)])

        assert result.exit_code == 0, result.output
        assert "Prompts:     1" in result.output
        assert "Messages:    2" in result.output
        assert "Tool calls:  1" in result.output
        assert "Total cost:  $0.25" in result.output
