"""CLI for pi-transcript."""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

import click

from .config import Config
from .generate import generate_transcript
from .parser import group_conversations, parse_session_file
from .sessions import find_all_sessions, find_recent_sessions, format_session_line
from .stats import compute_stats, format_cost

# Sessions searched when SESSION is given as a list number
NUMBERED_LOOKUP_LIMIT = 50


@click.group()
@click.version_option(package_name="pi-transcript")
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to config file",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config: Optional[Path], verbose: bool):
    """Convert pi sessions to clean HTML transcripts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = Config.load(config)


def _summary_width() -> int:
    # date + size + project + gaps take 57 columns
    return max(20, shutil.get_terminal_size((120, 24)).columns - 57)


@main.command(name="list")
@click.option("--limit", type=int, default=15, show_default=True, help="Number of sessions to show")
@click.option(
    "--sessions-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to pi sessions directory (overrides config)",
)
@click.pass_context
def list_sessions(ctx, limit: int, sessions_dir: Optional[Path]):
    """List recent sessions with numbers."""
    cfg: Config = ctx.obj["config"]
    sessions = find_recent_sessions(limit, sessions_dir or cfg.sessions_dir)
    if not sessions:
        click.echo(f"No pi sessions found in {sessions_dir or cfg.sessions_dir}")
        return

    width = _summary_width()
    click.echo()
    for i, info in enumerate(sessions, start=1):
        click.echo(f"  {i:2d}. {format_session_line(info, width)}")
    click.echo("\nConvert with: pi-transcript generate <number> or pi-transcript generate <file.jsonl>")


def _resolve_session(session: Optional[str], sessions_dir: Path) -> Path:
    """Turn a path, a list number, or nothing (most recent) into a session path."""
    if session and session.isdigit():
        idx = int(session) - 1
        sessions = find_recent_sessions(NUMBERED_LOOKUP_LIMIT, sessions_dir)
        if idx < 0 or idx >= len(sessions):
            raise click.ClickException(
                f"Session #{idx + 1} not found. Use 'list' to see available sessions."
            )
        return sessions[idx].path

    if not session:
        sessions = find_recent_sessions(1, sessions_dir)
        if not sessions:
            raise click.ClickException(f"No pi sessions found in {sessions_dir}")
        return sessions[0].path

    path = Path(session)
    if not path.exists():
        raise click.ClickException(f"File not found: {path}")
    return path


@main.command()
@click.argument("session", required=False)
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Output directory (default: temp dir, opened in browser)",
)
@click.option("--open/--no-open", "open_browser", default=None, help="Open index.html when done")
@click.option(
    "--sessions-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to pi sessions directory (overrides config)",
)
@click.pass_context
def generate(
    ctx,
    session: Optional[str],
    output_dir: Optional[Path],
    open_browser: Optional[bool],
    sessions_dir: Optional[Path],
):
    """Convert one session to HTML.

    SESSION is a .jsonl file or a number from 'list'; defaults to the most recent session.
    """
    cfg: Config = ctx.obj["config"]
    session_path = _resolve_session(session, sessions_dir or cfg.sessions_dir)

    explicit_output = output_dir is not None
    if output_dir is None:
        output_dir = Path(tempfile.gettempdir()) / f"pi-transcript-{session_path.stem}"
    output_dir = output_dir.resolve()

    click.echo("\nGenerating transcript...")
    try:
        result = generate_transcript(session_path, output_dir)
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Failed to read {session_path}: {e}")

    click.echo(f"Generated {result.pages} pages ({result.prompts} prompts)")
    click.echo(f"  Project: {result.project_name or '(unknown)'}")
    click.echo(f"  Output:  {result.output_dir}/")

    should_open = open_browser if open_browser is not None else not explicit_output
    if should_open:
        click.launch(str(result.output_dir / "index.html"))


@main.command(name="all")
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Archive output directory (overrides config)",
)
@click.option(
    "--sessions-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to pi sessions directory (overrides config)",
)
@click.pass_context
def generate_all(ctx, output_dir: Optional[Path], sessions_dir: Optional[Path]):
    """Convert all sessions to an archive."""
    cfg: Config = ctx.obj["config"]
    output = (output_dir or cfg.output_dir).resolve()

    projects = find_all_sessions(sessions_dir or cfg.sessions_dir)
    if not projects:
        click.echo("No pi sessions found.")
        return

    click.echo(f"Found {len(projects)} projects, generating archive in {output}/...\n")

    generated = 0
    errors = 0
    for project in projects:
        for info in project.sessions:
            session_name = info.path.stem
            try:
                generate_transcript(
                    info.path,
                    output / project.project / session_name,
                    project_name=project.project,
                )
                generated += 1
            except (OSError, UnicodeDecodeError) as e:
                click.echo(f"  Failed: {project.project}/{session_name}: {e}", err=True)
                errors += 1

    click.echo(f"\nGenerated {generated} session transcripts in {output}/ ({errors} errors)")


@main.command()
@click.argument("session", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def stats(session: Path):
    """Show prompt, message, tool call and cost totals for a session."""
    try:
        parsed = parse_session_file(session)
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Failed to read {session}: {e}")

    s = compute_stats(group_conversations(parsed.entries))

    click.echo("Session Statistics")
    click.echo("=" * 40)
    if parsed.header is not None:
        click.echo(f"Session:     {parsed.header.id}")
        click.echo(f"Working dir: {parsed.header.cwd}")
    click.echo(f"Prompts:     {s.conversations:,}")
    click.echo(f"Messages:    {s.messages:,}")
    click.echo(f"Tool calls:  {s.tool_calls:,}")
    click.echo(f"Total cost:  {format_cost(s.total_cost) or '$0.00'}")


@main.command()
@click.option(
    "--sessions-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Set pi sessions directory",
)
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Set archive output directory",
)
@click.option(
    "--show",
    is_flag=True,
    help="Show current configuration",
)
@click.pass_context
def config(ctx, sessions_dir: Optional[Path], output_dir: Optional[Path], show: bool):
    """Configure pi-transcript settings."""
    cfg: Config = ctx.obj["config"]
    config_path: Optional[Path] = ctx.parent.params.get("config")

    if show or (not sessions_dir and not output_dir):
        click.echo("Current configuration:")
        click.echo(f"  Sessions dir: {cfg.sessions_dir}")
        click.echo(f"  Output dir:   {cfg.output_dir}")
        return

    if sessions_dir:
        cfg.sessions_dir = sessions_dir
    if output_dir:
        cfg.output_dir = output_dir

    cfg.save(config_path)
    click.echo("Configuration saved.")
    click.echo(f"  Sessions dir: {cfg.sessions_dir}")
    click.echo(f"  Output dir:   {cfg.output_dir}")


if __name__ == "__main__":
    main()
