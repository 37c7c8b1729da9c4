"""
learnsync: operator CLI for the learning-session synchronizer.

Commands:
- learnsync detect        - Detect the language of a source file
- learnsync encode-token  - Build the route token for an email
- learnsync decode-token  - Decode a route token
- learnsync mirror-show   - Print locally mirrored code for a lesson
- learnsync save          - Mount a session, load a file, save it
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import get_settings
from learnsync.core.errors import ContentLoadFailed
from learnsync.core.identity_token import decode_token, encode_email
from learnsync.core.language import detect_language
from learnsync.core.outcomes import Failed, LocalOnly, Notification, SaveOutcome, Synced
from learnsync.storage.kv_store import SqliteKeyValueStore
from learnsync.storage.local_mirror import LocalMirror

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="learnsync",
    help="learnsync: learning-session sync tools",
    no_args_is_help=True,
)
console = Console()

STYLES = {
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
}


def print_notification(notification: Notification) -> None:
    style = STYLES.get(notification.level.value, "white")
    console.print(f"[{style}]{notification.message}[/{style}]")


def outcome_row(outcome: SaveOutcome) -> tuple[str, str]:
    if isinstance(outcome, Synced):
        return "synced", f"record {outcome.record_id} ({outcome.language})"
    if isinstance(outcome, LocalOnly):
        detail = outcome.failure.value if outcome.failure else ""
        return f"local-only ({outcome.reason.value})", detail or outcome.detail
    return f"failed ({outcome.kind.value})", outcome.detail


# =============================================================================
# Commands
# =============================================================================


@app.command()
def detect(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file"),
) -> None:
    """Detect the language of a source file."""
    console.print(detect_language(path.read_text(encoding="utf-8")))


@app.command("encode-token")
def encode_token_cmd(email: str = typer.Argument(..., help="Learner email")) -> None:
    """Build the route token for an email."""
    console.print(encode_email(email, get_settings().identity_salt))


@app.command("decode-token")
def decode_token_cmd(token: str = typer.Argument(..., help="Route token")) -> None:
    """Decode a route token back into an email."""
    console.print(decode_token(token, get_settings().identity_salt))


@app.command("mirror-show")
def mirror_show(
    course_id: str = typer.Argument(..., help="Course ID"),
    lesson_id: Optional[str] = typer.Argument(None, help="Lesson ID (omit to list keys)"),
    student: Optional[str] = typer.Option(None, "--student", "-s", help="Student ID"),
) -> None:
    """Print locally mirrored code for a lesson, or list a course's keys."""
    mirror = LocalMirror(SqliteKeyValueStore(get_settings().local_store_path))

    if lesson_id is None:
        table = Table(title=f"Mirrored code for {course_id}")
        table.add_column("Key")
        for key in mirror.keys_for_course(course_id):
            table.add_row(key)
        console.print(table)
        return

    code = mirror.read(course_id, lesson_id, student)
    if code is None:
        console.print("[yellow]Nothing mirrored for that lesson[/yellow]")
        raise typer.Exit(1)
    console.print(code, markup=False, highlight=False)


@app.command()
def save(
    course_id: str = typer.Argument(..., help="Course ID"),
    token: str = typer.Argument(..., help="Route token, email, or 'guest'"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Code to save"),
    lesson: Optional[str] = typer.Option(None, "--lesson", "-l", help="Lesson ID"),
) -> None:
    """Mount a session, load a file into the buffer, and save it."""
    try:
        outcome = asyncio.run(_save(course_id, token, path.read_text(encoding="utf-8"), lesson))
    except ContentLoadFailed as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    status, detail = outcome_row(outcome)
    table = Table(show_header=False)
    table.add_row("Course", course_id)
    table.add_row("Outcome", status)
    table.add_row("Detail", detail)
    console.print(table)

    if isinstance(outcome, Failed):
        raise typer.Exit(1)


async def _save(course_id: str, token: str, code: str, lesson_id: str | None) -> SaveOutcome:
    from learnsync.sync.session import SessionServices, mount_session

    settings = get_settings()
    services = SessionServices.from_settings(settings)
    try:
        handle = await mount_session(
            course_id, token, services, settings, notify=print_notification,
            schedule_ticks=False,
        )
        if lesson_id:
            handle.select_lesson(lesson_id)
        handle.update_code(code)
        outcome = await handle.save()
        handle.unmount()
        await handle.wait_idle()
        return outcome
    finally:
        await services.aclose()


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

    app()


if __name__ == "__main__":
    main()
