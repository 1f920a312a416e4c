"""Free-text input sourced from piped stdin or an interactive prompt."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

import typer


def stdin_is_piped(stream: Optional[TextIO] = None) -> bool:
    source = stream if stream is not None else sys.stdin
    return source is not None and not source.isatty()


def read_piped_text(stream: Optional[TextIO] = None) -> str:
    """Return all piped input trimmed, or an empty string when attached to a terminal."""
    source = stream if stream is not None else sys.stdin
    if not stdin_is_piped(source):
        return ""
    return source.read().strip()


def read_line(prompt: str) -> str:
    """Prompt for one line of text and return it trimmed (possibly empty)."""
    answer = typer.prompt(prompt, default="", show_default=False, prompt_suffix=" ")
    return str(answer).strip()


def read_title(title: Optional[str] = None) -> str:
    """Resolve a todo title from the option, then piped input, then an interactive prompt.

    The prompt is only used when stdin is a terminal.
    """
    text = (title or "").strip()
    if text:
        return text
    if stdin_is_piped():
        return read_piped_text()
    return read_line("Title:")
