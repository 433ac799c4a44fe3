"""Terminal presentation for the interactive agent."""

from __future__ import annotations

from typing import IO, Optional

from rich.console import Console as RichConsole
from rich.text import Text

MAX_PREVIEW_CHARS = 300
MAX_PREVIEW_LINES = 5


def preview(result: str) -> tuple[str, bool]:
    """Cut ``result`` to the preview limits; the flag says whether anything was dropped."""

    shown = result
    if len(shown) > MAX_PREVIEW_CHARS:
        shown = shown[:MAX_PREVIEW_CHARS] + "..."
    lines = shown.split("\n")
    if len(lines) > MAX_PREVIEW_LINES:
        shown = "\n".join(lines[:MAX_PREVIEW_LINES]) + "\n..."
    return shown, len(result) > MAX_PREVIEW_CHARS or len(lines) > MAX_PREVIEW_LINES


class Console:
    def __init__(self, *, color: bool = True, file: Optional[IO[str]] = None) -> None:
        self._out = RichConsole(file=file, no_color=not color, highlight=False, soft_wrap=True)

    def _line(self, text: str, style: Optional[str] = None) -> None:
        self._out.print(Text(text, style=style or ""))

    def banner(self, text: str) -> None:
        self._line(f"\n=== {text} ===\n", "bold cyan")

    def info(self, message: str) -> None:
        self._line(message, "blue")

    def success(self, message: str) -> None:
        self._line(message, "green")

    def warning(self, message: str) -> None:
        self._line(message, "yellow")

    def error(self, message: str) -> None:
        self._line(message, "red")

    def user_prompt(self) -> None:
        self._out.print(Text("You: ", style="bold magenta"), end="")

    def agent_label(self) -> None:
        self._out.print(Text("Agent: ", style="bold green"), end="")

    def stream_chunk(self, text: str) -> None:
        self._out.print(Text(text), end="")

    def stream_complete(self) -> None:
        self._out.print()

    def tool_start(self, name: str) -> None:
        self._line(f"Executing {name}...", "dim italic")

    def tool_result(self, name: str, result: str) -> None:
        shown, truncated = preview(result)
        self._line(f"{name} result:", "bold blue")
        self._line(shown, "dim")
        if truncated:
            self._line("   (output truncated)", "yellow")
        self._out.print()
