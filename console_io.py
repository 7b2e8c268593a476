"""
Terminal output and prompts.

``ConsoleIO`` is the only object that talks to the user. Components receive it
through the ``SwapperContext`` so tests can swap in a scripted instance.
"""

from __future__ import annotations

from typing import TextIO

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.text import Text

PRINT_WIDTH = 80


class ConsoleIO:
    def __init__(self, console: Console | None = None, stream: TextIO | None = None):
        self.console = console or Console()
        # Input stream for prompts; None reads stdin
        self.stream = stream

    # ── Output ────────────────────────────────────────────────────────

    def print(self, text: str = "", style: str | None = None):
        self.console.print(text, style=style, markup=False, highlight=False)

    def warn(self, text: str):
        self.print(text, style="yellow")

    def error(self, text: str):
        self.print(text, style="bold red")

    def success(self, text: str):
        self.print(text, style="green")

    def centered(self, text: str, style: str | None = None):
        self.console.print(
            Text(text, justify="center", style=style or ""),
            width=PRINT_WIDTH,
            highlight=False,
        )

    def header(self, title: str, subtitle: str = "", style: str = "white"):
        """Print a boxed, centered banner with an optional second line."""
        body = Text(title, justify="center")
        if subtitle:
            body.append("\n" + subtitle)
        self.console.print(Panel(body, style=style, width=PRINT_WIDTH))

    # ── Input ─────────────────────────────────────────────────────────

    def confirm(self, question: str, default: bool) -> bool:
        """Yes/no question; an empty answer takes ``default``."""
        return Confirm.ask(
            question, default=default, console=self.console, stream=self.stream
        )

    def ask_int(self, question: str, choices: list[int], default: int) -> int:
        """Ask for one of ``choices``, re-prompting until the answer is valid."""
        return IntPrompt.ask(
            question,
            choices=[str(c) for c in choices],
            default=default,
            console=self.console,
            stream=self.stream,
        )

    def ask_continue(self, message: str) -> str:
        """Block until the user presses Enter; return whatever they typed."""
        answer = Prompt.ask(
            message,
            default="",
            show_default=False,
            console=self.console,
            stream=self.stream,
        )
        return answer.strip()

    def pause_before_exit(self):
        self.ask_continue("Press Enter to exit...")
