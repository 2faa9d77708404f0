"""Interactive selection providers.

The resolvers never read from the terminal directly; they ask a Prompter.
The CLI supplies RichPrompter, tests supply a scripted one, and
non-interactive callers pass None so missing values become errors.
"""

from typing import Protocol

from rich.console import Console
from rich.prompt import Prompt


class Prompter(Protocol):
    """Blocking selection callback used to fill in missing inputs.

    Both methods return None when no usable answer was given (for example
    end-of-input); callers re-prompt in that case.
    """

    def choose(self, title: str, options: list[str]) -> str | None:
        """Pick exactly one of options."""
        ...

    def ask(self, title: str) -> str | None:
        """Read a free-text value."""
        ...


class RichPrompter:
    """Numbered-menu prompter on the controlling terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def choose(self, title: str, options: list[str]) -> str | None:
        self.console.print(f"[bold]{title}[/bold]")
        for index, option in enumerate(options, start=1):
            self.console.print(f"  {index}) {option}")

        try:
            answer = Prompt.ask("#?", console=self.console).strip()
        except EOFError:
            self.console.print()
            return None

        if answer in options:
            return answer
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        if answer:
            self.console.print(f"[yellow]Invalid choice: {answer}[/yellow]")
        return None

    def ask(self, title: str) -> str | None:
        try:
            answer = Prompt.ask(title, console=self.console).strip()
        except EOFError:
            self.console.print()
            return None
        return answer or None


__all__ = ["Prompter", "RichPrompter"]
