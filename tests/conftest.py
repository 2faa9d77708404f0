"""Shared fixtures and test doubles for entropy_campaign tests."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from entropy_campaign.config import Settings
from entropy_campaign.resolver import (
    ExplicitInputs,
    RunConfiguration,
    resolve_configuration,
)


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    """Undo CLI logging setup so caplog keeps working across tests."""
    package_logger = logging.getLogger("entropy_campaign")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary source tree."""
    root = tmp_path / "zircon"
    root.mkdir()
    return Settings(
        zircon_root=root,
        runner_path=root / "scripts" / "entropy-test" / "run-boot-test",
    )


@pytest.fixture
def make_config(
    settings: Settings, tmp_path: Path
) -> Callable[..., RunConfiguration]:
    """Factory resolving a configuration non-interactively."""

    def _make(
        target: str = "qemu-x86",
        source: str = "hw_rng",
        **overrides: object,
    ) -> RunConfiguration:
        inputs = ExplicitInputs(
            output_dir=tmp_path / "out",
            source=source,
            target=target,
        )
        for key, value in overrides.items():
            setattr(inputs, key, value)
        return resolve_configuration(inputs, prompter=None, settings=settings)

    return _make


class ScriptedPrompter:
    """Non-interactive prompter replaying canned answers in order."""

    def __init__(self, answers: list[str | None]) -> None:
        self.answers = list(answers)
        self.calls: list[tuple[str, list[str] | None]] = []

    def choose(self, title: str, options: list[str]) -> str | None:
        self.calls.append((title, list(options)))
        return self.answers.pop(0)

    def ask(self, title: str) -> str | None:
        self.calls.append((title, None))
        return self.answers.pop(0)


class ScriptedRunner:
    """Test-runner stand-in returning canned exit codes and recording commands."""

    def __init__(self, exit_codes: list[int] | None = None, default: int = 0) -> None:
        self.exit_codes = list(exit_codes or [])
        self.default = default
        self.commands: list[list[str]] = []

    def __call__(self, cmd: list[str]) -> int:
        self.commands.append(cmd)
        if self.exit_codes:
            return self.exit_codes.pop(0)
        return self.default

    @property
    def items(self) -> list[str]:
        """Command line (-c value) of every invocation, in order."""
        return [cmd[cmd.index("-c") + 1] for cmd in self.commands]


@pytest.fixture
def scripted_prompter() -> type[ScriptedPrompter]:
    """Factory for prompters answering from a list."""
    return ScriptedPrompter


@pytest.fixture
def scripted_runner() -> type[ScriptedRunner]:
    """Factory for runners returning canned exit codes."""
    return ScriptedRunner
