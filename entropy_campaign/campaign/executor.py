"""Campaign execution with bounded retry.

Items run strictly one after another because they share one device or
emulator. Each item gets up to MAX_ATTEMPTS runner invocations with no
delay between them; the first item to exhaust its attempts ends the
campaign and no later item is started.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from entropy_campaign.config import Settings, get_settings
from entropy_campaign.types import AttemptOutcome, CampaignItem, CampaignResult

if TYPE_CHECKING:
    from entropy_campaign.resolver import RunConfiguration

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5

# Launches one runner command and returns its exit status
RunnerFn = Callable[[list[str]], int]


def subprocess_runner(cmd: list[str]) -> int:
    """Run a command to completion, inheriting stdio."""
    return subprocess.run(cmd, check=False).returncode


def stderr_runner(cmd: list[str]) -> int:
    """Run a command to completion with its stdout sent to stderr.

    Keeps stdout free for machine-readable campaign results.
    """
    return subprocess.run(cmd, stdout=sys.stderr, check=False).returncode


def compose_runner_command(
    config: RunConfiguration,
    item: CampaignItem,
    runner_path: Path,
) -> list[str]:
    """Compose the single-boot test runner command for one item.

    The device flag pair is only present when a device is set.

    Args:
        config: Complete run configuration.
        item: Kernel command line for this boot.
        runner_path: Path to the runner script.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [
        str(runner_path),
        "-a",
        config.architecture,
        "-c",
        item,
        "-l",
        str(config.collection_length_bytes),
        "-m",
        config.boot_method.value,
    ]

    if config.device_name is not None:
        cmd.extend(["-n", config.device_name])

    cmd.extend(
        [
            "-o",
            str(config.output_dir),
            "-b",
            str(config.build_dir),
            "-s",
            config.entropy_source.value,
        ]
    )
    return cmd


def run_item(
    config: RunConfiguration,
    item: CampaignItem,
    runner_path: Path,
    runner: RunnerFn = subprocess_runner,
    index: int = 1,
) -> list[AttemptOutcome]:
    """Run one item until it passes or MAX_ATTEMPTS is reached.

    Args:
        config: Complete run configuration.
        item: Kernel command line for this boot.
        runner_path: Path to the runner script.
        runner: Command launcher returning an exit status.
        index: 1-based position of the item in its campaign.

    Returns:
        One outcome per attempt; the last one tells whether the item passed.
    """
    cmd = compose_runner_command(config, item, runner_path)
    cmd_str = shlex.join(cmd)
    outcomes: list[AttemptOutcome] = []

    for attempt in range(1, MAX_ATTEMPTS + 1):
        logger.info("[%s] attempt %d/%d: %s", item, attempt, MAX_ATTEMPTS, cmd_str)

        exit_code: int | None
        try:
            exit_code = runner(cmd)
        except OSError as e:
            logger.error("Failed to execute test runner: %s", e)
            exit_code = None

        succeeded = exit_code == 0
        outcomes.append(AttemptOutcome(item, index, attempt, succeeded, exit_code))

        if succeeded:
            logger.info("[%s] passed on attempt %d", item, attempt)
            break

        logger.warning("[%s] attempt %d failed (exit code %s)", item, attempt, exit_code)

    return outcomes


def run_campaign(
    config: RunConfiguration,
    items: Sequence[CampaignItem],
    settings: Settings | None = None,
    runner: RunnerFn = subprocess_runner,
) -> CampaignResult:
    """Run every item in order, aborting at the first one that cannot pass.

    Args:
        config: Complete run configuration.
        items: Kernel command lines, in execution order.
        settings: Optional settings; uses defaults if not provided.
        runner: Command launcher returning an exit status.

    Returns:
        CampaignResult; failing_item is set when the campaign aborted.

    Raises:
        ConfigurationError: If the configuration still lacks a netboot device.
    """
    config.require_complete()
    if settings is None:
        settings = get_settings()

    runner_path = settings.effective_runner_path()
    result = CampaignResult(all_passed=True)

    for index, item in enumerate(items, start=1):
        logger.info("Running item %d/%d: %s", index, len(items), item)
        outcomes = run_item(config, item, runner_path, runner=runner, index=index)
        result.outcomes.extend(outcomes)

        if not outcomes[-1].succeeded:
            logger.error(
                "Aborting campaign: %r failed %d attempts; %d item(s) not run",
                item,
                MAX_ATTEMPTS,
                len(items) - index,
            )
            result.all_passed = False
            result.failing_item = item
            return result

        result.items_completed += 1

    logger.info("Campaign passed: %d item(s)", result.items_completed)
    return result


__all__ = [
    "MAX_ATTEMPTS",
    "RunnerFn",
    "compose_runner_command",
    "run_campaign",
    "run_item",
    "stderr_runner",
    "subprocess_runner",
]
