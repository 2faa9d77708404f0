"""Build runner for the entropy-collector boot image.

This module handles:
- Composing the Image Builder `make` command from a run configuration
- Executing the build once per campaign with subprocess
- Capturing stdout/stderr to a build log in the output directory

The build must run before device discovery: the device lister is one of
the host tools it produces.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from entropy_campaign.config import Settings, get_settings
from entropy_campaign.resolver import default_build_dir
from entropy_campaign.types import CampaignError

if TYPE_CHECKING:
    from entropy_campaign.resolver import RunConfiguration

logger = logging.getLogger(__name__)

BUILD_LOG_NAME = "build.log"


class BuildError(CampaignError):
    """Raised when the image build fails or cannot be started."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "build_failed",
        log_path: Path | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.exit_code = exit_code
        self.log_path = log_path


@dataclass
class BuildResult:
    """Result of a successful build.

    Attributes:
        exit_code: Process exit code.
        build_dir: Directory the image was built into.
        log_path: Path to the build log file.
        started_at: Build start time.
        finished_at: Build finish time.
        command: The command that was executed.
    """

    exit_code: int
    build_dir: Path
    log_path: Path
    started_at: datetime
    finished_at: datetime
    command: str


def compose_make_command(config: RunConfiguration, settings: Settings) -> list[str]:
    """Compose the Image Builder command for a configuration.

    Args:
        config: Resolved run configuration.
        settings: Application settings (make executable, job count, root).

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [settings.make_command, f"-j{settings.make_jobs}"]

    cmd.append("ENABLE_ENTROPY_COLLECTOR_TEST=1")
    cmd.append(f"ENTROPY_COLLECTOR_TEST_MAXLEN={config.build_buffer_bytes}")

    if config.is_release_variant:
        cmd.append("DEBUG=0")

    # Only pin BUILDDIR when the caller moved the build away from its default
    default_dir = default_build_dir(
        settings.zircon_root, config.build_project, config.is_release_variant
    )
    if config.build_dir != default_dir:
        cmd.append(f"BUILDDIR={config.build_dir}")

    cmd.append(config.build_project)
    return cmd


def stage_build(
    config: RunConfiguration,
    settings: Settings | None = None,
) -> BuildResult:
    """Build the boot image for a campaign.

    Runs the Image Builder exactly once. There is no retry: a failed build
    ends the campaign.

    Args:
        config: Resolved run configuration.
        settings: Optional settings; uses defaults if not provided.

    Returns:
        BuildResult with execution details.

    Raises:
        BuildError: If the build fails or cannot be started.
    """
    if settings is None:
        settings = get_settings()

    log_path = config.output_dir / BUILD_LOG_NAME
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        error_message = f"Cannot use output directory {config.output_dir}: {e}"
        logger.error(error_message)
        raise BuildError(error_message, code="execution_error") from e

    cmd = compose_make_command(config, settings)
    cmd_str = shlex.join(cmd)
    logger.info("Executing build: %s", cmd_str)
    logger.info("Working directory: %s", settings.zircon_root)
    logger.info("Build log: %s", log_path)

    started_at = datetime.now(timezone.utc)

    try:
        with log_path.open("w") as log_file:
            log_file.write(f"# Command: {cmd_str}\n")
            log_file.write(f"# Started: {started_at.isoformat()}\n")
            log_file.write(f"# CWD: {settings.zircon_root}\n")
            log_file.write("# " + "=" * 70 + "\n\n")
            log_file.flush()

            result = subprocess.run(
                cmd,
                cwd=settings.zircon_root,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                check=False,
            )
    except OSError as e:
        error_message = f"Failed to execute build: {e}"
        logger.error(error_message)
        raise BuildError(error_message, code="execution_error", log_path=log_path) from e

    finished_at = datetime.now(timezone.utc)
    exit_code = result.returncode

    try:
        with log_path.open("a") as log_file:
            log_file.write(f"\n# Finished: {finished_at.isoformat()}\n")
            log_file.write(f"# Exit code: {exit_code}\n")
            duration = (finished_at - started_at).total_seconds()
            log_file.write(f"# Duration: {duration:.1f}s\n")
    except OSError as e:
        error_message = f"Failed to write build log: {e}"
        logger.error(error_message)
        raise BuildError(
            error_message, exit_code=exit_code, code="execution_error", log_path=log_path
        ) from e

    if exit_code != 0:
        error_message = f"Build failed with exit code {exit_code}"
        logger.error("%s. See log: %s", error_message, log_path)
        raise BuildError(error_message, exit_code=exit_code, log_path=log_path)

    logger.info("Build succeeded in %.1fs", (finished_at - started_at).total_seconds())

    return BuildResult(
        exit_code=exit_code,
        build_dir=config.build_dir,
        log_path=log_path,
        started_at=started_at,
        finished_at=finished_at,
        command=cmd_str,
    )


__all__ = [
    "BUILD_LOG_NAME",
    "BuildError",
    "BuildResult",
    "compose_make_command",
    "stage_build",
]
