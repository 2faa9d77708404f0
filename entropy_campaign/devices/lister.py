"""Netboot device discovery.

Runs the device lister built alongside the image for one bounded,
retry-free pass and parses its output into device names. Each line the
lister prints looks like:

    device zircon-node-name (fe80::1234:5678%eth0)

and only the node name is kept.
"""

import logging
import re
import shlex
import subprocess
from pathlib import Path

from entropy_campaign.types import CampaignError

logger = logging.getLogger(__name__)

# Extra wall-clock allowance on top of the lister's own time budget
_GUARD_SECONDS = 5.0

_DECORATION_PATTERN = re.compile(r"^device\s+|\s+\([^)]*\)\s*$")


class DiscoveryError(CampaignError):
    """Device lister could not be run or did not finish."""

    def __init__(self, message: str, code: str = "lister_error") -> None:
        super().__init__(message, code=code)


class DiscoveryTimeoutError(DiscoveryError):
    """No device answered within the lister's time budget."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(
            f"No netboot devices found within {timeout_ms} ms. "
            "Check the device is in netboot mode or pass --device explicitly.",
            code="no_devices",
        )
        self.timeout_ms = timeout_ms


def compose_lister_command(lister_path: Path, timeout_ms: int) -> list[str]:
    """Compose the device lister command."""
    return [str(lister_path), "--nowait", f"--timeout={timeout_ms}"]


def parse_device_listing(output: str) -> list[str]:
    """Parse lister output into device names.

    Decoration around the name is stripped; blank lines and duplicates are
    dropped and first-seen order is kept.

    Args:
        output: Raw stdout of the lister.

    Returns:
        Device names in discovery order.
    """
    names: list[str] = []
    for line in output.splitlines():
        name = _DECORATION_PATTERN.sub("", line.strip()).strip()
        if name and name not in names:
            names.append(name)
    return names


def list_devices(lister_path: Path, timeout_ms: int = 1000) -> list[str]:
    """Run the device lister once and return the devices it reported.

    Args:
        lister_path: Path to the lister executable.
        timeout_ms: Time budget handed to the lister.

    Returns:
        Device names, possibly empty.

    Raises:
        DiscoveryError: If the lister cannot be started or hangs.
    """
    cmd = compose_lister_command(lister_path, timeout_ms)
    logger.info("Listing devices: %s", shlex.join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout_ms / 1000 + _GUARD_SECONDS,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise DiscoveryError(
            f"Device lister did not exit within {timeout_ms} ms",
            code="lister_timeout",
        ) from e
    except OSError as e:
        raise DiscoveryError(f"Failed to run device lister {lister_path}: {e}") from e

    if result.returncode != 0:
        logger.warning(
            "Device lister exited with code %d: %s",
            result.returncode,
            result.stderr.strip(),
        )

    devices = parse_device_listing(result.stdout)
    logger.info("Found %d device(s): %s", len(devices), ", ".join(devices))
    return devices


__all__ = [
    "DiscoveryError",
    "DiscoveryTimeoutError",
    "compose_lister_command",
    "list_devices",
    "parse_device_listing",
]
