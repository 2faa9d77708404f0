"""Netboot device selection.

Only netboot targets need a device. An explicit device name is accepted
as given; otherwise the lister is run once and the operator picks one of
the reported devices.
"""

import logging

from entropy_campaign.config import Settings, get_settings
from entropy_campaign.devices.lister import DiscoveryTimeoutError, list_devices
from entropy_campaign.prompts import Prompter
from entropy_campaign.resolver import RunConfiguration
from entropy_campaign.types import BootMethod, ConfigurationError

logger = logging.getLogger(__name__)


def resolve_device(
    config: RunConfiguration,
    prompter: Prompter | None = None,
    settings: Settings | None = None,
) -> str | None:
    """Determine the device a campaign runs on.

    Must be called after the build: the lister lives in the build directory.

    Args:
        config: Resolved run configuration.
        prompter: Selection provider, or None for non-interactive use.
        settings: Optional settings; uses defaults if not provided.

    Returns:
        The device name, or None for qemu targets.

    Raises:
        DiscoveryTimeoutError: If no device was found.
        DiscoveryError: If the lister failed to run.
        ConfigurationError: If devices were found but nobody can choose one.
    """
    if config.boot_method == BootMethod.QEMU:
        return None

    if config.device_name is not None:
        logger.info("Using device %s", config.device_name)
        return config.device_name

    if settings is None:
        settings = get_settings()

    lister = settings.effective_lister_path(config.build_dir)
    devices = list_devices(lister, timeout_ms=settings.lister_timeout_ms)

    if not devices:
        raise DiscoveryTimeoutError(settings.lister_timeout_ms)

    if prompter is None:
        raise ConfigurationError(
            f"Missing required device name (found: {', '.join(devices)})"
        )

    choice: str | None = None
    while not choice:
        choice = prompter.choose("Select device:", devices)

    logger.info("Selected device %s", choice)
    return choice


__all__ = ["resolve_device"]
