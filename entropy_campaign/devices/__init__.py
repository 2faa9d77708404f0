"""Netboot device discovery and selection.

This module handles:
- Running the device lister for a single bounded pass
- Parsing its listing into device names
- Choosing the campaign's device
"""

from entropy_campaign.devices.lister import (
    DiscoveryError,
    DiscoveryTimeoutError,
    list_devices,
    parse_device_listing,
)
from entropy_campaign.devices.resolver import resolve_device

__all__ = [
    "DiscoveryError",
    "DiscoveryTimeoutError",
    "list_devices",
    "parse_device_listing",
    "resolve_device",
]
