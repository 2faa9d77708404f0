"""Campaign item loading.

Items normally come from the command line after `--`. They can also be
kept in a YAML file, either as a plain list of command lines or as a
mapping with an `items` list:

    items:
      - entropy.len=1024
      - entropy.len=2048 kernel.entropy-test.src=jitterentropy
"""

from pathlib import Path
from typing import Any

import yaml

from entropy_campaign.types import CampaignItem, ConfigurationError


def load_items_file(path: Path) -> list[CampaignItem]:
    """Load campaign items from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Items in file order.

    Raises:
        ConfigurationError: If the file is missing, unparsable, or malformed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Items file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ConfigurationError(
            f"Expected a list of command lines in {path}, got {type(data).__name__}"
        )

    items: list[CampaignItem] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, str) or not entry.strip():
            raise ConfigurationError(
                f"Item {index} in {path} must be a non-empty string, got {entry!r}"
            )
        items.append(entry)
    return items


def collect_items(
    cli_items: list[str] | None,
    items_file: Path | None = None,
) -> list[CampaignItem]:
    """Combine command-line items and file items, command line first.

    Raises:
        ConfigurationError: If no items were given at all.
    """
    items = list(cli_items or [])
    if items_file is not None:
        items.extend(load_items_file(items_file))
    if not items:
        raise ConfigurationError("No campaign items given (pass them after '--')")
    return items


__all__ = ["collect_items", "load_items_file"]
