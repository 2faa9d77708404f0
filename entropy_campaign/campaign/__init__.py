"""Campaign items and execution.

This module handles:
- Loading campaign items from the command line and YAML files
- Composing single-boot runner commands
- Running items in order with bounded retry
"""

from entropy_campaign.campaign.executor import (
    MAX_ATTEMPTS,
    compose_runner_command,
    run_campaign,
)
from entropy_campaign.campaign.items import collect_items, load_items_file

__all__ = [
    "MAX_ATTEMPTS",
    "collect_items",
    "compose_runner_command",
    "load_items_file",
    "run_campaign",
]
