"""Shared type definitions for entropy_campaign.

This module contains enums, dataclasses, and exceptions shared across
subpackages to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class EntropySource(str, Enum):
    """Early-boot entropy source under test."""

    HW_RNG = "hw_rng"
    JITTERENTROPY = "jitterentropy"


class BootMethod(str, Enum):
    """How the built image reaches the target."""

    QEMU = "qemu"
    NETBOOT = "netboot"


# Minimum entropy-collection buffer compiled into every image.
DEFAULT_BUFFER_BYTES = 1024 * 1024

# Campaign items are kernel command lines.
CampaignItem = str


@dataclass(frozen=True)
class TargetDescriptor:
    """One row of the target catalog."""

    target_id: str
    architecture: str
    build_project: str
    boot_method: BootMethod


@dataclass
class AttemptOutcome:
    """Outcome of a single runner invocation for one item."""

    item: CampaignItem
    item_index: int
    attempt_number: int
    succeeded: bool
    exit_code: int | None = None


@dataclass
class CampaignResult:
    """Result of a campaign run.

    Attributes:
        all_passed: True iff every item eventually passed.
        failing_item: Command line of the item that exhausted its attempts.
        items_completed: Number of items that passed before any abort.
        outcomes: Every attempt made, in execution order.
    """

    all_passed: bool
    failing_item: CampaignItem | None = None
    items_completed: int = 0
    outcomes: list[AttemptOutcome] = field(default_factory=list)

    def attempts_for(self, item_index: int) -> list[AttemptOutcome]:
        """Return the attempts made for the item at a 1-based campaign position.

        Items are identified by position because a campaign may repeat the
        same command line.
        """
        return [o for o in self.outcomes if o.item_index == item_index]

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "all_passed": self.all_passed,
            "failing_item": self.failing_item,
            "items_completed": self.items_completed,
            "attempts": [
                {
                    "item": o.item,
                    "index": o.item_index,
                    "attempt": o.attempt_number,
                    "succeeded": o.succeeded,
                    "exit_code": o.exit_code,
                }
                for o in self.outcomes
            ],
        }


class CampaignError(Exception):
    """Base exception for fatal campaign conditions."""

    def __init__(self, message: str, code: str = "campaign_error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigurationError(CampaignError):
    """Invalid or missing required option value."""

    def __init__(self, message: str, code: str = "config_error") -> None:
        super().__init__(message, code=code)


__all__ = [
    "DEFAULT_BUFFER_BYTES",
    "AttemptOutcome",
    "BootMethod",
    "CampaignError",
    "CampaignItem",
    "CampaignResult",
    "ConfigurationError",
    "EntropySource",
    "TargetDescriptor",
]
