"""Top-level campaign routine.

The steps always run in this order, each at most once:

1. Resolve the run configuration (may prompt)
2. Build the image
3. Resolve the netboot device (lister comes from step 2)
4. Run the campaign items

A CampaignError from any step ends the run before later steps start.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from entropy_campaign.builds.runner import stage_build
from entropy_campaign.campaign.executor import RunnerFn, run_campaign, subprocess_runner
from entropy_campaign.campaign.items import collect_items
from entropy_campaign.config import Settings, get_settings
from entropy_campaign.devices.resolver import resolve_device
from entropy_campaign.prompts import Prompter
from entropy_campaign.resolver import ExplicitInputs, resolve_configuration
from entropy_campaign.types import CampaignResult

logger = logging.getLogger(__name__)


def run(
    inputs: ExplicitInputs,
    items: Sequence[str] | None,
    prompter: Prompter | None = None,
    settings: Settings | None = None,
    items_file: Path | None = None,
    runner: RunnerFn = subprocess_runner,
) -> CampaignResult:
    """Resolve, build, discover and execute one campaign.

    Args:
        inputs: Explicit command-line values.
        items: Campaign items given on the command line.
        prompter: Selection provider, or None for non-interactive use.
        settings: Optional settings; uses defaults if not provided.
        items_file: Optional YAML file with more items.
        runner: Command launcher for the single-boot test runner.

    Returns:
        CampaignResult of the executed items.

    Raises:
        CampaignError: On any fatal configuration, build or discovery error.
    """
    if settings is None:
        settings = get_settings()

    campaign_items = collect_items(list(items or []), items_file)
    config = resolve_configuration(inputs, prompter, settings)

    stage_build(config, settings)

    if config.needs_device:
        device = resolve_device(config, prompter, settings)
        if device is not None:
            config = config.with_device(device)

    config.require_complete()

    logger.info(
        "Starting campaign of %d item(s) on %s%s",
        len(campaign_items),
        config.target_id,
        f" ({config.device_name})" if config.device_name else "",
    )
    return run_campaign(config, campaign_items, settings, runner=runner)


__all__ = ["run"]
