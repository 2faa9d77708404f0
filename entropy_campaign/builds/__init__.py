"""Image build staging.

This module handles:
- Composing the Image Builder command line
- Running the single per-campaign build
- Capturing the build log
"""

from entropy_campaign.builds.runner import BuildError, BuildResult, stage_build

__all__ = ["BuildError", "BuildResult", "stage_build"]
