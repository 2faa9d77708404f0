"""Configuration settings for entropy_campaign.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_zircon_root() -> Path:
    """Return the default source tree root (the current directory)."""
    return Path.cwd()


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the ENTROPY_TEST_
    prefix. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENTROPY_TEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    zircon_root: Path = Field(
        default_factory=_default_zircon_root,
        description="Root of the source tree the image is built from",
    )
    runner_path: Path | None = Field(
        default=None,
        description="Single-boot test runner (defaults to scripts/entropy-test/run-boot-test)",
    )
    lister_path: Path | None = Field(
        default=None,
        description="Device lister (defaults to <build dir>/tools/netls)",
    )

    # Build
    make_command: str = Field(
        default="make",
        description="Image Builder executable",
    )
    make_jobs: int = Field(
        default=8,
        ge=1,
        le=256,
        description="Parallel jobs passed to the Image Builder",
    )

    # Discovery
    lister_timeout_ms: int = Field(
        default=1000,
        ge=100,
        le=60000,
        description="Time budget for a device listing pass",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    def effective_runner_path(self) -> Path:
        """Return the runner path, falling back to the in-tree script."""
        if self.runner_path is not None:
            return self.runner_path
        return self.zircon_root / "scripts" / "entropy-test" / "run-boot-test"

    def effective_lister_path(self, build_dir: Path) -> Path:
        """Return the lister path, falling back to the build's host tool."""
        if self.lister_path is not None:
            return self.lister_path
        return build_dir / "tools" / "netls"


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
