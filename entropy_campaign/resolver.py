"""Run configuration resolution.

This module handles:
- Merging explicit CLI inputs with interactive fallbacks
- Rejecting entropy sources and targets outside the supported sets
- Deriving the build directory and build buffer size
- Validating the RunConfiguration invariants

The resulting RunConfiguration is immutable; the only later change, the
discovered device name, is applied by building a validated copy.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from entropy_campaign.config import Settings, get_settings
from entropy_campaign.prompts import Prompter
from entropy_campaign.targets import TARGETS, resolve_target
from entropy_campaign.types import (
    DEFAULT_BUFFER_BYTES,
    BootMethod,
    ConfigurationError,
    EntropySource,
)

logger = logging.getLogger(__name__)

RELEASE_SUFFIX = "-release"


@dataclass
class ExplicitInputs:
    """Values supplied on the command line. None means "not given"."""

    output_dir: Path | None = None
    build_dir: Path | None = None
    source: str | None = None
    target: str | None = None
    device: str | None = None
    release: bool = False
    length: int = DEFAULT_BUFFER_BYTES


class RunConfiguration(BaseModel):
    """Fully resolved settings for one campaign.

    Attributes:
        entropy_source: Entropy source under test.
        target_id: Catalog key of the target.
        architecture: Architecture passed to the test runner.
        build_project: Project handed to the Image Builder.
        boot_method: qemu or netboot.
        build_dir: Directory holding the built image and host tools.
        output_dir: Directory the test runner writes samples into.
        collection_length_bytes: Bytes each boot test collects.
        build_buffer_bytes: Collection buffer compiled into the image.
        is_release_variant: Whether the release variant is built.
        device_name: Netboot device; always None for qemu targets.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entropy_source: EntropySource
    target_id: str
    architecture: str
    build_project: str
    boot_method: BootMethod
    build_dir: Path
    output_dir: Path
    collection_length_bytes: int = Field(gt=0)
    build_buffer_bytes: int = Field(gt=0)
    is_release_variant: bool = False
    device_name: str | None = None

    @model_validator(mode="after")
    def check_invariants(self) -> "RunConfiguration":
        """Validate buffer size and device-name rules."""
        if self.build_buffer_bytes < self.collection_length_bytes:
            raise ValueError(
                f"build buffer ({self.build_buffer_bytes} bytes) is smaller than "
                f"the collection length ({self.collection_length_bytes} bytes)"
            )
        if self.device_name is not None:
            if not self.device_name.strip():
                raise ValueError("device name must not be empty")
            if self.boot_method == BootMethod.QEMU:
                raise ValueError("device name is not used by qemu targets")
        return self

    @property
    def needs_device(self) -> bool:
        """True when a netboot device is still to be chosen."""
        return self.boot_method == BootMethod.NETBOOT and self.device_name is None

    def with_device(self, device_name: str) -> "RunConfiguration":
        """Return a validated copy with the device name set."""
        data = self.model_dump()
        data["device_name"] = device_name
        try:
            return RunConfiguration.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid device name {device_name!r}: {e}") from e

    def require_complete(self) -> None:
        """Ensure every field needed to run tests is populated.

        Raises:
            ConfigurationError: If a netboot target has no device.
        """
        if self.needs_device:
            raise ConfigurationError(
                f"Target {self.target_id} boots over the network but no device "
                "was selected"
            )


def default_build_dir(root: Path, build_project: str, release: bool) -> Path:
    """Return {root}/build-{project}, with the release suffix when requested."""
    suffix = RELEASE_SUFFIX if release else ""
    return root / f"build-{build_project}{suffix}"


def compute_buffer_bytes(collection_length: int) -> int:
    """Return the build buffer size for a requested collection length."""
    return max(collection_length, DEFAULT_BUFFER_BYTES)


def _prompt_until(read: Callable[[], str | None]) -> str:
    value: str | None = None
    while not value:
        value = read()
    return value


def _resolve_choice(
    explicit: str | None,
    options: list[str],
    what: str,
    prompter: Prompter | None,
) -> str:
    if explicit is not None:
        if explicit not in options:
            raise ConfigurationError(
                f"Unrecognized {what}: {explicit!r} "
                f"(valid values: {', '.join(options)})"
            )
        return explicit

    if prompter is None:
        raise ConfigurationError(f"Missing required {what}")

    return _prompt_until(lambda: prompter.choose(f"Select {what}:", options))


def _resolve_output_dir(explicit: Path | None, prompter: Prompter | None) -> Path:
    if explicit is not None:
        if not str(explicit).strip():
            raise ConfigurationError("Output directory must not be empty")
        return explicit

    if prompter is None:
        raise ConfigurationError("Missing required output directory")

    return Path(_prompt_until(lambda: prompter.ask("Output directory")))


def resolve_configuration(
    inputs: ExplicitInputs,
    prompter: Prompter | None = None,
    settings: Settings | None = None,
) -> RunConfiguration:
    """Build a RunConfiguration from explicit inputs and prompts.

    Missing output directory, entropy source and target are requested from
    the prompter in that order; each prompt repeats until it yields a value.
    A netboot device is left unset here when not given explicitly, since
    discovery needs the build to have run first.

    Args:
        inputs: Values given on the command line.
        prompter: Selection provider, or None for non-interactive use.
        settings: Optional settings; uses defaults if not provided.

    Returns:
        Validated RunConfiguration.

    Raises:
        ConfigurationError: If a value is invalid, or missing with no prompter.
    """
    if settings is None:
        settings = get_settings()

    if inputs.length <= 0:
        raise ConfigurationError(
            f"Collection length must be a positive number of bytes, got {inputs.length}"
        )

    output_dir = _resolve_output_dir(inputs.output_dir, prompter)
    source = _resolve_choice(
        inputs.source, [s.value for s in EntropySource], "entropy source", prompter
    )
    target_id = _resolve_choice(inputs.target, list(TARGETS), "target", prompter)
    descriptor = resolve_target(target_id)

    build_dir = inputs.build_dir or default_build_dir(
        settings.zircon_root, descriptor.build_project, inputs.release
    )

    device_name = inputs.device
    if device_name is not None and descriptor.boot_method == BootMethod.QEMU:
        logger.warning(
            "Ignoring device %r: target %s boots under qemu", device_name, target_id
        )
        device_name = None

    try:
        config = RunConfiguration(
            entropy_source=EntropySource(source),
            target_id=target_id,
            architecture=descriptor.architecture,
            build_project=descriptor.build_project,
            boot_method=descriptor.boot_method,
            build_dir=build_dir,
            output_dir=output_dir,
            collection_length_bytes=inputs.length,
            build_buffer_bytes=compute_buffer_bytes(inputs.length),
            is_release_variant=inputs.release,
            device_name=device_name,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid run configuration: {e}") from e

    logger.info(
        "Resolved configuration: target=%s arch=%s source=%s build_dir=%s",
        config.target_id,
        config.architecture,
        config.entropy_source.value,
        config.build_dir,
    )
    return config


__all__ = [
    "RELEASE_SUFFIX",
    "ExplicitInputs",
    "RunConfiguration",
    "compute_buffer_bytes",
    "default_build_dir",
    "resolve_configuration",
]
