"""Static catalog of supported boot targets.

Each target maps to the architecture passed to the test runner, the build
project handed to the Image Builder, and the way the image is booted.
"""

from entropy_campaign.types import BootMethod, ConfigurationError, TargetDescriptor


class TargetNotFoundError(ConfigurationError):
    """Target identifier is not in the catalog."""

    def __init__(self, target_id: str) -> None:
        valid = ", ".join(TARGETS)
        super().__init__(
            f"Unrecognized target: {target_id!r} (valid targets: {valid})",
            code="target_not_found",
        )
        self.target_id = target_id


def _netboot_arm64(target_id: str) -> TargetDescriptor:
    return TargetDescriptor(target_id, "arm64", target_id, BootMethod.NETBOOT)


TARGETS: dict[str, TargetDescriptor] = {
    "qemu-x86": TargetDescriptor("qemu-x86", "x86", "x86", BootMethod.QEMU),
    "qemu-arm64": TargetDescriptor("qemu-arm64", "arm64", "arm64", BootMethod.QEMU),
    "pc": TargetDescriptor("pc", "x86", "x86", BootMethod.NETBOOT),
    "hikey960": _netboot_arm64("hikey960"),
    "odroidc2": _netboot_arm64("odroidc2"),
    "rpi3": _netboot_arm64("rpi3"),
}


def resolve_target(target_id: str) -> TargetDescriptor:
    """Look up a target descriptor.

    Args:
        target_id: Catalog key (e.g. 'qemu-x86', 'hikey960').

    Returns:
        The matching TargetDescriptor.

    Raises:
        TargetNotFoundError: If the identifier is unknown.
    """
    try:
        return TARGETS[target_id]
    except KeyError:
        raise TargetNotFoundError(target_id) from None


def list_targets() -> list[TargetDescriptor]:
    """Return all catalog rows in catalog order."""
    return list(TARGETS.values())


__all__ = ["TARGETS", "TargetNotFoundError", "list_targets", "resolve_target"]
