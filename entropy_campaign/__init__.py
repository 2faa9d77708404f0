"""Entropy Boot Campaign - repeated boot tests for the early-boot entropy collector.

This package drives campaigns of boot tests: it resolves a target and run
configuration, builds the boot image once, discovers a netboot device when
needed, then runs each kernel command line through the single-boot test
runner with bounded retry.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
