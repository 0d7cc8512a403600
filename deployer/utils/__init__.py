"""Utility functions for Commit Deployer."""

from deployer.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
