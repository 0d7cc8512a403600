"""Core functionality for Commit Deployer."""

from deployer.core.exceptions import (
    CleanupError,
    CommitListingError,
    DependencyInstallError,
    DeployerError,
    ErrorKind,
    InvalidRequestError,
    SourceControlError,
    TransferError,
)

__all__ = [
    "CleanupError",
    "CommitListingError",
    "DependencyInstallError",
    "DeployerError",
    "ErrorKind",
    "InvalidRequestError",
    "SourceControlError",
    "TransferError",
]
