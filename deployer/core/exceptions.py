"""Custom exceptions for Commit Deployer."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-readable failure category reported to callers."""

    INVALID_REQUEST = "invalid_request"
    WORKSPACE = "workspace"
    SOURCE_CONTROL = "source_control"
    DEPENDENCY_INSTALL = "dependency_install"
    TRANSFER = "transfer"
    CLEANUP = "cleanup"
    COMMIT_LISTING = "commit_listing"


class DeployerError(Exception):
    """Base exception for Commit Deployer."""

    kind: ErrorKind

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidRequestError(DeployerError):
    """A deployment request is missing a required field."""

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message, {"fields": fields} if fields else None)
        self.fields = fields or []


class SourceControlError(DeployerError):
    """Clone or checkout of the repository failed."""

    kind = ErrorKind.SOURCE_CONTROL


class DependencyInstallError(DeployerError):
    """The dependency install command failed."""

    kind = ErrorKind.DEPENDENCY_INSTALL

    def __init__(self, message: str, output: str | None = None):
        details = {}
        if output:
            details["output"] = output
        super().__init__(f"Dependency install failed: {message}", details)


class TransferError(DeployerError):
    """Copying the build output to the target path failed."""

    kind = ErrorKind.TRANSFER


class CleanupError(DeployerError):
    """Removing the scratch workspace failed."""

    kind = ErrorKind.CLEANUP

    def __init__(self, workspace_path: str, reason: str):
        super().__init__(
            f"Failed to remove workspace {workspace_path}: {reason}",
            {"workspace_path": workspace_path},
        )


class CommitListingError(DeployerError):
    """Fetching commits from the provider failed."""

    kind = ErrorKind.COMMIT_LISTING

    def __init__(self, owner: str, repo: str, reason: str, status_code: int | None = None):
        details: dict[str, Any] = {"owner": owner, "repo": repo}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(f"Failed to fetch commits for {owner}/{repo}: {reason}", details)
        self.status_code = status_code
