"""External collaborators used by the deployment pipeline."""

from deployer.services.filesystem import FileSystem, LocalFileSystem
from deployer.services.github import GitHubClient
from deployer.services.process_runner import ProcessResult, ProcessRunner, ShellProcessRunner
from deployer.services.source_control import (
    GitSourceControlClient,
    SourceControlClient,
    SourceControlOperationError,
)

__all__ = [
    "FileSystem",
    "GitHubClient",
    "GitSourceControlClient",
    "LocalFileSystem",
    "ProcessResult",
    "ProcessRunner",
    "ShellProcessRunner",
    "SourceControlClient",
    "SourceControlOperationError",
]
