"""Git operations: clone a repository and check out one commit."""

from abc import ABC, abstractmethod
from pathlib import Path

from git import Git, GitCommandError, Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError, UnsafeProtocolError

from deployer.utils.logging import get_logger

logger = get_logger(__name__)


class SourceControlOperationError(Exception):
    """A git command failed or was killed after its timeout."""


class SourceControlClient(ABC):
    """Clone/checkout provider used by the pipeline.

    Methods are blocking; the pipeline runs them in a worker thread.
    """

    @abstractmethod
    def clone(self, url: str, destination: Path, timeout: float | None = None) -> None:
        """Clone ``url`` into ``destination`` with full history."""

    @abstractmethod
    def checkout_commit(
        self, working_dir: Path, commit_id: str, timeout: float | None = None
    ) -> None:
        """Move the working tree of ``working_dir`` to ``commit_id``."""

    @abstractmethod
    def resolve_head(self, working_dir: Path) -> str:
        """Return the full SHA that ``HEAD`` points at."""


class GitSourceControlClient(SourceControlClient):
    """GitPython-backed client.

    Uses the plain ``Git`` command wrapper for cloning because
    ``Repo.clone_from`` streams the process and ignores
    ``kill_after_timeout``.
    """

    def clone(self, url: str, destination: Path, timeout: float | None = None) -> None:
        try:
            Git.check_unsafe_protocols(url)
        except UnsafeProtocolError as e:
            raise SourceControlOperationError(str(e)) from e

        logger.debug("git.clone", url=url, destination=str(destination))
        try:
            Git(str(destination.parent)).clone(
                "--", url, str(destination), kill_after_timeout=timeout
            )
        except GitCommandError as e:
            raise SourceControlOperationError(_describe(e)) from e

    def checkout_commit(
        self, working_dir: Path, commit_id: str, timeout: float | None = None
    ) -> None:
        if commit_id.startswith("-"):
            raise SourceControlOperationError(f"invalid commit identifier: {commit_id!r}")

        logger.debug("git.checkout", working_dir=str(working_dir), commit=commit_id)
        try:
            Repo(str(working_dir)).git.checkout(
                "--detach", commit_id, kill_after_timeout=timeout
            )
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise SourceControlOperationError(f"not a git repository: {working_dir}") from e
        except GitCommandError as e:
            raise SourceControlOperationError(_describe(e)) from e

    def resolve_head(self, working_dir: Path) -> str:
        try:
            return Repo(str(working_dir)).git.rev_parse("HEAD")
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise SourceControlOperationError(f"not a git repository: {working_dir}") from e
        except GitCommandError as e:
            raise SourceControlOperationError(_describe(e)) from e


def _describe(error: GitCommandError) -> str:
    stderr = (error.stderr or "").strip()
    # GitPython prefixes captured stderr with "stderr: '"
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:") :].strip().strip("'").strip()
    return stderr or str(error)
