"""Scratch workspace allocation and removal."""

import os
from pathlib import Path
from uuid import uuid4

from deployer.core.exceptions import CleanupError, DeployerError, ErrorKind
from deployer.models.deployment import Workspace
from deployer.services.filesystem import FileSystem
from deployer.utils.logging import get_logger

logger = get_logger(__name__)


class WorkspaceAllocationError(DeployerError):
    """The scratch directory for a run could not be created."""

    kind = ErrorKind.WORKSPACE


def new_workspace_id() -> str:
    """Random identifier scoped to this process, e.g. ``deploy-4242-9f0c...``."""
    return f"deploy-{os.getpid()}-{uuid4().hex}"


class WorkspaceManager:
    """Hands out one fresh directory per run under ``scratch_root``."""

    def __init__(self, filesystem: FileSystem, scratch_root: Path):
        self.filesystem = filesystem
        self.scratch_root = scratch_root.expanduser().resolve()

    def workspace_for(self, workspace_id: str) -> Workspace:
        return Workspace(id=workspace_id, path=self.scratch_root / workspace_id)

    def allocate(self, workspace_id: str | None = None) -> Workspace:
        workspace = self.workspace_for(workspace_id or new_workspace_id())
        try:
            self.filesystem.make_dirs(workspace.path)
        except OSError as e:
            raise WorkspaceAllocationError(
                f"Could not create workspace {workspace.path}: {e}",
                {"workspace_path": str(workspace.path)},
            ) from e

        logger.debug("workspace.allocated", workspace_id=workspace.id, path=str(workspace.path))
        return workspace

    def release(self, workspace: Workspace) -> None:
        """Remove the workspace; raises ``CleanupError`` on failure."""
        try:
            self.filesystem.remove_tree(workspace.path)
        except OSError as e:
            raise CleanupError(str(workspace.path), str(e)) from e

        logger.debug("workspace.released", workspace_id=workspace.id)
