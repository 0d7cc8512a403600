"""Copy the discovered build output into the target path."""

from pathlib import Path

from deployer.core.exceptions import TransferError
from deployer.models.deployment import BuildOutput
from deployer.services.filesystem import FileSystem
from deployer.utils.logging import get_logger

logger = get_logger(__name__)

DEPENDENCY_CACHE_PATTERNS = ("node_modules",)
VCS_METADATA_PATTERNS = (".git",)
ENV_FILE_PATTERNS = (".env", ".env.*")


def whole_project_exclusions(scratch_root: Path) -> frozenset[str]:
    """Globs skipped when the entire checkout is deployed.

    The scratch root's own name is included so a checkout that contains
    the scratch directory is never copied into itself.
    """
    return frozenset(
        (
            *DEPENDENCY_CACHE_PATTERNS,
            *VCS_METADATA_PATTERNS,
            *ENV_FILE_PATTERNS,
            scratch_root.name,
        )
    )


def transfer_build_output(
    filesystem: FileSystem,
    build_output: BuildOutput,
    target: Path,
    scratch_root: Path,
) -> None:
    """Create ``target`` if needed and merge the build output into it.

    A real build-output directory is copied as-is. Copying the workspace
    root applies ``whole_project_exclusions``. Files already at the target
    that the new output does not contain are left in place.
    """
    exclusions = (
        whole_project_exclusions(scratch_root) if build_output.is_workspace_root else frozenset()
    )

    logger.info(
        "transfer.started",
        source=str(build_output.path),
        target=str(target),
        excluded=sorted(exclusions),
    )

    try:
        filesystem.make_dirs(target)
        filesystem.copy_tree(build_output.path, target, exclude_patterns=sorted(exclusions))
    except OSError as e:
        raise TransferError(
            f"Failed to copy {build_output.path} to {target}: {e}",
            {"source": str(build_output.path), "target": str(target)},
        ) from e

    logger.info("transfer.completed", target=str(target))
