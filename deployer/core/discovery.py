"""Build-output discovery.

Front-end toolchains write their output to different conventional
directories. Candidates are probed in a fixed priority order and the first
one that exists as a directory wins, even if a later candidate also exists.
When none exists the whole checkout is the artifact.
"""

from pathlib import Path

from deployer.models.deployment import BuildOutput, BuildOutputLabel
from deployer.services.filesystem import FileSystem
from deployer.utils.logging import get_logger

logger = get_logger(__name__)

BUILD_OUTPUT_CANDIDATES: tuple[BuildOutputLabel, ...] = (
    BuildOutputLabel.NEXT,  # server framework (Next.js)
    BuildOutputLabel.BUILD,
    BuildOutputLabel.DIST,  # bundlers (Vite, webpack, Parcel)
    BuildOutputLabel.OUT,  # static export
    BuildOutputLabel.PUBLIC,
)


def discover_build_output(filesystem: FileSystem, workspace_root: Path) -> BuildOutput:
    """Pick the directory to deploy from a checked-out workspace."""
    for label in BUILD_OUTPUT_CANDIDATES:
        candidate = workspace_root / label.value
        if filesystem.is_directory(candidate):
            logger.info("discovery.build_output_found", label=label.value, path=str(candidate))
            return BuildOutput(label=label, path=candidate)

    logger.info("discovery.fallback_to_workspace_root", path=str(workspace_root))
    return BuildOutput(label=BuildOutputLabel.ENTIRE_PROJECT, path=workspace_root)
