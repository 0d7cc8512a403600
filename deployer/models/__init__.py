"""Data models for Commit Deployer."""

from deployer.models.commit import (
    Commit,
    CommitAuthor,
    CommitListResponse,
)
from deployer.models.deployment import (
    BuildOutput,
    BuildOutputLabel,
    DeploymentRequest,
    DeploymentStage,
    PipelineResult,
    Workspace,
)

__all__ = [
    # Deployment models
    "BuildOutput",
    "BuildOutputLabel",
    "DeploymentRequest",
    "DeploymentStage",
    "PipelineResult",
    "Workspace",
    # Commit models
    "Commit",
    "CommitAuthor",
    "CommitListResponse",
]
