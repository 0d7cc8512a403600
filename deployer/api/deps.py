"""Dependency injection for API endpoints."""

from typing import Annotated

from fastapi import Depends

from deployer.core.pipeline import DeploymentPipeline, get_pipeline
from deployer.services.github import GitHubClient


async def get_deployment_pipeline() -> DeploymentPipeline:
    """Get the deployment pipeline."""
    return get_pipeline()


async def get_github_client() -> GitHubClient:
    """Get the GitHub commit listing client."""
    return GitHubClient()


# Type aliases for cleaner signatures
PipelineDep = Annotated[DeploymentPipeline, Depends(get_deployment_pipeline)]
GitHubDep = Annotated[GitHubClient, Depends(get_github_client)]
