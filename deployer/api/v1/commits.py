"""Commit listing endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from deployer.api.deps import GitHubDep
from deployer.core.exceptions import InvalidRequestError
from deployer.models.commit import CommitListResponse

router = APIRouter()


@router.get(
    "/commits",
    response_model=CommitListResponse,
    summary="List recent commits",
    description="Passthrough to the GitHub API listing the latest commits of a repository.",
    responses={400: {"description": "Owner or repo missing"}},
)
async def list_commits(
    github: GitHubDep,
    owner: Annotated[str | None, Query()] = None,
    repo: Annotated[str | None, Query()] = None,
    token: Annotated[str | None, Query()] = None,
) -> CommitListResponse:
    """List the latest commits an operator can deploy."""
    owner = (owner or "").strip()
    repo = (repo or "").strip()
    if not owner or not repo:
        missing = [name for name, value in (("owner", owner), ("repo", repo)) if not value]
        raise InvalidRequestError("Owner and repo parameters are required", missing)

    commits = await github.list_commits(owner, repo, token=token or None)
    return CommitListResponse(commits=commits)
