"""GitHub REST client for listing recent commits."""

from datetime import datetime, timezone
from typing import Any

import httpx

from deployer.config import settings
from deployer.core.exceptions import CommitListingError
from deployer.models.commit import Commit, CommitAuthor
from deployer.utils.logging import get_logger

logger = get_logger(__name__)


class GitHubClient:
    """Read-only passthrough to ``GET /repos/{owner}/{repo}/commits``.

    The token is forwarded as-is and never stored.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.github_api_url).rstrip("/")
        self.timeout = timeout or settings.github_timeout_seconds
        self._transport = transport

    async def list_commits(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        per_page: int | None = None,
    ) -> list[Commit]:
        """List the most recent commits on the default branch."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        params = {"per_page": per_page or settings.commits_per_page}
        url = f"{self.base_url}/repos/{owner}/{repo}/commits"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url, headers=headers, params=params)
        except httpx.HTTPError as e:
            logger.error("github.request_failed", owner=owner, repo=repo, error=str(e))
            raise CommitListingError(owner, repo, str(e)) from e

        if response.status_code != 200:
            logger.warning(
                "github.unexpected_status",
                owner=owner,
                repo=repo,
                status_code=response.status_code,
            )
            raise CommitListingError(
                owner,
                repo,
                _error_message(response),
                status_code=response.status_code,
            )

        try:
            body = response.json()
            if not isinstance(body, list):
                raise TypeError(f"expected a list of commits, got {type(body).__name__}")
            commits = [_parse_commit(item) for item in body]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            # pydantic's ValidationError is a ValueError
            logger.error("github.unexpected_body", owner=owner, repo=repo, error=str(e))
            raise CommitListingError(
                owner, repo, f"Unexpected response body: {e}", status_code=response.status_code
            ) from e

        logger.info("github.commits_listed", owner=owner, repo=repo, count=len(commits))
        return commits


def _parse_commit(item: dict[str, Any]) -> Commit:
    details = item.get("commit") or {}
    git_author = details.get("author") or {}
    account = item.get("author") or {}

    date = git_author.get("date") or datetime.now(timezone.utc)

    return Commit(
        sha=item["sha"],
        message=details.get("message", ""),
        author=CommitAuthor(
            name=git_author.get("name") or "Unknown",
            email=git_author.get("email") or "",
            avatar=account.get("avatar_url") or "",
        ),
        date=date,
        url=item.get("html_url") or "",
    )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    message = body.get("message") if isinstance(body, dict) else None
    return message or f"GitHub responded with status {response.status_code}"
