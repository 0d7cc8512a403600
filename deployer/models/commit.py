"""Commit listing models."""

from datetime import datetime

from pydantic import BaseModel


class CommitAuthor(BaseModel):
    """Author of a commit as reported by the provider."""

    name: str = "Unknown"
    email: str = ""
    avatar: str = ""


class Commit(BaseModel):
    """A commit an operator can choose to deploy."""

    sha: str
    message: str
    author: CommitAuthor
    date: datetime
    url: str = ""


class CommitListResponse(BaseModel):
    """Response for listing commits."""

    commits: list[Commit]
