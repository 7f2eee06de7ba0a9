"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field


class ReadmeRequest(BaseModel):
    """Request to generate a README for a repository."""

    repo_url: str = Field(..., description="Repository URL, e.g. https://github.com/user/repo")


class ReadmeResponse(BaseModel):
    """A fully generated README."""

    repo_url: str
    content: str
    status_messages: list[str] = Field(default_factory=list)
