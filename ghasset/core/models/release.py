"""
Release models — the typed view of the GitHub release API.

Only the fields the installer needs are modelled; everything else in
the API payload is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RepositoryRef(BaseModel):
    """An ``org/name`` pair that passed input validation."""

    model_config = ConfigDict(frozen=True)

    org: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.org}/{self.name}"

    def __str__(self) -> str:
        return self.slug


class AssetRecord(BaseModel):
    """A single downloadable file attached to a release."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int | None = None
    name: str | None = None
    content_type: str | None = None
    download_url: str | None = Field(default=None, alias="browser_download_url")


class ReleaseRecord(BaseModel):
    """A tagged release and its assets, in API order."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tag: str = Field(alias="tag_name")
    assets: list[AssetRecord] = Field(default_factory=list)


class RepositoryVisibility(BaseModel):
    """Outcome of the repository access check."""

    is_private: bool = False
    status: int = 200
