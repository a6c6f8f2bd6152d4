"""Repository and remote models."""

from pydantic import BaseModel, ConfigDict, Field


class Remote(BaseModel):
    """A named remote read from a repository's git config."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class Repository(BaseModel):
    """A discovered git repository.

    A snapshot taken at discovery time; the remotes may be stale if the
    config changes on disk afterwards.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    remotes: list[Remote] = Field(default_factory=list)


class MatchedRemote(BaseModel):
    """A remote whose URL qualifies for rewriting, with the proposed URL."""

    model_config = ConfigDict(frozen=True)

    remote: Remote
    new_url: str


class MatchedRepository(Repository):
    """A repository with at least one matched remote."""

    matched_remotes: list[MatchedRemote] = Field(default_factory=list)
