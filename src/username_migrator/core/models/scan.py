"""Scan-related models."""

from enum import Enum

from pydantic import BaseModel, Field

from username_migrator.core.models.repository import MatchedRepository


class ScanEventType(str, Enum):
    """Events produced by the directory walk."""

    VISITED = "visited"
    SKIPPED = "skipped"
    FOUND_REPO = "found_repo"
    ERROR = "error"


class ScanEvent(BaseModel):
    """A single walk event. ``message`` is only set for errors."""

    type: ScanEventType
    path: str
    message: str | None = None


class ScanError(BaseModel):
    """A path that could not be scanned."""

    path: str
    message: str


class ScanProgress(BaseModel):
    """Running totals reported while scanning."""

    current_path: str = ""
    directories_scanned: int = 0
    directories_skipped: int = 0
    repositories_found: int = 0
    matched_count: int = 0


class ScanResult(BaseModel):
    """Aggregate result of a scan, complete or cancelled."""

    directories_scanned: int = 0
    directories_skipped: int = 0
    repositories_found: int = 0
    matched_repositories: list[MatchedRepository] = Field(default_factory=list)
    errors: list[ScanError] = Field(default_factory=list)
    elapsed_ms: float = 0.0
    cancelled: bool = False
