from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Options offered by the dashboard language dropdown.
FILTER_LANGUAGES = (
    "All",
    "JavaScript",
    "TypeScript",
    "Python",
    "Java",
    "C++",
    "HTML",
    "CSS",
    "SQL",
    "JSON",
    "Markdown",
)

# Checkbox set shown in the sidebar.
SIDEBAR_LANGUAGES = ("JavaScript", "Python", "Java")

EDITOR_LANGUAGES = (
    "javascript",
    "typescript",
    "jsx",
    "tsx",
    "python",
    "java",
    "cpp",
    "css",
    "html",
    "sql",
    "json",
    "markdown",
)

DEFAULT_LANGUAGE = "javascript"


def normalize_tags(tags: Iterable[Any] | None) -> List[str]:
    """Trim tags, drop empty ones and keep the first occurrence of duplicates."""
    if not tags:
        return []

    normalized: List[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


def coerce_timestamp(value: Any) -> Any:
    """Convert epoch seconds and document-store timestamps into datetimes.

    Values pydantic already understands (datetimes, ISO strings) pass through.
    """
    if isinstance(value, Mapping) and "seconds" in value:
        try:
            seconds = int(value["seconds"])
        except (TypeError, ValueError, OverflowError):
            return value
        return _from_epoch(seconds)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _from_epoch(value)
    return value


def _from_epoch(seconds: float) -> datetime:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"Timestamp out of range: {seconds!r}") from exc


class Snippet(BaseModel):
    """A stored unit of code with its metadata."""

    id: str
    title: str
    code: str = ""
    language: str = ""
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
    )
    user_id: str | None = Field(None, alias="userId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Any:
        return coerce_timestamp(value)


class SnippetDraft(BaseModel):
    """Fields submitted when creating a snippet."""

    title: str = Field(..., description="Snippet title")
    code: str = Field(..., description="Code body")
    language: str = Field(
        DEFAULT_LANGUAGE, description="Language identifier for highlighting"
    )
    tags: List[str] = Field(default_factory=list, description="Free-form tags")

    model_config = ConfigDict(extra="ignore")

    @field_validator("title")
    @classmethod
    def _require_title(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value

    @field_validator("code")
    @classmethod
    def _require_code(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Code is required")
        return value

    @field_validator("language")
    @classmethod
    def _require_language(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Language is required")
        return value.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> List[str]:
        return normalize_tags(value)


class SnippetPatch(BaseModel):
    """Partial update applied when editing a snippet."""

    title: str | None = None
    code: str | None = None
    language: str | None = None
    tags: List[str] | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("title", "code", "language")
    @classmethod
    def _reject_blank(cls, value: str | None, info) -> str | None:
        if value is not None and not value.strip():
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> List[str] | None:
        if value is None:
            return None
        return normalize_tags(value)

    def apply(self, snippet: Snippet) -> Snippet:
        """Return a copy of ``snippet`` with the provided fields replaced."""
        changes = self.model_dump(exclude_none=True)
        if "language" in changes:
            changes["language"] = changes["language"].strip()
        return snippet.model_copy(update=changes)


__all__ = [
    "DEFAULT_LANGUAGE",
    "EDITOR_LANGUAGES",
    "FILTER_LANGUAGES",
    "SIDEBAR_LANGUAGES",
    "Snippet",
    "SnippetDraft",
    "SnippetPatch",
    "coerce_timestamp",
    "normalize_tags",
]
