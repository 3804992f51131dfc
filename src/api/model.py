"""Pydantic models for the public API surface."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from ..snippet import Snippet, SnippetQuery
from ..snippet.filtering import created_at_seconds


class SnippetResponse(BaseModel):
    id: str
    title: str
    code: str
    language: str
    tags: List[str]
    created_at: str
    created_at_seconds: int

    @classmethod
    def from_snippet(cls, snippet: Snippet) -> "SnippetResponse":
        return cls(
            id=snippet.id,
            title=snippet.title,
            code=snippet.code,
            language=snippet.language,
            tags=list(snippet.tags),
            created_at=snippet.created_at.isoformat(),
            created_at_seconds=created_at_seconds(snippet),
        )


class QueryEcho(BaseModel):
    language: str
    languages: List[str] = Field(default_factory=list)
    q: str = ""
    sort: str

    @classmethod
    def from_query(cls, query: SnippetQuery) -> "QueryEcho":
        return cls(
            language=query.language,
            languages=list(query.selected_languages),
            q=query.search,
            sort=query.sort,
        )


class SnippetListResponse(BaseModel):
    total: int
    query: QueryEcho
    results: List[SnippetResponse]


class LanguageOptionsResponse(BaseModel):
    filter: List[str]
    sidebar: List[str]
    editor: List[str]
    default: str


__all__ = [
    "LanguageOptionsResponse",
    "QueryEcho",
    "SnippetListResponse",
    "SnippetResponse",
]
