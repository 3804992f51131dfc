"""Service-layer helpers for snippet CRUD and dashboard listing."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Sequence

from fastapi import HTTPException

from ..snippet import Snippet, SnippetDraft, SnippetPatch, SnippetQuery, SortKey, apply_query
from ..snippet.model import DEFAULT_LANGUAGE, EDITOR_LANGUAGES, FILTER_LANGUAGES, SIDEBAR_LANGUAGES
from ..store import SnippetNotFoundError, SnippetStore, StoreConfig
from .model import LanguageOptionsResponse, QueryEcho, SnippetListResponse, SnippetResponse

logger = logging.getLogger("snippet_manager")


@dataclass(slots=True)
class ApiSettings:
    """Runtime configuration for the API server."""

    redis_url: str
    namespace: str
    record_ttl: int | None
    default_sort: str
    user_header: str

    @classmethod
    def from_env(cls) -> "ApiSettings":
        def _optional_int(name: str) -> int | None:
            raw = os.getenv(name)
            if not raw:
                return None
            try:
                return int(raw)
            except ValueError:
                logger.warning("Invalid integer for %s: %s", name, raw)
                return None

        default_sort = os.getenv("SNIPPET_DEFAULT_SORT", SortKey.NEWEST.value)
        if SortKey.parse(default_sort) is None:
            logger.warning("Unknown SNIPPET_DEFAULT_SORT %s; using newest", default_sort)
            default_sort = SortKey.NEWEST.value

        return cls(
            redis_url=os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0"),
            namespace=os.getenv("SNIPPET_NAMESPACE", "snippets"),
            record_ttl=_optional_int("SNIPPET_RECORD_TTL"),
            default_sort=default_sort,
            user_header=os.getenv("SNIPPET_USER_HEADER", "X-User-Id"),
        )

    def store_config(self) -> StoreConfig:
        return StoreConfig(
            redis_url=self.redis_url,
            namespace=self.namespace,
            record_ttl=self.record_ttl,
        )


def build_query(
    *,
    language: str | None,
    languages: Sequence[str] | None,
    q: str | None,
    sort: str | None,
    default_sort: str = SortKey.NEWEST.value,
) -> SnippetQuery:
    return SnippetQuery(
        language=language or "All",
        selected_languages=tuple(languages or ()),
        search=q or "",
        sort=sort or default_sort,
    )


def _require_owned(store: SnippetStore, snippet_id: str, user_id: str) -> Snippet:
    snippet = store.get(snippet_id)
    if snippet is None or snippet.user_id != user_id:
        raise HTTPException(status_code=404, detail="Snippet not found")
    return snippet


def list_snippets_service(
    user_id: str,
    query: SnippetQuery,
    store: SnippetStore,
) -> SnippetListResponse:
    try:
        snippets = store.list_snippets(user_id)
    except Exception as exc:  # pragma: no cover - transport error guard
        logger.exception("Failed to load snippets for user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to load snippets") from exc

    visible = apply_query(snippets, query)
    return SnippetListResponse(
        total=len(visible),
        query=QueryEcho.from_query(query),
        results=[SnippetResponse.from_snippet(snippet) for snippet in visible],
    )


def create_snippet_service(
    user_id: str,
    draft: SnippetDraft,
    store: SnippetStore,
) -> SnippetResponse:
    try:
        snippet = store.create(user_id, draft)
    except Exception as exc:  # pragma: no cover - transport error guard
        logger.exception("Failed to create snippet for user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to create snippet") from exc
    return SnippetResponse.from_snippet(snippet)


def get_snippet_service(
    snippet_id: str,
    user_id: str,
    store: SnippetStore,
) -> SnippetResponse:
    return SnippetResponse.from_snippet(_require_owned(store, snippet_id, user_id))


def update_snippet_service(
    snippet_id: str,
    user_id: str,
    patch: SnippetPatch,
    store: SnippetStore,
) -> SnippetResponse:
    _require_owned(store, snippet_id, user_id)
    try:
        updated = store.update(snippet_id, patch)
    except SnippetNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Snippet not found") from exc
    except Exception as exc:  # pragma: no cover - transport error guard
        logger.exception("Failed to update snippet %s", snippet_id)
        raise HTTPException(status_code=500, detail="Failed to update snippet") from exc
    return SnippetResponse.from_snippet(updated)


def delete_snippet_service(
    snippet_id: str,
    user_id: str,
    store: SnippetStore,
) -> None:
    _require_owned(store, snippet_id, user_id)
    try:
        removed = store.delete(snippet_id)
    except Exception as exc:  # pragma: no cover - transport error guard
        logger.exception("Failed to delete snippet %s", snippet_id)
        raise HTTPException(status_code=500, detail="Failed to delete snippet") from exc
    if not removed:
        raise HTTPException(status_code=404, detail="Snippet not found")


def language_options_service() -> LanguageOptionsResponse:
    return LanguageOptionsResponse(
        filter=list(FILTER_LANGUAGES),
        sidebar=list(SIDEBAR_LANGUAGES),
        editor=list(EDITOR_LANGUAGES),
        default=DEFAULT_LANGUAGE,
    )


__all__ = [
    "ApiSettings",
    "build_query",
    "create_snippet_service",
    "delete_snippet_service",
    "get_snippet_service",
    "language_options_service",
    "list_snippets_service",
    "update_snippet_service",
]
