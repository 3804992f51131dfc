"""FastAPI routes for snippet CRUD and the filtered dashboard list."""

from __future__ import annotations

from typing import List

import redis
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from ..snippet import SnippetDraft, SnippetPatch
from ..store import SnippetStore
from .model import LanguageOptionsResponse, SnippetListResponse, SnippetResponse
from .service import (
    ApiSettings,
    build_query,
    create_snippet_service,
    delete_snippet_service,
    get_snippet_service,
    language_options_service,
    list_snippets_service,
    update_snippet_service,
)


def get_settings(request: Request) -> ApiSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, ApiSettings):
        raise RuntimeError("API settings have not been initialised")
    return settings


def _get_redis_client(request: Request, settings: ApiSettings) -> redis.Redis:
    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        redis_client = redis.Redis.from_url(settings.redis_url)
        request.app.state.redis_client = redis_client
    return redis_client


def get_store(
    request: Request,
    settings: ApiSettings = Depends(get_settings),
) -> SnippetStore:
    redis_client = _get_redis_client(request, settings)
    return SnippetStore(redis_client, settings.store_config())


def get_current_user(
    request: Request,
    settings: ApiSettings = Depends(get_settings),
) -> str:
    """Read the user id forwarded by the upstream identity provider."""
    user_id = (request.headers.get(settings.user_header) or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    return user_id


router = APIRouter()


@router.get("/snippets", response_model=SnippetListResponse, tags=["snippets"])
async def list_snippets(
    language: str = Query("All", description="Language dropdown value; 'All' disables it"),
    languages: List[str] = Query(
        [], description="Sidebar language selection (exact match, repeatable)"
    ),
    q: str = Query("", description="Case-insensitive search over titles and tags"),
    sort: str | None = Query(None, description="newest, oldest, name or name-desc"),
    user_id: str = Depends(get_current_user),
    store: SnippetStore = Depends(get_store),
    settings: ApiSettings = Depends(get_settings),
) -> SnippetListResponse:
    query = build_query(
        language=language,
        languages=languages,
        q=q,
        sort=sort,
        default_sort=settings.default_sort,
    )
    return list_snippets_service(user_id, query, store)


@router.post(
    "/snippets",
    response_model=SnippetResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["snippets"],
)
async def create_snippet(
    payload: SnippetDraft,
    user_id: str = Depends(get_current_user),
    store: SnippetStore = Depends(get_store),
) -> SnippetResponse:
    return create_snippet_service(user_id, payload, store)


@router.get("/snippets/{snippet_id}", response_model=SnippetResponse, tags=["snippets"])
async def get_snippet(
    snippet_id: str,
    user_id: str = Depends(get_current_user),
    store: SnippetStore = Depends(get_store),
) -> SnippetResponse:
    return get_snippet_service(snippet_id, user_id, store)


@router.put("/snippets/{snippet_id}", response_model=SnippetResponse, tags=["snippets"])
async def update_snippet(
    snippet_id: str,
    payload: SnippetPatch,
    user_id: str = Depends(get_current_user),
    store: SnippetStore = Depends(get_store),
) -> SnippetResponse:
    return update_snippet_service(snippet_id, user_id, payload, store)


@router.delete("/snippets/{snippet_id}", response_class=Response, tags=["snippets"])
async def delete_snippet(
    snippet_id: str,
    user_id: str = Depends(get_current_user),
    store: SnippetStore = Depends(get_store),
) -> Response:
    """Delete one of the caller's snippets."""

    delete_snippet_service(snippet_id, user_id, store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/languages", response_model=LanguageOptionsResponse, tags=["languages"])
async def list_languages() -> LanguageOptionsResponse:
    return language_options_service()


__all__ = ["router"]
