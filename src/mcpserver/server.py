"""FastMCP server exposing the snippet dashboard search as an MCP tool."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import redis
from fastapi import HTTPException
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from ..api.service import (
    ApiSettings,
    build_query,
    list_snippets_service,
)
from ..snippet import SortKey
from ..store import SnippetStore

logger = logging.getLogger("snippet_manager")


class ServiceContext:
    """Lazy dependency container for MCP tool handlers."""

    def __init__(
        self,
        *,
        settings: ApiSettings | None = None,
        store: SnippetStore | None = None,
    ) -> None:
        self._settings = settings
        self._store = store

    @property
    def settings(self) -> ApiSettings:
        if self._settings is None:
            self._settings = ApiSettings.from_env()
        return self._settings

    def store(self) -> SnippetStore:
        if self._store is None:
            redis_client = redis.Redis.from_url(self.settings.redis_url)
            self._store = SnippetStore(redis_client, self.settings.store_config())
        return self._store


def _handle_http_exception(exc: HTTPException, *, default_message: str) -> ToolError:
    detail = exc.detail if isinstance(exc.detail, str) else None
    message = detail or default_message
    return ToolError(message)


def _handle_generic_exception(exc: Exception, *, default_message: str) -> ToolError:
    logger.exception(default_message)
    return ToolError(f"{default_message}: {exc}")


def search_snippets(
    services: ServiceContext,
    user_id: str,
    *,
    query: str = "",
    language: str = "All",
    languages: List[str] | None = None,
    sort: str | None = None,
    limit: int | None = None,
) -> Dict[str, Any]:
    """Filter and sort a user's snippets and return structured results."""
    if not user_id or not user_id.strip():
        raise ToolError("A user id is required.")
    if sort and SortKey.parse(sort) is None:
        raise ToolError("Sort must be one of newest, oldest, name or name-desc.")
    if limit is not None and limit <= 0:
        raise ToolError("Limit must be a positive integer.")

    snippet_query = build_query(
        language=language,
        languages=languages,
        q=query,
        sort=sort,
        default_sort=services.settings.default_sort,
    )

    try:
        response = list_snippets_service(
            user_id.strip(),
            snippet_query,
            services.store(),
        )
    except HTTPException as exc:  # pragma: no cover - defensive
        raise _handle_http_exception(exc, default_message="Snippet search failed")
    except Exception as exc:  # pragma: no cover - defensive
        raise _handle_generic_exception(exc, default_message="Snippet search failed")

    if limit is not None:
        response.results = response.results[:limit]
    return response.model_dump()


def create_server(services: ServiceContext | None = None) -> FastMCP:
    """Create a FastMCP server wired to the snippet services."""

    services = services or ServiceContext()
    server = FastMCP("Snippets MCP Server")

    @server.tool(
        name="search",
        description=(
            "List a user's stored snippets the way the dashboard shows them. `query` is a"
            " case-insensitive substring matched against titles and tags; leave it empty to"
            " list everything. `language` narrows to one language (case-insensitive, 'All'"
            " for every language), `languages` to an exact set. `sort` is one of newest,"
            " oldest, name or name-desc."
        ),
        tags={"snippets", "search"},
    )
    def search(
        user_id: str,
        query: str = "",
        language: str = "All",
        languages: List[str] | None = None,
        sort: str | None = None,
        limit: int | None = None,
    ) -> Dict[str, Any]:
        """Query a user's snippets with the dashboard filters."""
        return search_snippets(
            services,
            user_id,
            query=query,
            language=language,
            languages=languages,
            sort=sort,
            limit=limit,
        )

    return server


mcp = create_server()

__all__ = ["ServiceContext", "create_server", "mcp", "search_snippets"]
