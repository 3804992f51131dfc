"""FastAPI application for the snippet manager.

Serves the per-user snippet CRUD and dashboard listing routes and mounts the
MCP ``search`` tool under ``/mcp``. The caller's user id comes from the header
named by ``SNIPPET_USER_HEADER``.
"""

from __future__ import annotations

import redis
from fastapi import FastAPI
from fastmcp import FastMCP

from .route import router
from .service import ApiSettings
from ..mcpserver import mcp


OPENAPI_TAGS = [
    {"name": "snippets", "description": "Create, edit, delete and list a user's snippets."},
    {"name": "languages", "description": "Language options offered by the dashboard and editor."},
]


def create_app(
    settings: ApiSettings | None = None,
    *,
    redis_client: redis.Redis | None = None,
    mcp_server: FastMCP | None = None,
) -> FastAPI:
    """Build the API app; settings default to the environment."""

    mcp_app = (mcp_server or mcp).http_app("/")

    app = FastAPI(
        title="Snippet Manager API",
        description="Personal code snippet store with dashboard filtering and sorting.",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=mcp_app.lifespan,
    )
    app.state.settings = settings or ApiSettings.from_env()
    if redis_client is not None:
        app.state.redis_client = redis_client
    app.include_router(router)
    app.mount("/mcp", mcp_app)

    return app


app = create_app()


__all__ = ["OPENAPI_TAGS", "app", "create_app"]
