"""Redis persistence for snippets and the live change feed."""

from .config import StoreConfig
from .feed import SnippetFeed, SnippetListReplaced, watch_filtered
from .snippet_store import SnippetNotFoundError, SnippetStore

__all__ = [
    "SnippetFeed",
    "SnippetListReplaced",
    "SnippetNotFoundError",
    "SnippetStore",
    "StoreConfig",
    "watch_filtered",
]
