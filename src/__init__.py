"""Core package for the snippet manager service."""

from .snippet import Snippet, SnippetDraft, SnippetPatch, SnippetQuery, SortKey, apply_query
from .store import SnippetFeed, SnippetStore, StoreConfig

__all__ = [
    "Snippet",
    "SnippetDraft",
    "SnippetPatch",
    "SnippetQuery",
    "SortKey",
    "apply_query",
    "SnippetFeed",
    "SnippetStore",
    "StoreConfig",
]
