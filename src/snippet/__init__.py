"""Snippet records, validation and dashboard filtering."""

from .filtering import ALL_LANGUAGES, SnippetQuery, SortKey, apply_query
from .model import Snippet, SnippetDraft, SnippetPatch

__all__ = [
    "ALL_LANGUAGES",
    "Snippet",
    "SnippetDraft",
    "SnippetPatch",
    "SnippetQuery",
    "SortKey",
    "apply_query",
]
