"""Client-side filtering and sorting of a user's snippet list.

Every function here is pure: inputs are never mutated and a new list is
returned, so callers can re-run :func:`apply_query` on every state change.
Snippets may be :class:`~src.snippet.model.Snippet` models, objects exposing
the same attributes, or raw documents (mappings). Missing or malformed fields
simply fail the comparisons instead of raising.
"""

from __future__ import annotations

import logging
import math
import unicodedata
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Mapping, Sequence, Tuple, TypeVar

logger = logging.getLogger("snippet_manager")

ALL_LANGUAGES = "All"

T = TypeVar("T")


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"
    NAME_DESC = "name-desc"

    @classmethod
    def parse(cls, value: Any) -> "SortKey | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True, slots=True)
class SnippetQuery:
    """Immutable dashboard filter state.

    ``language`` is the dropdown value (``"All"`` disables it),
    ``selected_languages`` the sidebar checkboxes, ``search`` the free-text
    box and ``sort`` the sort key. Unknown sort keys keep the input order.
    """

    language: str = ALL_LANGUAGES
    selected_languages: Tuple[str, ...] = field(default_factory=tuple)
    search: str = ""
    sort: str = SortKey.NEWEST.value

    def __post_init__(self) -> None:
        selected = self.selected_languages
        if selected is None:
            selected = ()
        elif isinstance(selected, str):
            selected = (selected,)
        object.__setattr__(self, "selected_languages", tuple(selected))
        if isinstance(self.sort, SortKey):
            object.__setattr__(self, "sort", self.sort.value)

    def with_language(self, language: str) -> "SnippetQuery":
        return replace(self, language=language)

    def with_search(self, search: str) -> "SnippetQuery":
        return replace(self, search=search)

    def with_sort(self, sort: str | SortKey) -> "SnippetQuery":
        return replace(self, sort=sort)

    def with_selected_languages(self, languages: Iterable[str]) -> "SnippetQuery":
        return replace(self, selected_languages=tuple(languages))

    def toggle_language(self, language: str) -> "SnippetQuery":
        """Uncheck ``language`` when selected, otherwise append it."""
        if language in self.selected_languages:
            remaining = tuple(item for item in self.selected_languages if item != language)
            return replace(self, selected_languages=remaining)
        return replace(self, selected_languages=self.selected_languages + (language,))

    @property
    def selected_language_set(self) -> FrozenSet[str]:
        return frozenset(self.selected_languages)


def _field(snippet: Any, name: str, alias: str | None = None) -> Any:
    if isinstance(snippet, Mapping):
        value = snippet.get(name)
        if value is None and alias:
            value = snippet.get(alias)
        return value
    value = getattr(snippet, name, None)
    if value is None and alias:
        value = getattr(snippet, alias, None)
    return value


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _tags(snippet: Any) -> List[str]:
    tags = _field(snippet, "tags")
    if isinstance(tags, str) or not isinstance(tags, Iterable):
        return []
    return [tag for tag in tags if isinstance(tag, str)]


def matches_language(snippet: Any, language: str | None) -> bool:
    """Dropdown filter: ``"All"`` or a case-insensitive language match."""
    if not isinstance(language, str) or language.lower() == ALL_LANGUAGES.lower():
        return True
    snippet_language = _text(_field(snippet, "language"))
    if snippet_language is None:
        return False
    return snippet_language.lower() == language.lower()


def matches_selected_languages(snippet: Any, selected: Iterable[str] | None) -> bool:
    """Sidebar filter: an empty selection passes, otherwise an exact member match."""
    selected_set = frozenset(selected or ())
    if not selected_set:
        return True
    return _text(_field(snippet, "language")) in selected_set


def matches_search(snippet: Any, search: str | None) -> bool:
    """Case-insensitive substring search over the title and the tags."""
    if not isinstance(search, str) or not search:
        return True
    needle = search.lower()
    title = _text(_field(snippet, "title"))
    if title is not None and needle in title.lower():
        return True
    return any(needle in tag.lower() for tag in _tags(snippet))


def matches_query(snippet: Any, query: SnippetQuery) -> bool:
    return (
        matches_language(snippet, query.language)
        and matches_selected_languages(snippet, query.selected_language_set)
        and matches_search(snippet, query.search)
    )


def filter_snippets(snippets: Iterable[T], query: SnippetQuery) -> List[T]:
    return [snippet for snippet in snippets if matches_query(snippet, query)]


def created_at_seconds(snippet: Any) -> int:
    """Creation time in whole epoch seconds; 0 when missing or unreadable."""
    value = _field(snippet, "created_at", alias="createdAt")
    if isinstance(value, datetime):
        return math.floor(value.timestamp())
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return _whole_seconds(value)
    if isinstance(value, Mapping):
        seconds = value.get("seconds", 0)
        if isinstance(seconds, str):
            try:
                seconds = float(seconds)
            except ValueError:
                return 0
        return _whole_seconds(seconds)
    seconds = getattr(value, "seconds", None)
    if seconds is not None:
        return _whole_seconds(seconds)
    if isinstance(value, str):
        try:
            return math.floor(datetime.fromisoformat(value).timestamp())
        except ValueError:
            return 0
    return 0


def _whole_seconds(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return math.floor(value)


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def title_sort_key(snippet: Any) -> Tuple[str, str, str]:
    """Collation key approximating root-locale comparison of titles.

    Compares letters ignoring accents and case first, then accents, then
    case with lowercase ahead of uppercase.
    """
    title = _text(_field(snippet, "title")) or ""
    decomposed = unicodedata.normalize("NFD", title)
    return (
        _strip_accents(title).casefold(),
        decomposed.casefold(),
        decomposed.swapcase(),
    )


def sort_snippets(snippets: Iterable[T], sort: str | SortKey | None) -> List[T]:
    """Return a new list ordered by ``sort``; unknown keys keep the input order."""
    items = list(snippets)
    key = SortKey.parse(sort)
    if key is SortKey.NEWEST:
        return sorted(items, key=created_at_seconds, reverse=True)
    if key is SortKey.OLDEST:
        return sorted(items, key=created_at_seconds)
    if key is SortKey.NAME:
        return sorted(items, key=title_sort_key)
    if key is SortKey.NAME_DESC:
        return sorted(items, key=title_sort_key, reverse=True)
    logger.debug("Unknown sort key %r; keeping input order", sort)
    return items


def apply_query(snippets: Sequence[T] | Iterable[T], query: SnippetQuery) -> List[T]:
    """Filter then sort ``snippets`` according to ``query``."""
    return sort_snippets(filter_snippets(snippets, query), query.sort)


__all__ = [
    "ALL_LANGUAGES",
    "SnippetQuery",
    "SortKey",
    "apply_query",
    "created_at_seconds",
    "filter_snippets",
    "matches_language",
    "matches_query",
    "matches_search",
    "matches_selected_languages",
    "sort_snippets",
    "title_sort_key",
]
