"""Live "list replaced" events built on the store's Redis pub/sub channel."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Tuple

from ..snippet import Snippet, SnippetQuery, apply_query
from .snippet_store import SnippetStore

logger = logging.getLogger("snippet_manager")

EVENT_SNAPSHOT = "snapshot"


@dataclass(frozen=True, slots=True)
class SnippetListReplaced:
    """The full snippet list of a user after a change."""

    user_id: str
    snippets: Tuple[Snippet, ...]
    event: str = EVENT_SNAPSHOT
    snippet_id: str | None = None


class SnippetFeed:
    """Subscribe to a user's changes and reload their list on each one."""

    def __init__(self, store: SnippetStore) -> None:
        self.store = store

    def events(self, user_id: str) -> Iterator[SnippetListReplaced]:
        """Yield the current list, then a fresh list after every change.

        The subscription is opened before the first read so no change made
        in between is lost. Closing the generator releases it.
        """
        pubsub = self.store.redis.pubsub(ignore_subscribe_messages=True)
        channel = self.store.config.changes_channel(user_id)
        pubsub.subscribe(channel)
        logger.debug("Subscribed to %s", channel)
        try:
            yield self._snapshot(user_id)
            for message in pubsub.listen():
                if not isinstance(message, dict) or message.get("type") != "message":
                    continue
                event, snippet_id = _decode_change(message.get("data"))
                yield self._snapshot(user_id, event=event, snippet_id=snippet_id)
        finally:
            try:
                pubsub.unsubscribe(channel)
            finally:
                pubsub.close()
            logger.debug("Unsubscribed from %s", channel)

    def _snapshot(
        self,
        user_id: str,
        *,
        event: str = EVENT_SNAPSHOT,
        snippet_id: str | None = None,
    ) -> SnippetListReplaced:
        snippets = tuple(self.store.list_snippets(user_id))
        return SnippetListReplaced(
            user_id=user_id,
            snippets=snippets,
            event=event,
            snippet_id=snippet_id,
        )


def watch_filtered(
    events: Iterable[SnippetListReplaced],
    query: SnippetQuery,
) -> Iterator[List[Snippet]]:
    """Re-run the dashboard query on every list replacement."""
    for replaced in events:
        yield apply_query(replaced.snippets, query)


def _decode_change(data: Any) -> tuple[str, str | None]:
    if isinstance(data, bytes):
        data = data.decode("utf-8", "replace")
    try:
        payload = json.loads(data)
    except (TypeError, json.JSONDecodeError):
        logger.debug("Ignoring undecodable change payload %r", data)
        return "unknown", None
    if not isinstance(payload, dict):
        return "unknown", None
    snippet_id = payload.get("id")
    return str(payload.get("event") or "unknown"), str(snippet_id) if snippet_id else None


__all__ = ["EVENT_SNAPSHOT", "SnippetFeed", "SnippetListReplaced", "watch_filtered"]
