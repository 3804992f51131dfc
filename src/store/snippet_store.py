"""Redis-backed snippet persistence with per-user change notifications."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List

import redis
from pydantic import ValidationError

from ..snippet import Snippet, SnippetDraft, SnippetPatch
from .config import StoreConfig

logger = logging.getLogger("snippet_manager")

EVENT_CREATED = "created"
EVENT_UPDATED = "updated"
EVENT_DELETED = "deleted"


class SnippetNotFoundError(KeyError):
    """Raised when an operation targets a snippet id that is not stored."""


class SnippetStore:
    """Store snippet documents in Redis, indexed per owner.

    Each write also publishes a small JSON notification on the owner's
    changes channel so subscribers can reload the list.
    """

    def __init__(self, redis_client: redis.Redis, config: StoreConfig | None = None) -> None:
        self.redis = redis_client
        self.config = config or StoreConfig()

    def create(self, user_id: str, draft: SnippetDraft) -> Snippet:
        snippet = Snippet(
            id=uuid.uuid4().hex,
            title=draft.title,
            code=draft.code,
            language=draft.language,
            tags=list(draft.tags),
            created_at=datetime.now(timezone.utc),
            user_id=user_id,
        )
        self._write_snippet(snippet, event=EVENT_CREATED)
        logger.info("Created snippet %s for user %s", snippet.id, user_id)
        return snippet

    def save(self, snippet: Snippet) -> Snippet:
        """Persist ``snippet`` as-is, keeping its id and creation time."""
        if not snippet.user_id:
            raise ValueError("Snippet must have an owner before it can be saved")
        raw = self.redis.get(self._record_key(snippet.id))
        event = EVENT_UPDATED if raw is not None else EVENT_CREATED
        previous = _decode_snippet(raw, snippet.id) if raw is not None else None
        previous_owner = previous.user_id if previous is not None else None
        if previous_owner == snippet.user_id:
            previous_owner = None
        self._write_snippet(snippet, event=event, previous_owner=previous_owner)
        if previous_owner:
            logger.info(
                "Moved snippet %s from user %s to user %s",
                snippet.id,
                previous_owner,
                snippet.user_id,
            )
        return snippet

    def get(self, snippet_id: str) -> Snippet | None:
        raw = self.redis.get(self._record_key(snippet_id))
        if raw is None:
            return None
        return _decode_snippet(raw, snippet_id)

    def update(self, snippet_id: str, patch: SnippetPatch) -> Snippet:
        snippet = self.get(snippet_id)
        if snippet is None:
            raise SnippetNotFoundError(f"Unknown snippet id: {snippet_id}")
        updated = patch.apply(snippet)
        self._write_snippet(updated, event=EVENT_UPDATED)
        logger.info("Updated snippet %s", snippet_id)
        return updated

    def delete(self, snippet_id: str) -> bool:
        snippet = self.get(snippet_id)
        key = self._record_key(snippet_id)
        pipe = self.redis.pipeline()
        pipe.delete(key)
        if snippet is not None and snippet.user_id:
            pipe.zrem(self.config.user_index_key(snippet.user_id), snippet_id)
            pipe.publish(
                self.config.changes_channel(snippet.user_id),
                _change_message(EVENT_DELETED, snippet_id),
            )
        results = pipe.execute()
        removed = bool(results and results[0])
        if removed:
            logger.info("Deleted snippet %s", snippet_id)
        return removed

    def list_snippets(self, user_id: str) -> List[Snippet]:
        """Return the user's snippets, most recently created first.

        Index entries whose record is gone, unreadable or owned by someone
        else are skipped.
        """
        ids = self.redis.zrevrange(self.config.user_index_key(user_id), 0, -1)
        snippets: List[Snippet] = []
        for raw_id in ids:
            snippet_id = raw_id.decode("utf-8") if isinstance(raw_id, bytes) else str(raw_id)
            snippet = self.get(snippet_id)
            if snippet is None:
                logger.debug("Skipping missing or unreadable snippet %s", snippet_id)
                continue
            if snippet.user_id != user_id:
                logger.debug("Skipping snippet %s owned by %s", snippet_id, snippet.user_id)
                continue
            snippets.append(snippet)
        return snippets

    def _record_key(self, snippet_id: str) -> str:
        return f"{self.config.record_prefix}{snippet_id}"

    def _write_snippet(
        self, snippet: Snippet, *, event: str, previous_owner: str | None = None
    ) -> None:
        payload = json.dumps(snippet.model_dump(mode="json"), separators=(",", ":"))
        key = self._record_key(snippet.id)
        pipe = self.redis.pipeline()
        pipe.set(key, payload)
        if self.config.record_ttl:
            pipe.expire(key, self.config.record_ttl)
        if snippet.user_id:
            pipe.zadd(
                self.config.user_index_key(snippet.user_id),
                {snippet.id: snippet.created_at.timestamp()},
            )
            pipe.publish(
                self.config.changes_channel(snippet.user_id),
                _change_message(event, snippet.id),
            )
        if previous_owner:
            pipe.zrem(self.config.user_index_key(previous_owner), snippet.id)
            pipe.publish(
                self.config.changes_channel(previous_owner),
                _change_message(EVENT_DELETED, snippet.id),
            )
        pipe.execute()


def _change_message(event: str, snippet_id: str) -> str:
    return json.dumps({"event": event, "id": snippet_id}, separators=(",", ":"))


def _decode_snippet(raw: Any, snippet_id: str) -> Snippet | None:
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
    except (TypeError, UnicodeDecodeError, json.JSONDecodeError):
        logger.debug("Stored snippet %s is not valid UTF-8 JSON", snippet_id)
        return None
    if not isinstance(data, dict):
        return None
    data.setdefault("id", snippet_id)
    try:
        return Snippet.model_validate(data)
    except ValidationError as exc:
        logger.debug("Failed to hydrate snippet %s: %s", snippet_id, exc)
        return None


__all__ = [
    "EVENT_CREATED",
    "EVENT_DELETED",
    "EVENT_UPDATED",
    "SnippetNotFoundError",
    "SnippetStore",
]
