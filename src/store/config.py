from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StoreConfig:
    """Connection information for the Redis-backed snippet store."""

    redis_url: str = "redis://127.0.0.1:6379/0"
    namespace: str = "snippets"
    record_ttl: int | None = None

    @property
    def record_prefix(self) -> str:
        return f"{self.namespace}:record:"

    def user_index_key(self, user_id: str) -> str:
        return f"{self.namespace}:user:{user_id}"

    def changes_channel(self, user_id: str) -> str:
        return f"{self.namespace}:changes:{user_id}"


__all__ = ["StoreConfig"]
