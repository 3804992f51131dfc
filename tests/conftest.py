"""Shared fixtures, including an in-memory stand-in for the redis-py calls the store makes."""

import pytest


class FakePubSub:
    def __init__(self, server):
        self.server = server
        self.channels = set()
        self.messages = []
        self.closed = False

    def subscribe(self, *channels):
        for channel in channels:
            self.channels.add(channel)
        self.server.subscribers.append(self)

    def unsubscribe(self, *channels):
        for channel in channels or list(self.channels):
            self.channels.discard(channel)

    def close(self):
        self.closed = True
        if self in self.server.subscribers:
            self.server.subscribers.remove(self)

    def deliver(self, channel, data):
        if channel in self.channels:
            self.messages.append({"type": "message", "channel": channel.encode(), "data": data})

    def listen(self):
        while self.messages:
            yield self.messages.pop(0)


class FakePipeline:
    def __init__(self, server):
        self.server = server
        self.commands = []

    def __getattr__(self, name):
        def _queue(*args, **kwargs):
            self.commands.append((name, args, kwargs))
            return self

        return _queue

    def execute(self):
        results = [getattr(self.server, name)(*args, **kwargs) for name, args, kwargs in self.commands]
        self.commands = []
        return results


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.sorted_sets = {}
        self.expiries = {}
        self.published = []
        self.subscribers = []

    def get(self, key):
        value = self.values.get(key)
        return value.encode("utf-8") if isinstance(value, str) else value

    def set(self, key, value):
        self.values[key] = value
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
        return removed

    def expire(self, key, seconds):
        self.expiries[key] = seconds
        return True

    def zadd(self, key, mapping):
        members = self.sorted_sets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in members)
        members.update(mapping)
        return added

    def zrem(self, key, *members):
        stored = self.sorted_sets.get(key, {})
        return sum(1 for member in members if stored.pop(member, None) is not None)

    def zrevrange(self, key, start, end):
        members = sorted(self.sorted_sets.get(key, {}).items(), key=lambda item: item[1], reverse=True)
        ids = [member.encode("utf-8") for member, _ in members]
        return ids[start:] if end == -1 else ids[start : end + 1]

    def publish(self, channel, message):
        data = message.encode("utf-8") if isinstance(message, str) else message
        self.published.append((channel, data))
        for subscriber in list(self.subscribers):
            subscriber.deliver(channel, data)
        return len(self.subscribers)

    def pipeline(self):
        return FakePipeline(self)

    def pubsub(self, **_kwargs):
        return FakePubSub(self)


@pytest.fixture
def redis_client():
    return FakeRedis()
