"""Bounded cache of the last bot each user talked to in a channel."""

from typing import Optional

from cachetools import LRUCache


class RecencyCache:
    """Maps (user_id, channel_id) to the last resolved configuration id.

    Least recently used entries are dropped once ``maxsize`` is reached.
    A ``maxsize`` below 1 disables the cache: nothing is remembered.
    """

    def __init__(self, maxsize: int = 1024):
        self._cache: LRUCache = LRUCache(maxsize=max(maxsize, 0))

    @property
    def maxsize(self) -> int:
        return int(self._cache.maxsize)

    def get(self, user_id: str, channel_id: str) -> Optional[str]:
        return self._cache.get((str(user_id), str(channel_id)))

    def remember(self, user_id: str, channel_id: str, config_id: str) -> None:
        if self._cache.maxsize < 1:
            return
        self._cache[(str(user_id), str(channel_id))] = config_id

    def evict(self, user_id: str, channel_id: str) -> None:
        self._cache.pop((str(user_id), str(channel_id)), None)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
