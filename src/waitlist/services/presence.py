"""In-memory index of known participant identities."""

from __future__ import annotations

from threading import Lock


class PresenceCache:
    """Identity -> first-seen timestamp (epoch ms) existence index.

    The cache answers duplicate checks without a storage round trip. It is a
    subset of durable storage: a miss must be confirmed against the store.
    """

    def __init__(self, entries: dict[str, int] | None = None) -> None:
        self._entries: dict[str, int] = entries if entries is not None else {}
        self._lock = Lock()

    def is_present(self, identity: str) -> bool:
        with self._lock:
            return identity in self._entries

    def add(self, identity: str, first_seen: int) -> None:
        with self._lock:
            self._entries[identity] = first_seen

    def replace_all(self, entries: dict[str, int] | None) -> None:
        """Swap the backing mapping in one step.

        The cache takes ownership of `entries`; callers must not mutate it
        afterwards. `None` clears the cache.
        """
        if entries is None:
            entries = {}
        with self._lock:
            self._entries = entries

    def first_seen(self, identity: str) -> int | None:
        with self._lock:
            return self._entries.get(identity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
