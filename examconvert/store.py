"""In-memory, process-lifetime storage for converted artifacts."""

from __future__ import annotations

import zlib
from threading import Lock
from typing import Dict, List, Optional
from uuid import uuid4

from .config import store_shards
from .types import StorageStats


class _Shard:
    def __init__(self) -> None:
        self.items: Dict[str, bytes] = {}
        self.lock = Lock()


class EphemeralStore:
    """Maps opaque artifact ids to bytes.

    Entries are spread over independently locked shards so readers of one id
    never wait for writers of another. Nothing is ever evicted except by
    :meth:`clear`, which empties every shard at once.
    """

    def __init__(self, shards: Optional[int] = None) -> None:
        count = shards if shards is not None else store_shards()
        if count < 1:
            raise ValueError(f"Store needs at least one shard, got {count}")
        self._shards: List[_Shard] = [_Shard() for _ in range(count)]

    def _shard_for(self, artifact_id: str) -> _Shard:
        return self._shards[zlib.crc32(artifact_id.encode("utf-8")) % len(self._shards)]

    def put(self, content: bytes) -> str:
        """Store ``content`` under a freshly minted id and return the id."""

        artifact_id = uuid4().hex
        shard = self._shard_for(artifact_id)
        with shard.lock:
            shard.items[artifact_id] = bytes(content)
        return artifact_id

    def get(self, artifact_id: str) -> Optional[bytes]:
        shard = self._shard_for(artifact_id)
        with shard.lock:
            return shard.items.get(artifact_id)

    def __contains__(self, artifact_id: str) -> bool:
        return self.get(artifact_id) is not None

    def stats(self) -> StorageStats:
        count = 0
        total = 0
        for shard in self._shards:
            with shard.lock:
                count += len(shard.items)
                total += sum(len(value) for value in shard.items.values())
        return StorageStats(count=count, total_bytes=total)

    def clear(self) -> StorageStats:
        """Remove every artifact and return what was removed."""

        # Fixed acquisition order; concurrent clears cannot deadlock.
        for shard in self._shards:
            shard.lock.acquire()
        try:
            count = sum(len(shard.items) for shard in self._shards)
            total = sum(len(value) for shard in self._shards for value in shard.items.values())
            for shard in self._shards:
                shard.items.clear()
        finally:
            for shard in reversed(self._shards):
                shard.lock.release()
        return StorageStats(count=count, total_bytes=total)

    def __len__(self) -> int:
        return self.stats().count


__all__ = ["EphemeralStore"]
