"""A sharded least-recently-used cache of page ids."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from .dll import Dll, _Node


@dataclass
class _Entry:
    node: Optional[_Node] = None
    size: int = 0


class _Shard:
    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("shard capacity must be non-zero")
        self.capacity = capacity
        self.size = 0
        self.list = Dll()
        self.entries: Dict[int, _Entry] = {}
        self.lock = threading.Lock()

    def accessed(self, rel_idx: int, size: int) -> List[int]:
        entry = self.entries.setdefault(rel_idx, _Entry())
        self.size += size - entry.size
        entry.size = size
        if entry.node is None:
            entry.node = self.list.push_head(rel_idx)
        else:
            entry.node = self.list.promote(entry.node)

        to_evict = []
        while self.size > self.capacity:
            if len(self.list) == 1:
                # don't evict what was just added
                break
            victim = self.list.pop_tail()
            evicted = self.entries[victim]
            evicted.node = None
            self.size -= evicted.size
            evicted.size = 0
            to_evict.append(victim)
        return to_evict


class Lru:
    """An LRU cache split into ``2 ** cache_bits`` independently locked shards."""

    def __init__(self, cache_capacity: int, cache_bits: int) -> None:
        if cache_bits > 20:
            raise ValueError("way too many shards. use a smaller number of cache_bits")
        n_shards = 1 << cache_bits
        shard_capacity = cache_capacity // n_shards
        self._shards = [_Shard(shard_capacity) for _ in range(n_shards)]

    def accessed(self, pid: int, size: int) -> List[int]:
        """Record an access; return the page ids that should be paged out."""
        n_shards = len(self._shards)
        shard_idx = pid % n_shards
        rel_idx = pid // n_shards
        shard = self._shards[shard_idx]
        with shard.lock:
            evicted = shard.accessed(rel_idx, size)
        return [rel * n_shards + shard_idx for rel in evicted]