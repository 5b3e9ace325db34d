from __future__ import annotations
from collections import OrderedDict
import threading
from typing import Any, Dict, Hashable, Optional

class LRUCache:
    """Bounded, thread-safe mapping; least recently used entries are evicted first."""

    def __init__(self, capacity: int = 1024):
        if capacity < 1:
            raise ValueError("LRUCache capacity must be >= 1")
        self.capacity = capacity
        self.store: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        with self.lock:
            if key in self.store:
                self.store.move_to_end(key)
                self.hits += 1
                return self.store[key]
            self.misses += 1
            return None

    def set(self, key: Hashable, value: Any) -> None:
        with self.lock:
            self.store[key] = value
            self.store.move_to_end(key)
            if len(self.store) > self.capacity:
                self.store.popitem(last=False)

    def clear(self) -> None:
        with self.lock:
            self.store.clear()
            self.hits = self.misses = 0

    def __len__(self) -> int:
        with self.lock:
            return len(self.store)

    def stats(self) -> Dict[str, int]:
        with self.lock:
            return {"size": len(self.store), "capacity": self.capacity, "hits": self.hits, "misses": self.misses}
