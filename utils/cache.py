import time
import threading


class ExpiringCache:
    """
    String-keyed cache with a fixed time-to-live.

    Eviction is lazy: an entry is only dropped when a read finds it expired.
    Capacity is unbounded, the per-cycle candidate count keeps it small.
    """

    def __init__(self, ttl=8.0, clock=time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self.cache = {}
        self.lock = threading.Lock()

    def set(self, key, value):
        with self.lock:
            self.cache[key] = (value, self.clock())

    def get(self, key, default=None):
        with self.lock:
            item = self.cache.get(key)
            if item is None:
                return default
            value, inserted_at = item
            if self.clock() - inserted_at >= self.ttl:
                del self.cache[key]
                return default
            return value

    def __contains__(self, key):
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self):
        with self.lock:
            return len(self.cache)

    def invalidate(self, key):
        with self.lock:
            self.cache.pop(key, None)

    def clear(self):
        with self.lock:
            self.cache.clear()


def cache_key(kind, *parts):
    """Namespace a key by data kind so unrelated lookups never collide"""
    return ':'.join((kind,) + tuple(str(p) for p in parts))
