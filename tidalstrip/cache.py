import threading

from .config import EXPAND_MULTIPLIER_INITIAL

# previous_radius value of an entry with no stored solution
UNSET = -1.0


class CacheEntry:

    def __init__(self, multiplier=EXPAND_MULTIPLIER_INITIAL):
        self.previous_radius = UNSET
        self.expand_multiplier = multiplier

    @property
    def is_set(self):
        return self.previous_radius > 0.0


class TidalRadiusCache:
    """
    Warm-start state for the tidal radius root finder, keyed by node
    unique id. Entries are only ever used as seeds for the next solve.

    Only `put` stores entries, so the map holds one entry per node that
    reached the root finder since the last reset.
    """

    def __init__(self, multiplier=EXPAND_MULTIPLIER_INITIAL):
        self.multiplier = multiplier
        self._lock = threading.Lock()
        self._entries = {}

    def __len__(self):
        return len(self._entries)

    def __contains__(self, identity):
        return identity in self._entries

    def get(self, identity):
        with self._lock:
            entry = self._entries.get(identity)

        if entry is None:
            return CacheEntry(self.multiplier)
        return entry

    def put(self, identity, radius, multiplier):
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None:
                entry = CacheEntry(self.multiplier)
                self._entries[identity] = entry

            entry.previous_radius = radius
            entry.expand_multiplier = multiplier

    def invalidate(self, identity):
        with self._lock:
            self._entries.pop(identity, None)

    def reset(self):
        with self._lock:
            self._entries.clear()
