from __future__ import annotations

import bisect
from typing import Dict, Generic, Iterator, List, Optional, Protocol, Tuple, TypeVar


class Overlapping(Protocol):
    def overlaps(self, other) -> bool: ...

    def __lt__(self, other) -> bool: ...


K = TypeVar("K", bound=Overlapping)
V = TypeVar("V")


class OverlapIndex(Generic[K, V]):
    """
    Ordered map from range keys to buckets of values, queried by overlap.

    Every distinct key is its own bucket; overlapping keys are not merged.
    Keys stay sorted, and a query scans them all and keeps the ones that
    overlap the probe. Bucket counts per chapter/book are small, so there is
    no interval tree.
    """

    def __init__(self) -> None:
        self._keys: List[K] = []
        self._buckets: Dict[K, List[V]] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Tuple[K, List[V]]]:
        for key in self._keys:
            yield key, self._buckets[key]

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def keys(self) -> List[K]:
        return list(self._keys)

    def get(self, key: K) -> Optional[List[V]]:
        return self._buckets.get(key)

    def insert(self, key: K, value: V) -> None:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = []
            self._buckets[key] = bucket
            bisect.insort(self._keys, key)
        bucket.append(value)

    def iter_overlapping(self, probe: K) -> Iterator[Tuple[K, List[V]]]:
        for key in self._keys:
            if probe.overlaps(key):
                yield key, self._buckets[key]

    def query(self, probe: K) -> List[Tuple[K, List[V]]]:
        """All buckets whose key overlaps ``probe``, in key order."""
        return list(self.iter_overlapping(probe))

    def query_optional(self, probe: K) -> Optional[List[Tuple[K, List[V]]]]:
        results = self.query(probe)
        if not results:
            return None
        return results
