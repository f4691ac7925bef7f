"""Helpers shared by the GCP collectors: URL parsing, filters and caches."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from .assets import BaseConfig

V = TypeVar("V")

_CACHE_CAPACITY = 8192
_COMPUTE_API_PREFIX = "https://www.googleapis.com/compute/v1/"


class ExpiringLRUCache(Generic[V]):
    """A bounded LRU cache whose entries expire after a time to live."""

    def __init__(self, capacity: int = _CACHE_CAPACITY,
                 clock: Callable[[], float] = time.monotonic) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._clock = clock
        self._entries: "OrderedDict[str, tuple[V, float]]" = OrderedDict()

    def add(self, key: str, value: V, ttl: float) -> None:
        """Store ``value`` for ``ttl`` seconds, evicting the oldest if full."""
        self._entries[key] = (value, self._clock() + ttl)
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def get(self, key: str) -> Optional[V]:
        """The live value for ``key``, or None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires = entry
        if expires <= self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def _purge(self) -> None:
        now = self._clock()
        for key in [k for k, (_, exp) in self._entries.items() if exp <= now]:
            del self._entries[key]

    def keys(self) -> list:
        """Live keys, least recently used first."""
        self._purge()
        return list(self._entries)

    def __len__(self) -> int:
        self._purge()
        return len(self._entries)


@dataclass
class GCPConfig(BaseConfig):
    """Settings of the GCP asset input."""

    projects: list = field(default_factory=list)
    regions: list = field(default_factory=list)
    credentials_file_path: str = ""


def new_cache() -> ExpiringLRUCache:
    return ExpiringLRUCache(_CACHE_CAPACITY)


def resource_name_from_url(url: str) -> str:
    return url.rsplit("/", 1)[-1]


def region_from_zone_url(zone: str) -> str:
    """``.../zones/europe-west1-d`` becomes ``europe-west1``."""
    parts = resource_name_from_url(zone).split("-")
    return "-".join(parts[:-1])


def _cached_id(self_link: str, cache: ExpiringLRUCache) -> str:
    item: Any = cache.get(self_link)
    return item.id if item is not None else ""


def vpc_id_from_link(self_link: str, cache: ExpiringLRUCache) -> str:
    return _cached_id(self_link, cache)


def subnet_id_from_link(self_link: str, cache: ExpiringLRUCache) -> str:
    return _cached_id(self_link, cache)


def net_self_link_from_net_config(network: str) -> str:
    """Full self link of a cluster's network path, or "" if there is none."""
    return _COMPUTE_API_PREFIX + network if network else ""


def want_region(region: str, conf_regions: Iterable[str]) -> bool:
    """``region`` has the form ``regions/us-west2``."""
    conf_regions = list(conf_regions or ())
    if not conf_regions:
        return True
    return region.rsplit("/", 1)[-1] in conf_regions


def want_zone(zone: str, conf_regions: Iterable[str]) -> bool:
    conf_regions = list(conf_regions or ())
    if not conf_regions:
        return True
    return region_from_zone_url(zone) in conf_regions