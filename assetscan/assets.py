"""Asset events, publishers and the options that fill an event in."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol

_DEFAULT_INDEX = "assets-raw-default"


def default_index_name() -> str:
    """Name of the index that asset events are written to."""
    return _DEFAULT_INDEX


def _find(mapping: Mapping[str, Any], key: str) -> Any:
    if key in mapping:
        return mapping[key]
    for pos, char in enumerate(key):
        if char != ".":
            continue
        child = mapping.get(key[:pos])
        if isinstance(child, Mapping):
            try:
                return _find(child, key[pos + 1:])
            except KeyError:
                continue
    raise KeyError(key)


@dataclass
class Event:
    """An event with its document fields and its routing metadata."""

    fields: dict = field(default_factory=dict)
    meta: dict = field(default_factory=dict)

    def put_value(self, key: str, value: Any) -> Any:
        """Store ``value`` under a dotted key, creating nested dicts.

        Returns the value that was replaced, or None.
        """
        *parents, last = key.split(".")
        node = self.fields
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        previous = node.get(last)
        node[last] = value
        return previous

    def get_value(self, key: str) -> Any:
        """Look up a dotted key, flat or nested; raise KeyError if absent."""
        return _find(self.fields, key)


class Publisher(Protocol):
    def publish(self, event: Event) -> None:
        ...


@dataclass
class InMemoryPublisher:
    """Publisher that keeps every event it is given."""

    events: list = field(default_factory=list)

    def publish(self, event: Event) -> None:
        self.events.append(event)


@dataclass
class BaseConfig:
    """Settings shared by every asset input. ``period`` is in seconds."""

    period: float = 600.0
    asset_types: Optional[list] = None


@dataclass
class Plugin:
    """Description of an asset input and the factory that configures it."""

    name: str
    stability: str
    info: str
    manager: Callable[..., Any]
    deprecated: bool = False


AssetOption = Callable[[Event], None]


def new_event() -> Event:
    """An empty event routed to the default index."""
    return Event(fields={}, meta={"index": default_index_name()})


def is_type_enabled(asset_types: Optional[Iterable[str]], asset_type: str) -> bool:
    """True when no types are configured or ``asset_type`` is among them."""
    if not asset_types:
        return True
    return asset_type in asset_types


def _set_field(key: str, value: Any) -> AssetOption:
    def apply(event: Event) -> None:
        event.fields[key] = value

    return apply


def with_asset_cloud_provider(value: str) -> AssetOption:
    return _set_field("cloud.provider", value)


def with_asset_region(value: str) -> AssetOption:
    return _set_field("cloud.region", value)


def with_asset_account_id(value: str) -> AssetOption:
    return _set_field("cloud.account.id", value)


def with_asset_kind_and_id(kind: str, asset_id: str) -> AssetOption:
    def apply(event: Event) -> None:
        event.fields["asset.kind"] = kind
        event.fields["asset.id"] = asset_id
        event.fields["asset.ean"] = f"{kind}:{asset_id}"

    return apply


def with_asset_type(value: str) -> AssetOption:
    return _set_field("asset.type", value)


def with_asset_name(value: str) -> AssetOption:
    return _set_field("asset.name", value)


def with_asset_parents(parents: Optional[Iterable[str]]) -> AssetOption:
    return _set_field("asset.parents", list(parents or ()))


def with_asset_children(children: Optional[Iterable[str]]) -> AssetOption:
    return _set_field("asset.children", list(children or ()))


def _flatten(prefix: str, value: Any, out: dict) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}.{key}", item, out)
    else:
        out[prefix] = value


def with_asset_metadata(metadata: Optional[Mapping[str, Any]]) -> AssetOption:
    """Add every leaf of ``metadata`` under ``asset.metadata.``."""

    def apply(event: Event) -> None:
        for key, value in (metadata or {}).items():
            _flatten(f"asset.metadata.{key}", value, event.fields)

    return apply


def with_asset_labels(labels: Optional[Mapping[str, Any]]) -> AssetOption:
    """Add labels under ``asset.metadata.labels.``."""
    return with_asset_metadata({"labels": dict(labels or {})})


def publish(publisher: Publisher, event: Optional[Event], *args: AssetOption) -> Event:
    """Apply the options to ``event`` (a new one if None) and publish it."""
    if event is None:
        event = new_event()
    for option in args:
        option(event)
    publisher.publish(event)
    return event