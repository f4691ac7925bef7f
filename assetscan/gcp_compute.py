"""Collection of GCP compute instances."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .assets import (
    Publisher,
    publish,
    with_asset_account_id,
    with_asset_cloud_provider,
    with_asset_kind_and_id,
    with_asset_labels,
    with_asset_metadata,
    with_asset_parents,
    with_asset_region,
    with_asset_type,
)
from .gcp_util import (
    ExpiringLRUCache,
    GCPConfig,
    region_from_zone_url,
    subnet_id_from_link,
    want_zone,
)

log = logging.getLogger(__name__)


@dataclass
class NetworkInterface:
    """A network interface of an instance as listed by the compute API."""

    network: str = ""
    subnetwork: str = ""


@dataclass
class Instance:
    """An instance as listed by the compute API."""

    id: int
    self_link: str = ""
    zone: str = ""
    status: str = ""
    network_interfaces: list = field(default_factory=list)
    labels: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)


@dataclass
class ComputeInstance:
    """A compute instance as collected for publishing and caching."""

    id: str
    region: str
    account: str = ""
    vpcs: list = field(default_factory=list)
    labels: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)
    raw_metadata: dict = field(default_factory=dict)


# Called with a project and an optional filter expression; yields pairs of
# a zone key and the instances in that zone.
ListInstances = Callable[[str, Optional[str]], Iterable["tuple[str, Iterable[Instance]]"]]


def get_all_compute_instances(cfg: GCPConfig, subnet_cache: ExpiringLRUCache,
                              compute_cache: ExpiringLRUCache,
                              list_instances: ListInstances) -> list:
    """List the instances of every project in the wanted zones and cache them."""
    instances = []
    for project in cfg.projects:
        for zone, zone_instances in list_instances(project, None):
            if not want_zone(zone, cfg.regions):
                continue
            for instance in zone_instances:
                subnets = [
                    subnet_id_from_link(ni.subnetwork, subnet_cache)
                    for ni in instance.network_interfaces
                ]
                collected = ComputeInstance(
                    id=str(instance.id),
                    region=region_from_zone_url(zone),
                    account=project,
                    vpcs=subnets,
                    labels=dict(instance.labels or {}),
                    metadata={"state": instance.status},
                    raw_metadata=dict(instance.metadata or {}),
                )
                compute_cache.add(instance.self_link, collected, cfg.period * 2)
                instances.append(collected)
    return instances


def collect_compute_assets(cfg: GCPConfig, subnet_cache: ExpiringLRUCache,
                           compute_cache: ExpiringLRUCache,
                           list_instances: ListInstances,
                           publisher: Publisher) -> None:
    instances = get_all_compute_instances(cfg, subnet_cache, compute_cache, list_instances)
    log.debug("Publishing GCP compute instances")
    for instance in instances:
        parents = [f"network:{vpc}" for vpc in instance.vpcs if vpc]
        publish(
            publisher,
            None,
            with_asset_cloud_provider("gcp"),
            with_asset_region(instance.region),
            with_asset_account_id(instance.account),
            with_asset_kind_and_id("host", instance.id),
            with_asset_type("gcp.compute.instance"),
            with_asset_parents(parents),
            with_asset_labels(instance.labels),
            with_asset_metadata(instance.metadata),
        )