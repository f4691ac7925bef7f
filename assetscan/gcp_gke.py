"""Collection of GKE clusters and the instances of their node pools."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional

from .assets import (
    Publisher,
    publish,
    with_asset_account_id,
    with_asset_children,
    with_asset_cloud_provider,
    with_asset_kind_and_id,
    with_asset_labels,
    with_asset_metadata,
    with_asset_parents,
    with_asset_region,
    with_asset_type,
)
from .gcp_compute import ListInstances
from .gcp_util import (
    ExpiringLRUCache,
    GCPConfig,
    net_self_link_from_net_config,
    vpc_id_from_link,
)

log = logging.getLogger(__name__)

_NODEPOOL_LABEL = "cloud.google.com/gke-nodepool"


@dataclass
class NodePool:
    name: str


@dataclass
class Cluster:
    """A cluster as listed by the container API."""

    id: str
    location: str
    status: str = ""
    network: str = ""
    node_pools: list = field(default_factory=list)
    resource_labels: dict = field(default_factory=dict)


@dataclass
class ContainerCluster:
    """A GKE cluster as collected for publishing."""

    id: str
    region: str
    account: str
    vpc: str = ""
    node_pools: list = field(default_factory=list)
    labels: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)


# Called with a parent such as ``projects/p/locations/-``.
ListClusters = Callable[[str], Iterable[Cluster]]


def gke_instance_kube_labels(metadata: Optional[Mapping[str, str]]) -> dict:
    """Parse the ``kube-labels`` metadata item into a dict."""
    labels = {}
    value = (metadata or {}).get("kube-labels")
    if value is None:
        return labels
    for entry in value.split(","):
        key, sep, item = entry.partition("=")
        if sep:
            labels[key] = item
    return labels


def make_list_cluster_requests(project: str, zones: Iterable[str]) -> list:
    """Parents to list clusters under: one per zone, or all locations."""
    zones = list(zones or ())
    if not zones:
        return [f"projects/{project}/locations/-"]
    return [f"projects/{project}/locations/{zone}" for zone in zones]


def get_all_gke_clusters(cfg: GCPConfig, list_clusters: ListClusters,
                         vpc_cache: ExpiringLRUCache) -> list:
    clusters = []
    for project in cfg.projects:
        for parent in make_list_cluster_requests(project, cfg.regions):
            for cluster in list_clusters(parent):
                link = net_self_link_from_net_config(cluster.network)
                clusters.append(ContainerCluster(
                    id=cluster.id,
                    region=cluster.location,
                    account=project,
                    vpc=vpc_id_from_link(link, vpc_cache),
                    node_pools=list(cluster.node_pools or ()),
                    labels=dict(cluster.resource_labels or {}),
                    metadata={"state": cluster.status},
                ))
    return clusters


def _pool_matches(labels: dict, node_pools: Iterable[NodePool]) -> Iterable[NodePool]:
    pool = labels.get(_NODEPOOL_LABEL, "")
    return (p for p in node_pools if p.name == pool)


def instances_from_api(project: str, region: str, node_pools: Iterable[NodePool],
                       list_instances: ListInstances) -> list:
    """IDs of the project's instances in ``region`` that belong to a node pool."""
    node_pools = list(node_pools or ())
    ids = []
    zone_filter = f"zone eq .*{region}.*"
    for _zone, instances in list_instances(project, zone_filter):
        for instance in instances:
            labels = gke_instance_kube_labels(instance.metadata)
            ids.extend(str(instance.id) for _ in _pool_matches(labels, node_pools))
    return ids


def instances_from_cache(region: str, node_pools: Iterable[NodePool],
                         compute_cache: ExpiringLRUCache) -> list:
    """IDs of cached instances in ``region`` that belong to a node pool."""
    node_pools = list(node_pools or ())
    ids = []
    for self_link in compute_cache.keys():
        instance = compute_cache.get(self_link)
        if instance is None:
            raise KeyError(f"compute instance with selfLink {self_link} is not present in cache")
        if instance.region != region:
            continue
        labels = gke_instance_kube_labels(instance.raw_metadata)
        ids.extend(instance.id for _ in _pool_matches(labels, node_pools))
    return ids


def instances_for_gke_cluster(project: str, region: str, node_pools: Iterable[NodePool],
                              compute_cache: ExpiringLRUCache,
                              list_instances: ListInstances) -> list:
    """Node instance IDs, from the cache when it holds anything, else from the API."""
    if len(compute_cache) != 0:
        return instances_from_cache(region, node_pools, compute_cache)
    return instances_from_api(project, region, node_pools, list_instances)


def collect_gke_assets(cfg: GCPConfig, vpc_cache: ExpiringLRUCache,
                       compute_cache: ExpiringLRUCache, list_instances: ListInstances,
                       list_clusters: ListClusters, publisher: Publisher) -> None:
    clusters = get_all_gke_clusters(cfg, list_clusters, vpc_cache)
    log.debug("Publishing kubernetes clusters")
    for cluster in clusters:
        parents = [f"network:{cluster.vpc}"] if cluster.vpc else []
        try:
            instances = instances_for_gke_cluster(cluster.account, cluster.region,
                                                  cluster.node_pools, compute_cache,
                                                  list_instances)
        except Exception as err:  # the cluster itself is still worth publishing
            log.warning("Error while retrieving instances for GKE cluster %s: %s",
                        cluster.id, err)
            instances = []
        children = [f"host:{instance}" for instance in instances]
        publish(
            publisher,
            None,
            with_asset_cloud_provider("gcp"),
            with_asset_region(cluster.region),
            with_asset_account_id(cluster.account),
            with_asset_kind_and_id("cluster", cluster.id),
            with_asset_type("k8s.cluster"),
            with_asset_parents(parents),
            with_asset_children(children),
            with_asset_labels(cluster.labels),
            with_asset_metadata(cluster.metadata),
        )