"""Collection of GCP VPC networks and subnetworks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from .assets import (
    Publisher,
    publish,
    with_asset_account_id,
    with_asset_cloud_provider,
    with_asset_kind_and_id,
    with_asset_name,
    with_asset_region,
    with_asset_type,
)
from .gcp_util import ExpiringLRUCache, GCPConfig, want_region

log = logging.getLogger(__name__)


@dataclass
class Network:
    """A network as listed by the compute API."""

    id: int
    name: str
    self_link: str


@dataclass
class Subnetwork:
    """A subnetwork as listed by the compute API."""

    id: int
    name: str
    region: str
    self_link: str


@dataclass
class Vpc:
    id: str
    name: str
    account: str


@dataclass
class Subnet:
    id: str
    name: str
    account: str
    region: str


ListNetworks = Callable[[str], Iterable[Network]]
ListSubnetworks = Callable[[str], Iterable["tuple[str, Iterable[Subnetwork]]"]]


def get_all_vpcs(cfg: GCPConfig, vpc_cache: ExpiringLRUCache,
                 list_networks: ListNetworks) -> list:
    """List the VPCs of every project and remember them by self link."""
    vpcs = []
    for project in cfg.projects:
        for network in list_networks(project):
            vpc = Vpc(id=str(network.id), name=network.name, account=project)
            vpcs.append(vpc)
            vpc_cache.add(network.self_link, vpc, cfg.period * 2)
    return vpcs


def collect_vpc_assets(cfg: GCPConfig, vpc_cache: ExpiringLRUCache,
                       list_networks: ListNetworks, publisher: Publisher) -> None:
    vpcs = get_all_vpcs(cfg, vpc_cache, list_networks)
    log.debug("Publishing VPCs")
    for vpc in vpcs:
        publish(
            publisher,
            None,
            with_asset_cloud_provider("gcp"),
            with_asset_account_id(vpc.account),
            with_asset_kind_and_id("network", vpc.id),
            with_asset_name(vpc.name),
            with_asset_type("gcp.vpc"),
        )


def get_all_subnets(cfg: GCPConfig, subnet_cache: ExpiringLRUCache,
                    list_subnetworks: ListSubnetworks) -> list:
    """List the subnets of every project in the wanted regions."""
    subnets = []
    for project in cfg.projects:
        for region, subnetworks in list_subnetworks(project):
            if not want_region(region, cfg.regions):
                continue
            for subnetwork in subnetworks:
                subnet = Subnet(
                    id=str(subnetwork.id),
                    name=subnetwork.name,
                    account=project,
                    region=subnetwork.region,
                )
                subnets.append(subnet)
                subnet_cache.add(subnetwork.self_link, subnet, cfg.period * 2)
    return subnets


def collect_subnet_assets(cfg: GCPConfig, subnet_cache: ExpiringLRUCache,
                          list_subnetworks: ListSubnetworks,
                          publisher: Publisher) -> None:
    subnets = get_all_subnets(cfg, subnet_cache, list_subnetworks)
    log.debug("Publishing Subnets")
    for subnet in subnets:
        publish(
            publisher,
            None,
            with_asset_cloud_provider("gcp"),
            with_asset_account_id(subnet.account),
            with_asset_kind_and_id("network", subnet.id),
            with_asset_name(subnet.name),
            with_asset_type("gcp.subnet"),
            with_asset_region(subnet.region),
        )