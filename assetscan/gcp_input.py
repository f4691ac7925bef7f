"""The GCP asset input: configuration, clients and the collection loop."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .assets import Plugin, Publisher, is_type_enabled
from .gcp_compute import ListInstances, collect_compute_assets
from .gcp_gke import ListClusters, collect_gke_assets
from .gcp_util import GCPConfig, new_cache
from .gcp_vpc import (
    ListNetworks,
    ListSubnetworks,
    collect_subnet_assets,
    collect_vpc_assets,
)

log = logging.getLogger(__name__)

NAME = "assets_gcp"
_DEFAULT_PERIOD = 600.0
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


@dataclass
class GCPClients:
    """The API calls the collectors use; a missing one disables its collectors."""

    list_instances: Optional[ListInstances] = None
    list_clusters: Optional[ListClusters] = None
    list_networks: Optional[ListNetworks] = None
    list_subnetworks: Optional[ListSubnetworks] = None


Connect = Callable[[dict], GCPClients]


def _no_clients(options: dict) -> GCPClients:
    return GCPClients()


def build_client_options(cfg: GCPConfig) -> dict:
    """Options used to open the API clients."""
    options = {}
    if cfg.credentials_file_path:
        options["credentials_file"] = cfg.credentials_file_path
    return options


class AssetsGCP:
    """Periodically collects GCP instances, clusters, VPCs and subnets."""

    name = NAME

    def __init__(self, config: GCPConfig, connect: Optional[Connect] = None) -> None:
        self.config = config
        self.connect: Connect = connect or _no_clients
        self.vpc_cache = new_cache()
        self.subnet_cache = new_cache()
        self.compute_cache = new_cache()

    def run(self, cancel: threading.Event, publisher: Publisher) -> None:
        """Collect now and then every period until ``cancel`` is set."""
        log.info("gcp asset collector run started")
        try:
            if cancel.is_set():
                return
            self._collect_logged(publisher)
            while not cancel.wait(self.config.period):
                self._collect_logged(publisher)
        finally:
            log.info("gcp asset collector run stopped")

    def _collect_logged(self, publisher: Publisher) -> None:
        try:
            self.collect_all(publisher)
        except Exception as err:
            log.error("error collecting assets: %s", err)

    def collect_all(self, publisher: Publisher) -> list:
        """Start one collector thread per enabled asset type and return them."""
        cfg = self.config
        try:
            clients = self.connect(build_client_options(cfg))
        except Exception as err:
            log.error("error creating GCP clients: %s", err)
            return []

        jobs = []
        if is_type_enabled(cfg.asset_types, "gcp.compute.instance"):
            jobs.append((
                "compute",
                (clients.list_instances,),
                lambda: collect_compute_assets(cfg, self.subnet_cache, self.compute_cache,
                                               clients.list_instances, publisher),
            ))
        if is_type_enabled(cfg.asset_types, "k8s.cluster"):
            jobs.append((
                "GKE",
                (clients.list_instances, clients.list_clusters),
                lambda: collect_gke_assets(cfg, self.vpc_cache, self.compute_cache,
                                           clients.list_instances, clients.list_clusters,
                                           publisher),
            ))
        if is_type_enabled(cfg.asset_types, "gcp.vpc"):
            jobs.append((
                "VPC",
                (clients.list_networks,),
                lambda: collect_vpc_assets(cfg, self.vpc_cache, clients.list_networks,
                                           publisher),
            ))
        if is_type_enabled(cfg.asset_types, "gcp.subnet"):
            jobs.append((
                "Subnet",
                (clients.list_subnetworks,),
                lambda: collect_subnet_assets(cfg, self.subnet_cache,
                                              clients.list_subnetworks, publisher),
            ))

        threads = []
        for label, required, work in jobs:
            if any(client is None for client in required):
                log.error("error collecting %s assets: no client available", label)
                continue
            thread = threading.Thread(target=self._guarded, args=(label, work),
                                      name=f"gcp-{label.lower()}", daemon=True)
            thread.start()
            threads.append(thread)
        return threads

    @staticmethod
    def _guarded(label: str, work: Callable[[], Any]) -> None:
        try:
            work()
        except Exception as err:
            log.error("error collecting %s assets: %s", label, err)


def _parse_duration(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"invalid period: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        parts = _DURATION_PART.findall(text)
        if not parts or "".join(n + u for n, u in parts) != text:
            raise ValueError(f"invalid period: {value!r}")
        seconds = sum(float(n) * _UNIT_SECONDS[u] for n, u in parts)
    else:
        raise ValueError(f"invalid period: {value!r}")
    if seconds <= 0:
        raise ValueError(f"period must be positive: {value!r}")
    return seconds


def _string_list(key: str, value: Any) -> list:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return list(value)


def configure(settings: Optional[Mapping[str, Any]] = None) -> AssetsGCP:
    """Build the GCP input from its settings; unknown keys are ignored."""
    settings = dict(settings or {})
    cfg = GCPConfig(period=_DEFAULT_PERIOD)
    if "period" in settings:
        cfg.period = _parse_duration(settings["period"])
    if settings.get("asset_types") is not None:
        cfg.asset_types = _string_list("asset_types", settings["asset_types"])
    if settings.get("projects") is not None:
        cfg.projects = _string_list("projects", settings["projects"])
    if settings.get("regions") is not None:
        cfg.regions = _string_list("regions", settings["regions"])
    if settings.get("credentials_file_path") is not None:
        path = settings["credentials_file_path"]
        if not isinstance(path, str):
            raise ValueError("credentials_file_path must be a string")
        cfg.credentials_file_path = path
    return AssetsGCP(cfg)


def plugin() -> Plugin:
    return Plugin(name=NAME, stability="experimental", info=NAME, manager=configure)