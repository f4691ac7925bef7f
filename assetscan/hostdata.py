"""The host data input: reports the machine it runs on as an asset."""

from __future__ import annotations

import copy
import ipaddress
import logging
import platform
import socket
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import psutil

from .assets import (
    BaseConfig,
    Event,
    Plugin,
    Publisher,
    new_event,
    publish,
    with_asset_kind_and_id,
    with_asset_type,
)
from .gcp_input import _parse_duration, _string_list

log = logging.getLogger(__name__)

NAME = "hostdata"
DEFAULT_COLLECTION_PERIOD = 60.0
_MACHINE_ID_FILES = ("/etc/machine-id", "/var/lib/dbus/machine-id")

CloudMetadata = Callable[[Event], Event]
NetworkInfo = Callable[[], "tuple[list, list]"]


@dataclass
class HostdataConfig(BaseConfig):
    """Settings of the host data input."""

    period: float = DEFAULT_COLLECTION_PERIOD


def _machine_id() -> str:
    for name in _MACHINE_ID_FILES:
        try:
            value = Path(name).read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if value:
            return value
    return ""


def _os_info(uname: platform.uname_result) -> dict:
    info = {
        "type": uname.system.lower(),
        "kernel": uname.release,
        "platform": uname.system.lower(),
        "name": uname.system,
        "family": uname.system.lower(),
        "version": uname.version,
    }
    if uname.system == "Linux":
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            release = {}
        if release:
            info["platform"] = release.get("ID", info["platform"])
            info["name"] = release.get("NAME", info["name"])
            info["version"] = release.get("VERSION", release.get("VERSION_ID", ""))
            like = release.get("ID_LIKE", "").split()
            info["family"] = like[0] if like else info["platform"]
            if release.get("VERSION_CODENAME"):
                info["codename"] = release["VERSION_CODENAME"]
    return info


def host_info() -> dict:
    """Description of this host, nested under ``host``."""
    uname = platform.uname()
    hostname = socket.gethostname()
    host = {
        "hostname": hostname,
        "name": hostname,
        "architecture": uname.machine,
        "os": _os_info(uname),
    }
    machine_id = _machine_id()
    if machine_id:
        host["id"] = machine_id
    return {"host": host}


def _is_loopback(address: str) -> bool:
    try:
        return ipaddress.ip_address(address).is_loopback
    except ValueError:
        return False


def net_info() -> "tuple[list, list]":
    """IP addresses and MAC addresses of the non-loopback interfaces."""
    ips: list = []
    macs: list = []
    for addrs in psutil.net_if_addrs().values():
        ip_addrs = [a.address.split("%", 1)[0] for a in addrs
                    if a.family in (socket.AF_INET, socket.AF_INET6)]
        if any(_is_loopback(ip) for ip in ip_addrs):
            continue
        ips.extend(ip_addrs)
        macs.extend(a.address.replace(":", "-").upper() for a in addrs
                    if a.family == psutil.AF_LINK and a.address)
    return ips, macs


class Hostdata:
    """Publishes this host, enriched with network and cloud metadata."""

    name = NAME

    def __init__(self, config: HostdataConfig, host_info: Optional[dict] = None,
                 cloud_metadata: Optional[CloudMetadata] = None,
                 network: Optional[NetworkInfo] = None) -> None:
        self.config = config
        self.host_info = host_info if host_info is not None else globals_host_info()
        self.cloud_metadata = cloud_metadata
        self.network = network or net_info

    def run(self, cancel: threading.Event, publisher: Publisher) -> None:
        """Report now and then every period until ``cancel`` is set."""
        log.info("hostdata asset collector run started")
        try:
            if cancel.is_set():
                return
            self.report_host_data_assets(publisher)
            while not cancel.wait(self.config.period):
                self.report_host_data_assets(publisher)
        finally:
            log.info("hostdata asset collector run stopped")

    def report_host_data_assets(self, publisher: Publisher) -> None:
        log.debug("collecting hostdata asset information")
        try:
            ips, macs = self.network()
        except Exception as err:
            log.error("error when getting network information: %s", err)
            ips, macs = [], []

        event = new_event()
        event.fields = copy.deepcopy(self.host_info)
        if ips:
            event.put_value("host.ip", list(ips))
        if macs:
            event.put_value("host.mac", list(macs))

        if self.cloud_metadata is not None:
            try:
                event = self.cloud_metadata(event)
            except Exception as err:
                log.error("error collecting cloud metadata: %s", err)
                return

        try:
            cloud_id = event.get_value("cloud.instance.id")
        except KeyError:
            pass
        else:
            event.put_value("host.id", cloud_id)

        try:
            host_id = event.get_value("host.id")
        except KeyError:
            log.error("no host ID in collected hostdata")
            return

        publish(publisher, event,
                with_asset_kind_and_id("host", str(host_id)),
                with_asset_type("host"))


globals_host_info = host_info


def configure(settings: Optional[Mapping[str, Any]] = None) -> Hostdata:
    """Build the host data input from its settings; unknown keys are ignored."""
    settings = dict(settings or {})
    cfg = HostdataConfig()
    if "period" in settings:
        cfg.period = _parse_duration(settings["period"])
    if settings.get("asset_types") is not None:
        cfg.asset_types = _string_list("asset_types", settings["asset_types"])
    return Hostdata(cfg)


def plugin() -> Plugin:
    return Plugin(name=NAME, stability="stable", info=NAME, manager=configure)