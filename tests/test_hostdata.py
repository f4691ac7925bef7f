import socket
import threading
import time
from collections import namedtuple
from unittest.mock import patch

import psutil
import pytest

from assetscan.assets import InMemoryPublisher, default_index_name
from assetscan.hostdata import (
    Hostdata,
    HostdataConfig,
    configure,
    host_info,
    net_info,
    plugin,
)

Addr = namedtuple("Addr", "family address")


def _fake_cloud_metadata(event):
    event.put_value("cloud.instance.id", "i-12342")
    return event


def _network():
    return ["10.0.0.2"], ["02-00-00-00-00-01"]


def _hostdata(info=None, cloud=None, network=_network):
    if info is None:
        info = {"host": {"hostname": "myhost", "id": "abc"}}
    return Hostdata(HostdataConfig(), host_info=info, cloud_metadata=cloud,
                    network=network)


def test_configuration_and_initialization():
    hd = configure({})
    assert hd.config.period == 60
    assert hd.host_info["host"]["hostname"]


def test_configure_period():
    assert configure({"period": "5m"}).config.period == 300


def test_configure_rejects_invalid_period():
    with pytest.raises(ValueError):
        configure({"period": -1})


def test_host_info_hostname():
    info = host_info()
    assert info["host"]["hostname"] == socket.gethostname()
    assert info["host"]["name"] == info["host"]["hostname"]


def test_report_host_data_assets():
    hd = _hostdata()
    publisher = InMemoryPublisher()
    hd.report_host_data_assets(publisher)
    assert len(publisher.events) == 1
    event = publisher.events[0]
    assert event.get_value("host.id") == "abc"
    assert event.get_value("asset.id") == "abc"
    assert event.get_value("asset.type") == "host"
    assert event.get_value("asset.kind") == "host"
    assert event.meta["index"] == default_index_name()
    assert event.get_value("host.ip") == ["10.0.0.2"]
    assert event.get_value("host.mac") == ["02-00-00-00-00-01"]
    assert "ip" not in hd.host_info["host"]


def test_report_host_data_assets_with_cloud_meta():
    hd = _hostdata(cloud=_fake_cloud_metadata)
    publisher = InMemoryPublisher()
    hd.report_host_data_assets(publisher)
    event = publisher.events[0]
    assert event.get_value("cloud.instance.id") == "i-12342"
    assert event.get_value("asset.id") == "i-12342"
    assert event.get_value("host.id") == "i-12342"
    assert event.get_value("host.ip") == ["10.0.0.2"]
    assert hd.host_info["host"]["id"] == "abc"
    assert "ip" not in hd.host_info["host"]


def test_report_without_host_id_publishes_nothing():
    hd = _hostdata(info={"host": {"hostname": "myhost"}})
    publisher = InMemoryPublisher()
    hd.report_host_data_assets(publisher)
    assert publisher.events == []


def test_report_with_failing_cloud_metadata_publishes_nothing():
    def failing(event):
        raise RuntimeError("metadata service down")

    publisher = InMemoryPublisher()
    _hostdata(cloud=failing).report_host_data_assets(publisher)
    assert publisher.events == []


def test_report_with_failing_network_still_publishes():
    def failing():
        raise OSError("no interfaces")

    publisher = InMemoryPublisher()
    _hostdata(network=failing).report_host_data_assets(publisher)
    assert len(publisher.events) == 1
    with pytest.raises(KeyError):
        publisher.events[0].get_value("host.ip")


def test_net_info_skips_loopback_and_formats_mac():
    interfaces = {
        "lo": [Addr(socket.AF_INET, "127.0.0.1"),
               Addr(psutil.AF_LINK, "00:00:00:00:00:00")],
        "eth0": [Addr(socket.AF_INET, "10.0.0.2"),
                 Addr(socket.AF_INET6, "fe80::1%eth0"),
                 Addr(psutil.AF_LINK, "02:00:00:00:00:0a")],
    }
    with patch("psutil.net_if_addrs", return_value=interfaces):
        ips, macs = net_info()
    assert ips == ["10.0.0.2", "fe80::1"]
    assert macs == ["02-00-00-00-00-0A"]


def test_run_stops_when_cancelled():
    hd = _hostdata()
    publisher = InMemoryPublisher()
    cancel = threading.Event()
    runner = threading.Thread(target=hd.run, args=(cancel, publisher))
    runner.start()
    time.sleep(0.05)
    cancel.set()
    runner.join(timeout=1)
    assert not runner.is_alive()
    assert len(publisher.events) == 1


def test_plugin():
    p = plugin()
    assert p.name == "hostdata"
    assert p.manager is configure