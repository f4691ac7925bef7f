from types import SimpleNamespace

import pytest

from assetscan.gcp_util import (
    ExpiringLRUCache,
    GCPConfig,
    net_self_link_from_net_config,
    new_cache,
    region_from_zone_url,
    resource_name_from_url,
    subnet_id_from_link,
    vpc_id_from_link,
    want_region,
    want_zone,
)

NETWORK_LINK = "https://www.googleapis.com/compute/v1/projects/my_project/global/networks/my_network"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.mark.parametrize(
    "url, expected",
    [("", ""), (NETWORK_LINK, "my_network")],
)
def test_resource_name_from_url(url, expected):
    assert resource_name_from_url(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("", ""),
        ("https://www.googleapis.com/compute/v1/projects/my_project/zones/europe-west1-d", "europe-west1"),
    ],
)
def test_region_from_zone_url(url, expected):
    assert region_from_zone_url(url) == expected


@pytest.mark.parametrize(
    "link, expected",
    [
        ("https://www.googleapis.com/compute/v1/projects/my_project/global/networks/test", ""),
        (NETWORK_LINK, "1"),
    ],
)
def test_vpc_id_from_link(link, expected):
    cache = new_cache()
    cache.add(NETWORK_LINK, SimpleNamespace(id="1"), 60)
    assert vpc_id_from_link(link, cache) == expected


def test_subnet_id_from_link():
    cache = new_cache()
    link = "https://www.googleapis.com/compute/v1/projects/p/regions/us-central1/subnetworks/my_subnet"
    cache.add(link, SimpleNamespace(id="2"), 60)
    assert subnet_id_from_link(link, cache) == "2"
    assert subnet_id_from_link(link + "x", cache) == ""


@pytest.mark.parametrize(
    "network, expected",
    [
        ("", ""),
        ("projects/my_project/global/networks/my_network", NETWORK_LINK),
    ],
)
def test_net_self_link_from_net_config(network, expected):
    assert net_self_link_from_net_config(network) == expected


@pytest.mark.parametrize(
    "conf, region, expected",
    [
        (["us-east-1", "us-west-1"], "us-east-1", True),
        (["us-east-1", "us-west-1"], "europe-east-1", False),
        ([], "us-east-1", True),
        (["us-west2"], "regions/us-west2", True),
    ],
)
def test_want_region(conf, region, expected):
    assert want_region(region, conf) is expected


@pytest.mark.parametrize(
    "conf, zone, expected",
    [
        (["us-east1", "us-west1"], "zone/us-east1-c", True),
        (["us-east1", "us-west1"], "zone/europe-east1-b", False),
        ([], "zone/us-east1-c", True),
    ],
)
def test_want_zone(conf, zone, expected):
    assert want_zone(zone, conf) is expected


def test_cache_expiry():
    clock = FakeClock()
    cache = ExpiringLRUCache(4, clock=clock)
    cache.add("a", 1, 10)
    assert cache.get("a") == 1
    clock.now = 10
    assert cache.get("a") is None
    assert len(cache) == 0


def test_cache_eviction_and_order():
    cache = ExpiringLRUCache(2)
    cache.add("a", 1, 60)
    cache.add("b", 2, 60)
    assert cache.get("a") == 1
    cache.add("c", 3, 60)
    assert cache.get("b") is None
    assert cache.keys() == ["a", "c"]
    assert len(cache) == 2


def test_cache_rejects_zero_capacity():
    with pytest.raises(ValueError):
        ExpiringLRUCache(0)


def test_gcp_config_defaults():
    cfg = GCPConfig()
    assert cfg.period == 600.0
    assert cfg.projects == []
    assert cfg.regions == []
    assert cfg.credentials_file_path == ""