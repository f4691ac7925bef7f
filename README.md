# assetscan

`assetscan` builds an inventory of infrastructure assets and turns each one
into a flat, dotted-key asset event: Google Cloud compute instances, VPCs,
subnets and GKE clusters, Azure virtual machines, and the host the collector
runs on.

Every event carries some of these fields:

| field              | meaning                                              |
|--------------------|------------------------------------------------------|
| `asset.kind`       | broad kind: `host`, `network`, `cluster`             |
| `asset.id`         | provider identifier of the asset                     |
| `asset.ean`        | `<kind>:<id>`                                        |
| `asset.type`       | `gcp.compute.instance`, `gcp.vpc`, `gcp.subnet`, `k8s.cluster`, `azure.vm.instance` or `host` |
| `asset.name`       | name of a VPC or subnet                              |
| `asset.parents`    | EANs of enclosing assets (an instance's subnets, a cluster's VPC) |
| `asset.children`   | EANs of contained assets (a GKE cluster's node hosts) |
| `asset.metadata.*` | state, labels, resource group                        |
| `cloud.provider`, `cloud.region`, `cloud.account.id` | where the asset lives |

Each event's `meta["index"]` is `default_index_name()` (`assets-raw-default`).

## Events and publishers

`assetscan.assets` holds the building blocks:

- `Event` — `fields` and `meta` dicts; `put_value(key, value)` stores under a
  dotted key in nested dicts, `get_value(key)` finds a dotted key whether
  stored flat or nested and raises `KeyError` when it is absent.
- `new_event()` — an empty event routed to the default index.
- `publish(publisher, event, *options)` — applies the options to `event` (a new
  one when `event` is `None`), hands it to `publisher.publish` and returns it.
- `with_asset_cloud_provider`, `with_asset_region`, `with_asset_account_id`,
  `with_asset_kind_and_id`, `with_asset_type`, `with_asset_name`,
  `with_asset_parents`, `with_asset_children`, `with_asset_metadata` and
  `with_asset_labels` — the options. Metadata and labels are flattened into
  `asset.metadata.<key>` and `asset.metadata.labels.<key>` fields.
- `is_type_enabled(asset_types, asset_type)` — true when `asset_types` is
  empty or contains `asset_type`.
- `InMemoryPublisher` — keeps every event in its `events` list. Any object with
  a `publish(event)` method can act as a publisher.

```python
from assetscan.assets import (
    InMemoryPublisher,
    publish,
    with_asset_cloud_provider,
    with_asset_kind_and_id,
    with_asset_labels,
    with_asset_type,
)

publisher = InMemoryPublisher()
publish(
    publisher,
    None,
    with_asset_cloud_provider("gcp"),
    with_asset_kind_and_id("host", "1"),
    with_asset_type("gcp.compute.instance"),
    with_asset_labels({"team": "storage"}),
)
event = publisher.events[0]
event.fields["asset.ean"]                    # "host:1"
event.fields["asset.metadata.labels.team"]   # "storage"
```

## Collectors

The collectors do not talk to the cloud APIs themselves: they take listing
callables, so any client or fixture can feed them.

| function | listing callable |
|----------|------------------|
| `gcp_vpc.collect_vpc_assets(cfg, vpc_cache, list_networks, publisher)` | `list_networks(project)` yields `Network` |
| `gcp_vpc.collect_subnet_assets(cfg, subnet_cache, list_subnetworks, publisher)` | `list_subnetworks(project)` yields `(region, [Subnetwork, ...])` |
| `gcp_compute.collect_compute_assets(cfg, subnet_cache, compute_cache, list_instances, publisher)` | `list_instances(project, filter)` yields `(zone, [Instance, ...])` |
| `gcp_gke.collect_gke_assets(cfg, vpc_cache, compute_cache, list_instances, list_clusters, publisher)` | `list_clusters(parent)` yields `Cluster`, for parents such as `projects/p/locations/-` |
| `azure_vm.collect_azure_vm_assets(list_vms, subscription_id, regions, resource_group, publisher)` | `list_vms()` yields `VirtualMachine` |

```python
from assetscan.assets import InMemoryPublisher
from assetscan.gcp_util import GCPConfig, new_cache
from assetscan.gcp_vpc import Network, collect_vpc_assets


def list_networks(project):
    return [Network(id=1, name="default",
                    self_link=f"projects/{project}/global/networks/default")]


publisher = InMemoryPublisher()
collect_vpc_assets(GCPConfig(projects=["my-project"]), new_cache(),
                   list_networks, publisher)
publisher.events[0].fields["asset.ean"]   # "network:1"
```

Filtering rules:

- GCP `regions` filter instance zones by their region (`europe-west1-d` belongs
  to `europe-west1`) and subnet scopes by their last path part
  (`regions/us-west2`). GKE clusters are listed once per configured region, or
  under location `-` when none is configured.
- Azure `regions` match a VM's location; `resource_group` matches the fifth
  part of the VM's resource id. A VM's state is its second status, or empty.

The GCP collectors share `ExpiringLRUCache` instances (`new_cache()` holds up
to 8192 entries; entries live for twice the period). Collected VPCs, subnets
and instances are stored by self link, so instances can name their subnets as
parents and clusters their VPC. A cluster's children are its node pool
instances, found through the `cloud.google.com/gke-nodepool` entry of the
instances' `kube-labels` metadata: from the compute cache when it holds
anything, otherwise from `list_instances` with the filter `zone eq .*<region>.*`.

## Inputs

`assetscan.inputs.default_plugins()` returns a `Plugin` for each input. Each
input module has `plugin()` and `configure(settings)`; `configure` ignores
unknown keys and raises `ValueError` for malformed values. `period` is given in
seconds or as a duration string such as `"500ms"`, `"10m"` or `"1h30m"`, and
must be positive.

- `assetscan.gcp_input` (`assets_gcp`, default period 600 s) — settings
  `period`, `asset_types`, `projects`, `regions`, `credentials_file_path`.
  `AssetsGCP.connect` is called with `build_client_options(cfg)` (holding
  `credentials_file` when a path is set) and returns a `GCPClients` with the
  listing callables; a collector whose callable is missing logs an error and
  does not run.
- `assetscan.azure_input` (`assets_azure`, default period 600 s) — settings
  `period`, `asset_types`, `regions`, `subscription_id`, `resource_group`,
  `tenant_id`, `client_id`, `client_secret`. `AssetsAzure` takes
  `list_subscriptions(credentials)` and `list_vms(credentials, subscription)`;
  `credentials` holds the tenant, client id and client secret when all three
  are set, and is empty otherwise. The configured subscription is used, or
  every subscription `list_subscriptions` yields.
- `assetscan.hostdata` (`hostdata`, default period 60 s) — settings `period`,
  `asset_types`. Reports this machine as a `host` asset with host name,
  architecture, OS details, the id from `/etc/machine-id`, and the IP and MAC
  addresses of its non-loopback interfaces (read with `psutil`). An optional
  `cloud_metadata(event)` callable may enrich the event; a
  `cloud.instance.id` it sets becomes the host id. No event is published
  without a host id.

Each input's `run(cancel, publisher)` collects at once and then once per
period until the `threading.Event` `cancel` is set. The GCP and Azure inputs
run each collector in its own daemon thread; `collect_all` and `collect`
return those threads.

```python
import threading

from assetscan.assets import InMemoryPublisher
from assetscan.gcp_input import GCPClients, configure

gcp = configure({"projects": ["my-project"], "period": "10m",
                 "asset_types": ["gcp.vpc"]})
gcp.connect = lambda options: GCPClients(list_networks=list_networks)

publisher = InMemoryPublisher()
cancel = threading.Event()
worker = threading.Thread(target=gcp.run, args=(cancel, publisher))
worker.start()
# ...
cancel.set()
worker.join()
```

## What it does not do

- It ships no Google Cloud or Azure API clients and no cloud metadata lookup:
  listing callables and `cloud_metadata` must be supplied by the caller.
- It has no command-line program and no configuration file loader; inputs are
  built with `configure` from a mapping.
- It does not send events anywhere itself: events go only to the publisher
  given.

## Requirements

Python 3.10 or later and `psutil`.