"""Collection of Azure virtual machines."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .assets import (
    Publisher,
    publish,
    with_asset_account_id,
    with_asset_cloud_provider,
    with_asset_kind_and_id,
    with_asset_metadata,
    with_asset_region,
    with_asset_type,
)

log = logging.getLogger(__name__)


@dataclass
class VirtualMachine:
    """A virtual machine as listed by the compute API with its instance view."""

    id: str
    name: str
    location: str
    vm_id: str
    statuses: list = field(default_factory=list)
    tags: dict = field(default_factory=dict)


@dataclass
class AzureVMInstance:
    id: str
    name: str
    subscription_id: str
    region: str
    tags: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)


# Lists every virtual machine of a subscription, status included.
ListVMs = Callable[[], Iterable[VirtualMachine]]


def resource_group_from_id(resource_id: str) -> str:
    """The resource group named in an ``/subscriptions/../resourceGroups/..`` id."""
    parts = resource_id.split("/")
    if len(parts) < 5:
        raise ValueError(f"no resource group in resource id {resource_id!r}")
    return parts[4]


def want_region(vm: VirtualMachine, regions: Iterable[str]) -> bool:
    regions = list(regions or ())
    return not regions or vm.location in regions


def want_resource_group(vm: VirtualMachine, resource_group: str) -> bool:
    return not resource_group or resource_group_from_id(vm.id) == resource_group


def get_all_azure_vm_instances(list_vms: ListVMs, subscription_id: str,
                               regions: Iterable[str], resource_group: str) -> list:
    """The subscription's VMs in the wanted regions and resource group."""
    regions = list(regions or ())
    instances = []
    for vm in list_vms():
        if not (want_region(vm, regions) and want_resource_group(vm, resource_group)):
            continue
        status = vm.statuses[1] if len(vm.statuses) > 1 else ""
        instances.append(AzureVMInstance(
            id=vm.vm_id,
            name=vm.name,
            subscription_id=subscription_id,
            region=vm.location,
            tags=dict(vm.tags or {}),
            metadata={
                "state": status,
                "resource_group": resource_group_from_id(vm.id),
            },
        ))
    return instances


def collect_azure_vm_assets(list_vms: ListVMs, subscription_id: str,
                            regions: Iterable[str], resource_group: str,
                            publisher: Publisher) -> None:
    instances = get_all_azure_vm_instances(list_vms, subscription_id, regions, resource_group)
    log.debug("Publishing Azure VM instances")
    for instance in instances:
        publish(
            publisher,
            None,
            with_asset_cloud_provider("azure"),
            with_asset_region(instance.region),
            with_asset_account_id(instance.subscription_id),
            with_asset_kind_and_id("host", instance.id),
            with_asset_type("azure.vm.instance"),
            with_asset_metadata(instance.metadata),
        )