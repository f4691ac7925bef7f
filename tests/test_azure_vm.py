import pytest

from assetscan.assets import Event, InMemoryPublisher, default_index_name
from assetscan.azure_vm import (
    VirtualMachine,
    collect_azure_vm_assets,
    get_all_azure_vm_instances,
    resource_group_from_id,
    want_region,
    want_resource_group,
)

RESOURCE_GROUP_1 = "TESTVM"
RESOURCE_GROUP_2 = "WRONGVM"
SUBSCRIPTION_ID = "00000000-1111-2222-3333-444444444444"


def _resource_id(group, name):
    return (f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{group}"
            f"/providers/Microsoft.Compute/virtualMachines/{name}")


INSTANCE_1 = VirtualMachine(id=_resource_id(RESOURCE_GROUP_1, "instance1"),
                            name="instance1", location="westeurope", vm_id="1")
INSTANCE_2 = VirtualMachine(id=_resource_id(RESOURCE_GROUP_1, "instance2"),
                            name="instance2", location="northeurope", vm_id="2")
INSTANCE_3 = VirtualMachine(id=_resource_id(RESOURCE_GROUP_1, "instance3"),
                            name="instance3", location="eastus", vm_id="3")
INSTANCE_DIFF_GROUP = VirtualMachine(id=_resource_id(RESOURCE_GROUP_2, "instance4"),
                                     name="instance4", location="northeurope", vm_id="4")


def _expected(vm_id, region):
    return Event(
        fields={
            "asset.ean": f"host:{vm_id}",
            "asset.id": vm_id,
            "asset.type": "azure.vm.instance",
            "asset.kind": "host",
            "asset.metadata.state": "",
            "asset.metadata.resource_group": "TESTVM",
            "cloud.account.id": SUBSCRIPTION_ID,
            "cloud.provider": "azure",
            "cloud.region": region,
        },
        meta={"index": default_index_name()},
    )


@pytest.mark.parametrize("regions, resource_group, vms, expected", [
    ([], "", [INSTANCE_1, INSTANCE_2, INSTANCE_3],
     [_expected("1", "westeurope"), _expected("2", "northeurope"), _expected("3", "eastus")]),
    (["westeurope", "northeurope"], "", [INSTANCE_1, INSTANCE_2, INSTANCE_3],
     [_expected("1", "westeurope"), _expected("2", "northeurope")]),
    (["westeurope", "northeurope"], RESOURCE_GROUP_1,
     [INSTANCE_1, INSTANCE_2, INSTANCE_3, INSTANCE_DIFF_GROUP],
     [_expected("1", "westeurope"), _expected("2", "northeurope")]),
], ids=["no filters", "regions", "regions and resource group"])
def test_collect_azure_vm_assets(regions, resource_group, vms, expected):
    publisher = InMemoryPublisher()
    collect_azure_vm_assets(lambda: iter(vms), SUBSCRIPTION_ID, regions,
                            resource_group, publisher)
    assert publisher.events == expected


def test_state_comes_from_second_status():
    vm = VirtualMachine(id=_resource_id("RG", "vm"), name="vm", location="eastus",
                        vm_id="9", statuses=["Provisioning succeeded", "VM running"],
                        tags={"env": "test"})
    [instance] = get_all_azure_vm_instances(lambda: [vm], SUBSCRIPTION_ID, [], "")
    assert instance.metadata == {"state": "VM running", "resource_group": "RG"}
    assert instance.tags == {"env": "test"}
    assert instance.name == "vm"


def test_single_status_leaves_state_empty():
    vm = VirtualMachine(id=_resource_id("RG", "vm"), name="vm", location="eastus",
                        vm_id="9", statuses=["Provisioning succeeded"])
    [instance] = get_all_azure_vm_instances(lambda: [vm], SUBSCRIPTION_ID, [], "")
    assert instance.metadata["state"] == ""


def test_resource_group_from_id():
    assert resource_group_from_id(_resource_id("TESTVM", "x")) == "TESTVM"
    with pytest.raises(ValueError):
        resource_group_from_id("/subscriptions/abc")


def test_want_region():
    assert want_region(INSTANCE_1, []) is True
    assert want_region(INSTANCE_1, ["westeurope"]) is True
    assert want_region(INSTANCE_1, ["eastus"]) is False


def test_want_resource_group():
    assert want_resource_group(INSTANCE_DIFF_GROUP, "") is True
    assert want_resource_group(INSTANCE_DIFF_GROUP, RESOURCE_GROUP_2) is True
    assert want_resource_group(INSTANCE_DIFF_GROUP, RESOURCE_GROUP_1) is False


def test_listing_error_propagates():
    def broken():
        raise RuntimeError("failed to advance page")

    publisher = InMemoryPublisher()
    with pytest.raises(RuntimeError, match="advance page"):
        collect_azure_vm_assets(broken, SUBSCRIPTION_ID, [], "", publisher)
    assert publisher.events == []