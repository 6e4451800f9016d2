# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Factories for Azure Resource Manager payloads."""

import factory

from azure_vm_manager.constants import DEPLOYMENT_TYPE, VM_TYPE
from azure_vm_manager.resource import build_resource_id

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"
RESOURCE_GROUP = "test-rg"
LOCATION = "eastus"


class ResourceGroupFactory(factory.DictFactory):
    """Factory class for a resource group payload.

    Attributes:
        id: The resource group ID.
        name: The resource group name.
        location: The resource group location.
        properties: The resource group properties.
    """

    class Params:
        """Factory parameters.

        Attributes:
            subscription_id: The subscription ID.
        """

        subscription_id = SUBSCRIPTION_ID

    name = RESOURCE_GROUP
    id = factory.LazyAttribute(
        lambda o: f"/subscriptions/{o.subscription_id}/resourceGroups/{o.name}"
    )
    location = LOCATION
    properties = factory.Dict({"provisioningState": "Succeeded"})


class VirtualMachineFactory(factory.DictFactory):
    """Factory class for a virtual machine payload.

    Attributes:
        id: The VM resource ID.
        name: The VM name.
        type: The resource type.
        location: The VM location.
        properties: The VM properties.
    """

    class Params:
        """Factory parameters.

        Attributes:
            subscription_id: The subscription ID.
            resource_group: The resource group name.
            os_type: The OS type.
            size: The VM size.
        """

        subscription_id = SUBSCRIPTION_ID
        resource_group = RESOURCE_GROUP
        os_type = "Linux"
        size = "Standard_DS3_v2"

    name = factory.Sequence(lambda n: f"test-vm-{n}")
    id = factory.LazyAttribute(
        lambda o: build_resource_id(o.subscription_id, o.resource_group, VM_TYPE, o.name)
    )
    type = VM_TYPE
    location = LOCATION
    properties = factory.LazyAttribute(
        lambda o: {
            "provisioningState": "Succeeded",
            "hardwareProfile": {"vmSize": o.size},
            "storageProfile": {"osDisk": {"osType": o.os_type, "name": f"{o.name}_osdisk"}},
        }
    )


class PublicIpFactory(factory.DictFactory):
    """Factory class for a public IP address payload.

    Attributes:
        id: The public IP resource ID.
        name: The public IP name.
        type: The resource type.
        location: The public IP location.
        properties: The public IP properties.
    """

    class Params:
        """Factory parameters.

        Attributes:
            subscription_id: The subscription ID.
            resource_group: The resource group name.
            dns_label: The domain name label.
            ip_address: The allocated address.
        """

        subscription_id = SUBSCRIPTION_ID
        resource_group = RESOURCE_GROUP
        dns_label = "test-vm"
        ip_address = "20.1.0.4"

    name = factory.Sequence(lambda n: f"test-vm-{n}-ip")
    id = factory.LazyAttribute(
        lambda o: build_resource_id(
            o.subscription_id, o.resource_group, "Microsoft.Network/publicIPAddresses", o.name
        )
    )
    type = "Microsoft.Network/publicIPAddresses"
    location = LOCATION
    properties = factory.LazyAttribute(
        lambda o: {
            "provisioningState": "Succeeded",
            "ipAddress": o.ip_address,
            "dnsSettings": {
                "domainNameLabel": o.dns_label,
                "fqdn": f"{o.dns_label}.{LOCATION}.cloudapp.azure.com",
            },
        }
    )


class NetworkInterfaceFactory(factory.DictFactory):
    """Factory class for a network interface payload.

    Attributes:
        id: The network interface resource ID.
        name: The network interface name.
        type: The resource type.
        location: The network interface location.
        properties: The network interface properties.
    """

    class Params:
        """Factory parameters.

        Attributes:
            subscription_id: The subscription ID.
            resource_group: The resource group name.
        """

        subscription_id = SUBSCRIPTION_ID
        resource_group = RESOURCE_GROUP

    name = factory.Sequence(lambda n: f"test-vm-{n}-nic")
    id = factory.LazyAttribute(
        lambda o: build_resource_id(
            o.subscription_id, o.resource_group, "Microsoft.Network/networkInterfaces", o.name
        )
    )
    type = "Microsoft.Network/networkInterfaces"
    location = LOCATION
    properties = factory.Dict({"provisioningState": "Succeeded"})


class DeploymentFactory(factory.DictFactory):
    """Factory class for a template deployment payload.

    Attributes:
        id: The deployment resource ID.
        name: The deployment name.
        type: The resource type.
        properties: The deployment properties.
    """

    class Params:
        """Factory parameters.

        Attributes:
            subscription_id: The subscription ID.
            resource_group: The resource group name.
            mode: The deployment mode.
            provisioning_state: The deployment provisioning state.
        """

        subscription_id = SUBSCRIPTION_ID
        resource_group = RESOURCE_GROUP
        mode = "Incremental"
        provisioning_state = "Succeeded"

    name = factory.Sequence(lambda n: f"test-deployment-{n}")
    id = factory.LazyAttribute(
        lambda o: build_resource_id(o.subscription_id, o.resource_group, DEPLOYMENT_TYPE, o.name)
    )
    type = DEPLOYMENT_TYPE
    properties = factory.LazyAttribute(
        lambda o: {
            "provisioningState": o.provisioning_state,
            "mode": o.mode,
            "outputs": {},
            "outputResources": [],
        }
    )


class InstanceViewFactory(factory.DictFactory):
    """Factory class for a virtual machine instance view payload.

    Attributes:
        statuses: The VM statuses.
        disks: The disk statuses.
    """

    class Params:
        """Factory parameters.

        Attributes:
            provisioning: The provisioning state.
            power: The power state.
            disk_names: The names of the VM disks.
        """

        provisioning = "succeeded"
        power = "running"
        disk_names = ("test-vm_osdisk",)

    statuses = factory.LazyAttribute(
        lambda o: [
            {"code": f"ProvisioningState/{o.provisioning}"},
            {"code": f"PowerState/{o.power}"},
        ]
    )
    disks = factory.LazyAttribute(
        lambda o: [
            {"name": name, "statuses": [{"code": "ProvisioningState/succeeded"}]}
            for name in o.disk_names
        ]
    )
