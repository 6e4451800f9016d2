#  Copyright 2026 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Fake in-memory implementation of the Resource Manager client."""

import copy
import logging
from dataclasses import dataclass
from typing import Any

from azure_vm_manager.errors import ArmApiError, ResourceNotFoundError
from azure_vm_manager.resource import build_resource_id, parse_resource_id
from tests.unit.factories.arm_factory import (
    LOCATION,
    SUBSCRIPTION_ID,
    DeploymentFactory,
    InstanceViewFactory,
    NetworkInterfaceFactory,
    PublicIpFactory,
    ResourceGroupFactory,
    VirtualMachineFactory,
)

logger = logging.getLogger(__name__)

_POWER_ACTIONS = {
    "start": "running",
    "restart": "running",
    "deallocate": "deallocated",
    "poweroff": "stopped",
}


@dataclass
class ArmCall:
    """A request received by the fake client.

    Attributes:
        http_verb: The HTTP method.
        path: The request path.
        body: The request body.
    """

    http_verb: str
    path: str
    body: dict[str, Any] | None


def _is_resource_group(key: str) -> bool:
    """Check whether a path is a resource group path."""
    parts = key.strip("/").split("/")
    return len(parts) == 4 and parts[2] == "resourcegroups"


def _merge(target: dict[str, Any], patch: dict[str, Any]) -> None:
    """Merge a partial resource definition into a resource."""
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


class FakeArmClient:
    """Fake implementation of ArmClient keeping the resources in memory.

    Template deployments create the VMs named by the vmName and numberOfInstances parameters,
    with a network interface and a public IP address each.
    """

    def __init__(self, subscription_id: str = SUBSCRIPTION_ID) -> None:
        """Initialize the fake client.

        Args:
            subscription_id: The subscription of the fake resources.
        """
        self.subscription_id = subscription_id
        self.resources: dict[str, dict[str, Any]] = {}
        self.power_states: dict[str, str] = {}
        self.calls: list[ArmCall] = []
        self.errors: dict[str, Exception] = {}
        self.deployment_state = "Succeeded"
        self.vm_sizes = ["Standard_DS3_v2", "Standard_DS4_v2", "Standard_E4s_v3"]
        self.os_type = "Linux"

    def add_resource(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Add a resource.

        Args:
            payload: The resource payload.

        Returns:
            The resource payload.
        """
        self.resources[payload["id"].lower()] = payload
        return payload

    def add_resource_group(self, name: str, location: str = LOCATION) -> dict[str, Any]:
        """Add a resource group.

        Args:
            name: The resource group name.
            location: The resource group location.

        Returns:
            The resource group payload.
        """
        return self.add_resource(
            ResourceGroupFactory(
                subscription_id=self.subscription_id, name=name, location=location
            )
        )

    def add_vm(self, resource_group: str, name: str, **kwargs: Any) -> dict[str, Any]:
        """Add a running virtual machine.

        Args:
            resource_group: The resource group name.
            name: The VM name.
            kwargs: Further VirtualMachineFactory arguments.

        Returns:
            The VM payload.
        """
        kwargs.setdefault("os_type", self.os_type)
        payload = self.add_resource(
            VirtualMachineFactory(
                subscription_id=self.subscription_id,
                resource_group=resource_group,
                name=name,
                **kwargs,
            )
        )
        self.power_states[payload["id"].lower()] = "running"
        return payload

    def complete_deployment(self, resource_group: str, name: str) -> None:
        """Finish a deployment, creating the VMs it describes.

        Args:
            resource_group: The resource group name.
            name: The deployment name.
        """
        deployment_id = build_resource_id(
            self.subscription_id, resource_group, "Microsoft.Resources/deployments", name
        )
        properties = self.resources[deployment_id.lower()]["properties"]
        properties["provisioningState"] = "Succeeded"
        params = {key: value.get("value") for key, value in properties["parameters"].items()}
        if "vmName" not in params:
            return

        count = params.get("numberOfInstances")
        vm_names = (
            [params["vmName"]]
            if count is None
            else [f"{params['vmName']}{index}" for index in range(count)]
        )
        label = params.get("dnsLabelPrefix", params["vmName"])
        output_ids = []
        for index, vm_name in enumerate(vm_names):
            vm = self.add_vm(resource_group, vm_name, size=params.get("vmSize", "Standard_DS3_v2"))
            nic = self.add_resource(
                NetworkInterfaceFactory(
                    subscription_id=self.subscription_id,
                    resource_group=resource_group,
                    name=f"{vm_name}-nic",
                )
            )
            public_ip = self.add_resource(
                PublicIpFactory(
                    subscription_id=self.subscription_id,
                    resource_group=resource_group,
                    name=f"{vm_name}-ip",
                    dns_label=label if count is None else f"{label}{index}",
                    ip_address=f"20.1.0.{index + 4}",
                )
            )
            output_ids.extend([vm["id"], nic["id"], public_ip["id"]])

        properties["outputResources"] = [{"id": resource_id} for resource_id in output_ids]
        if count is not None:
            properties["outputs"] = {"numInstances": {"type": "Int", "value": count}}

    def get_deployment(self, resource_group: str, name: str) -> dict[str, Any]:
        """Get the stored deployment record.

        Args:
            resource_group: The resource group name.
            name: The deployment name.

        Returns:
            The deployment payload, including the submitted template and parameters.
        """
        deployment_id = build_resource_id(
            self.subscription_id, resource_group, "Microsoft.Resources/deployments", name
        )
        return self.resources[deployment_id.lower()]

    def calls_to(self, http_verb: str, suffix: str) -> list[ArmCall]:
        """Get the calls of a method to paths ending with a suffix.

        Args:
            http_verb: The HTTP method.
            suffix: The path suffix, compared case insensitively.

        Returns:
            The matching calls.
        """
        return [
            call
            for call in self.calls
            if call.http_verb == http_verb and call.path.lower().endswith(suffix.lower())
        ]

    def call(
        self,
        path: str,
        api_version: str,
        http_verb: str = "GET",
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Fake the Resource Manager call.

        Args:
            path: The resource path.
            api_version: The API version, ignored.
            http_verb: The HTTP method.
            body: The request body.

        Raises:
            ArmApiError: For an unsupported method.

        Returns:
            The response payload.
        """
        logger.debug("Fake %s %s (api-version %s)", http_verb, path, api_version)
        self.calls.append(ArmCall(http_verb, path, copy.deepcopy(body)))
        key = path.lower()
        if key in self.errors:
            raise self.errors[key]
        if http_verb == "GET":
            return self._get(key)
        if http_verb == "PUT":
            return self._put(path, body or {})
        if http_verb == "PATCH":
            resource = self._lookup(key)
            _merge(resource, body or {})
            return copy.deepcopy(resource)
        if http_verb == "POST":
            return self._post(key)
        if http_verb == "DELETE":
            return self._delete(key)
        raise ArmApiError(f"Unsupported method {http_verb}", status_code=405)

    def list_values(self, path: str, api_version: str) -> list[dict[str, Any]]:
        """Fake listing a collection.

        Args:
            path: The collection path.
            api_version: The API version, ignored.

        Returns:
            The items of the collection.
        """
        self.calls.append(ArmCall("GET", path, None))
        key = path.lower()
        if key.endswith("/resourcegroups"):
            return [
                copy.deepcopy(resource)
                for resource_key, resource in self.resources.items()
                if resource_key.startswith(f"{key}/") and _is_resource_group(resource_key)
            ]
        scope, resource_type = key.split("/providers/", 1)
        return [
            copy.deepcopy(resource)
            for resource_key, resource in self.resources.items()
            if resource_key.startswith(f"{scope}/")
            and resource.get("type", "").lower() == resource_type
        ]

    def _lookup(self, key: str) -> dict[str, Any]:
        """Get a stored resource.

        Args:
            key: The lower case resource ID.

        Raises:
            ResourceNotFoundError: If the resource does not exist.

        Returns:
            The stored resource.
        """
        if key not in self.resources:
            raise ResourceNotFoundError(f"Resource not found: {key}", status_code=404)
        return self.resources[key]

    def _get(self, key: str) -> dict[str, Any]:
        """Fake a GET request."""
        if key.endswith("/instanceview"):
            vm_key = key[: -len("/instanceview")]
            vm = self._lookup(vm_key)
            return InstanceViewFactory(
                power=self.power_states.get(vm_key, "running"),
                disk_names=(f"{vm['name']}_osdisk",),
            )
        if key.endswith("/vmsizes"):
            self._lookup(key[: -len("/vmsizes")])
            return {"value": [{"name": size} for size in self.vm_sizes]}
        return copy.deepcopy(self._lookup(key))

    def _put(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """Fake a PUT request."""
        key = path.lower()
        if _is_resource_group(key):
            payload = self.add_resource_group(path.rsplit("/", 1)[1], body["location"])
            return copy.deepcopy(payload)

        components = parse_resource_id(path)
        if components["type"].lower() == "microsoft.resources/deployments":
            properties = body["properties"]
            payload = DeploymentFactory(
                subscription_id=self.subscription_id,
                resource_group=components["resource_group"],
                name=components["name"],
                mode=properties["mode"],
                provisioning_state=self.deployment_state,
            )
            payload["properties"]["parameters"] = properties.get("parameters", {})
            payload["properties"]["template"] = properties.get("template")
            payload["properties"]["templateLink"] = properties.get("templateLink")
            self.add_resource(payload)
            if self.deployment_state == "Succeeded":
                self.complete_deployment(components["resource_group"], components["name"])
            return copy.deepcopy(payload)

        payload = {
            "id": path,
            "name": components["name"],
            "type": components["type"],
            **{key: value for key, value in body.items() if key != "properties"},
            "properties": {**body.get("properties", {}), "provisioningState": "Succeeded"},
        }
        return copy.deepcopy(self.add_resource(payload))

    def _post(self, key: str) -> dict[str, Any]:
        """Fake an action on a VM."""
        vm_key, action = key.rsplit("/", 1)
        self._lookup(vm_key)
        if action in _POWER_ACTIONS:
            self.power_states[vm_key] = _POWER_ACTIONS[action]
            return {}
        if action == "runcommand":
            return {"value": [{"code": "ComponentStatus/StdOut/succeeded", "message": ""}]}
        raise ArmApiError(f"Unsupported action {action}", status_code=400)

    def _delete(self, key: str) -> dict[str, Any]:
        """Fake a DELETE request."""
        self._lookup(key)
        if _is_resource_group(key):
            for resource_key in [k for k in self.resources if k.startswith(f"{key}/")]:
                del self.resources[resource_key]
        del self.resources[key]
        self.power_states.pop(key, None)
        return {}
