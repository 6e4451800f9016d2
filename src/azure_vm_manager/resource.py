# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Generic Azure Resource Manager resource."""

import logging
from typing import Any

from azure_vm_manager import constants
from azure_vm_manager.arm_client import ArmClient
from azure_vm_manager.errors import AzureVmError, ResourceNotFoundError
from azure_vm_manager.utilities import confirm_action, wait_until

logger = logging.getLogger(__name__)


def build_resource_id(
    subscription_id: str, resource_group: str, resource_type: str, name: str
) -> str:
    """Build the full resource ID of a resource in a resource group.

    Args:
        subscription_id: The subscription ID.
        resource_group: The resource group name.
        resource_type: The provider qualified resource type, e.g. Microsoft.Compute/disks.
        name: The resource name.

    Returns:
        The resource ID.
    """
    return (
        f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/{resource_type}/{name}"
    )


def parse_resource_id(resource_id: str) -> dict[str, str]:
    """Split a resource ID into its components.

    Args:
        resource_id: The resource ID.

    Raises:
        ValueError: If the ID is not a resource group scoped resource ID.

    Returns:
        A mapping with the subscription_id, resource_group, type and name keys.
    """
    parts = resource_id.strip("/").split("/")
    if (
        len(parts) < 8
        or parts[0].lower() != "subscriptions"
        or parts[2].lower() != "resourcegroups"
        or parts[4].lower() != "providers"
    ):
        raise ValueError(f"Invalid resource ID {resource_id}")
    # providers/<namespace>/<type>/<name>[/<child type>/<child name>...]
    type_parts = [parts[5]] + parts[6::2]
    return {
        "subscription_id": parts[1],
        "resource_group": parts[3],
        "type": "/".join(type_parts),
        "name": parts[-1],
    }


class ArmResource:  # pylint: disable=too-many-instance-attributes
    """An Azure Resource Manager resource.

    Attributes:
        id: The full resource ID.
        subscription_id: The subscription containing the resource.
        resource_group: The resource group containing the resource.
        type: The provider qualified resource type.
        name: The resource name.
        location: The resource location.
        kind: The resource kind, if any.
        sku: The resource SKU, if any.
        tags: The resource tags.
        properties: The resource properties as returned by the host.
    """

    # Extra arguments select the resource either by ID or by name.
    def __init__(  # pylint: disable=too-many-arguments
        self,
        client: ArmClient,
        id: str | None = None,  # pylint: disable=redefined-builtin
        subscription_id: str | None = None,
        resource_group: str | None = None,
        type: str | None = None,  # pylint: disable=redefined-builtin
        name: str | None = None,
        api_version: str | None = None,
        deployed_properties: dict[str, Any] | None = None,
    ):
        """Retrieve an existing resource.

        Args:
            client: The Resource Manager client.
            id: The full resource ID.
            subscription_id: The subscription ID, if the resource is not given by ID.
            resource_group: The resource group name, if the resource is not given by ID.
            type: The resource type, if the resource is not given by ID.
            name: The resource name, if the resource is not given by ID.
            api_version: The API version, defaults to the one configured for the type.
            deployed_properties: Already known resource fields; the host is not queried.

        Raises:
            AzureVmError: If neither an ID nor the full set of name components is given.
        """
        self._client = client
        if id is not None:
            components = parse_resource_id(id)
            self.id = id
        elif subscription_id and resource_group and type and name:
            components = {
                "subscription_id": subscription_id,
                "resource_group": resource_group,
                "type": type,
                "name": name,
            }
            self.id = build_resource_id(subscription_id, resource_group, type, name)
        else:
            raise AzureVmError("Resource must be given by ID or by resource group, type and name")

        self.subscription_id = components["subscription_id"]
        self.resource_group = components["resource_group"]
        self.type = components["type"]
        self.name = components["name"]
        self.api_version = api_version or constants.get_api_version(self.type)
        self.location: str | None = None
        self.kind: str | None = None
        self.sku: dict[str, Any] | None = None
        self.tags: dict[str, str] = {}
        self.properties: dict[str, Any] = {}

        if deployed_properties is not None:
            self._set_fields(deployed_properties)
        else:
            self.sync_fields()

    def sync_fields(self) -> str | None:
        """Update the fields of this object with the information from the host.

        Returns:
            The provisioning state of the resource.
        """
        self._set_fields(self._client.call(self.id, self.api_version))
        return self.properties.get("provisioningState")

    def do_operation(
        self, operation: str, body: dict[str, Any] | None = None, http_verb: str = "GET"
    ) -> dict[str, Any]:
        """Carry out an operation on the resource.

        Args:
            operation: The operation path relative to the resource, e.g. start.
            body: The JSON request body.
            http_verb: The HTTP method.

        Returns:
            The decoded response of the operation.
        """
        path = f"{self.id}/{operation}" if operation else self.id
        return self._client.call(path, self.api_version, http_verb=http_verb, body=body)

    def update(self, body: dict[str, Any]) -> None:
        """Update the resource with a partial resource definition.

        Args:
            body: The partial resource definition, e.g. {"properties": {...}}.
        """
        logger.info("Updating %s %s", self.type, self.name)
        self._set_fields(self.do_operation("", body=body, http_verb="PATCH"))

    def exists(self) -> bool:
        """Check whether the resource still exists on the host.

        Returns:
            Whether the resource exists.
        """
        try:
            self._client.call(self.id, self.api_version)
        except ResourceNotFoundError:
            return False
        return True

    def delete(self, confirm: bool = True, wait: bool = False) -> None:
        """Delete the resource.

        Args:
            confirm: Whether to ask for confirmation when running interactively.
            wait: Whether to wait until the host has deleted the resource.
        """
        if not confirm_action(
            f"Do you really want to delete the {self.type} resource '{self.name}'?", confirm
        ):
            return
        logger.info("Deleting %s %s", self.type, self.name)
        self._client.call(self.id, self.api_version, http_verb="DELETE")
        if wait:
            wait_until(
                lambda: not self.exists(),
                f"deletion of {self.name}",
                timeout=constants.DELETE_TIMEOUT,
                interval=constants.DELETE_POLL_INTERVAL,
            )

    def _set_fields(self, fields: dict[str, Any]) -> None:
        """Set the fields of this object from a resource representation.

        Args:
            fields: The resource representation returned by the host.
        """
        self.name = fields.get("name", self.name)
        self.type = fields.get("type", self.type)
        self.location = fields.get("location", self.location)
        self.kind = fields.get("kind", self.kind)
        self.sku = fields.get("sku", self.sku)
        self.tags = fields.get("tags") or {}
        self.properties = fields.get("properties") or {}

    def __repr__(self) -> str:
        """Represent the resource.

        Returns:
            The representation of the resource.
        """
        return f"<{type(self).__name__} {self.type} {self.name!r} in {self.resource_group}>"
