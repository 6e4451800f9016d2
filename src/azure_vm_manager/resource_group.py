# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Resource group and subscription entry points for virtual machine deployments."""

import logging
import re
from pathlib import Path
from typing import Any, Sequence

from azure_vm_manager import constants
from azure_vm_manager.arm_client import ArmClient
from azure_vm_manager.deployment import TemplateSource
from azure_vm_manager.deployment_template import (
    add_datadisks,
    get_dsvm_template,
    load_template,
    make_dsvm_param_list,
)
from azure_vm_manager.errors import ResourceNotFoundError, UnsupportedTemplateError, VmConfigError
from azure_vm_manager.presets import get_image_preset
from azure_vm_manager.resource import ArmResource, build_resource_id, parse_resource_id
from azure_vm_manager.utilities import confirm_action, wait_until
from azure_vm_manager.vm_config import DataDiskConfig, ImageConfig, UserConfig
from azure_vm_manager.vm_resource import VmResource
from azure_vm_manager.vm_template import VmTemplate, is_vm_template

logger = logging.getLogger(__name__)

RESOURCE_GROUP_TYPE = "Microsoft.Resources/resourceGroups"

_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


class ResourceGroup:
    """A resource group.

    Attributes:
        id: The resource group ID.
        subscription_id: The subscription containing the resource group.
        name: The resource group name.
        location: The resource group location.
        tags: The resource group tags.
        properties: The resource group properties as returned by the host.
    """

    def __init__(
        self,
        client: ArmClient,
        subscription_id: str,
        name: str,
        deployed_properties: dict[str, Any] | None = None,
    ):
        """Retrieve an existing resource group.

        Args:
            client: The Resource Manager client.
            subscription_id: The subscription ID.
            name: The resource group name.
            deployed_properties: Already known resource group fields; the host is not queried.
        """
        self._client = client
        self._api_version = constants.get_api_version(RESOURCE_GROUP_TYPE)
        self.subscription_id = subscription_id
        self.name = name
        self.id = f"/subscriptions/{subscription_id}/resourceGroups/{name}"
        self.location: str | None = None
        self.tags: dict[str, str] = {}
        self.properties: dict[str, Any] = {}
        if deployed_properties is not None:
            self._set_fields(deployed_properties)
        else:
            self.sync_fields()

    def sync_fields(self) -> str | None:
        """Update the resource group fields with the information from the host.

        Returns:
            The provisioning state of the resource group.
        """
        self._set_fields(self._client.call(self.id, self._api_version))
        return self.properties.get("provisioningState")

    # The arguments mirror the deployment template parameters.
    # pylint: disable-next=too-many-arguments, too-many-positional-arguments, too-many-locals
    def create_vm(
        self,
        name: str,
        login_user: UserConfig,
        size: str = "Standard_DS3_v2",
        os: str = "Ubuntu",
        image: ImageConfig | str | None = None,
        datadisks: Sequence[DataDiskConfig] = (),
        ext_file_uris: Sequence[str] | None = None,
        inst_command: str | None = None,
        dns_label: str | None = None,
        template: TemplateSource | None = None,
        parameters: TemplateSource | None = None,
        mode: str = "Incremental",
        wait: bool = True,
        clust_size: int = 1,
    ) -> VmTemplate:
        """Deploy a virtual machine, or a cluster of virtual machines.

        Args:
            name: The VM name; cluster VMs are named by appending their index.
            login_user: The admin user login configuration.
            size: The VM size.
            os: The template OS family, Ubuntu or Windows.
            image: The OS image, or the name of an image preset, which also sets the OS family.
            datadisks: The data disks to create with each VM.
            ext_file_uris: The files to download with the custom script extension.
            inst_command: The command run by the custom script extension.
            dns_label: The domain name label of the public address, defaults to the lower case
                VM name.
            template: A template to deploy instead of the packaged one.
            parameters: The template parameters, built from the arguments if None.
            mode: The deployment mode, Incremental or Complete.
            wait: Whether to wait until the deployment completes.
            clust_size: The number of VMs.

        Raises:
            UnsupportedTemplateError: If data disks are requested for a linked template.
            VmConfigError: If no parameters are given for a linked template.

        Returns:
            The VM deployment.
        """
        if isinstance(image, str):
            preset = get_image_preset(image)
            os = preset.os
            image = preset.image

        if template is None:
            template = get_dsvm_template(
                os, login_user.auth_type, clust_size, ext_file_uris, inst_command
            )
        is_link = not isinstance(template, dict) and _URL_PATTERN.match(str(template))
        if is_link:
            if datadisks:
                raise UnsupportedTemplateError("Data disks cannot be added to a linked template")
            if parameters is None:
                raise VmConfigError("Parameters must be supplied for a linked template")
        elif not isinstance(template, dict):
            template = load_template(Path(template))

        if datadisks:
            template = add_datadisks(template, datadisks)  # type: ignore[arg-type]

        if parameters is None:
            parameters = make_dsvm_param_list(
                template,  # type: ignore[arg-type]
                name=name,
                login_user=login_user.user,
                login_password=login_user.password,
                key=login_user.key,
                size=size,
                clust_size=clust_size if clust_size > 1 else None,
                ext_file_uris=list(ext_file_uris) if ext_file_uris else None,
                inst_command=inst_command,
                location=self.location,
                dns_label=(dns_label or name).lower(),
                image=image.image_reference() if image is not None else None,
            )

        logger.info("Creating VM %s in resource group %s", name, self.name)
        return VmTemplate(
            self._client,
            self.subscription_id,
            self.name,
            name,
            template=template,
            parameters=parameters,
            mode=mode,
            wait=wait,
        )

    def create_vm_cluster(
        self, name: str, login_user: UserConfig, clust_size: int = 2, **kwargs: Any
    ) -> VmTemplate:
        """Deploy a cluster of virtual machines.

        Args:
            name: The base name of the VMs.
            login_user: The admin user login configuration.
            clust_size: The number of VMs.
            kwargs: Further arguments, see create_vm.

        Returns:
            The VM cluster deployment.
        """
        return self.create_vm(name, login_user, clust_size=clust_size, **kwargs)

    def get_vm(self, name: str) -> VmTemplate | VmResource:
        """Get a virtual machine.

        Args:
            name: The VM name.

        Returns:
            The VM deployment, or the VM itself if it was not created by a deployment.
        """
        try:
            return VmTemplate(self._client, self.subscription_id, self.name, name)
        except ResourceNotFoundError:
            logger.info("No deployment found for VM %s, retrieving the VM resource", name)
        return VmResource(self._client, self.subscription_id, self.name, name)

    def get_vm_cluster(self, name: str) -> VmTemplate:
        """Get a virtual machine cluster.

        Args:
            name: The cluster name.

        Returns:
            The VM cluster deployment.
        """
        return VmTemplate(self._client, self.subscription_id, self.name, name)

    def delete_vm(self, name: str, confirm: bool = True, free_resources: bool = True) -> None:
        """Delete a virtual machine.

        Args:
            name: The VM name.
            confirm: Whether to ask for confirmation when running interactively.
            free_resources: Whether to delete the resources deployed with the VM.
        """
        vm = self.get_vm(name)
        if is_vm_template(vm):
            vm.delete(confirm=confirm, free_resources=free_resources)  # type: ignore[call-arg]
        else:
            vm.delete(confirm=confirm)

    def delete_vm_cluster(
        self, name: str, confirm: bool = True, free_resources: bool = True
    ) -> None:
        """Delete a virtual machine cluster.

        Args:
            name: The cluster name.
            confirm: Whether to ask for confirmation when running interactively.
            free_resources: Whether to delete the resources deployed with the cluster.
        """
        self.get_vm_cluster(name).delete(confirm=confirm, free_resources=free_resources)

    def list_vms(self) -> list[VmResource]:
        """List the virtual machines of the resource group.

        Returns:
            The VMs.
        """
        items = self._client.list_values(
            f"{self.id}/providers/{constants.VM_TYPE}",
            constants.get_api_version(constants.VM_TYPE),
        )
        return [
            VmResource(
                self._client,
                self.subscription_id,
                self.name,
                item["name"],
                deployed_properties=item,
            )
            for item in items
        ]

    # The arguments are the fields of a resource definition.
    def create_resource(  # pylint: disable=too-many-arguments
        self,
        type: str,  # pylint: disable=redefined-builtin
        name: str,
        properties: dict[str, Any] | None = None,
        location: str | None = None,
        kind: str | None = None,
        sku: dict[str, Any] | None = None,
        tags: dict[str, str] | None = None,
        wait: bool = False,
    ) -> ArmResource:
        """Create a resource in the resource group.

        Args:
            type: The provider qualified resource type.
            name: The resource name.
            properties: The resource properties.
            location: The resource location, defaults to the resource group location.
            kind: The resource kind.
            sku: The resource SKU.
            tags: The resource tags.
            wait: Whether to wait until the resource is provisioned.

        Returns:
            The resource.
        """
        body: dict[str, Any] = {"location": location or self.location}
        for key, value in (("properties", properties), ("kind", kind), ("sku", sku)):
            if value is not None:
                body[key] = value
        if tags:
            body["tags"] = tags

        resource_id = build_resource_id(self.subscription_id, self.name, type, name)
        logger.info("Creating %s %s in resource group %s", type, name, self.name)
        response = self._client.call(
            resource_id, constants.get_api_version(type), http_verb="PUT", body=body
        )
        resource = ArmResource(self._client, id=resource_id, deployed_properties=response)
        if wait:
            wait_until(
                lambda: (resource.sync_fields() or "").lower()
                in ("succeeded", "failed", "canceled"),
                f"provisioning of {name}",
                timeout=constants.DEPLOYMENT_TIMEOUT,
                interval=constants.DEPLOYMENT_POLL_INTERVAL,
            )
        return resource

    # pylint: disable-next=redefined-builtin
    def get_resource(self, type: str, name: str) -> ArmResource:
        """Get a resource of the resource group.

        Args:
            type: The provider qualified resource type.
            name: The resource name.

        Returns:
            The resource.
        """
        return ArmResource(
            self._client,
            subscription_id=self.subscription_id,
            resource_group=self.name,
            type=type,
            name=name,
        )

    def delete(self, confirm: bool = True) -> None:
        """Delete the resource group and everything in it.

        Args:
            confirm: Whether to ask for confirmation when running interactively.
        """
        if not confirm_action(
            f"Do you really want to delete the resource group '{self.name}'?", confirm
        ):
            return
        logger.info("Deleting resource group %s", self.name)
        self._client.call(self.id, self._api_version, http_verb="DELETE")

    def _set_fields(self, fields: dict[str, Any]) -> None:
        """Set the fields of this object from a resource group representation.

        Args:
            fields: The representation returned by the host.
        """
        self.location = fields.get("location", self.location)
        self.tags = fields.get("tags") or {}
        self.properties = fields.get("properties") or {}

    def __repr__(self) -> str:
        """Represent the resource group.

        Returns:
            The representation of the resource group.
        """
        return f"<ResourceGroup {self.name!r} in {self.location}>"


class Subscription:
    """A subscription, the entry point for VM deployments in their own resource group.

    Attributes:
        id: The subscription ID.
    """

    def __init__(self, client: ArmClient, subscription_id: str):
        """Initialize the subscription.

        Args:
            client: The Resource Manager client.
            subscription_id: The subscription ID.
        """
        self._client = client
        self.id = subscription_id

    def get_resource_group(self, name: str) -> ResourceGroup:
        """Get a resource group.

        Args:
            name: The resource group name.

        Returns:
            The resource group.
        """
        return ResourceGroup(self._client, self.id, name)

    def create_resource_group(
        self, name: str, location: str, tags: dict[str, str] | None = None
    ) -> ResourceGroup:
        """Create a resource group.

        Args:
            name: The resource group name.
            location: The resource group location.
            tags: The resource group tags.

        Returns:
            The resource group.
        """
        body: dict[str, Any] = {"location": location}
        if tags:
            body["tags"] = tags
        logger.info("Creating resource group %s in %s", name, location)
        response = self._client.call(
            f"/subscriptions/{self.id}/resourceGroups/{name}",
            constants.get_api_version(RESOURCE_GROUP_TYPE),
            http_verb="PUT",
            body=body,
        )
        return ResourceGroup(self._client, self.id, name, deployed_properties=response)

    def list_resource_groups(self) -> list[ResourceGroup]:
        """List the resource groups of the subscription.

        Returns:
            The resource groups.
        """
        items = self._client.list_values(
            f"/subscriptions/{self.id}/resourceGroups",
            constants.get_api_version(RESOURCE_GROUP_TYPE),
        )
        return [
            ResourceGroup(self._client, self.id, item["name"], deployed_properties=item)
            for item in items
        ]

    def create_vm(
        self,
        name: str,
        login_user: UserConfig,
        location: str | None = None,
        resource_group: str | None = None,
        **kwargs: Any,
    ) -> VmTemplate:
        """Deploy a virtual machine.

        When the resource group does not exist it is created for the deployment alone, and the
        template is deployed in Complete mode; deleting the VM then deletes the resource group.

        Args:
            name: The VM name.
            login_user: The admin user login configuration.
            location: The location of a new resource group.
            resource_group: The resource group name, defaults to the VM name.
            kwargs: Further arguments, see ResourceGroup.create_vm.

        Raises:
            VmConfigError: If a resource group must be created and no location is given.

        Returns:
            The VM deployment.
        """
        group_name = resource_group or name
        try:
            group = self.get_resource_group(group_name)
        except ResourceNotFoundError as exc:
            if location is None:
                raise VmConfigError(
                    f"A location is required to create the resource group {group_name}"
                ) from exc
            group = self.create_resource_group(group_name, location)
            kwargs["mode"] = "Complete"
        return group.create_vm(name, login_user, **kwargs)

    def create_vm_cluster(
        self, name: str, login_user: UserConfig, clust_size: int = 2, **kwargs: Any
    ) -> VmTemplate:
        """Deploy a cluster of virtual machines.

        Args:
            name: The base name of the VMs.
            login_user: The admin user login configuration.
            clust_size: The number of VMs.
            kwargs: Further arguments, see create_vm.

        Returns:
            The VM cluster deployment.
        """
        return self.create_vm(name, login_user, clust_size=clust_size, **kwargs)

    def get_vm(self, name: str, resource_group: str | None = None) -> VmTemplate | VmResource:
        """Get a virtual machine.

        Args:
            name: The VM name.
            resource_group: The resource group name, defaults to the VM name.

        Returns:
            The VM deployment, or the VM itself if it was not created by a deployment.
        """
        return self.get_resource_group(resource_group or name).get_vm(name)

    def get_vm_cluster(self, name: str, resource_group: str | None = None) -> VmTemplate:
        """Get a virtual machine cluster.

        Args:
            name: The cluster name.
            resource_group: The resource group name, defaults to the cluster name.

        Returns:
            The VM cluster deployment.
        """
        return self.get_resource_group(resource_group or name).get_vm_cluster(name)

    def delete_vm(
        self,
        name: str,
        confirm: bool = True,
        free_resources: bool = True,
        resource_group: str | None = None,
    ) -> None:
        """Delete a virtual machine.

        Args:
            name: The VM name.
            confirm: Whether to ask for confirmation when running interactively.
            free_resources: Whether to delete the resources deployed with the VM.
            resource_group: The resource group name, defaults to the VM name.
        """
        self.get_resource_group(resource_group or name).delete_vm(
            name, confirm=confirm, free_resources=free_resources
        )

    def delete_vm_cluster(
        self,
        name: str,
        confirm: bool = True,
        free_resources: bool = True,
        resource_group: str | None = None,
    ) -> None:
        """Delete a virtual machine cluster.

        Args:
            name: The cluster name.
            confirm: Whether to ask for confirmation when running interactively.
            free_resources: Whether to delete the resources deployed with the cluster.
            resource_group: The resource group name, defaults to the cluster name.
        """
        self.get_resource_group(resource_group or name).delete_vm_cluster(
            name, confirm=confirm, free_resources=free_resources
        )

    def list_vms(self) -> list[VmResource]:
        """List the virtual machines of the subscription.

        Returns:
            The VMs.
        """
        items = self._client.list_values(
            f"/subscriptions/{self.id}/providers/{constants.VM_TYPE}",
            constants.get_api_version(constants.VM_TYPE),
        )
        vms = []
        for item in items:
            components = parse_resource_id(item["id"])
            vms.append(
                VmResource(
                    self._client,
                    self.id,
                    components["resource_group"],
                    components["name"],
                    deployed_properties=item,
                )
            )
        return vms
