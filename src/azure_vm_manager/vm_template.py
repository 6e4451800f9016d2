# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Deployment of a virtual machine or a cluster of virtual machines.

A VmTemplate is the deployment that created the VMs, together with the VMs themselves. The
lifecycle methods apply to every VM of the deployment in turn.
"""

import logging
import re
from typing import Any

import jinja2

from azure_vm_manager.arm_client import ArmClient
from azure_vm_manager.deployment import ArmTemplate, TemplateSource
from azure_vm_manager.errors import ArmApiError, DeploymentInProgressError, ResourceNotFoundError
from azure_vm_manager.resource import ArmResource
from azure_vm_manager.utilities import confirm_action
from azure_vm_manager.vm_resource import DiskStatus, VmResource, VmStatus

logger = logging.getLogger(__name__)

IN_PROGRESS_MESSAGE = "VM deployment in progress"

_PUBLIC_IP_PATTERN = re.compile(r"publicIPAddresses/.+$", re.IGNORECASE)


def _natural_key(text: str) -> list[Any]:
    """Sort key ordering the numbered resources of a cluster by number.

    Args:
        text: The text to sort.

    Returns:
        The sort key.
    """
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", text)]


class VmTemplate(ArmTemplate):  # pylint: disable=too-many-instance-attributes
    """A virtual machine deployment.

    The per VM attributes are lists with one element per VM, in VM name order.

    Attributes:
        clust_size: The number of VMs in the deployment.
        vms: The VMs of the deployment, empty until the deployment has completed.
        status: The status of each VM.
        disks: The disk status of each VM.
        ip_address: The public IP address of each VM.
        dns_name: The fully qualified domain name of each VM.
    """

    def __init__(  # pylint: disable=too-many-arguments, too-many-positional-arguments
        self,
        client: ArmClient,
        subscription_id: str,
        resource_group: str,
        name: str,
        template: TemplateSource | None = None,
        parameters: TemplateSource | None = None,
        mode: str = "Incremental",
        wait: bool = True,
    ):
        """Deploy a VM template, or retrieve an existing VM deployment.

        Args:
            client: The Resource Manager client.
            subscription_id: The subscription ID.
            resource_group: The resource group name.
            name: The deployment name, also the base name of the VMs.
            template: The template to deploy; if None, the existing deployment is retrieved.
            parameters: The template parameters.
            mode: The deployment mode, Incremental or Complete.
            wait: Whether to wait until the deployment completes.
        """
        self.clust_size = 1
        self.vms: list[VmResource] = []
        self.status: list[VmStatus | None] = []
        self.disks: list[list[DiskStatus]] = []
        self.ip_address: list[str | None] = []
        self.dns_name: list[str | None] = []
        super().__init__(
            client,
            subscription_id,
            resource_group,
            name,
            template=template,
            parameters=parameters,
            mode=mode,
            wait=wait,
        )

        if wait and self.provisioning_state.lower() == "succeeded":
            self._init_vms()
        else:
            logger.info(
                "Deployment %s is %s, call sync_vm_status() to track its status",
                name,
                self.provisioning_state.lower(),
            )

    @property
    def vm_names(self) -> list[str]:
        """The names of the VMs of the deployment."""
        if self.clust_size == 1:
            return [self.name]
        return [f"{self.name}{index}" for index in range(self.clust_size)]

    @property
    def os_type(self) -> str | None:
        """The OS type of the VMs, Linux or Windows, None while deploying."""
        return self.vms[0].os_type if self.vms else None

    def sync_vm_status(self) -> list[VmStatus | None] | None:
        """Update the status of the VMs.

        While the deployment is running the VMs do not exist yet; the status is then None.

        Returns:
            The status of each VM, or None if the deployment is in progress.
        """
        first = self.status[0] if self.status else None
        if not self.vms or first is None or (first.provisioning or "").lower() != "succeeded":
            try:
                if self.sync_fields().lower() != "succeeded":
                    logger.info(IN_PROGRESS_MESSAGE)
                    return None
                self._init_vms()
            except ArmApiError:
                logger.info(IN_PROGRESS_MESSAGE)
                return None
            return self.status

        self._sync_vms()
        return self.status

    def start(self, wait: bool = True) -> list[VmStatus | None] | None:
        """Start the VMs.

        Args:
            wait: Whether to wait until each VM is running.

        Returns:
            The status of each VM.
        """
        for vm in self._get_vms():
            vm.start(wait=wait)
        return self.sync_vm_status()

    def stop(self, deallocate: bool = True, wait: bool = True) -> list[VmStatus | None] | None:
        """Stop the VMs.

        Args:
            deallocate: Whether to release the compute resources of the VMs.
            wait: Whether to wait until each VM is stopped.

        Returns:
            The status of each VM.
        """
        for vm in self._get_vms():
            vm.stop(deallocate=deallocate, wait=wait)
        return self.sync_vm_status()

    def restart(self, wait: bool = True) -> list[VmStatus | None] | None:
        """Restart the VMs.

        Args:
            wait: Whether to wait until each VM is running.

        Returns:
            The status of each VM.
        """
        for vm in self._get_vms():
            vm.restart(wait=wait)
        return self.sync_vm_status()

    def resize(self, size: str, deallocate: bool = False, wait: bool = False) -> None:
        """Resize the VMs.

        Args:
            size: The new VM size.
            deallocate: Whether to deallocate each VM before resizing it.
            wait: Whether to wait until each VM runs again.
        """
        for vm in self._get_vms():
            vm.resize(size, deallocate=deallocate, wait=wait)

    def run_deployed_command(
        self, command: str, parameters: dict[str, str] | None = None, script: Any = None
    ) -> None:
        """Run a predefined command on the VMs.

        Args:
            command: The command ID.
            parameters: The command parameters.
            script: The script lines.
        """
        for vm in self._get_vms():
            vm.run_deployed_command(command, parameters=parameters, script=script)

    def run_script(self, script: Any, parameters: dict[str, str] | None = None) -> None:
        """Run a script on the VMs.

        Args:
            script: The script, as a string or as a list of lines.
            parameters: The script parameters.
        """
        for vm in self._get_vms():
            vm.run_script(script, parameters=parameters)

    def add_extension(self, **kwargs: Any) -> None:
        """Install a VM extension on the VMs.

        Args:
            kwargs: The extension arguments, see VmResource.add_extension.
        """
        for vm in self._get_vms():
            vm.add_extension(**kwargs)

    def delete(self, confirm: bool = True, free_resources: bool = True) -> None:
        """Delete the VM deployment.

        Args:
            confirm: Whether to ask for confirmation when running interactively.
            free_resources: Whether to delete the VMs and the other deployed resources. Freeing
                the resources of a deployment that owns its resource group deletes the group.
        """
        if not free_resources:
            super().delete(confirm=confirm, free_resources=False)
            return

        kind = "VM cluster" if self.clust_size > 1 else "VM"
        if self.is_exclusive:
            if not confirm_action(
                f"Do you really want to delete {kind} and resource group "
                f"'{self.resource_group}'?",
                confirm,
            ):
                return
            self._delete_resource_group()
            return

        if not confirm_action(f"Do you really want to delete {kind} '{self.name}'?", confirm):
            return
        for vm in self.vms:
            try:
                vm.delete(confirm=False, wait=True)
            except ResourceNotFoundError:
                logger.debug("VM %s already deleted", vm.name)
        super().delete(confirm=False, free_resources=True)
        self.vms = []

    def summary(self) -> str:
        """Describe the deployment.

        Returns:
            The human readable description of the deployment and its VMs.
        """
        # We do not autoescape, the output is plain text.
        jinja = jinja2.Environment(  # nosec
            loader=jinja2.PackageLoader("azure_vm_manager", "templates")
        )
        nodes = [
            {
                "name": vm.name,
                "provisioning": status.provisioning if status else "unknown",
                "power": (status.power if status else None) or "unknown",
            }
            for vm, status in zip(self.vms, self.status)
        ]
        return jinja.get_template("vm_summary.j2").render(
            name=self.name,
            cluster=self.clust_size > 1,
            os_type=self.os_type or "unknown",
            exclusive=self.is_exclusive,
            dns_names=[dns_name for dns_name in self.dns_name if dns_name],
            nodes=nodes,
            resource_group=self.resource_group,
            subscription_id=self.subscription_id,
        )

    def _init_vms(self) -> None:
        """Materialize the VMs and the public addresses of a completed deployment."""
        num_instances = self.outputs.get("numInstances", {}).get("value")
        self.clust_size = int(num_instances) if num_instances else 1
        self.vms = [
            VmResource(self._client, self.subscription_id, self.resource_group, vm_name)
            for vm_name in self.vm_names
        ]

        ip_ids = sorted(
            (res_id for res_id in self.output_resources() if _PUBLIC_IP_PATTERN.search(res_id)),
            key=_natural_key,
        )
        public_ips = [ArmResource(self._client, id=ip_id) for ip_id in ip_ids]
        self.ip_address = [ip.properties.get("ipAddress") for ip in public_ips]
        self.dns_name = [
            (ip.properties.get("dnsSettings") or {}).get("fqdn") for ip in public_ips
        ]
        self._sync_vms()

    def _sync_vms(self) -> None:
        """Update the status of every VM."""
        for vm in self.vms:
            vm.sync_vm_status()
        self.status = [vm.status for vm in self.vms]
        self.disks = [vm.disks for vm in self.vms]

    def _get_vms(self) -> list[VmResource]:
        """Get the VMs of the deployment.

        Raises:
            DeploymentInProgressError: If the VMs do not exist yet.

        Returns:
            The VMs.
        """
        if not self.vms:
            raise DeploymentInProgressError(IN_PROGRESS_MESSAGE)
        return self.vms

    def __str__(self) -> str:
        """Describe the deployment.

        Returns:
            The summary of the deployment.
        """
        return self.summary()


def is_vm_template(obj: object) -> bool:
    """Check whether an object is a VM deployment.

    Args:
        obj: The object to check.

    Returns:
        Whether the object is a VmTemplate.
    """
    return isinstance(obj, VmTemplate)
