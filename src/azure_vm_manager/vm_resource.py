# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Virtual machine resource."""

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from azure_vm_manager import constants
from azure_vm_manager.arm_client import ArmClient
from azure_vm_manager.errors import VmConfigError
from azure_vm_manager.resource import ArmResource
from azure_vm_manager.utilities import wait_until

logger = logging.getLogger(__name__)

_PROVISIONING_PREFIX = "ProvisioningState/"
_POWER_PREFIX = "PowerState/"


@dataclass(frozen=True)
class VmStatus:
    """Status of a virtual machine.

    Attributes:
        provisioning: The provisioning state, e.g. succeeded.
        power: The power state, e.g. running or deallocated. None while the VM is provisioned.
    """

    provisioning: str | None
    power: str | None


@dataclass(frozen=True)
class DiskStatus:
    """Status of a disk attached to a virtual machine.

    Attributes:
        name: The disk name.
        status: The provisioning state of the disk.
    """

    name: str
    status: str | None


def _status_code(statuses: Sequence[dict[str, Any]], prefix: str) -> str | None:
    """Find the status code with the given prefix.

    Args:
        statuses: The statuses of an instance view.
        prefix: The code prefix, e.g. PowerState/.

    Returns:
        The code without its prefix, or None.
    """
    for status in statuses:
        code = status.get("code", "")
        if code.startswith(prefix):
            return code[len(prefix) :]
    return None


class VmResource(ArmResource):
    """A virtual machine.

    Attributes:
        status: The last known status of the VM.
        disks: The last known status of the disks of the VM.
    """

    def __init__(  # pylint: disable=too-many-arguments, too-many-positional-arguments
        self,
        client: ArmClient,
        subscription_id: str,
        resource_group: str,
        name: str,
        deployed_properties: dict[str, Any] | None = None,
    ):
        """Retrieve an existing virtual machine.

        Args:
            client: The Resource Manager client.
            subscription_id: The subscription ID.
            resource_group: The resource group name.
            name: The VM name.
            deployed_properties: Already known resource fields; the host is not queried.
        """
        self.status: VmStatus | None = None
        self.disks: list[DiskStatus] = []
        super().__init__(
            client,
            subscription_id=subscription_id,
            resource_group=resource_group,
            type=constants.VM_TYPE,
            name=name,
            deployed_properties=deployed_properties,
        )

    @property
    def os_type(self) -> str | None:
        """The OS type of the VM, Linux or Windows."""
        os_disk = self.properties.get("storageProfile", {}).get("osDisk", {})
        return os_disk.get("osType")

    def sync_vm_status(self) -> VmStatus:
        """Update the VM status from the instance view.

        Returns:
            The VM status.
        """
        view = self.do_operation("instanceView")
        statuses = view.get("statuses") or []
        self.status = VmStatus(
            provisioning=_status_code(statuses, _PROVISIONING_PREFIX),
            power=_status_code(statuses, _POWER_PREFIX),
        )
        self.disks = [
            DiskStatus(
                name=disk.get("name", ""),
                status=_status_code(disk.get("statuses") or [], _PROVISIONING_PREFIX),
            )
            for disk in view.get("disks") or []
        ]
        logger.debug("VM %s status: %s", self.name, self.status)
        return self.status

    def start(self, wait: bool = True) -> None:
        """Start the VM.

        Args:
            wait: Whether to wait until the VM is running.
        """
        logger.info("Starting VM %s", self.name)
        self.do_operation("start", http_verb="POST")
        if wait:
            self._wait_for_power_state("running")

    def stop(self, deallocate: bool = True, wait: bool = False) -> None:
        """Stop the VM.

        Args:
            deallocate: Whether to release the compute resources, which stops the billing.
            wait: Whether to wait until the VM is stopped.
        """
        logger.info("Stopping VM %s (deallocate: %s)", self.name, deallocate)
        self.do_operation("deallocate" if deallocate else "powerOff", http_verb="POST")
        if wait:
            self._wait_for_power_state("deallocated" if deallocate else "stopped")

    def restart(self, wait: bool = True) -> None:
        """Restart the VM.

        Args:
            wait: Whether to wait until the VM is running.
        """
        logger.info("Restarting VM %s", self.name)
        self.do_operation("restart", http_verb="POST")
        if wait:
            self._wait_for_power_state("running")

    def list_available_sizes(self) -> list[str]:
        """List the sizes the VM can be resized to on its current hardware cluster.

        Returns:
            The size names.
        """
        response = self.do_operation("vmSizes")
        return [size["name"] for size in response.get("value") or []]

    def resize(self, size: str, deallocate: bool = False, wait: bool = False) -> None:
        """Change the size of the VM.

        Args:
            size: The new VM size, e.g. Standard_DS4_v2.
            deallocate: Whether to deallocate the VM before resizing, and start it after.
            wait: Whether to wait until the VM runs again, when deallocating.

        Raises:
            VmConfigError: If the size is not available for the VM.
        """
        available = self.list_available_sizes()
        if size.lower() not in (name.lower() for name in available):
            raise VmConfigError(f"Size {size} is not available for VM {self.name}")

        if deallocate:
            self.stop(deallocate=True, wait=True)
        logger.info("Resizing VM %s to %s", self.name, size)
        self.update({"properties": {"hardwareProfile": {"vmSize": size}}})
        if deallocate:
            self.start(wait=wait)

    def run_deployed_command(
        self,
        command: str,
        parameters: dict[str, str] | None = None,
        script: str | Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """Run a predefined command on the VM.

        Args:
            command: The command ID, e.g. RunShellScript.
            parameters: The command parameters.
            script: The script lines, for the script running commands.

        Returns:
            The response of the run command action.
        """
        body: dict[str, Any] = {"commandId": command}
        if parameters:
            body["parameters"] = [
                {"name": name, "value": value} for name, value in parameters.items()
            ]
        if script is not None:
            body["script"] = script.splitlines() if isinstance(script, str) else list(script)
        logger.info("Running command %s on VM %s", command, self.name)
        return self.do_operation("runCommand", body=body, http_verb="POST")

    def run_script(
        self, script: str | Sequence[str], parameters: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """Run a script on the VM, in the shell native to its OS.

        Args:
            script: The script, as a string or as a list of lines.
            parameters: The script parameters.

        Returns:
            The response of the run command action.
        """
        command = "RunPowerShellScript" if self.os_type == "Windows" else "RunShellScript"
        return self.run_deployed_command(command, parameters=parameters, script=script)

    def add_extension(  # pylint: disable=too-many-arguments, too-many-positional-arguments
        self,
        publisher: str,
        type: str,  # pylint: disable=redefined-builtin
        version: str,
        settings: dict[str, Any] | None = None,
        protected_settings: dict[str, Any] | None = None,
        auto_update: bool = True,
        name: str | None = None,
    ) -> dict[str, Any]:
        """Install a VM extension.

        Args:
            publisher: The extension publisher.
            type: The extension type.
            version: The extension version.
            settings: The public extension settings.
            protected_settings: The protected extension settings.
            auto_update: Whether minor versions are upgraded automatically.
            name: The extension name, defaults to the extension type.

        Returns:
            The extension resource.
        """
        properties: dict[str, Any] = {
            "publisher": publisher,
            "type": type,
            "typeHandlerVersion": version,
            "autoUpgradeMinorVersion": auto_update,
            "settings": settings or {},
        }
        if protected_settings:
            properties["protectedSettings"] = protected_settings
        name = name or type
        logger.info("Adding extension %s to VM %s", name, self.name)
        return self.do_operation(
            f"extensions/{name}",
            body={"location": self.location, "properties": properties},
            http_verb="PUT",
        )

    def _wait_for_power_state(self, power_state: str) -> None:
        """Wait until the VM reaches a power state.

        Args:
            power_state: The awaited power state.
        """
        wait_until(
            lambda: (self.sync_vm_status().power or "").lower() == power_state,
            f"VM {self.name} to be {power_state}",
            timeout=constants.VM_STATE_TIMEOUT,
            interval=constants.VM_STATE_POLL_INTERVAL,
        )
