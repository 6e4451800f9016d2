# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Azure Resource Manager template deployment."""

import logging
import re
from pathlib import Path
from typing import Any

from azure_vm_manager import constants
from azure_vm_manager.arm_client import ArmClient
from azure_vm_manager.deployment_template import load_template
from azure_vm_manager.errors import DeploymentFailedError, ResourceNotFoundError
from azure_vm_manager.resource import ArmResource, build_resource_id, parse_resource_id
from azure_vm_manager.utilities import confirm_action, wait_until

logger = logging.getLogger(__name__)

TERMINAL_STATES = ("succeeded", "failed", "canceled")

_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

TemplateSource = dict[str, Any] | Path | str


def _template_properties(
    template: TemplateSource, parameters: TemplateSource | None, mode: str
) -> dict[str, Any]:
    """Build the properties of a deployment request.

    Args:
        template: The template as a dict, a file path or a URL.
        parameters: The parameters as a dict, a file path or a URL.
        mode: The deployment mode, Incremental or Complete.

    Returns:
        The deployment properties.
    """
    properties: dict[str, Any] = {"mode": mode}
    if isinstance(template, dict):
        properties["template"] = template
    elif _URL_PATTERN.match(str(template)):
        properties["templateLink"] = {"uri": str(template)}
    else:
        properties["template"] = load_template(template)

    if parameters is None:
        properties["parameters"] = {}
    elif isinstance(parameters, dict):
        properties["parameters"] = parameters
    elif _URL_PATTERN.match(str(parameters)):
        properties["parametersLink"] = {"uri": str(parameters)}
    else:
        content = load_template(parameters)
        # Parameter files wrap the values in a deployment parameters document.
        properties["parameters"] = content.get("parameters", content)
    return properties


class ArmTemplate:  # pylint: disable=too-many-instance-attributes
    """A template deployment in a resource group.

    Attributes:
        id: The deployment resource ID.
        subscription_id: The subscription of the deployment.
        resource_group: The resource group of the deployment.
        name: The deployment name.
        properties: The deployment properties as returned by the host.
    """

    # The template arguments select between deploying and retrieving.
    def __init__(  # pylint: disable=too-many-arguments, too-many-positional-arguments
        self,
        client: ArmClient,
        subscription_id: str,
        resource_group: str,
        name: str,
        template: TemplateSource | None = None,
        parameters: TemplateSource | None = None,
        mode: str = "Incremental",
        wait: bool = False,
    ):
        """Deploy a new template, or retrieve an existing deployment.

        Args:
            client: The Resource Manager client.
            subscription_id: The subscription ID.
            resource_group: The resource group name.
            name: The deployment name.
            template: The template to deploy; if None, the existing deployment is retrieved.
            parameters: The template parameters.
            mode: The deployment mode, Incremental or Complete.
            wait: Whether to wait until the deployment completes.
        """
        self._client = client
        self.subscription_id = subscription_id
        self.resource_group = resource_group
        self.name = name
        self.id = build_resource_id(
            subscription_id, resource_group, constants.DEPLOYMENT_TYPE, name
        )
        self._api_version = constants.get_api_version(constants.DEPLOYMENT_TYPE)
        self.properties: dict[str, Any] = {}

        if template is not None:
            self._deploy(template, parameters, mode, wait)
        else:
            self.sync_fields()

    def sync_fields(self) -> str:
        """Update the deployment properties with the information from the host.

        Returns:
            The provisioning state of the deployment.
        """
        response = self._client.call(self.id, self._api_version)
        self.properties = response.get("properties") or {}
        return self.provisioning_state

    @property
    def provisioning_state(self) -> str:
        """The last known provisioning state of the deployment."""
        return self.properties.get("provisioningState", "Unknown")

    @property
    def outputs(self) -> dict[str, Any]:
        """The template outputs."""
        return self.properties.get("outputs") or {}

    @property
    def is_exclusive(self) -> bool:
        """Whether the deployment owns its resource group, i.e. was deployed in Complete mode."""
        return self.properties.get("mode") == "Complete"

    def output_resources(self) -> list[str]:
        """Get the IDs of the resources created by the deployment.

        Returns:
            The resource IDs.
        """
        return [
            res["id"] for res in self.properties.get("outputResources") or [] if "id" in res
        ]

    def wait_for_deployment(self) -> None:
        """Wait until the deployment reaches a terminal state.

        Raises:
            DeploymentFailedError: If the deployment failed or was canceled.
        """
        wait_until(
            lambda: self.sync_fields().lower() in TERMINAL_STATES,
            f"deployment {self.name}",
            timeout=constants.DEPLOYMENT_TIMEOUT,
            interval=constants.DEPLOYMENT_POLL_INTERVAL,
        )
        if self.provisioning_state.lower() != "succeeded":
            error = self.properties.get("error") or {}
            raise DeploymentFailedError(
                f"Deployment {self.name} {self.provisioning_state.lower()}: "
                f"{error.get('code', '')} {error.get('message', '')}".rstrip()
            )
        logger.info("Deployment %s succeeded", self.name)

    def delete(self, confirm: bool = True, free_resources: bool = False) -> None:
        """Delete the deployment, and optionally the resources it created.

        Args:
            confirm: Whether to ask for confirmation when running interactively.
            free_resources: Whether to delete the resources created by the deployment. For a
                deployment that owns its resource group the whole group is deleted.
        """
        if free_resources and self.is_exclusive:
            if not confirm_action(
                f"Do you really want to delete the resource group '{self.resource_group}'?",
                confirm,
            ):
                return
            self._delete_resource_group()
            return

        if free_resources:
            if not confirm_action(
                f"Do you really want to delete the deployment '{self.name}' and its resources?",
                confirm,
            ):
                return
            self._free_resources()
        elif not confirm_action(
            f"Do you really want to delete the deployment '{self.name}'?", confirm
        ):
            return

        logger.info("Deleting deployment %s", self.name)
        self._client.call(self.id, self._api_version, http_verb="DELETE")

    def _deploy(
        self,
        template: TemplateSource,
        parameters: TemplateSource | None,
        mode: str,
        wait: bool,
    ) -> None:
        """Submit the deployment.

        Args:
            template: The template.
            parameters: The template parameters.
            mode: The deployment mode.
            wait: Whether to wait until the deployment completes.
        """
        logger.info(
            "Deploying template %s to resource group %s (mode %s)",
            self.name,
            self.resource_group,
            mode,
        )
        body = {"properties": _template_properties(template, parameters, mode)}
        response = self._client.call(self.id, self._api_version, http_verb="PUT", body=body)
        self.properties = response.get("properties") or {}
        if wait:
            self.wait_for_deployment()

    def _delete_resource_group(self) -> None:
        """Delete the resource group owned by the deployment."""
        logger.info("Deleting resource group %s", self.resource_group)
        self._client.call(
            f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group}",
            constants.get_api_version("Microsoft.Resources/resourceGroups"),
            http_verb="DELETE",
        )

    def _free_resources(self) -> None:
        """Delete the resources created by the deployment, dependents first."""

        def priority(resource_id: str) -> int:
            """Get the deletion rank of a resource.

            Args:
                resource_id: The resource ID.

            Returns:
                The rank, lower is deleted first.
            """
            resource_type = parse_resource_id(resource_id)["type"].lower()
            try:
                return constants.RESOURCE_DELETE_ORDER.index(resource_type)
            except ValueError:
                return len(constants.RESOURCE_DELETE_ORDER)

        for resource_id in sorted(self.output_resources(), key=priority):
            try:
                resource = ArmResource(self._client, id=resource_id)
                resource.delete(confirm=False, wait=True)
            except ResourceNotFoundError:
                logger.debug("Resource %s already deleted", resource_id)

    def __repr__(self) -> str:
        """Represent the deployment.

        Returns:
            The representation of the deployment.
        """
        return f"<{type(self).__name__} {self.name!r} in {self.resource_group}>"
