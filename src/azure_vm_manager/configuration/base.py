# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Base configuration for the Application."""

import logging
from typing import Optional, TextIO

import yaml
from azure.core.credentials import TokenCredential
from azure.identity import DefaultAzureCredential
from pydantic import BaseModel, Field, model_validator

from azure_vm_manager.arm_client import ArmClientConfiguration
from azure_vm_manager.configuration.credentials import ArmCredentials

logger = logging.getLogger(__name__)


class ApplicationConfiguration(BaseModel):
    """Main entry point for the Application Configuration.

    Attributes:
        credentials: Service principal credentials. The default Azure credential chain is used
            when not set.
        subscription_id: The subscription to deploy to.
        resource_group: The resource group to deploy to. When not set every VM is deployed to
            a resource group of its own.
        location: The location of new resource groups.
        vm: Defaults for new virtual machines.
        arm: Configuration of the Resource Manager client.
    """

    credentials: Optional[ArmCredentials] = None
    subscription_id: str
    resource_group: Optional[str] = None
    location: str = "eastus"
    vm: "VmDefaults"
    arm: ArmClientConfiguration = Field(default_factory=ArmClientConfiguration)

    @staticmethod
    def from_yaml_file(file: TextIO) -> "ApplicationConfiguration":
        """Initialize configuration from a YAML formatted file.

        Args:
            file: The file object to parse the configuration from.

        Returns:
            The configuration.
        """
        config = yaml.safe_load(file)
        return ApplicationConfiguration.model_validate(config)

    def get_token_credential(self) -> TokenCredential:
        """Get the credential used to authenticate to the Resource Manager API.

        Returns:
            The token credential.
        """
        if self.credentials is not None:
            return self.credentials.get_token_credential()
        logger.info("No credentials configured, using the default Azure credential chain")
        return DefaultAzureCredential()


class VmDefaults(BaseModel):
    """Defaults for new virtual machines.

    Attributes:
        size: The VM size.
        os: The template OS family, Ubuntu or Windows.
        image: The name of an image preset, overriding os.
        username: The admin user name.
        ssh_key: The SSH public key, or the path of the public key file.
        password: The admin password.
    """

    size: str = "Standard_DS3_v2"
    os: str = "Ubuntu"
    image: Optional[str] = None
    username: str
    ssh_key: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)

    @model_validator(mode="after")
    def check_login(self) -> "VmDefaults":
        """Validate that exactly one login method is configured.

        Raises:
            ValueError: if both or neither of ssh_key and password are set.

        Returns:
            The validated defaults.
        """
        if (self.ssh_key is None) == (self.password is None):
            raise ValueError("Exactly one of ssh_key and password must be set")
        return self


ApplicationConfiguration.model_rebuild()
