# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module containing Azure Resource Manager credentials configuration."""

from azure.identity import ClientSecretCredential
from pydantic import BaseModel, Field


class ArmCredentials(BaseModel):
    """Service principal credentials for the Resource Manager API.

    Attributes:
       tenant_id: The Microsoft Entra tenant of the service principal.
       client_id: The application ID of the service principal.
       client_secret: The client secret of the service principal.
    """

    tenant_id: str
    client_id: str
    client_secret: str = Field(repr=False)

    def get_token_credential(self) -> ClientSecretCredential:
        """Build the token credential of the service principal.

        Returns:
            The token credential.
        """
        return ClientSecretCredential(
            tenant_id=self.tenant_id,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )
