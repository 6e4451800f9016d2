# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Errors used by the azure-vm-manager library."""
from __future__ import annotations


class AzureVmError(Exception):
    """Generic error as base exception."""


class VmConfigError(AzureVmError):
    """Represents an invalid combination of virtual machine configuration options."""


class UnsupportedTemplateError(AzureVmError):
    """Represents a request for a deployment template that is not packaged."""


class CloudError(AzureVmError):
    """Base class for Azure Resource Manager errors."""


class ArmApiError(CloudError):
    """Represents an error returned by the Azure Resource Manager API.

    Attributes:
        status_code: The HTTP status code of the failed request, if a response was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize the ArmApiError.

        Args:
            message: The error message.
            status_code: The HTTP status code of the failed request.
        """
        super().__init__(message)
        self.status_code = status_code


class ResourceNotFoundError(ArmApiError):
    """Represents a request for a resource that does not exist."""


class DeploymentFailedError(CloudError):
    """Represents a template deployment that ended in a failed or canceled state."""


class DeploymentInProgressError(CloudError):
    """Represents a lifecycle request on a deployment whose resources do not exist yet."""


class WaitTimeoutError(CloudError):
    """Represents a wait on the cloud provider that did not complete in time."""
