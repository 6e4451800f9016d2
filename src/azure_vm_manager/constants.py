# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Common constants for the Azure Resource Manager modules."""

ARM_BASE_URL = "https://management.azure.com"
ARM_TOKEN_SCOPE = "https://management.azure.com/.default"
ARM_API_TIMEOUT = 60

DEFAULT_API_VERSION = "2021-04-01"

# API versions by resource type, keyed in lower case.
API_VERSIONS: dict[str, str] = {
    "microsoft.resources/deployments": "2021-04-01",
    "microsoft.resources/resourcegroups": "2021-04-01",
    "microsoft.compute/virtualmachines": "2021-07-01",
    "microsoft.compute/virtualmachines/extensions": "2021-07-01",
    "microsoft.compute/disks": "2021-04-01",
    "microsoft.compute/sshpublickeys": "2021-07-01",
    "microsoft.network/publicipaddresses": "2021-02-01",
    "microsoft.network/networkinterfaces": "2021-02-01",
    "microsoft.network/networksecuritygroups": "2021-02-01",
    "microsoft.network/virtualnetworks": "2021-02-01",
    "microsoft.network/loadbalancers": "2021-02-01",
    "microsoft.storage/storageaccounts": "2021-04-01",
}

VM_TYPE = "Microsoft.Compute/virtualMachines"
DEPLOYMENT_TYPE = "Microsoft.Resources/deployments"
SSH_PUBLIC_KEY_TYPE = "Microsoft.Compute/sshPublicKeys"

# Template resources are freed in this order so that dependents go before their dependencies.
RESOURCE_DELETE_ORDER = (
    "microsoft.compute/virtualmachines",
    "microsoft.compute/virtualmachinescalesets",
    "microsoft.network/networkinterfaces",
    "microsoft.network/loadbalancers",
    "microsoft.network/publicipaddresses",
    "microsoft.network/networksecuritygroups",
    "microsoft.network/virtualnetworks",
    "microsoft.compute/disks",
    "microsoft.storage/storageaccounts",
)

DEPLOYMENT_TIMEOUT = 60 * 60
DEPLOYMENT_POLL_INTERVAL = 5
VM_STATE_TIMEOUT = 15 * 60
VM_STATE_POLL_INTERVAL = 5
DELETE_TIMEOUT = 30 * 60
DELETE_POLL_INTERVAL = 5


def get_api_version(resource_type: str) -> str:
    """Get the API version to use for a resource type.

    Args:
        resource_type: The provider qualified resource type, e.g. Microsoft.Compute/disks.

    Returns:
        The API version.
    """
    return API_VERSIONS.get(resource_type.lower(), DEFAULT_API_VERSION)
