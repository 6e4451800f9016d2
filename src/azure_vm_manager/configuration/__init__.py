# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module containing application configuration for the azure_vm_manager library."""

from azure_vm_manager.configuration.base import (  # noqa: F401
    ApplicationConfiguration,
    VmDefaults,
)
from azure_vm_manager.configuration.credentials import ArmCredentials  # noqa: F401
