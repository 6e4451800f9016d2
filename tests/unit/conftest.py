#  Copyright 2026 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Unit test setups and configurations."""

import pytest

from azure_vm_manager import constants
from tests.unit.factories.arm_factory import RESOURCE_GROUP, SUBSCRIPTION_ID
from tests.unit.fake_arm_client import FakeArmClient


@pytest.fixture(name="fast_polling", autouse=True)
def fast_polling_fixture(monkeypatch: pytest.MonkeyPatch):
    """Poll the fake cloud without sleeping."""
    for name in ("DEPLOYMENT", "VM_STATE", "DELETE"):
        monkeypatch.setattr(constants, f"{name}_POLL_INTERVAL", 0)
        monkeypatch.setattr(constants, f"{name}_TIMEOUT", 5)


@pytest.fixture(name="fake_client")
def fake_client_fixture() -> FakeArmClient:
    """The fake Resource Manager client, holding an empty resource group."""
    client = FakeArmClient()
    client.add_resource_group(RESOURCE_GROUP)
    return client


@pytest.fixture(name="subscription_id")
def subscription_id_fixture() -> str:
    """The subscription of the fake resources."""
    return SUBSCRIPTION_ID
