"""Unit tests for ArmClient."""

# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

from azure_vm_manager.arm_client import ArmClient, ArmClientConfiguration
from azure_vm_manager.constants import ARM_TOKEN_SCOPE
from azure_vm_manager.errors import ArmApiError, ResourceNotFoundError

VM_PATH = (
    "/subscriptions/sub/resourceGroups/rg/providers/Microsoft.Compute/virtualMachines/testvm"
)


class _FakeResponse:
    """Minimal Response-like object used to stub `requests.Response`."""

    def __init__(self, status_code: int = 200, json_obj: dict | None = None, text: str = ""):
        """Minimal Response-like object used to stub `requests.Response`.

        Args:
            status_code: HTTP status code to emulate.
            json_obj: JSON body returned by `json()`.
            text: Raw body, used when no JSON body is given.
        """
        self.status_code = status_code
        self._json_obj = json_obj
        self.text = json.dumps(json_obj) if json_obj is not None else text
        self.content = self.text.encode()

    def json(self) -> dict:
        """Return the configured JSON body.

        Raises:
            ValueError: When the body is not JSON.

        Returns:
            dict: The JSON payload used by tests.
        """
        if self._json_obj is None:
            raise ValueError("No JSON body")
        return self._json_obj


class _FakeSession:
    """Minimal Session-like object used to stub `requests.Session`."""

    def __init__(self, responses: list[_FakeResponse] | None = None) -> None:
        """Initialize the fake session.

        Args:
            responses: The responses returned by successive requests.
        """
        self.requests: list[SimpleNamespace] = []
        self._responses = list(responses or [])

    # pylint: disable-next=redefined-outer-name
    def request(self, method, url, params, headers, json, timeout):
        """Record request parameters and return the next configured response.

        Args:
            method: The HTTP method.
            url: The request URL.
            params: The query parameters.
            headers: Request headers.
            json: The JSON body.
            timeout: Request timeout in seconds.

        Returns:
            _FakeResponse: The next configured response, or an empty 200 response.
        """
        self.requests.append(
            SimpleNamespace(
                method=method, url=url, params=params, headers=headers, json=json, timeout=timeout
            )
        )
        return self._responses.pop(0) if self._responses else _FakeResponse(200)


@pytest.fixture(name="credential")
def credential_fixture() -> MagicMock:
    """A token credential returning a fixed token."""
    credential = MagicMock()
    credential.get_token.return_value = SimpleNamespace(token="t0k3n", expires_on=0)
    return credential


def _client(monkeypatch, credential, responses) -> tuple[ArmClient, _FakeSession]:
    """Build a client using a fake session.

    Args:
        monkeypatch: The pytest monkeypatch fixture.
        credential: The token credential.
        responses: The responses of the fake session.

    Returns:
        The client and its fake session.
    """
    client = ArmClient(credential, ArmClientConfiguration(timeout=30))
    session = _FakeSession(responses)
    monkeypatch.setattr(client, "_session", session)
    return client, session


def test_call_success(monkeypatch, credential):
    """
    arrange: ArmClient with a fake session returning a VM payload.
    act: Call a PUT operation with a body.
    assert: The request carries the token, API version, body and timeout; the payload is
        returned.
    """
    client, session = _client(
        monkeypatch, credential, [_FakeResponse(200, {"name": "testvm"})]
    )

    result = client.call(VM_PATH, "2021-07-01", http_verb="PUT", body={"location": "eastus"})

    assert result == {"name": "testvm"}
    request = session.requests[0]
    assert request.method == "PUT"
    assert request.url == f"https://management.azure.com{VM_PATH}"
    assert request.params == {"api-version": "2021-07-01"}
    assert request.headers == {"Authorization": "Bearer t0k3n"}
    assert request.json == {"location": "eastus"}
    assert request.timeout == 30
    credential.get_token.assert_called_once_with(ARM_TOKEN_SCOPE)


def test_call_empty_body(monkeypatch, credential):
    """
    arrange: ArmClient with a fake session returning an accepted response without body.
    act: Call a POST operation.
    assert: An empty mapping is returned.
    """
    client, _ = _client(monkeypatch, credential, [_FakeResponse(202)])

    assert client.call(f"{VM_PATH}/start", "2021-07-01", http_verb="POST") == {}


def test_call_not_found(monkeypatch, credential):
    """
    arrange: ArmClient with a fake session returning 404 with an ARM error document.
    act: Get the resource.
    assert: ResourceNotFoundError is raised with the ARM error message.
    """
    error = {"error": {"code": "ResourceNotFound", "message": "VM testvm was not found."}}
    client, _ = _client(monkeypatch, credential, [_FakeResponse(404, error)])

    with pytest.raises(ResourceNotFoundError, match="VM testvm was not found") as exc_info:
        client.call(VM_PATH, "2021-07-01")

    assert exc_info.value.status_code == 404


@pytest.mark.parametrize(
    "response",
    [
        pytest.param(
            _FakeResponse(409, {"error": {"code": "Conflict", "message": "Busy"}}), id="arm error"
        ),
        pytest.param(_FakeResponse(400, text="bad request"), id="text error"),
    ],
)
def test_call_http_error(monkeypatch, credential, response):
    """
    arrange: ArmClient with a fake session returning an error status.
    act: Call the API.
    assert: ArmApiError is raised carrying the status code.
    """
    client, _ = _client(monkeypatch, credential, [response])

    with pytest.raises(ArmApiError) as exc_info:
        client.call(VM_PATH, "2021-07-01")

    assert exc_info.value.status_code == response.status_code
    assert not isinstance(exc_info.value, ResourceNotFoundError)


def test_call_transport_error(monkeypatch, credential):
    """
    arrange: ArmClient whose session raises a connection error.
    act: Call the API.
    assert: ArmApiError is raised without status code.
    """
    client, session = _client(monkeypatch, credential, [])
    monkeypatch.setattr(
        session, "request", MagicMock(side_effect=requests.ConnectionError("unreachable"))
    )

    with pytest.raises(ArmApiError) as exc_info:
        client.call(VM_PATH, "2021-07-01")

    assert exc_info.value.status_code is None


def test_call_invalid_json(monkeypatch, credential):
    """
    arrange: ArmClient with a fake session returning a non JSON body.
    act: Call the API.
    assert: ArmApiError is raised.
    """
    client, _ = _client(monkeypatch, credential, [_FakeResponse(200, text="<html/>")])

    with pytest.raises(ArmApiError, match="Invalid JSON"):
        client.call(VM_PATH, "2021-07-01")


def test_list_values_follows_next_link(monkeypatch, credential):
    """
    arrange: ArmClient with a fake session returning two pages.
    act: List the collection.
    assert: The items of both pages are returned, the API version is not duplicated.
    """
    next_link = (
        "https://management.azure.com/subscriptions/sub/providers/"
        "Microsoft.Compute/virtualMachines?api-version=2021-07-01&%24skiptoken=abc"
    )
    client, session = _client(
        monkeypatch,
        credential,
        [
            _FakeResponse(200, {"value": [{"name": "vm1"}], "nextLink": next_link}),
            _FakeResponse(200, {"value": [{"name": "vm2"}]}),
        ],
    )

    items = client.list_values(
        "/subscriptions/sub/providers/Microsoft.Compute/virtualMachines", "2021-07-01"
    )

    assert [item["name"] for item in items] == ["vm1", "vm2"]
    assert "api-version" not in session.requests[1].url
    assert "skiptoken=abc" in session.requests[1].url
