# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Client to interact with the Azure Resource Manager REST API."""

import json
import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import requests
from azure.core.credentials import TokenCredential
from pydantic import BaseModel

from azure_vm_manager.constants import ARM_API_TIMEOUT, ARM_BASE_URL, ARM_TOKEN_SCOPE
from azure_vm_manager.errors import ArmApiError, ResourceNotFoundError
from azure_vm_manager.http_util import configure_session, create_retry_adapter

logger = logging.getLogger(__name__)


class ArmClientConfiguration(BaseModel):
    """Configuration inputs for the ArmClient.

    Attributes:
        base_url: Base URL of the Resource Manager endpoint.
        token_scope: Scope of the bearer token requested from the credential.
        timeout: Default timeout in seconds for HTTP requests.
    """

    base_url: str = ARM_BASE_URL
    token_scope: str = ARM_TOKEN_SCOPE
    timeout: int = ARM_API_TIMEOUT


class ArmClient:
    """An HTTP client for the Azure Resource Manager API.

    Authentication is delegated to the token credential; the client only attaches the
    bearer token to each request.
    """

    def __init__(self, credential: TokenCredential, config: ArmClientConfiguration | None = None):
        """Initialize the client.

        Args:
            credential: The token credential, e.g. azure.identity.ClientSecretCredential.
            config: The client configuration.
        """
        self._credential = credential
        self._config = config if config is not None else ArmClientConfiguration()
        self._session = configure_session(create_retry_adapter())

    def call(
        self,
        path: str,
        api_version: str,
        http_verb: str = "GET",
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call an operation of the Resource Manager API.

        Args:
            path: The resource path, starting with /subscriptions or /providers.
            api_version: The API version of the operation.
            http_verb: The HTTP method.
            body: The JSON request body.

        Raises:
            ResourceNotFoundError: If the requested resource does not exist.
            ArmApiError: On HTTP or transport errors.

        Returns:
            The decoded JSON response, empty if the response has no body.
        """
        url = urljoin(self._config.base_url, path)
        token = self._credential.get_token(self._config.token_scope).token
        logger.debug("%s %s (api-version %s)", http_verb, path, api_version)
        try:
            response = self._session.request(
                http_verb,
                url,
                params={"api-version": api_version},
                headers={"Authorization": f"Bearer {token}"},
                json=body,
                timeout=self._config.timeout,
            )
        except requests.RequestException as exc:
            logger.exception("Unable to %s %s", http_verb, path)
            raise ArmApiError(f"Failed Resource Manager API call: {http_verb} {path}") from exc

        if response.status_code == 404:
            raise ResourceNotFoundError(
                f"Resource not found: {path}: {_error_message(response)}", status_code=404
            )
        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(
                "%s %s failed with status %s: %s", http_verb, path, response.status_code, message
            )
            raise ArmApiError(
                f"{http_verb} {path} failed with status {response.status_code}: {message}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ArmApiError(f"Invalid JSON returned by {http_verb} {path}") from exc

    def list_values(self, path: str, api_version: str) -> list[dict[str, Any]]:
        """List the items of a collection, following the nextLink of each page.

        Args:
            path: The collection path.
            api_version: The API version of the operation.

        Returns:
            The items of every page.
        """
        values: list[dict[str, Any]] = []
        next_path: str | None = path
        while next_path:
            page = self.call(next_path, api_version)
            values.extend(page.get("value") or [])
            next_path = _strip_api_version(page["nextLink"]) if page.get("nextLink") else None
        return values


def _error_message(response: requests.Response) -> str:
    """Extract the error message from an error response of the Resource Manager API.

    Args:
        response: The response.

    Returns:
        The ARM error message, or the raw response text if it is not an ARM error document.
    """
    try:
        content = response.json()
    except ValueError:
        return response.text
    error = content.get("error") if isinstance(content, dict) else None
    if isinstance(error, dict):
        return f"{error.get('code', '')}: {error.get('message', '')}"
    return json.dumps(content)


def _strip_api_version(url: str) -> str:
    """Remove the api-version query parameter, which the client sets itself.

    Args:
        url: The URL of the next page of a collection.

    Returns:
        The URL without api-version.
    """
    parts = urlsplit(url)
    query = [(key, value) for key, value in parse_qsl(parts.query) if key != "api-version"]
    return urlunsplit(parts._replace(query=urlencode(query)))
