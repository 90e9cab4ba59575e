# -----------------------------------------------------------------------------
# CLOUD API INFRASTRUCTURE - Pulumi Cloud REST
# -----------------------------------------------------------------------------
# Responsibility: The four control-plane calls the stack settings need.
# Each is a single authenticated HTTP request; no retries.
#
# Security:
# - The access token only ever goes into the Authorization header
# - Tokens are NEVER logged in plain text
# -----------------------------------------------------------------------------

import requests
from pydantic import ValidationError
from rich.console import Console

from stackmgmt.domain.models import DeploymentSettings, StackIdentity

console = Console()

DEFAULT_API_URL = "https://api.pulumi.com"


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class RemoteAPIError(Exception):
    """
    Raised when the control plane answers with a non-success status or a
    body that cannot be read as the expected JSON.

    Also raised for transport failures, with status_code None.
    """

    def __init__(
        self,
        operation: str,
        identity: StackIdentity,
        status_code: int | None,
        body: str = "",
    ) -> None:
        status = status_code if status_code is not None else "no response"
        super().__init__(f"failed to {operation} for stack, {identity.fqdn} ({status}): {body}")
        self.operation = operation
        self.identity = identity
        self.status_code = status_code
        self.body = body


class PulumiCloudClient:
    """
    Thin client for the Pulumi Cloud stack endpoints.

    The token is handed in once at construction and reused for every call.
    """

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL, timeout: int = 30) -> None:
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    @property
    def _headers(self) -> dict:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"token {self._token}",
        }

    def _stack_url(self, identity: StackIdentity, *parts: str) -> str:
        return "/".join([self._api_url, "api", "stacks", identity.fqdn, *parts])

    @staticmethod
    def _body(response: requests.Response) -> str:
        return response.text or ""

    def fetch_deployment_settings(self, identity: StackIdentity) -> DeploymentSettings:
        """
        Get the stored deployment settings for a stack.

        Raises:
            RemoteAPIError: On any non-2xx response, or a body that is not
                valid deployment settings JSON.
        """
        operation = "get deployment settings"
        console.print(f"[cyan][CLOUD API] Fetching deployment settings: {identity}[/cyan]")

        try:
            response = requests.get(
                self._stack_url(identity, "deployments", "settings"),
                headers=self._headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RemoteAPIError(operation, identity, None, str(e)) from e

        if not _is_success(response.status_code):
            raise RemoteAPIError(operation, identity, response.status_code, self._body(response))

        try:
            return DeploymentSettings.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteAPIError(operation, identity, response.status_code, self._body(response)) from e

    def delete_tag(self, identity: StackIdentity, tag_name: str) -> None:
        """
        Delete a stack tag. A tag that does not exist counts as deleted.

        Raises:
            RemoteAPIError: On any non-2xx response other than 404.
        """
        operation = f"delete {tag_name} tag"

        try:
            response = requests.delete(
                self._stack_url(identity, "tags", tag_name),
                headers=self._headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RemoteAPIError(operation, identity, None, str(e)) from e

        if response.status_code == 404:
            console.print(f"[yellow][CLOUD API] Tag {tag_name} not present on {identity}[/yellow]")
            return

        if not _is_success(response.status_code):
            raise RemoteAPIError(operation, identity, response.status_code, self._body(response))

    def create_tag(self, identity: StackIdentity, name: str, value: str) -> None:
        """
        Create a stack tag. Fails if a tag of that name already exists.

        Raises:
            RemoteAPIError: On any non-2xx response; the message carries the body.
        """
        operation = f"set {name} tag"

        try:
            response = requests.post(
                self._stack_url(identity, "tags"),
                headers=self._headers,
                json={"name": name, "value": value},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RemoteAPIError(operation, identity, None, str(e)) from e

        if not _is_success(response.status_code):
            raise RemoteAPIError(operation, identity, response.status_code, self._body(response))

    def upsert_environment_variable(
        self, identity: StackIdentity, name: str, secret_value: str
    ) -> None:
        """
        Merge a secret environment variable into the stack's deployment settings.

        The settings endpoint treats the POST body as a merge patch, so only
        operationContext.environmentVariables.<name> is touched.

        Raises:
            RemoteAPIError: On any non-2xx response.
        """
        operation = f"set {name} environment variable"
        payload = {
            "operationContext": {"environmentVariables": {name: {"secret": secret_value}}}
        }

        try:
            response = requests.post(
                self._stack_url(identity, "deployments", "settings"),
                headers=self._headers,
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RemoteAPIError(operation, identity, None, str(e)) from e

        if not _is_success(response.status_code):
            raise RemoteAPIError(operation, identity, response.status_code, self._body(response))

        console.print(f"[green][CLOUD API] {name} set on {identity}[/green]")
