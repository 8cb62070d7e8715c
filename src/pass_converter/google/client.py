"""Client for the Google Wallet Objects REST API.

Used to persist classes and objects that do not fit into a save token, and
to update objects that were already saved to a wallet.

See: https://developers.google.com/wallet/reference/rest
"""

import asyncio
import typing as t
from urllib.parse import quote

import httpx
import orjson
import structlog
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from pass_converter.exceptions import RemotePersistFailure

logger = structlog.get_logger(__name__)

API_BASE_URL = "https://walletobjects.googleapis.com/walletobjects/v1"
SCOPES = ["https://www.googleapis.com/auth/wallet_object.issuer"]


class WalletObjectsClient:
    """Async client for creating and updating pass classes and objects.

    Requests are authorized with service account credentials, refreshed on
    demand. Every failure is raised as `RemotePersistFailure`.
    """

    def __init__(
        self,
        credentials: service_account.Credentials | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str = API_BASE_URL,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Service account credentials. Requests are sent unauthenticated if None.
            client: HTTP client to use. One is created on first use if not provided.
            base_url: API root URL.
        """
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self._client = client

    @classmethod
    def from_service_account_info(
        cls, info: t.Mapping[str, t.Any], client: httpx.AsyncClient | None = None
    ) -> "WalletObjectsClient":
        credentials = service_account.Credentials.from_service_account_info(dict(info), scopes=SCOPES)
        return cls(credentials=credentials, client=client)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0))
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _headers(self) -> dict[str, str]:
        """Build request headers, refreshing the access token if needed.

        Raises:
            RemotePersistFailure: If the credentials cannot be refreshed.
        """
        headers = {"Content-Type": "application/json"}
        if self.credentials is None:
            return headers

        if not self.credentials.valid:
            try:
                # google-auth refreshes synchronously
                await asyncio.to_thread(self.credentials.refresh, Request())
            except GoogleAuthError as e:
                logger.error("wallet_credentials_refresh_failed", error=str(e))
                raise RemotePersistFailure(f"Failed to refresh service account credentials: {e}") from e

        headers["Authorization"] = f"Bearer {self.credentials.token}"
        return headers

    async def _request(self, method: str, path: str, resource: dict[str, t.Any]) -> dict[str, t.Any]:
        """Send a request to the API.

        Args:
            method: HTTP method.
            path: Resource path below the API root.
            resource: JSON body.

        Returns:
            The decoded response body.

        Raises:
            RemotePersistFailure: If the request fails or the API returns an error.
        """
        url = f"{self.base_url}/{path}"
        headers = await self._headers()

        try:
            response = await self._get_client().request(method, url, content=orjson.dumps(resource), headers=headers)
        except httpx.HTTPError as e:
            logger.warning("wallet_api_request_failed", method=method, path=path, error=str(e))
            raise RemotePersistFailure(f"Wallet Objects API request failed: {e}") from e

        if response.is_success:
            logger.info("wallet_api_request_succeeded", method=method, path=path, status=response.status_code)
            return _decode_body(response, method, path)

        reason = None
        try:
            reason = orjson.loads(response.content).get("error", {}).get("message")
        except (orjson.JSONDecodeError, AttributeError):
            pass

        logger.warning(
            "wallet_api_request_rejected",
            method=method,
            path=path,
            status=response.status_code,
            reason=reason,
            body=response.text[:200],
        )
        raise RemotePersistFailure(
            f"Wallet Objects API returned status {response.status_code}",
            status_code=response.status_code,
            reason=reason,
        )

    async def insert_class(self, prefix: str, resource: dict[str, t.Any]) -> dict[str, t.Any]:
        """Create a pass class (`POST /<prefix>Class`)."""
        return await self._request("POST", f"{prefix}Class", resource)

    async def insert_object(self, prefix: str, resource: dict[str, t.Any]) -> dict[str, t.Any]:
        """Create a pass object (`POST /<prefix>Object`)."""
        return await self._request("POST", f"{prefix}Object", resource)

    async def update_object(self, prefix: str, resource: dict[str, t.Any]) -> dict[str, t.Any]:
        """Patch an existing pass object (`PATCH /<prefix>Object/<id>`)."""
        return await self._request("PATCH", f"{prefix}Object/{quote(str(resource['id']), safe='')}", resource)


def _decode_body(response: httpx.Response, method: str, path: str) -> dict[str, t.Any]:
    """Decode a successful response body.

    Raises:
        RemotePersistFailure: If the body is not a JSON object.
    """
    if not response.content:
        return {}
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError as e:
        logger.warning("wallet_api_response_invalid", method=method, path=path, body=response.text[:200])
        raise RemotePersistFailure(
            f"Wallet Objects API returned an invalid body: {e}", status_code=response.status_code
        ) from e
    if not isinstance(body, dict):
        raise RemotePersistFailure("Wallet Objects API returned a non-object body", status_code=response.status_code)
    return body
