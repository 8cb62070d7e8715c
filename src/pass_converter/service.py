"""Pass conversion service.

This module provides the main entry points for converting passes between
Apple Wallet archives and Google Wallet payloads, and the composed flows
used by the web service: issuing a save URL for an archive, issuing an
updatable archive for a payload, and updating a saved Google Wallet object.
"""

import secrets
import typing as t
from dataclasses import dataclass
from functools import cached_property

import httpx
import orjson
import structlog

from pass_converter.apple.generator import ArchiveGenerator
from pass_converter.apple.reader import read_archive
from pass_converter.apple.signer import ArchiveSigner
from pass_converter.exceptions import InvalidPassData
from pass_converter.google.client import WalletObjectsClient
from pass_converter.google.dispatch import Dispatcher, DispatchResult
from pass_converter.google.generator import PayloadGenerator
from pass_converter.google.reader import read_payload
from pass_converter.google.tokens import SaveTokenSigner, ServiceAccount
from pass_converter.parsing import loads_lenient
from pass_converter.passes import Pass
from pass_converter.protocols import ImageResolver, TokenSigner, WalletObjectsAPI
from pass_converter.settings import Settings

logger = structlog.get_logger(__name__)

Format = t.Literal["archive", "payload"]


class PassConverterError(Exception):
    """Raised when the converter is missing a collaborator it needs."""

    pass


@dataclass(frozen=True)
class IssuedArchive:
    """An updatable archive together with the credentials to store for it."""

    content: bytes
    serial_number: str
    authentication_token: str
    payload_prefix: str


def detect_format(data: bytes) -> Format:
    """Tell payload JSON from archive bytes.

    Returns:
        'payload' if the data is a JSON object, 'archive' otherwise.
    """
    return "payload" if data.lstrip().startswith(b"{") else "archive"


def parse_payload(data: bytes | str) -> dict[str, t.Any]:
    """Parse payload JSON.

    Raises:
        InvalidPassData: If the data is not a JSON object.
    """
    try:
        payload = loads_lenient(data)
    except (orjson.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidPassData(f"Payload is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InvalidPassData("Payload must be a JSON object")
    return payload


class PassConverter:
    """Converts passes between Apple Wallet and Google Wallet.

    Collaborators are created lazily from the settings when not injected,
    so a converter used only for decoding never loads credentials.
    """

    def __init__(
        self,
        settings: Settings,
        signer: ArchiveSigner | None = None,
        api: WalletObjectsAPI | None = None,
        token_signer: TokenSigner | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the converter.

        Args:
            settings: Converter settings.
            signer: Archive signer. Created from the signing settings if not provided.
            api: Wallet Objects API client. Created from the service account if not provided.
            token_signer: Save token signer. Created from the service account if not provided.
            http_client: HTTP client used to download remote images.
        """
        self.settings = settings
        self._signer = signer
        self._api = api
        self._token_signer = token_signer
        self._http_client = http_client

    @cached_property
    def archive_generator(self) -> ArchiveGenerator:
        return ArchiveGenerator(self.settings, signer=self._signer, http_client=self._http_client)

    @cached_property
    def payload_generator(self) -> PayloadGenerator:
        return PayloadGenerator(self.settings)

    @cached_property
    def service_account(self) -> ServiceAccount:
        """Get the Google service account, loading if necessary.

        Raises:
            PassConverterError: If no service account is configured.
        """
        path = self.settings.google.service_account_path
        if not path:
            raise PassConverterError("GOOGLE_WALLET_SERVICE_ACCOUNT_PATH is not configured")
        return ServiceAccount.from_file(path)

    @property
    def token_signer(self) -> TokenSigner:
        if self._token_signer is None:
            self._token_signer = SaveTokenSigner(self.service_account, origins=self.settings.google.origins)
        return self._token_signer

    @property
    def api(self) -> WalletObjectsAPI:
        if self._api is None:
            info = self.service_account.info or {}
            self._api = WalletObjectsClient.from_service_account_info(info, client=self._http_client)
        return self._api

    # Core entry points

    def decode_archive(self, data: bytes) -> Pass:
        """Decode a .pkpass archive into a pass."""
        return read_archive(data, self.settings)

    def decode_payload(self, payload: dict[str, t.Any]) -> Pass:
        """Decode a Google Wallet class+object payload into a pass."""
        return read_payload(payload, self.settings)

    async def encode_archive(self, pass_: Pass, image_resolver: ImageResolver | None = None) -> bytes:
        """Encode a pass as a .pkpass archive."""
        return await self.archive_generator.generate(pass_, image_resolver)

    async def encode_payload(self, pass_: Pass, image_resolver: ImageResolver | None = None) -> dict[str, t.Any]:
        """Encode a pass as a Google Wallet class+object payload."""
        return await self.payload_generator.generate(pass_, image_resolver)

    # Composed flows

    async def dispatch(self, pass_: Pass, payload: dict[str, t.Any]) -> DispatchResult:
        dispatcher = Dispatcher(self.token_signer, self._optional_api())
        return await dispatcher.dispatch(payload, pass_.variant.payload_prefix)

    async def archive_to_save_url(self, data: bytes, image_resolver: ImageResolver | None = None) -> str:
        """Convert an archive into a Google Wallet save URL.

        Args:
            data: The .pkpass archive bytes.
            image_resolver: Resolves images to public URIs.

        Returns:
            The `https://pay.google.com/gp/v/save/<token>` URL.
        """
        pass_ = self.decode_archive(data)
        payload = await self.encode_payload(pass_, image_resolver)
        result = await self.dispatch(pass_, payload)
        logger.info("save_url_issued", variant=pass_.variant.name, stage=result.stage)
        return result.save_url

    async def payload_to_archive(
        self,
        payload: dict[str, t.Any],
        image_resolver: ImageResolver | None = None,
        web_service_url: str | None = None,
    ) -> IssuedArchive:
        """Convert a payload into an updatable archive.

        A fresh authentication token is issued for the archive. The caller is
        responsible for storing it with the serial number, so that update
        requests from devices can be authenticated.

        Args:
            payload: The class+object payload.
            image_resolver: Resolves images to bytes or fetchable URLs.
            web_service_url: Base URL of the pass update web service.

        Returns:
            The archive and its update credentials.
        """
        pass_ = self.decode_payload(payload)
        authentication_token = secrets.token_hex(16)
        if web_service_url:
            pass_.web_service_url = web_service_url
            pass_.authentication_token = authentication_token
        content = await self.encode_archive(pass_, image_resolver)
        return IssuedArchive(
            content=content,
            serial_number=pass_.id,
            authentication_token=authentication_token,
            payload_prefix=pass_.variant.payload_prefix,
        )

    async def update_remote_object(self, data: bytes, image_resolver: ImageResolver | None = None) -> dict[str, t.Any]:
        """Push new pass content to an object already saved to Google Wallet.

        Args:
            data: Either an archive or payload JSON.
            image_resolver: Resolves images to public URIs.

        Returns:
            The updated object as returned by the API.

        Raises:
            RemotePersistFailure: If the API rejects the update.
        """
        if detect_format(data) == "payload":
            pass_ = self.decode_payload(parse_payload(data))
        else:
            pass_ = self.decode_archive(data)

        payload = await self.encode_payload(pass_, image_resolver)
        obj = payload[pass_.variant.objects_key][0]
        updated = await self.api.update_object(pass_.variant.payload_prefix, obj)
        logger.info("remote_object_updated", variant=pass_.variant.name, object_id=obj["id"])
        return updated

    def _optional_api(self) -> WalletObjectsAPI | None:
        try:
            return self.api
        except (PassConverterError, OSError, ValueError) as e:
            logger.warning("wallet_api_unavailable", error=str(e))
            return None
