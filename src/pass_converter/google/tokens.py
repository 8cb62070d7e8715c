"""The "save to wallet" token module.

A save token is an RS256 JWT signed with the issuer's service account key,
embedding the class+object payload. Opening
`https://pay.google.com/gp/v/save/<token>` adds the pass to a wallet.

Read about the claims here: https://developers.google.com/wallet/generic/web/prerequisites
"""

import typing as t
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import jwt
import orjson
import structlog
from pydantic import BaseModel, ConfigDict, field_serializer

logger = structlog.get_logger(__name__)

SAVE_URL_BASE = "https://pay.google.com/gp/v/save/"
ALGORITHM = "RS256"


class SaveToWalletClaims(BaseModel):
    """The save token claims."""

    model_config = ConfigDict(populate_by_name=True)

    iss: str
    aud: t.Literal["google"] = "google"
    typ: t.Literal["savetowallet"] = "savetowallet"
    iat: datetime
    origins: list[str] = []
    payload: dict[str, t.Any]

    @field_serializer("iat")
    def serialize_iat(self, value: datetime) -> int:
        return int(value.timestamp())


@dataclass(frozen=True)
class ServiceAccount:
    """The parts of a service account key file needed to sign tokens."""

    client_email: str
    private_key: str
    private_key_id: str | None = None
    info: t.Mapping[str, t.Any] | None = None

    @classmethod
    def from_info(cls, info: t.Mapping[str, t.Any]) -> "ServiceAccount":
        """Build from a parsed service account key file.

        Raises:
            ValueError: If the key file lacks the client email or private key.
        """
        missing = [key for key in ("client_email", "private_key") if not info.get(key)]
        if missing:
            raise ValueError(f"Service account info is missing: {', '.join(missing)}")
        return cls(
            client_email=info["client_email"],
            private_key=info["private_key"],
            private_key_id=info.get("private_key_id"),
            info=info,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "ServiceAccount":
        return cls.from_info(orjson.loads(Path(path).read_bytes()))


class SaveTokenSigner:
    """Signs payloads into save tokens."""

    def __init__(self, service_account: ServiceAccount, origins: t.Sequence[str] = ()) -> None:
        """Initialize the signer.

        Args:
            service_account: The issuer's service account.
            origins: Web origins allowed to show the save button.
        """
        self.service_account = service_account
        self.origins = list(origins)

    def sign(self, payload: dict[str, t.Any]) -> str:
        """Sign a payload into a save token.

        Args:
            payload: The class+object payload.

        Returns:
            The encoded JWT.
        """
        claims = SaveToWalletClaims(
            iss=self.service_account.client_email,
            iat=datetime.now(UTC),
            origins=self.origins,
            payload=payload,
        )
        headers = {"kid": self.service_account.private_key_id} if self.service_account.private_key_id else None
        encoded = jwt.encode(claims.model_dump(), self.service_account.private_key, algorithm=ALGORITHM, headers=headers)
        logger.debug("save_token_signed", length=len(encoded))
        return encoded


def save_url(token: str) -> str:
    return f"{SAVE_URL_BASE}{token}"
