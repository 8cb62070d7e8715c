"""Pass converter configuration.

Settings are read once from the environment (or a `.env` file) with
python-decouple and passed explicitly to every codec.

See: https://developer.apple.com/documentation/walletpasses
     https://developers.google.com/wallet
"""

import typing as t
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import structlog
from decouple import Csv, config

from pass_converter.parsing import loads_lenient

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SigningMaterial:
    """Apple Wallet identifiers and certificates used to sign archives."""

    pass_type_id: str = ""
    team_id: str = ""
    cert_path: str = ""
    key_path: str = ""
    key_password: str = ""
    wwdr_cert_path: str = ""

    def is_complete(self) -> bool:
        """Check if every piece needed to sign an archive is configured.

        Returns:
            True if certificate, key, WWDR certificate and identifiers are set.
        """
        return bool(self.cert_path and self.key_path and self.wwdr_cert_path and self.pass_type_id and self.team_id)


@dataclass(frozen=True)
class GoogleWalletSettings:
    """Google Wallet issuer and service account configuration."""

    issuer_id: str = ""
    service_account_path: str = ""
    origins: tuple[str, ...] = ()

    def qualify(self, identifier: str) -> str:
        """Prefix an identifier with the issuer ID (`<issuer>.<id>`)."""
        return f"{self.issuer_id}.{identifier}" if self.issuer_id else identifier

    def unqualify(self, identifier: str) -> str:
        """Strip the issuer ID prefix from an identifier."""
        return identifier.removeprefix(f"{self.issuer_id}.") if self.issuer_id else identifier


@dataclass(frozen=True)
class Settings:
    """Configuration consumed by the conversion core."""

    default_org_name: str = ""
    default_language: str = "en"
    default_icon: str | None = None
    empty_value: str = "-"
    hints: t.Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    airlines: t.Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    signing: SigningMaterial = field(default_factory=SigningMaterial)
    google: GoogleWalletSettings = field(default_factory=GoogleWalletSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Returns:
            A fully populated Settings instance.
        """
        hints_path: str = config("PASS_CONVERTER_HINTS_PATH", default="")
        airlines_path: str = config("PASS_CONVERTER_AIRLINES_PATH", default="")
        return cls(
            default_org_name=config("PASS_CONVERTER_DEFAULT_ORG_NAME", default=""),
            default_language=config("PASS_CONVERTER_DEFAULT_LANGUAGE", default="en"),
            default_icon=config("PASS_CONVERTER_DEFAULT_ICON", default="") or None,
            empty_value=config("PASS_CONVERTER_EMPTY_VALUE", default="-"),
            hints=load_hints(hints_path) if hints_path else MappingProxyType({}),
            airlines=load_airlines(airlines_path) if airlines_path else MappingProxyType({}),
            signing=SigningMaterial(
                pass_type_id=config("APPLE_WALLET_PASS_TYPE_ID", default=""),
                team_id=config("APPLE_WALLET_TEAM_ID", default=""),
                cert_path=config("APPLE_WALLET_CERT_PATH", default=""),
                key_path=config("APPLE_WALLET_KEY_PATH", default=""),
                key_password=config("APPLE_WALLET_KEY_PASSWORD", default=""),
                wwdr_cert_path=config("APPLE_WALLET_WWDR_CERT_PATH", default=""),
            ),
            google=GoogleWalletSettings(
                issuer_id=config("GOOGLE_WALLET_ISSUER_ID", default=""),
                service_account_path=config("GOOGLE_WALLET_SERVICE_ACCOUNT_PATH", default=""),
                origins=tuple(config("GOOGLE_WALLET_ORIGINS", default="", cast=Csv())),
            ),
        )


def load_hints(path: str | Path) -> t.Mapping[str, str]:
    """Load the hint table mapping semantic field names to archive field labels.

    Args:
        path: Path to a JSON object file (comments and trailing commas allowed).

    Returns:
        A read-only mapping of hint name to archive field label.

    Raises:
        ValueError: If the file does not contain a JSON object.
    """
    hints = _load_table(path, "Hints")
    logger.debug("hints_loaded", path=str(path), count=len(hints))
    return hints


def load_airlines(path: str | Path) -> t.Mapping[str, str]:
    """Load the table mapping IATA carrier codes to airline names.

    Raises:
        ValueError: If the file does not contain a JSON object.
    """
    airlines = _load_table(path, "Airlines")
    airlines = MappingProxyType({code.upper(): name for code, name in airlines.items()})
    logger.debug("airlines_loaded", path=str(path), count=len(airlines))
    return airlines


def _load_table(path: str | Path, kind: str) -> t.Mapping[str, str]:
    data = loads_lenient(Path(path).read_bytes())
    if not isinstance(data, dict):
        raise ValueError(f"{kind} file must contain a JSON object: {path}")
    return MappingProxyType({str(key): str(value) for key, value in data.items()})
