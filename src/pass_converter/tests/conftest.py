"""Test fixtures for pass converter tests.

This module provides settings with a hint table, in-memory archive and
payload builders, generated images, and mocked certificates and keys for
signing tests.
"""

import io
import typing as t
import zipfile
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from unittest.mock import MagicMock

import orjson
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from PIL import Image

from pass_converter.apple.signer import ArchiveSigner
from pass_converter.settings import GoogleWalletSettings, Settings

ISSUER_ID = "3388000000012345678"

HINTS = {
    "event.name": "Event",
    "flight.passenger": "Passenger",
    "flight.seatNumber": "Seat",
    "flight.seatClass": "Class",
    "flight.gate": "Gate",
    "flight.originCode": "From",
    "flight.destinationCode": "To",
    "flight.flightNumber": "Flight",
    "flight.date": "Date",
    "flight.time": "Time",
    "flight.confirmationCode": "Confirmation",
    "loyalty.primaryBalance": "Points",
    "loyalty.secondaryBalance": "Balance",
    "transit.originName": "Origin",
    "transit.originDate": "Departure date",
    "transit.originTime": "Departure time",
    "transit.destinationName": "Destination",
    "transit.destinationDate": "Arrival date",
    "transit.destinationTime": "Arrival time",
}


# --- Settings ---


@pytest.fixture
def settings() -> Settings:
    """Settings with a hint table and a Google issuer, but no signing material."""
    return Settings(
        default_org_name="Default Org",
        default_language="en",
        empty_value="-",
        hints=MappingProxyType(HINTS),
        google=GoogleWalletSettings(issuer_id=ISSUER_ID, origins=("https://example.com",)),
    )


# --- Images ---


def make_png(size: tuple[int, int] = (58, 58), color: tuple[int, int, int] = (255, 0, 0)) -> bytes:
    img = Image.new("RGB", size, color)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A small red PNG image."""
    return make_png()


# --- Archives ---


def make_archive(pass_json: dict[str, t.Any] | str | bytes, extra_files: dict[str, bytes] | None = None) -> bytes:
    """Build a .pkpass archive in memory.

    Args:
        pass_json: The pass.json document, or its raw text.
        extra_files: Additional archive entries.

    Returns:
        The archive bytes.
    """
    if isinstance(pass_json, dict):
        raw = orjson.dumps(pass_json)
    elif isinstance(pass_json, str):
        raw = pass_json.encode("utf-8")
    else:
        raw = pass_json

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("pass.json", raw)
        for name, content in (extra_files or {}).items():
            zf.writestr(name, content)
    return buffer.getvalue()


def read_archive_files(data: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


@pytest.fixture
def archive_builder() -> Callable[..., bytes]:
    return make_archive


@pytest.fixture
def offer_pass_json() -> dict[str, t.Any]:
    """pass.json of a coupon whose description is the offer text."""
    return {
        "formatVersion": 1,
        "passTypeIdentifier": "pass.com.example.coupon",
        "serialNumber": "offer-123",
        "teamIdentifier": "TEAM123",
        "organizationName": "Example Shop",
        "description": "10% off",
        "logoText": "Example Shop",
        "foregroundColor": "rgb(255, 255, 255)",
        "backgroundColor": "rgb(206, 17, 38)",
        "barcodes": [
            {"message": "OFFER-123", "format": "PKBarcodeFormatQR", "messageEncoding": "iso-8859-1"},
        ],
        "coupon": {
            "primaryFields": [{"key": "offer", "label": "Offer", "value": "10% off"}],
            "secondaryFields": [{"key": "store", "label": "Store", "value": "Main Street"}],
            "backFields": [{"key": "terms", "label": "Terms", "value": "One per customer"}],
        },
    }


@pytest.fixture
def offer_archive(offer_pass_json: dict[str, t.Any], png_bytes: bytes) -> bytes:
    """A coupon archive with an icon and a French translation."""
    return make_archive(
        offer_pass_json,
        {
            "icon.png": png_bytes,
            "fr.lproj/pass.strings": b'"Offer" = "Offre";\n"Terms" = "Conditions";\n',
        },
    )


@pytest.fixture
def flight_pass_json() -> dict[str, t.Any]:
    """pass.json of an air boarding pass whose fields match the hint table."""
    return {
        "formatVersion": 1,
        "passTypeIdentifier": "pass.com.example.boarding",
        "serialNumber": "BP-0001",
        "organizationName": "Example Air",
        "description": "Boarding pass",
        "logoText": "Example Air",
        "backgroundColor": "#1a2b3c",
        "barcode": {"message": "M1DOE/JOHN", "format": "PKBarcodeFormatPDF417", "messageEncoding": "iso-8859-1"},
        "boardingPass": {
            "transitType": "PKTransitTypeAir",
            "headerFields": [
                {"key": "date", "label": "Date", "value": "2025-01-15"},
                {"key": "flight", "label": "Flight", "value": "LH 123"},
            ],
            "primaryFields": [
                {"key": "from", "label": "From", "value": "FRA"},
                {"key": "to", "label": "To", "value": "JFK"},
            ],
            "secondaryFields": [
                {"key": "passenger", "label": "Passenger", "value": "John Doe"},
                {"key": "seat", "label": "Seat", "value": "12A"},
            ],
            "auxiliaryFields": [
                {"key": "gate", "label": "Gate", "value": "B22"},
                {"key": "time", "label": "Time", "value": "14:30"},
                {"key": "meal", "label": "Meal", "value": "Vegetarian"},
            ],
            "backFields": [
                {"key": "confirmation", "label": "Confirmation", "value": "ABC123"},
                {"key": "baggage", "label": "Baggage", "value": "1 x 23kg"},
            ],
        },
    }


@pytest.fixture
def flight_archive(flight_pass_json: dict[str, t.Any], png_bytes: bytes) -> bytes:
    return make_archive(flight_pass_json, {"icon@2x.png": png_bytes})


# --- Payloads ---


def localized(value: str, language: str = "en", **translations: str) -> dict[str, t.Any]:
    """Build a LocalizedString resource."""
    result: dict[str, t.Any] = {"defaultValue": {"language": language, "value": value}}
    if translations:
        result["translatedValues"] = [{"language": lang, "value": text} for lang, text in translations.items()]
    return result


def template_row(*keys: str) -> dict[str, t.Any]:
    """Build a CardRowTemplateInfo referencing text modules by key."""
    items = [{"firstValue": {"fields": [{"fieldPath": f"object.textModulesData['{key}']"}]}} for key in keys]
    if len(items) == 1:
        return {"oneItem": {"item": items[0]}}
    if len(items) == 2:
        return {"twoItems": {"startItem": items[0], "endItem": items[1]}}
    return {"threeItems": {"startItem": items[0], "middleItem": items[1], "endItem": items[2]}}


@pytest.fixture
def event_payload() -> dict[str, t.Any]:
    """An event ticket payload with a translated gate label."""
    return {
        "eventTicketClasses": [
            {
                "id": f"{ISSUER_ID}.concert-2025",
                "issuerName": "Example Venue",
                "reviewStatus": "UNDER_REVIEW",
                "eventName": localized("Summer Concert", fr="Concert d'été"),
                "logo": {"sourceUri": {"uri": "https://example.com/logo.png"}},
                "classTemplateInfo": {
                    "cardTemplateOverride": {
                        "cardRowTemplateInfos": [template_row("gate", "row")],
                    }
                },
            }
        ],
        "eventTicketObjects": [
            {
                "id": f"{ISSUER_ID}.ticket-42",
                "classId": f"{ISSUER_ID}.concert-2025",
                "state": "ACTIVE",
                "hexBackgroundColor": "#336699",
                "barcode": {"type": "qrCode", "value": "TICKET-42"},
                "textModulesData": [
                    {"id": "gate", "localizedHeader": localized("Gate", fr="Porte"), "localizedBody": localized("7")},
                    {"id": "row", "localizedHeader": localized("Row"), "localizedBody": localized("F")},
                    {"id": "notes", "header": "Notes", "body": "Doors open at 19:00"},
                ],
                "infoModuleData": {
                    "labelValueRows": [
                        {"columns": [{"localizedLabel": localized("Venue"), "localizedValue": localized("Arena")}]},
                    ]
                },
            }
        ],
    }


# --- Mock Certificate Fixtures ---


@pytest.fixture
def mock_private_key() -> rsa.RSAPrivateKey:
    """Generate a mock RSA private key for testing."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _self_signed(private_key: rsa.RSAPrivateKey, common_name: str) -> x509.Certificate:
    subject = issuer = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Org"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
    now = datetime.now(UTC)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=365))
        .sign(private_key, hashes.SHA256())
    )


@pytest.fixture
def mock_certificate(mock_private_key: rsa.RSAPrivateKey) -> x509.Certificate:
    """Generate a mock Pass Type ID certificate for testing."""
    return _self_signed(mock_private_key, "Test Certificate")


@pytest.fixture
def mock_wwdr_certificate(mock_private_key: rsa.RSAPrivateKey) -> x509.Certificate:
    """Generate a mock Apple WWDR certificate for testing."""
    return _self_signed(mock_private_key, "Apple Worldwide Developer Relations Certification Authority")


@pytest.fixture
def private_key_pem(mock_private_key: rsa.RSAPrivateKey) -> str:
    return mock_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def mock_signer() -> MagicMock:
    """Create a fully mocked ArchiveSigner for testing."""
    signer = MagicMock(spec=ArchiveSigner)
    signer.is_configured.return_value = True
    signer.sign_manifest.return_value = b"mock_signature_bytes"
    return signer


@pytest.fixture
def service_account_info(private_key_pem: str) -> dict[str, str]:
    """A service account key file using the mock private key."""
    return {
        "type": "service_account",
        "project_id": "test-project",
        "private_key_id": "key-1",
        "private_key": private_key_pem,
        "client_email": "wallet@test-project.iam.gserviceaccount.com",
        "client_id": "1234567890",
        "token_uri": "https://oauth2.googleapis.com/token",
    }


@pytest.fixture
def archive_files() -> Callable[[bytes], dict[str, bytes]]:
    return read_archive_files
