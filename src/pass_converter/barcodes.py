"""Barcode format mapping between Apple and Google Wallet.

Google names are canonical. Each format maps to exactly one Apple
`PKBarcodeFormat*` string and to the legacy Google names still found in
older payloads.
"""

import typing as t
from dataclasses import dataclass
from enum import StrEnum

import structlog

logger = structlog.get_logger(__name__)


class BarcodeFormat(StrEnum):
    AZTEC = "AZTEC"
    CODE_128 = "CODE_128"
    PDF_417 = "PDF_417"
    QR_CODE = "QR_CODE"


ARCHIVE_FORMATS: dict[BarcodeFormat, str] = {
    BarcodeFormat.AZTEC: "PKBarcodeFormatAztec",
    BarcodeFormat.CODE_128: "PKBarcodeFormatCode128",
    BarcodeFormat.PDF_417: "PKBarcodeFormatPDF417",
    BarcodeFormat.QR_CODE: "PKBarcodeFormatQR",
}

LEGACY_PAYLOAD_FORMATS: dict[BarcodeFormat, tuple[str, ...]] = {
    BarcodeFormat.AZTEC: ("aztec",),
    BarcodeFormat.CODE_128: ("code128",),
    BarcodeFormat.PDF_417: ("pdf417", "PDF417"),
    BarcodeFormat.QR_CODE: ("qrCode",),
}

_FROM_ARCHIVE = {archive: fmt for fmt, archive in ARCHIVE_FORMATS.items()}
_FROM_PAYLOAD = {
    **{fmt.value: fmt for fmt in BarcodeFormat},
    **{legacy: fmt for fmt, aliases in LEGACY_PAYLOAD_FORMATS.items() for legacy in aliases},
}


@dataclass(frozen=True)
class Barcode:
    """A barcode message and its canonical format."""

    format: BarcodeFormat
    message: str

    @classmethod
    def from_archive(cls, pass_json: dict[str, t.Any]) -> "Barcode | None":
        """Read the barcode from a pass.json document.

        Uses the `barcodes` list, or the deprecated single `barcode` entry.
        The first entry with a known format wins.

        Args:
            pass_json: The parsed pass.json.

        Returns:
            The barcode, or None if the pass has none in a supported format.
        """
        candidates = pass_json.get("barcodes")
        if not candidates:
            legacy = pass_json.get("barcode")
            candidates = [legacy] if legacy else []
        if not isinstance(candidates, list):
            candidates = [candidates]

        for candidate in candidates:
            if not isinstance(candidate, dict):
                logger.debug("barcode_entry_skipped", entry_type=type(candidate).__name__)
                continue
            fmt = _FROM_ARCHIVE.get(candidate.get("format", ""))
            if fmt is None:
                logger.debug("barcode_format_skipped", format=candidate.get("format"))
                continue
            return cls(format=fmt, message=str(candidate.get("message", "")))
        return None

    @classmethod
    def from_payload(cls, barcode: dict[str, t.Any] | None) -> "Barcode | None":
        """Read a Google Wallet barcode, accepting legacy type names."""
        if not isinstance(barcode, dict) or not barcode:
            return None
        fmt = _FROM_PAYLOAD.get(barcode.get("type", ""))
        if fmt is None:
            logger.debug("barcode_format_skipped", format=barcode.get("type"))
            return None
        return cls(format=fmt, message=str(barcode.get("value", "")))

    def to_archive(self) -> dict[str, str]:
        return {
            "message": self.message,
            "format": ARCHIVE_FORMATS[self.format],
            "messageEncoding": "iso-8859-1",
        }

    def to_payload(self) -> dict[str, str]:
        return {"type": self.format.value, "value": self.message}
