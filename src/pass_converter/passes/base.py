"""Intermediate pass model.

A `Pass` is built once per conversion from either format, then consumed by
exactly one encoder. Shared attributes (title, barcode, colours, content,
localization) are read and written by the codecs; each variant subclass
only adds its own attributes and overrides the hooks below.
"""

import typing as t
from dataclasses import dataclass, field

from pass_converter.barcodes import Barcode
from pass_converter.content import ContentField, flatten
from pass_converter.formatting import BLACK, Color
from pass_converter.settings import Settings

if t.TYPE_CHECKING:
    from pass_converter.google.localized import LocalizedReader, PayloadWriter
    from pass_converter.hints import HintResolver


@dataclass(frozen=True)
class Variant:
    """Describes how a pass kind is keyed in each format.

    Attributes:
        name: Variant name.
        archive_key: The pass.json key holding the content buckets.
        payload_prefix: Root of the `<prefix>Classes` / `<prefix>Objects` keys.
        transit_types: Accepted `transitType` values, for kinds sharing an archive key.
    """

    name: str
    archive_key: str
    payload_prefix: str
    transit_types: tuple[str, ...] = ()

    @property
    def classes_key(self) -> str:
        return f"{self.payload_prefix}Classes"

    @property
    def objects_key(self) -> str:
        return f"{self.payload_prefix}Objects"

    def matches_archive(self, pass_json: dict[str, t.Any]) -> bool:
        """Check if a pass.json document belongs to this variant."""
        content = pass_json.get(self.archive_key)
        if not isinstance(content, dict):
            return False
        return not self.transit_types or content.get("transitType") in self.transit_types


@dataclass(kw_only=True)
class Pass:
    """Format-independent pass content."""

    variant: t.ClassVar[Variant]

    id: str = ""
    type_id: str = ""
    title: str = ""
    description: str = ""
    issuer: str = ""
    barcode: Barcode | None = None
    background_color: Color = BLACK
    front_content: list[list[ContentField]] = field(default_factory=list)
    back_content: list[ContentField] = field(default_factory=list)
    strings: dict[str, dict[str, str]] = field(default_factory=dict)
    logo: bytes | str | None = None
    files: dict[str, bytes] = field(default_factory=dict, repr=False)
    web_service_url: str | None = None
    authentication_token: str | None = field(default=None, repr=False)

    def image(self, name: str) -> bytes | None:
        """Get an archive image, preferring the double resolution file.

        Args:
            name: Image slot name without extension (e.g. 'icon').

        Returns:
            The image bytes, or None if the archive did not contain it.
        """
        return self.files.get(f"{name}@2x.png") or self.files.get(f"{name}.png")

    def issuer_name(self, settings: Settings) -> str:
        return self.issuer or settings.default_org_name

    def default_language(self, settings: Settings) -> str:
        """Get the language the pass's default text is written in.

        When the pass has translations but none for the configured default
        language, its first translated language is assumed to be the default.
        """
        if self.strings and settings.default_language not in self.strings:
            return next(iter(self.strings))
        return settings.default_language

    def decode_archive(self, pass_json: dict[str, t.Any], hints: "HintResolver") -> None:
        """Read variant attributes from pass.json and hinted content."""

    def decode_payload(self, obj: dict[str, t.Any], cls: dict[str, t.Any], reader: "LocalizedReader") -> None:
        """Read variant attributes from the Google Wallet class and object."""

    def archive_content(self) -> dict[str, t.Any]:
        """Seed the pass.json content buckets for this variant.

        Buckets left out are filled from the front and back content. Values
        are lists of `ContentField`; other keys are written as-is.
        """
        return {}

    def payload_content(self) -> tuple[list[list[ContentField]], list[ContentField]]:
        """Get the front rows and back fields to write to a payload."""
        return self.front_content, self.back_content

    async def extend_payload(self, cls: dict[str, t.Any], obj: dict[str, t.Any], writer: "PayloadWriter") -> None:
        """Add variant fields to the generated Google Wallet class and object."""

    def flattened_content(self) -> list[ContentField]:
        return [*flatten(self.front_content), *self.back_content]
