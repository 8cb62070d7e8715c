"""Generic passes (Apple `generic`, Google `generic`)."""

import typing as t
from dataclasses import dataclass

from pass_converter.content import ContentField
from pass_converter.google.localized import LocalizedReader, PayloadWriter, image_uri
from pass_converter.passes.base import Pass, Variant


@dataclass(kw_only=True)
class GenericPass(Pass):
    """A pass with no type-specific attributes.

    Google generic passes have no details section, so back content is shown
    as an extra front row.
    """

    variant = Variant(name="generic", archive_key="generic", payload_prefix="generic")

    def decode_payload(self, obj: dict[str, t.Any], cls: dict[str, t.Any], reader: LocalizedReader) -> None:
        self.title = reader.field(obj, "cardTitle") or self.title
        self.description = reader.field(obj, "header") or self.description
        self.logo = image_uri(obj.get("logo")) or self.logo

    def payload_content(self) -> tuple[list[list[ContentField]], list[ContentField]]:
        rows = [row for row in [*self.front_content, list(self.back_content)] if row]
        return rows, []

    async def extend_payload(self, cls: dict[str, t.Any], obj: dict[str, t.Any], writer: PayloadWriter) -> None:
        cls.pop("issuerName", None)
        cls.pop("reviewStatus", None)
        obj.pop("state", None)
        obj["cardTitle"] = writer.localized(self.title)
        obj["header"] = writer.localized(self.description)
        obj["logo"] = await writer.image(self.logo)
