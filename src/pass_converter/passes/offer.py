"""Offers and coupons (Apple `coupon`, Google `offer`)."""

import typing as t
from dataclasses import dataclass

from pass_converter.content import ContentField
from pass_converter.google.localized import LocalizedReader, PayloadWriter, image_uri
from pass_converter.hints import HintResolver
from pass_converter.passes.base import Pass, Variant


@dataclass(kw_only=True)
class OfferPass(Pass):
    """A coupon. The offer text (e.g. "10% off") is its title."""

    variant = Variant(name="offer", archive_key="coupon", payload_prefix="offer")

    def decode_archive(self, pass_json: dict[str, t.Any], hints: HintResolver) -> None:
        self.title = pass_json.get("description") or pass_json.get("logoText") or self.title

    def decode_payload(self, obj: dict[str, t.Any], cls: dict[str, t.Any], reader: LocalizedReader) -> None:
        self.title = reader.field(cls, "title") or self.title
        self.logo = image_uri(cls.get("titleImage")) or self.logo

    def archive_content(self) -> dict[str, t.Any]:
        return {"primaryFields": [ContentField(key="title", value=self.title)]}

    async def extend_payload(self, cls: dict[str, t.Any], obj: dict[str, t.Any], writer: PayloadWriter) -> None:
        cls["redemptionChannel"] = "BOTH"
        cls["provider"] = self.issuer_name(writer.settings)
        cls["localizedTitle"] = writer.localized(self.title)
        cls["titleImage"] = await writer.image(self.logo)
