"""Event tickets (Apple `eventTicket`, Google `eventTicket`)."""

import typing as t
from dataclasses import dataclass

from pass_converter.content import ContentField
from pass_converter.exceptions import MissingRequiredField
from pass_converter.google.localized import LocalizedReader, PayloadWriter, image_uri
from pass_converter.hints import HintResolver
from pass_converter.passes.base import Pass, Variant


@dataclass(kw_only=True)
class EventPass(Pass):
    """An event ticket. The title is the event name, which is mandatory."""

    variant = Variant(name="event", archive_key="eventTicket", payload_prefix="eventTicket")

    def decode_archive(self, pass_json: dict[str, t.Any], hints: HintResolver) -> None:
        title = hints.value("event.name", self.title)
        if title == hints.empty_value:
            raise MissingRequiredField("event name", hint="event.name")
        self.title = title

    def decode_payload(self, obj: dict[str, t.Any], cls: dict[str, t.Any], reader: LocalizedReader) -> None:
        title = reader.field(cls, "eventName")
        if not title:
            raise MissingRequiredField("event name")
        self.title = title
        self.logo = image_uri(cls.get("logo")) or self.logo

    def archive_content(self) -> dict[str, t.Any]:
        return {"primaryFields": [ContentField(key="title", value=self.title)]}

    async def extend_payload(self, cls: dict[str, t.Any], obj: dict[str, t.Any], writer: PayloadWriter) -> None:
        cls["eventName"] = writer.localized(self.title)
        cls["logo"] = await writer.image(self.logo)
