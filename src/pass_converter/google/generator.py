"""Google Wallet payload generation.

Encodes a pass into a class+object payload. Front content is written as
text modules and laid out with a card row template, which Google Wallet
limits to three rows of at most three items each.
"""

import typing as t

import structlog

from pass_converter.content import ContentField, flatten
from pass_converter.google.localized import PayloadWriter
from pass_converter.passes import Pass
from pass_converter.protocols import ImageResolver
from pass_converter.settings import Settings

logger = structlog.get_logger(__name__)

MAX_ROW_ITEMS = 3
MAX_TEMPLATE_ROWS = 3

# Row template kind and item slots for a row of each length
ROW_TEMPLATES: dict[int, tuple[str, tuple[str, ...]]] = {
    1: ("oneItem", ("item",)),
    2: ("twoItems", ("startItem", "endItem")),
    3: ("threeItems", ("startItem", "middleItem", "endItem")),
}


def pack_rows(rows: t.Iterable[t.Sequence[ContentField]]) -> list[list[ContentField]]:
    """Split rows so that none holds more than three items.

    Each input row is cut, in order, into slices of up to three items.
    Empty rows are dropped.

    Args:
        rows: Front content rows of any length.

    Returns:
        The packed rows.
    """
    packed: list[list[ContentField]] = []
    for row in rows:
        for start in range(0, len(row), MAX_ROW_ITEMS):
            packed.append(list(row[start : start + MAX_ROW_ITEMS]))
    return packed


def _template_item(content: ContentField) -> dict[str, t.Any]:
    return {"firstValue": {"fields": [{"fieldPath": f"object.textModulesData['{content.key}']"}]}}


def row_template(row: t.Sequence[ContentField]) -> dict[str, t.Any]:
    """Build the CardRowTemplateInfo for a packed row."""
    kind, slots = ROW_TEMPLATES[len(row)]
    return {kind: {slot: _template_item(content) for slot, content in zip(slots, row, strict=True)}}


def drop_none(value: t.Any) -> t.Any:
    """Recursively remove None values from dictionaries."""
    if isinstance(value, dict):
        return {key: drop_none(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [drop_none(item) for item in value]
    return value


class PayloadGenerator:
    """Generates Google Wallet class+object payloads from passes."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def generate(self, pass_: Pass, image_resolver: ImageResolver | None = None) -> dict[str, t.Any]:
        """Generate the payload for a pass.

        Rows beyond the third are not part of the card template but are still
        written as text modules, so Google Wallet shows them in the details
        section.

        Args:
            pass_: The pass to encode. It is not modified.
            image_resolver: Resolves image references to public URIs.

        Returns:
            `{"<prefix>Classes": [class], "<prefix>Objects": [object]}`.
        """
        writer = PayloadWriter(pass_, self.settings, image_resolver)
        front_content, back_content = pass_.payload_content()
        rows = pack_rows(front_content)

        text_modules = [
            {
                "id": content.key,
                "localizedHeader": writer.localized(content.label) if content.label else None,
                "localizedBody": writer.localized_field(content),
            }
            for content in flatten(rows)
        ]

        info_module = None
        if back_content:
            info_module = {
                "labelValueRows": [
                    {
                        "columns": [
                            {
                                "localizedLabel": writer.localized(content.label),
                                "localizedValue": writer.localized_field(content),
                            }
                        ]
                    }
                    for content in back_content
                ]
            }

        google = self.settings.google
        class_id = google.qualify(pass_.type_id)
        cls: dict[str, t.Any] = {
            "id": class_id,
            "reviewStatus": "UNDER_REVIEW",
            "issuerName": pass_.issuer_name(self.settings),
            "classTemplateInfo": {
                "cardTemplateOverride": {
                    "cardRowTemplateInfos": [row_template(row) for row in rows[:MAX_TEMPLATE_ROWS]],
                },
            },
        }
        obj: dict[str, t.Any] = {
            "id": google.qualify(pass_.id),
            "classId": class_id,
            "barcode": pass_.barcode.to_payload() if pass_.barcode else None,
            "hexBackgroundColor": pass_.background_color.to_hex_string(),
            "textModulesData": text_modules,
            "infoModuleData": info_module,
            "state": "ACTIVE",
        }

        await pass_.extend_payload(cls, obj, writer)

        if len(rows) > MAX_TEMPLATE_ROWS:
            logger.debug("rows_demoted_to_details", object_id=obj["id"], rows=len(rows) - MAX_TEMPLATE_ROWS)

        logger.info("payload_generated", variant=pass_.variant.name, object_id=obj["id"], text_modules=len(text_modules))
        return {
            pass_.variant.classes_key: [drop_none(cls)],
            pass_.variant.objects_key: [drop_none(obj)],
        }
