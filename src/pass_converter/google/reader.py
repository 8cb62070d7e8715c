"""Google Wallet payload decoding.

A payload holds exactly one class and one object under the
`<prefix>Classes` and `<prefix>Objects` keys. Front content is recovered by
joining the class's card row template back to the object's text modules;
back content comes from the object's info module rows.
"""

import re
import secrets
import typing as t

import structlog

from pass_converter.barcodes import Barcode
from pass_converter.content import ContentField
from pass_converter.exceptions import InvalidPassData
from pass_converter.formatting import Color
from pass_converter.google.localized import LocalizedReader
from pass_converter.passes import Pass, pass_type_for_payload
from pass_converter.settings import Settings

logger = structlog.get_logger(__name__)

# Row template kinds and the item slots they hold, in display order
ROW_SLOTS: dict[str, tuple[str, ...]] = {
    "oneItem": ("item",),
    "twoItems": ("startItem", "endItem"),
    "threeItems": ("startItem", "middleItem", "endItem"),
}

TEXT_MODULE_PATH = re.compile(r"""^object\.textModulesData\[['"](.+)['"]\]""")


def _single(payload: dict[str, t.Any], key: str) -> dict[str, t.Any]:
    resources = payload.get(key)
    if not isinstance(resources, list) or len(resources) != 1 or not isinstance(resources[0], dict):
        raise InvalidPassData(f"Payload must contain exactly one entry in '{key}'")
    return resources[0]


def template_keys(cls: dict[str, t.Any]) -> list[list[str]]:
    """Get the text module keys referenced by a class's card row template.

    Args:
        cls: The pass class.

    Returns:
        One list of text module keys per template row.
    """
    template = (cls.get("classTemplateInfo") or {}).get("cardTemplateOverride") or {}
    rows: list[list[str]] = []
    for row in template.get("cardRowTemplateInfos") or []:
        keys: list[str] = []
        for kind, slots in ROW_SLOTS.items():
            items = row.get(kind) or {}
            for slot in slots:
                key = _text_module_key(items.get(slot))
                if key is not None:
                    keys.append(key)
        rows.append(keys)
    return rows


def _text_module_key(item: dict[str, t.Any] | None) -> str | None:
    if not item:
        return None
    fields = (item.get("firstValue") or {}).get("fields") or []
    if not fields:
        return None
    match = TEXT_MODULE_PATH.match(fields[0].get("fieldPath", ""))
    return match.group(1) if match else None


def _text_module_field(module: dict[str, t.Any], reader: LocalizedReader) -> ContentField:
    return ContentField(
        key=str(module.get("id", "")),
        label=reader.text(module.get("localizedHeader")) or module.get("header"),
        value=reader.text(module.get("localizedBody")) or module.get("body") or "",
    )


def read_content(
    cls: dict[str, t.Any], obj: dict[str, t.Any], reader: LocalizedReader
) -> tuple[list[list[ContentField]], list[ContentField]]:
    """Read the front rows and back fields of a payload.

    Text modules that the row template does not reference are shown by
    Google Wallet in the details section, so they become back content.

    Returns:
        The front rows and back fields.
    """
    modules = {str(module.get("id", "")): module for module in obj.get("textModulesData") or []}
    referenced: set[str] = set()
    front_content: list[list[ContentField]] = []

    for keys in template_keys(cls):
        row: list[ContentField] = []
        for key in keys:
            if key not in modules:
                logger.debug("template_item_unresolved", key=key)
                continue
            row.append(_text_module_field(modules[key], reader))
            referenced.add(key)
        if row:
            front_content.append(row)

    back_content: list[ContentField] = []
    for row in (obj.get("infoModuleData") or {}).get("labelValueRows") or []:
        for column in row.get("columns") or []:
            label = reader.text(column.get("localizedLabel")) or column.get("label")
            back_content.append(
                ContentField(
                    key=label or "",
                    label=label,
                    value=reader.text(column.get("localizedValue")) or column.get("value") or "",
                )
            )

    unreferenced = [module for key, module in modules.items() if key not in referenced]
    back_content.extend(_text_module_field(module, reader) for module in unreferenced)
    return front_content, back_content


def read_payload(payload: dict[str, t.Any], settings: Settings) -> Pass:
    """Decode a class+object payload into a pass.

    Args:
        payload: The payload JSON (the `payload` claim of a save token).
        settings: Converter settings.

    Returns:
        The decoded pass of the matching variant.

    Raises:
        InvalidPassData: If the payload does not hold exactly one class and one object.
        UnsupportedVariant: If the payload prefix is not supported.
        MissingRequiredField: If the variant cannot resolve a mandatory value.
    """
    pass_type = pass_type_for_payload(payload)
    cls = _single(payload, pass_type.variant.classes_key)
    obj = _single(payload, pass_type.variant.objects_key)

    reader = LocalizedReader(settings)
    front_content, back_content = read_content(cls, obj, reader)

    google = settings.google
    pass_ = pass_type(
        id=google.unqualify(obj.get("id") or secrets.token_urlsafe(16)),
        type_id=google.unqualify(obj.get("classId") or cls.get("id") or secrets.token_urlsafe(16)),
        issuer=cls.get("issuerName") or settings.default_org_name,
        barcode=Barcode.from_payload(obj.get("barcode")),
        background_color=Color.parse(obj.get("hexBackgroundColor") or cls.get("hexBackgroundColor")),
        front_content=front_content,
        back_content=back_content,
        strings=reader.strings,
    )
    pass_.decode_payload(obj, cls, reader)
    if not pass_.description:
        # payloads carry no separate description outside generic and flight passes
        pass_.description = pass_.title

    logger.info(
        "payload_decoded",
        variant=pass_.variant.name,
        object_id=pass_.id,
        languages=sorted(pass_.strings),
    )
    return pass_
