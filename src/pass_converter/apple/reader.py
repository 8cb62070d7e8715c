"""Apple Wallet archive decoding.

A .pkpass file is a ZIP archive containing:
- pass.json: The pass definition
- manifest.json: SHA-1 hashes of all files
- signature: PKCS#7 signature of the manifest
- <lang>.lproj/pass.strings: Translations
- Images: icon, logo, thumbnail, etc.
"""

import io
import typing as t
import zipfile

import orjson
import structlog

from pass_converter.apple import strings as lproj
from pass_converter.barcodes import Barcode
from pass_converter.content import ContentField
from pass_converter.exceptions import InvalidPassData
from pass_converter.formatting import Color
from pass_converter.hints import HintResolver
from pass_converter.parsing import loads_lenient
from pass_converter.passes import Pass, pass_type_for_archive
from pass_converter.settings import Settings

logger = structlog.get_logger(__name__)

FRONT_BUCKETS = ("headerFields", "primaryFields", "secondaryFields", "auxiliaryFields")
BACK_BUCKET = "backFields"


def unzip(data: bytes) -> dict[str, bytes]:
    """Read every file entry of an archive.

    Raises:
        InvalidPassData: If the data is not a ZIP archive.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            return {info.filename: zf.read(info) for info in zf.infolist() if not info.is_dir()}
    except zipfile.BadZipFile as e:
        raise InvalidPassData(f"Not a valid pass archive: {e}") from e


def read_pass_json(files: dict[str, bytes]) -> dict[str, t.Any]:
    """Parse pass.json, tolerating comments and trailing commas.

    Raises:
        InvalidPassData: If pass.json is missing or is not a JSON object.
    """
    if "pass.json" not in files:
        raise InvalidPassData("Archive does not contain pass.json")
    try:
        pass_json = loads_lenient(files["pass.json"])
    except (orjson.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidPassData(f"pass.json is not valid JSON: {e}") from e
    if not isinstance(pass_json, dict):
        raise InvalidPassData("pass.json must contain a JSON object")
    return pass_json


def read_strings(files: dict[str, bytes]) -> dict[str, dict[str, str]]:
    """Parse every localization table in the archive, keyed by language."""
    strings: dict[str, dict[str, str]] = {}
    for name, content in files.items():
        language = lproj.language_for(name)
        if language:
            strings[language] = lproj.parse(content)
    return strings


def _fields(entries: t.Any) -> list[ContentField]:
    if not isinstance(entries, list):
        return []
    return [ContentField.from_archive(entry) for entry in entries if isinstance(entry, dict)]


def read_archive(data: bytes, settings: Settings) -> Pass:
    """Decode an archive into a pass.

    Args:
        data: The .pkpass archive bytes.
        settings: Converter settings (hints, defaults).

    Returns:
        The decoded pass of the matching variant.

    Raises:
        InvalidPassData: If the archive is malformed.
        UnsupportedVariant: If pass.json matches no supported variant.
        MissingRequiredField: If the variant cannot resolve a mandatory value.
    """
    files = unzip(data)
    pass_json = read_pass_json(files)
    pass_type = pass_type_for_archive(pass_json)
    content = pass_json[pass_type.variant.archive_key]

    front_content = [row for row in (_fields(content.get(bucket)) for bucket in FRONT_BUCKETS) if row]
    back_content = _fields(content.get(BACK_BUCKET))

    pass_ = pass_type(
        id=str(pass_json.get("serialNumber") or ""),
        type_id=str(pass_json.get("passTypeIdentifier") or ""),
        title=pass_json.get("logoText") or "",
        description=pass_json.get("description") or "",
        issuer=pass_json.get("organizationName") or settings.default_org_name,
        barcode=Barcode.from_archive(pass_json),
        background_color=Color.parse(pass_json.get("backgroundColor")),
        strings=read_strings(files),
        files=files,
    )
    pass_.logo = pass_.image("icon")

    hints = HintResolver(settings.hints, front_content, back_content, settings.empty_value)
    pass_.decode_archive(pass_json, hints)
    pass_.front_content = hints.front_content
    pass_.back_content = hints.back_content

    logger.info(
        "archive_decoded",
        variant=pass_.variant.name,
        serial_number=pass_.id,
        languages=sorted(pass_.strings),
        hinted_fields=len(hints.resolved),
    )
    return pass_
