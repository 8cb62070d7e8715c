"""Apple Wallet archive generation.

This module encodes a pass into a .pkpass file: pass.json, icon and logo
images, one pass.strings table per language, the manifest and, when
signing material is configured, the detached signature.
"""

import io
import typing as t
import zipfile

import httpx
import orjson
import structlog

from pass_converter.apple import strings as lproj
from pass_converter.apple.images import ICON_SIZES, generate_colored_icon, load_image, resize_image, to_png
from pass_converter.apple.signer import ArchiveSigner, ArchiveSignerError, create_manifest
from pass_converter.content import ContentField, flatten
from pass_converter.passes import Pass
from pass_converter.protocols import ImageResolver
from pass_converter.settings import Settings

logger = structlog.get_logger(__name__)

# Buckets filled from the front content when the variant has not seeded them
FILLED_BUCKETS = ("primaryFields", "secondaryFields", "auxiliaryFields")
BACK_BUCKET = "backFields"


class ArchiveGenerator:
    """Generates Apple Wallet .pkpass files from passes."""

    CONTENT_TYPE = "application/vnd.apple.pkpass"
    FILE_EXTENSION = "pkpass"

    def __init__(
        self,
        settings: Settings,
        signer: ArchiveSigner | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            settings: Converter settings.
            signer: The signer to use for creating signatures.
                   If not provided, one is created from the signing settings.
            http_client: Client used to download remote images.
        """
        self.settings = settings
        self.signer = signer or ArchiveSigner(settings.signing)
        self.http_client = http_client

    async def generate(self, pass_: Pass, image_resolver: ImageResolver | None = None) -> bytes:
        """Generate a .pkpass archive for a pass.

        Signing failures are logged and produce an unsigned archive, which a
        downstream signer can still complete.

        Args:
            pass_: The pass to encode. It is not modified.
            image_resolver: Resolves the icon reference to image bytes or a URL.

        Returns:
            The .pkpass file as bytes.
        """
        files: dict[str, bytes] = {"pass.json": self.generate_pass_json(pass_)}
        files.update(await self._generate_images(pass_, image_resolver))

        for language, table in pass_.strings.items():
            files[lproj.entry_name_for(language)] = lproj.export(table)

        manifest = create_manifest(files)
        files["manifest.json"] = manifest

        if self.signer.is_configured():
            try:
                self.signer.validate_configuration()
                files["signature"] = self.signer.sign_manifest(manifest)
            except ArchiveSignerError as e:
                logger.warning("archive_signing_failed", serial_number=pass_.id, error=str(e))
        else:
            logger.debug("archive_signing_skipped", serial_number=pass_.id)

        archive = create_pkpass_archive(files)

        logger.info(
            "archive_generated",
            variant=pass_.variant.name,
            serial_number=pass_.id,
            signed="signature" in files,
            size=len(archive),
        )
        return archive

    def generate_pass_json(self, pass_: Pass) -> bytes:
        """Generate the pass.json content.

        Args:
            pass_: The pass to serialize.

        Returns:
            pass.json content as bytes.
        """
        background = pass_.background_color
        data: dict[str, t.Any] = {
            "formatVersion": 1,
            "passTypeIdentifier": self.settings.signing.pass_type_id or pass_.type_id,
            "teamIdentifier": self.settings.signing.team_id or None,
            "serialNumber": pass_.id,
            "webServiceURL": pass_.web_service_url,
            "authenticationToken": pass_.authentication_token,
            "logoText": pass_.title,
            "description": pass_.description or pass_.title,
            "organizationName": pass_.issuer_name(self.settings),
            "foregroundColor": background.contrasting().to_rgb_string(),
            "backgroundColor": background.to_rgb_string(),
            "barcodes": [pass_.barcode.to_archive()] if pass_.barcode else None,
            pass_.variant.archive_key: build_content(pass_),
        }
        data = {key: value for key, value in data.items() if value is not None}
        return orjson.dumps(data, option=orjson.OPT_INDENT_2)

    async def _generate_images(self, pass_: Pass, image_resolver: ImageResolver | None) -> dict[str, bytes]:
        """Generate the icon and logo images.

        The pass logo (or the configured default icon) is resolved once and
        used for every slot. When nothing can be resolved a plain icon in the
        background colour is generated, since the icon is mandatory.
        """
        source = pass_.logo or self.settings.default_icon
        icon: bytes | None = None
        if source is not None:
            resolved = await image_resolver(source) if image_resolver else source
            icon = await load_image(resolved, self.http_client)

        if icon is None:
            logger.info("archive_icon_generated", serial_number=pass_.id)
            color = pass_.background_color.as_tuple()
            return {filename: generate_colored_icon(size, color) for filename, size in ICON_SIZES.items()}

        png = to_png(icon)
        return {
            "icon.png": resize_image(png, ICON_SIZES["icon.png"]),
            "icon@2x.png": png,
            "logo@2x.png": png,
        }


def build_content(pass_: Pass) -> dict[str, t.Any]:
    """Build the pass.json content buckets for a pass.

    Buckets seeded by the variant are kept. The remaining primary, secondary
    and auxiliary buckets take one front row each, in order; back fields
    default to the back content followed by any front rows left over.
    """
    content = pass_.archive_content()
    rows = iter(pass_.front_content)
    for bucket in FILLED_BUCKETS:
        if bucket not in content:
            row = next(rows, None)
            if row:
                content[bucket] = row
    leftover = flatten(rows)
    content.setdefault(BACK_BUCKET, [*pass_.back_content, *leftover])

    return {key: _serialize(value) for key, value in content.items()}


def _serialize(value: t.Any) -> t.Any:
    if isinstance(value, list):
        return [item.to_archive() if isinstance(item, ContentField) else item for item in value]
    return value


def create_pkpass_archive(files: dict[str, bytes]) -> bytes:
    """Create the .pkpass ZIP archive.

    Args:
        files: Dictionary mapping filename to content.

    Returns:
        ZIP archive as bytes.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for filename, content in files.items():
            zf.writestr(filename, content)
    return buffer.getvalue()
