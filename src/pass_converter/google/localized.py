"""LocalizedString handling for Google Wallet payloads.

Google Wallet represents translatable text as a default value plus a list
of per-language overrides:

    {"defaultValue": {"language": "en", "value": "Gate"},
     "translatedValues": [{"language": "fr", "value": "Porte"}]}

Passes keep translations in a table keyed by the default text instead, so
reading reconciles every LocalizedString into that table and writing looks
each value up in it again.
"""

import hashlib
import typing as t

import structlog

from pass_converter.content import ContentField
from pass_converter.formatting import format_date_time, parse_datetime
from pass_converter.protocols import ImageResolver, ImageSource
from pass_converter.settings import Settings

if t.TYPE_CHECKING:
    from pass_converter.passes.base import Pass

logger = structlog.get_logger(__name__)


def localized_string(default: dict[str, str], translated: list[dict[str, str]]) -> dict[str, t.Any]:
    result: dict[str, t.Any] = {"defaultValue": default}
    if translated:
        result["translatedValues"] = translated
    return result


def image_uri(image: dict[str, t.Any] | None) -> str | None:
    """Get the URI of a Google Wallet Image resource."""
    if not image:
        return None
    uri = (image.get("sourceUri") or {}).get("uri")
    return uri or None


class LocalizedReader:
    """Reads localized text out of a payload, collecting translations as it goes."""

    def __init__(self, settings: Settings, strings: dict[str, dict[str, str]] | None = None) -> None:
        self.settings = settings
        self.language = settings.default_language
        self.strings: dict[str, dict[str, str]] = strings if strings is not None else {}

    def text(self, localized: dict[str, t.Any] | None) -> str | None:
        """Reconcile a LocalizedString into the translation table.

        Args:
            localized: The LocalizedString resource.

        Returns:
            The default value, or None if the resource has none.
        """
        if not localized or not isinstance(localized.get("defaultValue"), dict):
            return None

        default = localized["defaultValue"]
        default_text = str(default.get("value", ""))
        for entry in [default, *(localized.get("translatedValues") or [])]:
            language = entry.get("language") or self.language
            self.strings.setdefault(language, {})[default_text] = str(entry.get("value", ""))
        return default_text

    def field(self, resource: dict[str, t.Any], name: str) -> str | None:
        """Read a text attribute that may be plain or localized.

        Prefers `localized<Name>` over `<name>`, matching the Google Wallet
        convention of offering both.

        Args:
            resource: The class or object dictionary.
            name: The plain attribute name, e.g. 'title'.

        Returns:
            The default text, or None if neither attribute is set.
        """
        localized_name = f"localized{name[0].upper()}{name[1:]}"
        value = resource.get(localized_name) or resource.get(name)
        if isinstance(value, dict):
            return self.text(value)
        return value


class PayloadWriter:
    """Writes localized text and image references for one pass."""

    def __init__(self, pass_: "Pass", settings: Settings, image_resolver: ImageResolver | None = None) -> None:
        self.settings = settings
        self.strings = pass_.strings
        self.default_language = pass_.default_language(settings)
        self._image_resolver = image_resolver
        self._image_cache: dict[str, str | None] = {}

    def _translation(self, language: str, value: str) -> dict[str, str]:
        text = self.strings.get(language, {}).get(value) or value
        if not text.strip():
            text = self.settings.empty_value
        return {"language": language, "value": text}

    def localized(self, value: str | None) -> dict[str, t.Any]:
        """Build a LocalizedString for a text value.

        Overrides equal to the default value are left out, blank values are
        replaced with the configured empty value.
        """
        text = value or ""
        default = self._translation(self.default_language, text)
        translated = [
            entry
            for language in self.strings
            if (entry := self._translation(language, text))["value"] != default["value"]
        ]
        return localized_string(default, translated)

    def localized_field(self, content: ContentField) -> dict[str, t.Any]:
        """Build a LocalizedString for a content field value.

        Date/time fields are re-formatted idiomatically for every language
        the pass is translated into.
        """
        if not content.is_date_time or parse_datetime(content.value) is None:
            return self.localized(content.value)

        def formatted(language: str) -> dict[str, str]:
            return {
                "language": language,
                "value": format_date_time(content.value, language, content.date_style, content.time_style),
            }

        default = formatted(self.default_language)
        translated = [
            entry for language in self.strings if (entry := formatted(language))["value"] != default["value"]
        ]
        return localized_string(default, translated)

    async def image(self, source: ImageSource | None) -> dict[str, t.Any] | None:
        """Resolve an image to a Google Wallet Image resource.

        The resolver is called at most once per distinct image.

        Args:
            source: Image bytes or URL from the pass.

        Returns:
            `{"sourceUri": {"uri": ...}}`, or None when the image cannot be hosted.
        """
        if source is None or self._image_resolver is None:
            return None

        cache_key = source if isinstance(source, str) else hashlib.sha1(source).hexdigest()
        if cache_key not in self._image_cache:
            resolved = await self._image_resolver(source)
            if resolved is not None and not isinstance(resolved, str):
                logger.warning("image_resolver_returned_bytes", expected="uri")
                resolved = None
            self._image_cache[cache_key] = resolved or None

        uri = self._image_cache[cache_key]
        return {"sourceUri": {"uri": uri}} if uri else None
