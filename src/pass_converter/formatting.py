"""Formatting utilities shared by both wallet formats.

This module handles colour parsing and serialization, date parsing, and
locale-aware date/time formatting for pass content.
"""

from dataclasses import dataclass
from datetime import datetime

import structlog
from babel import Locale, UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.dates import format_time as babel_format_time
from dateutil import parser as date_parser
from PIL import ImageColor

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Color:
    """An opaque RGB colour."""

    red: int
    green: int
    blue: int

    @classmethod
    def parse(cls, value: str | None, default: "Color | None" = None) -> "Color":
        """Parse a CSS-style colour string.

        Accepts hex (`#rgb`, `#rrggbb`), `rgb(r, g, b)`, `hsl(...)` and colour names.

        Args:
            value: The colour string to parse.
            default: Colour to use when the value is missing or invalid. Black if not given.

        Returns:
            The parsed colour.
        """
        fallback = default or BLACK
        if not value:
            return fallback
        try:
            rgb = ImageColor.getrgb(value.strip())
        except ValueError:
            logger.warning("color_parse_failed", value=value)
            return fallback
        return cls(rgb[0], rgb[1], rgb[2])

    @property
    def brightness(self) -> float:
        """Perceived brightness (0-255) using the W3C formula."""
        return (self.red * 299 + self.green * 587 + self.blue * 114) / 1000

    def is_dark(self) -> bool:
        """Check if text on this background should be light."""
        return self.brightness < 128

    def contrasting(self) -> "Color":
        """Get the foreground colour to use on this background.

        Returns:
            White on dark backgrounds, black otherwise.
        """
        return WHITE if self.is_dark() else BLACK

    def to_rgb_string(self) -> str:
        """Format as `rgb(r, g, b)`, the form Apple Wallet expects."""
        return f"rgb({self.red}, {self.green}, {self.blue})"

    def to_hex_string(self) -> str:
        """Format as `#rrggbb`, the form Google Wallet expects."""
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.red, self.green, self.blue)


BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)


# Apple date styles and their Babel format names
DATE_STYLES: dict[str, str] = {
    "PKDateStyleShort": "short",
    "PKDateStyleMedium": "medium",
    "PKDateStyleLong": "long",
    "PKDateStyleFull": "full",
}


def style_format(style: str | None) -> str | None:
    """Map an Apple date/time style to a Babel format name.

    Args:
        style: A `PKDateStyle*` value, or None.

    Returns:
        The Babel format name, or None when the style hides that part.
    """
    if not style or style == "PKDateStyleNone":
        return None
    return DATE_STYLES.get(style, "medium")


def parse_datetime(text: str | None) -> datetime | None:
    """Parse a free-form date/time string.

    Args:
        text: ISO 8601 or human-written date/time text.

    Returns:
        The parsed datetime, or None if the text holds no recognisable date.
    """
    if not text or not text.strip():
        return None
    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError):
        return None


def get_locale(language: str, fallback: str = "en") -> Locale:
    """Resolve a language code (`fr`, `en-US`, `pt_BR`) to a Babel locale.

    Unknown or malformed codes fall back to the given fallback language.
    """
    try:
        return Locale.parse(language.replace("-", "_"))
    except (ValueError, TypeError, UnknownLocaleError):
        return Locale.parse(fallback)


def format_date(dt: datetime, language: str, style: str = "medium") -> str:
    """Format the date part of a datetime for a language.

    Args:
        dt: The datetime to format.
        language: Language code of the reader.
        style: Babel format name (short, medium, long, full).

    Returns:
        The localized date string.
    """
    return babel_format_date(dt, format=style, locale=get_locale(language))


def format_time(dt: datetime, language: str, style: str = "medium") -> str:
    """Format the time part of a datetime for a language, keeping its wall-clock time."""
    return babel_format_time(dt, format=style, locale=get_locale(language))


def format_date_time(value: str, language: str, date_style: str | None, time_style: str | None) -> str:
    """Format an Apple date field value for a language.

    Apple date fields carry an ISO 8601 value plus separate date and time
    styles; either part may be hidden.

    Args:
        value: The field value.
        language: Language code of the reader.
        date_style: The field's `dateStyle`.
        time_style: The field's `timeStyle`.

    Returns:
        The localized text, or the raw value if it cannot be parsed as a date.
    """
    dt = parse_datetime(value)
    if dt is None:
        return value

    parts: list[str] = []
    if date_format := style_format(date_style):
        parts.append(format_date(dt, language, date_format))
    if time_format := style_format(time_style):
        parts.append(format_time(dt, language, time_format))
    return " ".join(parts)


def format_local_iso(dt: datetime) -> str:
    """Format a datetime as local ISO 8601 without offset or fraction.

    Returns:
        String like "2025-01-15T14:30:00".
    """
    return dt.replace(tzinfo=None, microsecond=0).isoformat()
