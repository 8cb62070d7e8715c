"""Localization tables (`<lang>.lproj/pass.strings`).

Each table is a list of `"key" = "value";` lines. Keys are the default
language text, values the translation. Files may be UTF-8 or UTF-16 with a
byte order mark and may contain C-style comments.
"""

import re
from pathlib import PurePosixPath

from pass_converter.parsing import strip_comments

STRINGS_SUFFIX = ".lproj/pass.strings"

_ENTRY = re.compile(r'"((?:[^"\\]|\\.)*)"\s*=\s*"((?:[^"\\]|\\.)*)"\s*;')
_ESCAPE = re.compile(r'\\(U[0-9a-fA-F]{4}|u[0-9a-fA-F]{4}|.)', re.DOTALL)

_UNESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "'": "'"}
_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r"}


def language_for(entry_name: str) -> str | None:
    """Get the language of an archive entry if it is a localization table.

    Args:
        entry_name: Archive entry name, e.g. 'fr.lproj/pass.strings'.

    Returns:
        The language code, or None for other entries.
    """
    if not entry_name.endswith(STRINGS_SUFFIX):
        return None
    return PurePosixPath(entry_name).parent.stem


def entry_name_for(language: str) -> str:
    return f"{language}{STRINGS_SUFFIX}"


def decode(data: bytes) -> str:
    """Decode a strings file, honouring a UTF-16 byte order mark."""
    if data.startswith((b"\xff\xfe", b"\xfe\xff")):
        return data.decode("utf-16")
    return data.decode("utf-8-sig")


def _unescape(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        escaped = match.group(1)
        if len(escaped) == 5:
            return chr(int(escaped[1:], 16))
        return _UNESCAPES.get(escaped, escaped)

    return _ESCAPE.sub(replace, text)


def _escape(text: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in text)


def parse(data: bytes | str) -> dict[str, str]:
    """Parse a localization table.

    Args:
        data: Raw file bytes or decoded text.

    Returns:
        Mapping of default text to translated text, in file order.
    """
    text = decode(data) if isinstance(data, bytes) else data
    return {_unescape(key): _unescape(value) for key, value in _ENTRY.findall(strip_comments(text))}


def export(table: dict[str, str]) -> bytes:
    """Serialize a localization table as UTF-8."""
    lines = [f'"{_escape(key)}" = "{_escape(value)}";' for key, value in table.items()]
    return ("\n".join(lines) + "\n").encode("utf-8")
