"""Lenient parsing helpers for hand-edited JSON and strings files.

Pass descriptions found in the wild are frequently hand written and carry
`//` comments or trailing commas that strict JSON parsers reject.
"""

import re
import typing as t

import orjson

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def strip_comments(text: str) -> str:
    """Remove `//` line comments and `/* */` block comments outside of strings.

    Args:
        text: Source text.

    Returns:
        The text without comments. String literals are left untouched.
    """
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False

    while i < length:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
        elif char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
        else:
            out.append(char)
            i += 1

    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    """Remove commas directly before a closing brace or bracket, outside of strings."""
    parts = re.split(r'("(?:[^"\\]|\\.)*")', text)
    # Odd indexes are string literals captured by the split
    return "".join(part if index % 2 else _TRAILING_COMMA.sub(r"\1", part) for index, part in enumerate(parts))


def loads_lenient(data: bytes | str) -> t.Any:
    """Parse JSON that may contain comments and trailing commas.

    Args:
        data: Raw JSON bytes or text. A UTF-8 byte order mark is ignored.

    Returns:
        The decoded JSON value.

    Raises:
        orjson.JSONDecodeError: If the cleaned text is still not valid JSON.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8-sig")
    text = strip_trailing_commas(strip_comments(data.strip().lstrip("\ufeff")))
    return orjson.loads(text)
