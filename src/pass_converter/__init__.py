"""Convert digital passes between Apple Wallet and Google Wallet."""

from pass_converter.observability import configure_logging
from pass_converter.service import IssuedArchive, PassConverter, detect_format
from pass_converter.settings import Settings

__all__ = [
    "IssuedArchive",
    "PassConverter",
    "Settings",
    "configure_logging",
    "detect_format",
]
