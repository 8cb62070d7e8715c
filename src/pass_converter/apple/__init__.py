"""Apple Wallet archive components."""

from pass_converter.apple.generator import ArchiveGenerator
from pass_converter.apple.reader import read_archive
from pass_converter.apple.signer import ArchiveSigner

__all__ = [
    "ArchiveGenerator",
    "ArchiveSigner",
    "read_archive",
]
