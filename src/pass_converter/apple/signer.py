"""Apple Wallet archive signing using PKCS#7.

An installable .pkpass archive requires a PKCS#7 detached signature of its
manifest.json, signed with the Pass Type ID certificate and including the
Apple WWDR (Worldwide Developer Relations) intermediate certificate.

NOTE: Apple Wallet requires SHA-1 for PKCS#7 signatures. Since the Python
cryptography library doesn't support SHA-1 for PKCS#7, we use OpenSSL via
subprocess for signing.
"""

import hashlib
import subprocess
import tempfile
from pathlib import Path
from typing import Any

import orjson
import structlog
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from pass_converter.settings import SigningMaterial

logger = structlog.get_logger(__name__)

UNSIGNED_ENTRIES = ("manifest.json", "signature")


class ArchiveSignerError(Exception):
    """Raised when archive signing fails."""

    pass


def create_manifest(files: dict[str, bytes]) -> bytes:
    """Create the manifest.json content for an archive.

    The manifest contains SHA-1 hashes of all files in the archive.

    Args:
        files: Dictionary mapping archive entry names to their content bytes.

    Returns:
        The manifest.json content as bytes.
    """
    manifest = {
        filename: hashlib.sha1(content).hexdigest()
        for filename, content in files.items()
        if filename not in UNSIGNED_ENTRIES
    }
    return orjson.dumps(manifest, option=orjson.OPT_INDENT_2)


class ArchiveSigner:
    """Signs archive manifests with the configured Pass Type ID certificate."""

    def __init__(self, material: SigningMaterial) -> None:
        """Initialize the signer.

        Args:
            material: Certificate, key and identifier configuration.
        """
        self.material = material

        self._certificate: x509.Certificate | None = None
        self._private_key: Any = None
        self._wwdr_certificate: x509.Certificate | None = None

    def _load_certificate(self, path: str) -> x509.Certificate:
        """Load an X.509 certificate from a PEM file.

        Raises:
            ArchiveSignerError: If the certificate cannot be loaded.
        """
        try:
            return x509.load_pem_x509_certificate(Path(path).read_bytes())
        except FileNotFoundError:
            raise ArchiveSignerError(f"Certificate not found: {path}")
        except ValueError as e:
            raise ArchiveSignerError(f"Failed to load certificate {path}: {e}")

    def _load_private_key(self, path: str, password: str | None = None) -> Any:
        """Load a private key from a PEM file.

        Raises:
            ArchiveSignerError: If the key cannot be loaded.
        """
        try:
            password_bytes = password.encode() if password else None
            return serialization.load_pem_private_key(Path(path).read_bytes(), password=password_bytes)
        except FileNotFoundError:
            raise ArchiveSignerError(f"Private key not found: {path}")
        except (ValueError, TypeError) as e:
            raise ArchiveSignerError(f"Failed to load private key {path}: {e}")

    @property
    def certificate(self) -> x509.Certificate:
        """Get the Pass Type ID certificate, loading if necessary."""
        if self._certificate is None:
            self._certificate = self._load_certificate(self.material.cert_path)
        return self._certificate

    @property
    def private_key(self) -> Any:
        """Get the private key, loading if necessary."""
        if self._private_key is None:
            self._private_key = self._load_private_key(self.material.key_path, self.material.key_password)
        return self._private_key

    @property
    def wwdr_certificate(self) -> x509.Certificate:
        """Get the Apple WWDR intermediate certificate, loading if necessary."""
        if self._wwdr_certificate is None:
            self._wwdr_certificate = self._load_certificate(self.material.wwdr_cert_path)
        return self._wwdr_certificate

    def is_configured(self) -> bool:
        return self.material.is_complete()

    def validate_configuration(self) -> None:
        """Validate that certificates and key can be loaded.

        Raises:
            ArchiveSignerError: If signing is not configured or any file cannot be loaded.
        """
        if not self.is_configured():
            raise ArchiveSignerError(
                "Archive signing is not configured. Set APPLE_WALLET_CERT_PATH, "
                "APPLE_WALLET_KEY_PATH, APPLE_WALLET_WWDR_CERT_PATH, APPLE_WALLET_PASS_TYPE_ID "
                "and APPLE_WALLET_TEAM_ID."
            )

        _ = self.certificate
        _ = self.private_key
        _ = self.wwdr_certificate

        logger.info("archive_signer_validated")

    def sign_manifest(self, manifest_data: bytes) -> bytes:
        """Create a PKCS#7 detached signature of the manifest.

        Args:
            manifest_data: The manifest.json content to sign.

        Returns:
            The PKCS#7 signature in DER format.

        Raises:
            ArchiveSignerError: If signing fails.
        """
        with (
            tempfile.NamedTemporaryFile(mode="wb", suffix=".json", delete=False) as manifest_file,
            tempfile.NamedTemporaryFile(mode="wb", suffix=".sig", delete=False) as sig_file,
        ):
            manifest_path = manifest_file.name
            sig_path = sig_file.name
            manifest_file.write(manifest_data)

        try:
            # openssl smime -sign -signer cert.pem -inkey key.pem -certfile wwdr.pem
            #   -in manifest.json -out signature -outform DER -binary
            cmd = [
                "openssl",
                "smime",
                "-sign",
                "-signer",
                self.material.cert_path,
                "-inkey",
                self.material.key_path,
                "-certfile",
                self.material.wwdr_cert_path,
                "-in",
                manifest_path,
                "-out",
                sig_path,
                "-outform",
                "DER",
                "-binary",
            ]

            if self.material.key_password:
                cmd.extend(["-passin", f"pass:{self.material.key_password}"])

            try:
                result = subprocess.run(cmd, capture_output=True, text=True, check=False)
            except OSError as e:
                logger.error("manifest_signing_failed", error=str(e))
                raise ArchiveSignerError(f"Failed to run OpenSSL: {e}")

            if result.returncode != 0:
                logger.error(
                    "openssl_signing_failed",
                    returncode=result.returncode,
                    stderr=result.stderr,
                )
                raise ArchiveSignerError(f"OpenSSL signing failed: {result.stderr}")

            signature = Path(sig_path).read_bytes()

            logger.debug(
                "manifest_signed",
                manifest_size=len(manifest_data),
                signature_size=len(signature),
            )

            return signature

        finally:
            Path(manifest_path).unlink(missing_ok=True)
            Path(sig_path).unlink(missing_ok=True)
