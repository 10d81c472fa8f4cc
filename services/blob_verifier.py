# ============================================================================
# BLOB VERIFIER
# ============================================================================
# STATUS: Service - Signed archive verification (pure)
# PURPOSE: Check archive structure and SHA256withRSA signature of envelope.zip
# EXPORTS: verify, load_public_key, VerificationResult
# DEPENDENCIES: cryptography
# ============================================================================
"""
Blob Verifier.

A supplier upload is a zip archive with exactly two entries:

    envelope.zip   the payload that gets dispatched
    signature      RSA PKCS#1 v1.5 signature of envelope.zip using SHA-256

verify() is a pure function of (bytes, keys): no I/O, no logging of
content, and equal input gives an equal result.

Public keys are configured as base64 DER (X.509 SubjectPublicKeyInfo, the
output of `openssl rsa -pubout -outform DER | base64`) or as PEM text.

Exports:
    verify: Verify archive bytes against a list of public keys
    load_public_key: Decode a configured key
    VerificationResult: Outcome of verification
"""

import base64
import binascii
import io
import zipfile
from dataclasses import dataclass
from typing import Optional, Sequence

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from core.models import ErrorCode
from exceptions import ConfigurationError, InvalidZipArchiveError

ENVELOPE_ENTRY = "envelope.zip"
SIGNATURE_ENTRY = "signature"

INVALID_ZIP_ARCHIVE_MESSAGE = "Invalid zip archive"
INVALID_SIGNATURE_MESSAGE = "Invalid signature"


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of verify().

    envelope_content is the inner envelope.zip bytes when ok, else None.
    """
    ok: bool
    error_code: Optional[ErrorCode] = None
    error_description: Optional[str] = None
    envelope_content: Optional[bytes] = None

    @classmethod
    def success(cls, envelope_content: bytes) -> "VerificationResult":
        return cls(ok=True, envelope_content=envelope_content)

    @classmethod
    def error(cls, error_code: ErrorCode, description: str) -> "VerificationResult":
        return cls(ok=False, error_code=error_code, error_description=description)


def load_public_key(value: str) -> rsa.RSAPublicKey:
    """
    Decode a configured public key.

    Args:
        value: base64 DER SubjectPublicKeyInfo, or PEM text

    Raises:
        ConfigurationError: Value is not an RSA public key
    """
    try:
        if "-----BEGIN" in value:
            key = serialization.load_pem_public_key(value.encode("ascii"))
        else:
            key = serialization.load_der_public_key(base64.b64decode(value, validate=True))
    except (ValueError, binascii.Error, UnicodeEncodeError) as e:
        raise ConfigurationError(f"Invalid public key: {e}") from e

    if not isinstance(key, rsa.RSAPublicKey):
        raise ConfigurationError(f"Public key is not RSA: {type(key).__name__}")
    return key


def _extract_entries(content: bytes) -> dict:
    """
    Read the envelope and signature entries into memory.

    Entry names are checked from the central directory before anything is
    decompressed.

    Raises:
        InvalidZipArchiveError: Not a readable zip, or unexpected entry names
    """
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            names = [info.filename for info in archive.infolist()]
            if sorted(names) != sorted([ENVELOPE_ENTRY, SIGNATURE_ENTRY]):
                raise InvalidZipArchiveError(
                    f"Zip entries do not match expected file names. Actual names = {sorted(names)}"
                )
            return {name: archive.read(name) for name in (ENVELOPE_ENTRY, SIGNATURE_ENTRY)}
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError,
            NotImplementedError, RuntimeError) as e:
        raise InvalidZipArchiveError(f"Error extracting zip entries: {e}") from e


def _signature_matches(key: rsa.RSAPublicKey, data: bytes, signature: bytes) -> bool:
    try:
        key.verify(signature, data, padding.PKCS1v15(), hashes.SHA256())
        return True
    except InvalidSignature:
        return False


def verify(content: bytes, public_keys: Sequence[rsa.RSAPublicKey]) -> VerificationResult:
    """
    Verify a signed supplier archive.

    Args:
        content: Raw blob bytes
        public_keys: Keys accepted for the blob's container; any match passes

    Returns:
        VerificationResult. ok with envelope_content, or
        zip-processing-failure / signature-verification-failure.
    """
    try:
        entries = _extract_entries(content)
    except InvalidZipArchiveError:
        return VerificationResult.error(ErrorCode.ZIP_PROCESSING_FAILURE, INVALID_ZIP_ARCHIVE_MESSAGE)

    envelope_content = entries[ENVELOPE_ENTRY]
    signature = entries[SIGNATURE_ENTRY]

    if any(_signature_matches(key, envelope_content, signature) for key in public_keys):
        return VerificationResult.success(envelope_content)

    return VerificationResult.error(ErrorCode.SIGNATURE_VERIFICATION_FAILURE, INVALID_SIGNATURE_MESSAGE)


__all__ = ['verify', 'load_public_key', 'VerificationResult', 'ENVELOPE_ENTRY', 'SIGNATURE_ENTRY']
