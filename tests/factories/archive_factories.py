"""
Signed supplier archive factories.

Archives are built the way suppliers build them: an outer zip holding
envelope.zip and a SHA256withRSA signature of envelope.zip. Payloads are
randomized so tests cannot rely on specific content.
"""

import base64
import io
import os
import random
import zipfile
from typing import Dict, Optional

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa


def make_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def public_key_der_b64(private_key: rsa.RSAPrivateKey) -> str:
    """Public key as configured in PUBLIC_KEYS_JSON (base64 DER SubjectPublicKeyInfo)."""
    der = private_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(der).decode("ascii")


def public_key_pem(private_key: rsa.RSAPrivateKey) -> str:
    return private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def sign(private_key: rsa.RSAPrivateKey, data: bytes) -> bytes:
    return private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())


def make_zip(entries: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def make_envelope_content(size: Optional[int] = None) -> bytes:
    """Inner envelope.zip: a metafile plus a random document."""
    size = size or random.randint(64, 2048)
    return make_zip({
        "metafile.json": b'{"po_box": "12625", "jurisdiction": "BULKSCAN"}',
        "1111002.pdf": os.urandom(size),
    })


def make_signed_archive(private_key: rsa.RSAPrivateKey,
                        envelope_content: Optional[bytes] = None,
                        signature: Optional[bytes] = None,
                        extra_entries: Optional[Dict[str, bytes]] = None) -> bytes:
    """
    Outer archive. A given signature is used as-is, so tests can pass one
    made with another key.
    """
    envelope_content = envelope_content if envelope_content is not None else make_envelope_content()
    entries = {
        "envelope.zip": envelope_content,
        "signature": signature if signature is not None else sign(private_key, envelope_content),
    }
    entries.update(extra_entries or {})
    return make_zip(entries)


def flip_byte(data: bytes, index: int) -> bytes:
    mutable = bytearray(data)
    mutable[index] ^= 0xFF
    return bytes(mutable)
