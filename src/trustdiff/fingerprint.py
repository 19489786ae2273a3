"""
fingerprint.py — Certificate content fingerprints

A fingerprint is the lowercase hex SHA-256 digest of a certificate's DER
encoding. DER is the distinguished encoding of X.509, so the same logical
certificate always produces the same bytes and therefore the same
fingerprint, whether it was read from PEM, DER or a PKCS#12 bag.

Fingerprints are an equality proxy for comparing store contents. They are
not used for any trust decision.
"""

from __future__ import annotations
import hashlib

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from .errors import EncodingError

FINGERPRINT_HEX_LENGTH = 64


def fingerprint(data: bytes) -> str:
    """Return lowercase hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def certificate_der(cert: x509.Certificate) -> bytes:
    """Return the canonical DER bytes of ``cert``.

    Raises:
        EncodingError: If the object cannot be encoded as a certificate.
    """
    try:
        return cert.public_bytes(Encoding.DER)
    except (AttributeError, TypeError, ValueError) as exc:
        raise EncodingError(f"{type(cert).__name__}: {exc}") from exc


def certificate_fingerprint(cert: x509.Certificate) -> str:
    """Return the SHA-256 fingerprint of the DER encoding of ``cert``."""
    return fingerprint(certificate_der(cert))
