"""
snapshot.py — Point-in-time view of one certificate store

A StoreSnapshot maps alias -> CertificateEntry for every trusted-certificate
entry of a store. It is built by walking the store's aliases once and
fingerprinting each certificate once; afterwards it is read-only and holds
no reference to the store it came from.

Entries that cannot take part in a comparison are left out and recorded as
SnapshotIssue values:
  - not_a_certificate: the alias names a private-key entry
  - encoding_error:    the stored certificate could not be read or encoded
"""

from __future__ import annotations
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional, Tuple

from cryptography import x509
from cryptography.x509.oid import NameOID

from .errors import EncodingError
from .fingerprint import certificate_fingerprint
from .stores import CertificateStore

logger = logging.getLogger(__name__)

ISSUE_NOT_A_CERTIFICATE = "not_a_certificate"
ISSUE_ENCODING_ERROR = "encoding_error"


@dataclass(frozen=True)
class CertificateEntry:
    """One trusted-certificate record of a store."""
    alias: str
    fingerprint: str
    common_name: str
    not_before: datetime
    not_after: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alias": self.alias,
            "fingerprint": self.fingerprint,
            "commonName": self.common_name,
            "notBefore": self.not_before.isoformat(),
            "notAfter": self.not_after.isoformat(),
        }


@dataclass(frozen=True)
class SnapshotIssue:
    """An alias that was left out of a snapshot, and why."""
    alias: str
    kind: str
    detail: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"alias": self.alias, "kind": self.kind, "detail": self.detail}


def common_name(cert: x509.Certificate) -> str:
    """Return the first CN of the subject in RFC 4514 order, or ``""``."""
    # RFC 4514 renders RDNs most-specific first, the reverse of DER order.
    for rdn in reversed(list(cert.subject.rdns)):
        for attribute in rdn:
            if attribute.oid == NameOID.COMMON_NAME:
                value = attribute.value
                return value if isinstance(value, str) else value.decode("utf-8", "replace")
    return ""


def make_entry(alias: str, cert: x509.Certificate) -> CertificateEntry:
    """Fingerprint ``cert`` and collect its descriptive fields.

    Raises:
        EncodingError: If the certificate cannot be encoded, or its subject
            or validity fields cannot be decoded.
    """
    fp = certificate_fingerprint(cert)
    # Subject and validity are decoded lazily and may fail after a successful load.
    try:
        cn = common_name(cert)
        not_before = cert.not_valid_before_utc
        not_after = cert.not_valid_after_utc
    except ValueError as exc:
        raise EncodingError(f"{alias}: {exc}") from exc
    return CertificateEntry(
        alias=alias,
        fingerprint=fp,
        common_name=cn,
        not_before=not_before,
        not_after=not_after,
    )


class StoreSnapshot(Mapping):
    """Immutable alias -> CertificateEntry mapping."""

    def __init__(
        self,
        entries: Optional[Mapping[str, CertificateEntry]] = None,
        issues: Tuple[SnapshotIssue, ...] = (),
        source: Optional[str] = None,
    ):
        self._entries = MappingProxyType(dict(entries or {}))
        self.issues = tuple(issues)
        self.source = source

    def __getitem__(self, alias: str) -> CertificateEntry:
        return self._entries[alias]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"StoreSnapshot(source={self.source!r}, entries={len(self)}, issues={len(self.issues)})"

    @classmethod
    def from_fingerprints(cls, fingerprints: Mapping[str, str], source: Optional[str] = None) -> "StoreSnapshot":
        """Build a snapshot from bare alias -> fingerprint pairs (no descriptive fields)."""
        epoch = datetime.fromtimestamp(0, tz=timezone.utc)
        return cls(
            {
                alias: CertificateEntry(alias, fp, "", epoch, epoch)
                for alias, fp in fingerprints.items()
            },
            source=source,
        )


def build_snapshot(store: CertificateStore, source: Optional[str] = None) -> StoreSnapshot:
    """Capture every trusted-certificate entry of ``store``.

    Args:
        store: Store adapter to read from.
        source: Label for reporting; defaults to the store's label.

    Returns:
        StoreSnapshot: Entries plus the issues for aliases that were left out.

    Raises:
        StoreAccessError: If the store itself cannot be read.
    """
    source = source or store.label
    entries: Dict[str, CertificateEntry] = {}
    issues = []

    for alias in store.aliases():
        try:
            if not store.is_certificate_entry(alias):
                logger.warning("Skipping %r in %s: not a trusted certificate entry", alias, source)
                issues.append(SnapshotIssue(alias, ISSUE_NOT_A_CERTIFICATE))
                continue
            cert = store.get_certificate(alias)
            if cert is None:
                raise EncodingError(f"{alias}: listed but no certificate returned")
            entries[alias] = make_entry(alias, cert)
        except EncodingError as err:
            logger.warning("Skipping %r in %s: %s", alias, source, err)
            issues.append(SnapshotIssue(alias, ISSUE_ENCODING_ERROR, err.context or err.message))

    issues.sort(key=lambda issue: issue.alias)
    return StoreSnapshot(entries, tuple(issues), source)
