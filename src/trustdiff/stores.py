"""
stores.py — Certificate store adapters

A store is a named collection of entries addressed by alias. Trusted
certificate entries carry one X.509 certificate. Private-key entries carry a
key and its certificate; they can be looked up and copied from, but they do
not take part in snapshot comparison.

Adapters:
  MemoryStore        dict-backed store, used for in-process work and tests
  PemDirectoryStore  one ``<alias>.pem`` / ``.crt`` / ``.cer`` / ``.der`` file per entry
  Pkcs12Store        password-protected PKCS#12 truststore (friendly name = alias)

``open_store(path, password)`` picks the adapter from the path.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from cryptography import x509
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    pkcs12,
)

from .errors import EncodingError, StoreAccessError, StorePersistError
from .fingerprint import certificate_fingerprint

logger = logging.getLogger(__name__)

PEM_SUFFIXES = (".pem", ".crt", ".cer", ".der")
_PRIVATE_KEY_MARKER = b"PRIVATE KEY-----"


class CertificateStore(ABC):
    """Alias-addressed certificate store used by the snapshot builder and merger."""

    label: str = "store"

    @abstractmethod
    def aliases(self) -> List[str]:
        """Return every alias in the store. Order is not significant."""

    @abstractmethod
    def contains_alias(self, alias: str) -> bool:
        ...

    @abstractmethod
    def is_certificate_entry(self, alias: str) -> bool:
        """True for trusted-certificate entries, False for key entries or unknown aliases.

        Raises:
            EncodingError: If the entry cannot be read.
        """

    @abstractmethod
    def get_certificate(self, alias: str) -> Optional[x509.Certificate]:
        """Return the certificate stored under ``alias``, or None if absent.

        For a private-key entry this is the entry's own certificate.

        Raises:
            EncodingError: If the stored bytes are not a readable certificate.
        """

    @abstractmethod
    def set_certificate(self, alias: str, cert: x509.Certificate) -> None:
        """Store ``cert`` as a trusted-certificate entry under ``alias``."""

    @abstractmethod
    def save(self) -> None:
        """Write the store back to its medium.

        Raises:
            StorePersistError: If the store cannot be written.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label!r})"


class MemoryStore(CertificateStore):
    """Dict-backed store. ``save()`` only counts how often it was asked to persist."""

    def __init__(
        self,
        certificates: Optional[Dict[str, x509.Certificate]] = None,
        key_entries: Optional[Dict[str, x509.Certificate]] = None,
        label: str = "memory",
    ):
        self.label = label
        self._certificates: Dict[str, x509.Certificate] = dict(certificates or {})
        self._key_entries: Dict[str, x509.Certificate] = dict(key_entries or {})
        self.save_count = 0

    def aliases(self) -> List[str]:
        return list(self._certificates) + list(self._key_entries)

    def contains_alias(self, alias: str) -> bool:
        return alias in self._certificates or alias in self._key_entries

    def is_certificate_entry(self, alias: str) -> bool:
        return alias in self._certificates

    def get_certificate(self, alias: str) -> Optional[x509.Certificate]:
        if alias in self._certificates:
            return self._certificates[alias]
        return self._key_entries.get(alias)

    def set_certificate(self, alias: str, cert: x509.Certificate) -> None:
        self._key_entries.pop(alias, None)
        self._certificates[alias] = cert

    def save(self) -> None:
        self.save_count += 1


def _load_certificate_bytes(data: bytes, where: str) -> x509.Certificate:
    try:
        if b"-----BEGIN" in data:
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except ValueError as exc:
        raise EncodingError(f"{where}: {exc}") from exc


class PemDirectoryStore(CertificateStore):
    """A directory holding one certificate file per alias.

    The alias is the file name without its suffix. A file that also contains
    a PEM private key block is treated as a private-key entry. New entries
    are staged in memory and written as ``<alias>.pem`` by ``save()``.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.label = str(self.path)
        if not self.path.is_dir():
            raise StoreAccessError(f"{self.path} is not a directory")

        self._files: Dict[str, Path] = {}
        self._pending: Dict[str, x509.Certificate] = {}
        try:
            candidates = sorted(self.path.iterdir())
        except OSError as exc:
            raise StoreAccessError(f"{self.path}: {exc}") from exc

        for candidate in candidates:
            if not candidate.is_file() or candidate.suffix.lower() not in PEM_SUFFIXES:
                continue
            alias = candidate.stem
            if alias in self._files:
                logger.warning(
                    "Ignoring %s: alias %r already provided by %s",
                    candidate, alias, self._files[alias].name,
                )
                continue
            self._files[alias] = candidate
        logger.debug("Loaded %d entries from %s", len(self._files), self.path)

    def _read(self, alias: str) -> bytes:
        try:
            return self._files[alias].read_bytes()
        except OSError as exc:
            # The directory itself opened; a single unreadable file is an entry problem.
            raise EncodingError(f"{self._files[alias]}: {exc}") from exc

    def aliases(self) -> List[str]:
        return list(self._files) + [a for a in self._pending if a not in self._files]

    def contains_alias(self, alias: str) -> bool:
        return alias in self._files or alias in self._pending

    def is_certificate_entry(self, alias: str) -> bool:
        if alias in self._pending:
            return True
        if alias not in self._files:
            return False
        return _PRIVATE_KEY_MARKER not in self._read(alias)

    def get_certificate(self, alias: str) -> Optional[x509.Certificate]:
        if alias in self._pending:
            return self._pending[alias]
        if alias not in self._files:
            return None
        return _load_certificate_bytes(self._read(alias), str(self._files[alias]))

    def set_certificate(self, alias: str, cert: x509.Certificate) -> None:
        if not alias or alias in (".", "..") or any(c in alias for c in ("/", "\\", "\x00")):
            raise ValueError(f"Alias {alias!r} cannot be used as a file name")
        self._pending[alias] = cert

    def save(self) -> None:
        for alias in sorted(self._pending):
            target = self.path / f"{alias}.pem"
            try:
                target.write_bytes(self._pending[alias].public_bytes(Encoding.PEM))
            except (OSError, ValueError) as exc:
                raise StorePersistError(f"{target}: {exc}") from exc
            self._files[alias] = target
        logger.info("Wrote %d new entries to %s", len(self._pending), self.path)
        self._pending.clear()


def _friendly_alias(friendly_name: Optional[bytes], cert: x509.Certificate) -> str:
    if friendly_name:
        return friendly_name.decode("utf-8")
    # Bags without a friendly name are addressed by their content.
    return certificate_fingerprint(cert)


class Pkcs12Store(CertificateStore):
    """A PKCS#12 truststore such as a modern Java ``cacerts`` file.

    Trusted certificates are addressed by their bag friendly name. At most
    one private-key entry is supported; it is addressed by the friendly name
    of its certificate and kept as-is on ``save()``.
    """

    def __init__(self, path: str | Path, password: Optional[str] = None):
        self.path = Path(path)
        self.label = str(self.path)
        self._password = password.encode("utf-8") if password else None

        try:
            data = self.path.read_bytes()
        except OSError as exc:
            raise StoreAccessError(f"{self.path}: {exc}") from exc
        try:
            bundle = pkcs12.load_pkcs12(data, self._password)
        except ValueError as exc:
            raise StoreAccessError(
                f"{self.path}: not a PKCS#12 store or wrong password ({exc})"
            ) from exc

        self._key = bundle.key
        self._key_cert: Optional[x509.Certificate] = None
        self._key_alias: Optional[str] = None
        if bundle.cert is not None:
            self._key_cert = bundle.cert.certificate
            self._key_alias = _friendly_alias(bundle.cert.friendly_name, self._key_cert)

        self._certificates: Dict[str, x509.Certificate] = {}
        for bag in bundle.additional_certs:
            alias = _friendly_alias(bag.friendly_name, bag.certificate)
            if alias in self._certificates or alias == self._key_alias:
                logger.warning("Duplicate alias %r in %s; keeping the first entry", alias, self.path)
                continue
            self._certificates[alias] = bag.certificate
        logger.debug("Loaded %d entries from %s", len(self.aliases()), self.path)

    def aliases(self) -> List[str]:
        aliases = list(self._certificates)
        if self._key_alias is not None:
            aliases.append(self._key_alias)
        return aliases

    def contains_alias(self, alias: str) -> bool:
        return alias in self._certificates or alias == self._key_alias

    def is_certificate_entry(self, alias: str) -> bool:
        return alias in self._certificates

    def get_certificate(self, alias: str) -> Optional[x509.Certificate]:
        if alias in self._certificates:
            return self._certificates[alias]
        if alias == self._key_alias:
            return self._key_cert
        return None

    def set_certificate(self, alias: str, cert: x509.Certificate) -> None:
        self._certificates[alias] = cert

    def save(self) -> None:
        cas = [
            pkcs12.PKCS12Certificate(self._certificates[alias], alias.encode("utf-8"))
            for alias in sorted(self._certificates)
        ]
        name = self._key_alias.encode("utf-8") if self._key_alias else None
        encryption = BestAvailableEncryption(self._password) if self._password else NoEncryption()
        try:
            data = pkcs12.serialize_key_and_certificates(
                name, self._key, self._key_cert, cas or None, encryption
            )
            self.path.write_bytes(data)
        except (OSError, TypeError, ValueError) as exc:
            raise StorePersistError(f"{self.path}: {exc}") from exc
        logger.info("Saved %d entries to %s", len(self.aliases()), self.path)


def open_store(path: str | Path, password: Optional[str] = None) -> CertificateStore:
    """Open ``path`` as a PEM directory store if it is a directory, else as PKCS#12."""
    path = Path(path)
    if path.is_dir():
        return PemDirectoryStore(path)
    return Pkcs12Store(path, password)
