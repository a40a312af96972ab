"""
Domain models — trust sources, certificate requests, opened stores, results.

TrustSource, CertificateEntry and AssembledStore are frozen dataclasses:
they are built once per run and never mutated. StoreHandle is the one
mutable object: the in-memory store the assembler imports certificates
into before it is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cryptography import x509
from cryptography.hazmat.primitives import hashes

if TYPE_CHECKING:
    from truststore_assembler.domain.ports import ContainerFormat

DEFAULT_PASSPHRASE = "changeit"
"""Well-known passphrase of platform default trust stores."""


class SourceKind(Enum):
    DEFAULT = "default"
    EMPTY = "empty"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class TrustSource:
    """
    Where the trust material of an assembly comes from.

    - DEFAULT: the platform's built-in CA store (path + sentinel passphrase)
    - FILE:    an existing container of unknown format
    - EMPTY:   nothing; a brand-new store is created

    Use the factory methods rather than the constructor.
    """

    kind: SourceKind
    passphrase: str = field(repr=False)
    path: Path | None = None

    @staticmethod
    def platform_default(path: Path, passphrase: str = DEFAULT_PASSPHRASE) -> TrustSource:
        return TrustSource(kind=SourceKind.DEFAULT, passphrase=passphrase, path=Path(path))

    @staticmethod
    def file(path: Path, passphrase: str) -> TrustSource:
        return TrustSource(kind=SourceKind.FILE, passphrase=passphrase, path=Path(path))

    @staticmethod
    def empty(passphrase: str) -> TrustSource:
        return TrustSource(kind=SourceKind.EMPTY, passphrase=passphrase)

    @property
    def is_default(self) -> bool:
        """True only for the platform store opened with the sentinel passphrase."""
        return self.kind is SourceKind.DEFAULT and self.passphrase == DEFAULT_PASSPHRASE


@dataclass(frozen=True, slots=True)
class CertificateEntry:
    """Request to import the certificate at `path` under `alias`."""

    path: Path
    alias: str


@dataclass(frozen=True, slots=True)
class AssembledStore:
    """
    The usable trust store produced by one assembly run.

    `format_name` is None when an existing file was reused without being
    parsed. `reused` is True whenever no new container was written.
    """

    path: Path
    passphrase: str = field(repr=False)
    format_name: str | None = None
    reused: bool = False
    platform_default: bool = False


class StoreHandle:
    """
    An opened, mutable, in-memory trust store.

    The container format is fixed at construction: a handle that was probed
    as PKCS#12 is persisted as PKCS#12 and never re-guessed.

    `certificates` maps alias → trusted certificate. `native` is private to
    the container format and carries the entries the assembler does not
    touch (private keys, for instance) so they survive a round trip.
    """

    __slots__ = ("_container", "passphrase", "certificates", "native")

    def __init__(
        self,
        container: ContainerFormat,
        passphrase: str,
        certificates: dict[str, x509.Certificate] | None = None,
        native: Any = None,
    ) -> None:
        self._container = container
        self.passphrase = passphrase
        self.certificates: dict[str, x509.Certificate] = dict(certificates or {})
        self.native = native

    @property
    def container(self) -> ContainerFormat:
        return self._container

    @property
    def format_name(self) -> str:
        return self._container.name

    def set_certificate(self, alias: str, certificate: x509.Certificate) -> bool:
        """Insert or overwrite the entry under `alias`; True if one was replaced."""
        replaced = alias in self.certificates
        self.certificates[alias] = certificate
        return replaced

    def __repr__(self) -> str:
        return f"StoreHandle(format={self.format_name!r}, aliases={sorted(self.certificates)!r})"


def derived_alias(certificate: x509.Certificate) -> str:
    """Stable alias for entries stored without a name: a SHA-256 fingerprint prefix."""
    return "cert-" + certificate.fingerprint(hashes.SHA256()).hex()[:16]
