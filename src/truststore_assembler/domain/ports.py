"""
Ports — Protocol-based interfaces for the container formats and certificate input.

These define WHAT the loader and assembler need without specifying HOW:

  Loader / Assembler ← Ports (protocols) ← Adapters (PKCS#12, JKS, PEM, X.509 reader)

Each port is a Protocol (structural typing) so adapters satisfy the
contract simply by implementing the methods, without inheritance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from cryptography import x509
from railway.result import Result

from truststore_assembler.domain.models import StoreHandle


@runtime_checkable
class ContainerFormat(Protocol):
    """
    Port: one on-disk trust store container format.

    `open` classifies what it sees:
      - Success(handle)            → the data is this format and intact
      - Failure(FORMAT_MISMATCH)   → the data is some other format
      - Failure(FORMAT_UNAVAILABLE)→ no implementation is installed
      - Failure(CORRUPT_STORE)     → right format, bad MAC/password/content

    Exceptions outside the classes an adapter knows must propagate.
    """

    name: str

    def open(self, data: bytes, passphrase: str) -> Result[StoreHandle]: ...

    def create(self, passphrase: str) -> StoreHandle:
        """Return a new, empty store of this format."""
        ...

    def serialize(self, handle: StoreHandle) -> Result[bytes]:
        """Encode the handle with its own passphrase; ASSEMBLY_FAILED on error."""
        ...


@runtime_checkable
class CertificateReader(Protocol):
    """
    Port: read one certificate file and parse it as a single X.509 certificate.

    Returns Failure(ASSEMBLY_FAILED) when the file cannot be read or parsed.
    """

    def read(self, path: Path) -> Result[x509.Certificate]: ...
