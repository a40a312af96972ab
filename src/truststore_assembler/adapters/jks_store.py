"""
Java KeyStore (JKS) container adapter.

Implements the ContainerFormat port using pyjks. pyjks is an optional
dependency (`pip install truststore-assembler[jks]`); it is imported lazily
so that a missing install makes this format FORMAT_UNAVAILABLE during
probing instead of breaking the whole package.

Only the JKS magic (0xFEEDFEED) is accepted. JCEKS stores (0xCECECECE) are
reported as a format mismatch.

Private-key entries are loaded without decrypting them and written back in
their original encrypted form.
"""

from __future__ import annotations

import struct
from types import ModuleType

import structlog
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding
from railway import ErrorCode, StoreFailures
from railway.result import Result

from truststore_assembler.domain.models import StoreHandle

log = structlog.get_logger()

_JKS_MAGIC = b"\xfe\xed\xfe\xed"


def _import_pyjks() -> ModuleType:
    import jks  # noqa: PLC0415

    return jks


class JksContainer:
    """
    JKS trust stores.

    Implements the ContainerFormat port.
    """

    name = "JKS"

    def open(self, data: bytes, passphrase: str) -> Result[StoreHandle]:
        if not data.startswith(_JKS_MAGIC):
            return StoreFailures.format_mismatch(self.name)
        try:
            jks = _import_pyjks()
        except ImportError as e:
            return StoreFailures.format_unavailable(self.name, e)
        return Result.from_computation(
            lambda: self._load(jks, data, passphrase),
            ErrorCode.CORRUPT_STORE,
            "JKS store failed integrity check (wrong passphrase or damaged data)",
            catching=(jks.util.KeystoreException, struct.error, ValueError),
        )

    def create(self, passphrase: str) -> StoreHandle:
        return StoreHandle(self, passphrase, native=[])

    def serialize(self, handle: StoreHandle) -> Result[bytes]:
        try:
            jks = _import_pyjks()
        except ImportError as e:
            return StoreFailures.assembly_failed("pyjks is required to write JKS stores", e)
        return Result.from_computation(
            lambda: self._dump(jks, handle),
            ErrorCode.ASSEMBLY_FAILED,
            "Could not encode JKS store",
            catching=(jks.util.KeystoreException, struct.error, ValueError),
        )

    def _load(self, jks: ModuleType, data: bytes, passphrase: str) -> StoreHandle:
        keystore = jks.KeyStore.loads(data, passphrase, try_decrypt_keys=False)

        certificates = {
            alias: x509.load_der_x509_certificate(entry.cert)
            for alias, entry in keystore.certs.items()
        }
        other_entries = [
            entry for alias, entry in keystore.entries.items() if alias not in keystore.certs
        ]

        log.debug(
            "jks.loaded",
            certificates=len(certificates),
            other_entries=len(other_entries),
        )
        return StoreHandle(self, passphrase, certificates, native=other_entries)

    def _dump(self, jks: ModuleType, handle: StoreHandle) -> bytes:
        entries = [
            jks.TrustedCertEntry.new(alias, certificate.public_bytes(Encoding.DER))
            for alias, certificate in handle.certificates.items()
        ]
        entries.extend(handle.native or [])
        keystore = jks.KeyStore.new("jks", entries)
        return keystore.saves(handle.passphrase)
