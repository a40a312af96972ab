"""
PEM bundle container adapter — concatenated CERTIFICATE blocks.

This is the format of certifi's cacert.pem and of OpenSSL CA files, i.e.
what Python TLS stacks read through SSL_CERT_FILE / REQUESTS_CA_BUNDLE.

Aliases are kept in comment lines directly above each block:

    # Alias: alice
    -----BEGIN CERTIFICATE-----
    ...
    -----END CERTIFICATE-----

certifi's `# Label: "..."` comments are read as aliases too. Blocks without
either get a fingerprint-derived alias.

PEM bundles are not password protected; the passphrase is carried on the
handle unchanged but not applied to the file.
"""

from __future__ import annotations

import re

import structlog
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding
from railway import ErrorCode, StoreFailures
from railway.result import Result

from truststore_assembler.domain.models import StoreHandle, derived_alias

log = structlog.get_logger()

_BEGIN = "-----BEGIN CERTIFICATE-----"
_END = "-----END CERTIFICATE-----"
_ALIAS_COMMENT = re.compile(r'^#\s*(?:Alias|Label):\s*"?(?P<alias>.*?)"?\s*$')


def _split_blocks(text: str) -> list[tuple[str | None, str]]:
    """Return (alias or None, PEM block) pairs in file order."""
    blocks: list[tuple[str | None, str]] = []
    alias: str | None = None
    current: list[str] | None = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if current is not None:
            current.append(line)
            if line == _END:
                blocks.append((alias, "\n".join(current) + "\n"))
                alias, current = None, None
            continue
        if line == _BEGIN:
            current = [line]
            continue
        match = _ALIAS_COMMENT.match(line)
        if match and match.group("alias"):
            alias = match.group("alias")

    if current is not None:
        raise ValueError("Unterminated CERTIFICATE block")
    return blocks


class PemBundleContainer:
    """
    PEM certificate bundles.

    Implements the ContainerFormat port.
    """

    name = "PEM"

    def open(self, data: bytes, passphrase: str) -> Result[StoreHandle]:
        if _BEGIN.encode("ascii") not in data:
            return StoreFailures.format_mismatch(self.name)
        return Result.from_computation(
            lambda: self._load(data, passphrase),
            ErrorCode.CORRUPT_STORE,
            "PEM bundle contains malformed certificate data",
            catching=(ValueError,),
        )

    def create(self, passphrase: str) -> StoreHandle:
        return StoreHandle(self, passphrase)

    def serialize(self, handle: StoreHandle) -> Result[bytes]:
        return Result.from_computation(
            lambda: self._dump(handle),
            ErrorCode.ASSEMBLY_FAILED,
            "Could not encode PEM bundle",
            catching=(ValueError,),
        )

    def _load(self, data: bytes, passphrase: str) -> StoreHandle:
        certificates: dict[str, x509.Certificate] = {}
        for alias, block in _split_blocks(data.decode("utf-8")):
            certificate = x509.load_pem_x509_certificate(block.encode("ascii"))
            name = alias or derived_alias(certificate)
            if name in certificates:
                name = derived_alias(certificate)
            certificates[name] = certificate

        log.debug("pem.loaded", certificates=len(certificates))
        return StoreHandle(self, passphrase, certificates)

    def _dump(self, handle: StoreHandle) -> bytes:
        parts: list[bytes] = []
        for alias, certificate in handle.certificates.items():
            parts.append(f"# Alias: {alias}\n".encode("utf-8"))
            parts.append(certificate.public_bytes(Encoding.PEM))
        return b"".join(parts)
