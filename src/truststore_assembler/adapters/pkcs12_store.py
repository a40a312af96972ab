"""
PKCS#12 container adapter — password-protected PFX trust stores.

Implements the ContainerFormat port using:
  - asn1crypto: structural check of the PFX envelope (is this PKCS#12 at all?)
  - cryptography (PyCA): decryption, MAC verification and serialization

Telling "not PKCS#12" apart from "PKCS#12 with a bad password" needs both:
cryptography raises the same ValueError for either case, so the envelope is
parsed first without any key material:

    Pfx ::= SEQUENCE {
        version    INTEGER {v3(3)},
        authSafe   ContentInfo,
        macData    MacData OPTIONAL
    }

If that structure is present, any later failure is a corrupt store.

Trusted certificates are stored as certificate bags whose friendlyName is the
alias. A private-key entry, if the base store has one, is carried through
untouched.

A store with no entries at all is written with asn1crypto: one empty
SafeContents, integrity-protected by an HMAC-SHA256 password MAC (RFC 7292
Appendix B key derivation). cryptography refuses to serialize such a store.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import structlog
from asn1crypto import algos, cms
from asn1crypto import pkcs12 as asn1_pkcs12
from cryptography import x509
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.serialization import BestAvailableEncryption, pkcs12
from railway import ErrorCode, StoreFailures
from railway.result import Result

from truststore_assembler.domain.models import StoreHandle, derived_alias

log = structlog.get_logger()

_PFX_VERSION = 3
_AUTH_SAFE_CONTENT_TYPES = ("data", "signed_data")
_MAC_KEY_PURPOSE = 3
_MAC_ITERATIONS = 2048
_MAC_SALT_LENGTH = 16


@dataclass(frozen=True, slots=True)
class _KeyEntry:
    """The (single) private-key entry cryptography exposes for a PFX."""

    key: pkcs12.PKCS12PrivateKeyTypes
    certificate: x509.Certificate | None
    name: bytes | None


def _is_pfx_envelope(data: bytes) -> bool:
    """True when `data` parses as a version-3 PFX with a known authSafe type."""
    try:
        pfx = asn1_pkcs12.Pfx.load(data, strict=True)
        version = pfx["version"].native
        content_type = pfx["auth_safe"]["content_type"].native
    except (ValueError, TypeError):
        return False
    return version == _PFX_VERSION and content_type in _AUTH_SAFE_CONTENT_TYPES


def _alias_of(bag: pkcs12.PKCS12Certificate) -> str:
    if bag.friendly_name:
        return bag.friendly_name.decode("utf-8", errors="replace")
    return derived_alias(bag.certificate)


def _mac_key(passphrase: str, salt: bytes, iterations: int, algorithm: hashes.HashAlgorithm) -> bytes:
    """
    PKCS#12 MAC key: RFC 7292 Appendix B.2 with ID=3.

    The key is exactly one digest long, so a single derivation round suffices.
    """
    block = algorithm.block_size
    assert block is not None

    def fill(data: bytes) -> bytes:
        length = block * -(-len(data) // block)
        return (data * (length // len(data) + 1))[:length] if data else b""

    password = (passphrase + "\0").encode("utf-16-be")
    digest = bytes([_MAC_KEY_PURPOSE]) * block + fill(salt) + fill(password)
    for _ in range(iterations):
        round_hash = hashes.Hash(algorithm)
        round_hash.update(digest)
        digest = round_hash.finalize()
    return digest


def _empty_pfx(passphrase: str) -> bytes:
    """A version-3 PFX holding one empty SafeContents, protected by an HMAC-SHA256 password MAC."""
    auth_safe = asn1_pkcs12.AuthenticatedSafe(
        [cms.ContentInfo({"content_type": "data", "content": asn1_pkcs12.SafeContents([]).dump()})]
    ).dump()
    salt = os.urandom(_MAC_SALT_LENGTH)
    mac = hmac.HMAC(_mac_key(passphrase, salt, _MAC_ITERATIONS, hashes.SHA256()), hashes.SHA256())
    mac.update(auth_safe)

    pfx = asn1_pkcs12.Pfx(
        {
            "version": _PFX_VERSION,
            "auth_safe": cms.ContentInfo({"content_type": "data", "content": auth_safe}),
            "mac_data": asn1_pkcs12.MacData(
                {
                    "mac": algos.DigestInfo(
                        {"digest_algorithm": {"algorithm": "sha256"}, "digest": mac.finalize()}
                    ),
                    "mac_salt": salt,
                    "iterations": _MAC_ITERATIONS,
                }
            ),
        }
    )
    return pfx.dump()


class Pkcs12Container:
    """
    PKCS#12 trust stores.

    Implements the ContainerFormat port. This is also the format of brand-new
    stores when an assembly starts from nothing.
    """

    name = "PKCS12"

    def open(self, data: bytes, passphrase: str) -> Result[StoreHandle]:
        if not _is_pfx_envelope(data):
            return StoreFailures.format_mismatch(self.name)
        return Result.from_computation(
            lambda: self._load(data, passphrase),
            ErrorCode.CORRUPT_STORE,
            "PKCS12 store failed integrity check (wrong passphrase or damaged data)",
            catching=(ValueError,),
        )

    def create(self, passphrase: str) -> StoreHandle:
        return StoreHandle(self, passphrase)

    def serialize(self, handle: StoreHandle) -> Result[bytes]:
        return Result.from_computation(
            lambda: self._dump(handle),
            ErrorCode.ASSEMBLY_FAILED,
            "Could not encode PKCS12 store",
            catching=(ValueError, TypeError),
        )

    def _load(self, data: bytes, passphrase: str) -> StoreHandle:
        loaded = pkcs12.load_pkcs12(data, passphrase.encode("utf-8"))

        certificates: dict[str, x509.Certificate] = {}
        bags = list(loaded.additional_certs)
        key_entry = None
        if loaded.key is not None:
            key_entry = _KeyEntry(
                key=loaded.key,
                certificate=loaded.cert.certificate if loaded.cert else None,
                name=loaded.cert.friendly_name if loaded.cert else None,
            )
        elif loaded.cert is not None:
            bags.insert(0, loaded.cert)

        for bag in bags:
            alias = _alias_of(bag)
            if alias in certificates:
                alias = derived_alias(bag.certificate)
            certificates[alias] = bag.certificate

        log.debug(
            "pkcs12.loaded",
            certificates=len(certificates),
            has_private_key=key_entry is not None,
        )
        return StoreHandle(self, passphrase, certificates, native=key_entry)

    def _dump(self, handle: StoreHandle) -> bytes:
        key_entry: _KeyEntry | None = handle.native
        if key_entry is None and not handle.certificates:
            log.debug("pkcs12.writing_empty_store")
            return _empty_pfx(handle.passphrase)
        cas = [
            pkcs12.PKCS12Certificate(certificate, alias.encode("utf-8"))
            for alias, certificate in handle.certificates.items()
        ]
        return pkcs12.serialize_key_and_certificates(
            name=key_entry.name if key_entry else None,
            key=key_entry.key if key_entry else None,
            cert=key_entry.certificate if key_entry else None,
            cas=cas or None,
            encryption_algorithm=BestAvailableEncryption(handle.passphrase.encode("utf-8")),
        )
