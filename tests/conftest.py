"""
Shared test fixtures and helpers for the truststore-assembler test suite.

Certificates and stores are generated on the fly with cryptography (and
pyjks for JKS), so the suite carries no binary fixture files.
"""

from __future__ import annotations

import datetime
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import BestAvailableEncryption, Encoding, pkcs12
from cryptography.x509.oid import NameOID

STORE_PASSWORD = "s3cret-store"

# Deterministic "random" data that no container format accepts.
GARBAGE = bytes((i * 37 + 11) % 256 for i in range(512))


def make_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


def make_certificate(
    common_name: str,
    key: ec.EllipticCurvePrivateKey | None = None,
) -> x509.Certificate:
    """Self-signed CA certificate for `common_name`, valid for a year."""
    key = key or make_key()
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.UTC)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


def write_pem(path: Path, certificate: x509.Certificate) -> Path:
    path.write_bytes(certificate.public_bytes(Encoding.PEM))
    return path


def write_der(path: Path, certificate: x509.Certificate) -> Path:
    path.write_bytes(certificate.public_bytes(Encoding.DER))
    return path


def pkcs12_bytes(
    certificates: dict[str, x509.Certificate],
    password: str = STORE_PASSWORD,
    key: ec.EllipticCurvePrivateKey | None = None,
    key_certificate: x509.Certificate | None = None,
) -> bytes:
    """A PKCS#12 trust store holding `certificates` under their aliases."""
    cas = [pkcs12.PKCS12Certificate(cert, alias.encode("utf-8")) for alias, cert in certificates.items()]
    return pkcs12.serialize_key_and_certificates(
        name=b"server" if key is not None else None,
        key=key,
        cert=key_certificate,
        cas=cas or None,
        encryption_algorithm=BestAvailableEncryption(password.encode("utf-8")),
    )


def write_pkcs12(
    path: Path,
    certificates: dict[str, x509.Certificate],
    password: str = STORE_PASSWORD,
) -> Path:
    path.write_bytes(pkcs12_bytes(certificates, password))
    return path


def pem_bundle_bytes(certificates: dict[str, x509.Certificate]) -> bytes:
    return b"".join(
        f"# Alias: {alias}\n".encode() + cert.public_bytes(Encoding.PEM)
        for alias, cert in certificates.items()
    )


def jks_bytes(certificates: dict[str, x509.Certificate], password: str = STORE_PASSWORD) -> bytes:
    """A JKS trust store; skips the calling test when pyjks is not installed."""
    jks = pytest.importorskip("jks")
    entries = [
        jks.TrustedCertEntry.new(alias, cert.public_bytes(Encoding.DER))
        for alias, cert in certificates.items()
    ]
    return jks.KeyStore.new("jks", entries).saves(password)


def read_pkcs12(path: Path, password: str = STORE_PASSWORD) -> dict[str, x509.Certificate]:
    """Trusted entries of a PKCS#12 file, keyed by friendly name."""
    loaded = pkcs12.load_pkcs12(path.read_bytes(), password.encode("utf-8"))
    return {
        bag.friendly_name.decode("utf-8"): bag.certificate
        for bag in loaded.additional_certs
        if bag.friendly_name
    }


@pytest.fixture()
def ca_certificate() -> x509.Certificate:
    return make_certificate("Test Root CA")


@pytest.fixture()
def other_certificate() -> x509.Certificate:
    return make_certificate("Other Root CA")
