"""
X.509 certificate reader adapter — one certificate file → one certificate.

Implements the CertificateReader port using cryptography (PyCA).
Accepts PEM (the first CERTIFICATE block in the file) or raw DER.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from cryptography import x509
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()

_PEM_MARKER = b"-----BEGIN CERTIFICATE-----"


def _read_bytes(path: Path) -> bytes:
    with path.open("rb") as stream:
        return stream.read()


def _parse_certificate(data: bytes) -> x509.Certificate:
    """Parse PEM when the marker is present, DER otherwise."""
    if _PEM_MARKER in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


class X509CertificateReader:
    """
    Read and parse certificate files.

    Implements the CertificateReader port.
    OSError and ValueError are caught at this adapter boundary; anything else
    propagates.
    """

    def read(self, path: Path) -> Result[x509.Certificate]:
        return (
            Result.from_computation(
                lambda: _read_bytes(path),
                ErrorCode.ASSEMBLY_FAILED,
                f"Could not read certificate file {path}",
                catching=(OSError,),
            )
            .flat_map(
                lambda data: Result.from_computation(
                    lambda: _parse_certificate(data),
                    ErrorCode.ASSEMBLY_FAILED,
                    f"Could not parse X.509 certificate {path}",
                    catching=(ValueError,),
                )
            )
            .peek(
                lambda cert: log.debug(
                    "certificate.parsed",
                    path=str(path),
                    subject=cert.subject.rfc4514_string(),
                )
            )
        )
