"""
Supported container formats, in probing priority order.

The loader tries these one after the other and the first that accepts the
file wins, so the order is a compatibility policy: JKS first (the classic
Java cacerts format), then PKCS#12, then plain PEM bundles.

New stores (assembly starting from nothing) are PKCS#12.
"""

from __future__ import annotations

from pathlib import Path

import certifi

from truststore_assembler.adapters.jks_store import JksContainer
from truststore_assembler.adapters.pem_bundle import PemBundleContainer
from truststore_assembler.adapters.pkcs12_store import Pkcs12Container
from truststore_assembler.domain.ports import ContainerFormat

PKCS12 = Pkcs12Container()

PROBE_ORDER: tuple[ContainerFormat, ...] = (
    JksContainer(),
    PKCS12,
    PemBundleContainer(),
)

DEFAULT_FORMAT: ContainerFormat = PKCS12


def platform_trust_store() -> Path:
    """The host's built-in CA bundle (certifi's cacert.pem)."""
    return Path(certifi.where())
