"""
Environment handoff — advertise the assembled store to in-process TLS stacks.

The assembler only *returns* an AssembledStore; nothing global changes until
apply_to_environment() is called explicitly. That call writes two variables
(path and passphrase), plus SSL_CERT_FILE / REQUESTS_CA_BUNDLE when the store
is a PEM bundle, which is what Python's ssl module and requests read.

Caveat: a TLS stack picks these up only when it builds its first context.
Setting them after the first secure connection of the process has no effect
on that connection's context, and there is no way to force a rebuild here.

Semantics are set-once-per-run, last write wins; nothing is rolled back.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass

import structlog

from truststore_assembler.domain.models import AssembledStore

log = structlog.get_logger()

DEFAULT_PATH_VARIABLE = "TRUSTSTORE_PATH"
DEFAULT_PASSWORD_VARIABLE = "TRUSTSTORE_PASSWORD"
PEM_CONSUMER_VARIABLES = ("SSL_CERT_FILE", "REQUESTS_CA_BUNDLE")
_PEM_MARKER = b"-----BEGIN CERTIFICATE-----"
_PEM_SNIFF_BYTES = 64 * 1024


@dataclass(frozen=True, slots=True)
class TrustStoreHandoff:
    """Names of the two variables carrying the store location and passphrase."""

    path_variable: str = DEFAULT_PATH_VARIABLE
    password_variable: str = DEFAULT_PASSWORD_VARIABLE


def _is_pem_bundle(store: AssembledStore) -> bool:
    """
    Whether consumers of SSL_CERT_FILE can read `store`.

    A reused base is never parsed, so its format is unknown; the head of the
    file is checked for a PEM certificate marker instead.
    """
    if store.format_name is not None:
        return store.format_name == "PEM"
    with store.path.open("rb") as stream:
        return _PEM_MARKER in stream.read(_PEM_SNIFF_BYTES)


def handoff_variables(
    store: AssembledStore,
    handoff: TrustStoreHandoff = TrustStoreHandoff(),
) -> dict[str, str]:
    """
    Compute the variables for `store` without touching any environment.

    The platform default store yields nothing: the process already uses it.
    """
    if store.platform_default:
        return {}
    variables = {
        handoff.path_variable: str(store.path.absolute()),
        handoff.password_variable: store.passphrase,
    }
    if _is_pem_bundle(store):
        for name in PEM_CONSUMER_VARIABLES:
            variables[name] = str(store.path.absolute())
    return variables


def apply_to_environment(
    store: AssembledStore,
    handoff: TrustStoreHandoff = TrustStoreHandoff(),
    environ: MutableMapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Write the handoff variables into `environ` (default: os.environ).

    Returns the variables that were set.
    """
    target = os.environ if environ is None else environ
    variables = handoff_variables(store, handoff)
    target.update(variables)
    if variables:
        log.info(
            "environment.trust_store_applied",
            path=str(store.path),
            variables=sorted(variables),
        )
    else:
        log.debug("environment.platform_default_kept", path=str(store.path))
    return variables


def export_lines(variables: Mapping[str, str]) -> list[str]:
    """Shell `export` statements for `variables`, values quoted."""
    return [f"export {name}={shlex.quote(value)}" for name, value in variables.items()]
