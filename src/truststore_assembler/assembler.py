"""
Store assembler — the end-to-end trust store assembly.

Decision logic, in order:

  1. platform default + no certificates  → report the platform store, touch nothing
  2. base file + no certificates         → check the file exists, reuse it unparsed
  3. otherwise, the railway:

       open base (probe, or create empty)
         → import certificates (last write wins per alias)
           → serialize with the handle's own format and passphrase
             → write atomically to output_path

Every stage returns Result[T]; the first failure short-circuits the rest.
Container formats and the certificate reader are injected so this module
does no format-specific work of its own.
"""

from __future__ import annotations

import contextlib
import os
import stat
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path

import structlog
from railway import ErrorCode, FailureDescription, StoreFailures
from railway.result import Result

from truststore_assembler.domain.models import (
    AssembledStore,
    CertificateEntry,
    StoreHandle,
    TrustSource,
)
from truststore_assembler.domain.ports import CertificateReader, ContainerFormat
from truststore_assembler.loader import probe_and_load

log = structlog.get_logger()


def _require_base_file(path: Path) -> Result[Path]:
    path = path.absolute()
    if not path.is_file():
        return StoreFailures.missing_base_store(path)
    return Result.success(path)


def _open_base(
    source: TrustSource,
    formats: Sequence[ContainerFormat],
    default_format: ContainerFormat,
) -> Result[StoreHandle]:
    if source.path is None:
        log.debug("assembler.creating_empty_store", format=default_format.name)
        return Result.success(default_format.create(source.passphrase))

    log.debug("assembler.loading_base_store", path=str(source.path))
    return _require_base_file(source.path).flat_map(
        lambda path: probe_and_load(path, source.passphrase, formats)
    )


def _import_certificates(
    handle: StoreHandle,
    certificates: Sequence[CertificateEntry],
    reader: CertificateReader,
) -> Result[StoreHandle]:
    for entry in certificates:
        log.debug("assembler.importing_certificate", path=str(entry.path), alias=entry.alias)
        parsed = reader.read(entry.path)
        if parsed.is_failure():
            return Result.failure_from(parsed.error())
        if handle.set_certificate(entry.alias, parsed.value()):
            log.debug("assembler.alias_overwritten", alias=entry.alias, path=str(entry.path))
    return Result.success(handle)


def _output_mode(target: Path) -> int:
    """An existing output keeps its permissions; a new one gets 0o666 minus the umask."""
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _write_atomically(target: Path, payload: bytes) -> Path:
    """
    Write `payload` to a temporary sibling of `target`, then rename it over `target`.

    The result has the permissions a plain write would give it (see
    _output_mode), not mkstemp's owner-only 0o600. A failure at any point
    leaves an existing `target` untouched and removes the temporary file.
    """
    target = target.absolute()
    target.parent.mkdir(parents=True, exist_ok=True)
    mode = _output_mode(target)
    fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as stream:
            os.fchmod(stream.fileno(), mode)
            stream.write(payload)
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(temp_name, target)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(temp_name)
        raise
    return target


def _persist(handle: StoreHandle, output_path: Path) -> Result[AssembledStore]:
    log.debug("assembler.writing_store", path=str(output_path), format=handle.format_name)
    return (
        handle.container.serialize(handle)
        .flat_map(
            lambda payload: Result.from_computation(
                lambda: _write_atomically(output_path, payload),
                ErrorCode.ASSEMBLY_FAILED,
                f"Could not write trust store {output_path}",
                catching=(OSError,),
            )
        )
        .map(
            lambda path: AssembledStore(
                path=path,
                passphrase=handle.passphrase,
                format_name=handle.format_name,
            )
        )
    )


def _prefix_assembly_failure(err: FailureDescription) -> FailureDescription:
    if err.code is not ErrorCode.ASSEMBLY_FAILED:
        return err
    return FailureDescription.create(
        err.code, f"Could not assemble trust store: {err.message}", err.exception
    )


def assemble(
    source: TrustSource,
    certificates: Iterable[CertificateEntry],
    output_path: Path,
    *,
    formats: Sequence[ContainerFormat],
    default_format: ContainerFormat,
    reader: CertificateReader,
) -> Result[AssembledStore]:
    """
    Produce a usable trust store from `source` plus `certificates`.

    Returns Result[AssembledStore] whose passphrase is always the source's.
    PEM bundles have no protection of their own: when the base is one (the
    platform default usually is), the output is readable without any
    passphrase and the reported passphrase is informational only.

    Fails with MISSING_BASE_STORE, FILE_UNREADABLE, FORMAT_NOT_RECOGNIZED,
    CORRUPT_STORE or ASSEMBLY_FAILED; unexpected exceptions propagate.
    """
    entries = tuple(certificates)
    log.debug(
        "assembler.plan",
        source=source.kind.value,
        base=str(source.path) if source.path else None,
        certificates=[f"{entry.alias}:{entry.path}" for entry in entries],
    )

    if source.is_default and not entries:
        assert source.path is not None
        log.debug("assembler.using_platform_default", path=str(source.path))
        return Result.success(
            AssembledStore(
                path=source.path.absolute(),
                passphrase=source.passphrase,
                reused=True,
                platform_default=True,
            )
        )

    if source.path is not None and not entries:
        return _require_base_file(source.path).map(
            lambda path: AssembledStore(path=path, passphrase=source.passphrase, reused=True)
        ).peek(lambda store: log.debug("assembler.reusing_base_store", path=str(store.path)))

    return (
        _open_base(source, formats, default_format)
        .flat_map(lambda handle: _import_certificates(handle, entries, reader))
        .flat_map(lambda handle: _persist(handle, output_path))
        .peek(
            lambda store: log.info(
                "assembler.store_written",
                path=str(store.path),
                format=store.format_name,
                imported=len(entries),
            )
        )
        .map_failure(_prefix_assembly_failure)
    )
