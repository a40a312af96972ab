"""
Certificate-store loader — open a trust store whose format is unknown.

Nothing in the file system tells us which container format a store uses, so
the loader probes: it tries each supported format in priority order and the
first one that opens the file wins.

Per candidate, the format's verdict decides what happens next:

  Success                          → return the handle, stop probing
  FORMAT_MISMATCH / UNAVAILABLE    → debug log, try the next format
  CORRUPT_STORE (MAC, data, I/O)   → error log, remember it, try the next format
  any exception                    → propagates, probing aborts

When every candidate has been tried the result is CORRUPT_STORE if some
format recognized the file but could not verify it, FORMAT_NOT_RECOGNIZED
otherwise.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog
from railway import ErrorCode, FailureDescription, StoreFailures
from railway.result import Failure, Result, Success

from truststore_assembler.domain.models import StoreHandle
from truststore_assembler.domain.ports import ContainerFormat

log = structlog.get_logger()


def _read_as(container: ContainerFormat, path: Path, passphrase: str) -> Result[StoreHandle]:
    """Open `path` once and hand its bytes to one candidate format."""
    try:
        stream = path.open("rb")
    except OSError as e:
        return StoreFailures.file_unreadable(path, e)
    with stream:
        data = Result.from_computation(
            stream.read,
            ErrorCode.CORRUPT_STORE,
            f"I/O error while reading {path}",
            catching=(OSError,),
        )
    return data.flat_map(lambda raw: container.open(raw, passphrase))


def probe_and_load(
    path: Path,
    passphrase: str,
    formats: Sequence[ContainerFormat],
) -> Result[StoreHandle]:
    """
    Determine the container format of `path` by trial and open it.

    Returns Result[StoreHandle] tagged with the first format that accepted
    the file. Fails with FILE_UNREADABLE, CORRUPT_STORE or
    FORMAT_NOT_RECOGNIZED, always naming the path.
    """
    path = Path(path).absolute()
    if not path.is_file():
        return StoreFailures.file_unreadable(path)

    last_corruption: FailureDescription | None = None

    for container in formats:
        log.debug("loader.probing", path=str(path), format=container.name)
        result = _read_as(container, path, passphrase)

        match result:
            case Success(handle):
                log.debug("loader.format_detected", path=str(path), format=handle.format_name)
                return result
            case Failure(err) if err.code is ErrorCode.FILE_UNREADABLE:
                return result
            case Failure(err) if err.code.is_probe_outcome:
                log.debug(
                    "loader.format_rejected",
                    path=str(path),
                    format=container.name,
                    reason=err.code.value,
                )
            case Failure(err):
                log.error(
                    "loader.load_failed",
                    path=str(path),
                    format=container.name,
                    error=err.describe(),
                )
                last_corruption = err

    if last_corruption is not None:
        return StoreFailures.corrupt_store(
            f"Trust store {path} could not be verified: {last_corruption.message}",
            last_corruption.exception,
        )
    return StoreFailures.format_not_recognized(path)
