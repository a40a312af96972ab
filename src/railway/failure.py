"""
Failure description — structured error information for the failure track.

Every failure carries an ErrorCode from the trust-store taxonomy, a message
that names the offending path, and (optionally) the exception that caused it.

Enum + frozen dataclass gives us __eq__, __hash__ and __repr__ for free,
and Enum members are singleton-comparable with `is`.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Terminal codes abort an assembly run. Probe codes are produced by a single
    container format while the loader is still trying candidates and never
    leave the loader on their own.
    """

    # --- Terminal: surfaced to the caller ---
    MISSING_BASE_STORE = "MISSING_BASE_STORE"
    """A file-backed trust source points at a file that does not exist."""

    FILE_UNREADABLE = "FILE_UNREADABLE"
    """The base store exists but cannot be opened for reading."""

    FORMAT_NOT_RECOGNIZED = "FORMAT_NOT_RECOGNIZED"
    """No known container format accepted the base store."""

    CORRUPT_STORE = "CORRUPT_STORE"
    """A format recognized the file but integrity or content checks failed."""

    ASSEMBLY_FAILED = "ASSEMBLY_FAILED"
    """Reading a certificate, parsing it or writing the merged store failed."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Settings are missing or invalid."""

    # --- Probe outcomes: recoverable inside the loader ---
    FORMAT_MISMATCH = "FORMAT_MISMATCH"
    """Magic number or structure does not belong to this format."""

    FORMAT_UNAVAILABLE = "FORMAT_UNAVAILABLE"
    """The library backing this format is not installed."""

    @property
    def is_probe_outcome(self) -> bool:
        """True for codes that only tell the loader to try the next format."""
        return self in (ErrorCode.FORMAT_MISMATCH, ErrorCode.FORMAT_UNAVAILABLE)


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.MISSING_BASE_STORE, "Trust store file does not exist: /x")
    >>> desc.code
    <ErrorCode.MISSING_BASE_STORE: 'MISSING_BASE_STORE'>
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> FailureDescription:
        return FailureDescription(code=code, message=message, exception=exception)

    def describe(self) -> str:
        """
        One-line summary: message followed by the nested cause chain.

        Used for user-facing output, e.g.
        "Could not assemble trust store: /x/a.pem (caused by ValueError: ...)".
        """
        causes: list[str] = []
        exc = self.exception
        while exc is not None and len(causes) < 5:
            causes.append(f"{type(exc).__name__}: {exc}")
            exc = exc.__cause__ or exc.__context__
        if not causes:
            return self.message
        return f"{self.message} (caused by {' <- '.join(causes)})"

    def full_stack_trace(self) -> str:
        """Full stack trace string including the message and exception chain."""
        if self.exception is None:
            return self.message
        tb = "".join(traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__))
        return f"{self.message}\n{tb}"
