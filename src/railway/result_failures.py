"""
Convenience factory methods for the trust-store failure taxonomy.

Every factory builds the message from the offending path so a failure
always tells the user which file to look at.

Usage:
    from railway.result_failures import StoreFailures

    # Instead of:
    Result.failure(ErrorCode.MISSING_BASE_STORE, f"Trust store file does not exist: {path}")

    # Write:
    StoreFailures.missing_base_store(path)
"""

from __future__ import annotations

from os import PathLike

from railway.failure import ErrorCode
from railway.result import Result


class StoreFailures:
    """Factory methods, one per terminal or probe ErrorCode."""

    @staticmethod
    def missing_base_store(path: str | PathLike[str]) -> Result:
        """A file-backed trust source points at nothing."""
        return Result.failure(
            ErrorCode.MISSING_BASE_STORE,
            f"Trust store file does not exist: {path}",
        )

    @staticmethod
    def file_unreadable(path: str | PathLike[str], exception: BaseException | None = None) -> Result:
        return Result.failure(
            ErrorCode.FILE_UNREADABLE,
            f"Trust store file cannot be opened: {path}",
            exception,
        )

    @staticmethod
    def format_not_recognized(path: str | PathLike[str]) -> Result:
        return Result.failure(
            ErrorCode.FORMAT_NOT_RECOGNIZED,
            f"No known container format could load {path}",
        )

    @staticmethod
    def corrupt_store(message: str, exception: BaseException | None = None) -> Result:
        """Right format, bad content: MAC, checksum, password or certificate data."""
        return Result.failure(ErrorCode.CORRUPT_STORE, message, exception)

    @staticmethod
    def format_mismatch(format_name: str) -> Result:
        return Result.failure(
            ErrorCode.FORMAT_MISMATCH,
            f"Data is not a {format_name} container",
        )

    @staticmethod
    def format_unavailable(format_name: str, exception: BaseException | None = None) -> Result:
        return Result.failure(
            ErrorCode.FORMAT_UNAVAILABLE,
            f"No implementation available for {format_name} containers",
            exception,
        )

    @staticmethod
    def assembly_failed(message: str, exception: BaseException | None = None) -> Result:
        """I/O, parsing or persistence failure while building the merged store."""
        return Result.failure(ErrorCode.ASSEMBLY_FAILED, message, exception)

