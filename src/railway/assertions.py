"""
Test assertions for Result values.

Usage in tests:
    from railway import ErrorCode, ResultAssertions

    def test_missing_base_store():
        result = assemble(TrustSource.file(missing, "changeit"), (), output)
        ResultAssertions.assert_failure(result, ErrorCode.MISSING_BASE_STORE)
        ResultAssertions.assert_failure_message_contains(result, str(missing))
"""

from __future__ import annotations

from typing import TypeVar

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


class ResultAssertions:
    """Expressive test assertions for Result values."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """
        Assert the Result is a Success and return the value.

            handle = ResultAssertions.assert_success(probe_and_load(path, "changeit"))
        """
        context = f" — {message}" if message else ""
        assert result.is_success(), (
            f"Expected Success but got Failure("
            f"{result.error().code.value}: {result.error().describe()!r}){context}"
        )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """
        Assert the Result is a Failure, optionally checking the error code.

            error = ResultAssertions.assert_failure(result, ErrorCode.FORMAT_NOT_RECOGNIZED)
        """
        context = f" — {message}" if message else ""
        assert result.is_failure(), (
            f"Expected Failure but got Success({result.value()!r}){context}"
        )
        error = result.error()
        if expected_code is not None:
            assert error.code == expected_code, (
                f"Expected error code {expected_code.value} "
                f"but got {error.code.value}: {error.message!r}{context}"
            )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        """Assert that the failure message contains the given substring (case-insensitive)."""
        assert result.is_failure(), (
            f"Expected Failure but got Success({result.value()!r})"
        )
        error = result.error()
        assert substring.lower() in error.message.lower(), (
            f"Expected failure message to contain {substring!r} "
            f"but message was: {error.message!r}"
        )

    @staticmethod
    def assert_failure_caused_by(
        result: Result[T], exception_type: type[BaseException]
    ) -> BaseException:
        """Assert the Failure wraps an exception of the given type and return it."""
        error = ResultAssertions.assert_failure(result)
        assert isinstance(error.exception, exception_type), (
            f"Expected cause of type {exception_type.__name__} "
            f"but got {type(error.exception).__name__}: {error.exception!r}"
        )
        return error.exception
