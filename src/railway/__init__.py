"""
Railway-Oriented Programming (ROP) support for the trust-store assembler.

Explicit, composable error handling — expected failures are values, not exceptions.

    from railway import Result, ErrorCode

    def require_file(path: Path) -> Result[Path]:
        if not path.is_file():
            return Result.failure(ErrorCode.MISSING_BASE_STORE, f"Trust store file does not exist: {path}")
        return Result.success(path)

    result = (
        require_file(base)
        .flat_map(load)
        .map(lambda handle: sorted(handle.certificates))
    )
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.result_failures import StoreFailures
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "StoreFailures",
    "ResultAssertions",
]
