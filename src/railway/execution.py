"""
Execution contexts — separate WHAT (pure logic) from HOW (side effects).

  - Pure functions describe WHAT should happen → return Result[T]
  - ExecutionContext describes HOW it happens → timing, logging
  - They are NEVER mixed

Usage:
    ctx = LoggingExecutionContext(operation="AssembleTrustStore")
    result = ctx.execute(lambda: assemble(source, certificates, output_path))
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol, TypeVar, runtime_checkable

import structlog

from railway.result import Result

T = TypeVar("T")
log = structlog.get_logger("railway.execution")


@runtime_checkable
class ExecutionContext(Protocol):
    """
    Protocol for execution contexts.

    Any class implementing execute(computation) satisfies this protocol
    via Python's structural typing — no explicit inheritance needed.
    """

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        """Execute a Result-returning computation within this context."""
        ...


class NoOpExecutionContext:
    """Passthrough execution context — runs computation without any wrapper."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Execution context that logs entry, exit, duration, and result state.

    Wraps another context (decorator pattern) to add observability.
    Exceptions raised by the computation are logged and re-raised unchanged:
    only failures already on the failure track are reported as FAILURE.

        ctx = LoggingExecutionContext(operation="AssembleTrustStore")
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
        log_level: int = logging.INFO,
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation
        self._log_level = log_level

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        log.log(self._log_level, "execution.started", operation=self._operation)
        start = time.monotonic()

        try:
            result = self._inner.execute(computation)
        except Exception as e:
            log.error(
                "execution.raised",
                operation=self._operation,
                elapsed=round(time.monotonic() - start, 3),
                error=str(e),
            )
            raise

        state = "SUCCESS" if result.is_success() else "FAILURE"
        log.log(
            self._log_level,
            "execution.completed",
            operation=self._operation,
            elapsed=round(time.monotonic() - start, 3),
            state=state,
        )
        return result
