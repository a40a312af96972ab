"""
Application entry point — wires dependencies and runs one assembly.

Composition root: creates the concrete container formats and certificate
reader, injects them into the assembler, and applies the result to the
process environment.

Responsibilities:
  1. Load and validate configuration from environment / .env
  2. Configure structlog (to stderr; stdout is reserved for `export` lines)
  3. Assemble the trust store within a LoggingExecutionContext
  4. Apply the environment handoff and optionally print shell exports
"""

from __future__ import annotations

import logging
import sys

import structlog
from pydantic import ValidationError
from railway import ErrorCode, LoggingExecutionContext
from railway.result import Result

from truststore_assembler import __version__
from truststore_assembler.adapters.certificate_reader import X509CertificateReader
from truststore_assembler.adapters.formats import (
    DEFAULT_FORMAT,
    PROBE_ORDER,
    platform_trust_store,
)
from truststore_assembler.assembler import assemble
from truststore_assembler.config import AppSettings
from truststore_assembler.domain.models import AssembledStore
from truststore_assembler.environment import apply_to_environment, export_lines


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console logging on stderr.

    Unknown level names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def load_settings() -> Result[AppSettings]:
    return Result.from_computation(
        AppSettings,
        ErrorCode.CONFIGURATION_ERROR,
        "Invalid trust store configuration",
        catching=(ValidationError,),
    )


def run(settings: AppSettings) -> Result[AssembledStore]:
    """Assemble the trust store described by `settings`; no global state is touched."""
    ctx = LoggingExecutionContext(operation="AssembleTrustStore")
    return ctx.execute(
        lambda: assemble(
            settings.trust_source(platform_trust_store()),
            settings.certificate_entries(),
            settings.resolved_output_path(),
            formats=PROBE_ORDER,
            default_format=DEFAULT_FORMAT,
            reader=X509CertificateReader(),
        )
    )


def main() -> None:
    """Load settings, assemble, hand the result to the environment."""
    loaded = load_settings()
    if loaded.is_failure():
        print(f"FATAL: {loaded.error().describe()}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    settings = loaded.value()

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        base=settings.base.kind,
        certificates=len(settings.certificates),
        output=str(settings.resolved_output_path()),
    )

    result = run(settings)
    if result.is_failure():
        error = result.error()
        log.error("app.assembly_failed", code=error.code.value, error=error.describe())
        log.debug("app.failure_trace", trace=error.full_stack_trace())
        print(f"ERROR: {error.describe()}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    store = result.value()
    variables = apply_to_environment(store, settings.trust_store_handoff())
    log.info(
        "app.completed",
        path=str(store.path),
        format=store.format_name,
        reused=store.reused,
    )

    if settings.emit_exports:
        for line in export_lines(variables):
            print(line)  # noqa: T201


if __name__ == "__main__":
    main()
