"""
Unit tests for the certificate-store loader — probing by trial.

Mock container formats pin down the probing policy (order, which outcomes
continue and which stop); the real formats check that each kind of store
on disk is detected.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from cryptography import x509
from railway import ErrorCode, Result, ResultAssertions, StoreFailures

from tests.conftest import GARBAGE, STORE_PASSWORD, jks_bytes, pem_bundle_bytes, write_pkcs12
from truststore_assembler.adapters.formats import PROBE_ORDER
from truststore_assembler.domain.models import StoreHandle
from truststore_assembler.loader import probe_and_load

# ─────────────────────── Mock Format Factory ───────────────────────


def _make_format(name: str, result: Result[StoreHandle] | None = None) -> MagicMock:
    """Create a mock ContainerFormat whose open() returns `result` (mismatch by default)."""
    mock = MagicMock()
    mock.name = name
    mock.open.return_value = result if result is not None else StoreFailures.format_mismatch(name)
    return mock


@pytest.fixture()
def store_file(tmp_path: Path) -> Path:
    path = tmp_path / "store.bin"
    path.write_bytes(b"opaque store bytes")
    return path


# ─────────────────────── Probing Policy ───────────────────────


class TestProbingPolicy:
    """Order and stop conditions of the probing loop."""

    def test_first_accepting_format_wins(self, store_file: Path) -> None:
        """
        GIVEN three formats where the second and third would both accept the file
        WHEN the store is probed
        THEN the second one wins and the third is never tried.
        """
        handle = MagicMock(spec=StoreHandle)
        first = _make_format("A")
        second = _make_format("B", Result.success(handle))
        third = _make_format("C", Result.success(MagicMock(spec=StoreHandle)))

        result = probe_and_load(store_file, STORE_PASSWORD, [first, second, third])

        assert ResultAssertions.assert_success(result) is handle
        first.open.assert_called_once_with(b"opaque store bytes", STORE_PASSWORD)
        second.open.assert_called_once()
        third.open.assert_not_called()

    def test_unavailable_format_is_skipped(self, store_file: Path) -> None:
        handle = MagicMock(spec=StoreHandle)
        formats = [
            _make_format("A", StoreFailures.format_unavailable("A", ImportError("x"))),
            _make_format("B", Result.success(handle)),
        ]
        assert ResultAssertions.assert_success(probe_and_load(store_file, STORE_PASSWORD, formats)) is handle

    def test_corruption_does_not_stop_probing(self, store_file: Path) -> None:
        """
        GIVEN a format that reports CORRUPT_STORE followed by one that accepts
        WHEN the store is probed
        THEN the later format still gets its turn and wins.
        """
        handle = MagicMock(spec=StoreHandle)
        formats = [
            _make_format("A", StoreFailures.corrupt_store("bad MAC")),
            _make_format("B", Result.success(handle)),
        ]
        assert ResultAssertions.assert_success(probe_and_load(store_file, STORE_PASSWORD, formats)) is handle

    def test_all_mismatch_is_format_not_recognized(self, store_file: Path) -> None:
        result = probe_and_load(store_file, STORE_PASSWORD, [_make_format("A"), _make_format("B")])
        ResultAssertions.assert_failure(result, ErrorCode.FORMAT_NOT_RECOGNIZED)
        ResultAssertions.assert_failure_message_contains(result, str(store_file))

    def test_corruption_wins_over_mismatch(self, store_file: Path) -> None:
        """
        GIVEN one format that recognized but could not verify the file
        WHEN no format accepts it
        THEN CORRUPT_STORE (naming the path) is returned, not FORMAT_NOT_RECOGNIZED.
        """
        cause = ValueError("mac verify failure")
        formats = [_make_format("A", StoreFailures.corrupt_store("bad MAC", cause)), _make_format("B")]

        result = probe_and_load(store_file, STORE_PASSWORD, formats)

        ResultAssertions.assert_failure(result, ErrorCode.CORRUPT_STORE)
        ResultAssertions.assert_failure_message_contains(result, str(store_file))
        assert ResultAssertions.assert_failure_caused_by(result, ValueError) is cause

    def test_unexpected_exception_propagates(self, store_file: Path) -> None:
        broken = _make_format("A")
        broken.open.side_effect = RuntimeError("bug in format")
        never = _make_format("B")

        with pytest.raises(RuntimeError, match="bug in format"):
            probe_and_load(store_file, STORE_PASSWORD, [broken, never])
        never.open.assert_not_called()

    def test_no_formats_is_format_not_recognized(self, store_file: Path) -> None:
        ResultAssertions.assert_failure(probe_and_load(store_file, STORE_PASSWORD, []), ErrorCode.FORMAT_NOT_RECOGNIZED)


class TestUnreadableFile:
    def test_missing_file_is_file_unreadable(self, tmp_path: Path) -> None:
        fmt = _make_format("A")
        result = probe_and_load(tmp_path / "missing.p12", STORE_PASSWORD, [fmt])
        ResultAssertions.assert_failure(result, ErrorCode.FILE_UNREADABLE)
        fmt.open.assert_not_called()

    def test_directory_is_file_unreadable(self, tmp_path: Path) -> None:
        ResultAssertions.assert_failure(probe_and_load(tmp_path, STORE_PASSWORD, [_make_format("A")]), ErrorCode.FILE_UNREADABLE)

    def test_open_error_is_file_unreadable(self, store_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        GIVEN a store file that exists but cannot be opened
        WHEN the store is probed
        THEN FILE_UNREADABLE is returned with the OSError as cause.
        """

        def deny(self: Path, *args: object, **kwargs: object) -> None:
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(Path, "open", deny)
        result = probe_and_load(store_file, STORE_PASSWORD, [_make_format("A")])

        ResultAssertions.assert_failure(result, ErrorCode.FILE_UNREADABLE)
        ResultAssertions.assert_failure_caused_by(result, PermissionError)


# ─────────────────────── Real Formats ───────────────────────


class TestDetectsRealFormats:
    """probe_and_load with the production probe order."""

    def test_detects_pkcs12(self, tmp_path: Path, ca_certificate: x509.Certificate) -> None:
        path = write_pkcs12(tmp_path / "store.p12", {"root": ca_certificate})
        handle = ResultAssertions.assert_success(probe_and_load(path, STORE_PASSWORD, PROBE_ORDER))
        assert handle.format_name == "PKCS12"
        assert handle.certificates == {"root": ca_certificate}

    def test_detects_pem_bundle(self, tmp_path: Path, ca_certificate: x509.Certificate) -> None:
        path = tmp_path / "bundle.pem"
        path.write_bytes(pem_bundle_bytes({"root": ca_certificate}))
        handle = ResultAssertions.assert_success(probe_and_load(path, "changeit", PROBE_ORDER))
        assert handle.format_name == "PEM"

    def test_detects_jks(self, tmp_path: Path, ca_certificate: x509.Certificate) -> None:
        path = tmp_path / "cacerts"
        path.write_bytes(jks_bytes({"root": ca_certificate}))
        handle = ResultAssertions.assert_success(probe_and_load(path, STORE_PASSWORD, PROBE_ORDER))
        assert handle.format_name == "JKS"

    def test_pkcs12_wrong_passphrase_is_corrupt_store(
        self, tmp_path: Path, ca_certificate: x509.Certificate
    ) -> None:
        path = write_pkcs12(tmp_path / "store.p12", {"root": ca_certificate})
        result = probe_and_load(path, "wrong-passphrase", PROBE_ORDER)
        ResultAssertions.assert_failure(result, ErrorCode.CORRUPT_STORE)
        ResultAssertions.assert_failure_message_contains(result, str(path))

    def test_garbage_is_format_not_recognized(self, tmp_path: Path) -> None:
        path = tmp_path / "random.bin"
        path.write_bytes(GARBAGE)
        result = probe_and_load(path, STORE_PASSWORD, PROBE_ORDER)
        ResultAssertions.assert_failure(result, ErrorCode.FORMAT_NOT_RECOGNIZED)
