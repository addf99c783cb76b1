"""Tests for plainledger.infra.loader — file discovery, load order, per-file state."""

from __future__ import annotations

from pathlib import Path

from conftest import REFERENCE_DATE

from plainledger.core.result import Err, Ok
from plainledger.infra.config import LedgerConfig
from plainledger.infra.loader import ledger_files, load_all, load_file, load_text
from plainledger.ledger.engine import FileState, Ledger


def _write(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _config(root: Path) -> LedgerConfig:
    return LedgerConfig(root=root, reference_date=REFERENCE_DATE)


def _populate(root: Path) -> None:
    _write(root, "commodities.coin", "commodity CAD\n  format 1.00 CAD\n")
    _write(root, "accounts.coin", "account Assets:Cash\n  commodity CAD\naccount Expenses:Food\n  commodity CAD\n")
    _write(root, "prices.coin", "P 2008/01/01 USD 1.25 CAD\n")
    _write(root, "2008/april.coin", "2008/04/02 lunch\n  Expenses:Food  12.00\n  Assets:Cash\n")
    _write(root, "broken.coin", "2008/04/03 ok\n  Expenses:Food  1.00 CAD\n  Assets:Cash\n\nbogus\n")
    _write(root, "zed.coin", "2008/04/04 dinner\n  Expenses:Food  30.00 CAD\n  Assets:Cash\n")
    _write(root, "notes.txt", "not a ledger file\n")


class TestLoadText:
    def test_success_marks_resolved(self) -> None:
        ledger = Ledger()
        result = load_text(ledger, "commodity CAD\n", "a.coin", REFERENCE_DATE)
        assert isinstance(result, Ok)
        assert result.value.items == 1
        assert ledger.file_state("a.coin") is FileState.RESOLVED

    def test_parse_error_contributes_nothing(self) -> None:
        ledger = Ledger()
        text = "2008/04/03 ok\n  AA  1.00 CAD\n  BB\n\nbogus\n"
        result = load_text(ledger, text, "bad.coin", REFERENCE_DATE)
        assert isinstance(result, Err)
        assert result.error.line == 5
        assert ledger.transactions == []
        assert ledger.file_state("bad.coin") is FileState.FAILED

    def test_resolution_error_keeps_earlier_items(self) -> None:
        ledger = Ledger()
        text = "2008/04/03 ok\n  AA  1.00 CAD\n  BB\n\n2008/04/04 bad\n  CC  1.00\n  DD  -1.00\n"
        result = load_text(ledger, text, "half.coin", REFERENCE_DATE)
        assert isinstance(result, Err)
        assert result.error.code == "UNKNOWN_COMMODITY"
        assert len(ledger.transactions) == 1
        assert ledger.file_state("half.coin") is FileState.FAILED


class TestLoadFile:
    def test_missing_file_is_io_error(self, tmp_path: Path) -> None:
        ledger = Ledger()
        path = tmp_path / "missing.coin"
        result = load_file(ledger, path, REFERENCE_DATE)
        assert isinstance(result, Err)
        assert result.error.code == "IO_ERROR"
        assert result.error.line == 0
        assert ledger.file_state(str(path)) is FileState.FAILED

    def test_undecodable_file_is_io_error(self, tmp_path: Path) -> None:
        path = tmp_path / "latin.coin"
        path.write_bytes(b"\xff\xfe\xfa")
        result = load_file(Ledger(), path, REFERENCE_DATE)
        assert isinstance(result, Err)
        assert result.error.code == "IO_ERROR"


class TestLoadAll:
    def test_declarations_first_then_sorted(self, tmp_path: Path) -> None:
        _populate(tmp_path)
        names = [p.relative_to(tmp_path).as_posix() for p in ledger_files(_config(tmp_path))]
        assert names == [
            "commodities.coin", "accounts.coin", "prices.coin",
            "2008/april.coin", "broken.coin", "zed.coin",
        ]

    def test_missing_declaration_files_are_skipped(self, tmp_path: Path) -> None:
        _write(tmp_path, "only.coin", "commodity CAD\n")
        assert ledger_files(_config(tmp_path)) == [tmp_path / "only.coin"]

    def test_one_bad_file_does_not_stop_the_rest(self, tmp_path: Path) -> None:
        _populate(tmp_path)
        ledger = Ledger()
        summary = load_all(ledger, _config(tmp_path))
        assert not summary.ok
        (error,) = summary.errors
        assert error.path == str(tmp_path / "broken.coin")
        assert len(summary.reports) == 5
        assert [t.description for t in ledger.transactions] == ["lunch", "dinner"]
        cash = ledger.accounts.by_name("Assets:Cash")
        assert cash is not None and cash.balance is not None
        assert cash.balance.magnitude == -4200
        assert ledger.file_state(str(tmp_path / "zed.coin")) is FileState.RESOLVED
