from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from edi_import.cli.__main__ import EXIT_FATAL, EXIT_SUCCESS
from edi_import.cli.__main__ import main as cli_main
from edi_import.errors import LockError

"""Exit code contract: 0 when the run completed, 1 on fatal errors."""


def test_exit_code_constants():
    assert (EXIT_SUCCESS, EXIT_FATAL) == (0, 1)


def test_exit_code_fatal_startup(temp_workdir: Path, clean_env, capsys):
    # no config/edi_import.yml
    code = cli_main([])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_invalid_config(write_config, clean_env, capsys):
    write_config.write_text("input_file_location: 12\n", encoding="utf-8")
    assert cli_main([]) == 1
    assert "config validation failed" in capsys.readouterr().out


def test_exit_code_all_success(write_config, clean_env, live, edi_builder, capsys):
    for n in (1, 2):
        edi_builder().header(po=f"PO{n}").detail().summary().write(write_config.parent.parent / "input" / f"{n}.txt")

    code = cli_main([])

    assert code == 0
    assert "SUMMARY files=2 processed=2 amended=0 failed=0" in capsys.readouterr().out


def test_exit_code_partial_failure_is_success(write_config, clean_env, live, fake_db, edi_builder, capsys):
    fake_db.existing_orders.add(("WOOL01", "PO2"))
    input_dir = write_config.parent.parent / "input"
    edi_builder().header(po="PO1").detail().summary().write(input_dir / "1.txt")
    edi_builder().header(po="PO2").detail().summary().write(input_dir / "2.txt")

    code = cli_main([])

    assert code == 0
    assert "processed=1 amended=0 failed=1" in capsys.readouterr().out


def test_exit_code_lock_failure(write_config, clean_env, live, fake_lock, edi_builder, monkeypatch, capsys):
    def fail():
        raise LockError("cannot acquire lock on table edi_import_lock")

    monkeypatch.setattr(fake_lock, "acquire", fail)
    edi_builder().header().detail().summary().write(write_config.parent.parent / "input" / "1.txt")

    assert cli_main([]) == 1


def test_exit_code_unexpected_error(write_config, clean_env, live, capsys):
    with patch("edi_import.cli.__main__.ImportOrchestrator") as orchestrator:
        orchestrator.return_value.run.side_effect = RuntimeError("boom")
        code = cli_main([])
    assert code == 1
    assert "CRITICAL Unexpected error: boom" in capsys.readouterr().out
