from __future__ import annotations

import re

from edi_import.cli.__main__ import main as cli_main

"""SUMMARY line contract: exactly one line per completed run, fixed key order."""

SUMMARY_RE = re.compile(
    r"^SUMMARY files=(\d+) processed=(\d+) amended=(\d+) failed=(\d+) details=(\d+) qty=(-?\d+) "
    r"elapsed_sec=([0-9]+(\.[0-9]+)?)$",
    re.MULTILINE,
)


def test_summary_line_format(write_config, clean_env, live, edi_builder, capsys):
    input_dir = write_config.parent.parent / "input"
    edi_builder().header(po="PO1").detail(quantity="3").summary().write(input_dir / "1.txt")
    edi_builder().header(po="PO2", version="009").summary().write(input_dir / "2.txt")

    cli_main([])

    matches = SUMMARY_RE.findall(capsys.readouterr().out)
    assert len(matches) == 1
    files, processed, amended, failed, details, qty = (int(v) for v in matches[0][:6])
    assert (files, processed, amended, failed, details, qty) == (2, 1, 1, 0, 1, 3)
    assert files == processed + amended + failed


def test_summary_line_for_empty_directory(write_config, clean_env, live, capsys):
    cli_main([])
    out = capsys.readouterr().out
    assert re.search(r"^SUMMARY files=0 processed=0 amended=0 failed=0 details=0 qty=0 ", out, re.MULTILINE)
