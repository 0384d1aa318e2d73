from __future__ import annotations

import json
from pathlib import Path

import pytest

from levelforge.__main__ import (
    EXIT_BAD_CONFIG,
    EXIT_INTERRUPTED,
    EXIT_OK,
    build_parser,
    main,
)


def test_parser_defaults() -> None:
    args = build_parser().parse_args([])
    assert args.biome == "dungeon"
    assert args.format == "json"
    assert args.seed is None
    assert not args.report


def test_generate_and_save_json(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "out" / "cave.json"

    code = main(
        ["--biome", "cave", "--width", "40", "--height", "40", "--seed", "7"]
        + ["--output", str(out)]
    )

    assert code == EXIT_OK
    document = json.loads(out.read_text(encoding="utf-8"))
    assert document["format"] == "tpt_level_v1"
    assert document["config"]["seed"] == 7
    stdout = capsys.readouterr().out
    assert "Generated cave level" in stdout
    assert "Saved json export to" in stdout


def test_tmx_output(tmp_path: Path) -> None:
    out = tmp_path / "town.tmx"
    code = main(["--biome", "town", "--seed", "3", "-o", str(out), "--format", "tmx"])
    assert code == EXIT_OK
    assert "<map" in out.read_text(encoding="utf-8")


def test_report(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--seed", "42", "--report"]) == EXIT_OK
    assert "# Level Quality Report" in capsys.readouterr().out


def test_bad_dimensions() -> None:
    assert main(["--width", "0"]) == EXIT_BAD_CONFIG


def test_zero_timeout() -> None:
    assert main(["--seed", "1", "--timeout", "0"]) == EXIT_INTERRUPTED


def test_unknown_format_is_rejected_by_parser() -> None:
    with pytest.raises(SystemExit):
        main(["--format", "yaml"])
