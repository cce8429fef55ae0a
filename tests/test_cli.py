"""CLI behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from archscan.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "analyze", "src"])
    assert args.verbose is True
    assert args.command == "analyze"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "src", "--verbose"])
    assert args.verbose is True
    assert args.path == "src"


def test_cli_parses_analyze_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["analyze", "app.zip", "--output", "out", "--workers", "3", "--no-parser", "--debug"]
    )
    assert args.output == "out"
    assert args.workers == 3
    assert args.no_parser is True
    assert args.debug is True
    assert args.config is None


def test_analyze_prints_json_report(repo_builder, capsys, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    repo_builder.write({"app.py": "import flask\n\nclass App:\n    pass\n"})

    main(["analyze", str(repo_builder.path())])

    report = json.loads(capsys.readouterr().out)
    assert report["project_name"] == "repo"
    assert report["language_files"] == {"Python": 1}
    assert report["class_count"] == 1


def test_analyze_writes_report_to_output_dir(repo_builder, capsys, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    repo_builder.write({"lib.rb": "module Lib\nend\n"})
    output = tmp_path / "reports" / "nested"

    main(["analyze", str(repo_builder.path()), "--output", str(output)])

    written = list(output.glob("analysis-*.json"))
    assert len(written) == 1
    assert json.loads(written[0].read_text(encoding="utf-8"))["packages"] == ["Lib"]
    assert "Analysis written to" in capsys.readouterr().out


def test_analyze_reports_fatal_error_without_traceback(tmp_path: Path, capsys, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing.zip")])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "archscan analyze failed" in err
    assert "Traceback" not in err


def test_analyze_debug_shows_traceback(tmp_path: Path, capsys, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit):
        main(["analyze", str(tmp_path / "missing.zip"), "--debug"])

    assert "Traceback" in capsys.readouterr().err


def test_analyze_rejects_root_output_dir(repo_builder, capsys, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(repo_builder.path()), "--output", "/"])

    assert excinfo.value.code == 1
    assert "filesystem root" in capsys.readouterr().err


def test_limits_command_prints_active_limits(tmp_path: Path, capsys, monkeypatch) -> None:
    (tmp_path / ".archscan.yml").write_text("limits:\n  max_file_count: 42\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    main(["limits"])

    out = capsys.readouterr().out
    assert "max_file_count: 42" in out
    assert "max_archive_size: 500 MB" in out


def test_log_file_receives_debug_records(repo_builder, capsys, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    repo_builder.write({"main.rs": "pub struct App;\n"})
    log_file = tmp_path / "logs" / "archscan.log"

    main(["--log-file", str(log_file), "analyze", str(repo_builder.path())])

    capsys.readouterr()
    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG" in text
    assert "archscan." in text
