"""Tests for archscan.repo_scanner."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from archscan.languages import Language
from archscan.repo_scanner import ExcludePattern, RepoScanner, is_excluded, parse_exclude_patterns


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_iter_candidates_classifies_and_orders_files(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "b.py", "b = 1\n")
    _write(tmp_path / "src" / "a.py", "a = 1\n")
    _write(tmp_path / "Gemfile", "gem 'rails'\n")
    _write(tmp_path / "README.md", "# Demo\n")
    _write(tmp_path / ".git" / "hooks" / "pre-commit.py", "print('hook')\n")
    _write(tmp_path / "__pycache__" / "cached.py", "x = 1\n")

    candidates = list(RepoScanner().iter_candidates(tmp_path))

    assert [c.relative_path for c in candidates] == ["Gemfile", "src/a.py", "src/b.py"]
    assert [c.language for c in candidates] == [Language.RUBY, Language.PYTHON, Language.PYTHON]


def test_exclude_paths_follow_gitignore_rules(tmp_path: Path) -> None:
    _write(tmp_path / "vendor" / "lib.rb", "module Vendor; end\n")
    _write(tmp_path / "app" / "main.rb", "module App; end\n")
    _write(tmp_path / "app" / "generated_pb.rb", "module Gen; end\n")
    _write(tmp_path / "app" / "keep_pb.rb", "module Keep; end\n")

    scanner = RepoScanner(["vendor/", "*_pb.rb", "!keep_pb.rb"])
    paths = [c.relative_path for c in scanner.iter_candidates(tmp_path)]

    assert paths == ["app/keep_pb.rb", "app/main.rb"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlinked_files_and_directories_are_not_followed(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    _write(outside / "secret.py", "token = 'x'\n")
    root = tmp_path / "root"
    _write(root / "real.py", "ok = True\n")
    try:
        (root / "link.py").symlink_to(outside / "secret.py")
        (root / "linked_dir").symlink_to(outside, target_is_directory=True)
    except OSError:
        pytest.skip("symlink creation not permitted")

    paths = [c.relative_path for c in RepoScanner().iter_candidates(root)]

    assert paths == ["real.py"]


def test_exclude_pattern_parses_flags() -> None:
    pattern = ExcludePattern.parse("!/build/")

    assert pattern == ExcludePattern(glob="build", negated=True, dirs_only=True, rooted=True)
    assert ExcludePattern.parse("# comment") is None
    assert ExcludePattern.parse("   ") is None
    assert ExcludePattern.parse("/") is None


def test_rooted_patterns_only_match_from_the_root() -> None:
    patterns = parse_exclude_patterns(["docs/*.py", "tmp"])

    assert is_excluded("docs/conf.py", False, patterns)
    assert not is_excluded("src/docs/conf.py", False, patterns)
    assert is_excluded("src/tmp", True, patterns)
    assert is_excluded("src/tmp", False, patterns)
