"""Tests for archscan.orchestrator."""

from __future__ import annotations

from pathlib import Path

import pytest

from archscan.analyzers import LanguageAnalyzer, build_registry
from archscan.languages import Language
from archscan.limits import DEFAULT_LIMITS
from archscan.models import AnalysisModel
from archscan.orchestrator import AnalysisOrchestrator


class ExplodingAnalyzer(LanguageAnalyzer):
    """Adds facts and then fails, to prove partial contributions are discarded."""

    languages = (Language.PYTHON,)

    def analyze(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        model.add_package("half.applied")
        model.add_classes(5)
        if "explode" in content:
            raise RuntimeError("analyzer bug")


def _mixed_tree(repo_builder) -> None:
    repo_builder.write(
        {
            "app/Main.java": """
                package com.example.app;

                import java.util.List;
                import com.example.core.Service;

                public class Main {
                    public static void main(String[] args) {}
                }
            """,
            "app/Service.java": """
                package com.example.core;

                @Service
                public class Service {}
            """,
            "web/routes.py": """
                from flask import Flask

                app = Flask(__name__)

                @app.route("/health")
                def health():
                    return "ok"
            """,
            "web/server.ts": """
                import express from "express";
                const app = express();
                app.get("/api/items", (req, res) => res.json([]));
            """,
            "README.md": "# Demo\n",
        }
    )


def test_analyze_mixed_tree_populates_model(repo_builder) -> None:
    _mixed_tree(repo_builder)

    model = repo_builder.analyze()

    assert model.project_name == "repo"
    assert model.language_files == {
        Language.JAVA: 2,
        Language.PYTHON: 1,
        Language.TYPESCRIPT: 1,
    }
    assert model.total_file_count() == 4
    assert {"com.example.app", "com.example.core"} <= model.packages
    assert model.class_count >= 2
    assert "ROUTE /health (Flask)" in model.api_endpoints
    assert "GET /api/items (Express)" in model.api_endpoints
    assert model.framework_usage.get("Flask") == 1
    assert [module.name for module in model.modules] == sorted(module.name for module in model.modules)


def test_concurrent_run_matches_sequential_run(repo_builder) -> None:
    _mixed_tree(repo_builder)
    for index in range(12):
        repo_builder.write({f"extra/Mod{index}.java": f"package extra.m{index};\npublic class Mod{index} {{}}\n"})

    sequential = AnalysisOrchestrator(workers=1).analyze(repo_builder.path())
    concurrent = AnalysisOrchestrator(workers=4).analyze(repo_builder.path())

    assert concurrent.to_dict() == sequential.to_dict()


def test_analyzer_failure_discards_unit_contribution(repo_builder) -> None:
    repo_builder.write({"ok.py": "fine = True\n", "bad.py": "explode = True\n"})
    orchestrator = AnalysisOrchestrator({Language.PYTHON: ExplodingAnalyzer()})

    model = orchestrator.analyze(repo_builder.path())

    assert model.language_files == {Language.PYTHON: 1}
    assert model.class_count == 5
    assert orchestrator.stats.analyzed == 1
    assert orchestrator.stats.skipped["analyzer-error"] == 1


def test_oversized_files_are_skipped(repo_builder) -> None:
    repo_builder.write({"small.py": "x = 1\n", "large.py": "y = 2\n" * 100})
    limits = DEFAULT_LIMITS.tightened(max_source_file_size=50)
    orchestrator = AnalysisOrchestrator(limits=limits)

    model = orchestrator.analyze(repo_builder.path())

    assert model.total_file_count() == 1
    assert orchestrator.stats.skipped["oversized"] == 1


def test_disabled_languages_are_not_counted(repo_builder) -> None:
    repo_builder.write({"a.py": "import os\n", "B.java": "public class B {}\n"})
    orchestrator = AnalysisOrchestrator(build_registry(["python"]))

    model = orchestrator.analyze(repo_builder.path())

    assert model.language_files == {Language.PYTHON: 1}
    assert orchestrator.stats.skipped["disabled-language"] == 1


def test_exclude_paths_are_honored(repo_builder) -> None:
    repo_builder.write({"src/a.py": "a = 1\n", "vendor/b.py": "b = 2\n"})

    model = repo_builder.analyze(exclude_paths=["vendor/"])

    assert model.total_file_count() == 1


def test_undecodable_bytes_are_replaced(repo_builder) -> None:
    path = repo_builder.path() / "legacy.py"
    path.write_bytes(b"import flask\nname = '\xff\xfe'\n")

    model = repo_builder.analyze()

    assert model.language_files == {Language.PYTHON: 1}
    assert model.framework_usage.get("Flask") == 1


def test_workers_must_be_positive() -> None:
    with pytest.raises(ValueError):
        AnalysisOrchestrator(workers=0)


def test_empty_directory_yields_empty_model(tmp_path: Path) -> None:
    model = AnalysisOrchestrator().analyze(tmp_path, project_name="empty")

    assert model.project_name == "empty"
    assert model.total_file_count() == 0
    assert model.modules == []
