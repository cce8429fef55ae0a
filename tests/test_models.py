"""Tests for archscan.models."""

from __future__ import annotations

import itertools

import pytest

from archscan.languages import Language
from archscan.models import AnalysisModel, Dependency, SourceUnit


def _partial(index: int) -> AnalysisModel:
    model = AnalysisModel()
    model.add_package(f"com.example.p{index}")
    model.add_package("com.example.shared")
    model.add_dependency(f"p{index}", "java.util", "import")
    model.add_framework("Spring Boot")
    model.add_framework(f"F{index}")
    model.add_design_pattern("Singleton", f"Unit{index}.java")
    model.add_database_schema(f"Table: t{index} (SQL DDL)")
    model.add_api_endpoint(f"GET /p{index} (Spring MVC)")
    model.add_language_file(Language.JAVA if index % 2 else Language.KOTLIN)
    model.add_classes(index + 1)
    return model


def test_source_unit_name_drops_directories() -> None:
    unit = SourceUnit("app/src/Main.java", Language.JAVA, "")
    assert unit.name == "Main.java"
    assert SourceUnit("win\\dir\\A.cs", Language.CSHARP, "").name == "A.cs"


def test_packages_are_unique_and_blank_names_ignored() -> None:
    model = AnalysisModel()
    model.add_package("com.example")
    model.add_package("com.example")
    model.add_package("   ")

    assert model.packages == {"com.example"}
    assert model.package_count() == 1


def test_add_classes_rejects_negative_counts() -> None:
    with pytest.raises(ValueError):
        AnalysisModel().add_classes(-1)


def test_merge_is_commutative_for_sets_and_counts() -> None:
    partials = [_partial(index) for index in range(3)]
    results = []
    for order in itertools.permutations(partials):
        model = AnalysisModel()
        for partial in order:
            model.merge(partial)
        results.append(model)

    first = results[0]
    for other in results[1:]:
        assert other.packages == first.packages
        assert other.framework_usage == first.framework_usage
        assert other.language_files == first.language_files
        assert other.class_count == first.class_count
        assert sorted(other.api_endpoints) == sorted(first.api_endpoints)
        assert sorted(other.database_schemas) == sorted(first.database_schemas)
        assert sorted(other.design_patterns["Singleton"]) == sorted(first.design_patterns["Singleton"])

    assert first.framework_usage["Spring Boot"] == 3
    assert first.total_file_count() == 3
    assert first.class_count == 6


def test_merge_preserves_list_order() -> None:
    model = AnalysisModel()
    model.merge(_partial(0))
    model.merge(_partial(1))

    assert model.api_endpoints == ["GET /p0 (Spring MVC)", "GET /p1 (Spring MVC)"]
    assert model.dependencies == [
        Dependency("p0", "java.util", "import"),
        Dependency("p1", "java.util", "import"),
    ]
    assert model.design_patterns == {"Singleton": ["Unit0.java", "Unit1.java"]}


def test_build_modules_buckets_by_last_segment() -> None:
    model = AnalysisModel()
    for package in ("com.acme.billing", "org.other.billing", "App::Billing", "app\\http", "crate/net"):
        model.add_package(package)

    modules = {module.name: module for module in model.build_modules()}

    assert sorted(modules) == ["Billing", "billing", "http", "net"]
    assert modules["billing"].package_count == 2
    assert modules["billing"].package_name == "com.acme.billing"
    assert modules["Billing"].package_count == 1
    assert model.modules == [modules[name] for name in sorted(modules)]


def test_to_dict_is_deterministic_and_json_ready() -> None:
    model = AnalysisModel(project_name="demo")
    model.merge(_partial(1))
    model.build_modules()

    snapshot = model.to_dict()

    assert snapshot["project_name"] == "demo"
    assert snapshot["packages"] == ["com.example.p1", "com.example.shared"]
    assert snapshot["dependencies"] == [{"from": "p1", "to": "java.util", "kind": "import"}]
    assert snapshot["language_files"] == {"Java": 1}
    assert snapshot["total_files"] == 1
    assert snapshot["class_count"] == 2
    assert snapshot["modules"][0] == {"name": "p1", "package_name": "com.example.p1", "package_count": 1}
