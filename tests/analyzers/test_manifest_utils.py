from __future__ import annotations

import json

from archscan.analyzers.utils import (
    parse_cargo_toml,
    parse_composer_json,
    parse_composer_lock,
    parse_gemfile,
    parse_gemspec,
    parse_pipfile,
    parse_pyproject,
    parse_requirements,
    parse_setup_file,
)


def test_parse_requirements_skips_comments_and_options() -> None:
    content = "# pinned\nrequests==2.31\n\n-e .\n--index-url https://example.org\nuvicorn[standard]>=0.23\nattrs ; python_version > '3.8'\n"

    assert parse_requirements(content) == ["requests", "uvicorn", "attrs"]


def test_parse_pyproject_reads_pep621_and_poetry() -> None:
    content = """
[project]
dependencies = ["fastapi>=0.110", "PyYAML"]

[project.optional-dependencies]
test = ["pytest>=7"]

[tool.poetry.dependencies]
python = "^3.11"
httpx = "^0.27"
"""

    assert parse_pyproject(content) == ["fastapi", "PyYAML", "pytest", "httpx"]


def test_parse_pyproject_tolerates_invalid_toml() -> None:
    assert parse_pyproject("[project\n") == []


def test_parse_pipfile_sections() -> None:
    content = '[packages]\nflask = "*"\n\n[dev-packages]\npytest = "*"\n'

    assert parse_pipfile(content) == ["flask", "pytest"]


def test_parse_setup_py_install_requires() -> None:
    content = "setup(name='demo', install_requires=['click>=8', \"rich\"])\n"

    assert parse_setup_file(content) == ["click", "rich"]


def test_parse_setup_cfg_install_requires() -> None:
    content = "[options]\ninstall_requires =\n    numpy>=1.26\n    # optional\n    pandas\npython_requires = >=3.11\n"

    assert parse_setup_file(content) == ["numpy", "pandas"]


def test_ruby_manifests() -> None:
    assert parse_gemfile("gem 'rails'\n  gem \"puma\", '~> 6'\n") == ["rails", "puma"]
    assert parse_gemspec("spec.add_dependency 'rack'\nspec.add_development_dependency(\"rspec\")\n") == [
        "rack",
        "rspec",
    ]


def test_parse_cargo_toml_sections() -> None:
    content = '[dependencies]\nserde = "1"\n\n[build-dependencies]\ncc = "1"\n'

    assert parse_cargo_toml(content) == ["serde", "cc"]


def test_composer_files() -> None:
    manifest = json.dumps({"require": {"symfony/console": "^6"}, "require-dev": {"phpunit/phpunit": "^10"}})
    lock = json.dumps({"packages": [{"name": "monolog/monolog"}], "packages-dev": [{"name": "mockery/mockery"}]})

    assert parse_composer_json(manifest) == ["symfony/console", "phpunit/phpunit"]
    assert parse_composer_lock(lock) == ["monolog/monolog", "mockery/mockery"]
    assert parse_composer_json("{not json") == []
    assert parse_composer_lock("[]") == []
