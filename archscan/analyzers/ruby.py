"""Ruby analyzer."""

from __future__ import annotations

import re
from typing import Iterable, List

from ..languages import Language
from ..models import AnalysisModel
from .base import ImportRule, MentionRule, RuleBasedAnalyzer, frameworks, unit_stem
from .patterns import PatternRule
from .utils import parse_gemfile, parse_gemspec

_MODULE = re.compile(r"^[ \t]*module\s+([A-Z][\w:]*)", re.MULTILINE)
_REQUIRE = re.compile(r"^[ \t]*require\s+['\"]([^'\"\n]+)['\"]", re.MULTILINE)
_REQUIRE_RELATIVE = re.compile(r"^[ \t]*require_relative\s+['\"]([^'\"\n]+)['\"]", re.MULTILINE)
_TYPES = re.compile(r"^[ \t]*(?:class|module)\s+[A-Z][\w:]*", re.MULTILINE)
_ROUTE = re.compile(r"^[ \t]*(get|post|put|patch|delete)\s+['\"]([^'\"\n]+)['\"]", re.MULTILINE)
_RESOURCES = re.compile(r"^[ \t]*resources?\s+:(\w+)", re.MULTILINE)
_MONGOID_CLASS = re.compile(
    r"^[ \t]*class[ \t]+(\w+)[^\n]*\n"
    r"(?:(?![ \t]*class\b)[^\n]*\n){0,10}?[ \t]*include[ \t]+Mongoid::Document",
    re.MULTILINE,
)


def _required(library: str) -> re.Pattern[str]:
    return re.compile(r"require\s+['\"]" + re.escape(library) + r"['\"]")


class RubyAnalyzer(RuleBasedAnalyzer):
    languages = (Language.RUBY,)

    package_pattern = _MODULE
    import_rules = (
        ImportRule(_REQUIRE, "require"),
        ImportRule(_REQUIRE_RELATIVE, "require_relative"),
    )
    ignored_imports = (".",)
    type_pattern = _TYPES
    framework_rules = frameworks(
        (re.compile(r"\bRails\b|ActionController|ActiveRecord|ApplicationController"), "Ruby on Rails"),
        (re.compile(r"ActiveRecord::Base|\bApplicationRecord\b"), "ActiveRecord (ORM)"),
        (re.compile(r"ActionMailer|ApplicationMailer"), "ActionMailer"),
        ("ActionCable", "ActionCable (WebSocket)"),
        (re.compile(r"ActiveJob|ApplicationJob"), "ActiveJob (Background Jobs)"),
        (_required("sinatra"), "Sinatra"),
        ("Sinatra::", "Sinatra"),
        ("Hanami::", "Hanami"),
        ("Grape::API", "Grape (API)"),
        ("Rack::", "Rack"),
        (_required("rack"), "Rack"),
        ("Sequel::", "Sequel (ORM)"),
        (_required("sequel"), "Sequel (ORM)"),
        ("Mongoid::", "Mongoid (MongoDB)"),
        (_required("redis"), "Redis"),
        ("Redis.new", "Redis"),
        (_required("pg"), "PostgreSQL (pg gem)"),
        ("PG.connect", "PostgreSQL (pg gem)"),
        (_required("mysql2"), "MySQL (mysql2 gem)"),
        (_required("sqlite3"), "SQLite3"),
        (re.compile(r"RSpec\.describe|require\s+['\"](?:rspec|spec_helper|rails_helper)['\"]"), "RSpec"),
        (re.compile(r"Minitest::Test|^[ \t]*def\s+test_\w+", re.MULTILINE), "Minitest"),
        ("Test::Unit", "Test::Unit"),
        ("Capybara", "Capybara (Integration Testing)"),
        ("FactoryBot", "FactoryBot"),
        (_required("faker"), "Faker"),
        ("Faraday", "Faraday (HTTP Client)"),
        ("HTTParty", "HTTParty"),
        ("RestClient", "RestClient"),
        ("Devise", "Devise (Authentication)"),
        ("Warden", "Warden"),
        (re.compile(r"\bJWT\b"), "JWT"),
        ("OmniAuth", "OmniAuth"),
        ("Sidekiq", "Sidekiq (Background Jobs)"),
        ("Resque", "Resque"),
        (re.compile(r"Delayed::Job|\.delay\."), "Delayed::Job"),
        (re.compile(r"ActiveModel::Serializer|ActiveModelSerializers"), "ActiveModel Serializers"),
        (re.compile(r"JSON\.parse|require\s+['\"]json['\"]"), "JSON (stdlib)"),
        ("Logger.new", "Ruby Logger"),
        (re.compile(r"Rake::Task|^[ \t]*task\s+:\w+", re.MULTILINE), "Rake (Build Tool)"),
        ("GraphQL::Schema", "GraphQL Ruby"),
        ("Elasticsearch::", "Elasticsearch"),
        (re.compile(r"Rails\.cache|Dalli::"), "Memcached / Dalli"),
    )
    pattern_rules = (
        PatternRule("Singleton", markers=("include Singleton", "require 'singleton'")),
        PatternRule("Observer", markers=("include Observable", "require 'observer'")),
        PatternRule("Decorator", file_tokens=("decorator",), markers=("SimpleDelegator", "Forwardable")),
        PatternRule(
            "Factory",
            file_tokens=("factory",),
            predicate=lambda content: re.search(r"def\s+self\.create", content) is not None,
        ),
        PatternRule(
            "Builder",
            file_tokens=("builder",),
            predicate=lambda content: re.search(r"def\s+build\b", content) is not None,
        ),
        PatternRule("Strategy", file_tokens=("strategy", "policy")),
        PatternRule("Service Object", file_tokens=("service",)),
        PatternRule("Repository", file_tokens=("repository", "repo")),
        PatternRule("Presenter / View Model", file_tokens=("presenter", "view_model")),
        PatternRule("Concern (Mixin)", file_tokens=("concern",), markers=("extend ActiveSupport::Concern",)),
        PatternRule(
            "MVC Controller",
            file_tokens=("controller",),
            markers=("< ApplicationController", "< ActionController"),
        ),
        PatternRule("ActiveRecord Model", markers=("< ApplicationRecord", "< ActiveRecord::Base")),
        PatternRule("Interactor / Use Case", file_tokens=("interactor", "use_case")),
        PatternRule("Serializer", file_tokens=("serializer",)),
        PatternRule("Background Worker", file_tokens=("worker", "job")),
    )
    schema_rules = (
        MentionRule(
            re.compile(r"(?<!DB\.)create_table\s*\(?\s*[:\"'](\w+)"),
            lambda m: f"Table: {m.group(1)} (ActiveRecord Migration)",
        ),
        MentionRule(
            re.compile(r"DB\.create_table\s*\(?\s*[:\"'](\w+)"),
            lambda m: f"Table: {m.group(1)} (Sequel)",
        ),
    )

    def analyze_manifest(self, unit_name: str, content: str, model: AnalysisModel) -> bool:
        lowered = unit_name.lower()
        if lowered == "gemfile":
            gems = parse_gemfile(content)
        elif lowered.endswith(".gemspec"):
            gems = parse_gemspec(content)
        else:
            return False
        for gem in gems:
            model.add_dependency(unit_name, gem, "dependency")
        model.add_framework("Bundler (Dependency Management)")
        return True

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        match = _MODULE.search(content)
        return [match.group(1)] if match else []

    def record_patterns(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        super().record_patterns(unit_name, content, model)
        lowered = unit_name.lower()
        if "def call" in content:
            if "command" in lowered:
                model.add_design_pattern("Command", unit_stem(unit_name))
            elif "controller" not in lowered and "service" not in lowered:
                model.add_design_pattern("Service Object", unit_stem(unit_name))

    def find_schemas(self, content: str) -> List[str]:
        schemas = list(super().find_schemas(content))
        if "include Mongoid::Document" in content:
            match = _MONGOID_CLASS.search(content)
            if match:
                schemas.append(f"Collection: {match.group(1)} (Mongoid)")
        return schemas

    def find_endpoints(self, content: str) -> List[str]:
        if "Sinatra" in content or re.search(r"require\s+['\"]sinatra", content):
            framework = "Sinatra"
        elif "Grape::API" in content:
            framework = "Grape"
        else:
            framework = "Rails Route"
        endpoints = [f"{verb.upper()} {path} ({framework})" for verb, path in _ROUTE.findall(content)]
        endpoints.extend(f"CRUD /{name} (Rails resources)" for name in _RESOURCES.findall(content))
        return endpoints


__all__ = ["RubyAnalyzer"]
