from __future__ import annotations

import textwrap
from collections.abc import Callable
from typing import Any

import pytest

from log_migrate.engine.models import RewriteOptions
from log_migrate.parser.java_parser import JavaSourceParser
from log_migrate.services.migrator import LogMigrator
from log_migrate.tree import InvocationSite, SourceFile


@pytest.fixture(scope="session")
def java_parser() -> JavaSourceParser:
    return JavaSourceParser()


@pytest.fixture
def parse_java(java_parser: JavaSourceParser) -> Callable[[str], SourceFile]:
    def _parse(source: str) -> SourceFile:
        return java_parser.parse(textwrap.dedent(source).lstrip(), "Test.java")

    return _parse


@pytest.fixture
def site_named() -> Callable[[SourceFile, str], InvocationSite]:
    def _site(source_file: SourceFile, name: str) -> InvocationSite:
        return next(s for s in source_file.sites if s.invocation.name == name)

    return _site


@pytest.fixture
def migrate() -> Callable[..., str]:
    def _migrate(source: str, **options: Any) -> str:
        migrator = LogMigrator(RewriteOptions(**options), excluded_dirs=())
        return migrator.migrate_source(textwrap.dedent(source).lstrip(), "Test.java")

    return _migrate
