from __future__ import annotations

import difflib
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from .. import constants as cs
from .. import exceptions as ex
from .. import logs as ls
from ..config import settings
from ..engine.models import Replacement, RewriteOptions
from ..printer import render
from ..schemas import AppliedRewrite, FileMigration
from .runner import FixedPointRunner


def unified_diff(before: str, after: str, path: str) -> str:
    diff = difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=cs.DIFF_LABEL_BEFORE.format(path=path),
        tofile=cs.DIFF_LABEL_AFTER.format(path=path),
    )
    return "".join(diff)


def _applied_rewrites(replacements: Iterable[Replacement]) -> list[AppliedRewrite]:
    return [
        AppliedRewrite(
            rule=replacement.rule,
            before=render(replacement.target),
            after=render(replacement.expression),
        )
        for replacement in replacements
    ]


class LogMigrator:
    def __init__(
        self,
        options: RewriteOptions,
        excluded_dirs: Iterable[str] | None = None,
    ) -> None:
        self.options = options
        self.excluded_dirs = frozenset(
            settings.EXCLUDED_DIRS if excluded_dirs is None else excluded_dirs
        )
        self.runner = FixedPointRunner(options)
        logger.info(
            ls.MIGRATOR_INIT.format(
                framework=options.target,
                rules=", ".join(sorted(options.enabled_rules)),
            )
        )

    def migrate_source(self, source: str, path: str = "<memory>") -> str:
        """Rewrite Java source text; raises on syntax errors or non-convergence."""
        result = self.runner.run(source.encode(cs.ENCODING_UTF8), path)
        return result.source.decode(cs.ENCODING_UTF8)

    def migrate_file(
        self, file_path: Path, write: bool = False, root: Path | None = None
    ) -> FileMigration:
        display = str(file_path.relative_to(root)) if root is not None else str(file_path)
        logger.info(ls.MIGRATING_FILE.format(path=display))

        try:
            original = file_path.read_bytes()
            before = original.decode(cs.ENCODING_UTF8)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(ls.FILE_READ_FAILED.format(path=display, error=e))
            return FileMigration(
                path=display, status=cs.STATUS_FAILED, error_message=str(e)
            )

        try:
            result = self.runner.run(original, display)
        except ex.SourceParseError as e:
            logger.warning(ls.FILE_SKIPPED_PARSE.format(path=display, error=e))
            return FileMigration(
                path=display, status=cs.STATUS_FAILED, error_message=str(e)
            )
        except ex.NonConvergenceError as e:
            logger.warning(ls.FILE_NON_CONVERGENT.format(error=e))
            return FileMigration(
                path=display,
                status=cs.STATUS_FAILED,
                cycles=e.cycles,
                error_message=str(e),
            )

        if not result.changed:
            logger.debug(ls.FILE_UNCHANGED.format(path=display))
            return FileMigration(path=display, cycles=result.cycles)

        after = result.source.decode(cs.ENCODING_UTF8)
        migration = FileMigration(
            path=display,
            status=cs.STATUS_CHANGED,
            cycles=result.cycles,
            rewrites=_applied_rewrites(result.applied),
            diff=unified_diff(before, after, display),
        )
        logger.success(
            ls.FILE_REWRITTEN.format(path=display, count=len(migration.rewrites))
        )

        if write:
            try:
                file_path.write_bytes(result.source)
                logger.success(ls.FILE_WRITTEN.format(path=display))
            except OSError as e:
                logger.error(ls.FILE_WRITE_FAILED.format(path=display, error=e))
                migration.status = cs.STATUS_FAILED
                migration.error_message = str(e)
        return migration

    def discover(self, root: Path) -> list[Path]:
        if root.is_file():
            return [root]
        files = sorted(
            path
            for path in root.rglob(f"*{cs.JAVA_EXTENSION}")
            if path.is_file()
            and not self.excluded_dirs.intersection(path.relative_to(root).parts[:-1])
        )
        logger.info(ls.DISCOVERED_FILES.format(count=len(files), path=root))
        return files

    def migrate_path(self, root: Path, write: bool = False) -> list[FileMigration]:
        base = root if root.is_dir() else root.parent
        return [
            self.migrate_file(file_path, write=write, root=base)
            for file_path in self.discover(root)
        ]
