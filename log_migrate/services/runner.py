from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from .. import exceptions as ex
from .. import logs as ls
from ..engine.call_sites import classify_call
from ..engine.models import Replacement, RewriteContext, RewriteOptions
from ..engine.rules import apply_rules, blocked_frameworks, log_blocked, rules_for
from ..parser.java_parser import JavaSourceParser
from ..tree import SourceFile
from .source_editor import SourceEditor


@dataclass
class RunResult:
    source: bytes
    cycles: int
    applied: list[Replacement] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


class FixedPointRunner:
    """Reparses and rewrites a source until no enabled rule changes it."""

    def __init__(
        self, options: RewriteOptions, parser: JavaSourceParser | None = None
    ) -> None:
        self.options = options
        self.parser = parser or JavaSourceParser()
        self.rules = rules_for(options.enabled_rules)

    def run(self, source: bytes, path: str) -> RunResult:
        applied: list[Replacement] = []
        pending_release: set[str] = set()
        current = source

        for cycle in range(1, self.options.max_cycles + 1):
            logger.debug(ls.CYCLE_START.format(cycle=cycle, path=path))
            source_file = self.parser.parse(current, path)
            if source_file.has_errors:
                raise ex.SourceParseError(ex.PARSE_FAILED.format(path=path))

            editor = self.rewrite_once(source_file, cycle)
            updated = editor.build(pending_release)
            if updated == current:
                logger.debug(ls.CYCLE_FIXED_POINT.format(path=path, cycle=cycle))
                return RunResult(current, cycle, applied)

            applied.extend(editor.applied)
            pending_release = editor.released
            current = updated

        raise ex.NonConvergenceError(path, self.options.max_cycles)

    def rewrite_once(self, source_file: SourceFile, cycle: int = 1) -> SourceEditor:
        options = self.options
        records = [
            (site, classify_call(site, options.stack_trace_message))
            for site in source_file.sites
        ]
        blocked = blocked_frameworks(records, options.target, options.enabled_rules)
        log_blocked(blocked, source_file.path)

        context = RewriteContext(options, source_file, blocked)
        editor = SourceEditor(source_file)
        for _, record in records:
            if record is None:
                continue
            replacement = apply_rules(record, context, self.rules)
            if replacement is not None:
                editor.add(replacement)

        logger.debug(
            ls.CYCLE_EDITS.format(
                cycle=cycle, path=source_file.path, count=len(editor.applied)
            )
        )
        return editor
