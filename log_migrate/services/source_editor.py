from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from .. import constants as cs
from .. import exceptions as ex
from .. import logs as ls
from ..engine.logger_fields import field_declaration
from ..engine.models import LoggerFieldSpec, Replacement
from ..printer import render
from ..tree import Import, SourceFile


@dataclass(frozen=True)
class TextEdit:
    start: int
    end: int
    text: str


def apply_edits(source: bytes, edits: Iterable[TextEdit]) -> bytes:
    """Apply non-overlapping edits; offsets refer to the unedited ``source``."""
    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
    for previous, current in zip(ordered, ordered[1:]):
        if current.start < previous.end:
            raise ValueError(
                ex.OVERLAPPING_EDITS.format(start=current.start, end=current.end)
            )

    result = bytearray(source)
    for edit in reversed(ordered):
        result[edit.start : edit.end] = edit.text.encode(cs.ENCODING_UTF8)
    return bytes(result)


def _import_statement(fqn: str) -> str:
    return f"import {fqn};"


class SourceEditor:
    """Collects one cycle's replacements and the declarations they depend on."""

    def __init__(self, source_file: SourceFile) -> None:
        self.source_file = source_file
        self.applied: list[Replacement] = []
        self._edits: list[TextEdit] = []
        self._claimed: list[tuple[int, int]] = []
        self._fields: dict[tuple[str, str], LoggerFieldSpec] = {}
        self._imports: dict[str, None] = {}
        self._swaps: dict[str, str] = {}
        self.released: set[str] = set()

    def add(self, replacement: Replacement) -> bool:
        span = replacement.target.span
        if span is None:
            return False
        start, end = span
        if any(start < right and left < end for left, right in self._claimed):
            logger.debug(ls.SKIPPED_OVERLAP.format(start=start, end=end))
            return False

        self._claimed.append(span)
        self._edits.append(TextEdit(start, end, render(replacement.expression)))
        field_spec = replacement.logger_field
        if field_spec is not None:
            self._fields.setdefault((field_spec.owner.fqn, field_spec.field_name), field_spec)
        for fqn in replacement.add_imports:
            self._imports[fqn] = None
        for old, new in replacement.swap_imports:
            self._swaps.setdefault(old, new)
        self.released.update(replacement.release_imports)
        self.applied.append(replacement)
        return True

    def build(self, pending_release: Iterable[str] = ()) -> bytes:
        edits = [*self._edits, *self._field_edits()]
        present = {i.fqn for i in self.source_file.imports if not i.is_static}
        swapped = set(self._swaps)

        for old, new in sorted(self._swaps.items()):
            imported = self.source_file.find_import(old)
            if imported is None:
                continue
            if new in present:
                edits.append(self._delete_import(imported))
            else:
                edits.append(TextEdit(*imported.span, _import_statement(new)))
                present.add(new)

        for fqn in sorted(set(pending_release) - swapped):
            imported = self.source_file.find_import(fqn)
            simple_name = fqn.rsplit(".", 1)[-1]
            if imported is not None and self.source_file.type_references[simple_name] == 0:
                edits.append(self._delete_import(imported))

        missing = sorted(
            fqn
            for fqn in self._imports
            if fqn not in present and not self.source_file.imports_type(fqn)
        )
        if missing:
            edits.append(self._import_insertion(missing))

        if not edits:
            return self.source_file.source
        return apply_edits(self.source_file.source, edits)

    def _field_edits(self) -> list[TextEdit]:
        source = self.source_file.source
        edits: list[TextEdit] = []
        for field_spec in self._fields.values():
            owner = field_spec.owner
            if owner.body_start is None:
                continue
            declaration = field_declaration(field_spec)
            indent = owner.member_indent
            if owner.has_members:
                text = f"\n{indent}{declaration}\n"
            elif source[owner.body_start : owner.body_start + 1] == b"\n":
                text = f"\n{indent}{declaration}"
            else:
                text = f"\n{indent}{declaration}\n{owner.closing_indent}"
            edits.append(TextEdit(owner.body_start, owner.body_start, text))
        return edits

    def _import_insertion(self, fqns: list[str]) -> TextEdit:
        statements = [_import_statement(fqn) for fqn in fqns]
        offset = self.source_file.import_insert_offset
        if self.source_file.imports:
            text = "".join(f"\n{statement}" for statement in statements)
        elif self.source_file.package is not None:
            text = "\n\n" + "\n".join(statements)
        else:
            text = "\n".join(statements) + "\n\n"
        return TextEdit(offset, offset, text)

    def _delete_import(self, imported: Import) -> TextEdit:
        source = self.source_file.source
        start, end = imported.span
        if start > 0 and source[start - 1 : start] == b"\n":
            return TextEdit(start - 1, end, "")
        if source[end : end + 1] == b"\n":
            return TextEdit(start, end + 1, "")
        return TextEdit(start, end, "")
