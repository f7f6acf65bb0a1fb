from __future__ import annotations

from collections.abc import Callable

import pytest

from log_migrate import constants as cs
from log_migrate.engine.models import LoggerFieldSpec, Replacement
from log_migrate.services.source_editor import SourceEditor, TextEdit, apply_edits
from log_migrate.tree import InvocationSite, SourceFile, identifier, method_call, string_literal

ParseJava = Callable[[str], SourceFile]
SiteNamed = Callable[[SourceFile, str], InvocationSite]


def replacement_for(
    site: InvocationSite, text: str, **effects
) -> Replacement:
    expression = method_call(identifier("logger"), "info", (string_literal(text),))
    return Replacement(cs.RuleName.CONSOLE_TO_LOG, site.invocation, expression, **effects)


class TestApplyEdits:
    def test_replace_and_insert(self) -> None:
        source = b"hello world"

        result = apply_edits(
            source, [TextEdit(6, 11, "there"), TextEdit(0, 0, ">> ")]
        )

        assert result == b">> hello there"

    def test_adjacent_edits(self) -> None:
        assert apply_edits(b"abc", [TextEdit(0, 1, "x"), TextEdit(1, 2, "y")]) == b"xyc"

    def test_overlapping_edits_raise(self) -> None:
        with pytest.raises(ValueError, match="overlaps"):
            apply_edits(b"abcdef", [TextEdit(0, 4, ""), TextEdit(2, 5, "")])


class TestSourceEditor:
    SOURCE = """
        class Cli {
            void run() {
                System.out.println("a");
            }
        }
        """

    def test_no_changes_returns_source(self, parse_java: ParseJava) -> None:
        source_file = parse_java(self.SOURCE)

        assert SourceEditor(source_file).build() is source_file.source

    def test_replacement_adds_field_and_imports(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(self.SOURCE)
        owner = source_file.classes[0]
        field_spec = LoggerFieldSpec(owner, "logger", cs.Framework.SLF4J)
        editor = SourceEditor(source_file)

        added = editor.add(
            replacement_for(
                site_named(source_file, "println"),
                "a",
                logger_field=field_spec,
                add_imports=("org.slf4j.Logger", "org.slf4j.LoggerFactory"),
            )
        )

        assert added is True
        assert editor.build().decode() == (
            "import org.slf4j.Logger;\n"
            "import org.slf4j.LoggerFactory;\n"
            "\n"
            "class Cli {\n"
            "    private static final Logger logger = LoggerFactory.getLogger(Cli.class);\n"
            "\n"
            "    void run() {\n"
            '        logger.info("a");\n'
            "    }\n"
            "}\n"
        )

    def test_overlapping_replacement_is_skipped(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class A {
                void run() {
                    outer(inner());
                }
            }
            """
        )
        editor = SourceEditor(source_file)

        assert editor.add(replacement_for(site_named(source_file, "outer"), "o")) is True
        assert editor.add(replacement_for(site_named(source_file, "inner"), "i")) is False
        assert len(editor.applied) == 1

    def test_swap_to_present_import_deletes_old(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            package p;

            import org.apache.log4j.Logger;
            import org.slf4j.Logger;

            class A {
                void run() {
                    go();
                }
            }
            """
        )
        editor = SourceEditor(source_file)
        editor.add(
            replacement_for(
                site_named(source_file, "go"),
                "x",
                swap_imports=(("org.apache.log4j.Logger", "org.slf4j.Logger"),),
            )
        )

        assert editor.build().decode() == (
            "package p;\n"
            "\n"
            "import org.slf4j.Logger;\n"
            "\n"
            "class A {\n"
            "    void run() {\n"
            '        logger.info("x");\n'
            "    }\n"
            "}\n"
        )

    def test_released_import_removed_when_unreferenced(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            import java.util.logging.Level;
            import java.util.logging.Logger;

            class A {
                Logger log;
            }
            """
        )
        editor = SourceEditor(source_file)

        result = editor.build(
            pending_release={"java.util.logging.Level", "java.util.logging.Logger"}
        )

        assert result.decode() == (
            "import java.util.logging.Logger;\n\nclass A {\n    Logger log;\n}\n"
        )

    def test_imports_after_package(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            package p;

            class A {
                void run() {
                    go();
                }
            }
            """
        )
        editor = SourceEditor(source_file)
        editor.add(
            replacement_for(
                site_named(source_file, "go"), "x", add_imports=("org.slf4j.Logger",)
            )
        )

        assert editor.build().decode().startswith(
            "package p;\n\nimport org.slf4j.Logger;\n\nclass A {\n"
        )
