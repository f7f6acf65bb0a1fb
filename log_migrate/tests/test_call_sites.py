from __future__ import annotations

from collections.abc import Callable

import pytest

from log_migrate import constants as cs
from log_migrate.engine.call_sites import classify_call, key_class_name
from log_migrate.engine.models import (
    ConsolePrint,
    LeveledCall,
    LoggerFactoryCall,
    StackTracePrint,
)
from log_migrate.tree import (
    CLASS_TYPE,
    STRING_TYPE,
    InvocationSite,
    SourceFile,
    class_literal,
    identifier,
    method_call,
)

ParseJava = Callable[[str], SourceFile]
SiteNamed = Callable[[SourceFile, str], InvocationSite]

SLF4J_HEADER = """
import org.slf4j.Logger;
import org.slf4j.LoggerFactory;
"""


class TestLeveledCalls:
    def test_slf4j_method(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            SLF4J_HEADER
            + """
            class A {
                private static final Logger log = LoggerFactory.getLogger(A.class);
                void run(String name) {
                    log.debug("hello " + name);
                }
            }
            """
        )

        record = classify_call(site_named(source_file, "debug"))

        assert isinstance(record, LeveledCall)
        assert record.framework == cs.Framework.SLF4J
        assert record.severity == cs.Severity.DEBUG
        assert record.native_level == "debug"
        assert record.message.template == "hello {}"
        assert record.is_already_canonical is False

    def test_jul_level_argument(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            import java.util.logging.Level;
            import java.util.logging.Logger;

            class A {
                static final Logger LOG = Logger.getLogger(A.class.getName());
                void run(String user) {
                    LOG.log(Level.WARNING, "User {0} not found", user);
                }
            }
            """
        )

        record = classify_call(site_named(source_file, "log"))

        assert isinstance(record, LeveledCall)
        assert record.framework == cs.Framework.JUL
        assert record.native_level == "WARNING"
        assert record.severity == cs.Severity.WARN
        assert record.level_argument is not None
        assert record.message.template == "User {} not found"
        assert record.is_already_canonical is True

    def test_jul_named_method(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            import java.util.logging.Logger;

            class A {
                static final Logger LOG = Logger.getLogger("a");
                void run() {
                    LOG.finest("deep");
                }
            }
            """
        )

        record = classify_call(site_named(source_file, "finest"))

        assert record.severity == cs.Severity.TRACE
        assert record.native_level == "FINEST"

    def test_log4j1_fatal(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            import org.apache.log4j.Logger;

            class A {
                static final Logger log = Logger.getLogger(A.class);
                void run() {
                    log.fatal("down");
                }
            }
            """
        )

        record = classify_call(site_named(source_file, "fatal"))

        assert record.framework == cs.Framework.LOG4J1
        assert record.severity == cs.Severity.FATAL

    def test_marker_call_is_skipped(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            SLF4J_HEADER
            + """
            import org.slf4j.Marker;

            class A {
                static final Logger log = LoggerFactory.getLogger(A.class);
                void run(Marker audit) {
                    log.info(audit, "x");
                }
            }
            """
        )

        assert classify_call(site_named(source_file, "info")) is None

    def test_unrelated_receiver(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            class A {
                void run(StringBuilder out) {
                    out.append("x");
                }
            }
            """
        )

        assert classify_call(site_named(source_file, "append")) is None


class TestStackTraceAndConsole:
    def test_print_stack_trace(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            class A {
                void run() {
                    try {
                        work();
                    } catch (Exception e) {
                        e.printStackTrace();
                    }
                }
            }
            """
        )

        record = classify_call(site_named(source_file, "printStackTrace"), "Boom {}")

        assert isinstance(record, StackTracePrint)
        assert record.throwable.source == "e"
        assert record.message.template == f"Boom {cs.ESCAPED_PLACEHOLDER}"
        assert record.message.trailing_error is record.throwable

    def test_print_stack_trace_to_stream_is_skipped(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class A {
                void run(Exception e) {
                    e.printStackTrace(System.out);
                }
            }
            """
        )

        assert classify_call(site_named(source_file, "printStackTrace")) is None

    def test_unqualified_print_inside_throwable(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class Failure extends RuntimeException {
                void report() {
                    printStackTrace();
                }
            }
            """
        )

        record = classify_call(site_named(source_file, "printStackTrace"))

        assert isinstance(record, StackTracePrint)
        assert record.throwable.name == "this"
        assert record.throwable.type.fqn == "Failure"

    @pytest.mark.parametrize(
        ("stream", "severity"),
        [("out", cs.Severity.INFO), ("err", cs.Severity.ERROR)],
    )
    def test_console_print(
        self,
        parse_java: ParseJava,
        site_named: SiteNamed,
        stream: str,
        severity: cs.Severity,
    ) -> None:
        source_file = parse_java(
            f"""
            class A {{
                void run(int count) {{
                    System.{stream}.println("count " + count);
                }}
            }}
            """
        )

        record = classify_call(site_named(source_file, "println"))

        assert isinstance(record, ConsolePrint)
        assert record.stream == cs.ConsoleStream(stream)
        assert record.severity == severity
        assert record.message.template == "count {}"

    def test_console_print_without_argument(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class A {
                void run() {
                    System.out.println();
                }
            }
            """
        )

        assert classify_call(site_named(source_file, "println")) is None


class TestFactoryCalls:
    def test_slf4j_factory(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            SLF4J_HEADER
            + """
            class A {
                static final Logger log = LoggerFactory.getLogger(B.class);
            }
            """
        )

        record = classify_call(site_named(source_file, "getLogger"))

        assert isinstance(record, LoggerFactoryCall)
        assert record.framework == cs.Framework.SLF4J
        assert record.key_class == "B"

    def test_string_key(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            SLF4J_HEADER
            + """
            class A {
                static final Logger log = LoggerFactory.getLogger("audit");
            }
            """
        )

        record = classify_call(site_named(source_file, "getLogger"))

        assert record.key is not None
        assert record.key_class is None

    def test_key_class_name(self) -> None:
        literal = class_literal("Widget")
        assert key_class_name(literal) == "Widget"
        named = method_call(literal, "getName", java_type=STRING_TYPE)
        assert key_class_name(named) == "Widget"
        assert key_class_name(identifier("clazz", CLASS_TYPE)) is None
