from __future__ import annotations

from collections.abc import Callable

import pytest

from log_migrate import constants as cs
from log_migrate.parser import type_table as tt
from log_migrate.tree import (
    FieldAccess,
    Identifier,
    InvocationSite,
    Literal,
    MethodInvocation,
    NewArray,
    SourceFile,
)

ParseJava = Callable[[str], SourceFile]
SiteNamed = Callable[[SourceFile, str], InvocationSite]


class TestCompilationUnit:
    def test_package_and_imports(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            package com.example;

            import java.util.List;
            import static java.util.Objects.requireNonNull;
            import java.io.*;

            class A {}
            """
        )

        assert source_file.package == "com.example"
        assert [i.fqn for i in source_file.imports] == [
            "java.util.List",
            "java.util.Objects.requireNonNull",
            "java.io",
        ]
        assert source_file.imports[1].is_static is True
        assert source_file.imports[2].is_wildcard is True
        last = source_file.imports[-1]
        assert source_file.import_insert_offset == last.span[1]

    def test_insert_offset_after_package(self, parse_java: ParseJava) -> None:
        source_file = parse_java("package p;\n\nclass A {}\n")

        assert source_file.import_insert_offset == len("package p;")

    def test_syntax_error(self, parse_java: ParseJava) -> None:
        source_file = parse_java("class A { void f( { }")

        assert source_file.has_errors is True
        assert source_file.classes == []

    def test_type_references_skip_imports(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            import java.util.logging.Level;

            class A {
                Level level;
            }
            """
        )

        assert source_file.type_references["Level"] == 1
        assert source_file.type_references["Logger"] == 0

    def test_find_import(self, parse_java: ParseJava) -> None:
        source_file = parse_java("import org.slf4j.Logger;\nclass A {}\n")

        assert source_file.find_import("org.slf4j.Logger") is not None
        assert source_file.find_import("org.slf4j.LoggerFactory") is None


class TestDeclarations:
    def test_fields_and_layout(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            package p;

            public class Service {
              private static final String NAME = "svc";
              private int[] counts;
            }
            """
        )
        decl = source_file.classes[0]

        assert decl.fqn == "p.Service"
        assert decl.has_members is True
        assert decl.member_indent == "  "
        assert decl.closing_indent == ""
        name = decl.field_named("NAME")
        assert name is not None
        assert name.is_static is True
        assert name.type.is_string
        assert decl.field_named("counts").type.fqn == "int[]"

    def test_empty_class_layout(self, parse_java: ParseJava) -> None:
        decl = parse_java("class Empty {\n}\n").classes[0]

        assert decl.has_members is False
        assert decl.member_indent == cs.DEFAULT_INDENT
        assert decl.body_start == len("class Empty {")

    def test_nested_classes(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            class Outer {
                static class Nested {}
                class Inner {}
                void run() {
                    class Local {}
                }
            }
            """
        )
        by_name = {decl.name: decl for decl in source_file.classes}

        assert by_name["Nested"].fqn == "Outer.Nested"
        assert by_name["Nested"].can_hold_static_members is True
        assert by_name["Inner"].can_hold_static_members is False
        assert by_name["Local"].is_local is True
        assert by_name["Local"].can_hold_static_members is False
        assert by_name["Inner"].member_indent == "        "

    def test_interface_fields_are_static(self, parse_java: ParseJava) -> None:
        decl = parse_java("interface Api {\n    int LIMIT = 3;\n}\n").classes[0]

        assert decl.kind == cs.ClassKind.INTERFACE
        assert decl.body_start is None
        assert decl.field_named("LIMIT").is_static is True

    def test_same_file_superclass(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            class Base {
                protected String label;
            }
            class Child extends Base {}
            """
        )
        base, child = source_file.classes

        assert child.super_decl is base
        assert child.type.is_assignable_to("Base")

    def test_exception_subclass(self, parse_java: ParseJava) -> None:
        decl = parse_java("class Boom extends RuntimeException {}\n").classes[0]

        assert decl.type.is_throwable

    def test_record_components(self, parse_java: ParseJava) -> None:
        decl = parse_java("record Point(int x, String label) {}\n").classes[0]

        assert decl.kind == cs.ClassKind.RECORD
        assert decl.field_named("label").type.is_string
        assert decl.method_types["x"].fqn == cs.TYPE_INT


class TestSites:
    def test_call_site_typing(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            import org.slf4j.Logger;
            import org.slf4j.LoggerFactory;

            class A {
                private static final Logger log = LoggerFactory.getLogger(A.class);

                void run(String name, int count) {
                    log.info("name " + name + " " + count);
                }
            }
            """
        )

        factory = site_named(source_file, "getLogger")
        assert factory.in_field_initializer is True
        assert factory.static_context is True
        assert factory.invocation.type.fqn == "org.slf4j.Logger"

        info = site_named(source_file, "info")
        assert info.static_context is False
        assert isinstance(info.invocation.select, Identifier)
        assert info.invocation.select.type.fqn == "org.slf4j.Logger"
        message = info.invocation.arguments[0]
        assert message.type.is_string
        assert message.source == '"name " + name + " " + count'

    def test_console_stream(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            class Cli {
                public static void main(String[] args) {
                    System.out.println(args.length);
                }
            }
            """
        )

        site = site_named(source_file, "println")
        stream = site.invocation.select
        assert isinstance(stream, FieldAccess)
        assert stream.type.fqn == cs.TYPE_PRINT_STREAM
        assert site.static_context is True
        assert site.invocation.arguments[0].type.fqn == cs.TYPE_INT

    def test_fully_qualified_receiver(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class A {
                void run() {
                    java.util.logging.Logger.getLogger("a").info("x");
                }
            }
            """
        )

        factory = site_named(source_file, "getLogger")
        assert factory.invocation.select.is_type_name is True
        assert factory.invocation.type.fqn == "java.util.logging.Logger"

    def test_catch_parameter_types(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            import java.io.IOException;

            class A {
                void run() {
                    try {
                        work();
                    } catch (IOException | IllegalStateException e) {
                        e.printStackTrace();
                    } catch (Error err) {
                        err.getMessage();
                    }
                }
            }
            """
        )

        printed = site_named(source_file, "printStackTrace")
        assert printed.invocation.select.type.fqn == cs.TYPE_EXCEPTION
        accessor = site_named(source_file, "getMessage")
        assert accessor.invocation.select.type.is_throwable
        assert accessor.invocation.type.is_string

    def test_catch_parameter_is_always_throwable(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            import com.acme.ServiceFault;

            class A {
                void run() {
                    try {
                        work();
                    } catch (ServiceFault fault) {
                        fault.printStackTrace();
                    }
                }
            }
            """
        )

        fault_type = site_named(source_file, "printStackTrace").invocation.select.type
        assert fault_type.fqn == "com.acme.ServiceFault"
        assert fault_type.is_throwable

    def test_sites_are_ordered_outer_first(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            class A {
                void run() {
                    outer(inner());
                }
            }
            """
        )

        assert [s.invocation.name for s in source_file.sites] == ["outer", "inner"]

    def test_anonymous_class_uses_enclosing(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            class A {
                static void start() {
                    new Thread(new Runnable() {
                        public void run() {
                            go();
                        }
                    });
                }
            }
            """
        )

        site = next(s for s in source_file.sites if s.invocation.name == "go")
        assert site.enclosing.name == "A"
        assert site.static_context is True

    def test_lambda_parameters_are_untyped(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class A {
                String name;
                void run(java.util.List<String> items) {
                    items.forEach(name -> use(name));
                }
            }
            """
        )

        argument = site_named(source_file, "use").invocation.arguments[0]
        assert isinstance(argument, Identifier)
        assert argument.type is None

    def test_literals_and_arrays(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            class A {
                void run(Object a) {
                    log("x", 42L, 'c', new Object[] {a});
                }
            }
            """
        )

        arguments = site_named(source_file, "log").invocation.arguments
        assert isinstance(arguments[0], Literal)
        assert arguments[0].raw == "x"
        assert arguments[1].type.fqn == cs.TYPE_LONG
        assert arguments[2].kind == cs.LiteralKind.CHAR
        assert isinstance(arguments[3], NewArray)
        assert arguments[3].initializer[0].source == "a"

    def test_local_method_return_type(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class A {
                String label() { return "a"; }
                void run() {
                    use(label());
                }
            }
            """
        )

        argument = site_named(source_file, "use").invocation.arguments[0]
        assert isinstance(argument, MethodInvocation)
        assert argument.type.is_string


class TestKnownType:
    @pytest.mark.parametrize(
        ("fqn", "direct_super"),
        [
            ("com.acme.QuotaException", cs.TYPE_EXCEPTION),
            ("com.acme.LinkageFailureError", cs.TYPE_ERROR),
            ("com.acme.WrappedThrowable", cs.TYPE_THROWABLE),
        ],
    )
    def test_throwable_name_suffixes(self, fqn: str, direct_super: str) -> None:
        java_type = tt.known_type(fqn)

        assert java_type.supertypes[0] == direct_super
        assert java_type.is_throwable

    def test_other_names_are_plain_objects(self) -> None:
        assert tt.known_type("com.acme.ServiceFault").is_throwable is False
