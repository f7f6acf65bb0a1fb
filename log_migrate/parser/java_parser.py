from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace

import tree_sitter_java as tsjava
from loguru import logger
from tree_sitter import Language, Node, Parser

from .. import constants as cs
from .. import logs as ls
from ..tree import (
    BOOLEAN_TYPE,
    CHAR_TYPE,
    CLASS_TYPE,
    DOUBLE_TYPE,
    INT_TYPE,
    LONG_TYPE,
    STRING_TYPE,
    Binary,
    ClassDecl,
    ClassLiteral,
    Expression,
    FieldAccess,
    FieldDecl,
    Identifier,
    Import,
    InvocationSite,
    JavaType,
    Literal,
    MethodInvocation,
    NewArray,
    NewClass,
    OpaqueExpression,
    Parenthesized,
    SourceFile,
)
from . import type_table as tt

JAVA_LANGUAGE = Language(tsjava.language())

_CLASS_NODES = {
    "class_declaration": cs.ClassKind.CLASS,
    "interface_declaration": cs.ClassKind.INTERFACE,
    "annotation_type_declaration": cs.ClassKind.INTERFACE,
    "enum_declaration": cs.ClassKind.ENUM,
    "record_declaration": cs.ClassKind.RECORD,
}
_CALLABLE_NODES = frozenset(
    {"method_declaration", "constructor_declaration", "compact_constructor_declaration"}
)
_LOCAL_CONTEXT_NODES = _CALLABLE_NODES | {
    "static_initializer",
    "block",
    "lambda_expression",
    "object_creation_expression",
}
_FIELD_NODES = frozenset({"field_declaration", "constant_declaration"})
_COMMENT_NODES = frozenset({"line_comment", "block_comment"})
_INTEGER_LITERALS = frozenset(
    {
        "decimal_integer_literal",
        "hex_integer_literal",
        "octal_integer_literal",
        "binary_integer_literal",
    }
)
_FLOAT_LITERALS = frozenset(
    {"decimal_floating_point_literal", "hex_floating_point_literal"}
)
_EXPRESSION_NODES = (
    frozenset(
        {
            "parenthesized_expression",
            "string_literal",
            "character_literal",
            "true",
            "false",
            "null_literal",
            "identifier",
            "this",
            "super",
            "field_access",
            "method_invocation",
            "binary_expression",
            "object_creation_expression",
            "array_creation_expression",
            "array_initializer",
            "class_literal",
            "cast_expression",
            "ternary_expression",
            "assignment_expression",
            "unary_expression",
            "update_expression",
            "instanceof_expression",
            "array_access",
            "lambda_expression",
            "method_reference",
            "switch_expression",
        }
    )
    | _INTEGER_LITERALS
    | _FLOAT_LITERALS
)
_SCOPE_NODES = frozenset(
    {
        "block",
        "constructor_body",
        "switch_block",
        "switch_block_statement_group",
        "switch_rule",
        "for_statement",
        "try_with_resources_statement",
    }
)
_BOOLEAN_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">=", "&&", "||"})
_WIDENING_ORDER = (cs.TYPE_DOUBLE, cs.TYPE_FLOAT, cs.TYPE_LONG)


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode(cs.ENCODING_UTF8)


def _named(node: Node | None) -> list[Node]:
    if node is None:
        return []
    return [child for child in node.named_children if child.type not in _COMMENT_NODES]


def _node_key(node: Node) -> tuple[int, int]:
    return node.start_byte, node.end_byte


@dataclass
class _Scope:
    enclosing: ClassDecl | None
    static: bool = False
    in_field_initializer: bool = False
    variables: list[dict[str, JavaType | None]] = field(default_factory=lambda: [{}])

    def declare(self, name: str, java_type: JavaType | None) -> None:
        self.variables[-1][name] = java_type

    def lookup(self, name: str) -> tuple[bool, JavaType | None]:
        for frame in reversed(self.variables):
            if name in frame:
                return True, frame[name]
        return False, None

    @contextmanager
    def nested(self) -> Iterator[_Scope]:
        self.variables.append({})
        try:
            yield self
        finally:
            self.variables.pop()

    def member(
        self, enclosing: ClassDecl | None, static: bool, in_field_initializer: bool = False
    ) -> _Scope:
        return _Scope(enclosing, static, in_field_initializer, [*self.variables, {}])


class _SourceBuilder:
    def __init__(self, source: bytes, path: str) -> None:
        self.source = source
        self.path = path
        self.package: str | None = None
        self.imports: list[Import] = []
        self.classes: list[ClassDecl] = []
        self.sites: list[InvocationSite] = []
        self.type_references: Counter[str] = Counter()
        self._class_nodes: list[tuple[Node, ClassDecl]] = []
        self._class_by_node: dict[tuple[int, int], ClassDecl] = {}
        self._class_by_name: dict[str, ClassDecl] = {}
        self._class_by_fqn: dict[str, ClassDecl] = {}
        self._super_names: dict[int, Node] = {}
        self._explicit_imports: dict[str, str] = {}
        self._wildcards: list[str] = []

    def build(self, root: Node) -> SourceFile:
        insert_offset = 0
        for child in root.named_children:
            if child.type == "package_declaration":
                self.package = _text(self._qualified_name_node(child))
                insert_offset = child.end_byte
            elif child.type == "import_declaration":
                self._add_import(child)
                insert_offset = child.end_byte

        self._count_references(root)
        self._collect_classes(root, outer=None, local=False)
        linked: set[int] = set()
        for _, decl in self._class_nodes:
            self._link_superclass(decl, linked)
        for node, decl in self._class_nodes:
            self._collect_members(node, decl)

        top_level = _Scope(None)
        for child in root.named_children:
            if child.type in _CLASS_NODES:
                self._walk_class(child, self._class_by_node[_node_key(child)], top_level)

        self.sites.sort(
            key=lambda site: (site.invocation.span[0], -site.invocation.span[1])
            if site.invocation.span
            else (0, 0)
        )
        return SourceFile(
            path=self.path,
            source=self.source,
            package=self.package,
            imports=self.imports,
            classes=self.classes,
            sites=self.sites,
            import_insert_offset=insert_offset,
            has_errors=False,
            type_references=self.type_references,
        )

    # (H) Compilation unit

    @staticmethod
    def _qualified_name_node(node: Node) -> Node | None:
        return next(
            (c for c in node.named_children if c.type in ("scoped_identifier", "identifier")),
            None,
        )

    def _add_import(self, node: Node) -> None:
        is_static = any(child.type == "static" for child in node.children)
        is_wildcard = any(child.type == "asterisk" for child in node.children)
        fqn = _text(self._qualified_name_node(node))
        self.imports.append(
            Import(fqn, is_static, is_wildcard, (node.start_byte, node.end_byte))
        )
        if is_static:
            return
        if is_wildcard:
            self._wildcards.append(fqn)
        else:
            self._explicit_imports[fqn.rsplit(".", 1)[-1]] = fqn

    def _count_references(self, root: Node) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in ("import_declaration", "package_declaration"):
                continue
            if node.type in ("type_identifier", "identifier"):
                self.type_references[_text(node)] += 1
            stack.extend(node.children)

    # (H) Declarations

    def _collect_classes(self, node: Node, outer: ClassDecl | None, local: bool) -> None:
        for child in node.named_children:
            kind = _CLASS_NODES.get(child.type)
            if kind is not None:
                decl = self._declare_class(child, kind, outer, local)
                self._collect_classes(child, decl, local=False)
            else:
                self._collect_classes(
                    child, outer, local or child.type in _LOCAL_CONTEXT_NODES
                )

    def _declare_class(
        self, node: Node, kind: cs.ClassKind, outer: ClassDecl | None, local: bool
    ) -> ClassDecl:
        name = _text(node.child_by_field_name("name"))
        if outer is not None:
            fqn = f"{outer.fqn}.{name}"
        else:
            fqn = f"{self.package}.{name}" if self.package else name
        decl = ClassDecl(
            name,
            fqn,
            kind,
            self._modifiers(node),
            outer=outer,
            is_local=local,
        )
        body = node.child_by_field_name("body")
        if body is not None:
            self._layout(decl, body)

        superclass = node.child_by_field_name("superclass")
        if superclass is not None and _named(superclass):
            self._super_names[id(decl)] = _named(superclass)[0]

        self.classes.append(decl)
        self._class_nodes.append((node, decl))
        self._class_by_node[_node_key(node)] = decl
        self._class_by_name.setdefault(name, decl)
        self._class_by_fqn[fqn] = decl
        return decl

    def _layout(self, decl: ClassDecl, body: Node) -> None:
        decl.closing_indent = self._line_indent(body.end_byte - 1)
        if decl.kind == cs.ClassKind.INTERFACE:
            return
        start = body.start_byte + 1
        members = _named(body)
        if decl.kind == cs.ClassKind.ENUM:
            declarations = next(
                (c for c in body.named_children if c.type == "enum_body_declarations"),
                None,
            )
            if declarations is None:
                return
            start = declarations.start_byte + 1
            members = _named(declarations)
        decl.body_start = start
        decl.has_members = bool(members)
        if members and self._starts_line(members[0].start_byte):
            decl.member_indent = self._line_indent(members[0].start_byte)
        else:
            decl.member_indent = decl.closing_indent + cs.DEFAULT_INDENT

    def _line_start(self, offset: int) -> int:
        return self.source.rfind(b"\n", 0, offset) + 1

    def _starts_line(self, offset: int) -> bool:
        return not self.source[self._line_start(offset) : offset].strip()

    def _line_indent(self, offset: int) -> str:
        line = self.source[self._line_start(offset) : offset]
        indent = line[: len(line) - len(line.lstrip(b" \t"))]
        return indent.decode(cs.ENCODING_UTF8)

    @staticmethod
    def _modifiers(node: Node) -> frozenset[str]:
        for child in node.children:
            if child.type == "modifiers":
                return frozenset(c.type for c in child.children if not c.is_named)
        return frozenset()

    def _link_superclass(self, decl: ClassDecl, linked: set[int]) -> None:
        if id(decl) in linked:
            return
        linked.add(id(decl))
        match decl.kind:
            case cs.ClassKind.ENUM:
                decl.superclass = tt.known_type("java.lang.Enum")
                return
            case cs.ClassKind.RECORD:
                decl.superclass = tt.known_type("java.lang.Record")
                return
        type_node = self._super_names.get(id(decl))
        if type_node is None:
            return
        super_name = _text(type_node).split("<", 1)[0].rsplit(".", 1)[-1]
        super_decl = self._class_by_name.get(super_name)
        if super_decl is not None and super_decl is not decl:
            self._link_superclass(super_decl, linked)
            decl.super_decl = super_decl
            decl.superclass = super_decl.type
        else:
            decl.superclass = self._resolve_type(type_node)

    def _collect_members(self, node: Node, decl: ClassDecl) -> None:
        body = node.child_by_field_name("body")
        implicit = (
            frozenset({cs.MODIFIER_STATIC, cs.MODIFIER_FINAL})
            if decl.kind == cs.ClassKind.INTERFACE
            else frozenset()
        )
        if decl.kind == cs.ClassKind.RECORD:
            for parameter in _named(node.child_by_field_name("parameters")):
                name, java_type = self._parameter(parameter)
                if name:
                    decl.fields.append(
                        FieldDecl(
                            name,
                            java_type,
                            frozenset({cs.MODIFIER_PRIVATE, cs.MODIFIER_FINAL}),
                        )
                    )
                    decl.method_types[name] = java_type

        members = _named(body)
        for member in list(members):
            if member.type == "enum_body_declarations":
                members.extend(_named(member))

        for member in members:
            if member.type in _FIELD_NODES:
                java_type = self._resolve_type(member.child_by_field_name("type"))
                modifiers = self._modifiers(member) | implicit
                for declarator in member.children_by_field_name("declarator"):
                    decl.fields.append(
                        FieldDecl(
                            _text(declarator.child_by_field_name("name")),
                            self._with_dimensions(java_type, declarator),
                            modifiers,
                            span=(member.start_byte, member.end_byte),
                        )
                    )
            elif member.type == "method_declaration":
                name = _text(member.child_by_field_name("name"))
                java_type = self._resolve_type(member.child_by_field_name("type"))
                if name in decl.method_types and decl.method_types[name] != java_type:
                    decl.method_types[name] = None
                else:
                    decl.method_types[name] = java_type

    # (H) Types

    def _resolve_type(self, node: Node | None) -> JavaType | None:
        if node is None:
            return None
        match node.type:
            case "integral_type" | "floating_point_type" | "boolean_type":
                return JavaType(_text(node))
            case "type_identifier":
                return self._resolve_simple(_text(node))
            case "scoped_type_identifier":
                return self._resolve_qualified(_text(node))
            case "generic_type" | "annotated_type":
                named = [c for c in _named(node) if c.type != "type_arguments"]
                return self._resolve_type(named[-1]) if named else None
            case "array_type":
                element = self._resolve_type(node.child_by_field_name("element"))
                if element is None:
                    return None
                depth = max(1, _text(node.child_by_field_name("dimensions")).count("["))
                return JavaType(element.fqn + "[]" * depth)
            case _:
                return None

    def _with_dimensions(self, java_type: JavaType | None, declarator: Node) -> JavaType | None:
        dimensions = declarator.child_by_field_name("dimensions")
        if java_type is None or dimensions is None:
            return java_type
        return JavaType(java_type.fqn + "[]" * _text(dimensions).count("["))

    def _resolve_simple(self, name: str) -> JavaType:
        decl = self._class_by_name.get(name)
        if decl is not None:
            return decl.type
        if name in self._explicit_imports:
            return tt.known_type(self._explicit_imports[name])
        if name in tt.JAVA_LANG_TYPES:
            return tt.known_type(tt.JAVA_LANG_TYPES[name])
        for package in self._wildcards:
            candidate = f"{package}.{name}"
            if tt.is_known_type(candidate):
                return tt.known_type(candidate)
        if self.package:
            return tt.known_type(f"{self.package}.{name}")
        return tt.known_type(name)

    def _resolve_qualified(self, name: str) -> JavaType:
        if tt.is_known_type(name):
            return tt.known_type(name)
        first, _, rest = name.partition(".")
        if first in self._class_by_name:
            nested = self._class_by_name.get(name.rsplit(".", 1)[-1])
            if nested is not None:
                return nested.type
        if first in self._explicit_imports:
            return tt.known_type(f"{self._explicit_imports[first]}.{rest}")
        return tt.known_type(name)

    def _type_name(self, name: str) -> JavaType | None:
        known = (
            name in self._class_by_name
            or name in self._explicit_imports
            or name in tt.JAVA_LANG_TYPES
            or any(tt.is_known_type(f"{p}.{name}") for p in self._wildcards)
        )
        if known or name[:1].isupper():
            return self._resolve_simple(name)
        return None

    def _lookup_field(self, decl: ClassDecl | None, name: str) -> FieldDecl | None:
        current = decl
        while current is not None:
            ancestor: ClassDecl | None = current
            seen: set[int] = set()
            while ancestor is not None and id(ancestor) not in seen:
                seen.add(id(ancestor))
                found = ancestor.field_named(name)
                if found is not None and (ancestor is current or not found.is_private):
                    return found
                ancestor = ancestor.super_decl
            current = current.outer
        return None

    def _method_type(self, decl: ClassDecl | None, name: str) -> JavaType | None:
        current = decl
        while current is not None:
            ancestor: ClassDecl | None = current
            seen: set[int] = set()
            while ancestor is not None and id(ancestor) not in seen:
                seen.add(id(ancestor))
                if name in ancestor.method_types:
                    return ancestor.method_types[name]
                ancestor = ancestor.super_decl
            inherited = tt.instance_method_type(current.type, name)
            if inherited is not None:
                return inherited
            current = current.outer
        return None

    def _member_type(self, owner: JavaType, name: str, method: bool) -> JavaType | None:
        decl = self._class_by_fqn.get(owner.fqn)
        if decl is not None:
            if method:
                return self._method_type(decl, name)
            found = self._lookup_field(decl, name)
            return found.type if found is not None else None
        if method:
            return tt.instance_method_type(owner, name)
        if owner.is_array and name == "length":
            return INT_TYPE
        return None

    # (H) Bodies

    def _walk_class(self, node: Node, decl: ClassDecl, scope: _Scope) -> None:
        body = node.child_by_field_name("body")
        outer_scope = scope if decl.is_local else _Scope(decl)
        self._walk_members(_named(body), decl, outer_scope)

    def _walk_members(self, members: list[Node], decl: ClassDecl | None, scope: _Scope) -> None:
        """Walk class members; ``decl`` is None for anonymous class bodies."""
        enclosing = decl if decl is not None else scope.enclosing
        nested_static = scope.static if decl is None else False
        for member in members:
            member_static = (
                cs.MODIFIER_STATIC in self._modifiers(member) or nested_static
            )
            if member.type in _FIELD_NODES:
                is_static = member_static or (
                    decl is not None and decl.kind == cs.ClassKind.INTERFACE
                )
                field_scope = scope.member(enclosing, is_static, decl is not None)
                for declarator in member.children_by_field_name("declarator"):
                    value = declarator.child_by_field_name("value")
                    if value is not None:
                        self._expression(value, field_scope)
            elif member.type in _CALLABLE_NODES:
                method_scope = scope.member(enclosing, member_static)
                self._declare_parameters(member.child_by_field_name("parameters"), method_scope)
                self._statement(member.child_by_field_name("body"), method_scope)
            elif member.type == "static_initializer":
                self._statement(_named(member)[0], scope.member(enclosing, True))
            elif member.type == "block":
                self._statement(member, scope.member(enclosing, nested_static))
            elif member.type == "enum_body_declarations":
                self._walk_members(_named(member), decl, scope)
            elif member.type == "enum_constant":
                constant_scope = scope.member(enclosing, True)
                for argument in _named(member.child_by_field_name("arguments")):
                    self._expression(argument, constant_scope)
                body = member.child_by_field_name("body")
                if body is not None:
                    self._walk_members(_named(body), None, scope.member(enclosing, False))
            elif member.type in _CLASS_NODES:
                nested = self._class_by_node.get(_node_key(member))
                if nested is not None:
                    self._walk_class(member, nested, scope)

    def _parameter(self, node: Node) -> tuple[str, JavaType | None]:
        if node.type == "formal_parameter":
            java_type = self._resolve_type(node.child_by_field_name("type"))
            name_node = node.child_by_field_name("name")
            dimensions = node.child_by_field_name("dimensions")
            if java_type is not None and dimensions is not None:
                java_type = JavaType(java_type.fqn + "[]" * _text(dimensions).count("["))
            return _text(name_node), java_type
        if node.type == "spread_parameter":
            named = _named(node)
            type_node = next((c for c in named if c.type != "variable_declarator" and c.type != "modifiers"), None)
            declarator = next((c for c in named if c.type == "variable_declarator"), None)
            element = self._resolve_type(type_node)
            java_type = JavaType(element.fqn + "[]") if element is not None else None
            return _text(declarator.child_by_field_name("name") if declarator else None), java_type
        if node.type == "identifier":
            return _text(node), None
        return "", None

    def _declare_parameters(self, parameters: Node | None, scope: _Scope) -> None:
        for parameter in _named(parameters):
            name, java_type = self._parameter(parameter)
            if name:
                scope.declare(name, java_type)

    def _statement(self, node: Node | None, scope: _Scope) -> None:
        if node is None:
            return
        node_type = node.type
        if node_type in _EXPRESSION_NODES:
            self._expression(node, scope)
        elif node_type in _CLASS_NODES:
            decl = self._class_by_node.get(_node_key(node))
            if decl is not None:
                self._walk_class(node, decl, scope)
        elif node_type in ("local_variable_declaration", "resource"):
            self._local_variables(node, scope)
        elif node_type == "catch_clause":
            with scope.nested():
                for child in _named(node):
                    if child.type == "catch_formal_parameter":
                        self._catch_parameter(child, scope)
                    else:
                        self._statement(child, scope)
        elif node_type == "enhanced_for_statement":
            with scope.nested():
                self._expression(node.child_by_field_name("value"), scope)
                type_node = node.child_by_field_name("type")
                java_type = None if _text(type_node) == "var" else self._resolve_type(type_node)
                scope.declare(_text(node.child_by_field_name("name")), java_type)
                self._statement(node.child_by_field_name("body"), scope)
        elif node_type in _SCOPE_NODES:
            with scope.nested():
                for child in _named(node):
                    self._statement(child, scope)
        else:
            for child in _named(node):
                self._statement(child, scope)

    def _local_variables(self, node: Node, scope: _Scope) -> None:
        type_node = node.child_by_field_name("type")
        declared = None if _text(type_node) == "var" else self._resolve_type(type_node)
        declarators = node.children_by_field_name("declarator")
        if node.type == "resource":
            if node.child_by_field_name("name") is None:
                for child in _named(node):
                    self._statement(child, scope)
                return
            declarators = [node]
        for declarator in declarators:
            value = declarator.child_by_field_name("value")
            value_type = self._expression(value, scope).type if value is not None else None
            java_type = declared if type_node is not None and declared is not None else value_type
            if declarator is not node:
                java_type = self._with_dimensions(java_type, declarator)
            scope.declare(_text(declarator.child_by_field_name("name")), java_type)

    def _catch_parameter(self, node: Node, scope: _Scope) -> None:
        catch_type = next((c for c in _named(node) if c.type == "catch_type"), None)
        types = [self._resolve_type(c) for c in _named(catch_type)]
        if len(types) == 1:
            java_type = types[0]
            if java_type is None:
                java_type = tt.known_type(cs.TYPE_THROWABLE)
            elif not java_type.is_throwable:
                # Anything caught is a Throwable.
                java_type = replace(
                    java_type, supertypes=(*java_type.supertypes, cs.TYPE_THROWABLE)
                )
        elif types and all(t is not None and t.is_assignable_to(cs.TYPE_EXCEPTION) for t in types):
            java_type = tt.known_type(cs.TYPE_EXCEPTION)
        else:
            java_type = tt.known_type(cs.TYPE_THROWABLE)
        scope.declare(_text(node.child_by_field_name("name")), java_type)

    # (H) Expressions

    def _expression(self, node: Node, scope: _Scope) -> Expression:
        span = (node.start_byte, node.end_byte)
        source = _text(node)
        node_type = node.type

        if node_type == "parenthesized_expression":
            inner = self._expression(_named(node)[0], scope)
            return Parenthesized(inner, type=inner.type, span=span, source=source)
        if node_type == "string_literal":
            kind = (
                cs.LiteralKind.TEXT_BLOCK if source.startswith('"""') else cs.LiteralKind.STRING
            )
            return Literal(kind, source, type=STRING_TYPE, span=span, source=source)
        if node_type == "character_literal":
            return Literal(cs.LiteralKind.CHAR, source, type=CHAR_TYPE, span=span, source=source)
        if node_type in _INTEGER_LITERALS:
            java_type = LONG_TYPE if source[-1] in "lL" else INT_TYPE
            return Literal(cs.LiteralKind.INTEGER, source, type=java_type, span=span, source=source)
        if node_type in _FLOAT_LITERALS:
            java_type = JavaType(cs.TYPE_FLOAT) if source[-1] in "fF" else DOUBLE_TYPE
            return Literal(cs.LiteralKind.FLOAT, source, type=java_type, span=span, source=source)
        if node_type in ("true", "false"):
            return Literal(
                cs.LiteralKind.BOOLEAN, source, type=BOOLEAN_TYPE, span=span, source=source
            )
        if node_type == "null_literal":
            return Literal(cs.LiteralKind.NULL, source, span=span, source=source)
        if node_type == "identifier":
            return self._identifier(source, scope, span)
        if node_type == "this":
            enclosing = scope.enclosing
            java_type = enclosing.type if enclosing is not None else None
            return Identifier(source, type=java_type, span=span, source=source)
        if node_type == "super":
            enclosing = scope.enclosing
            java_type = enclosing.superclass if enclosing is not None else None
            return Identifier(source, type=java_type, span=span, source=source)
        if node_type == "field_access":
            return self._field_access(node, scope, span, source)
        if node_type == "method_invocation":
            return self._method_invocation(node, scope, span, source)
        if node_type == "binary_expression":
            left = self._expression(node.child_by_field_name("left"), scope)
            right = self._expression(node.child_by_field_name("right"), scope)
            operator = _text(node.child_by_field_name("operator"))
            return Binary(
                left,
                operator,
                right,
                type=_binary_type(operator, left.type, right.type),
                span=span,
                source=source,
            )
        if node_type == "object_creation_expression":
            return self._object_creation(node, scope, span, source)
        if node_type == "array_creation_expression":
            return self._array_creation(node, scope, span, source)
        if node_type == "class_literal":
            class_name = _text(_named(node)[0])
            return ClassLiteral(class_name, type=CLASS_TYPE, span=span, source=source)
        if node_type == "cast_expression":
            self._expression(node.child_by_field_name("value"), scope)
            java_type = self._resolve_type(node.child_by_field_name("type"))
            return OpaqueExpression(type=java_type, span=span, source=source)
        if node_type == "ternary_expression":
            self._expression(node.child_by_field_name("condition"), scope)
            consequence = self._expression(node.child_by_field_name("consequence"), scope)
            alternative = self._expression(node.child_by_field_name("alternative"), scope)
            java_type = None
            if consequence.type is not None and alternative.type is not None:
                if consequence.type.fqn == alternative.type.fqn:
                    java_type = consequence.type
            return OpaqueExpression(type=java_type, span=span, source=source)
        if node_type == "assignment_expression":
            left = self._expression(node.child_by_field_name("left"), scope)
            self._expression(node.child_by_field_name("right"), scope)
            return OpaqueExpression(type=left.type, span=span, source=source)
        if node_type == "unary_expression":
            operand = self._expression(node.child_by_field_name("operand"), scope)
            operator = _text(node.child_by_field_name("operator"))
            java_type = BOOLEAN_TYPE if operator == "!" else operand.type
            return OpaqueExpression(type=java_type, span=span, source=source)
        if node_type == "update_expression":
            operand = self._expression(_named(node)[0], scope)
            return OpaqueExpression(type=operand.type, span=span, source=source)
        if node_type == "array_access":
            array = self._expression(node.child_by_field_name("array"), scope)
            self._expression(node.child_by_field_name("index"), scope)
            java_type = None
            if array.type is not None and array.type.is_array:
                java_type = tt.known_type(array.type.fqn[:-2])
            return OpaqueExpression(type=java_type, span=span, source=source)
        if node_type == "lambda_expression":
            with scope.nested():
                self._declare_parameters_or_name(node.child_by_field_name("parameters"), scope)
                self._statement(node.child_by_field_name("body"), scope)
            return OpaqueExpression(span=span, source=source)

        java_type = BOOLEAN_TYPE if node_type == "instanceof_expression" else None
        for child in _named(node):
            self._statement(child, scope)
        return OpaqueExpression(type=java_type, span=span, source=source)

    def _declare_parameters_or_name(self, parameters: Node | None, scope: _Scope) -> None:
        if parameters is None:
            return
        if parameters.type == "identifier":
            scope.declare(_text(parameters), None)
        elif parameters.type == "inferred_parameters":
            for name in _named(parameters):
                scope.declare(_text(name), None)
        else:
            self._declare_parameters(parameters, scope)

    def _identifier(self, name: str, scope: _Scope, span: tuple[int, int]) -> Identifier:
        found, java_type = scope.lookup(name)
        if found:
            return Identifier(name, type=java_type, span=span, source=name)
        field_decl = self._lookup_field(scope.enclosing, name)
        if field_decl is not None:
            return Identifier(name, type=field_decl.type, span=span, source=name)
        type_name = self._type_name(name)
        if type_name is not None:
            return Identifier(name, is_type_name=True, type=type_name, span=span, source=name)
        return Identifier(name, span=span, source=name)

    def _field_access(
        self, node: Node, scope: _Scope, span: tuple[int, int], source: str
    ) -> Expression:
        if tt.is_known_type(source):
            return Identifier(
                source, is_type_name=True, type=tt.known_type(source), span=span, source=source
            )
        target = self._expression(node.child_by_field_name("object"), scope)
        name = _text(node.child_by_field_name("field"))
        java_type: JavaType | None = None
        if target.type is not None:
            if isinstance(target, Identifier) and target.is_type_name:
                java_type = tt.static_field_type(target.type.fqn, name)
                if java_type is None:
                    java_type = self._member_type(target.type, name, method=False)
            else:
                java_type = self._member_type(target.type, name, method=False)
        return FieldAccess(target, name, type=java_type, span=span, source=source)

    def _method_invocation(
        self, node: Node, scope: _Scope, span: tuple[int, int], source: str
    ) -> MethodInvocation:
        object_node = node.child_by_field_name("object")
        select = self._expression(object_node, scope) if object_node is not None else None
        name = _text(node.child_by_field_name("name"))
        arguments = tuple(
            self._expression(argument, scope)
            for argument in _named(node.child_by_field_name("arguments"))
        )

        java_type: JavaType | None
        if select is None:
            java_type = self._method_type(scope.enclosing, name)
        elif select.type is None:
            java_type = None
        elif isinstance(select, Identifier) and select.is_type_name:
            java_type = tt.static_method_type(select.type.fqn, name)
            if java_type is None:
                java_type = self._member_type(select.type, name, method=True)
        else:
            java_type = self._member_type(select.type, name, method=True)

        invocation = MethodInvocation(
            select, name, arguments, type=java_type, span=span, source=source
        )
        self.sites.append(
            InvocationSite(
                invocation,
                scope.enclosing,
                static_context=scope.static,
                in_field_initializer=scope.in_field_initializer,
            )
        )
        return invocation

    def _object_creation(
        self, node: Node, scope: _Scope, span: tuple[int, int], source: str
    ) -> NewClass:
        type_node = node.child_by_field_name("type")
        java_type = self._resolve_type(type_node)
        arguments = tuple(
            self._expression(argument, scope)
            for argument in _named(node.child_by_field_name("arguments"))
        )
        body = next((c for c in node.named_children if c.type == "class_body"), None)
        if body is not None:
            anonymous_scope = scope.member(scope.enclosing, scope.static)
            self._walk_members(_named(body), None, anonymous_scope)
        return NewClass(_text(type_node), arguments, type=java_type, span=span, source=source)

    def _array_creation(
        self, node: Node, scope: _Scope, span: tuple[int, int], source: str
    ) -> Expression:
        type_node = node.child_by_field_name("type")
        element = self._resolve_type(type_node)
        java_type = JavaType(element.fqn + "[]") if element is not None else None
        value = node.child_by_field_name("value")
        if value is None:
            for child in _named(node):
                if child != type_node:
                    self._statement(child, scope)
            return OpaqueExpression(type=java_type, span=span, source=source)
        initializer = tuple(self._expression(child, scope) for child in _named(value))
        return NewArray(_text(type_node), initializer, type=java_type, span=span, source=source)


def _binary_type(
    operator: str, left: JavaType | None, right: JavaType | None
) -> JavaType | None:
    if operator == cs.CONCAT_OPERATOR and (
        (left is not None and left.is_string) or (right is not None and right.is_string)
    ):
        return STRING_TYPE
    if operator in _BOOLEAN_OPERATORS:
        return BOOLEAN_TYPE
    if left is None or right is None:
        return None
    if left.fqn in cs.NUMERIC_PRIMITIVES and right.fqn in cs.NUMERIC_PRIMITIVES:
        for wide in _WIDENING_ORDER:
            if wide in (left.fqn, right.fqn):
                return JavaType(wide)
        return INT_TYPE
    if left.fqn == cs.TYPE_BOOLEAN and right.fqn == cs.TYPE_BOOLEAN:
        return BOOLEAN_TYPE
    return None


class JavaSourceParser:
    def __init__(self) -> None:
        self._parser = Parser(JAVA_LANGUAGE)
        logger.debug(ls.PARSER_INIT)

    def parse(self, source: bytes | str, path: str = "<memory>") -> SourceFile:
        if isinstance(source, str):
            source = source.encode(cs.ENCODING_UTF8)
        logger.debug(ls.PARSING_SOURCE.format(path=path))
        tree = self._parser.parse(source)
        root = tree.root_node
        if root.has_error:
            logger.warning(ls.PARSE_HAS_ERRORS.format(path=path))
            return SourceFile(path, source, has_errors=True)

        source_file = _SourceBuilder(source, path).build(root)
        logger.debug(
            ls.PARSED_SOURCE.format(
                path=path,
                classes=len(source_file.classes),
                sites=len(source_file.sites),
            )
        )
        return source_file
