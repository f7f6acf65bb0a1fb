from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from . import constants as cs


@dataclass(frozen=True)
class JavaType:
    fqn: str
    supertypes: tuple[str, ...] = ()

    @property
    def simple_name(self) -> str:
        return self.fqn.rsplit(".", 1)[-1]

    @property
    def package(self) -> str:
        return self.fqn.rsplit(".", 1)[0] if "." in self.fqn else ""

    def is_assignable_to(self, fqn: str) -> bool:
        return self.fqn == fqn or fqn in self.supertypes

    @property
    def is_string(self) -> bool:
        return self.fqn == cs.TYPE_STRING

    @property
    def is_throwable(self) -> bool:
        return self.is_assignable_to(cs.TYPE_THROWABLE)

    @property
    def is_primitive(self) -> bool:
        return self.fqn in cs.PRIMITIVE_TYPES

    @property
    def is_array(self) -> bool:
        return self.fqn.endswith("[]")


STRING_TYPE = JavaType(cs.TYPE_STRING, (cs.TYPE_OBJECT,))
OBJECT_TYPE = JavaType(cs.TYPE_OBJECT)
CLASS_TYPE = JavaType(cs.TYPE_CLASS, (cs.TYPE_OBJECT,))
BOOLEAN_TYPE = JavaType(cs.TYPE_BOOLEAN)
CHAR_TYPE = JavaType(cs.TYPE_CHAR)
INT_TYPE = JavaType(cs.TYPE_INT)
LONG_TYPE = JavaType(cs.TYPE_LONG)
DOUBLE_TYPE = JavaType(cs.TYPE_DOUBLE)
THROWABLE_TYPE = JavaType(cs.TYPE_THROWABLE, (cs.TYPE_OBJECT,))
EXCEPTION_TYPE = JavaType(cs.TYPE_EXCEPTION, (cs.TYPE_THROWABLE, cs.TYPE_OBJECT))
PRINT_STREAM_TYPE = JavaType(cs.TYPE_PRINT_STREAM, (cs.TYPE_OBJECT,))


@dataclass(eq=False, kw_only=True)
class Node:
    span: tuple[int, int] | None = None
    source: str | None = None


@dataclass(eq=False, kw_only=True)
class Expression(Node):
    type: JavaType | None = None


@dataclass(eq=False)
class Literal(Expression):
    kind: cs.LiteralKind
    value_source: str

    @property
    def raw(self) -> str:
        """Text between the delimiters, escape sequences untouched."""
        match self.kind:
            case cs.LiteralKind.STRING | cs.LiteralKind.CHAR:
                return self.value_source[1:-1]
            case cs.LiteralKind.TEXT_BLOCK:
                return self.value_source[3:-3]
            case _:
                return self.value_source

    @property
    def is_string(self) -> bool:
        return self.kind == cs.LiteralKind.STRING


@dataclass(eq=False)
class Identifier(Expression):
    name: str
    is_type_name: bool = False


@dataclass(eq=False)
class FieldAccess(Expression):
    target: Expression
    name: str


@dataclass(eq=False)
class MethodInvocation(Expression):
    select: Expression | None
    name: str
    arguments: tuple[Expression, ...] = ()


@dataclass(eq=False)
class Binary(Expression):
    left: Expression
    operator: str
    right: Expression


@dataclass(eq=False)
class NewClass(Expression):
    class_name: str
    arguments: tuple[Expression, ...] = ()


@dataclass(eq=False)
class NewArray(Expression):
    element_type: str
    initializer: tuple[Expression, ...] | None = None


@dataclass(eq=False)
class ClassLiteral(Expression):
    class_name: str


@dataclass(eq=False)
class Parenthesized(Expression):
    expression: Expression


@dataclass(eq=False)
class OpaqueExpression(Expression):
    pass


@dataclass(eq=False)
class FieldDecl:
    name: str
    type: JavaType | None
    modifiers: frozenset[str] = frozenset()
    initializer: Expression | None = None
    span: tuple[int, int] | None = None

    @property
    def is_static(self) -> bool:
        return cs.MODIFIER_STATIC in self.modifiers

    @property
    def is_private(self) -> bool:
        return cs.MODIFIER_PRIVATE in self.modifiers


@dataclass(eq=False)
class ClassDecl:
    name: str
    fqn: str
    kind: cs.ClassKind = cs.ClassKind.CLASS
    modifiers: frozenset[str] = frozenset()
    superclass: JavaType | None = None
    super_decl: ClassDecl | None = None
    outer: ClassDecl | None = None
    is_local: bool = False
    fields: list[FieldDecl] = field(default_factory=list)
    method_types: dict[str, JavaType | None] = field(default_factory=dict)
    body_start: int | None = None
    has_members: bool = False
    member_indent: str = cs.DEFAULT_INDENT
    closing_indent: str = ""

    @property
    def type(self) -> JavaType:
        supertypes: list[str] = []
        if self.superclass is not None:
            supertypes.append(self.superclass.fqn)
            supertypes.extend(self.superclass.supertypes)
        if cs.TYPE_OBJECT not in supertypes:
            supertypes.append(cs.TYPE_OBJECT)
        return JavaType(self.fqn, tuple(supertypes))

    @property
    def can_hold_static_members(self) -> bool:
        if self.is_local or self.kind == cs.ClassKind.INTERFACE:
            return False
        if self.outer is None or self.kind != cs.ClassKind.CLASS:
            return True
        if self.outer.kind == cs.ClassKind.INTERFACE:
            return True
        return cs.MODIFIER_STATIC in self.modifiers

    def field_named(self, name: str) -> FieldDecl | None:
        return next((f for f in self.fields if f.name == name), None)


@dataclass(frozen=True, eq=False)
class InvocationSite:
    invocation: MethodInvocation
    enclosing: ClassDecl | None
    static_context: bool = False
    in_field_initializer: bool = False


@dataclass(frozen=True)
class Import:
    fqn: str
    is_static: bool = False
    is_wildcard: bool = False
    span: tuple[int, int] | None = None


@dataclass(eq=False)
class SourceFile:
    path: str
    source: bytes
    package: str | None = None
    imports: list[Import] = field(default_factory=list)
    classes: list[ClassDecl] = field(default_factory=list)
    sites: list[InvocationSite] = field(default_factory=list)
    import_insert_offset: int = 0
    has_errors: bool = False
    type_references: Counter[str] = field(default_factory=Counter)

    def find_import(self, fqn: str) -> Import | None:
        return next(
            (i for i in self.imports if not i.is_static and i.fqn == fqn), None
        )

    def imports_type(self, fqn: str) -> bool:
        if self.find_import(fqn) is not None:
            return True
        package = fqn.rsplit(".", 1)[0]
        if package == self.package:
            return True
        return any(
            i.is_wildcard and not i.is_static and i.fqn == package
            for i in self.imports
        )


def string_literal(raw: str) -> Literal:
    return Literal(
        cs.LiteralKind.STRING,
        f"{cs.STRING_QUOTE}{raw}{cs.STRING_QUOTE}",
        type=STRING_TYPE,
    )


def identifier(name: str, java_type: JavaType | None = None) -> Identifier:
    return Identifier(name, type=java_type)


def type_name(name: str, java_type: JavaType | None = None) -> Identifier:
    return Identifier(name, is_type_name=True, type=java_type)


def field_access(
    target: Expression, name: str, java_type: JavaType | None = None
) -> FieldAccess:
    return FieldAccess(target, name, type=java_type)


def method_call(
    select: Expression | None,
    name: str,
    arguments: Sequence[Expression] = (),
    java_type: JavaType | None = None,
) -> MethodInvocation:
    return MethodInvocation(select, name, tuple(arguments), type=java_type)


def concat(left: Expression, right: Expression) -> Binary:
    return Binary(left, cs.CONCAT_OPERATOR, right, type=STRING_TYPE)


def class_literal(class_name: str) -> ClassLiteral:
    return ClassLiteral(class_name, type=CLASS_TYPE)


def object_array(elements: Sequence[Expression]) -> NewArray:
    return NewArray(
        cs.OBJECT_ARRAY_TYPE,
        tuple(elements),
        type=JavaType(f"{cs.TYPE_OBJECT}[]"),
    )


def unwrap_parentheses(node: Expression) -> Expression:
    while isinstance(node, Parenthesized):
        node = node.expression
    return node


def is_side_effect_free(node: Expression) -> bool:
    node = unwrap_parentheses(node)
    match node:
        case Literal() | Identifier() | ClassLiteral():
            return True
        case FieldAccess(target=target):
            return is_side_effect_free(target)
        case _:
            return False
