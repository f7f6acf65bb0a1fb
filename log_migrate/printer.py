from __future__ import annotations

from . import constants as cs
from .tree import (
    Binary,
    ClassLiteral,
    Expression,
    FieldAccess,
    Identifier,
    Literal,
    MethodInvocation,
    NewArray,
    NewClass,
    Parenthesized,
)


def render(node: Expression) -> str:
    """Java source for ``node``; nodes taken from a parsed file keep their text."""
    if node.source is not None:
        return node.source
    match node:
        case Literal(value_source=value_source):
            return value_source
        case Identifier(name=name):
            return name
        case FieldAccess(target=target, name=name):
            return f"{render(target)}.{name}"
        case MethodInvocation(select=select, name=name, arguments=arguments):
            call = f"{name}({render_arguments(arguments)})"
            return f"{render(select)}.{call}" if select is not None else call
        case Binary(left=left, operator=operator, right=right):
            return f"{render(left)} {operator} {render(right)}"
        case NewClass(class_name=class_name, arguments=arguments):
            return f"new {class_name}({render_arguments(arguments)})"
        case NewArray(element_type=element_type, initializer=initializer):
            elements = render_arguments(initializer or ())
            return f"new {element_type}[]{{{elements}}}"
        case ClassLiteral(class_name=class_name):
            return f"{class_name}{cs.CLASS_LITERAL_SUFFIX}"
        case Parenthesized(expression=expression):
            return f"({render(expression)})"
        case _:
            return ""


def render_arguments(arguments: tuple[Expression, ...] | list[Expression]) -> str:
    return cs.ARGUMENT_SEPARATOR.join(render(argument) for argument in arguments)
