from __future__ import annotations

import re

from .. import constants as cs
from ..tree import Binary, Expression, Literal, MethodInvocation, unwrap_parentheses

_DECIMAL_INT = re.compile(r"0|[1-9][0-9_]*")


def classify(node: Expression) -> cs.ExpressionKind:
    inner = unwrap_parentheses(node)
    match inner:
        case Literal(kind=cs.LiteralKind.STRING):
            return cs.ExpressionKind.LITERAL
        case Binary(operator=cs.CONCAT_OPERATOR) if is_string_typed(inner):
            return cs.ExpressionKind.CONCATENATION
        case MethodInvocation() if is_error_accessor(inner):
            return cs.ExpressionKind.ERROR_ACCESSOR
        case _ if is_throwable(inner):
            return cs.ExpressionKind.THROWABLE
        case _:
            return cs.ExpressionKind.OTHER


def is_string_typed(node: Expression) -> bool:
    return node.type is not None and node.type.is_string


def is_throwable(node: Expression) -> bool:
    return node.type is not None and node.type.is_throwable


def is_ambiguous(node: Expression) -> bool:
    return unwrap_parentheses(node).type is None


def is_error_accessor(node: Expression) -> bool:
    return error_accessor_receiver(node) is not None


def error_accessor_receiver(node: Expression) -> Expression | None:
    """The throwable ``e`` of an ``e.getMessage()`` style call, if ``node`` is one."""
    node = unwrap_parentheses(node)
    if not isinstance(node, MethodInvocation):
        return None
    if node.name not in cs.ERROR_ACCESSOR_METHODS or node.arguments:
        return None
    if node.select is None or not is_throwable(node.select):
        return None
    return node.select


def constant_text(literal: Literal) -> str | None:
    """String-literal source text Java produces when concatenating ``literal``."""
    match literal.kind:
        case cs.LiteralKind.STRING:
            return literal.raw
        case cs.LiteralKind.CHAR:
            raw = literal.raw
            if raw == cs.STRING_QUOTE:
                return '\\"'
            if raw == "\\'":
                return "'"
            return raw
        case cs.LiteralKind.INTEGER if _DECIMAL_INT.fullmatch(literal.value_source):
            return literal.value_source.replace("_", "")
        case cs.LiteralKind.BOOLEAN | cs.LiteralKind.NULL:
            return literal.value_source
        case _:
            return None
