from __future__ import annotations

from collections.abc import Sequence
from functools import reduce

from .. import constants as cs
from .. import exceptions as ex
from ..tree import (
    ClassLiteral,
    Expression,
    FieldAccess,
    Identifier,
    Literal,
    MethodInvocation,
    NewArray,
    NewClass,
    Parenthesized,
    concat,
    field_access,
    method_call,
    object_array,
    string_literal,
    type_name,
)
from .classifier import is_string_typed, is_throwable
from .frameworks import FrameworkSpec
from .models import CanonicalMessage
from .template import template_parts

_PRIMARY_EXPRESSIONS = (
    Literal,
    Identifier,
    FieldAccess,
    MethodInvocation,
    NewClass,
    NewArray,
    ClassLiteral,
    Parenthesized,
)


def build_log_call(
    receiver: Expression,
    spec: FrameworkSpec,
    message: CanonicalMessage,
    *,
    method_name: str | None = None,
    level: Expression | None = None,
) -> MethodInvocation:
    """Leveled call on ``receiver``: ``level`` selects the ``log(level, ...)`` form."""
    arguments = message_arguments(spec, message)
    if level is not None:
        return method_call(receiver, cs.METHOD_LOG, (level, *arguments))
    if method_name is None:
        raise ValueError(ex.CALL_SHAPE_REQUIRED)
    return method_call(receiver, method_name, arguments)


def level_constant(level_type: str, name: str, qualified: bool = False) -> FieldAccess:
    owner = level_type if qualified else level_type.rsplit(".", 1)[-1]
    return field_access(type_name(owner), name)


def message_arguments(spec: FrameworkSpec, message: CanonicalMessage) -> list[Expression]:
    match spec.style:
        case cs.MessageStyle.INDEXED:
            return _indexed_arguments(message)
        case cs.MessageStyle.CONCAT:
            return _concatenated_arguments(message)
        case _:
            return _anchored_arguments(message)


def _opaque_message(message: CanonicalMessage) -> Expression | None:
    """The argument itself when the template is a bare ``{}`` over a String."""
    if message.template != cs.PLACEHOLDER or len(message.arguments) != 1:
        return None
    argument = message.arguments[0]
    return argument if is_string_typed(argument) else None


def _with_error(arguments: list[Expression], message: CanonicalMessage) -> list[Expression]:
    if message.trailing_error is not None:
        arguments.append(message.trailing_error)
    return arguments


def _anchored_arguments(message: CanonicalMessage) -> list[Expression]:
    opaque = _opaque_message(message)
    if opaque is not None:
        return _with_error([opaque], message)
    return _with_error(
        [string_literal(message.template), *message.arguments], message
    )


def _quote_indexed(text: str) -> str:
    return text.replace(cs.JUL_QUOTE, cs.JUL_QUOTE * 2).replace("{", "'{'")


def _indexed_arguments(message: CanonicalMessage) -> list[Expression]:
    opaque = _opaque_message(message)
    if opaque is not None:
        return _with_error([opaque], message)

    parts = template_parts(message.template)
    if not message.arguments:
        return _with_error([string_literal("".join(parts))], message)

    pieces = [_quote_indexed(parts[0])]
    for index, part in enumerate(parts[1:]):
        pieces.append(f"{{{index}}}")
        pieces.append(_quote_indexed(part))

    parameters = _with_error(list(message.arguments), message)
    if len(parameters) == 1 and not is_throwable(parameters[0]):
        return [string_literal("".join(pieces)), parameters[0]]
    return [string_literal("".join(pieces)), object_array(parameters)]


def _concat_operand(argument: Expression) -> Expression:
    if isinstance(argument, _PRIMARY_EXPRESSIONS):
        return argument
    return Parenthesized(argument, type=argument.type)


def _concatenated_arguments(message: CanonicalMessage) -> list[Expression]:
    parts = template_parts(message.template)
    arguments = message.arguments
    operands: list[Expression] = []
    for index, part in enumerate(parts):
        if part:
            operands.append(string_literal(part))
        if index < len(arguments):
            operands.append(_concat_operand(arguments[index]))

    if not operands:
        operands.append(string_literal(""))
    elif len(operands) > 1 and not _starts_string_concat(operands):
        operands.insert(0, string_literal(""))

    return _with_error([reduce(concat, operands)], message)


def _starts_string_concat(operands: Sequence[Expression]) -> bool:
    return is_string_typed(operands[0]) or is_string_typed(operands[1])
