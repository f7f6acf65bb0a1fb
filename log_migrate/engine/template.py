from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import replace

from loguru import logger

from .. import constants as cs
from .. import logs as ls
from ..printer import render
from ..tree import Expression, Literal, NewArray, is_side_effect_free, unwrap_parentheses
from .classifier import classify, is_throwable
from .flattener import flatten
from .models import ArgumentSegment, CanonicalMessage, LiteralSegment, Segment

# A `{}` preceded by an escaped backslash (`\\{}` in source) is literal text.
_PLACEHOLDER_PATTERN = re.compile(r"(?<!\\\\)\{\}")
_INDEXED_PATTERN = re.compile(r"\{(\d+)\}")
_FORMATTED_INDEX_PATTERN = re.compile(r"\{\s*\d+\s*,")


def count_placeholders(template: str) -> int:
    return len(_PLACEHOLDER_PATTERN.findall(template))


def escape_literal(text: str) -> str:
    """Escape ``{}`` in literal text so formatters leave it alone."""
    return _PLACEHOLDER_PATTERN.sub(lambda _: cs.ESCAPED_PLACEHOLDER, text)


def template_parts(template: str) -> list[str]:
    """Literal text between placeholders, with ``{}`` escapes removed."""
    return [
        part.replace(cs.ESCAPED_PLACEHOLDER, cs.PLACEHOLDER)
        for part in _PLACEHOLDER_PATTERN.split(template)
    ]


def java_string_source(text: str) -> str:
    """Java string-literal body for plain text such as a configured message."""
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )


def compile(segments: Sequence[Segment], keep_throwable: bool = False) -> CanonicalMessage:
    pieces: list[str] = []
    arguments: list[Expression] = []
    trailing_error: Expression | None = None
    last = len(segments) - 1

    for index, segment in enumerate(segments):
        match segment:
            case LiteralSegment(text=text):
                pieces.append(escape_literal(text))
            case ArgumentSegment(expression=expression, is_throwable=True) if (
                index == last and not keep_throwable
            ):
                trailing_error = expression
            case ArgumentSegment(expression=expression):
                pieces.append(cs.PLACEHOLDER)
                arguments.append(expression)

    return CanonicalMessage("".join(pieces), tuple(arguments), trailing_error)


def compile_call_message(
    message: Expression,
    parameters: Sequence[Expression],
    style: cs.MessageStyle,
) -> CanonicalMessage | None:
    """Canonical form of a call's message argument and the arguments after it.

    Returns None when the call cannot be expressed canonically without
    changing what is evaluated or logged.
    """
    params = list(parameters)
    expanded = False
    if style == cs.MessageStyle.ANCHOR and len(params) == 1 and _is_object_array(params[0]):
        # The array is the whole varargs list, one element per placeholder.
        array = unwrap_parentheses(params[0])
        if not isinstance(array, NewArray) or array.initializer is None:
            return None
        params = list(array.initializer)
        expanded = True

    trailing_error: Expression | None = None
    if params and is_throwable(params[-1]):
        trailing_error = params.pop()

    inner = unwrap_parentheses(message)
    match classify(message):
        case cs.ExpressionKind.LITERAL if isinstance(inner, Literal):
            compiled = _compile_literal(inner, params, trailing_error, style)
            if compiled is not None and expanded:
                compiled = replace(compiled, already_canonical=False)
            return compiled
        case cs.ExpressionKind.CONCATENATION:
            if params or expanded:
                return None
            compiled = compile(flatten(message), keep_throwable=trailing_error is not None)
            if trailing_error is not None:
                compiled = replace(compiled, trailing_error=trailing_error)
            return compiled
        case cs.ExpressionKind.THROWABLE:
            return None
        case _:
            if message.type is None:
                logger.debug(ls.CLASSIFY_AMBIGUOUS.format(call=render(message)))
                return None
            if params or expanded:
                return None
            return CanonicalMessage(
                cs.PLACEHOLDER,
                (message,),
                trailing_error,
                already_canonical=message.type.is_string,
            )


def _compile_literal(
    literal: Literal,
    params: list[Expression],
    trailing_error: Expression | None,
    style: cs.MessageStyle,
) -> CanonicalMessage | None:
    raw = literal.raw
    match style:
        case cs.MessageStyle.CONCAT:
            if params:
                return None
            return CanonicalMessage(
                escape_literal(raw), (), trailing_error, already_canonical=True
            )
        case cs.MessageStyle.INDEXED:
            return _compile_indexed(raw, params, trailing_error)
        case _:
            return _compile_anchored(raw, params, trailing_error)


def _compile_anchored(
    raw: str, params: list[Expression], trailing_error: Expression | None
) -> CanonicalMessage | None:
    count = count_placeholders(raw)
    if count == len(params):
        return CanonicalMessage(raw, tuple(params), trailing_error, already_canonical=True)
    if trailing_error is not None and count == len(params) + 1:
        return CanonicalMessage(
            raw, (*params, trailing_error), None, already_canonical=True
        )
    if count > len(params):
        # Placeholders without an argument are printed as-is by the formatter.
        parts = _PLACEHOLDER_PATTERN.split(raw)
        used = parts[: len(params) + 1]
        unused = parts[len(params) + 1 :]
        template = cs.PLACEHOLDER.join(used)
        for part in unused:
            template += cs.ESCAPED_PLACEHOLDER + part
        return CanonicalMessage(
            template, tuple(params), trailing_error, already_canonical=True
        )
    return None


def _compile_indexed(
    raw: str, params: list[Expression], trailing_error: Expression | None
) -> CanonicalMessage | None:
    if len(params) == 1:
        array = unwrap_parentheses(params[0])
        if isinstance(array, NewArray) and array.initializer is not None:
            params = list(array.initializer)

    if not params:
        # Messages without parameters are never formatted.
        return CanonicalMessage(
            escape_literal(raw), (), trailing_error, already_canonical=True
        )

    if cs.JUL_QUOTE in raw or _FORMATTED_INDEX_PATTERN.search(raw):
        return None

    pieces = _INDEXED_PATTERN.split(raw)
    literals = pieces[0::2]
    indices = [int(index) for index in pieces[1::2]]
    if any("{" in text for text in literals):
        return None
    if any(index >= len(params) for index in indices):
        return None

    in_order = indices == list(range(len(params)))
    if not in_order and not all(is_side_effect_free(param) for param in params):
        return None

    return CanonicalMessage(
        cs.PLACEHOLDER.join(escape_literal(text) for text in literals),
        tuple(params[index] for index in indices),
        trailing_error,
        already_canonical=in_order,
    )


def _is_object_array(node: Expression) -> bool:
    node = unwrap_parentheses(node)
    if isinstance(node, NewArray):
        return node.element_type not in cs.PRIMITIVE_TYPES
    java_type = node.type
    return (
        java_type is not None
        and java_type.is_array
        and java_type.fqn.removesuffix("[]") not in cs.PRIMITIVE_TYPES
    )
