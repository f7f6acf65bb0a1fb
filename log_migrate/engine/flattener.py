from __future__ import annotations

from .. import constants as cs
from ..tree import Binary, Expression, Literal, unwrap_parentheses
from .classifier import classify, constant_text
from .models import ArgumentSegment, LiteralSegment, Segment


def flatten(node: Expression) -> list[Segment]:
    """Segments of a string ``+`` chain in left-to-right evaluation order."""
    segments: list[Segment] = []
    _collect(node, segments)
    return segments


def _collect(node: Expression, segments: list[Segment]) -> None:
    inner = unwrap_parentheses(node)
    kind = classify(inner)

    if kind == cs.ExpressionKind.CONCATENATION and isinstance(inner, Binary):
        _collect(inner.left, segments)
        _collect(inner.right, segments)
        return

    if isinstance(inner, Literal):
        text = constant_text(inner)
        if text is not None:
            _append_literal(segments, text)
            return

    segments.append(
        ArgumentSegment(
            node, is_throwable=kind == cs.ExpressionKind.THROWABLE, kind=kind
        )
    )


def _append_literal(segments: list[Segment], text: str) -> None:
    if not text:
        return
    if segments and isinstance(segments[-1], LiteralSegment):
        segments[-1] = LiteralSegment(segments[-1].text + text)
    else:
        segments.append(LiteralSegment(text))
