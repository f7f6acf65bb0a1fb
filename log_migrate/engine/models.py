from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .. import constants as cs
from ..tree import ClassDecl, Expression, InvocationSite, MethodInvocation, SourceFile

if TYPE_CHECKING:
    from .frameworks import SeverityTable


@dataclass(frozen=True)
class LiteralSegment:
    text: str


@dataclass(frozen=True)
class ArgumentSegment:
    expression: Expression
    is_throwable: bool = False
    kind: cs.ExpressionKind = cs.ExpressionKind.OTHER


Segment = LiteralSegment | ArgumentSegment


@dataclass(frozen=True)
class CanonicalMessage:
    """Framework-independent message: ``{}`` template, arguments, error object.

    ``template`` is Java string-literal source text without the quotes.
    Literal ``{}`` text is stored as ``\\\\{}``.
    """

    template: str
    arguments: tuple[Expression, ...] = ()
    trailing_error: Expression | None = None
    already_canonical: bool = False


@dataclass(frozen=True)
class LeveledCall:
    site: InvocationSite
    receiver: Expression
    framework: cs.Framework
    severity: cs.Severity
    native_level: str
    message: CanonicalMessage | None
    level_argument: Expression | None = None

    @property
    def invocation(self) -> MethodInvocation:
        return self.site.invocation

    @property
    def is_already_canonical(self) -> bool:
        return self.message is not None and self.message.already_canonical


@dataclass(frozen=True)
class StackTracePrint:
    site: InvocationSite
    throwable: Expression
    message: CanonicalMessage
    severity: cs.Severity = cs.Severity.ERROR

    @property
    def invocation(self) -> MethodInvocation:
        return self.site.invocation


@dataclass(frozen=True)
class ConsolePrint:
    site: InvocationSite
    stream: cs.ConsoleStream
    message: CanonicalMessage | None
    severity: cs.Severity

    @property
    def invocation(self) -> MethodInvocation:
        return self.site.invocation


@dataclass(frozen=True)
class LoggerFactoryCall:
    site: InvocationSite
    framework: cs.Framework
    key: Expression | None
    key_class: str | None

    @property
    def invocation(self) -> MethodInvocation:
        return self.site.invocation


CallSiteRecord = LeveledCall | StackTracePrint | ConsolePrint | LoggerFactoryCall


@dataclass(frozen=True)
class LoggerFieldSpec:
    owner: ClassDecl
    field_name: str
    framework: cs.Framework
    is_static: bool = True
    is_final: bool = True
    exists: bool = False


@dataclass(frozen=True)
class Replacement:
    rule: cs.RuleName
    target: MethodInvocation
    expression: Expression
    logger_field: LoggerFieldSpec | None = None
    add_imports: tuple[str, ...] = ()
    swap_imports: tuple[tuple[str, str], ...] = ()
    release_imports: tuple[str, ...] = ()


@dataclass(frozen=True)
class RewriteOptions:
    target: cs.Framework = cs.Framework.SLF4J
    severity_table: SeverityTable | None = None
    logger_field_name: str = cs.DEFAULT_LOGGER_FIELD_NAME
    add_logger: bool = True
    console_out_severity: cs.Severity = cs.Severity.INFO
    stack_trace_message: str = cs.DEFAULT_STACK_TRACE_MESSAGE
    enabled_rules: frozenset[cs.RuleName] = cs.DEFAULT_RULES
    max_cycles: int = cs.DEFAULT_MAX_CYCLES


@dataclass(frozen=True)
class RewriteContext:
    options: RewriteOptions = field(default_factory=RewriteOptions)
    source_file: SourceFile | None = None
    blocked_frameworks: frozenset[cs.Framework] = frozenset()
