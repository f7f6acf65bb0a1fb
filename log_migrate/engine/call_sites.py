from __future__ import annotations

from loguru import logger

from .. import constants as cs
from .. import logs as ls
from ..printer import render
from ..tree import (
    ClassLiteral,
    Expression,
    FieldAccess,
    Identifier,
    InvocationSite,
    MethodInvocation,
    identifier,
    unwrap_parentheses,
)
from .classifier import is_throwable
from .frameworks import (
    FACTORY_TYPE_INDEX,
    FRAMEWORKS,
    LOGGER_TYPE_INDEX,
    FrameworkSpec,
    framework_spec,
)
from .models import (
    CallSiteRecord,
    CanonicalMessage,
    ConsolePrint,
    LeveledCall,
    LoggerFactoryCall,
    StackTracePrint,
)
from .template import compile_call_message, escape_literal, java_string_source

_LEVEL_METHOD_NAMES = frozenset(
    name for spec in FRAMEWORKS.values() for name in spec.method_severities
)


def classify_call(
    site: InvocationSite,
    stack_trace_message: str = cs.DEFAULT_STACK_TRACE_MESSAGE,
) -> CallSiteRecord | None:
    invocation = site.invocation
    select = invocation.select

    if invocation.name == cs.METHOD_PRINT_STACK_TRACE:
        return _stack_trace_print(site, stack_trace_message)

    if invocation.name in cs.CONSOLE_PRINT_METHODS:
        stream = console_stream(select)
        if stream is not None:
            return _console_print(site, stream)
        return None

    if invocation.name == cs.METHOD_GET_LOGGER:
        framework = factory_framework(select)
        if framework is not None:
            return _factory_call(site, framework)

    framework = logger_framework(select)
    if framework is None:
        if select is not None and select.type is None and invocation.name in _LEVEL_METHOD_NAMES:
            logger.debug(ls.CLASSIFY_UNRESOLVED_RECEIVER.format(call=render(invocation)))
        return None
    return _leveled_call(site, framework)


def logger_framework(select: Expression | None) -> cs.Framework | None:
    """Framework of an instance call's receiver when it is a logger."""
    if select is None or (isinstance(select, Identifier) and select.is_type_name):
        return None
    if select.type is None:
        return None
    return LOGGER_TYPE_INDEX.get(select.type.fqn)


def factory_framework(select: Expression | None) -> cs.Framework | None:
    if not isinstance(select, Identifier) or not select.is_type_name:
        return None
    if select.type is None:
        return None
    return FACTORY_TYPE_INDEX.get(select.type.fqn)


def static_framework_reference(select: Expression | None) -> cs.Framework | None:
    """Framework whose logger or factory type is the target of a static call."""
    if not isinstance(select, Identifier) or not select.is_type_name:
        return None
    if select.type is None:
        return None
    fqn = select.type.fqn
    return FACTORY_TYPE_INDEX.get(fqn) or LOGGER_TYPE_INDEX.get(fqn)


def console_stream(select: Expression | None) -> cs.ConsoleStream | None:
    if not isinstance(select, FieldAccess):
        return None
    target = select.target
    if not isinstance(target, Identifier) or target.name != cs.TYPE_SYSTEM.rsplit(".", 1)[-1]:
        return None
    if target.type is not None and target.type.fqn != cs.TYPE_SYSTEM:
        return None
    try:
        return cs.ConsoleStream(select.name)
    except ValueError:
        return None


def _stack_trace_print(site: InvocationSite, message: str) -> StackTracePrint | None:
    invocation = site.invocation
    if invocation.arguments:
        return None
    throwable = invocation.select
    if throwable is None:
        enclosing = site.enclosing
        if enclosing is None or not enclosing.type.is_throwable or site.static_context:
            return None
        throwable = identifier("this", enclosing.type)
    elif not is_throwable(throwable):
        return None
    template = escape_literal(java_string_source(message))
    return StackTracePrint(site, throwable, CanonicalMessage(template, (), throwable))


def _console_print(site: InvocationSite, stream: cs.ConsoleStream) -> ConsolePrint | None:
    arguments = site.invocation.arguments
    if len(arguments) != 1:
        return None
    argument = arguments[0]
    if argument.type is not None and argument.type.is_array:
        return None
    # Console text is never a template, so literal text is escaped.
    message = compile_call_message(argument, (), cs.MessageStyle.CONCAT)
    severity = cs.Severity.ERROR if stream == cs.ConsoleStream.ERR else cs.Severity.INFO
    return ConsolePrint(site, stream, message, severity)


def _factory_call(site: InvocationSite, framework: cs.Framework) -> LoggerFactoryCall | None:
    arguments = site.invocation.arguments
    if len(arguments) > 1:
        return None
    if not arguments:
        if framework != cs.Framework.LOG4J2:
            return None
        return LoggerFactoryCall(site, framework, None, None)
    key = arguments[0]
    return LoggerFactoryCall(site, framework, key, key_class_name(key))


def key_class_name(key: Expression) -> str | None:
    """Class named by ``X.class`` or ``X.class.getName()``."""
    key = unwrap_parentheses(key)
    match key:
        case ClassLiteral(class_name=class_name):
            return class_name
        case MethodInvocation(
            select=ClassLiteral(class_name=class_name),
            name=cs.METHOD_GET_NAME,
            arguments=(),
        ):
            return class_name
        case _:
            return None


def _leveled_call(site: InvocationSite, framework: cs.Framework) -> LeveledCall | None:
    spec = framework_spec(framework)
    invocation = site.invocation
    receiver = invocation.select
    if receiver is None:
        return None
    arguments = list(invocation.arguments)
    level_argument: Expression | None = None

    if invocation.name in spec.method_severities:
        severity = spec.method_severities[invocation.name]
        native_level = (
            invocation.name.upper() if spec.emits_level_argument else invocation.name
        )
    elif invocation.name == cs.METHOD_LOG and spec.supports_level_argument and arguments:
        level_argument = arguments.pop(0)
        native_level = level_constant_name(level_argument, spec)
        if native_level is None or native_level not in spec.level_severities:
            return None
        severity = spec.level_severities[native_level]
    else:
        return None

    if not arguments or _is_marker(arguments[0], spec):
        return None

    message = compile_call_message(arguments[0], arguments[1:], spec.style)
    return LeveledCall(
        site,
        receiver,
        framework,
        severity,
        native_level,
        message,
        level_argument,
    )


def level_constant_name(argument: Expression, spec: FrameworkSpec) -> str | None:
    argument = unwrap_parentheses(argument)
    match argument:
        case FieldAccess(target=target, name=name):
            if target.type is not None and target.type.fqn in spec.level_types:
                return name
            level_names = {fqn.rsplit(".", 1)[-1] for fqn in spec.level_types}
            if render(target) in level_names or render(target) in spec.level_types:
                return name
            return None
        case Identifier(name=name) if argument.type is not None and (
            argument.type.fqn in spec.level_types
        ):
            return name
        case _:
            logger.debug(ls.CLASSIFY_UNKNOWN_LEVEL.format(level=render(argument)))
            return None


def _is_marker(argument: Expression, spec: FrameworkSpec) -> bool:
    return argument.type is not None and argument.type.fqn in spec.marker_types
