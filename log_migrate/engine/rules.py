from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from types import MappingProxyType
from typing import Protocol

from loguru import logger

from .. import constants as cs
from .. import logs as ls
from ..printer import render
from ..tree import (
    Expression,
    InvocationSite,
    Literal,
    MethodInvocation,
    SourceFile,
    class_literal,
    identifier,
    method_call,
    type_name,
    unwrap_parentheses,
)
from .call_sites import classify_call, key_class_name, logger_framework, static_framework_reference
from .classifier import error_accessor_receiver, is_error_accessor, is_string_typed, is_throwable
from .emitter import build_log_call, level_constant
from .frameworks import DEFAULT_SEVERITY_TABLE, FrameworkSpec, SeverityTable, framework_spec
from .logger_fields import required_imports, resolve
from .models import (
    CallSiteRecord,
    CanonicalMessage,
    ConsolePrint,
    LeveledCall,
    LoggerFactoryCall,
    LoggerFieldSpec,
    Replacement,
    RewriteContext,
    StackTracePrint,
)
from .template import count_placeholders


class Rule(Protocol):
    name: cs.RuleName

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None: ...


def _severity_table(context: RewriteContext) -> SeverityTable:
    return context.options.severity_table or DEFAULT_SEVERITY_TABLE


def _simple_name(fqn: str) -> str:
    return fqn.rsplit(".", 1)[-1]


def _conflicting_import(source_file: SourceFile | None, fqn: str) -> bool:
    """True when another type with the same simple name is imported explicitly."""
    if source_file is None:
        return False
    simple = _simple_name(fqn)
    return any(
        not imp.is_static
        and not imp.is_wildcard
        and imp.fqn != fqn
        and _simple_name(imp.fqn) == simple
        for imp in source_file.imports
    )


def _level_argument(
    context: RewriteContext, spec: FrameworkSpec, level_name: str
) -> tuple[Expression, tuple[str, ...]]:
    level_type = spec.level_types[0]
    if _conflicting_import(context.source_file, level_type):
        return level_constant(level_type, level_name, qualified=True), ()
    return level_constant(level_type, level_name), (level_type,)


def _emit(
    context: RewriteContext,
    receiver: Expression,
    spec: FrameworkSpec,
    severity: cs.Severity,
    message: CanonicalMessage,
) -> tuple[MethodInvocation, tuple[str, ...]]:
    """Call in ``spec``'s shape at ``severity``, plus imports it needs."""
    if spec.emits_level_argument:
        level, imports = _level_argument(context, spec, spec.severity_levels[severity])
        return build_log_call(receiver, spec, message, level=level), imports
    return build_log_call(
        receiver, spec, message, method_name=spec.severity_methods[severity]
    ), ()


def _logger_import_swaps(
    context: RewriteContext, source: cs.Framework, target: cs.Framework
) -> tuple[tuple[tuple[str, str], ...], tuple[str, ...]]:
    """Import swaps that retype logger declarations, or the import to add instead."""
    target_type = framework_spec(target).logger_type
    source_file = context.source_file
    if source_file is None:
        return (), ()
    swaps = tuple(
        (old, target_type)
        for old in framework_spec(source).logger_types
        if source_file.find_import(old) is not None
    )
    if swaps or source_file.imports_type(target_type):
        return swaps, ()
    return (), (target_type,)


class _BaseRule:
    name: cs.RuleName

    def _replacement(
        self,
        invocation: MethodInvocation,
        expression: MethodInvocation,
        **effects,
    ) -> Replacement | None:
        before = render(invocation)
        after = render(expression)
        if before == after:
            return None
        logger.debug(ls.RULE_FIRED.format(rule=self.name, before=before, after=after))
        return Replacement(self.name, invocation, expression, **effects)

    def _decline(self, invocation: MethodInvocation, reason: str) -> None:
        logger.debug(
            ls.RULE_DECLINED.format(rule=self.name, call=render(invocation), reason=reason)
        )
        return None


class RekeyLoggerRule(_BaseRule):
    name = cs.RuleName.REKEY_LOGGER

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None:
        if not isinstance(record, LoggerFactoryCall) or record.key is None:
            return None
        site = record.site
        if not site.in_field_initializer or site.enclosing is None:
            return None
        key_class = record.key_class
        if key_class is None:
            return None
        expected = site.enclosing.name
        if _simple_name(key_class) == expected:
            return None

        key = class_literal(expected)
        if isinstance(record.key, MethodInvocation):
            key = method_call(key, cs.METHOD_GET_NAME)
        invocation = record.invocation
        return self._replacement(
            invocation, method_call(invocation.select, invocation.name, (key,))
        )


class RemapFactoryRule(_BaseRule):
    name = cs.RuleName.REMAP_FACTORY

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None:
        if not isinstance(record, LoggerFactoryCall):
            return None
        target = context.options.target
        if record.framework == target:
            return None
        invocation = record.invocation
        if record.framework in context.blocked_frameworks:
            return self._decline(invocation, "framework has calls that cannot migrate")

        target_spec = framework_spec(target)
        key = self._target_key(record, target_spec)
        if key is None:
            return self._decline(invocation, "logger key cannot be carried over")
        if _conflicting_import(context.source_file, target_spec.factory_type) and (
            target_spec.factory_type not in target_spec.logger_types
        ):
            return self._decline(invocation, "factory name is taken by another import")

        swaps, adds = _logger_import_swaps(context, record.framework, target)
        factory = method_call(
            type_name(_simple_name(target_spec.factory_type)),
            cs.METHOD_GET_LOGGER,
            (key,),
        )
        source_factory = record.invocation.select
        release = ()
        if source_factory is not None and source_factory.type is not None:
            release = (source_factory.type.fqn,)
        return self._replacement(
            invocation,
            factory,
            add_imports=(*adds, target_spec.factory_type),
            swap_imports=swaps,
            release_imports=release,
        )

    @staticmethod
    def _target_key(record: LoggerFactoryCall, target: FrameworkSpec) -> Expression | None:
        key = record.key
        if key is None:
            enclosing = record.site.enclosing
            if enclosing is None:
                return None
            key = class_literal(enclosing.name)

        class_name = key_class_name(key)
        if class_name is not None:
            literal = class_literal(class_name)
            return method_call(literal, cs.METHOD_GET_NAME) if target.name_key else literal
        if is_string_typed(key):
            return key
        if key.type is not None and key.type.fqn == cs.TYPE_CLASS:
            return method_call(key, cs.METHOD_GET_NAME) if target.name_key else key
        return None


def _logger_for_site(
    site: InvocationSite, context: RewriteContext
) -> LoggerFieldSpec | None:
    """Existing logger field of any framework, else a synthesized target logger."""
    enclosing = site.enclosing
    if enclosing is None:
        return None
    options = context.options
    ordered = [options.target, *(f for f in cs.Framework if f != options.target)]
    for framework in ordered:
        found = resolve(
            enclosing,
            framework,
            field_name=options.logger_field_name,
            add_logger=False,
            static_context=site.static_context,
        )
        if found is not None:
            return found

    target_spec = framework_spec(options.target)
    for fqn in (target_spec.logger_type, target_spec.factory_type):
        if _conflicting_import(context.source_file, fqn):
            return None
    return resolve(
        enclosing,
        options.target,
        field_name=options.logger_field_name,
        add_logger=options.add_logger,
        static_context=site.static_context,
    )


class _ToLogRule(_BaseRule):
    def _rewrite_as_log(
        self,
        record: StackTracePrint | ConsolePrint,
        message: CanonicalMessage,
        severity: cs.Severity,
        context: RewriteContext,
    ) -> Replacement | None:
        invocation = record.invocation
        field = _logger_for_site(record.site, context)
        if field is None:
            return self._decline(invocation, "no usable logger field")

        spec = framework_spec(field.framework)
        severity = _severity_table(context).remap(severity, field.framework)
        call, imports = _emit(context, identifier(field.field_name), spec, severity, message)
        if not field.exists:
            imports = (*imports, *required_imports(field))
        return self._replacement(
            invocation,
            call,
            logger_field=None if field.exists else field,
            add_imports=imports,
        )


class StackTraceToLogRule(_ToLogRule):
    name = cs.RuleName.STACK_TRACE_TO_LOG

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None:
        if not isinstance(record, StackTracePrint):
            return None
        return self._rewrite_as_log(record, record.message, record.severity, context)


class ConsoleToLogRule(_ToLogRule):
    name = cs.RuleName.CONSOLE_TO_LOG

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None:
        if not isinstance(record, ConsolePrint):
            return None
        if record.message is None:
            return self._decline(record.invocation, "message cannot be compiled")
        severity = record.severity
        if record.stream == cs.ConsoleStream.OUT:
            severity = context.options.console_out_severity
        return self._rewrite_as_log(record, record.message, severity, context)


def _reemit(
    record: LeveledCall, message: CanonicalMessage, context: RewriteContext
) -> tuple[MethodInvocation, tuple[str, ...]]:
    """Same framework and level as ``record``, new message."""
    spec = framework_spec(record.framework)
    if record.level_argument is not None:
        return build_log_call(
            record.receiver, spec, message, level=record.level_argument
        ), ()
    if spec.emits_level_argument:
        level, imports = _level_argument(context, spec, record.native_level)
        return build_log_call(record.receiver, spec, message, level=level), imports
    return build_log_call(
        record.receiver, spec, message, method_name=record.invocation.name
    ), ()


class CompleteExceptionRule(_BaseRule):
    name = cs.RuleName.COMPLETE_EXCEPTION

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None:
        if not isinstance(record, LeveledCall):
            return None
        spec = framework_spec(record.framework)
        if not spec.throwable_parameter or spec.style != cs.MessageStyle.ANCHOR:
            return None
        if record.message is None:
            completed = _replace_surplus_accessor(record)
        else:
            completed = _add_error(record.message)
        if completed is None:
            return None
        call, imports = _reemit(record, completed, context)
        return self._replacement(record.invocation, call, add_imports=imports)


def _add_error(message: CanonicalMessage) -> CanonicalMessage | None:
    """``e.getMessage()`` filling the last placeholder gets ``e`` appended."""
    if message.trailing_error is not None or not message.arguments:
        return None
    accessor = message.arguments[-1]
    if not is_error_accessor(accessor):
        return None
    error = error_accessor_receiver(accessor)
    if message.template == cs.PLACEHOLDER and len(message.arguments) == 1:
        return CanonicalMessage("", (), error)
    return replace(message, trailing_error=error)


def _replace_surplus_accessor(record: LeveledCall) -> CanonicalMessage | None:
    """An ``e.getMessage()`` argument with no placeholder of its own becomes ``e``."""
    arguments = record.invocation.arguments
    if record.level_argument is not None:
        arguments = arguments[1:]
    if len(arguments) < 2:
        return None
    message, *params = arguments
    literal = unwrap_parentheses(message)
    if not isinstance(literal, Literal) or not is_string_typed(literal):
        return None
    accessor = params.pop()
    if not is_error_accessor(accessor) or any(is_throwable(p) for p in params):
        return None
    if count_placeholders(literal.raw) != len(params):
        return None
    return CanonicalMessage(
        literal.raw, tuple(params), error_accessor_receiver(accessor), already_canonical=True
    )


class MigrateRule(_BaseRule):
    name = cs.RuleName.MIGRATE

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None:
        if not isinstance(record, LeveledCall):
            return None
        target = context.options.target
        if record.framework == target:
            return None
        invocation = record.invocation
        if record.framework in context.blocked_frameworks:
            return self._decline(invocation, "framework has calls that cannot migrate")
        if record.message is None:
            return self._decline(invocation, "message cannot be compiled")

        target_spec = framework_spec(target)
        severity = _severity_table(context).remap(record.severity, target)
        call, imports = _emit(context, record.receiver, target_spec, severity, record.message)
        swaps, adds = _logger_import_swaps(context, record.framework, target)
        release = (
            framework_spec(record.framework).level_types
            if record.level_argument is not None
            else ()
        )
        return self._replacement(
            invocation,
            call,
            add_imports=(*adds, *imports),
            swap_imports=swaps,
            release_imports=tuple(release),
        )


class ParameterizeRule(_BaseRule):
    name = cs.RuleName.PARAMETERIZE

    def try_rewrite(
        self, record: CallSiteRecord, context: RewriteContext
    ) -> Replacement | None:
        if not isinstance(record, LeveledCall) or record.message is None:
            return None
        if record.is_already_canonical:
            return None
        if framework_spec(record.framework).style == cs.MessageStyle.CONCAT:
            return None
        call, imports = _reemit(record, record.message, context)
        return self._replacement(record.invocation, call, add_imports=imports)


RULES: Mapping[cs.RuleName, Rule] = MappingProxyType(
    {
        rule.name: rule
        for rule in (
            RekeyLoggerRule(),
            RemapFactoryRule(),
            StackTraceToLogRule(),
            ConsoleToLogRule(),
            CompleteExceptionRule(),
            MigrateRule(),
            ParameterizeRule(),
        )
    }
)


def rules_for(enabled: Iterable[cs.RuleName]) -> list[Rule]:
    enabled = frozenset(enabled)
    return [RULES[name] for name in cs.RULE_ORDER if name in enabled]


def blocked_frameworks(
    records: Sequence[tuple[InvocationSite, CallSiteRecord | None]],
    target: cs.Framework,
    enabled: Iterable[cs.RuleName] = cs.DEFAULT_RULES,
) -> frozenset[cs.Framework]:
    """Frameworks with a call in the file that would break if its logger were retyped."""
    target_spec = framework_spec(target)
    migrating = {cs.RuleName.MIGRATE, cs.RuleName.REMAP_FACTORY} <= frozenset(enabled)
    blocked: set[cs.Framework] = set()
    for site, record in records:
        match record:
            case LeveledCall(framework=framework) | LoggerFactoryCall(
                framework=framework
            ) if framework != target and not migrating:
                blocked.add(framework)
            case LeveledCall(framework=framework, message=None) if framework != target:
                blocked.add(framework)
            case None:
                invocation = site.invocation
                framework = logger_framework(invocation.select)
                if framework is not None and framework != target:
                    portable = (
                        invocation.name in framework_spec(framework).query_methods
                        and invocation.name in target_spec.query_methods
                    )
                    if not portable:
                        blocked.add(framework)
                framework = static_framework_reference(invocation.select)
                if framework is not None and framework != target:
                    blocked.add(framework)
    return frozenset(blocked)


def try_rewrite_site(
    site: InvocationSite,
    context: RewriteContext,
    rules: Sequence[Rule] | None = None,
) -> Replacement | None:
    """First replacement any enabled rule produces for ``site``."""
    record = classify_call(site, context.options.stack_trace_message)
    if record is None:
        return None
    return apply_rules(record, context, rules)


def apply_rules(
    record: CallSiteRecord,
    context: RewriteContext,
    rules: Sequence[Rule] | None = None,
) -> Replacement | None:
    for rule in rules if rules is not None else rules_for(context.options.enabled_rules):
        replacement = rule.try_rewrite(record, context)
        if replacement is not None:
            return replacement
    return None


def log_blocked(blocked: Iterable[cs.Framework], path: str) -> None:
    for framework in blocked:
        logger.debug(
            ls.RULE_MIGRATION_BLOCKED.format(
                rule=cs.RuleName.MIGRATE, framework=framework, path=path
            )
        )

