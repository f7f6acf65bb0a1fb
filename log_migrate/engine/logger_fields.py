from __future__ import annotations

from loguru import logger

from .. import constants as cs
from .. import logs as ls
from ..printer import render
from ..tree import ClassDecl, FieldDecl, class_literal, method_call, type_name
from .frameworks import framework_spec
from .models import LoggerFieldSpec


def find_logger_field(owner: ClassDecl, framework: cs.Framework) -> FieldDecl | None:
    """Logger field declared on ``owner`` or inherited from a same-file superclass."""
    logger_types = framework_spec(framework).logger_types

    for decl in owner.fields:
        if decl.type is not None and decl.type.fqn in logger_types:
            return decl

    ancestor = owner.super_decl
    seen = {id(owner)}
    while ancestor is not None and id(ancestor) not in seen:
        seen.add(id(ancestor))
        for decl in ancestor.fields:
            if decl.is_private:
                continue
            if decl.type is not None and decl.type.fqn in logger_types:
                return decl
        ancestor = ancestor.super_decl
    return None


def resolve(
    owner: ClassDecl,
    framework: cs.Framework,
    *,
    field_name: str = cs.DEFAULT_LOGGER_FIELD_NAME,
    add_logger: bool = True,
    static_context: bool = False,
) -> LoggerFieldSpec | None:
    if owner.kind == cs.ClassKind.INTERFACE:
        return None

    found = find_logger_field(owner, framework)
    if found is not None:
        if static_context and not found.is_static:
            return None
        logger.debug(ls.LOGGER_FIELD_FOUND.format(name=found.name, owner=owner.fqn))
        return LoggerFieldSpec(
            owner,
            found.name,
            framework,
            is_static=found.is_static,
            is_final=cs.MODIFIER_FINAL in found.modifiers,
            exists=True,
        )

    if not add_logger or owner.body_start is None:
        return None
    if owner.field_named(field_name) is not None:
        logger.debug(ls.LOGGER_FIELD_NAME_TAKEN.format(name=field_name, owner=owner.fqn))
        return None

    is_static = owner.can_hold_static_members
    if static_context and not is_static:
        return None
    logger.debug(ls.LOGGER_FIELD_SYNTHESIZED.format(name=field_name, owner=owner.fqn))
    return LoggerFieldSpec(owner, field_name, framework, is_static=is_static)


def field_declaration(field_spec: LoggerFieldSpec) -> str:
    """Source of the declaration for a synthesized logger field."""
    spec = framework_spec(field_spec.framework)
    key = class_literal(field_spec.owner.name)
    if spec.name_key:
        key = method_call(key, cs.METHOD_GET_NAME)
    factory = method_call(
        type_name(spec.factory_type.rsplit(".", 1)[-1]), cs.METHOD_GET_LOGGER, (key,)
    )

    modifiers = [cs.MODIFIER_PRIVATE]
    if field_spec.is_static:
        modifiers.append(cs.MODIFIER_STATIC)
    if field_spec.is_final:
        modifiers.append(cs.MODIFIER_FINAL)
    logger_type = spec.logger_type.rsplit(".", 1)[-1]
    return f"{' '.join(modifiers)} {logger_type} {field_spec.field_name} = {render(factory)};"


def required_imports(field_spec: LoggerFieldSpec) -> tuple[str, ...]:
    spec = framework_spec(field_spec.framework)
    return tuple(dict.fromkeys((spec.logger_type, spec.factory_type)))
