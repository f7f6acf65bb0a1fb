from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from loguru import logger

from .. import constants as cs
from .. import exceptions as ex
from .. import logs as ls

Sev = cs.Severity


@dataclass(frozen=True)
class FrameworkSpec:
    tag: cs.Framework
    logger_types: tuple[str, ...]
    factory_types: tuple[str, ...]
    style: cs.MessageStyle
    method_severities: Mapping[str, cs.Severity]
    severity_methods: Mapping[cs.Severity, str]
    level_types: tuple[str, ...] = ()
    level_severities: Mapping[str, cs.Severity] = field(default_factory=dict)
    severity_levels: Mapping[cs.Severity, str] = field(default_factory=dict)
    marker_types: tuple[str, ...] = ()
    query_methods: frozenset[str] = frozenset()
    emits_level_argument: bool = False
    throwable_parameter: bool = True
    name_key: bool = False

    @property
    def logger_type(self) -> str:
        return self.logger_types[0]

    @property
    def factory_type(self) -> str:
        return self.factory_types[0]

    @property
    def level_type(self) -> str | None:
        return self.level_types[0] if self.level_types else None

    @property
    def supports_level_argument(self) -> bool:
        return bool(self.level_types)

    @property
    def tiers(self) -> frozenset[cs.Severity]:
        if self.emits_level_argument:
            return frozenset(self.severity_levels)
        return frozenset(self.severity_methods)


_LEVEL_METHODS = {
    Sev.TRACE: "trace",
    Sev.DEBUG: "debug",
    Sev.INFO: "info",
    Sev.WARN: "warn",
    Sev.ERROR: "error",
}
_LEVEL_METHODS_WITH_FATAL = {**_LEVEL_METHODS, Sev.FATAL: "fatal"}
_ENABLED_QUERIES = frozenset(
    {
        "isTraceEnabled",
        "isDebugEnabled",
        "isInfoEnabled",
        "isWarnEnabled",
        "isErrorEnabled",
        "getName",
    }
)


def _invert(methods: Mapping[cs.Severity, str]) -> dict[str, cs.Severity]:
    return {name: severity for severity, name in methods.items()}


FRAMEWORKS: Mapping[cs.Framework, FrameworkSpec] = MappingProxyType(
    {
        cs.Framework.SLF4J: FrameworkSpec(
            tag=cs.Framework.SLF4J,
            logger_types=("org.slf4j.Logger",),
            factory_types=("org.slf4j.LoggerFactory",),
            style=cs.MessageStyle.ANCHOR,
            method_severities=_invert(_LEVEL_METHODS),
            severity_methods=_LEVEL_METHODS,
            marker_types=("org.slf4j.Marker",),
            query_methods=_ENABLED_QUERIES,
        ),
        cs.Framework.LOG4J1: FrameworkSpec(
            tag=cs.Framework.LOG4J1,
            logger_types=("org.apache.log4j.Logger", "org.apache.log4j.Category"),
            factory_types=("org.apache.log4j.LogManager", "org.apache.log4j.Logger"),
            style=cs.MessageStyle.CONCAT,
            method_severities=_invert(_LEVEL_METHODS_WITH_FATAL),
            severity_methods=_LEVEL_METHODS_WITH_FATAL,
            level_types=("org.apache.log4j.Level", "org.apache.log4j.Priority"),
            level_severities={
                "TRACE": Sev.TRACE,
                "DEBUG": Sev.DEBUG,
                "INFO": Sev.INFO,
                "WARN": Sev.WARN,
                "ERROR": Sev.ERROR,
                "FATAL": Sev.FATAL,
            },
            query_methods=frozenset(
                {"isTraceEnabled", "isDebugEnabled", "isInfoEnabled", "getName"}
            ),
        ),
        cs.Framework.LOG4J2: FrameworkSpec(
            tag=cs.Framework.LOG4J2,
            logger_types=("org.apache.logging.log4j.Logger",),
            factory_types=("org.apache.logging.log4j.LogManager",),
            style=cs.MessageStyle.ANCHOR,
            method_severities=_invert(_LEVEL_METHODS_WITH_FATAL),
            severity_methods=_LEVEL_METHODS_WITH_FATAL,
            level_types=("org.apache.logging.log4j.Level",),
            level_severities={
                "ALL": Sev.TRACE,
                "TRACE": Sev.TRACE,
                "DEBUG": Sev.DEBUG,
                "INFO": Sev.INFO,
                "WARN": Sev.WARN,
                "ERROR": Sev.ERROR,
                "FATAL": Sev.FATAL,
            },
            marker_types=("org.apache.logging.log4j.Marker",),
            query_methods=_ENABLED_QUERIES | {"isFatalEnabled"},
        ),
        cs.Framework.JUL: FrameworkSpec(
            tag=cs.Framework.JUL,
            logger_types=("java.util.logging.Logger",),
            factory_types=("java.util.logging.Logger",),
            style=cs.MessageStyle.INDEXED,
            method_severities={
                "finest": Sev.TRACE,
                "finer": Sev.TRACE,
                "fine": Sev.DEBUG,
                "config": Sev.INFO,
                "info": Sev.INFO,
                "warning": Sev.WARN,
                "severe": Sev.ERROR,
            },
            severity_methods={
                Sev.TRACE: "finer",
                Sev.DEBUG: "fine",
                Sev.INFO: "info",
                Sev.WARN: "warning",
                Sev.ERROR: "severe",
            },
            level_types=("java.util.logging.Level",),
            level_severities={
                "ALL": Sev.TRACE,
                "FINEST": Sev.TRACE,
                "FINER": Sev.TRACE,
                "FINE": Sev.DEBUG,
                "CONFIG": Sev.INFO,
                "INFO": Sev.INFO,
                "WARNING": Sev.WARN,
                "SEVERE": Sev.ERROR,
            },
            severity_levels={
                Sev.TRACE: "FINER",
                Sev.DEBUG: "FINE",
                Sev.INFO: "INFO",
                Sev.WARN: "WARNING",
                Sev.ERROR: "SEVERE",
            },
            query_methods=frozenset({"isLoggable", "getName"}),
            emits_level_argument=True,
            throwable_parameter=False,
            name_key=True,
        ),
    }
)

LOGGER_TYPE_INDEX: Mapping[str, cs.Framework] = MappingProxyType(
    {
        logger_type: spec.tag
        for spec in FRAMEWORKS.values()
        for logger_type in spec.logger_types
    }
)

FACTORY_TYPE_INDEX: Mapping[str, cs.Framework] = MappingProxyType(
    {
        factory_type: spec.tag
        for spec in FRAMEWORKS.values()
        for factory_type in spec.factory_types
    }
)


def framework_spec(framework: cs.Framework) -> FrameworkSpec:
    return FRAMEWORKS[framework]


def parse_framework(value: str) -> cs.Framework:
    normalized = value.strip().lower().replace(" ", "")
    for framework in cs.Framework:
        if framework.value == normalized or framework.name.lower() == normalized:
            return framework
    raise ValueError(
        ex.UNKNOWN_FRAMEWORK.format(
            value=value, choices=", ".join(f.value for f in cs.Framework)
        )
    )


def parse_severity(value: str) -> cs.Severity:
    try:
        return cs.Severity(value.strip().lower())
    except ValueError:
        raise ValueError(
            ex.UNKNOWN_SEVERITY.format(
                value=value, choices=", ".join(s.value for s in cs.Severity)
            )
        ) from None


def nearest_tier(severity: cs.Severity, tiers: frozenset[cs.Severity]) -> cs.Severity:
    """Closest available tier at or above ``severity``, else the highest tier."""
    start = cs.SEVERITY_ORDER.index(severity)
    for candidate in cs.SEVERITY_ORDER[start:]:
        if candidate in tiers:
            return candidate
    return max(tiers, key=cs.SEVERITY_ORDER.index)


class SeverityTable:
    def __init__(
        self,
        overrides: Mapping[cs.Framework, Mapping[cs.Severity, cs.Severity]]
        | None = None,
    ) -> None:
        table: dict[cs.Framework, dict[cs.Severity, cs.Severity]] = {}
        for framework, spec in FRAMEWORKS.items():
            table[framework] = {
                severity: nearest_tier(severity, spec.tiers)
                for severity in cs.SEVERITY_ORDER
            }

        for framework, mapping in (overrides or {}).items():
            tiers = FRAMEWORKS[framework].tiers
            for source, target in mapping.items():
                if target not in tiers:
                    raise ValueError(
                        ex.SEVERITY_TIER_UNAVAILABLE.format(
                            framework=framework, source=source, target=target
                        )
                    )
                logger.debug(
                    ls.SEVERITY_OVERRIDE.format(
                        framework=framework, source=source, target=target
                    )
                )
                table[framework][source] = target

        self._table: Mapping[cs.Framework, Mapping[cs.Severity, cs.Severity]] = (
            MappingProxyType(
                {fw: MappingProxyType(mapping) for fw, mapping in table.items()}
            )
        )

    def remap(self, severity: cs.Severity, framework: cs.Framework) -> cs.Severity:
        return self._table[framework][severity]

    def as_dict(self) -> dict[str, dict[str, str]]:
        return {
            str(framework): {str(s): str(t) for s, t in mapping.items()}
            for framework, mapping in self._table.items()
        }


DEFAULT_SEVERITY_TABLE = SeverityTable()
