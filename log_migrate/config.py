from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import constants as cs
from . import exceptions as ex
from . import logs
from .engine.frameworks import SeverityTable, parse_framework, parse_severity
from .engine.models import RewriteOptions

load_dotenv()

_CONSOLE_LEVELS = frozenset({cs.Severity.TRACE, cs.Severity.DEBUG, cs.Severity.INFO})


class AppConfig(BaseSettings):
    """
    (H) All settings are loaded from LOG_MIGRATE_* environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_MIGRATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    TARGET_FRAMEWORK: cs.Framework = cs.Framework.SLF4J
    LOGGER_FIELD_NAME: str = cs.DEFAULT_LOGGER_FIELD_NAME
    MAX_CYCLES: int = cs.DEFAULT_MAX_CYCLES
    ADD_LOGGER: bool = True
    CONSOLE_OUT_LEVEL: cs.Severity = cs.Severity.INFO
    STACK_TRACE_MESSAGE: str = cs.DEFAULT_STACK_TRACE_MESSAGE
    ENABLED_RULES: frozenset[cs.RuleName] = cs.DEFAULT_RULES
    EXCLUDED_DIRS: frozenset[str] = cs.DEFAULT_EXCLUDED_DIRS

    def resolve_target(self, target: str | None) -> cs.Framework:
        if target is None:
            return self.TARGET_FRAMEWORK
        return parse_framework(target)

    def resolve_max_cycles(self, max_cycles: int | None) -> int:
        resolved = self.MAX_CYCLES if max_cycles is None else max_cycles
        if resolved < 1:
            raise ValueError(ex.MAX_CYCLES_POSITIVE)
        return resolved

    def resolve_console_level(self, level: str | None) -> cs.Severity:
        resolved = self.CONSOLE_OUT_LEVEL if level is None else parse_severity(level)
        if resolved not in _CONSOLE_LEVELS:
            raise ValueError(ex.CONSOLE_LEVEL_INVALID)
        return resolved

    def resolve_field_name(self, name: str | None) -> str:
        resolved = self.LOGGER_FIELD_NAME if name is None else name
        if not resolved.isidentifier() or not resolved.isascii():
            raise ValueError(ex.LOGGER_FIELD_NAME_INVALID.format(name=resolved))
        return resolved

    def resolve_rules(
        self,
        enable: Iterable[str] = (),
        disable: Iterable[str] = (),
    ) -> frozenset[cs.RuleName]:
        rules = set(self.ENABLED_RULES)
        rules.update(parse_rule(name) for name in enable)
        rules.difference_update(parse_rule(name) for name in disable)
        return frozenset(rules)

    def get_severity_table(self, root: Path | None = None) -> SeverityTable:
        yaml_path = (root or Path.cwd()) / cs.CONFIG_YAML_FILENAME
        if yaml_path.is_file():
            try:
                logger.info(logs.LOADING_CONFIG_YAML.format(path=yaml_path))
                return SeverityTable(self._load_yaml_overrides(yaml_path))
            except (ValueError, OSError) as e:
                logger.warning(logs.CONFIG_YAML_FAILED.format(error=e))
        return SeverityTable()

    def _load_yaml_overrides(
        self, yaml_path: Path
    ) -> dict[cs.Framework, dict[cs.Severity, cs.Severity]]:
        try:
            with yaml_path.open(encoding=cs.ENCODING_UTF8) as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(ex.INVALID_YAML.format(error=e)) from e

        if not isinstance(config, dict):
            raise ValueError(ex.SEVERITY_OVERRIDES_FORMAT.format(kind=type(config)))
        overrides = config.get(cs.YAML_KEY_SEVERITY_OVERRIDES, {})
        if not isinstance(overrides, dict):
            raise ValueError(ex.SEVERITY_OVERRIDES_FORMAT.format(kind=type(overrides)))

        parsed: dict[cs.Framework, dict[cs.Severity, cs.Severity]] = {}
        for framework, mapping in overrides.items():
            if not isinstance(mapping, dict):
                raise ValueError(ex.SEVERITY_OVERRIDES_FORMAT.format(kind=type(mapping)))
            parsed[parse_framework(str(framework))] = {
                parse_severity(str(source)): parse_severity(str(target))
                for source, target in mapping.items()
            }
        return parsed

    def rewrite_options(
        self,
        *,
        target: str | None = None,
        logger_field_name: str | None = None,
        max_cycles: int | None = None,
        add_logger: bool | None = None,
        console_out_level: str | None = None,
        enable_rules: Iterable[str] = (),
        disable_rules: Iterable[str] = (),
        root: Path | None = None,
    ) -> RewriteOptions:
        return RewriteOptions(
            target=self.resolve_target(target),
            severity_table=self.get_severity_table(root),
            logger_field_name=self.resolve_field_name(logger_field_name),
            add_logger=self.ADD_LOGGER if add_logger is None else add_logger,
            console_out_severity=self.resolve_console_level(console_out_level),
            stack_trace_message=self.STACK_TRACE_MESSAGE,
            enabled_rules=self.resolve_rules(enable_rules, disable_rules),
            max_cycles=self.resolve_max_cycles(max_cycles),
        )


def parse_rule(value: str) -> cs.RuleName:
    try:
        return cs.RuleName(value.strip().lower().replace("_", "-"))
    except ValueError:
        raise ValueError(
            ex.UNKNOWN_RULE.format(
                value=value, choices=", ".join(r.value for r in cs.RuleName)
            )
        ) from None


settings = AppConfig()
