from __future__ import annotations

from collections.abc import Callable

from log_migrate import constants as cs
from log_migrate.engine.call_sites import classify_call
from log_migrate.engine.models import RewriteContext, RewriteOptions
from log_migrate.engine.rules import (
    apply_rules,
    blocked_frameworks,
    rules_for,
    try_rewrite_site,
)
from log_migrate.printer import render
from log_migrate.tree import InvocationSite, SourceFile

ParseJava = Callable[[str], SourceFile]
SiteNamed = Callable[[SourceFile, str], InvocationSite]


def context_for(source_file: SourceFile, **options) -> RewriteContext:
    return RewriteContext(RewriteOptions(**options), source_file)


def with_blocked(source_file: SourceFile, **options) -> RewriteContext:
    rewrite_options = RewriteOptions(**options)
    records = [
        (site, classify_call(site, rewrite_options.stack_trace_message))
        for site in source_file.sites
    ]
    blocked = blocked_frameworks(
        records, rewrite_options.target, rewrite_options.enabled_rules
    )
    return RewriteContext(rewrite_options, source_file, blocked)


class TestRuleOrder:
    def test_rules_for_keeps_fixed_order(self) -> None:
        rules = rules_for({cs.RuleName.PARAMETERIZE, cs.RuleName.REKEY_LOGGER})

        assert [rule.name for rule in rules] == [
            cs.RuleName.REKEY_LOGGER,
            cs.RuleName.PARAMETERIZE,
        ]


class TestStackTraceToLog:
    SOURCE = """
        class Service {
            void run() {
                try {
                    work();
                } catch (Exception e) {
                    e.printStackTrace();
                }
            }
        }
        """

    def test_synthesizes_logger(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(self.SOURCE)

        replacement = try_rewrite_site(
            site_named(source_file, "printStackTrace"), context_for(source_file)
        )

        assert replacement is not None
        assert replacement.rule == cs.RuleName.STACK_TRACE_TO_LOG
        assert render(replacement.expression) == 'logger.error("Exception", e)'
        assert replacement.logger_field is not None
        assert replacement.logger_field.owner.name == "Service"
        assert set(replacement.add_imports) == {"org.slf4j.Logger", "org.slf4j.LoggerFactory"}

    def test_reuses_existing_log4j2_field(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            import org.apache.logging.log4j.LogManager;
            import org.apache.logging.log4j.Logger;

            class Service {
                private static final Logger LOG = LogManager.getLogger();
                void run(Exception e) {
                    e.printStackTrace();
                }
            }
            """
        )

        replacement = try_rewrite_site(
            site_named(source_file, "printStackTrace"), context_for(source_file)
        )

        assert render(replacement.expression) == 'LOG.error("Exception", e)'
        assert replacement.logger_field is None
        assert replacement.add_imports == ()

    def test_declines_without_add_logger(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(self.SOURCE)

        replacement = try_rewrite_site(
            site_named(source_file, "printStackTrace"),
            context_for(source_file, add_logger=False),
        )

        assert replacement is None

    def test_declines_in_interface(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            interface Task {
                default void fail(Exception e) {
                    e.printStackTrace();
                }
            }
            """
        )

        assert (
            try_rewrite_site(site_named(source_file, "printStackTrace"), context_for(source_file))
            is None
        )

    def test_declines_static_context_with_instance_logger(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            import org.slf4j.Logger;

            class Service {
                private Logger logger;
                static void fail(Exception e) {
                    e.printStackTrace();
                }
            }
            """
        )

        assert (
            try_rewrite_site(site_named(source_file, "printStackTrace"), context_for(source_file))
            is None
        )

    def test_jul_target_emits_level(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(self.SOURCE)

        replacement = try_rewrite_site(
            site_named(source_file, "printStackTrace"),
            context_for(source_file, target=cs.Framework.JUL),
        )

        assert render(replacement.expression) == (
            'logger.log(Level.SEVERE, "Exception", e)'
        )
        assert "java.util.logging.Level" in replacement.add_imports


class TestConsoleToLog:
    def test_out_uses_configured_severity(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            class Cli {
                void run(String name) {
                    System.out.println("hi " + name);
                }
            }
            """
        )

        replacement = try_rewrite_site(
            site_named(source_file, "println"),
            context_for(source_file, console_out_severity=cs.Severity.DEBUG),
        )

        assert render(replacement.expression) == 'logger.debug("hi {}", name)'


class TestMigrate:
    def test_log4j1_to_slf4j(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            import org.apache.log4j.Logger;

            class Worker {
                private static final Logger log = Logger.getLogger(Worker.class);
                void run(String name) {
                    log.fatal("Lost " + name);
                }
            }
            """
        )
        context = with_blocked(source_file)

        replacement = try_rewrite_site(site_named(source_file, "fatal"), context)

        assert replacement.rule == cs.RuleName.MIGRATE
        assert render(replacement.expression) == 'log.error("Lost {}", name)'
        assert replacement.swap_imports == (("org.apache.log4j.Logger", "org.slf4j.Logger"),)

    def test_remap_factory(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            """
            import org.apache.log4j.Logger;

            class Worker {
                private static final Logger log = Logger.getLogger(Worker.class);
            }
            """
        )

        replacement = try_rewrite_site(
            site_named(source_file, "getLogger"), with_blocked(source_file)
        )

        assert replacement.rule == cs.RuleName.REMAP_FACTORY
        assert render(replacement.expression) == "LoggerFactory.getLogger(Worker.class)"
        assert "org.slf4j.LoggerFactory" in replacement.add_imports
        assert replacement.release_imports == ("org.apache.log4j.Logger",)

    def test_blocked_by_unresolved_message(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            import org.apache.log4j.Logger;

            class Worker {
                private static final Logger log = Logger.getLogger(Worker.class);
                void run() {
                    log.debug(payload);
                }
            }
            """
        )
        context = with_blocked(source_file)

        assert context.blocked_frameworks == frozenset({cs.Framework.LOG4J1})
        assert try_rewrite_site(site_named(source_file, "getLogger"), context) is None

    def test_portable_query_does_not_block(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            import org.apache.log4j.Logger;

            class Worker {
                private static final Logger log = Logger.getLogger(Worker.class);
                void run() {
                    if (log.isDebugEnabled()) {
                        log.debug("ready");
                    }
                }
            }
            """
        )

        assert with_blocked(source_file).blocked_frameworks == frozenset()

    def test_non_portable_call_blocks(self, parse_java: ParseJava) -> None:
        source_file = parse_java(
            """
            import org.apache.log4j.Level;
            import org.apache.log4j.Logger;

            class Worker {
                private static final Logger log = Logger.getLogger(Worker.class);
                void run() {
                    if (log.isEnabledFor(Level.WARN)) {
                        log.warn("ready");
                    }
                }
            }
            """
        )

        assert with_blocked(source_file).blocked_frameworks == frozenset(
            {cs.Framework.LOG4J1}
        )

    def test_target_framework_is_untouched(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            """
            import org.apache.logging.log4j.Level;
            import org.apache.logging.log4j.LogManager;
            import org.apache.logging.log4j.Logger;

            class Validator {
                private static final Logger logger = LogManager.getLogger(Validator.class);
                void check(Exception ex) {
                    logger.log(Level.ERROR, "Invalid parameter: {}", ex.getMessage(), ex);
                }
            }
            """
        )
        context = with_blocked(source_file, target=cs.Framework.LOG4J2)

        assert try_rewrite_site(site_named(source_file, "log"), context) is None


class TestParameterizeAndComplete:
    HEADER = """
        import org.slf4j.Logger;
        import org.slf4j.LoggerFactory;

        class Parser {
            private static final Logger logger = LoggerFactory.getLogger(Parser.class);
        """
    COMPLETE = cs.DEFAULT_RULES | {cs.RuleName.COMPLETE_EXCEPTION}

    def test_parameterize(self, parse_java: ParseJava, site_named: SiteNamed) -> None:
        source_file = parse_java(
            self.HEADER
            + """
            void greet(String name) {
                logger.info("Hello " + name + ", nice to meet you " + name);
            }
        }
        """
        )

        replacement = try_rewrite_site(site_named(source_file, "info"), context_for(source_file))

        assert replacement.rule == cs.RuleName.PARAMETERIZE
        assert render(replacement.expression) == (
            'logger.info("Hello {}, nice to meet you {}", name, name)'
        )

    def test_complete_exception_is_opt_in(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            self.HEADER
            + """
            void parse(Exception e) {
                logger.warn("Could not parse {}", e.getMessage());
            }
        }
        """
        )
        site = site_named(source_file, "warn")

        assert try_rewrite_site(site, context_for(source_file)) is None

        enabled = cs.DEFAULT_RULES | {cs.RuleName.COMPLETE_EXCEPTION}
        replacement = try_rewrite_site(
            site, context_for(source_file, enabled_rules=enabled)
        )

        assert render(replacement.expression) == (
            'logger.warn("Could not parse {}", e.getMessage(), e)'
        )

    def _complete(self, parse_java: ParseJava, site_named: SiteNamed, call: str) -> str | None:
        source_file = parse_java(
            self.HEADER
            + f"""
            void parse(Exception e) {{
                {call}
            }}
        }}
        """
        )
        replacement = try_rewrite_site(
            site_named(source_file, "error"),
            context_for(source_file, enabled_rules=self.COMPLETE),
        )
        return None if replacement is None else render(replacement.expression)

    def test_surplus_accessor_is_replaced_by_error(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        assert self._complete(
            parse_java, site_named, 'logger.error("An error occurred", e.getMessage());'
        ) == 'logger.error("An error occurred", e)'

    def test_surplus_accessor_after_arguments(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        assert self._complete(
            parse_java,
            site_named,
            'logger.error("An error occurred {} times", 1, e.getMessage());',
        ) == 'logger.error("An error occurred {} times", 1, e)'

    def test_sole_accessor_message(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        assert self._complete(
            parse_java, site_named, "logger.error(e.getMessage());"
        ) == 'logger.error("", e)'

    def test_accessor_before_other_arguments_is_left_alone(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        assert self._complete(
            parse_java,
            site_named,
            'logger.error("message {}, occurred {} times", e.getMessage(), 1);',
        ) is None

    def test_apply_rules_with_explicit_rule_list(
        self, parse_java: ParseJava, site_named: SiteNamed
    ) -> None:
        source_file = parse_java(
            self.HEADER
            + """
            void greet(String name) {
                logger.info("Hello " + name);
            }
        }
        """
        )
        record = classify_call(site_named(source_file, "info"))

        assert apply_rules(record, context_for(source_file), rules=[]) is None
