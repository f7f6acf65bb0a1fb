from enum import StrEnum


class Framework(StrEnum):
    SLF4J = "slf4j"
    LOG4J1 = "log4j1"
    LOG4J2 = "log4j2"
    JUL = "jul"


class Severity(StrEnum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.TRACE,
    Severity.DEBUG,
    Severity.INFO,
    Severity.WARN,
    Severity.ERROR,
    Severity.FATAL,
)


class ExpressionKind(StrEnum):
    LITERAL = "literal"
    CONCATENATION = "concatenation"
    ERROR_ACCESSOR = "error_accessor"
    THROWABLE = "throwable"
    OTHER = "other"


class MessageStyle(StrEnum):
    ANCHOR = "anchor"
    INDEXED = "indexed"
    CONCAT = "concat"


class LiteralKind(StrEnum):
    STRING = "string"
    TEXT_BLOCK = "text_block"
    CHAR = "char"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    NULL = "null"


class ClassKind(StrEnum):
    CLASS = "class"
    ENUM = "enum"
    INTERFACE = "interface"
    RECORD = "record"


class ConsoleStream(StrEnum):
    OUT = "out"
    ERR = "err"


class RuleName(StrEnum):
    REKEY_LOGGER = "rekey-logger"
    REMAP_FACTORY = "remap-factory"
    STACK_TRACE_TO_LOG = "stack-trace-to-log"
    CONSOLE_TO_LOG = "console-to-log"
    COMPLETE_EXCEPTION = "complete-exception"
    MIGRATE = "migrate"
    PARAMETERIZE = "parameterize"


RULE_ORDER: tuple[RuleName, ...] = (
    RuleName.REKEY_LOGGER,
    RuleName.REMAP_FACTORY,
    RuleName.STACK_TRACE_TO_LOG,
    RuleName.CONSOLE_TO_LOG,
    RuleName.COMPLETE_EXCEPTION,
    RuleName.MIGRATE,
    RuleName.PARAMETERIZE,
)

DEFAULT_RULES: frozenset[RuleName] = frozenset(RULE_ORDER) - {
    RuleName.COMPLETE_EXCEPTION
}


class Color(StrEnum):
    GREEN = "green"
    YELLOW = "yellow"
    CYAN = "cyan"
    RED = "red"
    MAGENTA = "magenta"


class StyleModifier(StrEnum):
    BOLD = "bold"
    DIM = "dim"
    NONE = ""


class DiffMarker(StrEnum):
    ADD = "+"
    DEL = "-"
    HUNK = "@"
    HEADER_ADD = "+++"
    HEADER_DEL = "---"


# (H) Java type names
TYPE_STRING = "java.lang.String"
TYPE_OBJECT = "java.lang.Object"
TYPE_THROWABLE = "java.lang.Throwable"
TYPE_EXCEPTION = "java.lang.Exception"
TYPE_RUNTIME_EXCEPTION = "java.lang.RuntimeException"
TYPE_ERROR = "java.lang.Error"
TYPE_CLASS = "java.lang.Class"
TYPE_SYSTEM = "java.lang.System"
TYPE_PRINT_STREAM = "java.io.PrintStream"
TYPE_BOOLEAN = "boolean"
TYPE_CHAR = "char"
TYPE_INT = "int"
TYPE_LONG = "long"
TYPE_DOUBLE = "double"
TYPE_FLOAT = "float"

PRIMITIVE_TYPES = frozenset(
    {"boolean", "byte", "char", "short", "int", "long", "float", "double", "void"}
)
NUMERIC_PRIMITIVES = frozenset({"byte", "char", "short", "int", "long", "float", "double"})

THROWABLE_NAME_SUFFIXES = ("Exception", "Error", "Throwable")

# (H) Method names with fixed meaning
METHOD_GET_MESSAGE = "getMessage"
METHOD_GET_LOCALIZED_MESSAGE = "getLocalizedMessage"
ERROR_ACCESSOR_METHODS = frozenset({METHOD_GET_MESSAGE, METHOD_GET_LOCALIZED_MESSAGE})
METHOD_PRINT_STACK_TRACE = "printStackTrace"
METHOD_GET_LOGGER = "getLogger"
METHOD_GET_NAME = "getName"
METHOD_LOG = "log"
CONSOLE_PRINT_METHODS = frozenset({"print", "println"})

# (H) Templates and placeholders
PLACEHOLDER = "{}"
ESCAPED_PLACEHOLDER = "\\\\{}"
STRING_QUOTE = '"'
CONCAT_OPERATOR = "+"
ARGUMENT_SEPARATOR = ", "
CLASS_LITERAL_SUFFIX = ".class"
OBJECT_ARRAY_TYPE = "Object"
JUL_QUOTE = "'"

# (H) Java modifiers
MODIFIER_STATIC = "static"
MODIFIER_FINAL = "final"
MODIFIER_PRIVATE = "private"

# (H) Defaults
DEFAULT_LOGGER_FIELD_NAME = "logger"
DEFAULT_STACK_TRACE_MESSAGE = "Exception"
DEFAULT_MAX_CYCLES = 10
DEFAULT_INDENT = "    "
JAVA_EXTENSION = ".java"
ENCODING_UTF8 = "utf-8"
CONFIG_YAML_FILENAME = ".log-migrate.yaml"
YAML_KEY_SEVERITY_OVERRIDES = "severity_overrides"
DEFAULT_EXCLUDED_DIRS = frozenset(
    {".git", ".gradle", ".idea", "build", "target", "out", "node_modules"}
)

LOG_FORMAT = "<level>{level: <8}</level> | <cyan>{name}</cyan> - {message}"

# (H) CLI / UI
CLI_PROG = "log-migrate"
CLI_DESCRIPTION = (
    "Migrate Java logging call sites to one framework and parameterize messages."
)
SUMMARY_TABLE_TITLE = "Log migration summary"
TABLE_COL_FILE = "File"
TABLE_COL_REWRITES = "Rewrites"
TABLE_COL_STATUS = "Status"
STATUS_CHANGED = "changed"
STATUS_UNCHANGED = "unchanged"
STATUS_FAILED = "failed"
DIFF_LABEL_BEFORE = "a/{path}"
DIFF_LABEL_AFTER = "b/{path}"
HORIZONTAL_SEPARATOR = "─" * 60
MSG_DRY_RUN = "Dry run: no files were written. Use --write to apply changes."
MSG_NOTHING_TO_DO = "No logging call sites needed rewriting."
