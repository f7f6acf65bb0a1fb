UNKNOWN_FRAMEWORK = "Unknown logging framework '{value}'. Expected one of: {choices}"
UNKNOWN_SEVERITY = "Unknown severity '{value}'. Expected one of: {choices}"
UNKNOWN_RULE = "Unknown rule '{value}'. Expected one of: {choices}"
MAX_CYCLES_POSITIVE = "max_cycles must be a positive integer"
CONSOLE_LEVEL_INVALID = "console_out_level must be one of trace, debug or info"
LOGGER_FIELD_NAME_INVALID = "Logger field name '{name}' is not a valid Java identifier"
SEVERITY_TIER_UNAVAILABLE = (
    "Severity override {framework}.{source} -> {target} targets a tier the "
    "framework does not provide"
)
SEVERITY_OVERRIDES_FORMAT = (
    "Invalid 'severity_overrides' format. Expected a mapping of framework to "
    "mapping of severity to severity, got: {kind}"
)
PARSE_FAILED = "Failed to parse {path}: syntax errors in the source"
NON_CONVERGENCE = (
    "Rewriting {path} did not reach a fixed point within {cycles} cycles"
)
OVERLAPPING_EDITS = "Edit {start}:{end} overlaps an earlier edit"
INVALID_YAML = "Invalid YAML format: {error}"
CALL_SHAPE_REQUIRED = "A leveled call needs either a method name or a level argument"


class RewriteError(Exception):
    pass


class SourceParseError(RewriteError):
    pass


class NonConvergenceError(RewriteError):
    def __init__(self, path: str, cycles: int) -> None:
        super().__init__(NON_CONVERGENCE.format(path=path, cycles=cycles))
        self.path = path
        self.cycles = cycles
