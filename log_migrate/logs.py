# (H) Configuration logs
LOADING_CONFIG_YAML = "Loading severity overrides from YAML: {path}"
CONFIG_YAML_FAILED = "YAML configuration failed: {error}. Using default severity table."
SEVERITY_OVERRIDE = "Severity override for {framework}: {source} -> {target}"

# (H) Parser logs
PARSER_INIT = "Java parser initialized"
PARSING_SOURCE = "Parsing Java source: {path}"
PARSE_HAS_ERRORS = "Source {path} contains syntax errors, skipping"
PARSED_SOURCE = "Parsed {path}: {classes} classes, {sites} invocation sites"

# (H) Classification logs
CLASSIFY_AMBIGUOUS = "Ambiguous message type in {call}, not compiling"
CLASSIFY_UNRESOLVED_RECEIVER = "Receiver of {call} has no resolvable type"
CLASSIFY_UNKNOWN_LEVEL = "Unknown level argument {level}, not a leveled call"

# (H) Rule logs
RULE_FIRED = "[{rule}] {before} -> {after}"
RULE_DECLINED = "[{rule}] declined {call}: {reason}"
RULE_MIGRATION_BLOCKED = (
    "[{rule}] {framework} calls in {path} cannot all be migrated; leaving them"
)
LOGGER_FIELD_FOUND = "Logger field '{name}' found on {owner}"
LOGGER_FIELD_SYNTHESIZED = "Synthesizing logger field '{name}' on {owner}"
LOGGER_FIELD_NAME_TAKEN = "Field name '{name}' on {owner} is taken by a non-logger field"

# (H) Runner logs
CYCLE_START = "Cycle {cycle} for {path}"
CYCLE_EDITS = "Cycle {cycle} for {path}: {count} replacements"
CYCLE_FIXED_POINT = "Fixed point for {path} after {cycle} cycles"
SKIPPED_OVERLAP = "Skipping overlapping replacement at {start}:{end} until next cycle"

# (H) Service logs
MIGRATOR_INIT = "Log migrator targeting {framework} with rules: {rules}"
MIGRATING_FILE = "Migrating {path}"
FILE_REWRITTEN = "Rewrote {path} ({count} rewrites)"
FILE_UNCHANGED = "No changes for {path}"
FILE_WRITTEN = "Wrote {path}"
FILE_READ_FAILED = "Failed to read {path}: {error}"
FILE_WRITE_FAILED = "Failed to write {path}: {error}"
FILE_SKIPPED_PARSE = "Skipping {path}: {error}"
FILE_NON_CONVERGENT = "{error}. Leaving file unchanged."
DISCOVERED_FILES = "Discovered {count} Java files under {path}"
