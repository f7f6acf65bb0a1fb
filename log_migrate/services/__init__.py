from .migrator import LogMigrator
from .runner import FixedPointRunner, RunResult

__all__ = ["FixedPointRunner", "LogMigrator", "RunResult"]
