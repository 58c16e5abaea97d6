from enum import Enum


class MigrationOutcome(Enum):
    """Terminal state of one migration attempt."""

    MIGRATED = "migrated"
    NO_ANCHOR = "no_anchor"
    FAILED = "failed"
