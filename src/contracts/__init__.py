"""Alert Contract — data structures shared by all modules."""

from src.contracts.alert import ALERT_FIELDS, AlertRecord, BlockOrigin
from src.contracts.enums import AlertKind, MatchBy, ThresholdMethod
from src.contracts.errors import (
    AlertToolError,
    ConfigurationError,
    MalformedBlockError,
    SectionNotFoundError,
    ValidationError,
)
from src.contracts.repository import DETACHED_HEAD, RepositoryState
from src.contracts.statistics import DurationStatistics

__all__ = [
    "ALERT_FIELDS",
    "AlertKind",
    "AlertRecord",
    "AlertToolError",
    "BlockOrigin",
    "ConfigurationError",
    "DETACHED_HEAD",
    "DurationStatistics",
    "MalformedBlockError",
    "MatchBy",
    "RepositoryState",
    "SectionNotFoundError",
    "ThresholdMethod",
    "ValidationError",
]
