"""AlertRecord — one NRQL alert definition from an ``nrql_alerts`` block."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# (attribute, value kind) in declaration order.  The tfvars key equals the
# attribute name.  This order is also the rendering order of the codec.
ALERT_FIELDS: list[tuple[str, str]] = [
    ("name", "str"),
    ("description", "str"),
    ("nrql_query", "str"),
    ("runbook_url", "str"),
    ("severity", "str"),
    ("enabled", "bool"),
    ("aggregation_method", "str"),
    ("aggregation_window", "int"),
    ("aggregation_delay", "int"),
    ("critical_operator", "str"),
    ("critical_threshold", "float"),
    ("critical_threshold_duration", "int"),
    ("critical_threshold_occurrences", "str"),
    ("expiration_duration", "int"),
    ("close_violations_on_expiration", "bool"),
]

FIELD_KINDS: dict[str, str] = dict(ALERT_FIELDS)


@dataclass(slots=True, frozen=True)
class BlockOrigin:
    """Where a record came from: its verbatim block text and parsed values.

    The codec re-emits ``text`` unchanged as long as the record still holds
    the values captured in ``snapshot``.
    """

    text: str
    snapshot: tuple[Any, ...]
    line: int


@dataclass(slots=True)
class AlertRecord:
    """A single alert definition.  ``None`` means the key is absent."""

    name: str | None = None
    description: str | None = None
    nrql_query: str | None = None
    runbook_url: str | None = None
    severity: str | None = None  # CRITICAL | WARNING
    enabled: bool | None = None
    aggregation_method: str | None = None  # event_flow | event_timer | cadence
    aggregation_window: int | None = None  # seconds
    aggregation_delay: int | None = None  # seconds
    critical_operator: str | None = None  # above | below | equals ...
    critical_threshold: float | None = None
    critical_threshold_duration: int | None = None  # seconds
    critical_threshold_occurrences: str | None = None  # all | at_least_once
    expiration_duration: int | None = None  # seconds
    close_violations_on_expiration: bool | None = None

    # key -> raw value text as written in the source document
    additional_fields: dict[str, str] = field(default_factory=dict)

    origin: BlockOrigin | None = field(default=None, repr=False, compare=False)

    def snapshot(self) -> tuple[Any, ...]:
        """Hashable view of every value the codec would render."""
        values = tuple(getattr(self, attr) for attr, _ in ALERT_FIELDS)
        return values + (tuple(self.additional_fields.items()),)

    def is_modified(self) -> bool:
        """True when the record differs from what was parsed (or was never parsed)."""
        return self.origin is None or self.origin.snapshot != self.snapshot()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {attr: getattr(self, attr) for attr, _ in ALERT_FIELDS}
        data["additional_fields"] = dict(self.additional_fields)
        return data
