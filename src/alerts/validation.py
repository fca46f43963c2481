"""Field validation for alert records.

All violations are collected and returned together, in field-declaration
order, followed by duplicate findings.  An empty list means the alert is
valid.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.contracts.alert import ALERT_FIELDS, AlertRecord
from src.contracts.errors import ValidationError

log = logging.getLogger(__name__)

INVALID_CHARS = frozenset("[]{}")

REQUIRED_TEXT_FIELDS = frozenset(
    {
        "name",
        "nrql_query",
        "severity",
        "aggregation_method",
        "critical_operator",
        "critical_threshold_occurrences",
    }
)

MIN_LENGTH = {"name": 10, "nrql_query": 10}

NON_NEGATIVE = frozenset({"aggregation_delay", "critical_threshold", "critical_threshold_duration"})

_LABELS = {
    "name": "Name",
    "nrql_query": "NRQL Query",
    "severity": "Severity",
    "aggregation_method": "Aggregation Method",
    "aggregation_delay": "Aggregation Delay",
    "critical_operator": "Critical Operator",
    "critical_threshold": "Critical Threshold",
    "critical_threshold_duration": "Critical Threshold Duration",
    "critical_threshold_occurrences": "Critical Threshold Occurrences",
}


def contains_invalid_characters(value: str | None) -> bool:
    return any(ch in INVALID_CHARS for ch in value or "")


def _field_errors(attr: str, value: object) -> list[ValidationError]:
    label = _LABELS.get(attr, attr)
    errors: list[ValidationError] = []

    if attr in REQUIRED_TEXT_FIELDS:
        text = value if isinstance(value, str) else ""
        if not text.strip():
            errors.append(ValidationError(attr, f"{label} cannot be empty."))
            return errors
        if contains_invalid_characters(text):
            errors.append(ValidationError(attr, f"{label} contains invalid characters."))
        minimum = MIN_LENGTH.get(attr)
        if minimum and len(text) < minimum:
            errors.append(ValidationError(attr, f"{label} must be at least {minimum} characters long."))

    if attr in NON_NEGATIVE and isinstance(value, (int, float)) and value < 0:
        errors.append(ValidationError(attr, f"{label} must be a non-negative number."))

    return errors


def validate_alert(
    alert: AlertRecord | None,
    existing: Iterable[AlertRecord] = (),
    check_duplicates: bool = False,
) -> list[ValidationError]:
    """Return every validation problem of *alert*.

    Args:
        alert: The alert being created or edited.
        existing: The other alerts of the same stack.
        check_duplicates: Also reject a name or query already used in
            *existing* (case-insensitive).
    """
    if alert is None:
        return [ValidationError("alert", "Alert cannot be null.")]

    errors: list[ValidationError] = []
    for attr, _kind in ALERT_FIELDS:
        errors.extend(_field_errors(attr, getattr(alert, attr)))

    if check_duplicates:
        others = list(existing)
        name = (alert.name or "").casefold()
        query = (alert.nrql_query or "").casefold()
        if name and any((a.name or "").casefold() == name for a in others):
            errors.append(ValidationError("name", "An alert with this name already exists."))
        if query and any((a.nrql_query or "").casefold() == query for a in others):
            errors.append(ValidationError("nrql_query", "An alert with this NRQL query already exists."))

    if errors:
        log.debug("Alert %r failed validation: %s", alert.name, "; ".join(e.message for e in errors))
    return errors
