"""Carrier correlation — which alerts watch which carrier.

Alerts reference carriers in two ways:

  MPM alerts  — by carrier name in the query: ``WHERE CarrierName = 'DPD'``
  DM alerts   — by numeric carrier id, in the title ``DM Allocation <DPD> (764)``
                and/or in the query ``WHERE carrierId = 764``

Every match is exact-boundary: the pattern must be followed by the end of the
text or a delimiter, so ``DPD`` never matches ``DPD France`` and ``74`` never
matches ``741``.  The name rule accepts a closing quote as delimiter, the id
rule does not; string and numeric query terms are written differently.

Substring tests are case-insensitive throughout.  Nothing here raises on
unrecognised input: a miss is ``False`` or ``""``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.contracts.alert import AlertRecord
from src.contracts.enums import AlertKind, MatchBy

log = logging.getLogger(__name__)

NAME_BOUNDARY = frozenset(" ,')")
ID_BOUNDARY = frozenset(" ,)")

DM_MARKER = "DM Allocation"
VARIANT_MARKER = "ASOS"
LEGACY_MARKER = "***Critical***"

# kind → (title keyword for DM alerts, query keywords)
_KIND_KEYWORDS: dict[AlertKind, tuple[str, tuple[str, ...]]] = {
    AlertKind.DURATION: ("Average Duration", ("average(duration)",)),
    AlertKind.ERROR_RATE: ("Error Percentage", ("percentage", "error")),
}


def _contains(text: str | None, needle: str) -> bool:
    return needle.lower() in (text or "").lower()


def _bounded_find(text: str, pattern: str, boundary: frozenset[str]) -> bool:
    """True if *pattern* occurs in *text* followed by end-of-text or a boundary char."""
    haystack = text.lower()
    needle = pattern.lower()
    start = haystack.find(needle)
    while start >= 0:
        after = start + len(needle)
        if after >= len(haystack) or haystack[after] in boundary:
            return True
        start = haystack.find(needle, start + 1)
    return False


# ── Matching predicates ──────────────────────────────────────────────────────


def name_match(record: AlertRecord, carrier_name: str) -> bool:
    """Query filters on exactly ``CarrierName = '<carrier_name>'``."""
    if not carrier_name or not record.nrql_query:
        return False
    escaped = carrier_name.replace("'", "\\'")
    return _bounded_find(record.nrql_query, f"CarrierName = '{escaped}'", NAME_BOUNDARY)


def id_match(record: AlertRecord, carrier_id: str) -> bool:
    """Title holds ``(<carrier_id>)`` or query filters on ``carrierId = <carrier_id>``."""
    if not carrier_id:
        return False
    if _contains(record.name, f"({carrier_id})"):
        return True
    if not record.nrql_query:
        return False
    return _bounded_find(record.nrql_query, f"carrierId = {carrier_id}", ID_BOUNDARY)


def _variant_ok(record: AlertRecord, variant: bool | None) -> bool:
    if variant is None:
        return True
    return _contains(record.name, VARIANT_MARKER) == variant


def _is_alert_of_kind(
    record: AlertRecord,
    carrier_key: str,
    kind: AlertKind,
    variant: bool | None,
    by: MatchBy,
) -> bool:
    title_keyword, query_keywords = _KIND_KEYWORDS[kind]
    if not all(_contains(record.nrql_query, kw) for kw in query_keywords):
        return False
    if by is MatchBy.NAME:
        return name_match(record, carrier_key) and _variant_ok(record, variant)
    return (
        _contains(record.name, DM_MARKER)
        and _contains(record.name, title_keyword)
        and id_match(record, carrier_key)
        and _variant_ok(record, variant)
    )


def has_alert_of_kind(
    records: Iterable[AlertRecord],
    carrier_key: str,
    kind: AlertKind,
    variant: bool | None = None,
    by: MatchBy = MatchBy.NAME,
) -> bool:
    """Whether any record is a *kind* alert for the carrier.

    Args:
        records: Alerts to search.
        carrier_key: Carrier name (``by=NAME``) or numeric id (``by=ID``).
        kind: Duration or error-rate alert.
        variant: True → title must contain the ASOS marker, False → must not,
            None → either.
        by: Which matching predicate identifies the carrier.
    """
    kind = AlertKind(kind)
    by = MatchBy(by)
    found = any(_is_alert_of_kind(r, carrier_key, kind, variant, by) for r in records)
    log.debug("%s alert for %s '%s' (variant=%s): %s", kind.value, by.value, carrier_key, variant, found)
    return found


def has_carrier_alert(records: Iterable[AlertRecord], carrier_name: str, kind: AlertKind) -> bool:
    return has_alert_of_kind(records, carrier_name, kind, by=MatchBy.NAME)


def has_carrier_id_alert(
    records: Iterable[AlertRecord],
    carrier_id: str,
    kind: AlertKind,
    variant: bool | None = None,
) -> bool:
    return has_alert_of_kind(records, carrier_id, kind, variant, by=MatchBy.ID)


# ── Title extraction helpers ─────────────────────────────────────────────────


def extract_carrier_from_title(title: str | None) -> str:
    """``"DPD - PrintParcel Average Duration"`` → ``"DPD"``."""
    if not title:
        return ""
    dash = title.find(" - ")
    if dash > 0:
        return title[:dash].strip()
    return ""


def extract_carrier_name(alert_name: str | None, carrier_id: str) -> str:
    """Carrier label of a DM alert title for the given id.

    ``"DM Allocation <DPD Poland API> (764) Error Percentage"`` → ``"DPD Poland API"``;
    legacy ``"DM Allocation ***Critical*** FedEx API (701) ..."`` → ``"FedEx API"``.
    """
    if not alert_name or not carrier_id:
        return ""
    id_token = f"({carrier_id})"

    open_idx = alert_name.find("<")
    if open_idx >= 0:
        close_idx = alert_name.find(">", open_idx)
        if close_idx > open_idx and alert_name.find(id_token, close_idx) > close_idx:
            return alert_name[open_idx + 1 : close_idx].strip()

    marker_idx = alert_name.lower().find(LEGACY_MARKER.lower())
    if marker_idx >= 0:
        start = marker_idx + len(LEGACY_MARKER)
        paren = alert_name.find(id_token, start)
        if paren > start:
            return alert_name[start:paren].strip()

    return ""


def extract_carrier_id(alert_name: str | None) -> str:
    """First parenthesised all-digit token of a title, e.g. ``"(764)"`` → ``"764"``."""
    if not alert_name:
        return ""
    start = alert_name.find("(")
    while start >= 0:
        end = alert_name.find(")", start)
        if end < 0:
            break
        candidate = alert_name[start + 1 : end].strip()
        if candidate.isdigit() and candidate.isascii():
            return candidate
        start = alert_name.find("(", start + 1)
    return ""


def is_print_duration_alert(record: AlertRecord) -> bool:
    """Average-duration alert tied to a carrier (MPM by title, DM by id)."""
    if not _contains(record.nrql_query, "average(duration)"):
        return False
    if _contains(record.name, "printparcel") and extract_carrier_from_title(record.name):
        return True
    return _contains(record.name, DM_MARKER) and bool(extract_carrier_id(record.name))
