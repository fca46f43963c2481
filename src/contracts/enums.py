"""Canonical enumerations for alert matching and threshold selection."""

from __future__ import annotations

from enum import Enum


class AlertKind(str, Enum):
    DURATION = "duration"
    ERROR_RATE = "error_rate"


class MatchBy(str, Enum):
    NAME = "name"
    ID = "id"


class ThresholdMethod(str, Enum):
    STDDEV = "StdDev"
    FORMULA = "Formula"
