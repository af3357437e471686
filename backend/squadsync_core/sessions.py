from __future__ import annotations

import bisect
import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List

from .models import DEFAULT_VALUE, TESTS, PerformanceData, TeamData


def validate_date(value: str, label: str = "Session date") -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    try:
        dt.date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an ISO date (YYYY-MM-DD), got '{value}'") from exc
    return value


def add_session(data: TeamData, date: str) -> TeamData:
    """Insert a session column at its sorted position.

    Every player's series gets a ``DEFAULT_VALUE`` placeholder at the same
    index, so afterwards each series is as long as the label list.
    """

    date = validate_date(date)
    if date in data.session_labels:
        raise ValueError(f"Session {date} already exists")

    index = bisect.bisect_left(data.session_labels, date)
    labels = list(data.session_labels)
    labels.insert(index, date)

    previous_count = len(data.session_labels)
    performance: PerformanceData = {}
    for player, tests in data.performance.items():
        updated = dict(tests)
        for test in TESTS:
            series = _padded(tests.get(test, []), previous_count)
            series.insert(index, DEFAULT_VALUE)
            updated[test] = series
        performance[player] = updated

    return data.replace(session_labels=labels, performance=performance)


def delete_session(data: TeamData, date: str) -> TeamData:
    """Drop a session column; an unknown date returns ``data`` untouched."""

    if date not in data.session_labels:
        return data

    index = data.session_labels.index(date)
    labels = [label for label in data.session_labels if label != date]

    performance: PerformanceData = {}
    for player, tests in data.performance.items():
        updated = {}
        for test, series in tests.items():
            if len(series) > index:
                series = series[:index] + series[index + 1:]
            updated[test] = series
        performance[player] = updated

    return data.replace(session_labels=labels, performance=performance)


def set_observation(data: TeamData, player: str, test: str, index: int, value: str) -> TeamData:
    """Store one observation, formatted with a single fractional digit."""

    if player not in data.performance:
        raise ValueError(f"Unknown player '{player}'")
    if test not in TESTS:
        raise ValueError(f"Unknown test '{test}'")
    if index < 0 or index >= len(data.session_labels):
        raise ValueError(f"Session index {index} is out of range")

    formatted = format_value(value)

    tests = dict(data.performance[player])
    series = _padded(tests.get(test, []), len(data.session_labels))
    series[index] = formatted
    tests[test] = series

    performance = dict(data.performance)
    performance[player] = tests
    return data.replace(performance=performance)


def format_value(value: str) -> str:
    text = str(value).strip()
    try:
        number = Decimal(text)
        if not number.is_finite():
            raise InvalidOperation(text)
        return str(number.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise ValueError(f"'{value}' is not a number") from exc


def _padded(series: List[str], length: int) -> List[str]:
    padded = list(series)
    if len(padded) < length:
        padded.extend([DEFAULT_VALUE] * (length - len(padded)))
    return padded
