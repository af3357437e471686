from __future__ import annotations

import copy

import pytest

from squadsync_core import TeamData
from squadsync_core.models import TESTS
from squadsync_core.sessions import add_session, delete_session, format_value, set_observation

SPEED, AGILITY, STRENGTH, ENDURANCE = TESTS


def _data() -> TeamData:
    return TeamData(
        player_names=["Ana", "Bea"],
        session_labels=["2024-01-01", "2024-03-01"],
        performance={
            "Ana": {test: ["1.0", "3.0"] for test in TESTS},
            "Bea": {SPEED: ["2.0", "4.0"], AGILITY: ["5.0"]},
        },
    )


def test_add_session_inserts_at_sorted_position() -> None:
    updated = add_session(_data(), "2024-02-01")

    assert updated.session_labels == ["2024-01-01", "2024-02-01", "2024-03-01"]
    assert updated.performance["Ana"][SPEED] == ["1.0", "0.0", "3.0"]
    assert updated.performance["Bea"][SPEED] == ["2.0", "0.0", "4.0"]


def test_add_session_keeps_every_series_aligned() -> None:
    updated = add_session(_data(), "2023-12-01")

    for player, tests in updated.performance.items():
        assert set(tests) == set(TESTS)
        for test, series in tests.items():
            assert len(series) == len(updated.session_labels), (player, test)
            assert series[0] == "0.0"
    # short series are padded before the placeholder lands
    assert updated.performance["Bea"][AGILITY] == ["0.0", "5.0", "0.0"]
    assert updated.performance["Bea"][STRENGTH] == ["0.0", "0.0", "0.0"]


def test_add_session_appends_latest_date() -> None:
    updated = add_session(_data(), "2024-04-01")

    assert updated.session_labels[-1] == "2024-04-01"
    assert updated.performance["Ana"][ENDURANCE] == ["1.0", "3.0", "0.0"]


@pytest.mark.parametrize("date", ["", "2024-01-01", "01/02/2024"])
def test_add_session_rejects_invalid_or_duplicate_dates(date: str) -> None:
    data = _data()
    before = copy.deepcopy(data)

    with pytest.raises(ValueError):
        add_session(data, date)

    assert data == before


def test_delete_session_removes_column() -> None:
    updated = delete_session(_data(), "2024-01-01")

    assert updated.session_labels == ["2024-03-01"]
    assert updated.performance["Ana"][SPEED] == ["3.0"]
    assert updated.performance["Bea"][SPEED] == ["4.0"]
    assert updated.performance["Bea"][AGILITY] == []


def test_delete_session_tolerates_short_series() -> None:
    updated = delete_session(_data(), "2024-03-01")

    assert updated.performance["Bea"][AGILITY] == ["5.0"]
    assert updated.performance["Ana"][AGILITY] == ["1.0"]


def test_delete_unknown_session_is_a_no_op() -> None:
    data = _data()
    before = copy.deepcopy(data)

    updated = delete_session(data, "2030-01-01")

    assert updated is data
    assert data == before


def test_set_observation_formats_one_decimal() -> None:
    updated = set_observation(_data(), "Bea", STRENGTH, 1, "12")

    assert updated.performance["Bea"][STRENGTH] == ["0.0", "12.0"]


@pytest.mark.parametrize(
    "raw, expected",
    [("3", "3.0"), ("3.14", "3.1"), ("2.25", "2.3"), (" 7.0 ", "7.0"), ("-1.04", "-1.0")],
)
def test_format_value(raw: str, expected: str) -> None:
    assert format_value(raw) == expected


@pytest.mark.parametrize(
    "player, test, index, value",
    [
        ("Nadie", SPEED, 0, "1"),
        ("Ana", "Salto", 0, "1"),
        ("Ana", SPEED, 5, "1"),
        ("Ana", SPEED, 0, "rapido"),
        ("Ana", SPEED, 0, "nan"),
    ],
)
def test_set_observation_rejects_bad_input(player: str, test: str, index: int, value: str) -> None:
    with pytest.raises(ValueError):
        set_observation(_data(), player, test, index, value)
