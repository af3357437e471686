from __future__ import annotations

import pytest

from squadsync_core import NameCollisionError, TeamData
from squadsync_core import roster
from squadsync_core.models import TESTS


@pytest.fixture
def data() -> TeamData:
    base = TeamData.initial(3)
    return base.replace(session_labels=["2024-01-01", "2024-02-01"], performance={
        name: {test: ["1.0", "2.0"] for test in TESTS} for name in base.player_names
    })


def test_initial_roster_uses_placeholder_names() -> None:
    data = TeamData.initial(3)

    assert data.player_names == ["Jugador 1", "Jugador 2", "Jugador 3"]
    assert data.performance["Jugador 2"] == {test: [] for test in TESTS}


def test_add_player_gets_aligned_default_series(data: TeamData) -> None:
    updated = roster.add_player(data, "  Ana ")

    assert updated.player_names[-1] == "Ana"
    assert updated.performance["Ana"] == {test: ["0.0", "0.0"] for test in TESTS}
    assert "Ana" not in data.player_names


def test_add_player_rejects_duplicates_and_blanks(data: TeamData) -> None:
    with pytest.raises(NameCollisionError):
        roster.add_player(data, "Jugador 1")
    with pytest.raises(ValueError):
        roster.add_player(data, " ")


def test_remove_player_keeps_match_history(data: TeamData) -> None:
    data = roster.add_match(
        data, date="2024-03-01", opponent="Rivals", result="1-0", goals=["Jugador 1"]
    )

    updated = roster.remove_player(data, "Jugador 1")

    assert "Jugador 1" not in updated.player_names
    assert "Jugador 1" not in updated.performance
    assert updated.matches[0].goals[0].player_id == "Jugador 1"
    with pytest.raises(ValueError):
        roster.remove_player(updated, "Jugador 1")


def test_add_match_defaults_squad_and_sorts_newest_first(data: TeamData) -> None:
    data = roster.add_match(data, date="2024-03-01", opponent="A", result="1-0", match_type="Amistoso")
    data = roster.add_match(
        data,
        date="2024-05-01",
        opponent="B",
        result="2-2",
        match_type="Copa",
        squad={"Jugador 2": "Titular"},
        goals=["Jugador 2", "Jugador 2"],
        assists=["Jugador 3"],
        minutes={1: 88},
    )
    data = roster.add_match(data, date="2024-04-01", opponent="C", result="0-1")

    assert [match.opponent for match in data.matches] == ["B", "C", "A"]
    latest = data.matches[0]
    assert latest.squad == {"Jugador 1": "No convocado", "Jugador 2": "Titular", "Jugador 3": "No convocado"}
    assert [(goal.player_id, goal.minute) for goal in latest.goals] == [("Jugador 2", None), ("Jugador 2", 88)]
    assert [assist.player_id for assist in latest.assists] == ["Jugador 3"]
    assert len({match.id for match in data.matches}) == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"opponent": "", "result": "1-0"},
        {"opponent": "A", "result": ""},
        {"opponent": "A", "result": "1-0", "match_type": "Liga"},
        {"opponent": "A", "result": "1-0", "squad": {"Jugador 1": "Banquillo"}},
        {"opponent": "A", "result": "1-0", "squad": {"Nadie": "Titular"}},
        {"opponent": "A", "result": "1-0", "goals": ["Nadie"]},
    ],
)
def test_add_match_validation(data: TeamData, kwargs) -> None:
    with pytest.raises(ValueError):
        roster.add_match(data, date="2024-03-01", **kwargs)


def test_delete_match(data: TeamData) -> None:
    data = roster.add_match(data, date="2024-03-01", opponent="A", result="1-0")
    match_id = data.matches[0].id

    assert roster.delete_match(data, match_id).matches == []
    with pytest.raises(ValueError):
        roster.delete_match(data, "missing")


def test_training_dates_and_status_cycle(data: TeamData) -> None:
    data = roster.add_training_date(data, "2024-01-10")

    assert data.trainings["2024-01-10"] == {
        "Jugador 1": "Presente",
        "Jugador 2": "Presente",
        "Jugador 3": "Presente",
    }
    with pytest.raises(ValueError):
        roster.add_training_date(data, "2024-01-10")

    statuses = []
    for _ in range(4):
        data = roster.cycle_training_status(data, "2024-01-10", "Jugador 1")
        statuses.append(data.trainings["2024-01-10"]["Jugador 1"])
    assert statuses == ["Ausente", "Lesión", "Vacío", "Presente"]

    data = roster.cycle_training_status(data, "2024-01-10", "Invitado")
    assert data.trainings["2024-01-10"]["Invitado"] == "Presente"

    data = roster.set_training_status(data, "2024-01-10", "Jugador 2", "Lesión")
    assert data.trainings["2024-01-10"]["Jugador 2"] == "Lesión"
    with pytest.raises(ValueError):
        roster.set_training_status(data, "2024-01-10", "Jugador 2", "Tarde")

    data = roster.delete_training_date(data, "2024-01-10")
    assert data.trainings == {}
    with pytest.raises(ValueError):
        roster.delete_training_date(data, "2024-01-10")
