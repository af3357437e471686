from __future__ import annotations

import copy

import pytest

from squadsync_core import NameCollisionError, TeamData, propagate_rename
from squadsync_core.models import TESTS, Assist, Goal, Match


def _data() -> TeamData:
    return TeamData(
        player_names=["Ana", "Bea", "Ana Garcia"],
        session_labels=["2024-01-01"],
        performance={
            "Ana": {test: ["1.0"] for test in TESTS},
            "Bea": {test: ["2.0"] for test in TESTS},
            "Ana Garcia": {test: ["3.0"] for test in TESTS},
        },
        matches=[
            Match(
                id="1",
                date="2024-02-01",
                type="Copa",
                opponent="Rivals",
                result="3-0",
                squad={"Bea": "Suplente", "Ana": "Titular"},
                goals=[Goal("Ana", minute=3), Goal("Bea"), Goal("Ana")],
                assists=[Assist("Ana")],
            ),
        ],
        trainings={"2024-01-05": {"Ana": "Lesión", "Bea": "Presente"}, "2024-01-06": {"Bea": "Ausente"}},
    )


def _references(data: TeamData, name: str) -> int:
    count = data.player_names.count(name) + (1 if name in data.performance else 0)
    for match in data.matches:
        count += 1 if name in match.squad else 0
        count += sum(1 for goal in match.goals if goal.player_id == name)
        count += sum(1 for assist in match.assists if assist.player_id == name)
    count += sum(1 for records in data.trainings.values() if name in records)
    return count


def test_rename_rewrites_every_reference() -> None:
    data = _data()
    data.player_names.remove("Ana Garcia")
    del data.performance["Ana Garcia"]

    renamed = propagate_rename(data, "Ana", "Ana Lopez")

    assert _references(renamed, "Ana") == 0
    assert renamed.player_names == ["Ana Lopez", "Bea"]
    assert renamed.performance["Ana Lopez"] == {test: ["1.0"] for test in TESTS}

    match = renamed.matches[0]
    assert list(match.squad.items()) == [("Bea", "Suplente"), ("Ana Lopez", "Titular")]
    assert [(goal.player_id, goal.minute) for goal in match.goals] == [
        ("Ana Lopez", 3),
        ("Bea", None),
        ("Ana Lopez", None),
    ]
    assert [assist.player_id for assist in match.assists] == ["Ana Lopez"]
    assert renamed.trainings == {
        "2024-01-05": {"Ana Lopez": "Lesión", "Bea": "Presente"},
        "2024-01-06": {"Bea": "Ausente"},
    }


def test_rename_leaves_original_untouched() -> None:
    data = _data()
    data.player_names.remove("Ana Garcia")
    before = copy.deepcopy(data)

    propagate_rename(data, "Ana", "Ana Lopez")

    assert data == before


def test_rename_collision_fails_without_mutation() -> None:
    data = _data()
    before = copy.deepcopy(data)

    with pytest.raises(NameCollisionError):
        propagate_rename(data, "Ana", "Ana Garcia")

    assert data == before


@pytest.mark.parametrize("new_name", ["", "   ", "Ana"])
def test_rename_rejects_empty_or_unchanged_name(new_name: str) -> None:
    with pytest.raises(ValueError):
        propagate_rename(_data(), "Ana", new_name)


def test_rename_moves_historical_training_references() -> None:
    data = _data()
    data.trainings["2023-12-01"] = {"Former": "Presente"}

    renamed = propagate_rename(data, "Former", "Former Player")

    assert renamed.trainings["2023-12-01"] == {"Former Player": "Presente"}
    assert renamed.player_names == data.player_names
