from __future__ import annotations

from typing import Dict, List, TypeVar

from .models import Assist, Goal, Match, TeamData, TrainingData

V = TypeVar("V")


class NameCollisionError(ValueError):
    """Raised when a rename targets a name that is already on the roster."""


def propagate_rename(data: TeamData, old_name: str, new_name: str) -> TeamData:
    """Return a copy of ``data`` with every reference to ``old_name`` renamed.

    The roster entry, the performance key, squad keys, goal and assist
    references and training keys are rewritten together. ``data`` itself is
    never modified, so a failed precondition leaves nothing half-renamed.
    """

    new_name = (new_name or "").strip()
    if not new_name:
        raise ValueError("Player name is required")
    if new_name == old_name:
        raise ValueError("New player name must differ from the current name")
    if new_name in data.player_names:
        raise NameCollisionError(f"Player '{new_name}' already exists")

    player_names = [new_name if name == old_name else name for name in data.player_names]
    performance = _rekey(data.performance, old_name, new_name)
    matches = [_rename_in_match(match, old_name, new_name) for match in data.matches]
    trainings: TrainingData = {
        date: _rekey(records, old_name, new_name) for date, records in data.trainings.items()
    }

    return data.replace(
        player_names=player_names,
        performance=performance,
        matches=matches,
        trainings=trainings,
    )


def _rekey(mapping: Dict[str, V], old_key: str, new_key: str) -> Dict[str, V]:
    if old_key not in mapping:
        return dict(mapping)
    renamed: Dict[str, V] = {}
    for key, value in mapping.items():
        if key == new_key:
            continue
        renamed[new_key if key == old_key else key] = value
    return renamed


def _rename_in_match(match: Match, old_name: str, new_name: str) -> Match:
    goals: List[Goal] = [
        Goal(player_id=new_name, minute=goal.minute) if goal.player_id == old_name else goal
        for goal in match.goals
    ]
    assists: List[Assist] = [
        Assist(player_id=new_name) if assist.player_id == old_name else assist
        for assist in match.assists
    ]
    return Match(
        id=match.id,
        date=match.date,
        type=match.type,
        opponent=match.opponent,
        result=match.result,
        squad=_rekey(match.squad, old_name, new_name),
        goals=goals,
        assists=assists,
    )
