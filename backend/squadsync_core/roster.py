from __future__ import annotations

import uuid
from typing import Dict, Iterable, List, Optional

from .models import (
    DEFAULT_VALUE,
    MATCH_TYPES,
    SQUAD_DEFAULT,
    SQUAD_STATUSES,
    TESTS,
    TRAINING_EMPTY,
    TRAINING_STATUSES,
    Assist,
    Goal,
    Match,
    TeamData,
)
from .rename import NameCollisionError
from .sessions import validate_date


# ---------------------------------------------------------------------------
# Players


def add_player(data: TeamData, name: str) -> TeamData:
    name = (name or "").strip()
    if not name:
        raise ValueError("Player name is required")
    if name in data.player_names:
        raise NameCollisionError(f"Player '{name}' already exists")

    performance = dict(data.performance)
    performance[name] = {test: [DEFAULT_VALUE] * len(data.session_labels) for test in TESTS}
    return data.replace(player_names=data.player_names + [name], performance=performance)


def remove_player(data: TeamData, name: str) -> TeamData:
    """Remove a player from the roster and the performance grid.

    Match and training history keep the name; statistics only count players
    on the current roster.
    """

    if name not in data.player_names:
        raise ValueError(f"Unknown player '{name}'")

    performance = {player: tests for player, tests in data.performance.items() if player != name}
    return data.replace(
        player_names=[player for player in data.player_names if player != name],
        performance=performance,
    )


# ---------------------------------------------------------------------------
# Matches


def add_match(
    data: TeamData,
    *,
    date: str,
    opponent: str,
    result: str,
    match_type: str = MATCH_TYPES[0],
    squad: Optional[Dict[str, str]] = None,
    goals: Iterable[str] = (),
    assists: Iterable[str] = (),
    minutes: Optional[Dict[int, int]] = None,
) -> TeamData:
    """Record a new match and keep the list sorted newest first.

    ``goals`` and ``assists`` are player names, one entry per event.
    ``minutes`` optionally maps a goal's position to the minute it was scored.
    """

    date = validate_date(date, "Match date")
    opponent = (opponent or "").strip()
    result = (result or "").strip()
    if not opponent or not result:
        raise ValueError("Opponent and result are required")
    if match_type not in MATCH_TYPES:
        raise ValueError(f"Unknown match type '{match_type}'")

    full_squad = {player: SQUAD_DEFAULT for player in data.player_names}
    for player, status in (squad or {}).items():
        if player not in full_squad:
            raise ValueError(f"Unknown player '{player}'")
        if status not in SQUAD_STATUSES:
            raise ValueError(f"Unknown squad status '{status}' for {player}")
        full_squad[player] = status

    minutes = minutes or {}
    goal_list: List[Goal] = [
        Goal(player_id=player, minute=minutes.get(position)) for position, player in enumerate(goals)
    ]
    assist_list = [Assist(player_id=player) for player in assists]
    for reference in [goal.player_id for goal in goal_list] + [assist.player_id for assist in assist_list]:
        if reference not in data.player_names:
            raise ValueError(f"Unknown player '{reference}'")

    match = Match(
        id=str(uuid.uuid4()),
        date=date,
        type=match_type,
        opponent=opponent,
        result=result,
        squad=full_squad,
        goals=goal_list,
        assists=assist_list,
    )
    matches = sorted(data.matches + [match], key=lambda item: item.date, reverse=True)
    return data.replace(matches=matches)


def delete_match(data: TeamData, match_id: str) -> TeamData:
    matches = [match for match in data.matches if match.id != match_id]
    if len(matches) == len(data.matches):
        raise ValueError(f"Match {match_id} not found")
    return data.replace(matches=matches)


# ---------------------------------------------------------------------------
# Trainings


def add_training_date(data: TeamData, date: str) -> TeamData:
    date = validate_date(date, "Training date")
    if date in data.trainings:
        raise ValueError(f"Training on {date} already exists")

    trainings = dict(data.trainings)
    trainings[date] = {player: TRAINING_STATUSES[0] for player in data.player_names}
    return data.replace(trainings=trainings)


def delete_training_date(data: TeamData, date: str) -> TeamData:
    if date not in data.trainings:
        raise ValueError(f"No training on {date}")
    return data.replace(trainings={key: value for key, value in data.trainings.items() if key != date})


def set_training_status(data: TeamData, date: str, player: str, status: str) -> TeamData:
    if date not in data.trainings:
        raise ValueError(f"No training on {date}")
    if status not in TRAINING_STATUSES:
        raise ValueError(f"Unknown attendance status '{status}'")

    trainings = dict(data.trainings)
    records = dict(trainings[date])
    records[player] = status
    trainings[date] = records
    return data.replace(trainings=trainings)


def cycle_training_status(data: TeamData, date: str, player: str) -> TeamData:
    """Advance Presente -> Ausente -> Lesión -> Vacío -> Presente."""

    current = data.trainings.get(date, {}).get(player) or TRAINING_EMPTY
    position = TRAINING_STATUSES.index(current) if current in TRAINING_STATUSES else -1
    status = TRAINING_STATUSES[(position + 1) % len(TRAINING_STATUSES)]
    return set_training_status(data, date, player, status)
