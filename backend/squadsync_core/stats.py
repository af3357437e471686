from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from .models import DEFAULT_VALUE, TESTS, TRAINING_EMPTY, TeamData


@dataclass
class PlayerMatchStats:
    name: str
    call_ups: int = 0
    starts: int = 0
    substitute: int = 0
    not_called: int = 0
    injury: int = 0
    personal_absence: int = 0
    goals: int = 0
    assists: int = 0


@dataclass
class PlayerTrainingStats:
    name: str
    present: int
    absent: int
    injured: int
    attendance_pct: float


@dataclass
class RankingRow:
    player: str
    score: float


def player_match_stats(data: TeamData) -> List[PlayerMatchStats]:
    """Aggregate squad, goal and assist counts for every rostered player.

    References to names that are no longer on the roster are ignored.
    """

    stats: Dict[str, PlayerMatchStats] = {name: PlayerMatchStats(name=name) for name in data.player_names}

    for match in data.matches:
        for player, status in match.squad.items():
            row = stats.get(player)
            if row is None:
                continue
            if status == "Titular":
                row.starts += 1
                row.call_ups += 1
            elif status == "Suplente":
                row.substitute += 1
                row.call_ups += 1
            elif status == "No convocado":
                row.not_called += 1
            elif status == "Lesión":
                row.injury += 1
            elif status == "Ausencia personal":
                row.personal_absence += 1
        for goal in match.goals:
            if goal.player_id in stats:
                stats[goal.player_id].goals += 1
        for assist in match.assists:
            if assist.player_id in stats:
                stats[assist.player_id].assists += 1

    return list(stats.values())


def goal_rankings(data: TeamData) -> List[PlayerMatchStats]:
    rows = [row for row in player_match_stats(data) if row.goals > 0]
    return sorted(rows, key=lambda row: row.goals, reverse=True)


def assist_rankings(data: TeamData) -> List[PlayerMatchStats]:
    rows = [row for row in player_match_stats(data) if row.assists > 0]
    return sorted(rows, key=lambda row: row.assists, reverse=True)


def training_stats(data: TeamData) -> List[PlayerTrainingStats]:
    dates = sorted(data.trainings)
    result: List[PlayerTrainingStats] = []
    for name in data.player_names:
        statuses = [data.trainings[date].get(name) for date in dates]
        present = statuses.count("Presente")
        absent = statuses.count("Ausente")
        injured = statuses.count("Lesión")
        # Dates without a mark for the player, or marked Vacío, do not count.
        relevant = sum(1 for status in statuses if status and status != TRAINING_EMPTY)
        pct = present / relevant * 100 if relevant else 0.0
        result.append(
            PlayerTrainingStats(name=name, present=present, absent=absent, injured=injured, attendance_pct=pct)
        )
    return result


def session_rankings(data: TeamData, session: str) -> Dict[str, List[RankingRow]]:
    """Rank players per test for one session.

    Timed tests (name contains ``(s)``) rank lowest first, the rest highest
    first. Players without a positive score are left out.
    """

    if session not in data.session_labels:
        raise ValueError(f"Unknown session '{session}'")
    index = data.session_labels.index(session)

    rankings: Dict[str, List[RankingRow]] = {}
    for test in TESTS:
        rows = []
        for player in data.player_names:
            score = _observation(data, player, test, index)
            if score > 0:
                rows.append(RankingRow(player=player, score=score))
        rows.sort(key=lambda row: row.score, reverse="(s)" not in test)
        rankings[test] = rows
    return rankings


def team_averages(data: TeamData) -> Dict[str, List[float]]:
    """Per test, the squad mean of each session (0 when the roster is empty)."""

    count = len(data.player_names)
    averages: Dict[str, List[float]] = {}
    for test in TESTS:
        averages[test] = [
            sum(_observation(data, player, test, index) for player in data.player_names) / count if count else 0.0
            for index in range(len(data.session_labels))
        ]
    return averages


def _observation(data: TeamData, player: str, test: str, index: int) -> float:
    series = data.performance.get(player, {}).get(test, [])
    raw = series[index] if index < len(series) else DEFAULT_VALUE
    try:
        return float(raw or DEFAULT_VALUE)
    except ValueError:
        return 0.0
