"""Row codecs between :class:`TeamData` and the three persisted tables.

Every table is a list of string rows with a fixed header in row 0. The header
layout and the compact JSON used for the embedded match fields are the
persisted schema; changing either breaks data that is already stored.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import (
    DEFAULT_VALUE,
    INITIAL_PLAYER_COUNT,
    MATCHES_TABLE,
    PERFORMANCE_TABLE,
    TESTS,
    TRAININGS_TABLE,
    Assist,
    Goal,
    Match,
    PerformanceData,
    TeamData,
    TrainingData,
)


logger = logging.getLogger(__name__)

PERFORMANCE_HEADER = ["Player", "Test", "SessionDate", "Value"]
MATCHES_HEADER = ["ID", "Date", "Type", "Opponent", "Result", "SquadJSON", "GoalsJSON", "AssistsJSON"]
TRAININGS_HEADER = ["Date", "PlayerName", "Status"]

Rows = List[List[str]]


# ---------------------------------------------------------------------------
# Export


def export_tables(data: TeamData) -> Dict[str, Rows]:
    """Flatten ``data`` into the three tables, keyed by table name."""

    return {
        PERFORMANCE_TABLE: export_performance(data.player_names, data.session_labels, data.performance),
        MATCHES_TABLE: export_matches(data.matches),
        TRAININGS_TABLE: export_trainings(data.trainings),
    }


def export_performance(
    player_names: Sequence[str],
    session_labels: Sequence[str],
    performance: PerformanceData,
) -> Rows:
    rows: Rows = [list(PERFORMANCE_HEADER)]
    for player in player_names:
        tests = performance.get(player, {})
        for test in TESTS:
            series = tests.get(test, [])
            for index, session in enumerate(session_labels):
                value = series[index] if index < len(series) else ""
                rows.append([player, test, session, value or DEFAULT_VALUE])
    return rows


def export_matches(matches: Sequence[Match]) -> Rows:
    rows: Rows = [list(MATCHES_HEADER)]
    for match in matches:
        rows.append(
            [
                match.id,
                match.date,
                match.type,
                match.opponent,
                match.result,
                _dump_json(match.squad),
                _dump_json([goal.to_json() for goal in match.goals]),
                _dump_json([assist.to_json() for assist in match.assists]),
            ]
        )
    return rows


def export_trainings(trainings: TrainingData) -> Rows:
    rows: Rows = [list(TRAININGS_HEADER)]
    for date, records in trainings.items():
        for player, status in records.items():
            if not status:
                continue
            rows.append([date, player, status])
    return rows


def _dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


# ---------------------------------------------------------------------------
# Import


def import_tables(
    tables: Dict[str, Optional[Rows]], initial_players: int = INITIAL_PLAYER_COUNT
) -> TeamData:
    """Rebuild :class:`TeamData` from tables read back from storage.

    A table that is missing or holds only its header counts as "no data yet":
    the performance side falls back to the first-run roster and the match and
    training stores start empty.
    """

    perf_rows = tables.get(PERFORMANCE_TABLE)
    if _has_data(perf_rows):
        player_names, session_labels, performance = import_performance(perf_rows or [])
    else:
        initial = TeamData.initial(initial_players)
        player_names, session_labels, performance = (
            initial.player_names,
            initial.session_labels,
            initial.performance,
        )

    match_rows = tables.get(MATCHES_TABLE)
    matches = import_matches(match_rows or []) if _has_data(match_rows) else []

    training_rows = tables.get(TRAININGS_TABLE)
    trainings = import_trainings(training_rows or []) if _has_data(training_rows) else {}

    return TeamData(
        player_names=player_names,
        session_labels=session_labels,
        performance=performance,
        matches=matches,
        trainings=trainings,
    )


def import_performance(rows: Sequence[Sequence[str]]) -> Tuple[List[str], List[str], PerformanceData]:
    """Return ``(player_names, session_labels, performance)`` derived from the rows.

    Players keep first-seen order; sessions are sorted ascending. Every
    (player, test, session) cell missing from the input is filled with
    ``DEFAULT_VALUE``.
    """

    cells: Dict[str, Dict[str, Dict[str, str]]] = {}
    players: Dict[str, None] = {}
    sessions: set[str] = set()

    for row in rows[1:]:
        player, test, session, value = _pad(row, 4)
        if not player or not test or not session:
            logger.warning("Skipping performance row with missing cells: %s", list(row))
            continue
        players.setdefault(player, None)
        sessions.add(session)
        cells.setdefault(player, {}).setdefault(test, {})[session] = value or DEFAULT_VALUE

    player_names = list(players)
    session_labels = sorted(sessions)
    performance: PerformanceData = {}
    for player in player_names:
        by_test = cells.get(player, {})
        performance[player] = {
            test: [by_test.get(test, {}).get(session) or DEFAULT_VALUE for session in session_labels]
            for test in TESTS
        }

    return player_names, session_labels, performance


def import_matches(rows: Sequence[Sequence[str]]) -> List[Match]:
    matches: List[Match] = []
    for row in rows[1:]:
        match_id, date, match_type, opponent, result, squad_raw, goals_raw, assists_raw = _pad(row, 8)
        squad = _parse_squad(squad_raw, match_id)
        goals = [Goal.from_json(item) for item in _parse_references(goals_raw, "goals", match_id)]
        assists = [Assist.from_json(item) for item in _parse_references(assists_raw, "assists", match_id)]
        matches.append(
            Match(
                id=match_id,
                date=date,
                type=match_type,
                opponent=opponent,
                result=result,
                squad=squad,
                goals=goals,
                assists=assists,
            )
        )

    matches.sort(key=lambda match: match.date, reverse=True)
    return matches


def import_trainings(rows: Sequence[Sequence[str]]) -> TrainingData:
    trainings: TrainingData = {}
    for row in rows[1:]:
        date, player, status = _pad(row, 3)
        if not date or not player or not status:
            continue
        trainings.setdefault(date, {})[player] = status
    return trainings


def _has_data(rows: Optional[Rows]) -> bool:
    return bool(rows) and len(rows) > 1


def _pad(row: Sequence[Any], width: int) -> List[str]:
    # Spreadsheet reads drop trailing empty cells.
    cells = ["" if cell is None else str(cell) for cell in list(row)[:width]]
    cells.extend([""] * (width - len(cells)))
    return cells


def _load_json(raw: str, field_name: str, match_id: str) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Match %s has unparsable %s payload; treating it as empty", match_id, field_name)
        return None


def _parse_squad(raw: str, match_id: str) -> Dict[str, str]:
    payload = _load_json(raw, "squad", match_id)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        logger.warning("Match %s squad payload is not an object; treating it as empty", match_id)
        return {}
    return {str(player): str(status) for player, status in payload.items()}


def _parse_references(raw: str, field_name: str, match_id: str) -> List[Dict[str, Any]]:
    payload = _load_json(raw, field_name, match_id)
    if payload is None:
        return []
    if not isinstance(payload, list):
        logger.warning("Match %s %s payload is not a list; treating it as empty", match_id, field_name)
        return []

    items: List[Dict[str, Any]] = []
    for item in payload:
        if isinstance(item, dict) and item.get("playerId"):
            items.append(item)
        else:
            logger.warning("Match %s: dropping malformed %s entry %r", match_id, field_name, item)
    return items
