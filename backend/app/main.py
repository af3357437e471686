from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from squadsync_core import NameCollisionError, SyncInProgressError, TeamData, TeamDataStore
from squadsync_core import stats
from squadsync_core.models import MATCH_TYPES, SQUAD_STATUSES, TESTS, TRAINING_STATUSES

app = FastAPI(title="Squad Metrics API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)


class GoalModel(BaseModel):
    player_id: str = Field(alias="playerId")
    minute: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class AssistModel(BaseModel):
    player_id: str = Field(alias="playerId")

    model_config = ConfigDict(populate_by_name=True)


class MatchModel(BaseModel):
    id: str
    date: str
    type: str
    opponent: str
    result: str
    squad: Dict[str, str]
    goals: List[GoalModel]
    assists: List[AssistModel]


class TeamStateResponse(BaseModel):
    player_names: List[str] = Field(alias="playerNames")
    session_labels: List[str] = Field(alias="sessionLabels")
    performance: Dict[str, Dict[str, List[str]]]
    matches: List[MatchModel]
    trainings: Dict[str, Dict[str, str]]

    model_config = ConfigDict(populate_by_name=True)


class PlayerCreate(BaseModel):
    name: str


class PlayerRename(BaseModel):
    new_name: str = Field(alias="newName")

    model_config = ConfigDict(populate_by_name=True)


class SessionCreate(BaseModel):
    date: str


class ObservationUpdate(BaseModel):
    player: str
    test: str
    session_index: int = Field(alias="sessionIndex", ge=0)
    value: str

    model_config = ConfigDict(populate_by_name=True)


class MatchCreate(BaseModel):
    date: str
    opponent: str
    result: str
    type: str = MATCH_TYPES[0]
    squad: Dict[str, str] = Field(default_factory=dict)
    goals: List[GoalModel] = Field(default_factory=list)
    assists: List[AssistModel] = Field(default_factory=list)


class TrainingCreate(BaseModel):
    date: str


class TrainingStatusUpdate(BaseModel):
    status: str


class PlayerMatchStatsModel(BaseModel):
    name: str
    call_ups: int = Field(alias="callUps")
    starts: int
    substitute: int
    not_called: int = Field(alias="notCalled")
    injury: int
    personal_absence: int = Field(alias="personalAbsence")
    goals: int
    assists: int

    model_config = ConfigDict(populate_by_name=True)


class MatchStatsResponse(BaseModel):
    players: List[PlayerMatchStatsModel]
    goal_rankings: List[PlayerMatchStatsModel] = Field(alias="goalRankings")
    assist_rankings: List[PlayerMatchStatsModel] = Field(alias="assistRankings")

    model_config = ConfigDict(populate_by_name=True)


class PlayerTrainingStatsModel(BaseModel):
    name: str
    present: int
    absent: int
    injured: int
    attendance_pct: float = Field(alias="attendancePct")

    model_config = ConfigDict(populate_by_name=True)


class TrainingStatsResponse(BaseModel):
    players: List[PlayerTrainingStatsModel]


class RankingRowModel(BaseModel):
    player: str
    score: float


class SessionRankingsResponse(BaseModel):
    session: str
    rankings: Dict[str, List[RankingRowModel]]


class TeamAveragesResponse(BaseModel):
    session_labels: List[str] = Field(alias="sessionLabels")
    averages: Dict[str, List[float]]

    model_config = ConfigDict(populate_by_name=True)


class SyncResponse(BaseModel):
    status: str
    rows: Dict[str, int] = Field(default_factory=dict)


@lru_cache(maxsize=1)
def store() -> TeamDataStore:
    return TeamDataStore()


def _state(data: TeamData) -> TeamStateResponse:
    return TeamStateResponse(
        playerNames=data.player_names,
        sessionLabels=data.session_labels,
        performance=data.performance,
        matches=[
            MatchModel(
                id=match.id,
                date=match.date,
                type=match.type,
                opponent=match.opponent,
                result=match.result,
                squad=match.squad,
                goals=[GoalModel(playerId=goal.player_id, minute=goal.minute) for goal in match.goals],
                assists=[AssistModel(playerId=assist.player_id) for assist in match.assists],
            )
            for match in data.matches
        ],
        trainings=data.trainings,
    )


def _match_stats_model(row: stats.PlayerMatchStats) -> PlayerMatchStatsModel:
    return PlayerMatchStatsModel(
        name=row.name,
        callUps=row.call_ups,
        starts=row.starts,
        substitute=row.substitute,
        notCalled=row.not_called,
        injury=row.injury,
        personalAbsence=row.personal_absence,
        goals=row.goals,
        assists=row.assists,
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/reference")
def reference() -> dict:
    return {
        "tests": list(TESTS),
        "matchTypes": list(MATCH_TYPES),
        "squadStatuses": list(SQUAD_STATUSES),
        "trainingStatuses": list(TRAINING_STATUSES),
    }


@app.get("/state", response_model=TeamStateResponse)
def state():
    return _state(store().data)


@app.post("/players", response_model=TeamStateResponse, status_code=201)
def create_player(payload: PlayerCreate):
    try:
        data = store().add_player(payload.name)
    except NameCollisionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _state(data)


@app.patch("/players/{name}", response_model=TeamStateResponse)
def rename_player(name: str, payload: PlayerRename):
    current = store()
    if name not in current.data.player_names:
        raise HTTPException(status_code=404, detail=f"Unknown player '{name}'")
    if payload.new_name.strip() in current.data.player_names:
        raise HTTPException(status_code=409, detail=f"Player '{payload.new_name}' already exists")
    if not current.rename_player(name, payload.new_name):
        raise HTTPException(status_code=400, detail="Player could not be renamed")
    return _state(current.data)


@app.delete("/players/{name}", response_model=TeamStateResponse)
def delete_player(name: str):
    try:
        data = store().remove_player(name)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _state(data)


@app.post("/sessions", response_model=TeamStateResponse, status_code=201)
def create_session(payload: SessionCreate):
    try:
        data = store().add_session(payload.date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _state(data)


@app.delete("/sessions/{date}", response_model=TeamStateResponse)
def delete_session(date: str):
    return _state(store().delete_session(date))


@app.put("/performance", response_model=TeamStateResponse)
def update_observation(payload: ObservationUpdate):
    try:
        data = store().set_observation(payload.player, payload.test, payload.session_index, payload.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _state(data)


@app.get("/matches", response_model=List[MatchModel])
def list_matches():
    return _state(store().data).matches


@app.post("/matches", response_model=TeamStateResponse, status_code=201)
def create_match(payload: MatchCreate):
    minutes = {
        position: goal.minute for position, goal in enumerate(payload.goals) if goal.minute is not None
    }
    try:
        data = store().add_match(
            date=payload.date,
            opponent=payload.opponent,
            result=payload.result,
            match_type=payload.type,
            squad=payload.squad,
            goals=[goal.player_id for goal in payload.goals],
            assists=[assist.player_id for assist in payload.assists],
            minutes=minutes,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _state(data)


@app.delete("/matches/{match_id}", response_model=TeamStateResponse)
def delete_match(match_id: str):
    try:
        data = store().delete_match(match_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _state(data)


@app.post("/trainings", response_model=TeamStateResponse, status_code=201)
def create_training(payload: TrainingCreate):
    try:
        data = store().add_training_date(payload.date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _state(data)


@app.delete("/trainings/{date}", response_model=TeamStateResponse)
def delete_training(date: str):
    try:
        data = store().delete_training_date(date)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _state(data)


@app.put("/trainings/{date}/{player}", response_model=TeamStateResponse)
def update_training_status(date: str, player: str, payload: TrainingStatusUpdate):
    try:
        data = store().set_training_status(date, player, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _state(data)


@app.post("/trainings/{date}/{player}/cycle", response_model=TeamStateResponse)
def cycle_training_status(date: str, player: str):
    try:
        data = store().cycle_training_status(date, player)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _state(data)


@app.get("/stats/matches", response_model=MatchStatsResponse)
def match_stats():
    data = store().data
    return MatchStatsResponse(
        players=[_match_stats_model(row) for row in stats.player_match_stats(data)],
        goalRankings=[_match_stats_model(row) for row in stats.goal_rankings(data)],
        assistRankings=[_match_stats_model(row) for row in stats.assist_rankings(data)],
    )


@app.get("/stats/trainings", response_model=TrainingStatsResponse)
def training_stats():
    return TrainingStatsResponse(
        players=[
            PlayerTrainingStatsModel(
                name=row.name,
                present=row.present,
                absent=row.absent,
                injured=row.injured,
                attendancePct=row.attendance_pct,
            )
            for row in stats.training_stats(store().data)
        ]
    )


@app.get("/stats/rankings/{session}", response_model=SessionRankingsResponse)
def session_rankings(session: str):
    try:
        rankings = stats.session_rankings(store().data, session)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return SessionRankingsResponse(
        session=session,
        rankings={
            test: [RankingRowModel(player=row.player, score=row.score) for row in rows]
            for test, rows in rankings.items()
        },
    )


@app.get("/stats/averages", response_model=TeamAveragesResponse)
def team_averages():
    data = store().data
    return TeamAveragesResponse(sessionLabels=data.session_labels, averages=stats.team_averages(data))


@app.post("/sync/save", response_model=SyncResponse)
def sync_save():
    try:
        rows = store().save()
    except SyncInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.warning("Saving team data failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SyncResponse(status="saved", rows=rows)


@app.post("/sync/load", response_model=TeamStateResponse)
def sync_load():
    try:
        data = store().load()
    except SyncInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.warning("Loading team data failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return _state(data)


@app.post("/reset", response_model=TeamStateResponse)
def reset():
    return _state(store().reset())
