from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TESTS = (
    "Velocidad 20m (s)",
    "Agilidad (s)",
    "Fuerza (repeticiones)",
    "Resistencia 15 min (m)",
)

MATCH_TYPES = ("Partido oficial", "Amistoso", "Copa")

SQUAD_STATUSES = ("Titular", "Suplente", "No convocado", "Lesión", "Ausencia personal")
SQUAD_DEFAULT = "No convocado"

TRAINING_STATUSES = ("Presente", "Ausente", "Lesión", "Vacío")
TRAINING_EMPTY = "Vacío"

DEFAULT_VALUE = "0.0"
INITIAL_PLAYER_COUNT = 25

PERFORMANCE_TABLE = "RendimientoFisico"
MATCHES_TABLE = "Partidos"
TRAININGS_TABLE = "Entrenamientos"
TABLE_NAMES = (PERFORMANCE_TABLE, MATCHES_TABLE, TRAININGS_TABLE)

# player -> test -> observations aligned with the session labels
PerformanceData = Dict[str, Dict[str, List[str]]]
# date -> player -> attendance status
TrainingData = Dict[str, Dict[str, str]]


@dataclass
class Goal:
    player_id: str
    minute: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"playerId": self.player_id}
        if self.minute is not None:
            payload["minute"] = self.minute
        return payload

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> "Goal":
        minute = raw.get("minute")
        if isinstance(minute, float) and minute.is_integer():
            minute = int(minute)
        if not isinstance(minute, int) or isinstance(minute, bool):
            minute = None
        return cls(player_id=str(raw["playerId"]), minute=minute)


@dataclass
class Assist:
    player_id: str

    def to_json(self) -> Dict[str, Any]:
        return {"playerId": self.player_id}

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> "Assist":
        return cls(player_id=str(raw["playerId"]))


@dataclass
class Match:
    """A played match.

    The squad map, goal list and assist list all reference players by
    display name; renames must rewrite all three together.
    """

    id: str
    date: str
    type: str
    opponent: str
    result: str  # free text, e.g. "2-1"
    squad: Dict[str, str] = field(default_factory=dict)
    goals: List[Goal] = field(default_factory=list)
    assists: List[Assist] = field(default_factory=list)


@dataclass
class TeamData:
    """Everything the application edits and persists.

    Player names and session labels are not stored as a separate index; on
    load they are derived from the performance table.
    """

    player_names: List[str] = field(default_factory=list)
    session_labels: List[str] = field(default_factory=list)
    performance: PerformanceData = field(default_factory=dict)
    matches: List[Match] = field(default_factory=list)
    trainings: TrainingData = field(default_factory=dict)

    @classmethod
    def initial(cls, player_count: int = INITIAL_PLAYER_COUNT) -> "TeamData":
        """First-run state: placeholder roster, no sessions, nothing recorded."""

        names = [f"Jugador {index + 1}" for index in range(player_count)]
        performance = {name: {test: [] for test in TESTS} for name in names}
        return cls(player_names=names, session_labels=[], performance=performance)

    def replace(self, **changes: Any) -> "TeamData":
        """Return a new TeamData sharing every collection not in ``changes``."""

        values = {
            "player_names": self.player_names,
            "session_labels": self.session_labels,
            "performance": self.performance,
            "matches": self.matches,
            "trainings": self.trainings,
        }
        values.update(changes)
        return TeamData(**values)
