"""Team metrics data model and its table sync engine."""

from .codec import export_tables, import_tables
from .models import Assist, Goal, Match, TeamData
from .rename import NameCollisionError, propagate_rename
from .store import SyncInProgressError, TeamDataStore

__all__ = [
    "Assist",
    "Goal",
    "Match",
    "TeamData",
    "export_tables",
    "import_tables",
    "propagate_rename",
    "NameCollisionError",
    "SyncInProgressError",
    "TeamDataStore",
]
