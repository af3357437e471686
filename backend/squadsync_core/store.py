from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional

from . import roster, sessions
from .codec import export_tables, import_tables
from .models import (
    INITIAL_PLAYER_COUNT,
    MATCHES_TABLE,
    MATCH_TYPES,
    PERFORMANCE_TABLE,
    TABLE_NAMES,
    TRAININGS_TABLE,
    TeamData,
)
from .remote import LocalTableStore, SheetsTableStore, SupabaseTableStore, TableStore
from .rename import propagate_rename


logger = logging.getLogger(__name__)


class SyncInProgressError(RuntimeError):
    """Raised when a save or load starts while another one is running."""


class TeamDataStore:
    """Owns the in-memory team data and syncs it with a table store.

    Every edit computes a new :class:`TeamData` and swaps it in only once the
    whole edit succeeded.
    """

    def __init__(
        self,
        data_dir: Path | None = None,
        tables: TableStore | None = None,
        initial_players: int = INITIAL_PLAYER_COUNT,
    ) -> None:
        """Initialize the store.

        Args:
            data_dir: Directory for the local JSON fallback
            tables: Explicit table store; when omitted one is picked from the environment
            initial_players: Size of the placeholder roster used on first run and reset
        """
        self.data_dir = data_dir or (Path(__file__).parent.parent / "data")
        self.local_tables_path = self.data_dir / "tables_local.json"
        self.initial_players = initial_players

        self.supabase_url = os.getenv("SUPABASE_URL", "")
        self.supabase_key = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or os.getenv("SUPABASE_ANON_KEY")
            or ""
        )
        self.supabase_schema = os.getenv("SUPABASE_SCHEMA", "public")
        self.supabase_table_map: Dict[str, str] = {
            PERFORMANCE_TABLE: os.getenv("SUPABASE_PERFORMANCE_TABLE", "performance_rows"),
            MATCHES_TABLE: os.getenv("SUPABASE_MATCHES_TABLE", "match_rows"),
            TRAININGS_TABLE: os.getenv("SUPABASE_TRAININGS_TABLE", "training_rows"),
        }
        self.sheets_spreadsheet_id = os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID", "")
        self.sheets_access_token = os.getenv("GOOGLE_SHEETS_ACCESS_TOKEN", "")
        self.backend_name = os.getenv("SQUADSYNC_BACKEND", "").strip().lower()

        self.tables: TableStore = tables or self._tables_from_env()
        self.data = TeamData.initial(initial_players)
        self.busy = False
        self._sync_lock = threading.Lock()

    def _tables_from_env(self) -> TableStore:
        supabase_ready = bool(self.supabase_url and self.supabase_key)
        sheets_ready = bool(self.sheets_spreadsheet_id and self.sheets_access_token)

        backend = self.backend_name
        if not backend:
            backend = "supabase" if supabase_ready else "sheets" if sheets_ready else "local"

        if backend == "supabase":
            if not supabase_ready:
                raise RuntimeError("SQUADSYNC_BACKEND=supabase requires SUPABASE_URL and a Supabase key")
            return SupabaseTableStore(
                self.supabase_url,
                self.supabase_key,
                schema=self.supabase_schema,
                table_map=self.supabase_table_map,
            )
        if backend == "sheets":
            if not sheets_ready:
                raise RuntimeError(
                    "SQUADSYNC_BACKEND=sheets requires GOOGLE_SHEETS_SPREADSHEET_ID and GOOGLE_SHEETS_ACCESS_TOKEN"
                )
            return SheetsTableStore(self.sheets_spreadsheet_id, self.sheets_access_token)
        if backend == "local":
            return LocalTableStore(self.local_tables_path)
        raise RuntimeError(f"Unknown SQUADSYNC_BACKEND '{self.backend_name}'")

    # ------------------------------------------------------------------
    # Sync

    @contextmanager
    def _sync_guard(self) -> Iterator[None]:
        if not self._sync_lock.acquire(blocking=False):
            raise SyncInProgressError("A sync operation is already in progress")
        self.busy = True
        try:
            yield
        finally:
            self.busy = False
            self._sync_lock.release()

    def save(self) -> Dict[str, int]:
        """Replace the three remote tables with the current data.

        Returns the number of data rows written per table.
        """

        with self._sync_guard():
            tables = export_tables(self.data)
            self.tables.clear_tables(list(TABLE_NAMES))
            self.tables.write_tables(tables)

        summary = {name: len(rows) - 1 for name, rows in tables.items()}
        logger.info("Saved team data: %s", summary)
        return summary

    def load(self) -> TeamData:
        """Replace the in-memory data with what the table store holds."""

        with self._sync_guard():
            tables = self.tables.read_tables(list(TABLE_NAMES))
            loaded = import_tables(tables, self.initial_players)

        self.data = loaded
        logger.info(
            "Loaded team data: %d players, %d sessions, %d matches, %d training dates",
            len(loaded.player_names),
            len(loaded.session_labels),
            len(loaded.matches),
            len(loaded.trainings),
        )
        return loaded

    def reset(self) -> TeamData:
        self.data = TeamData.initial(self.initial_players)
        logger.info("Team data reset to %d placeholder players", self.initial_players)
        return self.data

    # ------------------------------------------------------------------
    # Edits

    def rename_player(self, old_name: str, new_name: str) -> bool:
        try:
            self.data = propagate_rename(self.data, old_name, new_name)
        except ValueError as exc:
            logger.warning("Rename %r -> %r rejected: %s", old_name, new_name, exc)
            return False
        return True

    def add_player(self, name: str) -> TeamData:
        self.data = roster.add_player(self.data, name)
        return self.data

    def remove_player(self, name: str) -> TeamData:
        self.data = roster.remove_player(self.data, name)
        return self.data

    def add_session(self, date: str) -> TeamData:
        self.data = sessions.add_session(self.data, date)
        return self.data

    def delete_session(self, date: str) -> TeamData:
        self.data = sessions.delete_session(self.data, date)
        return self.data

    def set_observation(self, player: str, test: str, index: int, value: str) -> TeamData:
        self.data = sessions.set_observation(self.data, player, test, index, value)
        return self.data

    def add_match(
        self,
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
        self.data = roster.add_match(
            self.data,
            date=date,
            opponent=opponent,
            result=result,
            match_type=match_type,
            squad=squad,
            goals=goals,
            assists=assists,
            minutes=minutes,
        )
        return self.data

    def delete_match(self, match_id: str) -> TeamData:
        self.data = roster.delete_match(self.data, match_id)
        return self.data

    def add_training_date(self, date: str) -> TeamData:
        self.data = roster.add_training_date(self.data, date)
        return self.data

    def delete_training_date(self, date: str) -> TeamData:
        self.data = roster.delete_training_date(self.data, date)
        return self.data

    def set_training_status(self, date: str, player: str, status: str) -> TeamData:
        self.data = roster.set_training_status(self.data, date, player, status)
        return self.data

    def cycle_training_status(self, date: str, player: str) -> TeamData:
        self.data = roster.cycle_training_status(self.data, date, player)
        return self.data
