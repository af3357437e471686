"""CLI helper for inspecting the configured table store and pushing local data to it.

Usage:
    python -m scripts.sync_tables show
    python -m scripts.sync_tables push-local
"""

from __future__ import annotations

import sys
from typing import List

from squadsync_core import TeamDataStore, import_tables
from squadsync_core.models import TABLE_NAMES
from squadsync_core.remote import LocalTableStore


def _format_summary(store: TeamDataStore) -> str:
    data = store.data
    lines = [
        f"Players: {len(data.player_names)}",
        f"Sessions: {len(data.session_labels)}",
        f"Matches: {len(data.matches)}",
        f"Training dates: {len(data.trainings)}",
    ]
    if data.session_labels:
        lines.append(f"  latest session: {data.session_labels[-1]}")
    if data.matches:
        latest = data.matches[0]
        lines.append(f"  latest match: {latest.date} vs {latest.opponent} ({latest.result})")
    return "\n".join(lines)


def show() -> int:
    store = TeamDataStore()
    store.load()
    print(_format_summary(store))
    return 0


def push_local() -> int:
    remote = TeamDataStore()
    if isinstance(remote.tables, LocalTableStore):
        print("ERROR: no remote table store is configured", file=sys.stderr)
        return 1

    local_tables = LocalTableStore(remote.local_tables_path).read_tables(list(TABLE_NAMES))
    if not any(rows and len(rows) > 1 for rows in local_tables.values()):
        print("ERROR: local table store is empty", file=sys.stderr)
        return 1

    remote.data = import_tables(local_tables, remote.initial_players)
    summary = remote.save()

    for name, count in summary.items():
        print(f"{name}: {count} rows written")
    return 0


def main(argv: List[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    command = args[0] if args else "show"

    commands = {"show": show, "push-local": push_local}
    handler = commands.get(command)
    if handler is None:
        print(f"ERROR: unknown command '{command}' (expected one of: {', '.join(commands)})", file=sys.stderr)
        return 2

    try:
        return handler()
    except RuntimeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
