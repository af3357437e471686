"""Remote tabular stores the sync engine reads from and writes to.

All backends expose the same three bulk operations on named tables of string
rows. Saving is clear-then-write, so a failure between the two calls can leave
a remote table empty; nothing here retries.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx


logger = logging.getLogger(__name__)

Rows = List[List[str]]

SUPABASE_PAGE_SIZE = 1000
SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class TableStore(Protocol):
    def clear_tables(self, names: Sequence[str]) -> None:
        ...

    def write_tables(self, entries: Dict[str, Rows]) -> None:
        ...

    def read_tables(self, names: Sequence[str]) -> Dict[str, Optional[Rows]]:
        """Return rows per table; ``None`` means the table holds nothing."""
        ...


class SupabaseTableStore:
    """Tables stored as PostgREST rows of ``(position, cells)``.

    ``cells`` is a JSON array of strings and ``position`` the row index, with
    the header at position 0.
    """

    def __init__(
        self,
        url: str,
        key: str,
        schema: str = "public",
        table_map: Optional[Dict[str, str]] = None,
    ) -> None:
        self.url = url
        self.key = key
        self.schema = schema
        self.table_map = dict(table_map or {})

    def clear_tables(self, names: Sequence[str]) -> None:
        headers = self._headers("return=minimal")
        try:
            with httpx.Client(timeout=10.0) as client:
                for name in names:
                    response = client.delete(self._endpoint(name), params={"position": "gte.0"}, headers=headers)
                    response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(f"Failed to clear tables: {_extract_detail(exc.response) or exc}") from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Failed to clear tables: {exc}") from exc

    def write_tables(self, entries: Dict[str, Rows]) -> None:
        headers = self._headers("return=minimal")
        headers["Content-Type"] = "application/json"
        try:
            with httpx.Client(timeout=10.0) as client:
                for name, rows in entries.items():
                    if not rows:
                        continue
                    payload = [{"position": index, "cells": list(row)} for index, row in enumerate(rows)]
                    response = client.post(self._endpoint(name), params={}, json=payload, headers=headers)
                    response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(f"Failed to write tables: {_extract_detail(exc.response) or exc}") from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Failed to write tables: {exc}") from exc

    def read_tables(self, names: Sequence[str]) -> Dict[str, Optional[Rows]]:
        headers = self._headers()
        result: Dict[str, Optional[Rows]] = {}
        try:
            with httpx.Client(timeout=10.0) as client:
                for name in names:
                    result[name] = self._read_table(client, name, headers)
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(f"Failed to read tables: {_extract_detail(exc.response) or exc}") from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Failed to read tables: {exc}") from exc
        return result

    def _read_table(self, client: httpx.Client, name: str, headers: Dict[str, str]) -> Optional[Rows]:
        rows: Rows = []
        offset = 0
        while True:
            params = {
                "select": "position,cells",
                "order": "position.asc",
                "limit": SUPABASE_PAGE_SIZE,
                "offset": offset,
            }
            response = client.get(self._endpoint(name), params=params, headers=headers)
            response.raise_for_status()
            page = response.json()
            if not isinstance(page, list):
                raise RuntimeError(f"Unexpected payload from Supabase table '{name}'")
            for record in page:
                if not isinstance(record, dict):
                    continue
                cells = record.get("cells")
                if isinstance(cells, str):
                    try:
                        cells = json.loads(cells)
                    except ValueError:
                        cells = None
                if not isinstance(cells, list):
                    logger.warning("Skipping row %s of %s with malformed cells", record.get("position"), name)
                    continue
                rows.append(["" if cell is None else str(cell) for cell in cells])
            if len(page) < SUPABASE_PAGE_SIZE:
                break
            offset += SUPABASE_PAGE_SIZE
        return rows or None

    def _endpoint(self, name: str) -> str:
        table = self.table_map.get(name, name)
        return f"{self.url.rstrip('/')}/rest/v1/{table}"

    def _headers(self, prefer: str | None = None) -> Dict[str, str]:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }
        if self.schema and self.schema != "public":
            headers["Accept-Profile"] = self.schema
            headers["Content-Profile"] = self.schema
        if prefer:
            headers["Prefer"] = prefer
        return headers


class SheetsTableStore:
    """One worksheet per table in a Google spreadsheet (values API v4).

    The OAuth access token is obtained elsewhere and passed in as-is.
    """

    # RAW keeps dates and "0.0" as the exact strings we wrote.
    value_input_option = "RAW"

    def __init__(self, spreadsheet_id: str, access_token: str, base_url: str = SHEETS_API_URL) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.access_token = access_token
        self.base_url = base_url

    def clear_tables(self, names: Sequence[str]) -> None:
        self._post("values:batchClear", {"ranges": list(names)}, "clear tables")

    def write_tables(self, entries: Dict[str, Rows]) -> None:
        payload = {
            "valueInputOption": self.value_input_option,
            "data": [{"range": name, "values": rows} for name, rows in entries.items()],
        }
        self._post("values:batchUpdate", payload, "write tables")

    def read_tables(self, names: Sequence[str]) -> Dict[str, Optional[Rows]]:
        endpoint = self._endpoint("values:batchGet")
        params = {"ranges": list(names)}
        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.get(endpoint, params=params, headers=self._headers())
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(f"Failed to read tables: {_extract_detail(exc.response) or exc}") from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Failed to read tables: {exc}") from exc

        value_ranges = payload.get("valueRanges") if isinstance(payload, dict) else None
        result: Dict[str, Optional[Rows]] = {name: None for name in names}
        for item in value_ranges or []:
            if not isinstance(item, dict):
                continue
            name = self._sheet_name(str(item.get("range") or ""))
            if name not in result:
                continue
            values = item.get("values")
            if isinstance(values, list) and values:
                result[name] = [[str(cell) for cell in row] for row in values if isinstance(row, list)]
        return result

    def _post(self, method: str, payload: Dict[str, Any], action: str) -> None:
        endpoint = self._endpoint(method)
        headers = self._headers()
        headers["Content-Type"] = "application/json"
        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.post(endpoint, params={}, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(f"Failed to {action}: {_extract_detail(exc.response) or exc}") from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Failed to {action}: {exc}") from exc

    def _endpoint(self, method: str) -> str:
        return f"{self.base_url.rstrip('/')}/{self.spreadsheet_id}/{method}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    @staticmethod
    def _sheet_name(a1_range: str) -> str:
        # "'Partidos'!A1:H20" -> "Partidos"
        return a1_range.split("!", 1)[0].strip("'")


class LocalTableStore:
    """JSON file fallback used when no remote store is configured."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def clear_tables(self, names: Sequence[str]) -> None:
        data = self._read_json_file()
        for name in names:
            data[name] = []
        self._write_json_file(data)

    def write_tables(self, entries: Dict[str, Rows]) -> None:
        data = self._read_json_file()
        for name, rows in entries.items():
            data[name] = [list(row) for row in rows]
        self._write_json_file(data)

    def read_tables(self, names: Sequence[str]) -> Dict[str, Optional[Rows]]:
        data = self._read_json_file()
        result: Dict[str, Optional[Rows]] = {}
        for name in names:
            rows = data.get(name)
            result[name] = [[str(cell) for cell in row] for row in rows] if isinstance(rows, list) and rows else None
        return result

    def _read_json_file(self) -> Dict[str, Any]:
        try:
            if not self.path.exists():
                return {}
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise RuntimeError(f"Failed to read local table store {self.path}: {exc}") from exc
        return payload if isinstance(payload, dict) else {}

    def _write_json_file(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, ensure_ascii=False)
        except OSError as exc:
            raise RuntimeError(f"Failed to write local table store {self.path}") from exc


def _extract_detail(response: httpx.Response | None) -> str | None:
    if response is None:
        return None
    try:
        payload = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text or None

    if isinstance(payload, list) and payload:
        payload = payload[0]
    if not isinstance(payload, dict):
        return None

    # Google APIs nest the message under "error".
    error = payload.get("error")
    if isinstance(error, dict):
        payload = error
    for key in ("message", "detail", "error", "hint", "code"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
