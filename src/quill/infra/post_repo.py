# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd
from openpyxl import Workbook, load_workbook

SHEET = "posts"
COLUMNS = ["id", "user_id", "content", "created_at"]


def _norm_key(s: object) -> str:
    """Normalise a header to a stable snake_case-like lower format."""
    return str(s or "").strip().replace(" ", "_").replace("-", "_").lower()


def _headers(ws) -> dict[str, int]:
    headers: dict[str, int] = {}
    for col in range(1, ws.max_column + 1):
        v = ws.cell(row=1, column=col).value
        if v is None:
            continue
        headers[_norm_key(v)] = col
    missing = [c for c in COLUMNS if c not in headers]
    if missing:
        raise ValueError(f"Sheet '{SHEET}' is missing columns: {', '.join(missing)}")
    return headers


def _set_text(cell, value: str) -> None:
    # openpyxl reads a leading "=" as a formula
    cell.value = value
    cell.data_type = "s"


def _as_int(v: object) -> int | None:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


def _find_row(ws, headers: dict[str, int], post_id: int) -> int | None:
    col_id = headers["id"]
    for r in range(2, ws.max_row + 1):
        if _as_int(ws.cell(row=r, column=col_id).value) == post_id:
            return r
    return None


def ensure_workbook(path: Path) -> None:
    """Create an empty posts workbook (header row only) if missing."""
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET
    ws.append(COLUMNS)
    wb.save(path)


def read_posts(path: Path) -> pd.DataFrame:
    """Read the posts sheet with integer ``id``/``user_id`` columns, newest first."""
    df = pd.read_excel(path, sheet_name=SHEET, dtype=str, keep_default_na=False, na_filter=False).fillna("")
    df.columns = pd.Index(df.columns).map(_norm_key)
    if df.empty:
        return pd.DataFrame(columns=COLUMNS).astype({"id": "int64", "user_id": "int64"})
    df["id"] = pd.to_numeric(df["id"], errors="coerce")
    df["user_id"] = pd.to_numeric(df["user_id"], errors="coerce")
    df = df.dropna(subset=["id", "user_id"])
    df = df.astype({"id": "int64", "user_id": "int64"})
    return df.sort_values("id", ascending=False).reset_index(drop=True)


def append_post(path: Path, user_id: int, content: str) -> dict:
    """Append a post with the next id (max existing id + 1)."""
    wb = load_workbook(path)
    if SHEET not in wb.sheetnames:
        raise ValueError(f"Sheet '{SHEET}' not found in {path.name}.")
    ws = wb[SHEET]
    headers = _headers(ws)

    col_id = headers["id"]
    last = 1
    max_id = 0
    for r in range(2, ws.max_row + 1):
        pid = _as_int(ws.cell(row=r, column=col_id).value)
        if pid is not None:
            last = r
            max_id = max(max_id, pid)
    new_row = last + 1

    row = {
        "id": max_id + 1,
        "user_id": int(user_id),
        "content": content,
        "created_at": datetime.now().isoformat(timespec="seconds"),
    }
    ws.cell(row=new_row, column=headers["id"]).value = row["id"]
    ws.cell(row=new_row, column=headers["user_id"]).value = row["user_id"]
    _set_text(ws.cell(row=new_row, column=headers["content"]), content)
    ws.cell(row=new_row, column=headers["created_at"]).value = row["created_at"]
    wb.save(path)
    return row


def update_post_content(path: Path, post_id: int, user_id: int, content: str) -> bool:
    """Replace content of ``post_id`` if ``user_id`` is its author. Returns whether a row changed."""
    wb = load_workbook(path)
    ws = wb[SHEET]
    headers = _headers(ws)
    r = _find_row(ws, headers, post_id)
    if r is None or _as_int(ws.cell(row=r, column=headers["user_id"]).value) != user_id:
        return False
    _set_text(ws.cell(row=r, column=headers["content"]), content)
    wb.save(path)
    return True


def delete_post_row(path: Path, post_id: int, user_id: int) -> bool:
    """Remove ``post_id`` if ``user_id`` is its author. Returns whether a row was removed."""
    wb = load_workbook(path)
    ws = wb[SHEET]
    headers = _headers(ws)
    r = _find_row(ws, headers, post_id)
    if r is None or _as_int(ws.cell(row=r, column=headers["user_id"]).value) != user_id:
        return False
    ws.delete_rows(r, 1)
    wb.save(path)
    return True
