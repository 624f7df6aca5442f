# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""User records kept in a YAML file.

Layout::

    version: 1
    users:
      alice:
        id: 1
        email: a@x.com
        password_hash: $argon2id$...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import yaml


class DuplicateUserError(ValueError):
    """Username or email already taken."""


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    email: str
    password_hash: str


def _empty_doc() -> dict:
    return {"version": 1, "users": {}}


def _read_doc(path: Path) -> dict:
    if not path.exists():
        return _empty_doc()
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        return _empty_doc()
    if not isinstance(raw.get("users"), dict):
        raw["users"] = {}
    return raw


def ensure_users_file(path: Path) -> None:
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(_empty_doc(), sort_keys=False), encoding="utf-8")


def load_users(path: Path) -> Dict[str, UserRecord]:
    users = _read_doc(path)["users"]
    out: Dict[str, UserRecord] = {}
    for uname, udata in users.items():
        if not isinstance(udata, dict):
            continue
        username = str(uname).strip()
        if not username:
            continue
        try:
            uid = int(udata.get("id"))
        except (TypeError, ValueError):
            continue
        out[username] = UserRecord(
            id=uid,
            username=username,
            email=str(udata.get("email") or "").strip(),
            password_hash=str(udata.get("password_hash") or "").strip(),
        )
    return out


def users_frame(path: Path) -> pd.DataFrame:
    """Author lookup table (``user_id``, ``username``) for joining onto posts."""
    rows = [{"user_id": u.id, "username": u.username} for u in load_users(path).values()]
    return pd.DataFrame(rows, columns=["user_id", "username"])


def find_by_username_or_email(path: Path, username: str, email: str) -> Optional[UserRecord]:
    uname = (username or "").strip()
    mail = (email or "").strip()
    for u in load_users(path).values():
        if (uname and u.username == uname) or (mail and u.email == mail):
            return u
    return None


def find_by_id(path: Path, user_id: int) -> Optional[UserRecord]:
    for u in load_users(path).values():
        if u.id == user_id:
            return u
    return None


def append_user(path: Path, username: str, email: str, password_hash: str) -> UserRecord:
    """Persist a new user with the next free id.

    Raises DuplicateUserError if the username or email is taken.
    """
    doc = _read_doc(path)
    users = doc["users"]
    current = load_users(path)
    uname = username.strip()
    mail = email.strip()
    if uname in current or any(u.email == mail for u in current.values()):
        raise DuplicateUserError(f"User '{uname}' or its email already exists.")

    next_id = max((u.id for u in current.values()), default=0) + 1
    users[uname] = {"id": next_id, "email": mail, "password_hash": password_hash}

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(doc, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return UserRecord(id=next_id, username=uname, email=mail, password_hash=password_hash)
