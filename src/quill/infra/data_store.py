# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""File-backed data store: users in YAML, posts in an .xlsx workbook.

All public methods serialise on one lock, so the store can be shared by the
request threadpool. Any I/O or format problem surfaces as ``StoreError``.
"""

from __future__ import annotations

import functools
import threading
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pandas as pd
import yaml
from openpyxl.utils.exceptions import InvalidFileException

from quill.core.errors import QuillError, StoreError, ValidationError
from quill.infra import post_repo, user_repo
from quill.infra.user_repo import DuplicateUserError, UserRecord

_STORAGE_ERRORS = (
    OSError,
    ValueError,
    KeyError,
    TypeError,
    zipfile.BadZipFile,
    InvalidFileException,
    yaml.YAMLError,
)


@dataclass(frozen=True)
class Post:
    id: int
    user_id: int
    content: str
    created_at: str = ""
    username: str = ""


def _guarded(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except QuillError:
                raise
            except _STORAGE_ERRORS as exc:
                raise StoreError(f"{method.__name__}: {exc}") from exc

    return wrapper


def _row_to_post(row: dict) -> Post:
    username = row.get("username", "")
    return Post(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        content=str(row.get("content", "") or ""),
        created_at=str(row.get("created_at", "") or ""),
        username="" if pd.isna(username) else str(username),
    )


class DataStore:
    def __init__(self, users_path: Path, posts_path: Path) -> None:
        self.users_path = Path(users_path)
        self.posts_path = Path(posts_path)
        self._lock = threading.RLock()
        user_repo.ensure_users_file(self.users_path)
        post_repo.ensure_workbook(self.posts_path)

    def _with_authors(self, df: pd.DataFrame) -> pd.DataFrame:
        authors = user_repo.users_frame(self.users_path).astype({"user_id": "int64"})
        return df.merge(authors, how="left", on="user_id")

    # --- posts ---

    @_guarded
    def get_posts(self, limit: int, offset: int) -> List[Post]:
        df = post_repo.read_posts(self.posts_path)
        page = df.iloc[max(offset, 0): max(offset, 0) + max(limit, 0)]
        if page.empty:
            return []
        page = self._with_authors(page)
        return [_row_to_post(r) for r in page.to_dict(orient="records")]

    @_guarded
    def get_post_count(self) -> int:
        return int(len(post_repo.read_posts(self.posts_path)))

    @_guarded
    def get_post_by_id(self, post_id: int) -> Optional[Post]:
        df = post_repo.read_posts(self.posts_path)
        hit = df[df["id"] == int(post_id)]
        if hit.empty:
            return None
        hit = self._with_authors(hit)
        return _row_to_post(hit.to_dict(orient="records")[0])

    @_guarded
    def add_post(self, user_id: int, content: str) -> Post:
        row = post_repo.append_post(self.posts_path, int(user_id), content)
        return Post(**row)

    @_guarded
    def update_post(self, post_id: int, user_id: int, content: str) -> bool:
        return post_repo.update_post_content(self.posts_path, int(post_id), int(user_id), content)

    @_guarded
    def delete_post(self, post_id: int, user_id: int) -> bool:
        return post_repo.delete_post_row(self.posts_path, int(post_id), int(user_id))

    # --- users ---

    @_guarded
    def get_user_by_username_or_email(self, username: str, email: str) -> Optional[UserRecord]:
        return user_repo.find_by_username_or_email(self.users_path, username, email)

    @_guarded
    def get_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        return user_repo.find_by_id(self.users_path, int(user_id))

    @_guarded
    def add_user(self, username: str, email: str, password_hash: str) -> UserRecord:
        try:
            return user_repo.append_user(self.users_path, username, email, password_hash)
        except DuplicateUserError:
            # lost a race with a concurrent registration of the same name or email
            raise ValidationError("credential already in use") from None
