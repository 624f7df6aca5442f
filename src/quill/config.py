# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_TRUTHY = {"1", "true", "yes", "y"}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    users_path: Optional[Path] = None
    posts_path: Optional[Path] = None
    secret_key: str = ""
    session_salt: str = "quill.session.v1"
    cookie_name: str = "quill_session"
    session_max_age: int = 28800  # 8 hours
    cookie_secure: bool = False
    page_size: int = 10
    host: str = "0.0.0.0"
    port: int = 4131
    reload: bool = False
    log_level: str = "INFO"

    @property
    def resolved_users_path(self) -> Path:
        return Path(self.users_path or (self.data_dir / "users.yml")).resolve()

    @property
    def resolved_posts_path(self) -> Path:
        return Path(self.posts_path or (self.data_dir / "posts.xlsx")).resolve()

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = Path(os.getenv("QUILL_DATA_DIR", "data")).resolve()
        users = os.getenv("QUILL_USERS_PATH")
        posts = os.getenv("QUILL_POSTS_PATH")
        return cls(
            data_dir=data_dir,
            users_path=Path(users) if users else None,
            posts_path=Path(posts) if posts else None,
            secret_key=os.getenv("SECRET_KEY") or os.getenv("QUILL_SECRET_KEY") or "",
            session_salt=os.getenv("QUILL_SESSION_SALT", "quill.session.v1"),
            cookie_name=os.getenv("QUILL_COOKIE_NAME", "quill_session"),
            session_max_age=int(os.getenv("QUILL_SESSION_MAX_AGE", "28800")),
            cookie_secure=_env_flag("QUILL_COOKIE_SECURE"),
            page_size=int(os.getenv("QUILL_PAGE_SIZE", "10")),
            host=os.getenv("QUILL_HOST", "0.0.0.0"),
            port=int(os.getenv("QUILL_PORT", "4131")),
            reload=_env_flag("QUILL_RELOAD"),
            log_level=os.getenv("QUILL_LOG_LEVEL", "INFO"),
        )

    def cookie_settings(self) -> dict:
        return {"httponly": True, "samesite": "lax", "secure": self.cookie_secure}
