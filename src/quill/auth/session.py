# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

DEFAULT_MAX_AGE_SECONDS = 28800  # 8 hours


@dataclass(frozen=True)
class SessionData:
    session_id: str
    user_id: int
    expires_at: float


class SessionStore:
    """Server-side sessions: opaque session id -> ``{user_id}``.

    The cookie only ever carries the (signed) session id.
    """

    def __init__(
        self,
        *,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_age = max_age
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, SessionData] = {}

    def create(self, user_id: int) -> str:
        sid = secrets.token_urlsafe(32)
        now = self._clock()
        with self._lock:
            # sessions whose cookie never comes back are only dropped here
            for dead in [k for k, s in self._items.items() if s.expires_at <= now]:
                del self._items[dead]
            self._items[sid] = SessionData(
                session_id=sid,
                user_id=int(user_id),
                expires_at=now + self.max_age,
            )
        return sid

    def get(self, session_id: str) -> Optional[SessionData]:
        if not session_id:
            return None
        with self._lock:
            sess = self._items.get(session_id)
            if sess is None:
                return None
            if sess.expires_at <= self._clock():
                del self._items[session_id]
                return None
            return sess

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            return self._items.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            dead = [sid for sid, s in self._items.items() if s.expires_at <= now]
            for sid in dead:
                del self._items[sid]
        return len(dead)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class CookieSigner:
    """Signs session ids for the cookie so forged ids never reach the store."""

    def __init__(self, secret: str, *, salt: str = "quill.session.v1", max_age: int = DEFAULT_MAX_AGE_SECONDS) -> None:
        if not secret:
            raise RuntimeError("Missing secret key for session cookies")
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key=secret, salt=salt)

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps({"sid": session_id})

    def unsign(self, token: str) -> Optional[str]:
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self.max_age)
        except (BadSignature, BadTimeSignature):
            return None
        sid = str((data or {}).get("sid") or "").strip() if isinstance(data, dict) else ""
        return sid or None
