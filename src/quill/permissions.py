# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request

from quill.core.errors import StoreError
from quill.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str


def session_id_from_request(request: Request) -> Optional[str]:
    state = request.app.state
    token = request.cookies.get(state.settings.cookie_name, "")
    return state.signer.unsign(token)


def load_user_from_request(request: Request) -> Optional[CurrentUser]:
    state = request.app.state
    sid = session_id_from_request(request)
    if not sid:
        return None
    sess = state.sessions.get(sid)
    if not sess:
        return None
    try:
        u = state.store.get_user_by_id(sess.user_id)
    except StoreError:
        log.error("could not resolve session user", exc_info=True)
        return None
    if u is None:
        # session outlived its user; treat as anonymous
        return None
    return CurrentUser(id=u.id, username=u.username)


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    if hasattr(request.state, "user"):
        return request.state.user
    return load_user_from_request(request)


def require_user(request: Request) -> CurrentUser:
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=303, headers={"Location": "/login"})
