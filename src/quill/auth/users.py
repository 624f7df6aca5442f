# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Registration and login rules."""

from __future__ import annotations

import re

from quill.auth.passwords import hash_password, verify_password
from quill.core.errors import AuthError, ValidationError
from quill.infra.data_store import DataStore
from quill.infra.user_repo import UserRecord
from quill.logging import get_logger

log = get_logger(__name__)

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6


def _clean(v: object) -> str:
    return str(v or "").strip()


def register(store: DataStore, username: str, email: str, password: str) -> UserRecord:
    username, email = _clean(username), _clean(email)
    password = str(password or "")
    if not username or not email or not password:
        raise ValidationError("all fields required")
    if not EMAIL_RE.search(email):
        raise ValidationError("invalid email format")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("password too short")
    if store.get_user_by_username_or_email(username, email) is not None:
        raise ValidationError("credential already in use")

    user = store.add_user(username, email, hash_password(password))
    log.info("registered user id=%s", user.id)
    return user


def authenticate(store: DataStore, credential: str, password: str) -> UserRecord:
    """Resolve ``credential`` as username or email and check the password."""
    credential = _clean(credential)
    password = str(password or "")
    if not credential or not password:
        raise ValidationError("credential and password required")
    user = store.get_user_by_username_or_email(credential, credential)
    if user is None or not verify_password(user.password_hash, password):
        raise AuthError("invalid credentials")
    return user
