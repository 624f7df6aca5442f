# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy shared by services and routes.

Every error carries a kind and the HTTP status the rendering step answers with.
Messages are safe to show to the client; StoreError keeps its cause for the
server log only.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    STORE = "store"


HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 400,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORE: 500,
}


class QuillError(Exception):
    kind: ErrorKind = ErrorKind.STORE
    default_message = "unexpected error"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.kind]


class ValidationError(QuillError):
    kind = ErrorKind.VALIDATION
    default_message = "invalid input"


class AuthError(QuillError):
    kind = ErrorKind.AUTH
    default_message = "invalid credentials"


class AuthorizationError(QuillError):
    kind = ErrorKind.AUTHORIZATION
    default_message = "not allowed to modify this post"


class NotFoundError(QuillError):
    kind = ErrorKind.NOT_FOUND
    default_message = "post not found"


class StoreError(QuillError):
    kind = ErrorKind.STORE
    default_message = "storage error"
