# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tagged handler results: ``Ok(value)`` or ``Err(kind, message)``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union

from quill.core.errors import HTTP_STATUS, ErrorKind, QuillError, StoreError
from quill.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Ok:
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.kind]

    @classmethod
    def from_error(cls, exc: QuillError) -> "Err":
        return cls(kind=exc.kind, message=exc.message)


Result = Union[Ok, Err]


def capture(fn: Callable[..., Any], *args: Any, failure: str = "", **kwargs: Any) -> Result:
    """Run ``fn`` and fold any error into an ``Err``.

    Domain errors keep their message. Anything else is logged with its
    traceback and reported as a store failure with ``failure`` (or the default
    StoreError text) as the client message.
    """
    try:
        return Ok(fn(*args, **kwargs))
    except StoreError as exc:
        log.error("%s failed: %s", getattr(fn, "__name__", fn), exc, exc_info=True)
        return Err(kind=ErrorKind.STORE, message=failure or exc.message)
    except QuillError as exc:
        log.info("%s rejected (%s): %s", getattr(fn, "__name__", fn), exc.kind.value, exc.message)
        return Err.from_error(exc)
    except Exception:
        log.exception("%s raised unexpectedly", getattr(fn, "__name__", fn))
        return Err(kind=ErrorKind.STORE, message=failure or StoreError.default_message)
