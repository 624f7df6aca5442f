# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

PAGE_SIZE = 10

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_page(raw: object) -> int:
    """Parse a ``?page=`` value. Absent, non-numeric or non-positive → 1.

    Only a leading decimal integer is read (``"3abc"`` → 3, ``"0x10"`` → 0 → 1).
    """
    if raw is None:
        return 1
    m = _LEADING_INT.match(str(raw))
    if not m:
        return 1
    page = int(m.group(1))
    return page if page > 0 else 1


@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int
    offset: int
    prev: Optional[int]
    next: Optional[int]


def paginate(page: int, total: int, page_size: int = PAGE_SIZE) -> Pagination:
    page = page if page > 0 else 1
    offset = (page - 1) * page_size
    return Pagination(
        page=page,
        page_size=page_size,
        offset=offset,
        prev=page - 1 if page > 1 else None,
        next=page + 1 if total > offset + page_size else None,
    )
