# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Feed, post view and the author-only create/edit/delete operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from quill.core.errors import AuthorizationError, NotFoundError, ValidationError
from quill.core.pagination import PAGE_SIZE, Pagination, paginate, parse_page
from quill.infra.data_store import DataStore, Post
from quill.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class FeedPage:
    posts: List[Post]
    pagination: Pagination


def load_feed(store: DataStore, raw_page: object = None, *, page_size: int = PAGE_SIZE) -> FeedPage:
    page = parse_page(raw_page)
    total = store.get_post_count()
    pagination = paginate(page, total, page_size)
    posts = store.get_posts(pagination.page_size, pagination.offset)
    return FeedPage(posts=posts, pagination=pagination)


def _post_id(raw: object) -> int:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise NotFoundError() from None


def get_post(store: DataStore, raw_id: object) -> Post:
    post = store.get_post_by_id(_post_id(raw_id))
    if post is None:
        raise NotFoundError()
    return post


def get_owned_post(store: DataStore, raw_id: object, user_id: int) -> Post:
    post = get_post(store, raw_id)
    if post.user_id != user_id:
        raise AuthorizationError()
    return post


def _content(raw: object) -> str:
    content = str(raw or "").strip()
    if not content:
        raise ValidationError("content required")
    return content


def create_post(store: DataStore, user_id: Optional[int], content: object) -> Post:
    if user_id is None:
        # routes redirect before this; kept so no post is stored without an author
        raise AuthorizationError("login required")
    post = store.add_post(user_id, _content(content))
    log.info("post %s created by user %s", post.id, user_id)
    return post


def edit_post(store: DataStore, raw_id: object, user_id: int, content: object) -> Post:
    text = _content(content)
    post = get_owned_post(store, raw_id, user_id)
    if not store.update_post(post.id, user_id, text):
        # author check at the store boundary disagreed (post gone or reassigned meanwhile)
        raise AuthorizationError()
    log.info("post %s edited by user %s", post.id, user_id)
    return post


def delete_post(store: DataStore, raw_id: object, user_id: int) -> int:
    post = get_owned_post(store, raw_id, user_id)
    if not store.delete_post(post.id, user_id):
        raise NotFoundError()
    log.info("post %s deleted by user %s", post.id, user_id)
    return post.id
