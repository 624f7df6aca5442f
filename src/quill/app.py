# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import secrets
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from quill.auth.session import CookieSigner, SessionStore
from quill.auth.users import authenticate, register
from quill.config import Settings
from quill.core.errors import ErrorKind
from quill.core.result import Err, Result, capture
from quill.infra.data_store import DataStore
from quill.logging import get_logger
from quill.permissions import (
    CurrentUser,
    current_user_optional,
    load_user_from_request,
    require_user,
    session_id_from_request,
)
from quill.services.post_service import (
    create_post,
    delete_post,
    edit_post,
    get_owned_post,
    get_post,
    load_feed,
)

log = get_logger(__name__)

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
router = APIRouter()


def _render(request: Request, template_name: str, ctx: Optional[dict] = None, status_code: int = 200):
    """TemplateResponse wrapper injecting the current user."""
    base_ctx = {"current_user": getattr(request.state, "user", None), "error": ""}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _render_err(request: Request, template_name: str, err: Err, ctx: Optional[dict] = None):
    return _render(request, template_name, {**(ctx or {}), "error": err.message}, status_code=err.http_status)


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


async def _read_payload(request: Request) -> dict:
    """Form fields from urlencoded/multipart bodies, or a JSON object."""
    ctype = request.headers.get("content-type", "")
    if ctype.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    form = await request.form()
    return {str(k): ("" if v is None else str(v)) for k, v in form.items()}


def _store(request: Request) -> DataStore:
    return request.app.state.store


# ------------------ Routes ------------------


@router.get("/", response_class=HTMLResponse)
def feed(request: Request, page: Optional[str] = None):
    settings: Settings = request.app.state.settings
    res: Result = capture(
        load_feed, _store(request), page, page_size=settings.page_size, failure="Error fetching posts."
    )
    if not res.ok:
        return _render_err(request, "main.html", res, {"posts": [], "pagination": None})
    return _render(request, "main.html", {"posts": res.value.posts, "pagination": res.value.pagination})


@router.get("/register", response_class=HTMLResponse)
def register_get(request: Request):
    return _render(request, "register.html")


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request):
    return _render(request, "login.html")


@router.get("/create-post", response_class=HTMLResponse)
def create_post_get(request: Request, user: Optional[CurrentUser] = Depends(current_user_optional)):
    if user is None:
        return _see_other("/login")
    return _render(request, "create_post.html")


@router.get("/post/{post_id}", response_class=HTMLResponse)
def post_view(request: Request, post_id: str, user: Optional[CurrentUser] = Depends(current_user_optional)):
    res = capture(get_post, _store(request), post_id, failure="Error fetching post.")
    if not res.ok:
        return _render_err(request, "error.html", res)
    return _render(request, "post.html", {"post": res.value, "user_id": user.id if user else None})


@router.get("/edit-post/{post_id}", response_class=HTMLResponse)
def edit_post_get(request: Request, post_id: str, user: CurrentUser = Depends(require_user)):
    res = capture(get_owned_post, _store(request), post_id, user.id, failure="Error fetching post for editing.")
    if not res.ok:
        return _render_err(request, "edit_post.html", res, {"post": None, "post_id": post_id})
    return _render(request, "edit_post.html", {"post": res.value, "post_id": post_id})


@router.get("/logout")
def logout(request: Request):
    state = request.app.state
    try:
        sid = session_id_from_request(request)
        if sid:
            state.sessions.destroy(sid)
    except Exception:
        log.exception("logout failed")
        return _see_other("/")
    resp = _see_other("/login")
    resp.delete_cookie(state.settings.cookie_name)
    return resp


@router.post("/register")
async def register_post(request: Request):
    data = await _read_payload(request)
    res = await run_in_threadpool(
        capture,
        register,
        _store(request),
        data.get("username", ""),
        data.get("email", ""),
        data.get("password", ""),
        failure="Error registering user.",
    )
    if not res.ok:
        echo = {"username": data.get("username", ""), "email": data.get("email", "")}
        return _render_err(request, "register.html", res, echo)
    return _see_other("/login")


@router.post("/login")
async def login_post(request: Request):
    state = request.app.state
    data = await _read_payload(request)
    credential = data.get("credential", "")
    res = await run_in_threadpool(
        capture, authenticate, _store(request), credential, data.get("password", ""), failure="Error logging in."
    )
    if not res.ok:
        if res.kind is ErrorKind.AUTH:
            log.warning("failed login attempt")
        return _render_err(request, "login.html", res, {"credential": credential})

    old_sid = session_id_from_request(request)
    if old_sid:
        state.sessions.destroy(old_sid)
    sid = state.sessions.create(res.value.id)
    resp = _see_other("/")
    resp.set_cookie(
        state.settings.cookie_name,
        state.signer.sign(sid),
        max_age=state.settings.session_max_age,
        **state.settings.cookie_settings(),
    )
    return resp


@router.post("/create-post")
async def create_post_post(request: Request, user: Optional[CurrentUser] = Depends(current_user_optional)):
    if user is None:
        return _see_other("/login")
    data = await _read_payload(request)
    res = await run_in_threadpool(
        capture, create_post, _store(request), user.id, data.get("content", ""),
        failure="Error creating post."
    )
    if not res.ok:
        return _render_err(request, "create_post.html", res, {"content": data.get("content", "")})
    return _see_other("/")


@router.post("/edit-post/{post_id}")
async def edit_post_post(request: Request, post_id: str, user: Optional[CurrentUser] = Depends(current_user_optional)):
    if user is None:
        return _see_other("/login")
    data = await _read_payload(request)
    content = data.get("content", "")
    res = await run_in_threadpool(
        capture, edit_post, _store(request), post_id, user.id, content, failure="Error updating post."
    )
    if not res.ok:
        ctx = {
            "post": None,
            "post_id": post_id,
            "content": content,
            "editable": res.kind is ErrorKind.VALIDATION,
        }
        return _render_err(request, "edit_post.html", res, ctx)
    return _see_other("/")


@router.delete("/post/{post_id}")
def delete_post_route(request: Request, post_id: str, user: Optional[CurrentUser] = Depends(current_user_optional)):
    if user is None:
        return PlainTextResponse("login required", status_code=401)
    res = capture(delete_post, _store(request), post_id, user.id, failure="Error deleting post")
    if not res.ok:
        return PlainTextResponse(res.message, status_code=res.http_status)
    return JSONResponse({"message": "post deleted"}, status_code=200)


# ------------------ Factory ------------------


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[DataStore] = None,
    sessions: Optional[SessionStore] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    secret = settings.secret_key
    if not secret:
        log.warning("SECRET_KEY not set; using a random key (sessions end on restart)")
        secret = secrets.token_urlsafe(32)

    app = FastAPI(title="Quill")
    app.state.settings = settings
    app.state.store = store or DataStore(settings.resolved_users_path, settings.resolved_posts_path)
    app.state.sessions = sessions or SessionStore(max_age=settings.session_max_age)
    app.state.signer = CookieSigner(secret, salt=settings.session_salt, max_age=settings.session_max_age)

    @app.middleware("http")
    async def _auth_middleware(request: Request, call_next):
        request.state.user = await run_in_threadpool(load_user_from_request, request)
        return await call_next(request)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return PlainTextResponse("Internal Server Error.", status_code=500)

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.mount("/css", StaticFiles(directory=str(STATIC_DIR / "css")), name="css")
    app.mount("/js", StaticFiles(directory=str(STATIC_DIR / "js")), name="js")
    app.mount("/images", StaticFiles(directory=str(STATIC_DIR / "images")), name="images")
    app.include_router(router)

    log.info("quill ready (data: %s, %s)", settings.resolved_users_path, settings.resolved_posts_path)
    return app
