from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlmodel import Session, func, select
from starlette.middleware.sessions import SessionMiddleware

from . import paths
from .auth import (
    RedirectTo,
    assert_local_referrer,
    check_password,
    hash_password,
    log_in,
    log_out,
    require_anonymous,
    require_user,
)
from .config import APP_NAME, PASSWORD_MAX_BYTES, PASSWORD_MIN, SESSION_COOKIE, USERNAME_MIN, get_settings
from .db import get_session, init_db
from .floors import build_floor_router
from .libraries import build_library_router
from .models import Floor, Library, User


settings = get_settings()

app = FastAPI(title=APP_NAME)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie=SESSION_COOKIE,
    https_only=settings.https_only,
)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.globals["paths"] = paths


log = logging.getLogger(__name__)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
    except Exception:
        # Without its tables the app can't serve anything, so don't start.
        log.exception("database setup failed")
        raise


@app.exception_handler(RedirectTo)
def redirect_to(request: Request, exc: RedirectTo):
    return RedirectResponse(url=exc.url, status_code=exc.status_code)


def page_title(path: str) -> str | None:
    # "/library/3/edit" -> "Library 3 Edit"
    parts = [p.capitalize() for p in path.split("/") if p]
    return " ".join(parts) or None


def meta(request: Request) -> dict[str, Any]:
    return {
        "app_name": APP_NAME,
        "title": page_title(request.url.path),
        "user": getattr(request.state, "user", None),
    }


# Everything below the account pages needs a logged-in user.
for router in (
    build_library_router(templates=templates, meta_func=meta, get_session_dep=get_session),
    build_floor_router(templates=templates, meta_func=meta, get_session_dep=get_session),
):
    app.include_router(router, dependencies=[Depends(require_user)])


@app.get(paths.DASHBOARD, response_class=HTMLResponse)
def dashboard(
    request: Request,
    user: User = Depends(require_user),
    session: Session = Depends(get_session),
):
    libraries = session.exec(select(func.count(Library.id))).one()
    floors = session.exec(select(func.count(Floor.id))).one()
    unassigned = session.exec(
        select(func.count(Floor.id)).where(Floor.library_id.is_(None))
    ).one()

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"library_count": libraries, "floor_count": floors, "unassigned_count": unassigned, **meta(request)},
    )


#
# Login
#


@app.get(paths.LOGIN, response_class=HTMLResponse, dependencies=[Depends(require_anonymous)])
def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", meta(request))


@app.post(paths.LOGIN, dependencies=[Depends(require_anonymous)])
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    session: Session = Depends(get_session),
):
    if not username or not password:
        raise HTTPException(400, "username and password are required")

    user = session.exec(select(User).where(User.name == username)).first()
    if user is None or not check_password(password, user.secret_hash):
        log.info("failed login for %r", username)
        raise HTTPException(401, "access denied.")

    log_in(request, user)
    log.info("user %r logged in", user.name)
    return RedirectResponse(url=paths.DASHBOARD, status_code=303)


@app.get(paths.LOGOUT)
def logout(request: Request):
    # Only links on the site itself may log the user out.
    assert_local_referrer(request)

    log_out(request)
    return RedirectResponse(url=paths.LOGIN, status_code=303)


#
# Signup
#


@app.get(paths.SIGNUP, response_class=HTMLResponse, dependencies=[Depends(require_anonymous)])
def signup_page(request: Request):
    return templates.TemplateResponse(
        request,
        "signup.html",
        {"username_min": USERNAME_MIN, "password_min": PASSWORD_MIN, **meta(request)},
    )


@app.post(paths.SIGNUP, dependencies=[Depends(require_anonymous)])
def signup(
    username: str = Form(""),
    password: str = Form(""),
    redundant_password: str = Form(""),
    session: Session = Depends(get_session),
):
    if not username:
        raise HTTPException(400, "username is required")
    if len(username) < USERNAME_MIN:
        raise HTTPException(400, f"username must have at least {USERNAME_MIN} characters")
    if session.exec(select(User).where(User.name == username)).first():
        raise HTTPException(400, f"username {username!r} unavailable")

    if password != redundant_password:
        raise HTTPException(400, "passwords do not match")
    if not password:
        raise HTTPException(400, "password is required")
    if len(password) < PASSWORD_MIN:
        raise HTTPException(400, f"password must have at least {PASSWORD_MIN} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise HTTPException(400, f"password must be at most {PASSWORD_MAX_BYTES} bytes")

    session.add(User(name=username, secret_hash=hash_password(password)))
    session.commit()
    log.info("new user %r signed up", username)

    return RedirectResponse(url=paths.LOGIN, status_code=303)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
