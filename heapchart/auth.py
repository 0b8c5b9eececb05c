"""Password hashing and the logged-in user's session state.

The session itself is a signed cookie handled by Starlette's SessionMiddleware;
all it holds is the user's id.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

import bcrypt
from fastapi import Depends, Request
from sqlmodel import Session

from .db import get_session
from .models import User
from .paths import DASHBOARD, LOGIN


USER_ID = "uid"


log = logging.getLogger(__name__)


class RedirectTo(Exception):
    """Raised from handlers and dependencies to answer with a 303 redirect."""

    def __init__(self, url: str, status_code: int = 303):
        super().__init__(url)
        self.url = url
        self.status_code = status_code


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("ascii")


def check_password(password: str, secret_hash: Optional[str]) -> bool:
    if not secret_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), secret_hash.encode("ascii"))
    except ValueError:
        # Malformed stored hash, or a password bcrypt refuses outright.
        return False


def log_in(request: Request, user: User) -> None:
    request.session[USER_ID] = user.id


def log_out(request: Request) -> None:
    request.session.pop(USER_ID, None)


def current_user(request: Request, session: Session) -> Optional[User]:
    user_id = request.session.get(USER_ID)
    if user_id is None:
        return None
    return session.get(User, user_id)


def require_user(request: Request, session: Session = Depends(get_session)) -> User:
    user = current_user(request, session)
    if user is None:
        # Covers deleted users whose cookie still names them.
        log_out(request)
        raise RedirectTo(LOGIN)
    request.state.user = user
    return user


def require_anonymous(request: Request, session: Session = Depends(get_session)) -> None:
    """For pages like /login that make no sense once logged in."""
    if current_user(request, session) is not None:
        raise RedirectTo(DASHBOARD)


def assert_local_referrer(request: Request) -> str:
    """Refuse to act on links that weren't followed from this site.

    Returns the referrer so handlers can send the user back to it.
    """
    referrer = request.headers.get("referer")
    if not referrer:
        raise RedirectTo(DASHBOARD)
    if urlsplit(referrer).hostname != request.url.hostname:
        log.warning("refusing off-site request to %s from %s", request.url.path, referrer)
        raise RedirectTo(referrer)
    return referrer
