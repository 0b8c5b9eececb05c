from __future__ import annotations

import re
from collections.abc import Callable
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session, SQLModel

from .paths import CREATION_ID


_NUMBER_RE = re.compile(r"[0-9]+")

# Largest value a database INTEGER column holds.
MAX_NUMBER = 2**63 - 1


def clean(value: Optional[str]) -> Optional[str]:
    """Strip form input; an empty field means "no value"."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_number(raw: Optional[str], what: str) -> Optional[int]:
    """Parse an optional non-negative integer field, or fail with 400."""
    raw = clean(raw)
    if raw is None:
        return None
    number = to_int(raw)
    if number is None:
        raise HTTPException(400, f"invalid {what} {raw!r}")
    return number


def to_int(raw: str) -> Optional[int]:
    """Digits within MAX_NUMBER as an int, otherwise None."""
    if not _NUMBER_RE.fullmatch(raw):
        return None
    # Checking length first keeps int() away from absurdly long input.
    digits = raw.lstrip("0") or "0"
    if len(digits) > len(str(MAX_NUMBER)) or int(digits, 10) > MAX_NUMBER:
        return None
    return int(digits, 10)


def path_id_loader(
    model: type[SQLModel], param: str, get_session_dep: Callable[[], Session]
) -> Callable[..., Optional[SQLModel]]:
    """Build a dependency that loads the object named by an id in the path.

    The dependency returns None for the magic creation id ("new"), the object
    for a real id, and fails with 404 for ids that name nothing.
    """
    name = model.__name__.lower()

    def load(request: Request, session: Session = Depends(get_session_dep)) -> Optional[SQLModel]:
        raw = request.path_params[param]
        if raw.lower() == CREATION_ID:
            return None
        if not _NUMBER_RE.fullmatch(raw):
            raise HTTPException(400, f"invalid {name} id")

        object_id = to_int(raw)
        obj = session.get(model, object_id) if object_id is not None else None
        if obj is None:
            raise HTTPException(404, f"there is no {name} with ID {raw!r}")
        return obj

    return load
