from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from . import paths
from .auth import assert_local_referrer
from .models import Floor, Library
from .natural import COMPARATORS, natsorted
from .utils import clean, parse_number, path_id_loader


log = logging.getLogger(__name__)


def build_floor_router(
    *,
    templates: Any,
    meta_func: Callable[[Request], dict[str, Any]],
    get_session_dep: Callable[[], Session],
) -> APIRouter:
    """Floor pages: list, view, create/edit, delete, (un)assign to a library."""

    r = APIRouter()
    load_floor = path_id_loader(Floor, "floor_id", get_session_dep)

    def render(request: Request, name: str, **context: Any):
        return templates.TemplateResponse(request, name, {**context, **meta_func(request)})

    @r.get(paths.FLOOR_LIST, response_class=HTMLResponse)
    def floor_list(request: Request, session: Session = Depends(get_session_dep)):
        floors = session.exec(select(Floor).options(selectinload(Floor.library))).all()
        return render(request, "floors.html", floors=natsorted(floors, COMPARATORS["floors"]))

    @r.get(paths.FLOOR_VIEW, response_class=HTMLResponse)
    def floor_view(request: Request, floor: Optional[Floor] = Depends(load_floor)):
        if floor is None:
            return RedirectResponse(url=paths.FLOOR_CREATE, status_code=301)
        return render(request, "floors_view.html", floor=floor)

    @r.get(paths.FLOOR_EDIT, response_class=HTMLResponse)
    def floor_edit_page(request: Request, floor: Optional[Floor] = Depends(load_floor)):
        return render(request, "floors_edit.html", floor=floor)

    @r.post(paths.FLOOR_EDIT)
    def floor_edit(
        name: Optional[str] = Form(None),
        directions: Optional[str] = Form(None),
        order: Optional[str] = Form(None),
        floor: Optional[Floor] = Depends(load_floor),
        session: Session = Depends(get_session_dep),
    ):
        name = clean(name)
        if name is None:
            raise HTTPException(400, "name is required")
        order_number = parse_number(order, "floor order")

        taken = session.exec(select(Floor).where(Floor.name == name)).first()
        if taken is not None and taken is not floor:
            raise HTTPException(400, f"floor name {name!r} unavailable")

        if floor is None:
            floor = Floor(name=name)
        floor.name = name
        floor.directions = clean(directions)
        floor.order = order_number
        session.add(floor)
        session.commit()

        return RedirectResponse(url=paths.FLOOR_LIST, status_code=303)

    @r.get(paths.FLOOR_DELETE, response_class=HTMLResponse)
    def floor_delete_page(request: Request, floor: Optional[Floor] = Depends(load_floor)):
        if floor is None:
            raise HTTPException(400, "cannot delete nonexistent floor")
        return render(request, "floors_delete.html", floor=floor)

    @r.post(paths.FLOOR_DELETE)
    def floor_delete(
        confirmation: str = Form(""),
        floor: Optional[Floor] = Depends(load_floor),
        session: Session = Depends(get_session_dep),
    ):
        if floor is None:
            raise HTTPException(400, "cannot delete nonexistent floor")

        if confirmation != "confirmed!":
            return RedirectResponse(url=paths.FLOOR_DELETE.format(floor_id=floor.id), status_code=303)

        name = floor.name
        session.delete(floor)
        session.commit()

        log.info("deleted floor %r", name)
        return RedirectResponse(url=paths.FLOOR_LIST, status_code=303)

    @r.get(paths.FLOOR_ASSIGN, response_class=HTMLResponse)
    def floor_assign_page(
        request: Request,
        floor: Optional[Floor] = Depends(load_floor),
        session: Session = Depends(get_session_dep),
    ):
        if floor is None:
            raise HTTPException(400, "cannot reassign nonexistent floor")

        libraries = natsorted(session.exec(select(Library)).all(), COMPARATORS["names"])
        return render(request, "floors_assign.html", floor=floor, libraries=libraries)

    @r.post(paths.FLOOR_ASSIGN)
    def floor_assign(
        library: Optional[str] = Form(None),
        floor: Optional[Floor] = Depends(load_floor),
        session: Session = Depends(get_session_dep),
    ):
        if floor is None:
            raise HTTPException(400, "cannot reassign nonexistent floor")

        library_id = parse_number(library, "library id")
        if library_id is None or session.get(Library, library_id) is None:
            raise HTTPException(400, f"cannot assign to invalid library id {library!r}")

        floor.library_id = library_id
        session.add(floor)
        session.commit()

        return RedirectResponse(url=paths.FLOOR_LIST, status_code=303)

    @r.get(paths.FLOOR_UNASSIGN)
    def floor_unassign(
        request: Request,
        floor: Optional[Floor] = Depends(load_floor),
        session: Session = Depends(get_session_dep),
    ):
        # Mutating on GET (unassigning isn't worth a confirmation page), so
        # make sure this isn't an off-site hotlink.
        referrer = assert_local_referrer(request)

        if floor is None:
            raise HTTPException(400, "cannot unassign nonexistent floor")

        floor.library_id = None
        session.add(floor)
        session.commit()

        return RedirectResponse(url=referrer, status_code=303)

    return r
