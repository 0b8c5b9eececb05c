from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlmodel import Session, select

from . import paths
from .models import Floor, Library
from .natural import compare_floors, natsorted
from .utils import clean, parse_number, path_id_loader, to_int


_FLOOR_FIELD_RE = re.compile(r"floor-([0-9]+)")


log = logging.getLogger(__name__)


async def floor_order_fields(request: Request) -> list[tuple[int, str]]:
    """The (floor id, order) pairs from a reorganize form's `floor-<id>` fields."""
    form = await request.form()
    fields = []
    for key, value in form.multi_items():
        m = _FLOOR_FIELD_RE.fullmatch(key.strip().lower())
        if not m or not isinstance(value, str):
            continue
        floor_id = to_int(m.group(1))
        if floor_id is None:
            raise HTTPException(400, f"cannot reorganize nonexistent floor {key!r}")
        fields.append((floor_id, value))
    return fields


def build_library_router(
    *,
    templates: Any,
    meta_func: Callable[[Request], dict[str, Any]],
    get_session_dep: Callable[[], Session],
) -> APIRouter:
    """Library pages: list, view, create/edit, delete, reorganize floors.

    Routes given the creation id ("new") instead of a real id receive None as
    their library.
    """

    r = APIRouter()
    load_library = path_id_loader(Library, "library_id", get_session_dep)

    def render(request: Request, name: str, **context: Any):
        return templates.TemplateResponse(request, name, {**context, **meta_func(request)})

    @r.get(paths.LIBRARY_LIST, response_class=HTMLResponse)
    def library_list(request: Request, session: Session = Depends(get_session_dep)):
        libraries = natsorted(session.exec(select(Library)).all(), "names")
        return render(request, "libraries.html", libraries=libraries)

    @r.get(paths.LIBRARY_VIEW, response_class=HTMLResponse)
    def library_view(request: Request, library: Optional[Library] = Depends(load_library)):
        if library is None:
            return RedirectResponse(url=paths.LIBRARY_CREATE, status_code=301)

        floors = natsorted(library.floors, compare_floors)
        return render(request, "libraries_view.html", library=library, floors=floors)

    @r.get(paths.LIBRARY_EDIT, response_class=HTMLResponse)
    def library_edit_page(request: Request, library: Optional[Library] = Depends(load_library)):
        return render(request, "libraries_edit.html", library=library)

    @r.post(paths.LIBRARY_EDIT)
    def library_edit(
        name: Optional[str] = Form(None),
        library: Optional[Library] = Depends(load_library),
        session: Session = Depends(get_session_dep),
    ):
        name = clean(name)
        if name is None:
            raise HTTPException(400, "name is required")

        taken = session.exec(select(Library).where(Library.name == name)).first()
        if taken is not None and taken is not library:
            raise HTTPException(400, f"library name {name!r} unavailable")

        if library is None:
            library = Library(name=name)
        else:
            library.name = name
        session.add(library)
        session.commit()

        return RedirectResponse(url=paths.LIBRARY_LIST, status_code=303)

    @r.get(paths.LIBRARY_DELETE, response_class=HTMLResponse)
    def library_delete_page(request: Request, library: Optional[Library] = Depends(load_library)):
        if library is None:
            raise HTTPException(400, "cannot delete nonexistent library")
        return render(request, "libraries_delete.html", library=library)

    @r.post(paths.LIBRARY_DELETE)
    def library_delete(
        confirmation: str = Form(""),
        cascade: str = Form(""),
        library: Optional[Library] = Depends(load_library),
        session: Session = Depends(get_session_dep),
    ):
        if library is None:
            raise HTTPException(400, "cannot delete nonexistent library")

        if confirmation != "confirmed!":
            # Back to the confirmation page via GET
            return RedirectResponse(url=paths.LIBRARY_DELETE.format(library_id=library.id), status_code=303)

        name = library.name
        floors = session.exec(select(Floor).where(Floor.library_id == library.id)).all()
        for floor in floors:
            if cascade == "on":
                session.delete(floor)
            else:
                floor.library_id = None
                session.add(floor)
        session.delete(library)
        session.commit()

        log.info(
            "deleted library %r (%d floors %s)",
            name,
            len(floors),
            "deleted" if cascade == "on" else "unassigned",
        )
        return RedirectResponse(url=paths.LIBRARY_LIST, status_code=303)

    @r.get(paths.LIBRARY_REORGANIZE, response_class=HTMLResponse)
    def library_reorganize_page(request: Request, library: Optional[Library] = Depends(load_library)):
        if library is None:
            raise HTTPException(400, "cannot reorganize nonexistent library")

        floors = natsorted(library.floors, compare_floors)
        return render(request, "libraries_reorganize.html", library=library, floors=floors)

    @r.post(paths.LIBRARY_REORGANIZE)
    def library_reorganize(
        fields: list[tuple[int, str]] = Depends(floor_order_fields),
        library: Optional[Library] = Depends(load_library),
        session: Session = Depends(get_session_dep),
    ):
        if library is None:
            raise HTTPException(400, "cannot reorganize nonexistent library")

        library_id, name = library.id, library.name
        # Nothing is committed unless every field is valid.
        for floor_id, value in fields:
            floor = session.get(Floor, floor_id)
            if floor is None:
                raise HTTPException(400, f"cannot reorganize nonexistent floor {floor_id}")

            floor.order = parse_number(value, "floor order")
            session.add(floor)
        session.commit()

        log.info("reorganized %d floors of library %r", len(fields), name)
        return RedirectResponse(url=paths.LIBRARY_VIEW.format(library_id=library_id), status_code=303)

    return r
