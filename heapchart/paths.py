"""Every path the site serves, defined once.

Paths with an id placeholder are both route patterns for FastAPI and templates
for building links: ``FLOOR_VIEW.format(floor_id=floor.id)``.
"""

LOGIN = "/login"
LOGOUT = "/logout"
SIGNUP = "/signup"
DASHBOARD = "/"

# May appear in place of a numeric id to ask for a new object instead.
CREATION_ID = "new"

LIBRARY_LIST = "/libraries"
LIBRARY_VIEW = "/library/{library_id}"
LIBRARY_EDIT = "/library/{library_id}/edit"
LIBRARY_DELETE = "/library/{library_id}/delete"
LIBRARY_REORGANIZE = "/library/{library_id}/reorganize"
LIBRARY_CREATE = LIBRARY_EDIT.format(library_id=CREATION_ID)

FLOOR_LIST = "/floors"
FLOOR_VIEW = "/floor/{floor_id}"
FLOOR_EDIT = "/floor/{floor_id}/edit"
FLOOR_DELETE = "/floor/{floor_id}/delete"
FLOOR_ASSIGN = "/floor/{floor_id}/assign"
FLOOR_UNASSIGN = "/floor/{floor_id}/unassign"
FLOOR_CREATE = FLOOR_EDIT.format(floor_id=CREATION_ID)
