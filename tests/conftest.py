import os

# Must be set before the app (and its engine) are imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET"] = "test-session-secret"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, select

from heapchart.db import engine
from heapchart.main import app
from heapchart.models import Floor, Library, User


USERNAME = "librarian"
PASSWORD = "correct horse battery"


class Store:
    """Direct database access for seeding and checking test data."""

    def add_library(self, name):
        with Session(engine) as s:
            library = Library(name=name)
            s.add(library)
            s.commit()
            return library.id

    def add_floor(self, name, library_id=None, order=None, directions=None):
        with Session(engine) as s:
            floor = Floor(name=name, library_id=library_id, order=order, directions=directions)
            s.add(floor)
            s.commit()
            return floor.id

    def floor(self, floor_id):
        with Session(engine) as s:
            return s.get(Floor, floor_id)

    def library(self, library_id):
        with Session(engine) as s:
            return s.get(Library, library_id)

    def user(self, name):
        with Session(engine) as s:
            return s.exec(select(User).where(User.name == name)).first()


@pytest.fixture
def store():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    return Store()


@pytest.fixture
def client(store):
    with TestClient(app) as c:
        yield c


def _signup(client, username=USERNAME, password=PASSWORD, redundant_password=None):
    return client.post(
        "/signup",
        data={
            "username": username,
            "password": password,
            "redundant_password": password if redundant_password is None else redundant_password,
        },
        follow_redirects=False,
    )


def _login(client, username=USERNAME, password=PASSWORD):
    return client.post("/login", data={"username": username, "password": password}, follow_redirects=False)


@pytest.fixture
def user_client(client):
    assert _signup(client).status_code == 303
    assert _login(client).status_code == 303
    return client


@pytest.fixture
def signup():
    return _signup


@pytest.fixture
def login():
    return _login
