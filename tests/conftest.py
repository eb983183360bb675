import pytest

from db import PatchStore, get_session, init_db
from db.engine import dispose
from main import create_app
from tests.factories import bind_session


@pytest.fixture
def session_factory():
    """Fresh in-memory database for each test."""
    init_db("sqlite://")
    yield get_session
    dispose()


@pytest.fixture
def store(session_factory):
    return PatchStore(session_factory)


@pytest.fixture
def session(session_factory):
    s = session_factory()
    bind_session(s)
    yield s
    s.close()
    bind_session(None)


@pytest.fixture
def app():
    app = create_app("sqlite://")
    app.config["TESTING"] = True
    yield app
    dispose()


@pytest.fixture
def client(app):
    """Return a Flask test client."""
    return app.test_client()
