from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from linkshelf_api.app.core.config import Settings
from linkshelf_api.app.core.db import Database
from linkshelf_api.app.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=str(tmp_path / "linkshelf-test.db"),
        secret_key="test-secret",
        pool_size=2,
        pool_timeout=1.0,
    )


@pytest.fixture
def db(settings):
    database = Database.from_settings(settings)
    database.init_db()
    yield database
    database.close()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def login(client, email, password="p", **extra):
    body = {"email": email, "password": password, **extra}
    return client.post("/api/login", json=body)


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token_for(client):
    def _token_for(email, password="p"):
        response = login(client, email, password)
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _token_for


class _FetchedCursor:
    def __init__(self, row):
        self._row = row

    def fetchone(self):
        return self._row


class _RacingCursor:
    def __init__(self, cursor, conn, trigger, pending):
        self._cursor = cursor
        self._conn = conn
        self._trigger = trigger
        self._pending = pending

    def execute(self, sql, params=()):
        self._cursor.execute(sql, params)
        if not self._pending or self._trigger not in sql or not sql.lstrip().startswith("SELECT"):
            return self
        row = self._cursor.fetchone()
        self._pending.pop()(self._conn)
        return _FetchedCursor(row)

    def __getattr__(self, name):
        return getattr(self._cursor, name)


class _RacingConnection:
    def __init__(self, conn, trigger, pending):
        self._conn = conn
        self._trigger = trigger
        self._pending = pending

    def cursor(self):
        return _RacingCursor(self._conn.cursor(), self._conn, self._trigger, self._pending)

    def execute(self, sql, params=()):
        return self.cursor().execute(sql, params)

    def __getattr__(self, name):
        return getattr(self._conn, name)


def race_after_lookup(monkeypatch, db, table, race):
    """Run ``race(conn)`` once, right after the first SELECT from ``table``
    has been read and before the caller sees its result.

    ``race`` gets the same connection, so what it writes lands between the
    caller's read and its next statement, as a concurrent request would.
    """
    real_connection = db.connection
    pending = [race]

    @contextmanager
    def connection():
        with real_connection() as conn:
            yield _RacingConnection(conn, f"FROM {table}", pending)

    monkeypatch.setattr(db, "connection", connection)
