import asyncio

import pytest

from linkshelf_api.app.core.db import MAX_ROWID
from linkshelf_api.app.core.errors import (
    BadRequest,
    Conflict,
    Forbidden,
    InvalidCredentials,
    NotFound,
    Unauthorized,
)
from linkshelf_api.app.core.security import token_identity
from linkshelf_api.app.schemas.link import LinkCreate, LinkUpdate
from linkshelf_api.app.services.auth_service import AuthService
from linkshelf_api.app.services.link_service import LinkService

from .conftest import race_after_lookup


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def auth(db, settings):
    return AuthService(db, settings)


@pytest.fixture
def links(db):
    return LinkService(db)


def _user_rows(db):
    with db.connection() as conn:
        return [dict(row) for row in conn.execute("SELECT * FROM app_users ORDER BY id")]


# --- AuthService ----------------------------------------------------------


def test_first_login_creates_user(auth, db, settings):
    user, token, created = run(auth.authenticate("a@x.com", "p", "Alice"))
    assert created is True
    assert user.email == "a@x.com"
    assert user.display_name == "Alice"
    assert token_identity(token, settings) == "a@x.com"
    rows = _user_rows(db)
    assert len(rows) == 1
    assert rows[0]["password_hash"] == "148de9c5a7a44d19e56cd9ae1a554bf67847afb0c58f6e12fa29ac7ddfca9940"


def test_second_login_reuses_user(auth, db):
    first, _, _ = run(auth.authenticate("a@x.com", "p"))
    second, _, created = run(auth.authenticate("a@x.com", "p"))
    assert created is False
    assert second.id == first.id
    assert len(_user_rows(db)) == 1


def test_wrong_password_does_not_touch_user(auth, db):
    run(auth.authenticate("a@x.com", "p"))
    before = _user_rows(db)
    with pytest.raises(InvalidCredentials):
        run(auth.authenticate("a@x.com", "wrong"))
    assert _user_rows(db) == before


@pytest.mark.parametrize("email,password", [(None, "p"), ("a@x.com", None), ("", "p"), ("a@x.com", "")])
def test_missing_credentials(auth, db, email, password):
    with pytest.raises(BadRequest):
        run(auth.authenticate(email, password))
    assert _user_rows(db) == []


def test_email_registered_concurrently_is_conflict(auth, db, monkeypatch):
    def register_same_email(conn):
        conn.execute(
            "INSERT INTO app_users (email, password_hash) VALUES (?, ?)", ("a@x.com", "other")
        )

    race_after_lookup(monkeypatch, db, "app_users", register_same_email)
    with pytest.raises(Conflict):
        run(auth.authenticate("a@x.com", "p"))


def test_login_rejects_unencodable_text(auth, db):
    with pytest.raises(BadRequest):
        run(auth.authenticate("a@x.com", "\ud800"))
    with pytest.raises(BadRequest):
        run(auth.authenticate("a@x.com", "p", "Al\udcffce"))
    assert _user_rows(db) == []


# --- LinkService ----------------------------------------------------------


def _create(links, owner="a@x.com", category="games", label="Foo", url="http://f"):
    return run(links.create_link(LinkCreate(category=category, label=label, url=url), owner))


def test_create_link_returns_stored_row(links):
    link = _create(links)
    assert link.id == 1
    assert link.owner == "a@x.com"
    assert (link.category, link.label, link.url) == ("games", "Foo", "http://f")
    assert link.created_at


def test_create_link_requires_identity(links):
    with pytest.raises(Unauthorized):
        run(links.create_link(LinkCreate(category="c", label="l", url="u"), None))


@pytest.mark.parametrize("missing", ["category", "label", "url"])
def test_create_link_requires_fields(links, missing):
    fields = {"category": "c", "label": "l", "url": "u"}
    fields[missing] = ""
    with pytest.raises(BadRequest):
        run(links.create_link(LinkCreate(**fields), "a@x.com"))


def test_list_filters_by_exact_category(links):
    _create(links, category="games")
    _create(links, category="Games")
    _create(links, category="movies")
    items = run(links.list_links("games"))
    assert [item.category for item in items] == ["games"]
    assert len(run(links.list_links())) == 3


def test_list_orders_by_creation_time(links, db):
    with db.connection() as conn:
        conn.executemany(
            "INSERT INTO custom_links (category, label, url, owner, created_at) VALUES (?, ?, ?, ?, ?)",
            [
                ("c", "newest", "u", "o", "2024-03-01 00:00:00"),
                ("c", "oldest", "u", "o", "2024-01-01 00:00:00"),
                ("c", "middle", "u", "o", "2024-02-01 00:00:00"),
            ],
        )
    assert [item.label for item in run(links.list_links())] == ["oldest", "middle", "newest"]


def test_update_applies_only_supplied_fields(links):
    link = _create(links)
    updated = run(links.update_link(link.id, LinkUpdate(label="Bar", url=""), "a@x.com"))
    assert updated.label == "Bar"
    assert updated.url == "http://f"
    assert updated.category == "games"


def test_update_requires_a_field(links):
    link = _create(links)
    with pytest.raises(BadRequest):
        run(links.update_link(link.id, LinkUpdate(), "a@x.com"))


def test_update_checks_existence_then_owner(links):
    link = _create(links)
    with pytest.raises(NotFound):
        run(links.update_link(999, LinkUpdate(label="x"), "a@x.com"))
    with pytest.raises(Unauthorized):
        run(links.update_link(link.id, LinkUpdate(label="x"), None))
    with pytest.raises(Forbidden):
        run(links.update_link(link.id, LinkUpdate(label="x"), "b@x.com"))
    assert run(links.list_links())[0].label == "Foo"


def test_delete_by_owner(links):
    link = _create(links)
    with pytest.raises(Forbidden):
        run(links.delete_link(link.id, "b@x.com"))
    run(links.delete_link(link.id, "a@x.com"))
    assert run(links.list_links()) == []


def test_delete_missing_link_is_not_found_for_anyone(links):
    for identity in ["a@x.com", None]:
        with pytest.raises(NotFound):
            run(links.delete_link(42, identity))


@pytest.mark.parametrize("link_id", [0, -1, MAX_ROWID + 1, 10 ** 20])
def test_out_of_range_id_is_not_found(links, link_id):
    _create(links)
    with pytest.raises(NotFound):
        run(links.update_link(link_id, LinkUpdate(label="x"), "a@x.com"))
    with pytest.raises(NotFound):
        run(links.delete_link(link_id, "a@x.com"))


def test_link_fields_must_be_encodable(links):
    with pytest.raises(BadRequest):
        run(links.create_link(LinkCreate(category="c", label="\ud800", url="u"), "a@x.com"))
    link = _create(links)
    with pytest.raises(BadRequest):
        run(links.update_link(link.id, LinkUpdate(url="http://\udc80"), "a@x.com"))
    with pytest.raises(BadRequest):
        run(links.list_links("\ud800"))
    assert [item.label for item in run(links.list_links())] == ["Foo"]


def _delete_after_owner_check(monkeypatch):
    real_check = LinkService._check_owner

    def check_then_delete(self, conn, link_id, identity):
        real_check(self, conn, link_id, identity)
        conn.execute("DELETE FROM custom_links WHERE id = ?", (link_id,))

    monkeypatch.setattr(LinkService, "_check_owner", check_then_delete)


def test_update_of_link_deleted_after_owner_check_is_not_found(links, monkeypatch):
    link = _create(links)
    _delete_after_owner_check(monkeypatch)
    with pytest.raises(NotFound):
        run(links.update_link(link.id, LinkUpdate(label="x"), "a@x.com"))


def test_delete_of_link_deleted_after_owner_check_is_not_found(links, monkeypatch):
    link = _create(links)
    _delete_after_owner_check(monkeypatch)
    with pytest.raises(NotFound):
        run(links.delete_link(link.id, "a@x.com"))
