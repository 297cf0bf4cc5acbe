"""
Service layer for links.

Anyone may list links.  Creating a link requires an authenticated
identity, which becomes the link's owner; only that owner may later
update or delete it.

Mutations read the owner, then write with the owner repeated in the
``WHERE`` clause.  There is no lock between the two statements: two
concurrent updates of the same row resolve as last-write-wins, and a
row deleted in between is reported as not found.

The methods are ``async`` to match the endpoints, but each one runs its
SQL synchronously on the calling thread.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Dict, List, Optional

from ..core.db import Database, ensure_bindable, valid_rowid
from ..core.errors import BadRequest, Forbidden, NotFound, Unauthorized
from ..schemas.link import LinkCreate, LinkRead, LinkUpdate

logger = logging.getLogger(__name__)

LINK_COLUMNS = "id, category, label, url, owner, created_at"

# Column order used when building UPDATE statements.
UPDATABLE_FIELDS = ("label", "url", "category")


class LinkService:
    """CRUD over ``custom_links`` with owner checks."""

    def __init__(self, db: Database) -> None:
        self.db = db

    @staticmethod
    def _row_to_link(row: sqlite3.Row) -> LinkRead:
        return LinkRead(
            id=row["id"],
            category=row["category"],
            label=row["label"],
            url=row["url"],
            owner=row["owner"],
            created_at=str(row["created_at"]),
        )

    async def list_links(self, category: Optional[str] = None) -> List[LinkRead]:
        """Return all links, oldest first, optionally for one category only."""
        ensure_bindable(category=category)
        with self.db.connection() as conn:
            if category:
                rows = conn.execute(
                    f"SELECT {LINK_COLUMNS} FROM custom_links WHERE category = ? "
                    "ORDER BY created_at ASC, id ASC",
                    (category,),
                ).fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {LINK_COLUMNS} FROM custom_links ORDER BY created_at ASC, id ASC"
                ).fetchall()
        return [self._row_to_link(row) for row in rows]

    async def create_link(self, data: LinkCreate, owner: Optional[str]) -> LinkRead:
        """Insert a link owned by ``owner`` and return the stored row."""
        if not owner:
            raise Unauthorized()
        if not data.category or not data.label or not data.url:
            raise BadRequest("missing fields")
        ensure_bindable(category=data.category, label=data.label, url=data.url)
        with self.db.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO custom_links (category, label, url, owner) VALUES (?, ?, ?, ?)",
                (data.category, data.label, data.url, owner),
            )
            row = cursor.execute(
                f"SELECT {LINK_COLUMNS} FROM custom_links WHERE id = ?",
                (cursor.lastrowid,),
            ).fetchone()
        link = self._row_to_link(row)
        logger.info("Link %s created by %s", link.id, owner)
        return link

    def _check_owner(self, conn: sqlite3.Connection, link_id: int, identity: Optional[str]) -> None:
        if not valid_rowid(link_id):
            raise NotFound()
        row = conn.execute("SELECT owner FROM custom_links WHERE id = ?", (link_id,)).fetchone()
        if row is None:
            raise NotFound()
        if not identity:
            raise Unauthorized()
        if row["owner"] != identity:
            raise Forbidden()

    async def update_link(self, link_id: int, data: LinkUpdate, identity: Optional[str]) -> LinkRead:
        """Apply the non-empty fields of ``data`` to a link the caller owns."""
        values = data.model_dump()
        changes: Dict[str, str] = {
            field: values[field] for field in UPDATABLE_FIELDS if values.get(field)
        }
        if not changes:
            raise BadRequest("nothing to update")
        ensure_bindable(**changes)
        with self.db.connection() as conn:
            cursor = conn.cursor()
            self._check_owner(conn, link_id, identity)
            assignments = ", ".join(f"{field} = ?" for field in changes)
            cursor.execute(
                f"UPDATE custom_links SET {assignments} WHERE id = ? AND owner = ?",
                (*changes.values(), link_id, identity),
            )
            if cursor.rowcount == 0:
                raise NotFound()
            row = cursor.execute(
                f"SELECT {LINK_COLUMNS} FROM custom_links WHERE id = ?",
                (link_id,),
            ).fetchone()
        logger.info("Link %s updated by %s (%s)", link_id, identity, ", ".join(changes))
        return self._row_to_link(row)

    async def delete_link(self, link_id: int, identity: Optional[str]) -> None:
        """Delete a link the caller owns."""
        with self.db.connection() as conn:
            cursor = conn.cursor()
            self._check_owner(conn, link_id, identity)
            cursor.execute(
                "DELETE FROM custom_links WHERE id = ? AND owner = ?",
                (link_id, identity),
            )
            if cursor.rowcount == 0:
                raise NotFound()
        logger.info("Link %s deleted by %s", link_id, identity)
