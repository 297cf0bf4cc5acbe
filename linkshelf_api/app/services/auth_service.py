"""
Business logic for authentication.

Login doubles as registration: the first login with an unknown email
creates the account with the supplied password.  Later logins must
present the same password.
"""

import logging
import sqlite3
from typing import Optional, Tuple

from ..core.config import Settings
from ..core.db import Database, ensure_bindable
from ..core.errors import BadRequest, Conflict, InvalidCredentials
from ..core.security import create_access_token, hash_password, verify_password
from ..schemas.user import UserRead

logger = logging.getLogger(__name__)


class AuthService:
    """Verify credentials against ``app_users`` and issue tokens."""

    def __init__(self, db: Database, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    def issue_token(self, email: str) -> str:
        return create_access_token({"email": email}, config=self.settings)

    async def authenticate(
        self,
        email: Optional[str],
        password: Optional[str],
        display_name: Optional[str] = None,
    ) -> Tuple[UserRead, str, bool]:
        """Log in, creating the account on first use.

        Returns ``(user, token, created)``.  Raises ``BadRequest`` when
        email or password is missing, ``InvalidCredentials`` on a
        password mismatch and ``Conflict`` if another request created
        the same email concurrently.
        """
        if not email or not password:
            raise BadRequest("email and password required")
        ensure_bindable(email=email, password=password, display_name=display_name)

        with self.db.connection() as conn:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, email, password_hash, display_name FROM app_users WHERE email = ? LIMIT 1",
                (email,),
            ).fetchone()
            if row is None:
                try:
                    cursor.execute(
                        "INSERT INTO app_users (email, password_hash, display_name) VALUES (?, ?, ?)",
                        (email, hash_password(password), display_name or None),
                    )
                except sqlite3.IntegrityError:
                    raise Conflict("email already registered")
                user = UserRead(id=cursor.lastrowid, email=email, display_name=display_name or None)
                created = True
                logger.info("Created account %s", email)
            else:
                if not verify_password(password, row["password_hash"]):
                    logger.info("Rejected login for %s", email)
                    raise InvalidCredentials()
                user = UserRead(id=row["id"], email=row["email"], display_name=row["display_name"])
                created = False

        return user, self.issue_token(user.email), created
