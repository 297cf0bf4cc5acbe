"""
FastAPI dependencies that build services from application state.

The ``Database`` and ``Settings`` are created once in ``create_app``;
services are cheap wrappers built per request around them.
"""

from fastapi import Depends, Request

from ..core.db import Database, get_database
from ..services.auth_service import AuthService
from ..services.link_service import LinkService


def get_auth_service(request: Request, db: Database = Depends(get_database)) -> AuthService:
    return AuthService(db, request.app.state.settings)


def get_link_service(db: Database = Depends(get_database)) -> LinkService:
    return LinkService(db)
