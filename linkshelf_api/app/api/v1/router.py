"""
Top-level API router.

``router`` is mounted under ``/api`` by ``main``; the diagnostics
router carries its own absolute paths (``/health`` and ``/api/test``)
and is mounted without a prefix.
"""

from fastapi import APIRouter

from .endpoints import auth, health, links

router = APIRouter()

router.include_router(auth.router, tags=["auth"])
router.include_router(links.router, tags=["links"])

diagnostics_router = health.router
