"""
Application package for the LinkShelf bookmarking service.

``core`` holds configuration, logging, security and the database
layer; ``services`` holds the business logic; ``schemas`` the request
and response models; ``api`` the HTTP routes.
"""

from .main import app  # noqa: F401
