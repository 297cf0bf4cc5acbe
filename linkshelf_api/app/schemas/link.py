"""
Pydantic schemas for links.

A link is a labelled URL filed under a free-text category and owned by
the email of the user who created it.  Create and update payloads keep
every field optional; ``LinkService`` decides what counts as missing.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class LinkCreate(BaseModel):
    """Schema for creating a link."""

    category: Optional[str] = Field(None, examples=["games"])
    label: Optional[str] = Field(None, examples=["Foo"])
    url: Optional[str] = Field(None, examples=["http://f"])


class LinkUpdate(BaseModel):
    """Schema for updating a link.

    Only non-empty values are applied.
    """

    label: Optional[str] = None
    url: Optional[str] = None
    category: Optional[str] = None


class LinkUpdateById(LinkUpdate):
    """Update payload that carries the link id in the body."""

    id: Optional[int] = None


class LinkDeleteById(BaseModel):
    id: Optional[int] = None


class LinkRead(BaseModel):
    """Schema for reading a link."""

    id: int
    category: str
    label: str
    url: str
    owner: str
    created_at: str


class LinkResponse(BaseModel):
    ok: bool = True
    link: LinkRead


class LinkListResponse(BaseModel):
    ok: bool = True
    items: List[LinkRead]


class Ack(BaseModel):
    ok: bool = True
