"""
Pydantic 2 common models for collection listing.

Provides the query-string contract of ``GET /api/<collection>``: page, limit,
search, sortBy and sortOrder, with the defaults the list endpoint documents.
"""

# flake8: noqa: E501


from typing import Literal

from pydantic import ConfigDict, Field, field_validator

from .base import RequestModel

# Sort order enumeration
SortOrder = Literal["asc", "desc"]


class ListQuery(RequestModel):
    """
    Request model for collection list parameters.

    Fields:
        page: Page number (1-indexed), default 1
        limit: Items per page, default 10, max 1000
        search: Case-insensitive search term, default empty
        sort_by: Field name to sort by (``sortBy``), default ``id``
        sort_order: ``asc`` or ``desc`` (``sortOrder``), default ``desc``
    """

    # Unknown query parameters (cache busters and the like) are ignored
    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, str_strip_whitespace=True
    )

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(default=10, ge=1, le=1000, description="Items per page")
    search: str = Field(default="", max_length=255, description="Search term")
    sort_by: str = Field(
        default="id", alias="sortBy", max_length=255, description="Field to sort by"
    )
    sort_order: SortOrder = Field(
        default="desc", alias="sortOrder", description="Sort order: 'asc' or 'desc'"
    )

    @field_validator("sort_by")
    @classmethod
    def sort_by_defaults_to_id(cls, v: str) -> str:
        """Blank sortBy falls back to the identifier field."""
        return v.strip() or "id"

    @field_validator("sort_order", mode="before")
    @classmethod
    def sort_order_lowercase(cls, v):
        return v.lower() if isinstance(v, str) else v
