"""
Pydantic 2 base classes shared by all request models.

- RequestModel: strict request bodies that reject unknown fields
- UpdateRequestModel: partial updates that refuse ``null`` for required columns
"""

# flake8: noqa: E501


from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator


class RequestModel(BaseModel):
    """
    Base class for request bodies.

    Unknown keys are rejected so that typos and immutable attributes
    (such as ``table_name`` on updates) surface as 400 errors instead of
    being silently dropped.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        populate_by_name=True,
    )


class UpdateRequestModel(RequestModel):
    """
    Base class for partial update bodies.

    Every attribute is optional so that omitted keys are left untouched.
    Keys listed in ``non_nullable`` map to NOT NULL columns and may be
    omitted but not sent as ``null``.
    """

    non_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def reject_explicit_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulls = [key for key in cls.non_nullable if key in data and data[key] is None]
            if nulls:
                raise ValueError(f"{', '.join(nulls)} cannot be null")
        return data
