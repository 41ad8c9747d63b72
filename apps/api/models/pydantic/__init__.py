"""
Pydantic 2 request models for the collections service.

Schema-management bodies are validated here before they reach the
SchemaStore; unknown fields are rejected.
"""

# flake8: noqa: E501


from .base import RequestModel, UpdateRequestModel
from .common import ListQuery, SortOrder
from .schema import (
    CreateFieldRequest,
    CreatePermissionRequest,
    CreateRelationshipRequest,
    CreateTableRequest,
    FieldOptionModel,
    InferFieldsRequest,
    UpdateFieldRequest,
    UpdatePermissionRequest,
    UpdateTableRequest,
    ValidationRulesModel,
)

__all__ = [
    "RequestModel",
    "UpdateRequestModel",
    "ListQuery",
    "SortOrder",
    "CreateFieldRequest",
    "CreatePermissionRequest",
    "CreateRelationshipRequest",
    "CreateTableRequest",
    "FieldOptionModel",
    "InferFieldsRequest",
    "UpdateFieldRequest",
    "UpdatePermissionRequest",
    "UpdateTableRequest",
    "ValidationRulesModel",
]
