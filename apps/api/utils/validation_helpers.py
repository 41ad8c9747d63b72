"""
Request validation utilities for the collections API.

Helpers either return an error response tuple (``None`` on success) or, for
the ``validated_request`` decorator, inject parsed pydantic models into the
view. Pydantic failures become 400 responses listing every problem.
"""

# flake8: noqa: E501


from functools import wraps
from typing import Any, List, Optional, Tuple, Type

from flask import request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .api_responses import ApiResponse


def validate_json_object(data: Any) -> Optional[Tuple[Any, int]]:
    """
    Validate that a request body is a JSON object.

    Returns:
        Error response tuple if validation fails, None if successful

    Example:
        data = request.get_json(silent=True)
        if error := validate_json_object(data):
            return error
    """
    if not isinstance(data, dict):
        return ApiResponse.bad_request("Request body must be a JSON object")
    return None


def pydantic_messages(error: PydanticValidationError) -> List[str]:
    """Flatten pydantic errors into ``"field: message"`` strings."""
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validated_request(
    body_model: Optional[Type[BaseModel]] = None,
    query_model: Optional[Type[BaseModel]] = None,
):
    """
    Decorator parsing the JSON body and/or query string into pydantic models.

    The parsed models are passed to the view as ``body`` and ``query``.

    Example:
        @bp.route("/tables", methods=["POST"])
        @validated_request(body_model=CreateTableRequest)
        async def create_table(body: CreateTableRequest):
            ...
    """

    def decorator(view):
        @wraps(view)
        async def wrapper(*args, **kwargs):
            try:
                if body_model is not None:
                    data = request.get_json(silent=True)
                    if data is None and not request.data:
                        data = {}
                    if error := validate_json_object(data):
                        return error
                    kwargs["body"] = body_model.model_validate(data)
                if query_model is not None:
                    kwargs["query"] = query_model.model_validate(request.args.to_dict())
            except PydanticValidationError as e:
                return ApiResponse.validation_error(pydantic_messages(e), 400)
            return await view(*args, **kwargs)

        return wrapper

    return decorator
