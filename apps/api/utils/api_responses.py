"""
Standard API response builders.

Every view returns a ``(response, status_code)`` tuple built here so the
collection and schema endpoints share one envelope shape:

    {"success": true, "data": ...}
    {"success": true, "message": "..."}
    {"error": "..."}
"""

# flake8: noqa: E501


from typing import Any, Iterable

from flask import jsonify


class ApiResponse:
    """Factory for JSON responses with consistent envelopes."""

    @staticmethod
    def success(data: Any, status_code: int = 200, **extra: Any) -> tuple[Any, int]:
        """
        Wrap ``data`` in a success envelope.

        Args:
            data: JSON-serialisable payload
            status_code: HTTP status (default 200)
            **extra: Additional top-level keys (e.g. ``id``)

        Example:
            return ApiResponse.success(record, id=record["id"])
        """
        body = {"success": True, "data": data}
        body.update(extra)
        return jsonify(body), status_code

    @staticmethod
    def created(data: Any, **extra: Any) -> tuple[Any, int]:
        """Success envelope with 201 Created."""
        return ApiResponse.success(data, 201, **extra)

    @staticmethod
    def message(message: str, status_code: int = 200) -> tuple[Any, int]:
        """Success envelope carrying only a human-readable message."""
        return jsonify({"success": True, "message": message}), status_code

    @staticmethod
    def raw(payload: Any, status_code: int = 200) -> tuple[Any, int]:
        """Return ``payload`` as-is, without an envelope."""
        return jsonify(payload), status_code

    @staticmethod
    def error(message: str, status_code: int = 400, **extra: Any) -> tuple[Any, int]:
        """
        Error envelope.

        Args:
            message: Error message shown to the caller
            status_code: HTTP status
            **extra: Additional keys (e.g. ``errors`` list)
        """
        body = {"error": message}
        body.update(extra)
        return jsonify(body), status_code

    @staticmethod
    def bad_request(message: str = "Bad request") -> tuple[Any, int]:
        return ApiResponse.error(message, 400)

    @staticmethod
    def validation_error(messages: Iterable[str], status_code: int = 400) -> tuple[Any, int]:
        """Error envelope listing every validation message."""
        messages = list(messages)
        return ApiResponse.error("; ".join(messages) or "Validation failed", status_code, errors=messages)
