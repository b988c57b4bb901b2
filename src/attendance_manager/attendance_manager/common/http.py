from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def error_response(message: str, status: int):
    return jsonify({"error": message}), status


def json_body() -> dict[str, Any]:
    """Request JSON object; anything else is a validation error."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON body")
    return data


def query_arg(name: str) -> Optional[str]:
    value = request.args.get(name)
    return value.strip() if value and value.strip() else None


def register_error_handlers(app: Flask) -> None:
    for error_type, status in STATUS_BY_ERROR:
        app.register_error_handler(error_type, _domain_handler(status))

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return error_response(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        # Details stay in the server log.
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return error_response("Internal server error", 500)


def _domain_handler(status: int):
    def handler(exc: Exception):
        if status != 404:
            logger.info("%s %s -> %d %s", request.method, request.path, status, exc)
        return error_response(str(exc), status)

    return handler
