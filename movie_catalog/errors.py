from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from movie_catalog.logger import logger


class CatalogError(Exception):
    """Base class for failures reported to API clients as ``{"error": message}``."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationFailed(CatalogError):
    default_message = "Invalid request"


class InvalidIdentifier(CatalogError):
    default_message = "Invalid id"


class InvalidReference(CatalogError):
    default_message = "Invalid reference id"


class NotFound(CatalogError):
    status_code = 404
    default_message = "Not found"


class Conflict(CatalogError):
    status_code = 409
    default_message = "Conflict"


class MediaOperationFailed(CatalogError):
    status_code = 502
    default_message = "Media operation failed"


def register_error_handlers(app: Flask):
    """
    Attach JSON error handlers so every failure shares one response shape.

    Args:
        app (Flask): Application to configure.
    """

    @app.errorhandler(CatalogError)
    def handle_catalog_error(error: CatalogError):
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        if error.code == 404:
            return jsonify({"error": "Not found"}), 404
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception("Unhandled error while serving request")
        return jsonify({"error": "Internal server error"}), 500
