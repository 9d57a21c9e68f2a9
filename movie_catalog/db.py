from datetime import datetime, timezone

from bson import ObjectId
from flask import current_app
from pymongo import MongoClient
from pymongo.database import Database

from movie_catalog.config import MONGO_DB_NAME, MONGO_URI
from movie_catalog.errors import InvalidIdentifier


def create_database(uri: str = MONGO_URI, name: str = MONGO_DB_NAME):
    """
    Open a MongoDB connection and return the catalog database.

    Args:
        uri (str): MongoDB connection string.
        name (str): Database name.

    Returns:
        Database: PyMongo database handle.
    """
    client = MongoClient(uri)
    return client[name]


def get_db() -> Database:
    """Return the database bound to the running Flask app."""
    return current_app.extensions["mongo_db"]


def parse_object_id(value, label: str = "id", error=InvalidIdentifier):
    """
    Convert a raw identifier into an ObjectId.

    Args:
        value (Any): Identifier from the path, query or body.
        label (str): Name used in the error message.
        error (type): Exception raised for a malformed identifier.

    Returns:
        ObjectId: Parsed identifier.
    """
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise error(f"Invalid {label}")
    return ObjectId(str(value))


def clamp(value: int, minimum: int, maximum: int):
    """
    Return minimum when value is below minimum. Return maximum when value is above maximum. Otherwise return value.
    """
    return max(minimum, min(maximum, value))


def parse_page_params(page_param, limit_param, default_limit: int, max_limit: int):
    """
    Read zero-based page number and page size from query strings.

    Args:
        page_param (str | None): Raw ``pageNo`` value.
        limit_param (str | None): Raw ``limit`` value.
        default_limit (int): Page size used when the value is missing or invalid.
        max_limit (int): Upper bound for the page size.

    Returns:
        tuple[int, int]: ``(page_no, limit)``.
    """
    try:
        page_no = int(page_param) if page_param else 0
    except ValueError:
        page_no = 0

    try:
        limit = int(limit_param) if limit_param else default_limit
    except ValueError:
        limit = default_limit

    return max(page_no, 0), clamp(limit, 1, max_limit)


def utc_now():
    return datetime.now(timezone.utc)
