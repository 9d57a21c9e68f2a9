import re

from pymongo import DESCENDING
from pymongo.database import Database

from movie_catalog.config import MAX_PAGE_SIZE, USERS_COLLECTION
from movie_catalog.db import clamp, parse_object_id, utc_now
from movie_catalog.errors import Conflict, NotFound, ValidationFailed
from movie_catalog.logger import logger


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def format_user(user: dict):
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "about": user.get("about", ""),
    }


def validate_user_payload(data):
    """
    Check submitted user fields.

    Args:
        data (Mapping | None): JSON body.

    Returns:
        dict: ``{"name", "email", "about"}`` with surrounding whitespace removed.
    """
    data = data or {}
    name = str(data.get("name") or "").strip()
    email = str(data.get("email") or "").strip()
    about = str(data.get("about") or "").strip()

    missing = [field for field, value in (("name", name), ("email", email)) if not value]
    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailed("Invalid email address")
    return {"name": name, "email": email, "about": about}


def email_taken(db: Database, email: str, exclude_id=None):
    query = {"email": {"$regex": f"^{re.escape(email)}$", "$options": "i"}}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    return db[USERS_COLLECTION].find_one(query) is not None


def find_user(db: Database, user_id):
    object_id = parse_object_id(user_id, "user id")
    user = db[USERS_COLLECTION].find_one({"_id": object_id})
    if not user:
        raise NotFound("User not found")
    return user


def create_user(db: Database, data):
    """
    Store a new user account record.

    Args:
        db (Database): Catalog database.
        data (Mapping): Submitted fields.

    Returns:
        dict: Formatted user.
    """
    document = validate_user_payload(data)
    if email_taken(db, document["email"]):
        raise Conflict("Email already exists. Please sign in or use a different email")

    now = utc_now()
    document["createdAt"] = now
    document["updatedAt"] = now
    result = db[USERS_COLLECTION].insert_one(document)
    document["_id"] = result.inserted_id
    logger.info("Created user %s", result.inserted_id)
    return format_user(document)


def update_user(db: Database, user_id, data):
    user = find_user(db, user_id)
    updates = validate_user_payload(data)
    if email_taken(db, updates["email"], exclude_id=user["_id"]):
        raise Conflict("Email already exists. Please sign in or use a different email")

    updates["updatedAt"] = utc_now()
    db[USERS_COLLECTION].update_one({"_id": user["_id"]}, {"$set": updates})
    user.update(updates)
    return format_user(user)


def delete_user(db: Database, user_id):
    user = find_user(db, user_id)
    db[USERS_COLLECTION].delete_one({"_id": user["_id"]})
    logger.info("Deleted user %s", user["_id"])


def parse_limit(limit_param, default: int):
    """
    Read the ``limit`` query parameter, falling back to the default on bad input.
    """
    try:
        limit = int(limit_param) if limit_param else default
    except ValueError:
        limit = default
    return clamp(limit, 1, MAX_PAGE_SIZE)


def list_users(db: Database, search: str | None, limit: int):
    """
    List users, newest first, optionally filtered by a name or email prefix.

    Args:
        db (Database): Catalog database.
        search (str | None): Case-insensitive prefix.
        limit (int): Maximum number of users.

    Returns:
        list[dict]: Formatted users.
    """
    query = {}
    text = (search or "").strip()
    if text:
        regex = {"$regex": f"^{re.escape(text)}", "$options": "i"}
        query = {"$or": [{"name": regex}, {"email": regex}]}

    cursor = db[USERS_COLLECTION].find(query).sort("createdAt", DESCENDING).limit(limit)
    return [format_user(user) for user in cursor]
