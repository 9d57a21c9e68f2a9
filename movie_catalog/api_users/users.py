from flask import Blueprint, jsonify, request

from movie_catalog.config import DEFAULT_PAGE_SIZE
from movie_catalog.db import get_db

from .users_functions import create_user, delete_user, find_user, format_user, list_users, parse_limit, update_user


bp = Blueprint("users", __name__, url_prefix="/api/user")


@bp.route("", methods=["POST"])
@bp.route("/", methods=["POST"])
def post_user():
    """
    Handle POST requests that create user records.

    Returns:
        Response: Flask response with ``{user}`` and status code.
    """
    user = create_user(get_db(), request.get_json(silent=True) or {})
    return jsonify({"user": user}), 201


@bp.route("", methods=["GET"])
@bp.route("/", methods=["GET"])
def get_users():
    """
    Handle GET requests for the users collection.

    Returns:
        Response: Flask response with ``{users}``.
    """
    limit = parse_limit(request.args.get("limit"), DEFAULT_PAGE_SIZE)
    return jsonify({"users": list_users(get_db(), request.args.get("q"), limit)})


@bp.route("/<user_id>", methods=["GET"])
def get_user_detail(user_id: str):
    """
    Handle GET requests for a single user.

    Args:
        user_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with ``{user}``.
    """
    return jsonify({"user": format_user(find_user(get_db(), user_id))})


@bp.route("/<user_id>", methods=["PATCH"])
def patch_user(user_id: str):
    """
    Handle PATCH requests that overwrite a user's name, email and about text.

    Args:
        user_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with ``{user}``.
    """
    user = update_user(get_db(), user_id, request.get_json(silent=True) or {})
    return jsonify({"user": user})


@bp.route("/<user_id>", methods=["DELETE"])
def remove_user(user_id: str):
    """
    Handle DELETE requests for a user.

    Args:
        user_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with a confirmation message.
    """
    delete_user(get_db(), user_id)
    return jsonify({"message": "User deleted successfully"})
