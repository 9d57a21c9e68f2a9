from flask import Blueprint, jsonify, request

from movie_catalog.api_movies.movies_functions import format_actor
from movie_catalog.config import DEFAULT_PAGE_SIZE, LATEST_ACTORS_LIMIT, MAX_PAGE_SIZE
from movie_catalog.db import get_db, parse_page_params
from movie_catalog.media_store import get_media_store

from .actors_functions import (
    create_actor,
    delete_actor,
    find_actor,
    get_latest_actors,
    list_actors,
    search_actors,
    update_actor,
)


bp = Blueprint("actors", __name__, url_prefix="/api/actor")


def request_data():
    return request.form if request.form else (request.get_json(silent=True) or {})


@bp.route("", methods=["POST"])
@bp.route("/", methods=["POST"])
def post_actor():
    """
    Handle POST requests that create a person, with an optional ``avatar`` file.

    Returns:
        Response: Flask response with ``{actor}`` and status code.
    """
    actor = create_actor(get_db(), get_media_store(), request_data(), request.files.get("avatar"))
    return jsonify({"actor": actor}), 201


@bp.route("/<actor_id>", methods=["PATCH"])
def patch_actor(actor_id: str):
    """
    Handle PATCH requests for a person, replacing the avatar when a file is sent.

    Args:
        actor_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with ``{actor}`` and an optional warning.
    """
    actor, warning = update_actor(get_db(), get_media_store(), actor_id, request_data(), request.files.get("avatar"))
    payload = {"actor": actor}
    if warning:
        payload["warning"] = warning
    return jsonify(payload)


@bp.route("/<actor_id>", methods=["DELETE"])
def remove_actor(actor_id: str):
    """
    Handle DELETE requests for a person that no movie references.

    Args:
        actor_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with a confirmation message.
    """
    delete_actor(get_db(), get_media_store(), actor_id)
    return jsonify({"message": "Record removed successfully"})


@bp.route("/search", methods=["GET"])
def get_search():
    """
    Handle GET requests searching people by name.

    Returns:
        Response: Flask response with ``{results}``.
    """
    return jsonify({"results": search_actors(get_db(), request.args.get("name"))})


@bp.route("/latest-uploads", methods=["GET"])
def get_latest():
    """
    Handle GET requests for the newest people.

    Returns:
        Response: Flask response with ``{actors}``.
    """
    _, limit = parse_page_params(None, request.args.get("limit"), LATEST_ACTORS_LIMIT, MAX_PAGE_SIZE)
    return jsonify({"actors": get_latest_actors(get_db(), limit)})


@bp.route("", methods=["GET"])
@bp.route("/", methods=["GET"])
def get_actors():
    """
    Handle GET requests for the paginated people list.

    Returns:
        Response: Flask response with ``{profiles}``.
    """
    page_no, limit = parse_page_params(request.args.get("pageNo"), request.args.get("limit"), DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    return jsonify({"profiles": list_actors(get_db(), page_no, limit)})


@bp.route("/<actor_id>", methods=["GET"])
def get_actor(actor_id: str):
    """
    Handle GET requests for a single person.

    Args:
        actor_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with ``{actor}``.
    """
    return jsonify({"actor": format_actor(find_actor(get_db(), actor_id))})
