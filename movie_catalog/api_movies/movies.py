from flask import Blueprint, jsonify, request

from movie_catalog.config import DEFAULT_MOVIE_TYPE, DEFAULT_PAGE_SIZE, LATEST_UPLOADS_LIMIT, MAX_PAGE_SIZE
from movie_catalog.db import get_db, parse_page_params
from movie_catalog.media_store import get_media_store

from .movies_functions import (
    format_movie_document,
    get_latest_uploads,
    get_movie_for_update,
    get_related_movies,
    get_single_movie,
    get_top_rated_movies,
    list_movies,
    parse_movie_fields,
    search_movies,
    search_public_movies,
)
from .movies_lifecycle import create_movie, delete_movie, update_movie, upload_trailer


bp = Blueprint("movies", __name__, url_prefix="/api/movie")


def request_fields():
    """Movie fields from a multipart form or, failing that, a JSON body."""
    if request.form:
        return parse_movie_fields(request.form)
    return parse_movie_fields(request.get_json(silent=True) or {})


@bp.route("/trailer", methods=["POST"])
def post_trailer():
    """
    Handle POST requests that upload a trailer video.

    Returns:
        Response: Flask response with ``{url, public_id}`` and status code.
    """
    trailer = upload_trailer(get_media_store(), request.files.get("video"))
    return jsonify(trailer), 201


@bp.route("", methods=["POST"])
@bp.route("/", methods=["POST"])
def post_movie():
    """
    Handle POST requests that create a movie, with an optional poster file.

    Returns:
        Response: Flask response with ``{id, title}`` and status code.
    """
    created = create_movie(get_db(), get_media_store(), request_fields(), request.files.get("poster"))
    return jsonify(created), 201


@bp.route("/<movie_id>", methods=["PATCH"])
def patch_movie(movie_id: str):
    """
    Handle PATCH requests for a movie.

    A request carrying a ``poster`` file also replaces the poster.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated movie.
    """
    poster_file = request.files.get("poster")
    movie, warning = update_movie(get_db(), get_media_store(), movie_id, request_fields(), poster_file)

    if not poster_file:
        return jsonify({"message": "Movie is updated", "movie": format_movie_document(movie)})

    payload = {
        "message": "Movie is updated",
        "movie": {
            "id": str(movie["_id"]),
            "title": movie.get("title"),
            "poster": (movie.get("poster") or {}).get("url"),
            "genres": movie.get("genres", []),
            "status": movie.get("status"),
        },
    }
    if warning:
        payload["warning"] = warning
    return jsonify(payload)


@bp.route("/<movie_id>", methods=["DELETE"])
def remove_movie(movie_id: str):
    """
    Handle DELETE requests for a movie and its hosted media.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with a confirmation message.
    """
    delete_movie(get_db(), get_media_store(), movie_id)
    return jsonify({"message": "Movie deleted successfully"})


@bp.route("", methods=["GET"])
@bp.route("/", methods=["GET"])
def get_movies():
    """
    Handle GET requests for the paginated movie list, newest first.

    Returns:
        Response: Flask response with ``{movies}``.
    """
    page_no, limit = parse_page_params(request.args.get("pageNo"), request.args.get("limit"), DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    return jsonify({"movies": list_movies(get_db(), page_no, limit)})


@bp.route("/search", methods=["GET"])
def get_search():
    """
    Handle GET requests searching all movies by title, private ones included.

    Returns:
        Response: Flask response with ``{results}``.
    """
    return jsonify({"results": search_movies(get_db(), request.args.get("title"))})


@bp.route("/search-public", methods=["GET"])
def get_search_public():
    """
    Handle GET requests searching public movies by title.

    Returns:
        Response: Flask response with ``{movies}`` carrying rating summaries.
    """
    return jsonify({"movies": search_public_movies(get_db(), request.args.get("title"))})


@bp.route("/latest-uploads", methods=["GET"])
def get_latest():
    """
    Handle GET requests for the newest public movies.

    Returns:
        Response: Flask response with ``{movies}``.
    """
    _, limit = parse_page_params(None, request.args.get("limit"), LATEST_UPLOADS_LIMIT, MAX_PAGE_SIZE)
    return jsonify({"movies": get_latest_uploads(get_db(), limit)})


@bp.route("/related/<movie_id>", methods=["GET"])
def get_related(movie_id: str):
    """
    Handle GET requests for public movies sharing tags with a movie.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with ``{movies}``.
    """
    return jsonify({"movies": get_related_movies(get_db(), movie_id)})


@bp.route("/top-rated", methods=["GET"])
def get_top_rated():
    """
    Handle GET requests for the best rated public movies of a type.

    Returns:
        Response: Flask response with ``{movies}``.
    """
    movie_type = (request.args.get("type") or "").strip() or DEFAULT_MOVIE_TYPE
    return jsonify({"movies": get_top_rated_movies(get_db(), movie_type)})


@bp.route("/for-update/<movie_id>", methods=["GET"])
def get_for_update(movie_id: str):
    """
    Handle GET requests for a movie shaped for the edit form.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with ``{movie}``.
    """
    return jsonify({"movie": get_movie_for_update(get_db(), movie_id)})


@bp.route("/<movie_id>", methods=["GET"])
def get_movie(movie_id: str):
    """
    Handle GET requests for a movie with its rating summary.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with ``{movie}``.
    """
    return jsonify({"movie": get_single_movie(get_db(), movie_id)})
