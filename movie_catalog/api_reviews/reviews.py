from flask import Blueprint, jsonify, request

from movie_catalog.db import get_db

from .reviews_functions import add_review, get_reviews_by_movie, remove_review, update_review


bp = Blueprint("reviews", __name__, url_prefix="/api/review")


@bp.route("/<movie_id>", methods=["POST"])
def post_review(movie_id: str):
    """
    Handle POST requests that add a review to a movie.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the review, rating summary and status code.
    """
    payload = request.get_json(silent=True) or {}
    result = add_review(get_db(), movie_id, payload.get("owner"), payload.get("content"), payload.get("rating"))
    return jsonify({"message": "Your review has been added", **result}), 201


@bp.route("/<review_id>", methods=["PATCH"])
def patch_review(review_id: str):
    """
    Handle PATCH requests from a review's owner.

    Args:
        review_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated review.
    """
    payload = request.get_json(silent=True) or {}
    review = update_review(get_db(), review_id, payload.get("owner"), payload.get("content"), payload.get("rating"))
    return jsonify({"message": "Your review is updated", "review": review})


@bp.route("/<review_id>", methods=["DELETE"])
def delete_review(review_id: str):
    """
    Handle DELETE requests from a review's owner, read from the body or ``owner`` query.

    Args:
        review_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with a confirmation message.
    """
    payload = request.get_json(silent=True) or {}
    owner_id = payload.get("owner") or request.args.get("owner")
    remove_review(get_db(), review_id, owner_id)
    return jsonify({"message": "Review removed successfully"})


@bp.route("/movie/<movie_id>", methods=["GET"])
def get_movie_reviews(movie_id: str):
    return jsonify({"movie": get_reviews_by_movie(get_db(), movie_id)})
