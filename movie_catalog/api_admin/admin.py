from flask import Blueprint, jsonify
from pymongo import DESCENDING
from pymongo.database import Database

from movie_catalog.api_movies.movies_functions import enrich_with_reviews, format_date, most_rated_movies_pipeline
from movie_catalog.config import MOVIES_COLLECTION, ORPHANED_ASSETS_COLLECTION, PEOPLE_COLLECTION, REVIEWS_COLLECTION
from movie_catalog.db import get_db


bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def get_app_info(db: Database):
    return {
        "movieCount": db[MOVIES_COLLECTION].count_documents({}),
        "reviewCount": db[REVIEWS_COLLECTION].count_documents({}),
        "actorCount": db[PEOPLE_COLLECTION].count_documents({}),
    }


def get_pending_cleanup(db: Database):
    """
    Collect media state left behind by interrupted or partially failed workflows.

    Args:
        db (Database): Catalog database.

    Returns:
        dict: Movies stuck mid-deletion and assets that could not be removed remotely.
    """
    pending = db[MOVIES_COLLECTION].find({"deletion": {"$exists": True}})
    orphaned = db[ORPHANED_ASSETS_COLLECTION].find({}).sort("createdAt", DESCENDING)
    return {
        "pendingDeletions": [
            {
                "id": str(movie["_id"]),
                "title": movie.get("title"),
                "state": movie["deletion"].get("state"),
                "releasedAssets": movie["deletion"].get("releasedAssets", []),
                "startedAt": format_date(movie["deletion"].get("startedAt")),
            }
            for movie in pending
        ],
        "orphanedAssets": [
            {
                "id": str(asset["_id"]),
                "publicId": asset.get("publicId"),
                "resourceType": asset.get("resourceType"),
                "reason": asset.get("reason"),
                "createdAt": format_date(asset.get("createdAt")),
            }
            for asset in orphaned
        ],
    }


@bp.route("/app-info", methods=["GET"])
def app_info():
    """
    Handle GET requests for catalog counts.

    Returns:
        Response: Flask response with ``{appInfo}``.
    """
    return jsonify({"appInfo": get_app_info(get_db())})


@bp.route("/most-rated", methods=["GET"])
def most_rated():
    """
    Handle GET requests for the movies with the most reviews.

    Returns:
        Response: Flask response with ``{movies}`` carrying rating summaries.
    """
    db = get_db()
    movies = list(db[MOVIES_COLLECTION].aggregate(most_rated_movies_pipeline(reviews_collection_name=db[REVIEWS_COLLECTION].name)))
    return jsonify({"movies": enrich_with_reviews(db[REVIEWS_COLLECTION], movies)})


@bp.route("/pending-cleanup", methods=["GET"])
def pending_cleanup():
    """
    Handle GET requests for interrupted deletions and orphaned assets.

    Returns:
        Response: Flask response with ``{pendingDeletions, orphanedAssets}``.
    """
    return jsonify(get_pending_cleanup(get_db()))
