from pymongo import DESCENDING
from pymongo.database import Database

from movie_catalog.api_movies.movies_functions import get_average_ratings
from movie_catalog.config import MAX_RATING, MIN_RATING, MOVIES_COLLECTION, REVIEWS_COLLECTION, USERS_COLLECTION
from movie_catalog.db import parse_object_id, utc_now
from movie_catalog.errors import NotFound, ValidationFailed
from movie_catalog.logger import logger


def parse_rating(value):
    """
    Read a rating and enforce the allowed range.

    Args:
        value (Any): Submitted rating.

    Returns:
        int: Rating between ``MIN_RATING`` and ``MAX_RATING``.
    """
    if isinstance(value, bool):
        raise ValidationFailed("Rating must be a number")
    try:
        rating = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationFailed("Rating must be a number") from None
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationFailed(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def format_review(review: dict, owner: dict | None = None):
    created_at = review.get("createdAt")
    return {
        "id": str(review["_id"]),
        "owner": {
            "id": str(review["owner"]),
            "name": (owner or {}).get("name"),
        },
        "content": review.get("content", ""),
        "rating": review.get("rating"),
        "createdAt": created_at.isoformat() if created_at else None,
    }


def find_own_review(db: Database, review_id, owner_id):
    review_object_id = parse_object_id(review_id, "review id")
    owner_object_id = parse_object_id(owner_id, "owner id")
    review = db[REVIEWS_COLLECTION].find_one({"_id": review_object_id, "owner": owner_object_id})
    if not review:
        raise NotFound("Review not found")
    return review


def add_review(db: Database, movie_id, owner_id, content, rating):
    """
    Store a review for a public movie. Each owner may review a movie once.

    Args:
        db (Database): Catalog database.
        movie_id (str): Reviewed movie.
        owner_id (str): Author supplied by the auth layer.
        content (str | None): Review text.
        rating (Any): Rating between ``MIN_RATING`` and ``MAX_RATING``.

    Returns:
        dict: ``{"review", "reviews"}`` with the refreshed rating summary.
    """
    movie_object_id = parse_object_id(movie_id, "movie id")
    owner_object_id = parse_object_id(owner_id, "owner id")
    rating = parse_rating(rating)

    movie = db[MOVIES_COLLECTION].find_one({"_id": movie_object_id, "status": "public"})
    if not movie:
        raise NotFound("Movie not found")

    reviews = db[REVIEWS_COLLECTION]
    if reviews.find_one({"parentMovie": movie_object_id, "owner": owner_object_id}):
        raise ValidationFailed("Invalid request, review is already there!")

    now = utc_now()
    review = {
        "parentMovie": movie_object_id,
        "owner": owner_object_id,
        "content": (content or "").strip(),
        "rating": rating,
        "createdAt": now,
        "updatedAt": now,
    }
    result = reviews.insert_one(review)
    review["_id"] = result.inserted_id
    logger.info("Added review %s for movie %s", result.inserted_id, movie_object_id)
    return {"review": format_review(review), "reviews": get_average_ratings(reviews, movie_object_id)}


def update_review(db: Database, review_id, owner_id, content, rating):
    review = find_own_review(db, review_id, owner_id)
    updates = {"content": (content or "").strip(), "rating": parse_rating(rating), "updatedAt": utc_now()}
    db[REVIEWS_COLLECTION].update_one({"_id": review["_id"]}, {"$set": updates})
    review.update(updates)
    return format_review(review)


def remove_review(db: Database, review_id, owner_id):
    review = find_own_review(db, review_id, owner_id)
    db[REVIEWS_COLLECTION].delete_one({"_id": review["_id"]})
    logger.info("Removed review %s", review["_id"])


def get_reviews_by_movie(db: Database, movie_id):
    """
    List the reviews of a movie, newest first, with owner names where known.

    Args:
        db (Database): Catalog database.
        movie_id (str): Movie identifier.

    Returns:
        dict: ``{"title", "reviews"}``.
    """
    movie_object_id = parse_object_id(movie_id, "movie id")
    movie = db[MOVIES_COLLECTION].find_one({"_id": movie_object_id}, projection={"title": 1})
    if not movie:
        raise NotFound("Movie not found")

    reviews = list(db[REVIEWS_COLLECTION].find({"parentMovie": movie_object_id}).sort("createdAt", DESCENDING))
    owner_ids = list({review["owner"] for review in reviews})
    owners = {}
    if owner_ids:
        owners = {user["_id"]: user for user in db[USERS_COLLECTION].find({"_id": {"$in": owner_ids}}, projection={"name": 1})}

    return {
        "title": movie.get("title"),
        "reviews": [format_review(review, owners.get(review["owner"])) for review in reviews],
    }
