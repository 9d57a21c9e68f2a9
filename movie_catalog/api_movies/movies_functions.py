import json
import re
from datetime import datetime

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database

from movie_catalog.config import (
    GENRES,
    MOVIE_STATUSES,
    MOVIES_COLLECTION,
    PEOPLE_COLLECTION,
    RELATED_MOVIES_LIMIT,
    REVIEWS_COLLECTION,
    TOP_RATED_LIMIT,
)
from movie_catalog.db import parse_object_id
from movie_catalog.errors import InvalidReference, NotFound, ValidationFailed


JSON_FIELDS = ("genres", "tags", "cast", "writers", "trailer")
MOVIE_FIELDS = ("title", "storyLine", "director", "releaseDate", "status", "type", "genres", "tags", "cast", "writers", "trailer", "language")


def parse_movie_fields(source):
    """
    Read movie fields from a form or JSON body.

    Multipart submissions send lists and objects as JSON strings; those are decoded here.

    Args:
        source (Mapping | None): ``request.form`` or a decoded JSON body.

    Returns:
        dict: Raw field values keyed by field name.
    """
    fields = {}
    if not source:
        return fields

    for key in MOVIE_FIELDS:
        if key not in source:
            continue
        value = source.get(key)
        if key in JSON_FIELDS and isinstance(value, str):
            text = value.strip()
            if not text:
                value = None
            else:
                try:
                    value = json.loads(text)
                except json.JSONDecodeError as exc:
                    raise ValidationFailed(f"Invalid {key} format") from exc
        fields[key] = value
    return fields


def parse_release_date(value):
    """
    Parse a release date submitted as text.

    Args:
        value (Any): Date string or datetime.

    Returns:
        datetime | None: Parsed value or None when it cannot be read.
    """
    if isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    for pattern in ("%Y-%m-%d", "%Y/%m/%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, pattern)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_boolean(value, default: bool = False):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized:
            return default
        return normalized in {"1", "true", "yes", "on"}
    return default if value is None else bool(value)


def _require_text(fields: dict, key: str, message: str):
    value = fields.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(message)
    return value.strip()


def validate_movie_payload(fields: dict):
    """
    Check submitted movie fields and normalize their types.

    References are only checked for presence of the keys here; see ``resolve_references``.

    Args:
        fields (dict): Output of ``parse_movie_fields``.

    Returns:
        dict: Cleaned values ready to be stored.
    """
    cleaned = {
        "title": _require_text(fields, "title", "Movie title is missing!"),
        "storyLine": _require_text(fields, "storyLine", "Story line is missing!"),
        "language": _require_text(fields, "language", "Language is missing!"),
        "type": _require_text(fields, "type", "Movie type is missing!"),
    }

    release_date = parse_release_date(fields.get("releaseDate"))
    if release_date is None:
        raise ValidationFailed("Release date is missing!")
    cleaned["releaseDate"] = release_date

    status = str(fields.get("status") or "").strip().lower()
    if status not in MOVIE_STATUSES:
        raise ValidationFailed("Movie status must be public or private!")
    cleaned["status"] = status

    genres = fields.get("genres")
    if not isinstance(genres, list):
        raise ValidationFailed("Genres must be an array of strings!")
    for genre in genres:
        if genre not in GENRES:
            raise ValidationFailed(f"Invalid genre: {genre}")
    cleaned["genres"] = genres

    tags = fields.get("tags")
    if not isinstance(tags, list) or not tags:
        raise ValidationFailed("Tags must be an array of strings!")
    if any(not isinstance(tag, str) or not tag.strip() for tag in tags):
        raise ValidationFailed("Tags must be an array of strings!")
    cleaned["tags"] = [tag.strip() for tag in tags]

    cast = fields.get("cast") or []
    if not isinstance(cast, list):
        raise ValidationFailed("Cast must be an array of objects!")
    for entry in cast:
        if not isinstance(entry, dict):
            raise ValidationFailed("Cast must be an array of objects!")
        if not str(entry.get("roleAs") or "").strip():
            raise ValidationFailed("Role as is missing!")
    cleaned["cast"] = cast

    writers = fields.get("writers") or []
    if not isinstance(writers, list):
        raise ValidationFailed("Writers must be an array of ids!")
    cleaned["writers"] = writers
    cleaned["director"] = fields.get("director") or None

    trailer = fields.get("trailer")
    if not isinstance(trailer, dict) or not trailer.get("url") or not trailer.get("public_id"):
        raise ValidationFailed("Trailer must be an object with url and public_id!")
    cleaned["trailer"] = {"url": str(trailer["url"]), "public_id": str(trailer["public_id"])}

    return cleaned


def resolve_references(people_collection: Collection, director, writers: list, cast: list):
    """
    Validate director, writer and cast references and convert them to ObjectIds.

    Args:
        people_collection (Collection): Person documents.
        director (Any): Director identifier or None.
        writers (list): Writer identifiers.
        cast (list[dict]): Cast entries with ``actor``, ``roleAs`` and ``leadActor``.

    Returns:
        tuple: ``(director_id | None, writer_ids, cast_entries)``.
    """
    director_id = parse_object_id(director, "director id", InvalidReference) if director else None
    writer_ids = [parse_object_id(writer, "writer id", InvalidReference) for writer in writers]
    cast_entries = [
        {
            "actor": parse_object_id(entry.get("actor"), "actor id", InvalidReference),
            "roleAs": str(entry.get("roleAs")).strip(),
            "leadActor": parse_boolean(entry.get("leadActor")),
        }
        for entry in cast
    ]

    referenced = set(writer_ids) | {entry["actor"] for entry in cast_entries}
    if director_id:
        referenced.add(director_id)
    if referenced:
        found = people_collection.count_documents({"_id": {"$in": list(referenced)}})
        if found != len(referenced):
            raise InvalidReference("Referenced person not found")

    return director_id, writer_ids, cast_entries


def average_rating_pipeline(movie_id: ObjectId):
    """
    Build the aggregation that averages review ratings for one movie.

    Args:
        movie_id (ObjectId): Movie identifier.

    Returns:
        list[dict]: Pipeline definition for MongoDB.
    """
    return [
        {"$match": {"parentMovie": movie_id}},
        {
            "$group": {
                "_id": None,
                "ratingAvg": {"$avg": "$rating"},
                "reviewCount": {"$sum": 1},
            }
        },
    ]


def get_average_ratings(reviews_collection: Collection, movie_id: ObjectId):
    """
    Compute the mean rating and number of reviews for a movie.

    Args:
        reviews_collection (Collection): Review documents.
        movie_id (ObjectId): Movie identifier.

    Returns:
        dict: ``{"ratingAvg": float, "reviewsCount": int}``; zeros when the movie has no reviews.
    """
    results = list(reviews_collection.aggregate(average_rating_pipeline(movie_id)))
    if not results:
        return {"ratingAvg": 0.0, "reviewsCount": 0}

    entry = results[0]
    rating_avg = entry.get("ratingAvg")
    return {
        "ratingAvg": round(float(rating_avg), 1) if rating_avg is not None else 0.0,
        "reviewsCount": int(entry.get("reviewCount") or 0),
    }


def reduced_movie_projection(extra: dict | None = None):
    projection = {
        "title": 1,
        "poster": "$poster.url",
        "responsivePosters": "$poster.responsive",
    }
    if extra:
        projection.update(extra)
    return {"$project": projection}


def related_movie_aggregation(tags: list, exclude_movie_id: ObjectId, limit: int = RELATED_MOVIES_LIMIT):
    """
    Build the aggregation for public movies sharing at least one tag with a movie.

    Results are ordered newest first.

    Args:
        tags (list[str]): Tags of the source movie.
        exclude_movie_id (ObjectId): Source movie, never part of its own results.
        limit (int): Maximum number of movies.

    Returns:
        list[dict]: Pipeline definition for MongoDB.
    """
    return [
        {
            "$match": {
                "tags": {"$in": list(tags or [])},
                "_id": {"$ne": exclude_movie_id},
                "status": "public",
            }
        },
        {"$sort": {"createdAt": DESCENDING}},
        {"$limit": limit},
        reduced_movie_projection(),
    ]


def top_rated_movies_pipeline(movie_type: str, limit: int = TOP_RATED_LIMIT, reviews_collection_name: str = REVIEWS_COLLECTION):
    """
    Build the aggregation ranking public movies of a type by average rating.

    Movies without reviews get an average of 0 and therefore rank below every rated movie.

    Args:
        movie_type (str): Movie type to keep, e.g. ``"Film"``.
        limit (int): Maximum number of movies.
        reviews_collection_name (str): Collection joined for ratings.

    Returns:
        list[dict]: Pipeline definition for MongoDB.
    """
    return [
        {"$match": {"status": "public", "type": movie_type}},
        {
            "$lookup": {
                "from": reviews_collection_name,
                "localField": "_id",
                "foreignField": "parentMovie",
                "as": "reviews",
            }
        },
        {
            "$addFields": {
                "reviewCount": {"$size": "$reviews"},
                "ratingAvg": {"$ifNull": [{"$avg": "$reviews.rating"}, 0]},
            }
        },
        {"$sort": {"ratingAvg": DESCENDING, "reviewCount": DESCENDING, "createdAt": DESCENDING}},
        {"$limit": limit},
        reduced_movie_projection({"ratingAvg": 1, "reviewCount": 1}),
    ]


def most_rated_movies_pipeline(limit: int = TOP_RATED_LIMIT, reviews_collection_name: str = REVIEWS_COLLECTION):
    """
    Build the aggregation ranking all movies by number of reviews.

    Args:
        limit (int): Maximum number of movies.
        reviews_collection_name (str): Collection joined for counts.

    Returns:
        list[dict]: Pipeline definition for MongoDB.
    """
    return [
        {
            "$lookup": {
                "from": reviews_collection_name,
                "localField": "_id",
                "foreignField": "parentMovie",
                "as": "reviews",
            }
        },
        {"$addFields": {"reviewCount": {"$size": "$reviews"}}},
        {"$match": {"reviewCount": {"$gt": 0}}},
        {"$sort": {"reviewCount": DESCENDING, "createdAt": DESCENDING}},
        {"$limit": limit},
        reduced_movie_projection({"reviewCount": 1}),
    ]


def format_actor(person: dict | None):
    """
    Shape a person document for API output.

    Args:
        person (dict | None): Person document.

    Returns:
        dict | None: ``{"id", "name", "about", "gender", "avatar"}`` or None.
    """
    if not person:
        return None
    avatar = person.get("avatar") or {}
    return {
        "id": str(person["_id"]),
        "name": person.get("name"),
        "about": person.get("about"),
        "gender": person.get("gender"),
        "avatar": avatar.get("url"),
    }


def format_date(value):
    return value.isoformat() if isinstance(value, datetime) else value


def format_movie_summary(movie: dict):
    poster = movie.get("poster") or {}
    return {
        "id": str(movie["_id"]),
        "title": movie.get("title"),
        "poster": poster.get("url"),
        "responsivePosters": poster.get("responsive", []),
        "genres": movie.get("genres", []),
        "status": movie.get("status"),
    }


def format_movie_document(movie: dict):
    """
    Serialize a stored movie with ObjectIds converted to strings.

    Args:
        movie (dict): Movie document.

    Returns:
        dict: JSON-friendly movie.
    """
    return {
        "id": str(movie["_id"]),
        "title": movie.get("title"),
        "storyLine": movie.get("storyLine"),
        "releaseDate": format_date(movie.get("releaseDate")),
        "status": movie.get("status"),
        "type": movie.get("type"),
        "genres": movie.get("genres", []),
        "tags": movie.get("tags", []),
        "language": movie.get("language"),
        "director": str(movie["director"]) if movie.get("director") else None,
        "writers": [str(writer) for writer in movie.get("writers", [])],
        "cast": [
            {"actor": str(entry["actor"]), "roleAs": entry.get("roleAs"), "leadActor": entry.get("leadActor", False)}
            for entry in movie.get("cast", [])
        ],
        "poster": movie.get("poster"),
        "trailer": movie.get("trailer"),
    }


def fetch_people_lookup(people_collection: Collection, movie: dict):
    """
    Load every person a movie references.

    Args:
        people_collection (Collection): Person documents.
        movie (dict): Movie document.

    Returns:
        dict[ObjectId, dict]: Person documents keyed by id.
    """
    identifiers = set(movie.get("writers", []))
    identifiers.update(entry["actor"] for entry in movie.get("cast", []) if entry.get("actor"))
    if movie.get("director"):
        identifiers.add(movie["director"])
    if not identifiers:
        return {}
    return {person["_id"]: person for person in people_collection.find({"_id": {"$in": list(identifiers)}})}


def enrich_with_reviews(reviews_collection: Collection, movies: list[dict], poster_key: str = "poster"):
    """
    Attach rating aggregates to reduced movie projections.

    Args:
        reviews_collection (Collection): Review documents.
        movies (list[dict]): Pipeline output, or raw documents when ``poster_key`` points at a descriptor.
        poster_key (str): ``"poster"`` for pipeline output, ``"descriptor"`` for raw documents.

    Returns:
        list[dict]: ``{"id", "title", "poster", "responsivePosters", "reviews"}`` entries.
    """
    results = []
    for movie in movies:
        if poster_key == "descriptor":
            poster = movie.get("poster") or {}
            poster_url, responsive = poster.get("url"), poster.get("responsive", [])
        else:
            poster_url, responsive = movie.get("poster"), movie.get("responsivePosters", [])
        results.append(
            {
                "id": str(movie["_id"]),
                "title": movie.get("title"),
                "poster": poster_url,
                "responsivePosters": responsive or [],
                "reviews": get_average_ratings(reviews_collection, movie["_id"]),
            }
        )
    return results


def title_filter(title: str | None):
    text = (title or "").strip()
    if not text:
        raise ValidationFailed("Invalid search")
    return {"$regex": re.escape(text), "$options": "i"}


def find_movie(movies_collection: Collection, movie_id):
    object_id = parse_object_id(movie_id, "movie id")
    movie = movies_collection.find_one({"_id": object_id})
    if not movie:
        raise NotFound("Movie not found")
    return movie


def list_movies(db: Database, page_no: int, limit: int):
    cursor = db[MOVIES_COLLECTION].find({}).sort("createdAt", DESCENDING).skip(page_no * limit).limit(limit)
    return [format_movie_summary(movie) for movie in cursor]


def search_movies(db: Database, title: str | None):
    """
    Admin search over every status.

    Args:
        db (Database): Catalog database.
        title (str | None): Text to look for in titles.

    Returns:
        list[dict]: Movie summaries.
    """
    movies = db[MOVIES_COLLECTION].find({"title": title_filter(title)})
    return [format_movie_summary(movie) for movie in movies]


def search_public_movies(db: Database, title: str | None):
    query = {"title": title_filter(title), "status": "public"}
    movies = list(db[MOVIES_COLLECTION].find(query))
    return enrich_with_reviews(db[REVIEWS_COLLECTION], movies, poster_key="descriptor")


def get_movie_for_update(db: Database, movie_id):
    """
    Return full movie detail with people resolved, as needed by the edit form.

    Args:
        db (Database): Catalog database.
        movie_id (str): Movie identifier.

    Returns:
        dict: Movie detail.
    """
    movie = find_movie(db[MOVIES_COLLECTION], movie_id)
    people = fetch_people_lookup(db[PEOPLE_COLLECTION], movie)
    poster = movie.get("poster") or {}
    return {
        "id": str(movie["_id"]),
        "title": movie.get("title"),
        "storyLine": movie.get("storyLine"),
        "poster": poster.get("url"),
        "releaseDate": format_date(movie.get("releaseDate")),
        "status": movie.get("status"),
        "type": movie.get("type"),
        "language": movie.get("language"),
        "genres": movie.get("genres", []),
        "tags": movie.get("tags", []),
        "director": format_actor(people.get(movie.get("director"))),
        "writers": [format_actor(people.get(writer)) for writer in movie.get("writers", []) if writer in people],
        "cast": [
            {
                "profile": format_actor(people.get(entry["actor"])),
                "roleAs": entry.get("roleAs"),
                "leadActor": entry.get("leadActor", False),
            }
            for entry in movie.get("cast", [])
            if entry.get("actor") in people
        ],
    }


def get_single_movie(db: Database, movie_id):
    """
    Return public movie detail with people resolved and the rating summary.

    Args:
        db (Database): Catalog database.
        movie_id (str): Movie identifier.

    Returns:
        dict: Movie detail including ``reviews``.
    """
    movie = find_movie(db[MOVIES_COLLECTION], movie_id)
    people = fetch_people_lookup(db[PEOPLE_COLLECTION], movie)
    poster = movie.get("poster") or {}
    trailer = movie.get("trailer") or {}
    director = people.get(movie.get("director"))

    cast = []
    for entry in movie.get("cast", []):
        actor = people.get(entry.get("actor"))
        if not actor:
            continue
        cast.append(
            {
                "profile": {
                    "id": str(actor["_id"]),
                    "name": actor.get("name"),
                    "avatar": (actor.get("avatar") or {}).get("url"),
                },
                "leadActor": entry.get("leadActor", False),
                "roleAs": entry.get("roleAs"),
            }
        )

    return {
        "id": str(movie["_id"]),
        "title": movie.get("title"),
        "storyLine": movie.get("storyLine"),
        "releaseDate": format_date(movie.get("releaseDate")),
        "genres": movie.get("genres", []),
        "tags": movie.get("tags", []),
        "language": movie.get("language"),
        "poster": poster.get("url"),
        "trailer": trailer.get("url"),
        "type": movie.get("type"),
        "cast": cast,
        "writers": [
            {"id": str(people[writer]["_id"]), "name": people[writer].get("name")}
            for writer in movie.get("writers", [])
            if writer in people
        ],
        "director": {"id": str(director["_id"]), "name": director.get("name")} if director else None,
        "reviews": get_average_ratings(db[REVIEWS_COLLECTION], movie["_id"]),
    }


def get_latest_uploads(db: Database, limit: int):
    cursor = db[MOVIES_COLLECTION].find({"status": "public"}).sort("createdAt", DESCENDING).limit(limit)
    results = []
    for movie in cursor:
        poster = movie.get("poster") or {}
        trailer = movie.get("trailer") or {}
        results.append(
            {
                "id": str(movie["_id"]),
                "title": movie.get("title"),
                "poster": poster.get("url"),
                "responsivePosters": poster.get("responsive", []),
                "trailer": trailer.get("url"),
                "storyLine": movie.get("storyLine"),
            }
        )
    return results


def get_related_movies(db: Database, movie_id, limit: int = RELATED_MOVIES_LIMIT):
    """
    Public movies sharing tags with the given movie, each with its rating summary.

    Args:
        db (Database): Catalog database.
        movie_id (str): Source movie identifier.
        limit (int): Maximum number of movies.

    Returns:
        list[dict]: Reduced movie entries with ``reviews``.
    """
    movie = find_movie(db[MOVIES_COLLECTION], movie_id)
    movies = list(db[MOVIES_COLLECTION].aggregate(related_movie_aggregation(movie.get("tags", []), movie["_id"], limit)))
    return enrich_with_reviews(db[REVIEWS_COLLECTION], movies)


def get_top_rated_movies(db: Database, movie_type: str, limit: int = TOP_RATED_LIMIT):
    movies = list(db[MOVIES_COLLECTION].aggregate(top_rated_movies_pipeline(movie_type, limit, db[REVIEWS_COLLECTION].name)))
    return enrich_with_reviews(db[REVIEWS_COLLECTION], movies)
