"""
Write-side workflows for movies and their hosted media.

Remote media operations and document writes are not atomic. Deletion is
split into two phases and records its progress on the document under
``deletion`` so an interrupted run can be picked up later:

* ``releasing_media``: the poster is gone, the trailer is still hosted.
* ``media_released``: both assets are gone, the document is pending removal.
"""

from pymongo.database import Database

from movie_catalog.config import MOVIES_COLLECTION, ORPHANED_ASSETS_COLLECTION, PEOPLE_COLLECTION
from movie_catalog.db import utc_now
from movie_catalog.errors import MediaOperationFailed, ValidationFailed
from movie_catalog.logger import logger
from movie_catalog.media_store import MediaStore

from .movies_functions import find_movie, resolve_references, validate_movie_payload


DELETION_RELEASING_MEDIA = "releasing_media"
DELETION_MEDIA_RELEASED = "media_released"

KEPT_UNLESS_SENT = ("director", "writers")


def upload_trailer(media_store: MediaStore, file):
    """
    Upload a trailer video ahead of movie creation.

    Args:
        media_store (MediaStore): Media host client.
        file (FileStorage | None): Uploaded video.

    Returns:
        dict: ``{"url", "public_id"}`` to embed in the movie payload.
    """
    if not file:
        raise ValidationFailed("Video file is missing!")
    trailer = media_store.upload_trailer(file)
    logger.info("Uploaded trailer %s", trailer["public_id"])
    return trailer


def prepare_movie_fields(db: Database, fields: dict):
    cleaned = validate_movie_payload(fields)
    director, writers, cast = resolve_references(db[PEOPLE_COLLECTION], cleaned["director"], cleaned["writers"], cleaned["cast"])
    cleaned.update({"director": director, "writers": writers, "cast": cast})
    return cleaned


def create_movie(db: Database, media_store: MediaStore, fields: dict, poster_file=None):
    """
    Validate, upload the poster and insert a new movie.

    Nothing is stored when validation or the poster upload fails.

    Args:
        db (Database): Catalog database.
        media_store (MediaStore): Media host client.
        fields (dict): Parsed movie fields.
        poster_file (FileStorage | None): Optional poster image.

    Returns:
        dict: ``{"id", "title"}`` of the created movie.
    """
    document = prepare_movie_fields(db, fields)

    if poster_file:
        document["poster"] = media_store.upload_poster(poster_file)
        logger.info("Uploaded poster %s", document["poster"]["public_id"])

    now = utc_now()
    document["createdAt"] = now
    document["updatedAt"] = now

    result = db[MOVIES_COLLECTION].insert_one(document)
    logger.info("Created movie %s (%s)", result.inserted_id, document["title"])
    return {"id": str(result.inserted_id), "title": document["title"]}


def record_orphaned_asset(db: Database, public_id: str, resource_type: str, movie_id, reason: str):
    db[ORPHANED_ASSETS_COLLECTION].insert_one(
        {
            "publicId": public_id,
            "resourceType": resource_type,
            "movie": movie_id,
            "reason": reason,
            "createdAt": utc_now(),
        }
    )


def update_movie(db: Database, media_store: MediaStore, movie_id, fields: dict, poster_file=None):
    """
    Overwrite the mutable fields of a movie and optionally replace its poster.

    Director and writers are kept as stored unless the payload names them.
    A failed removal of the previous poster does not stop the update; the
    stale asset is recorded as orphaned and a warning is returned. Once the
    previous poster is gone it is detached before the new upload starts.

    Args:
        db (Database): Catalog database.
        media_store (MediaStore): Media host client.
        movie_id (str): Movie identifier.
        fields (dict): Parsed movie fields.
        poster_file (FileStorage | None): Replacement poster.

    Returns:
        tuple[dict, str | None]: Updated movie document and an optional warning.
    """
    movies = db[MOVIES_COLLECTION]
    movie = find_movie(movies, movie_id)
    updates = prepare_movie_fields(db, fields)
    for key in KEPT_UNLESS_SENT:
        if fields.get(key) in (None, ""):
            updates.pop(key)
    warning = None

    if poster_file:
        old_poster_id = (movie.get("poster") or {}).get("public_id")
        if old_poster_id:
            if media_store.destroy(old_poster_id):
                movies.update_one({"_id": movie["_id"]}, {"$unset": {"poster": ""}})
                movie.pop("poster", None)
            else:
                warning = "Could not remove previous poster"
                logger.warning("Could not remove poster %s of movie %s", old_poster_id, movie["_id"])
                record_orphaned_asset(db, old_poster_id, "image", movie["_id"], "poster replacement")

        updates["poster"] = media_store.upload_poster(poster_file)
        logger.info("Replaced poster of movie %s with %s", movie["_id"], updates["poster"]["public_id"])

    updates["updatedAt"] = utc_now()
    movies.update_one({"_id": movie["_id"]}, {"$set": updates})
    movie.update(updates)
    return movie, warning


def delete_movie(db: Database, media_store: MediaStore, movie_id):
    """
    Release a movie's hosted media, then remove the document.

    A movie without a trailer asset cannot be deleted. Any failed remote
    deletion aborts the workflow and keeps the document.

    Args:
        db (Database): Catalog database.
        media_store (MediaStore): Media host client.
        movie_id (str): Movie identifier.
    """
    movies = db[MOVIES_COLLECTION]
    movie = find_movie(movies, movie_id)

    deletion = movie.get("deletion") or {}
    if deletion.get("state") == DELETION_MEDIA_RELEASED:
        remove_movie_document(movies, movie["_id"])
        return

    trailer_id = (movie.get("trailer") or {}).get("public_id")
    if not trailer_id:
        raise ValidationFailed("Could not find & delete trailer")

    released = list(deletion.get("releasedAssets", []))
    started_at = deletion.get("startedAt") or utc_now()

    poster_id = (movie.get("poster") or {}).get("public_id")
    if poster_id:
        if not media_store.destroy(poster_id):
            raise MediaOperationFailed("Could not remove poster from media store")
        released.append(poster_id)
        movies.update_one(
            {"_id": movie["_id"]},
            {
                "$unset": {"poster": ""},
                "$set": {"deletion": {"state": DELETION_RELEASING_MEDIA, "releasedAssets": released, "startedAt": started_at}},
            },
        )
        logger.info("Removed poster %s of movie %s", poster_id, movie["_id"])

    if not media_store.destroy(trailer_id, resource_type="video"):
        raise MediaOperationFailed("Could not remove trailer from media store")
    released.append(trailer_id)
    movies.update_one(
        {"_id": movie["_id"]},
        {
            "$unset": {"trailer": ""},
            "$set": {"deletion": {"state": DELETION_MEDIA_RELEASED, "releasedAssets": released, "startedAt": started_at}},
        },
    )
    logger.info("Removed trailer %s of movie %s", trailer_id, movie["_id"])

    remove_movie_document(movies, movie["_id"])


def remove_movie_document(movies, movie_id):
    result = movies.delete_one({"_id": movie_id})
    if result.deleted_count != 1:
        logger.error("Media of movie %s released but the document was not removed", movie_id)
    else:
        logger.info("Deleted movie %s", movie_id)
