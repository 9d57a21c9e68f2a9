import re

from pymongo import DESCENDING
from pymongo.database import Database

from movie_catalog.config import GENDERS, MOVIES_COLLECTION, ORPHANED_ASSETS_COLLECTION, PEOPLE_COLLECTION
from movie_catalog.db import parse_object_id, utc_now
from movie_catalog.errors import MediaOperationFailed, NotFound, ValidationFailed
from movie_catalog.logger import logger
from movie_catalog.media_store import MediaStore

from movie_catalog.api_movies.movies_functions import format_actor


def validate_actor_payload(data):
    """
    Check submitted person fields.

    Args:
        data (Mapping | None): Form or JSON body.

    Returns:
        dict: ``{"name", "about", "gender"}`` with surrounding whitespace removed.
    """
    data = data or {}
    name = str(data.get("name") or "").strip()
    about = str(data.get("about") or "").strip()
    gender = str(data.get("gender") or "").strip().lower()

    if not name:
        raise ValidationFailed("Actor name is missing!")
    if not about:
        raise ValidationFailed("About is a required field!")
    if gender not in GENDERS:
        raise ValidationFailed("Gender is a required field!")
    return {"name": name, "about": about, "gender": gender}


def find_actor(db: Database, actor_id):
    object_id = parse_object_id(actor_id, "actor id")
    actor = db[PEOPLE_COLLECTION].find_one({"_id": object_id})
    if not actor:
        raise NotFound("Actor not found")
    return actor


def movie_reference_query(actor_id):
    return {"$or": [{"director": actor_id}, {"writers": actor_id}, {"cast.actor": actor_id}]}


def create_actor(db: Database, media_store: MediaStore, data, avatar_file=None):
    """
    Store a new person, uploading the avatar first when one is given.

    Args:
        db (Database): Catalog database.
        media_store (MediaStore): Media host client.
        data (Mapping): Submitted fields.
        avatar_file (FileStorage | None): Optional avatar image.

    Returns:
        dict: Formatted person.
    """
    document = validate_actor_payload(data)
    if avatar_file:
        document["avatar"] = media_store.upload_avatar(avatar_file)

    now = utc_now()
    document["createdAt"] = now
    document["updatedAt"] = now
    result = db[PEOPLE_COLLECTION].insert_one(document)
    document["_id"] = result.inserted_id
    logger.info("Created actor %s (%s)", result.inserted_id, document["name"])
    return format_actor(document)


def update_actor(db: Database, media_store: MediaStore, actor_id, data, avatar_file=None):
    """
    Overwrite a person's fields and optionally replace the avatar.

    A failed removal of the previous avatar is logged, recorded as orphaned and reported as a warning.

    Returns:
        tuple[dict, str | None]: Formatted person and an optional warning.
    """
    actor = find_actor(db, actor_id)
    updates = validate_actor_payload(data)
    warning = None

    if avatar_file:
        old_avatar_id = (actor.get("avatar") or {}).get("public_id")
        if old_avatar_id and not media_store.destroy(old_avatar_id):
            warning = "Could not remove previous avatar"
            logger.warning("Could not remove avatar %s of actor %s", old_avatar_id, actor["_id"])
            db[ORPHANED_ASSETS_COLLECTION].insert_one(
                {
                    "publicId": old_avatar_id,
                    "resourceType": "image",
                    "actor": actor["_id"],
                    "reason": "avatar replacement",
                    "createdAt": utc_now(),
                }
            )
        updates["avatar"] = media_store.upload_avatar(avatar_file)

    updates["updatedAt"] = utc_now()
    db[PEOPLE_COLLECTION].update_one({"_id": actor["_id"]}, {"$set": updates})
    actor.update(updates)
    return format_actor(actor), warning


def delete_actor(db: Database, media_store: MediaStore, actor_id):
    """
    Remove a person that no movie references, releasing the avatar first.

    Args:
        db (Database): Catalog database.
        media_store (MediaStore): Media host client.
        actor_id (str): Person identifier.
    """
    actor = find_actor(db, actor_id)

    references = db[MOVIES_COLLECTION].count_documents(movie_reference_query(actor["_id"]))
    if references:
        raise ValidationFailed(f"Actor is referenced by {references} movie(s)")

    avatar_id = (actor.get("avatar") or {}).get("public_id")
    if avatar_id and not media_store.destroy(avatar_id):
        raise MediaOperationFailed("Could not remove avatar from media store")

    db[PEOPLE_COLLECTION].delete_one({"_id": actor["_id"]})
    logger.info("Deleted actor %s", actor["_id"])


def search_actors(db: Database, name: str | None):
    text = (name or "").strip()
    if not text:
        raise ValidationFailed("Invalid search")
    cursor = db[PEOPLE_COLLECTION].find({"name": {"$regex": re.escape(text), "$options": "i"}})
    return [format_actor(actor) for actor in cursor]


def get_latest_actors(db: Database, limit: int):
    cursor = db[PEOPLE_COLLECTION].find({}).sort("createdAt", DESCENDING).limit(limit)
    return [format_actor(actor) for actor in cursor]


def list_actors(db: Database, page_no: int, limit: int):
    cursor = db[PEOPLE_COLLECTION].find({}).sort("createdAt", DESCENDING).skip(page_no * limit).limit(limit)
    return [format_actor(actor) for actor in cursor]
