import io
import json
from datetime import datetime

import mongomock
import pytest
from bson import ObjectId

from movie_catalog.app import create_app
from movie_catalog.errors import MediaOperationFailed


class FakeMediaStore:
    """In-memory media host recording every upload and deletion."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.failing_destroys = set()
        self.fail_uploads = False
        self._counter = 0

    def _upload(self, prefix):
        if self.fail_uploads:
            raise MediaOperationFailed("Could not upload file")
        self._counter += 1
        public_id = f"{prefix}-{self._counter}"
        self.uploads.append(public_id)
        return public_id

    def upload_poster(self, file):
        public_id = self._upload("poster")
        return {
            "url": f"https://media.test/{public_id}.jpg",
            "public_id": public_id,
            "responsive": [f"https://media.test/{public_id}-640.jpg", f"https://media.test/{public_id}-320.jpg"],
        }

    def upload_trailer(self, file):
        public_id = self._upload("trailer")
        return {"url": f"https://media.test/{public_id}.mp4", "public_id": public_id}

    def upload_avatar(self, file):
        public_id = self._upload("avatar")
        return {"url": f"https://media.test/{public_id}.jpg", "public_id": public_id}

    def destroy(self, public_id, resource_type="image"):
        self.destroyed.append((public_id, resource_type))
        return public_id not in self.failing_destroys


@pytest.fixture
def db():
    return mongomock.MongoClient()["movie_catalog_test"]


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def app(db, media_store):
    app = create_app(db=db, media_store=media_store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_person(db):
    def _make(name="Jane Doe", **extra):
        document = {"name": name, "about": f"About {name}", "gender": "female", "createdAt": datetime(2024, 1, 1)}
        document.update(extra)
        return db["people"].insert_one(document).inserted_id

    return _make


@pytest.fixture
def make_movie(db):
    counter = {"value": 0}

    def _make(title="Movie", **extra):
        counter["value"] += 1
        document = {
            "title": title,
            "storyLine": f"Story of {title}",
            "releaseDate": datetime(2023, 5, 1),
            "status": "public",
            "type": "Film",
            "genres": ["Drama"],
            "tags": ["drama"],
            "cast": [],
            "writers": [],
            "director": None,
            "language": "English",
            "poster": {"url": f"https://media.test/p{counter['value']}.jpg", "public_id": f"p{counter['value']}", "responsive": []},
            "trailer": {"url": f"https://media.test/t{counter['value']}.mp4", "public_id": f"t{counter['value']}"},
            "createdAt": datetime(2024, 1, counter["value"]),
        }
        document.update(extra)
        return db["movies"].insert_one(document).inserted_id

    return _make


@pytest.fixture
def make_review(db):
    def _make(movie_id, rating, owner=None, **extra):
        document = {
            "parentMovie": movie_id,
            "owner": owner or ObjectId(),
            "content": "ok",
            "rating": rating,
            "createdAt": datetime(2024, 2, 1),
        }
        document.update(extra)
        return db["reviews"].insert_one(document).inserted_id

    return _make


@pytest.fixture
def movie_fields(make_person):
    director = make_person("Director Person")
    writer = make_person("Writer Person")
    actor = make_person("Lead Actor")
    return {
        "title": "The Long Night",
        "storyLine": "A night that does not end.",
        "director": str(director),
        "releaseDate": "2023-10-01",
        "status": "public",
        "type": "Film",
        "genres": ["Drama", "Thriller"],
        "tags": ["night", "mystery"],
        "cast": [{"actor": str(actor), "roleAs": "Sam", "leadActor": True}],
        "writers": [str(writer)],
        "trailer": {"url": "https://media.test/trailer.mp4", "public_id": "trailer-upfront"},
        "language": "English",
    }


def as_form(fields: dict):
    """Encode movie fields the way the admin form submits them."""
    form = {}
    for key, value in fields.items():
        form[key] = json.dumps(value) if isinstance(value, (list, dict)) else value
    return form


def image_file(name="poster.jpg"):
    return (io.BytesIO(b"fake image bytes"), name)
