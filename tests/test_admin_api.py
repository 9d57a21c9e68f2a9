from datetime import datetime

import mongomock


def test_app_info_counts(client, make_movie, make_person, make_review):
    movie_id = make_movie()
    make_movie()
    make_person()
    make_review(movie_id, 5)

    info = client.get("/api/admin/app-info").get_json()["appInfo"]

    assert info == {"movieCount": 2, "reviewCount": 1, "actorCount": 1}


def test_pending_cleanup_lists_interrupted_deletions(client, db, media_store, make_movie):
    stuck = make_movie("Stuck")
    make_movie("Fine")
    media_store.failing_destroys.add("t1")
    client.delete(f"/api/movie/{stuck}")
    db["orphaned_assets"].insert_one({"publicId": "old", "resourceType": "image", "reason": "poster replacement", "createdAt": datetime(2024, 3, 1)})

    body = client.get("/api/admin/pending-cleanup").get_json()

    assert [entry["title"] for entry in body["pendingDeletions"]] == ["Stuck"]
    assert body["pendingDeletions"][0]["state"] == "releasing_media"
    assert body["orphanedAssets"][0]["publicId"] == "old"


def test_most_rated_uses_review_count_pipeline(client, make_review, monkeypatch):
    original = mongomock.collection.Collection.aggregate
    captured = []

    def fake_aggregate(self, pipeline, *args, **kwargs):
        if self.name == "movies":
            captured.append(pipeline)
            return iter([])
        return original(self, pipeline, *args, **kwargs)

    monkeypatch.setattr(mongomock.collection.Collection, "aggregate", fake_aggregate)

    response = client.get("/api/admin/most-rated")

    assert response.get_json() == {"movies": []}
    assert captured[0][0]["$lookup"]["from"] == "reviews"
    assert captured[0][3]["$sort"]["reviewCount"] == -1
