from datetime import datetime

import pytest
from bson import ObjectId

from movie_catalog.api_movies.movies_functions import (
    average_rating_pipeline,
    format_actor,
    get_average_ratings,
    parse_movie_fields,
    parse_release_date,
    related_movie_aggregation,
    resolve_references,
    search_movies,
    top_rated_movies_pipeline,
    validate_movie_payload,
)
from movie_catalog.errors import InvalidReference, ValidationFailed


def test_average_ratings_without_reviews(db):
    result = get_average_ratings(db["reviews"], ObjectId())
    assert result == {"ratingAvg": 0.0, "reviewsCount": 0}


def test_average_ratings_rounds_to_one_decimal(db, make_review):
    movie_id = ObjectId()
    for rating in (7, 8, 8):
        make_review(movie_id, rating)
    make_review(ObjectId(), 1)

    result = get_average_ratings(db["reviews"], movie_id)
    assert result == {"ratingAvg": 7.7, "reviewsCount": 3}


def test_average_rating_pipeline_matches_movie():
    movie_id = ObjectId()
    pipeline = average_rating_pipeline(movie_id)
    assert pipeline[0] == {"$match": {"parentMovie": movie_id}}
    assert pipeline[1]["$group"]["ratingAvg"] == {"$avg": "$rating"}


def test_related_aggregation_excludes_source_movie(db, make_movie):
    source = make_movie("Source", tags=["space", "drama"])
    sibling = make_movie("Sibling", tags=["space"])
    make_movie("Private", tags=["space"], status="private")
    make_movie("Unrelated", tags=["comedy"])

    pipeline = related_movie_aggregation(["space", "drama"], source)
    matched = {doc["_id"] for doc in db["movies"].find(pipeline[0]["$match"])}

    assert matched == {sibling}
    assert source not in matched


def test_related_aggregation_orders_newest_first_and_limits():
    pipeline = related_movie_aggregation(["a"], ObjectId(), limit=3)
    stages = [next(iter(stage)) for stage in pipeline]
    assert stages == ["$match", "$sort", "$limit", "$project"]
    assert pipeline[1]["$sort"] == {"createdAt": -1}
    assert pipeline[2]["$limit"] == 3
    assert pipeline[3]["$project"]["poster"] == "$poster.url"


def test_top_rated_pipeline_filters_type(db, make_movie):
    film = make_movie("Film", type="Film")
    make_movie("Series", type="TV Series")
    make_movie("Private Film", type="Film", status="private")

    pipeline = top_rated_movies_pipeline("Film")
    matched = [doc["_id"] for doc in db["movies"].find(pipeline[0]["$match"])]
    assert matched == [film]


def test_top_rated_pipeline_sorts_by_average_rating_with_unrated_as_zero():
    pipeline = top_rated_movies_pipeline("Film", limit=7, reviews_collection_name="ratings")
    lookup = pipeline[1]["$lookup"]
    assert lookup["from"] == "ratings"
    assert lookup["foreignField"] == "parentMovie"
    assert pipeline[2]["$addFields"]["ratingAvg"] == {"$ifNull": [{"$avg": "$reviews.rating"}, 0]}
    assert list(pipeline[3]["$sort"].items())[0] == ("ratingAvg", -1)
    assert pipeline[4]["$limit"] == 7


def test_top_rated_pipeline_ranks_by_average_with_unrated_last(db, make_movie, make_review):
    unrated = make_movie("Unrated")
    low = make_movie("Low")
    high = make_movie("High")
    middle = make_movie("Middle")
    make_movie("Series", type="TV Series")
    make_review(low, 3)
    make_review(high, 9)
    make_review(middle, 4)
    make_review(middle, 8)

    results = list(db["movies"].aggregate(top_rated_movies_pipeline("Film")))

    assert [movie["title"] for movie in results] == ["High", "Middle", "Low", "Unrated"]
    assert [movie["ratingAvg"] for movie in results] == [9, 6, 3, 0]
    assert results[-1]["_id"] == unrated
    assert results[-1]["reviewCount"] == 0


def test_top_rated_pipeline_respects_limit(db, make_movie, make_review):
    for rating in (2, 7, 5):
        make_review(make_movie(f"Rated {rating}"), rating)

    results = list(db["movies"].aggregate(top_rated_movies_pipeline("Film", limit=2)))

    assert [movie["title"] for movie in results] == ["Rated 7", "Rated 5"]


def test_parse_movie_fields_decodes_json_strings():
    fields = parse_movie_fields({"title": "X", "tags": '["a", "b"]', "trailer": '{"url": "u", "public_id": "p"}', "ignored": "y"})
    assert fields == {"title": "X", "tags": ["a", "b"], "trailer": {"url": "u", "public_id": "p"}}


def test_parse_movie_fields_rejects_broken_json():
    with pytest.raises(ValidationFailed):
        parse_movie_fields({"cast": "[{"})


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2023-10-01", datetime(2023, 10, 1)),
        ("2023/10/01", datetime(2023, 10, 1)),
        ("not a date", None),
        ("", None),
    ],
)
def test_parse_release_date(raw, expected):
    assert parse_release_date(raw) == expected


def test_validate_movie_payload_requires_trailer(movie_fields):
    movie_fields.pop("trailer")
    with pytest.raises(ValidationFailed, match="Trailer"):
        validate_movie_payload(movie_fields)


def test_validate_movie_payload_rejects_unknown_genre(movie_fields):
    movie_fields["genres"] = ["Drama", "Noise"]
    with pytest.raises(ValidationFailed, match="Noise"):
        validate_movie_payload(movie_fields)


def test_validate_movie_payload_rejects_bad_status(movie_fields):
    movie_fields["status"] = "draft"
    with pytest.raises(ValidationFailed):
        validate_movie_payload(movie_fields)


def test_resolve_references_rejects_malformed_writer(db, movie_fields):
    with pytest.raises(InvalidReference, match="writer"):
        resolve_references(db["people"], movie_fields["director"], ["not-an-id"], [])


def test_resolve_references_rejects_unknown_person(db, movie_fields):
    with pytest.raises(InvalidReference, match="not found"):
        resolve_references(db["people"], str(ObjectId()), [], [])


def test_resolve_references_converts_ids(db, movie_fields):
    director, writers, cast = resolve_references(db["people"], movie_fields["director"], movie_fields["writers"], movie_fields["cast"])
    assert director == ObjectId(movie_fields["director"])
    assert writers == [ObjectId(movie_fields["writers"][0])]
    assert cast[0]["leadActor"] is True
    assert cast[0]["actor"] == ObjectId(movie_fields["cast"][0]["actor"])


def test_search_rejects_blank_title(db):
    with pytest.raises(ValidationFailed):
        search_movies(db, "   ")


def test_search_is_case_insensitive_literal_substring(db, make_movie):
    make_movie("The Matrix (1999)", status="private")
    make_movie("Matrix Reloaded")
    make_movie("Heat")

    titles = sorted(movie["title"] for movie in search_movies(db, "matrix ("))
    assert titles == ["The Matrix (1999)"]


def test_format_actor_handles_missing_person():
    assert format_actor(None) is None
