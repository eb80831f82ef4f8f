import pytest
from unittest.mock import MagicMock, patch

from ingestion.youtube import CatalogUnavailableError, YouTubeClient
from services.recommendations import (
    deduplicate_resources,
    engagement_score,
    filter_resources,
    paginate,
    sort_by_engagement,
)


TEST_USER_ID = "recommendation-user"


def _resource(video_id, views=0, likes=0, **extra):
    payload = {
        "id": video_id,
        "title": extra.pop("title", f"Video {video_id}"),
        "description": extra.pop("description", ""),
        "type": "Tutorial",
        "platform": "YouTube",
        "skill_level": extra.pop("skill_level", "Intermediate"),
        "view_count": views,
        "like_count": likes,
    }
    payload.update(extra)
    return payload


def _search_response(*resources):
    return {"resources": list(resources), "next_page_token": None, "total_results": len(resources)}


def test_engagement_score_floors_likes_and_parses_strings():
    assert engagement_score({"view_count": "100", "like_count": "0"}) == 100
    assert engagement_score({"view_count": 10, "like_count": 5}) == 50
    assert engagement_score({"like_count": 5}) == 0
    assert engagement_score({"view_count": "n/a", "like_count": 3}) == 0


def test_sort_by_engagement_is_descending():
    ordered = sort_by_engagement([_resource("a", 10, 1), _resource("b", 10, 5), _resource("c", 1000, 0)])
    assert [item["id"] for item in ordered] == ["c", "b", "a"]


def test_deduplicate_keeps_last_seen_payload():
    first = _resource("x", 1, 1, title="old")
    second = _resource("x", 2, 2, title="new")
    merged = deduplicate_resources([[first, _resource("y")], [second]])
    assert len(merged) == 2
    assert {item["id"]: item["title"] for item in merged}["x"] == "new"


def test_filters_treat_all_as_absent_and_search_is_case_insensitive():
    items = [
        _resource("a", skill_level="Beginner", title="Intro to SQL"),
        _resource("b", skill_level="Advanced", description="Query planning in sql"),
        _resource("c", skill_level="Advanced", title="Rust"),
    ]
    assert len(filter_resources(items, skill_level="all", resource_type="all", platform="all")) == 3
    assert [item["id"] for item in filter_resources(items, skill_level="Advanced")] == ["b", "c"]
    assert [item["id"] for item in filter_resources(items, search="SQL")] == ["a", "b"]
    assert filter_resources(items, platform="Udemy") == []


def test_paginate_reports_ceiling_page_count():
    page = paginate(list(range(20)), page=3, page_size=9)
    assert page["items"] == [18, 19]
    assert page["total_items"] == 20
    assert page["total_pages"] == 3
    assert page["current_page"] == 3
    assert page["items_per_page"] == 9


def test_paginate_last_partial_page():
    page = paginate(list(range(25)), page=3, page_size=9)
    assert page["items"] == list(range(18, 25))
    assert page["total_pages"] == 3


@pytest.mark.asyncio
async def test_no_skills_or_goals_never_calls_catalog(integration_client, seed_user, auth_header):
    await seed_user(TEST_USER_ID)
    with patch("routers.resources._get_youtube_client") as mock_factory:
        response = await integration_client.get("/resources/recommended", headers=auth_header(TEST_USER_ID))

    assert response.status_code == 200
    payload = response.json()
    assert payload["has_skills_or_goals"] is False
    assert payload["resources"] == []
    assert payload["total_items"] == 0
    assert payload["total_pages"] == 0
    assert payload["message"]
    mock_factory.assert_not_called()


@pytest.mark.asyncio
async def test_recommendations_merge_terms_sort_and_paginate(integration_client, seed_user, auth_header):
    await seed_user(TEST_USER_ID)
    headers = auth_header(TEST_USER_ID)
    python = await integration_client.post("/skills", json={"name": "Python"}, headers=headers)
    sql = await integration_client.post("/skills", json={"name": "SQL"}, headers=headers)
    goal = await integration_client.post(
        "/goals",
        json={
            "title": "Data engineer",
            "start_date": "2024-01-01",
            "target_completion_date": "2024-06-01",
            "associated_skills": [sql.json()["id"]],
        },
        headers=headers,
    )
    assert python.status_code == 201
    assert goal.status_code == 201

    responses = {
        "Python tutorial": _search_response(_resource("shared", 10, 1), _resource("py", 400, 2)),
        "SQL tutorial": _search_response(_resource("shared", 100, 10), _resource("sql", 5, 1)),
    }

    with patch("routers.resources._get_youtube_client") as mock_factory:
        client = MagicMock(spec=YouTubeClient)
        client.search_videos.side_effect = lambda query, **kwargs: responses[query]
        mock_factory.return_value = client

        response = await integration_client.get(
            "/resources/recommended?page=1&limit=2",
            headers=headers,
        )
        cached = await integration_client.get(
            "/resources/recommended?page=2&limit=2",
            headers=headers,
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["has_skills_or_goals"] is True
    assert payload["total_items"] == 3
    assert payload["total_pages"] == 2
    assert payload["items_per_page"] == 2
    # "shared" keeps the SQL payload (last seen): 100 * 10 = 1000 beats 400 * 2.
    assert [item["id"] for item in payload["resources"]] == ["shared", "py"]
    assert payload["resources"][0]["view_count"] == 100

    assert [item["id"] for item in cached.json()["resources"]] == ["sql"]
    # Two distinct terms, each fetched once thanks to the search cache.
    assert client.search_videos.call_count == 2
    queried = sorted(call.kwargs.get("query") or call.args[0] for call in client.search_videos.call_args_list)
    assert queried == ["Python tutorial", "SQL tutorial"]


@pytest.mark.asyncio
async def test_failing_term_contributes_nothing(integration_client, seed_user, auth_header):
    await seed_user(TEST_USER_ID)
    headers = auth_header(TEST_USER_ID)
    await integration_client.post("/skills", json={"name": "Go"}, headers=headers)
    await integration_client.post("/skills", json={"name": "Kotlin"}, headers=headers)

    def search(query, **kwargs):
        if query.startswith("Go"):
            raise CatalogUnavailableError("quota exceeded")
        return _search_response(_resource("kt", 10, 1, skill_level="Beginner"))

    with patch("routers.resources._get_youtube_client") as mock_factory:
        client = MagicMock(spec=YouTubeClient)
        client.search_videos.side_effect = search
        mock_factory.return_value = client

        response = await integration_client.get(
            "/resources/recommended?skill_level=Beginner",
            headers=headers,
        )

    assert response.status_code == 200
    payload = response.json()
    assert [item["id"] for item in payload["resources"]] == ["kt"]
    assert payload["total_items"] == 1


@pytest.mark.asyncio
async def test_unexpected_failure_returns_generic_500(integration_client, seed_user, auth_header):
    await seed_user(TEST_USER_ID)
    headers = auth_header(TEST_USER_ID)
    await integration_client.post("/skills", json={"name": "Go"}, headers=headers)

    with patch("routers.resources._get_youtube_client", side_effect=RuntimeError("boom")):
        response = await integration_client.get("/resources/recommended", headers=headers)

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch resources. Please try again later."
