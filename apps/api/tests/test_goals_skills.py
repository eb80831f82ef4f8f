from urllib.parse import quote

import pytest


OWNER_ID = "goal-owner"
OTHER_ID = "goal-intruder"

RESOURCE = {
    "title": "Python in 1 hour",
    "platform": "YouTube",
    "link": "https://www.youtube.com/watch?v=abc123",
    "thumbnail": "http://example.com/abc.jpg",
    "duration": "PT1H2M3S",
}


async def _create_skill(client, headers, name, **extra):
    response = await client.post("/skills", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 201
    return response.json()


async def _create_goal(client, headers, skill_ids, **extra):
    body = {
        "title": "Ship a side project",
        "start_date": "2024-01-01",
        "target_completion_date": "2024-03-01",
        "associated_skills": skill_ids,
    }
    body.update(extra)
    return await client.post("/goals", json=body, headers=headers)


@pytest.mark.asyncio
async def test_skill_crud_defaults_and_scoping(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    await seed_user(OTHER_ID)
    headers = auth_header(OWNER_ID)

    skill = await _create_skill(integration_client, headers, "Python")
    assert skill["description"] == "No description provided."
    assert skill["progress"] == 0

    updated = await integration_client.put(
        f"/skills/{skill['id']}",
        json={"progress": 40, "description": "Scripting"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["progress"] == 40
    assert updated.json()["name"] == "Python"

    too_high = await integration_client.put(f"/skills/{skill['id']}", json={"progress": 140}, headers=headers)
    assert too_high.status_code == 422

    foreign = await integration_client.put(
        f"/skills/{skill['id']}",
        json={"progress": 10},
        headers=auth_header(OTHER_ID),
    )
    assert foreign.status_code == 404

    listing = await integration_client.get("/skills", headers=auth_header(OTHER_ID))
    assert listing.json() == []


@pytest.mark.asyncio
async def test_matching_skills_ignores_short_keywords(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    headers = auth_header(OWNER_ID)
    await _create_skill(integration_client, headers, "JavaScript")
    await _create_skill(integration_client, headers, "Go")

    matched = await integration_client.get("/skills/matching?keywords=script,go", headers=headers)
    assert matched.status_code == 200
    assert [item["name"] for item in matched.json()] == ["JavaScript"]

    missing = await integration_client.get("/skills/matching", headers=headers)
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_goal_date_order_is_enforced(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    headers = auth_header(OWNER_ID)

    bad = await _create_goal(
        integration_client,
        headers,
        [],
        start_date="2024-05-01",
        target_completion_date="2024-04-01",
    )
    assert bad.status_code == 400

    same_day = await _create_goal(
        integration_client,
        headers,
        [],
        start_date="2024-05-01",
        target_completion_date="2024-05-01",
    )
    assert same_day.status_code == 201
    goal = same_day.json()
    assert goal["status"] == "Pending"

    moved = await integration_client.put(
        f"/goals/{goal['id']}",
        json={"start_date": "2024-06-01"},
        headers=headers,
    )
    assert moved.status_code == 400


@pytest.mark.asyncio
async def test_goal_rejects_skills_owned_by_someone_else(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    await seed_user(OTHER_ID)
    foreign_skill = await _create_skill(integration_client, auth_header(OTHER_ID), "Rust")

    response = await _create_goal(integration_client, auth_header(OWNER_ID), [foreign_skill["id"]])
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_link_and_unlink_resource(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    headers = auth_header(OWNER_ID)
    skill = await _create_skill(integration_client, headers, "Python")
    goal = (await _create_goal(integration_client, headers, [skill["id"]])).json()

    linked = await integration_client.post(
        f"/goals/{goal['id']}/link-resource",
        json={"resource_data": RESOURCE},
        headers=headers,
    )
    assert linked.status_code == 200
    resources = linked.json()["resources"]
    assert len(resources) == 1
    assert resources[0]["duration_seconds"] == 3723
    assert resources[0]["duration_label"] == "1h 2m 3s"

    duplicate = await integration_client.post(
        f"/goals/{goal['id']}/link-resource",
        json={"resource_data": RESOURCE},
        headers=headers,
    )
    assert duplicate.status_code == 400

    incomplete = await integration_client.post(
        f"/goals/{goal['id']}/link-resource",
        json={"resource_data": {"title": "No link"}},
        headers=headers,
    )
    assert incomplete.status_code == 400

    unlinked = await integration_client.delete(
        f"/goals/{goal['id']}/unlink-resource/{quote(RESOURCE['link'], safe='')}",
        headers=headers,
    )
    assert unlinked.status_code == 200
    assert unlinked.json()["resources"] == []


@pytest.mark.asyncio
async def test_unlink_keeps_other_resources(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    headers = auth_header(OWNER_ID)
    goal = (await _create_goal(integration_client, headers, [])).json()
    second = {**RESOURCE, "title": "Python in 2 hours", "link": "https://www.youtube.com/watch?v=def456"}

    for resource in (RESOURCE, second):
        linked = await integration_client.post(
            f"/goals/{goal['id']}/link-resource",
            json={"resource_data": resource},
            headers=headers,
        )
        assert linked.status_code == 200

    unlinked = await integration_client.delete(
        f"/goals/{goal['id']}/unlink-resource/{quote(RESOURCE['link'], safe='')}",
        headers=headers,
    )
    assert unlinked.status_code == 200
    assert [item["link"] for item in unlinked.json()["resources"]] == [second["link"]]


@pytest.mark.asyncio
async def test_goals_matching_resource_title(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    headers = auth_header(OWNER_ID)
    python = await _create_skill(integration_client, headers, "Python")
    cooking = await _create_skill(integration_client, headers, "Cooking")
    python_goal = (await _create_goal(integration_client, headers, [python["id"]], title="Learn Python")).json()
    await _create_goal(integration_client, headers, [cooking["id"]], title="Bake bread")

    matched = await integration_client.get(
        "/goals/matching-resource/abc123?title=Python%20for%20data",
        headers=headers,
    )
    assert matched.status_code == 200
    assert [goal["id"] for goal in matched.json()] == [python_goal["id"]]

    blank = await integration_client.get("/goals/matching-resource/abc123?title=%20", headers=headers)
    assert blank.status_code == 400


@pytest.mark.asyncio
async def test_deleting_skill_deletes_referencing_goals(integration_client, seed_user, auth_header):
    await seed_user(OWNER_ID)
    headers = auth_header(OWNER_ID)
    python = await _create_skill(integration_client, headers, "Python")
    sql = await _create_skill(integration_client, headers, "SQL")
    doomed = (await _create_goal(integration_client, headers, [python["id"], sql["id"]])).json()
    survivor = (await _create_goal(integration_client, headers, [sql["id"]], title="Query well")).json()

    await integration_client.post(
        f"/goals/{doomed['id']}/link-resource",
        json={"resource_data": RESOURCE},
        headers=headers,
    )

    deleted = await integration_client.delete(f"/skills/{python['id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["deleted_goal_ids"] == [doomed["id"]]

    remaining = await integration_client.get("/goals", headers=headers)
    assert [goal["id"] for goal in remaining.json()] == [survivor["id"]]

    by_skill = await integration_client.get(f"/goals?skill_id={sql['id']}", headers=headers)
    assert [goal["id"] for goal in by_skill.json()] == [survivor["id"]]


@pytest.mark.asyncio
async def test_goal_routes_require_auth(integration_client):
    response = await integration_client.get("/goals")
    assert response.status_code == 401
