import pytest


USER_ID = "concern-user"
ADMIN_ID = "concern-admin"
SECOND_ADMIN_ID = "concern-admin-2"


async def _inbox(client, headers):
    response = await client.get("/notifications", headers=headers)
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_new_concern_notifies_every_admin(integration_client, seed_user, auth_header):
    await seed_user(USER_ID)
    await seed_user(ADMIN_ID, role="admin")
    await seed_user(SECOND_ADMIN_ID, role="admin")

    created = await integration_client.post(
        "/concerns",
        json={"subject": "Broken link", "message": "The course link 404s"},
        headers=auth_header(USER_ID),
    )
    assert created.status_code == 201
    assert created.json()["status"] == "Pending"
    assert created.json()["resolved_at"] is None

    for admin_id in (ADMIN_ID, SECOND_ADMIN_ID):
        inbox = await _inbox(integration_client, auth_header(admin_id, role="admin"))
        assert [item["message"] for item in inbox] == ["New concern submitted: Broken link"]
    assert await _inbox(integration_client, auth_header(USER_ID)) == []


@pytest.mark.asyncio
async def test_concern_status_and_reply_flow(integration_client, seed_user, auth_header):
    await seed_user(USER_ID)
    await seed_user(ADMIN_ID, role="admin")
    user, admin = auth_header(USER_ID), auth_header(ADMIN_ID, role="admin")

    concern = (
        await integration_client.post(
            "/concerns",
            json={"subject": "Billing", "message": "Charged twice"},
            headers=user,
        )
    ).json()

    resolved = await integration_client.patch(
        f"/concerns/{concern['id']}",
        json={"status": "Resolved"},
        headers=admin,
    )
    assert resolved.status_code == 200
    assert resolved.json()["resolved_at"] is not None

    reopened = await integration_client.patch(
        f"/concerns/{concern['id']}",
        json={"status": "In Review"},
        headers=admin,
    )
    assert reopened.json()["status"] == "In Review"
    assert reopened.json()["resolved_at"] is None

    invalid = await integration_client.patch(
        f"/concerns/{concern['id']}",
        json={"status": "Closed"},
        headers=admin,
    )
    assert invalid.status_code == 422

    replied = await integration_client.post(
        f"/concerns/{concern['id']}/reply",
        json={"message": "Refund issued"},
        headers=admin,
    )
    assert replied.status_code == 200
    replies = replied.json()["replies"]
    assert [(item["message"], item["replied_by"]) for item in replies] == [("Refund issued", ADMIN_ID)]

    mine = await integration_client.get("/concerns/my-concerns", headers=user)
    assert mine.json()[0]["replies"][0]["message"] == "Refund issued"

    # Two status changes plus one reply.
    assert len(await _inbox(integration_client, user)) == 3


@pytest.mark.asyncio
async def test_concern_admin_routes_and_ownership(integration_client, seed_user, auth_header):
    await seed_user(USER_ID)
    await seed_user("someone-else")
    await seed_user(ADMIN_ID, role="admin")
    user = auth_header(USER_ID)

    concern = (
        await integration_client.post("/concerns", json={"subject": "Help", "message": "Please"}, headers=user)
    ).json()

    listing = await integration_client.get("/concerns", headers=user)
    assert listing.status_code == 403

    admin_listing = await integration_client.get("/concerns", headers=auth_header(ADMIN_ID, role="admin"))
    assert admin_listing.json()[0]["user"]["id"] == USER_ID

    stolen = await integration_client.delete(f"/concerns/{concern['id']}", headers=auth_header("someone-else"))
    assert stolen.status_code == 404

    deleted = await integration_client.delete(f"/concerns/{concern['id']}", headers=user)
    assert deleted.status_code == 200
    assert (await integration_client.get("/concerns/my-concerns", headers=user)).json() == []


@pytest.mark.asyncio
async def test_notification_read_and_delete(integration_client, seed_user, auth_header):
    await seed_user(USER_ID)
    await seed_user(ADMIN_ID, role="admin")
    admin = auth_header(ADMIN_ID, role="admin")

    for subject in ("First", "Second"):
        await integration_client.post(
            "/concerns",
            json={"subject": subject, "message": "body"},
            headers=auth_header(USER_ID),
        )

    inbox = await _inbox(integration_client, admin)
    assert len(inbox) == 2
    assert all(item["read"] is False for item in inbox)

    target = inbox[0]["id"]
    foreign = await integration_client.patch(f"/notifications/{target}/read", headers=auth_header(USER_ID))
    assert foreign.status_code == 404

    marked = await integration_client.patch(f"/notifications/{target}/read", headers=admin)
    assert marked.status_code == 200
    refreshed = {item["id"]: item["read"] for item in await _inbox(integration_client, admin)}
    assert refreshed[target] is True

    removed = await integration_client.delete(f"/notifications/{target}", headers=admin)
    assert removed.status_code == 200
    assert len(await _inbox(integration_client, admin)) == 1

    cleared = await integration_client.delete("/notifications", headers=admin)
    assert cleared.json()["deleted"] == 1
    assert await _inbox(integration_client, admin) == []
