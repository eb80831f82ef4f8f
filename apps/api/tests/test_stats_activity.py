from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.future import select

from database import utcnow
from models.notification import Notification
from services.activity import check_inactive_users, needs_activity_alert


ADMIN_ID = "stats-admin"
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_needs_activity_alert_counts_whole_days():
    assert needs_activity_alert(NOW - timedelta(days=30), 30, now=NOW) is True
    assert needs_activity_alert(NOW - timedelta(days=29, hours=23), 30, now=NOW) is False
    assert needs_activity_alert(None, 30, now=NOW) is False


def test_needs_activity_alert_accepts_naive_timestamps():
    naive = (NOW - timedelta(days=10)).replace(tzinfo=None)
    assert needs_activity_alert(naive, 7, now=NOW) is True


@pytest.mark.asyncio
async def test_check_inactive_users_notifies_only_idle_accounts(session_maker, seed_user):
    await seed_user("active-user", last_active_time=utcnow())
    await seed_user("idle-user", last_active_time=utcnow() - timedelta(days=3), activity_alert_threshold=2)

    async with session_maker() as session:
        alerted = await check_inactive_users(session)
        result = await session.execute(select(Notification.user_id))
        recipients = result.scalars().all()

    assert alerted == 1
    assert recipients == ["idle-user"]


@pytest.mark.asyncio
async def test_admin_reports_summarize_platform(integration_client, seed_user, auth_header):
    await seed_user(ADMIN_ID, role="admin")
    await seed_user("member")
    await seed_user("dormant", last_active_time=utcnow() - timedelta(days=90))
    member = auth_header("member")

    skill = (await integration_client.post("/skills", json={"name": "Go"}, headers=member)).json()
    for status in ("Completed", "Pending", "Pending"):
        await integration_client.post(
            "/goals",
            json={
                "title": f"Goal {status}",
                "start_date": "2024-01-01",
                "target_completion_date": "2024-02-01",
                "associated_skills": [skill["id"]],
                "status": status,
            },
            headers=member,
        )
    quiet = (await integration_client.post("/posts", json={"title": "Quiet", "content": "x"}, headers=member)).json()
    loud = (await integration_client.post("/posts", json={"title": "Loud", "content": "y"}, headers=member)).json()
    await integration_client.put(f"/posts/{loud['id']}/like", headers=member)
    await integration_client.post(f"/posts/{quiet['id']}/flag", json={"reason": "spam"}, headers=member)

    response = await integration_client.get("/stats/admin/reports", headers=auth_header(ADMIN_ID, role="admin"))
    assert response.status_code == 200
    report = response.json()

    assert report["users"]["total_users"] == 3
    assert report["users"]["active_users"] == 2
    assert report["skills_goals"] == {"total_skills": 1, "total_goals": 3, "goal_completion_rate": 33.33}
    assert report["forum"]["total_posts"] == 2
    assert report["forum"]["most_popular_post"]["id"] == loud["id"]
    assert report["forum"]["most_popular_post"]["likes_count"] == 1
    assert report["forum"]["flagged_posts"] == 1


@pytest.mark.asyncio
async def test_admin_reports_with_empty_forum(integration_client, seed_user, auth_header):
    await seed_user(ADMIN_ID, role="admin")
    response = await integration_client.get("/stats/admin/reports", headers=auth_header(ADMIN_ID, role="admin"))
    report = response.json()
    assert report["forum"]["most_popular_post"] is None
    assert report["skills_goals"]["goal_completion_rate"] == 0


@pytest.mark.asyncio
async def test_platform_listings_require_admin(integration_client, seed_user, auth_header):
    await seed_user(ADMIN_ID, role="admin")
    await seed_user("member")
    admin = auth_header(ADMIN_ID, role="admin")
    await integration_client.post("/skills", json={"name": "Go"}, headers=auth_header("member"))

    denied = await integration_client.get("/stats/goals", headers=auth_header("member"))
    assert denied.status_code == 403

    activity = await integration_client.get("/stats/users/activity", headers=admin)
    assert {item["id"] for item in activity.json()} == {ADMIN_ID, "member"}

    overview = await integration_client.get("/admin/skills-goals", headers=admin)
    body = overview.json()
    assert [item["name"] for item in body["skills"]] == ["Go"]
    assert body["skills"][0]["user"]["id"] == "member"
    assert body["goals"] == []


@pytest.mark.asyncio
async def test_notify_overdue_goals(integration_client, seed_user, auth_header):
    await seed_user(ADMIN_ID, role="admin")
    await seed_user("member")
    admin, member = auth_header(ADMIN_ID, role="admin"), auth_header("member")

    nothing = await integration_client.post("/admin/notify-overdue-goals", headers=admin)
    assert nothing.json() == {"message": "No overdue goals found", "notified": 0}

    for title, status in (("Late", "In Progress"), ("Done", "Completed")):
        await integration_client.post(
            "/goals",
            json={
                "title": title,
                "start_date": "2020-01-01",
                "target_completion_date": "2020-02-01",
                "associated_skills": [],
                "status": status,
            },
            headers=member,
        )

    sent = await integration_client.post("/admin/notify-overdue-goals", headers=admin)
    assert sent.json()["notified"] == 1
    inbox = await integration_client.get("/notifications", headers=member)
    assert [item["message"] for item in inbox.json()] == ['Your goal "Late" is overdue! Please take action.']
