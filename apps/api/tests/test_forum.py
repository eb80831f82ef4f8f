from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError

from models.content_flag import ContentFlag


AUTHOR_ID = "forum-author"
READER_ID = "forum-reader"
ADMIN_ID = "forum-admin"


async def _create_post(client, headers, title="Learning asyncio", tags=None):
    response = await client.post(
        "/posts",
        json={"title": title, "content": "Where do I start?", "tags": tags or ["python"]},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def forum_users(seed_user):
    await seed_user(AUTHOR_ID, full_name="Ada Author")
    await seed_user(READER_ID, full_name="Rey Reader")
    await seed_user(ADMIN_ID, role="admin", full_name="Mod Admin")


@pytest.mark.asyncio
async def test_post_lifecycle_and_author_only_edits(integration_client, forum_users, auth_header):
    author, reader = auth_header(AUTHOR_ID), auth_header(READER_ID)
    post = await _create_post(integration_client, author)
    assert post["author"]["full_name"] == "Ada Author"
    assert post["likes_count"] == 0

    forbidden = await integration_client.put(f"/posts/{post['id']}", json={"title": "Hijacked"}, headers=reader)
    assert forbidden.status_code == 403

    edited = await integration_client.put(f"/posts/{post['id']}", json={"title": "Learning trio"}, headers=author)
    assert edited.status_code == 200
    assert edited.json()["title"] == "Learning trio"

    forbidden_delete = await integration_client.delete(f"/posts/{post['id']}", headers=reader)
    assert forbidden_delete.status_code == 403

    deleted = await integration_client.delete(f"/posts/{post['id']}", headers=author)
    assert deleted.status_code == 200
    missing = await integration_client.get(f"/posts/{post['id']}", headers=author)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_like_toggles(integration_client, forum_users, auth_header):
    reader = auth_header(READER_ID)
    post = await _create_post(integration_client, auth_header(AUTHOR_ID))

    liked = await integration_client.put(f"/posts/{post['id']}/like", headers=reader)
    assert liked.json()["likes"] == [READER_ID]
    assert liked.json()["likes_count"] == 1

    unliked = await integration_client.put(f"/posts/{post['id']}/like", headers=reader)
    assert unliked.json()["likes"] == []
    assert unliked.json()["likes_count"] == 0


@pytest.mark.asyncio
async def test_comments_can_only_be_deleted_by_their_author(integration_client, forum_users, auth_header):
    author, reader = auth_header(AUTHOR_ID), auth_header(READER_ID)
    post = await _create_post(integration_client, author)

    commented = await integration_client.post(
        f"/posts/{post['id']}/comments",
        json={"content": "Read the docs"},
        headers=reader,
    )
    assert commented.status_code == 201
    comment = commented.json()["comments"][0]
    assert comment["user"]["id"] == READER_ID

    forbidden = await integration_client.delete(f"/posts/{post['id']}/comments/{comment['id']}", headers=author)
    assert forbidden.status_code == 403

    removed = await integration_client.delete(f"/posts/{post['id']}/comments/{comment['id']}", headers=reader)
    assert removed.status_code == 200
    assert removed.json()["post"]["comments"] == []


@pytest.mark.asyncio
async def test_list_posts_search_sort_and_paginate(integration_client, forum_users, auth_header):
    author, reader = auth_header(AUTHOR_ID), auth_header(READER_ID)
    quiet = await _create_post(integration_client, author, title="Quiet post", tags=["misc"])
    popular = await _create_post(integration_client, author, title="Popular post", tags=["rust"])
    await integration_client.put(f"/posts/{popular['id']}/like", headers=reader)
    await integration_client.post(f"/posts/{quiet['id']}/comments", json={"content": "hi"}, headers=reader)

    by_likes = await integration_client.get("/posts?sort=popular", headers=reader)
    assert [item["id"] for item in by_likes.json()["posts"]] == [popular["id"], quiet["id"]]

    by_comments = await integration_client.get("/posts?sort=commented", headers=reader)
    assert [item["id"] for item in by_comments.json()["posts"]][0] == quiet["id"]
    assert by_comments.json()["posts"][0]["comments_count"] == 1

    tagged = await integration_client.get("/posts?search=rust", headers=reader)
    assert [item["id"] for item in tagged.json()["posts"]] == [popular["id"]]

    paged = await integration_client.get("/posts?limit=1&page=2", headers=reader)
    body = paged.json()
    assert body["total_posts"] == 2
    assert body["total_pages"] == 2
    assert body["current_page"] == 2
    assert len(body["posts"]) == 1

    mine = await integration_client.get(f"/posts?user_id={READER_ID}", headers=reader)
    assert mine.json()["posts"] == []


@pytest.mark.asyncio
async def test_flag_twice_while_pending_is_rejected(integration_client, forum_users, auth_header):
    reader = auth_header(READER_ID)
    post = await _create_post(integration_client, auth_header(AUTHOR_ID))

    first = await integration_client.post(f"/posts/{post['id']}/flag", json={"reason": "spam"}, headers=reader)
    assert first.status_code == 200
    second = await integration_client.post(f"/posts/{post['id']}/flag", json={"reason": "spam"}, headers=reader)
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_reader_can_flag_post_again_after_dismissal(integration_client, forum_users, auth_header):
    reader, admin = auth_header(READER_ID), auth_header(ADMIN_ID, role="admin")
    post = await _create_post(integration_client, auth_header(AUTHOR_ID))
    await integration_client.post(f"/posts/{post['id']}/flag", json={"reason": "spam"}, headers=reader)

    queue = await integration_client.get("/admin/posts?flagged_only=true", headers=admin)
    flag_id = queue.json()["posts"][0]["flags"][0]["id"]
    dismissed = await integration_client.post(
        "/admin/resolve-flagged",
        json={"post_id": post["id"], "flag_id": flag_id, "action": "dismissed"},
        headers=admin,
    )
    assert dismissed.status_code == 200

    again = await integration_client.post(f"/posts/{post['id']}/flag", json={"reason": "spam"}, headers=reader)
    assert again.status_code == 200


@pytest.mark.asyncio
async def test_concurrent_duplicate_flag_is_rejected_by_index(integration_client, forum_users, auth_header, session_maker):
    reader = auth_header(READER_ID)
    post = await _create_post(integration_client, auth_header(AUTHOR_ID))
    first = await integration_client.post(f"/posts/{post['id']}/flag", json={"reason": "spam"}, headers=reader)
    assert first.status_code == 200

    # Both requests pass the pending check before either commits.
    with patch("services.forum._has_pending_flag", AsyncMock(return_value=False)):
        raced = await integration_client.post(f"/posts/{post['id']}/flag", json={"reason": "spam"}, headers=reader)
    assert raced.status_code == 400
    assert raced.json()["detail"] == "You have already flagged this post"

    async with session_maker() as session:
        session.add(ContentFlag(post_id=post["id"], user_id=READER_ID, reason="dup", status="pending"))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.asyncio
async def test_admin_resolves_flag_and_can_not_resolve_twice(integration_client, forum_users, auth_header):
    author, reader, admin = auth_header(AUTHOR_ID), auth_header(READER_ID), auth_header(ADMIN_ID, role="admin")
    post = await _create_post(integration_client, author)
    commented = await integration_client.post(
        f"/posts/{post['id']}/comments",
        json={"content": "buy cheap stuff"},
        headers=author,
    )
    comment_id = commented.json()["comments"][0]["id"]

    await integration_client.post(f"/posts/{post['id']}/flag", json={"reason": "off topic"}, headers=reader)
    await integration_client.post(
        f"/posts/{post['id']}/comments/{comment_id}/flag",
        json={"reason": "spam"},
        headers=reader,
    )

    stats = await integration_client.get("/admin/flagged-stats", headers=admin)
    assert stats.json() == {"post_flags": 1, "comment_flags": 1, "total": 1}

    queue = await integration_client.get("/admin/posts?flagged_only=true", headers=admin)
    assert queue.status_code == 200
    flagged_post = queue.json()["posts"][0]
    assert flagged_post["pending_flags"] == {"post_flags": 1, "comment_flags": 1}
    comment_flag_id = flagged_post["comments"][0]["flags"][0]["id"]

    resolved = await integration_client.post(
        "/admin/resolve-flagged",
        json={
            "post_id": post["id"],
            "comment_id": comment_id,
            "flag_id": comment_flag_id,
            "action": "reviewed",
            "notify_user": True,
        },
        headers=admin,
    )
    assert resolved.status_code == 200
    assert resolved.json()["post"]["comments"][0]["flags"][0]["status"] == "reviewed"

    again = await integration_client.post(
        "/admin/resolve-flagged",
        json={
            "post_id": post["id"],
            "comment_id": comment_id,
            "flag_id": comment_flag_id,
            "action": "dismissed",
        },
        headers=admin,
    )
    assert again.status_code == 400

    # The reporter hears back, and the comment author too since notify_user was set.
    reporter_inbox = await integration_client.get("/notifications", headers=reader)
    author_inbox = await integration_client.get("/notifications", headers=author)
    assert len(reporter_inbox.json()) == 1
    assert len(author_inbox.json()) == 1

    # Once resolved, the reporter may flag the same comment again.
    reflag = await integration_client.post(
        f"/posts/{post['id']}/comments/{comment_id}/flag",
        json={"reason": "still spam"},
        headers=reader,
    )
    assert reflag.status_code == 200


@pytest.mark.asyncio
async def test_admin_moderation_edits_notify_author(integration_client, forum_users, auth_header):
    author, admin = auth_header(AUTHOR_ID), auth_header(ADMIN_ID, role="admin")
    post = await _create_post(integration_client, author, title="Rough draft")

    searched = await integration_client.get("/admin/posts?search_query=ada", headers=admin)
    assert [item["id"] for item in searched.json()["posts"]] == [post["id"]]

    edited = await integration_client.put(f"/admin/posts/{post['id']}", json={"title": "Clean draft"}, headers=admin)
    assert edited.status_code == 200
    assert edited.json()["title"] == "Clean draft"

    removed = await integration_client.delete(f"/admin/posts/{post['id']}", headers=admin)
    assert removed.status_code == 200

    inbox = await integration_client.get("/notifications", headers=author)
    assert len(inbox.json()) == 2


@pytest.mark.asyncio
async def test_admin_routes_reject_regular_users(integration_client, forum_users, auth_header):
    response = await integration_client.get("/admin/posts", headers=auth_header(READER_ID))
    assert response.status_code == 403
    assert response.json()["detail"] == "Forbidden: Admins only"
