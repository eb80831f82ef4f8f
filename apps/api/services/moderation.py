"""Admin moderation of forum content and flag resolution."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import distinct, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import utcnow
from models.content_flag import ContentFlag
from models.post import Post
from models.user import User
from services.forum import (
    delete_comment_rows,
    delete_post_rows,
    find_comment_or_404,
    get_post_or_404,
    post_detail_options,
    serialize_moderation_post,
)
from services.notifications import create_notification
from services.skills import contains_pattern

logger = logging.getLogger(__name__)

ADMIN_PAGE_SIZE = 10
RESOLUTION_MESSAGES = {
    "reviewed": "Your flag on \"{title}\" was reviewed and action has been taken.",
    "dismissed": "Your flag on \"{title}\" was reviewed and dismissed.",
}
OWNER_RESOLUTION_MESSAGES = {
    "reviewed": "Content you posted in \"{title}\" was reviewed by a moderator and action has been taken.",
    "dismissed": "A report about your content in \"{title}\" was reviewed and dismissed.",
}


def _pending_post_flag_exists():
    return (
        select(ContentFlag.id)
        .where(
            ContentFlag.post_id == Post.id,
            ContentFlag.status == "pending",
        )
        .correlate(Post)
        .exists()
    )


async def list_admin_posts_service(
    db: AsyncSession,
    flagged_only: bool = False,
    search_query: Optional[str] = None,
    page: int = 1,
    limit: int = ADMIN_PAGE_SIZE,
) -> Dict[str, Any]:
    page = max(int(page), 1)
    limit = max(int(limit), 1)

    filters = []
    if flagged_only:
        filters.append(_pending_post_flag_exists())
    if search_query:
        pattern = contains_pattern(search_query)
        filters.append(
            or_(
                Post.title.ilike(pattern, escape="\\"),
                User.full_name.ilike(pattern, escape="\\"),
            )
        )

    base = select(Post).join(User, User.id == Post.author_id).where(*filters)
    total_result = await db.execute(
        select(func.count()).select_from(base.with_only_columns(Post.id).subquery())
    )
    total = int(total_result.scalar() or 0)

    result = await db.execute(
        base.options(*post_detail_options())
        .order_by(Post.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    posts = result.scalars().unique().all()
    return {
        "posts": [serialize_moderation_post(post) for post in posts],
        "total_posts": total,
        "total_pages": math.ceil(total / limit),
        "current_page": page,
    }


async def admin_update_post_service(post_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    if payload.get("title"):
        post.title = payload["title"]
    if payload.get("content"):
        post.content = payload["content"]
    if payload.get("tags") is not None:
        post.tags = [tag.strip() for tag in payload["tags"] if tag and tag.strip()]
    post.updated_at = utcnow()
    create_notification(db, post.author_id, f"Your post \"{post.title}\" was edited by a moderator.")
    await db.commit()
    logger.info("admin_post_updated post=%s", post_id)
    return serialize_moderation_post(await get_post_or_404(post_id, db))


async def admin_delete_post_service(post_id: str, db: AsyncSession) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    author_id, title = post.author_id, post.title
    await delete_post_rows(post_id, db)
    create_notification(db, author_id, f"Your post \"{title}\" was removed by a moderator.")
    await db.commit()
    logger.info("admin_post_deleted post=%s", post_id)
    return {"message": "Post deleted successfully"}


async def admin_update_comment_service(
    post_id: str,
    comment_id: str,
    content: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    comment = find_comment_or_404(post, comment_id)
    comment.content = content
    comment.updated_at = utcnow()
    create_notification(db, comment.user_id, f"Your comment on \"{post.title}\" was edited by a moderator.")
    await db.commit()
    return serialize_moderation_post(await get_post_or_404(post_id, db))


async def admin_delete_comment_service(post_id: str, comment_id: str, db: AsyncSession) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    comment = find_comment_or_404(post, comment_id)
    author_id, title = comment.user_id, post.title
    await delete_comment_rows(comment_id, db)
    create_notification(db, author_id, f"Your comment on \"{title}\" was removed by a moderator.")
    await db.commit()
    return {"message": "Comment deleted successfully"}


async def resolve_flag_service(
    post_id: str,
    flag_id: str,
    action: str,
    db: AsyncSession,
    comment_id: Optional[str] = None,
    notify_user: bool = False,
) -> Dict[str, Any]:
    """Move a pending flag to ``reviewed`` or ``dismissed``.

    The reporter always hears back; ``notify_user`` additionally tells the
    owner of the flagged post or comment.
    """
    if action not in RESOLUTION_MESSAGES:
        raise HTTPException(status_code=400, detail="Invalid action")

    post = await get_post_or_404(post_id, db)
    if comment_id:
        comment = find_comment_or_404(post, comment_id)
        flags = comment.flags
        owner_id = comment.user_id
    else:
        flags = post.flags
        owner_id = post.author_id

    flag = next((item for item in flags if item.id == flag_id), None)
    if flag is None:
        raise HTTPException(status_code=404, detail="Flag not found")
    if flag.status != "pending":
        raise HTTPException(status_code=400, detail="Flag has already been resolved")

    flag.status = action
    create_notification(db, flag.user_id, RESOLUTION_MESSAGES[action].format(title=post.title))
    if notify_user:
        create_notification(db, owner_id, OWNER_RESOLUTION_MESSAGES[action].format(title=post.title))
    await db.commit()
    logger.info("flag_resolved flag=%s action=%s notify_owner=%s", flag_id, action, notify_user)

    return {
        "message": f"Flag {action} successfully",
        "post": serialize_moderation_post(await get_post_or_404(post_id, db)),
    }


async def flagged_stats_service(db: AsyncSession) -> Dict[str, int]:
    post_flags = await db.execute(
        select(func.count(distinct(ContentFlag.post_id))).where(
            ContentFlag.status == "pending",
            ContentFlag.comment_id.is_(None),
        )
    )
    comment_flags = await db.execute(
        select(func.count(distinct(ContentFlag.post_id))).where(
            ContentFlag.status == "pending",
            ContentFlag.comment_id.is_not(None),
        )
    )
    total = await db.execute(
        select(func.count(distinct(ContentFlag.post_id))).where(ContentFlag.status == "pending")
    )
    return {
        "post_flags": int(post_flags.scalar() or 0),
        "comment_flags": int(comment_flags.scalar() or 0),
        "total": int(total.scalar() or 0),
    }
