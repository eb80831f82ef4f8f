"""Discussion forum services: posts, comments, likes and flags."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import String, cast, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from database import utcnow
from models.comment import Comment
from models.content_flag import ContentFlag
from models.post import Post
from models.post_like import PostLike
from services.serializers import iso, serialize_flag, user_brief
from services.skills import contains_pattern

logger = logging.getLogger(__name__)

POST_SORTS = ("recent", "popular", "commented")


async def _commit_unique(db: AsyncSession, detail: str) -> None:
    """Commit, turning a lost race on a unique index into a 400."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(status_code=400, detail=detail) from exc


def likes_count_expr():
    return (
        select(func.count(PostLike.id))
        .where(PostLike.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def comments_count_expr():
    return (
        select(func.count(Comment.id))
        .where(Comment.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def post_detail_options():
    return (
        selectinload(Post.author),
        selectinload(Post.likes),
        selectinload(Post.flags).selectinload(ContentFlag.reporter),
        selectinload(Post.comments).selectinload(Comment.user),
        selectinload(Post.comments).selectinload(Comment.flags).selectinload(ContentFlag.reporter),
    )


def serialize_comment(comment: Comment, include_flags: bool = False) -> Dict[str, Any]:
    payload = {
        "id": comment.id,
        "user": user_brief(comment.user),
        "user_id": comment.user_id,
        "content": comment.content,
        "created_at": iso(comment.created_at),
        "updated_at": iso(comment.updated_at),
    }
    if include_flags:
        payload["flags"] = [serialize_flag(flag, include_reporter=True) for flag in comment.flags]
    return payload


def serialize_post(post: Post, include_comments: bool = True, include_flags: bool = False) -> Dict[str, Any]:
    """Requires author, likes and (when requested) comments/flags to be loaded."""
    payload = {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "tags": list(post.tags or []),
        "author": user_brief(post.author),
        "likes": [like.user_id for like in post.likes],
        "likes_count": len(post.likes),
        "created_at": iso(post.created_at),
        "updated_at": iso(post.updated_at),
    }
    if include_comments:
        payload["comments"] = [serialize_comment(comment, include_flags) for comment in post.comments]
        payload["comments_count"] = len(post.comments)
    if include_flags:
        payload["flags"] = [serialize_flag(flag, include_reporter=True) for flag in post.flags]
    return payload


async def get_post_or_404(post_id: str, db: AsyncSession) -> Post:
    result = await db.execute(
        select(Post)
        .where(Post.id == post_id)
        .options(*post_detail_options())
        .execution_options(populate_existing=True)
    )
    post = result.scalar_one_or_none()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def find_comment_or_404(post: Post, comment_id: str) -> Comment:
    for comment in post.comments:
        if comment.id == comment_id:
            return comment
    raise HTTPException(status_code=404, detail="Comment not found")


async def delete_post_rows(post_id: str, db: AsyncSession) -> None:
    """Remove a post with its flags, likes and comments (no commit)."""
    await db.execute(delete(ContentFlag).where(ContentFlag.post_id == post_id))
    await db.execute(delete(PostLike).where(PostLike.post_id == post_id))
    await db.execute(delete(Comment).where(Comment.post_id == post_id))
    await db.execute(delete(Post).where(Post.id == post_id))


async def delete_comment_rows(comment_id: str, db: AsyncSession) -> None:
    await db.execute(delete(ContentFlag).where(ContentFlag.comment_id == comment_id))
    await db.execute(delete(Comment).where(Comment.id == comment_id))


async def create_post_service(user_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    post = Post(
        author_id=user_id,
        title=payload["title"].strip(),
        content=payload["content"],
        tags=[tag.strip() for tag in payload.get("tags") or [] if tag and tag.strip()],
    )
    db.add(post)
    await db.commit()
    logger.info("post_created user=%s post=%s", user_id, post.id)
    return serialize_post(await get_post_or_404(post.id, db))


async def list_posts_service(
    db: AsyncSession,
    author_id: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "recent",
    page: int = 1,
    limit: int = 8,
) -> Dict[str, Any]:
    page = max(int(page), 1)
    limit = max(int(limit), 1)

    filters = []
    if author_id:
        filters.append(Post.author_id == author_id)
    if search:
        pattern = contains_pattern(search)
        filters.append(
            or_(
                Post.title.ilike(pattern, escape="\\"),
                cast(Post.tags, String).ilike(pattern, escape="\\"),
            )
        )

    total_result = await db.execute(select(func.count(Post.id)).where(*filters))
    total = int(total_result.scalar() or 0)

    if sort == "popular":
        ordering = (likes_count_expr().desc(), Post.created_at.desc())
    elif sort == "commented":
        ordering = (comments_count_expr().desc(), Post.created_at.desc())
    else:
        ordering = (Post.created_at.desc(),)

    result = await db.execute(
        select(Post)
        .where(*filters)
        .options(selectinload(Post.author), selectinload(Post.likes), selectinload(Post.comments))
        .order_by(*ordering)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    posts = result.scalars().all()

    items = []
    for post in posts:
        item = serialize_post(post, include_comments=False)
        item["comments_count"] = len(post.comments)
        items.append(item)

    return {
        "posts": items,
        "total_posts": total,
        "total_pages": math.ceil(total / limit),
        "current_page": page,
    }


async def get_post_service(post_id: str, db: AsyncSession) -> Dict[str, Any]:
    return serialize_post(await get_post_or_404(post_id, db))


async def update_post_service(
    user_id: str,
    post_id: str,
    payload: Dict[str, Any],
    db: AsyncSession,
) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    if post.author_id != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized to update this post")

    if payload.get("title"):
        post.title = payload["title"]
    if payload.get("content"):
        post.content = payload["content"]
    if payload.get("tags") is not None:
        post.tags = [tag.strip() for tag in payload["tags"] if tag and tag.strip()]
    post.updated_at = utcnow()
    await db.commit()
    return serialize_post(await get_post_or_404(post_id, db))


async def delete_post_service(user_id: str, post_id: str, db: AsyncSession) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    if post.author_id != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized to delete this post")
    await delete_post_rows(post_id, db)
    await db.commit()
    return {"message": "Post deleted successfully"}


async def toggle_like_service(user_id: str, post_id: str, db: AsyncSession) -> Dict[str, Any]:
    await get_post_or_404(post_id, db)

    existing = await db.execute(
        select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
    )
    like = existing.scalar_one_or_none()
    if like:
        await db.delete(like)
        liked = False
    else:
        db.add(PostLike(post_id=post_id, user_id=user_id))
        liked = True
    await _commit_unique(db, "You have already liked this post")

    result = await db.execute(
        select(PostLike.user_id).where(PostLike.post_id == post_id).order_by(PostLike.created_at)
    )
    likes = list(result.scalars().all())
    return {"likes": likes, "likes_count": len(likes), "liked": liked}


async def add_comment_service(user_id: str, post_id: str, content: str, db: AsyncSession) -> Dict[str, Any]:
    await get_post_or_404(post_id, db)
    db.add(Comment(post_id=post_id, user_id=user_id, content=content))
    await db.commit()
    return serialize_post(await get_post_or_404(post_id, db))


async def delete_own_comment_service(
    user_id: str,
    post_id: str,
    comment_id: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    comment = find_comment_or_404(post, comment_id)
    if comment.user_id != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized to delete this comment")

    await delete_comment_rows(comment_id, db)
    await db.commit()
    return {
        "message": "Comment deleted successfully",
        "post": serialize_post(await get_post_or_404(post_id, db)),
    }


async def _has_pending_flag(
    db: AsyncSession,
    user_id: str,
    post_id: str,
    comment_id: Optional[str],
) -> bool:
    query = select(ContentFlag.id).where(
        ContentFlag.user_id == user_id,
        ContentFlag.post_id == post_id,
        ContentFlag.status == "pending",
    )
    if comment_id:
        query = query.where(ContentFlag.comment_id == comment_id)
    else:
        query = query.where(ContentFlag.comment_id.is_(None))
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def flag_post_service(user_id: str, post_id: str, reason: str, db: AsyncSession) -> Dict[str, Any]:
    await get_post_or_404(post_id, db)
    if await _has_pending_flag(db, user_id, post_id, None):
        raise HTTPException(status_code=400, detail="You have already flagged this post")

    db.add(ContentFlag(post_id=post_id, user_id=user_id, reason=reason, status="pending"))
    await _commit_unique(db, "You have already flagged this post")
    logger.info("post_flagged user=%s post=%s", user_id, post_id)
    return {"message": "Post has been flagged for review"}


async def flag_comment_service(
    user_id: str,
    post_id: str,
    comment_id: str,
    reason: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    post = await get_post_or_404(post_id, db)
    find_comment_or_404(post, comment_id)
    if await _has_pending_flag(db, user_id, post_id, comment_id):
        raise HTTPException(status_code=400, detail="You have already flagged this comment")

    db.add(ContentFlag(post_id=post_id, comment_id=comment_id, user_id=user_id, reason=reason, status="pending"))
    await _commit_unique(db, "You have already flagged this comment")
    logger.info("comment_flagged user=%s post=%s comment=%s", user_id, post_id, comment_id)
    return {"message": "Comment has been flagged for review"}


def pending_flag_counts(post: Post) -> Dict[str, int]:
    post_flags = sum(1 for flag in post.flags if flag.status == "pending")
    comment_flags = sum(
        1 for comment in post.comments for flag in comment.flags if flag.status == "pending"
    )
    return {"post_flags": post_flags, "comment_flags": comment_flags}


def serialize_moderation_post(post: Post) -> Dict[str, Any]:
    payload = serialize_post(post, include_comments=True, include_flags=True)
    payload["pending_flags"] = pending_flag_counts(post)
    return payload

