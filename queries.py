# queries.py

import math
from dataclasses import dataclass
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from errors import ValidationError
from models import MAX_ID, Category, Post, PostTag
from resolver import is_identifier
from text_utils import escape_like


@dataclass
class Page:
    posts: List[Post]
    total: int
    total_pages: int
    page: int


def listing_options():
    """Eager loads needed to render a post in a listing."""
    return (
        selectinload(Post.author),
        selectinload(Post.category),
        selectinload(Post.tag_rows),
    )


def _newest_first(stmt):
    # id breaks ties between posts created within the same clock tick
    return stmt.order_by(Post.created_at.desc(), Post.id.desc())


def _category_condition(token: str):
    token = str(token).strip()
    condition = Category.slug == token
    if is_identifier(token):
        condition = sa.or_(Category.id == int(token), condition)
    return Post.category.has(condition)


async def list_published_posts(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
) -> Page:
    """Published posts, newest first, one offset/limit page at a time."""
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")
    if (page - 1) * limit > MAX_ID:
        raise ValidationError("page is out of range")

    # Base query for filtering
    base_stmt = select(Post).where(Post.is_published.is_(True))
    if category:
        base_stmt = base_stmt.where(_category_condition(category))

    # Count total matching rows *before* pagination
    count_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = (await session.execute(count_stmt)).scalar_one_or_none() or 0

    paginated_stmt = (
        _newest_first(base_stmt)
        .options(*listing_options())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(paginated_stmt)
    posts = list(result.scalars().all())

    return Page(posts=posts, total=total, total_pages=math.ceil(total / limit), page=page)


async def search_published_posts(
    session: AsyncSession,
    text: Optional[str],
    max_results: Optional[int] = None,
) -> List[Post]:
    """
    Case-insensitive substring search over title, content and tags.

    Only published posts match. Results come back newest first and are not
    paginated; ``max_results`` optionally caps the result set.
    """
    text = (text or "").strip()
    if not text:
        raise ValidationError("Search query is required")

    pattern = f"%{escape_like(text)}%"
    stmt = select(Post).where(
        Post.is_published.is_(True),
        sa.or_(
            Post.title.ilike(pattern, escape="\\"),
            Post.content.ilike(pattern, escape="\\"),
            Post.tag_rows.any(PostTag.name.ilike(pattern, escape="\\")),
        ),
    )
    stmt = _newest_first(stmt).options(*listing_options())
    if max_results:
        stmt = stmt.limit(max_results)

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def recent_posts_in_category(
    session: AsyncSession, category_id: int, limit: int = 10
) -> List[Post]:
    stmt = (
        _newest_first(
            select(Post).where(Post.category_id == category_id, Post.is_published.is_(True))
        )
        .options(*listing_options())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
