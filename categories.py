# categories.py

from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings, get_settings
from errors import ConflictError, NotFoundError, ValidationError
from logging_config import get_logger
from models import DEFAULT_CATEGORY_IMAGE, Category, Post
from policy import ensure_can_mutate_category
from queries import recent_posts_in_category
from resolver import resolve_id_or_slug
from schemas import CategoryCreate, CategoryUpdate, Principal
from text_utils import slugify

logger = get_logger("categories")


def category_slug(name: str) -> str:
    return slugify(name, max_length=60, fallback="category")


async def _require_category(session: AsyncSession, category_id: int) -> Category:
    category = await session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def _name_taken(session: AsyncSession, name: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(Category.id).where(Category.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    return await session.scalar(stmt) is not None


async def _check_parent(
    session: AsyncSession, parent_id: int, category_id: Optional[int] = None
) -> None:
    """
    The parent must exist and must not be the category itself or one of its
    descendants, so the parent links always form a forest.
    """
    if category_id is not None and parent_id == category_id:
        raise ValidationError("A category cannot be its own parent")

    seen = set()
    current = await session.get(Category, parent_id)
    if current is None:
        raise ValidationError("Parent category not found")

    while current is not None and current.id not in seen:
        if category_id is not None and current.id == category_id:
            raise ValidationError("A category cannot be nested under its own descendant")
        seen.add(current.id)
        if current.parent_category_id is None:
            break
        current = await session.get(Category, current.parent_category_id)


async def _commit_or_conflict(session: AsyncSession) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        # Two names can differ yet slugify identically.
        await session.rollback()
        raise ConflictError("Category already exists") from exc


async def create_category(
    session: AsyncSession, draft: CategoryCreate, principal: Principal
) -> Category:
    ensure_can_mutate_category(principal, "create")

    name = (draft.name or "").strip()
    if not name:
        raise ValidationError("Category name is required")
    if await _name_taken(session, name):
        raise ConflictError("Category already exists")
    if draft.parent_category is not None:
        await _check_parent(session, draft.parent_category)

    category = Category(
        name=name,
        slug=category_slug(name),
        description=draft.description,
        image=draft.image or DEFAULT_CATEGORY_IMAGE,
        parent_category_id=draft.parent_category,
    )
    session.add(category)
    await _commit_or_conflict(session)

    logger.info("Created category %s ('%s')", category.id, category.slug)
    return category


async def update_category(
    session: AsyncSession, category_id: int, patch: CategoryUpdate, principal: Principal
) -> Category:
    """Apply the fields present in ``patch``; a new name re-derives the slug."""
    ensure_can_mutate_category(principal, "update")
    category = await _require_category(session, category_id)

    changes = patch.model_dump(exclude_unset=True)

    name = None
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        if await _name_taken(session, name, exclude_id=category_id):
            raise ConflictError("Category already exists")
    if changes.get("parent_category") is not None:
        await _check_parent(session, changes["parent_category"], category_id)
    if "is_active" in changes and changes["is_active"] is None:
        raise ValidationError("isActive must be true or false")

    if name is not None and name != category.name:
        category.name = name
        category.slug = category_slug(name)
    if "description" in changes:
        category.description = changes["description"]
    if "image" in changes:
        category.image = changes["image"] or DEFAULT_CATEGORY_IMAGE
    if "parent_category" in changes:
        category.parent_category_id = changes["parent_category"]
    if "is_active" in changes:
        category.is_active = changes["is_active"]

    await _commit_or_conflict(session)
    await session.refresh(category)
    logger.info("Updated category %s (%s)", category_id, ", ".join(sorted(changes)))
    return category


async def delete_category(session: AsyncSession, category_id: int, principal: Principal) -> None:
    """
    Delete a category nobody references.

    Refused with a conflict that reports the post count while any post is
    filed under it. Child categories are detached and become top level.
    """
    ensure_can_mutate_category(principal, "delete")
    category = await _require_category(session, category_id)

    post_count = await session.scalar(
        select(func.count()).select_from(Post).where(Post.category_id == category_id)
    )
    if post_count:
        raise ConflictError(
            f"Cannot delete category with {post_count} posts. Reassign posts first.",
            postCount=post_count,
        )

    await session.execute(
        update(Category)
        .where(Category.parent_category_id == category_id)
        .values(parent_category_id=None)
        .execution_options(synchronize_session=False)
    )
    await session.delete(category)
    try:
        await session.commit()
    except IntegrityError as exc:
        # A post was filed under the category after the count was taken.
        await session.rollback()
        raise ConflictError("Cannot delete category while posts reference it") from exc

    logger.info("Deleted category %s", category_id)


async def list_categories(session: AsyncSession) -> List[Category]:
    stmt = select(Category).where(Category.is_active.is_(True)).order_by(Category.name.asc())
    return list((await session.execute(stmt)).scalars().all())


async def get_category_by_id_or_slug(
    session: AsyncSession, token: str, settings: Optional[Settings] = None
) -> Tuple[Category, List[Post]]:
    """An active category plus its most recent published posts."""
    settings = settings or get_settings()

    async def by_id(category_id: int):
        return await session.scalar(
            select(Category).where(Category.id == category_id, Category.is_active.is_(True))
        )

    async def by_slug(slug: str):
        return await session.scalar(
            select(Category).where(Category.slug == slug, Category.is_active.is_(True))
        )

    category = await resolve_id_or_slug(token, by_id, by_slug, kind="Category")
    posts = await recent_posts_in_category(session, category.id, settings.category_recent_posts)
    return category, posts
