# posts.py

from typing import List, Optional, Union

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config import Settings, get_settings
from errors import ConflictError, NotFoundError, ValidationError
from logging_config import get_logger
from models import DEFAULT_POST_IMAGE, Category, Comment, Post, PostTag
from policy import ensure_can_mutate_post
from queries import listing_options
from resolver import resolve_id_or_slug
from schemas import PostCreate, PostUpdate, Principal
from text_utils import derive_excerpt, escape_like, next_free_slug, normalize_tags, slugify

logger = get_logger("posts")


async def load_post(session: AsyncSession, post_id: int) -> Optional[Post]:
    """Fetch a post with everything needed to render it, comment thread included."""
    stmt = (
        select(Post)
        .where(Post.id == post_id)
        .options(
            *listing_options(),
            selectinload(Post.comments).selectinload(Comment.author),
        )
        .execution_options(populate_existing=True)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def _require_post(session: AsyncSession, post_id: int) -> Post:
    post = await load_post(session, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def _resolve_category(session: AsyncSession, token: Union[int, str]) -> Category:
    async def by_id(category_id: int):
        return await session.get(Category, category_id)

    async def by_slug(slug: str):
        return await session.scalar(select(Category).where(Category.slug == slug))

    try:
        return await resolve_id_or_slug(str(token), by_id, by_slug, kind="Category")
    except NotFoundError as exc:
        raise ValidationError(exc.message) from exc


async def _taken_slugs(session: AsyncSession, base: str) -> List[str]:
    pattern = f"{escape_like(base)}-%"
    stmt = select(Post.slug).where((Post.slug == base) | Post.slug.like(pattern, escape="\\"))
    return list((await session.execute(stmt)).scalars().all())


def _required_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} is required")
    return value


async def create_post(
    session: AsyncSession,
    draft: PostCreate,
    principal: Principal,
    settings: Optional[Settings] = None,
) -> Post:
    """
    Create a post authored by ``principal``.

    The slug comes from the title. If it is taken the lowest free numeric
    suffix is used (``hello-world-2``...). The unique index on ``posts.slug``
    is the final arbiter: when a concurrent request claims the same slug
    first, the insert is rolled back and the next free suffix is tried.
    """
    settings = settings or get_settings()

    title = _required_text(draft.title, "Title").strip()
    content = _required_text(draft.content, "Content")
    if draft.category is None or not str(draft.category).strip():
        raise ValidationError("Category is required")
    category_id = (await _resolve_category(session, draft.category)).id

    excerpt = draft.excerpt if draft.excerpt and draft.excerpt.strip() else None
    if excerpt is None:
        excerpt = derive_excerpt(content, settings.excerpt_length)
    tags = normalize_tags(draft.tags)
    base = slugify(title)

    for _ in range(settings.slug_max_attempts):
        slug = next_free_slug(base, await _taken_slugs(session, base))
        post = Post(
            title=title,
            slug=slug,
            content=content,
            excerpt=excerpt,
            featured_image=draft.featured_image or DEFAULT_POST_IMAGE,
            category_id=category_id,
            author_id=principal.id,
            is_published=draft.is_published,
            view_count=0,
            tag_rows=[PostTag(name=tag) for tag in tags],
        )
        session.add(post)
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            if slug not in await _taken_slugs(session, base):
                # The category was deleted after it was resolved.
                if await session.scalar(select(Category.id).where(Category.id == category_id)) is None:
                    raise ValidationError("Category not found") from exc
                raise
            logger.info("Slug '%s' was claimed concurrently, trying the next one", slug)
            continue

        logger.info("User %s created post %s ('%s')", principal.id, post.id, slug)
        return await load_post(session, post.id)

    raise ConflictError(f"Could not allocate a unique slug for '{title}'")


async def increment_view_count(session: AsyncSession, post_id: int) -> None:
    """Atomic +1 on the counter; never a read-modify-write in Python."""
    stmt = (
        update(Post)
        .where(Post.id == post_id)
        # keep updated_at: a read is not an edit
        .values(view_count=Post.view_count + 1, updated_at=Post.updated_at)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError("Post not found")
    await session.commit()


async def get_post_by_id_or_slug(session: AsyncSession, token: str) -> Post:
    """Resolve a post by id or slug and count the read."""

    async def by_id(post_id: int):
        return await session.scalar(select(Post.id).where(Post.id == post_id))

    async def by_slug(slug: str):
        return await session.scalar(select(Post.id).where(Post.slug == slug))

    post_id = await resolve_id_or_slug(token, by_id, by_slug, kind="Post")
    await increment_view_count(session, post_id)
    return await _require_post(session, post_id)


async def update_post(
    session: AsyncSession,
    post_id: int,
    patch: PostUpdate,
    principal: Principal,
    settings: Optional[Settings] = None,
) -> Post:
    """
    Apply the fields present in ``patch``.

    Absent fields are left alone. Required fields (title, content, category)
    cannot be cleared; an explicitly empty excerpt is re-derived from the
    content. The author and the slug never change.
    """
    settings = settings or get_settings()
    post = await _require_post(session, post_id)
    ensure_can_mutate_post(principal, post, "update")

    changes = patch.model_dump(exclude_unset=True)

    # Validate everything before touching the entity.
    title = content = category = None
    if "title" in changes:
        title = _required_text(changes["title"], "Title").strip()
    if "content" in changes:
        content = _required_text(changes["content"], "Content")
    if "category" in changes:
        if changes["category"] is None:
            raise ValidationError("Category is required")
        category = await _resolve_category(session, changes["category"])
    if "is_published" in changes and changes["is_published"] is None:
        raise ValidationError("isPublished must be true or false")

    if title is not None:
        post.title = title
    if content is not None:
        post.content = content
    if category is not None:
        post.category = category
    if "excerpt" in changes:
        excerpt = changes["excerpt"]
        if not excerpt or not excerpt.strip():
            excerpt = derive_excerpt(post.content, settings.excerpt_length)
        post.excerpt = excerpt
    if "featured_image" in changes:
        post.featured_image = changes["featured_image"] or DEFAULT_POST_IMAGE
    if "tags" in changes:
        existing = {row.name: row for row in post.tag_rows}
        post.tag_rows = [
            existing.get(name) or PostTag(name=name) for name in normalize_tags(changes["tags"])
        ]
    if "is_published" in changes:
        post.is_published = changes["is_published"]

    await session.commit()
    logger.info("User %s updated post %s (%s)", principal.id, post_id, ", ".join(sorted(changes)))
    return await _require_post(session, post_id)


async def delete_post(session: AsyncSession, post_id: int, principal: Principal) -> None:
    """Remove a post together with its tags and comments in one transaction."""
    post = await session.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    ensure_can_mutate_post(principal, post, "delete")

    await session.execute(delete(Comment).where(Comment.post_id == post_id))
    await session.execute(delete(PostTag).where(PostTag.post_id == post_id))
    await session.execute(delete(Post).where(Post.id == post_id))
    await session.commit()
    logger.info("User %s deleted post %s", principal.id, post_id)


async def add_comment(
    session: AsyncSession, post_id: int, principal: Principal, content: Optional[str]
) -> Post:
    """
    Append a comment to a post.

    The comment is a single INSERT into its own table, so concurrent
    commenters never overwrite each other.
    """
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment content is required")

    if await session.scalar(select(Post.id).where(Post.id == post_id)) is None:
        raise NotFoundError("Post not found")

    session.add(Comment(post_id=post_id, author_id=principal.id, content=text))
    try:
        await session.commit()
    except IntegrityError as exc:
        # The post was deleted between the check and the insert.
        await session.rollback()
        raise NotFoundError("Post not found") from exc

    return await _require_post(session, post_id)
