# test_queries.py

import pytest

import categories
from errors import ValidationError
from queries import list_published_posts, search_published_posts
from schemas import CategoryCreate


@pytest.fixture
def titles():
    return lambda found: [p.title for p in found]


@pytest.mark.asyncio
async def test_list_only_published_newest_first(session, make_post, titles):
    await make_post(title="Old", is_published=True)
    await make_post(title="Draft")
    await make_post(title="New", is_published=True)

    page = await list_published_posts(session, page=1, limit=10)

    assert titles(page.posts) == ["New", "Old"]
    assert page.total == 2
    assert page.total_pages == 1
    assert page.page == 1


@pytest.mark.asyncio
async def test_list_pagination(session, make_post, titles):
    for i in range(5):
        await make_post(title=f"Post {i}", is_published=True)

    first = await list_published_posts(session, page=1, limit=2)
    third = await list_published_posts(session, page=3, limit=2)
    beyond = await list_published_posts(session, page=4, limit=2)

    assert titles(first.posts) == ["Post 4", "Post 3"]
    assert titles(third.posts) == ["Post 0"]
    assert beyond.posts == []
    assert first.total == third.total == beyond.total == 5
    assert first.total_pages == 3


@pytest.mark.asyncio
async def test_list_rejects_bad_paging(session):
    with pytest.raises(ValidationError):
        await list_published_posts(session, page=0, limit=10)


@pytest.mark.asyncio
async def test_list_filters_by_category_id_or_slug(session, principals, make_post, titles, tech):
    life = await categories.create_category(session, CategoryCreate(name="Life"), principals["admin"])
    await make_post(title="Gadgets", is_published=True)
    await make_post(title="Cooking", is_published=True, category=life.id)

    by_slug = await list_published_posts(session, category="life")
    by_id = await list_published_posts(session, category=str(tech.id))
    unknown = await list_published_posts(session, category="nothing")

    assert titles(by_slug.posts) == ["Cooking"]
    assert titles(by_id.posts) == ["Gadgets"]
    assert unknown.total == 0 and unknown.total_pages == 0


@pytest.mark.asyncio
async def test_search_matches_title_content_and_tags(session, make_post, titles):
    await make_post(title="FastAPI tips", content="...", is_published=True)
    await make_post(title="Other", content="Deep dive into fastapi internals", is_published=True)
    await make_post(title="Tagged", content="...", tags=["FastAPI"], is_published=True)
    await make_post(title="Unrelated", content="gardening", is_published=True)
    await make_post(title="FastAPI draft", content="...")

    found = await search_published_posts(session, "fastapi")

    assert titles(found) == ["Tagged", "Other", "FastAPI tips"]


@pytest.mark.asyncio
async def test_search_without_match_is_empty(session, make_post):
    await make_post(is_published=True)
    assert await search_published_posts(session, "zzz-no-match") == []


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(session, make_post, titles):
    await make_post(title="100% coverage", is_published=True)
    await make_post(title="1000 words", is_published=True)

    assert titles(await search_published_posts(session, "100%")) == ["100% coverage"]
    assert await search_published_posts(session, "_") == []


@pytest.mark.asyncio
async def test_search_requires_text(session):
    with pytest.raises(ValidationError):
        await search_published_posts(session, "   ")
    with pytest.raises(ValidationError):
        await search_published_posts(session, None)


@pytest.mark.asyncio
async def test_search_cap(session, make_post):
    for i in range(4):
        await make_post(title=f"Match {i}", is_published=True)
    assert len(await search_published_posts(session, "match", max_results=3)) == 3


@pytest.mark.asyncio
async def test_list_rejects_offset_beyond_integer_range(session):
    with pytest.raises(ValidationError):
        await list_published_posts(session, page=10**18, limit=100)


@pytest.mark.asyncio
async def test_list_with_oversized_numeric_category(session, make_post):
    await make_post(is_published=True)
    page = await list_published_posts(session, category="99999999999999999999999")
    assert page.total == 0
