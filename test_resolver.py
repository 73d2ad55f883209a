# test_resolver.py

import pytest

from errors import NotFoundError
from resolver import is_identifier, resolve_id_or_slug


class FakeStore:
    def __init__(self, by_id=None, by_slug=None):
        self.ids = by_id or {}
        self.slugs = by_slug or {}
        self.calls = []

    async def by_id(self, entity_id):
        self.calls.append(("id", entity_id))
        return self.ids.get(entity_id)

    async def by_slug(self, slug):
        self.calls.append(("slug", slug))
        return self.slugs.get(slug)


def test_is_identifier():
    assert is_identifier("42")
    assert not is_identifier("hello-world")
    assert not is_identifier("-1")
    assert not is_identifier("")
    assert not is_identifier("٣")  # non-ASCII digit


@pytest.mark.asyncio
async def test_identifier_tried_first():
    store = FakeStore(by_id={7: "by id"}, by_slug={"7": "by slug"})
    assert await resolve_id_or_slug("7", store.by_id, store.by_slug) == "by id"
    assert store.calls == [("id", 7)]


@pytest.mark.asyncio
async def test_identifier_miss_falls_back_to_slug():
    store = FakeStore(by_slug={"2024": "numeric slug"})
    assert await resolve_id_or_slug("2024", store.by_id, store.by_slug) == "numeric slug"
    assert store.calls == [("id", 2024), ("slug", "2024")]


@pytest.mark.asyncio
async def test_non_identifier_skips_id_lookup():
    store = FakeStore(by_slug={"hello-world": "post"})
    assert await resolve_id_or_slug("hello-world", store.by_id, store.by_slug) == "post"
    assert store.calls == [("slug", "hello-world")]


@pytest.mark.asyncio
async def test_no_match_raises_not_found():
    store = FakeStore()
    with pytest.raises(NotFoundError) as exc_info:
        await resolve_id_or_slug("missing", store.by_id, store.by_slug, kind="Post")
    assert exc_info.value.message == "Post not found"
    assert exc_info.value.status_code == 404


def test_digit_runs_beyond_integer_range_are_not_identifiers():
    assert is_identifier("9223372036854775807")
    assert not is_identifier("9223372036854775808")
    assert not is_identifier("12345678901234567890")


@pytest.mark.asyncio
async def test_oversized_number_is_only_tried_as_slug():
    store = FakeStore(by_slug={"12345678901234567890": "numeric slug"})
    assert await resolve_id_or_slug("12345678901234567890", store.by_id, store.by_slug) == "numeric slug"
    assert store.calls == [("slug", "12345678901234567890")]
