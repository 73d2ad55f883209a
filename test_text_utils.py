# test_text_utils.py

from text_utils import derive_excerpt, escape_like, next_free_slug, normalize_tags, slugify


class TestSlugify:
    def test_basic_slugify(self):
        assert slugify("Hello World") == "hello-world"

    def test_special_chars(self):
        assert slugify("Hello, World!  (again)") == "hello-world-again"

    def test_unicode(self):
        assert slugify("Café Résumé") == "cafe-resume"

    def test_nothing_usable_falls_back(self):
        assert slugify("!!!") == "post"
        assert slugify("", fallback="category") == "category"

    def test_max_length_cuts_at_hyphen(self):
        result = slugify("This is a very long title that should be truncated", max_length=20)
        assert len(result) <= 20
        assert not result.endswith("-")


class TestNextFreeSlug:
    def test_base_when_free(self):
        assert next_free_slug("hello-world", []) == "hello-world"

    def test_lowest_free_suffix(self):
        taken = ["hello-world", "hello-world-2", "hello-world-4"]
        assert next_free_slug("hello-world", taken) == "hello-world-3"


class TestExcerpt:
    def test_short_content_is_kept_whole(self):
        assert derive_excerpt("short text") == "short text"

    def test_long_content_is_cut(self):
        content = "x" * 151
        assert derive_excerpt(content) == "x" * 150


class TestTags:
    def test_trims_and_deduplicates(self):
        assert normalize_tags([" python ", "", "python", "fastapi", "  "]) == ["python", "fastapi"]

    def test_none(self):
        assert normalize_tags(None) == []


def test_escape_like():
    assert escape_like("100%_sure\\") == "100\\%\\_sure\\\\"
