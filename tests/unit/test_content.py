"""Unit tests for the content access layer, run against both stores."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_post
from content import ContentService, can_view, matches_query
from exceptions import ConflictError, NotFoundError, ValidationError
from schemas import Claims, PostDetail, PostInput

ADMIN = Claims(id="admin", email="admin@example.com", role="admin")


def day(n):
    return datetime(2024, 1, n, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def content(post_store):
    post_store.add(make_post(
        "python-tips", published_at=day(3), tags=["python", "Tips"],
        excerpt="Handy tricks", content="List comprehensions and generators.",
    ))
    post_store.add(make_post(
        "rust-intro", published_at=day(5), tags=["rust"], category="Systems",
        content="Ownership and borrowing.",
    ))
    post_store.add(make_post(
        "secret-draft", published_at=day(9), status="draft", tags=["python", "drafts"],
        content="Unfinished thoughts about pythonic code.",
    ))
    post_store.add(make_post(
        "old-news", published_at=day(1), tags=["Python"], author="John Smith",
        content="Archive material.",
    ))
    return ContentService(post_store)


def slugs(summaries):
    return [summary.slug for summary in summaries]


@pytest.mark.unit
def test_can_view():
    draft = make_post("d", status="draft")
    published = make_post("p")

    assert can_view(published, None)
    assert can_view(published, ADMIN)
    assert not can_view(draft, None)
    assert can_view(draft, ADMIN)


@pytest.mark.unit
def test_list_posts_hides_drafts_and_sorts_newest_first(content):
    assert slugs(content.list_posts(include_drafts=False)) == ["rust-intro", "python-tips", "old-news"]


@pytest.mark.unit
def test_list_posts_with_drafts(content):
    assert slugs(content.list_posts(include_drafts=True)) == [
        "secret-draft", "rust-intro", "python-tips", "old-news",
    ]


@pytest.mark.unit
def test_list_slugs(content):
    assert content.list_slugs() == ["rust-intro", "python-tips", "old-news"]


@pytest.mark.unit
def test_summaries_carry_derived_fields(content):
    summary = content.list_posts()[0]

    assert summary.formatted_date == "January 05, 2024"
    assert summary.formatted_published_at == "January 05, 2024"
    assert summary.read_time == "1 min read"
    assert summary.image == "/images/blog-placeholder.jpg"
    assert not isinstance(summary, PostDetail)


@pytest.mark.unit
def test_stored_read_time_wins(post_store):
    post_store.add(make_post("long-read", read_time="12 min read"))
    post = ContentService(post_store).present(post_store.get("long-read"))

    assert post.read_time == "12 min read"
    assert post.content == "Some body text."


@pytest.mark.unit
def test_get_all_tags_is_sorted_and_unique(content):
    assert content.get_all_tags() == ["Python", "Tips", "drafts", "python", "rust"]


@pytest.mark.unit
def test_get_all_tags_without_drafts(content):
    assert "drafts" not in content.get_all_tags(include_drafts=False)


@pytest.mark.unit
def test_get_posts_by_tag_is_case_insensitive(content):
    assert slugs(content.get_posts_by_tag("PYTHON")) == ["python-tips", "old-news"]
    assert slugs(content.get_posts_by_tag("python", include_drafts=True)) == [
        "secret-draft", "python-tips", "old-news",
    ]


@pytest.mark.unit
def test_get_posts_by_tag_is_exact(content):
    assert content.get_posts_by_tag("pyth") == []


@pytest.mark.unit
def test_search_matches_any_term_in_any_field(content):
    # "ownership" is in rust-intro's body, "smith" is old-news' author
    assert slugs(content.search("Ownership smith")) == ["rust-intro", "old-news"]


@pytest.mark.unit
def test_search_covers_excerpt_category_and_tags(content):
    assert slugs(content.search("handy")) == ["python-tips"]
    assert slugs(content.search("systems")) == ["rust-intro"]
    assert slugs(content.search("tips")) == ["python-tips"]


@pytest.mark.unit
def test_search_hides_drafts_from_anonymous_callers(content):
    assert "secret-draft" not in slugs(content.search("unfinished"))
    assert slugs(content.search("unfinished", include_drafts=True)) == ["secret-draft"]


@pytest.mark.unit
def test_hash_query_searches_tags(content):
    assert slugs(content.search("#pyth")) == ["python-tips", "old-news"]
    # "ownership" only occurs in a body, and "#" never falls back to full text
    assert slugs(content.search("#ownership")) == []


@pytest.mark.unit
@pytest.mark.parametrize("include_drafts", [False, True])
def test_hash_tag_search_agrees_with_tag_lookup(content, include_drafts):
    assert slugs(content.search("#python", include_drafts=include_drafts)) == slugs(
        content.get_posts_by_tag("python", include_drafts=include_drafts)
    )


@pytest.mark.unit
def test_search_with_tag_filter(content):
    assert slugs(content.search("ownership comprehensions", tag="RUST")) == ["rust-intro"]
    assert slugs(content.search("", tag="tips")) == ["python-tips"]


@pytest.mark.unit
def test_search_requires_query_or_tag(content):
    with pytest.raises(ValidationError):
        content.search("   ", None)


@pytest.mark.unit
def test_matches_query_lone_hash_is_plain_text():
    post = make_post("c-sharp", content="Notes on C#")
    assert matches_query(post, "#")


@pytest.mark.unit
def test_create_post_derives_slug_and_defaults_to_draft(post_store):
    service = ContentService(post_store)

    created = service.create_post(
        PostInput(title="Hello World", content="...", category="Tech"), author="admin@example.com"
    )

    assert created.slug == "hello-world"
    assert created.status == "draft"
    assert created.author == "admin@example.com"
    assert created.published_at == created.date
    assert post_store.get("hello-world").status == "draft"


@pytest.mark.unit
def test_create_post_with_colliding_slug_fails(post_store):
    service = ContentService(post_store)
    service.create_post(PostInput(title="Hello World", content="first", category="Tech"), author="a")

    with pytest.raises(ConflictError):
        service.create_post(PostInput(title="hello, world!", content="second", category="Tech"), author="a")

    assert post_store.get("hello-world").content == "first"


@pytest.mark.unit
def test_create_post_needs_sluggable_title(post_store):
    with pytest.raises(ValidationError) as excinfo:
        ContentService(post_store).create_post(
            PostInput(title="???", content="x", category="Tech"), author="a"
        )
    assert excinfo.value.fields == ["title"]


@pytest.mark.unit
def test_update_post_keeps_identity_fields(content, post_store):
    before = post_store.get("python-tips")

    updated = content.update_post(
        "python-tips",
        PostInput(title="Renamed", content="New body", category="Howto", status="published"),
    )

    assert updated.slug == "python-tips"
    assert updated.title == "Renamed"
    assert updated.date == before.date
    assert updated.author == before.author
    assert updated.tags == before.tags
    assert updated.updated_at > datetime.now(timezone.utc) - timedelta(minutes=1)
    assert post_store.get("python-tips").title == "Renamed"


@pytest.mark.unit
def test_update_post_replaces_tags_when_given(content, post_store):
    content.update_post(
        "python-tips", PostInput(title="T", content="C", category="X", status="published", tags=["new"])
    )
    assert post_store.get("python-tips").tags == ["new"]


@pytest.mark.unit
def test_last_update_wins(content, post_store):
    first = PostInput(title="First", content="one", category="A", status="published", tags=["a"])
    second = PostInput(title="Second", content="two", category="B", status="draft", tags=["b"])

    content.update_post("rust-intro", first)
    content.update_post("rust-intro", second)

    stored = post_store.get("rust-intro")
    assert (stored.title, stored.content, stored.category, stored.status, stored.tags) == (
        "Second", "two", "B", "draft", ["b"],
    )


@pytest.mark.unit
def test_update_missing_post(content):
    with pytest.raises(NotFoundError):
        content.update_post("ghost", PostInput(title="T", content="C", category="X"))


@pytest.mark.unit
def test_delete_post(content):
    content.delete_post("rust-intro")

    assert content.get_post("rust-intro") is None
    with pytest.raises(NotFoundError):
        content.delete_post("rust-intro")
