"""
Content access layer for blog posts.

Loads posts from whichever store is configured, applies draft visibility,
sorting, tag and search filters, and shapes records into read views.
"""

from typing import Iterable, List, Optional

from loguru import logger

from exceptions import NotFoundError, ValidationError
from schemas import Claims, Post, PostDetail, PostInput, PostSummary
from storage import PostStore
from text import format_date, reading_time, slugify, utcnow


def can_view(post: Post, claims: Optional[Claims]) -> bool:
    """Published posts are public; drafts are visible to the admin only."""
    return post.status == "published" or claims is not None


def _newest_first(posts: Iterable[Post]) -> List[Post]:
    return sorted(posts, key=lambda post: post.published_at, reverse=True)


def _has_tag(post: Post, tag: str) -> bool:
    wanted = tag.lower()
    return any(t.lower() == wanted for t in post.tags)


def _searchable_text(post: Post) -> str:
    return " ".join(
        [post.title, post.excerpt, post.category, post.author, post.content, " ".join(post.tags)]
    ).lower()


def matches_query(post: Post, query: str) -> bool:
    """
    Check a post against a search query.

    ``#tag`` matches posts with a tag containing ``tag``; otherwise the query
    is split into words and the post matches if any word occurs anywhere in
    its title, excerpt, category, author, content or tags.
    """
    query = query.strip().lower()
    if query.startswith("#") and len(query) > 1:
        needle = query[1:]
        return any(needle in tag.lower() for tag in post.tags)

    words = [word for word in query.split() if word]
    text = _searchable_text(post)
    return any(word in text for word in words)


class ContentService:
    def __init__(self, store: PostStore, default_image: str = "/images/blog-placeholder.jpg"):
        self.store = store
        self.default_image = default_image

    # ---- shaping ----

    def present(self, post: Post, with_content: bool = True) -> PostSummary:
        view = dict(
            slug=post.slug,
            title=post.title,
            date=post.date,
            formatted_date=format_date(post.date),
            published_at=post.published_at,
            formatted_published_at=format_date(post.published_at),
            updated_at=post.updated_at,
            formatted_updated_at=format_date(post.updated_at) if post.updated_at else None,
            author=post.author,
            excerpt=post.excerpt,
            category=post.category,
            image=post.image or self.default_image,
            tags=list(post.tags),
            status=post.status,
            read_time=post.read_time or reading_time(post.content),
        )
        if with_content:
            return PostDetail(content=post.content, **view)
        return PostSummary(**view)

    def _visible(self, include_drafts: bool) -> List[Post]:
        posts = self.store.all()
        if not include_drafts:
            posts = [post for post in posts if post.status == "published"]
        return _newest_first(posts)

    # ---- reads ----

    def list_posts(self, include_drafts: bool = False) -> List[PostSummary]:
        return [self.present(post, with_content=False) for post in self._visible(include_drafts)]

    def list_slugs(self, include_drafts: bool = False) -> List[str]:
        return [post.slug for post in self._visible(include_drafts)]

    def get_post(self, slug: str) -> Optional[Post]:
        return self.store.get(slug)

    def get_all_tags(self, include_drafts: bool = True) -> List[str]:
        tags = set()
        for post in self._visible(include_drafts):
            tags.update(post.tags)
        return sorted(tags)

    def get_posts_by_tag(self, tag: str, include_drafts: bool = False) -> List[PostSummary]:
        return [
            self.present(post, with_content=False)
            for post in self._visible(include_drafts)
            if _has_tag(post, tag)
        ]

    def search(self, query: str = "", tag: Optional[str] = None, include_drafts: bool = False) -> List[PostSummary]:
        query = (query or "").strip()
        tag = (tag or "").strip()
        if not query and not tag:
            raise ValidationError("Search query or tag filter is required", fields=["q", "tag"])

        results = []
        for post in self._visible(include_drafts):
            if tag and not _has_tag(post, tag):
                continue
            if query and not matches_query(post, query):
                continue
            results.append(self.present(post, with_content=False))
        logger.debug(f"Search q={query!r} tag={tag!r} -> {len(results)} result(s)")
        return results

    # ---- writes ----

    def create_post(self, data: PostInput, author: str) -> PostDetail:
        slug = slugify(data.title)
        if not slug:
            raise ValidationError("Title must contain at least one letter or digit", fields=["title"])

        now = utcnow()
        post = Post(
            slug=slug,
            title=data.title,
            date=now,
            published_at=now,
            updated_at=now,
            author=author,
            excerpt=data.excerpt or "",
            content=data.content,
            category=data.category,
            image=data.image or None,
            tags=data.tags or [],
            status=data.status,
        )
        # store.add raises ConflictError on a taken slug
        self.store.add(post)
        logger.info(f"Post created: {slug} ({post.status})")
        return self.present(post)

    def update_post(self, slug: str, data: PostInput) -> PostDetail:
        existing = self.store.get(slug)
        if existing is None:
            raise NotFoundError("Post not found")

        post = existing.model_copy(
            update=dict(
                title=data.title,
                excerpt=data.excerpt or "",
                content=data.content,
                category=data.category,
                status=data.status,
                image=data.image or existing.image,
                tags=data.tags if data.tags is not None else existing.tags,
                updated_at=utcnow(),
            )
        )
        self.store.save(post)
        logger.info(f"Post updated: {slug} ({post.status})")
        return self.present(post)

    def delete_post(self, slug: str) -> None:
        if not self.store.delete(slug):
            raise NotFoundError("Post not found")
        logger.info(f"Post deleted: {slug}")
