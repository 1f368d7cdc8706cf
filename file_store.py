"""
File-backed content store.

Posts are ``<slug>.mdx`` files that start with a YAML frontmatter block::

    ---
    title: Hello World
    date: '2024-01-05T09:30:00+00:00'
    status: draft
    tags:
    - python
    ---
    Body text...

Resume entries live in a single JSON document keyed by section.
"""

import json
import re
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from loguru import logger
from pydantic import ValidationError as ModelValidationError

from exceptions import ConflictError, StorageError
from schemas import SECTIONS, Post, ResumeItem
from text import is_valid_slug, parse_datetime

_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


class MalformedRecordError(ValueError):
    pass


def parse_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a content file into its metadata block and body.

    A file without a leading ``---`` block has empty metadata.

    Raises:
        MalformedRecordError: If the header is not a YAML mapping
    """
    match = _FRONTMATTER.match(text)
    if not match:
        return {}, text

    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise MalformedRecordError(f"Invalid frontmatter: {e}") from e
    if not isinstance(metadata, dict):
        raise MalformedRecordError("Frontmatter must be a mapping")

    body = text[match.end():]
    return metadata, body.lstrip("\n")


def dump_frontmatter(metadata: Dict[str, Any], body: str) -> str:
    header = yaml.safe_dump(metadata, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"---\n{header}---\n\n{body}"


def _tags(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return [str(tag) for tag in value]


def post_from_record(slug: str, metadata: Dict[str, Any], body: str) -> Post:
    """
    Build a Post from a parsed file, filling the documented defaults.

    Raises:
        MalformedRecordError: If the date is missing or a field is invalid
    """
    if not metadata.get("date"):
        raise MalformedRecordError("Missing date")

    try:
        date = parse_datetime(metadata["date"])
        published_at = parse_datetime(metadata["publishedAt"]) if metadata.get("publishedAt") else date
        updated_at = parse_datetime(metadata["updatedAt"]) if metadata.get("updatedAt") else None

        return Post(
            slug=slug,
            title=str(metadata.get("title") or "Untitled"),
            date=date,
            published_at=published_at,
            updated_at=updated_at,
            author=str(metadata.get("author") or "Anonymous"),
            excerpt=str(metadata.get("excerpt") or ""),
            content=body,
            category=str(metadata.get("category") or "Uncategorized"),
            image=metadata.get("image") or None,
            tags=_tags(metadata.get("tags")),
            status=metadata.get("status") or "published",
            read_time=str(metadata["readTime"]) if metadata.get("readTime") else None,
        )
    except (ValueError, TypeError) as e:
        # pydantic's ValidationError is a ValueError
        raise MalformedRecordError(str(e)) from e


def post_to_record(post: Post) -> Dict[str, Any]:
    metadata = {
        "title": post.title,
        "date": post.date.isoformat(),
        "author": post.author,
        "excerpt": post.excerpt,
        "category": post.category,
        "status": post.status,
        "image": post.image or "",
        "tags": list(post.tags),
        "publishedAt": post.published_at.isoformat(),
    }
    if post.updated_at:
        metadata["updatedAt"] = post.updated_at.isoformat()
    if post.read_time:
        metadata["readTime"] = post.read_time
    return metadata


class FilePostStore:
    """One frontmatter file per post under ``directory``."""

    def __init__(self, directory: Path, extension: str = ".mdx"):
        self.directory = Path(directory)
        self.extension = extension

    def _path(self, slug: str) -> Optional[Path]:
        # Anything that is not a slug could escape the content directory
        if not is_valid_slug(slug):
            return None
        return self.directory / f"{slug}{self.extension}"

    def _read(self, path: Path) -> Post:
        text = path.read_text(encoding="utf-8")
        metadata, body = parse_frontmatter(text)
        return post_from_record(path.name[: -len(self.extension)], metadata, body)

    def all(self) -> List[Post]:
        if not self.directory.is_dir():
            logger.warning(f"Blog directory not found: {self.directory}")
            return []

        posts = []
        for path in sorted(self.directory.glob(f"*{self.extension}")):
            # Every listed slug must be reachable through get()
            if not is_valid_slug(path.name[: -len(self.extension)]):
                logger.error(f"Skipping {path.name}: file name is not a valid slug")
                continue
            try:
                posts.append(self._read(path))
            except (MalformedRecordError, OSError, UnicodeDecodeError) as e:
                logger.error(f"Error processing file {path.name}: {e}")
        return posts

    def get(self, slug: str) -> Optional[Post]:
        path = self._path(slug)
        if path is None or not path.is_file():
            return None
        try:
            return self._read(path)
        except (MalformedRecordError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading post {slug}: {e}")
            raise StorageError("Failed to fetch post", detail=str(e)) from e

    def add(self, post: Post) -> Post:
        path = self._path(post.slug)
        if path is None:
            raise StorageError("Failed to create post", detail=f"Invalid slug {post.slug!r}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # "x" refuses to overwrite an existing post
            with open(path, "x", encoding="utf-8") as f:
                f.write(dump_frontmatter(post_to_record(post), post.content))
        except FileExistsError as e:
            raise ConflictError("A post with this title already exists") from e
        except OSError as e:
            logger.exception(f"Error creating post {post.slug}")
            raise StorageError("Failed to create post", detail=str(e)) from e
        logger.info(f"Created post file {path.name}")
        return post

    def save(self, post: Post) -> Post:
        path = self._path(post.slug)
        if path is None:
            raise StorageError("Failed to update post", detail=f"Invalid slug {post.slug!r}")
        try:
            path.write_text(dump_frontmatter(post_to_record(post), post.content), encoding="utf-8")
        except OSError as e:
            logger.exception(f"Error updating post {post.slug}")
            raise StorageError("Failed to update post", detail=str(e)) from e
        return post

    def delete(self, slug: str) -> bool:
        path = self._path(slug)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.exception(f"Error deleting post {slug}")
            raise StorageError("Failed to delete post", detail=str(e)) from e
        logger.info(f"Deleted post file {path.name}")
        return True


class FileResumeStore:
    """All resume sections in one JSON document."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_raw(self) -> Dict[str, List[dict]]:
        data = {section: [] for section in SECTIONS}
        if not self.path.is_file():
            return data
        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.exception(f"Error reading resume file {self.path}")
            raise StorageError("Failed to fetch resume data", detail=str(e)) from e

        for section in SECTIONS:
            items = stored.get(section) if isinstance(stored, dict) else None
            data[section] = items if isinstance(items, list) else []
        return data

    def _write_raw(self, data: Dict[str, List[dict]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.exception(f"Error writing resume file {self.path}")
            raise StorageError("Failed to save resume data", detail=str(e)) from e

    @staticmethod
    def _dump(item: ResumeItem) -> dict:
        return item.model_dump(mode="json", by_alias=True)

    def load(self) -> Dict[str, List[ResumeItem]]:
        resume = {}
        for section, items in self._read_raw().items():
            kind = SECTIONS[section]
            resume[section] = []
            for raw in items:
                try:
                    resume[section].append(kind.model_validate(raw))
                except ModelValidationError as e:
                    logger.error(f"Skipping malformed {section} entry {raw.get('id') if isinstance(raw, dict) else raw!r}: {e}")
        return resume

    def get(self, section: str, item_id: str) -> Optional[ResumeItem]:
        for item in self.load()[section]:
            if item.id == item_id:
                return item
        return None

    def add(self, section: str, item: ResumeItem) -> ResumeItem:
        data = self._read_raw()
        item = item.model_copy(update={"id": uuid.uuid4().hex})
        data[section].append(self._dump(item))
        self._write_raw(data)
        return item

    def save(self, section: str, item: ResumeItem) -> ResumeItem:
        data = self._read_raw()
        for index, raw in enumerate(data[section]):
            if isinstance(raw, dict) and raw.get("id") == item.id:
                data[section][index] = self._dump(item)
                break
        else:
            data[section].append(self._dump(item))
        self._write_raw(data)
        return item

    def delete(self, section: str, item_id: str) -> bool:
        data = self._read_raw()
        remaining = [raw for raw in data[section] if not (isinstance(raw, dict) and raw.get("id") == item_id)]
        if len(remaining) == len(data[section]):
            return False
        data[section] = remaining
        self._write_raw(data)
        return True
