"""Relational content store built on the SQLAlchemy tables in ``database.py``."""

from typing import Dict, List, Optional, Type

from loguru import logger
from pydantic import ValidationError as ModelValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database import (
    Base,
    BlogPostRow,
    CertificationRow,
    Database,
    EducationRow,
    ExperienceRow,
    SkillRow,
)
from exceptions import ConflictError, StorageError
from schemas import SECTIONS, Post, ResumeItem
from text import parse_datetime

SECTION_ROWS: Dict[str, Type[Base]] = {
    "experience": ExperienceRow,
    "education": EducationRow,
    "skills": SkillRow,
    "certifications": CertificationRow,
}

_POST_FIELDS = (
    "slug", "title", "date", "published_at", "updated_at", "author", "excerpt",
    "content", "category", "status", "image", "tags", "read_time",
)


def post_from_row(row: BlogPostRow) -> Post:
    return Post(
        slug=row.slug,
        title=row.title,
        date=parse_datetime(row.date),
        published_at=parse_datetime(row.published_at or row.date),
        updated_at=parse_datetime(row.updated_at) if row.updated_at else None,
        author=row.author,
        excerpt=row.excerpt or "",
        content=row.content or "",
        category=row.category,
        status=row.status,
        image=row.image,
        tags=list(row.tags or []),
        read_time=row.read_time,
    )


class SqlPostStore:
    def __init__(self, database: Database):
        self.database = database

    def all(self) -> List[Post]:
        try:
            if not self.database.has_table(BlogPostRow.__tablename__):
                logger.warning(f"Table {BlogPostRow.__tablename__} not found")
                return []
            with self.database.session() as session:
                rows = session.query(BlogPostRow).order_by(BlogPostRow.published_at.desc()).all()
        except SQLAlchemyError as e:
            logger.exception("Error listing posts")
            raise StorageError("Failed to fetch posts", detail=str(e)) from e

        posts = []
        for row in rows:
            try:
                posts.append(post_from_row(row))
            except (ModelValidationError, ValueError) as e:
                logger.error(f"Error processing post row {row.id} ({row.slug}): {e}")
        return posts

    def get(self, slug: str) -> Optional[Post]:
        try:
            with self.database.session() as session:
                row = session.query(BlogPostRow).filter(BlogPostRow.slug == slug).first()
        except SQLAlchemyError as e:
            logger.exception(f"Error fetching post {slug}")
            raise StorageError("Failed to fetch post", detail=str(e)) from e
        if row is None:
            return None
        try:
            return post_from_row(row)
        except (ModelValidationError, ValueError) as e:
            logger.error(f"Error processing post row {row.id} ({slug}): {e}")
            raise StorageError("Failed to fetch post", detail=str(e)) from e

    def add(self, post: Post) -> Post:
        try:
            with self.database.session() as session:
                session.add(BlogPostRow(**{name: getattr(post, name) for name in _POST_FIELDS}))
        except IntegrityError as e:
            raise ConflictError("A post with this title already exists") from e
        except SQLAlchemyError as e:
            logger.exception(f"Error creating post {post.slug}")
            raise StorageError("Failed to create post", detail=str(e)) from e
        logger.info(f"Created post {post.slug}")
        return post

    def save(self, post: Post) -> Post:
        try:
            with self.database.session() as session:
                row = session.query(BlogPostRow).filter(BlogPostRow.slug == post.slug).first()
                if row is None:
                    row = BlogPostRow()
                    session.add(row)
                for name in _POST_FIELDS:
                    setattr(row, name, getattr(post, name))
        except SQLAlchemyError as e:
            logger.exception(f"Error updating post {post.slug}")
            raise StorageError("Failed to update post", detail=str(e)) from e
        return post

    def delete(self, slug: str) -> bool:
        try:
            with self.database.session() as session:
                deleted = session.query(BlogPostRow).filter(BlogPostRow.slug == slug).delete()
        except SQLAlchemyError as e:
            logger.exception(f"Error deleting post {slug}")
            raise StorageError("Failed to delete post", detail=str(e)) from e
        if deleted:
            logger.info(f"Deleted post {slug}")
        return bool(deleted)


class SqlResumeStore:
    """One table per resume section; ids are the integer primary keys as strings."""

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    def _to_item(section: str, row) -> ResumeItem:
        kind = SECTIONS[section]
        values = {name: getattr(row, name) for name in kind.model_fields if hasattr(row, name)}
        values["id"] = str(row.id)
        return kind.model_validate(values)

    @staticmethod
    def _fill(row, item: ResumeItem) -> None:
        for name, value in item.model_dump(exclude={"id"}).items():
            if hasattr(row, name):
                setattr(row, name, value)

    @staticmethod
    def _row_id(item_id: str) -> Optional[int]:
        return int(item_id) if item_id and item_id.isdigit() else None

    def load(self) -> Dict[str, List[ResumeItem]]:
        resume = {}
        try:
            with self.database.session() as session:
                for section, row_type in SECTION_ROWS.items():
                    resume[section] = []
                    for row in session.query(row_type).order_by(row_type.id).all():
                        try:
                            resume[section].append(self._to_item(section, row))
                        except ModelValidationError as e:
                            logger.error(f"Skipping malformed {section} row {row.id}: {e}")
        except SQLAlchemyError as e:
            logger.exception("Error fetching resume data")
            raise StorageError("Failed to fetch resume data", detail=str(e)) from e
        return resume

    def get(self, section: str, item_id: str) -> Optional[ResumeItem]:
        row_id = self._row_id(item_id)
        if row_id is None:
            return None
        try:
            with self.database.session() as session:
                row = session.get(SECTION_ROWS[section], row_id)
                return self._to_item(section, row) if row is not None else None
        except SQLAlchemyError as e:
            logger.exception(f"Error fetching {section} entry {item_id}")
            raise StorageError("Failed to fetch resume item", detail=str(e)) from e

    def add(self, section: str, item: ResumeItem) -> ResumeItem:
        try:
            with self.database.session() as session:
                row = SECTION_ROWS[section]()
                self._fill(row, item)
                session.add(row)
                session.flush()
                return self._to_item(section, row)
        except SQLAlchemyError as e:
            logger.exception(f"Error adding {section} entry")
            raise StorageError("Failed to add resume item", detail=str(e)) from e

    def save(self, section: str, item: ResumeItem) -> ResumeItem:
        row_id = self._row_id(item.id)
        try:
            with self.database.session() as session:
                row = session.get(SECTION_ROWS[section], row_id) if row_id is not None else None
                if row is None:
                    row = SECTION_ROWS[section]()
                    session.add(row)
                self._fill(row, item)
                session.flush()
                return self._to_item(section, row)
        except SQLAlchemyError as e:
            logger.exception(f"Error updating {section} entry {item.id}")
            raise StorageError("Failed to update resume item", detail=str(e)) from e

    def delete(self, section: str, item_id: str) -> bool:
        row_id = self._row_id(item_id)
        if row_id is None:
            return False
        try:
            with self.database.session() as session:
                row = session.get(SECTION_ROWS[section], row_id)
                if row is None:
                    return False
                session.delete(row)
        except SQLAlchemyError as e:
            logger.exception(f"Error deleting {section} entry {item_id}")
            raise StorageError("Failed to delete resume item", detail=str(e)) from e
        return True
