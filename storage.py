"""
Storage interfaces for posts and resume entries.

Backends are plain adapters: they read and write records and nothing else.
Slug derivation, draft visibility and validation live in ``content.py`` and
``resume.py`` so both backends behave the same.
"""

from typing import Dict, List, Optional, Protocol, Tuple

from loguru import logger

from config import Settings
from database import Database
from file_store import FilePostStore, FileResumeStore
from schemas import Post, ResumeItem
from sql_store import SqlPostStore, SqlResumeStore


class PostStore(Protocol):
    def all(self) -> List[Post]:
        """Every readable post; malformed records are skipped."""
        ...

    def get(self, slug: str) -> Optional[Post]: ...

    def add(self, post: Post) -> Post:
        """Persist a new post. Raises ConflictError if the slug is taken."""
        ...

    def save(self, post: Post) -> Post: ...

    def delete(self, slug: str) -> bool: ...


class ResumeStore(Protocol):
    def load(self) -> Dict[str, List[ResumeItem]]: ...

    def get(self, section: str, item_id: str) -> Optional[ResumeItem]: ...

    def add(self, section: str, item: ResumeItem) -> ResumeItem:
        """Persist a new entry and return it with its assigned id."""
        ...

    def save(self, section: str, item: ResumeItem) -> ResumeItem: ...

    def delete(self, section: str, item_id: str) -> bool: ...


def build_stores(settings: Settings, database: Optional[Database] = None) -> Tuple[PostStore, ResumeStore]:
    """Pick the post and resume stores for the configured backend."""
    if settings.CONTENT_BACKEND == "database":
        if database is None:
            database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        logger.info("Using relational content store")
        return SqlPostStore(database), SqlResumeStore(database)

    logger.info(f"Using file content store at {settings.CONTENT_DIR}")
    return (
        FilePostStore(settings.CONTENT_DIR, extension=settings.POST_EXTENSION),
        FileResumeStore(settings.RESUME_FILE),
    )
