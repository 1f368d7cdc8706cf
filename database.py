"""
Relational storage: table definitions and the process-wide database handle.

Table names follow the content model (``BlogPost``, ``Education``, ...).
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from loguru import logger
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.sql import func

Base = declarative_base()


class BlogPostRow(Base):
    __tablename__ = "BlogPost"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    published_at = Column("publishedAt", DateTime(timezone=True), nullable=False)
    updated_at = Column("updatedAt", DateTime(timezone=True), nullable=True)
    author = Column(String(255), nullable=False)
    excerpt = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    category = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="draft")
    image = Column(String(1024), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    read_time = Column("readTime", String(50), nullable=True)


class ResumeRowMixin:
    id = Column(Integer, primary_key=True, index=True)
    date_added = Column("dateAdded", DateTime(timezone=True), server_default=func.now())
    date_updated = Column("dateUpdated", DateTime(timezone=True), nullable=True)


class EducationRow(ResumeRowMixin, Base):
    __tablename__ = "Education"

    institution = Column(String(255), nullable=False)
    degree = Column(String(255), nullable=False)
    field = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    start_date = Column("startDate", String(50), nullable=True)
    end_date = Column("endDate", String(50), nullable=True)
    gpa = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)


class ExperienceRow(ResumeRowMixin, Base):
    __tablename__ = "Experience"

    company = Column(String(255), nullable=False)
    position = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column("startDate", String(50), nullable=True)
    end_date = Column("endDate", String(50), nullable=True)
    description = Column(Text, nullable=True)
    technologies = Column(JSON, nullable=False, default=list)


class SkillRow(ResumeRowMixin, Base):
    __tablename__ = "Skill"

    name = Column(String(255), nullable=False)
    category = Column(String(255), nullable=True)
    proficiency = Column(Integer, nullable=False, default=0)
    level = Column(String(50), nullable=True)


class CertificationRow(ResumeRowMixin, Base):
    __tablename__ = "Certification"

    name = Column(String(255), nullable=False)
    issuer = Column(String(255), nullable=False)
    issue_date = Column("issueDate", String(50), nullable=True)
    expiry_date = Column("expiryDate", String(50), nullable=True)
    credential_id = Column("credentialId", String(255), nullable=True)
    credential_url = Column("credentialUrl", String(1024), nullable=True)


class Database:
    """
    Lazily-initialised database handle shared by every request.

    The engine is created (and the tables with it) on first use; ``dispose()``
    releases the pool on shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    def _connect(self) -> None:
        with self._lock:
            # Another thread may have connected while this one waited
            if self._engine is not None:
                return
            self._create_engine()

    def _create_engine(self) -> None:
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        engine = create_engine(self.url, echo=self.echo, connect_args=connect_args)
        Base.metadata.create_all(engine)
        self._sessionmaker = sessionmaker(bind=engine, expire_on_commit=False)
        # Published last: a non-None engine means the handle is ready
        self._engine = engine
        logger.info(f"Database initialised ({engine.url.render_as_string(hide_password=True)})")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._connect()
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._sessionmaker is None:
            self._connect()
        return self._sessionmaker

    def has_table(self, name: str) -> bool:
        return inspect(self.engine).has_table(name)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("Database connections closed")
