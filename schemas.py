"""
Schemas for the Portfolio API

Stored records, read views and request bodies. Every model speaks camelCase on
the wire (``publishedAt``, ``startDate``) and accepts snake_case in Python.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PostStatus = Literal["draft", "published"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==========
# Blog posts
# ==========
class Post(CamelModel):
    """A blog post as the content store holds it."""

    slug: str
    title: str
    date: datetime
    published_at: datetime
    updated_at: Optional[datetime] = None
    author: str = "Anonymous"
    excerpt: str = ""
    content: str = ""
    category: str = "Uncategorized"
    image: Optional[str] = None
    tags: List[str] = []
    status: PostStatus = "published"
    # Explicit reading time from the source record, wins over the computed one
    read_time: Optional[str] = None


class PostSummary(CamelModel):
    slug: str
    title: str
    date: datetime
    formatted_date: str
    published_at: datetime
    formatted_published_at: str
    updated_at: Optional[datetime] = None
    formatted_updated_at: Optional[str] = None
    author: str
    excerpt: str
    category: str
    image: str
    tags: List[str] = []
    status: PostStatus
    read_time: str


class PostDetail(PostSummary):
    content: str


class PostInput(CamelModel):
    """Body of the create and update post requests."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    category: str = Field(min_length=1)
    excerpt: str = ""
    status: PostStatus = "draft"
    image: Optional[str] = None
    # None on update keeps the stored tags
    tags: Optional[List[str]] = None


class SearchResponse(CamelModel):
    results: List[PostSummary]
    count: int
    query: str
    tag: Optional[str] = None


class DeleteResponse(CamelModel):
    success: bool = True
    message: str


# ====
# Auth
# ====
class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminUser(BaseModel):
    email: str
    role: str = "admin"


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: AdminUser


class Claims(BaseModel):
    id: str
    email: str
    role: str
    exp: Optional[int] = None


# ======
# Resume
# ======
class ResumeItem(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    date_added: Optional[datetime] = None
    date_updated: Optional[datetime] = None


class Education(ResumeItem):
    institution: str
    degree: str
    field: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    gpa: Optional[str] = None
    description: Optional[str] = None


class Experience(ResumeItem):
    company: str
    position: str
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None  # None means current position
    description: Optional[str] = None
    technologies: List[str] = []


class Skill(ResumeItem):
    name: str
    category: Optional[str] = None
    proficiency: int = Field(default=0, ge=0, le=100)
    level: Optional[str] = None


class Certification(ResumeItem):
    name: str
    issuer: str
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None
    credential_id: Optional[str] = None
    credential_url: Optional[str] = None


# Section name -> item kind
SECTIONS: Dict[str, Type[ResumeItem]] = {
    "experience": Experience,
    "education": Education,
    "skills": Skill,
    "certifications": Certification,
}


class Resume(CamelModel):
    experience: List[Experience] = []
    education: List[Education] = []
    skills: List[Skill] = []
    certifications: List[Certification] = []


class ResumeItemRequest(BaseModel):
    section: Optional[str] = None
    item: Optional[dict] = None
