from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from auth import AuthGate, get_current_admin, get_optional_admin
from config import Settings, get_settings
from content import ContentService, can_view
from database import Database
from exceptions import PortfolioError, StorageError, ValidationError
from logger import setup_logger
from resume import ResumeService
from schemas import (
    AdminUser,
    Claims,
    DeleteResponse,
    LoginRequest,
    LoginResponse,
    PostDetail,
    PostInput,
    PostSummary,
    Resume,
    ResumeItemRequest,
    SearchResponse,
)
from storage import build_stores

# =========
# Utilities
# =========

def get_content(request: Request) -> ContentService:
    return request.app.state.content


def get_resume_service(request: Request) -> ResumeService:
    return request.app.state.resume


def _item_response(item) -> dict:
    return {"success": True, "item": item.model_dump(mode="json", by_alias=True)}


async def portfolio_error_handler(request: Request, exc: PortfolioError):
    if isinstance(exc, StorageError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail or exc.message}")
    body = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        body["fields"] = exc.fields
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Missing or invalid request fields are reported as 400, naming the fields
    fields = sorted({
        ".".join(str(part) for part in error["loc"] if part != "body")
        for error in exc.errors()
    })
    return JSONResponse(
        status_code=400,
        content={"detail": f"Missing or invalid fields: {', '.join(fields)}", "fields": fields},
    )


# ==================
# FastAPI app config
# ==================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logger(settings.LOG_LEVEL, settings.LOG_FILE)

    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO) if settings.CONTENT_BACKEND == "database" else None
    post_store, resume_store = build_stores(settings, database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Portfolio API starting ({settings.CONTENT_BACKEND} backend)")
        yield
        if database is not None:
            database.dispose()

    app = FastAPI(title="Portfolio API", lifespan=lifespan)
    app.state.settings = settings
    app.state.auth = AuthGate(settings)
    app.state.content = ContentService(post_store, default_image=settings.DEFAULT_IMAGE)
    app.state.resume = ResumeService(resume_store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PortfolioError, portfolio_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    register_routes(app)
    return app


# ======
# Routes
# ======

def register_routes(app: FastAPI) -> None:
    @app.get("/")
    def root(request: Request):
        return {"status": "ok", "service": "portfolio-api", "backend": request.app.state.settings.CONTENT_BACKEND}

    @app.get("/health")
    def health(content: ContentService = Depends(get_content)):
        try:
            count = len(content.list_slugs(include_drafts=True))
        except StorageError as e:
            logger.error(f"Health check failed: {e.detail}")
            return JSONResponse(status_code=503, content={"backend": "running", "store": "not-available"})
        return {"backend": "running", "store": "connected", "posts": count}

    # Auth
    @app.post("/api/auth", response_model=LoginResponse)
    @app.post("/api/auth/login", response_model=LoginResponse, include_in_schema=False)
    def login(data: LoginRequest, request: Request):
        if not data.email or not data.password:
            raise ValidationError(
                "Email and password are required",
                fields=[name for name in ("email", "password") if not getattr(data, name)],
            )
        auth: AuthGate = request.app.state.auth
        token = auth.login(data.email, data.password)
        return LoginResponse(token=token, user=AdminUser(email=auth.admin_email))

    # Posts
    @app.get("/api/posts", response_model=List[PostSummary])
    def list_posts(
        claims: Optional[Claims] = Depends(get_optional_admin),
        content: ContentService = Depends(get_content),
    ):
        return content.list_posts(include_drafts=claims is not None)

    @app.post("/api/posts", response_model=PostDetail)
    def create_post(
        data: PostInput,
        admin: Claims = Depends(get_current_admin),
        content: ContentService = Depends(get_content),
    ):
        return content.create_post(data, author=admin.email)

    @app.get("/api/posts/{slug}", response_model=PostDetail)
    def get_post(
        slug: str,
        claims: Optional[Claims] = Depends(get_optional_admin),
        content: ContentService = Depends(get_content),
    ):
        post = content.get_post(slug)
        # Drafts are indistinguishable from missing posts for anonymous callers
        if post is None or not can_view(post, claims):
            raise HTTPException(status_code=404, detail="Post not found")
        return content.present(post)

    @app.put("/api/posts/{slug}", response_model=PostDetail)
    def update_post(
        slug: str,
        data: PostInput,
        _: Claims = Depends(get_current_admin),
        content: ContentService = Depends(get_content),
    ):
        return content.update_post(slug, data)

    @app.delete("/api/posts/{slug}", response_model=DeleteResponse)
    def delete_post(
        slug: str,
        _: Claims = Depends(get_current_admin),
        content: ContentService = Depends(get_content),
    ):
        content.delete_post(slug)
        return DeleteResponse(message="Post deleted successfully")

    # Tags
    @app.get("/api/tags", response_model=List[str])
    def list_tags(
        claims: Optional[Claims] = Depends(get_optional_admin),
        content: ContentService = Depends(get_content),
    ):
        return content.get_all_tags(include_drafts=claims is not None)

    @app.get("/api/tags/{tag}", response_model=List[PostSummary])
    def posts_by_tag(
        tag: str,
        claims: Optional[Claims] = Depends(get_optional_admin),
        content: ContentService = Depends(get_content),
    ):
        return content.get_posts_by_tag(tag, include_drafts=claims is not None)

    # Search
    @app.get("/api/search", response_model=SearchResponse)
    def search(
        q: str = Query(""),
        tag: Optional[str] = Query(None),
        claims: Optional[Claims] = Depends(get_optional_admin),
        content: ContentService = Depends(get_content),
    ):
        results = content.search(q, tag, include_drafts=claims is not None)
        return SearchResponse(results=results, count=len(results), query=q, tag=tag or None)

    # Resume
    @app.get("/api/resume", response_model=Resume)
    def get_resume(resume: ResumeService = Depends(get_resume_service)):
        return resume.get_resume()

    @app.post("/api/resume")
    def add_resume_item(
        data: ResumeItemRequest,
        _: Claims = Depends(get_current_admin),
        resume: ResumeService = Depends(get_resume_service),
    ):
        return _item_response(resume.add_item(data.section, data.item or {}))

    @app.put("/api/resume/{item_id}")
    def update_resume_item(
        item_id: str,
        data: ResumeItemRequest,
        section: Optional[str] = Query(None),
        _: Claims = Depends(get_current_admin),
        resume: ResumeService = Depends(get_resume_service),
    ):
        return _item_response(resume.update_item(data.section or section, item_id, data.item or {}))

    @app.delete("/api/resume/{item_id}", response_model=DeleteResponse)
    def delete_resume_item(
        item_id: str,
        section: Optional[str] = Query(None),
        _: Claims = Depends(get_current_admin),
        resume: ResumeService = Depends(get_resume_service),
    ):
        resume.delete_item(section, item_id)
        return DeleteResponse(message="Item deleted successfully")


app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
