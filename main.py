# main.py

import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

import categories
import posts
from config import get_settings
from database import create_tables, engine, get_db
from errors import BlogError
from identity import get_principal
from logging_config import get_logger, setup_logging
from models import MAX_ID
from queries import list_published_posts, search_published_posts
from schemas import (
    CategoryCreate,
    CategoryDetailResponse,
    CategoryListResponse,
    CategoryOut,
    CategoryResponse,
    CategoryUpdate,
    CommentCreate,
    MessageResponse,
    PaginatedPostsResponse,
    PostCreate,
    PostOut,
    PostResponse,
    PostSummary,
    PostUpdate,
    Principal,
    SearchResponse,
)

settings = get_settings()
logger = get_logger("api")

# --- Lifespan Management (for DB setup/teardown) ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_file)
    logger.info("Application startup: creating database tables")
    await create_tables()
    yield
    logger.info("Application shutdown")
    await engine.dispose()

# --- FastAPI App ---

app = FastAPI(lifespan=lifespan, title=settings.app_title, version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error envelope ---

@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"param": str(err["loc"][-1]) if err.get("loc") else "", "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"success": False, "errors": errors})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Server Error"})

# --- Categories ---

@app.get("/categories", response_model=CategoryListResponse)
async def read_categories(session: AsyncSession = Depends(get_db)):
    found = await categories.list_categories(session)
    return CategoryListResponse(
        count=len(found),
        categories=[CategoryOut.model_validate(c) for c in found],
    )


@app.get("/categories/{id_or_slug}", response_model=CategoryDetailResponse)
async def read_category(id_or_slug: str, session: AsyncSession = Depends(get_db)):
    category, recent = await categories.get_category_by_id_or_slug(session, id_or_slug)
    return CategoryDetailResponse(
        category=CategoryOut.model_validate(category),
        posts=[PostSummary.model_validate(p) for p in recent],
    )


@app.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_db),
):
    category = await categories.create_category(session, data, principal)
    return CategoryResponse(category=CategoryOut.model_validate(category))


@app.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    data: CategoryUpdate,
    category_id: int = Path(ge=1, le=MAX_ID),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_db),
):
    category = await categories.update_category(session, category_id, data, principal)
    return CategoryResponse(category=CategoryOut.model_validate(category))


@app.delete("/categories/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: int = Path(ge=1, le=MAX_ID),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_db),
):
    await categories.delete_category(session, category_id, principal)
    return MessageResponse(message="Category removed")

# --- Posts ---

@app.get("/posts", response_model=PaginatedPostsResponse)
async def read_posts(
    page: int = Query(
        1, ge=1, le=MAX_ID // settings.max_page_size, description="Page number, starting at 1"
    ),
    limit: Optional[int] = Query(
        None, ge=1, le=settings.max_page_size, description="Posts per page"
    ),
    category: Optional[str] = Query(None, description="Filter by category id or slug"),
    session: AsyncSession = Depends(get_db),
):
    """Published posts, newest first."""
    result = await list_published_posts(
        session,
        page=page,
        limit=limit or settings.default_page_size,
        category=category,
    )
    return PaginatedPostsResponse(
        count=len(result.posts),
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
        posts=[PostSummary.model_validate(p) for p in result.posts],
    )


# Declared before /posts/{id_or_slug} so "search" is not taken for a slug.
@app.get("/posts/search", response_model=SearchResponse)
async def search_posts(
    q: Optional[str] = Query(None, description="Text to look for in title, content and tags"),
    session: AsyncSession = Depends(get_db),
):
    found = await search_published_posts(session, q, max_results=settings.search_max_results)
    return SearchResponse(count=len(found), posts=[PostSummary.model_validate(p) for p in found])


@app.get("/posts/{id_or_slug}", response_model=PostResponse)
async def read_post(id_or_slug: str, session: AsyncSession = Depends(get_db)):
    post = await posts.get_post_by_id_or_slug(session, id_or_slug)
    return PostResponse(post=PostOut.model_validate(post))


@app.post("/posts", response_model=PostResponse, status_code=201)
async def create_post(
    data: PostCreate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_db),
):
    post = await posts.create_post(session, data, principal)
    return PostResponse(post=PostOut.model_validate(post))


@app.put("/posts/{post_id}", response_model=PostResponse)
async def update_post(
    data: PostUpdate,
    post_id: int = Path(ge=1, le=MAX_ID),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_db),
):
    post = await posts.update_post(session, post_id, data, principal)
    return PostResponse(post=PostOut.model_validate(post))


@app.delete("/posts/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int = Path(ge=1, le=MAX_ID),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_db),
):
    await posts.delete_post(session, post_id, principal)
    return MessageResponse(message="Post removed")


@app.post("/posts/{post_id}/comments", response_model=PostResponse, status_code=201)
async def add_comment(
    data: CommentCreate,
    post_id: int = Path(ge=1, le=MAX_ID),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_db),
):
    post = await posts.add_comment(session, post_id, principal, data.content)
    return PostResponse(post=PostOut.model_validate(post))

# --- Root Endpoint ---

@app.get("/")
async def root():
    return {"success": True, "message": "Welcome to the Blog API. Go to /docs for documentation."}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
