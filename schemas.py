# schemas.py

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models import MAX_ID, Role

# --- Pydantic Models ---

# Request bodies accept camelCase or snake_case keys.
_INPUT_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# Responses are read from ORM objects by attribute name and rendered in camelCase.
_OUTPUT_CONFIG = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class Principal(BaseModel):
    """The authenticated actor of a request, as vouched for by the identity layer."""

    id: int
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# --- Requests ---

class PostCreate(BaseModel):
    model_config = _INPUT_CONFIG

    title: str = Field(max_length=200)
    content: str
    category: Union[int, str]
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_published: bool = False


class PostUpdate(BaseModel):
    """
    Partial update. Only keys present in the request body are applied; use
    ``model_fields_set`` / ``exclude_unset`` to tell "absent" from "null".
    """

    model_config = _INPUT_CONFIG

    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None
    category: Optional[Union[int, str]] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None


class CommentCreate(BaseModel):
    model_config = _INPUT_CONFIG

    content: str


class CategoryCreate(BaseModel):
    model_config = _INPUT_CONFIG

    name: str = Field(max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    image: Optional[str] = None
    parent_category: Optional[int] = Field(default=None, ge=1, le=MAX_ID)


class CategoryUpdate(BaseModel):
    model_config = _INPUT_CONFIG

    name: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    image: Optional[str] = None
    parent_category: Optional[int] = Field(default=None, ge=1, le=MAX_ID)
    is_active: Optional[bool] = None


# --- Responses ---

class AuthorOut(BaseModel):
    model_config = _OUTPUT_CONFIG

    id: int
    name: str
    username: str
    profile_image: str


class CategorySummary(BaseModel):
    model_config = _OUTPUT_CONFIG

    id: int
    name: str
    slug: str


class CategoryOut(CategorySummary):
    description: Optional[str] = None
    image: str
    is_active: bool
    parent_category_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class CommentOut(BaseModel):
    model_config = _OUTPUT_CONFIG

    id: int
    author: AuthorOut
    content: str
    created_at: datetime


class PostSummary(BaseModel):
    """A post as it appears in listings: no comment thread."""

    model_config = _OUTPUT_CONFIG

    id: int
    title: str
    slug: str
    excerpt: str
    content: str
    featured_image: str
    category: CategorySummary
    author: AuthorOut
    tags: List[str]
    is_published: bool
    view_count: int
    created_at: datetime
    updated_at: datetime


class PostOut(PostSummary):
    comments: List[CommentOut]


# --- Envelopes ---

class Envelope(BaseModel):
    model_config = _OUTPUT_CONFIG

    success: bool = True


class MessageResponse(Envelope):
    message: str


class PostResponse(Envelope):
    post: PostOut


class PaginatedPostsResponse(Envelope):
    count: int
    total: int
    total_pages: int
    current_page: int
    posts: List[PostSummary]


class SearchResponse(Envelope):
    count: int
    posts: List[PostSummary]


class CategoryResponse(Envelope):
    category: CategoryOut


class CategoryDetailResponse(Envelope):
    category: CategoryOut
    posts: List[PostSummary]


class CategoryListResponse(Envelope):
    count: int
    categories: List[CategoryOut]
