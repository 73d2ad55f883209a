# models.py

import enum
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Largest value a SQLite INTEGER column can hold.
MAX_ID = 2**63 - 1

DEFAULT_AVATAR = "default-avatar.jpg"
DEFAULT_CATEGORY_IMAGE = "default-category.jpg"
DEFAULT_POST_IMAGE = "default-post.jpg"


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = sa.Column(sa.Integer, primary_key=True, index=True)
    username = sa.Column(sa.String(20), unique=True, nullable=False)
    email = sa.Column(sa.String(254), unique=True, nullable=False)
    name = sa.Column(sa.String(100), nullable=False)
    bio = sa.Column(sa.String(500))
    profile_image = sa.Column(sa.String(500), nullable=False, default=DEFAULT_AVATAR)
    role = sa.Column(
        sa.Enum(Role, values_callable=lambda roles: [r.value for r in roles], native_enum=False),
        nullable=False,
        default=Role.USER,
    )
    is_active = sa.Column(sa.Boolean, nullable=False, default=True)
    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow)
    updated_at = sa.Column(sa.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class Category(Base):
    __tablename__ = "categories"

    id = sa.Column(sa.Integer, primary_key=True, index=True)
    name = sa.Column(sa.String(50), unique=True, nullable=False)
    slug = sa.Column(sa.String(60), unique=True, nullable=False, index=True)
    description = sa.Column(sa.String(500))
    image = sa.Column(sa.String(500), nullable=False, default=DEFAULT_CATEGORY_IMAGE)
    is_active = sa.Column(sa.Boolean, nullable=False, default=True)
    parent_category_id = sa.Column(sa.Integer, sa.ForeignKey("categories.id"), nullable=True)
    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow)
    updated_at = sa.Column(sa.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}')>"


class Post(Base):
    __tablename__ = "posts"

    id = sa.Column(sa.Integer, primary_key=True, index=True)
    title = sa.Column(sa.String(200), nullable=False)
    # Unique index: the store relies on it to settle concurrent slug claims.
    slug = sa.Column(sa.String(220), unique=True, nullable=False, index=True)
    content = sa.Column(sa.Text, nullable=False)
    excerpt = sa.Column(sa.Text, nullable=False, default="")
    featured_image = sa.Column(sa.String(500), nullable=False, default=DEFAULT_POST_IMAGE)
    category_id = sa.Column(sa.Integer, sa.ForeignKey("categories.id"), nullable=False, index=True)
    author_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), nullable=False, index=True)
    is_published = sa.Column(sa.Boolean, nullable=False, default=False, index=True)
    view_count = sa.Column(sa.Integer, nullable=False, default=0)
    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = sa.Column(sa.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (sa.CheckConstraint("view_count >= 0", name="ck_posts_view_count"),)

    author = relationship("User", lazy="raise")
    category = relationship("Category", lazy="raise")
    tag_rows = relationship(
        "PostTag", order_by="PostTag.name", cascade="all, delete-orphan", lazy="raise"
    )
    comments = relationship("Comment", order_by="Comment.id", lazy="raise")

    @property
    def tags(self):
        return [row.name for row in self.tag_rows]

    def __repr__(self):
        return f"<Post(id={self.id}, slug='{self.slug}')>"


class PostTag(Base):
    __tablename__ = "post_tags"

    post_id = sa.Column(sa.Integer, sa.ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    name = sa.Column(sa.String(50), primary_key=True, index=True)


class Comment(Base):
    __tablename__ = "comments"

    # Autoincrement id doubles as the append position within a post.
    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    post_id = sa.Column(
        sa.Integer, sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), nullable=False)
    content = sa.Column(sa.Text, nullable=False)
    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow)

    author = relationship("User", lazy="raise")

    def __repr__(self):
        return f"<Comment(id={self.id}, post_id={self.post_id})>"
