# policy.py

from errors import ForbiddenError
from logging_config import get_logger
from models import Post
from schemas import Principal

logger = get_logger("policy")


def can_mutate_post(principal: Principal, post: Post) -> bool:
    return principal.id == post.author_id or principal.is_admin


def can_mutate_category(principal: Principal) -> bool:
    # Categories have no owner.
    return principal.is_admin


def ensure_can_mutate_post(principal: Principal, post: Post, action: str) -> None:
    if not can_mutate_post(principal, post):
        logger.warning("User %s refused: %s post %s", principal.id, action, post.id)
        raise ForbiddenError(f"Not authorized to {action} this post")


def ensure_can_mutate_category(principal: Principal, action: str) -> None:
    if not can_mutate_category(principal):
        logger.warning("User %s refused: %s categories", principal.id, action)
        raise ForbiddenError(f"Not authorized to {action} categories")
