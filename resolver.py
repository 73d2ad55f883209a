# resolver.py

from typing import Awaitable, Callable, Optional, TypeVar

from errors import NotFoundError
from models import MAX_ID

T = TypeVar("T")


def is_identifier(token: str) -> bool:
    """
    Entity ids are positive integers that fit a database INTEGER; anything
    else (longer digit runs included) can only be a slug.
    """
    return token.isascii() and token.isdigit() and int(token) <= MAX_ID


async def resolve_id_or_slug(
    token: str,
    by_id: Callable[[int], Awaitable[Optional[T]]],
    by_slug: Callable[[str], Awaitable[Optional[T]]],
    kind: str = "Entity",
) -> T:
    """
    Look an entity up by id or slug.

    An identifier-shaped token is tried as an id first; when that misses (or
    the token is not identifier-shaped) it is tried as a slug. The first hit
    wins. Raises NotFoundError when neither lookup matches.
    """
    token = str(token).strip()

    if is_identifier(token):
        found = await by_id(int(token))
        if found is not None:
            return found

    if token:
        found = await by_slug(token)
        if found is not None:
            return found

    raise NotFoundError(f"{kind} not found")
