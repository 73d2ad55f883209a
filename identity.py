# identity.py

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import get_db
from errors import UnauthenticatedError
from models import User
from resolver import is_identifier
from schemas import Principal


async def load_principal(session: AsyncSession, raw_user_id: Optional[str]) -> Principal:
    """
    Turn an upstream-verified user id into a Principal.

    Credentials are checked before the request reaches this service; here we
    only make sure the user still exists and is active, and read its role.
    """
    raw_user_id = (raw_user_id or "").strip()
    if not raw_user_id:
        raise UnauthenticatedError("No identity, authorization denied")
    if not is_identifier(raw_user_id):
        raise UnauthenticatedError("Invalid identity")

    user = await session.get(User, int(raw_user_id))
    if user is None:
        raise UnauthenticatedError("User not found")
    if not user.is_active:
        raise UnauthenticatedError("User account is deactivated")

    return Principal(id=user.id, role=user.role)


async def get_principal(request: Request, session: AsyncSession = Depends(get_db)) -> Principal:
    header = get_settings().identity_header
    return await load_principal(session, request.headers.get(header))
