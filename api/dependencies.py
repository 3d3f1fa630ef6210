"""Service factories injected into the v1 routers."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import get_db_session
from services.user_address_service import UserAddressService
from services.user_service import UserService


async def get_user_service(session: AsyncSession = Depends(get_db_session)) -> UserService:
    return UserService(session)


async def get_user_address_service(session: AsyncSession = Depends(get_db_session)) -> UserAddressService:
    return UserAddressService(session)
