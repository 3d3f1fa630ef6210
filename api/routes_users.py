# api/routes_users.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response

from api.assemblers import assemble_paged_users, assemble_user, user_href
from api.dependencies import get_user_service
from core.exceptions import InvalidRequestDataException
from core.response import created, ok
from models.schemas import CreateUserRequest, PatchUserRequest, UserFilters
from services.user_service import UserService

router = APIRouter()


@router.get("")
async def get_all_users_paginated(
    page: int = Query(0, description="Zero-based page index"),
    size: Optional[int] = Query(None, description="Page size (defaults to DEFAULT_PAGE_SIZE)"),
    username: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    first_name: Optional[str] = Query(None),
    last_name: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="Exact account status, e.g. ACTIVE"),
    service: UserService = Depends(get_user_service),
):
    """List users one page at a time, optionally filtered (substring, case-insensitive; status exact)."""
    filters = UserFilters(
        username=username, email=email, first_name=first_name, last_name=last_name, status=status
    )
    result = await service.get_all_users_paginated(page, size, filters)
    return ok(assemble_paged_users(result).to_json())


@router.get("/{user_id}")
async def get_user_by_user_id(user_id: str, service: UserService = Depends(get_user_service)):
    user = await service.get_user_response(user_id)
    return ok(assemble_user(user).to_json())


@router.post("", status_code=201)
async def create_user(
    request: Optional[CreateUserRequest] = Body(None),
    service: UserService = Depends(get_user_service),
):
    """Create a user with its profile and, optionally, a first address."""
    if request is None:
        raise InvalidRequestDataException("Request body must be included")
    user = await service.create_user(request)
    return created(assemble_user(user).to_json(), location=user_href(user.user_id))


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    request: Optional[PatchUserRequest] = Body(None),
    service: UserService = Depends(get_user_service),
):
    """Patch profile fields. Username and email cannot be changed."""
    user = await service.update_user(user_id, request)
    return ok(assemble_user(user).to_json())


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    await service.delete_user_by_user_id(user_id)
    return Response(status_code=204)
