# api/routes_profiles.py
from fastapi import APIRouter, Depends

from api.assemblers import assemble_profile
from api.dependencies import get_user_service
from core.response import ok
from services.user_service import UserService

router = APIRouter()


@router.get("/{user_id}/profile")
async def get_user_profile_by_user_id(user_id: str, service: UserService = Depends(get_user_service)):
    profile = await service.get_user_profile_by_user_id(user_id)
    return ok(assemble_profile(profile).to_json())
