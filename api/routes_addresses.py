# api/routes_addresses.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Response

from api.assemblers import address_href, assemble_address, assemble_addresses
from api.dependencies import get_user_address_service
from core.exceptions import InvalidRequestDataException, InvalidUserIdException
from core.response import created, ok
from models.schemas import CreateUserAddressRequest, PatchUserAddressRequest
from services.user_address_service import UserAddressService
from services.validation import is_blank

router = APIRouter()


@router.get("/{user_id}/addresses")
async def get_user_addresses_by_user_id(
    user_id: str,
    service: UserAddressService = Depends(get_user_address_service),
):
    addresses = await service.get_user_addresses_by_user_id(user_id)
    return ok(assemble_addresses(addresses).to_json())


@router.get("/{user_id}/addresses/{address_id}")
async def get_user_address_by_id(
    user_id: str,
    address_id: str,
    service: UserAddressService = Depends(get_user_address_service),
):
    if is_blank(user_id):
        raise InvalidUserIdException()
    if is_blank(address_id):
        raise InvalidRequestDataException("Invalid null or empty address id")
    address = await service.get_user_address_by_id(user_id, address_id)
    return ok(assemble_address(address).to_json())


@router.post("/{user_id}/addresses", status_code=201)
async def create_user_address(
    user_id: str,
    request: Optional[CreateUserAddressRequest] = Body(None),
    service: UserAddressService = Depends(get_user_address_service),
):
    if request is None or is_blank(user_id):
        raise InvalidRequestDataException("Request body and user id must be included")
    address = await service.create_user_address(user_id, request)
    return created(
        assemble_address(address).to_json(),
        location=address_href(address.user_id, address.address_id),
    )


@router.patch("/{user_id}/addresses/{address_id}")
async def update_user_address(
    user_id: str,
    address_id: str,
    request: Optional[PatchUserAddressRequest] = Body(None),
    service: UserAddressService = Depends(get_user_address_service),
):
    """Patch any subset of address fields."""
    address = await service.update_user_address_by_id(user_id, address_id, request)
    return ok(assemble_address(address).to_json())


@router.delete("/{user_id}/addresses/{address_id}", status_code=204)
async def delete_user_address(
    user_id: str,
    address_id: str,
    service: UserAddressService = Depends(get_user_address_service),
):
    await service.delete_user_address_by_address_id(user_id, address_id)
    return Response(status_code=204)
