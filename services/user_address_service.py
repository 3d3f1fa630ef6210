"""
DB-backed user address service using async SQLAlchemy.

- get_user_addresses_by_user_id -> SELECT addresses of one user
- get_user_address_by_id        -> SELECT one address, scoped to its owner
- create_user_address           -> INSERT, fails when the user does not exist
- update_user_address_by_id     -> partial UPDATE
- delete_user_address_by_address_id -> DELETE, scoped to its owner
"""

import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from core.exceptions import (
    DataAccessException,
    InvalidRequestDataException,
    UserAddressNotFound,
    UserNotFoundException,
)
from models.db_models import User, UserAddress, utc_now
from models.schemas import (
    CreateUserAddressRequest,
    PatchUserAddressRequest,
    UserAddressResponse,
    UserAddressesResponse,
)
from services.validation import is_blank, parse_address_id, parse_user_id

logger = logging.getLogger(__name__)

# (field, label) pairs that must be present on create and non-empty on patch
REQUIRED_ADDRESS_FIELDS = (
    ("address_line1", "Address line 1"),
    ("city", "City"),
    ("state", "State"),
    ("zip_code", "Zip code"),
    ("country", "Country"),
)
OPTIONAL_ADDRESS_FIELDS = ("address_type", "address_line2")


def validate_create_address_request(request: Optional[CreateUserAddressRequest]) -> None:
    if request is None:
        raise InvalidRequestDataException("Request body must be included in Create User Address request")
    for field, label in REQUIRED_ADDRESS_FIELDS:
        if is_blank(getattr(request, field)):
            raise InvalidRequestDataException(f"{label} must be included in create user address request")


def build_address(request: CreateUserAddressRequest) -> UserAddress:
    """Map a validated create request onto a new (unsaved) UserAddress."""
    return UserAddress(
        address_type=(request.address_type or "").strip() or None,
        address_line1=request.address_line1.strip(),
        address_line2=(request.address_line2 or "").strip() or None,
        city=request.city.strip(),
        state=request.state.strip(),
        zip_code=request.zip_code.strip(),
        country=request.country.strip(),
    )


def address_to_response(address: UserAddress) -> UserAddressResponse:
    return UserAddressResponse(
        address_id=str(address.id),
        user_id=str(address.user_id),
        address_type=address.address_type,
        address_line1=address.address_line1,
        address_line2=address.address_line2,
        city=address.city,
        state=address.state,
        zip_code=address.zip_code,
        country=address.country,
        created_at=address.created_at,
        updated_at=address.updated_at,
    )


class UserAddressService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_addresses_by_user_id(self, user_id: Optional[str]) -> UserAddressesResponse:
        """List every address of a user (empty list when there are none)."""
        uid = parse_user_id(user_id)
        try:
            stmt = (
                select(UserAddress)
                .where(UserAddress.user_id == uid)
                .order_by(UserAddress.created_at, UserAddress.id)
            )
            result = await self.session.execute(stmt)
            addresses = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("DB get_user_addresses_by_user_id error for %s: %s", user_id, e)
            raise DataAccessException(
                f"Find addresses by user id for userId {user_id} failed for unknown reasons"
            ) from e

        return UserAddressesResponse(
            user_id=str(uid),
            addresses=[address_to_response(a) for a in addresses],
        )

    async def _find_owned_address(self, uid, aid) -> Optional[UserAddress]:
        result = await self.session.execute(
            select(UserAddress).where(UserAddress.id == aid).where(UserAddress.user_id == uid)
        )
        return result.scalar_one_or_none()

    async def get_user_address_by_id(
        self,
        user_id: Optional[str],
        address_id: Optional[str],
    ) -> UserAddressResponse:
        if is_blank(user_id) or is_blank(address_id):
            raise InvalidRequestDataException("Invalid request data.")
        uid = parse_user_id(user_id)
        aid = parse_address_id(address_id)

        try:
            address = await self._find_owned_address(uid, aid)
        except SQLAlchemyError as e:
            logger.error("DB get_user_address_by_id error for %s/%s: %s", user_id, address_id, e)
            raise DataAccessException(
                f"Find address by id for userId {user_id} and addressId {address_id} failed for unknown reasons"
            ) from e

        if address is None:
            raise UserAddressNotFound(f"No user address found for userId {user_id} and addressId {address_id}")
        return address_to_response(address)

    async def create_user_address(
        self,
        user_id: Optional[str],
        request: Optional[CreateUserAddressRequest],
    ) -> UserAddressResponse:
        """
        Insert a new address for an existing user.

        The owner is checked up front; a foreign-key violation at flush time
        (user deleted concurrently) is reported the same way.
        """
        uid = parse_user_id(user_id)
        validate_create_address_request(request)

        try:
            user = await self.session.get(User, uid)
            if user is None:
                raise UserNotFoundException(f"User with id {user_id} not found")

            address = build_address(request)
            address.user_id = uid
            self.session.add(address)
            await self.session.commit()
        except IntegrityError as ie:
            await self.session.rollback()
            logger.warning("IntegrityError on create_user_address for %s (%s)", user_id, ie)
            raise UserNotFoundException(f"User with id {user_id} not found") from ie
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("DB create_user_address error for %s: %s", user_id, e)
            raise DataAccessException(f"Error creating user address for user id: {user_id}") from e

        logger.info("Created address %s for user %s", address.id, user_id)
        return address_to_response(address)

    async def update_user_address_by_id(
        self,
        user_id: Optional[str],
        address_id: Optional[str],
        request: Optional[PatchUserAddressRequest],
    ) -> UserAddressResponse:
        uid = parse_user_id(user_id)
        aid = parse_address_id(address_id)
        if request is None:
            raise InvalidRequestDataException("Request body must be included in Patch User Address request")

        changes = request.model_dump(exclude_none=True)
        for field, label in REQUIRED_ADDRESS_FIELDS:
            if field in changes and is_blank(changes[field]):
                raise InvalidRequestDataException(f"{label} cannot be empty")

        try:
            address = await self._find_owned_address(uid, aid)
            if address is None:
                raise UserAddressNotFound(f"No user address found for userId {user_id} and addressId {address_id}")

            for field, value in changes.items():
                value = value.strip()
                if field in OPTIONAL_ADDRESS_FIELDS and not value:
                    value = None
                setattr(address, field, value)
            address.updated_at = utc_now()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("DB update_user_address_by_id error for %s/%s: %s", user_id, address_id, e)
            raise DataAccessException(
                f"Error updating user address for user id: {user_id}, address id: {address_id}"
            ) from e

        return address_to_response(address)

    async def delete_user_address_by_address_id(
        self,
        user_id: Optional[str],
        address_id: Optional[str],
    ) -> None:
        uid = parse_user_id(user_id)
        aid = parse_address_id(address_id)

        try:
            result = await self.session.execute(
                delete(UserAddress).where(UserAddress.id == aid).where(UserAddress.user_id == uid)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("DB delete_user_address_by_address_id error for %s/%s: %s", user_id, address_id, e)
            raise DataAccessException(
                f"Error deleting user address for user id: {user_id}, address id: {address_id}"
            ) from e

        if result.rowcount == 0:
            raise UserAddressNotFound(f"No user address found for userId {user_id} and addressId {address_id}")
        logger.info("Deleted address %s of user %s", address_id, user_id)
