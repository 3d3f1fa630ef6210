"""
DB-backed user service using async SQLAlchemy.

Key methods:
- get_all_users_paginated(page, size, filters): filtered page of users
- get_user_response(user_id): user with profile and addresses
- get_user_profile_by_user_id(user_id): profile only
- create_user(request): user + profile (+ first address) in one transaction
- update_user(user_id, request): patch profile fields
- delete_user_by_user_id(user_id): delete user and everything it owns

Username and email are immutable once the user exists; both are unique in
the database and a violation is reported as a 409 conflict.
"""
import logging
import math
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config.settings import settings
from core.exceptions import (
    DataAccessException,
    InvalidRequestDataException,
    UserConflictException,
    UserNotFoundException,
    UserProfileNotFound,
)
from core.security import hash_password
from models.db_models import STATUS_ACTIVE, User, UserProfile, utc_now
from models.schemas import (
    CreateUserRequest,
    PageInfo,
    PagedUsersResponse,
    PatchUserRequest,
    UserFilters,
    UserProfileResponse,
    UserResponse,
)
from services.user_address_service import address_to_response, build_address, validate_create_address_request
from services.validation import is_blank, parse_user_id

logger = logging.getLogger(__name__)

# (request field, label) checked by update_user when present
REQUIRED_PROFILE_FIELDS = (
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("phone_number", "Phone number"),
)

# (request field, label) that must be present on create
REQUIRED_CREATE_FIELDS = (
    ("username", "Username"),
    ("email", "Email"),
    ("password", "Password"),
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("phone_number", "Phone number"),
)

# Unique constraint / index names reported by the drivers on a duplicate key
USERNAME_UNIQUE_KEYS = ("ix_users_username", "users.username")
EMAIL_UNIQUE_KEYS = ("ix_users_email", "users.email")


def validate_create_user_request(request: CreateUserRequest) -> None:
    for field, label in REQUIRED_CREATE_FIELDS:
        if is_blank(getattr(request, field)):
            raise InvalidRequestDataException(f"{label} must be included")
    if request.address is not None:
        validate_create_address_request(request.address)


def user_filter_clauses(filters: Optional[UserFilters]) -> list:
    """
    Translate list filters into WHERE clauses, ANDed together.

    Text filters are case-insensitive substring matches; status must match
    exactly (stored upper-case).
    """
    if filters is None:
        return []
    columns = {
        "username": User.username,
        "email": User.email,
        "first_name": UserProfile.first_name,
        "last_name": UserProfile.last_name,
    }
    clauses = []
    for field, value in filters.active().items():
        if field == "status":
            clauses.append(User.status == value.strip().upper())
            continue
        pattern = f"%{value.strip().lower()}%"
        clauses.append(func.lower(columns[field]).like(pattern))
    return clauses


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------------- Reads ---------------- #

    async def get_all_users_paginated(
        self,
        page: int = 0,
        size: Optional[int] = None,
        filters: Optional[UserFilters] = None,
    ) -> PagedUsersResponse:
        """
        Return one page of users ordered by creation time.

        `size` defaults to DEFAULT_PAGE_SIZE and is clamped to MAX_PAGE_SIZE.
        """
        size = settings.DEFAULT_PAGE_SIZE if size is None else size
        if page < 0:
            raise InvalidRequestDataException("Page index must not be less than zero")
        if size < 1:
            raise InvalidRequestDataException("Page size must not be less than one")
        size = min(size, settings.MAX_PAGE_SIZE)

        clauses = user_filter_clauses(filters)
        try:
            count_stmt = select(func.count(User.id)).select_from(User).outerjoin(UserProfile)
            for clause in clauses:
                count_stmt = count_stmt.where(clause)
            total = (await self.session.execute(count_stmt)).scalar_one()

            # pages past the end are empty; never hand the driver an offset it cannot bind
            users = []
            if page * size < total:
                list_stmt = (
                    select(User)
                    .outerjoin(UserProfile)
                    .order_by(User.created_at, User.id)
                    .offset(page * size)
                    .limit(size)
                )
                for clause in clauses:
                    list_stmt = list_stmt.where(clause)
                users = (await self.session.execute(list_stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.error("DB get_all_users_paginated error: %s", e)
            raise DataAccessException("Find all users failed for unknown reasons") from e

        return PagedUsersResponse(
            users=[self._to_response(u) for u in users],
            page=PageInfo(
                page=page,
                size=size,
                total_elements=total,
                total_pages=math.ceil(total / size) if total else 0,
            ),
            filters=filters.active() if filters else {},
        )

    async def _load_user(self, uid) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.id == uid).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_user_response(self, user_id: Optional[str]) -> UserResponse:
        uid = parse_user_id(user_id)
        try:
            user = await self._load_user(uid)
        except SQLAlchemyError as e:
            logger.error("DB get_user_response error for %s: %s", user_id, e)
            raise DataAccessException(f"Find user by id for user id {user_id} failed for unknown reasons") from e

        if user is None:
            raise UserNotFoundException(f"User with id {user_id} not found")
        return self._to_response(user)

    async def get_user_profile_by_user_id(self, user_id: Optional[str]) -> UserProfileResponse:
        uid = parse_user_id(user_id)
        try:
            profile = await self.session.get(UserProfile, uid)
        except SQLAlchemyError as e:
            logger.error("DB get_user_profile_by_user_id error for %s: %s", user_id, e)
            raise DataAccessException(
                f"Find user profile by id for userId {user_id} failed for unknown reasons"
            ) from e

        if profile is None:
            raise UserProfileNotFound(f"User profile not found for user id: {user_id}")
        return self._profile_to_response(profile)

    # ---------------- Writes ---------------- #

    async def create_user(self, request: Optional[CreateUserRequest]) -> UserResponse:
        """
        Create the user, its profile and (when given) its first address.

        Everything is committed in a single transaction; a unique-key
        violation on username or email becomes a UserConflictException.
        """
        if request is None:
            raise InvalidRequestDataException("Cannot create user from null or empty request.")
        validate_create_user_request(request)

        user = User(
            username=request.username.strip(),
            email=request.email.strip(),
            password_hash=hash_password(request.password),
            status=STATUS_ACTIVE,
        )
        user.profile = UserProfile(
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            phone_number=request.phone_number.strip(),
            profile_image_url=(request.profile_image_url or "").strip() or None,
        )
        if request.address is not None:
            user.addresses.append(build_address(request.address))

        try:
            self.session.add(user)
            await self.session.commit()
        except IntegrityError as ie:
            await self.session.rollback()
            raise self._conflict_from(ie, request) from ie
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("DB create_user error: %s", e)
            raise DataAccessException("Error creating new user") from e

        logger.info("Created user %s (%s)", user.id, user.username)
        return self._to_response(user)

    async def update_user(self, user_id: Optional[str], request: Optional[PatchUserRequest]) -> UserResponse:
        """
        Patch profile fields. `None` leaves a field unchanged; an empty
        profile_image_url clears the image.
        """
        uid = parse_user_id(user_id)
        if request is None:
            raise InvalidRequestDataException("Request body must be included")
        if request.username or request.email:
            raise InvalidRequestDataException("Cannot change username or email")
        for field, label in REQUIRED_PROFILE_FIELDS:
            value = getattr(request, field)
            if value is not None and is_blank(value):
                raise InvalidRequestDataException(f"{label} cannot be empty")

        try:
            user = await self._load_user(uid)
            if user is None:
                raise UserNotFoundException(f"User with id {user_id} not found")
            if user.profile is None:
                raise UserProfileNotFound(f"User profile not found for user id: {user_id}")

            profile = user.profile
            for field, _ in REQUIRED_PROFILE_FIELDS:
                value = getattr(request, field)
                if value is not None:
                    setattr(profile, field, value.strip())
            if request.profile_image_url is not None:
                profile.profile_image_url = request.profile_image_url.strip() or None

            now = utc_now()
            profile.updated_at = now
            user.updated_at = now
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("DB update_user error for %s: %s", user_id, e)
            raise DataAccessException(f"Update user by id for user id {user_id} failed for unknown reasons") from e

        logger.info("Updated user %s", user_id)
        return self._to_response(user)

    async def delete_user_by_user_id(self, user_id: Optional[str]) -> None:
        """Delete a user with its profile and addresses. Unknown ids are a no-op."""
        uid = parse_user_id(user_id)
        try:
            user = await self._load_user(uid)
            if user is None:
                logger.info("Delete requested for unknown user %s; nothing to do", user_id)
                return
            await self.session.delete(user)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("DB delete_user_by_user_id error for %s: %s", user_id, e)
            raise DataAccessException(f"Delete user by id for user id {user_id} failed for unknown reasons") from e

        logger.info("Deleted user %s", user_id)

    # ---------------- Helpers ---------------- #

    @staticmethod
    def _conflict_from(ie: IntegrityError, request: CreateUserRequest) -> Exception:
        """
        Map a unique-key violation to the field that caused it, by constraint name.

        MySQL echoes the duplicate value before the key name, so only the text
        after "for key" is inspected there.
        """
        detail = str(ie.orig).lower()
        if "for key" in detail:
            detail = detail.split("for key", 1)[1]
        if any(key in detail for key in USERNAME_UNIQUE_KEYS):
            logger.info("Duplicate username on create_user: %s", request.username)
            return UserConflictException(f"User with username {request.username} already exists")
        if any(key in detail for key in EMAIL_UNIQUE_KEYS):
            logger.info("Duplicate email on create_user: %s", request.email)
            return UserConflictException(f"User with email {request.email} already exists")
        logger.error("IntegrityError on create_user (%s)", ie)
        return DataAccessException("Error creating new user")

    @staticmethod
    def _profile_to_response(profile: UserProfile) -> UserProfileResponse:
        return UserProfileResponse(
            user_id=str(profile.user_id),
            first_name=profile.first_name,
            last_name=profile.last_name,
            phone_number=profile.phone_number,
            profile_image_url=profile.profile_image_url,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )

    @staticmethod
    def _to_response(user: User) -> UserResponse:
        profile = user.profile
        return UserResponse(
            user_id=str(user.id),
            username=user.username,
            email=user.email,
            status=user.status,
            first_name=profile.first_name if profile else None,
            last_name=profile.last_name if profile else None,
            phone_number=profile.phone_number if profile else None,
            profile_image_url=profile.profile_image_url if profile else None,
            addresses=[address_to_response(a) for a in user.addresses],
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

