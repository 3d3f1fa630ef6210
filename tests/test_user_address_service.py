import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import address_payload, user_payload
from core.exceptions import (
    DataAccessException,
    InvalidRequestDataException,
    InvalidUserIdException,
    UserAddressNotFound,
    UserNotFoundException,
)
from models.schemas import CreateUserAddressRequest, CreateUserRequest, PatchUserAddressRequest
from services.user_address_service import UserAddressService, validate_create_address_request
from services.user_service import UserService


def _broken_session(error=None):
    error = error or OperationalError("SELECT 1", {}, Exception("connection lost"))
    session = MagicMock()
    session.execute = AsyncMock(side_effect=error)
    session.get = AsyncMock(side_effect=error)
    session.commit = AsyncMock(side_effect=error)
    session.rollback = AsyncMock()
    return session


async def _create_user(db_session, **overrides):
    return await UserService(db_session).create_user(CreateUserRequest(**user_payload(**overrides)))


def test_validate_create_address_request_requires_body():
    with pytest.raises(InvalidRequestDataException) as exc:
        validate_create_address_request(None)
    assert exc.value.message == "Request body must be included in Create User Address request"


def test_validate_create_address_request_accepts_missing_optional_fields():
    payload = address_payload()
    payload.pop("address_type")
    payload.pop("address_line2")
    validate_create_address_request(CreateUserAddressRequest(**payload))


@pytest.mark.asyncio
async def test_create_and_list_addresses(db_session):
    user = await _create_user(db_session)
    service = UserAddressService(db_session)

    home = await service.create_user_address(user.user_id, CreateUserAddressRequest(**address_payload()))
    work = await service.create_user_address(
        user.user_id, CreateUserAddressRequest(**address_payload(address_type="Work", address_line1="2 Hill Rd"))
    )
    assert home.user_id == user.user_id
    assert home.address_id != work.address_id

    listed = await service.get_user_addresses_by_user_id(user.user_id)
    assert listed.user_id == user.user_id
    assert [a.address_id for a in listed.addresses] == [home.address_id, work.address_id]


@pytest.mark.asyncio
async def test_list_addresses_for_unknown_user_is_empty(db_session):
    listed = await UserAddressService(db_session).get_user_addresses_by_user_id(str(uuid.uuid4()))
    assert listed.addresses == []


@pytest.mark.asyncio
async def test_create_address_for_unknown_user(db_session):
    missing = str(uuid.uuid4())
    with pytest.raises(UserNotFoundException) as exc:
        await UserAddressService(db_session).create_user_address(missing, CreateUserAddressRequest(**address_payload()))
    assert exc.value.message == f"User with id {missing} not found"


@pytest.mark.asyncio
async def test_create_address_foreign_key_violation_is_user_not_found():
    session = _broken_session(IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed")))
    session.get = AsyncMock(return_value=object())
    user_id = str(uuid.uuid4())
    with pytest.raises(UserNotFoundException):
        await UserAddressService(session).create_user_address(user_id, CreateUserAddressRequest(**address_payload()))
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_address_db_failure():
    user_id = str(uuid.uuid4())
    with pytest.raises(DataAccessException) as exc:
        await UserAddressService(_broken_session()).create_user_address(
            user_id, CreateUserAddressRequest(**address_payload())
        )
    assert exc.value.message == f"Error creating user address for user id: {user_id}"


@pytest.mark.asyncio
async def test_create_address_with_blank_user_id(db_session):
    with pytest.raises(InvalidUserIdException):
        await UserAddressService(db_session).create_user_address(" ", CreateUserAddressRequest(**address_payload()))


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id, address_id", [(None, "x"), ("", "x"), ("x", None), ("x", " ")])
async def test_get_address_blank_ids(db_session, user_id, address_id):
    with pytest.raises(InvalidRequestDataException) as exc:
        await UserAddressService(db_session).get_user_address_by_id(user_id, address_id)
    assert exc.value.message == "Invalid request data."


@pytest.mark.asyncio
async def test_get_address_db_failure():
    with pytest.raises(DataAccessException):
        await UserAddressService(_broken_session()).get_user_address_by_id(str(uuid.uuid4()), str(uuid.uuid4()))


@pytest.mark.asyncio
async def test_update_address_trims_and_clears_optional_fields(db_session):
    user = await _create_user(db_session)
    service = UserAddressService(db_session)
    address = await service.create_user_address(
        user.user_id, CreateUserAddressRequest(**address_payload(address_line2="Under the hill"))
    )

    updated = await service.update_user_address_by_id(
        user.user_id,
        address.address_id,
        PatchUserAddressRequest(state="  Arnor ", address_line2="", address_type="  "),
    )
    assert updated.state == "Arnor"
    assert updated.address_line2 is None
    assert updated.address_type is None
    assert updated.city == "Old Forest"


@pytest.mark.asyncio
async def test_update_address_requires_body(db_session):
    with pytest.raises(InvalidRequestDataException) as exc:
        await UserAddressService(db_session).update_user_address_by_id(str(uuid.uuid4()), str(uuid.uuid4()), None)
    assert exc.value.message == "Request body must be included in Patch User Address request"


@pytest.mark.asyncio
async def test_update_address_db_failure():
    user_id, address_id = str(uuid.uuid4()), str(uuid.uuid4())
    with pytest.raises(DataAccessException) as exc:
        await UserAddressService(_broken_session()).update_user_address_by_id(
            user_id, address_id, PatchUserAddressRequest(city="Bree")
        )
    assert exc.value.message == f"Error updating user address for user id: {user_id}, address id: {address_id}"


@pytest.mark.asyncio
async def test_delete_address(db_session):
    user = await _create_user(db_session)
    service = UserAddressService(db_session)
    address = await service.create_user_address(user.user_id, CreateUserAddressRequest(**address_payload()))

    await service.delete_user_address_by_address_id(user.user_id, address.address_id)
    with pytest.raises(UserAddressNotFound):
        await service.get_user_address_by_id(user.user_id, address.address_id)
    with pytest.raises(UserAddressNotFound):
        await service.delete_user_address_by_address_id(user.user_id, address.address_id)


@pytest.mark.asyncio
async def test_delete_address_db_failure():
    user_id, address_id = str(uuid.uuid4()), str(uuid.uuid4())
    session = _broken_session()
    with pytest.raises(DataAccessException) as exc:
        await UserAddressService(session).delete_user_address_by_address_id(user_id, address_id)
    assert exc.value.message == f"Error deleting user address for user id: {user_id}, address id: {address_id}"
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_address_with_malformed_address_id(db_session):
    with pytest.raises(InvalidRequestDataException) as exc:
        await UserAddressService(db_session).delete_user_address_by_address_id(str(uuid.uuid4()), "bad")
    assert exc.value.message == "Invalid address id format: bad"
