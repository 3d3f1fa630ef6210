"""Shared argument checks for the user and address services."""
import uuid
from typing import Optional

from core.exceptions import InvalidRequestDataException, InvalidUserIdException


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_user_id(user_id: Optional[str]) -> uuid.UUID:
    if is_blank(user_id):
        raise InvalidUserIdException()
    try:
        return uuid.UUID(user_id.strip())
    except ValueError as e:
        raise InvalidUserIdException(f"Invalid user id format: {user_id}") from e


def parse_address_id(address_id: Optional[str]) -> uuid.UUID:
    if is_blank(address_id):
        raise InvalidRequestDataException("Invalid null or empty address id")
    try:
        return uuid.UUID(address_id.strip())
    except ValueError as e:
        raise InvalidRequestDataException(f"Invalid address id format: {address_id}") from e
