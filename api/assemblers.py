"""
Hypermedia (HAL) link assemblers.

Each assembler adds `_links` to a response model in place and returns it.
Hrefs are relative to the API root so they stay valid behind a proxy.
"""
from typing import Dict
from urllib.parse import urlencode

from models.schemas import (
    PagedUsersResponse,
    UserAddressResponse,
    UserAddressesResponse,
    UserProfileResponse,
    UserResponse,
)

API_PREFIX = "/v1"
USERS_PATH = f"{API_PREFIX}/users"


def user_href(user_id: str) -> str:
    return f"{USERS_PATH}/{user_id}"


def profile_href(user_id: str) -> str:
    return f"{user_href(user_id)}/profile"


def addresses_href(user_id: str) -> str:
    return f"{user_href(user_id)}/addresses"


def address_href(user_id: str, address_id: str) -> str:
    return f"{addresses_href(user_id)}/{address_id}"


def users_page_href(page: int, size: int, filters: Dict[str, str] | None = None) -> str:
    params = {"page": page, "size": size}
    params.update(filters or {})
    return f"{USERS_PATH}?{urlencode(params)}"


def _link_embedded_address(address: UserAddressResponse) -> UserAddressResponse:
    address.add_link("self", address_href(address.user_id, address.address_id))
    address.add_link("user", user_href(address.user_id))
    return address


def assemble_address(address: UserAddressResponse) -> UserAddressResponse:
    """Single address: self, user, profile, addresses."""
    _link_embedded_address(address)
    address.add_link("profile", profile_href(address.user_id))
    address.add_link("addresses", addresses_href(address.user_id))
    return address


def assemble_addresses(response: UserAddressesResponse) -> UserAddressesResponse:
    """Address collection: self, user; each address: self, user."""
    response.add_link("self", addresses_href(response.user_id))
    response.add_link("user", user_href(response.user_id))
    for address in response.addresses:
        _link_embedded_address(address)
    return response


def assemble_profile(profile: UserProfileResponse) -> UserProfileResponse:
    """Profile: self, addresses, user."""
    profile.add_link("self", profile_href(profile.user_id))
    profile.add_link("addresses", addresses_href(profile.user_id))
    profile.add_link("user", user_href(profile.user_id))
    return profile


def _link_user(user: UserResponse) -> UserResponse:
    user.add_link("self", user_href(user.user_id))
    user.add_link("profile", profile_href(user.user_id))
    user.add_link("addresses", addresses_href(user.user_id))
    for address in user.addresses:
        _link_embedded_address(address)
    return user


def assemble_user(user: UserResponse) -> UserResponse:
    """User: self, profile, addresses, collection."""
    _link_user(user)
    user.add_link("collection", USERS_PATH)
    return user


def assemble_paged_users(response: PagedUsersResponse) -> PagedUsersResponse:
    """
    Page of users.

    self is always present; first/prev only after the first page and
    next/last only before the last one. Links keep size and filters.
    """
    info = response.page
    filters = response.filters
    response.add_link("self", users_page_href(info.page, info.size, filters))
    if info.page > 0:
        response.add_link("first", users_page_href(0, info.size, filters))
        response.add_link("prev", users_page_href(info.page - 1, info.size, filters))
    if info.page < info.total_pages - 1:
        response.add_link("next", users_page_href(info.page + 1, info.size, filters))
        response.add_link("last", users_page_href(info.total_pages - 1, info.size, filters))
    for user in response.users:
        _link_user(user)
    return response
