"""
Request / response models for the v1 API.

Request models keep every field optional so the service can answer with a
precise "X must be included" message instead of a generic validation error.
Response models carry HAL links under `_links`.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------- Requests ---------------- #

class CreateUserAddressRequest(BaseModel):
    address_type: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class CreateUserRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    profile_image_url: Optional[str] = None
    address: Optional[CreateUserAddressRequest] = None


class PatchUserRequest(BaseModel):
    """Partial update of a user's profile. `None` means "leave unchanged"."""
    username: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    profile_image_url: Optional[str] = None


class PatchUserAddressRequest(BaseModel):
    address_type: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class UserFilters(BaseModel):
    """Optional list filters; text fields match as case-insensitive substrings, status exactly."""
    username: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: Optional[str] = None

    def active(self) -> Dict[str, str]:
        return {k: v for k, v in self.model_dump().items() if v}


# ---------------- Responses ---------------- #

class Link(BaseModel):
    href: str


class HalModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    links: Dict[str, Link] = Field(default_factory=dict, alias="_links")

    def add_link(self, rel: str, href: str) -> None:
        self.links[rel] = Link(href=href)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UserAddressResponse(HalModel):
    address_id: str
    user_id: str
    address_type: Optional[str] = None
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    zip_code: str
    country: str
    created_at: datetime
    updated_at: datetime


class UserAddressesResponse(HalModel):
    user_id: str
    addresses: List[UserAddressResponse] = Field(default_factory=list)


class UserProfileResponse(HalModel):
    user_id: str
    first_name: str
    last_name: str
    phone_number: str
    profile_image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserResponse(HalModel):
    user_id: str
    username: str
    email: str
    status: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    profile_image_url: Optional[str] = None
    addresses: List[UserAddressResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PageInfo(BaseModel):
    page: int
    size: int
    total_elements: int
    total_pages: int


class PagedUsersResponse(HalModel):
    users: List[UserResponse] = Field(default_factory=list)
    page: PageInfo
    filters: Dict[str, str] = Field(default_factory=dict, exclude=True)
