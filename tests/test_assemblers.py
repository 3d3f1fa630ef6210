from datetime import datetime, timezone

import pytest

from api.assemblers import assemble_paged_users, assemble_user, users_page_href
from models.schemas import PageInfo, PagedUsersResponse, UserResponse

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _user(user_id="u1"):
    return UserResponse(
        user_id=user_id, username="tom", email="tom@oldforest.me", status="ACTIVE", created_at=NOW, updated_at=NOW
    )


def _page(page, total_pages, size=10, filters=None):
    return PagedUsersResponse(
        users=[_user()],
        page=PageInfo(page=page, size=size, total_elements=total_pages * size, total_pages=total_pages),
        filters=filters or {},
    )


@pytest.mark.parametrize(
    "page, total_pages, rels",
    [
        (0, 0, {"self"}),
        (0, 1, {"self"}),
        (0, 3, {"self", "next", "last"}),
        (1, 3, {"self", "first", "prev", "next", "last"}),
        (2, 3, {"self", "first", "prev"}),
    ],
)
def test_page_links_depend_on_position(page, total_pages, rels):
    response = assemble_paged_users(_page(page, total_pages))
    assert set(response.links) == rels


def test_page_links_carry_size_and_filters():
    response = assemble_paged_users(_page(1, 3, size=5, filters={"last_name": "Bombadil"}))
    links = {rel: link.href for rel, link in response.links.items()}
    assert links["self"] == "/v1/users?page=1&size=5&last_name=Bombadil"
    assert links["first"] == "/v1/users?page=0&size=5&last_name=Bombadil"
    assert links["prev"] == "/v1/users?page=0&size=5&last_name=Bombadil"
    assert links["next"] == "/v1/users?page=2&size=5&last_name=Bombadil"
    assert links["last"] == "/v1/users?page=2&size=5&last_name=Bombadil"


def test_users_page_href_escapes_values():
    assert users_page_href(0, 20, {"email": "a+b@x.io"}) == "/v1/users?page=0&size=20&email=a%2Bb%40x.io"


def test_user_json_uses_hal_links_key():
    body = assemble_user(_user("abc")).to_json()
    assert "links" not in body
    assert body["_links"]["self"] == {"href": "/v1/users/abc"}
    assert body["_links"]["collection"] == {"href": "/v1/users"}
    assert body["created_at"].startswith("2024-01-01T00:00:00")


def test_paged_json_hides_filters():
    body = assemble_paged_users(_page(0, 1, filters={"username": "tom"})).to_json()
    assert "filters" not in body
    assert body["page"]["total_pages"] == 1
    assert body["users"][0]["_links"]["profile"] == {"href": "/v1/users/u1/profile"}
