import json

import httpx
import pytest

from api_client import ApiError, FamilyTreeClient, UnauthorizedError
from database import create_database, get_token, set_token
from models import Member


BASE_URL = "https://api.example.com/api"

USER = {"id": "u-1", "email": "li@example.com", "nickname": "Li", "role": "user", "status": "active"}


@pytest.fixture
def conn(tmp_path):
    conn = create_database(tmp_path / "session.db")
    yield conn
    conn.close()


def make_client(conn, handler):
    return FamilyTreeClient(conn, base_url=BASE_URL, transport=httpx.MockTransport(handler))


def test_login_stores_token_and_sends_it_afterwards(conn):
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path == "/api/auth/login":
            assert json.loads(request.content) == {"emailOrUsername": "li", "password": "secret"}
            return httpx.Response(200, json={"user": USER, "token": "tok-1"})
        return httpx.Response(200, json=USER)

    with make_client(conn, handler) as client:
        user = client.login("li", "secret")
        assert user.nickname == "Li"
        assert get_token(conn) == "tok-1"

        client.get_profile()

    assert "authorization" not in seen[0].headers
    assert seen[1].headers["authorization"] == "Bearer tok-1"
    assert seen[1].headers["content-type"] == "application/json"


def test_get_family(conn, family_payload):
    def handler(request):
        assert request.method == "GET"
        assert request.url.path == "/api/families/fam-1"
        return httpx.Response(200, json=family_payload)

    with make_client(conn, handler) as client:
        family = client.get_family("fam-1")

    assert family.settings.family_name == "Chen Family"
    assert len(family.generations) == 3


def test_list_families(conn):
    def handler(request):
        return httpx.Response(
            200, json=[{"id": "f1", "name": "Chen", "theme": "classic", "updatedAt": "2026-01-01"}]
        )

    with make_client(conn, handler) as client:
        families = client.list_families()

    assert [(f.id, f.name) for f in families] == [("f1", "Chen")]


def test_unauthorized_clears_token(conn):
    set_token(conn, "expired")

    with make_client(conn, lambda request: httpx.Response(401)) as client:
        with pytest.raises(UnauthorizedError) as exc_info:
            client.list_families()

    assert exc_info.value.status_code == 401
    assert get_token(conn) is None


def test_error_message_from_payload(conn):
    handler = lambda request: httpx.Response(400, json={"message": "name is required"})

    with make_client(conn, handler) as client:
        with pytest.raises(ApiError, match="name is required") as exc_info:
            client.create_family("")

    assert exc_info.value.status_code == 400


def test_error_without_payload(conn):
    with make_client(conn, lambda request: httpx.Response(500, text="oops")) as client:
        with pytest.raises(ApiError, match=r"request failed \(500\)"):
            client.delete_family("f1")


def test_network_failure(conn):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with make_client(conn, handler) as client:
        with pytest.raises(ApiError, match="network connection failed"):
            client.list_families()


def test_member_and_generation_endpoints(conn):
    seen = []

    def handler(request):
        body = json.loads(request.content) if request.content else None
        seen.append((request.method, request.url.path, body))
        return httpx.Response(200, json={"ok": True})

    member = Member(id=5, name="Chen Wu", gender="male", api_id="m-5", parent_id="m-1")
    with make_client(conn, handler) as client:
        client.add_generation("fam-1", "Fourth", at_top=True)
        client.update_generation("gen-4", order=2)
        client.add_member("gen-4", member)
        client.update_member(member, {"bio": "Farmer"})
        client.delete_member(member)
        client.delete_member("m-6")

    assert seen == [
        ("POST", "/api/families/fam-1/generations", {"name": "Fourth", "atTop": True}),
        ("PUT", "/api/families/generations/gen-4", {"order": 2}),
        ("POST", "/api/families/generations/gen-4/members",
         {"id": 5, "name": "Chen Wu", "gender": "male", "parentId": "m-1"}),
        ("PUT", "/api/families/members/m-5", {"bio": "Farmer"}),
        ("DELETE", "/api/families/members/m-5", None),
        ("DELETE", "/api/families/members/m-6", None),
    ]


def test_unsaved_member_is_addressed_by_local_id(conn):
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={"ok": True})

    with make_client(conn, handler) as client:
        client.update_member(Member(id=9, name="x", gender="male"), {"name": "y"})

    assert seen == ["/api/families/members/9"]


def test_upload_image(conn, tmp_path):
    image = tmp_path / "avatar.png"
    image.write_bytes(b"\x89PNG")

    def handler(request):
        assert request.url.path == "/api/upload/image"
        assert request.url.params["folder"] == "avatars"
        assert b"avatar.png" in request.content
        return httpx.Response(201, json={"url": "https://cdn.example.com/avatar.png"})

    with make_client(conn, handler) as client:
        assert client.upload_image(image) == "https://cdn.example.com/avatar.png"


def test_feedback(conn):
    def handler(request):
        if request.method == "POST":
            return httpx.Response(201, json={"id": "fb-1", **json.loads(request.content)})
        return httpx.Response(200, json=[{"id": "fb-1"}])

    with make_client(conn, handler) as client:
        created = client.create_feedback("Bug", "Lines overlap", feedback_type="bug")
        assert created == {"id": "fb-1", "title": "Bug", "content": "Lines overlap", "type": "bug"}
        assert client.list_feedback() == [{"id": "fb-1"}]
