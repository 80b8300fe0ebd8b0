"""HTTP client for the family tree REST API."""

from pathlib import Path
import sqlite3
from typing import Any

import httpx

from config import settings
from database import get_token, remove_token, set_token
from models import FamilyData, FamilyListItem, Member, User
from parsing import (
    family_from_dict,
    family_list_item_from_dict,
    family_to_dict,
    member_to_dict,
    user_from_dict,
)


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(ApiError):
    """The stored token was rejected; it has been removed from the session."""


def remote_id(member: Member) -> str:
    """Id to address a member by in API paths."""
    return member.api_id if member.api_id else str(member.id)


class FamilyTreeClient:
    """
    Thin wrapper over the REST endpoints used by the family tree client.

    The bearer token lives in the session database so it survives between
    runs; login stores it, logout and any 401 response remove it.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.conn = conn
        self._client = httpx.Client(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        token = get_token(self.conn)
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _check(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response

        if response.status_code == 401:
            remove_token(self.conn)
            raise UnauthorizedError("session expired, please log in again", 401)

        try:
            payload = response.json()
        except ValueError:
            payload = None
        message = payload.get("message") if isinstance(payload, dict) else None
        raise ApiError(message or f"request failed ({response.status_code})", response.status_code)

    def request(self, method: str, endpoint: str, data: Any = None, params: dict | None = None) -> Any:
        """Send a JSON request and return the decoded response body (None when empty)."""
        headers = {"Content-Type": "application/json", **self._auth_headers()}
        try:
            response = self._client.request(method, endpoint, json=data, params=params, headers=headers)
        except httpx.TransportError as exc:
            raise ApiError("network connection failed") from exc

        self._check(response)
        return response.json() if response.content else None

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def send_code(self, email: str, code_type: str | None = None) -> dict:
        data = {"email": email}
        if code_type:
            data["type"] = code_type
        return self.request("POST", "/auth/send-code", data)

    def register(self, email: str, password: str, nickname: str, phone: str, verification_code: str) -> User:
        payload = self.request(
            "POST",
            "/auth/register",
            {
                "email": email,
                "password": password,
                "nickname": nickname,
                "phone": phone,
                "verificationCode": verification_code,
            },
        )
        set_token(self.conn, payload["token"])
        return user_from_dict(payload["user"])

    def login(self, email_or_username: str, password: str) -> User:
        payload = self.request(
            "POST", "/auth/login", {"emailOrUsername": email_or_username, "password": password}
        )
        set_token(self.conn, payload["token"])
        return user_from_dict(payload["user"])

    def logout(self):
        remove_token(self.conn)

    def get_profile(self) -> User:
        return user_from_dict(self.request("GET", "/auth/profile"))

    def update_profile(self, nickname: str | None = None, phone: str | None = None, avatar: str | None = None) -> User:
        changes = {"nickname": nickname, "phone": phone, "avatar": avatar}
        return user_from_dict(
            self.request("PUT", "/auth/profile", {k: v for k, v in changes.items() if v is not None})
        )

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    def list_families(self) -> list[FamilyListItem]:
        return [family_list_item_from_dict(f) for f in self.request("GET", "/families") or []]

    def get_family(self, family_id: str) -> FamilyData:
        family = family_from_dict(self.request("GET", f"/families/{family_id}"))
        if family.api_id is None:
            family.api_id = family_id
        return family

    def create_family(
        self, name: str, subtitle: str | None = None, hometown: str | None = None, theme: str | None = None
    ) -> FamilyListItem:
        data = {"name": name, "subtitle": subtitle, "hometown": hometown, "theme": theme}
        return family_list_item_from_dict(
            self.request("POST", "/families", {k: v for k, v in data.items() if v is not None})
        )

    def update_family(self, family_id: str, data: dict) -> FamilyListItem:
        return family_list_item_from_dict(self.request("PUT", f"/families/{family_id}", data))

    def delete_family(self, family_id: str):
        self.request("DELETE", f"/families/{family_id}")

    def import_family(self, family_id: str, family: FamilyData) -> Any:
        return self.request("POST", f"/families/{family_id}/import", family_to_dict(family))

    def update_genealogy_content(self, family_id: str, family: FamilyData) -> Any:
        return self.request("PUT", f"/families/{family_id}/content", family_to_dict(family))

    # ------------------------------------------------------------------
    # Generations and members
    # ------------------------------------------------------------------

    def add_generation(self, family_id: str, name: str, at_top: bool = False) -> dict:
        return self.request("POST", f"/families/{family_id}/generations", {"name": name, "atTop": at_top})

    def update_generation(self, generation_id: str, name: str | None = None, order: int | None = None) -> dict:
        data: dict[str, Any] = {}
        if name is not None:
            data["name"] = name
        if order is not None:
            data["order"] = order
        return self.request("PUT", f"/families/generations/{generation_id}", data)

    def delete_generation(self, generation_id: str):
        self.request("DELETE", f"/families/generations/{generation_id}")

    def add_member(self, generation_id: str, member: Member) -> dict:
        data = member_to_dict(member)
        # The server assigns the persistent id
        data.pop("apiId", None)
        return self.request("POST", f"/families/generations/{generation_id}/members", data)

    def update_member(self, member: Member | str, changes: dict) -> dict:
        """Update a member, given as a Member or as its API path id."""
        member_id = remote_id(member) if isinstance(member, Member) else member
        return self.request("PUT", f"/families/members/{member_id}", changes)

    def delete_member(self, member: Member | str):
        member_id = remote_id(member) if isinstance(member, Member) else member
        self.request("DELETE", f"/families/members/{member_id}")

    # ------------------------------------------------------------------
    # Upload and feedback
    # ------------------------------------------------------------------

    def upload_image(self, path: Path, folder: str = "avatars") -> str:
        """Upload an image file and return its public URL."""
        path = Path(path)
        try:
            with open(path, "rb") as f:
                response = self._client.post(
                    "/upload/image",
                    params={"folder": folder},
                    files={"file": (path.name, f)},
                    headers=self._auth_headers(),
                )
        except httpx.TransportError as exc:
            raise ApiError("network connection failed") from exc

        payload = self._check(response).json()
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            raise ApiError("upload response missing url", response.status_code)
        return url

    def create_feedback(self, title: str, content: str, feedback_type: str | None = None) -> dict:
        data = {"title": title, "content": content}
        if feedback_type:
            data["type"] = feedback_type
        return self.request("POST", "/feedback", data)

    def list_feedback(self) -> list[dict]:
        return self.request("GET", "/feedback") or []

    def get_feedback(self, feedback_id: str) -> dict:
        return self.request("GET", f"/feedback/{feedback_id}")

    def delete_feedback(self, feedback_id: str):
        self.request("DELETE", f"/feedback/{feedback_id}")
