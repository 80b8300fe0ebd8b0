"""Conversion between API JSON payloads and family document data classes."""

import json
from pathlib import Path
from typing import Any

from models import (
    FamilyData,
    FamilyListItem,
    Generation,
    Member,
    PhotoCrop,
    Settings,
    Story,
    User,
)


def _require(data: dict[str, Any], key: str, record: str) -> Any:
    if key not in data or data[key] is None:
        raise ValueError(f"{record} record is missing required field '{key}': {data!r}")
    return data[key]


def photo_crop_from_dict(data: dict[str, Any] | None) -> PhotoCrop | None:
    if not data:
        return None
    return PhotoCrop(
        x=data.get("x", 0),
        y=data.get("y", 0),
        scale=data.get("scale", 1),
    )


def story_from_dict(data: dict[str, Any]) -> Story:
    return Story(
        id=_require(data, "id", "Story"),
        title=data.get("title", ""),
        content=data.get("content", ""),
        year=data.get("year"),
        photos=list(data.get("photos") or []),
        created_at=data.get("createdAt"),
    )


def member_from_dict(data: dict[str, Any]) -> Member:
    """Build a Member from its API representation (camelCase keys)."""
    spouse_ids = data.get("spouseIds")
    return Member(
        id=_require(data, "id", "Member"),
        name=data.get("name", ""),
        gender=data.get("gender") or "male",
        api_id=data.get("apiId") or None,
        birth_order=data.get("birthOrder"),
        birth_year=data.get("birthYear"),
        death_year=data.get("deathYear"),
        hometown=data.get("hometown"),
        bio=data.get("bio"),
        photo=data.get("photo"),
        photo_crop=photo_crop_from_dict(data.get("photoCrop")),
        parent_id=data.get("parentId"),
        mother_id=data.get("motherId"),
        spouse_id=data.get("spouseId"),
        spouse_ids=list(spouse_ids) if isinstance(spouse_ids, list) else None,
        albums=list(data.get("albums") or []),
        stories=[story_from_dict(s) for s in data.get("stories") or []],
    )


def generation_from_dict(data: dict[str, Any]) -> Generation:
    return Generation(
        id=_require(data, "id", "Generation"),
        name=data.get("name", ""),
        members=[member_from_dict(m) for m in data.get("members") or []],
        api_id=data.get("apiId") or None,
    )


def settings_from_dict(data: dict[str, Any] | None) -> Settings:
    data = data or {}
    return Settings(
        family_name=data.get("familyName", ""),
        hometown=data.get("hometown", ""),
        # Older documents use the alias keys
        subtitle=data.get("subtitle") or data.get("familySubtitle"),
        theme=data.get("theme", "classic"),
        background_images=list(data.get("bgImages") or data.get("backgroundImages") or []),
        show_connections=data.get("showConnections", True),
        zoom_level=data.get("zoomLevel", 1.0),
    )


def family_from_dict(data: dict[str, Any]) -> FamilyData:
    """Build a FamilyData document from the payload of GET /families/{id}."""
    return FamilyData(
        settings=settings_from_dict(data.get("settings")),
        generations=[generation_from_dict(g) for g in data.get("generations") or []],
        api_id=data.get("apiId") or None,
    )


def family_list_item_from_dict(data: dict[str, Any]) -> FamilyListItem:
    return FamilyListItem(
        id=_require(data, "id", "Family"),
        name=data.get("name", ""),
        theme=data.get("theme", "classic"),
        updated_at=data.get("updatedAt", ""),
        subtitle=data.get("subtitle"),
        hometown=data.get("hometown"),
    )


def user_from_dict(data: dict[str, Any]) -> User:
    return User(
        id=_require(data, "id", "User"),
        email=data.get("email", ""),
        nickname=data.get("nickname", ""),
        role=data.get("role", "user"),
        status=data.get("status", "active"),
        phone=data.get("phone"),
        avatar=data.get("avatar"),
    )


def member_to_dict(member: Member) -> dict[str, Any]:
    """Serialize a Member back to its API representation, leaving out unset fields."""
    data: dict[str, Any] = {
        "id": member.id,
        "name": member.name,
        "gender": member.gender,
        "apiId": member.api_id,
        "birthOrder": member.birth_order,
        "birthYear": member.birth_year,
        "deathYear": member.death_year,
        "hometown": member.hometown,
        "bio": member.bio,
        "photo": member.photo,
        "parentId": member.parent_id,
        "motherId": member.mother_id,
        "spouseId": member.spouse_id,
        "spouseIds": member.spouse_ids,
    }
    if member.photo_crop is not None:
        crop = member.photo_crop
        data["photoCrop"] = {"x": crop.x, "y": crop.y, "scale": crop.scale}
    if member.albums:
        data["albums"] = list(member.albums)
    if member.stories:
        data["stories"] = [
            {
                "id": s.id,
                "title": s.title,
                "content": s.content,
                "year": s.year,
                "photos": list(s.photos),
                "createdAt": s.created_at,
            }
            for s in member.stories
        ]
    return {k: v for k, v in data.items() if v is not None}


def family_to_dict(family: FamilyData) -> dict[str, Any]:
    settings = family.settings
    data: dict[str, Any] = {
        "settings": {
            "familyName": settings.family_name,
            "subtitle": settings.subtitle,
            "hometown": settings.hometown,
            "theme": settings.theme,
            "bgImages": list(settings.background_images),
            "showConnections": settings.show_connections,
            "zoomLevel": settings.zoom_level,
        },
        "generations": [
            {
                "id": g.id,
                "name": g.name,
                "members": [member_to_dict(m) for m in g.members],
                **({"apiId": g.api_id} if g.api_id else {}),
            }
            for g in family.generations
        ],
    }
    if family.api_id:
        data["apiId"] = family.api_id
    return data


def load_family_json(path: Path) -> FamilyData:
    """Read a family document saved as JSON (the GET /families/{id} payload)."""
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    # Responses wrapped as {"data": {...}} are accepted too
    if isinstance(payload, dict) and "generations" not in payload and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    if not isinstance(payload, dict):
        raise ValueError(f"Family document in {path} is not a JSON object")
    return family_from_dict(payload)
