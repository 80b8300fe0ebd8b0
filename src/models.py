"""Data classes for family document entities."""

from dataclasses import dataclass, field


@dataclass
class PhotoCrop:
    x: float  # offset, percent
    y: float
    scale: float


@dataclass
class Story:
    id: int
    title: str
    content: str
    year: int | None = None
    photos: list[str] = field(default_factory=list)
    created_at: str | None = None


@dataclass
class Member:
    id: int
    name: str
    gender: str  # male, female
    api_id: str | None = None
    birth_order: int | None = None
    birth_year: int | None = None
    death_year: int | None = None
    hometown: str | None = None
    bio: str | None = None
    photo: str | None = None
    photo_crop: PhotoCrop | None = None
    parent_id: int | str | None = None
    mother_id: int | str | None = None
    spouse_id: int | str | None = None  # legacy single spouse
    spouse_ids: list[int | str] | None = None
    albums: list[str] = field(default_factory=list)
    stories: list[Story] = field(default_factory=list)

    @property
    def key(self) -> int | str:
        """Identity key: the server id once persisted, else the local id."""
        return self.api_id if self.api_id else self.id


@dataclass
class Generation:
    id: int
    name: str
    members: list[Member] = field(default_factory=list)
    api_id: str | None = None


@dataclass
class Settings:
    family_name: str
    hometown: str = ""
    subtitle: str | None = None
    theme: str = "classic"
    background_images: list[str] = field(default_factory=list)
    show_connections: bool = True
    zoom_level: float = 1.0


@dataclass
class FamilyData:
    settings: Settings
    generations: list[Generation] = field(default_factory=list)
    api_id: str | None = None


@dataclass
class FamilyListItem:
    id: str
    name: str
    theme: str
    updated_at: str
    subtitle: str | None = None
    hometown: str | None = None


@dataclass
class User:
    id: str
    email: str
    nickname: str
    role: str  # admin, user
    status: str  # active, disabled
    phone: str | None = None
    avatar: str | None = None
