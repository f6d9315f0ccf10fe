"""
Catalog record types.

This module defines the records the core reads and produces:
- Author, Scanlator, Group, Poster: descriptive sub-records
- LocalizedMetadata / UnitLocalizedMetadata: per-language overlays
- Series: top-level catalog entry
- Unit: chapter/episode belonging to exactly one series
- EditPermission: a grant of edit rights on a series or unit

Invariants:
    - Records are frozen; changes produce new values via dataclasses.replace
    - Collections are tuples so serialization order is stable
    - Series.id and Unit.id are URNs and never change
    - Unit override fields are None when absent; an empty tuple is an
      explicit "none" and is not inherited over
    - Series.created_by is the owner; it is only reassigned by an explicit
      ownership transfer outside this package

How to change safely:
    - New fields need defaults so stored dictionaries keep loading
    - Keep to_dict/from_dict symmetric
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


def _dt_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _dt_from_str(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _opt_tuple(value: Any) -> Optional[tuple]:
    return tuple(value) if value is not None else None


class ScanlatorRole(Enum):
    """Type of work performed by a scanlation group."""

    TRANSLATION = "translation"
    SCANLATION = "scanlation"
    BOTH = "both"


@dataclass(frozen=True)
class Author:
    """An author or artist.

    Attributes:
        id: Stable identifier; aggregation dedups on it, not on name
        name: Display name
        role: Optional role ("Author", "Artist", ...)
    """

    id: str
    name: str
    role: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": self.role}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Author:
        return cls(id=data["id"], name=data.get("name", ""), role=data.get("role"))


@dataclass(frozen=True)
class Scanlator:
    """A scanlation or translation group."""

    id: str
    name: str
    role: Optional[ScanlatorRole] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value if self.role is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scanlator:
        role = data.get("role")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            role=ScanlatorRole(role.lower()) if role else None,
        )


@dataclass(frozen=True)
class Group:
    """A fan group or publisher associated with a series."""

    id: str
    name: str
    description: Optional[str] = None
    website: Optional[str] = None
    discord: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "website": self.website,
            "discord": self.discord,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Group:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description"),
            website=data.get("website"),
            discord=data.get("discord"),
        )


@dataclass(frozen=True)
class Poster:
    url: str
    alt_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "alt_text": self.alt_text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Poster:
        return cls(url=data["url"], alt_text=data.get("alt_text", ""))


@dataclass(frozen=True)
class LocalizedMetadata:
    """Series overlay for one ISO 639-1 language.

    Scanlators are per language since different groups translate into
    different languages.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    alt_titles: Optional[tuple[str, ...]] = None
    scanlators: tuple[Scanlator, ...] = ()
    content_folder: Optional[str] = None
    poster: Optional[Poster] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "alt_titles": list(self.alt_titles) if self.alt_titles is not None else None,
            "scanlators": [s.to_dict() for s in self.scanlators],
            "content_folder": self.content_folder,
            "poster": self.poster.to_dict() if self.poster is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LocalizedMetadata:
        poster = data.get("poster")
        return cls(
            title=data.get("title"),
            description=data.get("description"),
            alt_titles=_opt_tuple(data.get("alt_titles")),
            scanlators=tuple(Scanlator.from_dict(s) for s in data.get("scanlators") or ()),
            content_folder=data.get("content_folder"),
            poster=Poster.from_dict(poster) if poster else None,
        )


@dataclass(frozen=True)
class UnitLocalizedMetadata:
    """Unit overlay for one language; scanlators may differ per unit."""

    title: Optional[str] = None
    scanlators: Optional[tuple[Scanlator, ...]] = None
    content_folder: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "scanlators": (
                [s.to_dict() for s in self.scanlators] if self.scanlators is not None else None
            ),
            "content_folder": self.content_folder,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UnitLocalizedMetadata:
        scanlators = data.get("scanlators")
        return cls(
            title=data.get("title"),
            scanlators=(
                tuple(Scanlator.from_dict(s) for s in scanlators) if scanlators is not None else None
            ),
            content_folder=data.get("content_folder"),
        )


@dataclass(frozen=True)
class Series:
    """A top-level catalog entry.

    Attributes:
        id: Series URN (urn:mvn:series:...)
        title: Display title
        description: Display description
        poster: Default cover
        media_type: Photo, Text or Video
        tags: Curated tags plus tags rolled up from units
        content_warnings: Curated warnings plus warnings rolled up from units
        authors: Deduplicated by author id
        scanlators: Series scanlators plus every localized scanlator
        groups: Associated groups
        created_by: Owner user URN
        localized: Overlays keyed by ISO 639-1 code
        allowed_editors: User URNs granted edit rights
    """

    id: str
    title: str
    description: str = ""
    poster: Optional[Poster] = None
    media_type: str = "Photo"
    external_links: dict[str, str] = dataclass_field(default_factory=dict)
    reading_direction: Optional[str] = None
    tags: tuple[str, ...] = ()
    content_warnings: tuple[str, ...] = ()
    authors: tuple[Author, ...] = ()
    scanlators: tuple[Scanlator, ...] = ()
    groups: tuple[Group, ...] = ()
    alt_titles: tuple[str, ...] = ()
    status: Optional[str] = None
    year: Optional[int] = None
    original_language: Optional[str] = None
    federation_ref: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    localized: dict[str, LocalizedMetadata] = dataclass_field(default_factory=dict)
    allowed_editors: tuple[str, ...] = ()

    @property
    def owner(self) -> Optional[str]:
        return self.created_by

    def poster_for(self, language: Optional[str] = None) -> Optional[Poster]:
        """Cover for a language, falling back to the default cover.

        Language codes match case-insensitively; stored keys are not normalized.
        """
        if language:
            overlay = self.localized.get(language)
            if overlay is None:
                wanted = language.lower()
                overlay = next(
                    (meta for lang, meta in self.localized.items() if lang.lower() == wanted),
                    None,
                )
            if overlay is not None and overlay.poster is not None:
                return overlay.poster
        return self.poster

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "federation_ref": self.federation_ref,
            "title": self.title,
            "description": self.description,
            "poster": self.poster.to_dict() if self.poster is not None else None,
            "media_type": self.media_type,
            "external_links": dict(self.external_links),
            "reading_direction": self.reading_direction,
            "tags": list(self.tags),
            "content_warnings": list(self.content_warnings),
            "authors": [a.to_dict() for a in self.authors],
            "scanlators": [s.to_dict() for s in self.scanlators],
            "groups": [g.to_dict() for g in self.groups],
            "alt_titles": list(self.alt_titles),
            "status": self.status,
            "year": self.year,
            "original_language": self.original_language,
            "created_by": self.created_by,
            "created_at": _dt_to_str(self.created_at),
            "updated_at": _dt_to_str(self.updated_at),
            "localized": {lang: meta.to_dict() for lang, meta in self.localized.items()},
            "allowed_editors": list(self.allowed_editors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Series:
        poster = data.get("poster")
        return cls(
            id=data["id"],
            federation_ref=data.get("federation_ref"),
            title=data.get("title", ""),
            description=data.get("description") or "",
            poster=Poster.from_dict(poster) if poster else None,
            media_type=data.get("media_type", "Photo"),
            external_links=dict(data.get("external_links") or {}),
            reading_direction=data.get("reading_direction"),
            tags=tuple(data.get("tags") or ()),
            content_warnings=tuple(data.get("content_warnings") or ()),
            authors=tuple(Author.from_dict(a) for a in data.get("authors") or ()),
            scanlators=tuple(Scanlator.from_dict(s) for s in data.get("scanlators") or ()),
            groups=tuple(Group.from_dict(g) for g in data.get("groups") or ()),
            alt_titles=tuple(data.get("alt_titles") or ()),
            status=data.get("status"),
            year=data.get("year"),
            original_language=data.get("original_language"),
            created_by=data.get("created_by"),
            created_at=_dt_from_str(data.get("created_at")),
            updated_at=_dt_from_str(data.get("updated_at")),
            localized={
                lang: LocalizedMetadata.from_dict(meta)
                for lang, meta in (data.get("localized") or {}).items()
            },
            allowed_editors=tuple(data.get("allowed_editors") or ()),
        )


@dataclass(frozen=True)
class Unit:
    """A chapter, episode or volume of a series.

    Override fields (tags, content_warnings, authors, localized) are None
    when the unit does not set them; readers then see the series values
    (see TaxonomyAggregator.inherit).
    """

    id: str
    series_id: str
    unit_number: float
    title: str = ""
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    language: Optional[str] = None
    page_count: int = 0
    folder_path: Optional[str] = None
    updated_at: Optional[datetime] = None
    description: Optional[str] = None
    tags: Optional[tuple[str, ...]] = None
    content_warnings: Optional[tuple[str, ...]] = None
    authors: Optional[tuple[Author, ...]] = None
    localized: Optional[dict[str, UnitLocalizedMetadata]] = None
    allowed_editors: tuple[str, ...] = ()

    @property
    def owner(self) -> Optional[str]:
        return self.created_by

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "series_id": self.series_id,
            "unit_number": self.unit_number,
            "title": self.title,
            "created_at": _dt_to_str(self.created_at),
            "created_by": self.created_by,
            "language": self.language,
            "page_count": self.page_count,
            "folder_path": self.folder_path,
            "updated_at": _dt_to_str(self.updated_at),
            "description": self.description,
            "tags": list(self.tags) if self.tags is not None else None,
            "content_warnings": (
                list(self.content_warnings) if self.content_warnings is not None else None
            ),
            "authors": [a.to_dict() for a in self.authors] if self.authors is not None else None,
            "localized": (
                {lang: meta.to_dict() for lang, meta in self.localized.items()}
                if self.localized is not None
                else None
            ),
            "allowed_editors": list(self.allowed_editors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Unit:
        authors = data.get("authors")
        localized = data.get("localized")
        return cls(
            id=data["id"],
            series_id=data["series_id"],
            unit_number=float(data.get("unit_number", 0)),
            title=data.get("title", ""),
            created_at=_dt_from_str(data.get("created_at")),
            created_by=data.get("created_by"),
            language=data.get("language"),
            page_count=data.get("page_count", 0),
            folder_path=data.get("folder_path"),
            updated_at=_dt_from_str(data.get("updated_at")),
            description=data.get("description"),
            tags=_opt_tuple(data.get("tags")),
            content_warnings=_opt_tuple(data.get("content_warnings")),
            authors=tuple(Author.from_dict(a) for a in authors) if authors is not None else None,
            localized=(
                {lang: UnitLocalizedMetadata.from_dict(meta) for lang, meta in localized.items()}
                if localized is not None
                else None
            ),
            allowed_editors=tuple(data.get("allowed_editors") or ()),
        )


@dataclass(frozen=True)
class EditPermission:
    """Edit rights on a series or unit granted to a user.

    Membership in the target's allowed_editors is the source of truth;
    this record only keeps who granted it and when.
    """

    target_urn: str
    user_urn: str
    granted_by: str
    granted_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "target_urn": self.target_urn,
            "user_urn": self.user_urn,
            "granted_by": self.granted_by,
            "granted_at": self.granted_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditPermission:
        return cls(
            target_urn=data["target_urn"],
            user_urn=data["user_urn"],
            granted_by=data["granted_by"],
            granted_at=datetime.fromisoformat(data["granted_at"]),
        )
