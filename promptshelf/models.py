"""Library records: projects, categories and prompts.

Records reference each other by id. Timestamps are timezone-aware UTC
datetimes and serialize to ISO-8601 strings.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

DEFAULT_COLOR = "#3b82f6"
HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: Optional[str]) -> datetime:
    if not value:
        return utcnow()
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Project:
    """A top-level folder of prompts."""

    name: str
    description: str = ""
    color: str = DEFAULT_COLOR
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            color=data.get("color", DEFAULT_COLOR),
            created_at=_parse_time(data.get("created_at")),
        )


@dataclass
class Category:
    """A grouping of prompts inside one project."""

    name: str
    project_id: str
    description: str = ""
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "project_id": self.project_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            project_id=data["project_id"],
        )


@dataclass
class Prompt:
    """A stored prompt with its organizational and usage metadata."""

    title: str
    content: str
    project_id: str
    category_id: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    version: int = 1
    is_favorite: bool = False
    usage_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "project_id": self.project_id,
            "category_id": self.category_id,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
            "is_favorite": self.is_favorite,
            "usage_count": self.usage_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Prompt":
        return cls(
            id=data["id"],
            title=data["title"],
            content=data["content"],
            project_id=data["project_id"],
            category_id=data.get("category_id"),
            tags=list(data.get("tags", [])),
            created_at=_parse_time(data.get("created_at")),
            updated_at=_parse_time(data.get("updated_at")),
            version=int(data.get("version", 1)),
            is_favorite=bool(data.get("is_favorite", False)),
            usage_count=int(data.get("usage_count", 0)),
        )


@dataclass
class LibraryData:
    """Everything a storage backend persists."""

    projects: list[Project] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    prompts: list[Prompt] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "categories": [c.to_dict() for c in self.categories],
            "prompts": [p.to_dict() for p in self.prompts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LibraryData":
        return cls(
            projects=[Project.from_dict(p) for p in data.get("projects", [])],
            categories=[Category.from_dict(c) for c in data.get("categories", [])],
            prompts=[Prompt.from_dict(p) for p in data.get("prompts", [])],
        )


def normalize_tags(tags) -> list[str]:
    """Trim tags, drop empty ones and duplicates, keep first-seen order."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
