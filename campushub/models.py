"""Data models for students, allocations and competition events."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class UserRecord:
    id: str
    name: str
    skills: list[str] = field(default_factory=list)
    experience_level: str = "unknown"
    available: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserRecord":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            skills=list(data.get("skills") or []),
            experience_level=str(
                data.get("experienceLevel") or data.get("experience_level") or "unknown"
            ),
            available=bool(data.get("available", False)),
        )


@dataclass
class ProjectRecord:
    id: str
    skills: list[str] = field(default_factory=list)
    title: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectRecord":
        return cls(
            id=str(data.get("id", "")),
            skills=list(data.get("skills") or []),
            title=str(data.get("title") or data.get("name") or ""),
        )


@dataclass
class Candidate:
    user_id: str
    name: str
    matched_required_skills: list[str]
    matched_count: int
    coverage: float
    extra_skills_count: int
    experience_level: str
    available: bool
    composite_score: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Assignment:
    id: str
    project_id: str | None
    user_id: str
    assigned_at: str
    coverage: float
    matched_required_skills: list[str]
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Assignment":
        return cls(
            id=str(data["id"]),
            project_id=data.get("project_id"),
            user_id=str(data.get("user_id", "")),
            assigned_at=str(data.get("assigned_at", "")),
            coverage=float(data.get("coverage", 0.0)),
            matched_required_skills=list(data.get("matched_required_skills") or []),
            reason=str(data.get("reason") or ""),
        )


@dataclass
class AllocationResult:
    project_id: str | None
    required_skills: list[str]
    team_size: int
    candidates: list[Candidate]
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourceDescriptor:
    id: str
    name: str
    type: str
    url: str
    parser: str | None = None
    selectors: dict[str, str] | None = None
    wait_selector: str | None = None

    def summary(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "type": self.type, "url": self.url}


@dataclass
class NormalizedEvent:
    id: str
    title: str
    url: str | None
    description: str
    start_date: str | None
    end_date: str | None
    source: str
    location: str | None = None
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FetchResult:
    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)
    via: str = "direct"
