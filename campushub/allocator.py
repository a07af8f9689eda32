"""Score students against required project skills and pick a team."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from campushub.errors import NotFound, ValidationError
from campushub.log import get_logger
from campushub.models import (
    AllocationResult,
    Assignment,
    Candidate,
    ProjectRecord,
    UserRecord,
)
from campushub.store import JsonCollection

log = get_logger(__name__)

DEFAULT_TEAM_SIZE = 3

# Business tuning constants carried over unchanged; not derived from anything.
EXPERIENCE_WEIGHT: dict[str, int] = {"senior": 3, "mid": 2, "junior": 1, "unknown": 1}
COVERAGE_WEIGHT = 100.0
MATCH_WEIGHT = 2.0
EXPERIENCE_FACTOR = 1.2
EXTRA_SKILL_WEIGHT = 0.1
UNAVAILABLE_PENALTY = -0.5


def normalize_skills(skills: Iterable[Any] | None) -> list[str]:
    """Lower-case, trim and de-duplicate skill tags (first occurrence wins)."""
    out: list[str] = []
    for s in skills or []:
        tag = str(s if s is not None else "").lower().strip()
        if tag:
            out.append(tag)
    return list(dict.fromkeys(out))


def experience_level(raw: str | None) -> str:
    level = (raw or "").lower().strip()
    return level if level in EXPERIENCE_WEIGHT else "unknown"


def experience_weight(raw: str | None) -> int:
    return EXPERIENCE_WEIGHT[experience_level(raw)]


def score_user(user: UserRecord, required_skills: Iterable[str]) -> Candidate:
    user_skills = normalize_skills(user.skills)
    required = normalize_skills(required_skills)
    user_set = set(user_skills)
    required_set = set(required)

    matched = [s for s in required if s in user_set]
    coverage = len(matched) / len(required) if required else 0.0
    extra = sum(1 for s in user_skills if s not in required_set)
    weight = experience_weight(user.experience_level)
    penalty = UNAVAILABLE_PENALTY if user.available is False else 0.0

    composite = (
        coverage * COVERAGE_WEIGHT
        + len(matched) * MATCH_WEIGHT
        + weight * EXPERIENCE_FACTOR
        + extra * EXTRA_SKILL_WEIGHT
        + penalty
    )

    return Candidate(
        user_id=user.id,
        name=user.name,
        matched_required_skills=matched,
        matched_count=len(matched),
        coverage=coverage,
        extra_skills_count=extra,
        experience_level=experience_level(user.experience_level),
        available=bool(user.available),
        composite_score=round(composite, 4),
    )


def _rank_key(c: Candidate) -> tuple:
    return (
        -c.composite_score,
        -c.coverage,
        -c.matched_count,
        -experience_weight(c.experience_level),
        c.name or "",
    )


def rank_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Drop unavailable zero-coverage candidates, then order best first.

    Order: composite score, coverage, matched count, experience weight (all
    descending), then name ascending.
    """
    kept = [c for c in candidates if c.coverage > 0 or c.available]
    return sorted(kept, key=_rank_key)


def _coerce_team_size(team_size: Any) -> int:
    try:
        size = int(team_size)
    except (TypeError, ValueError):
        return DEFAULT_TEAM_SIZE
    return size if size > 0 else DEFAULT_TEAM_SIZE


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_assignment_id() -> str:
    return f"asgn_{uuid.uuid4().hex}"


class Allocator:
    """Team allocation over user/project/assignment collections."""

    def __init__(
        self,
        users: JsonCollection,
        projects: JsonCollection,
        assignments: JsonCollection,
        *,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_assignment_id,
    ) -> None:
        self.users = users
        self.projects = projects
        self.assignments = assignments
        self._clock = clock
        self._id_factory = id_factory

    def load_users(self) -> list[UserRecord]:
        return [UserRecord.from_dict(u) for u in self.users.list() if isinstance(u, dict)]

    def load_projects(self) -> list[ProjectRecord]:
        return [ProjectRecord.from_dict(p) for p in self.projects.list() if isinstance(p, dict)]

    def _resolve_project(self, project_id: str) -> ProjectRecord:
        for p in self.load_projects():
            if str(p.id) == str(project_id):
                return p
        raise NotFound(f"project not found: {project_id}")

    def allocate(
        self,
        project_id: str | None = None,
        project_skills: list[str] | None = None,
        team_size: Any = DEFAULT_TEAM_SIZE,
        persist: bool = False,
        reason: str = "",
    ) -> AllocationResult:
        if not project_id and not project_skills:
            raise ValidationError("provide project_id or a non-empty project_skills list")
        if project_skills is not None and not isinstance(project_skills, (list, tuple)):
            raise ValidationError("project_skills must be a list of strings")

        required = normalize_skills(project_skills)
        if project_id:
            required = normalize_skills(self._resolve_project(project_id).skills)
        size = _coerce_team_size(team_size)

        scored = [score_user(u, required) for u in self.load_users()]
        ranked = rank_candidates(scored)
        chosen = ranked[:size]
        now = self._clock().isoformat()

        log.info(
            "Allocated %d/%d candidate(s) for %s (required: %s)",
            len(chosen), len(scored), project_id or "ad-hoc skills", ", ".join(required) or "-",
        )

        if persist and chosen:
            records = [
                Assignment(
                    id=self._id_factory(),
                    project_id=str(project_id) if project_id else None,
                    user_id=c.user_id,
                    assigned_at=now,
                    coverage=c.coverage,
                    matched_required_skills=list(c.matched_required_skills),
                    reason=reason or "",
                )
                for c in chosen
            ]
            self.assignments.append(*(a.to_dict() for a in records))
            log.info("Persisted %d assignment(s)", len(records))

        return AllocationResult(
            project_id=str(project_id) if project_id else None,
            required_skills=required,
            team_size=size,
            candidates=chosen,
            timestamp=now,
        )

    def list_assignments(self) -> list[Assignment]:
        return [
            Assignment.from_dict(a) for a in self.assignments.list() if isinstance(a, dict) and a.get("id")
        ]

    def unassign(self, assignment_id: str) -> Assignment:
        if not assignment_id:
            raise ValidationError("assignment_id required")
        removed = self.assignments.remove_by_id(assignment_id)
        if removed is None:
            raise NotFound(f"assignment not found: {assignment_id}")
        log.info("Removed assignment %s", assignment_id)
        return Assignment.from_dict(removed)

    def debug_info(self) -> dict[str, Any]:
        users = self.users.list()
        projects = self.projects.list()
        assignments = self.assignments.list()
        return {
            "users_count": len(users),
            "projects_count": len(projects),
            "assignments_count": len(assignments),
            "users": users,
            "projects": projects,
            "assignments": assignments,
        }
