from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from campushub import __version__, config
from campushub.aggregator import DEFAULT_LIMIT, Aggregator
from campushub.allocator import DEFAULT_TEAM_SIZE, Allocator
from campushub.errors import NotFound, ValidationError
from campushub.log import get_logger
from campushub.services import get_aggregator, get_allocator

log = get_logger(__name__)


class AllocateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: str | int | None = Field(None, alias="projectId")
    project_skills: list[str] = Field(default_factory=list, alias="projectSkills", max_length=200)
    team_size: int = Field(DEFAULT_TEAM_SIZE, alias="teamSize")
    persist: bool = False
    reason: str = Field("", max_length=2000)


class UnassignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assignment_id: str = Field("", alias="assignmentId")


router = APIRouter(prefix="/api")


@router.get("/ping")
async def ping():
    return {"ok": True, "time": datetime.now(timezone.utc).isoformat()}


@router.get("/health")
async def health():
    return {"ok": True, "version": __version__}


# ── competitions ─────────────────────────────────────────────────────────


@router.get("/competitions")
def list_competitions(
    q: str = "",
    upcoming_only: bool = Query(False, alias="upcomingOnly"),
    limit: int = DEFAULT_LIMIT,
    aggregator: Aggregator = Depends(get_aggregator),
):
    return aggregator.list_events(q=q, upcoming_only=upcoming_only, limit=limit)


@router.get("/competitions/sources")
def list_competition_sources(aggregator: Aggregator = Depends(get_aggregator)):
    return aggregator.list_sources()


@router.get("/competitions/debug-raw")
def debug_raw(url: str = "", aggregator: Aggregator = Depends(get_aggregator)):
    if not url:
        raise ValidationError("url query param required")
    return aggregator.debug_raw(url)


@router.get("/competitions/debug-source")
def debug_source(
    source_id: str = Query("", alias="id"),
    aggregator: Aggregator = Depends(get_aggregator),
):
    if not source_id:
        raise ValidationError("id query param required")
    return aggregator.debug_source(source_id)


# ── allocator ────────────────────────────────────────────────────────────


@router.post("/allocator/allocate")
def allocate(body: AllocateRequest, allocator: Allocator = Depends(get_allocator)):
    result = allocator.allocate(
        project_id=str(body.project_id) if body.project_id is not None else None,
        project_skills=body.project_skills,
        team_size=body.team_size,
        persist=body.persist,
        reason=body.reason,
    )
    return {"ok": True, "result": result.to_dict()}


@router.get("/allocator/assignments")
def list_assignments(allocator: Allocator = Depends(get_allocator)):
    return {"ok": True, "assignments": [a.to_dict() for a in allocator.list_assignments()]}


@router.post("/allocator/unassign")
def unassign(body: UnassignRequest, allocator: Allocator = Depends(get_allocator)):
    removed = allocator.unassign(body.assignment_id)
    return {"ok": True, "removed": removed.to_dict()}


@router.get("/allocator/debug")
def allocator_debug(allocator: Allocator = Depends(get_allocator)):
    return {"ok": True, **allocator.debug_info()}


def _error(status: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status, content={"ok": False, "error": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="CampusHub API",
        description="Team allocation and competitions aggregation",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return _error(400, exc)

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound):
        return _error(404, exc)

    app.include_router(router)
    return app


app = create_app()
