"""Project API.

Reads and create are open to any authenticated user (applied at mount);
update and delete additionally require ADMIN.
"""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request

from nexusadmin.auth.dependencies import CurrentIdentity, get_current_user, require_admin
from nexusadmin.db.models import ProjectStatus
from nexusadmin.errors import success
from nexusadmin.schemas.common import paginated
from nexusadmin.schemas.project import ProjectCreate, ProjectUpdate
from nexusadmin.services.project_service import ProjectService

router = APIRouter(prefix="/projects")


def _svc(request: Request) -> ProjectService:
    return request.app.state.project_service


@router.get("/stats")
async def project_stats(svc: ProjectService = Depends(_svc)):
    stats = await svc.project_stats()
    return success("Project stats retrieved successfully", {"stats": stats.dump()})


@router.post("", status_code=201)
async def create_project(
    body: ProjectCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.create_project(body.name, body.description, identity.user_id)
    return success("Project created successfully", {"project": project.dump()})


@router.get("")
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    status: Optional[Literal["ACTIVE", "ARCHIVED"]] = Query(None),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    svc: ProjectService = Depends(_svc),
):
    projects, pagination = await svc.list_projects(
        page=page,
        limit=limit,
        search=search.strip() if search else None,
        status=ProjectStatus(status) if status else None,
        include_deleted=include_deleted,
    )
    return success("Projects retrieved successfully", paginated(projects, pagination))


@router.get("/{project_id}")
async def get_project(project_id: uuid.UUID, svc: ProjectService = Depends(_svc)):
    project = await svc.get_project(project_id)
    return success("Project retrieved successfully", {"project": project.dump()})


@router.patch("/{project_id}", dependencies=[Depends(require_admin)])
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    svc: ProjectService = Depends(_svc),
):
    project = await svc.update_project(
        project_id,
        name=body.name,
        description=body.description,
        status=body.status,
    )
    return success("Project updated successfully", {"project": project.dump()})


@router.delete("/{project_id}", dependencies=[Depends(require_admin)])
async def delete_project(project_id: uuid.UUID, svc: ProjectService = Depends(_svc)):
    project = await svc.delete_project(project_id)
    return success("Project deleted successfully", {"project": project.dump()})
