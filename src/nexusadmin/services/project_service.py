"""Project service: CRUD with soft delete.

Learn: Projects are never removed. delete_project flips is_deleted and
sets status=DELETED; every read path treats such rows as missing unless
the caller explicitly asks for deleted ones in a listing.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nexusadmin.db.models import Project, ProjectStatus
from nexusadmin.errors import NotFoundError
from nexusadmin.schemas.common import Pagination
from nexusadmin.schemas.project import ProjectRead, ProjectStats

logger = structlog.get_logger()


class ProjectService:
    """Business logic for projects."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_project(
        self, name: str, description: str, user_id: str
    ) -> ProjectRead:
        async with self.session_factory() as db:
            project = Project(
                name=name,
                description=description or "",
                created_by=uuid.UUID(str(user_id)),
            )
            db.add(project)
            await db.commit()
            project = await self._load(db, project.id)
            logger.info("project.created", project_id=str(project.id), by=str(user_id))
            return ProjectRead.model_validate(project)

    async def list_projects(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
        include_deleted: bool = False,
    ) -> tuple[list[ProjectRead], Pagination]:
        conditions = []
        if not include_deleted:
            conditions.append(Project.is_deleted.is_(False))
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(Project.name.ilike(pattern), Project.description.ilike(pattern))
            )
        if status:
            conditions.append(Project.status == status)

        async with self.session_factory() as db:
            q = (
                select(Project)
                .where(*conditions)
                .order_by(Project.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            projects = list((await db.execute(q)).scalars().unique().all())
            total = (
                await db.execute(
                    select(func.count()).select_from(Project).where(*conditions)
                )
            ).scalar_one()
            return (
                [ProjectRead.model_validate(p) for p in projects],
                Pagination.build(page, limit, total),
            )

    async def get_project(self, project_id: uuid.UUID) -> ProjectRead:
        async with self.session_factory() as db:
            return ProjectRead.model_validate(await self._get_live(db, project_id))

    async def update_project(
        self,
        project_id: uuid.UUID,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
    ) -> ProjectRead:
        async with self.session_factory() as db:
            project = await self._get_live(db, project_id)
            if name is not None:
                project.name = name
            if description is not None:
                project.description = description
            if status is not None:
                project.status = ProjectStatus(status)
            await db.commit()
            project = await self._load(db, project_id)
            logger.info("project.updated", project_id=str(project_id))
            return ProjectRead.model_validate(project)

    async def delete_project(self, project_id: uuid.UUID) -> ProjectRead:
        async with self.session_factory() as db:
            project = await self._get_live(db, project_id)
            project.is_deleted = True
            project.status = ProjectStatus.DELETED
            await db.commit()
            project = await self._load(db, project_id)
            logger.info("project.deleted", project_id=str(project_id))
            return ProjectRead.model_validate(project)

    async def project_stats(self) -> ProjectStats:
        async def count(*conditions) -> int:
            q = select(func.count()).select_from(Project).where(*conditions)
            return (await db.execute(q)).scalar_one()

        live = Project.is_deleted.is_(False)
        async with self.session_factory() as db:
            return ProjectStats(
                total=await count(live),
                active=await count(live, Project.status == ProjectStatus.ACTIVE),
                archived=await count(live, Project.status == ProjectStatus.ARCHIVED),
                deleted=await count(Project.is_deleted.is_(True)),
            )

    # ─── Helpers ────────────────────────────────────────

    async def _load(self, db: AsyncSession, project_id: uuid.UUID) -> Optional[Project]:
        result = await db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _get_live(self, db: AsyncSession, project_id: uuid.UUID) -> Project:
        project = await self._load(db, project_id)
        if not project or project.is_deleted:
            raise NotFoundError("Project not found")
        return project
