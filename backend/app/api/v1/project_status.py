from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db, restrict_to_own_group
from app.core.audit import log_audit
from app.core.errors import NotFoundError
from app.core.logging import logger
from app.db.models.finance import FinanceProject
from app.db.models.hr import TechnicalGroup
from app.db.models.technical import ProjectStatus, ProjectStatusHistory
from app.schemas.technical import ProjectStatusCreate, ProjectStatusHistoryOut, ProjectStatusOut

"""
Current status of each finance project (/api/project-status).

One row per project in technical_project_status; every change is appended
to technical_project_status_history.
"""

router = APIRouter(dependencies=[Depends(get_current_user)])


async def _status_out(db: AsyncSession, project_id: int) -> ProjectStatusOut:
    row = (
        await db.execute(_status_query().where(FinanceProject.project_id == project_id))
    ).first()
    if row is None:
        raise NotFoundError("Project", project_id)
    return _row_out(row)


def _status_query():
    owner = TechnicalGroup.__table__.alias("owner")
    return (
        select(FinanceProject, owner.c.group_name, ProjectStatus)
        .outerjoin(owner, owner.c.group_id == FinanceProject.group_id)
        .outerjoin(ProjectStatus, ProjectStatus.project_id == FinanceProject.project_id)
    )


def _row_out(row) -> ProjectStatusOut:
    project, group_name, current = row
    return ProjectStatusOut(
        project_id=project.project_id,
        project_name=project.project_name,
        group_name=group_name,
        start_date=project.start_date,
        end_date=project.end_date,
        status=current.status if current else None,
        status_date=current.status_date if current else None,
        remarks=current.remarks if current else None,
    )


@router.get("", response_model=list[ProjectStatusOut])
async def list_project_status(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ProjectStatusOut]:
    stmt = restrict_to_own_group(_status_query(), user, FinanceProject.group_id)
    result = await db.execute(stmt.order_by(FinanceProject.project_name))
    return [_row_out(row) for row in result.all()]


@router.post("", response_model=ProjectStatusOut)
async def set_project_status(
    payload: ProjectStatusCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ProjectStatusOut:
    if await db.get(FinanceProject, payload.project_id) is None:
        raise NotFoundError("Project", payload.project_id)
    status_date = payload.status_date or date.today()

    current = await db.get(ProjectStatus, payload.project_id)
    old_status = current.status.value if current else None
    db.add(
        ProjectStatusHistory(
            project_id=payload.project_id,
            old_status=old_status,
            new_status=payload.status.value,
            status_date=status_date,
            remarks=payload.remarks,
            changed_by=user.username,
        )
    )
    if current is None:
        db.add(
            ProjectStatus(
                project_id=payload.project_id,
                status=payload.status,
                status_date=status_date,
                remarks=payload.remarks,
            )
        )
    else:
        current.status = payload.status
        current.status_date = status_date
        current.remarks = payload.remarks

    await log_audit(
        db, "status_change", "project", payload.project_id,
        before_json={"status": old_status}, after_json={"status": payload.status.value},
        actor=user.username,
    )
    await db.commit()
    logger.info(f"Project {payload.project_id} status {old_status} -> {payload.status.value}")
    return await _status_out(db, payload.project_id)


@router.get("/{project_id}/history", response_model=list[ProjectStatusHistoryOut])
async def project_status_history(
    project_id: int, db: AsyncSession = Depends(get_db)
) -> list[ProjectStatusHistoryOut]:
    if await db.get(FinanceProject, project_id) is None:
        raise NotFoundError("Project", project_id)
    result = await db.execute(
        select(ProjectStatusHistory)
        .where(ProjectStatusHistory.project_id == project_id)
        .order_by(ProjectStatusHistory.status_date.desc(), ProjectStatusHistory.id.desc())
    )
    return [ProjectStatusHistoryOut.model_validate(h) for h in result.scalars().all()]
