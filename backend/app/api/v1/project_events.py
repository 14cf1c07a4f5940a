from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db, restrict_to_own_group
from app.core.errors import NotFoundError
from app.db.models.finance import FinanceProject
from app.db.models.technical import ProjectEvent
from app.schemas.common import MessageOut
from app.schemas.technical import EventCreate, EventOut, EventUpdate

router = APIRouter(dependencies=[Depends(get_current_user)])


def _event_query():
    return select(ProjectEvent, FinanceProject.project_name).join(
        FinanceProject, FinanceProject.project_id == ProjectEvent.project_id
    )


def _event_out(event: ProjectEvent, project_name: str | None) -> EventOut:
    return EventOut(
        event_id=event.event_id,
        project_id=event.project_id,
        project_name=project_name,
        group_id=event.group_id,
        event_type=event.event_type,
        title=event.title,
        start_date=event.start_date,
        end_date=event.end_date,
        participants_count=event.participants_count,
        venue=event.venue,
    )


async def _get_project(db: AsyncSession, project_id: int) -> FinanceProject:
    project = await db.get(FinanceProject, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


async def _get_event(db: AsyncSession, event_id: int) -> ProjectEvent:
    event = await db.get(ProjectEvent, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    return event


async def _get_event_out(db: AsyncSession, event_id: int) -> EventOut:
    row = (await db.execute(_event_query().where(ProjectEvent.event_id == event_id))).first()
    if row is None:
        raise NotFoundError("Event", event_id)
    return _event_out(*row)


@router.get("", response_model=list[EventOut])
async def list_events(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[EventOut]:
    stmt = restrict_to_own_group(_event_query(), user, FinanceProject.group_id).order_by(
        ProjectEvent.start_date.desc()
    )
    result = await db.execute(stmt)
    return [_event_out(*row) for row in result.all()]


@router.get("/project/{project_id}", response_model=list[EventOut])
async def list_project_events(project_id: int, db: AsyncSession = Depends(get_db)) -> list[EventOut]:
    await _get_project(db, project_id)
    result = await db.execute(
        _event_query().where(ProjectEvent.project_id == project_id).order_by(ProjectEvent.start_date.desc())
    )
    return [_event_out(*row) for row in result.all()]


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreate, db: AsyncSession = Depends(get_db)) -> EventOut:
    project = await _get_project(db, payload.project_id)
    # Events belong to the group that owns the project
    event = ProjectEvent(**payload.model_dump(), group_id=project.group_id)
    db.add(event)
    await db.commit()
    return await _get_event_out(db, event.event_id)


@router.put("/{event_id}", response_model=EventOut)
async def update_event(event_id: int, payload: EventUpdate, db: AsyncSession = Depends(get_db)) -> EventOut:
    event = await _get_event(db, event_id)
    project = await _get_project(db, payload.project_id)
    for key, value in payload.model_dump().items():
        setattr(event, key, value)
    event.group_id = project.group_id
    await db.commit()
    return await _get_event_out(db, event_id)


@router.delete("/{event_id}", response_model=MessageOut)
async def delete_event(event_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    event = await _get_event(db, event_id)
    await db.delete(event)
    await db.commit()
    return MessageOut(message="Event deleted successfully")
