from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db, restrict_to_own_group
from app.core.errors import NotFoundError
from app.db.models.finance import FinanceProject
from app.db.models.technical import ProjectPublication
from app.schemas.common import MessageOut
from app.schemas.technical import PublicationCreate, PublicationOut, PublicationUpdate

router = APIRouter(dependencies=[Depends(get_current_user)])


def _publication_query():
    return select(ProjectPublication, FinanceProject.project_name).join(
        FinanceProject, FinanceProject.project_id == ProjectPublication.project_id
    )


def _publication_out(publication: ProjectPublication, project_name: str | None) -> PublicationOut:
    return PublicationOut(
        publication_id=publication.publication_id,
        project_id=publication.project_id,
        project_name=project_name,
        type=publication.type,
        title=publication.title,
        details=publication.details,
        publication_date=publication.publication_date,
        authors=publication.authors,
        doi=publication.doi,
    )


async def _ensure_project(db: AsyncSession, project_id: int) -> FinanceProject:
    project = await db.get(FinanceProject, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


async def _get_publication(db: AsyncSession, publication_id: int) -> ProjectPublication:
    publication = await db.get(ProjectPublication, publication_id)
    if publication is None:
        raise NotFoundError("Publication", publication_id)
    return publication


async def _get_publication_out(db: AsyncSession, publication_id: int) -> PublicationOut:
    row = (
        await db.execute(_publication_query().where(ProjectPublication.publication_id == publication_id))
    ).first()
    if row is None:
        raise NotFoundError("Publication", publication_id)
    return _publication_out(*row)


@router.get("", response_model=list[PublicationOut])
async def list_publications(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[PublicationOut]:
    stmt = restrict_to_own_group(_publication_query(), user, FinanceProject.group_id).order_by(
        ProjectPublication.publication_date.desc().nulls_last()
    )
    result = await db.execute(stmt)
    return [_publication_out(*row) for row in result.all()]


@router.get("/project/{project_id}", response_model=list[PublicationOut])
async def list_project_publications(project_id: int, db: AsyncSession = Depends(get_db)) -> list[PublicationOut]:
    await _ensure_project(db, project_id)
    result = await db.execute(
        _publication_query()
        .where(ProjectPublication.project_id == project_id)
        .order_by(ProjectPublication.publication_date.desc().nulls_last())
    )
    return [_publication_out(*row) for row in result.all()]


@router.post("", response_model=PublicationOut, status_code=status.HTTP_201_CREATED)
async def create_publication(payload: PublicationCreate, db: AsyncSession = Depends(get_db)) -> PublicationOut:
    await _ensure_project(db, payload.project_id)
    publication = ProjectPublication(**payload.model_dump())
    db.add(publication)
    await db.commit()
    return await _get_publication_out(db, publication.publication_id)


@router.put("/{publication_id}", response_model=PublicationOut)
async def update_publication(
    publication_id: int, payload: PublicationUpdate, db: AsyncSession = Depends(get_db)
) -> PublicationOut:
    publication = await _get_publication(db, publication_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("project_id", "type", "title"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    if "project_id" in changes:
        await _ensure_project(db, changes["project_id"])
    for key, value in changes.items():
        setattr(publication, key, value)
    await db.commit()
    return await _get_publication_out(db, publication_id)


@router.delete("/{publication_id}", response_model=MessageOut)
async def delete_publication(publication_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    publication = await _get_publication(db, publication_id)
    await db.delete(publication)
    await db.commit()
    return MessageOut(message="Publication deleted successfully")
