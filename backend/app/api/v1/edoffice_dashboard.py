from __future__ import annotations

from collections import defaultdict

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.models.finance import FinanceProject
from app.db.models.hr import Employee, TechnicalGroup
from app.db.models.technical import (
    Patent,
    PatentInventor,
    PatentStatusHistory,
    ProjectPublication,
    Proposal,
)
from app.schemas.edoffice import (
    PatentItemOut,
    ProjectsInfoOut,
    ProposalItemOut,
    PublicationItemOut,
)

router = APIRouter(dependencies=[Depends(get_current_user)])


async def _count(db: AsyncSession, model) -> int:
    return int((await db.execute(select(func.count()).select_from(model))).scalar_one() or 0)


def latest_patent_status():
    """Subquery: the newest history status per patent (DISTINCT ON patent_id)."""
    return (
        select(PatentStatusHistory.patent_id, PatentStatusHistory.new_status)
        .distinct(PatentStatusHistory.patent_id)
        .order_by(
            PatentStatusHistory.patent_id,
            PatentStatusHistory.update_date.desc(),
            PatentStatusHistory.history_id.desc(),
        )
        .subquery()
    )


@router.get("/projects-info", response_model=ProjectsInfoOut)
async def projects_info(db: AsyncSession = Depends(get_db)) -> ProjectsInfoOut:
    return ProjectsInfoOut(
        total_projects=await _count(db, FinanceProject),
        total_publications=await _count(db, ProjectPublication),
        total_patents=await _count(db, Patent),
        total_proposals=await _count(db, Proposal),
    )


@router.get("/publications", response_model=list[PublicationItemOut])
async def publications(db: AsyncSession = Depends(get_db)) -> list[PublicationItemOut]:
    result = await db.execute(
        select(ProjectPublication, FinanceProject.project_name)
        .outerjoin(FinanceProject, FinanceProject.project_id == ProjectPublication.project_id)
        .order_by(ProjectPublication.publication_date.desc().nulls_last())
    )
    return [
        PublicationItemOut(
            id=p.publication_id,
            title=p.title,
            type=p.type,
            details=p.details,
            publication_date=p.publication_date,
            authors=p.authors,
            doi=p.doi,
            project_name=project_name,
        )
        for p, project_name in result.all()
    ]


@router.get("/patents", response_model=list[PatentItemOut])
async def patents(db: AsyncSession = Depends(get_db)) -> list[PatentItemOut]:
    latest = latest_patent_status()
    result = await db.execute(
        select(Patent, latest.c.new_status)
        .outerjoin(latest, latest.c.patent_id == Patent.patent_id)
        .order_by(Patent.filing_date.desc())
    )
    rows = result.all()

    inventors: dict[int, list[str]] = defaultdict(list)
    names = await db.execute(
        select(PatentInventor.patent_id, Employee.employee_name)
        .join(Employee, Employee.employee_id == PatentInventor.employee_id)
        .order_by(Employee.employee_name)
    )
    for patent_id, name in names.all():
        inventors[patent_id].append(name)

    return [
        PatentItemOut(
            id=p.patent_id,
            title=p.patent_title,
            application_number=p.application_number,
            status=latest_status or p.status.value,
            filing_date=p.filing_date,
            grant_date=p.grant_date,
            rejection_date=p.rejection_date,
            inventors=", ".join(inventors[p.patent_id]) or None,
        )
        for p, latest_status in rows
    ]


@router.get("/proposals", response_model=list[ProposalItemOut])
async def proposals(db: AsyncSession = Depends(get_db)) -> list[ProposalItemOut]:
    result = await db.execute(
        select(Proposal, TechnicalGroup.group_name)
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == Proposal.group_id)
        .order_by(Proposal.submission_date.desc())
    )
    return [
        ProposalItemOut(
            id=p.proposal_id,
            title=p.proposal_title,
            funding_agency=p.funding_agency,
            budget=float(p.amount) if p.amount is not None else None,
            status=p.status,
            submission_date=p.submission_date,
            group_name=group_name,
        )
        for p, group_name in result.all()
    ]
