from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.core.audit import log_audit
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import logger
from app.db.models.finance import (
    BudgetEntry,
    BudgetField,
    Expenditure,
    FinanceProject,
    GrantReceived,
    ProjectBudgetFieldMapping,
)
from app.db.models.hr import Employee, TechnicalGroup
from app.schemas.common import MessageOut
from app.schemas.finance import (
    BudgetEntriesRequest,
    BudgetEntryOut,
    BudgetFieldCreate,
    BudgetFieldOut,
    BudgetFieldUpdate,
    BulkExpenditureOut,
    BulkExpenditureRequest,
    ExpenditureCreate,
    ExpenditureOut,
    ExpenditureUpdate,
    FieldMappingCreate,
    FieldMappingOut,
    GrantBulkEditRequest,
    GrantDeletedOut,
    GrantReceivedCreate,
    GrantReceivedOut,
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
)
from app.services.status import quarter_of

"""
Finance projects (/api/finance/...): budget heads, year-wise budget,
expenditure entries and grants received.
"""

router = APIRouter(dependencies=[Depends(get_current_user)])

FIELD_NOT_MAPPED = "Selected budget field is not mapped to this project"


def _project_query():
    return (
        select(
            FinanceProject,
            TechnicalGroup.group_name,
            Employee.employee_name.label("project_investigator_name"),
        )
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == FinanceProject.group_id)
        .outerjoin(Employee, Employee.employee_id == FinanceProject.project_investigator_id)
    )


def _project_out(project: FinanceProject, group_name, investigator_name) -> ProjectOut:
    return ProjectOut(
        project_id=project.project_id,
        project_name=project.project_name,
        start_date=project.start_date,
        end_date=project.end_date,
        extension_end_date=project.extension_end_date,
        total_value=float(project.total_value),
        funding_agency=project.funding_agency,
        duration_years=project.duration_years,
        group_id=project.group_id,
        group_name=group_name,
        centre=project.centre,
        project_investigator_id=project.project_investigator_id,
        project_investigator_name=investigator_name,
    )


async def _get_project(db: AsyncSession, project_id: int) -> FinanceProject:
    project = await db.get(FinanceProject, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


async def _get_project_out(db: AsyncSession, project_id: int) -> ProjectOut:
    row = (await db.execute(_project_query().where(FinanceProject.project_id == project_id))).first()
    if row is None:
        raise NotFoundError("Project", project_id)
    return _project_out(*row)


async def _ensure_mapped(db: AsyncSession, project_id: int, field_id: int) -> None:
    mapping = await db.execute(
        select(ProjectBudgetFieldMapping.id).where(
            ProjectBudgetFieldMapping.project_id == project_id,
            ProjectBudgetFieldMapping.field_id == field_id,
        )
    )
    if mapping.first() is None:
        raise ValidationError(FIELD_NOT_MAPPED, details={"project_id": project_id, "field_id": field_id})


def _expenditure_out(entry: Expenditure, field_name: str | None) -> ExpenditureOut:
    return ExpenditureOut(
        expenditure_id=entry.expenditure_id,
        project_id=entry.project_id,
        field_id=entry.field_id,
        field_name=field_name,
        year_number=entry.year_number,
        period_type=entry.period_type,
        period_number=entry.period_number,
        amount_spent=float(entry.amount_spent),
        expenditure_date=entry.expenditure_date,
        remarks=entry.remarks,
    )


def _dated_period(entry: Expenditure) -> None:
    # Calendar year and quarter follow the expenditure date
    entry.year_number = entry.expenditure_date.year
    entry.period_type = "FY"
    entry.period_number = quarter_of(entry.expenditure_date)


# Projects


@router.get("/projects", response_model=list[ProjectOut])
async def list_projects(db: AsyncSession = Depends(get_db)) -> list[ProjectOut]:
    result = await db.execute(_project_query().order_by(FinanceProject.created_at.desc()))
    return [_project_out(*row) for row in result.all()]


@router.post("/projects", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ProjectOut:
    project = FinanceProject(**payload.model_dump())
    db.add(project)
    await db.flush()

    default_fields = (
        await db.execute(select(BudgetField.field_id).where(BudgetField.is_default.is_(True)))
    ).scalars().all()
    db.add_all(
        ProjectBudgetFieldMapping(project_id=project.project_id, field_id=field_id, is_custom=False)
        for field_id in default_fields
    )
    await log_audit(
        db, "create", "finance_project", project.project_id,
        after_json={"project_name": project.project_name, "total_value": str(project.total_value)},
        actor=user.username,
    )
    await db.commit()
    logger.info(f"Project {project.project_id} created with {len(default_fields)} default budget fields")
    return await _get_project_out(db, project.project_id)


@router.get("/projects/{project_id}", response_model=ProjectOut)
async def get_project(project_id: int, db: AsyncSession = Depends(get_db)) -> ProjectOut:
    return await _get_project_out(db, project_id)


@router.put("/projects/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: int, payload: ProjectUpdate, db: AsyncSession = Depends(get_db)
) -> ProjectOut:
    project = await _get_project(db, project_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("project_name", "start_date", "end_date", "total_value"):
        if changes.get(key, 0) is None:
            changes.pop(key)
    if changes.get("end_date", project.end_date) < changes.get("start_date", project.start_date):
        raise ValidationError("End date must be on or after start date")
    for key, value in changes.items():
        setattr(project, key, value)
    await db.commit()
    return await _get_project_out(db, project_id)


@router.delete("/projects/{project_id}", response_model=MessageOut)
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageOut:
    project = await _get_project(db, project_id)
    # Children first, all in the request transaction
    for model in (GrantReceived, Expenditure, BudgetEntry, ProjectBudgetFieldMapping):
        await db.execute(delete(model).where(model.project_id == project_id))
    await log_audit(
        db, "delete", "finance_project", project_id,
        before_json={"project_name": project.project_name}, actor=user.username,
    )
    await db.delete(project)
    await db.commit()
    return MessageOut(message="Project deleted successfully")


# Budget fields


@router.get("/budget-fields", response_model=list[BudgetFieldOut])
async def list_budget_fields(db: AsyncSession = Depends(get_db)) -> list[BudgetFieldOut]:
    result = await db.execute(
        select(BudgetField).order_by(BudgetField.is_default.desc(), BudgetField.field_name)
    )
    return [BudgetFieldOut.model_validate(f) for f in result.scalars().all()]


@router.post("/budget-fields", response_model=BudgetFieldOut, status_code=status.HTTP_201_CREATED)
async def create_budget_field(
    payload: BudgetFieldCreate, db: AsyncSession = Depends(get_db)
) -> BudgetFieldOut:
    field = BudgetField(**payload.model_dump())
    db.add(field)
    await db.commit()
    await db.refresh(field)
    return BudgetFieldOut.model_validate(field)


@router.put("/budget-fields/{field_id}", response_model=BudgetFieldOut)
async def update_budget_field(
    field_id: int, payload: BudgetFieldUpdate, db: AsyncSession = Depends(get_db)
) -> BudgetFieldOut:
    field = await db.get(BudgetField, field_id)
    if field is None:
        raise NotFoundError("Budget field", field_id)
    if payload.field_name is not None:
        field.field_name = payload.field_name
    # Default fields keep their flag, only the name can change
    if payload.is_default is not None and not field.is_default:
        field.is_default = payload.is_default
    await db.commit()
    await db.refresh(field)
    return BudgetFieldOut.model_validate(field)


@router.delete("/budget-fields/{field_id}", response_model=MessageOut)
async def delete_budget_field(field_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    field = await db.get(BudgetField, field_id)
    if field is None:
        raise NotFoundError("Budget field", field_id)
    if field.is_default:
        raise ValidationError("Cannot delete default budget fields")
    await db.delete(field)
    await db.commit()
    return MessageOut(message="Budget field deleted successfully")


# Per-project budget fields


@router.get("/projects/{project_id}/budget-fields", response_model=list[BudgetFieldOut])
async def list_project_fields(project_id: int, db: AsyncSession = Depends(get_db)) -> list[BudgetFieldOut]:
    await _get_project(db, project_id)
    result = await db.execute(
        select(BudgetField)
        .join(ProjectBudgetFieldMapping, ProjectBudgetFieldMapping.field_id == BudgetField.field_id)
        .where(ProjectBudgetFieldMapping.project_id == project_id)
        .order_by(BudgetField.is_default.desc(), BudgetField.field_name)
    )
    return [BudgetFieldOut.model_validate(f) for f in result.scalars().all()]


@router.post(
    "/projects/{project_id}/budget-fields",
    response_model=FieldMappingOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_project_field(
    project_id: int, payload: FieldMappingCreate, db: AsyncSession = Depends(get_db)
) -> FieldMappingOut:
    await _get_project(db, project_id)
    if await db.get(BudgetField, payload.field_id) is None:
        raise ValidationError("Invalid budget field", details={"field_id": payload.field_id})
    mapping = ProjectBudgetFieldMapping(project_id=project_id, **payload.model_dump())
    db.add(mapping)
    await db.commit()
    await db.refresh(mapping)
    return FieldMappingOut.model_validate(mapping)


@router.delete("/projects/{project_id}/budget-fields/{field_id}", response_model=MessageOut)
async def remove_project_field(
    project_id: int, field_id: int, db: AsyncSession = Depends(get_db)
) -> MessageOut:
    await db.execute(
        delete(ProjectBudgetFieldMapping).where(
            ProjectBudgetFieldMapping.project_id == project_id,
            ProjectBudgetFieldMapping.field_id == field_id,
        )
    )
    await db.commit()
    return MessageOut(message="Budget field removed from project successfully")


# Budget entries


@router.get("/projects/{project_id}/budget-entries", response_model=list[BudgetEntryOut])
async def list_budget_entries(project_id: int, db: AsyncSession = Depends(get_db)) -> list[BudgetEntryOut]:
    result = await db.execute(
        select(BudgetEntry)
        .where(BudgetEntry.project_id == project_id)
        .order_by(BudgetEntry.year_number, BudgetEntry.field_id)
    )
    return [BudgetEntryOut.model_validate(e) for e in result.scalars().all()]


@router.post("/projects/{project_id}/budget-entries", response_model=MessageOut)
async def replace_budget_entries(
    project_id: int, payload: BudgetEntriesRequest, db: AsyncSession = Depends(get_db)
) -> MessageOut:
    """Replace every budget entry of the project with `entries`."""
    await _get_project(db, project_id)
    field_ids = set((await db.execute(select(BudgetField.field_id))).scalars().all())
    invalid = [e.field_id for e in payload.entries if e.field_id not in field_ids]
    if invalid:
        raise ValidationError("Invalid entry data", details={"field_ids": invalid})

    await db.execute(delete(BudgetEntry).where(BudgetEntry.project_id == project_id))
    db.add_all(BudgetEntry(project_id=project_id, **e.model_dump()) for e in payload.entries)
    await db.commit()
    return MessageOut(message="Budget entries saved successfully")


@router.delete("/projects/{project_id}/budget-entries", response_model=MessageOut)
async def delete_budget_entries(project_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    await db.execute(delete(BudgetEntry).where(BudgetEntry.project_id == project_id))
    await db.commit()
    return MessageOut(message="Budget entries deleted successfully")


# Expenditures


def _expenditure_query():
    return select(Expenditure, BudgetField.field_name).join(
        BudgetField, BudgetField.field_id == Expenditure.field_id
    )


@router.get("/projects/{project_id}/expenditures", response_model=list[ExpenditureOut])
async def list_expenditures(project_id: int, db: AsyncSession = Depends(get_db)) -> list[ExpenditureOut]:
    result = await db.execute(
        _expenditure_query()
        .where(Expenditure.project_id == project_id)
        .order_by(Expenditure.expenditure_date.desc(), Expenditure.field_id)
    )
    return [_expenditure_out(*row) for row in result.all()]


@router.post(
    "/projects/{project_id}/expenditures",
    response_model=ExpenditureOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_expenditure(
    project_id: int, payload: ExpenditureCreate, db: AsyncSession = Depends(get_db)
) -> ExpenditureOut:
    await _get_project(db, project_id)
    await _ensure_mapped(db, project_id, payload.field_id)
    entry = Expenditure(project_id=project_id, **payload.model_dump())
    _dated_period(entry)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    field = await db.get(BudgetField, entry.field_id)
    return _expenditure_out(entry, field.field_name)


async def _get_expenditure(db: AsyncSession, project_id: int, expenditure_id: int) -> Expenditure:
    entry = await db.get(Expenditure, expenditure_id)
    if entry is None or entry.project_id != project_id:
        raise NotFoundError("Expenditure entry", expenditure_id)
    return entry


@router.put("/projects/{project_id}/expenditures/{expenditure_id}", response_model=ExpenditureOut)
async def update_expenditure(
    project_id: int,
    expenditure_id: int,
    payload: ExpenditureUpdate,
    db: AsyncSession = Depends(get_db),
) -> ExpenditureOut:
    entry = await _get_expenditure(db, project_id, expenditure_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("field_id", "amount_spent", "expenditure_date"):
        if changes.get(key, 0) is None:
            changes.pop(key)
    await _ensure_mapped(db, project_id, changes.get("field_id", entry.field_id))
    for key, value in changes.items():
        setattr(entry, key, value)
    _dated_period(entry)
    await db.commit()
    await db.refresh(entry)
    field = await db.get(BudgetField, entry.field_id)
    return _expenditure_out(entry, field.field_name)


@router.delete("/projects/{project_id}/expenditures/{expenditure_id}", response_model=MessageOut)
async def delete_expenditure(
    project_id: int, expenditure_id: int, db: AsyncSession = Depends(get_db)
) -> MessageOut:
    entry = await _get_expenditure(db, project_id, expenditure_id)
    await db.delete(entry)
    await db.commit()
    return MessageOut(message="Expenditure entry deleted successfully")


@router.post(
    "/expenditures/bulk", response_model=BulkExpenditureOut, status_code=status.HTTP_201_CREATED
)
async def bulk_expenditures(
    payload: BulkExpenditureRequest, db: AsyncSession = Depends(get_db)
) -> BulkExpenditureOut:
    """
    Save a sheet of expenditure rows in one transaction.

    Existing rows of the same projects on the submitted dates (and on
    `originalDate`, when a sheet is moved to another date) are replaced.
    """
    project_ids = {e.project_id for e in payload.expenditures}
    dates = {e.expenditure_date for e in payload.expenditures}
    if payload.originalDate is not None:
        dates.add(payload.originalDate)

    for e in payload.expenditures:
        await _ensure_mapped(db, e.project_id, e.field_id)

    await db.execute(
        delete(Expenditure).where(
            Expenditure.project_id.in_(project_ids), Expenditure.expenditure_date.in_(dates)
        )
    )
    entries = []
    for e in payload.expenditures:
        entry = Expenditure(**e.model_dump())
        _dated_period(entry)
        db.add(entry)
        entries.append(entry)
    await db.flush()

    names = dict((await db.execute(select(BudgetField.field_id, BudgetField.field_name))).all())
    out = [_expenditure_out(entry, names.get(entry.field_id)) for entry in entries]
    await db.commit()
    logger.info(f"Saved {len(entries)} expenditure rows for projects {sorted(project_ids)}")
    return BulkExpenditureOut(message="Expenditures added successfully", entries=out)


# Grants received


@router.get("/projects/{project_id}/grant-received", response_model=list[GrantReceivedOut])
async def list_grants(project_id: int, db: AsyncSession = Depends(get_db)) -> list[GrantReceivedOut]:
    result = await db.execute(
        select(GrantReceived, BudgetField.field_name)
        .join(BudgetField, BudgetField.field_id == GrantReceived.field_id)
        .where(GrantReceived.project_id == project_id)
        .order_by(GrantReceived.received_date.desc(), BudgetField.field_name)
    )
    return [
        GrantReceivedOut(
            grant_id=grant.grant_id,
            project_id=grant.project_id,
            field_id=grant.field_id,
            field_name=field_name,
            received_date=grant.received_date,
            amount=float(grant.amount),
            remarks=grant.remarks,
        )
        for grant, field_name in result.all()
    ]


@router.post("/grant-received", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def add_grant(payload: GrantReceivedCreate, db: AsyncSession = Depends(get_db)) -> MessageOut:
    await _get_project(db, payload.project_id)
    # One row per allocation with an amount; zero and negative adjustments included
    rows = [
        GrantReceived(
            project_id=payload.project_id,
            field_id=a.field_id,
            received_date=payload.received_date,
            amount=a.amount,
            remarks=payload.remarks,
        )
        for a in payload.allocations
        if a.amount is not None
    ]
    db.add_all(rows)
    await db.commit()
    return MessageOut(message="Grant received entries added successfully")


@router.post("/grant-received/bulk-edit", response_model=MessageOut)
async def bulk_edit_grants(
    payload: GrantBulkEditRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageOut:
    await _get_project(db, payload.project_id)
    replaced = await db.execute(
        delete(GrantReceived)
        .where(
            GrantReceived.project_id == payload.project_id,
            GrantReceived.received_date == payload.received_date,
        )
        .returning(GrantReceived.grant_id)
    )
    removed = len(replaced.all())
    db.add_all(
        GrantReceived(
            project_id=payload.project_id,
            field_id=g.field_id,
            received_date=payload.received_date,
            amount=g.amount,
            remarks=g.remarks,
        )
        for g in payload.grants
        if g.amount is not None
    )
    await db.commit()
    logger.info(
        f"Grants of project {payload.project_id} on {payload.received_date} replaced "
        f"({removed} removed) by {user.username}"
    )
    return MessageOut(message="Grant received entries updated successfully")


@router.delete("/grant-received/{project_id}/{received_date}", response_model=GrantDeletedOut)
async def delete_grants_on_date(
    project_id: int, received_date: date, db: AsyncSession = Depends(get_db)
) -> GrantDeletedOut:
    result = await db.execute(
        delete(GrantReceived)
        .where(GrantReceived.project_id == project_id, GrantReceived.received_date == received_date)
        .returning(GrantReceived.grant_id)
    )
    count = len(result.all())
    if not count:
        raise NotFoundError("Grant entries", f"{project_id}/{received_date.isoformat()}")
    await db.commit()
    return GrantDeletedOut(message="Grant entries deleted successfully", count=count)
