from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.api.deps import CurrentUser, get_current_user, get_db
from app.core.audit import log_audit
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import logger
from app.db.enums import EmployeeStatus
from app.db.models.hr import (
    Attrition,
    ContractRenewal,
    Designation,
    Employee,
    Promotion,
    Recruitment,
    TechnicalGroup,
    Training,
    Transfer,
)
from app.schemas.common import MessageOut
from app.schemas.hr import (
    AttritionCreate,
    AttritionOut,
    AttritionUpdate,
    ContractRenewalCreate,
    ContractRenewalOut,
    ContractRenewalUpdate,
    PromotionCreate,
    PromotionImportOut,
    PromotionImportRequest,
    PromotionOut,
    PromotionUpdate,
    PromotionValidationOut,
    RecruitmentCreate,
    RecruitmentOut,
    RecruitmentUpdate,
    TrainingCreate,
    TrainingOut,
    TrainingUpdate,
    TransferCreate,
    TransferOut,
    TransferUpdate,
)
from app.services import promotions as chain

"""
HR service records (/api/hr/services/...): promotions, transfers, attrition,
trainings, recruitments and contract renewals.
"""

router = APIRouter(dependencies=[Depends(get_current_user)])


async def _get_employee(db: AsyncSession, employee_id: str) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee", employee_id)
    return employee


async def _ensure_designation(db: AsyncSession, designation_id: int) -> None:
    if await db.get(Designation, designation_id) is None:
        raise ValidationError("Invalid designation", details={"designation_id": designation_id})


async def _ensure_group(db: AsyncSession, group_id: int) -> None:
    if await db.get(TechnicalGroup, group_id) is None:
        raise ValidationError("Invalid technical group", details={"group_id": group_id})


def _changes(payload) -> dict:
    return {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}


# Promotions

from_desig = aliased(Designation, name="from_desig")
to_desig = aliased(Designation, name="to_desig")


def _promotion_query():
    return (
        select(
            Promotion,
            Employee.employee_name,
            from_desig.designation.label("from_designation"),
            to_desig.designation.label("to_designation"),
        )
        .join(Employee, Employee.employee_id == Promotion.employee_id)
        .outerjoin(from_desig, from_desig.designation_id == Promotion.from_designation_id)
        .outerjoin(to_desig, to_desig.designation_id == Promotion.to_designation_id)
    )


def _promotion_out(row) -> PromotionOut:
    promotion = row[0]
    return PromotionOut(
        id=promotion.id,
        employee_id=promotion.employee_id,
        employee_name=row.employee_name,
        from_designation_id=promotion.from_designation_id,
        from_designation=row.from_designation,
        to_designation_id=promotion.to_designation_id,
        to_designation=row.to_designation,
        effective_date=promotion.effective_date,
        remarks=promotion.remarks,
        level=promotion.level,
    )


async def _get_promotion_out(db: AsyncSession, promotion_id: int) -> PromotionOut:
    row = (await db.execute(_promotion_query().where(Promotion.id == promotion_id))).first()
    if row is None:
        raise NotFoundError("Promotion", promotion_id)
    return _promotion_out(row)


@router.get("/promotions", response_model=list[PromotionOut])
async def list_promotions(
    employee_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[PromotionOut]:
    stmt = _promotion_query().order_by(Promotion.effective_date.desc(), Promotion.id.desc())
    if employee_id:
        stmt = stmt.where(Promotion.employee_id == employee_id)
    return [_promotion_out(row) for row in (await db.execute(stmt)).all()]


@router.post("/promotions", response_model=PromotionOut, status_code=status.HTTP_201_CREATED)
async def create_promotion(
    payload: PromotionCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PromotionOut:
    employee = await _get_employee(db, payload.employee_id)
    if employee.join_date is not None and payload.effective_date < employee.join_date:
        raise ValidationError("Promotion date cannot be before the employee's join date")
    await _ensure_designation(db, payload.to_designation_id)

    # from_designation_id is re-derived from the chain below
    promotion = Promotion(**payload.model_dump(), from_designation_id=employee.designation_id)
    db.add(promotion)
    await chain.resync_employee(db, employee)
    await log_audit(
        db, "promotion", "employee", employee.employee_id,
        after_json={
            "to_designation_id": payload.to_designation_id,
            "effective_date": payload.effective_date.isoformat(),
        },
        actor=user.username,
    )
    await db.commit()
    return await _get_promotion_out(db, promotion.id)


@router.put("/promotions/{promotion_id}", response_model=PromotionOut)
async def update_promotion(
    promotion_id: int,
    payload: PromotionUpdate,
    db: AsyncSession = Depends(get_db),
) -> PromotionOut:
    promotion = await db.get(Promotion, promotion_id)
    if promotion is None:
        raise NotFoundError("Promotion", promotion_id)
    employee = await _get_employee(db, promotion.employee_id)
    changes = _changes(payload)

    if "effective_date" in changes:
        new_date = changes["effective_date"]
        if employee.join_date is not None and new_date < employee.join_date:
            raise ValidationError("Promotion date cannot be before the employee's join date")
        links = chain.sort_chain(await chain.load_chain(db, employee.employee_id))
        prev_link, next_link = chain.neighbours(links, promotion_id)
        chain.check_between(new_date, prev_link, next_link)
    if "to_designation_id" in changes:
        await _ensure_designation(db, changes["to_designation_id"])

    for key, value in changes.items():
        setattr(promotion, key, value)
    await chain.resync_employee(db, employee)
    await db.commit()
    return await _get_promotion_out(db, promotion_id)


@router.delete("/promotions/{promotion_id}", response_model=MessageOut)
async def delete_promotion(promotion_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    promotion = await db.get(Promotion, promotion_id)
    if promotion is None:
        raise NotFoundError("Promotion", promotion_id)
    employee = await _get_employee(db, promotion.employee_id)
    await db.delete(promotion)
    await chain.resync_employee(db, employee)
    await db.commit()
    return MessageOut(message="Promotion deleted successfully")


async def _validate_rows(db: AsyncSession, payload: PromotionImportRequest) -> list[str]:
    levels = await chain.designation_levels(db)
    errors: list[str] = []
    for index, row in enumerate(payload.promotions, start=1):
        employee = await db.get(Employee, row.employee_id)
        errors += chain.validate_import_row(index, row.model_dump(), employee, levels)
    return errors


@router.post("/validate-promotions", response_model=PromotionValidationOut)
async def validate_promotions(
    payload: PromotionImportRequest, db: AsyncSession = Depends(get_db)
) -> PromotionValidationOut:
    return PromotionValidationOut(errors=await _validate_rows(db, payload))


@router.post("/import-promotions", response_model=PromotionImportOut)
async def import_promotions(
    payload: PromotionImportRequest, db: AsyncSession = Depends(get_db)
) -> PromotionImportOut:
    errors = await _validate_rows(db, payload)
    if errors:
        raise ValidationError("Promotion import failed validation", details={"errors": errors})

    levels = await chain.designation_levels(db)
    touched: dict[str, Employee] = {}
    # One transaction: nothing is committed unless every row is inserted
    for row in payload.promotions:
        employee = touched.get(row.employee_id) or await _get_employee(db, row.employee_id)
        touched[row.employee_id] = employee
        db.add(
            Promotion(
                employee_id=row.employee_id,
                from_designation_id=employee.designation_id,
                to_designation_id=row.to_designation_id,
                effective_date=row.effective_date,
                remarks=row.remarks,
                level=row.level if row.level is not None else levels[row.to_designation_id],
            )
        )
    for employee in touched.values():
        await chain.resync_employee(db, employee)
    await db.commit()
    logger.info(f"Imported {len(payload.promotions)} promotions for {len(touched)} employees")
    return PromotionImportOut(
        message="Promotions imported successfully", imported=len(payload.promotions)
    )


# Transfers

from_group = aliased(TechnicalGroup, name="from_group")
to_group = aliased(TechnicalGroup, name="to_group")


def _transfer_query():
    return (
        select(
            Transfer,
            Employee.employee_name,
            from_group.group_name.label("from_group"),
            to_group.group_name.label("to_group"),
        )
        .join(Employee, Employee.employee_id == Transfer.employee_id)
        .outerjoin(from_group, from_group.group_id == Transfer.from_group_id)
        .outerjoin(to_group, to_group.group_id == Transfer.to_group_id)
    )


def _transfer_out(row) -> TransferOut:
    transfer = row[0]
    return TransferOut(
        id=transfer.id,
        employee_id=transfer.employee_id,
        employee_name=row.employee_name,
        from_group_id=transfer.from_group_id,
        from_group=row.from_group,
        to_group_id=transfer.to_group_id,
        to_group=row.to_group,
        transfer_date=transfer.transfer_date,
        remarks=transfer.remarks,
    )


async def _get_transfer_out(db: AsyncSession, transfer_id: int) -> TransferOut:
    row = (await db.execute(_transfer_query().where(Transfer.id == transfer_id))).first()
    if row is None:
        raise NotFoundError("Transfer", transfer_id)
    return _transfer_out(row)


@router.get("/transfers", response_model=list[TransferOut])
async def list_transfers(db: AsyncSession = Depends(get_db)) -> list[TransferOut]:
    result = await db.execute(_transfer_query().order_by(Transfer.transfer_date.desc()))
    return [_transfer_out(row) for row in result.all()]


@router.post("/transfers", response_model=TransferOut, status_code=status.HTTP_201_CREATED)
async def create_transfer(
    payload: TransferCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TransferOut:
    employee = await _get_employee(db, payload.employee_id)
    await _ensure_group(db, payload.to_group_id)
    if payload.to_group_id == employee.technical_group_id:
        raise ValidationError("Employee is already in this group")

    transfer = Transfer(**payload.model_dump(), from_group_id=employee.technical_group_id)
    db.add(transfer)
    employee.technical_group_id = payload.to_group_id
    await db.flush()
    await log_audit(
        db, "transfer", "employee", employee.employee_id,
        before_json={"technical_group_id": transfer.from_group_id},
        after_json={"technical_group_id": payload.to_group_id},
        actor=user.username,
    )
    await db.commit()
    return await _get_transfer_out(db, transfer.id)


@router.put("/transfers/{transfer_id}", response_model=TransferOut)
async def update_transfer(
    transfer_id: int, payload: TransferUpdate, db: AsyncSession = Depends(get_db)
) -> TransferOut:
    transfer = await db.get(Transfer, transfer_id)
    if transfer is None:
        raise NotFoundError("Transfer", transfer_id)
    changes = _changes(payload)
    if "to_group_id" in changes:
        await _ensure_group(db, changes["to_group_id"])
    for key, value in changes.items():
        setattr(transfer, key, value)
    await db.flush()

    latest = await db.execute(
        select(Transfer.id)
        .where(Transfer.employee_id == transfer.employee_id)
        .order_by(Transfer.transfer_date.desc(), Transfer.id.desc())
        .limit(1)
    )
    if latest.scalar_one() == transfer_id:
        employee = await _get_employee(db, transfer.employee_id)
        employee.technical_group_id = transfer.to_group_id
    await db.commit()
    return await _get_transfer_out(db, transfer_id)


# Attrition


def _attrition_out(attrition: Attrition, employee_name: str | None) -> AttritionOut:
    return AttritionOut(
        id=attrition.id,
        employee_id=attrition.employee_id,
        employee_name=employee_name,
        reason_for_leaving=attrition.reason_for_leaving,
        reason_details=attrition.reason_details,
        last_date=attrition.last_date,
        year=attrition.year,
        month=attrition.month,
    )


@router.get("/attrition", response_model=list[AttritionOut])
async def list_attrition(db: AsyncSession = Depends(get_db)) -> list[AttritionOut]:
    result = await db.execute(
        select(Attrition, Employee.employee_name)
        .join(Employee, Employee.employee_id == Attrition.employee_id)
        .order_by(Attrition.last_date.desc())
    )
    return [_attrition_out(a, name) for a, name in result.all()]


@router.post("/attrition", response_model=AttritionOut, status_code=status.HTTP_201_CREATED)
async def create_attrition(
    payload: AttritionCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AttritionOut:
    employee = await _get_employee(db, payload.employee_id)
    data = payload.model_dump()
    data["year"] = data["year"] or payload.last_date.year
    data["month"] = data["month"] or payload.last_date.month

    attrition = Attrition(**data)
    db.add(attrition)
    employee.status = EmployeeStatus.INACTIVE
    await log_audit(
        db, "attrition", "employee", employee.employee_id,
        before_json={"status": EmployeeStatus.ACTIVE.value},
        after_json={"status": EmployeeStatus.INACTIVE.value, "last_date": payload.last_date.isoformat()},
        actor=user.username,
    )
    await db.commit()
    await db.refresh(attrition)
    return _attrition_out(attrition, employee.employee_name)


@router.put("/attrition/{attrition_id}", response_model=AttritionOut)
async def update_attrition(
    attrition_id: int, payload: AttritionUpdate, db: AsyncSession = Depends(get_db)
) -> AttritionOut:
    attrition = await db.get(Attrition, attrition_id)
    if attrition is None:
        raise NotFoundError("Attrition record", attrition_id)
    for key, value in _changes(payload).items():
        setattr(attrition, key, value)
    await db.commit()
    await db.refresh(attrition)
    employee = await db.get(Employee, attrition.employee_id)
    return _attrition_out(attrition, employee.employee_name if employee else None)


# Trainings


@router.get("/trainings", response_model=list[TrainingOut])
async def list_trainings(db: AsyncSession = Depends(get_db)) -> list[TrainingOut]:
    result = await db.execute(select(Training).order_by(Training.start_date.desc()))
    return [TrainingOut.model_validate(t) for t in result.scalars().all()]


@router.post("/trainings", response_model=TrainingOut, status_code=status.HTTP_201_CREATED)
async def create_training(payload: TrainingCreate, db: AsyncSession = Depends(get_db)) -> TrainingOut:
    training = Training(**payload.model_dump())
    db.add(training)
    await db.commit()
    await db.refresh(training)
    return TrainingOut.model_validate(training)


@router.put("/trainings/{training_id}", response_model=TrainingOut)
async def update_training(
    training_id: int, payload: TrainingUpdate, db: AsyncSession = Depends(get_db)
) -> TrainingOut:
    training = await db.get(Training, training_id)
    if training is None:
        raise NotFoundError("Training", training_id)
    changes = _changes(payload)
    if changes.get("end_date", training.end_date) < changes.get("start_date", training.start_date):
        raise ValidationError("End date must be on or after start date")
    for key, value in changes.items():
        setattr(training, key, value)
    await db.commit()
    await db.refresh(training)
    return TrainingOut.model_validate(training)


@router.delete("/trainings/{training_id}", response_model=MessageOut)
async def delete_training(training_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    training = await db.get(Training, training_id)
    if training is None:
        raise NotFoundError("Training", training_id)
    await db.delete(training)
    await db.commit()
    return MessageOut(message="Training deleted successfully")


# Recruitments


@router.get("/recruitments", response_model=list[RecruitmentOut])
async def list_recruitments(db: AsyncSession = Depends(get_db)) -> list[RecruitmentOut]:
    result = await db.execute(
        select(Recruitment).order_by(Recruitment.year.desc(), Recruitment.month.desc())
    )
    return [RecruitmentOut.model_validate(r) for r in result.scalars().all()]


@router.post("/recruitments", response_model=RecruitmentOut, status_code=status.HTTP_201_CREATED)
async def create_recruitment(
    payload: RecruitmentCreate, db: AsyncSession = Depends(get_db)
) -> RecruitmentOut:
    recruitment = Recruitment(**payload.model_dump())
    db.add(recruitment)
    await db.commit()
    await db.refresh(recruitment)
    return RecruitmentOut.model_validate(recruitment)


@router.put("/recruitments/{recruitment_id}", response_model=RecruitmentOut)
async def update_recruitment(
    recruitment_id: int, payload: RecruitmentUpdate, db: AsyncSession = Depends(get_db)
) -> RecruitmentOut:
    recruitment = await db.get(Recruitment, recruitment_id)
    if recruitment is None:
        raise NotFoundError("Recruitment", recruitment_id)
    for key, value in _changes(payload).items():
        setattr(recruitment, key, value)
    await db.commit()
    await db.refresh(recruitment)
    return RecruitmentOut.model_validate(recruitment)


@router.delete("/recruitments/{recruitment_id}", response_model=MessageOut)
async def delete_recruitment(recruitment_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    recruitment = await db.get(Recruitment, recruitment_id)
    if recruitment is None:
        raise NotFoundError("Recruitment", recruitment_id)
    await db.delete(recruitment)
    await db.commit()
    return MessageOut(message="Recruitment deleted successfully")


# Contract renewals


def _renewal_out(renewal: ContractRenewal, employee_name: str | None) -> ContractRenewalOut:
    return ContractRenewalOut(
        id=renewal.id,
        employee_id=renewal.employee_id,
        employee_name=employee_name,
        contract_type=renewal.contract_type,
        start_date=renewal.start_date,
        end_date=renewal.end_date,
        duration_months=renewal.duration_months,
        remarks=renewal.remarks,
    )


@router.get("/contracts", response_model=list[ContractRenewalOut])
async def list_contract_renewals(db: AsyncSession = Depends(get_db)) -> list[ContractRenewalOut]:
    result = await db.execute(
        select(ContractRenewal, Employee.employee_name)
        .join(Employee, Employee.employee_id == ContractRenewal.employee_id)
        .order_by(ContractRenewal.end_date.desc())
    )
    return [_renewal_out(r, name) for r, name in result.all()]


@router.post("/contracts", response_model=ContractRenewalOut, status_code=status.HTTP_201_CREATED)
async def create_contract_renewal(
    payload: ContractRenewalCreate, db: AsyncSession = Depends(get_db)
) -> ContractRenewalOut:
    employee = await _get_employee(db, payload.employee_id)
    renewal = ContractRenewal(**payload.model_dump())
    db.add(renewal)
    await db.commit()
    await db.refresh(renewal)
    return _renewal_out(renewal, employee.employee_name)


@router.put("/contracts/{renewal_id}", response_model=ContractRenewalOut)
async def update_contract_renewal(
    renewal_id: int, payload: ContractRenewalUpdate, db: AsyncSession = Depends(get_db)
) -> ContractRenewalOut:
    renewal = await db.get(ContractRenewal, renewal_id)
    if renewal is None:
        raise NotFoundError("Contract renewal", renewal_id)
    changes = _changes(payload)
    if changes.get("end_date", renewal.end_date) < changes.get("start_date", renewal.start_date):
        raise ValidationError("End date must be on or after start date")
    for key, value in changes.items():
        setattr(renewal, key, value)
    await db.commit()
    await db.refresh(renewal)
    employee = await db.get(Employee, renewal.employee_id)
    return _renewal_out(renewal, employee.employee_name if employee else None)


@router.delete("/contracts/{renewal_id}", response_model=MessageOut)
async def delete_contract_renewal(renewal_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    renewal = await db.get(ContractRenewal, renewal_id)
    if renewal is None:
        raise NotFoundError("Contract renewal", renewal_id)
    await db.delete(renewal)
    await db.commit()
    return MessageOut(message="Contract renewal deleted successfully")


@router.get("/employees/{employee_id}/history")
async def employee_history(employee_id: str, db: AsyncSession = Depends(get_db)) -> dict:
    """Promotions, transfers and attrition of one employee."""
    await _get_employee(db, employee_id)
    promotions = await db.execute(
        _promotion_query()
        .where(Promotion.employee_id == employee_id)
        .order_by(Promotion.effective_date)
    )
    transfers = await db.execute(
        _transfer_query().where(Transfer.employee_id == employee_id).order_by(Transfer.transfer_date)
    )
    attrition = await db.execute(
        select(func.max(Attrition.last_date)).where(Attrition.employee_id == employee_id)
    )
    return {
        "employee_id": employee_id,
        "promotions": [_promotion_out(r).model_dump(mode="json") for r in promotions.all()],
        "transfers": [_transfer_out(r).model_dump(mode="json") for r in transfers.all()],
        "last_date": attrition.scalar_one_or_none(),
    }
