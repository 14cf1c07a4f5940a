from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.errors import NotFoundError, ValidationError
from app.db.models.admin import Contractor, ContractorMapping, Department
from app.schemas.admin import (
    ContractorCreate,
    ContractorOut,
    ContractorUpdate,
    MappingCreate,
    MappingOut,
    MappingUpdate,
)
from app.schemas.common import MessageOut
from app.services.status import MAPPING_STATUS_ORDER, mapping_status

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/contractors", response_model=list[ContractorOut])
async def list_contractors(db: AsyncSession = Depends(get_db)) -> list[ContractorOut]:
    result = await db.execute(select(Contractor).order_by(Contractor.contractor_company_name))
    return [ContractorOut.model_validate(c) for c in result.scalars().all()]


@router.post("/contractors", response_model=ContractorOut, status_code=status.HTTP_201_CREATED)
async def create_contractor(
    payload: ContractorCreate, db: AsyncSession = Depends(get_db)
) -> ContractorOut:
    contractor = Contractor(**payload.model_dump())
    db.add(contractor)
    await db.commit()
    await db.refresh(contractor)
    return ContractorOut.model_validate(contractor)


# Mappings: registered before /contractors/{contractor_id}


def _mapping_out(mapping: ContractorMapping, company: str | None, department: str | None,
                 today: date) -> MappingOut:
    return MappingOut(
        contract_id=mapping.contract_id,
        contractor_id=mapping.contractor_id,
        contractor_company_name=company,
        department_id=mapping.department_id,
        department_name=department,
        start_date=mapping.start_date,
        end_date=mapping.end_date,
        status=mapping_status(mapping.start_date, mapping.end_date, today),
    )


def _mapping_query():
    return (
        select(ContractorMapping, Contractor.contractor_company_name, Department.department_name)
        .join(Contractor, Contractor.contractor_id == ContractorMapping.contractor_id)
        .join(Department, Department.department_id == ContractorMapping.department_id)
    )


async def _get_mapping_out(db: AsyncSession, contract_id: int) -> MappingOut:
    row = (
        await db.execute(_mapping_query().where(ContractorMapping.contract_id == contract_id))
    ).first()
    if row is None:
        raise NotFoundError("Contractor mapping", contract_id)
    return _mapping_out(*row, today=date.today())


async def _ensure_refs(db: AsyncSession, contractor_id: int, department_id: int) -> None:
    if await db.get(Contractor, contractor_id) is None:
        raise ValidationError("Contractor not found", details={"contractor_id": contractor_id})
    if await db.get(Department, department_id) is None:
        raise ValidationError("Department not found", details={"department_id": department_id})


@router.get("/contractors/mappings", response_model=list[MappingOut])
async def list_mappings(db: AsyncSession = Depends(get_db)) -> list[MappingOut]:
    today = date.today()
    result = await db.execute(_mapping_query())
    mappings = [_mapping_out(*row, today=today) for row in result.all()]
    # ACTIVE, UPCOMING, INACTIVE; newest start first inside each group
    mappings.sort(key=lambda m: m.start_date, reverse=True)
    mappings.sort(key=lambda m: MAPPING_STATUS_ORDER[m.status])
    return mappings


@router.post(
    "/contractors/mappings", response_model=MappingOut, status_code=status.HTTP_201_CREATED
)
async def create_mapping(payload: MappingCreate, db: AsyncSession = Depends(get_db)) -> MappingOut:
    await _ensure_refs(db, payload.contractor_id, payload.department_id)
    mapping = ContractorMapping(**payload.model_dump())
    db.add(mapping)
    await db.commit()
    return await _get_mapping_out(db, mapping.contract_id)


@router.put("/contractors/mappings/{contract_id}", response_model=MappingOut)
async def update_mapping(
    contract_id: int, payload: MappingUpdate, db: AsyncSession = Depends(get_db)
) -> MappingOut:
    mapping = await db.get(ContractorMapping, contract_id)
    if mapping is None:
        raise NotFoundError("Contractor mapping", contract_id)

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    await _ensure_refs(
        db,
        changes.get("contractor_id", mapping.contractor_id),
        changes.get("department_id", mapping.department_id),
    )
    start = changes.get("start_date", mapping.start_date)
    end = changes.get("end_date", mapping.end_date)
    if end < start:
        raise ValidationError("End date must be on or after start date")

    for key, value in changes.items():
        setattr(mapping, key, value)
    await db.commit()
    return await _get_mapping_out(db, contract_id)


@router.delete("/contractors/mappings/{contract_id}", response_model=MessageOut)
async def delete_mapping(contract_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    mapping = await db.get(ContractorMapping, contract_id)
    if mapping is None:
        raise NotFoundError("Contractor mapping", contract_id)
    await db.delete(mapping)
    await db.commit()
    return MessageOut(message="Mapping deleted successfully")


@router.get("/contractors/{contractor_id}", response_model=ContractorOut)
async def get_contractor(contractor_id: int, db: AsyncSession = Depends(get_db)) -> ContractorOut:
    contractor = await db.get(Contractor, contractor_id)
    if contractor is None:
        raise NotFoundError("Contractor", contractor_id)
    return ContractorOut.model_validate(contractor)


@router.put("/contractors/{contractor_id}", response_model=ContractorOut)
async def update_contractor(
    contractor_id: int, payload: ContractorUpdate, db: AsyncSession = Depends(get_db)
) -> ContractorOut:
    contractor = await db.get(Contractor, contractor_id)
    if contractor is None:
        raise NotFoundError("Contractor", contractor_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(contractor, key, value)
    await db.commit()
    await db.refresh(contractor)
    return ContractorOut.model_validate(contractor)


@router.delete("/contractors/{contractor_id}", response_model=MessageOut)
async def delete_contractor(contractor_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    contractor = await db.get(Contractor, contractor_id)
    if contractor is None:
        raise NotFoundError("Contractor", contractor_id)

    mappings = await db.execute(
        select(func.count())
        .select_from(ContractorMapping)
        .where(ContractorMapping.contractor_id == contractor_id)
    )
    if mappings.scalar_one():
        raise ValidationError("Cannot delete contractor with existing department mappings")

    await db.delete(contractor)
    await db.commit()
    return MessageOut(message="Contractor deleted successfully")
