from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.errors import NotFoundError, ValidationError, integrity_kind
from app.core.logging import logger
from app.db.models.amc import AmcContract, AmcProvider, Equipment
from app.schemas.amc import (
    ContractCreate,
    ContractOut,
    ContractUpdate,
    EquipmentCreate,
    EquipmentOut,
    EquipmentUpdate,
    ProviderCreate,
    ProviderOut,
    ProviderUpdate,
)
from app.schemas.common import DeletedOut, MessageOut
from app.services.status import amc_status

router = APIRouter(dependencies=[Depends(get_current_user)])


# Equipment


async def _get_equipment(db: AsyncSession, equipment_id: int) -> Equipment:
    equipment = await db.get(Equipment, equipment_id)
    if equipment is None:
        raise NotFoundError("Equipment", equipment_id)
    return equipment


@router.get("/equipments", response_model=list[EquipmentOut])
async def list_equipments(db: AsyncSession = Depends(get_db)) -> list[EquipmentOut]:
    result = await db.execute(select(Equipment).order_by(Equipment.equipment_name))
    return [EquipmentOut.model_validate(e) for e in result.scalars().all()]


@router.post("/equipments", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    payload: EquipmentCreate, db: AsyncSession = Depends(get_db)
) -> EquipmentOut:
    equipment = Equipment(**payload.model_dump())
    db.add(equipment)
    await db.commit()
    await db.refresh(equipment)
    return EquipmentOut.model_validate(equipment)


@router.put("/equipments/{equipment_id}", response_model=EquipmentOut)
async def update_equipment(
    equipment_id: int, payload: EquipmentUpdate, db: AsyncSession = Depends(get_db)
) -> EquipmentOut:
    equipment = await _get_equipment(db, equipment_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if key == "equipment_name" and value is None:
            continue
        setattr(equipment, key, value)
    await db.commit()
    await db.refresh(equipment)
    return EquipmentOut.model_validate(equipment)


@router.delete("/equipments/{equipment_id}", response_model=DeletedOut)
async def delete_equipment(equipment_id: int, db: AsyncSession = Depends(get_db)) -> DeletedOut:
    equipment = await _get_equipment(db, equipment_id)
    try:
        await db.delete(equipment)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if integrity_kind(e) == "foreign_key":
            raise ValidationError(
                "Cannot delete equipment that is referenced by an AMC contract",
                details={"equipment_id": equipment_id},
            )
        raise
    return DeletedOut(message="Equipment deleted successfully", deletedId=equipment_id)


# Providers


async def _get_provider(db: AsyncSession, provider_id: int) -> AmcProvider:
    provider = await db.get(AmcProvider, provider_id)
    if provider is None:
        raise NotFoundError("AMC provider", provider_id)
    return provider


@router.get("/providers", response_model=list[ProviderOut])
async def list_providers(db: AsyncSession = Depends(get_db)) -> list[ProviderOut]:
    result = await db.execute(select(AmcProvider).order_by(AmcProvider.amcprovider_name))
    return [ProviderOut.model_validate(p) for p in result.scalars().all()]


@router.post("/providers", response_model=ProviderOut, status_code=status.HTTP_201_CREATED)
async def create_provider(payload: ProviderCreate, db: AsyncSession = Depends(get_db)) -> ProviderOut:
    provider = AmcProvider(**payload.model_dump())
    db.add(provider)
    await db.commit()
    await db.refresh(provider)
    return ProviderOut.model_validate(provider)


@router.put("/providers/{provider_id}", response_model=ProviderOut)
async def update_provider(
    provider_id: int, payload: ProviderUpdate, db: AsyncSession = Depends(get_db)
) -> ProviderOut:
    provider = await _get_provider(db, provider_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if key == "amcprovider_name" and value is None:
            continue
        setattr(provider, key, value)
    await db.commit()
    await db.refresh(provider)
    return ProviderOut.model_validate(provider)


@router.delete("/providers/{provider_id}", response_model=MessageOut)
async def delete_provider(provider_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    provider = await _get_provider(db, provider_id)
    contracts = await db.execute(
        select(func.count()).select_from(AmcContract).where(AmcContract.amcprovider_id == provider_id)
    )
    if contracts.scalar_one():
        raise ValidationError("Cannot delete provider with existing AMC contracts")
    await db.delete(provider)
    await db.commit()
    return MessageOut(message="Provider deleted successfully")


# Contracts


def _contract_query():
    return (
        select(AmcContract, Equipment.equipment_name, AmcProvider.amcprovider_name)
        .join(Equipment, Equipment.equipment_id == AmcContract.equipment_id)
        .join(AmcProvider, AmcProvider.amcprovider_id == AmcContract.amcprovider_id)
    )


def _contract_out(contract: AmcContract, equipment_name: str, provider_name: str) -> ContractOut:
    return ContractOut(
        amccontract_id=contract.amccontract_id,
        equipment_id=contract.equipment_id,
        equipment_name=equipment_name,
        amcprovider_id=contract.amcprovider_id,
        amcprovider_name=provider_name,
        start_date=contract.start_date,
        end_date=contract.end_date,
        amc_value=float(contract.amc_value),
        remarks=contract.remarks,
        status=contract.status,
    )


async def _get_contract_out(db: AsyncSession, contract_id: int) -> ContractOut:
    row = (
        await db.execute(_contract_query().where(AmcContract.amccontract_id == contract_id))
    ).first()
    if row is None:
        raise NotFoundError("AMC contract", contract_id)
    return _contract_out(*row)


def _validate_contract_values(start: date, end: date, value) -> None:
    if end < start:
        raise ValidationError("End date must be on or after start date")
    if value <= 0:
        raise ValidationError("AMC value must be greater than zero")


async def _ensure_refs(db: AsyncSession, equipment_id: int, provider_id: int) -> None:
    if await db.get(Equipment, equipment_id) is None:
        raise ValidationError("Invalid equipment ID", details={"equipment_id": equipment_id})
    if await db.get(AmcProvider, provider_id) is None:
        raise ValidationError("Invalid provider ID", details={"amcprovider_id": provider_id})


@router.get("/contracts", response_model=list[ContractOut])
async def list_contracts(db: AsyncSession = Depends(get_db)) -> list[ContractOut]:
    result = await db.execute(_contract_query().order_by(AmcContract.end_date.desc()))
    return [_contract_out(*row) for row in result.all()]


@router.post("/contracts", response_model=ContractOut, status_code=status.HTTP_201_CREATED)
async def create_contract(payload: ContractCreate, db: AsyncSession = Depends(get_db)) -> ContractOut:
    missing = payload.missing_fields()
    if any(missing.values()):
        raise ValidationError("Missing required fields", details=missing)
    _validate_contract_values(payload.start_date, payload.end_date, payload.amc_value)
    await _ensure_refs(db, payload.equipment_id, payload.amcprovider_id)

    today = date.today()
    active = await db.execute(
        select(func.count())
        .select_from(AmcContract)
        .where(AmcContract.equipment_id == payload.equipment_id, AmcContract.end_date >= today)
    )
    if active.scalar_one():
        raise ValidationError(
            "Cannot add new mapping because this equipment already has an active contract"
        )

    contract = AmcContract(**payload.model_dump(), status=amc_status(payload.end_date, today))
    db.add(contract)
    await db.commit()
    logger.info(f"AMC contract {contract.amccontract_id} created for equipment {payload.equipment_id}")
    return await _get_contract_out(db, contract.amccontract_id)


@router.put("/contracts/{contract_id}", response_model=ContractOut)
async def update_contract(
    contract_id: int, payload: ContractUpdate, db: AsyncSession = Depends(get_db)
) -> ContractOut:
    contract = await db.get(AmcContract, contract_id)
    if contract is None:
        raise NotFoundError("AMC contract", contract_id)

    changes = payload.model_dump(exclude_unset=True)
    for key in ("equipment_id", "amcprovider_id", "start_date", "end_date", "amc_value"):
        if changes.get(key, 0) is None:
            changes.pop(key)
    start = changes.get("start_date", contract.start_date)
    end = changes.get("end_date", contract.end_date)
    _validate_contract_values(start, end, changes.get("amc_value", contract.amc_value))
    await _ensure_refs(
        db,
        changes.get("equipment_id", contract.equipment_id),
        changes.get("amcprovider_id", contract.amcprovider_id),
    )

    for key, value in changes.items():
        setattr(contract, key, value)
    contract.status = amc_status(end)
    await db.commit()
    return await _get_contract_out(db, contract_id)


@router.delete("/contracts/{contract_id}", response_model=DeletedOut)
async def delete_contract(contract_id: int, db: AsyncSession = Depends(get_db)) -> DeletedOut:
    contract = await db.get(AmcContract, contract_id)
    if contract is None:
        raise NotFoundError("AMC contract", contract_id)
    await db.delete(contract)
    await db.commit()
    return DeletedOut(message="Contract deleted successfully", deletedId=contract_id)
