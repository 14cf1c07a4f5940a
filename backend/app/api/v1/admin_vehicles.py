from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.errors import NotFoundError, ValidationError, integrity_kind
from app.db.models.admin import Vehicle, VehicleInsurance, VehicleServicing
from app.schemas.admin import (
    InsuranceCreate,
    InsuranceOut,
    InsuranceUpdate,
    ServicingCreate,
    ServicingOut,
    ServicingUpdate,
    VehicleCreate,
    VehicleOut,
    VehicleUpdate,
)
from app.schemas.common import MessageOut
from app.services.status import periods_overlap

router = APIRouter(dependencies=[Depends(get_current_user)])


async def _get_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError("Vehicle", vehicle_id)
    return vehicle


async def _commit_vehicle(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if integrity_kind(e) == "unique":
            raise ValidationError("Registration number already exists")
        raise


@router.get("/vehicles", response_model=list[VehicleOut])
async def list_vehicles(db: AsyncSession = Depends(get_db)) -> list[VehicleOut]:
    result = await db.execute(select(Vehicle).order_by(Vehicle.created_at.desc()))
    return [VehicleOut.model_validate(v) for v in result.scalars().all()]


@router.post("/vehicles", response_model=VehicleOut, status_code=status.HTTP_201_CREATED)
async def create_vehicle(payload: VehicleCreate, db: AsyncSession = Depends(get_db)) -> VehicleOut:
    vehicle = Vehicle(**payload.model_dump())
    db.add(vehicle)
    await _commit_vehicle(db)
    await db.refresh(vehicle)
    return VehicleOut.model_validate(vehicle)


# Servicing and insurance: registered before /vehicles/{vehicle_id}


async def _check_servicing_overlap(
    db: AsyncSession, vehicle_id: int, start: date, end: date, exclude_id: int | None = None
) -> None:
    stmt = select(VehicleServicing).where(VehicleServicing.vehicle_id == vehicle_id)
    if exclude_id is not None:
        stmt = stmt.where(VehicleServicing.service_id != exclude_id)
    for other in (await db.execute(stmt)).scalars():
        if periods_overlap(start, end, other.service_date, other.next_service_date):
            raise ValidationError(
                "Service period overlaps with an existing service record",
                details={"service_id": other.service_id},
            )


async def _check_insurance_overlap(
    db: AsyncSession, vehicle_id: int, start: date, end: date, exclude_id: int | None = None
) -> None:
    stmt = select(VehicleInsurance).where(VehicleInsurance.vehicle_id == vehicle_id)
    if exclude_id is not None:
        stmt = stmt.where(VehicleInsurance.insurance_id != exclude_id)
    for other in (await db.execute(stmt)).scalars():
        if periods_overlap(start, end, other.insurance_start_date, other.insurance_end_date):
            raise ValidationError(
                "Insurance period overlaps with an existing policy",
                details={"insurance_id": other.insurance_id},
            )


@router.post(
    "/vehicles/servicing", response_model=ServicingOut, status_code=status.HTTP_201_CREATED
)
async def create_servicing(
    payload: ServicingCreate, db: AsyncSession = Depends(get_db)
) -> ServicingOut:
    await _get_vehicle(db, payload.vehicle_id)
    await _check_servicing_overlap(
        db, payload.vehicle_id, payload.service_date, payload.next_service_date
    )
    servicing = VehicleServicing(**payload.model_dump())
    db.add(servicing)
    await db.commit()
    await db.refresh(servicing)
    return ServicingOut.model_validate(servicing)


@router.put("/vehicles/servicing/{service_id}", response_model=ServicingOut)
async def update_servicing(
    service_id: int, payload: ServicingUpdate, db: AsyncSession = Depends(get_db)
) -> ServicingOut:
    servicing = await db.get(VehicleServicing, service_id)
    if servicing is None:
        raise NotFoundError("Service record", service_id)

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    start = changes.get("service_date", servicing.service_date)
    end = changes.get("next_service_date", servicing.next_service_date)
    if end < start:
        raise ValidationError("Next service date cannot be before service date")
    await _check_servicing_overlap(db, servicing.vehicle_id, start, end, exclude_id=service_id)

    for key, value in changes.items():
        setattr(servicing, key, value)
    await db.commit()
    await db.refresh(servicing)
    return ServicingOut.model_validate(servicing)


@router.delete("/vehicles/servicing/{service_id}", response_model=MessageOut)
async def delete_servicing(service_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    servicing = await db.get(VehicleServicing, service_id)
    if servicing is None:
        raise NotFoundError("Service record", service_id)
    await db.delete(servicing)
    await db.commit()
    return MessageOut(message="Service record deleted successfully")


@router.post(
    "/vehicles/insurance", response_model=InsuranceOut, status_code=status.HTTP_201_CREATED
)
async def create_insurance(
    payload: InsuranceCreate, db: AsyncSession = Depends(get_db)
) -> InsuranceOut:
    await _get_vehicle(db, payload.vehicle_id)
    await _check_insurance_overlap(
        db, payload.vehicle_id, payload.insurance_start_date, payload.insurance_end_date
    )
    insurance = VehicleInsurance(**payload.model_dump())
    db.add(insurance)
    await db.commit()
    await db.refresh(insurance)
    return InsuranceOut.model_validate(insurance)


@router.put("/vehicles/insurance/{insurance_id}", response_model=InsuranceOut)
async def update_insurance(
    insurance_id: int, payload: InsuranceUpdate, db: AsyncSession = Depends(get_db)
) -> InsuranceOut:
    insurance = await db.get(VehicleInsurance, insurance_id)
    if insurance is None:
        raise NotFoundError("Insurance record", insurance_id)

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    start = changes.get("insurance_start_date", insurance.insurance_start_date)
    end = changes.get("insurance_end_date", insurance.insurance_end_date)
    if end < start:
        raise ValidationError("Insurance end date cannot be before start date")
    await _check_insurance_overlap(db, insurance.vehicle_id, start, end, exclude_id=insurance_id)

    for key, value in changes.items():
        setattr(insurance, key, value)
    await db.commit()
    await db.refresh(insurance)
    return InsuranceOut.model_validate(insurance)


@router.delete("/vehicles/insurance/{insurance_id}", response_model=MessageOut)
async def delete_insurance(insurance_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    insurance = await db.get(VehicleInsurance, insurance_id)
    if insurance is None:
        raise NotFoundError("Insurance record", insurance_id)
    await db.delete(insurance)
    await db.commit()
    return MessageOut(message="Insurance record deleted successfully")


@router.get("/vehicles/{vehicle_id}/servicing", response_model=list[ServicingOut])
async def list_servicing(vehicle_id: int, db: AsyncSession = Depends(get_db)) -> list[ServicingOut]:
    await _get_vehicle(db, vehicle_id)
    result = await db.execute(
        select(VehicleServicing)
        .where(VehicleServicing.vehicle_id == vehicle_id)
        .order_by(VehicleServicing.service_date.desc())
    )
    return [ServicingOut.model_validate(s) for s in result.scalars().all()]


@router.get("/vehicles/{vehicle_id}/insurance", response_model=list[InsuranceOut])
async def list_insurance(vehicle_id: int, db: AsyncSession = Depends(get_db)) -> list[InsuranceOut]:
    await _get_vehicle(db, vehicle_id)
    result = await db.execute(
        select(VehicleInsurance)
        .where(VehicleInsurance.vehicle_id == vehicle_id)
        .order_by(VehicleInsurance.insurance_start_date.desc())
    )
    return [InsuranceOut.model_validate(i) for i in result.scalars().all()]


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
async def get_vehicle(vehicle_id: int, db: AsyncSession = Depends(get_db)) -> VehicleOut:
    return VehicleOut.model_validate(await _get_vehicle(db, vehicle_id))


@router.put("/vehicles/{vehicle_id}", response_model=VehicleOut)
async def update_vehicle(
    vehicle_id: int, payload: VehicleUpdate, db: AsyncSession = Depends(get_db)
) -> VehicleOut:
    vehicle = await _get_vehicle(db, vehicle_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(vehicle, key, value)
    await _commit_vehicle(db)
    await db.refresh(vehicle)
    return VehicleOut.model_validate(vehicle)


@router.delete("/vehicles/{vehicle_id}", response_model=MessageOut)
async def delete_vehicle(vehicle_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    vehicle = await _get_vehicle(db, vehicle_id)

    servicing = await db.execute(
        select(func.count()).select_from(VehicleServicing).where(VehicleServicing.vehicle_id == vehicle_id)
    )
    insurance = await db.execute(
        select(func.count()).select_from(VehicleInsurance).where(VehicleInsurance.vehicle_id == vehicle_id)
    )
    if servicing.scalar_one() or insurance.scalar_one():
        raise ValidationError("Cannot delete vehicle with insurance or servicing records")

    await db.delete(vehicle)
    await db.commit()
    return MessageOut(message="Vehicle deleted successfully")
