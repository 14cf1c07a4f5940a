from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from app.db.enums import AmcStatus
from app.schemas.common import StrippedModel


class EquipmentCreate(StrippedModel):
    equipment_name: str = Field(min_length=1, max_length=200)
    equipment_type: str | None = None
    location: str | None = None


class EquipmentUpdate(StrippedModel):
    equipment_name: str | None = Field(default=None, min_length=1, max_length=200)
    equipment_type: str | None = None
    location: str | None = None


class EquipmentOut(BaseModel):
    equipment_id: int
    equipment_name: str
    equipment_type: str | None = None
    location: str | None = None

    class Config:
        from_attributes = True


class ProviderCreate(StrippedModel):
    amcprovider_name: str = Field(min_length=1, max_length=200)
    contact_person_name: str | None = None
    contact_number: str | None = None
    email: str | None = None
    address: str | None = None


class ProviderUpdate(StrippedModel):
    amcprovider_name: str | None = Field(default=None, min_length=1, max_length=200)
    contact_person_name: str | None = None
    contact_number: str | None = None
    email: str | None = None
    address: str | None = None


class ProviderOut(BaseModel):
    amcprovider_id: int
    amcprovider_name: str
    contact_person_name: str | None = None
    contact_number: str | None = None
    email: str | None = None
    address: str | None = None

    class Config:
        from_attributes = True


class ContractCreate(BaseModel):
    # Optional at the schema level: the route reports every missing field at once
    equipment_id: int | None = None
    amcprovider_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    amc_value: Decimal | None = None
    remarks: str | None = None

    def missing_fields(self) -> dict[str, bool]:
        required = ("equipment_id", "amcprovider_id", "start_date", "end_date", "amc_value")
        return {name: getattr(self, name) is None for name in required}


class ContractUpdate(BaseModel):
    equipment_id: int | None = None
    amcprovider_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    amc_value: Decimal | None = None
    remarks: str | None = None


class ContractOut(BaseModel):
    amccontract_id: int
    equipment_id: int
    equipment_name: str | None = None
    amcprovider_id: int
    amcprovider_name: str | None = None
    start_date: date
    end_date: date
    amc_value: float
    remarks: str | None = None
    status: AmcStatus
