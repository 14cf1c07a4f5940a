from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import logger
from app.db.enums import NotificationCategory
from app.db.models.admin import (
    Contractor,
    ContractorMapping,
    Department,
    Vehicle,
    VehicleInsurance,
    VehicleServicing,
)
from app.db.models.amc import AmcContract, AmcProvider, Equipment
from app.db.models.hr import ContractRenewal, Employee
from app.db.models.notifications import Notification


@dataclass(frozen=True)
class ExpiringItem:
    category: NotificationCategory
    entity_type: str
    entity_id: str
    title: str
    message: str
    due_date: date


def days_left_text(due_date: date, today: date) -> str:
    days = (due_date - today).days
    if days <= 0:
        return "today"
    if days == 1:
        return "tomorrow"
    return f"in {days} days"


class NotificationService:
    """
    Finds records that end within a lookahead window and stores one
    notification per (category, entity, due date).

    Re-running a check for the same window never creates duplicates: inserts
    go through ON CONFLICT DO NOTHING on uq_notification_item.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _amc_contracts(self, today: date, until: date) -> list[ExpiringItem]:
        stmt = (
            select(AmcContract, Equipment.equipment_name, AmcProvider.amcprovider_name)
            .join(Equipment, Equipment.equipment_id == AmcContract.equipment_id)
            .join(AmcProvider, AmcProvider.amcprovider_id == AmcContract.amcprovider_id)
            .where(AmcContract.end_date.between(today, until))
        )
        items = []
        for contract, equipment_name, provider_name in (await self.db.execute(stmt)).all():
            items.append(
                ExpiringItem(
                    category=NotificationCategory.AMC_CONTRACT,
                    entity_type="amc_contract",
                    entity_id=str(contract.amccontract_id),
                    title=f"AMC contract for {equipment_name} is expiring",
                    message=(
                        f"AMC contract with {provider_name} for {equipment_name} ends "
                        f"{days_left_text(contract.end_date, today)} ({contract.end_date.isoformat()})."
                    ),
                    due_date=contract.end_date,
                )
            )
        return items

    async def _vehicle_insurance(self, today: date, until: date) -> list[ExpiringItem]:
        stmt = (
            select(VehicleInsurance, Vehicle.registration_no)
            .join(Vehicle, Vehicle.vehicle_id == VehicleInsurance.vehicle_id)
            .where(VehicleInsurance.insurance_end_date.between(today, until))
        )
        items = []
        for insurance, registration_no in (await self.db.execute(stmt)).all():
            items.append(
                ExpiringItem(
                    category=NotificationCategory.VEHICLE_INSURANCE,
                    entity_type="vehicle_insurance",
                    entity_id=str(insurance.insurance_id),
                    title=f"Insurance of vehicle {registration_no} is expiring",
                    message=(
                        f"Policy {insurance.policy_number} ({insurance.insurance_provider}) ends "
                        f"{days_left_text(insurance.insurance_end_date, today)}."
                    ),
                    due_date=insurance.insurance_end_date,
                )
            )
        return items

    async def _vehicle_services(self, today: date, until: date) -> list[ExpiringItem]:
        # Only the latest servicing of each vehicle carries the next due date
        latest = (
            select(
                VehicleServicing.vehicle_id,
                func.max(VehicleServicing.service_date).label("last_service"),
            )
            .group_by(VehicleServicing.vehicle_id)
            .subquery()
        )
        stmt = (
            select(VehicleServicing, Vehicle.registration_no)
            .join(
                latest,
                (latest.c.vehicle_id == VehicleServicing.vehicle_id)
                & (latest.c.last_service == VehicleServicing.service_date),
            )
            .join(Vehicle, Vehicle.vehicle_id == VehicleServicing.vehicle_id)
            .where(VehicleServicing.next_service_date.between(today, until))
        )
        items = []
        for servicing, registration_no in (await self.db.execute(stmt)).all():
            items.append(
                ExpiringItem(
                    category=NotificationCategory.VEHICLE_SERVICE,
                    entity_type="vehicle",
                    entity_id=str(servicing.vehicle_id),
                    title=f"Vehicle {registration_no} is due for service",
                    message=(
                        f"Next service of {registration_no} is due "
                        f"{days_left_text(servicing.next_service_date, today)}."
                    ),
                    due_date=servicing.next_service_date,
                )
            )
        return items

    async def _contractor_mappings(self, today: date, until: date) -> list[ExpiringItem]:
        stmt = (
            select(ContractorMapping, Contractor.contractor_company_name, Department.department_name)
            .join(Contractor, Contractor.contractor_id == ContractorMapping.contractor_id)
            .join(Department, Department.department_id == ContractorMapping.department_id)
            .where(ContractorMapping.end_date.between(today, until))
        )
        items = []
        for mapping, company, department in (await self.db.execute(stmt)).all():
            items.append(
                ExpiringItem(
                    category=NotificationCategory.CONTRACTOR_MAPPING,
                    entity_type="contractor_mapping",
                    entity_id=str(mapping.contract_id),
                    title=f"Contract of {company} with {department} is ending",
                    message=(
                        f"{company} mapping to {department} ends "
                        f"{days_left_text(mapping.end_date, today)}."
                    ),
                    due_date=mapping.end_date,
                )
            )
        return items

    async def _contract_renewals(self, today: date, until: date) -> list[ExpiringItem]:
        stmt = (
            select(ContractRenewal, Employee.employee_name)
            .join(Employee, Employee.employee_id == ContractRenewal.employee_id)
            .where(ContractRenewal.end_date.between(today, until))
        )
        items = []
        for renewal, employee_name in (await self.db.execute(stmt)).all():
            items.append(
                ExpiringItem(
                    category=NotificationCategory.EMPLOYEE_CONTRACT,
                    entity_type="contract_renewal",
                    entity_id=str(renewal.id),
                    title=f"Contract of {employee_name} is ending",
                    message=(
                        f"{renewal.contract_type} contract of {employee_name} ends "
                        f"{days_left_text(renewal.end_date, today)}."
                    ),
                    due_date=renewal.end_date,
                )
            )
        return items

    async def collect(self, today: date, lookahead_days: int) -> list[ExpiringItem]:
        until = today + timedelta(days=lookahead_days)
        items: list[ExpiringItem] = []
        items += await self._amc_contracts(today, until)
        items += await self._vehicle_insurance(today, until)
        items += await self._vehicle_services(today, until)
        items += await self._contractor_mappings(today, until)
        items += await self._contract_renewals(today, until)
        return items

    async def store(self, items: Iterable[ExpiringItem]) -> int:
        created = 0
        for item in items:
            stmt = (
                insert(Notification)
                .values(
                    category=item.category,
                    entity_type=item.entity_type,
                    entity_id=item.entity_id,
                    title=item.title,
                    message=item.message,
                    due_date=item.due_date,
                    is_read=False,
                )
                .on_conflict_do_nothing(constraint="uq_notification_item")
                .returning(Notification.id)
            )
            if (await self.db.execute(stmt)).scalar_one_or_none() is not None:
                created += 1
        return created

    async def check_expiring_items(self, today: date | None = None, lookahead_days: int = 30) -> int:
        """Create notifications for items ending within the window. Returns the count created."""
        today = today or date.today()
        items = await self.collect(today, lookahead_days)
        created = await self.store(items)
        await self.db.commit()
        logger.info(
            f"Notification check for {today.isoformat()} (+{lookahead_days}d): "
            f"{len(items)} expiring items, {created} new notifications"
        )
        return created
