"""
Fill an empty database with starter data:
- one login per role (password from --password)
- departments, designations, technical groups, default budget fields
- a handful of sample rows per department so the dashboards are not blank

Safe to re-run: every row is looked up by its natural key first.

    python -m app.scripts.seed [--password PASSWORD] [--no-samples]
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import logger
from app.core.security import hash_password
from app.db.enums import BusinessEntityType, EmployeeStatus, Gender, TravelType
from app.db.models.acts import ActsCourse, ManpowerCount
from app.db.models.admin import Department, Vehicle
from app.db.models.amc import AmcProvider, Equipment
from app.db.models.auth import User
from app.db.models.business import BusinessEntity, Client
from app.db.models.edoffice import Travel
from app.db.models.finance import FinanceProject
from app.db.models.hr import Designation, Employee, TechnicalGroup
from app.db.session import async_session_factory, engine
from app.services.lookups import (
    DEFAULT_TECHNICAL_GROUPS,
    ensure_budget_fields,
    ensure_designations,
    ensure_technical_groups,
)

ROLES = ["admin", "ed", "edofc", "mmg", "finance", "hr", "business", "acts"]

DEPARTMENTS = ["Administration", "Finance", "Human Resources", "Purchase", "Technical"]


async def _first(db: AsyncSession, stmt):
    return (await db.execute(stmt.limit(1))).scalar_one_or_none()


async def seed_users(db: AsyncSession, password: str) -> int:
    # One `tg` login per technical group: the username is the group name
    usernames = [(role, role) for role in ROLES]
    usernames += [(name, "tg") for name, _ in DEFAULT_TECHNICAL_GROUPS[:1]]
    created = 0
    for username, role in usernames:
        if await _first(db, select(User).where(User.username == username)) is not None:
            continue
        db.add(User(username=username, password_hash=hash_password(password), role=role))
        created += 1
    await db.commit()
    return created


async def seed_departments(db: AsyncSession) -> int:
    existing = set((await db.execute(select(Department.department_name))).scalars().all())
    missing = [name for name in DEPARTMENTS if name not in existing]
    db.add_all(Department(department_name=name) for name in missing)
    await db.commit()
    return len(missing)


async def seed_samples(db: AsyncSession) -> None:
    today = date.today()
    group = await _first(db, select(TechnicalGroup).order_by(TechnicalGroup.group_id))
    designation = await _first(db, select(Designation).order_by(Designation.designation_id))

    if await _first(db, select(Employee).where(Employee.employee_id == "EMP001")) is None:
        db.add(
            Employee(
                employee_id="EMP001",
                employee_name="Sample Employee",
                join_date=today - timedelta(days=3 * 365),
                designation_id=designation.designation_id,
                initial_designation_id=designation.designation_id,
                technical_group_id=group.group_id,
                status=EmployeeStatus.ACTIVE,
                gender=Gender.FEMALE,
                level=designation.level,
                centre="Main",
            )
        )

    if await _first(db, select(FinanceProject).where(FinanceProject.project_name == "Sample Project")) is None:
        db.add(
            FinanceProject(
                project_name="Sample Project",
                start_date=date(today.year - 1, 4, 1),
                end_date=date(today.year + 1, 3, 31),
                total_value=Decimal("2500000"),
                funding_agency="MeitY",
                duration_years=2,
                group_id=group.group_id,
                centre="Main",
            )
        )

    if await _first(db, select(Equipment).where(Equipment.equipment_name == "Central UPS")) is None:
        db.add(Equipment(equipment_name="Central UPS", equipment_type="Power", location="Block A"))
    if await _first(db, select(AmcProvider).where(AmcProvider.amcprovider_name == "Sample Services")) is None:
        db.add(AmcProvider(amcprovider_name="Sample Services", contact_person_name="Service Desk"))
    if await _first(db, select(Vehicle).where(Vehicle.registration_no == "KA01AB1234")) is None:
        db.add(Vehicle(company_name="Tata", model="Nexon", registration_no="KA01AB1234"))

    client = await _first(db, select(Client).where(Client.client_name == "Sample Client"))
    if client is None:
        client = Client(
            client_name="Sample Client",
            contact_person="Procurement Cell",
            contact_number="0800000000",
            email="procurement@example.org",
            address="Bengaluru",
        )
        db.add(client)
        await db.flush()
        db.add(
            BusinessEntity(
                name="Sample Service",
                entity_type=BusinessEntityType.SERVICE,
                service_type="Consultancy",
                client_id=client.id,
                start_date=today,
                end_date=today + timedelta(days=365),
                order_value=Decimal("1200000"),
                payment_duration="Quarterly",
            )
        )

    stmt = select(ActsCourse).where(ActsCourse.course_name == "PG-DAC", ActsCourse.batch_id == "B1")
    if await _first(db, stmt) is None:
        db.add(
            ActsCourse(
                course_name="PG-DAC",
                batch_name="Batch 1",
                batch_id="B1",
                year=today.year,
                students_enrolled=40,
                students_placed=32,
                course_fee=Decimal("90000"),
            )
        )
    if await _first(db, select(ManpowerCount)) is None:
        db.add(ManpowerCount(on_rolls=120, cocp=30, regular=60, cc=10, gbc=5, ka=5, spe=4, pe=4, pa=2))

    if await _first(db, select(Travel)) is None:
        db.add(
            Travel(
                travel_type=TravelType.DOMESTIC,
                location="New Delhi",
                onward_date=today + timedelta(days=7),
                return_date=today + timedelta(days=9),
                purpose="Review meeting",
            )
        )
    await db.commit()


async def seed_db(password: str, samples: bool = True) -> None:
    async with async_session_factory() as db:
        users = await seed_users(db, password)
        departments = await seed_departments(db)
        await ensure_designations(db)
        await ensure_technical_groups(db)
        fields = await ensure_budget_fields(db)
        if samples:
            await seed_samples(db)
    logger.info(f"Seed done: {users} users, {departments} departments, {fields} budget fields")


async def _main(args: argparse.Namespace) -> None:
    try:
        await seed_db(args.password, samples=not args.no_samples)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the dashboard database")
    parser.add_argument("--password", default="changeme", help="password of the seeded logins")
    parser.add_argument("--no-samples", action="store_true", help="only users and lookup tables")
    asyncio.run(_main(parser.parse_args()))


if __name__ == "__main__":
    main()
