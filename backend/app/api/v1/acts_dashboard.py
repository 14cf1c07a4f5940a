from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.models.acts import ActsCourse
from app.schemas.acts import ActsSummaryOut, CourseRevenueOut

router = APIRouter(dependencies=[Depends(get_current_user)])


def placement_rate(enrolled: int, placed: int) -> float:
    """Placed students as a percentage of enrolled, rounded to 2 places."""
    if not enrolled:
        return 0.0
    return round(placed * 100 / enrolled, 2)


@router.get("/summary", response_model=ActsSummaryOut)
async def summary(db: AsyncSession = Depends(get_db)) -> ActsSummaryOut:
    result = await db.execute(
        select(
            func.count(distinct(ActsCourse.course_name)).label("courses"),
            func.coalesce(func.sum(ActsCourse.students_enrolled), 0).label("enrolled"),
            func.coalesce(func.sum(ActsCourse.students_placed), 0).label("placed"),
            func.coalesce(func.sum(ActsCourse.students_enrolled * ActsCourse.course_fee), 0).label("revenue"),
        )
    )
    row = result.one()
    return ActsSummaryOut(
        total_courses=int(row.courses),
        total_students_enrolled=int(row.enrolled),
        total_students_placed=int(row.placed),
        total_revenue=float(row.revenue),
        overall_placement_rate=placement_rate(int(row.enrolled), int(row.placed)),
    )


@router.get("/revenue-by-course", response_model=list[CourseRevenueOut])
async def revenue_by_course(db: AsyncSession = Depends(get_db)) -> list[CourseRevenueOut]:
    revenue = (ActsCourse.students_enrolled * ActsCourse.course_fee).label("revenue")
    result = await db.execute(
        select(ActsCourse.course_name, ActsCourse.year, revenue).order_by(
            ActsCourse.year.desc(), revenue.desc()
        )
    )
    return [
        CourseRevenueOut(course_name=f"{r.course_name} ({r.year})", total_revenue=float(r.revenue))
        for r in result
    ]
