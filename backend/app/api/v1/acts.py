from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.errors import ConflictError, NotFoundError, integrity_kind
from app.db.models.acts import ActsCourse
from app.schemas.acts import CourseCreate, CourseOut, CourseUpdate
from app.schemas.common import MessageOut

router = APIRouter(dependencies=[Depends(get_current_user)])

DUPLICATE_COURSE = "A course with this combination of course name and batch ID already exists."


async def _get_course(db: AsyncSession, course_id: int) -> ActsCourse:
    course = await db.get(ActsCourse, course_id)
    if course is None:
        raise NotFoundError("Course", course_id)
    return course


async def _commit_course(db: AsyncSession, course: ActsCourse) -> None:
    key = {"course_name": course.course_name, "batch_id": course.batch_id}
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if integrity_kind(e) == "unique":
            raise ConflictError(DUPLICATE_COURSE, details=key)
        raise
    await db.refresh(course)


@router.get("/courses", response_model=list[CourseOut])
async def list_courses(db: AsyncSession = Depends(get_db)) -> list[CourseOut]:
    result = await db.execute(select(ActsCourse).order_by(ActsCourse.created_at.desc(), ActsCourse.id.desc()))
    return [CourseOut.model_validate(c) for c in result.scalars().all()]


@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(payload: CourseCreate, db: AsyncSession = Depends(get_db)) -> CourseOut:
    course = ActsCourse(**payload.model_dump())
    db.add(course)
    await _commit_course(db, course)
    return CourseOut.model_validate(course)


@router.put("/courses/{course_id}", response_model=CourseOut)
async def update_course(course_id: int, payload: CourseUpdate, db: AsyncSession = Depends(get_db)) -> CourseOut:
    course = await _get_course(db, course_id)
    for key, value in payload.model_dump().items():
        setattr(course, key, value)
    await _commit_course(db, course)
    return CourseOut.model_validate(course)


@router.delete("/courses/{course_id}", response_model=MessageOut)
async def delete_course(course_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    course = await _get_course(db, course_id)
    await db.delete(course)
    await db.commit()
    return MessageOut(message="Course deleted successfully")
