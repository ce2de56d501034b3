from fastapi import APIRouter, Body, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Any, Dict, Optional

from jaromind.auth.dependencies import CurrentUser, require_admin
from jaromind.courses.database import (
    create_course, delete_course, get_course, get_course_stats, list_courses, update_course,
)
from jaromind.courses.models import CourseCreate, CourseListFilters
from jaromind.database import get_db
from jaromind.reviews.service import list_reviews

router = APIRouter(tags=["Courses"])

COURSE_DETAIL_REVIEW_LIMIT = 10


# ==================== PUBLIC CATALOG ====================

@router.get("/courses")
async def list_courses_endpoint(
    type: Optional[str] = None,
    class_level: Optional[str] = Query(None, alias="classLevel"),
    subject: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    featured: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    order: str = "desc",
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Get all active courses with optional filters"""
    filters = CourseListFilters(
        type=type,
        class_level=class_level,
        subject=subject,
        status=status,
        category=category,
        featured=featured == "true",
    )
    courses = await list_courses(db, filters, sort_by=sort_by, order=order)
    return {
        "courses": [c.to_response() for c in courses],
        "count": len(courses),
    }


@router.get("/courses/{course_id}")
async def get_course_endpoint(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Single course with its most recent reviews"""
    course = await get_course(db, course_id)
    reviews = await list_reviews(db, course.id, limit=COURSE_DETAIL_REVIEW_LIMIT)
    return {
        "course": course.to_response(),
        "reviews": [r.to_response() for r in reviews],
    }


@router.get("/courses/{course_id}/stats")
async def get_course_stats_endpoint(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    return await get_course_stats(db, course_id)


# ==================== ADMIN ====================

@router.post("/admin/courses", status_code=201)
async def create_course_endpoint(
    payload: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    course = await create_course(db, payload.model_dump())
    return {
        "message": "Course created successfully",
        "course": course.to_response(),
    }


@router.put("/admin/courses/{course_id}")
async def update_course_endpoint(
    course_id: str,
    updates: Dict[str, Any] = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    await update_course(db, course_id, updates)
    return {"message": "Course updated successfully"}


@router.delete("/admin/courses/{course_id}")
async def delete_course_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    await delete_course(db, course_id)
    return {"message": "Course deleted successfully"}
