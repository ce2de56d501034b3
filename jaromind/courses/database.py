from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional
import logging
import uuid

from jaromind.courses.identifiers import resolve_course, update_by_reference, course_reference_forms
from jaromind.courses.models import Course, CourseListFilters
from jaromind.errors import NotFound

logger = logging.getLogger(__name__)

# Fields owned by the enrollment/review machinery, never set through course updates
DERIVED_FIELDS = ("enrollmentCount", "rating", "reviewCount")

SORTABLE_FIELDS = {"createdAt", "updatedAt", "title", "price", "rating", "enrollmentCount", "reviewCount"}

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, course_data: dict) -> Course:
    """
    Create new course
    Assigns a UUID and starts every counter at zero unless supplied
    """
    course = {k: v for k, v in course_data.items() if k not in ("id", "_id")}
    now = datetime.utcnow()

    course.update({
        "id": str(uuid.uuid4()),
        "isActive": True,
        "createdAt": now,
        "updatedAt": now,
    })
    course.setdefault("enrollmentCount", 0)
    course.setdefault("rating", 0.0)
    course.setdefault("reviewCount", 0)
    course.setdefault("lessonCount", 0)

    await db.courses.insert_one(course)
    logger.info("Created course %s (%s)", course["id"], course.get("title"))
    return Course.from_document(course)


async def get_course(db: AsyncIOMotorDatabase, course_ref: str) -> Course:
    """Get an active course by UUID or legacy _id hex"""
    resolved = await resolve_course(db, course_ref, active_only=True)
    return Course.from_document(resolved.document)


async def list_courses(
    db: AsyncIOMotorDatabase,
    filters: CourseListFilters,
    sort_by: str = "createdAt",
    order: str = "desc",
) -> List[Course]:
    """List active courses with optional filters"""
    query = {"isActive": True}
    if filters.type:
        query["type"] = filters.type
    if filters.class_level:
        query["classLevel"] = filters.class_level
    if filters.subject:
        query["subject"] = filters.subject
    if filters.status:
        query["status"] = filters.status
    if filters.category:
        query["category"] = filters.category
    if filters.featured:
        query["isFeatured"] = True

    if sort_by not in SORTABLE_FIELDS:
        sort_by = "createdAt"
    direction = -1 if order == "desc" else 1

    cursor = db.courses.find(query).sort(sort_by, direction)
    docs = await cursor.to_list(length=None)
    return [Course.from_document(doc) for doc in docs]


async def update_course(db: AsyncIOMotorDatabase, course_ref: str, updates: dict) -> None:
    """Update catalog fields; the identifier and derived counters cannot be changed here"""
    updates = {
        k: v for k, v in updates.items()
        if k not in ("id", "_id") and k not in DERIVED_FIELDS
    }
    updates["updatedAt"] = datetime.utcnow()

    matched = await update_by_reference(db.courses, course_ref, {"$set": updates})
    if not matched:
        raise NotFound("Course not found")


async def delete_course(db: AsyncIOMotorDatabase, course_ref: str) -> None:
    """
    Soft delete: flip isActive so enrollments and reviews stay intact
    """
    matched = await update_by_reference(
        db.courses,
        course_ref,
        {"$set": {"isActive": False, "updatedAt": datetime.utcnow()}},
    )
    if not matched:
        raise NotFound("Course not found")
    logger.info("Deactivated course %s", course_ref)


# ==================== COURSE STATS ====================

async def get_course_stats(db: AsyncIOMotorDatabase, course_ref: str) -> dict:
    """Enrollment, completion and completion-rate figures for one course"""
    resolved = await resolve_course(db, course_ref)
    enrollment_count = int(resolved.document.get("enrollmentCount") or 0)

    forms = await course_reference_forms(db, course_ref)
    completion_count = await db.enrollments.count_documents({
        "courseId": {"$in": forms},
        "completedAt": {"$ne": None},
    })

    completion_rate = 0.0
    if enrollment_count > 0:
        completion_rate = completion_count / enrollment_count * 100

    return {
        "enrollments": enrollment_count,
        "completions": completion_count,
        "completionRate": completion_rate,
    }


async def get_course_document(db: AsyncIOMotorDatabase, course_ref: str) -> Optional[dict]:
    """Raw course lookup without the active filter (used to join enrollments)"""
    try:
        resolved = await resolve_course(db, course_ref)
    except NotFound:
        return None
    return resolved.document
