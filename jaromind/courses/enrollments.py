"""
Enrollment gate: one enrollment per (user, course), progress tracking,
and the denormalized enrollmentCount on the course document.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError
from datetime import datetime
from typing import List, Optional
import logging
import uuid

from jaromind.courses.identifiers import resolve_course, course_reference_forms, normalize_document
from jaromind.courses.database import get_course_document
from jaromind.courses.models import Enrollment
from jaromind.errors import Conflict, InvalidInput, NotFound

logger = logging.getLogger(__name__)


# ==================== ENROLLMENT CRUD ====================

async def get_enrollment(db: AsyncIOMotorDatabase, user_id: str, course_ref: str) -> Optional[dict]:
    """Get user enrollment for any textual form of the course reference"""
    forms = await course_reference_forms(db, course_ref)
    return await db.enrollments.find_one({
        "userId": user_id,
        "courseId": {"$in": forms},
    })


async def is_enrolled(db: AsyncIOMotorDatabase, user_id: str, course_ref: str) -> bool:
    return await get_enrollment(db, user_id, course_ref) is not None


async def enroll_user(db: AsyncIOMotorDatabase, user_id: str, course_ref: str) -> Enrollment:
    """
    Enroll user in an active course.

    Raises:
        NotFound: course does not resolve or is inactive
        Conflict: user already enrolled
    """
    resolved = await resolve_course(db, course_ref, active_only=True)
    course_id = resolved.display_id

    if await get_enrollment(db, user_id, course_id):
        raise Conflict("Already enrolled in this course")

    now = datetime.utcnow()
    enrollment = {
        "id": str(uuid.uuid4()),
        "userId": user_id,
        "courseId": course_id,
        "enrolledAt": now,
        "progress": 0,
        "completedLessons": [],
        "lastAccessedAt": now,
        "createdAt": now,
        "updatedAt": now,
    }

    try:
        await db.enrollments.insert_one(enrollment)
    except DuplicateKeyError:
        # Lost a race with a concurrent enroll for the same pair
        raise Conflict("Already enrolled in this course")

    await increment_enrollment_count(db, resolved.key)

    logger.info("User %s enrolled in course %s", user_id, course_id)
    return Enrollment.from_document(enrollment)


async def increment_enrollment_count(db: AsyncIOMotorDatabase, course_key: dict) -> None:
    """
    Best-effort counter bump keyed by whichever identifier matched on resolve.
    Failures are logged, the enrollment itself stands.
    """
    try:
        result = await db.courses.update_one(course_key, {"$inc": {"enrollmentCount": 1}})
        if result.matched_count == 0:
            logger.warning("Enrollment count not incremented: no course matched %s", course_key)
    except PyMongoError:
        logger.exception("Failed to increment enrollment count for %s", course_key)


async def update_progress(
    db: AsyncIOMotorDatabase,
    user_id: str,
    course_ref: str,
    progress: int,
    completed_lessons: List[str],
) -> None:
    """
    Overwrite progress and completed lessons.
    At 100% completedAt is stamped, again on every call.
    """
    if progress < 0 or progress > 100:
        raise InvalidInput("Progress must be between 0 and 100")

    now = datetime.utcnow()
    updates = {
        "progress": progress,
        "completedLessons": list(completed_lessons or []),
        "lastAccessedAt": now,
        "updatedAt": now,
    }
    if progress >= 100:
        updates["completedAt"] = now

    forms = await course_reference_forms(db, course_ref)
    result = await db.enrollments.update_one(
        {"userId": user_id, "courseId": {"$in": forms}},
        {"$set": updates},
    )
    if result.matched_count == 0:
        raise NotFound("Not enrolled in this course")


async def get_user_enrollments(db: AsyncIOMotorDatabase, user_id: str) -> List[dict]:
    """All enrollments for a user, most recently accessed first, joined with their course"""
    cursor = db.enrollments.find({"userId": user_id}).sort("lastAccessedAt", -1)
    enrollments = await cursor.to_list(length=None)

    result = []
    for enr in enrollments:
        course = await get_course_document(db, enr["courseId"])
        if course is None:
            continue
        result.append({
            "enrollment": Enrollment.from_document(enr).to_response(),
            "course": normalize_document(course),
        })
    return result
