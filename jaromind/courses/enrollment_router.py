"""
Enrollment endpoints for signed-in users
"""

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from jaromind.auth.dependencies import CurrentUser, get_current_user
from jaromind.courses.enrollments import enroll_user, get_user_enrollments, update_progress
from jaromind.courses.models import ProgressUpdate
from jaromind.database import get_db

router = APIRouter(prefix="/user", tags=["Enrollments"])


@router.post("/enroll/{course_id}")
async def enroll_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Enroll in course
    404 if the course is missing or inactive, 409 if already enrolled
    """
    enrollment = await enroll_user(db, user.user_id, course_id)
    return {
        "message": "Successfully enrolled",
        "enrollment": enrollment.to_response(),
    }


@router.get("/enrollments")
async def get_my_enrollments(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Get all enrolled courses for user"""
    enrollments = await get_user_enrollments(db, user.user_id)
    return {
        "enrollments": enrollments,
        "count": len(enrollments),
    }


@router.put("/courses/{course_id}/progress")
async def update_progress_endpoint(
    course_id: str,
    payload: ProgressUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    await update_progress(db, user.user_id, course_id, payload.progress, payload.completed_lessons)
    return {"message": "Progress updated successfully"}
