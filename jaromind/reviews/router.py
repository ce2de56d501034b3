from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from jaromind.auth.dependencies import CurrentUser, get_current_user
from jaromind.courses.identifiers import canonical_course_ref
from jaromind.database import get_db
from jaromind.reviews.models import ReviewInput
from jaromind.reviews.rating import calculate_course_rating
from jaromind.reviews.service import delete_review, get_review, list_reviews, submit_review, update_review

router = APIRouter(tags=["Reviews"])


# ==================== COURSE REVIEWS ====================

@router.get("/courses/{course_id}/reviews")
async def get_course_reviews(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    reviews = await list_reviews(db, course_id)
    return {
        "success": True,
        "reviews": [r.to_response() for r in reviews],
    }


@router.post("/courses/{course_id}/reviews", status_code=201)
@router.post("/user/courses/{course_id}/review", status_code=201)
async def create_review(
    course_id: str,
    payload: ReviewInput,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Submit a review. A second submission for the same course
    overwrites the first instead of adding another.
    """
    review = await submit_review(db, user, course_id, payload.rating, payload.comment)
    return {
        "success": True,
        "message": "Review submitted successfully",
        "review": review.to_response(),
    }


@router.get("/courses/{course_id}/rating")
async def get_course_rating(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course_ref = await canonical_course_ref(db, course_id)
    avg_rating, total_reviews = await calculate_course_rating(db, course_ref)
    return {
        "success": True,
        "averageRating": avg_rating,
        "totalReviews": total_reviews,
    }


# ==================== SINGLE REVIEW ====================

@router.get("/reviews/{review_id}")
async def get_review_endpoint(review_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    review = await get_review(db, review_id)
    return {"success": True, "review": review.to_response()}


@router.put("/reviews/{review_id}")
async def update_review_endpoint(
    review_id: str,
    payload: ReviewInput,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    review = await update_review(db, review_id, user, payload.rating, payload.comment)
    return {
        "success": True,
        "message": "Review updated successfully",
        "review": review.to_response(),
    }


@router.delete("/reviews/{review_id}")
async def delete_review_endpoint(
    review_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    await delete_review(db, review_id, user)
    return {"success": True, "message": "Review deleted successfully"}
