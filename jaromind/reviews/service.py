"""
Review lifecycle: at most one review per (user, course), author-only edits,
and a rating recompute after every create, update and delete.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from bson import ObjectId
from datetime import datetime
from typing import List, Optional
import logging

from jaromind.auth.dependencies import CurrentUser
from jaromind.courses.enrollments import is_enrolled
from jaromind.courses.identifiers import course_reference_forms, parse_object_id, resolve_course
from jaromind.errors import Forbidden, InvalidInput, NotFound
from jaromind.reviews.models import (
    COMMENT_MAX_LENGTH, COMMENT_MIN_LENGTH, RATING_MAX, RATING_MIN, Review,
)
from jaromind.reviews.rating import refresh_course_rating

logger = logging.getLogger(__name__)


# ==================== VALIDATION ====================

def validate_review_input(rating: int, comment: str) -> None:
    """Bounds checks, done before any store call"""
    if isinstance(rating, bool) or not isinstance(rating, int) or not RATING_MIN <= rating <= RATING_MAX:
        raise InvalidInput(f"Rating must be between {RATING_MIN} and {RATING_MAX}")
    if not isinstance(comment, str) or not COMMENT_MIN_LENGTH <= len(comment) <= COMMENT_MAX_LENGTH:
        raise InvalidInput(
            f"Comment must be between {COMMENT_MIN_LENGTH} and {COMMENT_MAX_LENGTH} characters"
        )


def _user_object_id(user_id: str) -> ObjectId:
    object_id = parse_object_id(user_id)
    if object_id is None:
        raise InvalidInput("Invalid user ID format")
    return object_id


def _review_object_id(review_id: str) -> ObjectId:
    object_id = parse_object_id(review_id)
    if object_id is None:
        raise InvalidInput("Invalid review ID")
    return object_id


# ==================== LOOKUPS ====================

async def _find_review(db: AsyncIOMotorDatabase, review_id: str) -> dict:
    review = await db.reviews.find_one({"_id": _review_object_id(review_id)})
    if review is None:
        raise NotFound("Review not found")
    return review


async def get_review(db: AsyncIOMotorDatabase, review_id: str) -> Review:
    return Review.from_document(await _find_review(db, review_id))


async def get_review_by_user_and_course(
    db: AsyncIOMotorDatabase, user_id: str, course_ref: str
) -> Optional[dict]:
    """Existing review by this user for this course, or None"""
    forms = await course_reference_forms(db, course_ref)
    return await db.reviews.find_one({
        "user_id": _user_object_id(user_id),
        "course_id": {"$in": forms},
    })


async def list_reviews(db: AsyncIOMotorDatabase, course_ref: str, limit: Optional[int] = None) -> List[Review]:
    """Reviews for a course, newest first; empty list when there are none"""
    forms = await course_reference_forms(db, course_ref)
    cursor = db.reviews.find({"course_id": {"$in": forms}}).sort("created_at", -1)
    if limit:
        cursor = cursor.limit(limit)
    docs = await cursor.to_list(length=limit)
    return [Review.from_document(doc) for doc in docs]


# ==================== MUTATIONS ====================

async def _overwrite_review(db: AsyncIOMotorDatabase, object_id: ObjectId, rating: int, comment: str) -> Review:
    updated = await db.reviews.find_one_and_update(
        {"_id": object_id},
        {"$set": {
            "rating": rating,
            "comment": comment,
            "updated_at": datetime.utcnow(),
        }},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound("Review not found")

    await refresh_course_rating(db, updated["course_id"])
    return Review.from_document(updated)


async def submit_review(
    db: AsyncIOMotorDatabase,
    user: CurrentUser,
    course_ref: str,
    rating: int,
    comment: str,
) -> Review:
    """
    Create a review, or overwrite the caller's existing one for this course.

    Non-admin callers must be enrolled in the course.
    """
    validate_review_input(rating, comment)
    user_oid = _user_object_id(user.user_id)

    resolved = await resolve_course(db, course_ref, active_only=True)
    course_id = resolved.display_id

    if not user.is_admin and not await is_enrolled(db, user.user_id, course_id):
        raise Forbidden("Must be enrolled to review")

    existing = await get_review_by_user_and_course(db, user.user_id, course_id)
    if existing is not None:
        logger.info("User %s already reviewed course %s, updating instead", user.user_id, course_id)
        return await _overwrite_review(db, existing["_id"], rating, comment)

    now = datetime.utcnow()
    review = {
        "course_id": course_id,
        "user_id": user_oid,
        "user_name": user.name or "Anonymous",
        "rating": rating,
        "comment": comment,
        "date": now,
        "created_at": now,
        "updated_at": now,
    }

    try:
        result = await db.reviews.insert_one(review)
    except DuplicateKeyError:
        # A concurrent submission won the insert; ours becomes the update
        existing = await db.reviews.find_one({"user_id": user_oid, "course_id": course_id})
        if existing is None:
            raise
        return await _overwrite_review(db, existing["_id"], rating, comment)

    review["_id"] = result.inserted_id
    await refresh_course_rating(db, course_id)

    logger.info("Review %s created for course %s", result.inserted_id, course_id)
    return Review.from_document(review)


async def update_review(
    db: AsyncIOMotorDatabase,
    review_id: str,
    user: CurrentUser,
    rating: int,
    comment: str,
) -> Review:
    """Only the author may update a review"""
    validate_review_input(rating, comment)

    existing = await _find_review(db, review_id)
    if str(existing["user_id"]) != user.user_id:
        raise Forbidden("You can only update your own reviews")

    return await _overwrite_review(db, existing["_id"], rating, comment)


async def delete_review(db: AsyncIOMotorDatabase, review_id: str, user: CurrentUser) -> None:
    """The author or an admin may delete; the rating is recomputed from the captured course_id"""
    existing = await _find_review(db, review_id)
    if str(existing["user_id"]) != user.user_id and not user.is_admin:
        raise Forbidden("You can only delete your own reviews")

    course_id = existing["course_id"]
    result = await db.reviews.delete_one({"_id": existing["_id"]})
    if result.deleted_count == 0:
        raise NotFound("Review not found")

    await refresh_course_rating(db, course_id)
    logger.info("Review %s deleted by %s", review_id, user.user_id)
