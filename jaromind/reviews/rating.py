"""
Rating aggregation.

``rating`` and ``reviewCount`` on a course are derived from the reviews whose
``course_id`` equals the course reference. They are recomputed after every
review mutation as a read-then-write, so under concurrent mutations the last
recompute wins: the fields are eventually consistent, not transactional.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from datetime import datetime
from typing import Optional, Tuple
import logging

from jaromind.courses.identifiers import update_by_reference

logger = logging.getLogger(__name__)


async def calculate_course_rating(db: AsyncIOMotorDatabase, course_ref: str) -> Tuple[float, int]:
    """
    Average rating and review count for reviews whose course_id is exactly
    ``course_ref``. No reviews is (0.0, 0), not an error.
    """
    pipeline = [
        {"$match": {"course_id": course_ref}},
        {"$group": {
            "_id": None,
            "avgRating": {"$avg": "$rating"},
            "totalReviews": {"$sum": 1},
        }},
    ]

    result = await db.reviews.aggregate(pipeline).to_list(length=1)
    if not result:
        return 0.0, 0

    return float(result[0]["avgRating"] or 0.0), int(result[0]["totalReviews"])


async def recompute_rating(db: AsyncIOMotorDatabase, course_ref: str) -> Tuple[float, int]:
    """Calculate and write rating/reviewCount back onto the course"""
    avg_rating, total_reviews = await calculate_course_rating(db, course_ref)

    matched = await update_by_reference(
        db.courses,
        course_ref,
        {"$set": {
            "rating": avg_rating,
            "reviewCount": total_reviews,
            "updatedAt": datetime.utcnow(),
        }},
    )
    if not matched:
        logger.warning(
            "Rating write-back discarded: no course matches reference %r (rating=%.2f, reviews=%d)",
            course_ref, avg_rating, total_reviews,
        )

    return avg_rating, total_reviews


async def refresh_course_rating(db: AsyncIOMotorDatabase, course_ref: str) -> Optional[Tuple[float, int]]:
    """
    Best-effort recompute after a review mutation.
    Never fails the caller; store errors are logged and swallowed.
    """
    try:
        return await recompute_rating(db, course_ref)
    except PyMongoError:
        logger.exception("Failed to update course rating for %s", course_ref)
        return None
