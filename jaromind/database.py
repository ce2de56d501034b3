from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
import logging

from jaromind.config import Settings

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> AsyncIOMotorClient:
    """
    Build the Motor client.
    Every store call is bounded by the configured timeout; on expiry the
    driver raises and the request fails, nothing is retried here.
    """
    timeout_ms = settings.store_timeout_ms
    return AsyncIOMotorClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        socketTimeoutMS=timeout_ms,
    )


# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database dependency"""
    return request.app.state.db


# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Create MongoDB indexes
    Called during application startup
    """

    # Courses
    await db.courses.create_index("id", unique=True, sparse=True)
    await db.courses.create_index([("isActive", 1), ("createdAt", -1)])
    await db.courses.create_index([("type", 1), ("category", 1)])

    # Enrollments: one per (user, course)
    await db.enrollments.create_index("id", unique=True)
    await db.enrollments.create_index([("userId", 1), ("courseId", 1)], unique=True)
    await db.enrollments.create_index([("userId", 1), ("lastAccessedAt", -1)])

    # Reviews: one per (user, course)
    await db.reviews.create_index([("user_id", 1), ("course_id", 1)], unique=True)
    await db.reviews.create_index([("course_id", 1), ("created_at", -1)])

    # Accounts
    await db.users.create_index("email", unique=True)
    await db.admins.create_index("email", unique=True)

    logger.info("Database indexes created")
