from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from datetime import datetime
import logging

from jaromind.auth.hashing import hash_password, verify_password
from jaromind.auth.tokens import TokenService
from jaromind.errors import Conflict, InvalidInput

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class InvalidCredentials(Exception):
    """Login failed; deliberately does not say which part was wrong"""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)
        self.message = message


# ==================== USERS ====================

async def register_user(db: AsyncIOMotorDatabase, name: str, email: str, password: str) -> str:
    """Create a user account, returns the new user id"""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    email = email.strip().lower()
    if await db.users.find_one({"email": email}):
        raise Conflict("Email already registered")

    now = datetime.utcnow()
    user = {
        "name": name,
        "email": email,
        "password": hash_password(password),
        "verified": False,
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = await db.users.insert_one(user)
    except DuplicateKeyError:
        raise Conflict("Email already registered")

    logger.info("Registered user %s", result.inserted_id)
    return str(result.inserted_id)


async def login_user(db: AsyncIOMotorDatabase, tokens: TokenService, email: str, password: str) -> str:
    """Verify credentials, returns a user token"""
    user = await db.users.find_one({"email": email.strip().lower()})
    if not user or not verify_password(password, user.get("password", "")):
        raise InvalidCredentials()

    return tokens.issue(str(user["_id"]), user["email"], name=user.get("name", ""))


# ==================== ADMINS ====================

async def login_admin(db: AsyncIOMotorDatabase, tokens: TokenService, email: str, password: str) -> dict:
    """Verify admin credentials, returns the token and the admin's public profile"""
    admin = await db.admins.find_one({"email": email.strip().lower()})
    if not admin:
        logger.warning("Admin login failed: unknown email")
        raise InvalidCredentials()

    if admin.get("isActive") is False:
        raise InvalidCredentials("Admin account is deactivated")

    if not verify_password(password, admin.get("password", "")):
        logger.warning("Admin login failed: password mismatch for %s", admin["_id"])
        raise InvalidCredentials()

    admin_id = str(admin["_id"])
    name = admin.get("name") or "Admin"
    return {
        "token": tokens.issue_admin(admin_id, admin["email"], name=name),
        "user": {
            "id": admin_id,
            "email": admin["email"],
            "name": name,
            "role": "admin",
        },
    }


async def create_admin(db: AsyncIOMotorDatabase, email: str, password: str, name: str = "Super Admin") -> str:
    """Insert an active admin with a bcrypt-hashed password"""
    email = email.strip().lower()
    if await db.admins.find_one({"email": email}):
        raise Conflict("Admin already exists")

    result = await db.admins.insert_one({
        "email": email,
        "password": hash_password(password),
        "name": name,
        "createdAt": datetime.utcnow(),
        "isActive": True,
    })
    return str(result.inserted_id)
