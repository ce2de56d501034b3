from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from jaromind.auth.dependencies import CurrentUser, get_current_user, get_token_service
from jaromind.auth.service import InvalidCredentials, login_admin, login_user, register_user
from jaromind.auth.tokens import TokenService
from jaromind.database import get_db

router = APIRouter(tags=["Auth"])


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/register")
async def register(payload: RegisterRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    user_id = await register_user(db, payload.name, payload.email, payload.password)
    return {
        "message": "Registration successful",
        "user_id": user_id,
    }


@router.post("/login")
async def login(
    payload: LoginRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    try:
        token = await login_user(db, tokens, payload.email, payload.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=e.message)

    return {"message": "Login successfully", "token": token}


@router.post("/admin/login")
async def admin_login(
    payload: LoginRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    try:
        result = await login_admin(db, tokens, payload.email, payload.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=e.message)

    return {"success": True, **result}


@router.get("/user/profile")
async def get_profile(user: CurrentUser = Depends(get_current_user)):
    return {
        "user_id": user.user_id,
        "email": user.email,
        "role": user.role,
    }
