from jose import jwt, JWTError
from fastapi import HTTPException
from datetime import datetime, timedelta

from jaromind.config import Settings

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class TokenService:
    """
    Issues and verifies HS256 bearer tokens.
    The signing key comes from the Settings instance it is built with.
    """

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._ttl = timedelta(hours=settings.token_ttl_hours)

    def issue(self, user_id: str, email: str, role: str = ROLE_USER, name: str = "") -> str:
        now = datetime.utcnow()
        claims = {
            "user_id": user_id,
            "email": email,
            "role": role,
            "name": name,
            "exp": now + self._ttl,
            "iat": now,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def issue_admin(self, admin_id: str, email: str, name: str = "") -> str:
        return self.issue(admin_id, email, role=ROLE_ADMIN, name=name)

    def decode(self, token: str) -> dict:
        """Decodes and checks expiration/signature"""
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError:
            raise HTTPException(status_code=401, detail="Invalid or Expired Token")

    def user_id_from_claims(self, claims: dict) -> str:
        """``user_id``, or ``user_Id`` on tokens issued before the claim was renamed"""
        user_id = claims.get("user_id") or claims.get("user_Id")
        if not user_id:
            raise HTTPException(status_code=401, detail="Token missing user ID")
        return str(user_id)
