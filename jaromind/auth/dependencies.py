from fastapi import Depends, Header, HTTPException, Request

from jaromind.auth.tokens import ROLE_ADMIN, ROLE_USER, TokenService


class CurrentUser:
    """
    Verified caller identity taken from the bearer token
    """
    def __init__(self, user_id: str, claims: dict):
        self.user_id = user_id
        self.email = claims.get("email", "")
        self.role = claims.get("role") or ROLE_USER
        self.name = claims.get("name") or ""
        self.claims = claims

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_user(
    authorization: str = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> CurrentUser:
    """
    Dependency: resolves the caller from ``Authorization: Bearer <token>``

    Raises:
        401: Missing, malformed, invalid or expired token
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization header format")

    claims = tokens.decode(parts[1])
    return CurrentUser(tokens.user_id_from_claims(claims), claims)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Dependency: caller must hold the admin role

    Raises:
        403: Not an admin
    """
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
