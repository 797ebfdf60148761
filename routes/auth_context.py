# auth_context.py - Decodes the bearer token issued by the auth provider
from typing import Optional

import jwt as pyjwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import config
from models.enums import UserRole
from models.user import AuthContext

security = HTTPBearer(auto_error=False)


def decode_jwt(token: str) -> Optional[dict]:
    try:
        return pyjwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except pyjwt.PyJWTError:
        return None


# Dependency for the authenticated caller
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthContext:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    payload = decode_jwt(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid token")

    uid = payload.get("sub")
    if not uid:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        role = UserRole(str(payload.get("role", "")).upper())
    except ValueError:
        raise HTTPException(status_code=403, detail="Unknown role")

    return AuthContext(user_id=uid, role=role)


# Dependency factory restricting a route to the given roles
def require_role(*roles: UserRole):
    async def checker(current_user: AuthContext = Depends(get_current_user)) -> AuthContext:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Only {', '.join(r.value for r in roles)} can use this route",
            )
        return current_user

    return checker
