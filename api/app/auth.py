# auth.py

"""Bearer-token staff authentication for operator routes."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from config import get_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 15

# Roles allowed to regenerate and export table QR codes
QR_ADMIN_ROLES = ("super_admin", "outlet_admin", "manager")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


class TokenData(BaseModel):
    """Extracted token claims used for authorization."""

    username: Optional[str] = None
    role: Optional[str] = None


class User(BaseModel):
    """Staff member resolved from a bearer token."""

    username: str
    role: str


def _secret() -> str:
    secret = get_settings().secret_key
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Staff authentication is not configured",
        )
    return secret


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT containing the provided claims."""

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, _secret(), algorithm=ALGORITHM)


def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    """Resolve the user from a bearer token or raise ``HTTPException``."""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        raise credentials_exception
    token_data = TokenData(username=payload.get("sub"), role=payload.get("role"))
    if token_data.username is None or token_data.role is None:
        raise credentials_exception
    return User(username=token_data.username, role=token_data.role)


def role_required(*roles: str):
    """Dependency factory enforcing that the current user has one of ``roles``."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning("forbidden user=%s role=%s", user.username, user.role)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient privileges"
            )
        return user

    return dependency
