"""Simple auth: shared library password per borrower email, JWT for session."""
import os
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

# Env: LIBRARY_APP_PASSWORD (required); JWT_SECRET (optional)
LIBRARY_APP_PASSWORD = os.environ.get("LIBRARY_APP_PASSWORD", "")
JWT_SECRET = os.environ.get("JWT_SECRET", LIBRARY_APP_PASSWORD or "change-me-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_HOURS = int(os.environ.get("JWT_EXPIRE_HOURS", str(24 * 7)))  # 1 week

security = HTTPBearer(auto_error=False)


def _get_secret_key() -> str:
    if not JWT_SECRET or JWT_SECRET == "change-me-in-production":
        return "dev-secret-key-change-in-production"
    return JWT_SECRET


def verify_password(plain: str) -> bool:
    """Check plain password against LIBRARY_APP_PASSWORD."""
    if not LIBRARY_APP_PASSWORD:
        return False
    return plain == LIBRARY_APP_PASSWORD


def create_access_token(borrower: dict) -> str:
    """Token carrying the borrower id and admin flag used for report scoping."""
    return jwt.encode(
        {
            "sub": str(borrower["id"]),
            "borrower_id": borrower["id"],
            "name": borrower.get("name"),
            "is_admin": bool(borrower.get("is_admin")),
            "exp": datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRE_HOURS),
        },
        _get_secret_key(),
        algorithm=JWT_ALGORITHM,
    )


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, _get_secret_key(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict:
    if not credentials or credentials.scheme != "Bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_token(credentials.credentials)
    if not payload or payload.get("borrower_id") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload
