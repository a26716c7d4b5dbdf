from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.core.config import settings
from progressbar.db.session import get_db
from progressbar.models.user import User


# Tokens are issued by the host LMS; this service only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def create_access_token(user_id: int, *, minutes: int | None = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=int(minutes or settings.jwt_access_token_minutes))
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "iss": str(getattr(settings, "jwt_issuer", "lms")),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User | None:
    """Resolve the viewer, or None for an anonymous visitor."""
    if not token:
        token = request.cookies.get("core_token")
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=str(getattr(settings, "jwt_issuer", "lms")),
        )
        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(status_code=401, detail="invalid token")
    except JWTError as e:
        raise HTTPException(status_code=401, detail="invalid token") from e

    try:
        user_id = int(str(user_id))
    except ValueError as e:
        raise HTTPException(status_code=401, detail="invalid token") from e

    user = db.scalar(select(User).where(User.id == user_id, User.deleted == False))  # noqa: E712
    if user is None:
        raise HTTPException(status_code=401, detail="invalid token")

    try:
        request.state.user_id = str(user.id)
    except Exception:
        pass
    return user


def is_guest(user: User | None) -> bool:
    return user is None or bool(user.is_guest)


def require_user(user: User | None = Depends(get_current_user)) -> User:
    if is_guest(user):
        raise HTTPException(status_code=401, detail="not authenticated")
    return user
