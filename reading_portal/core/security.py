# reading_portal/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from reading_portal.core.config import settings
from reading_portal.db.session import get_db
from reading_portal.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER, User
from reading_portal.schemas.auth import TokenData
from reading_portal.services import permission_service

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def authenticate_user(db: Session, access_code: str) -> Optional[User]:
    code = (access_code or "").strip()
    if not code:
        return None
    return db.query(User).filter(User.access_code == code).first()


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for_user(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role})


def decode_access_token(token: str) -> TokenData:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    sub = payload.get("sub")
    if sub is None:
        raise JWTError("token has no subject")
    return TokenData(user_id=int(sub), role=payload.get("role"))


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        token_data = decode_access_token(token)
    except (JWTError, ValueError):
        raise credentials_exception

    user = db.get(User, token_data.user_id)
    if user is None:
        raise credentials_exception
    return user


def require_roles(*roles: str) -> Callable[..., User]:
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return dependency


get_current_student = require_roles(ROLE_STUDENT)
get_current_teacher = require_roles(ROLE_TEACHER)
get_current_admin = require_roles(ROLE_ADMIN)
# teachers and admins can both grade and manage content
get_current_staff = require_roles(ROLE_TEACHER, ROLE_ADMIN)


def require_permission(key: str) -> Callable[..., User]:
    """Staff dependency that also checks a teacher's effective permission."""
    def dependency(
        current_user: User = Depends(get_current_staff),
        db: Session = Depends(get_db),
    ) -> User:
        if current_user.role == ROLE_ADMIN:
            return current_user
        if not permission_service.has_permission(db, teacher=current_user, key=key):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {key}",
            )
        return current_user

    return dependency
