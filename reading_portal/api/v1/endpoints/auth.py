# reading_portal/api/v1/endpoints/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from reading_portal.core.security import authenticate_user, token_for_user
from reading_portal.db.session import get_db
from reading_portal.schemas.auth import LoginRequest, RegisterRequest, Token
from reading_portal.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _invalid_code() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid access code",
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("/login", response_model=Token)
def login_with_access_code(
    payload: LoginRequest,
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, payload.access_code)
    if not user:
        raise _invalid_code()

    logger.info(f"{user.role} {user.id} logged in")
    return Token(access_token=token_for_user(user), role=user.role)


@router.post("/token", response_model=Token)
def login_for_access_token_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    OAuth2 form login, for the swagger "Authorize" button.

    Put the access code in the password field; username is ignored.
    """
    user = authenticate_user(db, form_data.password)
    if not user:
        raise _invalid_code()
    return Token(access_token=token_for_user(user), role=user.role)


@router.post("/register", response_model=Token)
def register_student(payload: RegisterRequest, db: Session = Depends(get_db)):
    """A student's first visit: store their name and log them in."""
    try:
        student = user_service.register_student(
            db, access_code=payload.access_code, name=payload.name
        )
    except user_service.UserError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Token(access_token=token_for_user(student), role=student.role)
