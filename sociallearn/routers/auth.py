from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from sociallearn.core.security import create_access_token, get_password_hash, verify_password
from sociallearn.core.timeutils import utc_now
from sociallearn.dependencies import get_current_active_user, get_db
from sociallearn.models import User
from sociallearn.schemas.auth import Token
from sociallearn.schemas.common import MessageRead
from sociallearn.schemas.user import UserPasswordUpdate, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def to_user_read(user: User) -> UserRead:
    return UserRead(
        id=user.id or 0,
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active,
        last_login=user.last_login,
        created_at=user.created_at,
        permissions=sorted(user.permissions, key=lambda item: item.value),
    )


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> Token:
    email = form_data.username.strip().lower()
    user = db.exec(select(User).where(User.email == email)).first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")

    user.last_login = utc_now()
    db.add(user)
    db.commit()
    db.refresh(user)

    access_token = create_access_token(user.id, user.role)
    logger.info("User %s logged in", user.id)
    return Token(access_token=access_token, token_type="bearer")


@router.get("/profile", response_model=UserRead)
def read_profile(current_user: User = Depends(get_current_active_user)) -> UserRead:
    return to_user_read(current_user)


@router.put("/change-password", response_model=MessageRead)
def change_password(
    payload: UserPasswordUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageRead:
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    current_user.hashed_password = get_password_hash(payload.new_password)
    current_user.updated_at = utc_now()
    db.add(current_user)
    db.commit()
    return MessageRead(message="Password changed successfully")


@router.post("/logout", response_model=MessageRead)
def logout(current_user: User = Depends(get_current_active_user)) -> MessageRead:
    del current_user
    return MessageRead(message="Logout successful")
