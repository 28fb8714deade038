from typing import Annotated, Any, Callable, Coroutine, Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select

from sociallearn.core.config import settings
from sociallearn.core.security import decode_access_token
from sociallearn.db.database import Database
from sociallearn.models import Permission, User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_prefix}/auth/token")


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(database: Annotated[Database, Depends(get_database)]) -> Generator[Session, None, None]:
    yield from database.get_session()


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        claims = decode_access_token(token)
    except ValueError:
        raise credentials_exception

    user = db.exec(select(User).where(User.id == claims.user_id)).first()
    if not user:
        raise credentials_exception
    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return current_user


def require_permission(permission: Permission) -> Callable[..., Coroutine[Any, Any, User]]:
    async def _guard(
        current_user: Annotated[User, Depends(get_current_active_user)],
    ) -> User:
        if not current_user.can(permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough privileges")
        return current_user

    _guard.__name__ = f"require_{permission.value}"
    return _guard
