from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

from sociallearn.core.config import settings
from sociallearn.core.permissions import Role

password_hasher = PasswordHasher()


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: Role


def get_password_hash(password: str) -> str:
    return password_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return password_hasher.verify(hashed_password, password)
    except (VerificationError, InvalidHashError):
        return False


def create_access_token(user_id: int, role: Role, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {"sub": str(user_id), "role": role.value, "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """Verify a bearer token and return the staff member it was issued to.

    The role claim is informational; permissions are always checked against
    the stored user. Raises ``ValueError`` for bad signatures, expired tokens
    and missing or malformed claims.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc

    try:
        return TokenClaims(user_id=int(payload["sub"]), role=Role(payload["role"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Malformed token claims") from exc
