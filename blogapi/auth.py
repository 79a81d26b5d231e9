"""
Authentication utilities for JWT tokens and password hashing, plus the
authorization policy used by the post routes.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .database import get_db
from .logging_config import auth_logger
from .models.user import User
from .responses import forbidden, unauthorized

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class AuthError(Exception):
    """Token could not be turned into an active user."""

    code = "TOKEN_INVALID"
    message = "Invalid token"


class TokenExpired(AuthError):
    code = "TOKEN_EXPIRED"
    message = "Token expired"


class TokenInvalid(AuthError):
    pass


class UserUnavailable(AuthError):
    code = "USER_NOT_FOUND"
    message = "Invalid token or user not found"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Sign a token carrying only the user id and an expiry."""
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta if expires_delta is not None else settings.token_lifetime)
    to_encode = {"sub": str(user_id), "exp": expire}  # JWT sub claim must be a string
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Optional[Settings] = None) -> int:
    """Check signature and expiry and return the user id.

    There is no revocation list: a token stays valid until it expires.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTError as exc:
        raise TokenInvalid() from exc

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise TokenInvalid() from exc


def resolve_user(db: Session, token: str, settings: Optional[Settings] = None) -> User:
    """Map a bearer token to an active user or raise an ``AuthError``."""
    user_id = decode_token(token, settings)
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise UserUnavailable()
    return user


def get_required_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Get the current user, raising 401 if the token is missing or unusable."""
    if not token:
        unauthorized("Access token required", "TOKEN_MISSING")

    try:
        return resolve_user(db, token)
    except AuthError as exc:
        auth_logger.warning("Rejected token", reason=exc.code)
        unauthorized(exc.message, exc.code)


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Get the current user if the token resolves, otherwise None (never rejects)."""
    if not token:
        return None

    try:
        return resolve_user(db, token)
    except AuthError as exc:
        auth_logger.debug("Ignoring unusable token on optional auth", reason=exc.code)
        return None


def require_admin(current_user: User = Depends(get_required_user)) -> User:
    """Require an authenticated admin."""
    if not current_user.is_admin:
        forbidden("Admin access required")
    return current_user


# ============================================================
# AUTHORIZATION POLICY
# ============================================================

class Relationship(str, enum.Enum):
    ADMIN = "admin"
    OWNER_OR_ADMIN = "owner_or_admin"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def authorize(
    identity: Optional[User],
    owner_id: Any,
    relationship: Relationship = Relationship.OWNER_OR_ADMIN,
) -> Decision:
    """Decide whether ``identity`` may act on a resource owned by ``owner_id``."""
    if identity is None:
        return Decision(False, "unauthenticated")
    if identity.is_admin:
        return Decision(True, "admin")
    if relationship is Relationship.ADMIN:
        return Decision(False, "not_admin")
    if owner_id is not None and str(owner_id) == str(identity.id):
        return Decision(True, "owner")
    return Decision(False, "not_owner")


def ensure_owner(identity: Optional[User], resource: Any, owner_field: str = "author_id") -> None:
    """Raise 401/403 unless ``identity`` owns ``resource`` or is an admin."""
    decision = authorize(identity, getattr(resource, owner_field, None))
    if decision:
        return
    if decision.reason == "unauthenticated":
        unauthorized()
    auth_logger.warning(
        "Ownership check failed",
        user_id=identity.id,
        resource=type(resource).__name__,
        resource_id=getattr(resource, "id", None),
    )
    forbidden("Access denied. You can only access your own resources.")
