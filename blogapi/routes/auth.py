"""
Authentication routes for registration, login and profile management.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth import (
    create_access_token,
    get_password_hash,
    get_required_user,
    verify_password,
)
from ..config import get_settings
from ..database import get_db
from ..limiter import limiter
from ..logging_config import auth_logger
from ..models.post import Post
from ..models.user import User
from ..responses import bad_request, unauthorized
from ..schemas.auth import (
    AuthResponse,
    ProfileResponse,
    ProfileUpdate,
    UserCreate,
    UserLogin,
    UserResponse,
)

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.register_rate_limit)
def register(request: Request, user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user account and log it in."""
    email = user_data.email.lower()
    existing = db.query(User).filter(
        or_(User.email == email, User.username == user_data.username)
    ).first()
    if existing:
        bad_request("User with this email or username already exists", "USER_EXISTS")

    user = User(
        username=user_data.username,
        email=email,
        hashed_password=get_password_hash(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    auth_logger.info("User registered", user_id=user.id)
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.id, settings=settings),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    """Login with JSON body (email/password)."""
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        auth_logger.warning("Failed login", email=credentials.email)
        unauthorized("Invalid credentials", "INVALID_CREDENTIALS")

    if not user.is_active:
        unauthorized("Account is deactivated", "ACCOUNT_DEACTIVATED")

    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id, settings=settings),
        user=UserResponse.model_validate(user),
    )


def _profile(db: Session, user: User) -> ProfileResponse:
    blog_count = db.query(Post).filter(Post.author_id == user.id).count()
    return ProfileResponse.model_validate(user).model_copy(update={"blog_count": blog_count})


@router.get("/profile")
def get_profile(db: Session = Depends(get_db), current_user: User = Depends(get_required_user)):
    """Get the authenticated user's profile."""
    return {"user": _profile(db, current_user)}


@router.put("/profile")
def update_profile(
    update: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Update the authenticated user's profile."""
    update_data = update.model_dump(exclude_unset=True)

    username = update_data.get("username")
    if username and username != current_user.username:
        taken = db.query(User).filter(User.username == username, User.id != current_user.id).first()
        if taken:
            bad_request("Username already taken", "USERNAME_TAKEN")

    for field, value in update_data.items():
        if value is not None:
            setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return {"message": "Profile updated successfully", "user": _profile(db, current_user)}


@router.get("/verify")
def verify(current_user: User = Depends(get_required_user)):
    """Confirm that the bearer token is still valid."""
    return {"valid": True, "user": UserResponse.model_validate(current_user)}
