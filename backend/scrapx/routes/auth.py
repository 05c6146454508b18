"""
Authentication routes: signup, login, token refresh, profile and email verification
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_active_user
from ..auth.security import (
    REFRESH_TOKEN_TYPE, create_access_token, create_refresh_token, decode_token,
    hash_password, verify_password
)
from ..config import settings
from ..core.logging import get_logger
from ..database import get_db
from ..models.user import User
from ..schemas.user import (
    SignupResponse, TokenRefreshRequest, TokenResponse, UserCreate, UserResponse,
    UserUpdate, VerificationCodeRequest, VerifyEmailRequest
)
from ..utils.email import generate_verification_code, send_verification_email
from ..utils.verification import store_verification_code, verify_code

logger = get_logger(__name__)
router = APIRouter()


def _issue_tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


def _send_code(email: str) -> bool:
    code = generate_verification_code()
    store_verification_code(email, code)
    return send_verification_email(email, code)


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new account and send an email verification code
    """
    email = user_data.email.lower()
    existing = db.query(User).filter(
        or_(User.email == email, User.username == user_data.username)
    ).first()
    if existing:
        field = "Email" if existing.email == email else "Username"
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{field} already registered")

    try:
        user = User(
            email=email,
            username=user_data.username,
            full_name=user_data.full_name,
            phone=user_data.phone,
            hashed_password=hash_password(user_data.password),
            created_by=user_data.username,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create user {email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create account"
        )

    _send_code(user.email)
    logger.info(f"New user registered: {user.username} (id={user.id})")

    if settings.require_email_verification:
        return SignupResponse(user=user, verification_required=True)

    tokens = _issue_tokens(user)
    return SignupResponse(
        user=user,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.post("/login", response_model=TokenResponse)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Log in with email (or username) and password
    """
    identifier = form_data.username.strip()
    user = db.query(User).filter(
        or_(User.email == identifier.lower(), User.username == identifier)
    ).first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    if settings.require_email_verification and not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email not verified. Check your inbox for the verification code."
        )

    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh_tokens(request: TokenRefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair"""
    try:
        payload = decode_token(request.refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        user_id = int(payload["sub"])
    except (JWTError, ValueError, KeyError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    return _issue_tokens(user)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_active_user)):
    return current_user


@router.put("/me", response_model=UserResponse)
def update_me(
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    for field, value in user_update.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    current_user.updated_by = current_user.username
    db.commit()
    db.refresh(current_user)
    return current_user


@router.post("/send-verification-code")
def send_verification_code(request: VerificationCodeRequest, db: Session = Depends(get_db)):
    """
    (Re)send a verification code. The response does not reveal whether the email exists.
    """
    user = db.query(User).filter(User.email == request.email.lower()).first()
    if user and not user.is_verified:
        _send_code(user.email)
    return {"message": "If the account exists and is unverified, a code has been sent"}


@router.post("/verify-email", response_model=UserResponse)
def verify_email(request: VerifyEmailRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == request.email.lower()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.is_verified:
        return user

    if not verify_code(user.email, request.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification code"
        )

    user.is_verified = True
    user.updated_by = user.username
    db.commit()
    db.refresh(user)
    logger.info(f"Email verified for user {user.id}")
    return user
