"""
Authentication service: password hashing, JWT access tokens, account tokens,
and the register/login/verify/reset flows.
"""

import os
import re
import uuid
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from dotenv import load_dotenv

from fieldlines.database.models import User, UserRole
from fieldlines.services import user_service
from fieldlines.services.errors import AccountLockedError, ConflictError, InvalidCredentialsError
from fieldlines.utils.constants import (
    ACCESS_TOKEN_EXPIRE_DAYS,
    ACCOUNT_LOCK_MINUTES,
    MAX_FAILED_LOGIN_ATTEMPTS,
    MIN_PASSWORD_LENGTH,
    RESET_TOKEN_EXPIRE_HOURS,
)
from fieldlines.utils.datetime_utils import ensure_aware, utcnow

load_dotenv()

logger = logging.getLogger(__name__)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "development-secret")
JWT_ALGORITHM = "HS256"

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ----------------------------------------------------------------------------
# Passwords and tokens
# ----------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed hash
        return False


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (user_id, email)
        expires_delta: Token lifetime; defaults to ACCESS_TOKEN_EXPIRE_DAYS

    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """Decode a JWT access token. Returns the payload, or None if invalid or expired."""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"JWT verification failed: {e}")
        return None


def generate_account_token() -> str:
    """Random token for email verification, password reset and invitations."""
    return str(uuid.uuid4())


# ----------------------------------------------------------------------------
# Input validation
# ----------------------------------------------------------------------------


def validate_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address; raises ValueError if invalid."""
    normalized = (email or "").strip().lower()
    if not validate_email(normalized):
        raise ValueError("Invalid email address")
    return normalized


def validate_password_strength(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


# ----------------------------------------------------------------------------
# Account flows
# ----------------------------------------------------------------------------


async def register_user(
    session: AsyncSession,
    email: str,
    password: str,
    full_name: str,
    phone: Optional[str] = None,
    organization: Optional[str] = None,
    role: str = UserRole.USER.value,
    email_verified: bool = False,
) -> Dict:
    """
    Create a new account.

    Returns:
        Dict with the user and the verification token (None if pre-verified)

    Raises:
        ValueError: Invalid input
        ConflictError: Email already registered
    """
    normalized_email = normalize_email(email)
    validate_password_strength(password)
    if not (full_name or "").strip():
        raise ValueError("Full name is required")

    if await user_service.get_user_by_email(session, normalized_email):
        raise ConflictError("Email already registered")

    verification_token = None if email_verified else generate_account_token()
    user = User(
        email=normalized_email,
        password_hash=hash_password(password),
        full_name=full_name.strip(),
        phone=phone,
        organization=organization,
        role=role,
        email_verified=email_verified,
        verification_token=verification_token,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    logger.info(f"Registered user {user.id} ({role})")
    return {"user": user_service.user_to_dict(user), "verification_token": verification_token}


def _is_locked(user: User) -> bool:
    if not user.locked_until:
        return False
    try:
        locked_until = ensure_aware(datetime.fromisoformat(user.locked_until))
    except ValueError:
        return False
    return locked_until > utcnow()


async def authenticate_user(session: AsyncSession, email: str, password: str) -> Dict:
    """
    Check credentials and issue an access token.

    Failed attempts are counted; the account locks for ACCOUNT_LOCK_MINUTES after
    MAX_FAILED_LOGIN_ATTEMPTS consecutive failures.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        PermissionError: Unverified email or suspended account
        AccountLockedError: Account is temporarily locked
    """
    try:
        normalized_email = normalize_email(email)
    except ValueError:
        raise InvalidCredentialsError("Invalid email or password")

    result = await session.execute(select(User).where(User.email == normalized_email))
    user = result.scalar_one_or_none()
    if not user:
        raise InvalidCredentialsError("Invalid email or password")

    if _is_locked(user):
        raise AccountLockedError(
            "Account locked. Please try again later.", locked_until=user.locked_until
        )

    if not verify_password(password, user.password_hash):
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.failed_login_attempts >= MAX_FAILED_LOGIN_ATTEMPTS:
            user.locked_until = (utcnow() + timedelta(minutes=ACCOUNT_LOCK_MINUTES)).isoformat()
            logger.warning(f"Locked account {user.id} after {user.failed_login_attempts} failed logins")
        # persist the attempt count even though the request fails
        await session.commit()
        raise InvalidCredentialsError("Invalid email or password")

    if not user.email_verified:
        raise PermissionError("Please verify your email before logging in")

    if user.suspended:
        raise PermissionError("Your account has been suspended. Please contact support.")

    user.failed_login_attempts = 0
    user.locked_until = None
    user.last_login_at = utcnow()
    await session.flush()

    token = create_access_token({"user_id": user.id, "email": user.email})
    return {"token": token, "user": user_service.user_to_dict(user)}


async def verify_email(session: AsyncSession, token: str) -> Dict:
    if not token:
        raise ValueError("Verification token required")
    result = await session.execute(select(User).where(User.verification_token == token))
    user = result.scalar_one_or_none()
    if not user:
        raise ValueError("Invalid verification token")
    user.email_verified = True
    user.verification_token = None
    await session.flush()
    return user_service.user_to_dict(user)


async def issue_verification_token(session: AsyncSession, user_id: int) -> Dict:
    """
    Generate a fresh verification token for an unverified account.

    Returns:
        Dict with email and token

    Raises:
        LookupError: User not found
        ValueError: Email already verified
    """
    user = await user_service.get_user_model(session, user_id)
    if user.email_verified:
        raise ValueError("User email is already verified")
    user.verification_token = generate_account_token()
    await session.flush()
    return {"email": user.email, "token": user.verification_token}


async def issue_reset_token(session: AsyncSession, email: str) -> Optional[Dict]:
    """
    Start a password reset. Returns None when no account matches, so callers
    can answer identically either way.
    """
    try:
        normalized_email = normalize_email(email)
    except ValueError:
        return None
    user = await user_service.get_user_by_email(session, normalized_email)
    if not user:
        return None
    return await issue_reset_token_for_user(session, user.id)


async def issue_reset_token_for_user(session: AsyncSession, user_id: int) -> Dict:
    user = await user_service.get_user_model(session, user_id)
    user.reset_token = generate_account_token()
    user.reset_token_expires = utcnow() + timedelta(hours=RESET_TOKEN_EXPIRE_HOURS)
    await session.flush()
    return {"email": user.email, "token": user.reset_token, "full_name": user.full_name}


async def reset_password(session: AsyncSession, token: str, new_password: str) -> None:
    if not token:
        raise ValueError("Token is required")
    validate_password_strength(new_password)
    result = await session.execute(select(User).where(User.reset_token == token))
    user = result.scalar_one_or_none()
    if not user or not user.reset_token_expires or ensure_aware(user.reset_token_expires) <= utcnow():
        raise ValueError("Invalid or expired reset token")
    user.password_hash = hash_password(new_password)
    user.reset_token = None
    user.reset_token_expires = None
    user.failed_login_attempts = 0
    user.locked_until = None
    await session.flush()


async def change_password(
    session: AsyncSession, user_id: int, current_password: str, new_password: str
) -> None:
    user = await user_service.get_user_model(session, user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValueError("Current password is incorrect")
    validate_password_strength(new_password)
    user.password_hash = hash_password(new_password)
    await session.flush()
