# snfoods/core/auth.py
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from snfoods.core.config import get_settings
from snfoods.database import get_session
from snfoods.models.profile import Profile
from snfoods.schemas.user import PROVISIONABLE_ROLES, STAFF_ROLES

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so the catalog can be browsed anonymously.
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def default_full_name(email: str, metadata: dict[str, Any] | None = None) -> str:
    """
    Display name for a freshly provisioned profile: the sign-up
    full_name if Supabase has one, else the local part of the email.
    """
    if metadata and metadata.get("full_name"):
        return str(metadata["full_name"]).strip()
    if "@" in email:
        return email.split("@", 1)[0]
    return email or "User"


def provisioned_role(payload: dict[str, Any]) -> str:
    """
    Role for a first-login profile, taken from app_metadata only
    (user_metadata is user-editable). Unknown roles give "customer".
    """
    app_metadata = payload.get("app_metadata")
    if isinstance(app_metadata, dict):
        role = app_metadata.get("role")
        if role in PROVISIONABLE_ROLES:
            return role
    return "customer"


def profile_from_claims(session: Session, payload: dict[str, Any]) -> Profile:
    """
    Load the Profile for verified token claims, creating a profile on
    first login (customer unless app_metadata grants a known role).

    Raises:
        HTTPException(401): if claims are missing or sub is not a UUID.
    """
    sub = payload.get("sub")
    email = payload.get("email")

    if not sub or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub/email",
        )

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    profile = session.get(Profile, sub_uuid)

    if profile is None:
        profile = Profile(
            id=sub_uuid,
            email=email,
            full_name=default_full_name(email, payload.get("user_metadata")),
            role=provisioned_role(payload),
            contact_type="primary",
        )
        session.add(profile)
        session.commit()
        session.refresh(profile)

    return profile


def get_current_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Profile | None:
    """
    Resolve the caller once per request.

    Returns None for anonymous callers. The returned Profile is handed to
    services explicitly as `actor`.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    return profile_from_claims(session, payload)


def require_auth(profile: Profile | None = Depends(get_current_profile)) -> Profile:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): anonymous caller.
        HTTPException(403): profile deactivated.
    """
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile is deactivated",
        )
    return profile


def require_staff(profile: Profile = Depends(require_auth)) -> Profile:
    """
    Enforce a back-office role (admin or sales_admin).

    Used for order approval, account management and stats.
    """
    if profile.role not in STAFF_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return profile


def require_admin(profile: Profile = Depends(require_auth)) -> Profile:
    """
    Enforce admin role.

    Raises:
        HTTPException(403): if role is not admin.
    """
    if profile.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return profile
