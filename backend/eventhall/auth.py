from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .config import settings
from .database import get_db
from .identity import (
    IdentityProviderUnavailable,
    IdentityVerificationError,
    IdentityVerifier,
    VerifiedIdentity,
    get_identity_verifier,
)
from .logging_utils import log_event, log_warning

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def is_ultimate_admin_email(email: Optional[str]) -> bool:
    if not email or not settings.ultimate_admin_emails:
        return False
    return email.strip().lower() in set(settings.ultimate_admin_emails)


def verify_identity_token(token: Optional[str], verifier: IdentityVerifier) -> VerifiedIdentity:
    if not token:
        raise _unauthorized("Unauthorized - No token provided")
    try:
        return verifier.verify(token)
    except IdentityVerificationError as exc:
        log_warning("identity_token_rejected", reason=str(exc))
        raise _unauthorized("Unauthorized - Invalid token")
    except IdentityProviderUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Identity provider unavailable",
        )


def _apply_sync(
    user: models.User,
    identity: VerifiedIdentity,
    profile: Optional[schemas.SyncProfile],
    ultimate_admin: bool,
    created: bool,
) -> None:
    email = identity.email or ""
    user.email = email
    if created:
        user.full_name = (profile and profile.full_name) or identity.name or email.split("@")[0]
        user.photo_url = (profile and profile.photo_url) or identity.picture
    else:
        # existing profiles only change where the client sent a value
        if profile is not None and profile.full_name:
            user.full_name = profile.full_name
        if profile is not None and profile.photo_url:
            user.photo_url = profile.photo_url
    if profile is not None and profile.is_student is not None:
        user.is_student = profile.is_student
    if profile is not None and profile.college_name:
        user.college_name = profile.college_name
    if ultimate_admin:
        user.role = models.UserRole.ultimate_admin


def sync_user(
    db: Session,
    identity: VerifiedIdentity,
    profile: Optional[schemas.SyncProfile] = None,
) -> models.User:
    """Create or refresh the local user for a verified identity.

    Existing users keep their role unless their e-mail is on the ultimate-admin
    allow-list. New users start as STANDARD_USER (or ULTIMATE_ADMIN when
    allow-listed) and default to ``is_student=True``.
    """
    if not identity.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")

    ultimate_admin = is_ultimate_admin_email(identity.email)
    user = db.query(models.User).filter(models.User.firebase_uid == identity.uid).first()
    created = user is None
    if created:
        user = models.User(
            firebase_uid=identity.uid,
            role=models.UserRole.ultimate_admin if ultimate_admin else models.UserRole.standard_user,
            is_student=True,
        )
        db.add(user)
    _apply_sync(user, identity, profile, ultimate_admin, created)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = db.query(models.User).filter(models.User.firebase_uid == identity.uid).first()
        if existing is None:
            log_warning("user_sync_email_conflict", firebase_uid=identity.uid, email=identity.email)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email is already linked to another account",
            )
        # lost a race against a concurrent first sync for the same uid
        user = existing
        created = False
        _apply_sync(user, identity, profile, ultimate_admin, created)
        db.commit()

    db.refresh(user)
    log_event(
        "user_synced",
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        created=created,
    )
    return user


def _dev_bypass_user(token: str, db: Session) -> Optional[models.User]:
    if not settings.dev_bypass_token or token != settings.dev_bypass_token:
        return None
    if settings.is_production:
        return None
    if not settings.dev_bypass_email:
        raise _unauthorized("Unauthorized - User not found")
    user = db.query(models.User).filter(models.User.email == settings.dev_bypass_email).first()
    if user is None:
        raise _unauthorized("Unauthorized - User not found")
    log_warning("dev_bypass_token_used", user_id=user.id)
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> models.User:
    if credentials is None or (credentials.scheme or "").lower() != "bearer" or not credentials.credentials:
        raise _unauthorized("Unauthorized - No token provided")
    token = credentials.credentials

    bypass_user = _dev_bypass_user(token, db)
    if bypass_user is not None:
        return bypass_user

    identity = verify_identity_token(token, verifier)
    user = db.query(models.User).filter(models.User.firebase_uid == identity.uid).first()
    if user is None:
        raise _unauthorized("User not found")
    return user


def require_role(*roles: models.UserRole):
    allowed = frozenset(roles)

    def _guard(user: models.User = Depends(get_current_user)) -> models.User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden - Insufficient permissions",
            )
        return user

    return _guard


require_event_admin = require_role(models.UserRole.event_admin, models.UserRole.ultimate_admin)
require_ultimate_admin = require_role(models.UserRole.ultimate_admin)
