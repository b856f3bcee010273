# app/services/identity.py
"""
Resolves the caller identity asserted by the upstream identity provider.

The provider (an authenticating gateway) verifies the session and forwards the
user id in the X-User-Id header. The resolved AuthenticatedUser is passed
explicitly into every service call; services never read request state.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.exceptions import AuthenticationRequired
from app.models.user import User
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    email: str


def resolve_user(db: Session, user_id: Optional[str]) -> AuthenticatedUser:
    if not user_id or not user_id.strip().isdigit():
        raise AuthenticationRequired()

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        logger.warning(f"Identity header references unknown user id={user_id}")
        raise AuthenticationRequired()
    if not user.email.lower().endswith("@" + settings.ALLOWED_EMAIL_DOMAIN.lower()):
        logger.warning(f"User id={user.id} is outside the institution domain")
        raise AuthenticationRequired()
    return AuthenticatedUser(id=user.id, email=user.email)


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    """FastAPI dependency. 401 unless the gateway asserted a known user."""
    return resolve_user(db, x_user_id)
