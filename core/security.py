# core/security.py
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import Session

from core.database import get_session
from core.config import settings
from core.errors import ForbiddenError, UnauthorizedError
from models.models import User, UserRole, utcnow


# ========================================
# 🔑 JWT / APP CONFIG
# ========================================
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM or "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass(frozen=True)
class IdentityContext:
    """What the identity provider vouches for on every call."""

    user_id: int
    role: str

    @property
    def is_teamlead(self) -> bool:
        return self.role == UserRole.TEAMLEAD.value


# ========================================
# 🔑 Token Helpers
# ========================================
def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token; used by the seed script and the test-suite."""
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode JWT and return payload."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )


# ========================================
# 👤 Identity & Role Checks
# ========================================
def get_identity(token: str = Depends(oauth2_scheme)) -> IdentityContext:
    payload = decode_token(token)
    user_id = payload.get("user_id")
    role = payload.get("role")

    if user_id is None or not role:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    return IdentityContext(user_id=int(user_id), role=role)


def get_current_user(
    identity: IdentityContext = Depends(get_identity),
    session: Session = Depends(get_session),
) -> User:
    """Load the acting user's record; blocked accounts are refused."""
    user = session.get(User, identity.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if user.blocked:
        raise HTTPException(status_code=403, detail="Account is blocked")
    return user


def require_teamlead(identity: IdentityContext = Depends(get_identity)) -> IdentityContext:
    """Global capability check ahead of workspace creation and admin actions."""
    if not identity.is_teamlead:
        raise UnauthorizedError("Unauthorized! not a teamlead")
    return identity


def get_current_admin(identity: IdentityContext = Depends(get_identity)) -> IdentityContext:
    """Platform administrator (freeze, dashboard)."""
    if identity.role != UserRole.ADMIN.value:
        raise ForbiddenError("Admin privileges required")
    return identity


# ========================================
# 🔄 Token Utility
# ========================================
def create_token_for_user(user: User) -> str:
    return create_access_token({"sub": user.email, "user_id": user.id, "role": user.role})
