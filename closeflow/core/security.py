from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from jose import jwt, JWTError

from closeflow.core.config import settings


def create_access_token(subject: str, expires_minutes: int | None = None, **claims: Any) -> str:
    """Mint a token the way the identity provider does (used by tests and local tooling)"""
    expire_minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "type": "access",
        "iat": datetime.now(timezone.utc),
        **claims,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict[str, Any]]:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


@dataclass(frozen=True)
class Identity:
    """Caller as asserted by the identity provider's token"""
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
