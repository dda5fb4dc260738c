"""
Bearer tokens are issued by the identity service; this side only needs to
verify them and read the caller id from `sub`. create_access_token exists
for tooling and tests.
"""
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt

from shared.config import settings

if not settings.JWT_SECRET_KEY:
    raise ValueError("FATAL ERROR: JWT_SECRET_KEY is not set in the environment!")


def create_access_token(subject: str, expires_delta: timedelta | None = None, **claims) -> str:
    """Creates a JWT for `subject` with a UTC expiration."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {**claims, "sub": str(subject), "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def verify_access_token(token: str) -> dict | None:
    """Decodes and verifies the JWT. Returns payload if valid, None if invalid/expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
