import structlog
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from .jwt_handler import verify_access_token
from .api_key import verify_api_key

bearer_scheme = HTTPBearer(auto_error=False)

api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)

async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Resolves the caller id (the token's `sub`); customers and shop owners alike."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = verify_access_token(credentials.credentials)
    user_id = payload.get("sub") if payload else None
    if not user_id:
        raise credentials_exception

    # Downstream: rate limiting key, and every log line of this request
    request.state.user_id = user_id
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user_id

async def verify_internal_api_key(api_key: str | None = Depends(api_key_header)) -> bool:
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True
