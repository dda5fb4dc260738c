"""
Shared secret for catalog maintenance endpoints (product seeding from the
catalog owner's tooling). Falls back to an insecure default with a warning
so local runs work without a .env file.
"""
import secrets
import warnings

from shared.config import settings

if settings.INTERNAL_API_KEY:
    INTERNAL_API_KEY: str = settings.INTERNAL_API_KEY
else:
    warnings.warn(
        "INTERNAL_API_KEY is not set. Using an insecure default. "
        "Set this env var in production!",
        stacklevel=2,
    )
    INTERNAL_API_KEY = "insecure-default-change-me"


def verify_api_key(provided_key: str | None) -> bool:
    """Constant-time comparison against the configured key."""
    if not provided_key:
        return False
    return secrets.compare_digest(str(provided_key), INTERNAL_API_KEY)
