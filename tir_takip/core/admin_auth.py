import logging
import secrets
from typing import Optional
from fastapi import Header
from tir_takip.config import settings
from tir_takip.core.exceptions import AdminAuthException

logger = logging.getLogger(__name__)


def verify_admin_key(provided: Optional[str], expected: str) -> bool:
    """Constant-time comparison of the provided key against the configured one."""
    if not provided:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_admin_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> None:
    """
    Gate for the admin routes.

    With ADMIN_API_KEY unset the gate is open and the service is expected to
    sit behind an authenticating proxy.

    Raises:
        AdminAuthException if the key is configured and the header is missing or wrong
    """
    expected = settings.ADMIN_API_KEY
    if not expected:
        return

    if not verify_admin_key(x_api_key, expected):
        raise AdminAuthException()


def log_admin_gate_status() -> None:
    if settings.ADMIN_API_KEY:
        logger.info("Admin API key gate enabled")
    else:
        logger.warning(
            "ADMIN_API_KEY is not set: admin endpoints are unauthenticated and must run "
            "behind an authenticating proxy"
        )
