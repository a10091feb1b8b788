"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, error mapping) lives here; every sub-router
imports what it needs from this package.
"""

import os
import logging

from fastapi import APIRouter, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from fieldlines.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
limiter = Limiter(key_func=get_remote_address)
if IS_TEST_ENV:

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()


# ---------------------------------------------------------------------------
# Shared error mapping
# ---------------------------------------------------------------------------
def domain_error(e: Exception, action: str) -> HTTPException:
    """
    Map a service exception to an HTTPException.

    NotFoundError -> 404, ConflictError -> 409, other ValueError (including
    InvalidTransitionError) -> 400, PermissionError -> 403, anything else is
    logged and becomes a 500 "Error <action>: <message>".
    """
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    logger.error(f"Error {action}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Error {action}: {str(e)}")


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from fieldlines.api.routes.auth import router as auth_router  # noqa: E402
from fieldlines.api.routes.users import router as users_router  # noqa: E402
from fieldlines.api.routes.sportsgrounds import router as sportsgrounds_router  # noqa: E402
from fieldlines.api.routes.templates import router as templates_router  # noqa: E402
from fieldlines.api.routes.configurations import router as configurations_router  # noqa: E402
from fieldlines.api.routes.editor import router as editor_router  # noqa: E402
from fieldlines.api.routes.bookings import router as bookings_router  # noqa: E402
from fieldlines.api.routes.admin import router as admin_router  # noqa: E402
from fieldlines.api.routes.settings import router as settings_router  # noqa: E402

router = APIRouter()
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(sportsgrounds_router)
router.include_router(templates_router)
router.include_router(configurations_router)
router.include_router(editor_router)
router.include_router(bookings_router)
router.include_router(admin_router)
router.include_router(settings_router)
