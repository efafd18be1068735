from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging

from app.core.permissions import CurrentUser, require_permission
from app.core.security import verify_access_token

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI
security = HTTPBearer(auto_error=False)


# =====================================================
# Get Current user
# =====================================================
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    Dependency that validates the bearer token and returns the caller.

    Raises:
        HTTPException 401: If token is invalid or missing
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"}
        )

    claims = verify_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        return CurrentUser.from_claims(**claims)
    except ValueError:
        logger.warning("Access token subject is not a valid user id")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"}
        )


# =====================================================
# Permission Dependency
# =====================================================
class RequirePermission:
    """
    `Depends(RequirePermission("quiz.edit"))` yields the caller when they hold
    the permission and fails with a 403 envelope otherwise.
    """

    def __init__(self, permission: str):
        self.permission = permission

    async def __call__(self, current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        require_permission(current_user, self.permission)
        return current_user
