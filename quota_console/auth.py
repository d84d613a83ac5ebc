from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from quota_console.constants import ROLE_ADMIN_USER
from quota_console.database import get_db
from quota_console.models import User
from quota_console.services.user_service import UserService

# Each user authenticates with the access token issued at creation
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def get_current_user(
    api_key: str = Security(api_key_header),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the API key to an enabled user"""
    user = UserService(db).authenticate(api_key)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user, but only admins and root pass"""
    if (user.role or 0) < ROLE_ADMIN_USER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return user
