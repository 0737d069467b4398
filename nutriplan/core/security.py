from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from supabase import AuthApiError, Client
from supabase_auth.types import User

from nutriplan.core.errors import AccessDenied
from nutriplan.models.roles import Role, highest_role
from nutriplan.services.supabase_client import get_supabase
from nutriplan.tools import database_tools as store

# Bearer token from the Authorization header; clients log in at /token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme), db: Client = Depends(get_supabase)) -> User:
    """
    FastAPI dependency: validate the bearer token with Supabase Auth and
    return the authenticated user. Invalid or expired tokens get a 401.
    """
    try:
        response = db.auth.get_user(token)
    except AuthApiError:
        raise _unauthorized()

    if response is None or response.user is None:
        raise _unauthorized()
    return response.user


def current_role(
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
) -> Role:
    rows = store.list_roles(db, str(current_user.id))
    return highest_role(row.get("role") for row in rows)


def require_role(min_role: Role):
    """Dependency factory: the current user, provided their highest role is at least `min_role`."""

    def checker(
        current_user: User = Depends(get_current_user),
        role: Role = Depends(current_role),
    ) -> User:
        if not role.at_least(min_role):
            raise AccessDenied(f"This action requires the {min_role.value} role")
        return current_user

    return checker


def ensure_client_access(db: Client, nutritionist_id: str, role: Role, client_id: str) -> None:
    """Admins see every client; nutritionists only those actively assigned to them."""
    if role.at_least(Role.ADMIN):
        return
    if store.get_active_assignment(db, nutritionist_id, client_id) is None:
        raise AccessDenied("Client is not assigned to you")
