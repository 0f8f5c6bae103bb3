# storefront/dependencies.py
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from storefront.config import Settings
from storefront.database import get_db
from storefront.models.users import User
from storefront.services.access import AccessGuard

# Bearer header is optional: the cookie set at login works too
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request):
    return request.app.state.gateway


def get_access_guard(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> AccessGuard:
    return AccessGuard(db, settings)


# Pull the session credential from the Authorization header or the session cookie
def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


# Retrieve the currently authenticated user based on the session credential
def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    guard: AccessGuard = Depends(get_access_guard),
) -> User:
    return guard.current_user(token)


# Same as get_current_user, but only admins get through
def admin_required(
    current_user: User = Depends(get_current_user),
    guard: AccessGuard = Depends(get_access_guard),
) -> User:
    guard.require_admin(current_user.email)
    return current_user
