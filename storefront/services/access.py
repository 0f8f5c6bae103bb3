# storefront/services/access.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from storefront.config import Settings
from storefront.errors import NotFound, PermissionDenied, Unauthorized
from storefront.models.users import User
from storefront.services.identity import IdentityResolver
from storefront.utils.tokenJWT import decode_access_token

logger = logging.getLogger(__name__)


class AccessGuard:
    """
    Gatekeeping for the HTTP boundary and the order ledger:
    - require_authenticated: a valid session credential is present
    - require_admin: the actor exists and carries the admin flag
    """

    def __init__(self, db: Session, settings: Settings):
        self.identity = IdentityResolver(db)
        self.settings = settings

    def require_authenticated(self, session: Optional[str]) -> str:
        return decode_access_token(session, self.settings)

    def current_user(self, session: Optional[str]) -> User:
        email = self.require_authenticated(session)
        try:
            return self.identity.get_user(email)
        except NotFound:
            # Token outlived its account
            raise Unauthorized("Could not validate credentials")

    def require_admin(self, actor_email: str) -> int:
        try:
            user = self.identity.get_user(actor_email)
        except NotFound:
            raise PermissionDenied("Admin access required")
        if not user.is_admin:
            logger.warning("Non-admin user id=%s attempted an admin action", user.id)
            raise PermissionDenied("Admin access required")
        return user.id
