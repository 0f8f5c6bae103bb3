"""Create or promote the configured admin account.

Usage: ``python -m storefront.seed`` with ADMIN_EMAIL and ADMIN_PASSWORD set.
"""
import logging
import sys

from storefront.config import Settings, settings as default_settings
from storefront.database import Database
from storefront.errors import NotFound
from storefront.services.identity import IdentityResolver

logger = logging.getLogger(__name__)


def ensure_admin(database: Database, email: str, password: str) -> int:
    with database.session() as db:
        identity = IdentityResolver(db)
        try:
            user = identity.get_user(email)
        except NotFound:
            user = identity.register(name="Administrator", mobile="-", email=email, password=password, is_admin=True)
            logger.info("Created admin account %s", user.email)
            return user.id

        if not user.is_admin:
            user.is_admin = True
            db.commit()
            logger.info("Granted admin flag to existing account %s", user.email)
        return user.id


def main(settings: Settings = default_settings) -> int:
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.error("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
        return 1

    database = Database(settings.DATABASE_URL)
    try:
        database.create_all()
        ensure_admin(database, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    finally:
        database.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
