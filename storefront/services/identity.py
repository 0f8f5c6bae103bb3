# storefront/services/identity.py
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.errors import DuplicateEmail, InvalidCredential, InvalidInput, NotFound
from storefront.models.users import User
from storefront.utils.hashing import get_password_hash, verify_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityResolver:
    """Maps an email to a user; every cart and order operation starts here."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, email: str) -> User:
        normalized = normalize_email(email)
        user = self.db.query(User).filter(func.lower(User.email) == normalized).first()
        if user is None:
            raise NotFound("User not found")
        return user

    def resolve(self, email: str) -> int:
        return self.get_user(email).id

    def register(self, name: str, mobile: str, email: str, password: str, is_admin: bool = False) -> User:
        fields = {"name": name, "mobile": mobile, "email": email, "password": password}
        missing = [k for k, v in fields.items() if not v or not str(v).strip()]
        if missing:
            raise InvalidInput(f"All fields required (missing: {', '.join(missing)})")

        normalized = normalize_email(email)
        if self.db.query(User).filter(func.lower(User.email) == normalized).first():
            raise DuplicateEmail("Email already registered")

        user = User(
            name=name.strip(),
            mobile=mobile.strip(),
            email=normalized,
            password_hash=get_password_hash(password),
            is_admin=is_admin,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            self.db.rollback()
            raise DuplicateEmail("Email already registered")
        self.db.refresh(user)

        logger.info("Registered user id=%s email=%s", user.id, user.email)
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.get_user(email)
        if not verify_password(password or "", user.password_hash):
            raise InvalidCredential("Invalid password")
        return user
