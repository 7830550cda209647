"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories.
Services are intentionally thin: they validate input, apply the few
domain rules (password hashing, the reply-approves rule) and persist via
repositories. Failures are raised as the exceptions below and turned
into HTTP responses by the controllers in `main`.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
import jwt
from . import models, repositories
from .config import settings

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
logger = logging.getLogger("repairdesk.services")


class DuplicateEmailError(Exception):
    """Raised when a signup uses an email that is already registered."""


class InvalidCredentialsError(Exception):
    """Raised for any failed login; never says which part was wrong."""


class NotFoundError(LookupError):
    """Raised when a referenced row does not exist."""


def issue_token(user_id: int, email: str, role: models.Role) -> str:
    """Return a signed JWT for the given identity.

    The token expires `JWT_EXPIRE_MINUTES` after issue and there is no
    refresh mechanism.
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload = {
        "id": user_id,
        "email": email,
        "role": models.Role(role).value,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class AuthService:
    """Signup and login."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def signup(self, email: str, name: Optional[str], password: str, contact: Optional[str] = None,
               address: Optional[str] = None, role: Optional[models.Role] = None):
        """Create a user with a hashed password and return `(user, token)`.

        Raises `DuplicateEmailError` if the email is taken, whether caught
        by the lookup or by the unique index on insert.
        """
        if self.user_repo.get_by_email(email):
            raise DuplicateEmailError(email)
        user = models.User(
            name=name,
            email=email,
            password=PWD_CTX.hash(password),
            contact=contact,
            address=address,
            role=role or models.Role.customer,
        )
        try:
            user = self.user_repo.create(user)
        except IntegrityError:
            self.session.rollback()
            raise DuplicateEmailError(email)
        logger.info("user_created id=%s role=%s", user.id, user.role.value)
        return user, issue_token(user.id, user.email, user.role)

    def login(self, email: str, password: str):
        """Verify credentials and return `(user, token)`.

        Unknown email and wrong password raise the same
        `InvalidCredentialsError`.
        """
        user = self.user_repo.get_by_email(email)
        if not user or not PWD_CTX.verify(password, user.password):
            logger.info("login_failed")
            raise InvalidCredentialsError()
        return user, issue_token(user.id, user.email, user.role)


class SupportService:
    """Customer repair requests and admin replies."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.SupportRequestRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def create(self, user_id: Optional[int], device: Optional[str], issue: Optional[str],
               scheduled: Optional[datetime]) -> models.SupportRequest:
        """Create a `Pending` request; every field must be present and non-empty."""
        if not user_id or not device or not issue or not scheduled:
            raise ValueError("All fields are required")
        if not self.user_repo.get(user_id):
            raise ValueError(f"user not found: {user_id}")
        request = models.SupportRequest(user_id=user_id, device=device, issue=issue, scheduled=scheduled)
        return self.repo.create(request)

    def list_all(self) -> List[models.SupportRequest]:
        return self.repo.list_all_with_user()

    def list_for_user(self, user_id: int) -> List[models.SupportRequest]:
        return self.repo.list_for_user(user_id)

    def reply(self, request_id: int, admin_message: Optional[str]) -> models.SupportRequest:
        """Store the admin reply and approve the request.

        Replying and approving are the same action: the request ends up
        `Approved` whatever its previous status.
        """
        request = self.repo.get(request_id)
        if not request:
            raise NotFoundError(f"support request not found: {request_id}")
        request = self.repo.reply(request, admin_message)
        logger.info("request_replied id=%s", request.id)
        return request


class PartsService:
    """Spare-parts inventory."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.SparePartRepository(session)

    @staticmethod
    def clean_name(name: Optional[str]) -> str:
        """Return the stripped part name or raise `ValueError` if it is blank."""
        if not name or not name.strip():
            raise ValueError("name is required")
        return name.strip()

    def create(self, name: str, stock: int, image: Optional[str] = None) -> models.SparePart:
        return self.repo.create(models.SparePart(name=self.clean_name(name), stock=stock, image=image))

    def list_all(self) -> List[models.SparePart]:
        return self.repo.list_all()

    def update_stock(self, part_id: int, stock: int) -> models.SparePart:
        """Overwrite stock with `stock` as given (negative values included)."""
        part = self.repo.get(part_id)
        if not part:
            raise NotFoundError(f"spare part not found: {part_id}")
        previous = part.stock
        part = self.repo.set_stock(part, stock)
        logger.info("stock_updated id=%s from=%s to=%s", part.id, previous, part.stock)
        return part
