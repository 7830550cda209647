"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (users, support
requests, spare parts). Repositories return SQLModel objects and perform
commits/refreshes where appropriate; every write is a single statement.
"""

from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy.orm import selectinload
from . import models


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)


class SupportRequestRepository:
    """Persistence for `SupportRequest` rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, request: models.SupportRequest) -> models.SupportRequest:
        self.session.add(request)
        self.session.commit()
        self.session.refresh(request)
        return request

    def get(self, request_id: int) -> Optional[models.SupportRequest]:
        return self.session.get(models.SupportRequest, request_id)

    def list_all_with_user(self) -> List[models.SupportRequest]:
        """Return every request with its owning user eagerly loaded."""
        stmt = (
            select(models.SupportRequest)
            .options(selectinload(models.SupportRequest.user))
            .order_by(models.SupportRequest.id)
        )
        return self.session.exec(stmt).all()

    def list_for_user(self, user_id: int) -> List[models.SupportRequest]:
        """Return requests owned by `user_id`, newest first."""
        stmt = (
            select(models.SupportRequest)
            .where(models.SupportRequest.user_id == user_id)
            .order_by(models.SupportRequest.created_at.desc(), models.SupportRequest.id.desc())
        )
        return self.session.exec(stmt).all()

    def reply(self, request: models.SupportRequest, admin_message: Optional[str]) -> models.SupportRequest:
        """Set the admin message and approve the request in one commit."""
        request.admin_message = admin_message
        request.status = models.RequestStatus.approved
        self.session.add(request)
        self.session.commit()
        self.session.refresh(request)
        return request


class SparePartRepository:
    """CRUD operations for `SparePart` inventory rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, part: models.SparePart) -> models.SparePart:
        self.session.add(part)
        self.session.commit()
        self.session.refresh(part)
        return part

    def get(self, part_id: int) -> Optional[models.SparePart]:
        return self.session.get(models.SparePart, part_id)

    def list_all(self) -> List[models.SparePart]:
        stmt = select(models.SparePart).order_by(models.SparePart.id)
        return self.session.exec(stmt).all()

    def set_stock(self, part: models.SparePart, stock: int) -> models.SparePart:
        """Overwrite the stock value; no bounds are enforced."""
        part.stock = stock
        self.session.add(part)
        self.session.commit()
        self.session.refresh(part)
        return part
