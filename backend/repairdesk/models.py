"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
"""

from enum import Enum
from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone


class Role(str, Enum):
    """Access role carried by every user and every issued token."""
    customer = "customer"
    admin = "admin"


class RequestStatus(str, Enum):
    """Lifecycle of a support request: Pending -> Approved, one way."""
    pending = "Pending"
    approved = "Approved"


class User(SQLModel, table=True):
    """A registered shop user.

    Fields:
    - `email`: unique login name
    - `password`: salted password hash (never store plaintext)
    - `role`: `customer` unless stated otherwise at signup
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: Optional[str] = None
    email: str = Field(index=True, nullable=False, unique=True)
    password: str
    contact: Optional[str] = None
    address: Optional[str] = None
    role: Role = Field(default=Role.customer)
    requests: List['SupportRequest'] = Relationship(back_populates='user')


class SupportRequest(SQLModel, table=True):
    """A customer-submitted repair ticket.

    `admin_message` and `status` are only changed together by an admin
    reply.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    device: str
    issue: str
    scheduled: datetime
    admin_message: Optional[str] = None
    status: RequestStatus = Field(default=RequestStatus.pending)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user: Optional[User] = Relationship(back_populates='requests')


class SparePart(SQLModel, table=True):
    """An inventory item; `image` is a public path under `/uploads`."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    stock: int = 0
    image: Optional[str] = None
