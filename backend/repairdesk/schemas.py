"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and are the only place a
database row is turned into JSON, so sensitive columns (the password
hash) never leave the service. Field names are camelCase on the wire
and snake_case in Python; request bodies accept either.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from .models import Role, RequestStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SignupIn(CamelModel):
    """Payload for `POST /user`."""
    email: str
    name: Optional[str] = None
    password: str
    contact: Optional[str] = None
    address: Optional[str] = None
    role: Optional[Role] = None


class LoginIn(CamelModel):
    """Payload for `POST /login`."""
    email: str
    password: str


class UserOut(CamelModel):
    """Public view of a `User`; no password hash."""
    id: int
    name: Optional[str] = None
    email: str
    contact: Optional[str] = None
    address: Optional[str] = None
    role: Role


class AuthOut(BaseModel):
    """Signup/login response: a status message, a bearer token and the user."""
    message: str
    token: str
    data: UserOut


class RepairRequestIn(CamelModel):
    """Payload for `POST /api/repair`.

    Fields are optional here so that a missing field is reported by the
    service as a single `All fields are required` error.
    """
    user_id: Optional[int] = None
    device: Optional[str] = None
    issue: Optional[str] = None
    scheduled: Optional[datetime] = None


class ReplyIn(CamelModel):
    """Payload for `PUT /api/repair/{id}/reply`."""
    admin_message: Optional[str] = None


class SupportRequestOut(CamelModel):
    id: int
    user_id: int
    device: str
    issue: str
    scheduled: datetime
    admin_message: Optional[str] = None
    status: RequestStatus
    created_at: datetime


class SupportRequestWithUser(SupportRequestOut):
    """Admin listing row with the owning user embedded."""
    user: Optional[UserOut] = None


class StockUpdateIn(CamelModel):
    """Payload for `PUT /api/parts/{id}`; any integer is accepted."""
    stock: int


class SparePartOut(CamelModel):
    id: int
    name: str
    stock: int
    image: Optional[str] = None
