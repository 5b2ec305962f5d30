"""Pydantic resources exchanged over HTTP."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chocan.models import MemberStatus, TransactionStatus

MAX_ENTITY_NUMBER = 999_999_999
MAX_SERVICE_CODE = 999_999


class TransactionResource(BaseModel):
    """Terminal submission. Accepts snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    provider_number: int = Field(ge=1, le=MAX_ENTITY_NUMBER)
    member_number: int = Field(ge=1, le=MAX_ENTITY_NUMBER)
    service_code: int = Field(ge=1, le=MAX_SERVICE_CODE)
    service_date: date
    service_comment: str = Field(default="", max_length=100)


class SubmissionResponse(BaseModel):
    status: str
    reason: str | None = None


class TerminalMember(BaseModel):
    id: int
    status: MemberStatus


class TerminalProvider(BaseModel):
    id: int
    name: str


class TerminalService(BaseModel):
    id: int
    name: str
    cost: Decimal


class _ContactFields(BaseModel):
    name: str = Field(min_length=1, max_length=25)
    email: str = Field(default="", max_length=100)
    street_address: str = Field(default="", max_length=100)
    city: str = Field(default="", max_length=50)
    state: str = Field(default="", max_length=20)
    zip_code: int = Field(default=0, ge=0, le=99999)


class MemberCreate(_ContactFields):
    status: MemberStatus = MemberStatus.ACTIVE


class MemberUpdate(MemberCreate):
    version: int = Field(ge=0)


class MemberRead(MemberCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    version: int


class ProviderCreate(_ContactFields):
    pass


class ProviderUpdate(ProviderCreate):
    version: int = Field(ge=0)


class ProviderRead(ProviderCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    version: int


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=25)
    cost: Decimal = Field(default=Decimal("0.00"), ge=0, le=Decimal("999.99"), decimal_places=2)


class ProductUpdate(ProductCreate):
    version: int = Field(ge=0)


class ProductRead(ProductCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    version: int


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider_id: int
    member_id: int
    product_id: int
    product_cost: Decimal
    service_date: date
    service_comment: str
    status: TransactionStatus
    created: datetime | None = None


class HealthResponse(BaseModel):
    status: str
    store: str
    counts: dict[str, int] | None = None
