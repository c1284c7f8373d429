from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

NAME_PATTERN = r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ\s]+$"


class ClientIn(BaseModel):
    dni: str = Field(..., pattern=r"^\d{7,8}$")
    first_names: Optional[str] = Field(None, pattern=NAME_PATTERN)
    last_names: Optional[str] = Field(None, pattern=NAME_PATTERN)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=r"^\d+$")
    address: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None


class ClientOut(ClientIn):
    id: int


class LastQuotationOut(BaseModel):
    id: int
    plan_name: str
    created_at: datetime


class DniCheckOut(BaseModel):
    exists: bool
    quoted_by_me: Optional[bool] = None
    message: str
    client: Optional[ClientOut] = None
    last_quotation: Optional[LastQuotationOut] = None
