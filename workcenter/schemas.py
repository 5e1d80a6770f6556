from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class LoginIn(BaseModel):
    username: str
    password: str


class InitialsIn(BaseModel):
    initials: str = ""


class LineItemIn(BaseModel):
    product_id: int
    qty: int
    override_unit_price: Optional[Decimal] = None


class OrderCreate(BaseModel):
    customer_id: int
    line_items: List[LineItemIn] = []


class AttachmentCreate(BaseModel):
    label: str = ""
    url: str = ""
    initials: str = ""
    note: Optional[str] = None


class VersionCreate(BaseModel):
    url: str = ""
    initials: str = ""
    note: Optional[str] = None


class CustomerIn(BaseModel):
    name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    shipping_address: str = ""


class ProductIn(BaseModel):
    name: str = ""
    price: Decimal
    status: Optional[str] = None


class ProductStatusIn(BaseModel):
    status: Optional[str] = None


class UserCreate(BaseModel):
    username: str = ""
    password: str = ""
    role: str = "STANDARD"
    name: Optional[str] = None


class UserStatusIn(BaseModel):
    status: str = ""
    initials: str = ""


class UserRoleIn(BaseModel):
    role: str = ""
    initials: str = ""


class PasswordIn(BaseModel):
    password: str = ""


class CompanyNameIn(BaseModel):
    company_name: str = ""
    initials: str = ""
