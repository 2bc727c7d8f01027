"""
Request and response models for the HTTP surface.

Responses are built from ORM entities (``from_attributes``); password hashes
and reset tokens are never part of a response model.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _FromOrm(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------- Requests ----------
class SignupPayload(BaseModel):
    email: str
    password: str
    name: str = ""


class SigninPayload(BaseModel):
    email: str
    password: str


class RequestResetPayload(BaseModel):
    email: str


class ResetPasswordPayload(BaseModel):
    reset_token: str = Field(..., alias="resetToken")
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")

    model_config = ConfigDict(populate_by_name=True)


class ItemCreatePayload(BaseModel):
    title: str
    price: int
    description: str = ""
    image: Optional[str] = None
    large_image: Optional[str] = Field(None, alias="largeImage")

    model_config = ConfigDict(populate_by_name=True)


class ItemUpdatePayload(BaseModel):
    title: Optional[str] = None
    price: Optional[int] = None
    description: Optional[str] = None
    image: Optional[str] = None
    large_image: Optional[str] = Field(None, alias="largeImage")

    model_config = ConfigDict(populate_by_name=True)


class AddToCartPayload(BaseModel):
    item_id: int = Field(..., alias="itemId")

    model_config = ConfigDict(populate_by_name=True)


class CreateOrderPayload(BaseModel):
    token: str


class UpdatePermissionsPayload(BaseModel):
    permissions: List[str]


# ---------- Responses ----------
class UserOut(_FromOrm):
    id: int
    email: str
    name: str
    permissions: List[str]


class ItemOut(_FromOrm):
    id: int
    title: str
    description: str
    image: Optional[str] = None
    large_image: Optional[str] = None
    price: int
    user_id: int


class CartItemOut(_FromOrm):
    id: int
    quantity: int
    item: Optional[ItemOut] = None


class OrderItemOut(_FromOrm):
    id: int
    title: str
    description: str
    image: Optional[str] = None
    large_image: Optional[str] = None
    price: int
    quantity: int


class OrderOut(_FromOrm):
    id: int
    total: int
    charge: str
    user_id: int
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]


class MessageOut(BaseModel):
    message: str
