"""
Pydantic models for catalog, accounts, carts, orders, requests and responses.
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Prices and totals stay Decimal in Python and go over the wire as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ApiModel(BaseModel):
    """Base for models exposed over HTTP: camelCase on the wire, snake_case in Python and storage"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Size(str, Enum):
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


class Category(str, Enum):
    MEN = "Men"
    WOMEN = "Women"
    KIDS = "Kids"


class Role(str, Enum):
    ADMIN = "Admin"
    MEMBER = "Member"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# Catalog

class Product(ApiModel):
    """Catalog product"""
    id: str = Field(..., description="Product identifier")
    name: str
    description: str
    price: Money = Field(..., ge=0, description="Unit price")
    image: Optional[str] = None
    category: Category
    sizes: List[Size] = Field(default_factory=list, description="Sizes on offer")
    created_at: datetime = Field(default_factory=utcnow)


class PageMeta(ApiModel):
    total: int
    page: int
    limit: int
    total_pages: int


class ProductPage(ApiModel):
    products: List[Product]
    meta: PageMeta


# Accounts

class AccountIdentity(ApiModel):
    """Public view of an authenticated account"""
    id: str
    name: str
    email: str
    role: Role = Role.MEMBER


class Account(BaseModel):
    """Stored account record"""
    id: str
    name: str
    email: str
    password_hash: str
    role: Role = Role.MEMBER
    created_at: datetime = Field(default_factory=utcnow)

    def identity(self) -> AccountIdentity:
        return AccountIdentity(id=self.id, name=self.name, email=self.email, role=self.role)


# Cart

class CartOwner(BaseModel):
    """Cart owner: exactly one of an account id or a guest token"""
    model_config = ConfigDict(frozen=True)

    account_id: Optional[str] = None
    token: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_owner(self) -> "CartOwner":
        if bool(self.account_id) == bool(self.token):
            raise ValueError("Cart must be owned by exactly one of account_id or token")
        return self

    @property
    def identifier(self) -> str:
        return self.account_id or self.token


class CartItem(ApiModel):
    """Cart line item"""
    id: str = Field(..., description="Line item identifier")
    product_id: str = Field(..., description="Product identifier")
    size: Size
    quantity: int = Field(1, ge=1, description="Item quantity")


class Cart(ApiModel):
    """Shopping cart owned by an account or a guest token"""
    id: str
    account_id: Optional[str] = None
    token: Optional[str] = None
    items: List[CartItem] = Field(default_factory=list)
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _exactly_one_owner(self) -> "Cart":
        if bool(self.account_id) == bool(self.token):
            raise ValueError("Cart must be owned by exactly one of account_id or token")
        return self

    @property
    def owner(self) -> CartOwner:
        return CartOwner(account_id=self.account_id, token=self.token)

    def find_line(self, product_id: str, size: Size) -> Optional[CartItem]:
        return next(
            (item for item in self.items if item.product_id == product_id and item.size == size),
            None,
        )

    def find_item(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == item_id), None)


# Orders

class OrderItem(ApiModel):
    """Line item snapshot taken at checkout"""
    product_id: str
    name: str
    price: Money
    size: Size
    quantity: int


class ShippingInfo(ApiModel):
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None


class Order(ApiModel):
    """Completed purchase"""
    id: str
    account_id: str
    items: List[OrderItem]
    total: Money
    status: OrderStatus = OrderStatus.PENDING
    shipping: Optional[ShippingInfo] = None
    created_at: datetime = Field(default_factory=utcnow)


# Requests

class RegisterRequest(ApiModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    role: Role = Role.MEMBER

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class LoginRequest(ApiModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class AddItemRequest(ApiModel):
    """Request model for adding a cart item"""
    product_id: str = Field(..., description="Product identifier")
    size: Size
    quantity: int = Field(1, description="Quantity to add")


class UpdateItemRequest(ApiModel):
    """Request model for setting a cart item quantity"""
    item_id: str = Field(..., description="Line item identifier")
    quantity: int = Field(..., description="New item quantity")


class RemoveItemRequest(ApiModel):
    item_id: str = Field(..., description="Line item identifier")


class CheckoutRequest(ApiModel):
    shipping: Optional[ShippingInfo] = None


# Responses

T = TypeVar("T")


class SuccessResponse(ApiModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ErrorResponse(ApiModel):
    success: bool = False
    error: str
    message: str


class LoginResult(ApiModel):
    token: str
    user: AccountIdentity
