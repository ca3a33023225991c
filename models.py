from enum import Enum
from typing import Annotated, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt, StringConstraints


# largest quantity or stock a BSON int32 holds
MAX_QUANTITY = 2**31 - 1

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ProductState(str, Enum):
    """Lifecycle of a catalog entry; persisted as the `isDeleted` flag."""

    ACTIVE = "active"
    SOFT_DELETED = "soft_deleted"

    def soft_delete(self) -> "ProductState":
        if self is ProductState.SOFT_DELETED:
            raise ValueError("Product is already deleted")
        return ProductState.SOFT_DELETED

    @property
    def is_deleted(self) -> bool:
        return self is ProductState.SOFT_DELETED


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    image: Optional[str] = None
    price: float = Field(ge=0.01)  # السعر يجب أن يكون أكبر من صفر
    stock: int = Field(ge=0)  # الكمية لا يمكن أن تكون سالبة
    isDeleted: bool = False
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @property
    def state(self) -> ProductState:
        return ProductState.SOFT_DELETED if self.isDeleted else ProductState.ACTIVE


class ProductCreate(BaseModel):
    id: NonBlankStr
    name: NonBlankStr
    description: Optional[str] = None
    image: Optional[str] = None
    price: float = Field(ge=0.01, allow_inf_nan=False)
    stock: int = Field(ge=0, le=MAX_QUANTITY)


class ProductUpdate(BaseModel):
    """Partial update; range checks happen in the catalog so they map to ValidationError."""

    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = Field(None, allow_inf_nan=False)
    stock: Optional[int] = None


class CartLine(BaseModel):
    id: NonBlankStr
    name: NonBlankStr
    price: float = Field(gt=0, allow_inf_nan=False)
    quantity: StrictInt = Field(ge=1, le=MAX_QUANTITY)


class CheckoutRequest(BaseModel):
    cart: list = Field(default_factory=list)


class OrderItem(BaseModel):
    productId: str
    productName: str
    quantity: int = Field(ge=1)
    unitPrice: float
    saleDate: datetime
    checkoutId: str
    customerId: Optional[str] = None


class Shortfall(BaseModel):
    productId: str
    quantity: int
    reason: str  # not_found | deleted | insufficient_stock


class CheckoutResult(BaseModel):
    checkout_id: str
    order_ids: List[str]
    shortfalls: List[Shortfall] = Field(default_factory=list)

    @property
    def order_id(self) -> Optional[str]:
        return self.order_ids[0] if self.order_ids else None


class SalesReportLine(BaseModel):
    productId: str
    productName: str
    totalUnitsSold: int
    totalRevenue: float


class UserRegister(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AdminLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class Identity(BaseModel):
    id: str
    role: str  # customer | admin
    name: str
