"""
Database Schemas for the storefront

Each Pydantic model correlates to a MongoDB collection. The collection name is the lowercase of the class name.
- User -> "user"
- Address -> "address"
- Product -> "product"
- Category -> "category"
- Order -> "order"
- Blog -> "blog"
- Banner -> "banner"
- Service -> "service"

Request payload models live at the bottom of the file.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed"]
BannerType = Literal["hero", "promo", "category"]
Catalogue = Literal["flash-deals", "just-for-you", "new-arrivals", "featured-grid"]


class User(BaseModel):
    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")
    email: EmailStr = Field(..., description="Email address, unique")
    password_hash: Optional[str] = Field(None, description="BCrypt password hash")
    role: Literal["user", "admin"] = Field("user", description="Access role")
    phone: Optional[str] = None
    is_active: bool = Field(True, description="Deactivated accounts cannot sign in")
    login_attempts: int = Field(0, ge=0, description="Consecutive failed password checks")
    lock_until: Optional[datetime] = Field(None, description="Sign-in barred until this time")
    last_login: Optional[datetime] = None
    addresses: List[str] = Field(default_factory=list, description="Saved address ids")
    google_id: Optional[str] = Field(None, description="Social login identifier")
    is_email_verified: bool = False
    email_verification_token: Optional[str] = None
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None


class Address(BaseModel):
    user_id: Optional[str] = Field(None, description="Owning account")
    name: str
    email: EmailStr
    contact: str
    address: str
    state: str
    country: str


class Product(BaseModel):
    title: str = Field(..., max_length=200, description="Product title, unique")
    slug: str = Field(..., description="URL slug derived from the title")
    description: str = Field("", description="Product description")
    summary: str = Field("", max_length=500)
    brand: Optional[str] = None
    price: float = Field(..., ge=0, description="List price")
    discount: float = Field(0, ge=0, le=100, description="Discount percentage")
    size: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    thumbnail: str = Field("", description="Thumbnail URL")
    images: List[str] = Field(default_factory=list, description="Image URLs")
    category: str = Field(..., description="Category name")
    tags: List[str] = Field(default_factory=list)
    stock: int = Field(5000, ge=0, description="Units in stock")
    rating: float = Field(0, ge=0, le=5, description="Average rating")
    catalogue: Optional[Catalogue] = Field(None, description="Homepage placement")
    is_featured: bool = False
    views: int = Field(0, ge=0)
    is_active: bool = True


class Category(BaseModel):
    name: str = Field(..., max_length=100)
    is_featured: bool = True


class ProductSnapshot(BaseModel):
    """Product display fields frozen into an order line at purchase time."""

    title: str
    slug: str
    thumbnail: str = ""
    price: float
    discount: float = 0
    category: str


class OrderItem(BaseModel):
    product_id: str
    product_snapshot: ProductSnapshot
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price after discount")
    subtotal: float = Field(..., ge=0)


class ShippingAddress(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    contact: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class Order(BaseModel):
    order_number: str
    user_id: Optional[str] = Field(None, description="Owning account, None for guests")
    items: List[OrderItem]
    shipping_address: ShippingAddress
    subtotal: float = Field(..., ge=0)
    tax: float = Field(0, ge=0)
    shipping_cost: float = Field(0, ge=0)
    total: float = Field(..., ge=0)
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    invoice_sent: bool = False
    invoice_sent_at: Optional[datetime] = None


class Blog(BaseModel):
    title: str = Field(..., max_length=200)
    slug: str
    description: str = Field(..., max_length=500)
    content: str = ""
    thumbnail_url: str = ""
    cover_img_url: str = ""
    author: Optional[str] = Field(None, description="Author account id")
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    views: int = 0
    is_published: bool = True
    read_time: int = 5


class Banner(BaseModel):
    title: str = Field(..., max_length=100)
    description: str = ""
    img_url: str = ""
    button_text: Optional[str] = None
    button_link: Optional[str] = None
    type: BannerType = "hero"
    order: int = 0
    is_active: bool = True
    click_count: int = 0


class Service(BaseModel):
    icon: str
    title: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    position: int = 0
    is_active: bool = True


# Request models

class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    password: str


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class UpdateProfileRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None


class CartLine(BaseModel):
    product_id: Optional[str] = None
    slug: Optional[str] = None
    quantity: int = Field(1, ge=1)

    @model_validator(mode="after")
    def one_reference(self):
        if bool(self.product_id) == bool(self.slug):
            raise ValueError("Each item needs exactly one of product_id or slug")
        return self

    @property
    def reference(self) -> str:
        return self.product_id or self.slug


class PlaceOrderRequest(BaseModel):
    items: List[CartLine] = Field(default_factory=list)
    shipping_address: Optional[ShippingAddress] = None


class StatusUpdate(BaseModel):
    status: OrderStatus


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class ProductPayload(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    summary: str = Field("", max_length=500)
    brand: Optional[str] = None
    price: float = Field(..., ge=0)
    discount: float = Field(0, ge=0, le=100)
    size: Optional[str] = None
    colors: List[str] = []
    thumbnail: str = ""
    images: List[str] = []
    category: str
    tags: List[str] = []
    stock: int = Field(5000, ge=0)
    rating: float = Field(0, ge=0, le=5)
    catalogue: Optional[Catalogue] = None
    is_featured: bool = False
    is_active: bool = True


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    summary: Optional[str] = Field(None, max_length=500)
    brand: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    size: Optional[str] = None
    colors: Optional[List[str]] = None
    thumbnail: Optional[str] = None
    images: Optional[List[str]] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    catalogue: Optional[Catalogue] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None


class CategoryPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    is_featured: bool


class BlogPayload(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=500)
    content: str = ""
    thumbnail_url: str = ""
    cover_img_url: str = ""
    category: Optional[str] = None
    tags: List[str] = []
    is_published: bool = True
    read_time: int = 5


class BlogUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    thumbnail_url: Optional[str] = None
    cover_img_url: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None
    read_time: Optional[int] = None


class BannerPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    img_url: str = ""
    button_text: Optional[str] = None
    button_link: Optional[str] = None
    type: BannerType = "hero"
    order: int = 0


class BannerUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    img_url: Optional[str] = None
    button_text: Optional[str] = None
    button_link: Optional[str] = None
    type: Optional[BannerType] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


class ServicePayload(BaseModel):
    icon: str
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    position: int = 0
    is_active: bool = True


class ServiceUpdate(BaseModel):
    icon: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    position: Optional[int] = None
    is_active: Optional[bool] = None
