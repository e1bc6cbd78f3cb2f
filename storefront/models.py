# storefront/models.py
"""
Row and payload models for the tables the BaaS owns.

Read models ignore unknown columns so schema additions on the service side
don't break reads. Write payloads forbid unknown fields, which is also what
keeps derived columns (final_price) and role out of general updates.
"""
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

Role = Literal["user", "moderator", "admin"]
ROLES = ("user", "moderator", "admin")

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

T = TypeVar("T")


def compute_final_price(price: Optional[float], discount: Optional[float]) -> float:
    return (price or 0) * (1 - (discount or 0) / 100)


class Row(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class Page(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    total_pages: int
    current_page: int


# ---------------------------
# Products
# ---------------------------
class Product(Row):
    name: Optional[str] = None
    slug: Optional[str] = None
    details: Optional[str] = None
    price: Optional[float] = None
    discount: float = 0
    trending: bool = False
    number_of_people_bought: int = 0
    category_id: Optional[str] = None
    inventory: int = 0
    sku: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_published: bool = False
    rating: float = 0
    number_of_reviews: int = 0
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    @computed_field
    @property
    def final_price(self) -> float:
        return compute_final_price(self.price, self.discount)

    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0] if self.images else None


class ProductIn(Payload):
    name: str = Field(..., min_length=3)
    slug: str = Field(..., min_length=3, pattern=SLUG_PATTERN)
    details: str = Field(..., min_length=10)
    price: float = Field(..., gt=0)
    discount: float = Field(0, ge=0, le=100)
    trending: bool = False
    category_id: str = Field(..., min_length=1)
    inventory: int = Field(0, ge=0)
    sku: str = Field(..., min_length=3)
    images: List[str] = Field(..., min_length=1)
    is_published: bool = False
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class ProductPatch(Payload):
    name: Optional[str] = Field(None, min_length=3)
    slug: Optional[str] = Field(None, min_length=3, pattern=SLUG_PATTERN)
    details: Optional[str] = Field(None, min_length=10)
    price: Optional[float] = Field(None, gt=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    trending: Optional[bool] = None
    category_id: Optional[str] = Field(None, min_length=1)
    inventory: Optional[int] = Field(None, ge=0)
    sku: Optional[str] = Field(None, min_length=3)
    images: Optional[List[str]] = Field(None, min_length=1)
    is_published: Optional[bool] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class ProductDetails(Product):
    category: Optional["Category"] = None


# ---------------------------
# Categories
# ---------------------------
class Category(Row):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    parent_category_id: Optional[str] = None
    image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class CategoryTreeNode(Category):
    subcategories: List[Category] = Field(default_factory=list)


class CategoryIn(Payload):
    name: str = Field(..., min_length=2)
    slug: str = Field(..., min_length=2, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    parent_category_id: Optional[str] = None
    image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class CategoryPatch(Payload):
    name: Optional[str] = Field(None, min_length=2)
    slug: Optional[str] = Field(None, min_length=2, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    parent_category_id: Optional[str] = None
    image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


# ---------------------------
# Users, cart, wishlist
# ---------------------------
class CartItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str  # product id
    name: Optional[str] = None
    price: float = 0
    final_price: float = 0  # snapshot at the time it was added
    quantity: int = Field(1, ge=1)
    image: Optional[str] = None


class User(Row):
    clerk_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    primary_email_address_id: Optional[str] = None
    phone: Optional[str] = None
    default_address: Optional[str] = None
    shipping_addresses: List[Any] = Field(default_factory=list)
    billing_addresses: List[Any] = Field(default_factory=list)
    cart_products: List[CartItem] = Field(default_factory=list)
    wishlist_products: List[str] = Field(default_factory=list)
    role: Role = "user"
    is_active: bool = True
    last_login_at: Optional[str] = None


class UserIn(Payload):
    clerk_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None
    primary_email_address_id: Optional[str] = None
    role: Role = "user"


class UserPatch(Payload):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    phone: Optional[str] = None
    default_address: Optional[str] = None
    shipping_addresses: Optional[List[Any]] = None
    billing_addresses: Optional[List[Any]] = None


class CartAdd(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CartRemove(BaseModel):
    product_id: str
    quantity: Optional[int] = Field(None, ge=1)


class WishlistChange(BaseModel):
    product_id: str


class SetRoleIn(BaseModel):
    targetUserId: str = Field(..., min_length=1)
    role: Role


# ---------------------------
# Orders
# ---------------------------
class Order(Row):
    user_id: str
    order_number: Optional[str] = None
    order_date: Optional[str] = None
    shipping_address: Any = None
    billing_address: Any = None
    total_amount: float = 0
    shipping_cost: float = 0
    tax_amount: float = 0
    discount_applied: float = 0
    payment_status: Optional[str] = None
    shipping_status: Optional[str] = None
    tracking_number: Optional[str] = None


class OrderItem(Row):
    order_id: str
    product_id: str
    product_name: Optional[str] = None
    quantity: Optional[int] = None
    unit_price: Optional[float] = None
    discount_applied: float = 0
    total_price: Optional[float] = None


class OrderWithItems(Order):
    items: List[OrderItem] = Field(default_factory=list)


class OrderIn(Payload):
    user_id: str
    shipping_address: Any = None
    billing_address: Any = None
    total_amount: float = Field(..., ge=0)
    shipping_cost: float = Field(0, ge=0)
    tax_amount: float = Field(0, ge=0)
    discount_applied: float = Field(0, ge=0)
    payment_status: Optional[str] = "pending"
    shipping_status: Optional[str] = "processing"

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class OrderItemIn(Payload):
    product_id: str
    product_name: Optional[str] = None
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    discount_applied: float = Field(0, ge=0)
    total_price: float = Field(..., ge=0)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class OrderStatusUpdate(Payload):
    payment_status: Optional[str] = None
    shipping_status: Optional[str] = None
    tracking_number: Optional[str] = None


class CheckoutIn(BaseModel):
    shipping_address: Any = None
    billing_address: Any = None
    shipping_cost: float = Field(0, ge=0)


class AdminStats(BaseModel):
    total_products: int
    total_users: int
    total_orders: int
    total_revenue: float


# ---------------------------
# Store
# ---------------------------
class FooterLink(BaseModel):
    title: str = ""
    url: str = ""
    category: Optional[str] = None


class Store(Row):
    logo: Optional[str] = None
    name: Optional[str] = None
    tagline: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    pages: List[Any] = Field(default_factory=list)
    social_links: Dict[str, Any] = Field(default_factory=dict)
    featuredimages: List[str] = Field(default_factory=list)
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    default_currency: str = "USD"
    tax_rate: float = 0
    shipping_policy: Optional[str] = None
    return_policy: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    footer_links: List[FooterLink] = Field(default_factory=list)
    address: Optional[str] = None
    newsletter_enabled: bool = False


class StorePatch(Payload):
    logo: Optional[str] = None
    name: Optional[str] = None
    tagline: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    pages: Optional[List[Any]] = None
    social_links: Optional[Dict[str, Any]] = None
    featuredimages: Optional[List[str]] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    default_currency: Optional[str] = None
    tax_rate: Optional[float] = Field(None, ge=0)
    shipping_policy: Optional[str] = None
    return_policy: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    footer_links: Optional[List[FooterLink]] = None
    address: Optional[str] = None
    newsletter_enabled: Optional[bool] = None


class FooterSettings(Payload):
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    social_links: Dict[str, Any] = Field(default_factory=dict)
    footer_links: List[FooterLink] = Field(default_factory=list)
    newsletter_enabled: bool = False

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


ProductDetails.model_rebuild()
