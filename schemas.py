"""
Database Schemas for the Jewelry & Gemstone Store

Each stored model maps to a collection. The collection name is the lowercase
plural of the class name.

- Category -> "categories"
- Product -> "products"
- Cart -> "carts" (one document per session)
- Wishlist -> "wishlists" (one document per session)
- Order -> "orders"
- Inquiry -> "inquiries"
- BankDetails -> "bank_details" (single document)

Fields are snake_case in storage and camelCase on the wire.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Enums

class CategoryKind(str, Enum):
    RING = "ring"
    GEMSTONE = "gemstone"
    OTHER = "other"


class PurchaseType(str, Enum):
    LOOSE = "loose"
    MOUNTED = "mounted"


class JewelryType(str, Enum):
    RING = "Ring"
    PENDANT = "Pendant"
    ENGAGEMENT_RING = "Engagement Ring"
    OTHER = "Other"


class MetalType(str, Enum):
    GOLD_14K_YELLOW = "14K Gold – Yellow"
    GOLD_14K_WHITE = "14K Gold – White"
    GOLD_18K_YELLOW = "18K Gold – Yellow"
    GOLD_18K_WHITE = "18K Gold – White"
    GOLD_22K_YELLOW = "22K Gold – Yellow"
    GOLD_22K_WHITE = "22K Gold – White"
    SILVER = "Silver"
    PANCH_DHATU = "Panch Dhatu"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class InquiryStatus(str, Enum):
    NEW = "new"
    RESOLVED = "resolved"


MIN_RING_SIZE = 5
MAX_RING_SIZE = 30


# Catalog

class CategoryCreate(CamelModel):
    name: str = Field(..., description="Display name")
    slug: str = Field(..., description="URL slug")
    description: Optional[str] = Field(None, description="Category description")
    image: Optional[str] = Field(None, description="Image URL")
    kind: CategoryKind = Field(CategoryKind.OTHER, description="Which customization axes apply")


class CategoryUpdate(CamelModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    kind: Optional[CategoryKind] = None

    # omitted means unchanged; null is not a value for these fields
    @field_validator("name", "slug", "kind")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class Category(CategoryCreate):
    id: int
    product_count: int = 0


class ProductCreate(CamelModel):
    name: str = Field(..., description="Product name")
    price: float = Field(..., ge=0, description="Base price in USD")
    image: Optional[str] = Field(None, description="Image URL")
    hint: Optional[str] = Field(None, description="Short image hint")
    description: Optional[str] = Field(None, description="Product description")
    category_id: int = Field(..., description="Owning category id")
    sub_category: Optional[str] = None
    sub_heading: Optional[str] = Field(None, description='e.g. "Pure Diamond and Gold"')


class ProductUpdate(CamelModel):
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    hint: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    sub_category: Optional[str] = None
    sub_heading: Optional[str] = None

    @field_validator("name", "price", "category_id")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class Product(ProductCreate):
    id: int


# Customization and line items

class CustomizationSelection(CamelModel):
    purchase_type: PurchaseType = PurchaseType.LOOSE
    jewelry_type: Optional[JewelryType] = None
    metal_type: Optional[MetalType] = None
    ring_size: Optional[int] = Field(None, ge=MIN_RING_SIZE, le=MAX_RING_SIZE)


class ProductSnapshot(CamelModel):
    name: str
    image: Optional[str] = None
    hint: Optional[str] = None
    sub_heading: Optional[str] = None


class LineItem(CamelModel):
    key: str = Field(..., description="Composite product + customization key")
    product_id: int
    quantity: int = Field(1, ge=1)
    unit_price: float = Field(..., ge=0, description="Price snapshot in USD")
    customization: str = ""
    product: ProductSnapshot


class WishlistEntry(CamelModel):
    product_id: int
    price: float
    product: ProductSnapshot


class Cart(CamelModel):
    session_id: str
    items: List[LineItem] = []


class Wishlist(CamelModel):
    session_id: str
    items: List[WishlistEntry] = []


class CartView(Cart):
    item_count: int = 0
    total: float = 0.0
    display_total: float = 0.0


class AddToCart(CamelModel):
    product_id: int
    selection: CustomizationSelection = CustomizationSelection()


class QuantityUpdate(CamelModel):
    quantity: int


class AddToWishlist(CamelModel):
    product_id: int


class PriceQuote(CamelModel):
    product_id: int
    base_price: float
    price: float
    display_price: float
    customization: str = ""


# Orders

class OrderItem(CamelModel):
    product_id: int
    name: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    customization: str = ""


class CustomerDetails(CamelModel):
    customer_name: str
    customer_email: EmailStr
    customer_mobile: str
    customer_address: str
    city: Optional[str] = None
    zip_code: Optional[str] = None


class OrderCreate(CustomerDetails):
    total_amount: float = Field(..., ge=0)
    order_items: List[OrderItem] = Field(..., min_length=1)
    payment_receipt: Optional[str] = Field(None, description="Uploaded receipt URL")


class CheckoutRequest(CustomerDetails):
    session_id: str
    payment_receipt: Optional[str] = None


class Order(OrderCreate):
    id: int
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


# Inquiries and bank details

class InquiryCreate(CamelModel):
    name: str
    email: Optional[EmailStr] = None
    mobile: str
    message: str
    product_id: Optional[int] = None
    product_name: Optional[str] = None


class Inquiry(InquiryCreate):
    id: int
    status: InquiryStatus = InquiryStatus.NEW
    created_at: Optional[datetime] = None


class InquiryStatusUpdate(CamelModel):
    status: InquiryStatus


class BankDetails(CamelModel):
    account_holder: str = ""
    bank_name: str = ""
    account_number: str = ""
    ifsc_code: str = ""
    account_type: str = ""
    upi_id: str = ""
    qr_image_url: str = ""
    gst_details: Optional[str] = None
    gst_number: Optional[str] = Field(None, exclude=True, description="Legacy alias for gst_details")
