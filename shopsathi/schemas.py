from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def _alias(*names):
    return Field(None, validation_alias=AliasChoices(*names))


class Credentials(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    shop_name: Optional[str] = _alias("shopName", "shop_name")


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    shop_name: Optional[str] = None


class TokenOut(BaseModel):
    token: str
    user: UserOut


class Product(BaseModel):
    name: str
    size: Optional[str] = None
    color: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    purchase_price: Optional[Decimal] = Field(
        None, ge=0, decimal_places=2, validation_alias=AliasChoices("purchasePrice", "purchase_price"))
    quantity: int = 0
    category: Optional[str] = None
    subcategory: Optional[str] = None
    product_type: Optional[Literal["ready-made", "manufactured"]] = Field(
        None, validation_alias=AliasChoices("productType", "product_type"))


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    name: str
    size: Optional[str] = None
    color: Optional[str] = None
    price: float
    purchase_price: Optional[float] = 0
    quantity: int
    category: Optional[str] = None
    subcategory: Optional[str] = None
    product_type: Optional[str] = "ready-made"


class OrderLine(BaseModel):
    product_id: Optional[int] = _alias("productId", "product_id", "id")
    # left optional here: a line without a name fails at insert and rolls the sale back
    product_name: Optional[str] = _alias("productName", "product_name", "name")
    quantity: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0, decimal_places=2)


class OrderCreate(BaseModel):
    customer_name: Optional[str] = _alias("customerName", "customer_name")
    discount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    items: Optional[List[OrderLine]] = None


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: float


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: Optional[str] = Field(None, serialization_alias="customerName")
    total_amount: float = Field(..., serialization_alias="totalAmount")
    discount: float
    final_amount: float = Field(..., serialization_alias="finalAmount")
    created_at: datetime = Field(..., serialization_alias="createdAt")


class OrderDetailOut(OrderOut):
    items: List[OrderItemOut] = []


class Customer(BaseModel):
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    type: Optional[str] = None
    dues: Optional[Decimal] = Field(None, decimal_places=2)


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    type: Optional[str] = None
    dues: float = 0


class Purchase(BaseModel):
    supplier_name: Optional[str] = _alias("supplierName", "supplier_name")
    company_name: Optional[str] = _alias("companyName", "company_name")
    invoice_number: Optional[str] = _alias("invoiceNumber", "invoice_number")
    amount: Optional[Decimal] = Field(None, decimal_places=2)
    notes: Optional[str] = None
    has_bill_image: Optional[bool] = _alias("hasBillImage", "has_bill_image")
    date: Optional[datetime] = None


class PurchaseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    supplier_name: str = Field(..., serialization_alias="supplierName")
    company_name: Optional[str] = Field(None, serialization_alias="companyName")
    invoice_number: Optional[str] = Field(None, serialization_alias="invoiceNumber")
    amount: float
    notes: Optional[str] = None
    has_bill_image: bool = Field(False, serialization_alias="hasBillImage")
    created_at: datetime


class DashboardStats(BaseModel):
    totalSalesToday: float
    totalPendingDues: float
    lowStockItems: int
    totalCustomers: int


class SalesSummaryRow(BaseModel):
    product_name: str
    totalQty: int
    totalRevenue: float
    totalCost: float
    profit: float
