"""Order domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...models import Order
from ...shared.pagination import PaginationMeta
from ...shared.validators import split_csv

OrderStatus = Literal["pending", "in-progress", "ready-for-pickup", "completed", "cancelled"]
PaymentStatus = Literal["unpaid", "paid", "failed", "refunded"]
OrderType = Literal["Online", "InPerson"]


class StyleInput(BaseModel):
    """A catalog style (styleId) or a custom one described inline"""

    styleId: Optional[int] = None
    title: Optional[str] = Field(None, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    yardsRequired: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    recommendedMaterials: list[str] = []

    @field_validator("recommendedMaterials", mode="before")
    @classmethod
    def split_materials(cls, v):
        return split_csv(v)

    @model_validator(mode="after")
    def require_custom_fields(self):
        if self.styleId is None:
            missing = [
                name
                for name in ("title", "price", "yardsRequired")
                if getattr(self, name) in (None, "")
            ]
            if missing:
                raise ValueError(
                    f"Custom styles need {', '.join(missing)} (or pass a styleId)"
                )
        return self


class MaterialInput(BaseModel):
    """A catalog fabric (fabricId) or a customer-supplied material"""

    fabricId: Optional[int] = None
    name: Optional[str] = Field(None, max_length=255)
    type: Optional[str] = Field(None, max_length=100)
    pricePerYard: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None

    @model_validator(mode="after")
    def require_custom_fields(self):
        if self.fabricId is None and (not self.name or self.pricePerYard is None):
            raise ValueError("Custom materials need name and pricePerYard (or pass a fabricId)")
        return self


class OrderCreate(BaseModel):
    """Schema for placing an order"""

    style: StyleInput
    material: MaterialInput
    measurementId: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=2000)
    orderType: OrderType = "Online"

    @model_validator(mode="after")
    def online_needs_measurement(self):
        if self.orderType == "Online" and self.measurementId is None:
            raise ValueError("measurementId is required for online orders")
        return self


class OrderUpdate(BaseModel):
    """Owner edits: only the notes can change"""

    model_config = ConfigDict(extra="ignore")

    notes: Optional[str] = Field(None, max_length=2000)


class PaymentRequest(BaseModel):
    reference: str = Field(..., min_length=1, max_length=255)

    @field_validator("reference")
    @classmethod
    def strip_reference(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Payment reference is required")
        return v


class AdminOrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    paymentStatus: Optional[PaymentStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    orderType: Optional[OrderType] = None
    style: Optional[StyleInput] = None
    material: Optional[MaterialInput] = None
    measurementId: Optional[int] = None


class OrderResponse(BaseModel):
    """Schema for order response"""

    id: int
    userId: int
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    orderType: str
    style: dict
    material: dict
    measurementId: Optional[int] = None
    notes: Optional[str] = None
    status: str
    paymentStatus: str
    totalPrice: float
    paymentReference: Optional[str] = None
    paidAt: Optional[datetime] = None
    expectedDeliveryDate: Optional[datetime] = None
    actualDeliveryDate: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            userId=order.user_id,
            customerName=order.customer_name,
            customerEmail=order.customer_email,
            orderType=order.order_type,
            style=order.style or {},
            material=order.material or {},
            measurementId=order.measurement_id,
            notes=order.notes,
            status=order.status,
            paymentStatus=order.payment_status,
            totalPrice=order.total_price,
            paymentReference=order.payment_reference,
            paidAt=order.paid_at,
            expectedDeliveryDate=order.expected_delivery_date,
            actualDeliveryDate=order.actual_delivery_date,
            createdAt=order.created_at,
            updatedAt=order.updated_at,
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationMeta


class OrderMessageResponse(BaseModel):
    message: str
    order: OrderResponse
