import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Order status progression: pending -> in-progress -> ready-for-pickup -> completed
ORDER_STATUSES = ("pending", "in-progress", "ready-for-pickup", "completed", "cancelled")
# Owner edits and cancellation are blocked once the tailor has started
LOCKED_ORDER_STATUSES = ("in-progress", "ready-for-pickup", "completed", "cancelled")
PAYMENT_STATUSES = ("unpaid", "paid", "failed", "refunded")
ORDER_TYPES = ("Online", "InPerson")

APPOINTMENT_STATUSES = ("pending", "confirmed", "in-progress", "completed", "cancelled")

NOTIFICATION_TYPES = (
    "general",
    "order_status",
    "payment",
    "order_progress",
    "delivery_imminent",
    "appointment",
)

STYLE_GENDERS = ("Male", "Female", "Unisex")
STYLE_AGE_GROUPS = ("Adult", "Child", "Teen", "Elder")

FABRIC_MATERIALS = ("Cotton", "Silk", "Linen", "Wool", "Polyester", "Rayon", "Satin", "Velvet", "Other")
FABRIC_COLORS = (
    "Red",
    "Blue",
    "Green",
    "Yellow",
    "Black",
    "White",
    "Patterned",
    "Mixed",
    "Purple",
    "Orange",
    "Pink",
    "Brown",
    "Gray",
    "Other",
)
FABRIC_QUALITIES = ("High", "Medium", "Low")
FABRIC_WEIGHTS = ("Light", "Medium", "Heavy")
FABRIC_CARE = ("Machine washable", "Hand wash", "Dry clean only", "Spot clean", "Other")

MEASUREMENT_UNITS = ("cm", "in")


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, nullable=False, default=generate_public_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    # 6-digit code e-mailed at registration, valid for 15 minutes
    email_token = Column(String(10), nullable=True)
    email_token_expires = Column(DateTime, nullable=True)
    # Password reset link token, valid for 1 hour
    reset_token = Column(String(255), nullable=True)
    reset_token_expires = Column(DateTime, nullable=True)
    # Current refresh token; replaced on every refresh (rotation), cleared on logout
    refresh_token = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    measurements = relationship("Measurement", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    # Appointments keep the contact details when the account goes away
    appointments = relationship("Appointment", back_populates="user")


class Style(Base):
    __tablename__ = "styles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), unique=True, index=True, nullable=False)
    type = Column(JSON, default=list, nullable=False)  # e.g. ["Agbada", "Kaftan"]
    gender = Column(String(20), nullable=False)  # Male, Female, Unisex
    age_group = Column(String(20), nullable=True)  # Adult, Child, Teen, Elder
    price = Column(Float, nullable=False)
    yards_required = Column(Float, default=0, nullable=False)
    image = Column(String(500), nullable=False)  # Public URL
    image_key = Column(String(500), nullable=True)  # R2 object key for deletion
    description = Column(Text, nullable=True)
    details = Column(Text, nullable=True)
    colour = Column(String(100), nullable=True)
    recommended_materials = Column(JSON, default=list, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    added_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Fabric(Base):
    __tablename__ = "fabrics"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), unique=True, index=True, nullable=False)
    material = Column(String(50), default="Cotton", nullable=False)
    color = Column(String(50), default="Mixed", nullable=False)
    quality = Column(String(20), default="Medium", nullable=False)
    price = Column(Float, nullable=False)  # Per yard
    image = Column(String(500), nullable=False)
    image_key = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    details = Column(Text, nullable=True)
    width = Column(String(50), nullable=True)  # e.g. "45 inches", "150 cm"
    weight = Column(String(20), default="Medium", nullable=False)
    care = Column(String(50), default="Machine washable", nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    added_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Measurement(Base):
    __tablename__ = "measurements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(5), default="cm", nullable=False)  # cm, in
    gender = Column(String(20), nullable=True)
    size = Column(String(50), nullable=True)
    age_bracket = Column(String(50), nullable=True)
    data = Column(JSON, default=dict, nullable=False)  # {"chest": 40, "waist": 32, ...}
    photo_url = Column(String(500), nullable=True)
    photo_key = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="measurements")
    orders = relationship("Order", back_populates="measurement")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Contact snapshot so admin views survive profile edits
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    order_type = Column(String(20), default="Online", nullable=False)  # Online, InPerson
    # Snapshots of the catalog rows at order time:
    # style    {"styleId", "title", "price", "yardsRequired", "image", "recommendedMaterials"}
    # material {"fabricId", "name", "type", "pricePerYard", "image"}
    style = Column(JSON, nullable=False)
    material = Column(JSON, nullable=False)
    measurement_id = Column(Integer, ForeignKey("measurements.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(30), default="pending", nullable=False, index=True)
    payment_status = Column(String(20), default="unpaid", nullable=False, index=True)
    total_price = Column(Float, default=0, nullable=False)
    payment_reference = Column(String(255), nullable=True)
    paid_at = Column(DateTime, nullable=True)
    expected_delivery_date = Column(DateTime, nullable=True)
    actual_delivery_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="orders")
    measurement = relationship("Measurement", back_populates="orders")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, nullable=False, default=generate_public_id)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(20), nullable=False)  # As submitted: "10:00 AM" or "14:30"
    # Parsed local date-time (business timezone, naive)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default="pending", nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="appointments")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(30), default="general", nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now(), index=True)

    user = relationship("User", back_populates="notifications")


# ============================================================================
# ORDER PRICING
# ============================================================================


def calculate_total_price(style: dict, material: dict) -> float:
    """totalPrice = style.price + material.pricePerYard * style.yardsRequired"""
    style = style or {}
    material = material or {}
    price = float(style.get("price") or 0)
    yards = float(style.get("yardsRequired") or 0)
    per_yard = float(material.get("pricePerYard") or 0)
    return round(price + per_yard * yards, 2)


@event.listens_for(Order, "before_insert")
@event.listens_for(Order, "before_update")
def _apply_total_price(mapper, connection, target):
    # Derived inside the same flush that writes the style/material snapshot
    target.total_price = calculate_total_price(target.style, target.material)
