"""
ORM models for the e-commerce store

Tables:
- users
- products / reviews
- orders / order_items

Every relationship between tables is declared here, so importing this
module is enough to have the full mapping in place.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from database import Base


def utcnow():
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    is_admin = Column(Boolean, default=False, nullable=False)

    orders = relationship("Order", back_populates="user")

    def __repr__(self):
        return f"<User {self.email}>"


class Product(TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price"),
        CheckConstraint("count_in_stock >= 0", name="ck_products_count_in_stock"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_products_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    image = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=False)
    price = Column(Float, nullable=False, default=0)
    category = Column(String(255), nullable=False, index=True)
    count_in_stock = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=False)
    # denormalized from reviews, see services.add_review
    rating = Column(Float, nullable=False, default=0)
    num_reviews = Column(Integer, nullable=False, default=0)

    reviews = relationship(
        "Review", back_populates="product", order_by="Review.id", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Product {self.name}>"


class Review(TimestampMixin, Base):
    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating >= 0 AND rating <= 5", name="ck_reviews_rating"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    rating = Column(Integer, nullable=False, default=0)
    comment = Column(Text, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    product = relationship("Product", back_populates="reviews")


class Order(TimestampMixin, Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    shipping_address = Column(String(255), nullable=False)
    shipping_city = Column(String(255), nullable=False)
    shipping_postal_code = Column(String(64), nullable=False)
    shipping_country = Column(String(255), nullable=False)
    payment_method = Column(String(64), nullable=False)

    # stored exactly as submitted by the client
    items_price = Column(Float)
    tax_price = Column(Float)
    shipping_price = Column(Float)
    total_price = Column(Float)

    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime(timezone=True))
    is_delivered = Column(Boolean, default=False, nullable=False)
    delivered_at = Column(DateTime(timezone=True))

    user = relationship("User", back_populates="orders")
    order_items = relationship(
        "OrderItem", back_populates="order", order_by="OrderItem.id", cascade="all, delete-orphan"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    qty = Column(Integer, nullable=False)
    image = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    # snapshot reference, the product may be deleted later
    product_id = Column(Integer, nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    order = relationship("Order", back_populates="order_items")
