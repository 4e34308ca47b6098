"""
Store operations behind the HTTP routes

Each function takes the request's Session and either returns ORM objects
or raises one of the errors below. Multi-row writes go through
`transaction()` so a failure rolls the whole unit back.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from auth import hash_password, verify_password
from models import Order, OrderItem, Product, Review, User, utcnow
from schemas import (
    OrderCreate,
    ProductCreate,
    ProductIn,
    RegisterRequest,
    ReviewIn,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StoreError):
    status_code = 404


class ValidationFailedError(StoreError):
    status_code = 400


class ConflictError(StoreError):
    status_code = 409


class InvalidCredentialsError(StoreError):
    status_code = 401


class StoreFailureError(StoreError):
    status_code = 500


@contextmanager
def transaction(db: Session, action: str, conflict: Optional[str] = None):
    """Commit on success, roll back on any store error.

    With `conflict` set, a unique-constraint violation is reported as a
    ConflictError carrying that message instead of a store failure.
    """
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if conflict is None:
            logger.exception("Failed to %s", action)
            raise StoreFailureError("Internal Server Error") from exc
        logger.info("Conflict while trying to %s: %s", action, conflict)
        raise ConflictError(conflict) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to %s", action)
        raise StoreFailureError("Internal Server Error") from exc


# Users
def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def register_user(db: Session, payload: RegisterRequest) -> User:
    if find_user_by_email(db, payload.email):
        raise ConflictError("Email already exists")
    user = User(name=payload.name, email=payload.email, password=hash_password(payload.password))
    # a concurrent registration can still win the race, the unique index decides
    with transaction(db, "register user", conflict="Email already exists"):
        db.add(user)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = find_user_by_email(db, email)
    if not user or not verify_password(password, user.password):
        raise InvalidCredentialsError("Invalid Email or Password.")
    return user


def update_user(db: Session, user_id: int, payload: UserUpdateRequest) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User Not Found")
    if payload.email and payload.email != user.email:
        if find_user_by_email(db, payload.email):
            raise ConflictError("Email already exists")
    with transaction(db, "update user", conflict="Email already exists"):
        if payload.name:
            user.name = payload.name
        if payload.email:
            user.email = payload.email
        if payload.password:
            user.password = hash_password(payload.password)
    return user


# Products and reviews
def list_products(
    db: Session,
    category: Optional[str] = None,
    search_keyword: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> List[Product]:
    query = db.query(Product).options(selectinload(Product.reviews))
    if category:
        query = query.filter(Product.category == category)
    if search_keyword:
        query = query.filter(Product.name.ilike(f"%{search_keyword}%"))
    if sort_order == "lowest":
        query = query.order_by(Product.price.asc())
    elif sort_order == "highest":
        query = query.order_by(Product.price.desc())
    else:
        query = query.order_by(Product.id.desc())
    return query.all()


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).options(selectinload(Product.reviews)).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product Not Found.")
    return product


def create_product(db: Session, payload: ProductCreate) -> Product:
    product = Product(**payload.model_dump())
    with transaction(db, "create product"):
        db.add(product)
    return product


def update_product(db: Session, product_id: int, payload: ProductIn) -> Product:
    product = get_product(db, product_id)
    with transaction(db, "update product"):
        for key, value in payload.model_dump().items():
            setattr(product, key, value)
    return product


def delete_product(db: Session, product_id: int) -> None:
    product = get_product(db, product_id)
    with transaction(db, "delete product"):
        db.delete(product)
    logger.info("Deleted product %s", product_id)


def average_rating(ratings: List[int]) -> float:
    if not ratings:
        return 0
    return round(sum(ratings) / len(ratings) * 100) / 100


def add_review(db: Session, product_id: int, payload: ReviewIn, reviewer: User) -> Review:
    """Store a review and refresh the product's rating and review count.

    The aggregate is recomputed from the reviews currently visible to this
    session without locking the product row, so two reviews submitted at
    the same moment can each overwrite the other's aggregate.
    """
    product = get_product(db, product_id)
    review = Review(
        name=payload.name or reviewer.name,
        rating=payload.rating,
        comment=payload.comment,
        product=product,
    )
    with transaction(db, "add review"):
        db.add(review)
        db.flush()
        ratings = [rating for (rating,) in db.query(Review.rating).filter(Review.product_id == product.id)]
        product.num_reviews = len(ratings)
        product.rating = average_rating(ratings)
    return review


# Orders
def _order_query(db: Session, with_user: bool = False):
    options = [selectinload(Order.order_items)]
    if with_user:
        options.append(selectinload(Order.user))
    return db.query(Order).options(*options)


def create_order(db: Session, user: User, payload: OrderCreate) -> Order:
    """Create an order and all of its items as one unit.

    Prices are stored as submitted. If any row fails to insert nothing is
    kept.
    """
    if not payload.order_items:
        raise ValidationFailedError("Order must contain at least one item")
    with transaction(db, "create order"):
        order = Order(
            user_id=user.id,
            shipping_address=payload.shipping.address,
            shipping_city=payload.shipping.city,
            shipping_postal_code=payload.shipping.postal_code,
            shipping_country=payload.shipping.country,
            payment_method=payload.payment.payment_method,
            items_price=payload.items_price,
            tax_price=payload.tax_price,
            shipping_price=payload.shipping_price,
            total_price=payload.total_price,
        )
        db.add(order)
        db.flush()
        db.add_all(
            [
                OrderItem(
                    name=item.name,
                    qty=item.qty,
                    image=item.image,
                    price=item.price,
                    product_id=item.product_id,
                    order=order,
                )
                for item in payload.order_items
            ]
        )
    db.refresh(order)
    logger.info("Created order %s for user %s with %d items", order.id, user.id, len(payload.order_items))
    return order


def list_orders(db: Session, user: Optional[User] = None) -> List[Order]:
    if user is None:
        return _order_query(db, with_user=True).order_by(Order.id).all()
    return _order_query(db).filter(Order.user_id == user.id).order_by(Order.id).all()


def get_order(db: Session, order_id: int) -> Order:
    order = _order_query(db).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order Not Found.")
    return order


def delete_order(db: Session, order_id: int) -> None:
    order = get_order(db, order_id)
    with transaction(db, "delete order"):
        db.delete(order)
    logger.info("Deleted order %s", order_id)


def mark_order_paid(db: Session, order_id: int) -> Order:
    order = get_order(db, order_id)
    with transaction(db, "mark order paid"):
        order.is_paid = True
        order.paid_at = utcnow()
    logger.info("Order %s paid", order_id)
    return order


def mark_order_delivered(db: Session, order_id: int) -> Order:
    order = get_order(db, order_id)
    with transaction(db, "mark order delivered"):
        order.is_delivered = True
        order.delivered_at = utcnow()
    logger.info("Order %s delivered", order_id)
    return order
