import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="uploads-")

import pytest
from fastapi.testclient import TestClient

from auth import create_token, hash_password
from database import Base, SessionLocal, engine
from main import app
from models import Product, User


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(db, name, email, password, is_admin=False):
    user = User(name=name, email=email, password=hash_password(password), is_admin=is_admin)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "Jane Buyer", "jane@example.com", "secret")


@pytest.fixture
def other_user(db):
    return _make_user(db, "Joe Other", "joe@example.com", "secret")


@pytest.fixture
def admin(db):
    return _make_user(db, "Admin", "admin@example.com", "1234", is_admin=True)


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_token(user)}"}


@pytest.fixture
def other_headers(other_user):
    return {"Authorization": f"Bearer {create_token(other_user)}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_token(admin)}"}


@pytest.fixture
def product(db):
    product = Product(
        name="Nike Air Max 270",
        image="/images/p1.jpg",
        brand="Nike",
        price=150.0,
        category="Shoes",
        count_in_stock=10,
        description="Comfortable running shoes",
    )
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def order_payload():
    return {
        "shipping": {"address": "1 Main St", "city": "Springfield", "postalCode": "12345", "country": "US"},
        "payment": {"paymentMethod": "paypal"},
        "itemsPrice": 200,
        "taxPrice": 0,
        "shippingPrice": 0,
        "totalPrice": 200,
        "orderItems": [
            {"name": "Nike Air Max 270", "qty": 1, "image": "/images/p1.jpg", "price": 150, "product": 1},
            {"name": "Nike Dri-FIT T-Shirt", "qty": 2, "image": "/images/d1.jpg", "price": 25, "product": 4},
        ],
    }
