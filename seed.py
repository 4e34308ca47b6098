import logging

from sqlalchemy.orm import Session

from auth import hash_password
from config import ADMIN_EMAIL, ADMIN_PASSWORD
from models import Product, User
from services import transaction

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    {
        "name": "Nike Air Max 270",
        "price": 150.0,
        "image": "/images/p1.jpg",
        "brand": "Nike",
        "category": "Shoes",
        "count_in_stock": 10,
        "description": "Comfortable running shoes with Air Max technology",
        "rating": 4.5,
        "num_reviews": 12,
    },
    {
        "name": "Adidas Ultraboost 22",
        "price": 180.0,
        "image": "/images/p2.jpg",
        "brand": "Adidas",
        "category": "Shoes",
        "count_in_stock": 8,
        "description": "High-performance running shoes with Boost technology",
        "rating": 4.8,
        "num_reviews": 25,
    },
    {
        "name": "Puma RS-X",
        "price": 120.0,
        "image": "/images/p3.jpg",
        "brand": "Puma",
        "category": "Shoes",
        "count_in_stock": 15,
        "description": "Retro-inspired sneakers with modern comfort",
        "rating": 4.2,
        "num_reviews": 8,
    },
    {
        "name": "Nike Dri-FIT T-Shirt",
        "price": 25.0,
        "image": "/images/d1.jpg",
        "brand": "Nike",
        "category": "Shirts",
        "count_in_stock": 20,
        "description": "Moisture-wicking athletic t-shirt",
        "rating": 4.3,
        "num_reviews": 15,
    },
    {
        "name": "Adidas Originals Hoodie",
        "price": 65.0,
        "image": "/images/d2.jpg",
        "brand": "Adidas",
        "category": "Shirts",
        "count_in_stock": 12,
        "description": "Classic hoodie with three stripes design",
        "rating": 4.6,
        "num_reviews": 18,
    },
    {
        "name": "Puma Classic Shorts",
        "price": 35.0,
        "image": "/images/d3.jpg",
        "brand": "Puma",
        "category": "Shorts",
        "count_in_stock": 25,
        "description": "Comfortable athletic shorts for training",
        "rating": 4.1,
        "num_reviews": 7,
    },
]


def seed_database(db: Session) -> dict:
    """Insert demo products and an admin account if they are missing.

    Safe to call repeatedly; returns how many rows of each kind were added.
    """
    added = {"products": 0, "admins": 0}
    with transaction(db, "seed database"):
        if db.query(Product).count() == 0:
            db.add_all([Product(**p) for p in DEMO_PRODUCTS])
            added["products"] = len(DEMO_PRODUCTS)
        if db.query(User).filter(User.is_admin.is_(True)).count() == 0:
            db.add(User(name="Admin", email=ADMIN_EMAIL, password=hash_password(ADMIN_PASSWORD), is_admin=True))
            added["admins"] = 1
    if added["products"] or added["admins"]:
        logger.info("Seeded %d products and %d admin users", added["products"], added["admins"])
    else:
        logger.info("Database already seeded")
    return added
