import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

import services
from auth import create_token, get_current_user, require_admin
from config import LOG_LEVEL, MAX_UPLOAD_BYTES, PAYPAL_CLIENT_ID, SEED_ON_STARTUP, UPLOAD_DIR
from database import SessionLocal, get_db, init_db
from models import Order, User
from schemas import (
    AdminOrderOut,
    AuthResponse,
    MessageResponse,
    OrderCreate,
    OrderCreated,
    OrderOut,
    OrderUpdated,
    ProductCreate,
    ProductEnvelope,
    ProductIn,
    ProductOut,
    RegisterRequest,
    ReviewEnvelope,
    ReviewIn,
    ReviewOut,
    SigninRequest,
    UserUpdateRequest,
)
from seed import seed_database

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# stored name is chosen from the declared type, never from the client filename
IMAGE_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
UPLOAD_CHUNK_BYTES = 64 * 1024


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    init_db()
    if SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            seed_database(db)
        finally:
            db.close()
    yield


app = FastAPI(title="E-commerce Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# the directory is created in lifespan
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.exception_handler(services.StoreError)
async def store_error_handler(request: Request, exc: services.StoreError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def auth_response(user: User) -> AuthResponse:
    return AuthResponse(id=user.id, name=user.name, email=user.email, is_admin=user.is_admin, token=create_token(user))


def ensure_owner_or_admin(order: Order, user: User):
    if order.user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed")


@app.get("/")
def root():
    return {"status": "ok", "service": "ecommerce-backend"}


@app.get("/api/config/paypal", response_class=PlainTextResponse)
def paypal_config():
    return PAYPAL_CLIENT_ID


# Users
@app.post("/api/users/register", response_model=AuthResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = services.register_user(db, payload)
    logger.info("Registered user %s", user.id)
    return auth_response(user)


@app.post("/api/users/signin", response_model=AuthResponse)
def signin(payload: SigninRequest, db: Session = Depends(get_db)):
    user = services.authenticate(db, payload.email, payload.password)
    return auth_response(user)


@app.put("/api/users/{user_id}", response_model=AuthResponse)
def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current.id != user_id and not current.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed")
    user = services.update_user(db, user_id, payload)
    return auth_response(user)


# Products
@app.get("/api/products", response_model=List[ProductOut])
def list_products(
    category: Optional[str] = None,
    searchKeyword: Optional[str] = None,
    sortOrder: Optional[str] = None,
    db: Session = Depends(get_db),
):
    products = services.list_products(db, category=category, search_keyword=searchKeyword, sort_order=sortOrder)
    return [ProductOut.model_validate(p) for p in products]


@app.get("/api/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return ProductOut.model_validate(services.get_product(db, product_id))


@app.post("/api/products", response_model=ProductEnvelope, status_code=201)
def create_product(payload: ProductCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    product = services.create_product(db, payload)
    return ProductEnvelope(message="New Product Created", data=ProductOut.model_validate(product))


@app.put("/api/products/{product_id}", response_model=ProductEnvelope)
def update_product(
    product_id: int,
    payload: ProductIn,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = services.update_product(db, product_id, payload)
    return ProductEnvelope(message="Product Updated", data=ProductOut.model_validate(product))


@app.delete("/api/products/{product_id}", response_model=MessageResponse)
def delete_product(product_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    services.delete_product(db, product_id)
    return MessageResponse(message="Product Deleted")


@app.post("/api/products/{product_id}/reviews", response_model=ReviewEnvelope, status_code=201)
def add_review(
    product_id: int,
    payload: ReviewIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    review = services.add_review(db, product_id, payload, user)
    return ReviewEnvelope(message="Review saved successfully.", data=ReviewOut.model_validate(review))


# Orders
@app.get("/api/orders", response_model=List[AdminOrderOut])
def list_all_orders(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [AdminOrderOut.model_validate(o) for o in services.list_orders(db)]


@app.get("/api/orders/mine", response_model=List[OrderOut])
def list_my_orders(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [OrderOut.model_validate(o) for o in services.list_orders(db, user)]


@app.get("/api/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = services.get_order(db, order_id)
    ensure_owner_or_admin(order, user)
    return OrderOut.model_validate(order)


@app.post("/api/orders", response_model=OrderCreated, status_code=201)
def create_order(payload: OrderCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = services.create_order(db, user, payload)
    return OrderCreated(message="New Order Created", data=OrderOut.model_validate(order))


@app.put("/api/orders/{order_id}/pay", response_model=OrderUpdated)
def pay_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = services.get_order(db, order_id)
    ensure_owner_or_admin(order, user)
    order = services.mark_order_paid(db, order_id)
    return OrderUpdated(message="Order Paid.", order=OrderOut.model_validate(order))


@app.put("/api/orders/{order_id}/deliver", response_model=OrderUpdated)
def deliver_order(order_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    order = services.mark_order_delivered(db, order_id)
    return OrderUpdated(message="Order Delivered.", order=OrderOut.model_validate(order))


@app.delete("/api/orders/{order_id}", response_model=MessageResponse)
def delete_order(order_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    services.delete_order(db, order_id)
    return MessageResponse(message="Order deleted successfully")


# Uploads
@app.post("/api/uploads", response_class=PlainTextResponse)
async def upload_image(image: Optional[UploadFile] = File(None)):
    if image is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=415, detail="Only image files are allowed!")
    suffix = IMAGE_SUFFIXES.get(image.content_type, ".jpg")
    filename = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{suffix}"
    path = os.path.join(UPLOAD_DIR, filename)
    size = 0
    try:
        with open(path, "wb") as fh:
            while True:
                chunk = await image.read(UPLOAD_CHUNK_BYTES)
                if not chunk:
                    break
                size += len(chunk)
                if size > MAX_UPLOAD_BYTES:
                    break
                fh.write(chunk)
    except OSError:
        logger.exception("Failed to store upload %s", filename)
        raise HTTPException(status_code=500, detail="File upload failed")
    if size > MAX_UPLOAD_BYTES:
        os.remove(path)
        raise HTTPException(status_code=413, detail="File too large")
    return f"/uploads/{filename}"


# Admin
@app.post("/api/admin/seed")
def seed(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    added = seed_database(db)
    return {"seeded": bool(added["products"] or added["admins"]), **added}


if __name__ == "__main__":
    import uvicorn

    from config import PORT

    uvicorn.run(app, host="0.0.0.0", port=PORT)
