import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

import cart
import catalog
import database
import orders
import payments
import storage
import users
from auth import current_user_id
from errors import StoreError
from schemas import DEFAULT_SIZES, Email

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("shop")


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    if database.db is None:
        logger.warning("DATABASE_URL not set; requests touching the database will fail")
    else:
        database.ensure_indexes()
    yield


app = FastAPI(title="Fashion Shop API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/images", StaticFiles(directory=str(storage.UPLOAD_DIR), check_dir=False), name="images")


# Error mapping

@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# Request models

class SignupInput(BaseModel):
    name: str = ""
    email: Email
    password: str = Field(..., min_length=1)


class LoginInput(BaseModel):
    email: Email
    password: str


class TokenResponse(BaseModel):
    success: bool = True
    token: str


class ProductIn(BaseModel):
    name: str
    image: str
    category: str
    new_price: float
    old_price: float
    description: str
    available: bool = True
    sizes: List[str] = Field(default_factory=lambda: list(DEFAULT_SIZES))


class RemoveProductInput(BaseModel):
    id: int
    name: Optional[str] = None


class CartInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_id: Union[int, str] = Field(..., alias="itemId")
    size: str = cart.DEFAULT_SIZE


class LineItem(BaseModel):
    name: str
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)


class CheckoutInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    line_items: List[LineItem] = Field(..., min_length=1, alias="lineItems")


class PreferenceInput(BaseModel):
    items: List[LineItem] = Field(..., min_length=1)


class OrderInput(BaseModel):
    payment_id: str
    address: str


# Routes
@app.get("/")
def read_root():
    return {"message": "Fashion Shop API"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["database_url"] = "✅ Set" if database.DATABASE_URL else "❌ Not Set"
            response["database_name"] = database.db.name
            response["collections"] = database.db.list_collection_names()
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# Images
@app.post("/upload")
def upload_image(product: UploadFile = File(...)):
    filename = storage.save_upload(product)
    return {"success": 1, "image_url": storage.image_url(filename)}


# Products
@app.post("/addproduct")
def add_product(data: ProductIn):
    product = catalog.create(data.model_dump())
    return {"success": 1, "name": product["name"], "id": product["id"]}


@app.post("/removeproduct")
def remove_product(data: RemoveProductInput):
    catalog.delete_by_id(data.id)
    return {"success": True, "name": data.name}


@app.get("/allproducts")
def all_products():
    return catalog.list_all()


@app.get("/newcollections")
def new_collections():
    return catalog.new_collections()


@app.get("/popularinwomen")
def popular_in_women():
    return catalog.popular_in_women()


@app.get("/relatedproducts/{product_id}")
def related_products(product_id: str):
    return catalog.related_products(product_id)


# Auth
@app.post("/signup", response_model=TokenResponse)
def signup(payload: SignupInput):
    token = users.signup(payload.name, payload.email, payload.password)
    return TokenResponse(token=token)


@app.post("/login", response_model=TokenResponse)
def login(payload: LoginInput):
    token = users.login(payload.email, payload.password)
    return TokenResponse(token=token)


# Cart
@app.post("/addtocart")
def add_to_cart(item: CartInput, user_id: str = Depends(current_user_id)):
    cart.add_to_cart(user_id, item.item_id, item.size)
    return {"success": True, "message": "Added"}


@app.post("/removefromcart")
def remove_from_cart(item: CartInput, user_id: str = Depends(current_user_id)):
    cart.remove_from_cart(user_id, item.item_id, item.size)
    return {"success": True, "message": "Removed"}


@app.get("/getcart")
def get_cart(user_id: str = Depends(current_user_id)):
    return cart.get_cart(user_id)


# Payments
@app.post("/create-checkout-session")
def create_checkout_session(body: CheckoutInput):
    session_id = payments.create_checkout_session([i.model_dump() for i in body.line_items])
    return {"id": session_id}


@app.post("/create-preference")
def create_preference(body: PreferenceInput):
    return payments.create_preference([i.model_dump() for i in body.items])


# Orders
@app.post("/orders")
def create_order(body: OrderInput, user_id: str = Depends(current_user_id)) -> Dict[str, Any]:
    return orders.create_order(body.payment_id, body.address, user_id=user_id)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 4000))
    uvicorn.run(app, host="0.0.0.0", port=port)
