"""
Credential store

User accounts live in the `user` collection. Email uniqueness is enforced by
the unique index created in `database.ensure_indexes`, so `create` never reads
before inserting.
"""
import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

import auth
from database import collection, create_document
from errors import AuthError, ConflictError, NotFound
from schemas import CartState, User as UserSchema

logger = logging.getLogger(__name__)


def user_object_id(user_id: str) -> ObjectId:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        raise NotFound("User not found")


def create(name: str, email: str, password_hash: str, initial_cart: Optional[CartState] = None) -> Dict[str, Any]:
    user = UserSchema(name=name, email=email, password_hash=password_hash, cart_data=initial_cart or {})
    try:
        return create_document("user", user)
    except DuplicateKeyError:
        raise ConflictError("Existing user found with same email address")


def find_by_email(email: str) -> Dict[str, Any]:
    user = collection("user").find_one({"email": email})
    if not user:
        raise NotFound("User not found")
    return user


def find_by_id(user_id: str) -> Dict[str, Any]:
    user = collection("user").find_one({"_id": user_object_id(user_id)})
    if not user:
        raise NotFound("User not found")
    return user


def update_cart(user_id: str, cart: CartState) -> None:
    res = collection("user").update_one({"_id": user_object_id(user_id)}, {"$set": {"cart_data": cart}})
    if res.matched_count == 0:
        raise NotFound("User not found")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return auth.verify_password(plain_password, hashed_password)


# Auth flows

def signup(name: str, email: str, password: str) -> str:
    user = create(name, email, auth.hash_password(password))
    logger.info("Registered user %s", user["_id"])
    return auth.issue_token(str(user["_id"]))


def login(email: str, password: str) -> str:
    try:
        user = find_by_email(email)
    except NotFound:
        user = None
    if not user or not verify_password(password, user.get("password_hash", "")):
        logger.warning("Failed login attempt")
        raise AuthError(AuthError.INVALID, "Invalid email or password")
    return auth.issue_token(str(user["_id"]))
