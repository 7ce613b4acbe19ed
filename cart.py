"""
Cart engine

A user's cart is the `cart_data` field of their user document, shaped
`{item_id: {size: quantity}}`. Missing entries read as zero. Every mutation is
a single atomic update on that field, and mutations for one user are
serialized by a striped lock so concurrent requests in this process never
interleave.
"""
import threading
import zlib
from typing import Union

from database import collection
from errors import NotFound, ValidationError
from schemas import CartState
from users import find_by_id, user_object_id

DEFAULT_SIZE = "S"

_LOCK_STRIPES = 64
_locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]


def _user_lock(user_id: str) -> threading.Lock:
    return _locks[zlib.crc32(user_id.encode()) % _LOCK_STRIPES]


def _key(value: Union[int, str], what: str) -> str:
    key = str(value).strip() if value is not None else ""
    if not key or "." in key or key.startswith("$"):
        raise ValidationError(f"Invalid {what}: {value!r}")
    return key


def _field(item_id: Union[int, str], size: str) -> str:
    return f"cart_data.{_key(item_id, 'item id')}.{_key(size, 'size')}"


def add_to_cart(user_id: str, item_id: Union[int, str], size: str = DEFAULT_SIZE) -> None:
    field = _field(item_id, size)
    oid = user_object_id(user_id)
    with _user_lock(user_id):
        res = collection("user").update_one({"_id": oid}, {"$inc": {field: 1}})
    if res.matched_count == 0:
        raise NotFound("User not found")


def remove_from_cart(user_id: str, item_id: Union[int, str], size: str = DEFAULT_SIZE) -> None:
    field = _field(item_id, size)
    oid = user_object_id(user_id)
    with _user_lock(user_id):
        res = collection("user").update_one({"_id": oid, field: {"$gt": 0}}, {"$inc": {field: -1}})
    if res.matched_count == 0 and collection("user").find_one({"_id": oid}, {"_id": 1}) is None:
        raise NotFound("User not found")


def get_cart(user_id: str) -> CartState:
    user = find_by_id(user_id)
    return user.get("cart_data") or {}


def quantity(cart: CartState, item_id: Union[int, str], size: str = DEFAULT_SIZE) -> int:
    return int((cart.get(str(item_id)) or {}).get(size, 0))
