"""
Catalog store

Products carry a sequential integer `id` drawn from the `product` counter, so
concurrent creates never collide and deleted ids are never handed out again.
"""
import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from database import collection, create_document, next_sequence, utcnow
from errors import NotFound, ValidationError
from schemas import Product as ProductSchema

logger = logging.getLogger(__name__)

NEW_COLLECTION_SIZE = 8
POPULAR_SIZE = 4
RELATED_PRODUCT_IDS = [1, 2, 3, 4]


def serialize_product(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    doc = dict(doc)
    doc.pop("_id", None)
    return doc


def _validate(fields: Dict[str, Any]) -> ProductSchema:
    fields = dict(fields)
    image = fields.get("image")
    if isinstance(image, str):
        # Only the filename is stored, never the full upload URL
        fields["image"] = image.rstrip("/").split("/")[-1]
    fields.pop("id", None)
    fields.pop("date", None)
    try:
        return ProductSchema(**fields)
    except PydanticValidationError as exc:
        errors = ", ".join(".".join(str(p) for p in e["loc"]) for e in exc.errors())
        raise ValidationError(f"Invalid product fields: {errors}")


def next_id() -> int:
    return next_sequence("product")


def create(fields: Dict[str, Any]) -> Dict[str, Any]:
    product = _validate(fields)
    product.id = next_id()
    product.date = utcnow()
    doc = create_document("product", product)
    logger.info("Saved product %s (%s)", product.id, product.name)
    return serialize_product(doc)


def delete_by_id(product_id: int) -> None:
    res = collection("product").delete_one({"id": product_id})
    if res.deleted_count:
        logger.info("Removed product %s", product_id)


def list_all() -> List[Dict[str, Any]]:
    return [serialize_product(p) for p in collection("product").find({}).sort("id", 1)]


def new_collections() -> List[Dict[str, Any]]:
    """Everything but the first product, then the last eight of the rest."""
    return list_all()[1:][-NEW_COLLECTION_SIZE:]


def popular_in_women() -> List[Dict[str, Any]]:
    cursor = collection("product").find({"category": "women"}).sort("id", 1).limit(POPULAR_SIZE)
    return [serialize_product(p) for p in cursor]


def related_products(product_id: str) -> List[Dict[str, Any]]:
    # Fixed showcase set; the requested product is not consulted.
    cursor = collection("product").find({"id": {"$in": RELATED_PRODUCT_IDS}}).sort("id", 1)
    related = [serialize_product(p) for p in cursor]
    if not related:
        raise NotFound("Related products not found")
    return related
