import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from database import create_document
from errors import ValidationError
from schemas import Order as OrderSchema

logger = logging.getLogger(__name__)


def create_order(payment_id: str, address: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Record a paid order once the payment provider has confirmed it."""
    try:
        order = OrderSchema(payment_id=(payment_id or "").strip(), address=(address or "").strip(), user_id=user_id)
    except PydanticValidationError:
        raise ValidationError("payment_id and address are required")
    doc = create_document("order", order)
    doc["id"] = str(doc.pop("_id"))
    logger.info("Created order %s for payment %s", doc["id"], order.payment_id)
    return doc
