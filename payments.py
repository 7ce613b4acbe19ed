"""
Payment provider calls

Stripe Checkout goes through the `stripe` SDK, Mercado Pago Checkout Pro
through its REST API. Both calls are bounded by PAYMENT_TIMEOUT_SECONDS and
never retried: a timeout surfaces as UpstreamTimeout, any other provider
failure as UpstreamError.
"""
import logging
import os
from typing import Any, Dict, List

import requests
import stripe
from dotenv import load_dotenv

from errors import UpstreamError, UpstreamTimeout

load_dotenv()

logger = logging.getLogger(__name__)

PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10"))

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")
STRIPE_SUCCESS_URL = os.getenv(
    "STRIPE_SUCCESS_URL", "http://localhost:3000/success?session_id={CHECKOUT_SESSION_ID}"
)
STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL", "http://localhost:3000/cancel")
ALLOWED_SHIPPING_COUNTRIES = ["US", "CA", "AR", "GB", "AU", "FR", "DE", "IT", "ES", "NL", "BR", "JP"]

MERCADOPAGO_ACCESS_TOKEN = os.getenv("MERCADOPAGO_ACCESS_TOKEN")
MERCADOPAGO_API_URL = "https://api.mercadopago.com/checkout/preferences"
MERCADOPAGO_CURRENCY = os.getenv("MERCADOPAGO_CURRENCY", "ARS")
MERCADOPAGO_BACK_URLS = {
    "success": os.getenv("MERCADOPAGO_SUCCESS_URL", "http://localhost:3000/success"),
    "failure": os.getenv("MERCADOPAGO_FAILURE_URL", "http://localhost:3000/failure"),
    "pending": os.getenv("MERCADOPAGO_PENDING_URL", "http://localhost:3000/pending"),
}

# Process-wide Stripe client settings; the API key travels with each request.
stripe.max_network_retries = 0
stripe.default_http_client = stripe.RequestsClient(timeout=PAYMENT_TIMEOUT_SECONDS)


# Stripe

def _stripe_line_items(line_items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "quantity": int(item["quantity"]),
            "price_data": {
                "currency": STRIPE_CURRENCY,
                # amounts are sent in cents
                "unit_amount": int(round(float(item["unit_price"]) * 100)),
                "product_data": {"name": item["name"]},
            },
        }
        for item in line_items
    ]


def _timed_out(exc: BaseException) -> bool:
    # The SDK wraps the underlying requests exception
    cause = exc.__cause__ or exc.__context__
    return isinstance(cause, requests.Timeout)


def create_checkout_session(line_items: List[Dict[str, Any]]) -> str:
    if not STRIPE_SECRET_KEY:
        raise UpstreamError("Stripe is not configured")
    try:
        session = stripe.checkout.Session.create(
            api_key=STRIPE_SECRET_KEY,
            payment_method_types=["card"],
            line_items=_stripe_line_items(line_items),
            mode="payment",
            success_url=STRIPE_SUCCESS_URL,
            cancel_url=STRIPE_CANCEL_URL,
            shipping_address_collection={"allowed_countries": ALLOWED_SHIPPING_COUNTRIES},
        )
    except stripe.APIConnectionError as exc:
        logger.exception("Stripe checkout session request did not complete")
        if _timed_out(exc):
            raise UpstreamTimeout("Payment provider did not respond")
        raise UpstreamError("Payment provider unreachable")
    except stripe.StripeError as exc:
        logger.exception("Error creating checkout session")
        raise UpstreamError(f"Payment provider error: {exc.user_message or 'request failed'}")
    return session.id


# Mercado Pago

def create_preference(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not MERCADOPAGO_ACCESS_TOKEN:
        raise UpstreamError("Mercado Pago is not configured")
    payload = {
        "items": [
            {
                "title": item["name"],
                "quantity": int(item["quantity"]),
                "unit_price": float(item["unit_price"]),
                "currency_id": MERCADOPAGO_CURRENCY,
            }
            for item in items
        ],
        "back_urls": MERCADOPAGO_BACK_URLS,
        "auto_return": "approved",
    }
    try:
        resp = requests.post(
            MERCADOPAGO_API_URL,
            headers={"Authorization": f"Bearer {MERCADOPAGO_ACCESS_TOKEN}"},
            json=payload,
            timeout=PAYMENT_TIMEOUT_SECONDS,
        )
    except requests.Timeout:
        logger.exception("Mercado Pago preference request timed out")
        raise UpstreamTimeout("Payment provider did not respond")
    except requests.RequestException:
        logger.exception("Mercado Pago preference request failed")
        raise UpstreamError("Payment provider unreachable")
    if resp.status_code >= 300:
        logger.error("Mercado Pago rejected preference: %s %s", resp.status_code, resp.text[:200])
        raise UpstreamError("Payment provider rejected the request")
    data = resp.json()
    return {"id": data.get("id"), "init_point": data.get("init_point")}
