"""Gateway payment verification.

Razorpay signs ``"<order_id>|<payment_id>"`` with the account's key secret
(HMAC-SHA256, hex). Anything beyond checking that signature is left to the
gateway.
"""

import hashlib
import hmac
import logging

from common.exceptions import PaymentVerificationFailed
from django.conf import settings

logger = logging.getLogger("printworks.orders")


def expected_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_gateway_payment(order_id: str, payment_id: str, signature: str) -> None:
    """Raise ``PaymentVerificationFailed`` unless ``signature`` matches."""
    secret = getattr(settings, "RAZORPAY_KEY_SECRET", "")
    if not (order_id and payment_id and signature):
        raise PaymentVerificationFailed("Missing payment identifiers")
    if not secret:
        logger.error("payment.gateway_unconfigured", extra={"event": "payment.gateway_unconfigured"})
        raise PaymentVerificationFailed("Online payments are not configured")
    if not hmac.compare_digest(expected_signature(order_id, payment_id, secret), signature):
        logger.warning(
            "payment.signature_mismatch",
            extra={"event": "payment.signature_mismatch", "razorpay_order_id": order_id},
        )
        raise PaymentVerificationFailed()
