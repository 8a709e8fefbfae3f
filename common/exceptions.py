"""Domain errors shared across apps.

Every error derives from DRF's ``APIException`` so services can raise them
directly and views let DRF render the response. Extra context (for example
the list of failed design uploads) travels on ``extra`` and is merged into the
response body by :func:`exception_handler`.
"""

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler as drf_exception_handler


class ServiceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "internal_error"

    def __init__(self, detail=None, code=None, **extra):
        self.code = code or self.default_code
        self.extra = extra
        super().__init__(detail if detail is not None else self.default_detail, self.code)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"


class EmptyCart(ValidationError):
    default_detail = "Cart is empty"
    default_code = "empty_cart"


class ProductNotFound(ValidationError):
    default_detail = "Product not found"
    default_code = "product_not_found"

    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", product_id=product_id)


class VariantNotFound(ValidationError):
    default_detail = "Variant not found"
    default_code = "variant_not_found"

    def __init__(self, product_name: str, size: str, color: str):
        super().__init__(
            f"Variant {size}/{color} of {product_name} is not available",
            size=size,
            color=color,
        )


class InsufficientStock(ValidationError):
    default_detail = "Insufficient stock"
    default_code = "insufficient_stock"

    def __init__(self, product_name: str, size: str, color: str, available: int):
        super().__init__(
            f"Insufficient stock for {product_name} ({size}/{color}). Available: {available}",
            size=size,
            color=color,
            available=int(available),
        )


class InvalidStatus(ValidationError):
    default_detail = "Invalid status"
    default_code = "invalid_status"


class InvalidTransition(ValidationError):
    default_detail = "Order status cannot be changed"
    default_code = "invalid_transition"


class InvalidPromoCode(ValidationError):
    default_detail = "Invalid promo code"
    default_code = "invalid_promo_code"


class PaymentVerificationFailed(ValidationError):
    default_detail = "Payment verification failed"
    default_code = "payment_verification_failed"


class AssetMaterializationFailed(ServiceError):
    """One or more design uploads failed; the whole order is aborted."""

    default_detail = "Failed to upload one or more custom designs"
    default_code = "asset_materialization_failed"

    def __init__(self, failures: list[str]):
        self.failures = list(failures)
        super().__init__(failures=self.failures)


class OrderPersistenceError(ServiceError):
    default_detail = "Failed to create order"
    default_code = "order_persistence_failed"


def exception_handler(exc, context):
    """DRF exception handler that adds ``code`` and ``extra`` to service errors."""
    response = drf_exception_handler(exc, context)
    if response is not None and isinstance(exc, ServiceError):
        response.data["code"] = exc.code
        response.data.update(exc.extra)
    return response
