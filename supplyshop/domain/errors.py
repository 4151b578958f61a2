# supplyshop/domain/errors.py
"""
Domain errors. They extend the builtin families (PermissionError, ValueError,
LookupError) so callers can keep catching those, and the API maps them to
`{"error": <message>, "code": <code>}` responses.
"""


class ShopError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class Unauthorized(ShopError, PermissionError):
    status_code = 401
    code = "unauthorized"
    default_message = "unauthorized"


class Forbidden(ShopError, PermissionError):
    status_code = 403
    code = "forbidden"
    default_message = "אין לך הרשאות מנהל."


class ValidationError(ShopError, ValueError):
    status_code = 400
    code = "validation_error"
    default_message = "invalid input"


class EmptyCartError(ShopError, ValueError):
    status_code = 400
    code = "empty_cart"
    default_message = "העגלה ריקה!"


class ProductNotFoundError(ShopError, ValueError):
    status_code = 400
    code = "product_not_found"
    default_message = "products not found"

    def __init__(self, product_ids=(), message: str | None = None):
        self.product_ids = sorted(set(product_ids))
        if message is None and self.product_ids:
            message = f"products not found: {', '.join(self.product_ids)}"
        super().__init__(message)


class NotFound(ShopError, LookupError):
    status_code = 404
    code = "not_found"
    default_message = "not found"


class ConstraintViolation(ShopError):
    status_code = 409
    code = "constraint_violation"
    default_message = "הפעולה נחסמה עקב נתונים מקושרים."


class CheckoutInProgress(ShopError):
    status_code = 409
    code = "checkout_in_progress"
    default_message = "checkout already in progress"


class CheckoutFailed(ShopError):
    status_code = 500
    code = "checkout_failed"
    default_message = "ההזמנה נכשלה, נסו שוב"


class ExternalServiceError(ShopError):
    status_code = 502
    code = "upstream_error"
    default_message = "upstream service error"


class NotificationError(ShopError):
    """Supplier e-mail failure. Logged by the fan-out, never raised to the purchaser."""

    code = "notification_failed"
    default_message = "notification failed"


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        ShopError,
        Unauthorized,
        Forbidden,
        ValidationError,
        EmptyCartError,
        ProductNotFoundError,
        NotFound,
        ConstraintViolation,
        CheckoutInProgress,
        CheckoutFailed,
        ExternalServiceError,
        NotificationError,
    )
}


def error_from_code(code: str | None, message: str | None) -> ShopError:
    cls = ERRORS_BY_CODE.get(code or "", ShopError)
    if cls is ProductNotFoundError:
        return ProductNotFoundError(message=message)
    return cls(message)
