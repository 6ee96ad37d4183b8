from __future__ import annotations


class CheckoutError(Exception):
    status_code = 500
    code = "checkout_error"

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> dict:
        return {"success": False, "error": self.code, "detail": str(self)}


class ValidationError(CheckoutError):
    status_code = 400
    code = "validation"


class NotFoundError(CheckoutError):
    status_code = 404
    code = "not_found"


class ConflictError(CheckoutError):
    status_code = 409
    code = "conflict"


class GatewayError(CheckoutError):
    status_code = 502
    code = "gateway"


class SignatureMismatch(CheckoutError):
    status_code = 400
    code = "signature_mismatch"
