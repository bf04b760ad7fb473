# saree_store/utils/errors.py


class AppError(Exception):
    """Base class for domain failures; status_code is a HTTP_STATUS_CODES key."""
    status_code = "BAD_REQUEST"

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code


class NotFoundError(AppError):
    status_code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = "CONFLICT"


class InsufficientStockError(AppError):
    status_code = "CONFLICT"

    def __init__(self, message, saree_id=None, requested=None, available=None):
        super().__init__(message)
        self.saree_id = saree_id
        self.requested = requested
        self.available = available


class AllocationError(AppError):
    status_code = "BAD_REQUEST"


class InvalidTransitionError(AppError):
    status_code = "BAD_REQUEST"

    def __init__(self, current, target):
        super().__init__(f"Cannot change status from '{current}' to '{target}'")
        self.current = current
        self.target = target


class CouponError(AppError):
    status_code = "BAD_REQUEST"


class ReturnNotAllowedError(AppError):
    status_code = "BAD_REQUEST"


class AuthenticationError(AppError):
    status_code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status_code = "FORBIDDEN"
