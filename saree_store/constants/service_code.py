HTTP_STATUS_CODES = {
    "OK": 200,
    "CREATED": 201,
    "NO_CONTENT": 204,
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "VALIDATION_ERROR": 422,
    "TOO_MANY_REQUESTS": 429,
    "INTERNAL_SERVER_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}

ERROR_MESSAGES = {
    "VALIDATION_FAILED": "Validation failed. Please check your inputs.",
    "UNAUTHORIZED_ACCESS": "You are not authorized to access this resource.",
    "NO_STORE_ASSIGNED": "No store assigned to this account.",
}

AUTHENTICATION_MESSAGES = {
    "AUTHENTICATION_REQUIRED": "Authentication Required",
    "TOKEN_EXPIRED": "Token expired",
    "INVALID_TOKEN": "Invalid token",
    "TOKEN_REVOKED": "Token has been revoked",
    "ACCOUNT_DISABLED": "Account is disabled",
}

ROLES = {
    "USER": "user",
    "ADMIN": "admin",
    "INVENTORY": "inventory",
    "STORE": "store",
}

STAFF_ROLES = (ROLES["INVENTORY"], ROLES["STORE"])

DISTRIBUTION_CHANNELS = ("shop", "online", "both")
ONLINE_VISIBLE_CHANNELS = ("online", "both")

ORDER_STATUS = {
    "PENDING": "pending",
    "CONFIRMED": "confirmed",
    "PROCESSING": "processing",
    "SHIPPED": "shipped",
    "DELIVERED": "delivered",
    "CANCELLED": "cancelled",
}

PAYMENT_STATUS = {
    "PENDING": "pending",
    "PAID": "paid",
    "FAILED": "failed",
    "REFUNDED": "refunded",
    "PARTIALLY_REFUNDED": "partially_refunded",
}

PAYMENT_METHODS = ("cod", "online", "upi", "card", "netbanking")

REQUEST_STATUS = {
    "PENDING": "pending",
    "APPROVED": "approved",
    "DISPATCHED": "dispatched",
    "RECEIVED": "received",
    "REJECTED": "rejected",
}

STORE_SALE_TYPES = ("walk_in", "reserved")

RETURN_STATUS = {
    "REQUESTED": "requested",
    "APPROVED": "approved",
    "REJECTED": "rejected",
    "PICKUP_SCHEDULED": "pickup_scheduled",
    "PICKED_UP": "picked_up",
    "RECEIVED": "received",
    "INSPECTED": "inspected",
    "COMPLETED": "completed",
    "CANCELLED": "cancelled",
}

RETURN_REASONS = (
    "defective",
    "wrong_item",
    "not_as_described",
    "size_issue",
    "color_mismatch",
    "damaged_in_shipping",
    "changed_mind",
    "other",
)

RETURN_RESOLUTIONS = ("refund", "exchange", "store_credit")

REFUND_STATUS = {
    "PENDING": "pending",
    "INITIATED": "initiated",
    "PROCESSING": "processing",
    "COMPLETED": "completed",
    "FAILED": "failed",
}

COUPON_TYPES = ("percentage", "fixed", "free_shipping")

OFFER_TYPES = ("percentage", "category", "flash_sale", "flat", "product")

NOTIFICATION_TYPES = ("order", "return", "refund", "promotion", "system", "stock")

MOVEMENT_TYPES = {
    "SALE": "sale",
    "RETURN": "return",
    "ADJUSTMENT": "adjustment",
    "TRANSFER": "transfer",
}

MOVEMENT_SOURCES = {
    "ONLINE": "online",
    "STORE": "store",
}

SETTING_DEFAULTS = {
    "low_stock_threshold": 10,
    "return_window_days": 7,
    "auto_approve_reviews": False,
}

DEFAULT_PHONE_REGION = "IN"
