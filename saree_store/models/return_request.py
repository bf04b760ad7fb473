# models/return_request.py
from .base_model import BaseModel
from ..constants.service_code import RETURN_STATUS, REFUND_STATUS
from ..utils.helpers import to_object_id, money


class ReturnRequest(BaseModel):
    collection_name = "return_requests"

    # allowed next statuses
    TRANSITIONS = {
        RETURN_STATUS["REQUESTED"]: (RETURN_STATUS["APPROVED"], RETURN_STATUS["REJECTED"], RETURN_STATUS["CANCELLED"]),
        RETURN_STATUS["APPROVED"]: (RETURN_STATUS["PICKUP_SCHEDULED"], RETURN_STATUS["CANCELLED"]),
        RETURN_STATUS["PICKUP_SCHEDULED"]: (RETURN_STATUS["PICKED_UP"],),
        RETURN_STATUS["PICKED_UP"]: (RETURN_STATUS["RECEIVED"],),
        RETURN_STATUS["RECEIVED"]: (RETURN_STATUS["INSPECTED"],),
        RETURN_STATUS["INSPECTED"]: (RETURN_STATUS["COMPLETED"],),
        RETURN_STATUS["COMPLETED"]: (),
        RETURN_STATUS["REJECTED"]: (),
        RETURN_STATUS["CANCELLED"]: (),
    }

    # a return in any other status blocks a new one for the same order
    CLOSED_STATUSES = (RETURN_STATUS["REJECTED"], RETURN_STATUS["CANCELLED"], RETURN_STATUS["COMPLETED"])

    def __init__(self, user_id, order_id, reason, resolution, items, description=None, **kwargs):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.order_id = to_object_id(order_id, "order_id")
        self.reason = reason
        self.description = description
        self.resolution = resolution
        self.items = items
        self.refund_amount = money(sum(i["unit_price"] * i["quantity"] for i in items))
        self.status = RETURN_STATUS["REQUESTED"]
        self.exchange_order_id = None
        self.admin_notes = None
        self.status_history = [{"status": self.status, "note": None, "changed_at": self.created_at}]


class Refund(BaseModel):
    collection_name = "refunds"

    # allowed next statuses
    TRANSITIONS = {
        REFUND_STATUS["PENDING"]: (REFUND_STATUS["INITIATED"], REFUND_STATUS["PROCESSING"], REFUND_STATUS["FAILED"]),
        REFUND_STATUS["INITIATED"]: (REFUND_STATUS["PROCESSING"], REFUND_STATUS["COMPLETED"], REFUND_STATUS["FAILED"]),
        REFUND_STATUS["PROCESSING"]: (REFUND_STATUS["COMPLETED"], REFUND_STATUS["FAILED"]),
        REFUND_STATUS["COMPLETED"]: (),
        REFUND_STATUS["FAILED"]: (REFUND_STATUS["INITIATED"],),
    }

    def __init__(self, return_request_id, order_id, user_id, amount, method, **kwargs):
        super().__init__(**kwargs)
        self.return_request_id = to_object_id(return_request_id)
        self.order_id = to_object_id(order_id)
        self.user_id = to_object_id(user_id)
        self.amount = money(amount)
        self.method = method
        self.status = REFUND_STATUS["PENDING"]
        self.transaction_ref = None
        self.processed_at = None
        self.processed_by = None
