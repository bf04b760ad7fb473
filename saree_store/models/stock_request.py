# models/stock_request.py
from .base_model import BaseModel
from ..constants.service_code import REQUEST_STATUS
from ..utils.helpers import to_object_id


class StockRequest(BaseModel):
    """A store asking the warehouse for more units of a saree."""
    collection_name = "stock_requests"

    # allowed next statuses
    TRANSITIONS = {
        REQUEST_STATUS["PENDING"]: (REQUEST_STATUS["APPROVED"], REQUEST_STATUS["REJECTED"]),
        REQUEST_STATUS["APPROVED"]: (REQUEST_STATUS["DISPATCHED"], REQUEST_STATUS["REJECTED"]),
        REQUEST_STATUS["DISPATCHED"]: (REQUEST_STATUS["RECEIVED"],),
        REQUEST_STATUS["RECEIVED"]: (),
        REQUEST_STATUS["REJECTED"]: (),
    }

    def __init__(self, store_id, saree_id, quantity, requested_by, notes=None, **kwargs):
        super().__init__(**kwargs)
        self.store_id = to_object_id(store_id, "store_id")
        self.saree_id = to_object_id(saree_id, "saree_id")
        self.quantity = int(quantity)
        self.requested_by = to_object_id(requested_by, "requested_by")
        self.notes = notes
        self.status = REQUEST_STATUS["PENDING"]
        self.status_history = [{
            "status": self.status,
            "changed_by": self.requested_by,
            "changed_at": self.created_at,
        }]
