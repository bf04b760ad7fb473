# models/order.py
from bson import ObjectId

from .base_model import BaseModel
from ..constants.service_code import ORDER_STATUS, PAYMENT_STATUS
from ..utils.helpers import to_object_id, optional_object_id, money


class Order(BaseModel):
    """
    Online order. Line items and the status history are embedded;
    each item carries its own _id so returns can point at it.
    """
    collection_name = "orders"

    # allowed next statuses
    TRANSITIONS = {
        ORDER_STATUS["PENDING"]: (ORDER_STATUS["CONFIRMED"], ORDER_STATUS["CANCELLED"]),
        ORDER_STATUS["CONFIRMED"]: (ORDER_STATUS["PROCESSING"], ORDER_STATUS["CANCELLED"]),
        ORDER_STATUS["PROCESSING"]: (ORDER_STATUS["SHIPPED"], ORDER_STATUS["CANCELLED"]),
        ORDER_STATUS["SHIPPED"]: (ORDER_STATUS["DELIVERED"],),
        ORDER_STATUS["DELIVERED"]: (),
        ORDER_STATUS["CANCELLED"]: (),
    }

    USER_CANCELLABLE = (ORDER_STATUS["PENDING"], ORDER_STATUS["CONFIRMED"])

    def __init__(
        self,
        user_id,
        items,
        total_amount,
        discount_amount,
        shipping_address,
        phone,
        payment_method,
        status=ORDER_STATUS["PENDING"],
        payment_status=PAYMENT_STATUS["PENDING"],
        coupon_id=None,
        notes=None,
        exchange_for_return_id=None,
        changed_by=None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.items = [self.build_item(**item) for item in items]
        self.total_amount = money(total_amount)
        self.discount_amount = money(discount_amount)
        self.final_amount = money(self.total_amount - self.discount_amount)
        self.status = status
        self.payment_status = payment_status
        self.payment_method = payment_method
        self.shipping_address = shipping_address
        self.phone = phone
        self.coupon_id = optional_object_id(coupon_id, "coupon_id")
        self.notes = notes
        self.exchange_for_return_id = optional_object_id(exchange_for_return_id)
        self.delivered_at = None
        self.return_eligible_until = None
        self.status_history = [self.history_entry(status, "Order placed", changed_by, self.created_at)]

    @staticmethod
    def build_item(saree_id, quantity, unit_price, name=None, original_price=None):
        return {
            "_id": ObjectId(),
            "saree_id": to_object_id(saree_id, "saree_id"),
            "name": name,
            "quantity": int(quantity),
            "unit_price": money(unit_price),
            "original_price": money(original_price if original_price is not None else unit_price),
            "line_total": money(float(unit_price) * int(quantity)),
        }

    @staticmethod
    def history_entry(status, note, changed_by, changed_at):
        return {
            "status": status,
            "note": note,
            "changed_by": optional_object_id(changed_by),
            "changed_at": changed_at,
        }
