# models/stock_movement.py

from .base_model import BaseModel
from ..constants.service_code import MOVEMENT_TYPES, MOVEMENT_SOURCES
from ..utils.helpers import optional_object_id


class StockMovement(BaseModel):
    """
    StockMovement is the audit trail for a saree's stock.
    Every change to total_stock (sale, return, adjustment) and every
    transfer into a store writes exactly one entry.
    """

    collection_name = "stock_movements"

    TYPE_SALE = MOVEMENT_TYPES["SALE"]
    TYPE_RETURN = MOVEMENT_TYPES["RETURN"]
    TYPE_ADJUSTMENT = MOVEMENT_TYPES["ADJUSTMENT"]
    TYPE_TRANSFER = MOVEMENT_TYPES["TRANSFER"]

    SOURCE_ONLINE = MOVEMENT_SOURCES["ONLINE"]
    SOURCE_STORE = MOVEMENT_SOURCES["STORE"]

    def __init__(
        self,
        saree_id,
        quantity,
        movement_type,
        source,
        order_ref_id=None,
        store_id=None,
        notes=None,
        created_by=None,
        **kwargs
    ):
        """
        Args:
            saree_id: Saree ObjectId
            quantity: Int - negative for stock out, positive for stock in
            movement_type: sale | return | adjustment | transfer
            source: online | store
            order_ref_id: Optional id of the order, store sale, exchange or request
            store_id: Optional store ObjectId for store-side movements
        """
        super().__init__(**kwargs)
        self.saree_id = optional_object_id(saree_id)
        self.quantity = int(quantity)
        self.movement_type = movement_type
        self.source = source
        self.order_ref_id = optional_object_id(order_ref_id)
        self.store_id = optional_object_id(store_id)
        self.notes = notes
        self.created_by = optional_object_id(created_by)
