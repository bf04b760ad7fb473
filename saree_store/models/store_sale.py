# models/store_sale.py
from .base_model import BaseModel
from ..constants.service_code import STORE_SALE_TYPES
from ..utils.helpers import to_object_id, money


class StoreSale(BaseModel):
    """Walk-in or reserved sale rung up at a physical store."""
    collection_name = "store_sales"

    def __init__(self, store_id, sold_by, total_amount, customer_name=None, customer_phone=None,
                 sale_type=STORE_SALE_TYPES[0], **kwargs):
        super().__init__(**kwargs)
        self.store_id = to_object_id(store_id, "store_id")
        self.sold_by = to_object_id(sold_by, "sold_by")
        self.customer_name = customer_name
        self.customer_phone = customer_phone
        self.total_amount = money(total_amount)
        self.sale_type = sale_type


class StoreSaleItem(BaseModel):
    """
    Kept in its own collection so returned_quantity can be
    compare-and-set per line during exchanges.
    """
    collection_name = "store_sale_items"

    def __init__(self, sale_id, saree_id, quantity, unit_price, **kwargs):
        super().__init__(**kwargs)
        self.sale_id = to_object_id(sale_id, "sale_id")
        self.saree_id = to_object_id(saree_id, "saree_id")
        self.quantity = int(quantity)
        self.unit_price = money(unit_price)
        self.returned_quantity = 0


class StoreExchange(BaseModel):
    collection_name = "store_exchanges"

    def __init__(self, store_id, original_sale_id, processed_by, return_items, new_items, notes=None, **kwargs):
        super().__init__(**kwargs)
        self.store_id = to_object_id(store_id, "store_id")
        self.original_sale_id = to_object_id(original_sale_id, "original_sale_id")
        self.processed_by = to_object_id(processed_by, "processed_by")
        self.return_items = return_items
        self.new_items = new_items
        self.return_total = money(sum(i["unit_price"] * i["quantity"] for i in return_items))
        self.new_total = money(sum(i["unit_price"] * i["quantity"] for i in new_items))
        self.balance = money(self.new_total - self.return_total)
        self.notes = notes
