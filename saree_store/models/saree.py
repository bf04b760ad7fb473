# models/saree.py
from .base_model import BaseModel
from ..utils.helpers import optional_object_id, to_object_id, money


class Saree(BaseModel):
    """
    A sellable saree. Stock is split between the online channel
    (online_stock), per-store allocations (store_inventory rows) and an
    unallocated remainder, all bounded by total_stock.
    """
    collection_name = "sarees"

    def __init__(
        self,
        name,
        price,
        total_stock=0,
        online_stock=0,
        distribution_channel="both",
        description=None,
        category_id=None,
        color_id=None,
        fabric_id=None,
        sku=None,
        images=None,
        video_url=None,
        is_active=True,
        is_featured=False,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.name = name
        self.description = description
        self.price = money(price)
        self.category_id = optional_object_id(category_id, "category_id")
        self.color_id = optional_object_id(color_id, "color_id")
        self.fabric_id = optional_object_id(fabric_id, "fabric_id")
        self.sku = sku or None
        self.images = images or []
        self.video_url = video_url or None
        self.total_stock = int(total_stock)
        self.online_stock = int(online_stock)
        self.distribution_channel = distribution_channel
        self.is_active = is_active
        self.is_featured = is_featured


class StoreInventory(BaseModel):
    """One row per (store, saree): the units allocated to that store."""
    collection_name = "store_inventory"

    def __init__(self, store_id, saree_id, quantity=0, **kwargs):
        super().__init__(**kwargs)
        self.store_id = to_object_id(store_id, "store_id")
        self.saree_id = to_object_id(saree_id, "saree_id")
        self.quantity = int(quantity)

    @classmethod
    def get_item(cls, store_id, saree_id):
        return cls.collection().find_one({
            "store_id": to_object_id(store_id, "store_id"),
            "saree_id": to_object_id(saree_id, "saree_id"),
        })

    @classmethod
    def store_sum(cls, saree_id):
        pipeline = [
            {"$match": {"saree_id": to_object_id(saree_id, "saree_id")}},
            {"$group": {"_id": None, "total": {"$sum": "$quantity"}}},
        ]
        result = list(cls.collection().aggregate(pipeline))
        return int(result[0]["total"]) if result else 0
