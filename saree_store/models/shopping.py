# models/shopping.py
from .base_model import BaseModel
from ..utils.helpers import to_object_id


class CartItem(BaseModel):
    collection_name = "cart"

    def __init__(self, user_id, saree_id, quantity=1, **kwargs):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.saree_id = to_object_id(saree_id, "saree_id")
        self.quantity = int(quantity)


class WishlistItem(BaseModel):
    collection_name = "wishlist"

    def __init__(self, user_id, saree_id, **kwargs):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.saree_id = to_object_id(saree_id, "saree_id")


class Address(BaseModel):
    collection_name = "user_addresses"

    def __init__(self, user_id, name, phone, address_line1, city, state, pincode,
                 address_line2=None, landmark=None, is_default=False, **kwargs):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.name = name
        self.phone = phone
        self.address_line1 = address_line1
        self.address_line2 = address_line2
        self.landmark = landmark
        self.city = city
        self.state = state
        self.pincode = pincode
        self.is_default = is_default


class ServiceablePincode(BaseModel):
    collection_name = "serviceable_pincodes"

    def __init__(self, pincode, city=None, state=None, delivery_days=5, is_active=True, **kwargs):
        super().__init__(**kwargs)
        self.pincode = str(pincode).strip()
        self.city = city
        self.state = state
        self.delivery_days = int(delivery_days)
        self.is_active = is_active
