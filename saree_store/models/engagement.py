# models/engagement.py
from .base_model import BaseModel
from ..utils.helpers import to_object_id, optional_object_id


class Review(BaseModel):
    collection_name = "reviews"

    def __init__(self, user_id, saree_id, rating, comment=None, order_id=None,
                 is_verified_purchase=False, is_approved=False, **kwargs):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.saree_id = to_object_id(saree_id, "saree_id")
        self.order_id = optional_object_id(order_id, "order_id")
        self.rating = int(rating)
        self.comment = comment
        self.is_verified_purchase = is_verified_purchase
        self.is_approved = is_approved


class Notification(BaseModel):
    collection_name = "notifications"

    def __init__(self, user_id, type, title, message, related_id=None, related_type=None, **kwargs):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.type = type
        self.title = title
        self.message = message
        self.related_id = optional_object_id(related_id)
        self.related_type = related_type
        self.is_read = False
        self.read_at = None


class AppSetting(BaseModel):
    collection_name = "app_settings"

    def __init__(self, key, value, **kwargs):
        super().__init__(**kwargs)
        self.key = key
        self.value = value
