# models/promotion.py
from .base_model import BaseModel
from ..utils.helpers import to_object_id, optional_object_id, money


class Coupon(BaseModel):
    collection_name = "coupons"

    TYPE_PERCENTAGE = "percentage"
    TYPE_FIXED = "fixed"
    TYPE_FREE_SHIPPING = "free_shipping"

    def __init__(
        self,
        code,
        type,
        value,
        valid_from,
        valid_until,
        description=None,
        min_order_amount=0,
        max_discount=None,
        usage_limit=None,
        per_user_limit=1,
        category_id=None,
        is_active=True,
        created_by=None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.code = code.strip().upper()
        self.description = description
        self.type = type
        self.value = money(value)
        self.min_order_amount = money(min_order_amount)
        self.max_discount = money(max_discount) if max_discount is not None else None
        self.usage_limit = usage_limit
        self.usage_count = 0
        self.per_user_limit = per_user_limit
        self.valid_from = valid_from
        self.valid_until = valid_until
        self.category_id = optional_object_id(category_id, "category_id")
        self.is_active = is_active
        self.created_by = optional_object_id(created_by)

    @classmethod
    def get_by_code(cls, code):
        return cls.collection().find_one({"code": (code or "").strip().upper()})


class CouponUsage(BaseModel):
    collection_name = "coupon_usage"

    def __init__(self, coupon_id, user_id, order_id, discount_amount, **kwargs):
        super().__init__(**kwargs)
        self.coupon_id = to_object_id(coupon_id)
        self.user_id = to_object_id(user_id)
        self.order_id = to_object_id(order_id)
        self.discount_amount = money(discount_amount)


class SaleOffer(BaseModel):
    """
    Time-boxed price reduction. product_ids target sarees directly;
    category offers target every saree in category_id.
    """
    collection_name = "sale_offers"

    def __init__(
        self,
        name,
        offer_type,
        discount_value,
        valid_from,
        valid_until,
        description=None,
        max_discount=None,
        category_id=None,
        product_ids=None,
        banner_image=None,
        is_active=True,
        is_featured=False,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.name = name
        self.description = description
        self.offer_type = offer_type
        self.discount_value = money(discount_value)
        self.max_discount = money(max_discount) if max_discount is not None else None
        self.valid_from = valid_from
        self.valid_until = valid_until
        self.category_id = optional_object_id(category_id, "category_id")
        self.product_ids = [to_object_id(p, "product_id") for p in (product_ids or [])]
        self.banner_image = banner_image
        self.is_active = is_active
        self.is_featured = is_featured
