from marshmallow import Schema, fields, validate

from ..constants.service_code import COUPON_TYPES, OFFER_TYPES
from .common import ObjectIdField, UTCDateTime


class CouponSchema(Schema):
    code = fields.Str(required=False, allow_none=True, validate=validate.Length(min=3, max=30))
    prefix = fields.Str(required=False, allow_none=True, validate=validate.Length(max=10))
    description = fields.Str(required=False, allow_none=True)
    type = fields.Str(required=True, validate=validate.OneOf(COUPON_TYPES))
    value = fields.Float(required=True, validate=validate.Range(min=0))
    min_order_amount = fields.Float(required=False, load_default=0, validate=validate.Range(min=0))
    max_discount = fields.Float(required=False, allow_none=True, validate=validate.Range(min=0))
    usage_limit = fields.Int(required=False, allow_none=True, validate=validate.Range(min=1))
    per_user_limit = fields.Int(required=False, load_default=1, allow_none=True, validate=validate.Range(min=1))
    valid_from = UTCDateTime(required=True)
    valid_until = UTCDateTime(required=True)
    category_id = ObjectIdField(required=False, allow_none=True)
    is_active = fields.Bool(required=False, load_default=True)


class CouponUpdateSchema(Schema):
    code = fields.Str(validate=validate.Length(min=3, max=30))
    description = fields.Str(allow_none=True)
    value = fields.Float(validate=validate.Range(min=0))
    min_order_amount = fields.Float(validate=validate.Range(min=0))
    max_discount = fields.Float(allow_none=True, validate=validate.Range(min=0))
    usage_limit = fields.Int(allow_none=True, validate=validate.Range(min=1))
    per_user_limit = fields.Int(allow_none=True, validate=validate.Range(min=1))
    valid_from = UTCDateTime()
    valid_until = UTCDateTime()
    category_id = ObjectIdField(allow_none=True)
    is_active = fields.Bool()


class OfferSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=150))
    description = fields.Str(required=False, allow_none=True)
    offer_type = fields.Str(required=True, validate=validate.OneOf(OFFER_TYPES))
    discount_value = fields.Float(required=True, validate=validate.Range(min=0))
    max_discount = fields.Float(required=False, allow_none=True, validate=validate.Range(min=0))
    valid_from = UTCDateTime(required=True)
    valid_until = UTCDateTime(required=True)
    category_id = ObjectIdField(required=False, allow_none=True)
    product_ids = fields.List(ObjectIdField(), required=False, load_default=list)
    banner_image = fields.Str(required=False, allow_none=True)
    is_active = fields.Bool(required=False, load_default=True)
    is_featured = fields.Bool(required=False, load_default=False)


class OfferUpdateSchema(Schema):
    name = fields.Str(validate=validate.Length(min=1, max=150))
    description = fields.Str(allow_none=True)
    discount_value = fields.Float(validate=validate.Range(min=0))
    max_discount = fields.Float(allow_none=True, validate=validate.Range(min=0))
    valid_from = UTCDateTime()
    valid_until = UTCDateTime()
    category_id = ObjectIdField(allow_none=True)
    product_ids = fields.List(ObjectIdField())
    banner_image = fields.Str(allow_none=True)
    is_active = fields.Bool()
    is_featured = fields.Bool()
