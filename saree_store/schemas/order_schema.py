from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from ..constants.service_code import (
    ORDER_STATUS,
    PAYMENT_METHODS,
    PAYMENT_STATUS,
    RETURN_STATUS,
    RETURN_REASONS,
    RETURN_RESOLUTIONS,
    REFUND_STATUS,
)
from .common import ObjectIdField, PaginationSchema
from .shopping_schema import AddressSchema


class OrderCreateSchema(Schema):
    address_id = ObjectIdField(required=False, allow_none=True)
    shipping_address = fields.Nested(AddressSchema, required=False, allow_none=True)
    payment_method = fields.Str(required=True, validate=validate.OneOf(PAYMENT_METHODS))
    coupon_code = fields.Str(required=False, allow_none=True)
    notes = fields.Str(required=False, allow_none=True, validate=validate.Length(max=500))

    @validates_schema
    def validate_address(self, data, **kwargs):
        if not data.get("address_id") and not data.get("shipping_address"):
            raise ValidationError("Provide address_id or shipping_address.", field_name="address_id")


class OrderCancelSchema(Schema):
    reason = fields.Str(required=False, allow_none=True)


class OrderStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(list(ORDER_STATUS.values())))
    note = fields.Str(required=False, allow_none=True)


class OrderQuerySchema(PaginationSchema):
    status = fields.Str(required=False, validate=validate.OneOf(list(ORDER_STATUS.values())))
    payment_status = fields.Str(required=False, validate=validate.OneOf(list(PAYMENT_STATUS.values())))
    user_id = ObjectIdField(required=False)


class CouponCheckSchema(Schema):
    code = fields.Str(required=True)


class ReturnItemSchema(Schema):
    order_item_id = ObjectIdField(required=True)
    quantity = fields.Int(required=True, validate=validate.Range(min=1))
    exchange_saree_id = ObjectIdField(required=False, allow_none=True)


class ReturnCreateSchema(Schema):
    order_id = ObjectIdField(required=True)
    reason = fields.Str(required=True, validate=validate.OneOf(RETURN_REASONS))
    description = fields.Str(required=False, allow_none=True)
    resolution = fields.Str(required=False, load_default="refund", validate=validate.OneOf(RETURN_RESOLUTIONS))
    items = fields.List(fields.Nested(ReturnItemSchema), required=True, validate=validate.Length(min=1))


class InspectionItemSchema(Schema):
    order_item_id = ObjectIdField(required=True)
    condition = fields.Str(required=False, allow_none=True)
    is_restockable = fields.Bool(required=False)


class ReturnStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(list(RETURN_STATUS.values())))
    note = fields.Str(required=False, allow_none=True)
    admin_notes = fields.Str(required=False, allow_none=True)
    items = fields.List(fields.Nested(InspectionItemSchema), required=False)


class ReturnQuerySchema(PaginationSchema):
    status = fields.Str(required=False, validate=validate.OneOf(list(RETURN_STATUS.values())))


class RefundStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(list(REFUND_STATUS.values())))
    transaction_ref = fields.Str(required=False, allow_none=True)


class RefundQuerySchema(PaginationSchema):
    status = fields.Str(required=False, validate=validate.OneOf(list(REFUND_STATUS.values())))


class ReviewCreateSchema(Schema):
    rating = fields.Int(required=True, validate=validate.Range(min=1, max=5))
    comment = fields.Str(required=False, allow_none=True, validate=validate.Length(max=2000))


class ReviewQuerySchema(PaginationSchema):
    is_approved = fields.Bool(required=False)


class ReviewApprovalSchema(Schema):
    is_approved = fields.Bool(required=True)
