from marshmallow import Schema, fields, validate

from ..constants.service_code import REQUEST_STATUS, STORE_SALE_TYPES
from .common import ObjectIdField, PaginationSchema, UTCDateTime


class SaleItemSchema(Schema):
    saree_id = ObjectIdField(required=True)
    quantity = fields.Int(required=True, validate=validate.Range(min=1))


class StoreSaleSchema(Schema):
    items = fields.List(fields.Nested(SaleItemSchema), required=True, validate=validate.Length(min=1))
    customer_name = fields.Str(required=False, allow_none=True)
    customer_phone = fields.Str(required=False, allow_none=True)
    sale_type = fields.Str(required=False, load_default=STORE_SALE_TYPES[0], validate=validate.OneOf(STORE_SALE_TYPES))


class SaleQuerySchema(PaginationSchema):
    date_from = UTCDateTime(required=False)
    date_to = UTCDateTime(required=False)


class ExchangeReturnItemSchema(Schema):
    sale_item_id = ObjectIdField(required=True)
    quantity = fields.Int(required=True, validate=validate.Range(min=1))


class StoreExchangeSchema(Schema):
    original_sale_id = ObjectIdField(required=True)
    return_items = fields.List(
        fields.Nested(ExchangeReturnItemSchema), required=True, validate=validate.Length(min=1)
    )
    new_items = fields.List(fields.Nested(SaleItemSchema), required=False, load_default=list)
    notes = fields.Str(required=False, allow_none=True)


class StockRequestSchema(Schema):
    saree_id = ObjectIdField(required=True)
    quantity = fields.Int(required=True, validate=validate.Range(min=1))
    notes = fields.Str(required=False, allow_none=True)


class StockRequestStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(list(REQUEST_STATUS.values())))
    note = fields.Str(required=False, allow_none=True)


class StockRequestQuerySchema(PaginationSchema):
    status = fields.Str(required=False, validate=validate.OneOf(list(REQUEST_STATUS.values())))
    store_id = ObjectIdField(required=False)
