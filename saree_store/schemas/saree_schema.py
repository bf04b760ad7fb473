from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from ..constants.service_code import DISTRIBUTION_CHANNELS, MOVEMENT_TYPES, MOVEMENT_SOURCES
from .common import ObjectIdField, PaginationSchema, UTCDateTime


class AllocationSchema(Schema):
    store_id = ObjectIdField(required=True)
    quantity = fields.Int(required=True, validate=validate.Range(min=0))


class SareeCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    description = fields.Str(required=False, allow_none=True)
    price = fields.Float(required=True, validate=validate.Range(min=0))
    category_id = ObjectIdField(required=False, allow_none=True)
    color_id = ObjectIdField(required=False, allow_none=True)
    fabric_id = ObjectIdField(required=False, allow_none=True)
    sku = fields.Str(required=False, allow_none=True)
    images = fields.List(fields.Str(), required=False, load_default=list)
    video_url = fields.Str(required=False, allow_none=True)
    total_stock = fields.Int(required=False, load_default=0, validate=validate.Range(min=0))
    online_stock = fields.Int(required=False, load_default=0, validate=validate.Range(min=0))
    distribution_channel = fields.Str(
        required=False, load_default="both", validate=validate.OneOf(DISTRIBUTION_CHANNELS)
    )
    is_active = fields.Bool(required=False, load_default=True)
    is_featured = fields.Bool(required=False, load_default=False)
    allocations = fields.List(fields.Nested(AllocationSchema), required=False, load_default=None)


class SareeUpdateSchema(Schema):
    name = fields.Str(validate=validate.Length(min=1, max=200))
    description = fields.Str(allow_none=True)
    price = fields.Float(validate=validate.Range(min=0))
    category_id = ObjectIdField(allow_none=True)
    color_id = ObjectIdField(allow_none=True)
    fabric_id = ObjectIdField(allow_none=True)
    sku = fields.Str(allow_none=True)
    images = fields.List(fields.Str())
    video_url = fields.Str(allow_none=True)
    total_stock = fields.Int(validate=validate.Range(min=0))
    online_stock = fields.Int(validate=validate.Range(min=0))
    distribution_channel = fields.Str(validate=validate.OneOf(DISTRIBUTION_CHANNELS))
    is_active = fields.Bool()
    is_featured = fields.Bool()
    allocations = fields.List(fields.Nested(AllocationSchema), load_default=None)


class ChannelUpdateSchema(Schema):
    distribution_channel = fields.Str(required=True, validate=validate.OneOf(DISTRIBUTION_CHANNELS))


class StockAdjustSchema(Schema):
    total_stock = fields.Int(required=False, validate=validate.Range(min=0))
    online_stock = fields.Int(required=False, validate=validate.Range(min=0))

    @validates_schema
    def validate_any(self, data, **kwargs):
        if "total_stock" not in data and "online_stock" not in data:
            raise ValidationError("Provide total_stock or online_stock.")


class SareeQuerySchema(PaginationSchema):
    search = fields.Str(required=False)
    category_id = ObjectIdField(required=False)
    color_id = ObjectIdField(required=False)
    fabric_id = ObjectIdField(required=False)
    min_price = fields.Float(required=False)
    max_price = fields.Float(required=False)
    featured = fields.Bool(required=False)
    sort = fields.Str(required=False, validate=validate.OneOf(["newest", "price_asc", "price_desc", "name"]))


class BackofficeSareeQuerySchema(SareeQuerySchema):
    is_active = fields.Bool(required=False)
    distribution_channel = fields.Str(required=False, validate=validate.OneOf(DISTRIBUTION_CHANNELS))


class LowStockQuerySchema(Schema):
    threshold = fields.Int(required=False, validate=validate.Range(min=0))


class MovementQuerySchema(PaginationSchema):
    saree_id = ObjectIdField(required=False)
    store_id = ObjectIdField(required=False)
    movement_type = fields.Str(required=False, validate=validate.OneOf(list(MOVEMENT_TYPES.values())))
    source = fields.Str(required=False, validate=validate.OneOf(list(MOVEMENT_SOURCES.values())))
    date_from = UTCDateTime(required=False)
    date_to = UTCDateTime(required=False)
