from marshmallow import Schema, fields, validate

from ..constants.service_code import NOTIFICATION_TYPES, ROLES
from .common import PaginationSchema


class NotificationQuerySchema(PaginationSchema):
    unread_only = fields.Bool(required=False, load_default=False)


class BroadcastSchema(Schema):
    role = fields.Str(required=True, validate=validate.OneOf(list(ROLES.values())))
    type = fields.Str(required=False, load_default="system", validate=validate.OneOf(NOTIFICATION_TYPES))
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    message = fields.Str(required=True, validate=validate.Length(min=1))


class SettingsUpdateSchema(Schema):
    low_stock_threshold = fields.Int(validate=validate.Range(min=0))
    return_window_days = fields.Int(validate=validate.Range(min=0))
    auto_approve_reviews = fields.Bool()
