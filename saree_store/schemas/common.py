from datetime import timezone

from bson import ObjectId
from marshmallow import Schema, fields, validate, ValidationError


def validate_objectid(value):
    if not ObjectId.is_valid(value):
        raise ValidationError(f"{value} is not a valid ID.")


class UTCDateTime(fields.DateTime):
    """Accepts ISO datetimes and stores them as naive UTC, the way pymongo returns them."""

    def _deserialize(self, value, attr, data, **kwargs):
        result = super()._deserialize(value, attr, data, **kwargs)
        if result.tzinfo is not None:
            result = result.astimezone(timezone.utc).replace(tzinfo=None)
        return result


def ObjectIdField(**kwargs):
    return fields.Str(validate=validate_objectid, **kwargs)


class PaginationSchema(Schema):
    page = fields.Int(required=False, load_default=1)
    page_size = fields.Int(required=False, load_default=10)
