from marshmallow import Schema, fields, validate


class CategorySchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    description = fields.Str(required=False, allow_none=True)
    image_url = fields.Url(required=False, allow_none=True)


class ColorSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    hex_code = fields.Str(
        required=True,
        validate=validate.Regexp(r"^#[0-9A-Fa-f]{6}$", error="hex_code must look like #A1B2C3"),
    )


class FabricSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    description = fields.Str(required=False, allow_none=True)


class StoreSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    address = fields.Str(required=True)
    phone = fields.Str(required=False, allow_none=True)
    is_active = fields.Bool(required=False, load_default=True)
