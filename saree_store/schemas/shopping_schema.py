from marshmallow import Schema, fields, validate

from .common import ObjectIdField

PINCODE = validate.Regexp(r"^\d{6}$", error="Pincode must be 6 digits")


class CartItemSchema(Schema):
    saree_id = ObjectIdField(required=True)
    quantity = fields.Int(required=False, load_default=1, validate=validate.Range(min=1))


class CartQuantitySchema(Schema):
    quantity = fields.Int(required=True, validate=validate.Range(min=0))


class WishlistItemSchema(Schema):
    saree_id = ObjectIdField(required=True)


class AddressSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    phone = fields.Str(required=True)
    address_line1 = fields.Str(required=True, validate=validate.Length(min=1))
    address_line2 = fields.Str(required=False, allow_none=True)
    landmark = fields.Str(required=False, allow_none=True)
    city = fields.Str(required=True)
    state = fields.Str(required=True)
    pincode = fields.Str(required=True, validate=PINCODE)
    is_default = fields.Bool(required=False, load_default=False)


class AddressUpdateSchema(Schema):
    name = fields.Str(validate=validate.Length(min=1, max=120))
    phone = fields.Str()
    address_line1 = fields.Str(validate=validate.Length(min=1))
    address_line2 = fields.Str(allow_none=True)
    landmark = fields.Str(allow_none=True)
    city = fields.Str()
    state = fields.Str()
    pincode = fields.Str(validate=PINCODE)
    is_default = fields.Bool()


class PincodeSchema(Schema):
    pincode = fields.Str(required=True, validate=PINCODE)
    city = fields.Str(required=False, allow_none=True)
    state = fields.Str(required=False, allow_none=True)
    delivery_days = fields.Int(required=False, load_default=5, validate=validate.Range(min=1))
    is_active = fields.Bool(required=False, load_default=True)


class PincodeUpdateSchema(Schema):
    city = fields.Str(allow_none=True)
    state = fields.Str(allow_none=True)
    delivery_days = fields.Int(validate=validate.Range(min=1))
    is_active = fields.Bool()
