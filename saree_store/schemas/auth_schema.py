from marshmallow import Schema, fields, validate

from ..constants.service_code import ROLES, STAFF_ROLES
from .common import ObjectIdField, PaginationSchema


class RegisterSchema(Schema):
    email = fields.Email(required=True, error_messages={"invalid": "Invalid email address"})
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=8),
        error_messages={"required": "Password is required"},
    )
    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    phone = fields.Str(required=False, allow_none=True, load_default=None)


class LoginSchema(Schema):
    email = fields.Email(required=True, error_messages={"invalid": "Invalid email address"})
    password = fields.Str(required=True, load_only=True, error_messages={"required": "password is required"})


class RefreshTokenSchema(Schema):
    refresh_token = fields.Str(required=True, error_messages={"required": "refresh_token is required"})


class ChangePasswordSchema(Schema):
    current_password = fields.Str(required=True, load_only=True)
    new_password = fields.Str(required=True, load_only=True, validate=validate.Length(min=8))


class StaffCreateSchema(Schema):
    email = fields.Email(required=True, error_messages={"invalid": "Invalid email address"})
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=8))
    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    role = fields.Str(required=True, validate=validate.OneOf(STAFF_ROLES))
    phone = fields.Str(required=False, allow_none=True, load_default=None)
    store_id = ObjectIdField(required=False, allow_none=True, load_default=None)


class UserQuerySchema(PaginationSchema):
    role = fields.Str(required=False, validate=validate.OneOf(list(ROLES.values())))


class UserStatusSchema(Schema):
    is_active = fields.Bool(required=True)
