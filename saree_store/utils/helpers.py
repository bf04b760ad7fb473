from datetime import datetime, timezone

import phonenumbers
from bson import ObjectId
from bson.errors import InvalidId

from ..constants.service_code import DEFAULT_PHONE_REGION
from .errors import AppError


def utcnow():
    """Naive UTC timestamp, matching what pymongo hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value, field="id"):
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise AppError(f"Invalid {field}: {value!r}")


def money(value):
    return round(float(value or 0), 2)


def serialize_doc(value):
    """
    Make a Mongo document JSON-safe: ObjectId -> str, datetime -> ISO string.
    Mongo's "_id" is exposed as "id".
    """
    if isinstance(value, list):
        return [serialize_doc(v) for v in value]
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            out["id" if key == "_id" else key] = serialize_doc(item)
        return out
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def validate_and_format_phone_number(phone_number, country_iso_2=DEFAULT_PHONE_REGION):
    """
    Validate the phone number for the given ISO-2 region and return it
    as country code + national number without spaces, or None if invalid.
    """
    try:
        parsed_number = phonenumbers.parse(phone_number, country_iso_2)
    except phonenumbers.phonenumberutil.NumberParseException:
        return None

    if not phonenumbers.is_valid_number(parsed_number):
        return None

    return f"{parsed_number.country_code}{parsed_number.national_number}"


def optional_object_id(value, field="id"):
    return to_object_id(value, field) if value else None
