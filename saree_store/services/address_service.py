# services/address_service.py
from pymongo.errors import DuplicateKeyError

from ..models.shopping import Address, ServiceablePincode
from ..utils.errors import AppError, ConflictError, NotFoundError
from ..utils.helpers import utcnow, to_object_id, validate_and_format_phone_number
from ..utils.logger import Log


class AddressService:

    @staticmethod
    def format_phone(phone):
        formatted = validate_and_format_phone_number(phone)
        if not formatted:
            raise AppError("Invalid phone number")
        return formatted

    @staticmethod
    def list(user_id):
        return Address.find({"user_id": to_object_id(user_id)}, sort=[("is_default", -1), ("created_at", -1)])

    @staticmethod
    def get(user_id, address_id):
        address = Address.get_by_id(address_id, user_id=to_object_id(user_id))
        if not address:
            raise NotFoundError("Address not found")
        return address

    @staticmethod
    def _clear_default(user_oid, keep_id=None):
        query = {"user_id": user_oid, "is_default": True}
        if keep_id is not None:
            query["_id"] = {"$ne": keep_id}
        Address.collection().update_many(query, {"$set": {"is_default": False, "updated_at": utcnow()}})

    @staticmethod
    def create(user_id, data):
        log_tag = f"[address_service.py][AddressService][create][{user_id}]"
        user_oid = to_object_id(user_id)
        data = dict(data)
        data["phone"] = AddressService.format_phone(data["phone"])

        # the first address is always the default
        is_first = Address.collection().count_documents({"user_id": user_oid}) == 0
        data["is_default"] = bool(data.get("is_default")) or is_first

        address = Address(user_id=user_oid, **data)
        address_id = address.save()
        if data["is_default"]:
            AddressService._clear_default(user_oid, keep_id=address._id)

        Log.info(f"{log_tag} address {address_id} created (default={data['is_default']})")
        return Address.get_by_id(address_id)

    @staticmethod
    def update(user_id, address_id, data):
        existing = AddressService.get(user_id, address_id)
        data = dict(data)
        if "phone" in data:
            data["phone"] = AddressService.format_phone(data["phone"])
        if data.get("is_default") is False and existing.get("is_default"):
            # keep exactly one default; promote another by setting it instead
            data.pop("is_default")
        Address.update(existing["_id"], **data)
        if data.get("is_default"):
            AddressService._clear_default(existing["user_id"], keep_id=existing["_id"])
        return Address.get_by_id(existing["_id"])

    @staticmethod
    def set_default(user_id, address_id):
        return AddressService.update(user_id, address_id, {"is_default": True})

    @staticmethod
    def delete(user_id, address_id):
        existing = AddressService.get(user_id, address_id)
        Address.delete(existing["_id"])

        if existing.get("is_default"):
            remaining = Address.find({"user_id": existing["user_id"]}, sort=[("created_at", -1)], limit=1)
            if remaining:
                Address.update(remaining[0]["_id"], is_default=True)
        return True

    # ------------------------------------------------------------------
    # Serviceable pincodes
    # ------------------------------------------------------------------

    @staticmethod
    def check_pincode(pincode):
        record = ServiceablePincode.find_one({"pincode": str(pincode).strip(), "is_active": True})
        if not record:
            return {"pincode": str(pincode).strip(), "serviceable": False, "delivery_days": None}
        return {
            "pincode": record["pincode"],
            "serviceable": True,
            "delivery_days": record.get("delivery_days"),
            "city": record.get("city"),
            "state": record.get("state"),
        }

    @staticmethod
    def list_pincodes():
        return ServiceablePincode.find({}, sort=[("pincode", 1)])

    @staticmethod
    def create_pincode(data):
        try:
            pincode_id = ServiceablePincode(**data).save()
        except DuplicateKeyError:
            raise ConflictError(f"Pincode {data.get('pincode')} already exists")
        return ServiceablePincode.get_by_id(pincode_id)

    @staticmethod
    def update_pincode(pincode_id, data):
        if not ServiceablePincode.update(pincode_id, **data):
            raise NotFoundError("Pincode not found")
        return ServiceablePincode.get_by_id(pincode_id)

    @staticmethod
    def delete_pincode(pincode_id):
        if not ServiceablePincode.delete(pincode_id):
            raise NotFoundError("Pincode not found")
        return True
