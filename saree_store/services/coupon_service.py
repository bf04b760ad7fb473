# services/coupon_service.py

import random
import string

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..models.promotion import Coupon, CouponUsage
from ..utils.errors import AppError, ConflictError, CouponError, NotFoundError
from ..utils.helpers import utcnow, to_object_id, optional_object_id, money
from ..utils.logger import Log


class CouponService:
    """Service for generating, validating and redeeming coupon codes."""

    # Coupon code formats
    FORMAT_ALPHANUMERIC = "alphanumeric"  # ABC123XYZ
    FORMAT_LETTERS = "letters"            # ABCDEFGH
    FORMAT_NUMBERS = "numbers"            # 12345678
    FORMAT_MIXED = "mixed"                # AB12-CD34

    # no O/0/I/1
    UNAMBIGUOUS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

    @staticmethod
    def generate_code(length=8, format_type="alphanumeric", prefix="", suffix=""):
        """
        Generate a random coupon code.

        Args:
            length: Length of the random part (default 8)
            format_type: One of the FORMAT_* constants
            prefix: Optional prefix (e.g., "SAREE")
            suffix: Optional suffix (e.g., "2026")
        """
        if format_type == CouponService.FORMAT_LETTERS:
            random_part = ''.join(random.choices(string.ascii_uppercase, k=length))
        elif format_type == CouponService.FORMAT_NUMBERS:
            random_part = ''.join(random.choices(string.digits, k=length))
        elif format_type == CouponService.FORMAT_MIXED:
            part1 = ''.join(random.choices(CouponService.UNAMBIGUOUS, k=length // 2))
            part2 = ''.join(random.choices(CouponService.UNAMBIGUOUS, k=length // 2))
            random_part = f"{part1}-{part2}"
        else:
            random_part = ''.join(random.choices(CouponService.UNAMBIGUOUS, k=length))

        return f"{prefix}{random_part}{suffix}".upper()

    @staticmethod
    def generate_unique_code(max_attempts=10, **kwargs):
        for _ in range(max_attempts):
            code = CouponService.generate_code(**kwargs)
            if not Coupon.get_by_code(code):
                return code
        raise ConflictError("Could not generate a unique coupon code")

    # ------------------------------------------------------------------
    # Validation & discount
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_discount(coupon, order_amount):
        amount = float(order_amount)
        value = float(coupon.get("value") or 0)
        if coupon.get("type") == Coupon.TYPE_PERCENTAGE:
            discount = amount * value / 100
            if coupon.get("max_discount"):
                discount = min(discount, float(coupon["max_discount"]))
        elif coupon.get("type") == Coupon.TYPE_FIXED:
            discount = value
        else:
            discount = 0.0
        return money(max(0.0, min(discount, amount)))

    @staticmethod
    def validate(code, user_id, order_amount, eligible_amount=None):
        """
        Check a code against the order in a fixed order and return
        (coupon, discount). Raises CouponError with the first failure.

        eligible_amount is the part of the order a category-restricted
        coupon applies to; the discount is computed on it.
        """
        coupon = Coupon.get_by_code(code)
        if not coupon:
            raise CouponError("Invalid coupon code")
        if not coupon.get("is_active"):
            raise CouponError("This coupon is no longer active")

        now = utcnow()
        if coupon.get("valid_from") and now < coupon["valid_from"]:
            raise CouponError("This coupon is not yet valid")
        if coupon.get("valid_until") and now > coupon["valid_until"]:
            raise CouponError("This coupon has expired")

        if coupon.get("usage_limit") is not None and coupon.get("usage_count", 0) >= coupon["usage_limit"]:
            raise CouponError("This coupon has reached its usage limit")

        if coupon.get("per_user_limit") is not None:
            used = CouponUsage.collection().count_documents(
                {"coupon_id": coupon["_id"], "user_id": to_object_id(user_id)}
            )
            if used >= coupon["per_user_limit"]:
                raise CouponError("You have already used this coupon")

        if float(order_amount) < float(coupon.get("min_order_amount") or 0):
            raise CouponError(f"Minimum order amount is {money(coupon['min_order_amount'])}")

        base = order_amount if eligible_amount is None else eligible_amount
        if coupon.get("category_id") and not base:
            raise CouponError("This coupon does not apply to the items in your cart")

        return coupon, CouponService.calculate_discount(coupon, base)

    @staticmethod
    def record_usage(coupon_id, user_id, order_id, discount_amount):
        log_tag = f"[coupon_service.py][CouponService][record_usage][{coupon_id}][{user_id}]"

        cid = to_object_id(coupon_id)
        coupon = Coupon.collection().find_one({"_id": cid})
        if coupon is None:
            raise NotFoundError("Coupon not found")

        query = {"_id": cid}
        if coupon.get("usage_limit") is not None:
            # the limit is re-checked by the write itself
            query["usage_count"] = {"$lt": coupon["usage_limit"]}
        updated = Coupon.collection().find_one_and_update(
            query,
            {"$inc": {"usage_count": 1}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            Log.info(f"{log_tag} usage limit reached")
            raise CouponError("This coupon has reached its usage limit")

        if coupon.get("per_user_limit") is not None:
            used = CouponUsage.collection().count_documents({"coupon_id": cid, "user_id": to_object_id(user_id)})
            if used >= coupon["per_user_limit"]:
                CouponService._decrement(cid)
                Log.info(f"{log_tag} per-user limit reached")
                raise CouponError("You have already used this coupon")

        CouponUsage(
            coupon_id=coupon_id, user_id=user_id, order_id=order_id, discount_amount=discount_amount
        ).save()
        Log.info(f"{log_tag} usage recorded, count={updated.get('usage_count')}")
        return updated

    @staticmethod
    def _decrement(cid):
        Coupon.collection().update_one(
            {"_id": cid, "usage_count": {"$gt": 0}},
            {"$inc": {"usage_count": -1}, "$set": {"updated_at": utcnow()}},
        )

    @staticmethod
    def release_usage(coupon_id, order_id):
        """Undo record_usage for an order that was never placed."""
        cid = to_object_id(coupon_id)
        removed = CouponUsage.collection().delete_one({"coupon_id": cid, "order_id": to_object_id(order_id)})
        if removed.deleted_count:
            CouponService._decrement(cid)

    # ------------------------------------------------------------------
    # Admin CRUD
    # ------------------------------------------------------------------

    @staticmethod
    def create(data, created_by=None):
        data = dict(data)
        if not data.get("code"):
            data["code"] = CouponService.generate_unique_code(prefix=data.pop("prefix", "") or "")
        else:
            data.pop("prefix", None)
        if data["valid_until"] <= data["valid_from"]:
            raise AppError("valid_until must be after valid_from")
        if data["type"] == Coupon.TYPE_PERCENTAGE and float(data["value"]) > 100:
            raise AppError("Percentage coupons cannot exceed 100")
        try:
            coupon_id = Coupon(created_by=created_by, **data).save()
        except DuplicateKeyError:
            raise ConflictError(f"Coupon code {data['code'].upper()} already exists")
        return Coupon.get_by_id(coupon_id)

    @staticmethod
    def update(coupon_id, data):
        coupon = CouponService.get(coupon_id)
        data = dict(data)
        if "code" in data:
            data["code"] = data["code"].strip().upper()
        if "category_id" in data:
            data["category_id"] = optional_object_id(data["category_id"], "category_id")
        valid_from = data.get("valid_from", coupon.get("valid_from"))
        valid_until = data.get("valid_until", coupon.get("valid_until"))
        if valid_from and valid_until and valid_until <= valid_from:
            raise AppError("valid_until must be after valid_from")
        try:
            Coupon.update(coupon_id, **data)
        except DuplicateKeyError:
            raise ConflictError(f"Coupon code {data['code']} already exists")
        return Coupon.get_by_id(coupon_id)

    @staticmethod
    def get(coupon_id):
        coupon = Coupon.get_by_id(coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    @staticmethod
    def list_all():
        return Coupon.find({}, sort=[("created_at", -1)])

    @staticmethod
    def delete(coupon_id):
        if not Coupon.delete(coupon_id):
            raise NotFoundError("Coupon not found")
        return True
