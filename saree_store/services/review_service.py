# services/review_service.py
from pymongo.errors import DuplicateKeyError

from ..constants.service_code import ORDER_STATUS
from ..models.engagement import Review
from ..models.order import Order
from ..models.saree import Saree
from ..utils.errors import ConflictError, ForbiddenError, NotFoundError
from ..utils.helpers import to_object_id
from ..utils.logger import Log
from ..utils.pagination import paginate
from .settings_service import SettingsService


class ReviewService:

    @staticmethod
    def create_review(user_id, saree_id, rating, comment=None):
        """Only buyers with a delivered order containing the saree may review it, once."""
        log_tag = f"[review_service.py][ReviewService][create_review][{user_id}][{saree_id}]"

        saree_oid = to_object_id(saree_id, "saree_id")
        if not Saree.get_by_id(saree_oid):
            raise NotFoundError("Saree not found")

        order = Order.find_one({
            "user_id": to_object_id(user_id),
            "status": ORDER_STATUS["DELIVERED"],
            "items.saree_id": saree_oid,
        })
        if not order:
            Log.info(f"{log_tag} no delivered order for this saree")
            raise ForbiddenError("You can only review products from your delivered orders")

        review = Review(
            user_id=user_id,
            saree_id=saree_oid,
            order_id=order["_id"],
            rating=rating,
            comment=comment,
            is_verified_purchase=True,
            is_approved=SettingsService.get("auto_approve_reviews"),
        )
        try:
            review_id = review.save()
        except DuplicateKeyError:
            raise ConflictError("You have already reviewed this product")

        Log.info(f"{log_tag} review {review_id} created")
        return Review.get_by_id(review_id)

    @staticmethod
    def can_review(user_id, saree_id):
        """Whether the user may review the saree now, and why not when they may not."""
        saree_oid = to_object_id(saree_id, "saree_id")
        user_oid = to_object_id(user_id)
        if not Saree.get_by_id(saree_oid):
            raise NotFoundError("Saree not found")

        if Review.find_one({"user_id": user_oid, "saree_id": saree_oid}):
            return {"can_review": False, "reason": "already_reviewed"}
        delivered = Order.find_one({
            "user_id": user_oid,
            "status": ORDER_STATUS["DELIVERED"],
            "items.saree_id": saree_oid,
        })
        if not delivered:
            return {"can_review": False, "reason": "not_purchased"}
        return {"can_review": True, "reason": None}

    @staticmethod
    def list_for_saree(saree_id, page=None, page_size=None):
        return paginate(
            Review.collection(),
            {"saree_id": to_object_id(saree_id, "saree_id"), "is_approved": True},
            page=page,
            page_size=page_size,
            sort=[("created_at", -1)],
            transform=Review.serialize,
        )

    @staticmethod
    def stats(saree_id):
        pipeline = [
            {"$match": {"saree_id": to_object_id(saree_id, "saree_id"), "is_approved": True}},
            {"$group": {"_id": None, "average": {"$avg": "$rating"}, "count": {"$sum": 1}}},
        ]
        rows = list(Review.collection().aggregate(pipeline))
        if not rows:
            return {"average_rating": 0, "review_count": 0}
        return {"average_rating": round(float(rows[0]["average"]), 1), "review_count": int(rows[0]["count"])}

    @staticmethod
    def list_all(page=None, page_size=None, is_approved=None):
        query = {}
        if is_approved is not None:
            query["is_approved"] = is_approved
        return paginate(
            Review.collection(), query, page=page, page_size=page_size,
            sort=[("created_at", -1)], transform=Review.serialize,
        )

    @staticmethod
    def set_approval(review_id, is_approved=True):
        if not Review.update(review_id, is_approved=bool(is_approved)):
            raise NotFoundError("Review not found")
        return Review.get_by_id(review_id)

    @staticmethod
    def delete(review_id):
        if not Review.delete(review_id):
            raise NotFoundError("Review not found")
        return True
