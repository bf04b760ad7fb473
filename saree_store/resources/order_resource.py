# saree_store/resources/order_resource.py

from flask.views import MethodView
from flask_smorest import Blueprint

from ..schemas.common import PaginationSchema
from ..schemas.order_schema import (
    OrderCreateSchema,
    OrderCancelSchema,
    CouponCheckSchema,
    ReturnCreateSchema,
    ReviewCreateSchema,
)
from ..security.auth import token_required, current_user_id
from ..services.order_service import OrderService
from ..services.return_service import ReturnService
from ..services.review_service import ReviewService
from ..utils.errors import AppError
from ..utils.helpers import serialize_doc
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log
from ..utils.rate_limits import checkout_limiter


blp_orders = Blueprint("Orders", __name__, description="Customer orders, returns and reviews")


@blp_orders.route("/orders")
class OrderListResource(MethodView):

    @token_required
    @blp_orders.arguments(PaginationSchema, location="query")
    def get(self, args):
        result = OrderService.list_user_orders(current_user_id(), args.get("page"), args.get("page_size"))
        return prepared_response(True, "OK", "Orders retrieved", data=result)

    @token_required
    @checkout_limiter("checkout")
    @blp_orders.arguments(OrderCreateSchema, location="json")
    def post(self, data):
        user_id = current_user_id()
        log_tag = f"[order_resource.py][OrderListResource][post][{user_id}]"
        try:
            address, phone = OrderService.resolve_shipping(
                user_id, address_id=data.get("address_id"), shipping_address=data.get("shipping_address")
            )
            order = OrderService.create_order(
                user_id,
                shipping_address=address,
                phone=phone,
                payment_method=data["payment_method"],
                coupon_code=data.get("coupon_code"),
                notes=data.get("notes"),
            )
            return prepared_response(True, "CREATED", "Order placed successfully", data=serialize_doc(order))
        except AppError as e:
            Log.info(f"{log_tag} order rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_orders.route("/orders/<string:order_id>")
class OrderDetailResource(MethodView):

    @token_required
    def get(self, order_id):
        try:
            order = OrderService.get_order(order_id, user_id=current_user_id())
            return prepared_response(True, "OK", "Order retrieved", data=serialize_doc(order))
        except AppError as e:
            return error_response(e)


@blp_orders.route("/orders/<string:order_id>/cancel")
class OrderCancelResource(MethodView):

    @token_required
    @blp_orders.arguments(OrderCancelSchema, location="json")
    def post(self, data, order_id):
        user_id = current_user_id()
        log_tag = f"[order_resource.py][OrderCancelResource][post][{user_id}][{order_id}]"
        try:
            order = OrderService.cancel_order(user_id, order_id, reason=data.get("reason"))
            return prepared_response(True, "OK", "Order cancelled", data=serialize_doc(order))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_orders.route("/orders/<string:order_id>/return-eligibility")
class ReturnEligibilityResource(MethodView):

    @token_required
    def get(self, order_id):
        try:
            result = ReturnService.check_eligibility(order_id, current_user_id())
            return prepared_response(True, "OK", "Eligibility checked", data=result)
        except AppError as e:
            return error_response(e)


@blp_orders.route("/coupons/check")
class CouponCheckResource(MethodView):

    @token_required
    @blp_orders.arguments(CouponCheckSchema, location="json")
    def post(self, data):
        try:
            result = OrderService.preview_coupon(current_user_id(), data["code"])
            return prepared_response(True, "OK", "Coupon applied", data=result)
        except AppError as e:
            return error_response(e)


@blp_orders.route("/returns")
class ReturnListResource(MethodView):

    @token_required
    @blp_orders.arguments(PaginationSchema, location="query")
    def get(self, args):
        result = ReturnService.list_user_returns(current_user_id(), args.get("page"), args.get("page_size"))
        return prepared_response(True, "OK", "Returns retrieved", data=result)

    @token_required
    @blp_orders.arguments(ReturnCreateSchema, location="json")
    def post(self, data):
        user_id = current_user_id()
        log_tag = f"[order_resource.py][ReturnListResource][post][{user_id}]"
        try:
            return_request = ReturnService.create_return(
                user_id,
                data["order_id"],
                reason=data["reason"],
                resolution=data["resolution"],
                items=data["items"],
                description=data.get("description"),
            )
            return prepared_response(True, "CREATED", "Return requested", data=serialize_doc(return_request))
        except AppError as e:
            Log.info(f"{log_tag} return rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_orders.route("/refunds")
class RefundListResource(MethodView):

    @token_required
    @blp_orders.arguments(PaginationSchema, location="query")
    def get(self, args):
        result = ReturnService.list_user_refunds(current_user_id(), args.get("page"), args.get("page_size"))
        return prepared_response(True, "OK", "Refunds retrieved", data=result)


@blp_orders.route("/returns/<string:return_id>")
class ReturnDetailResource(MethodView):

    @token_required
    def get(self, return_id):
        try:
            return_request = ReturnService.get_return(return_id, user_id=current_user_id())
            return prepared_response(True, "OK", "Return retrieved", data=serialize_doc(return_request))
        except AppError as e:
            return error_response(e)


@blp_orders.route("/returns/<string:return_id>/cancel")
class ReturnCancelResource(MethodView):

    @token_required
    def post(self, return_id):
        try:
            return_request = ReturnService.cancel_return(current_user_id(), return_id)
            return prepared_response(True, "OK", "Return cancelled", data=serialize_doc(return_request))
        except AppError as e:
            return error_response(e)


@blp_orders.route("/sarees/<string:saree_id>/reviews")
class ReviewCreateResource(MethodView):

    @token_required
    @blp_orders.arguments(ReviewCreateSchema, location="json")
    def post(self, data, saree_id):
        user_id = current_user_id()
        log_tag = f"[order_resource.py][ReviewCreateResource][post][{user_id}][{saree_id}]"
        try:
            review = ReviewService.create_review(user_id, saree_id, data["rating"], data.get("comment"))
            return prepared_response(True, "CREATED", "Review submitted", data=serialize_doc(review))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_orders.route("/sarees/<string:saree_id>/can-review")
class ReviewEligibilityResource(MethodView):

    @token_required
    def get(self, saree_id):
        try:
            result = ReviewService.can_review(current_user_id(), saree_id)
            return prepared_response(True, "OK", "Review eligibility checked", data=result)
        except AppError as e:
            return error_response(e)
