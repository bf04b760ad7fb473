# saree_store/resources/inventory_resource.py

from flask import g
from flask.views import MethodView
from flask_smorest import Blueprint

from ..constants.service_code import ROLES
from ..schemas.order_schema import (
    OrderQuerySchema,
    OrderStatusSchema,
    ReturnQuerySchema,
    ReturnStatusSchema,
    RefundQuerySchema,
    RefundStatusSchema,
)
from ..schemas.saree_schema import (
    BackofficeSareeQuerySchema,
    SareeCreateSchema,
    SareeUpdateSchema,
    ChannelUpdateSchema,
    StockAdjustSchema,
    LowStockQuerySchema,
    MovementQuerySchema,
)
from ..schemas.store_schema import StockRequestQuerySchema, StockRequestStatusSchema
from ..security.auth import token_required, role_required, current_user_id
from ..services.inventory_service import InventoryService
from ..services.order_service import OrderService
from ..services.return_service import ReturnService
from ..services.saree_service import SareeService
from ..services.stats_service import StatsService
from ..services.stock_movement_service import StockMovementService
from ..services.stock_request_service import StockRequestService
from ..utils.errors import AppError
from ..utils.helpers import serialize_doc
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log


blp_inventory = Blueprint("Inventory", __name__, url_prefix="/inventory", description="Stock, fulfilment and returns")

STAFF = (ROLES["INVENTORY"], ROLES["ADMIN"])


@blp_inventory.route("/overview")
class InventoryOverviewResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self):
        return prepared_response(True, "OK", "Overview retrieved", data=StatsService.inventory_overview())


# ---------------------------------------------------------------------------
# Sarees
# ---------------------------------------------------------------------------

@blp_inventory.route("/sarees")
class InventorySareeListResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(BackofficeSareeQuerySchema, location="query")
    def get(self, args):
        page = args.pop("page", None)
        page_size = args.pop("page_size", None)
        result = SareeService.list_sarees(args, page=page, page_size=page_size, public=False)
        return prepared_response(True, "OK", "Sarees retrieved", data=serialize_doc(result))

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(SareeCreateSchema, location="json")
    def post(self, data):
        user_id = current_user_id()
        log_tag = f"[inventory_resource.py][InventorySareeListResource][post][{user_id}]"
        allocations = data.pop("allocations", None)
        try:
            saree = InventoryService.create_saree(data, allocations=allocations, created_by=user_id)
            Log.info(f"{log_tag} saree {saree['_id']} created")
            return prepared_response(True, "CREATED", "Saree created", data=serialize_doc(saree))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_inventory.route("/sarees/<string:saree_id>")
class InventorySareeResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self, saree_id):
        try:
            saree = SareeService.get_backoffice_saree(saree_id)
            return prepared_response(True, "OK", "Saree retrieved", data=serialize_doc(saree))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(SareeUpdateSchema, location="json")
    def put(self, data, saree_id):
        user_id = current_user_id()
        log_tag = f"[inventory_resource.py][InventorySareeResource][put][{user_id}][{saree_id}]"
        allocations = data.pop("allocations", None)
        try:
            saree = InventoryService.update_saree(saree_id, data, allocations=allocations, updated_by=user_id)
            return prepared_response(True, "OK", "Saree updated", data=serialize_doc(saree))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")

    @token_required
    @role_required(*STAFF)
    def delete(self, saree_id):
        try:
            InventoryService.delete_saree(saree_id)
            return prepared_response(True, "OK", "Saree deactivated")
        except AppError as e:
            return error_response(e)


@blp_inventory.route("/sarees/<string:saree_id>/channel")
class SareeChannelResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(ChannelUpdateSchema, location="json")
    def put(self, data, saree_id):
        try:
            saree = InventoryService.update_distribution_channel(
                saree_id, data["distribution_channel"], updated_by=current_user_id()
            )
            return prepared_response(True, "OK", "Distribution channel updated", data=serialize_doc(saree))
        except AppError as e:
            return error_response(e)


@blp_inventory.route("/sarees/<string:saree_id>/stock")
class SareeStockResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(StockAdjustSchema, location="json")
    def put(self, data, saree_id):
        user_id = current_user_id()
        log_tag = f"[inventory_resource.py][SareeStockResource][put][{user_id}][{saree_id}]"
        try:
            saree = InventoryService.adjust_stock(
                saree_id,
                total_stock=data.get("total_stock"),
                online_stock=data.get("online_stock"),
                updated_by=user_id,
            )
            return prepared_response(True, "OK", "Stock adjusted", data=serialize_doc(saree))
        except AppError as e:
            Log.info(f"{log_tag} adjustment rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_inventory.route("/sarees/<string:saree_id>/allocations")
class SareeAllocationResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self, saree_id):
        try:
            InventoryService.get_saree(saree_id)
            return prepared_response(True, "OK", "Allocations retrieved", data=InventoryService.get_allocations(saree_id))
        except AppError as e:
            return error_response(e)


@blp_inventory.route("/sarees/<string:saree_id>/consistency")
class SareeConsistencyResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self, saree_id):
        try:
            return prepared_response(True, "OK", "Stock checked", data=InventoryService.check_invariant(saree_id))
        except AppError as e:
            return error_response(e)


@blp_inventory.route("/distribution")
class StockDistributionResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self):
        return prepared_response(True, "OK", "Distribution retrieved", data=InventoryService.get_stock_distribution())


@blp_inventory.route("/low-stock")
class LowStockResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(LowStockQuerySchema, location="query")
    def get(self, args):
        sarees = InventoryService.get_low_stock(threshold=args.get("threshold"))
        return prepared_response(True, "OK", "Low stock sarees retrieved", data=serialize_doc(sarees))


# ---------------------------------------------------------------------------
# Movement ledger
# ---------------------------------------------------------------------------

@blp_inventory.route("/movements")
class MovementListResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(MovementQuerySchema, location="query")
    def get(self, args):
        page = args.pop("page", None)
        page_size = args.pop("page_size", None)
        result = StockMovementService.list_movements(args, page=page, page_size=page_size)
        return prepared_response(True, "OK", "Movements retrieved", data=result)


@blp_inventory.route("/movements/stats")
class MovementStatsResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self):
        return prepared_response(True, "OK", "Movement stats retrieved", data=StockMovementService.movement_stats())


# ---------------------------------------------------------------------------
# Order fulfilment
# ---------------------------------------------------------------------------

@blp_inventory.route("/orders")
class FulfilmentOrderListResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(OrderQuerySchema, location="query")
    def get(self, args):
        page = args.pop("page", None)
        page_size = args.pop("page_size", None)
        result = OrderService.list_orders(args, page=page, page_size=page_size)
        return prepared_response(True, "OK", "Orders retrieved", data=result)


@blp_inventory.route("/orders/<string:order_id>")
class FulfilmentOrderResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self, order_id):
        try:
            return prepared_response(True, "OK", "Order retrieved", data=serialize_doc(OrderService.get_order(order_id)))
        except AppError as e:
            return error_response(e)


@blp_inventory.route("/orders/<string:order_id>/status")
class FulfilmentOrderStatusResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(OrderStatusSchema, location="json")
    def put(self, data, order_id):
        user_id = current_user_id()
        log_tag = f"[inventory_resource.py][FulfilmentOrderStatusResource][put][{user_id}][{order_id}]"
        try:
            order = OrderService.update_status(order_id, data["status"], note=data.get("note"), changed_by=user_id)
            return prepared_response(True, "OK", "Order status updated", data=serialize_doc(order))
        except AppError as e:
            Log.info(f"{log_tag} status change rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


# ---------------------------------------------------------------------------
# Returns & refunds
# ---------------------------------------------------------------------------

@blp_inventory.route("/returns")
class ReturnQueueResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(ReturnQuerySchema, location="query")
    def get(self, args):
        result = ReturnService.list_returns(
            status=args.get("status"), page=args.get("page"), page_size=args.get("page_size")
        )
        return prepared_response(True, "OK", "Returns retrieved", data=result)


@blp_inventory.route("/returns/<string:return_id>")
class ReturnReviewResource(MethodView):

    @token_required
    @role_required(*STAFF)
    def get(self, return_id):
        try:
            return_request = ReturnService.get_return(return_id)
            return prepared_response(True, "OK", "Return retrieved", data=serialize_doc(return_request))
        except AppError as e:
            return error_response(e)


@blp_inventory.route("/returns/<string:return_id>/status")
class ReturnStatusResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(ReturnStatusSchema, location="json")
    def put(self, data, return_id):
        user_id = current_user_id()
        log_tag = f"[inventory_resource.py][ReturnStatusResource][put][{user_id}][{return_id}]"
        try:
            return_request = ReturnService.update_status(
                return_id,
                data["status"],
                changed_by=user_id,
                note=data.get("note"),
                admin_notes=data.get("admin_notes"),
                inspection=data.get("items"),
            )
            return prepared_response(True, "OK", "Return updated", data=serialize_doc(return_request))
        except AppError as e:
            Log.info(f"{log_tag} return update rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_inventory.route("/refunds")
class RefundListResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(RefundQuerySchema, location="query")
    def get(self, args):
        result = ReturnService.list_refunds(
            status=args.get("status"), page=args.get("page"), page_size=args.get("page_size")
        )
        return prepared_response(True, "OK", "Refunds retrieved", data=result)


@blp_inventory.route("/refunds/<string:refund_id>")
class RefundResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(RefundStatusSchema, location="json")
    def put(self, data, refund_id):
        user_id = current_user_id()
        log_tag = f"[inventory_resource.py][RefundResource][put][{user_id}][{refund_id}]"
        try:
            refund = ReturnService.process_refund(
                refund_id, data["status"], processed_by=user_id, transaction_ref=data.get("transaction_ref")
            )
            return prepared_response(True, "OK", "Refund updated", data=serialize_doc(refund))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


# ---------------------------------------------------------------------------
# Store stock requests
# ---------------------------------------------------------------------------

@blp_inventory.route("/stock-requests")
class StockRequestQueueResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(StockRequestQuerySchema, location="query")
    def get(self, args):
        result = StockRequestService.list_requests(
            store_id=args.get("store_id"), status=args.get("status"),
            page=args.get("page"), page_size=args.get("page_size"),
        )
        return prepared_response(True, "OK", "Stock requests retrieved", data=result)


@blp_inventory.route("/stock-requests/<string:request_id>")
class StockRequestDecisionResource(MethodView):

    @token_required
    @role_required(*STAFF)
    @blp_inventory.arguments(StockRequestStatusSchema, location="json")
    def put(self, data, request_id):
        user_id = current_user_id()
        log_tag = f"[inventory_resource.py][StockRequestDecisionResource][put][{user_id}][{request_id}]"
        try:
            stock_request = StockRequestService.update_status(
                request_id, data["status"], changed_by=user_id, role=g.current_user.get("role"),
                note=data.get("note"),
            )
            return prepared_response(True, "OK", "Stock request updated", data=serialize_doc(stock_request))
        except AppError as e:
            Log.info(f"{log_tag} request update rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")
