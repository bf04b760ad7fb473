# saree_store/resources/store_resource.py

from flask import g
from flask.views import MethodView
from flask_smorest import Blueprint

from ..constants.service_code import ROLES, REQUEST_STATUS
from ..schemas.common import PaginationSchema
from ..schemas.store_schema import (
    StoreSaleSchema,
    SaleQuerySchema,
    StoreExchangeSchema,
    StockRequestSchema,
    StockRequestQuerySchema,
)
from ..security.auth import token_required, role_required, current_user_id
from ..services.inventory_service import InventoryService
from ..services.stats_service import StatsService
from ..services.stock_request_service import StockRequestService
from ..services.store_sale_service import StoreSaleService
from ..utils.errors import AppError
from ..utils.helpers import serialize_doc
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log
from ..utils.rate_limits import checkout_limiter


blp_store = Blueprint("Store", __name__, url_prefix="/store", description="Physical store counter operations")


def _store_id():
    return str(g.current_user["store_id"])


@blp_store.route("/dashboard")
class StoreDashboardResource(MethodView):

    @token_required
    @role_required(ROLES["STORE"])
    def get(self):
        try:
            return prepared_response(True, "OK", "Dashboard retrieved", data=StatsService.store_dashboard(_store_id()))
        except AppError as e:
            return error_response(e)


@blp_store.route("/inventory")
class StoreInventoryResource(MethodView):

    @token_required
    @role_required(ROLES["STORE"])
    def get(self):
        return prepared_response(True, "OK", "Store inventory retrieved", data=InventoryService.get_store_inventory(_store_id()))


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

@blp_store.route("/sales")
class StoreSaleListResource(MethodView):

    @token_required
    @role_required(ROLES["STORE"])
    @blp_store.arguments(SaleQuerySchema, location="query")
    def get(self, args):
        result = StoreSaleService.list_sales(
            _store_id(), page=args.get("page"), page_size=args.get("page_size"),
            date_from=args.get("date_from"), date_to=args.get("date_to"),
        )
        return prepared_response(True, "OK", "Sales retrieved", data=result)

    @token_required
    @role_required(ROLES["STORE"])
    @checkout_limiter("store_sale")
    @blp_store.arguments(StoreSaleSchema, location="json")
    def post(self, data):
        store_id = _store_id()
        log_tag = f"[store_resource.py][StoreSaleListResource][post][{store_id}]"
        try:
            sale = StoreSaleService.create_sale(
                store_id,
                sold_by=current_user_id(),
                items=data["items"],
                customer_name=data.get("customer_name"),
                customer_phone=data.get("customer_phone"),
                sale_type=data["sale_type"],
            )
            return prepared_response(True, "CREATED", "Sale recorded", data=serialize_doc(sale))
        except AppError as e:
            Log.info(f"{log_tag} sale rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_store.route("/sales/<string:sale_id>")
class StoreSaleResource(MethodView):

    @token_required
    @role_required(ROLES["STORE"])
    def get(self, sale_id):
        try:
            return prepared_response(True, "OK", "Sale retrieved", data=StoreSaleService.get_sale(_store_id(), sale_id))
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Exchanges
# ---------------------------------------------------------------------------

@blp_store.route("/exchanges")
class StoreExchangeResource(MethodView):

    @token_required
    @role_required(ROLES["STORE"])
    @blp_store.arguments(PaginationSchema, location="query")
    def get(self, args):
        result = StoreSaleService.list_exchanges(_store_id(), page=args.get("page"), page_size=args.get("page_size"))
        return prepared_response(True, "OK", "Exchanges retrieved", data=result)

    @token_required
    @role_required(ROLES["STORE"])
    @blp_store.arguments(StoreExchangeSchema, location="json")
    def post(self, data):
        store_id = _store_id()
        log_tag = f"[store_resource.py][StoreExchangeResource][post][{store_id}]"
        try:
            exchange = StoreSaleService.create_exchange(
                store_id,
                processed_by=current_user_id(),
                original_sale_id=data["original_sale_id"],
                return_items=data["return_items"],
                new_items=data.get("new_items"),
                notes=data.get("notes"),
            )
            return prepared_response(True, "CREATED", "Exchange processed", data=serialize_doc(exchange))
        except AppError as e:
            Log.info(f"{log_tag} exchange rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


# ---------------------------------------------------------------------------
# Stock requests
# ---------------------------------------------------------------------------

@blp_store.route("/stock-requests")
class StoreStockRequestResource(MethodView):

    @token_required
    @role_required(ROLES["STORE"])
    @blp_store.arguments(StockRequestQuerySchema, location="query")
    def get(self, args):
        result = StockRequestService.list_requests(
            store_id=_store_id(), status=args.get("status"), page=args.get("page"), page_size=args.get("page_size"),
        )
        return prepared_response(True, "OK", "Stock requests retrieved", data=result)

    @token_required
    @role_required(ROLES["STORE"])
    @blp_store.arguments(StockRequestSchema, location="json")
    def post(self, data):
        store_id = _store_id()
        log_tag = f"[store_resource.py][StoreStockRequestResource][post][{store_id}]"
        try:
            stock_request = StockRequestService.create(
                store_id, current_user_id(), data["saree_id"], data["quantity"], notes=data.get("notes")
            )
            return prepared_response(True, "CREATED", "Stock requested", data=serialize_doc(stock_request))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_store.route("/stock-requests/<string:request_id>/received")
class StoreStockReceivedResource(MethodView):

    @token_required
    @role_required(ROLES["STORE"])
    def post(self, request_id):
        try:
            stock_request = StockRequestService.update_status(
                request_id, REQUEST_STATUS["RECEIVED"], changed_by=current_user_id(),
                role=ROLES["STORE"], store_id=_store_id(),
            )
            return prepared_response(True, "OK", "Stock marked as received", data=serialize_doc(stock_request))
        except AppError as e:
            return error_response(e)
