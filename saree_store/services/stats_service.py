# services/stats_service.py
from ..constants.service_code import ORDER_STATUS, REQUEST_STATUS, ROLES
from ..models.order import Order
from ..models.saree import Saree, StoreInventory
from ..models.stock_request import StockRequest
from ..models.store_sale import StoreSale
from ..models.user import User
from ..utils.helpers import to_object_id, money
from .inventory_service import InventoryService
from .settings_service import SettingsService
from .stock_movement_service import StockMovementService
from .store_sale_service import StoreSaleService


def _sum(collection, match, field):
    pipeline = [{"$match": match}, {"$group": {"_id": None, "total": {"$sum": f"${field}"}}}]
    result = list(collection.aggregate(pipeline))
    return result[0]["total"] if result else 0


class StatsService:

    @staticmethod
    def admin_dashboard():
        threshold = SettingsService.get("low_stock_threshold")
        return {
            "total_users": User.collection().count_documents({"role": ROLES["USER"]}),
            "total_sarees": Saree.collection().count_documents({"is_active": True}),
            "total_orders": Order.collection().count_documents({}),
            "pending_orders": Order.collection().count_documents({"status": ORDER_STATUS["PENDING"]}),
            "revenue": money(_sum(Order.collection(), {"status": ORDER_STATUS["DELIVERED"]}, "final_amount")),
            "low_stock_count": Saree.collection().count_documents(
                {"is_active": True, "total_stock": {"$lte": threshold}}
            ),
            "store_sales_revenue": money(_sum(StoreSale.collection(), {}, "total_amount")),
            "movements": StockMovementService.movement_stats(),
        }

    @staticmethod
    def store_dashboard(store_id):
        store_oid = to_object_id(store_id, "store_id")
        today = StoreSaleService.today_summary(store_oid)
        return {
            "today_sales_count": today["count"],
            "today_revenue": today["revenue"],
            "inventory_units": int(_sum(StoreInventory.collection(), {"store_id": store_oid}, "quantity")),
            "pending_requests": StockRequest.collection().count_documents(
                {"store_id": store_oid, "status": REQUEST_STATUS["PENDING"]}
            ),
        }

    @staticmethod
    def inventory_overview():
        distribution = InventoryService.get_stock_distribution()
        totals = {"total": 0, "online": 0, "store": 0, "unallocated": 0}
        inconsistent = 0
        for row in distribution:
            store_sum = sum(a["quantity"] for a in row["store_allocations"])
            totals["total"] += row["total_stock"]
            totals["online"] += row["online_stock"]
            totals["store"] += store_sum
            totals["unallocated"] += row["unallocated"]
            if row["online_stock"] + store_sum > row["total_stock"]:
                inconsistent += 1

        return {
            "saree_count": len(distribution),
            "totals": totals,
            "inconsistent_count": inconsistent,
            "low_stock_count": len(InventoryService.get_low_stock()),
            "pending_requests": StockRequest.collection().count_documents({"status": REQUEST_STATUS["PENDING"]}),
        }
