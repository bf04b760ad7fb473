# services/stock_movement_service.py
from ..models.saree import Saree
from ..models.stock_movement import StockMovement
from ..utils.helpers import to_object_id
from ..utils.logger import Log
from ..utils.pagination import paginate


class StockMovementService:
    """Writes and reads the stock movement ledger."""

    @staticmethod
    def record(saree_id, quantity, movement_type, source, order_ref_id=None, store_id=None,
               notes=None, created_by=None):
        log_tag = f"[stock_movement_service.py][StockMovementService][record][{saree_id}]"

        movement = StockMovement(
            saree_id=saree_id,
            quantity=quantity,
            movement_type=movement_type,
            source=source,
            order_ref_id=order_ref_id,
            store_id=store_id,
            notes=notes,
            created_by=created_by,
        )
        movement_id = movement.save()
        Log.info(f"{log_tag} {movement_type}/{source} {quantity:+d} ref={order_ref_id} -> {movement_id}")
        return movement_id

    @staticmethod
    def build_query(filters):
        query = {}
        if filters.get("saree_id"):
            query["saree_id"] = to_object_id(filters["saree_id"], "saree_id")
        if filters.get("store_id"):
            query["store_id"] = to_object_id(filters["store_id"], "store_id")
        if filters.get("movement_type"):
            query["movement_type"] = filters["movement_type"]
        if filters.get("source"):
            query["source"] = filters["source"]
        date_range = {}
        if filters.get("date_from"):
            date_range["$gte"] = filters["date_from"]
        if filters.get("date_to"):
            date_range["$lte"] = filters["date_to"]
        if date_range:
            query["created_at"] = date_range
        return query

    @staticmethod
    def list_movements(filters=None, page=None, page_size=None):
        result = paginate(
            StockMovement.collection(),
            StockMovementService.build_query(filters or {}),
            page=page,
            page_size=page_size,
            sort=[("created_at", -1), ("_id", -1)],
        )

        saree_ids = list({m["saree_id"] for m in result["items"]})
        names = {s["_id"]: s.get("name") for s in Saree.find({"_id": {"$in": saree_ids}})}
        items = []
        for movement in result["items"]:
            movement["saree_name"] = names.get(movement["saree_id"])
            items.append(StockMovement.serialize(movement))
        result["items"] = items
        return result

    @staticmethod
    def movement_stats():
        """Units sold and returned per source (online, store)."""
        pipeline = [
            {"$match": {"movement_type": {"$in": [StockMovement.TYPE_SALE, StockMovement.TYPE_RETURN]}}},
            {"$group": {
                "_id": {"movement_type": "$movement_type", "source": "$source"},
                "quantity": {"$sum": "$quantity"},
            }},
        ]
        stats = {
            source: {"sold": 0, "returned": 0}
            for source in (StockMovement.SOURCE_ONLINE, StockMovement.SOURCE_STORE)
        }
        for row in StockMovement.collection().aggregate(pipeline):
            source = row["_id"]["source"]
            if source not in stats:
                continue
            if row["_id"]["movement_type"] == StockMovement.TYPE_SALE:
                stats[source]["sold"] += abs(int(row["quantity"]))
            else:
                stats[source]["returned"] += int(row["quantity"])

        stats["total_sold"] = sum(stats[s]["sold"] for s in (StockMovement.SOURCE_ONLINE, StockMovement.SOURCE_STORE))
        stats["total_returned"] = sum(stats[s]["returned"] for s in (StockMovement.SOURCE_ONLINE, StockMovement.SOURCE_STORE))
        return stats
