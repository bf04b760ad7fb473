# services/inventory_service.py
from flask import current_app, has_app_context
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..constants.service_code import DISTRIBUTION_CHANNELS
from ..models.catalog import Store
from ..models.saree import Saree, StoreInventory
from ..models.stock_movement import StockMovement
from ..utils.errors import AllocationError, ConflictError, InsufficientStockError, NotFoundError
from ..utils.helpers import utcnow, to_object_id
from ..utils.logger import Log
from .notification_service import NotificationService
from .settings_service import SettingsService
from .stock_movement_service import StockMovementService


class InventoryService:
    """
    Service layer for saree stock and its split across channels.

    For every saree:
        total_stock = online_stock + sum(store allocations) + unallocated

    All stock changes go through this service. Decrements are guarded
    atomic updates whose filter carries the precondition, so concurrent
    orders and store sales can never drive a counter below zero. Every
    change to total_stock writes one stock movement.
    """

    # ------------------------------------------------------------------
    # Allocation rules
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_allocations(allocations):
        normalized = []
        seen = set()
        for allocation in allocations or []:
            store_id = str(allocation["store_id"])
            quantity = int(allocation["quantity"])
            if quantity < 0:
                raise AllocationError("Allocation quantities must be non-negative")
            if store_id in seen:
                raise AllocationError("Duplicate store IDs are not allowed")
            seen.add(store_id)
            normalized.append({"store_id": store_id, "quantity": quantity})
        return normalized

    @staticmethod
    def validate_allocations(channel, total_stock, online_stock, allocations):
        """
        Apply the distribution-channel rules.

        Returns (online_stock, allocations) as they should be stored.
        Raises AllocationError when the numbers do not add up.
        """
        if channel not in DISTRIBUTION_CHANNELS:
            raise AllocationError(f"Invalid distribution channel '{channel}'")

        total_stock = int(total_stock)
        online_stock = int(online_stock or 0)
        if total_stock < 0 or online_stock < 0:
            raise AllocationError("Stock values must be non-negative")

        normalized = InventoryService._normalize_allocations(allocations)

        if channel == "online":
            return total_stock, []

        store_total = sum(a["quantity"] for a in normalized)

        if channel == "shop":
            if store_total != total_stock:
                raise AllocationError(
                    f"Store allocations ({store_total}) must equal total stock ({total_stock})"
                )
            return 0, normalized

        if online_stock + store_total != total_stock:
            raise AllocationError(
                f"Online ({online_stock}) + Store allocations ({store_total}) "
                f"must equal total stock ({total_stock})"
            )
        return online_stock, normalized

    @staticmethod
    def _ensure_stores_exist(allocations):
        store_ids = [to_object_id(a["store_id"], "store_id") for a in allocations]
        if not store_ids:
            return
        found = {s["_id"] for s in Store.find({"_id": {"$in": store_ids}})}
        missing = [str(s) for s in store_ids if s not in found]
        if missing:
            raise NotFoundError(f"Store(s) not found: {', '.join(missing)}")

    # ------------------------------------------------------------------
    # Saree create / update
    # ------------------------------------------------------------------

    @staticmethod
    def ledger_source(channel):
        # shop-only sarees have no online bucket to attribute changes to
        return StockMovement.SOURCE_STORE if channel == "shop" else StockMovement.SOURCE_ONLINE

    @staticmethod
    def create_saree(data, allocations=None, created_by=None):
        log_tag = f"[inventory_service.py][InventoryService][create_saree][{created_by}]"

        channel = data.get("distribution_channel", "both")
        online_stock, allocations = InventoryService.validate_allocations(
            channel, data.get("total_stock", 0), data.get("online_stock", 0), allocations
        )
        InventoryService._ensure_stores_exist(allocations)

        fields = dict(data)
        fields["online_stock"] = online_stock
        fields["distribution_channel"] = channel
        saree = Saree(**fields)
        saree_id = saree.save()

        try:
            for allocation in allocations:
                StoreInventory(
                    store_id=allocation["store_id"], saree_id=saree_id, quantity=allocation["quantity"]
                ).save()
        except DuplicateKeyError:
            # undo the partial insert
            StoreInventory.collection().delete_many({"saree_id": saree._id})
            Saree.delete(saree_id)
            Log.error(f"{log_tag} allocation insert failed, saree rolled back")
            raise ConflictError("Could not record store allocations")

        if saree.total_stock > 0:
            StockMovementService.record(
                saree_id, saree.total_stock, StockMovement.TYPE_ADJUSTMENT, InventoryService.ledger_source(channel),
                notes="Opening stock", created_by=created_by,
            )

        Log.info(f"{log_tag} saree {saree_id} created with {len(allocations)} store allocation(s)")
        return Saree.get_by_id(saree_id)

    @staticmethod
    def update_saree(saree_id, data, allocations=None, updated_by=None):
        """
        Update a saree's details and, when the update carries a
        distribution_channel, re-split its stock by the channel rules.
        Omitted stock fields fall back to stored values; allocations upsert
        store rows and stores left out keep their current quantity.
        """
        log_tag = f"[inventory_service.py][InventoryService][update_saree][{saree_id}]"

        existing = InventoryService.get_saree(saree_id)
        fields = {k: v for k, v in data.items() if k not in ("total_stock", "online_stock", "distribution_channel")}
        for key in ("category_id", "color_id", "fabric_id"):
            if key in fields:
                fields[key] = to_object_id(fields[key], key) if fields[key] else None

        stock_touched = any(k in data for k in ("total_stock", "online_stock", "distribution_channel")) \
            or allocations is not None

        if stock_touched:
            channel = data.get("distribution_channel", existing["distribution_channel"])
            total_stock = int(data.get("total_stock", existing["total_stock"]))
            online_stock = int(data.get("online_stock", existing["online_stock"]))

            merged = {str(row["store_id"]): row["quantity"] for row in InventoryService._store_rows(existing["_id"])}
            if allocations is not None:
                for allocation in InventoryService._normalize_allocations(allocations):
                    merged[str(allocation["store_id"])] = int(allocation["quantity"])
            merged_list = [{"store_id": k, "quantity": v} for k, v in merged.items()]

            if channel == "online":
                online_stock, _ = InventoryService.validate_allocations(channel, total_stock, online_stock, [])
                store_rows = [{"store_id": a["store_id"], "quantity": 0} for a in merged_list]
            elif "distribution_channel" in data:
                online_stock, store_rows = InventoryService.validate_allocations(
                    channel, total_stock, online_stock, merged_list
                )
            else:
                store_rows = merged_list
                InventoryService._validate_bounds(total_stock, online_stock, sum(a["quantity"] for a in merged_list))

            InventoryService._ensure_stores_exist(store_rows)
            InventoryService._apply_stock_split(
                existing, channel, total_stock, online_stock, store_rows, updated_by
            )

        if fields:
            Saree.update(saree_id, **fields)

        Log.info(f"{log_tag} saree updated (stock_touched={stock_touched})")
        return Saree.get_by_id(saree_id)

    @staticmethod
    def update_distribution_channel(saree_id, channel, updated_by=None):
        return InventoryService.update_saree(saree_id, {"distribution_channel": channel}, updated_by=updated_by)

    @staticmethod
    def adjust_stock(saree_id, total_stock=None, online_stock=None, updated_by=None):
        """
        Stock-only change. Keeps store rows as they are and checks that
        online + stores still fit inside total.
        """
        data = {}
        if total_stock is not None:
            data["total_stock"] = total_stock
        if online_stock is not None:
            data["online_stock"] = online_stock
        existing = InventoryService.get_saree(saree_id)
        if existing["distribution_channel"] == "shop" and int(data.get("online_stock", 0)) > 0:
            raise AllocationError("Shop-only sarees cannot hold online stock")
        return InventoryService.update_saree(saree_id, data, updated_by=updated_by)

    @staticmethod
    def _validate_bounds(total_stock, online_stock, store_sum):
        if total_stock < 0 or online_stock < 0:
            raise AllocationError("Stock values must be non-negative")
        if online_stock + store_sum > total_stock:
            raise AllocationError(
                f"Online ({online_stock}) + Store allocations ({store_sum}) "
                f"exceed total stock ({total_stock})"
            )

    @staticmethod
    def _apply_stock_split(existing, channel, total_stock, online_stock, store_rows, updated_by):
        saree_oid = existing["_id"]

        # compare-and-set against the values the split was computed from
        updated = Saree.collection().find_one_and_update(
            {
                "_id": saree_oid,
                "total_stock": existing["total_stock"],
                "online_stock": existing["online_stock"],
            },
            {"$set": {
                "total_stock": total_stock,
                "online_stock": online_stock,
                "distribution_channel": channel,
                "updated_at": utcnow(),
            }},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError("Stock changed while updating, please retry")

        for row in store_rows:
            StoreInventory.collection().update_one(
                {"store_id": to_object_id(row["store_id"], "store_id"), "saree_id": saree_oid},
                {
                    "$set": {"quantity": int(row["quantity"]), "updated_at": utcnow()},
                    "$setOnInsert": {"created_at": utcnow()},
                },
                upsert=True,
            )

        delta = total_stock - existing["total_stock"]
        if delta:
            StockMovementService.record(
                saree_oid, delta, StockMovement.TYPE_ADJUSTMENT, InventoryService.ledger_source(channel),
                notes="Stock adjustment", created_by=updated_by,
            )

    @staticmethod
    def delete_saree(saree_id):
        if not Saree.update(saree_id, is_active=False):
            raise NotFoundError("Saree not found")
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_saree(saree_id):
        saree = Saree.get_by_id(saree_id)
        if not saree:
            raise NotFoundError("Saree not found")
        return saree

    @staticmethod
    def _store_rows(saree_oid):
        return StoreInventory.find({"saree_id": saree_oid})

    @staticmethod
    def _store_sum(saree_oid):
        return StoreInventory.store_sum(saree_oid)

    @staticmethod
    def get_allocations(saree_id):
        rows = InventoryService._store_rows(to_object_id(saree_id, "saree_id"))
        stores = {s["_id"]: s for s in Store.find({"_id": {"$in": [r["store_id"] for r in rows]}})}
        return [
            {
                "store_id": str(row["store_id"]),
                "store_name": stores.get(row["store_id"], {}).get("name", "Unknown"),
                "quantity": row["quantity"],
            }
            for row in rows
        ]

    @staticmethod
    def check_invariant(saree_id):
        saree = InventoryService.get_saree(saree_id)
        store_sum = InventoryService._store_sum(saree["_id"])
        total = saree.get("total_stock", 0)
        online = saree.get("online_stock", 0)
        return {
            "saree_id": str(saree["_id"]),
            "total": total,
            "online": online,
            "store_sum": store_sum,
            "unallocated": max(0, total - online - store_sum),
            "consistent": online >= 0 and store_sum >= 0 and online + store_sum <= total,
        }

    @staticmethod
    def get_stock_distribution():
        sarees = Saree.find({"is_active": True}, sort=[("name", 1)])
        rows = StoreInventory.find({"saree_id": {"$in": [s["_id"] for s in sarees]}})
        stores = {s["_id"]: s for s in Store.find()}

        by_saree = {}
        for row in rows:
            by_saree.setdefault(row["saree_id"], []).append(row)

        result = []
        for saree in sarees:
            allocations = [
                {"store": Store.serialize(stores.get(r["store_id"], {"_id": r["store_id"]})), "quantity": r["quantity"]}
                for r in by_saree.get(saree["_id"], [])
            ]
            store_sum = sum(a["quantity"] for a in allocations)
            result.append({
                "saree": Saree.serialize(saree),
                "total_stock": saree["total_stock"],
                "online_stock": saree["online_stock"],
                "store_allocations": allocations,
                "unallocated": max(0, saree["total_stock"] - saree["online_stock"] - store_sum),
            })
        return result

    @staticmethod
    def get_low_stock(threshold=None):
        if threshold is None:
            threshold = SettingsService.get("low_stock_threshold")
        return Saree.find({"is_active": True, "total_stock": {"$lte": int(threshold)}}, sort=[("total_stock", 1)])

    @staticmethod
    def get_store_inventory(store_id):
        rows = StoreInventory.find({"store_id": to_object_id(store_id, "store_id")})
        sarees = {s["_id"]: s for s in Saree.find({"_id": {"$in": [r["saree_id"] for r in rows]}})}
        items = []
        for row in rows:
            saree = sarees.get(row["saree_id"])
            if not saree:
                continue
            items.append({
                "saree": Saree.serialize(saree),
                "quantity": row["quantity"],
                "updated_at": row.get("updated_at").isoformat() if row.get("updated_at") else None,
            })
        return items

    # ------------------------------------------------------------------
    # Guarded stock mutations
    # ------------------------------------------------------------------

    @staticmethod
    def _insufficient(saree_id, requested, field, where):
        saree = Saree.get_by_id(saree_id)
        if not saree:
            raise NotFoundError("Saree not found")
        available = saree.get(field, 0)
        raise InsufficientStockError(
            f"Insufficient {where} stock for {saree.get('name')}: requested {requested}, available {available}",
            saree_id=str(saree["_id"]), requested=requested, available=available,
        )

    @staticmethod
    def deduct_online(saree_id, quantity, order_ref_id=None, created_by=None, notes=None):
        """Take units off the online channel. Returns the updated saree."""
        quantity = int(quantity)
        saree_oid = to_object_id(saree_id, "saree_id")

        updated = Saree.collection().find_one_and_update(
            {"_id": saree_oid, "online_stock": {"$gte": quantity}, "total_stock": {"$gte": quantity}},
            {"$inc": {"online_stock": -quantity, "total_stock": -quantity}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            InventoryService._insufficient(saree_oid, quantity, "online_stock", "online")

        StockMovementService.record(
            saree_oid, -quantity, StockMovement.TYPE_SALE, StockMovement.SOURCE_ONLINE,
            order_ref_id=order_ref_id, notes=notes or "Online order stock deduction", created_by=created_by,
        )
        return updated

    @staticmethod
    def restock_online(saree_id, quantity, order_ref_id=None, created_by=None,
                       movement_type=StockMovement.TYPE_RETURN, notes=None):
        quantity = int(quantity)
        saree_oid = to_object_id(saree_id, "saree_id")

        updated = Saree.collection().find_one_and_update(
            {"_id": saree_oid},
            {"$inc": {"online_stock": quantity, "total_stock": quantity}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Saree not found")

        StockMovementService.record(
            saree_oid, quantity, movement_type, StockMovement.SOURCE_ONLINE,
            order_ref_id=order_ref_id, notes=notes or "Online stock restored", created_by=created_by,
        )
        return updated

    @staticmethod
    def deduct_store(store_id, saree_id, quantity, order_ref_id=None, created_by=None, notes=None,
                     movement_type=StockMovement.TYPE_SALE):
        """Take units out of one store's allocation and off total_stock."""
        quantity = int(quantity)
        store_oid = to_object_id(store_id, "store_id")
        saree_oid = to_object_id(saree_id, "saree_id")
        log_tag = f"[inventory_service.py][InventoryService][deduct_store][{store_id}][{saree_id}]"

        row = StoreInventory.collection().find_one_and_update(
            {"store_id": store_oid, "saree_id": saree_oid, "quantity": {"$gte": quantity}},
            {"$inc": {"quantity": -quantity}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if row is None:
            current = StoreInventory.get_item(store_oid, saree_oid)
            saree = Saree.get_by_id(saree_oid)
            if not saree:
                raise NotFoundError("Saree not found")
            available = current["quantity"] if current else 0
            raise InsufficientStockError(
                f"Insufficient store stock for {saree.get('name')}: requested {quantity}, available {available}",
                saree_id=str(saree_oid), requested=quantity, available=available,
            )

        updated = Saree.collection().find_one_and_update(
            {"_id": saree_oid, "total_stock": {"$gte": quantity}},
            {"$inc": {"total_stock": -quantity}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            # put the store units back before failing
            StoreInventory.collection().update_one(
                {"store_id": store_oid, "saree_id": saree_oid}, {"$inc": {"quantity": quantity}}
            )
            Log.error(f"{log_tag} total_stock below store quantity, deduction reverted")
            InventoryService._insufficient(saree_oid, quantity, "total_stock", "total")

        StockMovementService.record(
            saree_oid, -quantity, movement_type, StockMovement.SOURCE_STORE,
            order_ref_id=order_ref_id, store_id=store_oid, notes=notes or "Store sale", created_by=created_by,
        )
        return updated

    @staticmethod
    def restock_store(store_id, saree_id, quantity, order_ref_id=None, created_by=None,
                      movement_type=StockMovement.TYPE_RETURN, notes=None):
        quantity = int(quantity)
        store_oid = to_object_id(store_id, "store_id")
        saree_oid = to_object_id(saree_id, "saree_id")

        updated = Saree.collection().find_one_and_update(
            {"_id": saree_oid},
            {"$inc": {"total_stock": quantity}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Saree not found")

        StoreInventory.collection().update_one(
            {"store_id": store_oid, "saree_id": saree_oid},
            {"$inc": {"quantity": quantity}, "$set": {"updated_at": utcnow()}},
            upsert=True,
        )

        StockMovementService.record(
            saree_oid, quantity, movement_type, StockMovement.SOURCE_STORE,
            order_ref_id=order_ref_id, store_id=store_oid, notes=notes or "Store stock restored",
            created_by=created_by,
        )
        return updated

    @staticmethod
    def allocate_to_store(store_id, saree_id, quantity, order_ref_id=None, created_by=None, notes=None):
        """
        Move unallocated units into a store. total_stock is unchanged;
        the transfer is still written to the ledger.
        """
        quantity = int(quantity)
        store_oid = to_object_id(store_id, "store_id")
        saree = InventoryService.get_saree(saree_id)
        log_tag = f"[inventory_service.py][InventoryService][allocate_to_store][{store_id}][{saree_id}]"

        if not Store.get_by_id(store_oid):
            raise NotFoundError("Store not found")

        unallocated = saree["total_stock"] - saree["online_stock"] - InventoryService._store_sum(saree["_id"])
        if unallocated < quantity:
            raise InsufficientStockError(
                f"Insufficient unallocated stock for {saree.get('name')}: requested {quantity}, "
                f"available {max(0, unallocated)}",
                saree_id=str(saree["_id"]), requested=quantity, available=max(0, unallocated),
            )

        StoreInventory.collection().update_one(
            {"store_id": store_oid, "saree_id": saree["_id"]},
            {"$inc": {"quantity": quantity}, "$set": {"updated_at": utcnow()}},
            upsert=True,
        )

        # a concurrent allocation may have used the same units
        check = InventoryService.check_invariant(saree["_id"])
        if not check["consistent"]:
            StoreInventory.collection().update_one(
                {"store_id": store_oid, "saree_id": saree["_id"]}, {"$inc": {"quantity": -quantity}}
            )
            Log.error(f"{log_tag} concurrent allocation detected, transfer reverted")
            raise ConflictError("Stock changed while allocating, please retry")

        StockMovementService.record(
            saree["_id"], quantity, StockMovement.TYPE_TRANSFER, StockMovement.SOURCE_STORE,
            order_ref_id=order_ref_id, store_id=store_oid, notes=notes or "Allocated to store",
            created_by=created_by,
        )
        Log.info(f"{log_tag} {quantity} unit(s) allocated")
        return check

    @staticmethod
    def release_from_store(store_id, saree_id, quantity, order_ref_id=None, created_by=None, notes=None):
        """Return store units to unallocated stock. total_stock is unchanged."""
        quantity = int(quantity)
        store_oid = to_object_id(store_id, "store_id")
        saree_oid = to_object_id(saree_id, "saree_id")

        row = StoreInventory.collection().find_one_and_update(
            {"store_id": store_oid, "saree_id": saree_oid, "quantity": {"$gte": quantity}},
            {"$inc": {"quantity": -quantity}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if row is None:
            current = StoreInventory.get_item(store_oid, saree_oid)
            available = current["quantity"] if current else 0
            raise InsufficientStockError(
                f"Store holds only {available} unit(s), cannot release {quantity}",
                saree_id=str(saree_oid), requested=quantity, available=available,
            )

        StockMovementService.record(
            saree_oid, -quantity, StockMovement.TYPE_TRANSFER, StockMovement.SOURCE_STORE,
            order_ref_id=order_ref_id, store_id=store_oid, notes=notes or "Released from store",
            created_by=created_by,
        )
        return row

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    @staticmethod
    def check_low_stock(saree_id):
        """Alert inventory staff when total_stock falls to the threshold."""
        saree = Saree.get_by_id(saree_id)
        if not saree:
            return False
        threshold = SettingsService.get("low_stock_threshold")
        if saree.get("total_stock", 0) > threshold:
            return False
        window = 24
        if has_app_context():
            window = current_app.config.get("LOW_STOCK_ALERT_WINDOW_HOURS", 24)
        return NotificationService.send_low_stock_alert(saree, threshold, window_hours=window)
