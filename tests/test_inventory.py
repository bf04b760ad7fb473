# tests/test_inventory.py
from datetime import timedelta

import pytest

from saree_store.extensions.db import db, redis_connection
from saree_store.models.engagement import Notification
from saree_store.models.saree import Saree, StoreInventory
from saree_store.models.stock_movement import StockMovement
from saree_store.services.inventory_service import InventoryService
from saree_store.utils.errors import AllocationError, InsufficientStockError, NotFoundError
from saree_store.utils.helpers import utcnow


def _movements(saree):
    return StockMovement.find({"saree_id": saree["_id"]}, sort=[("_id", 1)])


class TestAllocationRules:

    def test_online_channel_puts_everything_online(self):
        online, allocations = InventoryService.validate_allocations("online", 8, 3, [{"store_id": "a" * 24, "quantity": 2}])
        assert online == 8
        assert allocations == []

    def test_shop_channel_requires_allocations_to_match_total(self):
        with pytest.raises(AllocationError):
            InventoryService.validate_allocations("shop", 10, 0, [{"store_id": "a" * 24, "quantity": 4}])

        online, allocations = InventoryService.validate_allocations(
            "shop", 10, 5, [{"store_id": "a" * 24, "quantity": 10}]
        )
        assert online == 0
        assert allocations[0]["quantity"] == 10

    def test_both_channel_requires_exact_split(self):
        with pytest.raises(AllocationError):
            InventoryService.validate_allocations("both", 10, 4, [{"store_id": "a" * 24, "quantity": 5}])

        online, allocations = InventoryService.validate_allocations(
            "both", 10, 4, [{"store_id": "a" * 24, "quantity": 6}]
        )
        assert online == 4
        assert len(allocations) == 1

    def test_duplicate_store_rejected(self):
        with pytest.raises(AllocationError):
            InventoryService.validate_allocations(
                "shop", 4, 0, [{"store_id": "a" * 24, "quantity": 2}, {"store_id": "a" * 24, "quantity": 2}]
            )

    def test_negative_values_rejected(self):
        with pytest.raises(AllocationError):
            InventoryService.validate_allocations("online", -1, 0, [])
        with pytest.raises(AllocationError):
            InventoryService.validate_allocations("shop", 2, 0, [{"store_id": "a" * 24, "quantity": -2}])

    def test_invalid_channel(self):
        with pytest.raises(AllocationError):
            InventoryService.validate_allocations("warehouse", 1, 1, [])


class TestSareeStock:

    def test_create_with_store_allocations(self, make_store, make_saree):
        store = make_store()
        saree = make_saree(
            total_stock=10, online_stock=4, channel="both",
            allocations=[{"store_id": str(store["_id"]), "quantity": 6}],
        )
        assert saree["online_stock"] == 4
        assert StoreInventory.get_item(store["_id"], saree["_id"])["quantity"] == 6

        check = InventoryService.check_invariant(saree["_id"])
        assert check["consistent"] is True
        assert check["unallocated"] == 0

        opening = _movements(saree)
        assert len(opening) == 1
        assert opening[0]["quantity"] == 10
        assert opening[0]["movement_type"] == StockMovement.TYPE_ADJUSTMENT

    def test_create_with_unknown_store_fails(self, make_saree):
        with pytest.raises(NotFoundError):
            make_saree(total_stock=3, channel="shop", allocations=[{"store_id": "b" * 24, "quantity": 3}])
        assert Saree.collection().count_documents({}) == 0

    def test_switch_to_online_zeroes_store_rows(self, make_store, make_saree):
        store = make_store()
        saree = make_saree(
            total_stock=6, online_stock=2, channel="both",
            allocations=[{"store_id": str(store["_id"]), "quantity": 4}],
        )

        updated = InventoryService.update_distribution_channel(saree["_id"], "online")

        assert updated["distribution_channel"] == "online"
        assert updated["online_stock"] == 6
        assert StoreInventory.get_item(store["_id"], saree["_id"])["quantity"] == 0

    def test_adjust_total_keeps_bounds(self, make_store, make_saree):
        store = make_store()
        saree = make_saree(
            total_stock=6, online_stock=2, channel="both",
            allocations=[{"store_id": str(store["_id"]), "quantity": 4}],
        )

        with pytest.raises(AllocationError):
            InventoryService.adjust_stock(saree["_id"], total_stock=5)

        updated = InventoryService.adjust_stock(saree["_id"], total_stock=9)
        assert updated["total_stock"] == 9
        assert InventoryService.check_invariant(saree["_id"])["unallocated"] == 3
        assert _movements(saree)[-1]["quantity"] == 3

    def test_ledger_source_follows_channel(self, make_store, make_saree):
        store = make_store()
        shop = make_saree(total_stock=4, channel="shop", allocations=[{"store_id": str(store["_id"]), "quantity": 4}])
        online = make_saree(total_stock=4)

        InventoryService.adjust_stock(shop["_id"], total_stock=6)
        InventoryService.adjust_stock(online["_id"], total_stock=6)

        assert [m["source"] for m in _movements(shop)] == [StockMovement.SOURCE_STORE] * 2
        assert [m["source"] for m in _movements(online)] == [StockMovement.SOURCE_ONLINE] * 2

    def test_shop_saree_cannot_hold_online_stock(self, make_store, make_saree):
        store = make_store()
        saree = make_saree(total_stock=2, channel="shop", allocations=[{"store_id": str(store["_id"]), "quantity": 2}])
        with pytest.raises(AllocationError):
            InventoryService.adjust_stock(saree["_id"], online_stock=1)

    def test_delete_is_soft(self, make_saree):
        saree = make_saree()
        InventoryService.delete_saree(saree["_id"])
        assert Saree.get_by_id(saree["_id"])["is_active"] is False


class TestGuardedMutations:

    def test_deduct_online_records_sale(self, make_saree):
        saree = make_saree(total_stock=5)
        updated = InventoryService.deduct_online(saree["_id"], 2)

        assert updated["online_stock"] == 3
        assert updated["total_stock"] == 3
        last = _movements(saree)[-1]
        assert last["quantity"] == -2
        assert last["movement_type"] == StockMovement.TYPE_SALE
        assert last["source"] == StockMovement.SOURCE_ONLINE

    def test_deduct_online_never_goes_negative(self, make_saree):
        saree = make_saree(total_stock=1)
        with pytest.raises(InsufficientStockError) as exc:
            InventoryService.deduct_online(saree["_id"], 2)

        assert exc.value.requested == 2
        assert exc.value.available == 1
        assert Saree.get_by_id(saree["_id"])["online_stock"] == 1

    def test_store_deduct_and_restock(self, make_store, make_saree):
        store = make_store()
        saree = make_saree(total_stock=3, channel="shop", allocations=[{"store_id": str(store["_id"]), "quantity": 3}])

        InventoryService.deduct_store(store["_id"], saree["_id"], 2)
        assert StoreInventory.get_item(store["_id"], saree["_id"])["quantity"] == 1
        assert Saree.get_by_id(saree["_id"])["total_stock"] == 1

        with pytest.raises(InsufficientStockError):
            InventoryService.deduct_store(store["_id"], saree["_id"], 2)

        InventoryService.restock_store(store["_id"], saree["_id"], 2)
        assert StoreInventory.get_item(store["_id"], saree["_id"])["quantity"] == 3
        assert Saree.get_by_id(saree["_id"])["total_stock"] == 3

    def test_allocate_uses_unallocated_only(self, make_store, make_saree):
        store = make_store()
        saree = make_saree(total_stock=8, online_stock=4, channel="both",
                           allocations=[{"store_id": str(store["_id"]), "quantity": 4}])
        InventoryService.adjust_stock(saree["_id"], total_stock=10)

        check = InventoryService.allocate_to_store(store["_id"], saree["_id"], 2)
        assert check["store_sum"] == 6
        assert check["unallocated"] == 0
        assert Saree.get_by_id(saree["_id"])["total_stock"] == 10

        with pytest.raises(InsufficientStockError):
            InventoryService.allocate_to_store(store["_id"], saree["_id"], 1)

    def test_release_returns_units_to_unallocated(self, make_store, make_saree):
        store = make_store()
        saree = make_saree(total_stock=4, channel="shop", allocations=[{"store_id": str(store["_id"]), "quantity": 4}])

        InventoryService.release_from_store(store["_id"], saree["_id"], 3)

        check = InventoryService.check_invariant(saree["_id"])
        assert check["store_sum"] == 1
        assert check["unallocated"] == 3
        last = _movements(saree)[-1]
        assert last["movement_type"] == StockMovement.TYPE_TRANSFER
        assert last["quantity"] == -3


class TestLowStock:

    def test_alert_sent_once_per_window(self, make_user, make_saree):
        staff = make_user(role="inventory")
        saree = make_saree(total_stock=12)
        InventoryService.deduct_online(saree["_id"], 3)

        assert InventoryService.check_low_stock(saree["_id"]) is True
        assert InventoryService.check_low_stock(saree["_id"]) is False
        assert Notification.collection().count_documents({"user_id": staff["_id"], "type": "stock"}) == 1

    def test_no_alert_above_threshold(self, make_saree):
        saree = make_saree(total_stock=50)
        assert InventoryService.check_low_stock(saree["_id"]) is False

    def test_low_stock_listing(self, make_saree):
        low = make_saree(total_stock=2)
        make_saree(total_stock=40)
        found = InventoryService.get_low_stock()
        assert [s["_id"] for s in found] == [low["_id"]]

    def test_queued_alert_counts_toward_window(self, app, make_saree, monkeypatch):
        class CountingQueue:
            def __init__(self):
                self.jobs = []

            def enqueue(self, func, *args):
                self.jobs.append((func, args))
                return type("Job", (), {"id": str(len(self.jobs))})()

        queue = CountingQueue()
        monkeypatch.setattr(redis_connection, "queue", queue)
        monkeypatch.setitem(app.config, "NOTIFICATIONS_ASYNC", True)
        saree = make_saree(total_stock=3)

        assert InventoryService.check_low_stock(saree["_id"]) is True
        assert InventoryService.check_low_stock(saree["_id"]) is False
        assert len(queue.jobs) == 1
        # nothing is written inline when the fan-out is queued
        assert Notification.collection().count_documents({"type": "stock"}) == 0

    def test_alert_resent_after_window(self, make_user, make_saree):
        make_user(role="inventory")
        saree = make_saree(total_stock=3)
        assert InventoryService.check_low_stock(saree["_id"]) is True

        db.get_collection("low_stock_alerts").update_one(
            {"saree_id": saree["_id"]}, {"$set": {"last_sent_at": utcnow() - timedelta(hours=25)}},
        )
        assert InventoryService.check_low_stock(saree["_id"]) is True
        assert Notification.collection().count_documents({"type": "stock"}) == 2
