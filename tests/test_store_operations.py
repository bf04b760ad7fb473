# tests/test_store_operations.py
import pytest

from saree_store.constants.service_code import ROLES
from saree_store.models.saree import Saree, StoreInventory
from saree_store.models.stock_movement import StockMovement
from saree_store.models.store_sale import StoreSale, StoreSaleItem, StoreExchange
from saree_store.services.inventory_service import InventoryService
from saree_store.services.stock_movement_service import StockMovementService
from saree_store.services.stock_request_service import StockRequestService
from saree_store.services.store_sale_service import StoreSaleService
from saree_store.utils.errors import (
    AppError,
    ForbiddenError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
)


@pytest.fixture
def store_setup(make_store, make_user, make_saree):
    store = make_store()
    clerk = make_user(role=ROLES["STORE"], store_id=store["_id"])
    saree = make_saree(
        total_stock=5, channel="shop", price=4000,
        allocations=[{"store_id": str(store["_id"]), "quantity": 5}],
    )
    return store, clerk, saree


def _store_qty(store, saree):
    return StoreInventory.get_item(store["_id"], saree["_id"])["quantity"]


class TestStoreSales:

    def test_sale_deducts_store_and_total(self, store_setup):
        store, clerk, saree = store_setup

        sale = StoreSaleService.create_sale(
            store["_id"], clerk["_id"], [{"saree_id": str(saree["_id"]), "quantity": 2}],
            customer_name="Lakshmi",
        )

        assert sale["total_amount"] == 8000.0
        assert sale["items"][0]["quantity"] == 2
        assert sale["items"][0]["name"] == saree["name"]
        assert _store_qty(store, saree) == 3
        assert Saree.get_by_id(saree["_id"])["total_stock"] == 3

        movement = StockMovement.find_one({"order_ref_id": StoreSale.find()[0]["_id"]})
        assert movement["source"] == StockMovement.SOURCE_STORE
        assert movement["movement_type"] == StockMovement.TYPE_SALE

    def test_duplicate_lines_are_merged(self, store_setup):
        store, clerk, saree = store_setup
        sale = StoreSaleService.create_sale(
            store["_id"], clerk["_id"],
            [{"saree_id": str(saree["_id"]), "quantity": 1}, {"saree_id": str(saree["_id"]), "quantity": 2}],
        )
        assert len(sale["items"]) == 1
        assert sale["items"][0]["quantity"] == 3

    def test_failed_sale_is_rolled_back(self, store_setup, make_saree):
        store, clerk, saree = store_setup
        other = make_saree(
            total_stock=1, channel="shop",
            allocations=[{"store_id": str(store["_id"]), "quantity": 1}],
        )

        with pytest.raises(InsufficientStockError):
            StoreSaleService.create_sale(
                store["_id"], clerk["_id"],
                [{"saree_id": str(saree["_id"]), "quantity": 2}, {"saree_id": str(other["_id"]), "quantity": 3}],
            )

        assert _store_qty(store, saree) == 5
        assert Saree.get_by_id(saree["_id"])["total_stock"] == 5
        assert StoreSale.collection().count_documents({}) == 0
        reversal = StockMovement.find_one({"saree_id": saree["_id"], "quantity": 2})
        assert reversal["movement_type"] == StockMovement.TYPE_RETURN
        stats = StockMovementService.movement_stats()[StockMovement.SOURCE_STORE]
        assert stats["sold"] - stats["returned"] == 0

    def test_sale_at_other_store_has_no_stock(self, store_setup, make_store):
        _, clerk, saree = store_setup
        elsewhere = make_store()
        with pytest.raises(InsufficientStockError):
            StoreSaleService.create_sale(elsewhere["_id"], clerk["_id"], [{"saree_id": str(saree["_id"]), "quantity": 1}])

    def test_today_summary(self, store_setup):
        store, clerk, saree = store_setup
        StoreSaleService.create_sale(store["_id"], clerk["_id"], [{"saree_id": str(saree["_id"]), "quantity": 1}])
        StoreSaleService.create_sale(store["_id"], clerk["_id"], [{"saree_id": str(saree["_id"]), "quantity": 1}])

        summary = StoreSaleService.today_summary(store["_id"])
        assert summary == {"count": 2, "revenue": 8000.0}


class TestStoreExchanges:

    def _sale(self, store, clerk, saree, quantity=2):
        sale = StoreSaleService.create_sale(
            store["_id"], clerk["_id"], [{"saree_id": str(saree["_id"]), "quantity": quantity}]
        )
        return sale, sale["items"][0]["id"]

    def test_exchange_restocks_and_issues(self, store_setup, make_saree):
        store, clerk, saree = store_setup
        swap = make_saree(
            total_stock=2, channel="shop", price=5000,
            allocations=[{"store_id": str(store["_id"]), "quantity": 2}],
        )
        sale, item_id = self._sale(store, clerk, saree)

        exchange = StoreSaleService.create_exchange(
            store["_id"], clerk["_id"], sale["id"],
            return_items=[{"sale_item_id": item_id, "quantity": 1}],
            new_items=[{"saree_id": str(swap["_id"]), "quantity": 1}],
        )

        assert exchange["balance"] == 1000.0
        assert _store_qty(store, saree) == 4
        assert _store_qty(store, swap) == 1
        assert StoreSaleItem.get_by_id(item_id)["returned_quantity"] == 1

    def test_cannot_return_more_than_sold(self, store_setup):
        store, clerk, saree = store_setup
        sale, item_id = self._sale(store, clerk, saree)

        StoreSaleService.create_exchange(
            store["_id"], clerk["_id"], sale["id"], return_items=[{"sale_item_id": item_id, "quantity": 2}]
        )
        with pytest.raises(AppError):
            StoreSaleService.create_exchange(
                store["_id"], clerk["_id"], sale["id"], return_items=[{"sale_item_id": item_id, "quantity": 1}]
            )

    def test_failed_issue_undoes_return(self, store_setup, make_saree):
        store, clerk, saree = store_setup
        scarce = make_saree(
            total_stock=1, channel="shop",
            allocations=[{"store_id": str(store["_id"]), "quantity": 1}],
        )
        sale, item_id = self._sale(store, clerk, saree)
        before = StockMovementService.movement_stats()[StockMovement.SOURCE_STORE]

        with pytest.raises(InsufficientStockError):
            StoreSaleService.create_exchange(
                store["_id"], clerk["_id"], sale["id"],
                return_items=[{"sale_item_id": item_id, "quantity": 1}],
                new_items=[{"saree_id": str(scarce["_id"]), "quantity": 2}],
            )

        assert _store_qty(store, saree) == 3
        after = StockMovementService.movement_stats()[StockMovement.SOURCE_STORE]
        assert after["sold"] - after["returned"] == before["sold"] - before["returned"]
        assert StoreSaleItem.get_by_id(item_id)["returned_quantity"] == 0
        assert StoreExchange.collection().count_documents({}) == 0

    def test_sale_of_other_store_not_found(self, store_setup, make_store):
        store, clerk, saree = store_setup
        sale, item_id = self._sale(store, clerk, saree)
        with pytest.raises(NotFoundError):
            StoreSaleService.create_exchange(
                make_store()["_id"], clerk["_id"], sale["id"], return_items=[{"sale_item_id": item_id, "quantity": 1}]
            )


class TestStockRequests:

    @pytest.fixture
    def request_setup(self, make_store, make_user, make_saree):
        store = make_store()
        clerk = make_user(role=ROLES["STORE"], store_id=store["_id"])
        staff = make_user(role=ROLES["INVENTORY"])
        saree = make_saree(total_stock=4, online_stock=4, channel="both")
        # leave three units unallocated
        InventoryService.adjust_stock(saree["_id"], total_stock=7)
        return store, clerk, staff, saree

    def test_full_lifecycle_moves_unallocated_units(self, request_setup):
        store, clerk, staff, saree = request_setup
        request = StockRequestService.create(store["_id"], clerk["_id"], saree["_id"], 3, notes="Wedding season")

        StockRequestService.update_status(request["_id"], "approved", staff["_id"], ROLES["INVENTORY"])
        StockRequestService.update_status(request["_id"], "dispatched", staff["_id"], ROLES["INVENTORY"])
        received = StockRequestService.update_status(
            request["_id"], "received", clerk["_id"], ROLES["STORE"], store_id=store["_id"]
        )

        assert received["status"] == "received"
        assert [h["status"] for h in received["status_history"]] == ["pending", "approved", "dispatched", "received"]
        assert _store_qty(store, saree) == 3
        check = InventoryService.check_invariant(saree["_id"])
        assert check["unallocated"] == 0
        assert check["total"] == 7

    def test_dispatch_fails_without_unallocated_stock(self, request_setup):
        store, clerk, staff, saree = request_setup
        request = StockRequestService.create(store["_id"], clerk["_id"], saree["_id"], 5)
        StockRequestService.update_status(request["_id"], "approved", staff["_id"], ROLES["INVENTORY"])

        with pytest.raises(InsufficientStockError):
            StockRequestService.update_status(request["_id"], "dispatched", staff["_id"], ROLES["INVENTORY"])
        assert StockRequestService.get(request["_id"])["status"] == "approved"

    def test_store_cannot_approve(self, request_setup):
        store, clerk, staff, saree = request_setup
        request = StockRequestService.create(store["_id"], clerk["_id"], saree["_id"], 1)
        with pytest.raises(ForbiddenError):
            StockRequestService.update_status(request["_id"], "approved", clerk["_id"], ROLES["STORE"], store_id=store["_id"])

    def test_only_requesting_store_receives(self, request_setup, make_store):
        store, clerk, staff, saree = request_setup
        request = StockRequestService.create(store["_id"], clerk["_id"], saree["_id"], 1)
        StockRequestService.update_status(request["_id"], "approved", staff["_id"], ROLES["INVENTORY"])
        StockRequestService.update_status(request["_id"], "dispatched", staff["_id"], ROLES["INVENTORY"])

        with pytest.raises(ForbiddenError):
            StockRequestService.update_status(
                request["_id"], "received", clerk["_id"], ROLES["STORE"], store_id=make_store()["_id"]
            )
        with pytest.raises(ForbiddenError):
            StockRequestService.update_status(request["_id"], "received", staff["_id"], ROLES["INVENTORY"])

    def test_rejected_is_final(self, request_setup):
        store, clerk, staff, saree = request_setup
        request = StockRequestService.create(store["_id"], clerk["_id"], saree["_id"], 1)
        StockRequestService.update_status(request["_id"], "rejected", staff["_id"], ROLES["ADMIN"])
        with pytest.raises(InvalidTransitionError):
            StockRequestService.update_status(request["_id"], "approved", staff["_id"], ROLES["INVENTORY"])

    def test_new_request_notifies_inventory(self, request_setup):
        from saree_store.models.engagement import Notification

        store, clerk, staff, saree = request_setup
        StockRequestService.create(store["_id"], clerk["_id"], saree["_id"], 2)
        assert Notification.collection().count_documents({"user_id": staff["_id"], "related_type": "stock_request"}) == 1
