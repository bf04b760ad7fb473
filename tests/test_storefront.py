# tests/test_storefront.py
from datetime import timedelta

import pytest

from saree_store.constants.service_code import ROLES
from saree_store.models.engagement import Review
from saree_store.models.promotion import SaleOffer
from saree_store.models.stock_movement import StockMovement
from saree_store.services.address_service import AddressService
from saree_store.services.cart_service import CartService
from saree_store.services.inventory_service import InventoryService
from saree_store.services.offer_service import OfferService
from saree_store.services.saree_service import SareeService
from saree_store.services.stats_service import StatsService
from saree_store.services.stock_movement_service import StockMovementService
from saree_store.services.stock_request_service import StockRequestService
from saree_store.services.store_sale_service import StoreSaleService
from saree_store.utils.errors import InsufficientStockError, NotFoundError
from saree_store.utils.helpers import utcnow


def _names(result):
    return [item["name"] for item in result["items"]]


def _offer(saree, **overrides):
    now = utcnow()
    data = {
        "name": "Pongal",
        "offer_type": "percentage",
        "discount_value": 20,
        "valid_from": now - timedelta(hours=1),
        "valid_until": now + timedelta(days=1),
        "product_ids": [saree["_id"]],
    }
    data.update(overrides)
    return SaleOffer.get_by_id(SaleOffer(**data).save())


@pytest.fixture
def shop_saree(make_saree):
    def _make(store, quantity=4, **extra):
        return make_saree(
            total_stock=quantity, channel="shop",
            allocations=[{"store_id": str(store["_id"]), "quantity": quantity}], **extra
        )
    return _make


class TestCatalogBrowsing:

    def test_public_listing_shows_online_sarees_only(self, make_store, make_saree, shop_saree):
        store = make_store()
        make_saree(name="Online Silk")
        make_saree(name="Both Cotton", total_stock=4, online_stock=4, channel="both")
        shop_saree(store, name="Counter Linen")
        retired = make_saree(name="Retired Tissue")
        InventoryService.delete_saree(retired["_id"])

        public = SareeService.list_sarees({"sort": "name"})
        assert _names(public) == ["Both Cotton", "Online Silk"]
        assert public["pagination"]["total"] == 2

        backoffice = SareeService.list_sarees({"sort": "name"}, public=False)
        assert _names(backoffice) == ["Both Cotton", "Counter Linen", "Online Silk", "Retired Tissue"]

    def test_filters_and_search(self, make_category, make_saree):
        silk = make_category("Silk")
        make_saree(name="Kanchi Silk", price=8000, category_id=str(silk["_id"]), is_featured=True)
        make_saree(name="Mysore Silk", price=5000, category_id=str(silk["_id"]))
        make_saree(name="Chettinad", price=1500, description="Handwoven banarasi-style border")

        by_category = SareeService.list_sarees({"category_id": str(silk["_id"]), "sort": "name"})
        assert _names(by_category) == ["Kanchi Silk", "Mysore Silk"]
        assert by_category["items"][0]["category_name"] == "Silk"

        priced = SareeService.list_sarees({"min_price": 2000, "max_price": 6000})
        assert _names(priced) == ["Mysore Silk"]

        assert _names(SareeService.list_sarees({"search": "BANARASI"})) == ["Chettinad"]
        assert _names(SareeService.list_sarees({"search": "silk", "featured": True})) == ["Kanchi Silk"]

    def test_sort_orders(self, make_saree):
        make_saree(name="Bandhani", price=3000)
        make_saree(name="Ajrakh", price=1200)
        make_saree(name="Chanderi", price=2100)

        assert _names(SareeService.list_sarees({"sort": "price_asc"})) == ["Ajrakh", "Chanderi", "Bandhani"]
        assert _names(SareeService.list_sarees({"sort": "price_desc"})) == ["Bandhani", "Chanderi", "Ajrakh"]
        assert _names(SareeService.list_sarees({"sort": "name"})) == ["Ajrakh", "Bandhani", "Chanderi"]

    def test_detail_carries_pricing_and_review_stats(self, make_user, make_saree):
        saree = make_saree(price=2000)
        _offer(saree)
        for rating, approved in ((5, True), (3, True), (1, False)):
            Review(user_id=make_user()["_id"], saree_id=saree["_id"], rating=rating, is_approved=approved).save()

        detail = SareeService.get_public_saree(saree["_id"])

        assert detail["pricing"]["sale_price"] == 1600.0
        assert detail["pricing"]["offer_name"] == "Pongal"
        assert detail["reviews"] == {"average_rating": 4.0, "review_count": 2}

    def test_store_only_saree_has_no_public_detail(self, make_store, shop_saree):
        saree = shop_saree(make_store())
        with pytest.raises(NotFoundError):
            SareeService.get_public_saree(saree["_id"])
        assert SareeService.get_backoffice_saree(saree["_id"])["allocations"][0]["quantity"] == 4

    def test_offer_detail(self, make_saree):
        saree = make_saree(price=5000)
        offer = _offer(saree)
        expired = _offer(saree, name="Onam", valid_until=utcnow() - timedelta(minutes=5),
                         valid_from=utcnow() - timedelta(days=2))

        detail = OfferService.get_detail(offer["_id"])
        assert detail["offer"]["name"] == "Pongal"
        assert [p["id"] for p in detail["products"]] == [str(saree["_id"])]
        assert detail["products"][0]["pricing"]["sale_price"] == 4000.0

        with pytest.raises(NotFoundError):
            OfferService.get_detail(expired["_id"])
        assert OfferService.get_detail(expired["_id"], public=False)["offer"]["name"] == "Onam"


class TestCartAndWishlist:

    def test_update_quantity_and_zero_removes(self, make_user, make_saree, fill_cart):
        user = make_user()
        saree = make_saree(total_stock=4, price=1500)
        fill_cart(user, (saree, 1))

        cart = CartService.update_quantity(user["_id"], saree["_id"], 3)
        assert cart["item_count"] == 3
        assert cart["subtotal"] == 4500.0

        with pytest.raises(InsufficientStockError):
            CartService.update_quantity(user["_id"], saree["_id"], 5)

        cart = CartService.update_quantity(user["_id"], saree["_id"], 0)
        assert cart["items"] == []
        with pytest.raises(NotFoundError):
            CartService.update_quantity(user["_id"], saree["_id"], 2)

    def test_remove_item(self, make_user, make_saree, fill_cart):
        user = make_user()
        kept, dropped = make_saree(), make_saree()
        fill_cart(user, (kept, 1), (dropped, 2))

        cart = CartService.remove_item(user["_id"], dropped["_id"])

        assert [line["saree_id"] for line in cart["items"]] == [str(kept["_id"])]
        with pytest.raises(NotFoundError):
            CartService.remove_item(user["_id"], dropped["_id"])

    def test_wishlist_add_is_idempotent(self, make_user, make_saree):
        user = make_user()
        saree = make_saree()

        CartService.add_to_wishlist(user["_id"], saree["_id"])
        wishlist = CartService.add_to_wishlist(user["_id"], saree["_id"])
        assert [item["id"] for item in wishlist] == [str(saree["_id"])]

        assert CartService.remove_from_wishlist(user["_id"], saree["_id"]) == []
        with pytest.raises(NotFoundError):
            CartService.remove_from_wishlist(user["_id"], saree["_id"])


class TestStockLedger:

    def test_list_movements_filters(self, make_store, make_saree, shop_saree):
        store = make_store()
        online = make_saree(name="Online Silk", total_stock=10)
        counter = shop_saree(store, quantity=4)
        InventoryService.deduct_online(online["_id"], 3)
        InventoryService.deduct_store(store["_id"], counter["_id"], 2)

        sales = StockMovementService.list_movements({"movement_type": StockMovement.TYPE_SALE})
        assert sales["pagination"]["total"] == 2

        from_store = StockMovementService.list_movements({"source": StockMovement.SOURCE_STORE})
        assert from_store["pagination"]["total"] == 2

        at_store = StockMovementService.list_movements({"store_id": str(store["_id"])})
        assert [m["quantity"] for m in at_store["items"]] == [-2]

        online_rows = StockMovementService.list_movements({"saree_id": str(online["_id"])})
        assert [m["quantity"] for m in online_rows["items"]] == [-3, 10]
        assert online_rows["items"][0]["saree_name"] == "Online Silk"

    def test_movement_stats(self, make_store, make_saree, shop_saree):
        store = make_store()
        online = make_saree(total_stock=10)
        counter = shop_saree(store, quantity=4)
        InventoryService.deduct_online(online["_id"], 3)
        InventoryService.restock_online(online["_id"], 1)
        InventoryService.deduct_store(store["_id"], counter["_id"], 2)

        stats = StockMovementService.movement_stats()

        assert stats[StockMovement.SOURCE_ONLINE] == {"sold": 3, "returned": 1}
        assert stats[StockMovement.SOURCE_STORE] == {"sold": 2, "returned": 0}
        assert stats["total_sold"] == 5
        assert stats["total_returned"] == 1


class TestStockViews:

    def test_allocations_and_distribution(self, make_store, make_saree):
        north, south = make_store("North"), make_store("South")
        saree = make_saree(
            name="Paithani", total_stock=10, online_stock=4, channel="both",
            allocations=[{"store_id": str(north["_id"]), "quantity": 4}, {"store_id": str(south["_id"]), "quantity": 2}],
        )
        make_saree(name="Ikkat", total_stock=5)
        InventoryService.adjust_stock(saree["_id"], total_stock=12)

        allocations = sorted(InventoryService.get_allocations(saree["_id"]), key=lambda a: a["store_name"])
        assert [(a["store_name"], a["quantity"]) for a in allocations] == [("North", 4), ("South", 2)]

        rows = InventoryService.get_stock_distribution()
        assert [row["saree"]["name"] for row in rows] == ["Ikkat", "Paithani"]
        paithani = rows[1]
        assert paithani["online_stock"] == 4
        assert paithani["unallocated"] == 2
        assert sorted(a["store"]["name"] for a in paithani["store_allocations"]) == ["North", "South"]

    def test_inventory_overview(self, make_store, make_saree, shop_saree):
        store = make_store()
        make_saree(total_stock=30)
        shop_saree(store, quantity=4)
        both = make_saree(
            total_stock=8, online_stock=5, channel="both",
            allocations=[{"store_id": str(store["_id"]), "quantity": 3}],
        )
        InventoryService.adjust_stock(both["_id"], total_stock=10)

        overview = StatsService.inventory_overview()

        assert overview["saree_count"] == 3
        assert overview["totals"] == {"total": 44, "online": 35, "store": 7, "unallocated": 2}
        assert overview["inconsistent_count"] == 0
        assert overview["low_stock_count"] == 2

    def test_store_dashboard(self, make_store, make_user, shop_saree):
        store = make_store()
        clerk = make_user(role=ROLES["STORE"], store_id=store["_id"])
        saree = shop_saree(store, quantity=5, price=2500)
        StoreSaleService.create_sale(store["_id"], clerk["_id"], [{"saree_id": str(saree["_id"]), "quantity": 2}])
        StockRequestService.create(store["_id"], clerk["_id"], saree["_id"], 3)

        dashboard = StatsService.store_dashboard(store["_id"])

        assert dashboard == {
            "today_sales_count": 1,
            "today_revenue": 5000.0,
            "inventory_units": 3,
            "pending_requests": 1,
        }


class TestStorefrontEndpoints:

    def test_saree_listing_sorted(self, storefront_client, make_saree):
        make_saree(name="Ajrakh", price=1200)
        make_saree(name="Bandhani", price=3000)

        body = storefront_client.get("/api/v1/sarees?sort=price_desc").get_json()

        assert [item["name"] for item in body["data"]["items"]] == ["Bandhani", "Ajrakh"]

    def test_invalid_sort_rejected(self, storefront_client):
        assert storefront_client.get("/api/v1/sarees?sort=cheapest").status_code == 422

    def test_pincode_endpoint(self, storefront_client, serviceable_pincode):
        served = storefront_client.get("/api/v1/pincodes/600001").get_json()
        assert served["message"] == "Delivery available"
        assert served["data"]["delivery_days"] == 5

        missing = storefront_client.get("/api/v1/pincodes/110001").get_json()
        assert missing["data"]["serviceable"] is False
        assert missing["message"] == "Delivery not available for this pincode"

    def test_offer_detail_endpoint(self, storefront_client, make_saree):
        offer = _offer(make_saree(price=1000))

        response = storefront_client.get(f"/api/v1/offers/{offer['_id']}")
        assert response.status_code == 200
        assert response.get_json()["data"]["products"][0]["pricing"]["sale_price"] == 800.0

        assert storefront_client.get(f"/api/v1/offers/{'e' * 24}").status_code == 404

    def test_unexpected_failure_returns_500(self, storefront_client, monkeypatch):
        def broken(pincode):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(AddressService, "check_pincode", broken)
        response = storefront_client.get("/api/v1/pincodes/600001")

        assert response.status_code == 500
        assert response.get_json()["success"] is False

    def test_refunds_and_review_eligibility(self, storefront_client, make_user, make_saree, auth_header):
        user = make_user()
        saree = make_saree()

        assert storefront_client.get("/api/v1/refunds").status_code == 401

        refunds = storefront_client.get("/api/v1/refunds", headers=auth_header(user)).get_json()
        assert refunds["data"]["items"] == []

        eligibility = storefront_client.get(
            f"/api/v1/sarees/{saree['_id']}/can-review", headers=auth_header(user)
        ).get_json()
        assert eligibility["data"] == {"can_review": False, "reason": "not_purchased"}
