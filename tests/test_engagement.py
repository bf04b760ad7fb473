# tests/test_engagement.py
import pytest

from conftest import SHIPPING_ADDRESS
from saree_store.constants.service_code import ROLES, SETTING_DEFAULTS
from saree_store.services.catalog_service import CatalogService
from saree_store.services.notification_service import NotificationService
from saree_store.services.order_service import OrderService
from saree_store.services.review_service import ReviewService
from saree_store.services.settings_service import SettingsService
from saree_store.utils.errors import AppError, ConflictError, ForbiddenError, NotFoundError


@pytest.fixture
def buyer_with_delivery(make_user, make_saree, fill_cart, serviceable_pincode):
    user = make_user()
    saree = make_saree(total_stock=5)
    fill_cart(user, (saree, 1))
    address, phone = OrderService.resolve_shipping(user["_id"], shipping_address=SHIPPING_ADDRESS)
    order = OrderService.create_order(user["_id"], address, phone, "cod")
    for status in ("confirmed", "processing", "shipped", "delivered"):
        OrderService.update_status(order["_id"], status)
    return user, saree


class TestReviews:

    def test_review_needs_delivered_purchase(self, make_user, make_saree):
        user = make_user()
        saree = make_saree()
        with pytest.raises(ForbiddenError):
            ReviewService.create_review(user["_id"], saree["_id"], 5)

    def test_can_review_reasons(self, buyer_with_delivery, make_user):
        user, saree = buyer_with_delivery
        stranger = make_user()

        assert ReviewService.can_review(stranger["_id"], saree["_id"]) == {
            "can_review": False, "reason": "not_purchased",
        }
        assert ReviewService.can_review(user["_id"], saree["_id"])["can_review"] is True

        ReviewService.create_review(user["_id"], saree["_id"], 5)
        assert ReviewService.can_review(user["_id"], saree["_id"]) == {
            "can_review": False, "reason": "already_reviewed",
        }
        with pytest.raises(NotFoundError):
            ReviewService.can_review(user["_id"], "d" * 24)

    def test_one_review_per_product(self, buyer_with_delivery):
        user, saree = buyer_with_delivery
        review = ReviewService.create_review(user["_id"], saree["_id"], 4, comment="Lovely zari work")

        assert review["is_verified_purchase"] is True
        assert review["is_approved"] is False
        with pytest.raises(ConflictError):
            ReviewService.create_review(user["_id"], saree["_id"], 2)

    def test_only_approved_reviews_are_public(self, buyer_with_delivery):
        user, saree = buyer_with_delivery
        review = ReviewService.create_review(user["_id"], saree["_id"], 4)

        assert ReviewService.list_for_saree(saree["_id"])["items"] == []
        assert ReviewService.stats(saree["_id"]) == {"average_rating": 0, "review_count": 0}

        ReviewService.set_approval(review["_id"], True)
        assert len(ReviewService.list_for_saree(saree["_id"])["items"]) == 1
        assert ReviewService.stats(saree["_id"]) == {"average_rating": 4.0, "review_count": 1}

    def test_auto_approve_setting(self, buyer_with_delivery):
        user, saree = buyer_with_delivery
        SettingsService.update({"auto_approve_reviews": "true"})
        assert ReviewService.create_review(user["_id"], saree["_id"], 5)["is_approved"] is True

    def test_delete_missing_review(self, app):
        with pytest.raises(NotFoundError):
            ReviewService.delete("d" * 24)


class TestCatalog:

    def test_duplicate_name_conflicts(self, app):
        CatalogService.create("fabric", {"name": "Kanjivaram silk"})
        with pytest.raises(ConflictError):
            CatalogService.create("fabric", {"name": "Kanjivaram silk"})

    def test_referenced_category_cannot_be_deleted(self, make_category, make_saree):
        category = make_category("Banarasi")
        make_saree(category_id=str(category["_id"]))
        with pytest.raises(ConflictError):
            CatalogService.delete("category", category["_id"])

    def test_store_with_staff_cannot_be_deleted(self, make_store, make_user):
        store = make_store()
        make_user(role=ROLES["STORE"], store_id=store["_id"])
        with pytest.raises(ConflictError):
            CatalogService.delete("store", store["_id"])

    def test_unused_records_are_deleted(self, make_category, make_store):
        category = make_category("Chiffon")
        store = make_store()

        assert CatalogService.delete("category", category["_id"]) is True
        assert CatalogService.delete("store", store["_id"]) is True
        with pytest.raises(NotFoundError):
            CatalogService.get("category", category["_id"])

    def test_active_stores_listing(self, make_store):
        open_store = make_store("Mylapore")
        closed = make_store("T Nagar")
        CatalogService.update("store", closed["_id"], {"is_active": False})

        names = [s["name"] for s in CatalogService.list("store", active_only=True)]
        assert names == [open_store["name"]]


@pytest.mark.usefixtures("app")
class TestSettings:

    def test_defaults(self):
        assert SettingsService.get_all() == SETTING_DEFAULTS
        assert SettingsService.get("return_window_days") == 7

    def test_values_are_coerced(self):
        settings = SettingsService.update({"low_stock_threshold": "4", "auto_approve_reviews": "yes"})
        assert settings["low_stock_threshold"] == 4
        assert settings["auto_approve_reviews"] is True

    def test_invalid_updates(self):
        with pytest.raises(AppError):
            SettingsService.update({"shipping_fee": 40})
        with pytest.raises(AppError):
            SettingsService.update({"return_window_days": -1})
        with pytest.raises(AppError):
            SettingsService.update({"low_stock_threshold": "many"})


class TestNotifications:

    def test_read_tracking(self, make_user):
        user = make_user()
        first = NotificationService.create(user["_id"], "order", "Order shipped", "On its way")
        NotificationService.create(user["_id"], "order", "Order delivered", "Enjoy")

        assert NotificationService.unread_count(user["_id"]) == 2
        NotificationService.mark_read(user["_id"], first)
        assert NotificationService.unread_count(user["_id"]) == 1
        assert len(NotificationService.list_for_user(user["_id"], unread_only=True)["items"]) == 1
        assert NotificationService.mark_all_read(user["_id"]) == 1
        assert NotificationService.unread_count(user["_id"]) == 0

    def test_other_users_notification_not_found(self, make_user):
        owner, stranger = make_user(), make_user()
        notification_id = NotificationService.create(owner["_id"], "system", "Welcome", "Hello")

        with pytest.raises(NotFoundError):
            NotificationService.mark_read(stranger["_id"], notification_id)
        with pytest.raises(NotFoundError):
            NotificationService.delete(stranger["_id"], notification_id)
        assert NotificationService.delete(owner["_id"], notification_id) is True

    def test_role_broadcast_skips_inactive_users(self, make_user):
        make_user(role=ROLES["INVENTORY"])
        make_user(role=ROLES["INVENTORY"], is_active=False)
        make_user()

        assert NotificationService.notify_role(ROLES["INVENTORY"], "system", "Stock take", "Friday 6pm") == 1
