# tests/test_orders.py
from datetime import timedelta

import pytest
from bson import ObjectId

from conftest import SHIPPING_ADDRESS
from saree_store.models.order import Order
from saree_store.models.promotion import Coupon, CouponUsage, SaleOffer
from saree_store.models.saree import Saree
from saree_store.models.shopping import CartItem
from saree_store.models.stock_movement import StockMovement
from saree_store.services.coupon_service import CouponService
from saree_store.services.inventory_service import InventoryService
from saree_store.services.order_service import OrderService
from saree_store.utils.errors import (
    AppError,
    CouponError,
    InsufficientStockError,
    InvalidTransitionError,
)
from saree_store.utils.helpers import utcnow


def _place(user, coupon_code=None, payment_method="cod"):
    address, phone = OrderService.resolve_shipping(user["_id"], shipping_address=SHIPPING_ADDRESS)
    return OrderService.create_order(
        user["_id"], shipping_address=address, phone=phone, payment_method=payment_method, coupon_code=coupon_code,
    )


def _coupon(**overrides):
    now = utcnow()
    data = {
        "code": "FESTIVE10",
        "type": "percentage",
        "value": 10,
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=1),
    }
    data.update(overrides)
    return Coupon.get_by_id(Coupon(**data).save())


class TestCheckout:

    def test_order_deducts_stock_and_clears_cart(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=5, price=2500)
        fill_cart(user, (saree, 2))

        order = _place(user)

        assert order["status"] == "pending"
        assert order["total_amount"] == 5000.0
        assert order["final_amount"] == 5000.0
        assert order["items"][0]["quantity"] == 2
        assert Saree.get_by_id(saree["_id"])["online_stock"] == 3
        assert CartItem.collection().count_documents({"user_id": user["_id"]}) == 0

        sale = StockMovement.find_one({"order_ref_id": order["_id"]})
        assert sale["quantity"] == -2
        assert sale["movement_type"] == StockMovement.TYPE_SALE

    def test_empty_cart_rejected(self, make_user, serviceable_pincode):
        user = make_user()
        with pytest.raises(AppError):
            _place(user)

    def test_unserviceable_pincode_rejected(self, make_user):
        user = make_user()
        with pytest.raises(AppError):
            OrderService.resolve_shipping(user["_id"], shipping_address=SHIPPING_ADDRESS)

    def test_failed_line_restores_earlier_lines(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        first = make_saree(total_stock=5)
        second = make_saree(total_stock=5)
        fill_cart(user, (first, 2), (second, 3))

        # another channel takes the second saree's stock after it was carted
        InventoryService.deduct_online(second["_id"], 4)

        with pytest.raises(InsufficientStockError):
            _place(user)

        assert Saree.get_by_id(first["_id"])["online_stock"] == 5
        assert Order.collection().count_documents({}) == 0
        reversal = StockMovement.find_one({"saree_id": first["_id"], "quantity": 2})
        assert reversal["movement_type"] == StockMovement.TYPE_RETURN
        # the cart survives so the customer can fix it
        assert CartItem.collection().count_documents({"user_id": user["_id"]}) == 2

    def test_sale_offer_price_is_charged(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=3, price=2000)
        now = utcnow()
        SaleOffer(
            name="Diwali", offer_type="percentage", discount_value=25,
            valid_from=now - timedelta(hours=1), valid_until=now + timedelta(days=2),
            product_ids=[saree["_id"]],
        ).save()
        fill_cart(user, (saree, 1))

        order = _place(user)

        assert order["items"][0]["unit_price"] == 1500.0
        assert order["items"][0]["original_price"] == 2000.0
        assert order["total_amount"] == 1500.0


class TestCoupons:

    def test_percentage_coupon_applied_and_usage_recorded(self, make_user, make_saree, fill_cart,
                                                          serviceable_pincode):
        user = make_user()
        coupon = _coupon()
        saree = make_saree(total_stock=3, price=1000)
        fill_cart(user, (saree, 2))

        order = _place(user, coupon_code="festive10")

        assert order["discount_amount"] == 200.0
        assert order["final_amount"] == 1800.0
        assert Coupon.get_by_id(coupon["_id"])["usage_count"] == 1
        assert CouponUsage.collection().count_documents({"coupon_id": coupon["_id"], "user_id": user["_id"]}) == 1

    def test_per_user_limit(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        _coupon(per_user_limit=1)
        saree = make_saree(total_stock=5, price=1000)
        fill_cart(user, (saree, 1))
        _place(user, coupon_code="FESTIVE10")

        fill_cart(user, (saree, 1))
        with pytest.raises(CouponError):
            OrderService.preview_coupon(user["_id"], "FESTIVE10")

    def test_expired_and_minimum_amount(self, make_user, make_saree, fill_cart):
        user = make_user()
        now = utcnow()
        _coupon(code="OLD", valid_from=now - timedelta(days=5), valid_until=now - timedelta(days=1))
        _coupon(code="BIG", min_order_amount=5000)
        saree = make_saree(total_stock=2, price=1000)
        fill_cart(user, (saree, 1))

        with pytest.raises(CouponError, match="expired"):
            OrderService.preview_coupon(user["_id"], "OLD")
        with pytest.raises(CouponError, match="Minimum"):
            OrderService.preview_coupon(user["_id"], "BIG")

    def test_category_coupon_discounts_matching_lines_only(self, make_user, make_saree, make_category, fill_cart):
        user = make_user()
        silk = make_category("Silk")
        cotton = make_category("Cotton")
        _coupon(code="SILK20", value=20, category_id=silk["_id"])
        silk_saree = make_saree(total_stock=2, price=3000, category_id=str(silk["_id"]))
        cotton_saree = make_saree(total_stock=2, price=1000, category_id=str(cotton["_id"]))
        fill_cart(user, (silk_saree, 1), (cotton_saree, 1))

        preview = OrderService.preview_coupon(user["_id"], "SILK20")

        assert preview["subtotal"] == 4000.0
        assert preview["discount"] == 600.0
        assert preview["final_amount"] == 3400.0

    def test_fixed_coupon_capped_at_order_total(self, make_user, make_saree, fill_cart):
        user = make_user()
        _coupon(code="FLAT", type="fixed", value=5000)
        saree = make_saree(total_stock=2, price=1200)
        fill_cart(user, (saree, 1))

        assert OrderService.preview_coupon(user["_id"], "FLAT")["discount"] == 1200.0

    def test_usage_limit_blocks_validation(self, make_user, make_saree, fill_cart):
        user = make_user()
        coupon = _coupon(usage_limit=1)
        Coupon.update(coupon["_id"], usage_count=1)
        saree = make_saree(total_stock=2, price=1000)
        fill_cart(user, (saree, 1))

        with pytest.raises(CouponError, match="usage limit"):
            OrderService.preview_coupon(user["_id"], "FESTIVE10")

    def test_usage_limit_holds_when_both_checkouts_validated(self, make_user):
        first, second = make_user(), make_user()
        coupon = _coupon(usage_limit=1)
        CouponService.validate("FESTIVE10", first["_id"], 1000)
        CouponService.validate("FESTIVE10", second["_id"], 1000)

        CouponService.record_usage(coupon["_id"], first["_id"], ObjectId(), 100)
        with pytest.raises(CouponError):
            CouponService.record_usage(coupon["_id"], second["_id"], ObjectId(), 100)

        assert Coupon.get_by_id(coupon["_id"])["usage_count"] == 1
        assert CouponUsage.collection().count_documents({"coupon_id": coupon["_id"]}) == 1

    def test_per_user_limit_checked_on_record(self, make_user):
        user = make_user()
        coupon = _coupon(per_user_limit=1)
        CouponService.record_usage(coupon["_id"], user["_id"], ObjectId(), 100)

        with pytest.raises(CouponError, match="already used"):
            CouponService.record_usage(coupon["_id"], user["_id"], ObjectId(), 100)
        assert Coupon.get_by_id(coupon["_id"])["usage_count"] == 1

    def test_exhausted_coupon_leaves_stock_untouched(self, make_user, make_saree, fill_cart, serviceable_pincode,
                                                     monkeypatch):
        user = make_user()
        coupon = _coupon(usage_limit=1)
        saree = make_saree(total_stock=3, price=1000)
        fill_cart(user, (saree, 1))
        # validation passes, then another checkout takes the last use
        original_validate = CouponService.validate

        def validate_then_lose_race(*args, **kwargs):
            result = original_validate(*args, **kwargs)
            Coupon.collection().update_one({"_id": coupon["_id"]}, {"$set": {"usage_count": 1}})
            return result

        monkeypatch.setattr(CouponService, "validate", validate_then_lose_race)
        with pytest.raises(CouponError):
            _place(user, coupon_code="FESTIVE10")

        assert Saree.get_by_id(saree["_id"])["online_stock"] == 3
        assert Order.collection().count_documents({}) == 0

    def test_failed_deduction_releases_coupon(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        coupon = _coupon(usage_limit=5)
        saree = make_saree(total_stock=2, price=1000)
        fill_cart(user, (saree, 2))
        InventoryService.deduct_online(saree["_id"], 1)

        with pytest.raises(InsufficientStockError):
            _place(user, coupon_code="FESTIVE10")

        assert Coupon.get_by_id(coupon["_id"])["usage_count"] == 0
        assert CouponUsage.collection().count_documents({"coupon_id": coupon["_id"]}) == 0


class TestOrderLifecycle:

    def test_full_transition_chain_sets_return_window(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=3)
        fill_cart(user, (saree, 1))
        order = _place(user)

        for status in ("confirmed", "processing", "shipped"):
            order = OrderService.update_status(order["_id"], status)
        delivered = OrderService.update_status(order["_id"], "delivered")

        assert delivered["delivered_at"] is not None
        assert delivered["return_eligible_until"] - delivered["delivered_at"] == timedelta(days=7)
        assert delivered["payment_status"] == "paid"
        assert [h["status"] for h in delivered["status_history"]] == [
            "pending", "confirmed", "processing", "shipped", "delivered",
        ]

    def test_invalid_transition(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=3)
        fill_cart(user, (saree, 1))
        order = _place(user)

        with pytest.raises(InvalidTransitionError):
            OrderService.update_status(order["_id"], "delivered")

    def test_staff_cancel_restores_stock(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=4)
        fill_cart(user, (saree, 3))
        order = _place(user)
        OrderService.update_status(order["_id"], "confirmed")

        OrderService.update_status(order["_id"], "cancelled", note="Out of courier range")

        assert Saree.get_by_id(saree["_id"])["online_stock"] == 4

    def test_customer_cancel_only_before_processing(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=4)
        fill_cart(user, (saree, 1))
        order = _place(user)
        OrderService.update_status(order["_id"], "confirmed")
        OrderService.update_status(order["_id"], "processing")

        with pytest.raises(AppError):
            OrderService.cancel_order(user["_id"], order["_id"])

    def test_customer_cancel(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=4)
        fill_cart(user, (saree, 2))
        order = _place(user)

        cancelled = OrderService.cancel_order(user["_id"], order["_id"], reason="Ordered by mistake")

        assert cancelled["status"] == "cancelled"
        assert cancelled["status_history"][-1]["note"] == "Ordered by mistake"
        assert Saree.get_by_id(saree["_id"])["online_stock"] == 4

    def test_other_users_cannot_see_order(self, make_user, make_saree, fill_cart, serviceable_pincode):
        from saree_store.utils.errors import NotFoundError

        owner, stranger = make_user(), make_user()
        saree = make_saree(total_stock=2)
        fill_cart(owner, (saree, 1))
        order = _place(owner)

        with pytest.raises(NotFoundError):
            OrderService.get_order(order["_id"], user_id=stranger["_id"])


class TestPagination:

    def test_user_orders_paginated(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=20)
        for _ in range(3):
            fill_cart(user, (saree, 1))
            _place(user)

        first = OrderService.list_user_orders(user["_id"], page=1, page_size=2)
        second = OrderService.list_user_orders(user["_id"], page=2, page_size=2)

        assert len(first["items"]) == 2
        assert len(second["items"]) == 1
        assert first["pagination"]["total"] == 3
        assert first["pagination"]["has_next"] is True
        assert second["pagination"]["has_previous"] is True
