# tests/test_returns.py
from datetime import timedelta

import pytest

from conftest import SHIPPING_ADDRESS
from saree_store.models.order import Order
from saree_store.models.return_request import Refund, ReturnRequest
from saree_store.models.saree import Saree
from saree_store.services.order_service import OrderService
from saree_store.services.return_service import ReturnService
from saree_store.utils.errors import AppError, InvalidTransitionError, ReturnNotAllowedError
from saree_store.utils.helpers import utcnow

PICKUP_FLOW = ("approved", "pickup_scheduled", "picked_up", "received", "inspected")


@pytest.fixture
def delivered_order(make_user, make_saree, fill_cart, serviceable_pincode):
    def _make(quantity=2, price=3000, payment_method="upi"):
        user = make_user()
        saree = make_saree(total_stock=10, price=price)
        fill_cart(user, (saree, quantity))
        address, phone = OrderService.resolve_shipping(user["_id"], shipping_address=SHIPPING_ADDRESS)
        order = OrderService.create_order(user["_id"], address, phone, payment_method)
        for status in ("confirmed", "processing", "shipped", "delivered"):
            order = OrderService.update_status(order["_id"], status)
        return user, saree, order
    return _make


def _request(user, order, quantity=1, resolution="refund", **extra):
    items = [dict({"order_item_id": str(order["items"][0]["_id"]), "quantity": quantity}, **extra)]
    return ReturnService.create_return(user["_id"], order["_id"], "defective", resolution, items)


def _walk(return_request, statuses, staff_id=None, **kwargs):
    for status in statuses:
        return_request = ReturnService.update_status(return_request["_id"], status, staff_id, **kwargs)
    return return_request


class TestEligibility:

    def test_undelivered_order_not_eligible(self, make_user, make_saree, fill_cart, serviceable_pincode):
        user = make_user()
        saree = make_saree(total_stock=2)
        fill_cart(user, (saree, 1))
        address, phone = OrderService.resolve_shipping(user["_id"], shipping_address=SHIPPING_ADDRESS)
        order = OrderService.create_order(user["_id"], address, phone, "cod")

        result = ReturnService.check_eligibility(order["_id"], user["_id"])
        assert result["eligible"] is False

    def test_window_closed(self, delivered_order):
        user, _, order = delivered_order()
        Order.collection().update_one(
            {"_id": order["_id"]}, {"$set": {"return_eligible_until": utcnow() - timedelta(minutes=1)}}
        )

        assert ReturnService.check_eligibility(order["_id"], user["_id"])["eligible"] is False
        with pytest.raises(ReturnNotAllowedError):
            _request(user, order)

    def test_one_active_return_per_order(self, delivered_order):
        user, _, order = delivered_order()
        _request(user, order)

        with pytest.raises(ReturnNotAllowedError):
            _request(user, order)

    def test_cancelled_return_frees_the_order(self, delivered_order):
        user, _, order = delivered_order()
        first = _request(user, order)
        ReturnService.cancel_return(user["_id"], first["_id"])

        assert ReturnService.check_eligibility(order["_id"], user["_id"])["eligible"] is True


class TestReturnRequest:

    def test_refund_amount_from_line_prices(self, delivered_order):
        user, _, order = delivered_order(quantity=2, price=3000)
        return_request = _request(user, order, quantity=2)

        assert return_request["status"] == "requested"
        assert return_request["refund_amount"] == 6000.0
        assert return_request["items"][0]["is_restockable"] is True

    def test_quantity_bounds(self, delivered_order):
        user, _, order = delivered_order(quantity=1)
        with pytest.raises(AppError):
            _request(user, order, quantity=2)

    def test_invalid_reason(self, delivered_order):
        user, _, order = delivered_order()
        items = [{"order_item_id": str(order["items"][0]["_id"]), "quantity": 1}]
        with pytest.raises(AppError):
            ReturnService.create_return(user["_id"], order["_id"], "bored", "refund", items)

    def test_only_requested_can_be_cancelled(self, delivered_order, make_user):
        user, _, order = delivered_order()
        staff = make_user(role="inventory")
        return_request = _request(user, order)
        ReturnService.update_status(return_request["_id"], "approved", staff["_id"])

        with pytest.raises(AppError):
            ReturnService.cancel_return(user["_id"], return_request["_id"])


class TestReturnCompletion:

    def test_refund_completion_restocks_and_creates_refund(self, delivered_order, make_user):
        user, saree, order = delivered_order(quantity=2, price=3000)
        staff = make_user(role="inventory")
        return_request = _request(user, order, quantity=1)
        stock_before = Saree.get_by_id(saree["_id"])["online_stock"]

        completed = _walk(return_request, PICKUP_FLOW + ("completed",), staff["_id"])

        assert completed["status"] == "completed"
        assert Saree.get_by_id(saree["_id"])["online_stock"] == stock_before + 1
        refund = Refund.find_one({"return_request_id": return_request["_id"]})
        assert refund["amount"] == 3000.0
        assert refund["method"] == "upi"
        assert refund["status"] == "pending"
        assert Order.get_by_id(order["_id"])["payment_status"] == "partially_refunded"

    def test_damaged_items_are_not_restocked(self, delivered_order, make_user):
        user, saree, order = delivered_order(quantity=1)
        staff = make_user(role="inventory")
        return_request = _request(user, order)
        stock_before = Saree.get_by_id(saree["_id"])["online_stock"]

        inspected = _walk(return_request, PICKUP_FLOW[:-1], staff["_id"])
        inspected = ReturnService.update_status(
            inspected["_id"], "inspected", staff["_id"],
            inspection=[{"order_item_id": str(order["items"][0]["_id"]), "condition": "torn", "is_restockable": False}],
        )
        assert inspected["items"][0]["condition"] == "torn"
        ReturnService.update_status(inspected["_id"], "completed", staff["_id"])

        assert Saree.get_by_id(saree["_id"])["online_stock"] == stock_before
        assert Order.get_by_id(order["_id"])["payment_status"] == "refunded"

    def test_store_credit_resolution(self, delivered_order, make_user):
        user, _, order = delivered_order(quantity=1)
        staff = make_user(role="inventory")
        return_request = _request(user, order, resolution="store_credit")
        _walk(return_request, PICKUP_FLOW + ("completed",), staff["_id"])

        assert Refund.find_one({"return_request_id": return_request["_id"]})["method"] == "store_credit"

    def test_exchange_creates_replacement_order(self, delivered_order, make_user, make_saree):
        user, saree, order = delivered_order(quantity=1)
        staff = make_user(role="inventory")
        swap = make_saree(total_stock=3, price=4500)
        return_request = _request(user, order, resolution="exchange", exchange_saree_id=str(swap["_id"]))

        completed = _walk(return_request, PICKUP_FLOW + ("completed",), staff["_id"])

        exchange_order = Order.get_by_id(completed["exchange_order_id"])
        assert exchange_order["status"] == "confirmed"
        assert exchange_order["final_amount"] == 0.0
        assert exchange_order["items"][0]["saree_id"] == swap["_id"]
        assert Saree.get_by_id(swap["_id"])["online_stock"] == 2
        assert Refund.collection().count_documents({}) == 0

    def test_failed_exchange_reopens_return(self, delivered_order, make_user, make_saree):
        from saree_store.utils.errors import InsufficientStockError

        user, _, order = delivered_order(quantity=1)
        staff = make_user(role="inventory")
        swap = make_saree(total_stock=1)
        return_request = _request(user, order, resolution="exchange", exchange_saree_id=str(swap["_id"]))
        inspected = _walk(return_request, PICKUP_FLOW, staff["_id"])
        # the replacement sold out in the meantime
        OrderService.deduct_lines([{"saree_id": swap["_id"], "quantity": 1}], None, None)

        with pytest.raises(InsufficientStockError):
            ReturnService.update_status(inspected["_id"], "completed", staff["_id"])

        reopened = ReturnRequest.get_by_id(return_request["_id"])
        assert reopened["status"] == "inspected"
        assert reopened["status_history"][-1]["status"] == "inspected"
        assert Order.collection().count_documents({"exchange_for_return_id": return_request["_id"]}) == 0

    def test_skipping_steps_rejected(self, delivered_order, make_user):
        user, _, order = delivered_order()
        staff = make_user(role="inventory")
        return_request = _request(user, order)
        with pytest.raises(InvalidTransitionError):
            ReturnService.update_status(return_request["_id"], "completed", staff["_id"])


class TestRefunds:

    def test_refund_processing(self, delivered_order, make_user):
        user, _, order = delivered_order(quantity=1)
        staff = make_user(role="admin")
        return_request = _request(user, order)
        _walk(return_request, PICKUP_FLOW + ("completed",), staff["_id"])
        refund = Refund.find_one({"return_request_id": return_request["_id"]})

        ReturnService.process_refund(refund["_id"], "initiated", staff["_id"])
        done = ReturnService.process_refund(refund["_id"], "completed", staff["_id"], transaction_ref="UTR123")

        assert done["status"] == "completed"
        assert done["transaction_ref"] == "UTR123"
        assert done["processed_at"] is not None
        with pytest.raises(InvalidTransitionError):
            ReturnService.process_refund(refund["_id"], "failed", staff["_id"])

    def test_customer_sees_only_own_refunds(self, delivered_order, make_user):
        staff = make_user(role="admin")
        owner, _, order = delivered_order(quantity=1)
        other, _, other_order = delivered_order(quantity=1)
        for user, placed in ((owner, order), (other, other_order)):
            _walk(_request(user, placed), PICKUP_FLOW + ("completed",), staff["_id"])

        result = ReturnService.list_user_refunds(owner["_id"])

        assert result["pagination"]["total"] == 1
        assert result["items"][0]["order_id"] == str(order["_id"])
        assert result["items"][0]["status"] == "pending"
