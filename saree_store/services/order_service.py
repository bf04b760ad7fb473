# services/order_service.py
from datetime import timedelta

from bson import ObjectId
from pymongo import ReturnDocument

from ..constants.service_code import ORDER_STATUS, PAYMENT_STATUS, ONLINE_VISIBLE_CHANNELS
from ..models.order import Order
from ..models.saree import Saree
from ..models.shopping import CartItem
from ..models.promotion import Coupon
from ..utils.errors import AppError, InvalidTransitionError, NotFoundError, ConflictError
from ..utils.helpers import utcnow, to_object_id, money
from ..utils.logger import Log
from ..utils.pagination import paginate
from .address_service import AddressService
from .coupon_service import CouponService
from .inventory_service import InventoryService
from .notification_service import NotificationService
from .offer_service import OfferService
from .settings_service import SettingsService


ADDRESS_FIELDS = ("name", "phone", "address_line1", "address_line2", "landmark", "city", "state", "pincode")

STATUS_MESSAGES = {
    ORDER_STATUS["CONFIRMED"]: "Your order has been confirmed.",
    ORDER_STATUS["PROCESSING"]: "Your order is being prepared.",
    ORDER_STATUS["SHIPPED"]: "Your order has been shipped.",
    ORDER_STATUS["DELIVERED"]: "Your order has been delivered.",
    ORDER_STATUS["CANCELLED"]: "Your order has been cancelled.",
}


class OrderService:

    # ------------------------------------------------------------------
    # Stock helpers shared with returns
    # ------------------------------------------------------------------

    @staticmethod
    def deduct_lines(lines, order_ref_id, created_by):
        """
        Deduct online stock for each line. If a line fails, lines already
        deducted are put back and the error propagates.
        """
        applied = []
        try:
            for line in lines:
                InventoryService.deduct_online(
                    line["saree_id"], line["quantity"], order_ref_id=order_ref_id, created_by=created_by,
                )
                applied.append(line)
        except Exception:
            for line in applied:
                InventoryService.restock_online(
                    line["saree_id"], line["quantity"], order_ref_id=order_ref_id, created_by=created_by,
                    notes="Reversal of failed order deduction",
                )
            raise

    @staticmethod
    def restore_lines(order, created_by=None, notes="Order cancelled"):
        for item in order.get("items", []):
            InventoryService.restock_online(
                item["saree_id"], item["quantity"], order_ref_id=order["_id"], created_by=created_by,
                notes=notes,
            )

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @staticmethod
    def build_lines_from_cart(user_id):
        cart = CartItem.find({"user_id": to_object_id(user_id)}, sort=[("created_at", 1)])
        if not cart:
            raise AppError("Your cart is empty")

        sarees = {s["_id"]: s for s in Saree.find({"_id": {"$in": [c["saree_id"] for c in cart]}})}
        offers = OfferService.active_offers()

        lines = []
        for item in cart:
            saree = sarees.get(item["saree_id"])
            if not saree or not saree.get("is_active"):
                raise AppError("An item in your cart is no longer available")
            if saree.get("distribution_channel") not in ONLINE_VISIBLE_CHANNELS:
                raise AppError(f"{saree.get('name')} is only available in stores")
            pricing = OfferService.price_saree(saree, offers)
            lines.append({
                "saree_id": saree["_id"],
                "name": saree.get("name"),
                "category_id": saree.get("category_id"),
                "quantity": item["quantity"],
                "unit_price": pricing["sale_price"],
                "original_price": pricing["price"],
            })
        return lines

    @staticmethod
    def _apply_coupon(lines, total, coupon_code, user_id):
        """Category coupons discount only the lines in their category."""
        eligible = None
        found = Coupon.get_by_code(coupon_code)
        category_id = found.get("category_id") if found else None
        if category_id:
            eligible = money(sum(
                l["unit_price"] * l["quantity"] for l in lines if l.get("category_id") == category_id
            ))
        return CouponService.validate(coupon_code, user_id, total, eligible_amount=eligible)

    @staticmethod
    def preview_coupon(user_id, coupon_code):
        lines = OrderService.build_lines_from_cart(user_id)
        total = money(sum(line["unit_price"] * line["quantity"] for line in lines))
        coupon, discount = OrderService._apply_coupon(lines, total, coupon_code, user_id)
        return {
            "code": coupon["code"],
            "type": coupon["type"],
            "subtotal": total,
            "discount": discount,
            "final_amount": money(total - discount),
        }

    @staticmethod
    def resolve_shipping(user_id, address_id=None, shipping_address=None):
        """
        Use a saved address or an inline one. Either way the pincode must
        be serviceable. Returns (address_dict, phone).
        """
        if address_id:
            saved = AddressService.get(user_id, address_id)
            address = {k: saved.get(k) for k in ADDRESS_FIELDS}
        else:
            address = {k: shipping_address.get(k) for k in ADDRESS_FIELDS}
            address["phone"] = AddressService.format_phone(address["phone"])

        if not AddressService.check_pincode(address["pincode"])["serviceable"]:
            raise AppError(f"We do not deliver to pincode {address['pincode']} yet")
        return address, address["phone"]

    @staticmethod
    def create_order(user_id, shipping_address, phone, payment_method, coupon_code=None, notes=None):
        log_tag = f"[order_service.py][OrderService][create_order][{user_id}]"

        lines = OrderService.build_lines_from_cart(user_id)
        total = money(sum(line["unit_price"] * line["quantity"] for line in lines))

        coupon, discount = None, 0.0
        if coupon_code:
            coupon, discount = OrderService._apply_coupon(lines, total, coupon_code, user_id)

        order = Order(
            user_id=user_id,
            items=[{k: v for k, v in line.items() if k != "category_id"} for line in lines],
            total_amount=total,
            discount_amount=discount,
            shipping_address=shipping_address,
            phone=phone,
            payment_method=payment_method,
            coupon_id=coupon["_id"] if coupon else None,
            notes=notes,
            changed_by=user_id,
        )
        # id is assigned up front so ledger rows can reference it
        order._id = ObjectId()

        # the coupon is claimed first so a lost race costs no stock
        if coupon:
            CouponService.record_usage(coupon["_id"], user_id, order._id, discount)

        try:
            OrderService.deduct_lines(lines, order._id, user_id)
        except Exception:
            if coupon:
                CouponService.release_usage(coupon["_id"], order._id)
            raise

        try:
            Order.collection().insert_one(order.to_dict())
        except Exception:
            for line in lines:
                InventoryService.restock_online(
                    line["saree_id"], line["quantity"], order_ref_id=order._id, created_by=user_id,
                    notes="Reversal of failed order insert",
                )
            if coupon:
                CouponService.release_usage(coupon["_id"], order._id)
            Log.error(f"{log_tag} order insert failed, stock and coupon restored")
            raise

        CartItem.collection().delete_many({"user_id": to_object_id(user_id)})

        NotificationService.create(
            user_id, "order", "Order placed",
            f"Your order of {order.final_amount:.2f} has been placed.",
            related_id=order._id, related_type="order",
        )
        for line in lines:
            InventoryService.check_low_stock(line["saree_id"])

        Log.info(f"{log_tag} order {order._id} placed: total={total} discount={discount}")
        return Order.get_by_id(order._id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_order(order_id, user_id=None):
        filters = {"user_id": to_object_id(user_id)} if user_id else {}
        order = Order.get_by_id(order_id, **filters)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def list_user_orders(user_id, page=None, page_size=None):
        return paginate(
            Order.collection(), {"user_id": to_object_id(user_id)},
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=Order.serialize,
        )

    @staticmethod
    def list_orders(filters=None, page=None, page_size=None):
        filters = filters or {}
        query = {}
        if filters.get("status"):
            query["status"] = filters["status"]
        if filters.get("payment_status"):
            query["payment_status"] = filters["payment_status"]
        if filters.get("user_id"):
            query["user_id"] = to_object_id(filters["user_id"], "user_id")
        return paginate(
            Order.collection(), query,
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=Order.serialize,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def _transition(order, target, note, changed_by, extra_set=None):
        """Compare-and-set the status so two staff updates cannot both win."""
        current = order["status"]
        if target not in Order.TRANSITIONS.get(current, ()):
            raise InvalidTransitionError(current, target)

        now = utcnow()
        update_set = {"status": target, "updated_at": now}
        update_set.update(extra_set or {})
        updated = Order.collection().find_one_and_update(
            {"_id": order["_id"], "status": current},
            {
                "$set": update_set,
                "$push": {"status_history": Order.history_entry(target, note, changed_by, now)},
            },
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError("Order was updated by someone else, please retry")
        return updated

    @staticmethod
    def update_status(order_id, status, note=None, changed_by=None):
        log_tag = f"[order_service.py][OrderService][update_status][{order_id}][{status}]"
        order = OrderService.get_order(order_id)

        extra = {}
        if status == ORDER_STATUS["DELIVERED"]:
            delivered_at = utcnow()
            window = SettingsService.get("return_window_days")
            extra["delivered_at"] = delivered_at
            extra["return_eligible_until"] = delivered_at + timedelta(days=window)
            if order.get("payment_method") == "cod":
                extra["payment_status"] = PAYMENT_STATUS["PAID"]

        updated = OrderService._transition(order, status, note, changed_by, extra)

        if status == ORDER_STATUS["CANCELLED"]:
            OrderService.restore_lines(updated, created_by=changed_by, notes="Order cancelled by staff")

        NotificationService.create(
            updated["user_id"], "order", f"Order {status}",
            STATUS_MESSAGES.get(status, f"Your order is now {status}."),
            related_id=updated["_id"], related_type="order",
        )
        Log.info(f"{log_tag} {order['status']} -> {status}")
        return updated

    @staticmethod
    def cancel_order(user_id, order_id, reason=None):
        log_tag = f"[order_service.py][OrderService][cancel_order][{user_id}][{order_id}]"
        order = OrderService.get_order(order_id, user_id=user_id)
        if order["status"] not in Order.USER_CANCELLABLE:
            raise AppError(f"Orders that are {order['status']} can no longer be cancelled")

        updated = OrderService._transition(
            order, ORDER_STATUS["CANCELLED"], reason or "Cancelled by customer", user_id
        )
        OrderService.restore_lines(updated, created_by=user_id, notes="Order cancelled by customer")
        Log.info(f"{log_tag} cancelled, stock restored")
        return updated
