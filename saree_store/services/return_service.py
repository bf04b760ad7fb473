# services/return_service.py
from datetime import timedelta

from pymongo import ReturnDocument

from ..constants.service_code import (
    ORDER_STATUS,
    PAYMENT_STATUS,
    RETURN_STATUS,
    REFUND_STATUS,
    RETURN_REASONS,
    RETURN_RESOLUTIONS,
    ROLES,
)
from ..models.order import Order
from ..models.return_request import ReturnRequest, Refund
from ..models.saree import Saree
from ..utils.errors import (
    AppError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ReturnNotAllowedError,
)
from ..utils.helpers import utcnow, to_object_id, optional_object_id, money
from ..utils.logger import Log
from ..utils.pagination import paginate
from .inventory_service import InventoryService
from .notification_service import NotificationService
from .order_service import OrderService
from .settings_service import SettingsService


class ReturnService:
    """
    Online order returns, from the customer's request through pickup and
    inspection to a refund record or an exchange order.
    """

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    @staticmethod
    def _eligible_until(order):
        if order.get("return_eligible_until"):
            return order["return_eligible_until"]
        if order.get("delivered_at"):
            return order["delivered_at"] + timedelta(days=SettingsService.get("return_window_days"))
        return None

    @staticmethod
    def _active_return(order_id):
        return ReturnRequest.find_one({
            "order_id": order_id,
            "status": {"$nin": list(ReturnRequest.CLOSED_STATUSES)},
        })

    @staticmethod
    def check_eligibility(order_id, user_id):
        order = Order.get_by_id(order_id, user_id=to_object_id(user_id))
        if not order:
            raise NotFoundError("Order not found")

        if order["status"] != ORDER_STATUS["DELIVERED"]:
            return {"eligible": False, "reason": "Only delivered orders can be returned"}

        until = ReturnService._eligible_until(order)
        if until is None or utcnow() > until:
            return {
                "eligible": False,
                "reason": "The return window for this order has closed",
                "eligible_until": until.isoformat() if until else None,
            }

        if ReturnService._active_return(order["_id"]):
            return {"eligible": False, "reason": "A return is already in progress for this order"}

        return {"eligible": True, "eligible_until": until.isoformat()}

    # ------------------------------------------------------------------
    # Customer side
    # ------------------------------------------------------------------

    @staticmethod
    def create_return(user_id, order_id, reason, resolution, items, description=None):
        log_tag = f"[return_service.py][ReturnService][create_return][{user_id}][{order_id}]"

        if reason not in RETURN_REASONS:
            raise AppError(f"Invalid return reason: {reason}")
        if resolution not in RETURN_RESOLUTIONS:
            raise AppError(f"Invalid resolution: {resolution}")
        if not items:
            raise AppError("Select at least one item to return")

        eligibility = ReturnService.check_eligibility(order_id, user_id)
        if not eligibility["eligible"]:
            raise ReturnNotAllowedError(eligibility["reason"])

        order = Order.get_by_id(order_id)
        order_items = {item["_id"]: item for item in order.get("items", [])}

        requested = {}
        for item in items:
            item_oid = to_object_id(item["order_item_id"], "order_item_id")
            if item_oid not in order_items:
                raise AppError(f"Item {item_oid} is not part of this order")
            entry = requested.setdefault(item_oid, {"quantity": 0, "exchange_saree_id": None})
            entry["quantity"] += int(item["quantity"])
            if item.get("exchange_saree_id"):
                entry["exchange_saree_id"] = to_object_id(item["exchange_saree_id"], "exchange_saree_id")

        lines = []
        for item_oid, entry in requested.items():
            ordered = order_items[item_oid]
            if entry["quantity"] < 1 or entry["quantity"] > ordered["quantity"]:
                raise AppError(f"Return quantity for {ordered.get('name')} must be between 1 and {ordered['quantity']}")
            if resolution == "exchange" and entry["exchange_saree_id"]:
                swap = Saree.get_by_id(entry["exchange_saree_id"])
                if not swap or not swap.get("is_active"):
                    raise NotFoundError("Exchange saree not found")
            lines.append({
                "order_item_id": item_oid,
                "saree_id": ordered["saree_id"],
                "name": ordered.get("name"),
                "quantity": entry["quantity"],
                "unit_price": ordered["unit_price"],
                "exchange_saree_id": entry["exchange_saree_id"] if resolution == "exchange" else None,
                "condition": None,
                "is_restockable": True,
            })

        return_request = ReturnRequest(
            user_id=user_id,
            order_id=order["_id"],
            reason=reason,
            resolution=resolution,
            items=lines,
            description=description,
        )
        return_id = return_request.save()

        NotificationService.notify_role(
            ROLES["INVENTORY"], "return", "New return request",
            f"A return of {len(lines)} item(s) was requested for order {order['_id']}.",
            related_id=return_request._id, related_type="return",
        )
        Log.info(f"{log_tag} return {return_id} requested, refund_amount={return_request.refund_amount}")
        return ReturnRequest.get_by_id(return_id)

    @staticmethod
    def get_return(return_id, user_id=None):
        filters = {"user_id": to_object_id(user_id)} if user_id else {}
        return_request = ReturnRequest.get_by_id(return_id, **filters)
        if not return_request:
            raise NotFoundError("Return request not found")
        return return_request

    @staticmethod
    def list_user_returns(user_id, page=None, page_size=None):
        return paginate(
            ReturnRequest.collection(), {"user_id": to_object_id(user_id)},
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=ReturnRequest.serialize,
        )

    @staticmethod
    def list_returns(status=None, page=None, page_size=None):
        query = {"status": status} if status else {}
        return paginate(
            ReturnRequest.collection(), query,
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=ReturnRequest.serialize,
        )

    @staticmethod
    def cancel_return(user_id, return_id):
        return_request = ReturnService.get_return(return_id, user_id=user_id)
        if return_request["status"] != RETURN_STATUS["REQUESTED"]:
            raise AppError("Only requested returns can be cancelled")
        return ReturnService._transition(
            return_request, RETURN_STATUS["CANCELLED"], "Cancelled by customer", user_id
        )

    # ------------------------------------------------------------------
    # Staff side
    # ------------------------------------------------------------------

    @staticmethod
    def _transition(return_request, target, note, changed_by, extra_set=None):
        current = return_request["status"]
        if target not in ReturnRequest.TRANSITIONS.get(current, ()):
            raise InvalidTransitionError(current, target)

        now = utcnow()
        update_set = {"status": target, "updated_at": now}
        update_set.update(extra_set or {})
        updated = ReturnRequest.collection().find_one_and_update(
            {"_id": return_request["_id"], "status": current},
            {
                "$set": update_set,
                "$push": {"status_history": {
                    "status": target,
                    "note": note,
                    "changed_by": optional_object_id(changed_by),
                    "changed_at": now,
                }},
            },
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError("Return request was updated by someone else, please retry")
        return updated

    @staticmethod
    def _apply_inspection(items, inspection):
        by_id = {to_object_id(i["order_item_id"], "order_item_id"): i for i in inspection or []}
        result = []
        for item in items:
            found = by_id.get(item["order_item_id"])
            if found:
                item = dict(item)
                if "condition" in found:
                    item["condition"] = found["condition"]
                if "is_restockable" in found:
                    item["is_restockable"] = bool(found["is_restockable"])
            result.append(item)
        return result

    @staticmethod
    def update_status(return_id, status, changed_by, note=None, admin_notes=None, inspection=None):
        log_tag = f"[return_service.py][ReturnService][update_status][{return_id}][{status}]"
        return_request = ReturnService.get_return(return_id)

        extra = {}
        if admin_notes is not None:
            extra["admin_notes"] = admin_notes
        if status == RETURN_STATUS["INSPECTED"] and inspection:
            extra["items"] = ReturnService._apply_inspection(return_request["items"], inspection)

        updated = ReturnService._transition(return_request, status, note, changed_by, extra)

        if status == RETURN_STATUS["COMPLETED"]:
            try:
                updated = ReturnService._complete(updated, changed_by)
            except Exception:
                # reopen so staff can retry once stock is available
                ReturnRequest.collection().update_one(
                    {"_id": updated["_id"], "status": RETURN_STATUS["COMPLETED"]},
                    {"$set": {"status": return_request["status"], "updated_at": utcnow()},
                     "$pop": {"status_history": 1}},
                )
                Log.error(f"{log_tag} completion failed, status reverted to {return_request['status']}")
                raise

        NotificationService.create(
            updated["user_id"], "return", f"Return {status.replace('_', ' ')}",
            f"Your return request is now {status.replace('_', ' ')}.",
            related_id=updated["_id"], related_type="return",
        )
        Log.info(f"{log_tag} {return_request['status']} -> {status}")
        return updated

    @staticmethod
    def _restock_items(return_request, changed_by):
        for item in return_request["items"]:
            if item.get("is_restockable", True):
                InventoryService.restock_online(
                    item["saree_id"], item["quantity"], order_ref_id=return_request["_id"],
                    created_by=changed_by, notes="Customer return restocked",
                )

    @staticmethod
    def _complete(return_request, changed_by):
        order = Order.get_by_id(return_request["order_id"])
        if not order:
            raise NotFoundError("Order not found")

        if return_request["resolution"] == "exchange":
            exchange_order = ReturnService._create_exchange_order(return_request, order, changed_by)
            ReturnService._restock_items(return_request, changed_by)
            return ReturnRequest.collection().find_one_and_update(
                {"_id": return_request["_id"]},
                {"$set": {"exchange_order_id": exchange_order["_id"], "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )

        method = "store_credit" if return_request["resolution"] == "store_credit" else order.get("payment_method")
        refund = Refund(
            return_request_id=return_request["_id"],
            order_id=order["_id"],
            user_id=return_request["user_id"],
            amount=return_request["refund_amount"],
            method=method,
        )
        refund.save()
        ReturnService._restock_items(return_request, changed_by)

        refunded = sum(r.get("amount", 0) for r in Refund.find({"order_id": order["_id"]}))
        payment_status = (
            PAYMENT_STATUS["REFUNDED"] if money(refunded) >= money(order.get("final_amount"))
            else PAYMENT_STATUS["PARTIALLY_REFUNDED"]
        )
        Order.update(order["_id"], payment_status=payment_status)
        return ReturnRequest.get_by_id(return_request["_id"])

    @staticmethod
    def _create_exchange_order(return_request, order, changed_by):
        lines = []
        for item in return_request["items"]:
            saree = Saree.get_by_id(item.get("exchange_saree_id") or item["saree_id"])
            if not saree or not saree.get("is_active"):
                raise NotFoundError("Exchange saree not found")
            lines.append({
                "saree_id": saree["_id"],
                "name": saree.get("name"),
                "quantity": item["quantity"],
                "unit_price": 0,
                "original_price": saree.get("price", 0),
            })

        exchange = Order(
            user_id=return_request["user_id"],
            items=lines,
            total_amount=0,
            discount_amount=0,
            shipping_address=order.get("shipping_address"),
            phone=order.get("phone"),
            payment_method=order.get("payment_method"),
            status=ORDER_STATUS["CONFIRMED"],
            payment_status=PAYMENT_STATUS["PAID"],
            notes=f"Exchange for return {return_request['_id']}",
            exchange_for_return_id=return_request["_id"],
            changed_by=changed_by,
        )
        exchange.save()
        try:
            OrderService.deduct_lines(lines, exchange._id, changed_by)
        except Exception:
            Order.delete(exchange._id)
            raise

        NotificationService.create(
            return_request["user_id"], "order", "Exchange order created",
            "Your replacement items are on their way.",
            related_id=exchange._id, related_type="order",
        )
        return Order.get_by_id(exchange._id)

    # ------------------------------------------------------------------
    # Refunds
    # ------------------------------------------------------------------

    @staticmethod
    def list_refunds(status=None, page=None, page_size=None):
        query = {"status": status} if status else {}
        return paginate(
            Refund.collection(), query,
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=Refund.serialize,
        )

    @staticmethod
    def list_user_refunds(user_id, page=None, page_size=None):
        return paginate(
            Refund.collection(), {"user_id": to_object_id(user_id)},
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=Refund.serialize,
        )

    @staticmethod
    def process_refund(refund_id, status, processed_by=None, transaction_ref=None):
        log_tag = f"[return_service.py][ReturnService][process_refund][{refund_id}][{status}]"
        refund = Refund.get_by_id(refund_id)
        if not refund:
            raise NotFoundError("Refund not found")

        current = refund["status"]
        if status not in Refund.TRANSITIONS.get(current, ()):
            raise InvalidTransitionError(current, status)

        update_set = {"status": status, "updated_at": utcnow(), "processed_by": optional_object_id(processed_by)}
        if transaction_ref:
            update_set["transaction_ref"] = transaction_ref
        if status == REFUND_STATUS["COMPLETED"]:
            update_set["processed_at"] = utcnow()

        updated = Refund.collection().find_one_and_update(
            {"_id": refund["_id"], "status": current},
            {"$set": update_set},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError("Refund was updated by someone else, please retry")

        if status == REFUND_STATUS["COMPLETED"]:
            NotificationService.create(
                updated["user_id"], "refund", "Refund completed",
                f"Your refund of {updated['amount']:.2f} has been processed.",
                related_id=updated["_id"], related_type="refund",
            )
        Log.info(f"{log_tag} {current} -> {status}")
        return updated
