# services/stock_request_service.py
from pymongo import ReturnDocument

from ..constants.service_code import REQUEST_STATUS, ROLES
from ..models.saree import Saree
from ..models.stock_request import StockRequest
from ..utils.errors import AppError, ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError
from ..utils.helpers import utcnow, to_object_id, optional_object_id
from ..utils.logger import Log
from ..utils.pagination import paginate
from .inventory_service import InventoryService
from .notification_service import NotificationService


class StockRequestService:

    @staticmethod
    def create(store_id, requested_by, saree_id, quantity, notes=None):
        log_tag = f"[stock_request_service.py][StockRequestService][create][{store_id}][{saree_id}]"
        if int(quantity) < 1:
            raise AppError("Quantity must be at least 1")
        saree = Saree.get_by_id(saree_id)
        if not saree or not saree.get("is_active"):
            raise NotFoundError("Saree not found")

        request = StockRequest(
            store_id=store_id, saree_id=saree["_id"], quantity=quantity, requested_by=requested_by, notes=notes,
        )
        request_id = request.save()

        NotificationService.notify_role(
            ROLES["INVENTORY"], "stock", "New stock request",
            f"A store requested {int(quantity)} unit(s) of {saree.get('name')}.",
            related_id=request._id, related_type="stock_request",
        )
        Log.info(f"{log_tag} request {request_id} created")
        return StockRequest.get_by_id(request_id)

    @staticmethod
    def list_requests(store_id=None, status=None, page=None, page_size=None):
        query = {}
        if store_id:
            query["store_id"] = to_object_id(store_id, "store_id")
        if status:
            query["status"] = status
        return paginate(
            StockRequest.collection(), query,
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=StockRequest.serialize,
        )

    @staticmethod
    def get(request_id):
        request = StockRequest.get_by_id(request_id)
        if not request:
            raise NotFoundError("Stock request not found")
        return request

    @staticmethod
    def update_status(request_id, status, changed_by, role, store_id=None, note=None):
        """
        Move a request along its lifecycle. Inventory staff approve, reject
        and dispatch; only the requesting store marks it received.
        Dispatching moves the units out of unallocated stock into the store.
        """
        log_tag = f"[stock_request_service.py][StockRequestService][update_status][{request_id}][{status}]"
        request = StockRequestService.get(request_id)
        current = request["status"]

        if status not in StockRequest.TRANSITIONS.get(current, ()):
            raise InvalidTransitionError(current, status)

        if status == REQUEST_STATUS["RECEIVED"]:
            if role != ROLES["STORE"] or optional_object_id(store_id) != request["store_id"]:
                raise ForbiddenError("Only the requesting store can mark this request received")
        elif role not in (ROLES["INVENTORY"], ROLES["ADMIN"]):
            raise ForbiddenError("Only inventory staff can update this request")

        if status == REQUEST_STATUS["DISPATCHED"]:
            InventoryService.allocate_to_store(
                request["store_id"], request["saree_id"], request["quantity"],
                order_ref_id=request["_id"], created_by=changed_by, notes="Stock request dispatched",
            )

        now = utcnow()
        updated = StockRequest.collection().find_one_and_update(
            {"_id": request["_id"], "status": current},
            {
                "$set": {"status": status, "updated_at": now},
                "$push": {"status_history": {
                    "status": status,
                    "note": note,
                    "changed_by": optional_object_id(changed_by),
                    "changed_at": now,
                }},
            },
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            if status == REQUEST_STATUS["DISPATCHED"]:
                InventoryService.release_from_store(
                    request["store_id"], request["saree_id"], request["quantity"],
                    order_ref_id=request["_id"], created_by=changed_by, notes="Reversal of duplicate dispatch",
                )
            raise ConflictError("Stock request was updated by someone else, please retry")

        Log.info(f"{log_tag} {current} -> {status}")
        return updated
