# services/store_sale_service.py
from collections import OrderedDict
from datetime import datetime, time

from pymongo import ReturnDocument

from ..constants.service_code import STORE_SALE_TYPES
from ..models.catalog import Store
from ..models.saree import Saree
from ..models.stock_movement import StockMovement
from ..models.store_sale import StoreSale, StoreSaleItem, StoreExchange
from ..utils.errors import AppError, ConflictError, NotFoundError
from ..utils.helpers import utcnow, to_object_id, money, serialize_doc
from ..utils.logger import Log
from ..utils.pagination import paginate
from .inventory_service import InventoryService
from .offer_service import OfferService


class StoreSaleService:
    """Point-of-sale flows for physical stores: sales and exchanges."""

    @staticmethod
    def _merge_lines(items, key):
        """Sum quantities of lines pointing at the same id, keeping first-seen order."""
        merged = OrderedDict()
        for item in items:
            item_id = to_object_id(item[key], key)
            quantity = int(item["quantity"])
            if quantity < 1:
                raise AppError("Quantity must be at least 1")
            merged[item_id] = merged.get(item_id, 0) + quantity
        return merged

    @staticmethod
    def _price_lines(items):
        merged = StoreSaleService._merge_lines(items, "saree_id")
        sarees = {s["_id"]: s for s in Saree.find({"_id": {"$in": list(merged.keys())}})}
        offers = OfferService.active_offers()

        lines = []
        for saree_id, quantity in merged.items():
            saree = sarees.get(saree_id)
            if not saree or not saree.get("is_active"):
                raise NotFoundError(f"Saree {saree_id} not found")
            lines.append({
                "saree_id": saree_id,
                "name": saree.get("name"),
                "quantity": quantity,
                "unit_price": OfferService.effective_price(saree, offers),
            })
        return lines

    @staticmethod
    def _rollback(steps, log_tag):
        for undo in reversed(steps):
            try:
                undo()
            except Exception as e:
                Log.error(f"{log_tag} compensation step failed: {e}")

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    @staticmethod
    def create_sale(store_id, sold_by, items, customer_name=None, customer_phone=None,
                    sale_type=STORE_SALE_TYPES[0]):
        log_tag = f"[store_sale_service.py][StoreSaleService][create_sale][{store_id}][{sold_by}]"

        if not items:
            raise AppError("A sale needs at least one item")
        if sale_type not in STORE_SALE_TYPES:
            raise AppError(f"Invalid sale type: {sale_type}")
        store_oid = to_object_id(store_id, "store_id")
        if not Store.get_by_id(store_oid):
            raise NotFoundError("Store not found")

        lines = StoreSaleService._price_lines(items)
        sale = StoreSale(
            store_id=store_oid,
            sold_by=sold_by,
            total_amount=sum(l["unit_price"] * l["quantity"] for l in lines),
            customer_name=customer_name,
            customer_phone=customer_phone,
            sale_type=sale_type,
        )
        sale_id = sale.save()

        applied = []
        try:
            for line in lines:
                InventoryService.deduct_store(
                    store_oid, line["saree_id"], line["quantity"],
                    order_ref_id=sale._id, created_by=sold_by,
                )
                applied.append(line)
        except Exception:
            for line in applied:
                InventoryService.restock_store(
                    store_oid, line["saree_id"], line["quantity"], order_ref_id=sale._id, created_by=sold_by,
                    movement_type=StockMovement.TYPE_RETURN, notes="Reversal of failed store sale",
                )
            StoreSale.delete(sale._id)
            Log.error(f"{log_tag} sale failed after {len(applied)} line(s), stock restored")
            raise

        StoreSaleItem.collection().insert_many([
            StoreSaleItem(
                sale_id=sale._id, saree_id=l["saree_id"], quantity=l["quantity"], unit_price=l["unit_price"],
            ).to_dict()
            for l in lines
        ])

        for line in lines:
            InventoryService.check_low_stock(line["saree_id"])

        Log.info(f"{log_tag} sale {sale_id} recorded: {len(lines)} line(s), total={sale.total_amount}")
        return StoreSaleService.get_sale(store_oid, sale_id)

    @staticmethod
    def get_sale(store_id, sale_id):
        sale = StoreSale.get_by_id(sale_id, store_id=to_object_id(store_id, "store_id"))
        if not sale:
            raise NotFoundError("Sale not found")
        items = StoreSaleItem.find({"sale_id": sale["_id"]}, sort=[("created_at", 1)])
        names = {s["_id"]: s.get("name") for s in Saree.find({"_id": {"$in": [i["saree_id"] for i in items]}})}
        result = serialize_doc(sale)
        result["items"] = [dict(serialize_doc(i), name=names.get(i["saree_id"])) for i in items]
        return result

    @staticmethod
    def list_sales(store_id, page=None, page_size=None, date_from=None, date_to=None):
        query = {"store_id": to_object_id(store_id, "store_id")}
        created = {}
        if date_from:
            created["$gte"] = date_from
        if date_to:
            created["$lte"] = date_to
        if created:
            query["created_at"] = created
        return paginate(
            StoreSale.collection(), query,
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=StoreSale.serialize,
        )

    @staticmethod
    def today_summary(store_id):
        start = datetime.combine(utcnow().date(), time.min)
        pipeline = [
            {"$match": {"store_id": to_object_id(store_id, "store_id"), "created_at": {"$gte": start}}},
            {"$group": {"_id": None, "count": {"$sum": 1}, "revenue": {"$sum": "$total_amount"}}},
        ]
        result = list(StoreSale.collection().aggregate(pipeline))
        if not result:
            return {"count": 0, "revenue": 0.0}
        return {"count": result[0]["count"], "revenue": money(result[0]["revenue"])}

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------

    @staticmethod
    def create_exchange(store_id, processed_by, original_sale_id, return_items, new_items=None, notes=None):
        """
        Take back items from an earlier sale of this store and optionally
        hand out new ones. Everything applied is undone if a step fails.
        """
        log_tag = f"[store_sale_service.py][StoreSaleService][create_exchange][{store_id}][{original_sale_id}]"
        store_oid = to_object_id(store_id, "store_id")
        new_items = new_items or []

        if not return_items:
            raise AppError("An exchange needs at least one returned item")

        sale = StoreSale.get_by_id(original_sale_id, store_id=store_oid)
        if not sale:
            raise NotFoundError("Sale not found for this store")

        returns = StoreSaleService._merge_lines(return_items, "sale_item_id")
        sale_items = {
            i["_id"]: i for i in StoreSaleItem.find({"_id": {"$in": list(returns.keys())}, "sale_id": sale["_id"]})
        }
        return_lines = []
        for item_id, quantity in returns.items():
            sale_item = sale_items.get(item_id)
            if not sale_item:
                raise AppError(f"Item {item_id} is not part of this sale")
            remaining = sale_item["quantity"] - sale_item.get("returned_quantity", 0)
            if quantity > remaining:
                raise AppError(f"Only {remaining} unit(s) of item {item_id} can be returned")
            return_lines.append({
                "sale_item_id": item_id,
                "saree_id": sale_item["saree_id"],
                "quantity": quantity,
                "unit_price": sale_item["unit_price"],
            })

        new_lines = StoreSaleService._price_lines(new_items) if new_items else []

        exchange = StoreExchange(
            store_id=store_oid,
            original_sale_id=sale["_id"],
            processed_by=processed_by,
            return_items=return_lines,
            new_items=new_lines,
            notes=notes,
        )
        exchange_id = exchange.save()

        steps = []
        try:
            for line in return_lines:
                item = sale_items[line["sale_item_id"]]
                qty = line["quantity"]
                marked = StoreSaleItem.collection().find_one_and_update(
                    {"_id": item["_id"], "returned_quantity": {"$lte": item["quantity"] - qty}},
                    {"$inc": {"returned_quantity": qty}, "$set": {"updated_at": utcnow()}},
                    return_document=ReturnDocument.AFTER,
                )
                if marked is None:
                    raise ConflictError("Sale item was returned concurrently, please retry")
                steps.append(lambda i=item["_id"], q=qty: StoreSaleItem.collection().update_one(
                    {"_id": i}, {"$inc": {"returned_quantity": -q}}
                ))

                InventoryService.restock_store(
                    store_oid, line["saree_id"], qty, order_ref_id=exchange._id, created_by=processed_by,
                    notes="Store exchange return",
                )
                steps.append(lambda s=line["saree_id"], q=qty: InventoryService.deduct_store(
                    store_oid, s, q, order_ref_id=exchange._id, created_by=processed_by,
                    movement_type=StockMovement.TYPE_SALE, notes="Reversal of failed exchange",
                ))

            for line in new_lines:
                InventoryService.deduct_store(
                    store_oid, line["saree_id"], line["quantity"], order_ref_id=exchange._id,
                    created_by=processed_by, notes="Store exchange issue",
                )
                steps.append(lambda s=line["saree_id"], q=line["quantity"]: InventoryService.restock_store(
                    store_oid, s, q, order_ref_id=exchange._id, created_by=processed_by,
                    movement_type=StockMovement.TYPE_RETURN, notes="Reversal of failed exchange",
                ))
        except Exception:
            StoreSaleService._rollback(steps, log_tag)
            StoreExchange.delete(exchange._id)
            Log.error(f"{log_tag} exchange failed, {len(steps)} step(s) compensated")
            raise

        for line in new_lines:
            InventoryService.check_low_stock(line["saree_id"])

        Log.info(f"{log_tag} exchange {exchange_id} recorded, balance={exchange.balance}")
        return StoreExchange.get_by_id(exchange_id)

    @staticmethod
    def list_exchanges(store_id, page=None, page_size=None):
        return paginate(
            StoreExchange.collection(), {"store_id": to_object_id(store_id, "store_id")},
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=StoreExchange.serialize,
        )
