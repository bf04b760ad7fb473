# services/saree_service.py
import re

from ..constants.service_code import ONLINE_VISIBLE_CHANNELS
from ..models.catalog import Category, Color, Fabric
from ..models.saree import Saree
from ..utils.errors import NotFoundError
from ..utils.helpers import to_object_id
from ..utils.pagination import normalize_pagination, build_pagination
from .inventory_service import InventoryService
from .offer_service import OfferService
from .review_service import ReviewService


SORTS = {
    "newest": [("created_at", -1)],
    "price_asc": [("price", 1)],
    "price_desc": [("price", -1)],
    "name": [("name", 1)],
}


class SareeService:
    """Catalog reads for the storefront and the back office."""

    @staticmethod
    def build_query(filters, public=True):
        query = {}
        if public:
            query["is_active"] = True
            query["distribution_channel"] = {"$in": list(ONLINE_VISIBLE_CHANNELS)}
        elif filters.get("is_active") is not None:
            query["is_active"] = filters["is_active"]

        if filters.get("search"):
            pattern = re.compile(re.escape(filters["search"].strip()), re.IGNORECASE)
            query["$or"] = [{"name": pattern}, {"description": pattern}]
        for key in ("category_id", "color_id", "fabric_id"):
            if filters.get(key):
                query[key] = to_object_id(filters[key], key)
        if filters.get("distribution_channel") and not public:
            query["distribution_channel"] = filters["distribution_channel"]

        price = {}
        if filters.get("min_price") is not None:
            price["$gte"] = float(filters["min_price"])
        if filters.get("max_price") is not None:
            price["$lte"] = float(filters["max_price"])
        if price:
            query["price"] = price

        if filters.get("featured"):
            query["is_featured"] = True
        return query

    @staticmethod
    def list_sarees(filters=None, page=None, page_size=None, public=True):
        filters = filters or {}
        page, page_size = normalize_pagination(page, page_size)
        query = SareeService.build_query(filters, public=public)

        collection = Saree.collection()
        total = collection.count_documents(query)
        cursor = (
            collection.find(query)
            .sort(SORTS.get(filters.get("sort") or "newest", SORTS["newest"]))
            .skip((page - 1) * page_size)
            .limit(page_size)
        )
        items = OfferService.with_pricing(list(cursor))
        SareeService._attach_names(items)
        return {"items": items, "pagination": build_pagination(page, page_size, total)}

    @staticmethod
    def _attach_names(items):
        lookups = (("category", Category), ("color", Color), ("fabric", Fabric))
        for field, model in lookups:
            ids = {item.get(f"{field}_id") for item in items if item.get(f"{field}_id")}
            if not ids:
                continue
            names = {
                str(doc["_id"]): doc.get("name")
                for doc in model.find({"_id": {"$in": [to_object_id(i) for i in ids]}})
            }
            for item in items:
                item[f"{field}_name"] = names.get(item.get(f"{field}_id"))

    @staticmethod
    def get_public_saree(saree_id):
        saree = Saree.get_by_id(saree_id)
        if not saree or not saree.get("is_active") or saree.get("distribution_channel") not in ONLINE_VISIBLE_CHANNELS:
            raise NotFoundError("Saree not found")

        item = OfferService.with_pricing([saree])[0]
        SareeService._attach_names([item])
        item["reviews"] = ReviewService.stats(saree["_id"])
        return item

    @staticmethod
    def get_backoffice_saree(saree_id):
        saree = InventoryService.get_saree(saree_id)
        item = OfferService.with_pricing([saree])[0]
        SareeService._attach_names([item])
        item["allocations"] = InventoryService.get_allocations(saree["_id"])
        item["stock_check"] = InventoryService.check_invariant(saree["_id"])
        return item
