# services/cart_service.py
from pymongo.errors import DuplicateKeyError

from ..constants.service_code import ONLINE_VISIBLE_CHANNELS
from ..models.saree import Saree
from ..models.shopping import CartItem, WishlistItem
from ..utils.errors import AppError, InsufficientStockError, NotFoundError
from ..utils.helpers import utcnow, to_object_id, money
from ..utils.logger import Log
from .offer_service import OfferService


class CartService:

    @staticmethod
    def _sellable_saree(saree_id):
        saree = Saree.get_by_id(saree_id)
        if not saree or not saree.get("is_active"):
            raise NotFoundError("Saree not found")
        if saree.get("distribution_channel") not in ONLINE_VISIBLE_CHANNELS:
            raise AppError("This saree is only available in stores")
        return saree

    @staticmethod
    def _check_available(saree, quantity):
        available = saree.get("online_stock", 0)
        if quantity > available:
            raise InsufficientStockError(
                f"Only {available} unit(s) of {saree.get('name')} available",
                saree_id=str(saree["_id"]), requested=quantity, available=available,
            )

    @staticmethod
    def get_cart(user_id):
        """Cart lines with saree details and prices, plus the cart totals."""
        items = CartItem.find({"user_id": to_object_id(user_id)}, sort=[("created_at", 1)])
        sarees = {s["_id"]: s for s in Saree.find({"_id": {"$in": [i["saree_id"] for i in items]}})}
        offers = OfferService.active_offers()

        lines, subtotal = [], 0.0
        for item in items:
            saree = sarees.get(item["saree_id"])
            if not saree:
                continue
            pricing = OfferService.price_saree(saree, offers)
            line_total = money(pricing["sale_price"] * item["quantity"])
            subtotal += line_total
            lines.append({
                "id": str(item["_id"]),
                "saree_id": str(saree["_id"]),
                "name": saree.get("name"),
                "image": (saree.get("images") or [None])[0],
                "quantity": item["quantity"],
                "available": saree.get("online_stock", 0),
                "pricing": pricing,
                "line_total": line_total,
            })
        return {"items": lines, "subtotal": money(subtotal), "item_count": sum(l["quantity"] for l in lines)}

    @staticmethod
    def add_item(user_id, saree_id, quantity=1):
        log_tag = f"[cart_service.py][CartService][add_item][{user_id}][{saree_id}]"
        if int(quantity) < 1:
            raise AppError("Quantity must be at least 1")

        saree = CartService._sellable_saree(saree_id)
        user_oid = to_object_id(user_id)
        existing = CartItem.find_one({"user_id": user_oid, "saree_id": saree["_id"]})
        new_quantity = int(quantity) + (existing["quantity"] if existing else 0)
        CartService._check_available(saree, new_quantity)

        if existing:
            CartItem.update(existing["_id"], quantity=new_quantity)
        else:
            try:
                CartItem(user_id=user_oid, saree_id=saree["_id"], quantity=new_quantity).save()
            except DuplicateKeyError:
                # a parallel add created the row first
                CartItem.collection().update_one(
                    {"user_id": user_oid, "saree_id": saree["_id"]},
                    {"$inc": {"quantity": int(quantity)}, "$set": {"updated_at": utcnow()}},
                )

        Log.info(f"{log_tag} quantity now {new_quantity}")
        return CartService.get_cart(user_id)

    @staticmethod
    def update_quantity(user_id, saree_id, quantity):
        quantity = int(quantity)
        if quantity < 0:
            raise AppError("Quantity must not be negative")
        if quantity == 0:
            return CartService.remove_item(user_id, saree_id)

        saree = CartService._sellable_saree(saree_id)
        CartService._check_available(saree, quantity)
        result = CartItem.collection().update_one(
            {"user_id": to_object_id(user_id), "saree_id": saree["_id"]},
            {"$set": {"quantity": quantity, "updated_at": utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Item not in cart")
        return CartService.get_cart(user_id)

    @staticmethod
    def remove_item(user_id, saree_id):
        result = CartItem.collection().delete_one(
            {"user_id": to_object_id(user_id), "saree_id": to_object_id(saree_id, "saree_id")}
        )
        if result.deleted_count == 0:
            raise NotFoundError("Item not in cart")
        return CartService.get_cart(user_id)

    @staticmethod
    def clear(user_id):
        return CartItem.collection().delete_many({"user_id": to_object_id(user_id)}).deleted_count

    # ------------------------------------------------------------------
    # Wishlist
    # ------------------------------------------------------------------

    @staticmethod
    def get_wishlist(user_id):
        items = WishlistItem.find({"user_id": to_object_id(user_id)}, sort=[("created_at", -1)])
        sarees = {s["_id"]: s for s in Saree.find({"_id": {"$in": [i["saree_id"] for i in items]}})}
        ordered = [sarees[i["saree_id"]] for i in items if i["saree_id"] in sarees]
        return OfferService.with_pricing(ordered)

    @staticmethod
    def add_to_wishlist(user_id, saree_id):
        saree = Saree.get_by_id(saree_id)
        if not saree or not saree.get("is_active"):
            raise NotFoundError("Saree not found")
        try:
            WishlistItem(user_id=user_id, saree_id=saree["_id"]).save()
        except DuplicateKeyError:
            pass  # already wishlisted
        return CartService.get_wishlist(user_id)

    @staticmethod
    def remove_from_wishlist(user_id, saree_id):
        result = WishlistItem.collection().delete_one(
            {"user_id": to_object_id(user_id), "saree_id": to_object_id(saree_id, "saree_id")}
        )
        if result.deleted_count == 0:
            raise NotFoundError("Item not in wishlist")
        return CartService.get_wishlist(user_id)
