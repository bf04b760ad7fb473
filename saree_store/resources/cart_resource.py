# saree_store/resources/cart_resource.py

from flask.views import MethodView
from flask_smorest import Blueprint

from ..schemas.shopping_schema import CartItemSchema, CartQuantitySchema, WishlistItemSchema
from ..security.auth import token_required, current_user_id
from ..services.cart_service import CartService
from ..utils.errors import AppError
from ..utils.helpers import serialize_doc
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log


blp_cart = Blueprint("Cart", __name__, description="Shopping cart and wishlist")


@blp_cart.route("/cart")
class CartResource(MethodView):

    @token_required
    def get(self):
        return prepared_response(True, "OK", "Cart retrieved", data=serialize_doc(CartService.get_cart(current_user_id())))

    @token_required
    @blp_cart.arguments(CartItemSchema, location="json")
    def post(self, data):
        user_id = current_user_id()
        log_tag = f"[cart_resource.py][CartResource][post][{user_id}]"
        try:
            cart = CartService.add_item(user_id, data["saree_id"], data["quantity"])
            return prepared_response(True, "OK", "Item added to cart", data=serialize_doc(cart))
        except AppError as e:
            Log.info(f"{log_tag} {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")

    @token_required
    def delete(self):
        removed = CartService.clear(current_user_id())
        return prepared_response(True, "OK", "Cart cleared", data={"removed": removed})


@blp_cart.route("/cart/<string:saree_id>")
class CartItemResource(MethodView):

    @token_required
    @blp_cart.arguments(CartQuantitySchema, location="json")
    def put(self, data, saree_id):
        user_id = current_user_id()
        log_tag = f"[cart_resource.py][CartItemResource][put][{user_id}][{saree_id}]"
        try:
            cart = CartService.update_quantity(user_id, saree_id, data["quantity"])
            return prepared_response(True, "OK", "Cart updated", data=serialize_doc(cart))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")

    @token_required
    def delete(self, saree_id):
        try:
            cart = CartService.remove_item(current_user_id(), saree_id)
            return prepared_response(True, "OK", "Item removed from cart", data=serialize_doc(cart))
        except AppError as e:
            return error_response(e)


@blp_cart.route("/wishlist")
class WishlistResource(MethodView):

    @token_required
    def get(self):
        return prepared_response(True, "OK", "Wishlist retrieved", data=CartService.get_wishlist(current_user_id()))

    @token_required
    @blp_cart.arguments(WishlistItemSchema, location="json")
    def post(self, data):
        try:
            items = CartService.add_to_wishlist(current_user_id(), data["saree_id"])
            return prepared_response(True, "OK", "Added to wishlist", data=items)
        except AppError as e:
            return error_response(e)


@blp_cart.route("/wishlist/<string:saree_id>")
class WishlistItemResource(MethodView):

    @token_required
    def delete(self, saree_id):
        try:
            items = CartService.remove_from_wishlist(current_user_id(), saree_id)
            return prepared_response(True, "OK", "Removed from wishlist", data=items)
        except AppError as e:
            return error_response(e)
