# saree_store/resources/public_resource.py

from flask import request
from flask.views import MethodView
from flask_smorest import Blueprint

from ..schemas.common import PaginationSchema
from ..schemas.saree_schema import SareeQuerySchema
from ..services.address_service import AddressService
from ..services.catalog_service import CatalogService
from ..services.offer_service import OfferService
from ..services.review_service import ReviewService
from ..services.saree_service import SareeService
from ..utils.errors import AppError
from ..utils.helpers import serialize_doc
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log


blp_public = Blueprint("Storefront", __name__, description="Public catalog, offers and delivery checks")


def _unexpected(log_tag, e):
    Log.error(f"{log_tag} error: {e}")
    return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_public.route("/sarees")
class SareeListResource(MethodView):

    @blp_public.arguments(SareeQuerySchema, location="query")
    def get(self, args):
        log_tag = f"[public_resource.py][SareeListResource][get][{request.remote_addr}]"
        page = args.pop("page", None)
        page_size = args.pop("page_size", None)
        try:
            result = SareeService.list_sarees(args, page=page, page_size=page_size, public=True)
            return prepared_response(True, "OK", "Sarees retrieved", data=serialize_doc(result))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            return _unexpected(log_tag, e)


@blp_public.route("/sarees/<string:saree_id>")
class SareeDetailResource(MethodView):

    def get(self, saree_id):
        log_tag = f"[public_resource.py][SareeDetailResource][get][{saree_id}]"
        try:
            saree = SareeService.get_public_saree(saree_id)
            return prepared_response(True, "OK", "Saree retrieved", data=serialize_doc(saree))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            return _unexpected(log_tag, e)


@blp_public.route("/sarees/<string:saree_id>/reviews")
class SareeReviewsResource(MethodView):

    @blp_public.arguments(PaginationSchema, location="query")
    def get(self, args, saree_id):
        log_tag = f"[public_resource.py][SareeReviewsResource][get][{saree_id}]"
        try:
            result = ReviewService.list_for_saree(saree_id, page=args.get("page"), page_size=args.get("page_size"))
            result["stats"] = ReviewService.stats(saree_id)
            return prepared_response(True, "OK", "Reviews retrieved", data=result)
        except AppError as e:
            return error_response(e)
        except Exception as e:
            return _unexpected(log_tag, e)


@blp_public.route("/<any(categories,colors,fabrics):collection>")
class CatalogMasterResource(MethodView):

    KINDS = {"categories": "category", "colors": "color", "fabrics": "fabric"}

    def get(self, collection):
        log_tag = f"[public_resource.py][CatalogMasterResource][get][{collection}]"
        kind = self.KINDS[collection]
        try:
            return prepared_response(
                True, "OK", f"{collection.capitalize()} retrieved", data=CatalogService.list(kind)
            )
        except Exception as e:
            return _unexpected(log_tag, e)


@blp_public.route("/offers")
class OfferListResource(MethodView):

    def get(self):
        log_tag = f"[public_resource.py][OfferListResource][get][{request.remote_addr}]"
        try:
            return prepared_response(True, "OK", "Offers retrieved", data=OfferService.list_active())
        except Exception as e:
            return _unexpected(log_tag, e)


@blp_public.route("/offers/<string:offer_id>")
class OfferDetailResource(MethodView):

    def get(self, offer_id):
        log_tag = f"[public_resource.py][OfferDetailResource][get][{offer_id}]"
        try:
            detail = OfferService.get_detail(offer_id, public=True)
            return prepared_response(True, "OK", "Offer retrieved", data=serialize_doc(detail))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            return _unexpected(log_tag, e)


@blp_public.route("/pincodes/<string:pincode>")
class PincodeCheckResource(MethodView):

    def get(self, pincode):
        log_tag = f"[public_resource.py][PincodeCheckResource][get][{pincode}]"
        try:
            result = AddressService.check_pincode(pincode)
            message = "Delivery available" if result["serviceable"] else "Delivery not available for this pincode"
            return prepared_response(True, "OK", message, data=result)
        except Exception as e:
            return _unexpected(log_tag, e)
