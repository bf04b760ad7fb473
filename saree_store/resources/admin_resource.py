# saree_store/resources/admin_resource.py

from flask import request
from flask.views import MethodView
from flask_smorest import Blueprint

from ..constants.service_code import ROLES
from ..schemas.auth_schema import StaffCreateSchema, UserQuerySchema, UserStatusSchema
from ..schemas.catalog_schema import CategorySchema, ColorSchema, FabricSchema, StoreSchema
from ..schemas.engagement_schema import BroadcastSchema, SettingsUpdateSchema
from ..schemas.order_schema import ReviewQuerySchema, ReviewApprovalSchema
from ..schemas.promotion_schema import CouponSchema, CouponUpdateSchema, OfferSchema, OfferUpdateSchema
from ..schemas.shopping_schema import PincodeSchema, PincodeUpdateSchema
from ..security.auth import token_required, role_required, current_user_id
from ..services.address_service import AddressService
from ..services.auth_service import AuthService
from ..services.catalog_service import CatalogService
from ..services.coupon_service import CouponService
from ..services.notification_service import NotificationService
from ..services.offer_service import OfferService
from ..services.review_service import ReviewService
from ..services.settings_service import SettingsService
from ..services.stats_service import StatsService
from ..utils.errors import AppError
from ..utils.helpers import serialize_doc
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log


blp_admin = Blueprint("Admin", __name__, url_prefix="/admin", description="Admin back office")

CATALOG_KINDS = {"categories": "category", "colors": "color", "fabrics": "fabric", "stores": "store"}
CATALOG_SCHEMAS = {"category": CategorySchema, "color": ColorSchema, "fabric": FabricSchema, "store": StoreSchema}


def _catalog_kind(collection):
    return CATALOG_KINDS[collection]


def _json_body():
    return request.get_json(silent=True) or {}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@blp_admin.route("/dashboard")
class AdminDashboardResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self):
        log_tag = f"[admin_resource.py][AdminDashboardResource][get][{current_user_id()}]"
        try:
            return prepared_response(True, "OK", "Dashboard retrieved", data=StatsService.admin_dashboard())
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


# ---------------------------------------------------------------------------
# Users & staff
# ---------------------------------------------------------------------------

@blp_admin.route("/users")
class AdminUserListResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(UserQuerySchema, location="query")
    def get(self, args):
        result = AuthService.list_users(role=args.get("role"), page=args.get("page"), page_size=args.get("page_size"))
        return prepared_response(True, "OK", "Users retrieved", data=result)


@blp_admin.route("/staff")
class AdminStaffResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(StaffCreateSchema, location="json")
    def post(self, data):
        log_tag = f"[admin_resource.py][AdminStaffResource][post][{current_user_id()}]"
        try:
            user = AuthService.create_staff(**data)
            return prepared_response(True, "CREATED", "Staff account created", data=user)
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_admin.route("/users/<string:user_id>/status")
class AdminUserStatusResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(UserStatusSchema, location="json")
    def put(self, data, user_id):
        try:
            user = AuthService.set_active(user_id, data["is_active"])
            return prepared_response(True, "OK", "User status updated", data=user)
        except AppError as e:
            return error_response(e)


@blp_admin.route("/users/<string:user_id>/toggle-active")
class AdminUserToggleResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def post(self, user_id):
        try:
            user = AuthService.toggle_active(user_id)
            return prepared_response(True, "OK", "User status toggled", data=user)
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Catalog masters
# ---------------------------------------------------------------------------

@blp_admin.route("/<any(categories,colors,fabrics,stores):collection>")
class AdminCatalogListResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"], ROLES["INVENTORY"])
    def get(self, collection):
        kind = _catalog_kind(collection)
        return prepared_response(True, "OK", f"{collection.capitalize()} retrieved", data=CatalogService.list(kind))

    @token_required
    @role_required(ROLES["ADMIN"])
    def post(self, collection):
        kind = _catalog_kind(collection)
        log_tag = f"[admin_resource.py][AdminCatalogListResource][post][{kind}]"
        data = CATALOG_SCHEMAS[kind]().load(_json_body())
        try:
            record = CatalogService.create(kind, data)
            return prepared_response(True, "CREATED", f"{kind.capitalize()} created", data=serialize_doc(record))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_admin.route("/<any(categories,colors,fabrics,stores):collection>/<string:record_id>")
class AdminCatalogResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"], ROLES["INVENTORY"])
    def get(self, collection, record_id):
        kind = _catalog_kind(collection)
        try:
            return prepared_response(
                True, "OK", f"{kind.capitalize()} retrieved", data=serialize_doc(CatalogService.get(kind, record_id))
            )
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    def put(self, collection, record_id):
        kind = _catalog_kind(collection)
        data = CATALOG_SCHEMAS[kind]().load(_json_body(), partial=True)
        try:
            record = CatalogService.update(kind, record_id, data)
            return prepared_response(True, "OK", f"{kind.capitalize()} updated", data=serialize_doc(record))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    def delete(self, collection, record_id):
        kind = _catalog_kind(collection)
        try:
            CatalogService.delete(kind, record_id)
            return prepared_response(True, "OK", f"{kind.capitalize()} deleted")
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------

@blp_admin.route("/coupons")
class AdminCouponListResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self):
        return prepared_response(True, "OK", "Coupons retrieved", data=serialize_doc(CouponService.list_all()))

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(CouponSchema, location="json")
    def post(self, data):
        user_id = current_user_id()
        log_tag = f"[admin_resource.py][AdminCouponListResource][post][{user_id}]"
        try:
            coupon = CouponService.create(data, created_by=user_id)
            Log.info(f"{log_tag} coupon {coupon['code']} created")
            return prepared_response(True, "CREATED", "Coupon created", data=serialize_doc(coupon))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_admin.route("/coupons/generate-code")
class AdminCouponCodeResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self):
        try:
            code = CouponService.generate_unique_code(prefix=request.args.get("prefix", "").upper())
            return prepared_response(True, "OK", "Code generated", data={"code": code})
        except AppError as e:
            return error_response(e)


@blp_admin.route("/coupons/<string:coupon_id>")
class AdminCouponResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self, coupon_id):
        try:
            return prepared_response(True, "OK", "Coupon retrieved", data=serialize_doc(CouponService.get(coupon_id)))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(CouponUpdateSchema, location="json")
    def put(self, data, coupon_id):
        try:
            coupon = CouponService.update(coupon_id, data)
            return prepared_response(True, "OK", "Coupon updated", data=serialize_doc(coupon))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    def delete(self, coupon_id):
        try:
            CouponService.delete(coupon_id)
            return prepared_response(True, "OK", "Coupon deleted")
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Sale offers
# ---------------------------------------------------------------------------

@blp_admin.route("/offers")
class AdminOfferListResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self):
        return prepared_response(True, "OK", "Offers retrieved", data=OfferService.list_all())

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(OfferSchema, location="json")
    def post(self, data):
        log_tag = f"[admin_resource.py][AdminOfferListResource][post][{current_user_id()}]"
        try:
            offer = OfferService.create(data)
            return prepared_response(True, "CREATED", "Offer created", data=serialize_doc(offer))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_admin.route("/offers/<string:offer_id>")
class AdminOfferResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self, offer_id):
        try:
            detail = OfferService.get_detail(offer_id, public=False)
            return prepared_response(True, "OK", "Offer retrieved", data=serialize_doc(detail))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(OfferUpdateSchema, location="json")
    def put(self, data, offer_id):
        try:
            offer = OfferService.update(offer_id, data)
            return prepared_response(True, "OK", "Offer updated", data=serialize_doc(offer))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    def delete(self, offer_id):
        try:
            OfferService.delete(offer_id)
            return prepared_response(True, "OK", "Offer deleted")
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Serviceable pincodes
# ---------------------------------------------------------------------------

@blp_admin.route("/pincodes")
class AdminPincodeListResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self):
        return prepared_response(True, "OK", "Pincodes retrieved", data=serialize_doc(AddressService.list_pincodes()))

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(PincodeSchema, location="json")
    def post(self, data):
        try:
            pincode = AddressService.create_pincode(data)
            return prepared_response(True, "CREATED", "Pincode added", data=serialize_doc(pincode))
        except AppError as e:
            return error_response(e)


@blp_admin.route("/pincodes/<string:pincode_id>")
class AdminPincodeResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(PincodeUpdateSchema, location="json")
    def put(self, data, pincode_id):
        try:
            pincode = AddressService.update_pincode(pincode_id, data)
            return prepared_response(True, "OK", "Pincode updated", data=serialize_doc(pincode))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    def delete(self, pincode_id):
        try:
            AddressService.delete_pincode(pincode_id)
            return prepared_response(True, "OK", "Pincode deleted")
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@blp_admin.route("/settings")
class AdminSettingsResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    def get(self):
        return prepared_response(True, "OK", "Settings retrieved", data=SettingsService.get_all())

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(SettingsUpdateSchema, location="json")
    def put(self, data):
        try:
            settings = SettingsService.update(data, updated_by=current_user_id())
            return prepared_response(True, "OK", "Settings updated", data=settings)
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Reviews moderation
# ---------------------------------------------------------------------------

@blp_admin.route("/reviews")
class AdminReviewListResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(ReviewQuerySchema, location="query")
    def get(self, args):
        result = ReviewService.list_all(
            page=args.get("page"), page_size=args.get("page_size"), is_approved=args.get("is_approved")
        )
        return prepared_response(True, "OK", "Reviews retrieved", data=result)


@blp_admin.route("/reviews/<string:review_id>")
class AdminReviewResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(ReviewApprovalSchema, location="json")
    def put(self, data, review_id):
        try:
            review = ReviewService.set_approval(review_id, data["is_approved"])
            return prepared_response(True, "OK", "Review updated", data=serialize_doc(review))
        except AppError as e:
            return error_response(e)

    @token_required
    @role_required(ROLES["ADMIN"])
    def delete(self, review_id):
        try:
            ReviewService.delete(review_id)
            return prepared_response(True, "OK", "Review deleted")
        except AppError as e:
            return error_response(e)


# ---------------------------------------------------------------------------
# Broadcast
# ---------------------------------------------------------------------------

@blp_admin.route("/notifications/broadcast")
class AdminBroadcastResource(MethodView):

    @token_required
    @role_required(ROLES["ADMIN"])
    @blp_admin.arguments(BroadcastSchema, location="json")
    def post(self, data):
        log_tag = f"[admin_resource.py][AdminBroadcastResource][post][{data['role']}]"
        try:
            count = NotificationService.notify_role(data["role"], data["type"], data["title"], data["message"])
            return prepared_response(True, "OK", "Notification sent", data={"recipients": count})
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")
