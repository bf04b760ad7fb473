# saree_store/resources/address_resource.py

from flask.views import MethodView
from flask_smorest import Blueprint

from ..schemas.shopping_schema import AddressSchema, AddressUpdateSchema
from ..security.auth import token_required, current_user_id
from ..services.address_service import AddressService
from ..utils.errors import AppError
from ..utils.helpers import serialize_doc
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log


blp_address = Blueprint("Addresses", __name__, url_prefix="/addresses", description="Saved delivery addresses")


@blp_address.route("")
class AddressListResource(MethodView):

    @token_required
    def get(self):
        addresses = AddressService.list(current_user_id())
        return prepared_response(True, "OK", "Addresses retrieved", data=serialize_doc(addresses))

    @token_required
    @blp_address.arguments(AddressSchema, location="json")
    def post(self, data):
        user_id = current_user_id()
        log_tag = f"[address_resource.py][AddressListResource][post][{user_id}]"
        try:
            address = AddressService.create(user_id, data)
            return prepared_response(True, "CREATED", "Address saved", data=serialize_doc(address))
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_address.route("/<string:address_id>")
class AddressResource(MethodView):

    @token_required
    def get(self, address_id):
        try:
            address = AddressService.get(current_user_id(), address_id)
            return prepared_response(True, "OK", "Address retrieved", data=serialize_doc(address))
        except AppError as e:
            return error_response(e)

    @token_required
    @blp_address.arguments(AddressUpdateSchema, location="json")
    def put(self, data, address_id):
        try:
            address = AddressService.update(current_user_id(), address_id, data)
            return prepared_response(True, "OK", "Address updated", data=serialize_doc(address))
        except AppError as e:
            return error_response(e)

    @token_required
    def delete(self, address_id):
        try:
            AddressService.delete(current_user_id(), address_id)
            return prepared_response(True, "OK", "Address deleted")
        except AppError as e:
            return error_response(e)


@blp_address.route("/<string:address_id>/default")
class AddressDefaultResource(MethodView):

    @token_required
    def post(self, address_id):
        try:
            address = AddressService.set_default(current_user_id(), address_id)
            return prepared_response(True, "OK", "Default address updated", data=serialize_doc(address))
        except AppError as e:
            return error_response(e)
