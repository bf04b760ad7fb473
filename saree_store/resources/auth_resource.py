# saree_store/resources/auth_resource.py

from flask import request
from flask.views import MethodView
from flask_smorest import Blueprint

from ..schemas.auth_schema import RegisterSchema, LoginSchema, RefreshTokenSchema, ChangePasswordSchema
from ..security.auth import token_required, current_user_id
from ..services.auth_service import AuthService
from ..utils.errors import AppError
from ..utils.json_response import prepared_response, error_response
from ..utils.logger import Log
from ..utils.rate_limits import login_ip_limiter, login_user_limiter, register_rate_limiter


blp_auth = Blueprint("Auth", __name__, url_prefix="/auth", description="Customer authentication")


@blp_auth.route("/register")
class RegisterResource(MethodView):

    @register_rate_limiter("registration")
    @blp_auth.arguments(RegisterSchema, location="json")
    def post(self, data):
        client_ip = request.remote_addr
        log_tag = f"[auth_resource.py][RegisterResource][post][{client_ip}]"
        try:
            user = AuthService.register(**data)
            return prepared_response(True, "CREATED", "Account created successfully", data=user)
        except AppError as e:
            Log.info(f"{log_tag} registration rejected: {e.message}")
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_auth.route("/login")
class LoginResource(MethodView):

    @login_ip_limiter("login")
    @login_user_limiter("login")
    @blp_auth.arguments(LoginSchema, location="json")
    def post(self, data):
        client_ip = request.remote_addr
        log_tag = f"[auth_resource.py][LoginResource][post][{client_ip}]"
        try:
            result = AuthService.login(data["email"], data["password"])
            return prepared_response(True, "OK", "Login successful", data=result)
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_auth.route("/refresh")
class RefreshResource(MethodView):

    @blp_auth.arguments(RefreshTokenSchema, location="json")
    def post(self, data):
        log_tag = f"[auth_resource.py][RefreshResource][post][{request.remote_addr}]"
        try:
            result = AuthService.refresh(data["refresh_token"])
            return prepared_response(True, "OK", "Token refreshed", data=result)
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_auth.route("/logout")
class LogoutResource(MethodView):

    @blp_auth.arguments(RefreshTokenSchema, location="json")
    def post(self, data):
        AuthService.logout(data["refresh_token"])
        return prepared_response(True, "OK", "Logged out")


@blp_auth.route("/logout-all")
class LogoutAllResource(MethodView):

    @token_required
    def post(self):
        log_tag = f"[auth_resource.py][LogoutAllResource][post][{current_user_id()}]"
        try:
            removed = AuthService.logout_all(current_user_id())
            return prepared_response(True, "OK", "Logged out from all devices", data={"revoked": removed})
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")


@blp_auth.route("/me")
class MeResource(MethodView):

    @token_required
    def get(self):
        try:
            return prepared_response(True, "OK", "Profile retrieved", data=AuthService.me(current_user_id()))
        except AppError as e:
            return error_response(e)


@blp_auth.route("/change-password")
class ChangePasswordResource(MethodView):

    @token_required
    @blp_auth.arguments(ChangePasswordSchema, location="json")
    def post(self, data):
        user_id = current_user_id()
        log_tag = f"[auth_resource.py][ChangePasswordResource][post][{user_id}]"
        try:
            AuthService.change_password(user_id, data["current_password"], data["new_password"])
            Log.info(f"{log_tag} password changed, sessions revoked")
            return prepared_response(True, "OK", "Password changed. Please log in again.")
        except AppError as e:
            return error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} error: {e}")
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An unexpected error occurred")
