from functools import wraps

import jwt
from bson import ObjectId
from bson.errors import InvalidId
from flask import g, request
from flask_smorest import abort

from ..constants.service_code import AUTHENTICATION_MESSAGES, ERROR_MESSAGES, ROLES
from ..models.user import User
from ..services.auth_service import AuthService
from ..utils.logger import Log


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            abort(401, message=AUTHENTICATION_MESSAGES["AUTHENTICATION_REQUIRED"])

        token = auth_header.split()[1]
        log_tag = "[auth.py][token_required]"

        try:
            data = AuthService.decode_access_token(token)
        except jwt.ExpiredSignatureError:
            abort(401, message=AUTHENTICATION_MESSAGES["TOKEN_EXPIRED"])
        except jwt.InvalidTokenError:
            abort(401, message=AUTHENTICATION_MESSAGES["INVALID_TOKEN"])

        if data.get("type") != "access":
            abort(401, message=AUTHENTICATION_MESSAGES["INVALID_TOKEN"])

        user_oid = _user_oid(data.get("user_id"))
        user = User.get_by_id(user_oid) if user_oid else None
        if user is None:
            Log.info(f"{log_tag} unknown user in token")
            abort(401, message=AUTHENTICATION_MESSAGES["INVALID_TOKEN"])
        if not user.get("is_active"):
            abort(401, message=AUTHENTICATION_MESSAGES["ACCOUNT_DISABLED"])
        if user.get("token_version", 0) != data.get("token_version"):
            abort(401, message=AUTHENTICATION_MESSAGES["TOKEN_REVOKED"])

        user.pop("password", None)
        g.current_user = user
        return f(*args, **kwargs)

    return decorated


def _user_oid(user_id):
    try:
        return ObjectId(str(user_id))
    except (InvalidId, TypeError):
        return None


def role_required(*roles):
    """Must sit below token_required so g.current_user is set."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = g.get("current_user")
            if not user:
                abort(401, message=AUTHENTICATION_MESSAGES["AUTHENTICATION_REQUIRED"])
            if user.get("role") not in roles:
                abort(403, message=ERROR_MESSAGES["UNAUTHORIZED_ACCESS"])
            if user.get("role") == ROLES["STORE"] and not user.get("store_id"):
                abort(403, message=ERROR_MESSAGES["NO_STORE_ASSIGNED"])
            return f(*args, **kwargs)
        return decorated
    return decorator


def current_user_id():
    user = g.get("current_user") or {}
    return str(user.get("_id")) if user.get("_id") else None
