# services/auth_service.py
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from flask import current_app
from pymongo.errors import DuplicateKeyError

from ..constants.service_code import ROLES, STAFF_ROLES, AUTHENTICATION_MESSAGES
from ..models.catalog import Store
from ..models.user import User, RefreshToken
from ..utils.crypt import hash_data, generate_refresh_secret
from ..utils.errors import AppError, AuthenticationError, ConflictError, NotFoundError
from ..utils.helpers import to_object_id, validate_and_format_phone_number
from ..utils.logger import Log
from ..utils.pagination import paginate


def hash_password(password):
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(user_doc, plain_password):
    """Compare a plaintext password with the stored bcrypt hash."""
    stored_hash = (user_doc or {}).get("password")
    if not stored_hash or not isinstance(plain_password, str):
        return False
    if isinstance(stored_hash, str):
        stored_hash = stored_hash.encode("utf-8")
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), stored_hash)
    except ValueError:
        return False


class AuthService:

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    @staticmethod
    def generate_access_token(user):
        now = datetime.now(timezone.utc)
        ttl = current_app.config.get("ACCESS_TOKEN_TTL_MINUTES", 15)
        payload = {
            "user_id": str(user["_id"]),
            "role": user.get("role"),
            "token_version": user.get("token_version", 0),
            "iat": now,
            "exp": now + timedelta(minutes=ttl),
            "type": "access",
        }
        return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm="HS256")

    @staticmethod
    def decode_access_token(token):
        return jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=["HS256"])

    @staticmethod
    def issue_tokens(user):
        refresh_secret = generate_refresh_secret()
        RefreshToken(
            user_id=user["_id"],
            token_hash=hash_data(refresh_secret),
            ttl_days=current_app.config.get("REFRESH_TOKEN_TTL_DAYS", 7),
        ).save()
        return {
            "access_token": AuthService.generate_access_token(user),
            "refresh_token": refresh_secret,
            "token_type": "Bearer",
            "expires_in": current_app.config.get("ACCESS_TOKEN_TTL_MINUTES", 15) * 60,
        }

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    @staticmethod
    def _create_user(email, password, name, phone=None, role=ROLES["USER"], store_id=None):
        if phone:
            formatted = validate_and_format_phone_number(phone)
            if not formatted:
                raise AppError("Invalid phone number")
            phone = formatted
        user = User(
            email=email, password=hash_password(password), name=name, phone=phone, role=role, store_id=store_id,
        )
        try:
            user_id = user.save()
        except DuplicateKeyError:
            raise ConflictError("An account with this email already exists")
        return User.get_by_id(user_id)

    @staticmethod
    def register(email, password, name, phone=None):
        log_tag = f"[auth_service.py][AuthService][register][{email}]"
        if User.get_by_email(email):
            raise ConflictError("An account with this email already exists")
        user = AuthService._create_user(email, password, name, phone=phone)
        Log.info(f"{log_tag} user {user['_id']} registered")
        return User.public(user)

    @staticmethod
    def login(email, password):
        log_tag = f"[auth_service.py][AuthService][login][{email}]"
        user = User.get_by_email(email)
        if not user or not verify_password(user, password):
            Log.info(f"{log_tag} invalid credentials")
            raise AuthenticationError("Invalid email or password")
        if not user.get("is_active"):
            Log.info(f"{log_tag} inactive account")
            raise AuthenticationError(AUTHENTICATION_MESSAGES["ACCOUNT_DISABLED"])

        tokens = AuthService.issue_tokens(user)
        Log.info(f"{log_tag} login successful")
        return dict(tokens, user=User.public(user))

    @staticmethod
    def refresh(refresh_token):
        """Rotate: the presented refresh token is consumed and a new pair issued."""
        token_hash = hash_data(refresh_token or "")
        stored = RefreshToken.get_valid(token_hash)
        if not stored:
            raise AuthenticationError(AUTHENTICATION_MESSAGES["INVALID_TOKEN"])

        # only one concurrent refresh wins the delete
        if RefreshToken.collection().delete_one({"_id": stored["_id"]}).deleted_count == 0:
            raise AuthenticationError(AUTHENTICATION_MESSAGES["TOKEN_REVOKED"])

        user = User.get_by_id(stored["user_id"])
        if not user or not user.get("is_active"):
            raise AuthenticationError(AUTHENTICATION_MESSAGES["ACCOUNT_DISABLED"])
        return dict(AuthService.issue_tokens(user), user=User.public(user))

    @staticmethod
    def logout(refresh_token):
        RefreshToken.collection().delete_one({"token_hash": hash_data(refresh_token or "")})
        return True

    @staticmethod
    def logout_all(user_id):
        User.bump_token_version(user_id)
        removed = RefreshToken.delete_for_user(user_id)
        Log.info(f"[auth_service.py][AuthService][logout_all][{user_id}] {removed} refresh token(s) revoked")
        return removed

    @staticmethod
    def change_password(user_id, current_password, new_password):
        user = User.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(user, current_password):
            raise AuthenticationError("Current password is incorrect")
        if current_password == new_password:
            raise AppError("New password must be different from the current one")

        User.update(user["_id"], password=hash_password(new_password))
        AuthService.logout_all(user["_id"])
        return True

    @staticmethod
    def me(user_id):
        user = User.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return User.public(user)

    # ------------------------------------------------------------------
    # Staff administration
    # ------------------------------------------------------------------

    @staticmethod
    def create_staff(email, password, name, role, phone=None, store_id=None):
        log_tag = f"[auth_service.py][AuthService][create_staff][{email}][{role}]"
        if role not in STAFF_ROLES:
            raise AppError(f"Staff role must be one of: {', '.join(STAFF_ROLES)}")
        if role == ROLES["STORE"]:
            if not store_id:
                raise AppError("Store staff need a store_id")
            if not Store.get_by_id(store_id):
                raise NotFoundError("Store not found")
        else:
            store_id = None

        user = AuthService._create_user(email, password, name, phone=phone, role=role, store_id=store_id)
        Log.info(f"{log_tag} staff {user['_id']} created")
        return User.public(user)

    @staticmethod
    def create_admin(email, password, name):
        return User.public(AuthService._create_user(email, password, name, role=ROLES["ADMIN"]))

    @staticmethod
    def list_users(role=None, page=None, page_size=None):
        query = {"role": role} if role else {}
        return paginate(
            User.collection(), query,
            page=page, page_size=page_size, sort=[("created_at", -1)], transform=User.public,
        )

    @staticmethod
    def set_active(user_id, is_active):
        user = User.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        User.update(user["_id"], is_active=bool(is_active))
        if not is_active:
            AuthService.logout_all(user["_id"])
        Log.info(f"[auth_service.py][AuthService][set_active][{user_id}] is_active={bool(is_active)}")
        return User.public(User.get_by_id(user["_id"]))

    @staticmethod
    def toggle_active(user_id):
        user = User.get_by_id(to_object_id(user_id))
        if not user:
            raise NotFoundError("User not found")
        return AuthService.set_active(user["_id"], not user.get("is_active"))
