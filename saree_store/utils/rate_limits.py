# saree_store/utils/rate_limits.py
import os

from flask import g, has_request_context, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .logger import Log


def _client_ip():
    return (get_remote_address() if has_request_context() else None) or "unknown"


def _actor():
    user = getattr(g, "current_user", None) or {}
    return user.get("_id"), user.get("store_id")


def _on_breach(request_limit):
    user_id, store_id = _actor()
    try:
        limit = f"{request_limit.limit.amount} per {request_limit.limit.get_expiry()}s"
    except AttributeError:
        limit = str(getattr(request_limit, "limit", "unknown"))
    Log.warning(
        f"[rate_limits.py][_on_breach][{_client_ip()}] user={user_id or 'anonymous'} store={store_id} "
        f"limit={limit} {request.method} {request.path}"
    )


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
    on_breach=_on_breach,
)


# ---------- key functions ----------

def ip_key():
    return _client_ip()


def email_key():
    """Per-account key for unauthenticated auth calls, IP when no email was sent."""
    payload = request.get_json(silent=True) or request.form or {}
    email = str(payload.get("email") or "").strip().lower()
    return f"email:{email[:100]}" if email else _client_ip()


def actor_key():
    """Per user; store terminals are keyed by store so clerks share a budget."""
    user_id, store_id = _actor()
    if store_id:
        return f"store:{store_id}"
    if user_id:
        return f"user:{user_id}"
    return _client_ip()


def _post_limit(limit_str, scope, key_func, message):
    return limiter.shared_limit(
        limit_str, scope=scope, key_func=key_func, methods=["POST"], error_message=message,
    )


# ---------- decorators ----------

def login_ip_limiter(entity_name="login", limit_str="5 per minute; 30 per hour; 100 per day"):
    return _post_limit(
        limit_str, f"{entity_name}-ip", ip_key,
        f"Too many {entity_name} attempts from this IP. Please try again later.",
    )


def login_user_limiter(entity_name="login", limit_str="3 per 5 minutes; 10 per hour; 20 per day"):
    return _post_limit(
        limit_str, f"{entity_name}-email", email_key,
        f"Too many {entity_name} attempts for this account. Please try again later.",
    )


def register_rate_limiter(entity_name="registration", limit_str="2 per minute; 5 per hour; 20 per day"):
    return _post_limit(
        limit_str, f"{entity_name}-ip", ip_key, f"Too many {entity_name} attempts. Please try again later.",
    )


def checkout_limiter(entity_name="checkout", limit_str="10 per minute; 60 per hour"):
    """Order placement and counter sales."""
    return _post_limit(
        limit_str, f"{entity_name}-actor", actor_key, f"Too many {entity_name} attempts. Please slow down.",
    )
