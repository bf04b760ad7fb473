import os
import hashlib
import hmac
import secrets

from flask import current_app, has_app_context


def _hash_key():
    key_passphrase = current_app.config.get("SECRET_KEY") if has_app_context() else None
    key_passphrase = key_passphrase or os.getenv("SECRET_KEY")
    if not key_passphrase:
        raise ValueError("SECRET_KEY is not set in the environment!")
    return key_passphrase.encode()


def hash_data(data):
    """Creates an HMAC-SHA256 hash for searching."""
    return hmac.new(_hash_key(), data.encode(), hashlib.sha256).hexdigest()


def generate_refresh_secret(nbytes=48):
    return secrets.token_urlsafe(nbytes)
