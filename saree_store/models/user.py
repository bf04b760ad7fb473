# models/user.py
from datetime import timedelta

from .base_model import BaseModel
from ..constants.service_code import ROLES
from ..utils.helpers import utcnow, optional_object_id, to_object_id


class User(BaseModel):
    collection_name = "users"

    PRIVATE_FIELDS = ("password",)

    def __init__(self, email, password, name, phone=None, role=ROLES["USER"], store_id=None,
                 is_active=True, **kwargs):
        super().__init__(**kwargs)
        self.email = email.strip().lower()
        self.password = password  # bcrypt hash
        self.name = name
        self.phone = phone
        self.role = role
        self.store_id = optional_object_id(store_id, "store_id")
        self.is_active = is_active
        self.token_version = 0

    @classmethod
    def get_by_email(cls, email):
        return cls.collection().find_one({"email": (email or "").strip().lower()})

    @classmethod
    def bump_token_version(cls, user_id):
        cls.collection().update_one(
            {"_id": to_object_id(user_id)},
            {"$inc": {"token_version": 1}, "$set": {"updated_at": utcnow()}},
        )

    @classmethod
    def public(cls, doc):
        if not doc:
            return doc
        doc = {k: v for k, v in doc.items() if k not in cls.PRIVATE_FIELDS}
        return cls.serialize(doc)


class RefreshToken(BaseModel):
    """Refresh tokens are stored hashed; the raw secret only leaves in the login response."""
    collection_name = "refresh_tokens"

    def __init__(self, user_id, token_hash, ttl_days, **kwargs):
        super().__init__(**kwargs)
        self.user_id = to_object_id(user_id, "user_id")
        self.token_hash = token_hash
        self.expires_at = self.created_at + timedelta(days=ttl_days)

    @classmethod
    def get_valid(cls, token_hash):
        return cls.collection().find_one({"token_hash": token_hash, "expires_at": {"$gt": utcnow()}})

    @classmethod
    def delete_for_user(cls, user_id):
        return cls.collection().delete_many({"user_id": to_object_id(user_id)}).deleted_count
