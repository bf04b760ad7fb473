# saree_store/models/base_model.py

from ..extensions.db import db
from ..utils.helpers import utcnow, to_object_id, serialize_doc


class BaseModel:
    """
    A base class for models providing common CRUD operations.
    """
    collection_name = None

    def __init__(self, **kwargs):
        self.created_at = utcnow()
        self.updated_at = self.created_at

        # Initialize model attributes based on kwargs
        for key, value in kwargs.items():
            setattr(self, key, value)

    def to_dict(self):
        """
        Convert the model object to a dictionary representation.
        """
        return {key: getattr(self, key) for key in self.__dict__}

    @classmethod
    def collection(cls):
        return db.get_collection(cls.collection_name)

    def save(self):
        result = self.collection().insert_one(self.to_dict())
        self._id = result.inserted_id
        return str(result.inserted_id)

    @classmethod
    def get_by_id(cls, record_id, **filters):
        query = {"_id": to_object_id(record_id)}
        query.update(filters)
        return cls.collection().find_one(query)

    @classmethod
    def find_one(cls, query):
        return cls.collection().find_one(query)

    @classmethod
    def find(cls, query=None, sort=None, limit=0):
        cursor = cls.collection().find(query or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    @classmethod
    def update(cls, record_id, **updates):
        """
        Update a record by its ID. Returns True when a document matched.
        """
        updates["updated_at"] = utcnow()
        result = cls.collection().update_one({"_id": to_object_id(record_id)}, {"$set": updates})
        return result.matched_count > 0

    @classmethod
    def delete(cls, record_id):
        result = cls.collection().delete_one({"_id": to_object_id(record_id)})
        return result.deleted_count > 0

    @staticmethod
    def serialize(doc):
        return serialize_doc(doc) if doc else doc
