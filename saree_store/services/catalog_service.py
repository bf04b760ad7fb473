# services/catalog_service.py
from pymongo.errors import DuplicateKeyError

from ..models.catalog import Category, Color, Fabric, Store
from ..models.saree import Saree, StoreInventory
from ..models.promotion import Coupon, SaleOffer
from ..models.user import User
from ..utils.errors import ConflictError, NotFoundError
from ..utils.helpers import to_object_id
from ..utils.logger import Log


class CatalogService:
    """CRUD for the catalog masters: categories, colors, fabrics and stores."""

    MODELS = {
        "category": Category,
        "color": Color,
        "fabric": Fabric,
        "store": Store,
    }

    @staticmethod
    def _model(kind):
        return CatalogService.MODELS[kind]

    @staticmethod
    def list(kind, active_only=False):
        model = CatalogService._model(kind)
        query = {"is_active": True} if active_only and kind == "store" else {}
        return [model.serialize(doc) for doc in model.find(query, sort=[("name", 1)])]

    @staticmethod
    def get(kind, record_id):
        doc = CatalogService._model(kind).get_by_id(record_id)
        if not doc:
            raise NotFoundError(f"{kind.capitalize()} not found")
        return doc

    @staticmethod
    def create(kind, data):
        log_tag = f"[catalog_service.py][CatalogService][create][{kind}]"
        model = CatalogService._model(kind)
        try:
            record_id = model(**data).save()
        except DuplicateKeyError:
            Log.error(f"{log_tag} duplicate name {data.get('name')!r}")
            raise ConflictError(f"{kind.capitalize()} '{data.get('name')}' already exists")
        Log.info(f"{log_tag} created {record_id}")
        return model.get_by_id(record_id)

    @staticmethod
    def update(kind, record_id, data):
        model = CatalogService._model(kind)
        CatalogService.get(kind, record_id)
        if "name" in data:
            data["name"] = data["name"].strip()
        try:
            model.update(record_id, **data)
        except DuplicateKeyError:
            raise ConflictError(f"{kind.capitalize()} '{data.get('name')}' already exists")
        return model.get_by_id(record_id)

    @staticmethod
    def _references(kind, oid):
        if kind == "category":
            return (
                Saree.collection().count_documents({"category_id": oid})
                + Coupon.collection().count_documents({"category_id": oid})
                + SaleOffer.collection().count_documents({"category_id": oid})
            )
        if kind == "color":
            return Saree.collection().count_documents({"color_id": oid})
        if kind == "fabric":
            return Saree.collection().count_documents({"fabric_id": oid})
        return (
            StoreInventory.collection().count_documents({"store_id": oid, "quantity": {"$gt": 0}})
            + User.collection().count_documents({"store_id": oid})
        )

    @staticmethod
    def delete(kind, record_id):
        log_tag = f"[catalog_service.py][CatalogService][delete][{kind}][{record_id}]"
        oid = to_object_id(record_id)
        CatalogService.get(kind, oid)

        if CatalogService._references(kind, oid):
            Log.error(f"{log_tag} still referenced")
            raise ConflictError(f"{kind.capitalize()} is still in use and cannot be deleted")

        CatalogService._model(kind).delete(oid)
        if kind == "store":
            StoreInventory.collection().delete_many({"store_id": oid})
        Log.info(f"{log_tag} deleted")
        return True
