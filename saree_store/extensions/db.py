import os
from dotenv import load_dotenv
from pymongo import MongoClient, ASCENDING, DESCENDING
from redis import Redis
from rq import Queue

load_dotenv()

class MongoDB:
    def __init__(self):
        self.client = None
        self.db = None

    def init_app(self, app):
        uri = app.config.get("MONGO_URI") or os.getenv("MONGO_URI", "mongodb://localhost:27017")
        db_name = app.config.get("DB_NAME") or os.getenv("DB_NAME", "saree_store")

        self.client = MongoClient(uri)
        self.db = self.client[db_name]
        app.mongo = self.db

        self.create_indexes()

    def create_indexes(self):
        # -------------------------------------------------
        # accounts
        # -------------------------------------------------
        self.db.users.create_index([("email", ASCENDING)], unique=True)
        self.db.users.create_index([("role", ASCENDING), ("is_active", ASCENDING)])
        self.db.refresh_tokens.create_index([("token_hash", ASCENDING)], unique=True)
        self.db.refresh_tokens.create_index([("user_id", ASCENDING)])

        # -------------------------------------------------
        # catalog
        # -------------------------------------------------
        self.db.categories.create_index([("name", ASCENDING)], unique=True)
        self.db.colors.create_index([("name", ASCENDING)], unique=True)
        self.db.fabrics.create_index([("name", ASCENDING)], unique=True)
        self.db.sarees.create_index([("category_id", ASCENDING)])
        self.db.sarees.create_index([("is_active", ASCENDING), ("distribution_channel", ASCENDING)])

        # -------------------------------------------------
        # stock
        # -------------------------------------------------
        self.db.store_inventory.create_index(
            [("store_id", ASCENDING), ("saree_id", ASCENDING)], unique=True
        )
        self.db.stock_movements.create_index([("saree_id", ASCENDING), ("created_at", DESCENDING)])
        self.db.stock_movements.create_index([("movement_type", ASCENDING), ("source", ASCENDING)])
        self.db.stock_movements.create_index([("order_ref_id", ASCENDING)])
        self.db.stock_requests.create_index([("store_id", ASCENDING), ("status", ASCENDING)])

        # -------------------------------------------------
        # shopping
        # -------------------------------------------------
        self.db.cart.create_index([("user_id", ASCENDING), ("saree_id", ASCENDING)], unique=True)
        self.db.wishlist.create_index([("user_id", ASCENDING), ("saree_id", ASCENDING)], unique=True)
        self.db.serviceable_pincodes.create_index([("pincode", ASCENDING)], unique=True)

        # -------------------------------------------------
        # orders, sales, returns
        # -------------------------------------------------
        self.db.orders.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        self.db.orders.create_index([("status", ASCENDING)])
        self.db.store_sales.create_index([("store_id", ASCENDING), ("created_at", DESCENDING)])
        self.db.return_requests.create_index([("order_id", ASCENDING), ("status", ASCENDING)])
        self.db.refunds.create_index([("return_request_id", ASCENDING)])

        # -------------------------------------------------
        # engagement
        # -------------------------------------------------
        self.db.coupons.create_index([("code", ASCENDING)], unique=True)
        self.db.coupon_usage.create_index([("coupon_id", ASCENDING), ("user_id", ASCENDING)])
        self.db.reviews.create_index([("user_id", ASCENDING), ("saree_id", ASCENDING)], unique=True)
        self.db.notifications.create_index([("user_id", ASCENDING), ("is_read", ASCENDING)])
        self.db.low_stock_alerts.create_index([("saree_id", ASCENDING)], unique=True)
        self.db.app_settings.create_index([("key", ASCENDING)], unique=True)

    def get_collection(self, name):
        if self.db is None:
            raise RuntimeError("MongoDB not initialized")
        return self.db[name]

class RedisConnection:
    def __init__(self):
        self.connection = None
        self.queue = None

    def init_app(self, app):
        host = app.config.get("REDIS_HOST", "localhost")
        port = int(app.config.get("REDIS_PORT", 6379))
        self.connection = Redis(host=host, port=port)
        self.queue = Queue(app.config.get("NOTIFICATION_QUEUE", "notifications"), connection=self.connection)
        app.queue = self.queue

# Export the instances
db = MongoDB()
redis_connection = RedisConnection()
