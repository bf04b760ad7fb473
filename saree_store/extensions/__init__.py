# saree_store/extensions/__init__.py
from flask_cors import CORS

from ..utils.rate_limits import limiter
from .db import db, redis_connection

cors = CORS()


def init_extensions(app):
    """Bind the shared extension objects; both apps reuse the same instances."""
    db.init_app(app)
    redis_connection.init_app(app)
    cors.init_app(app, origins=app.config["ALLOWED_ORIGINS"])
    limiter.init_app(app)


__all__ = ["cors", "db", "init_extensions", "limiter", "redis_connection"]
