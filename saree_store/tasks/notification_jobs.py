# saree_store/tasks/notification_jobs.py
from flask import Flask

from ..config import load_config
from ..extensions.db import db
from ..utils.logger import Log
from ..services.notification_service import NotificationService


def _ensure_db():
    # rq workers import this module outside any Flask app
    if db.db is None:
        app = Flask(__name__)
        load_config(app)
        db.init_app(app)


def fan_out_role_notification(role, type, title, message, related_id=None, related_type=None):
    log_tag = f"[notification_jobs.py][fan_out_role_notification][{role}][{related_id}]"

    _ensure_db()
    count = NotificationService.fan_out_to_role(role, type, title, message, related_id, related_type)
    Log.info(f"{log_tag} delivered {count} notification(s)")
    return count
