# services/notification_service.py
from datetime import timedelta

from flask import current_app, has_app_context
from pymongo.errors import DuplicateKeyError

from ..constants.service_code import ROLES
from ..extensions.db import db, redis_connection
from ..models.engagement import Notification
from ..models.user import User
from ..utils.errors import NotFoundError
from ..utils.helpers import utcnow, to_object_id
from ..utils.logger import Log
from ..utils.pagination import paginate


FAN_OUT_JOB = "saree_store.tasks.notification_jobs.fan_out_role_notification"


class NotificationService:

    @staticmethod
    def create(user_id, type, title, message, related_id=None, related_type=None):
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            related_type=related_type,
        )
        return notification.save()

    @staticmethod
    def fan_out_to_role(role, type, title, message, related_id=None, related_type=None):
        """Insert one notification per active user holding `role`. Returns the count."""
        recipients = User.collection().find({"role": role, "is_active": True}, {"_id": 1})
        docs = [
            Notification(
                user_id=user["_id"],
                type=type,
                title=title,
                message=message,
                related_id=related_id,
                related_type=related_type,
            ).to_dict()
            for user in recipients
        ]
        if docs:
            Notification.collection().insert_many(docs)
        return len(docs)

    @staticmethod
    def notify_role(role, type, title, message, related_id=None, related_type=None):
        """
        Fan a notification out to a role, on the rq queue when
        NOTIFICATIONS_ASYNC is set, otherwise inline.
        """
        log_tag = f"[notification_service.py][NotificationService][notify_role][{role}]"

        use_queue = has_app_context() and current_app.config.get("NOTIFICATIONS_ASYNC")
        if use_queue and redis_connection.queue is not None:
            job = redis_connection.queue.enqueue(
                FAN_OUT_JOB,
                role, type, title, message,
                str(related_id) if related_id else None,
                related_type,
            )
            Log.info(f"{log_tag} fan-out enqueued as job {job.id}")
            return 0

        count = NotificationService.fan_out_to_role(role, type, title, message, related_id, related_type)
        Log.info(f"{log_tag} notified {count} user(s)")
        return count

    @staticmethod
    def _claim_low_stock_slot(saree_id, window_hours):
        """
        Stamp low_stock_alerts.last_sent_at unless it is inside the window.
        Written before the alert is queued.
        """
        now = utcnow()
        markers = db.get_collection("low_stock_alerts")
        stale = markers.update_one(
            {"saree_id": saree_id, "last_sent_at": {"$lt": now - timedelta(hours=window_hours)}},
            {"$set": {"last_sent_at": now}},
        )
        if stale.modified_count:
            return True
        try:
            markers.insert_one({"saree_id": saree_id, "last_sent_at": now})
        except DuplicateKeyError:
            # a marker inside the window already exists
            return False
        return True

    @staticmethod
    def send_low_stock_alert(saree, threshold, window_hours=24):
        """
        Tell inventory staff a saree is running low. At most one alert per
        saree inside the window. Returns True when an alert went out.
        """
        log_tag = f"[notification_service.py][NotificationService][send_low_stock_alert][{saree['_id']}]"

        if not NotificationService._claim_low_stock_slot(saree["_id"], window_hours):
            Log.info(f"{log_tag} alert already sent within {window_hours}h")
            return False

        NotificationService.notify_role(
            ROLES["INVENTORY"],
            "stock",
            "Low stock alert",
            f"{saree.get('name')} has only {saree.get('total_stock', 0)} unit(s) left "
            f"(threshold {threshold}).",
            related_id=saree["_id"],
            related_type="saree",
        )
        return True

    @staticmethod
    def list_for_user(user_id, page=None, page_size=None, unread_only=False):
        query = {"user_id": to_object_id(user_id)}
        if unread_only:
            query["is_read"] = False
        return paginate(
            Notification.collection(),
            query,
            page=page,
            page_size=page_size,
            sort=[("created_at", -1)],
            transform=Notification.serialize,
        )

    @staticmethod
    def unread_count(user_id):
        return Notification.collection().count_documents({"user_id": to_object_id(user_id), "is_read": False})

    @staticmethod
    def mark_read(user_id, notification_id):
        result = Notification.collection().update_one(
            {"_id": to_object_id(notification_id, "notification_id"), "user_id": to_object_id(user_id)},
            {"$set": {"is_read": True, "read_at": utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Notification not found")
        return True

    @staticmethod
    def mark_all_read(user_id):
        result = Notification.collection().update_many(
            {"user_id": to_object_id(user_id), "is_read": False},
            {"$set": {"is_read": True, "read_at": utcnow()}},
        )
        return result.modified_count

    @staticmethod
    def delete(user_id, notification_id):
        result = Notification.collection().delete_one(
            {"_id": to_object_id(notification_id, "notification_id"), "user_id": to_object_id(user_id)}
        )
        if result.deleted_count == 0:
            raise NotFoundError("Notification not found")
        return True
