# saree_store/resources/notification_resource.py

from flask.views import MethodView
from flask_smorest import Blueprint

from ..schemas.engagement_schema import NotificationQuerySchema
from ..security.auth import token_required, current_user_id
from ..services.notification_service import NotificationService
from ..utils.errors import AppError
from ..utils.json_response import prepared_response, error_response


blp_notifications = Blueprint("Notifications", __name__, url_prefix="/notifications", description="In-app notifications")


@blp_notifications.route("")
class NotificationListResource(MethodView):

    @token_required
    @blp_notifications.arguments(NotificationQuerySchema, location="query")
    def get(self, args):
        result = NotificationService.list_for_user(
            current_user_id(), page=args.get("page"), page_size=args.get("page_size"),
            unread_only=args.get("unread_only"),
        )
        return prepared_response(True, "OK", "Notifications retrieved", data=result)


@blp_notifications.route("/unread-count")
class UnreadCountResource(MethodView):

    @token_required
    def get(self):
        count = NotificationService.unread_count(current_user_id())
        return prepared_response(True, "OK", "Unread count retrieved", data={"unread": count})


@blp_notifications.route("/read-all")
class ReadAllResource(MethodView):

    @token_required
    def post(self):
        updated = NotificationService.mark_all_read(current_user_id())
        return prepared_response(True, "OK", "All notifications marked as read", data={"updated": updated})


@blp_notifications.route("/<string:notification_id>/read")
class NotificationReadResource(MethodView):

    @token_required
    def post(self, notification_id):
        try:
            NotificationService.mark_read(current_user_id(), notification_id)
            return prepared_response(True, "OK", "Notification marked as read")
        except AppError as e:
            return error_response(e)


@blp_notifications.route("/<string:notification_id>")
class NotificationResource(MethodView):

    @token_required
    def delete(self, notification_id):
        try:
            NotificationService.delete(current_user_id(), notification_id)
            return prepared_response(True, "OK", "Notification deleted")
        except AppError as e:
            return error_response(e)
