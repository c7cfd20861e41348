from __future__ import annotations

from flask import jsonify

from ..auth.http import current_identity, login_required
from .feed import FeedItem


def item_view(item: FeedItem) -> dict:
    return {
        "id": item.id,
        "type": item.type,
        "title": item.title,
        "message": item.message,
        "timestamp": item.created_at.isoformat(),
        "read": item.read,
        "actionUrl": item.action_url,
    }


def register(app, container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="notifications")
    @login_required
    def notifications():
        items = container.notification_feed.for_identity(current_identity())
        return jsonify(notifications=[item_view(i) for i in items], unreadCount=sum(1 for i in items if not i.read))
