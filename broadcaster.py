from typing import Iterable

from logging_config import get_logger

logger = get_logger(__name__)


class Broadcaster:
    """Delivers relay events to member snapshots.

    Delivery is best-effort: `Connection.send` only enqueues, and a recipient
    that cannot take the event is logged and skipped so the remaining members
    still get it.
    """

    def broadcast_chat(self, members: Iterable, content: str, sender: str, origin) -> int:
        delivered = 0
        for member in list(members):
            event = {
                "type": "chat-message",
                "content": content,
                "sender": sender,
                "isOwnMessage": member is origin,
            }
            if self._deliver(member, event):
                delivered += 1
        return delivered

    def broadcast_user_count(self, members: Iterable, count: int) -> int:
        delivered = 0
        for member in list(members):
            if self._deliver(member, {"type": "user-count-update", "userCount": count}):
                delivered += 1
        return delivered

    def send_error(self, connection, reason: str) -> bool:
        logger.debug(f"Sending error to connection {connection.connection_id}: {reason}")
        return self._deliver(connection, {"type": "error", "message": reason})

    def _deliver(self, connection, event: dict) -> bool:
        try:
            sent = connection.send(event)
        except Exception as e:
            logger.warning(f"Error sending {event['type']} to connection {connection.connection_id}: {e}")
            return False
        if not sent:
            logger.debug(f"Skipped {event['type']} for closed connection {connection.connection_id}")
        return sent

    def send_room_created(self, connection, room_id: str, count: int) -> bool:
        return self._deliver(connection, {"type": "room-created", "roomId": room_id, "userCount": count})

    def send_joined(self, connection, room_id: str) -> bool:
        return self._deliver(connection, {"type": "joined-room", "roomId": room_id})
