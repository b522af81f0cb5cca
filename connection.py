import asyncio
import json
import uuid
from typing import Optional

from pydantic import ValidationError

from constants import OUTBOUND_QUEUE_SIZE
from errors import InvalidField, MalformedMessage, RelayError, UnknownMessageType
from logging_config import get_logger
from schemas.messages import ChatMessage, CreateRoomMessage, JoinRoomMessage

logger = get_logger(__name__)


class Connection:
    """One client WebSocket as seen by the registry.

    `send` never waits on the socket: events go onto a bounded queue drained
    by a writer task, so a slow peer cannot hold up a broadcast.
    """

    def __init__(self, websocket, queue_size: int = OUTBOUND_QUEUE_SIZE):
        self.connection_id = str(uuid.uuid4())
        self.websocket = websocket
        self.room_id: Optional[str] = None
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self._writer_task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return not self._closed

    def start(self):
        self._writer_task = asyncio.create_task(self._writer())

    def send(self, event: dict) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(json.dumps(event))
        except asyncio.QueueFull:
            logger.warning(f"Outbound queue full for connection {self.connection_id}, dropping {event.get('type')}")
            return False
        return True

    async def close(self):
        self._closed = True
        if self._writer_task is None:
            return
        self._writer_task.cancel()
        try:
            await self._writer_task
        except asyncio.CancelledError:
            pass
        self._writer_task = None

    async def _writer(self):
        while True:
            payload = await self._queue.get()
            try:
                await self.websocket.send_text(payload)
            except Exception as e:
                logger.warning(f"Error sending to connection {self.connection_id}: {e}")
                self._closed = True
                return


def parse_message(data) -> dict:
    try:
        message = json.loads(data)
    except (ValueError, TypeError) as e:
        raise MalformedMessage() from e
    if not isinstance(message, dict):
        raise MalformedMessage()
    return message


async def _on_create_room(registry, connection: Connection, message: dict):
    request = CreateRoomMessage.model_validate(message)
    await registry.create_room(request.roomId, connection)


async def _on_join_room(registry, connection: Connection, message: dict):
    try:
        request = JoinRoomMessage.model_validate(message)
    except ValidationError as e:
        logger.info(f"Invalid roomId provided by connection {connection.connection_id}: {message.get('roomId')!r}")
        raise InvalidField("Invalid room code") from e
    await registry.join_room(request.roomId, connection)


async def _on_chat_message(registry, connection: Connection, message: dict):
    try:
        request = ChatMessage.model_validate(message)
    except ValidationError as e:
        raise InvalidField("Invalid chat message format") from e
    await registry.broadcast_chat(request.roomId, request.content, request.sender, connection)


MESSAGE_HANDLERS = {
    "create-room": _on_create_room,
    "join-room": _on_join_room,
    "chat-message": _on_chat_message,
}


async def handle_message(registry, connection: Connection, data):
    """Parse one inbound frame and apply it. Failures are answered with an `error` event."""
    try:
        message = parse_message(data)
        message_type = message.get("type")
        handler = MESSAGE_HANDLERS.get(message_type) if isinstance(message_type, str) else None
        if handler is None:
            raise UnknownMessageType(message_type)
        logger.debug(f"Received {message_type} from connection {connection.connection_id}")
        await handler(registry, connection, message)
    except RelayError as e:
        logger.info(f"Rejected message from connection {connection.connection_id}: {e.message}")
        registry.broadcaster.send_error(connection, e.message)
    except Exception as e:
        logger.error(f"Error processing message from connection {connection.connection_id}: {e}", exc_info=True)
        registry.broadcaster.send_error(connection, MalformedMessage.default_message)
