import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set, Tuple

from broadcaster import Broadcaster
from errors import RoomNotFound
from logging_config import get_logger
from room_codes import canonicalize, generate_room_code

logger = get_logger(__name__)


@dataclass
class Room:
    room_id: str
    created_at: datetime
    last_activity_at: datetime
    members: Set = field(default_factory=set)

    @property
    def user_count(self) -> int:
        return len(self.members)

    def idle_seconds(self, now: datetime) -> float:
        return (now - self.last_activity_at).total_seconds()


class RoomRegistry:
    """In-memory room store shared by every connection handler.

    All operations take one registry-wide lock. Outbound events are only
    enqueued on the recipients' connections while it is held, which gives
    each room a total order of events without waiting on any socket.
    """

    def __init__(self, broadcaster: Broadcaster = None, clock: Callable[[], datetime] = datetime.now,
                 code_generator: Callable[[], str] = generate_room_code):
        self.broadcaster = broadcaster or Broadcaster()
        self._rooms: Dict[str, Room] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._generate_code = code_generator
        logger.info("Initializing in-memory RoomRegistry")

    async def create_room(self, requested_id: Optional[str], connection) -> Tuple[str, int]:
        async with self._lock:
            if requested_id:
                room_id = canonicalize(requested_id)
            else:
                room_id = self._fresh_room_id()

            now = self._clock()
            room = self._rooms.get(room_id)
            if room is None:
                room = Room(room_id=room_id, created_at=now, last_activity_at=now)
                self._rooms[room_id] = room
            else:
                # Re-creating a tracked code resets its timestamps
                room.created_at = now
                room.last_activity_at = now

            self._bind(room, connection)
            user_count = room.user_count
            self.broadcaster.send_room_created(connection, room_id, user_count)
            logger.info(f"Room created: {room_id}, Clients: {user_count}")
            return room_id, user_count

    async def reserve_room(self) -> str:
        """Create an empty room under a fresh code for a client to join later."""
        async with self._lock:
            room_id = self._fresh_room_id()
            now = self._clock()
            self._rooms[room_id] = Room(room_id=room_id, created_at=now, last_activity_at=now)
            logger.info(f"Room reserved: {room_id}")
            return room_id

    async def join_room(self, room_id: str, connection) -> int:
        async with self._lock:
            room_id = canonicalize(room_id)
            room = self._rooms.get(room_id)
            if room is None:
                logger.info(f"Room not found: {room_id}")
                raise RoomNotFound(room_id)

            self._bind(room, connection)
            room.last_activity_at = self._clock()
            user_count = room.user_count

            self.broadcaster.send_joined(connection, room_id)
            self.broadcaster.broadcast_user_count(room.members, user_count)
            logger.info(f"Client joined room: {room_id}, Clients: {user_count}")
            return user_count

    async def leave(self, connection):
        async with self._lock:
            self._unbind(connection)

    async def touch_activity(self, room_id: str):
        async with self._lock:
            room = self._rooms.get(canonicalize(room_id))
            if room is not None:
                room.last_activity_at = self._clock()

    async def broadcast_chat(self, room_id: str, content: str, sender: str, origin) -> int:
        async with self._lock:
            room_id = canonicalize(room_id)
            room = self._rooms.get(room_id)
            if room is None:
                raise RoomNotFound(room_id)

            delivered = self.broadcaster.broadcast_chat(room.members, content, sender, origin)
            room.last_activity_at = self._clock()
            logger.debug(f"Message in room {room_id} from {sender} delivered to {delivered} clients")
            return delivered

    async def sweep_expired(self, max_idle_seconds: float, now: datetime = None) -> List[str]:
        """Delete empty rooms idle for longer than `max_idle_seconds`."""
        async with self._lock:
            now = now or self._clock()
            expired = [
                room_id for room_id, room in self._rooms.items()
                if not room.members and room.idle_seconds(now) > max_idle_seconds
            ]
            for room_id in expired:
                del self._rooms[room_id]
                logger.info(f"Cleaned up expired room: {room_id}")
            return expired

    async def get_room_info(self, room_id: str) -> Optional[dict]:
        async with self._lock:
            room = self._rooms.get(canonicalize(room_id))
            if room is None:
                return None
            return {
                "room_id": room.room_id,
                "user_count": room.user_count,
                "created_at": room.created_at.isoformat(),
                "last_activity_at": room.last_activity_at.isoformat(),
                "is_empty": not room.members,
            }

    async def room_count(self) -> int:
        async with self._lock:
            return len(self._rooms)

    def _fresh_room_id(self) -> str:
        room_id = self._generate_code()
        while room_id in self._rooms:
            room_id = self._generate_code()
        return room_id

    def _bind(self, room: Room, connection):
        if connection.room_id is not None and connection.room_id != room.room_id:
            # A connection belongs to one room at a time
            self._unbind(connection)
        room.members.add(connection)
        connection.room_id = room.room_id

    def _unbind(self, connection):
        room_id = connection.room_id
        connection.room_id = None
        if room_id is None:
            return
        room = self._rooms.get(room_id)
        if room is None or connection not in room.members:
            return

        room.members.discard(connection)
        remaining = room.user_count
        logger.info(f"Client left room: {room_id}, Remaining clients: {remaining}")
        if remaining > 0:
            self.broadcaster.broadcast_user_count(room.members, remaining)
        else:
            logger.info(f"Room {room_id} is now empty but keeping it for potential rejoins")
