class RelayError(Exception):
    """Base error reported back to the originating connection as an `error` event."""

    default_message = "Invalid message"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedMessage(RelayError):
    default_message = "Invalid message"


class InvalidField(RelayError):
    default_message = "Invalid message"


class RoomNotFound(RelayError):
    default_message = "Room not found"

    def __init__(self, room_id: str = None):
        self.room_id = room_id
        super().__init__()


class UnknownMessageType(RelayError):
    default_message = "Unknown message type"

    def __init__(self, message_type=None):
        self.message_type = message_type
        super().__init__()
