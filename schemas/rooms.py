from pydantic import BaseModel


class CreateRoomResponse(BaseModel):
    room_id: str
    ws_url: str

class RoomDetailsResponse(BaseModel):
    room_id: str
    user_count: int
    created_at: str
    last_activity_at: str
    is_empty: bool

class HealthResponse(BaseModel):
    status: str
    rooms: int
