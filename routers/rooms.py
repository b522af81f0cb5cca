from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import CreateRoomResponse, RoomDetailsResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.post("/", status_code=201, response_model=CreateRoomResponse)
async def create_room(request: Request):
    # Response 201: { "room_id": "7HD92F", "ws_url": "ws://localhost:8080/ws" }
    # The room starts empty; clients send create-room or join-room with this code.
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room creation request from {client_host}")

    room_id = await request.app.state.registry.reserve_room()

    # Construct WebSocket URL using request's base URL
    base_url = str(request.base_url).rstrip('/')
    ws_base = base_url.replace("http://", "ws://").replace("https://", "wss://")
    ws_url = f"{ws_base}/ws"

    logger.info(f"Room {room_id} reserved for {client_host}")
    return CreateRoomResponse(room_id=room_id, ws_url=ws_url)


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get room details including online user count.

    Returns:
    - room_id: Canonical room code
    - user_count: Current number of connected members
    - created_at: Room creation timestamp
    - last_activity_at: Last join or chat message
    - is_empty: Whether the room currently has no members
    """
    logger.info(f"Room details request for {room_id}")

    room = await request.app.state.registry.get_room_info(room_id)
    if not room:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(**room)
