from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from routers.rooms import rooms_router
from schemas.rooms import HealthResponse
from backend import RoomRegistry
from connection import Connection, handle_message
from sweeper import ExpirySweeper
from constants import LOG_LEVEL, LOG_FILE, ROOM_EXPIRY_SECONDS, SWEEP_INTERVAL_SECONDS
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Rooms live only as long as the process; each app run gets a fresh registry
    app.state.registry = RoomRegistry()
    app.state.sweeper = ExpirySweeper(
        app.state.registry,
        interval_seconds=SWEEP_INTERVAL_SECONDS,
        max_idle_seconds=ROOM_EXPIRY_SECONDS,
    )
    app.state.sweeper.start()
    logger.info("Room relay started")
    yield
    await app.state.sweeper.stop()
    logger.info("Room relay shutting down")


app = FastAPI(lifespan=lifespan)

# Configure CORS to allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
)

app.include_router(rooms_router)

logger.info("FastAPI application initialized")


@app.get("/health", response_model=HealthResponse)
async def health_check():
    rooms = await app.state.registry.room_count()
    return HealthResponse(status="healthy", rooms=rooms)


@app.websocket("/")
@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Relay endpoint. Frames are JSON objects discriminated by `type`:
    create-room, join-room and chat-message.
    """
    registry = websocket.app.state.registry
    await websocket.accept()

    connection = Connection(websocket)
    connection.start()
    logger.info(f"New client connected: {connection.connection_id}")

    try:
        while True:
            event = await websocket.receive()
            if event.get("type") == "websocket.disconnect":
                logger.info(f"Client {connection.connection_id} disconnected, code: {event.get('code')}")
                break

            data = event.get("text")
            if data is None:
                data = event.get("bytes")
            if data is None:
                logger.debug(f"Received event without payload: {event}")
                continue

            await handle_message(registry, connection, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for connection {connection.connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection.connection_id}: {e}", exc_info=True)
    finally:
        # Room state is kept for rejoins; only membership is dropped here
        await registry.leave(connection)
        await connection.close()
