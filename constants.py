import os
import string

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

# Empty rooms are reclaimed once idle longer than this
ROOM_EXPIRY_SECONDS = int(os.getenv("ROOM_EXPIRY_SECONDS", 600))
SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", 300))

OUTBOUND_QUEUE_SIZE = int(os.getenv("OUTBOUND_QUEUE_SIZE", 256))
