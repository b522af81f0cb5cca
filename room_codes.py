import random

from constants import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH


def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def canonicalize(room_id: str) -> str:
    return room_id.upper()
