from pydantic import BaseModel, Field, StrictStr, field_validator
from typing import Optional


class CreateRoomMessage(BaseModel):
    roomId: Optional[str] = None

    @field_validator("roomId", mode="before")
    @classmethod
    def generate_unless_code_given(cls, value):
        # Anything but a non-empty string asks the server to pick a code
        if isinstance(value, str) and value:
            return value
        return None


class JoinRoomMessage(BaseModel):
    roomId: StrictStr = Field(min_length=1)


class ChatMessage(BaseModel):
    roomId: StrictStr
    content: StrictStr
    sender: StrictStr
