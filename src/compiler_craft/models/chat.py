"""Data models for the follow-up chat."""

from dataclasses import dataclass
from enum import StrEnum


class ChatRole(StrEnum):
    """Author of a chat turn."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ChatMessage:
    """One turn of the follow-up conversation."""

    role: ChatRole
    content: str

    def to_dict(self) -> dict[str, str]:
        """Wire representation."""
        return {"role": self.role.value, "content": self.content}
