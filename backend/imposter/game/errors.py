from __future__ import annotations


class GameError(Exception):
    """A rejected client action. Nothing has been mutated when this is raised."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_payload(self) -> dict:
        return {"error": self.code, "message": self.message}


class RoomNotFound(GameError):
    def __init__(self, code: str = "") -> None:
        super().__init__("room_not_found", "Room not found")
        self.room_code = code
