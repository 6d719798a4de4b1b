from typing import Dict, List, Set

from fastapi import WebSocket


class ConnectionManager:
    """Open sockets per member and the rooms each socket is viewing."""

    def __init__(self) -> None:
        self.active_connections: Dict[str, List[WebSocket]] = {}
        # keyed by id(): starlette websockets are unhashable mappings
        self.open_rooms: Dict[int, Set[str]] = {}

    async def connect(self, member_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        if member_id not in self.active_connections:
            self.active_connections[member_id] = []
        self.active_connections[member_id].append(websocket)
        self.open_rooms[id(websocket)] = set()

    def disconnect(self, member_id: str, websocket: WebSocket) -> bool:
        """Returns True when this was the member's last open socket."""
        self.open_rooms.pop(id(websocket), None)
        if member_id in self.active_connections:
            try:
                self.active_connections[member_id].remove(websocket)
            except ValueError:
                pass
            if not self.active_connections[member_id]:
                del self.active_connections[member_id]
        return member_id not in self.active_connections

    def enter_room(self, websocket: WebSocket, chat_room_id: str) -> None:
        self.open_rooms.setdefault(id(websocket), set()).add(chat_room_id)

    def is_viewing(self, websocket: WebSocket, chat_room_id: str) -> bool:
        return chat_room_id in self.open_rooms.get(id(websocket), set())
