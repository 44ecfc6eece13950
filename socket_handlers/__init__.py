# Socket handlers package for the buzzer server
# Session gateway: connection correlation, event dispatch and fan-out

# Export the main setup function
from .setup import setup_socket_handlers

# Import all handler modules
from .connection_handlers import ConnectionHandlers
from .room_handlers import RoomHandlers
from .game_handlers import GameHandlers
from .game_state import SessionGateway
from .broadcast import Broadcaster
from .connections import ConnectionState


__all__ = [
    'setup_socket_handlers',
    'ConnectionHandlers',
    'RoomHandlers',
    'GameHandlers',
    'SessionGateway',
    'Broadcaster',
    'ConnectionState',
]
