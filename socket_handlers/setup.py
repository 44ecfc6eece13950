# Setup module for registering all socket handlers
import functools

from flask import request

from game_logic.errors import BuzzerError
from .connection_handlers import ConnectionHandlers
from .room_handlers import RoomHandlers
from .game_handlers import GameHandlers
from .game_state import SessionGateway


def _dispatch(gateway, handler):
    """
    Wrap a handler so it runs under the dispatch lock.

    BuzzerErrors are reported to the requesting connection only and never
    broadcast.
    """
    @functools.wraps(handler)
    def wrapper(*args):
        with gateway.lock:
            try:
                return handler(*args)
            except BuzzerError as e:
                gateway.report_error(request.sid, e)
    return wrapper


def setup_socket_handlers(socketio, clock=None, registry=None, host_grace=None, player_grace=None):
    """
    Register all socket event handlers with the SocketIO instance.

    Parameters
    ----------
    socketio : SocketIO
        The Flask-SocketIO instance to register handlers with
    clock : Clock, optional
        Time source for timers, a ``FakeClock`` in tests
    registry : RoomRegistry, optional
        Room store to serve; a fresh one is created if omitted
    host_grace : float, optional
        Override for the host grace period in seconds
    player_grace : float, optional
        Override for the player grace period in seconds

    Returns
    -------
    SessionGateway
        The gateway the handlers were bound to
    """
    gateway = SessionGateway(socketio, clock=clock, registry=registry,
                             host_grace=host_grace, player_grace=player_grace)

    # Initialize handler classes
    connection_handlers = ConnectionHandlers(gateway)
    room_handlers = RoomHandlers(gateway)
    game_handlers = GameHandlers(gateway)

    # Register connection handlers
    socketio.on_event('connect', _dispatch(gateway, connection_handlers.handle_connect))
    socketio.on_event('disconnect', _dispatch(gateway, connection_handlers.handle_disconnect))

    # Register room management handlers
    socketio.on_event('createGame', _dispatch(gateway, room_handlers.handle_create_game))
    socketio.on_event('join', _dispatch(gateway, room_handlers.handle_join))
    socketio.on_event('hostLoaded', _dispatch(gateway, room_handlers.handle_host_loaded))
    socketio.on_event('playerLoaded', _dispatch(gateway, room_handlers.handle_player_loaded))

    # Register gameplay handlers
    socketio.on_event('buzz', _dispatch(gateway, game_handlers.handle_buzz))
    socketio.on_event('clear', _dispatch(gateway, game_handlers.handle_clear))
    socketio.on_event('awardPoint', _dispatch(gateway, game_handlers.handle_award_point))

    return gateway
