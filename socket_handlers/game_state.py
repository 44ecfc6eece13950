# Session state shared by the socket handlers
import threading

from game_logic import ReconnectionSupervisor, RoomRegistry, Scheduler
from game_logic.errors import CapacityExhaustedError
from util.config import CONSTANTS
from util.logging_utils import critical_log, debug_log
from .broadcast import Broadcaster
from .connections import HOST, PLAYER, ConnectionState


class SessionGateway:
    """
    Everything the socket handlers share for one server instance.

    Owns the room registry, the timer scheduler, the reconnection supervisor
    and the connection index. Handlers and scheduled timers both run under
    ``lock``, so events for a room are processed one at a time.

    Parameters
    ----------
    socketio : SocketIO
        The Flask-SocketIO instance used for emitting
    clock : Clock, optional
        Time source; tests pass a ``FakeClock``
    registry : RoomRegistry, optional
        Room store, created from ``clock`` if omitted
    host_grace : float, optional
        Override for the host grace period
    player_grace : float, optional
        Override for the player grace period
    """

    def __init__(self, socketio, clock=None, registry=None, host_grace=None, player_grace=None):
        self.socketio = socketio
        if clock is None and registry is not None:
            clock = registry.clock
        self.scheduler = Scheduler(clock)
        self.clock = self.scheduler.clock
        self.registry = registry or RoomRegistry(clock=self.clock, player_grace=player_grace)
        self.connections = ConnectionState(socketio)
        self.broadcaster = Broadcaster(socketio, self.connections)
        self.supervisor = ReconnectionSupervisor(
            self.registry,
            self.scheduler,
            on_room_evicted=self._room_evicted,
            on_player_evicted=self._player_evicted,
            host_grace=host_grace,
            player_grace=self.registry.player_grace,
        )
        self.lock = threading.RLock()
        self._pump_running = False

    # Timers

    def run_due_timers(self):
        """Fire every due eviction timer under the dispatch lock."""
        with self.lock:
            return self.scheduler.run_due()

    def start_background_pump(self, tick=None):
        """Start the background task that fires due timers."""
        if self._pump_running:
            return
        self._pump_running = True
        tick = CONSTANTS['SCHEDULER_TICK_SECONDS'] if tick is None else tick
        self.socketio.start_background_task(self._pump, tick)

    @property
    def pump_running(self):
        return self._pump_running

    def stop_background_pump(self):
        """Let the background pump exit after its current tick."""
        self._pump_running = False

    def _pump(self, tick):
        while self._pump_running:
            try:
                self.run_due_timers()
            except Exception as e:
                critical_log("Timer pump callback failed", extra_data={'error': str(e)})
            self.socketio.sleep(tick)

    # Eviction callbacks

    def _room_evicted(self, room):
        self.broadcaster.game_ended(room)
        self.connections.drop_room(room.code)

    def _player_evicted(self, room, participant):
        self.broadcaster.active(room)

    # Connection lifecycle

    def release_connection(self, connection):
        """
        Apply the disconnect of ``connection`` to whatever slot it held.

        The host slot or roster entry enters its grace period; viewers are
        simply dropped.
        """
        if connection is None or not connection.code:
            return
        room = self.registry.get_room(connection.code)
        if room is None:
            return

        if connection.role == HOST:
            self.supervisor.host_disconnected(room, connection.sid)
        elif connection.role == PLAYER:
            if self.supervisor.player_disconnected(room, connection.identity, connection.sid):
                self.broadcaster.active(room)

    def report_error(self, sid, error):
        if isinstance(error, CapacityExhaustedError):
            critical_log("Game code space exhausted", extra_data={
                'attempts': error.attempts, 'live_rooms': len(self.registry)
            })
        else:
            debug_log("Request rejected", error.identity, error.game_code, {
                'kind': error.kind, 'message': error.message, 'sid': sid
            })
        self.broadcaster.error(sid, error)
