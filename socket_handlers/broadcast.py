# Outbound fan-out of room state to subscribed connections
from util.logging_utils import debug_log


class Broadcaster:
    """
    Sends full room snapshots to every connection subscribed to a room.

    Each subscriber is emitted to separately so a transport failure on one
    connection does not stop delivery to the rest.

    Parameters
    ----------
    socketio : SocketIO
        The Flask-SocketIO instance used for emitting
    connections : ConnectionState
        Subscription index
    """

    def __init__(self, socketio, connections):
        self.socketio = socketio
        self.connections = connections

    def to_connection(self, sid, event, payload):
        """Emit to a single connection. Returns False if delivery failed."""
        try:
            self.socketio.emit(event, payload, to=sid)
        except Exception as e:
            debug_log("Failed to deliver event", None, None, {
                'event': event, 'sid': sid, 'error': str(e)
            })
            return False
        return True

    def to_room(self, code, event, payload):
        """
        Emit to every subscriber of ``code``.

        Returns
        -------
        int
            Number of subscribers the event was delivered to
        """
        delivered = 0
        for sid in self.connections.subscribers(code):
            if self.to_connection(sid, event, payload):
                delivered += 1
        return delivered

    def active(self, room):
        return self.to_room(room.code, 'active', room.active_roster())

    def buzzes(self, room):
        return self.to_room(room.code, 'buzzes', room.buzz_snapshot())

    def scores(self, room):
        return self.to_room(room.code, 'scores', room.score_snapshot())

    def room_state(self, room):
        """Broadcast every sub-state of the room."""
        self.active(room)
        self.buzzes(room)
        self.scores(room)

    def sync_connection(self, sid, room):
        """Send the full room state to one connection after it (re)subscribes."""
        self.to_connection(sid, 'active', room.active_roster())
        self.to_connection(sid, 'buzzes', room.buzz_snapshot())
        self.to_connection(sid, 'scores', room.score_snapshot())

    def game_ended(self, room):
        """Terminal notice for a room that has been deleted."""
        self.to_room(room.code, 'gameEnded', {'gameCode': room.code})
        self.to_room(room.code, 'error', {'message': 'Game has ended.', 'kind': 'game_ended'})

    def error(self, sid, error):
        """Report a BuzzerError to the requesting connection only."""
        self.to_connection(sid, 'error', error.to_payload())
