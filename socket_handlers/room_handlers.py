# Room management handlers for socket events
from flask import request

from game_logic.errors import HostTokenRejectedError, MalformedInputError
from util.logging_utils import debug_log, info_log
from .connections import HOST, PLAYER, VIEWER
from .messages import parse_message


class RoomHandlers:
    """Handles game creation, joining, and page (re)load resubscription"""

    def __init__(self, gateway):
        self.gateway = gateway

    @property
    def registry(self):
        return self.gateway.registry

    @property
    def broadcaster(self):
        return self.gateway.broadcaster

    def _identity(self, user, connection):
        """Identity from the payload, falling back to the one asserted at connect time"""
        if user is not None and user.identity:
            return user.identity
        return connection.handshake_identity

    def _bind(self, connection, room, identity, role):
        """
        Bind a connection to a slot in ``room``, releasing whatever it held before.

        A connection that re-joins the same game under a new identity leaves
        its previous roster entry behind, so that entry is removed outright.
        """
        same_slot = (connection.code == room.code and connection.identity == identity
                     and connection.role == role)
        if connection.code and not same_slot:
            if connection.code == room.code and connection.role == PLAYER:
                previous = room.get_participant(connection.identity)
                if previous is not None and previous.connection_ref == connection.sid:
                    room.remove_participant(connection.identity)
                    debug_log("Removed roster entry replaced on the same connection", connection.identity,
                              room.code, {'new_identity': identity})
            elif not (connection.code == room.code and connection.role == HOST and role == HOST):
                self.gateway.release_connection(connection)
        return self.gateway.connections.bind(connection.sid, room.code, identity, role)

    def _subscribe_viewer(self, connection, room):
        if connection.code == room.code:
            return connection
        return self._bind(connection, room, connection.handshake_identity, VIEWER)

    def handle_create_game(self, data=None):
        """Handle game creation; the sender becomes the host"""
        message = parse_message('createGame', data if data is not None else {})
        connection = self.gateway.connections.get(request.sid)

        identity = self._identity(message, connection)
        if not identity:
            raise MalformedInputError('An identity is required to create a game.')
        name = message.name or (connection.handshake_user.name if connection.handshake_user else None) or 'Host'

        room = self.registry.create_room(identity, name, connection.sid)
        self._bind(connection, room, identity, HOST)

        self.broadcaster.to_connection(connection.sid, 'gameCreated', {
            'gameCode': room.code,
            'hostToken': room.host_token,
        })
        self.broadcaster.room_state(room)
        info_log(f"{name} created game {room.code} as host")

    def handle_join(self, data=None):
        """Handle a player joining, a player reconnecting, or the host recovering their slot"""
        message = parse_message('join', data)
        room = self.registry.require_room(message.code)
        connection = self.gateway.connections.get(request.sid)

        identity = self._identity(message.user, connection)
        if not identity:
            raise MalformedInputError('An identity is required to join.', game_code=room.code)

        if message.host_token:
            self._recover_host_from_join(message, room, connection, identity)
            return

        if identity == room.host_identity:
            debug_log("Host identity joined through the player path", identity, room.code)
            self._subscribe_viewer(connection, room)
            self.broadcaster.sync_connection(connection.sid, room)
            return

        participant, reconnected = room.add_participant(
            identity, message.user.name, message.user.team, connection.sid)
        self._bind(connection, room, identity, PLAYER)

        self.broadcaster.active(room)
        self.broadcaster.to_connection(connection.sid, 'buzzes', room.buzz_snapshot())
        self.broadcaster.to_connection(connection.sid, 'scores', room.score_snapshot())

        if reconnected:
            info_log(f"{participant.display_name} reconnected to game {room.code}")
        else:
            info_log(f"{participant.display_name} joined game {room.code}! "
                     f"Active users in game: {len(room.active_participants())}")

    def _recover_host_from_join(self, message, room, connection, identity):
        if not self.gateway.supervisor.reconnect_host(room, identity, connection.sid, message.host_token):
            raise HostTokenRejectedError(room.code, identity)
        self._bind(connection, room, identity, HOST)
        self.broadcaster.to_connection(connection.sid, 'redirectToHost', {'gameCode': room.code})
        self.broadcaster.active(room)
        self.broadcaster.to_connection(connection.sid, 'buzzes', room.buzz_snapshot())
        self.broadcaster.to_connection(connection.sid, 'scores', room.score_snapshot())
        info_log(f"Host {room.host_name} rejoined game {room.code}")

    def handle_host_loaded(self, data=None):
        """Handle the host page (re)loading: resubscribe and resync state"""
        message = parse_message('hostLoaded', data)
        room = self.registry.require_room(message.code)
        connection = self.gateway.connections.get(request.sid)

        identity = self._identity(message.user, connection) or room.host_identity
        if message.host_token and self.gateway.supervisor.reconnect_host(
                room, identity, connection.sid, message.host_token):
            self._bind(connection, room, identity, HOST)
            # Rebinding may have dropped a roster entry under the host's identity
            self.broadcaster.active(room)
        else:
            if message.host_token:
                debug_log("Host page presented a token that does not match", identity, room.code)
            self._subscribe_viewer(connection, room)

        debug_log("Host page loaded", identity, room.code, {
            'session_id': connection.sid, 'role': connection.role
        })
        self.broadcaster.sync_connection(connection.sid, room)

    def handle_player_loaded(self, data=None):
        """Handle the player page (re)loading: reattach if possible, then resync state"""
        message = parse_message('playerLoaded', data)
        room = self.registry.require_room(message.code)
        connection = self.gateway.connections.get(request.sid)

        identity = self._identity(message.user, connection)
        name = message.user.name if message.user else None
        team = message.user.team if message.user else None

        participant = None
        if identity and identity != room.host_identity:
            if room.get_participant(identity) is not None:
                participant = self.gateway.supervisor.reconnect_player(
                    room, identity, connection.sid, name, team)
            if participant is None and name and team:
                participant, _ = room.add_participant(identity, name, team, connection.sid)

        if participant is not None:
            self._bind(connection, room, identity, PLAYER)
            self.broadcaster.active(room)
            self.broadcaster.to_connection(connection.sid, 'buzzes', room.buzz_snapshot())
            self.broadcaster.to_connection(connection.sid, 'scores', room.score_snapshot())
        else:
            self._subscribe_viewer(connection, room)
            self.broadcaster.sync_connection(connection.sid, room)

        debug_log("Player page loaded", identity, room.code, {
            'session_id': connection.sid, 'attached': participant is not None
        })
