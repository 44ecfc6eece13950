# Connection handling for socket events
from flask import request
from util.logging_utils import debug_log
from .messages import parse_handshake_identity


class ConnectionHandlers:
    """Handles client connection and disconnection events"""

    def __init__(self, gateway):
        self.gateway = gateway

    def handle_connect(self, auth=None):
        """Handle new client connection, remembering any identity it asserted"""
        sid = request.sid
        user = parse_handshake_identity(auth, request.args.get('user'))
        self.gateway.connections.connect(sid, user)

        debug_log("Client connected", user.identity if user else None, None, {
            'connection_source': 'socket_connect',
            'session_id': sid
        })

    def handle_disconnect(self, reason=None):
        """Handle transport disconnect by starting the grace period of whatever slot it held"""
        sid = request.sid
        connection = self.gateway.connections.disconnect(sid)

        if connection is None:
            debug_log("Disconnecting client was not in connection registry", None, None, {
                'session_id': sid
            })
            return

        debug_log("Client disconnected", connection.identity, connection.code, {
            'disconnect_source': 'socket_disconnect',
            'role': connection.role,
            'reason': str(reason) if reason is not None else None
        })
        self.gateway.release_connection(connection)
