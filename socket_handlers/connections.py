# Connection tracking for socket handlers
from flask_socketio import join_room, leave_room

from util.logging_utils import debug_log

HOST = 'host'
PLAYER = 'player'
VIEWER = 'viewer'

NAMESPACE = '/'


class Connection:
    """
    One live transport connection and what it is bound to.

    Attributes
    ----------
    sid : str
        Socket.IO session id
    handshake_user : UserInfo or None
        Identity asserted in the connection metadata
    code : str or None
        Game code the connection is subscribed to
    identity : str or None
        Identity token the connection acts for in that game
    role : str or None
        ``'host'``, ``'player'`` or ``'viewer'``
    """

    def __init__(self, sid, handshake_user=None):
        self.sid = sid
        self.handshake_user = handshake_user
        self.code = None
        self.identity = None
        self.role = None

    @property
    def handshake_identity(self):
        return self.handshake_user.identity if self.handshake_user else None

    def clear_binding(self):
        self.code = None
        self.identity = None
        self.role = None

    def __repr__(self):
        return f"Connection({self.sid!r}, code={self.code!r}, identity={self.identity!r}, role={self.role!r})"


class ConnectionState:
    """
    Tracks live connections and what each one is bound to.

    Room membership itself lives in the Socket.IO room named after the game
    code; this class only remembers the identity and role behind each sid.

    Parameters
    ----------
    socketio : SocketIO
        The Flask-SocketIO instance whose rooms hold the subscriptions
    """

    def __init__(self, socketio):
        self.socketio = socketio
        self.CONNECTIONS = {}

    def connect(self, sid, handshake_user=None):
        connection = Connection(sid, handshake_user)
        self.CONNECTIONS[sid] = connection
        return connection

    def get(self, sid):
        """Get the connection for ``sid``, registering it if the connect event was missed."""
        connection = self.CONNECTIONS.get(sid)
        if connection is None:
            connection = self.connect(sid)
        return connection

    def bind(self, sid, code, identity, role):
        """Subscribe ``sid`` to ``code`` acting as ``identity`` in ``role``."""
        connection = self.get(sid)
        if connection.code and connection.code != code:
            leave_room(connection.code, sid=sid, namespace=NAMESPACE)
        join_room(code, sid=sid, namespace=NAMESPACE)
        connection.code = code
        connection.identity = identity
        connection.role = role
        debug_log("Connection bound to game", identity, code, {'sid': sid, 'role': role})
        return connection

    def disconnect(self, sid):
        """Forget ``sid``; returns its last binding, or None if it was unknown."""
        connection = self.CONNECTIONS.pop(sid, None)
        if connection is not None and connection.code:
            leave_room(connection.code, sid=sid, namespace=NAMESPACE)
        return connection

    def subscribers(self, code):
        """Session ids currently in the Socket.IO room for ``code``, in join order."""
        return [sid for sid, _ in self.socketio.server.manager.get_participants(NAMESPACE, code)]

    def drop_room(self, code):
        """Unsubscribe every connection from a room that no longer exists."""
        for sid in self.subscribers(code):
            connection = self.CONNECTIONS.get(sid)
            if connection is not None and connection.code == code:
                connection.clear_binding()
        self.socketio.close_room(code, namespace=NAMESPACE)
