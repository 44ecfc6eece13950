# Error types raised by the buzzer game logic


class BuzzerError(Exception):
    """
    Base class for errors reported back to a single requesting connection.

    Attributes
    ----------
    kind : str
        Machine-readable error category sent alongside the message
    """

    kind = 'error'

    def __init__(self, message, game_code=None, identity=None):
        super().__init__(message)
        self.message = message
        self.game_code = game_code
        self.identity = identity

    def to_payload(self):
        """Serialize the error for the outbound ``error`` event."""
        return {'message': self.message, 'kind': self.kind}


class RoomNotFoundError(BuzzerError):
    """Raised when an event references a game code that is not live."""

    kind = 'not_found'

    def __init__(self, game_code):
        super().__init__('Game not found.', game_code=game_code)


class DuplicateSessionError(BuzzerError):
    """Raised when an identity that is already attached tries to join again."""

    kind = 'duplicate_session'

    def __init__(self, game_code, identity):
        super().__init__('You are already connected to this game from another session.',
                         game_code=game_code, identity=identity)


class CapacityExhaustedError(BuzzerError):
    """Raised when no free game code could be found."""

    kind = 'capacity_exhausted'

    def __init__(self, attempts):
        super().__init__('Server is at capacity. Please try again later.')
        self.attempts = attempts


class MalformedInputError(BuzzerError):
    """Raised when an inbound payload is missing required fields."""

    kind = 'malformed_input'


class HostTokenRejectedError(BuzzerError):
    """Raised when a host-recovery token does not match the game's token."""

    kind = 'host_token_rejected'

    def __init__(self, game_code, identity=None):
        super().__init__('Host token does not match this game.', game_code=game_code, identity=identity)
