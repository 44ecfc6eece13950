# Room registry: owns every live game room in this process
import random
import secrets
from util.config import CONSTANTS, TIMER_CONFIG
from util.logging_utils import debug_log

from .errors import CapacityExhaustedError, RoomNotFoundError
from .room import Room
from .timer import Clock


class RoomRegistry:
    """
    Mapping from game code to Room.

    Instances are created by the server and injected into the gateway, so
    every test can work against its own registry.

    Parameters
    ----------
    clock : Clock, optional
        Time source handed to every room
    rng : random.Random, optional
        Source of randomness for game codes
    player_grace : float, optional
        Player grace period handed to every room
    """

    def __init__(self, clock=None, rng=None, player_grace=None,
                 code_length=None, alphabet=None, max_attempts=None):
        self.clock = clock or Clock()
        self.rng = rng or random.Random()
        self.player_grace = TIMER_CONFIG['player_grace'] if player_grace is None else player_grace
        self.code_length = code_length or CONSTANTS['GAME_CODE_LENGTH']
        self.alphabet = alphabet or CONSTANTS['GAME_CODE_ALPHABET']
        self.max_attempts = max_attempts or CONSTANTS['GAME_CODE_MAX_ATTEMPTS']
        self.ROOMS = {}

    def __contains__(self, code):
        return self._normalize(code) in self.ROOMS

    def __len__(self):
        return len(self.ROOMS)

    @staticmethod
    def _normalize(code):
        return code.strip().upper() if isinstance(code, str) else code

    def generate_code(self):
        """
        Pick a game code not used by any live room.

        Raises
        ------
        CapacityExhaustedError
            If every attempt collided with a live room
        """
        for _ in range(self.max_attempts):
            code = ''.join(self.rng.choice(self.alphabet) for _ in range(self.code_length))
            if code not in self.ROOMS:
                return code
        raise CapacityExhaustedError(self.max_attempts)

    def create_room(self, host_identity, host_name, host_connection=None):
        """
        Create a room hosted by ``host_identity``.

        Returns
        -------
        Room
            The new room; its ``code`` and ``host_token`` go back to the host
        """
        code = self.generate_code()
        room = Room(
            code,
            host_identity,
            host_name,
            secrets.token_urlsafe(16),
            self.clock,
            host_connection=host_connection,
            player_grace=self.player_grace,
        )
        self.ROOMS[code] = room
        debug_log("Room created", host_identity, code, {
            'host_name': host_name, 'live_rooms': len(self.ROOMS)
        })
        return room

    def get_room(self, code):
        """Get a room by game code, or None if it is not live."""
        if not code:
            return None
        return self.ROOMS.get(self._normalize(code))

    def require_room(self, code):
        room = self.get_room(code)
        if room is None:
            raise RoomNotFoundError(code)
        return room

    def delete_room(self, code):
        """
        Remove a room after cancelling all of its pending timers.

        Returns
        -------
        Room or None
            The removed room, or None if it was not live
        """
        room = self.ROOMS.get(self._normalize(code))
        if room is None:
            return None
        room.cancel_all_timers()
        del self.ROOMS[room.code]
        debug_log("Room deleted", None, room.code, {'live_rooms': len(self.ROOMS)})
        return room
