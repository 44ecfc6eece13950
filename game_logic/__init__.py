# Game logic package for the buzzer server
# Room state, the room registry, timers and reconnection supervision

from .errors import (
    BuzzerError,
    CapacityExhaustedError,
    DuplicateSessionError,
    HostTokenRejectedError,
    MalformedInputError,
    RoomNotFoundError,
)
from .reconnection import ReconnectionSupervisor
from .registry import RoomRegistry
from .room import Participant, Room
from .timer import Clock, FakeClock, Scheduler, TimerHandle

__all__ = [
    'BuzzerError',
    'CapacityExhaustedError',
    'DuplicateSessionError',
    'HostTokenRejectedError',
    'MalformedInputError',
    'RoomNotFoundError',
    'ReconnectionSupervisor',
    'RoomRegistry',
    'Participant',
    'Room',
    'Clock',
    'FakeClock',
    'Scheduler',
    'TimerHandle',
]
