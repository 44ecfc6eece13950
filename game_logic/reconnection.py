# Grace-period supervision for disconnected hosts and players
from util.config import TIMER_CONFIG
from util.logging_utils import debug_log, info_log

from .errors import RoomNotFoundError


class ReconnectionSupervisor:
    """
    Decides whether a dropped connection is a blip or a departure.

    Each guarded slot (the host of a room, or one roster entry) moves through
    Attached -> Grace -> Evicted. A disconnect of the slot's current connection
    enters Grace and schedules an eviction; a reconnection before the timer
    fires cancels it. Eviction callbacks re-check the state they were
    scheduled against before acting.

    Parameters
    ----------
    registry : RoomRegistry
        Registry rooms are deleted from on host eviction
    scheduler : Scheduler
        Scheduler eviction timers are placed on
    on_room_evicted : callable, optional
        ``f(room)`` called after a room is deleted because its host never came back
    on_player_evicted : callable, optional
        ``f(room, participant)`` called after a player's roster entry is deleted
    host_grace : float, optional
        Seconds a disconnected host's room is held open
    player_grace : float, optional
        Seconds a disconnected player's roster slot is held
    """

    def __init__(self, registry, scheduler, on_room_evicted=None, on_player_evicted=None,
                 host_grace=None, player_grace=None):
        self.registry = registry
        self.scheduler = scheduler
        self.clock = scheduler.clock
        self.on_room_evicted = on_room_evicted
        self.on_player_evicted = on_player_evicted
        self.host_grace = TIMER_CONFIG['host_grace'] if host_grace is None else host_grace
        self.player_grace = TIMER_CONFIG['player_grace'] if player_grace is None else player_grace

    # Host slot

    def host_disconnected(self, room, connection_ref):
        """
        Move the host slot into Grace if ``connection_ref`` is the host's current connection.

        Returns
        -------
        bool
            False when the disconnect came from a stale connection and was ignored
        """
        if room.host_connection != connection_ref:
            debug_log("Ignoring disconnect from stale host connection", room.host_identity, room.code, {
                'connection': connection_ref, 'current_connection': room.host_connection
            })
            return False

        now = self.clock.now()
        timer = self.scheduler.schedule(self.host_grace, self._evict_host, room.code,
                                        label=f'host-eviction:{room.code}')
        room.detach_host(now, timer)
        info_log(f"Host of game {room.code} disconnected; holding room for {self.host_grace}s")
        return True

    def host_in_grace(self, room):
        if room.host_attached:
            return False
        return self.clock.now() - room.host_disconnected_at < self.host_grace

    def reconnect_host(self, room, identity, connection_ref, host_token):
        """
        Bind the host slot to a new connection if ``host_token`` matches.

        The token holder may take the slot over while it is still attached,
        since the host's new page usually connects before the old one closes.

        Returns
        -------
        bool
            True if the host slot is now bound to ``connection_ref``

        Raises
        ------
        RoomNotFoundError
            If the host's grace period already elapsed; the room is evicted
        """
        if not room.verify_host_token(host_token):
            return False

        if not room.host_attached and not self.host_in_grace(room):
            # The eviction timer is late; the room is already gone as far as clients are concerned
            self._evict_host(room.code)
            raise RoomNotFoundError(room.code)

        was_in_grace = not room.host_attached
        # Attached slots are taken over rather than rejected: the host's new page
        # connects before the old one closes, and the old disconnect is then stale
        dropped = room.attach_host(identity, connection_ref)
        if dropped is not None:
            debug_log("Roster entry replaced by recovered host", identity, room.code, {
                'name': dropped.display_name, 'team': dropped.team
            })
        if was_in_grace:
            info_log(f"Host of game {room.code} reconnected")
        debug_log("Host slot bound to connection", identity, room.code, {
            'connection': connection_ref, 'from_grace': was_in_grace
        })
        return True

    def _evict_host(self, code):
        room = self.registry.get_room(code)
        if room is None:
            return
        if room.host_attached:
            debug_log("Host eviction skipped - host reconnected", room.host_identity, code)
            return

        elapsed = self.clock.now() - room.host_disconnected_at
        if elapsed < self.host_grace:
            room.host_eviction_timer = self.scheduler.schedule(
                self.host_grace - elapsed, self._evict_host, code, label=f'host-eviction:{code}')
            return

        self.registry.delete_room(code)
        info_log(f"Host of game {code} did not return within {self.host_grace}s; game ended")
        if self.on_room_evicted:
            self.on_room_evicted(room)

    # Player slots

    def player_disconnected(self, room, identity, connection_ref):
        """
        Move a player into Grace if ``connection_ref`` is their current connection.

        Returns
        -------
        Participant or None
            The participant now in Grace, or None if the disconnect was ignored
        """
        participant = room.get_participant(identity)
        if participant is None or participant.connection_ref != connection_ref:
            debug_log("Ignoring disconnect from stale player connection", identity, room.code, {
                'connection': connection_ref
            })
            return None

        now = self.clock.now()
        timer = self.scheduler.schedule(self.player_grace, self._evict_player, room.code, identity,
                                        label=f'player-eviction:{room.code}:{identity}')
        participant.detach(now, timer)
        debug_log("Player disconnected; holding roster slot", identity, room.code, {
            'grace_seconds': self.player_grace
        })
        return participant

    def reconnect_player(self, room, identity, connection_ref, name=None, team=None):
        """
        Reattach a player who is in Grace without going through a full join.

        Returns
        -------
        Participant or None
            The reattached participant, or None if the identity is not in Grace

        Raises
        ------
        DuplicateSessionError
            If the identity is attached on another connection
        """
        participant = room.get_participant(identity)
        if participant is None:
            return None
        if participant.attached and participant.connection_ref == connection_ref:
            return participant
        if not participant.attached and not room.within_player_grace(participant):
            return None
        participant, _ = room.add_participant(
            identity, name or participant.display_name, team or participant.team, connection_ref)
        return participant

    def _evict_player(self, code, identity):
        room = self.registry.get_room(code)
        if room is None:
            return
        participant = room.get_participant(identity)
        if participant is None or participant.attached:
            return

        elapsed = self.clock.now() - participant.disconnected_at
        if elapsed < self.player_grace:
            participant.eviction_timer = self.scheduler.schedule(
                self.player_grace - elapsed, self._evict_player, code, identity,
                label=f'player-eviction:{code}:{identity}')
            return

        room.remove_participant(identity)
        debug_log("Player evicted after grace period", identity, code, {
            'name': participant.display_name, 'roster_size': len(room.roster)
        })
        if self.on_player_evicted:
            self.on_player_evicted(room, participant)
