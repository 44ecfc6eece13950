# Core room state for a buzzer game session
import hmac
from datetime import datetime
from util.config import TIMER_CONFIG
from util.logging_utils import debug_log

from .errors import DuplicateSessionError


class Participant:
    """
    One player in a room's roster.

    A participant is either attached (``connection_ref`` set, ``disconnected_at``
    None) or in its grace period (``connection_ref`` None, ``disconnected_at``
    set, ``eviction_timer`` pending).
    """

    def __init__(self, identity, display_name, team, connection_ref):
        self.identity = identity
        self.display_name = display_name
        self.team = team
        self.connection_ref = connection_ref
        self.disconnected_at = None
        self.eviction_timer = None

    @property
    def attached(self):
        return self.disconnected_at is None

    def detach(self, now, eviction_timer):
        """Enter the grace period, remembering the timer that will evict us."""
        self.cancel_eviction()
        self.connection_ref = None
        self.disconnected_at = now
        self.eviction_timer = eviction_timer

    def reattach(self, connection_ref, display_name=None, team=None):
        """Leave the grace period on a new connection."""
        self.cancel_eviction()
        self.disconnected_at = None
        self.connection_ref = connection_ref
        if display_name:
            self.display_name = display_name
        if team:
            self.team = team

    def cancel_eviction(self):
        if self.eviction_timer is not None:
            self.eviction_timer.cancel()
            self.eviction_timer = None

    def to_dict(self):
        return {
            'id': self.identity,
            'name': self.display_name,
            'team': self.team,
        }

    def __repr__(self):
        state = 'attached' if self.attached else f'grace since {self.disconnected_at}'
        return f"Participant({self.identity!r}, {self.display_name!r}, {self.team!r}, {state})"


class Room:
    """
    Aggregate state for one buzzer game.

    Holds the host binding, the player roster, the buzz queue for the
    current round and the running team scores. All methods are synchronous
    and expect to be called from the gateway's dispatch lock.

    Parameters
    ----------
    code : str
        Game code the room is registered under
    host_identity : str
        Identity token of the host who created the room
    host_name : str
        Display name of the host
    host_token : str
        Opaque token the host must present to recover the host slot
    clock : Clock
        Time source shared with the scheduler
    host_connection : str, optional
        Connection currently bound to the host slot
    player_grace : float, optional
        Seconds a disconnected player keeps their roster slot
    """

    def __init__(self, code, host_identity, host_name, host_token, clock,
                 host_connection=None, player_grace=None):
        self.code = code
        self.host_identity = host_identity
        self.host_name = host_name
        self.host_token = host_token
        self.host_connection = host_connection
        self.host_disconnected_at = None
        self.host_eviction_timer = None
        self.clock = clock
        self.player_grace = TIMER_CONFIG['player_grace'] if player_grace is None else player_grace

        self.roster = {}
        self.buzz_queue = []
        self._buzz_keys = set()
        self.scores = {}
        self.created_at = datetime.now()

    # Host binding

    @property
    def host_attached(self):
        return self.host_disconnected_at is None

    def verify_host_token(self, token):
        """Compare a presented host-recovery token against ours."""
        if not token or not isinstance(token, str):
            return False
        return hmac.compare_digest(token, self.host_token)

    def detach_host(self, now, eviction_timer):
        self.cancel_host_eviction()
        self.host_connection = None
        self.host_disconnected_at = now
        self.host_eviction_timer = eviction_timer

    def attach_host(self, identity, connection_ref):
        """
        Bind the host slot to a (possibly new) identity and connection.

        Returns
        -------
        Participant or None
            The roster entry dropped because its identity now belongs to the host
        """
        self.cancel_host_eviction()
        self.host_disconnected_at = None
        self.host_connection = connection_ref
        stale = None
        if identity is not None and identity != self.host_identity:
            debug_log("Host identity rebound", identity, self.code, {'previous_identity': self.host_identity})
            # A player record under the new host identity would break host/roster exclusivity
            stale = self.roster.pop(identity, None)
            if stale is not None:
                stale.cancel_eviction()
            self.host_identity = identity
        return stale

    def cancel_host_eviction(self):
        if self.host_eviction_timer is not None:
            self.host_eviction_timer.cancel()
            self.host_eviction_timer = None

    # Roster

    def get_participant(self, identity):
        return self.roster.get(identity)

    def within_player_grace(self, participant):
        if participant.attached:
            return False
        return self.clock.now() - participant.disconnected_at < self.player_grace

    def add_participant(self, identity, name, team, connection_ref):
        """
        Add a player to the roster, or reconnect one who is in their grace period.

        Parameters
        ----------
        identity : str
            Client-generated identity token
        name : str
            Display name
        team : str
            Team name
        connection_ref : str
            Connection the player is attached through

        Returns
        -------
        tuple of (Participant or None, bool)
            The roster entry and whether this was a reconnection. The host's
            identity is never added and yields ``(None, False)``.

        Raises
        ------
        DuplicateSessionError
            If ``identity`` is already attached to this room
        """
        if identity == self.host_identity:
            debug_log("Host identity not added to roster", identity, self.code)
            return None, False

        existing = self.roster.get(identity)
        if existing is not None:
            if existing.attached and existing.connection_ref == connection_ref:
                # Same session re-sending its join
                existing.reattach(connection_ref, name, team)
                return existing, False

            if existing.attached:
                debug_log("Rejected duplicate session", identity, self.code, {
                    'existing_connection': existing.connection_ref,
                    'new_connection': connection_ref
                })
                raise DuplicateSessionError(self.code, identity)

            if self.within_player_grace(existing):
                existing.reattach(connection_ref, name, team)
                debug_log("Player reconnected within grace period", identity, self.code, {
                    'name': existing.display_name, 'team': existing.team
                })
                return existing, True

            # Grace window elapsed but the eviction timer has not run yet
            debug_log("Purging stale player record before rejoin", identity, self.code, {
                'disconnected_at': existing.disconnected_at
            })
            self.remove_participant(identity)

        participant = Participant(identity, name, team, connection_ref)
        self.roster[identity] = participant
        debug_log("Player joined", identity, self.code, {
            'name': name, 'team': team, 'roster_size': len(self.roster)
        })
        return participant, False

    def remove_participant(self, identity):
        """Delete a roster entry unconditionally, cancelling any pending eviction."""
        participant = self.roster.pop(identity, None)
        if participant is not None:
            participant.cancel_eviction()
        return participant

    def active_participants(self):
        return [p for p in self.roster.values() if p.attached]

    # Buzzes and scores

    def record_buzz(self, name, team):
        """
        Record a buzz for the current round.

        Repeated buzzes from the same (name, team) pair are ignored until the
        queue is cleared.

        Returns
        -------
        list of dict
            Full ordered buzz queue
        """
        key = (name, team)
        if key not in self._buzz_keys:
            self._buzz_keys.add(key)
            self.buzz_queue.append({'name': name, 'team': team})
            debug_log("Buzz recorded", None, self.code, {
                'name': name, 'team': team, 'position': len(self.buzz_queue)
            })
        return self.buzz_snapshot()

    def clear_buzzes(self):
        self.buzz_queue = []
        self._buzz_keys = set()
        return self.buzz_snapshot()

    def award_point(self, team):
        self.scores[team] = self.scores.get(team, 0) + 1
        debug_log("Point awarded", None, self.code, {'team': team, 'scores': dict(self.scores)})
        return self.score_snapshot()

    # Snapshots

    def active_roster(self):
        return [p.to_dict() for p in self.active_participants()]

    def buzz_snapshot(self):
        return [dict(entry) for entry in self.buzz_queue]

    def score_snapshot(self):
        return dict(self.scores)

    def snapshot(self):
        """
        Full state as seen by clients.

        Players in their grace period are left out of the roster.
        """
        return {
            'roster': self.active_roster(),
            'buzzQueue': self.buzz_snapshot(),
            'scores': self.score_snapshot(),
        }

    def cancel_all_timers(self):
        self.cancel_host_eviction()
        for participant in self.roster.values():
            participant.cancel_eviction()
