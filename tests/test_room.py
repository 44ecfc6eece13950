"""
Tests for room state: roster joins and reconnection, buzz ordering, scores,
and the room registry.
"""

import pytest

from game_logic import CapacityExhaustedError, DuplicateSessionError, RoomNotFoundError, RoomRegistry
from .test_common import PLAYER_GRACE, ScriptedRandom


@pytest.fixture
def room(registry):
    return registry.create_room('host-1', 'Quizmaster', 'sid-host')


class TestBuzzQueue:
    """Buzz ordering and de-duplication within a round"""

    @pytest.mark.parametrize('buzzes, expected', [
        ([('Alice', 'Red')], [('Alice', 'Red')]),
        ([('Alice', 'Red'), ('Alice', 'Red'), ('Alice', 'Red')], [('Alice', 'Red')]),
        ([('Bob', 'Blue'), ('Alice', 'Red'), ('Bob', 'Blue'), ('Carol', 'Red'), ('Alice', 'Red')],
         [('Bob', 'Blue'), ('Alice', 'Red'), ('Carol', 'Red')]),
        ([('Alice', 'Red'), ('Alice', 'Blue')], [('Alice', 'Red'), ('Alice', 'Blue')]),
    ])
    def test_each_pair_once_in_first_arrival_order(self, room, buzzes, expected):
        for name, team in buzzes:
            room.record_buzz(name, team)

        assert [(b['name'], b['team']) for b in room.buzz_snapshot()] == expected

    def test_record_buzz_returns_full_queue(self, room):
        room.record_buzz('Alice', 'Red')
        queue = room.record_buzz('Bob', 'Blue')

        assert queue == [{'name': 'Alice', 'team': 'Red'}, {'name': 'Bob', 'team': 'Blue'}]

    def test_duplicate_buzz_is_a_no_op(self, room):
        room.record_buzz('Alice', 'Red')
        queue = room.record_buzz('Alice', 'Red')

        assert queue == [{'name': 'Alice', 'team': 'Red'}]

    def test_clear_empties_queue_and_readmits(self, room):
        room.record_buzz('Alice', 'Red')
        room.record_buzz('Bob', 'Blue')

        assert room.clear_buzzes() == []
        assert room.snapshot()['buzzQueue'] == []

        assert room.record_buzz('Alice', 'Red') == [{'name': 'Alice', 'team': 'Red'}]

    def test_names_containing_dashes_do_not_collide(self, room):
        room.record_buzz('Mary-Jane', 'Red')
        room.record_buzz('Mary', 'Jane-Red')

        assert len(room.buzz_snapshot()) == 2
        assert room.buzz_snapshot()[0] == {'name': 'Mary-Jane', 'team': 'Red'}

    def test_snapshot_is_a_copy(self, room):
        queue = room.record_buzz('Alice', 'Red')
        queue.append({'name': 'Mallory', 'team': 'Black'})

        assert len(room.buzz_snapshot()) == 1


class TestScores:

    def test_first_point_initializes_team_to_one(self, room):
        assert room.award_point('Red') == {'Red': 1}

    def test_second_point_increments(self, room):
        room.award_point('Red')
        assert room.award_point('Red') == {'Red': 2}

    def test_scores_survive_clearing_buzzes(self, room):
        room.award_point('Red')
        room.award_point('Blue')
        room.clear_buzzes()

        assert room.snapshot()['scores'] == {'Red': 1, 'Blue': 1}


class TestRoster:
    """Joining, duplicate sessions and reconnection through add_participant"""

    def test_new_player_is_attached(self, room):
        participant, reconnected = room.add_participant('p1', 'Alice', 'Red', 'sid-1')

        assert reconnected is False
        assert participant.attached
        assert participant.connection_ref == 'sid-1'
        assert room.snapshot()['roster'] == [{'id': 'p1', 'name': 'Alice', 'team': 'Red'}]

    def test_host_identity_is_never_in_roster(self, room):
        participant, reconnected = room.add_participant('host-1', 'Quizmaster', 'Red', 'sid-x')

        assert participant is None
        assert reconnected is False
        assert 'host-1' not in room.roster

    def test_duplicate_attached_identity_is_rejected(self, room):
        room.add_participant('p1', 'Alice', 'Red', 'sid-1')

        with pytest.raises(DuplicateSessionError) as excinfo:
            room.add_participant('p1', 'Alice', 'Blue', 'sid-2')

        assert excinfo.value.kind == 'duplicate_session'
        participant = room.get_participant('p1')
        assert participant.connection_ref == 'sid-1'
        assert participant.team == 'Red'
        assert len(room.roster) == 1

    def test_same_connection_rejoin_updates_details(self, room):
        room.add_participant('p1', 'Alice', 'Red', 'sid-1')
        participant, reconnected = room.add_participant('p1', 'Alicia', 'Red', 'sid-1')

        assert reconnected is False
        assert participant.display_name == 'Alicia'

    def test_disconnected_player_hidden_from_snapshot(self, room, scheduler, fake_clock):
        room.add_participant('p1', 'Alice', 'Red', 'sid-1')
        room.add_participant('p2', 'Bob', 'Blue', 'sid-2')

        room.get_participant('p1').detach(fake_clock.now(), scheduler.schedule(PLAYER_GRACE, lambda: None))

        assert room.snapshot()['roster'] == [{'id': 'p2', 'name': 'Bob', 'team': 'Blue'}]
        assert 'p1' in room.roster

    def test_reconnect_within_grace_reuses_record(self, room, scheduler, fake_clock):
        original, _ = room.add_participant('p1', 'Alice', 'Red', 'sid-1')
        timer = scheduler.schedule(PLAYER_GRACE, lambda: None)
        original.detach(fake_clock.now(), timer)

        fake_clock.advance(PLAYER_GRACE - 1)
        participant, reconnected = room.add_participant('p1', 'Alice', 'Green', 'sid-2')

        assert reconnected is True
        assert participant is original
        assert participant.attached
        assert participant.connection_ref == 'sid-2'
        assert participant.team == 'Green'
        assert timer.cancelled
        assert participant.eviction_timer is None

    def test_reconnect_after_grace_is_fresh_join(self, room, scheduler, fake_clock):
        original, _ = room.add_participant('p1', 'Alice', 'Red', 'sid-1')
        timer = scheduler.schedule(PLAYER_GRACE, lambda: None)
        original.detach(fake_clock.now(), timer)

        fake_clock.advance(PLAYER_GRACE + 5)
        participant, reconnected = room.add_participant('p1', 'Alice', 'Red', 'sid-2')

        assert reconnected is False
        assert participant is not original
        assert timer.cancelled
        assert len(room.roster) == 1

    def test_remove_participant_cancels_timer(self, room, scheduler, fake_clock):
        participant, _ = room.add_participant('p1', 'Alice', 'Red', 'sid-1')
        timer = scheduler.schedule(PLAYER_GRACE, lambda: None)
        participant.detach(fake_clock.now(), timer)

        room.remove_participant('p1')

        assert timer.cancelled
        assert 'p1' not in room.roster
        assert scheduler.pending() == 0

    def test_attach_host_under_player_identity_drops_player(self, room):
        room.add_participant('p1', 'Alice', 'Red', 'sid-1')

        dropped = room.attach_host('p1', 'sid-9')

        assert dropped.display_name == 'Alice'
        assert room.host_identity == 'p1'
        assert 'p1' not in room.roster

    def test_host_token_verification(self, room):
        assert room.verify_host_token(room.host_token)
        assert not room.verify_host_token('not-the-token')
        assert not room.verify_host_token(None)
        assert not room.verify_host_token(1234)


class TestRoomRegistry:

    def test_codes_use_alphabet_and_length(self, registry):
        room = registry.create_room('h', 'Host')

        assert len(room.code) == 4
        assert all(c in 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789' for c in room.code)
        assert registry.get_room(room.code) is room

    def test_colliding_codes_are_resampled(self, fake_clock):
        registry = RoomRegistry(clock=fake_clock, rng=ScriptedRandom('AB12', 'AB12', 'CD34'))

        first = registry.create_room('h1', 'Host One')
        second = registry.create_room('h2', 'Host Two')

        assert first.code == 'AB12'
        assert second.code == 'CD34'

    def test_exhausted_code_space_raises(self, fake_clock):
        registry = RoomRegistry(clock=fake_clock, code_length=1, alphabet='A', max_attempts=5)
        registry.create_room('h1', 'Host One')

        with pytest.raises(CapacityExhaustedError) as excinfo:
            registry.create_room('h2', 'Host Two')

        assert excinfo.value.attempts == 5
        assert len(registry) == 1

    def test_lookup_is_case_insensitive(self, fake_clock):
        registry = RoomRegistry(clock=fake_clock, rng=ScriptedRandom('AB12'))
        room = registry.create_room('h', 'Host')

        assert registry.get_room('ab12') is room
        assert 'ab12' in registry

    def test_missing_room(self, registry):
        assert registry.get_room('ZZZZ') is None
        assert registry.get_room(None) is None
        with pytest.raises(RoomNotFoundError):
            registry.require_room('ZZZZ')

    def test_delete_room_cancels_every_timer(self, registry, scheduler, fake_clock):
        room = registry.create_room('h', 'Host', 'sid-host')
        alice, _ = room.add_participant('p1', 'Alice', 'Red', 'sid-1')
        bob, _ = room.add_participant('p2', 'Bob', 'Blue', 'sid-2')
        alice.detach(fake_clock.now(), scheduler.schedule(PLAYER_GRACE, lambda: None))
        bob.detach(fake_clock.now(), scheduler.schedule(PLAYER_GRACE, lambda: None))
        room.detach_host(fake_clock.now(), scheduler.schedule(300, lambda: None))
        assert scheduler.pending() == 3

        assert registry.delete_room(room.code) is room

        assert scheduler.pending() == 0
        assert registry.get_room(room.code) is None
        assert registry.delete_room(room.code) is None
