"""
Tests for inbound message validation and handshake identity parsing.
"""

import json

import pytest

from game_logic import MalformedInputError
from socket_handlers.messages import (
    AwardPointMessage, BuzzMessage, ClearMessage, JoinMessage, parse_handshake_identity, parse_message
)


def test_join_message_fields():
    message = parse_message('join', {'user': {'id': 'p1', 'name': ' Alice ', 'team': 'Red'}, 'gameCode': 'ab12'})

    assert isinstance(message, JoinMessage)
    assert message.code == 'AB12'
    assert message.user.identity == 'p1'
    assert message.user.name == 'Alice'
    assert message.host_token is None


@pytest.mark.parametrize('user', [
    {'id': 'p1', 'name': 'Alice'},
    {'id': 'p1', 'team': 'Red'},
    {'id': 'p1', 'name': '   ', 'team': 'Red'},
])
def test_join_requires_name_and_team(user):
    with pytest.raises(MalformedInputError) as excinfo:
        parse_message('join', {'user': user, 'gameCode': 'AB12'})

    assert excinfo.value.message == 'Name, team, and game code are required to join.'
    assert excinfo.value.kind == 'malformed_input'


def test_join_requires_game_code():
    with pytest.raises(MalformedInputError):
        parse_message('join', {'user': {'id': 'p1', 'name': 'Alice', 'team': 'Red'}})


def test_join_with_host_token_skips_player_fields():
    message = parse_message('join', {'user': {'id': 'h1'}, 'gameCode': 'AB12', 'hostToken': 'secret'})

    assert message.host_token == 'secret'
    assert message.user.name is None


def test_numeric_identity_becomes_string():
    message = parse_message('join', {'user': {'id': 1700000000000, 'name': 'A', 'team': 'B'}, 'gameCode': 'AB12'})

    assert message.user.identity == '1700000000000'


def test_buzz_message():
    message = parse_message('buzz', {'user': {'id': 'p1', 'name': 'Alice', 'team': 'Red'}, 'gameCode': 'AB12'})

    assert isinstance(message, BuzzMessage)
    assert (message.user.name, message.user.team) == ('Alice', 'Red')


def test_buzz_without_team_is_rejected():
    with pytest.raises(MalformedInputError) as excinfo:
        parse_message('buzz', {'user': {'name': 'Alice'}, 'gameCode': 'AB12'})

    assert excinfo.value.message == 'Name and team are required to buzz.'


@pytest.mark.parametrize('data', ['cd34', {'gameCode': 'cd34'}])
def test_clear_accepts_bare_code_or_object(data):
    message = parse_message('clear', data)

    assert isinstance(message, ClearMessage)
    assert message.code == 'CD34'


def test_award_point_uses_team_name():
    message = parse_message('awardPoint', {'teamName': 'Red', 'gameCode': 'AB12'})

    assert isinstance(message, AwardPointMessage)
    assert message.team == 'Red'


@pytest.mark.parametrize('event, data', [
    ('buzz', 'AB12'),
    ('awardPoint', None),
    ('join', ['AB12']),
    ('awardPoint', {'teamName': '', 'gameCode': 'AB12'}),
])
def test_malformed_payloads(event, data):
    with pytest.raises(MalformedInputError):
        parse_message(event, data)


def test_unknown_fields_are_ignored():
    message = parse_message('clear', {'gameCode': 'AB12', 'extra': True})

    assert message.code == 'AB12'


class TestHandshakeIdentity:

    def test_auth_user_object(self):
        user = parse_handshake_identity({'user': {'id': 'p1', 'name': 'Alice'}})

        assert user.identity == 'p1'
        assert user.name == 'Alice'

    def test_auth_flat_object(self):
        assert parse_handshake_identity({'id': 'p2'}).identity == 'p2'

    def test_query_string_user(self):
        user = parse_handshake_identity(None, json.dumps({'id': 'p3', 'team': 'Blue'}))

        assert user.identity == 'p3'
        assert user.team == 'Blue'

    @pytest.mark.parametrize('auth, query_user', [
        (None, None),
        ({}, None),
        ({'user': {'name': 'No Id'}}, None),
        (None, 'not json'),
        (None, json.dumps(['p4'])),
    ])
    def test_no_identity(self, auth, query_user):
        assert parse_handshake_identity(auth, query_user) is None
