# Inbound socket message schemas
import json
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from game_logic.errors import MalformedInputError


class InboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore', str_strip_whitespace=True)


class UserInfo(InboundMessage):
    identity: Optional[str] = Field(default=None, alias='id')
    name: Optional[str] = Field(default=None, max_length=64)
    team: Optional[str] = Field(default=None, max_length=64)

    @field_validator('identity', mode='before')
    @classmethod
    def identity_as_string(cls, value):
        # Browsers send either a string or a numeric timestamp id
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator('identity', 'name', 'team')
    @classmethod
    def blank_as_missing(cls, value):
        if value is not None and not value.strip():
            return None
        return value


class GameMessage(InboundMessage):
    code: str = Field(alias='gameCode', min_length=1, max_length=16)

    @field_validator('code')
    @classmethod
    def upper_code(cls, value):
        return value.upper()


class CreateGameMessage(UserInfo):
    """``createGame`` carries the host's user object directly."""


class JoinMessage(GameMessage):
    user: UserInfo = Field(default_factory=UserInfo)
    host_token: Optional[str] = Field(default=None, alias='hostToken')

    @model_validator(mode='after')
    def player_fields_present(self):
        if self.host_token:
            return self
        if not self.user.name or not self.user.team:
            raise ValueError('Name, team, and game code are required to join.')
        return self


class BuzzMessage(GameMessage):
    user: UserInfo

    @model_validator(mode='after')
    def buzzer_known(self):
        if not self.user.name or not self.user.team:
            raise ValueError('Name and team are required to buzz.')
        return self


class ClearMessage(GameMessage):
    pass


class AwardPointMessage(GameMessage):
    team: str = Field(alias='teamName', min_length=1, max_length=64)


class HostLoadedMessage(GameMessage):
    host_token: Optional[str] = Field(default=None, alias='hostToken')
    user: Optional[UserInfo] = None


class PlayerLoadedMessage(GameMessage):
    user: Optional[UserInfo] = None


MESSAGE_TYPES = {
    'createGame': CreateGameMessage,
    'join': JoinMessage,
    'buzz': BuzzMessage,
    'clear': ClearMessage,
    'awardPoint': AwardPointMessage,
    'hostLoaded': HostLoadedMessage,
    'playerLoaded': PlayerLoadedMessage,
}


def _describe(error):
    """Turn the first pydantic error into a short message for the client."""
    first = error.errors()[0]
    message = first.get('msg', 'Invalid message')
    # Errors raised from our own validators come through as "Value error, <text>"
    if message.startswith('Value error, '):
        return message[len('Value error, '):]
    location = '.'.join(str(part) for part in first.get('loc', ()))
    return f"{location}: {message}" if location else message


def parse_message(event, data):
    """
    Validate an inbound payload into its message model.

    Parameters
    ----------
    event : str
        Socket event name
    data : object
        Raw payload as received from the client

    Returns
    -------
    InboundMessage
        Parsed message

    Raises
    ------
    MalformedInputError
        If the payload does not match the event's schema
    """
    model = MESSAGE_TYPES[event]

    # The host page sends the bare game code for ``clear``
    if event == 'clear' and isinstance(data, str):
        data = {'gameCode': data}

    if not isinstance(data, dict):
        raise MalformedInputError(f'Invalid {event} message.')

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedInputError(_describe(e)) from e


def parse_handshake_identity(auth=None, query_user=None):
    """
    Extract the asserted identity from connection metadata.

    Parameters
    ----------
    auth : dict, optional
        Socket.IO ``auth`` payload, either ``{"user": {...}}`` or ``{"id": ...}``
    query_user : str, optional
        JSON-encoded user object from the ``user`` query string parameter

    Returns
    -------
    UserInfo or None
        Parsed user, or None if no identity was asserted
    """
    candidate = None
    if isinstance(auth, dict):
        candidate = auth.get('user', auth)
    elif query_user:
        try:
            candidate = json.loads(query_user)
        except ValueError:
            return None

    if not isinstance(candidate, dict):
        return None
    try:
        user = UserInfo.model_validate(candidate)
    except ValidationError:
        return None
    return user if user.identity else None
