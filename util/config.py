# Configuration and constants for the buzzer server
import os
import json

# Get the absolute path of the config.json file
config_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')

with open(config_path) as f:
    CONFIG = json.load(f)


def _env_int(name, default):
    """Read an integer override from the environment, falling back to ``default``."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return int(value)


# Server Constants
CONSTANTS = {**CONFIG, **{
    'debug_mode': os.environ.get('DEBUG_MODE', 'true').lower() == 'true',
    'testing_mode': os.environ.get('TESTING_MODE', 'false').lower() == 'true',
    'GAME_CODE_LENGTH': _env_int('GAME_CODE_LENGTH', CONFIG['GAME_CODE_LENGTH']),
    'GAME_CODE_ALPHABET': os.environ.get('GAME_CODE_ALPHABET', CONFIG['GAME_CODE_ALPHABET']),
    'GAME_CODE_MAX_ATTEMPTS': _env_int('GAME_CODE_MAX_ATTEMPTS', CONFIG['GAME_CODE_MAX_ATTEMPTS']),
    'SCHEDULER_TICK_SECONDS': float(os.environ.get('SCHEDULER_TICK_SECONDS', CONFIG['SCHEDULER_TICK_SECONDS'])),
}}


def get_timer_config():
    """
    Get grace period configuration from environment variables.

    Returns a dictionary of grace periods in seconds. If TESTING_MODE is enabled,
    both grace periods are shortened so reconnection expiry can be exercised by
    hand. Otherwise, uses environment variables or the defaults in config.json.

    Returns
    -------
    dict
        Dictionary containing timer values:
        - host_grace: How long a disconnected host's room is held open
        - player_grace: How long a disconnected player's roster slot is held
    """
    if CONSTANTS['testing_mode']:
        seconds = CONFIG['TESTING_GRACE_SECONDS']
        print(f"TESTING MODE ENABLED - Grace periods set to {seconds} seconds")
        return {
            'host_grace': seconds,
            'player_grace': seconds,
        }

    return {
        'host_grace': _env_int('HOST_GRACE_SECONDS', CONFIG['HOST_GRACE_SECONDS']),
        'player_grace': _env_int('PLAYER_GRACE_SECONDS', CONFIG['PLAYER_GRACE_SECONDS']),
    }


# Load configurations at module import
TIMER_CONFIG = get_timer_config()
