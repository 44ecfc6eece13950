#!/usr/bin/env python3
"""
Buzzer - Multiplayer Buzzer Game Server
A real-time game coordinator: a host creates a game, players join with a name
and team, press their buzzer, and everyone sees the buzz order and team scores.

This is the main entry point for the buzzer server.

Debug Mode
----------
Set TESTING_MODE=true as an environment variable to shorten reconnection grace periods:
- Host and player grace periods reduced to 5 seconds
- Lets room and player expiry be exercised by hand

Set DEBUG_MODE=true as an environment variable to enable detailed logging:
- Logs joins, buzzes, awards, disconnects and reconnections
- Records grace period transitions and evictions with room context
"""

import os
from flask import Flask, jsonify
from flask_socketio import SocketIO

# Import our modular components
from util.config import CONSTANTS, TIMER_CONFIG
from util.logging_utils import setup_logging
from socket_handlers import setup_socket_handlers


def create_app(clock=None, registry=None, start_scheduler=False, host_grace=None, player_grace=None,
               testing=False):
    """
    Build the Flask app and its Socket.IO server.

    Parameters
    ----------
    clock : Clock, optional
        Time source for grace period timers; tests pass a ``FakeClock``
    registry : RoomRegistry, optional
        Room store to serve; a fresh one is created if omitted
    start_scheduler : bool, optional
        Start the background task that fires expired grace periods
    host_grace : float, optional
        Override for the host grace period in seconds
    player_grace : float, optional
        Override for the player grace period in seconds
    testing : bool, optional
        Set Flask's TESTING flag

    Returns
    -------
    tuple of (Flask, SocketIO)
        The application and its Socket.IO server
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'buzzer_secret_key')
    app.config['TESTING'] = testing

    # Initialize Socket.IO
    socketio = SocketIO(app, cors_allowed_origins="*")

    # Set up Socket.IO event handlers
    gateway = setup_socket_handlers(socketio, clock=clock, registry=registry,
                                    host_grace=host_grace, player_grace=player_grace)
    app.extensions['session_gateway'] = gateway

    @app.route('/health')
    def health_check():
        """
        Health check endpoint for monitoring and load balancers.

        Returns
        -------
        dict
            Simple health status response
        """
        return {'status': 'healthy', 'service': 'buzzer', 'games': len(gateway.registry)}

    @app.route('/api/games/<game_code>')
    def game_data(game_code):
        """Current state of a game as the host page needs it"""
        with gateway.lock:
            room = gateway.registry.get_room(game_code)
            if room is None:
                return jsonify({'error': 'Game not found'}), 404
            users = room.active_roster()
            return jsonify({
                'gameCode': room.code,
                'title': CONSTANTS['TITLE'],
                'users': users,
                'buzzes': room.buzz_snapshot(),
                'scores': room.score_snapshot(),
                'active': len(users),
                'createdAt': room.created_at.isoformat(),
            })

    if start_scheduler:
        gateway.start_background_pump()

    return app, socketio


if __name__ == '__main__':
    port = int(os.environ.get('PORT', CONSTANTS['DEFAULT_PORT']))

    # Set up logging
    logger = setup_logging(file_root='server')

    logger.info(f"Starting buzzer server on port {port}")
    logger.info(f"Debug mode: {'enabled' if CONSTANTS['debug_mode'] else 'disabled'}")
    logger.info(f"Testing mode: {'enabled' if CONSTANTS['testing_mode'] else 'disabled'}")
    logger.info(f"Grace periods: host {TIMER_CONFIG['host_grace']}s, player {TIMER_CONFIG['player_grace']}s")

    app, socketio = create_app(start_scheduler=True)

    # Start the server
    socketio.run(
        app,
        host='0.0.0.0',
        port=port,
        debug=CONSTANTS['debug_mode'],
        allow_unsafe_werkzeug=os.getenv('WERKZEUG_ALLOW_ASYNC_UNSAFE', 'false').lower() == 'true',
        use_reloader=False
    )
