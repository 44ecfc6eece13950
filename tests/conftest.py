"""
Pytest configuration and shared fixtures for buzzer server tests.

This file makes fixtures available to all test modules in the tests directory.
"""

# Import all fixtures from test_common to make them available globally
from .test_common import (
    fake_clock,
    scheduler,
    registry,
    evictions,
    supervisor,
    test_app,
    gateway,
    make_client,
    hosted_game,
)
