# Logging utilities for the buzzer server
import logging
import os
from datetime import datetime
from util.config import CONSTANTS


def setup_logging(file_root='buzzer'):
    """
    Configure logging for the application.

    Parameters
    ----------
    file_root : str, optional
        Prefix for the log file name written under ``logs/``

    Returns
    -------
    logging.Logger
        Configured logger instance
    """
    # Configure logging
    log_folder = os.path.join(os.getcwd(), 'logs')
    os.makedirs(log_folder, exist_ok=True)
    log_file_path = os.path.join(log_folder, f'{file_root}_{datetime.now():%Y-%m-%d_%H%M%S}.log')

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.FileHandler(log_file_path, encoding='utf-8'),
            logging.StreamHandler()
        ]
    )

    logger = logging.getLogger(__name__)

    # Initialize debug mode logging
    if CONSTANTS['debug_mode']:
        logger.info("DEBUG MODE ENABLED - All session transitions will be logged")
    else:
        logger.info("Debug mode disabled - Set DEBUG_MODE=true to enable detailed logging")

    return logger


def debug_log(message, identity=None, game_code=None, extra_data=None):
    """
    Log debug information if debug mode is enabled.

    Parameters
    ----------
    message : str
        The debug message to log
    identity : str, optional
        Participant identity token associated with the action
    game_code : str, optional
        Game code associated with the action
    extra_data : dict, optional
        Additional data to include in the log
    """
    if CONSTANTS['debug_mode']:
        log_parts = []

        if game_code:
            log_parts.append(f"Room: {game_code}")
        if identity:
            log_parts.append(f"Player: {identity}")
        log_parts.append(message)
        if extra_data:
            log_parts.append(f"Data: {extra_data}")

        logger = logging.getLogger(__name__)
        logger.info(" | ".join(log_parts))


def info_log(message):
    """
    Log information regardless of debug mode.

    Parameters
    ----------
    message : str
        The message to log
    """
    logger = logging.getLogger(__name__)
    logger.info(message)


def critical_log(message, game_code=None, extra_data=None):
    """
    Log a condition that needs operator attention.

    Parameters
    ----------
    message : str
        The message to log
    game_code : str, optional
        Game code associated with the condition
    extra_data : dict, optional
        Additional data to include in the log
    """
    log_parts = []
    if game_code:
        log_parts.append(f"Room: {game_code}")
    log_parts.append(message)
    if extra_data:
        log_parts.append(f"Data: {extra_data}")

    logger = logging.getLogger(__name__)
    logger.critical(" | ".join(log_parts))
