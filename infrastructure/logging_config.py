"""
Logging configuration for the SmartPark booking engine
Console plus rotating file handlers, with a dedicated reclamation log
"""

import logging
import logging.handlers
import os
import shutil
from datetime import datetime
from typing import Optional

from infrastructure.constants import DEFAULT_LOG_DIRECTORY

# Loggers whose records also land in the dedicated reclamation log
RECLAMATION_LOGGERS = (
    'ReclamationScheduler',
    'TransitionExecutor',
    'BookingStore',
)

# Booking engine loggers tuned separately from the root level
ENGINE_LOGGERS = (
    'BookingLifecycleService',
    'BookingReportService',
    'BookingStateMachine',
    'SlotInventory',
    'LifecycleManager',
) + RECLAMATION_LOGGERS


def _clear_directory(log_dir: str) -> None:
    if not os.path.exists(log_dir):
        return
    for filename in os.listdir(log_dir):
        file_path = os.path.join(log_dir, filename)
        try:
            if os.path.isfile(file_path) or os.path.islink(file_path):
                os.unlink(file_path)
            elif os.path.isdir(file_path):
                shutil.rmtree(file_path)
        except OSError as e:
            print(f'Failed to delete {file_path}. Reason: {e}')


def setup_logging(
    log_dir: Optional[str] = None,
    *,
    production_mode: Optional[bool] = None,
    clear_previous: bool = True,
) -> str:
    """
    Set up logging with console and rotating file handlers.

    Previous logs in ``log_dir`` are removed first so each process run starts
    with a clean 'latest_log' directory. Returns the directory in use.
    """
    if log_dir is None:
        log_dir = os.getenv('LOG_DIRECTORY', DEFAULT_LOG_DIRECTORY)
    if production_mode is None:
        production_mode = os.getenv('PRODUCTION_MODE', 'false').lower() == 'true'

    if clear_previous:
        _clear_directory(log_dir)
    os.makedirs(log_dir, exist_ok=True)

    main_log_file = os.path.join(log_dir, 'smartpark.log')
    debug_log_file = os.path.join(log_dir, 'smartpark_debug.log')
    error_log_file = os.path.join(log_dir, 'smartpark_errors.log')
    reclamation_log_file = os.path.join(log_dir, 'reclamation.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING if production_mode else logging.DEBUG)
    root_logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    main_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(main_file_handler)

    if not production_mode:
        debug_file_handler = logging.handlers.RotatingFileHandler(
            debug_log_file,
            maxBytes=50*1024*1024,  # 50MB
            backupCount=3,
            encoding='utf-8'
        )
        debug_file_handler.setLevel(logging.DEBUG)
        debug_file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(debug_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_file_handler)

    reclamation_handler = logging.handlers.RotatingFileHandler(
        reclamation_log_file,
        maxBytes=20*1024*1024,  # 20MB
        backupCount=5,
        encoding='utf-8'
    )
    reclamation_handler.setLevel(logging.INFO if production_mode else logging.DEBUG)
    reclamation_handler.setFormatter(detailed_formatter)

    for name in RECLAMATION_LOGGERS:
        logger = logging.getLogger(name)
        # Avoid stacking handlers when setup runs more than once per process
        logger.handlers = [
            handler for handler in logger.handlers
            if not isinstance(handler, logging.handlers.RotatingFileHandler)
        ]
        logger.addHandler(reclamation_handler)

    engine_level = logging.INFO if production_mode else logging.DEBUG
    for name in ENGINE_LOGGERS:
        logging.getLogger(name).setLevel(engine_level)

    logging.getLogger('asyncio').setLevel(logging.WARNING)

    root_logger.info("=" * 80)
    root_logger.info("SmartPark Logging Initialized - %s", datetime.now())
    root_logger.info("Production Mode: %s", 'ON' if production_mode else 'OFF')
    root_logger.info("Main log: %s", main_log_file)
    if not production_mode:
        root_logger.info("Debug log: %s", debug_log_file)
    root_logger.info("Error log: %s", error_log_file)
    root_logger.info("Reclamation log: %s", reclamation_log_file)
    root_logger.info("=" * 80)
    return log_dir
