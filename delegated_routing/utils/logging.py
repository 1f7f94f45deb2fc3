import atexit
import logging
import logging.handlers
import os
from pathlib import (
    Path,
)
import queue
import sys
import threading
from typing import (
    Any,
)

ROOT_LOGGER_NAME = "delegated_routing"
DEBUG_ENV = "DELEGATED_ROUTING_DEBUG"
DEBUG_FILE_ENV = "DELEGATED_ROUTING_DEBUG_FILE"

log_queue: "queue.Queue[Any]" = queue.Queue()

_current_listener: logging.handlers.QueueListener | None = None

_listener_ready = threading.Event()

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_debug_modules(debug_str: str) -> dict[str, int]:
    """
    Parse ``DELEGATED_ROUTING_DEBUG`` into per-module log levels.

    Format examples:
    - "DEBUG"  # every module at DEBUG
    - "delegated_routing.client:DEBUG"  # only the client package
    - "client:DEBUG"  # same as above, the package prefix is optional
    - "client:DEBUG,types.iter:INFO"  # several modules

    The empty key holds a level that applies to the whole package.
    """
    module_levels: dict[str, int] = {}

    if not debug_str or debug_str.isspace():
        return module_levels

    if ":" not in debug_str and debug_str.strip().upper() in logging._nameToLevel:
        return {"": getattr(logging, debug_str.strip().upper())}

    for part in debug_str.split(","):
        if ":" not in part:
            continue

        module, level = part.rsplit(":", 1)
        level = level.strip().upper()
        if level not in logging._nameToLevel:
            continue

        module = module.strip().replace("/", ".")
        if module == ROOT_LOGGER_NAME:
            module = ""
        elif module.startswith(ROOT_LOGGER_NAME + "."):
            module = module[len(ROOT_LOGGER_NAME) + 1 :]
        module_levels[module.strip(".")] = getattr(logging, level)

    return module_levels


def _silence(root_logger: logging.Logger) -> None:
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
    root_logger.propagate = False


def setup_logging() -> None:
    """
    Configure the ``delegated_routing`` loggers from the environment.

    Environment Variables:
        DELEGATED_ROUTING_DEBUG
            Log levels, either one level for everything ("DEBUG") or a comma
            separated list of ``module:LEVEL`` pairs. When unset or invalid,
            only warnings and errors are emitted, and nothing is propagated to
            the application's root logger.

        DELEGATED_ROUTING_DEBUG_FILE
            If set, log records go to this file instead of stderr. Missing
            parent directories are created.

    Records are handed to a queue and written by a background listener, so a
    slow log sink never blocks the event loop.
    """
    global _current_listener

    _listener_ready.clear()

    if _current_listener is not None:
        _current_listener.stop()
        _current_listener = None

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    module_levels = _parse_debug_modules(os.environ.get(DEBUG_ENV, ""))
    if not module_levels:
        _silence(root_logger)
        _listener_ready.set()
        return

    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)
    handler: logging.Handler
    log_file = os.environ.get(DEBUG_FILE_ENV)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            handler = logging.FileHandler(log_path, mode="a")
        except OSError as e:
            print(f"Error creating file handler: {e}", file=sys.stderr)
            raise
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    queue_handler = logging.handlers.QueueHandler(log_queue)

    root_logger.handlers.clear()
    root_logger.addHandler(queue_handler)
    root_logger.propagate = False
    root_logger.setLevel(module_levels.get("", logging.INFO))

    for module, level in module_levels.items():
        if not module:
            continue
        module_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{module}")
        module_logger.handlers.clear()
        module_logger.addHandler(queue_handler)
        module_logger.setLevel(level)
        module_logger.propagate = False

    _current_listener = logging.handlers.QueueListener(
        log_queue, handler, respect_handler_level=True
    )
    _current_listener.start()

    _listener_ready.set()


@atexit.register
def cleanup_logging() -> None:
    global _current_listener
    if _current_listener is not None:
        _current_listener.stop()
        _current_listener = None
