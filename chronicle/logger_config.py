# chronicle/logger_config.py - Run log and structured adventure event log

import datetime
import json
import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
QUIET_LOGGERS = ('google', 'google_genai', 'httpx', 'httpcore', 'urllib3')


def setup_unique_logger(
    logger_name: str,
    file_prefix: str,
    log_dir: str,
    console_level: int = logging.WARNING,
    file_mode: str = 'a',
) -> Tuple[logging.Logger, str]:
    """
    Routes every module logger to a timestamped DEBUG file in `log_dir`
    and to stderr at `console_level`. The front-ends own stdout.

    Returns the named logger and the path of the log file in use.
    """
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = os.path.join(log_dir, f"{file_prefix}_{timestamp}.log")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    existing = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
    if existing:
        log_filename = existing[0].baseFilename
    else:
        file_handler = logging.FileHandler(log_filename, mode=file_mode, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(logger_name), log_filename


# --- Structured Event Logging ---

class JsonFormatter(logging.Formatter):
    """Writes the record message as is; `log_event` has already serialized it."""
    def format(self, record):
        return record.getMessage()


def setup_event_logger(session_id: str, log_dir: str) -> Tuple[logging.Logger, str]:
    """
    Opens `events_<session_id>_<timestamp>.jsonl` in `log_dir` and returns a
    logger that writes one JSON object per line to it.
    """
    event_logger = logging.getLogger(f"chronicle.events.{session_id}")
    event_logger.setLevel(logging.INFO)
    event_logger.propagate = False
    for handler in list(event_logger.handlers):
        event_logger.removeHandler(handler)
        handler.close()

    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    file_path = os.path.join(log_dir, f"events_{session_id}_{timestamp}.jsonl")

    fh = logging.FileHandler(file_path, mode='a', encoding='utf-8')
    fh.setFormatter(JsonFormatter())
    event_logger.addHandler(fh)
    return event_logger, file_path

def log_event(
    source: str,
    event_type: str,
    data: Dict[str, Any],
    logger_instance: logging.Logger,
    event_logger: Optional[logging.Logger],
):
    """Logs a structured event to the dedicated event logger."""
    if event_logger:
        log_entry = {
            "timestamp": datetime.datetime.now().isoformat(timespec="seconds"),
            "source": source,
            "event_type": event_type,
            "data": data
        }
        try:
            event_logger.info(json.dumps(log_entry))
        except (TypeError, ValueError) as e:
            logger_instance.error(f"Failed to log event (type: {event_type}, source: {source}) to event log: {e}", exc_info=True)
