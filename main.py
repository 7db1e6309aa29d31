#!/usr/bin/env python3
"""
Chronicle - infinite illustrated adventures in the terminal.
"""

import argparse
import logging
import sys

from chronicle.config import APP_NAME, DEFAULT_IMAGE_SIZE, DEFAULT_THEME, EVENT_LOG_DIR, LOG_DIR
from chronicle.credentials import CredentialStore
from chronicle.llm_service import LLMService
from chronicle.logger_config import setup_event_logger, setup_unique_logger
from chronicle.models import AdventureTheme, ImageSize
from chronicle.session import AdventureSession


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"Play a {APP_NAME} adventure.")
    parser.add_argument(
        "--theme", type=str, default=DEFAULT_THEME,
        help="Adventure theme, by name or value (e.g. 'cyberpunk', 'Gothic Horror').",
    )
    parser.add_argument(
        "--image-size", type=str, default=DEFAULT_IMAGE_SIZE,
        help="Illustration fidelity: low/medium/high or 1K/2K/4K.",
    )
    parser.add_argument(
        "--console", action="store_true",
        help="Use the plain console front-end instead of the full-screen interface.",
    )
    parser.add_argument(
        "--log-level", type=str, default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console logging level. The log file always records DEBUG.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        theme = AdventureTheme.from_string(args.theme)
        image_size = ImageSize.parse(args.image_size)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logger, log_filename = setup_unique_logger(
        logger_name=APP_NAME,
        file_prefix=APP_NAME,
        log_dir=LOG_DIR,
        console_level=getattr(logging, args.log_level),
        file_mode='w',
    )
    logger.info(f"--- Application Start ({APP_NAME}) --- Logging to: {log_filename}")

    credentials = CredentialStore()
    session = AdventureSession(
        llm=LLMService(api_key=credentials.api_key),
        credentials=credentials,
        theme=theme,
        image_size=image_size,
    )
    session.event_logger, event_log_filename = setup_event_logger(session_id=session.session_id, log_dir=EVENT_LOG_DIR)
    logger.info(f"Structured event logging to: {event_log_filename}")

    try:
        if args.console:
            from chronicle.console_app import run_console_app
            run_console_app(session)
        else:
            from chronicle.textual_app import run_chronicle_app
            run_chronicle_app(session)
    except KeyboardInterrupt:
        logger.warning("Adventure interrupted by user.")
    except Exception as e:
        logger.critical(f"An unexpected error occurred: {e}", exc_info=True)
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        return 1
    finally:
        logging.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
