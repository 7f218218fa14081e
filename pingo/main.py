"""Main application entry point for Pingo."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from . import __version__
from .config import PingoConfig
from .models.scenario import Language, Scenario

logger = logging.getLogger(__name__)


def setup_logging(config: PingoConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/pingo.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only warnings and above, the terminal belongs to the UI
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # aiortc and aioice are very chatty at DEBUG
    for noisy in ("aioice", "aiortc"):
        logging.getLogger(noisy).setLevel(max(root_logger.level, logging.INFO))

    logger.info("=" * 50)
    logger.info("Pingo application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def run_client(config: PingoConfig, scenario: Scenario, language: Optional[Language]) -> None:
    """Run the terminal conversation client."""
    from .ui.session_screen import SessionScreen

    screen = SessionScreen(config, scenario, language)
    asyncio.run(screen.run())


def main() -> None:
    """Main entry point for Pingo."""
    parser = argparse.ArgumentParser(
        description="Pingo - Voice conversation practice",
        epilog="Commands: 1=Start talking, 2=Stop talking, e=End and get feedback, t=Corrected transcript, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config)"
    )

    parser.add_argument(
        "--scenario",
        type=str,
        default=Scenario.JOB_INTERVIEW.value,
        choices=[s.value for s in Scenario],
        help="Practice scenario (default: jobInterview)"
    )

    parser.add_argument(
        "--language",
        type=str,
        choices=[lang.value for lang in Language],
        help="Conversation language (default: English)"
    )

    parser.add_argument(
        "--api-url",
        type=str,
        help="Base URL of the Pingo server (overrides api.base_url)"
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the Pingo server instead of the conversation client"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Pingo v{__version__}"
    )

    args = parser.parse_args()

    load_dotenv()

    try:
        config = PingoConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))
    if args.api_url:
        config.set('api.base_url', args.api_url)

    try:
        if args.serve:
            # Fail fast: every upstream call needs the credential
            config.get_api_key()
            from .server.app import run_server
            run_server(config)
        else:
            language = Language(args.language) if args.language else None
            run_client(config, Scenario(args.scenario), language)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logger.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
