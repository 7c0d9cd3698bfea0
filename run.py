#!/usr/bin/env python3
"""
Jellyfin → Discord Rich Presence with public album art caching
Entry point for the jellyrpc package.
"""
import sys

from jellyrpc.config import load_config
from jellyrpc.core import main_loop
from jellyrpc.logger import setup_logger
from jellyrpc.validation import validate_configuration

def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config_path = argv[0] if argv else "config.yaml"
    logger = setup_logger(log_file=None)

    try:
        # Load and validate settings from config.yaml
        settings = load_config(config_path)
    except FileNotFoundError as e:
        logger.error(f"Error: {e}")
        logger.error("Please copy 'config.yaml.example' to 'config.yaml' and configure it.")
        return 1
    except Exception as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger = setup_logger(log_file=settings.log_file, level=settings.log_level)
    validate_configuration(settings)

    try:
        # Start the main polling logic
        return main_loop(settings)
    except Exception as e:
        logger.critical(f"FATAL ERROR: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
