#!/usr/bin/env python3
"""
Logger setup shared by every extractor component
"""

import logging


def setup_logger(name: str, debug_mode: bool = True) -> logging.Logger:
    """Setup logging configuration for a named component"""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
