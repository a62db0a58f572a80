import sys
from loguru import logger
from pathlib import Path
from typing import Optional

# (level, log file) of the active configuration
_active: Optional[tuple] = None

def setup_logger(log_level: str = "INFO", log_file: Optional[Path] = None):
    global _active

    if _active == (log_level, log_file):
        return logger

    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    # Full engine trace goes to the file sink regardless of console level
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
        )

    _active = (log_level, log_file)
    return logger
